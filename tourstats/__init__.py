"""
Tour Statistics

Longest and rarest songs of the current tour, computed server-side and
published as a static JSON artifact.
"""

from .aggregator import TourStatisticsCalculator
from .calculations import normalize_song_key, select_longest, select_rarest
from .errors import NotFound, ShowOrderError, TourStatsError, TransportError
from .models import (
    RarestSong, Setlist, ShowGapObservation, TourContext, TourShow,
    TourStatistics, TrackPerformance, VenueRun
)
from .publish import publish_tour_statistics, to_payload, write_artifact
from .sources import SnapshotDataSource, TourDataSource

__version__ = "0.1.0"
