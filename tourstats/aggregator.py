"""
Tour Statistics Calculator

Pulls the current tour's data from a TourDataSource, runs the two
selectors and assembles a TourStatistics.

Failure policy:
- Tour-wide track durations missing or failing -> placeholder durations
  from the latest show's setlist (longest songs only).
- Tour shows with gaps failing -> no rarest songs.
No retries here; those belong to the data source.
"""

import logging
from datetime import date, datetime, timezone
from typing import Callable, List, Optional

from .calculations import (
    DEFAULT_TOP_K, extract_tour_from_date, is_current_tour, select_longest,
    select_rarest, validate_tour_shows
)
from .errors import TourStatsError
from .models import TourShow, TourStatistics, TrackPerformance, parse_date
from .sources import TourDataSource

logger = logging.getLogger(__name__)

FALLBACK_SONG_COUNT = 5
FALLBACK_BASE_SECONDS = 600
FALLBACK_STEP_SECONDS = 60


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TourStatisticsCalculator:
    """Compute statistics for the tour containing the latest show."""

    def __init__(self, source: TourDataSource, top_k: int = DEFAULT_TOP_K,
                 clock: Optional[Callable[[], datetime]] = None):
        if not isinstance(top_k, int) or isinstance(top_k, bool) or top_k < 1:
            raise ValueError(f"top_k must be a positive integer, got {top_k!r}")
        self.source = source
        self.top_k = top_k
        self.clock = clock or utc_now

    def calculate(self, latest_show_date) -> TourStatistics:
        """Main method: calculate statistics for the current tour."""
        latest_show = parse_date(latest_show_date)

        # None means unresolved: the tour-wide fetches are skipped
        tour_name = self._resolve_tour_name(latest_show)
        display_name = tour_name or extract_tour_from_date(latest_show)
        now = self.clock()
        status = "current" if is_current_tour(latest_show, now.date()) else "past"
        logger.info(f"Calculating statistics for: {display_name} ({status} tour)")

        tracks = self._fetch_track_durations(tour_name, latest_show)
        shows = self._fetch_tour_shows(tour_name, latest_show)

        longest = select_longest(tracks, self.top_k)
        rarest = select_rarest(shows, self.top_k)

        logger.info(f"Longest songs: {len(longest)}, rarest songs: {len(rarest)}")

        return TourStatistics(
            tour_name=display_name,
            last_updated=now,
            latest_show=latest_show,
            longest_songs=longest,
            rarest_songs=rarest
        )

    def _resolve_tour_name(self, latest_show: date) -> Optional[str]:
        """Tour name for the latest show, or None if it cannot be resolved."""
        try:
            return self.source.resolve_tour_for_show(latest_show).tour_name
        except TourStatsError as e:
            logger.warning(f"Could not determine tour for {latest_show}: {e}")
            return None

    def _fetch_track_durations(self, tour_name: Optional[str],
                               latest_show: date) -> List[TrackPerformance]:
        if tour_name is None:
            return self._fallback_track_durations(latest_show, strict=True)

        try:
            tracks = self.source.fetch_tour_track_durations(tour_name)
        except TourStatsError as e:
            logger.warning(f"Could not fetch tour track durations: {e}")
            return self._fallback_track_durations(latest_show, strict=True)

        if not tracks:
            logger.warning("No track durations available - using fallback for latest show")
            return self._fallback_track_durations(latest_show, strict=False)

        return list(tracks)

    def _fallback_track_durations(self, latest_show: date,
                                  strict: bool) -> List[TrackPerformance]:
        """
        Placeholder durations from the latest show's setlist.

        The durations are decreasing stand-ins, not measurements. With
        strict set, a failure here is raised to the caller.
        """
        logger.info("Getting fallback track durations from latest show...")
        try:
            setlist = self.source.fetch_show_setlist(latest_show)
        except TourStatsError as e:
            if strict:
                raise
            logger.warning(f"Fallback track durations failed: {e}")
            return []

        return [
            TrackPerformance(
                song_name=song_name,
                duration_seconds=FALLBACK_BASE_SECONDS - i * FALLBACK_STEP_SECONDS,
                show_date=latest_show,
                venue=setlist.venue,
                venue_run=None
            )
            for i, song_name in enumerate(setlist.song_names[:FALLBACK_SONG_COUNT])
        ]

    def _fetch_tour_shows(self, tour_name: Optional[str],
                          latest_show: date) -> List[TourShow]:
        if tour_name is None:
            return []

        try:
            shows = list(self.source.fetch_tour_shows_with_gaps(tour_name, latest_show))
        except TourStatsError as e:
            logger.warning(f"Error fetching tour shows with gaps: {e}")
            return []

        for problem in validate_tour_shows(shows):
            logger.warning(problem)
        return shows
