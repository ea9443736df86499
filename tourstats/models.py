"""
Data Models for Tour Statistics

Immutable records flowing from the catalog data sources through the
selectors and into the published artifact.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from typing import List, Optional, Tuple


UNKNOWN_VENUE = "Unknown Venue"
DEFAULT_TIMES_PLAYED = 100  # Placeholder for the typical/unknown case


@dataclass(frozen=True)
class VenueRun:
    """Position of a show within a multi-night run at one venue."""
    night_number: int
    total_nights: int
    display_text: str = ""


@dataclass(frozen=True)
class TrackPerformance:
    """One recorded performance of a song with a measured duration."""
    song_name: Optional[str]
    duration_seconds: Optional[int]
    show_date: Optional[date]
    venue: Optional[str] = None
    venue_run: Optional[VenueRun] = None


@dataclass(frozen=True)
class ShowGapObservation:
    """
    A song's gap as of one show.

    tour_date / tour_venue may arrive embedded from upstream but are never
    used for attribution; the containing TourShow owns those.
    """
    song_name: Optional[str]
    gap: Optional[int]
    last_played: Optional[date] = None
    tour_date: Optional[date] = None
    tour_venue: Optional[str] = None
    times_played: Optional[int] = None
    historical_venue: Optional[str] = None
    historical_city: Optional[str] = None
    historical_state: Optional[str] = None
    historical_last_played: Optional[date] = None


@dataclass(frozen=True)
class TourShow:
    """One show of a tour with the gap observations taken at it."""
    show_date: Optional[date]
    venue: Optional[str]
    song_gaps: Tuple[ShowGapObservation, ...] = ()


@dataclass(frozen=True)
class RarestSong:
    """The winning (highest gap) observation retained for one song."""
    song_name: str
    gap: int
    last_played: Optional[date]
    tour_date: Optional[date]
    tour_venue: str
    times_played: int = DEFAULT_TIMES_PLAYED
    historical_venue: Optional[str] = None
    historical_city: Optional[str] = None
    historical_state: Optional[str] = None
    historical_last_played: Optional[date] = None


@dataclass(frozen=True)
class TourContext:
    """A tour resolved for a show date."""
    tour_name: str


@dataclass(frozen=True)
class Setlist:
    """Song names played at a single show, in setlist order."""
    show_date: date
    venue: Optional[str]
    song_names: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TourStatistics:
    """The published statistics for the current tour."""
    tour_name: str
    last_updated: datetime
    latest_show: date
    longest_songs: List[TrackPerformance] = field(default_factory=list)
    rarest_songs: List[RarestSong] = field(default_factory=list)


def parse_date(date_str) -> date:
    """Parse a date string from the catalog data."""
    if isinstance(date_str, datetime):
        return date_str.date()
    if isinstance(date_str, date):
        return date_str
    if not isinstance(date_str, str):
        raise ValueError(f"Not a date: {date_str!r}")
    return datetime.strptime(date_str.strip(), "%Y-%m-%d").date()
