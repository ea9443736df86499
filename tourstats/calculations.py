"""
Tour Statistics Calculations

The two selectors behind the published statistics:

1. Longest songs: top-K track performances by duration across the tour.
2. Tour-progressive rarest songs: walk the tour's shows in order, keep the
   highest gap seen for every song, then take the top-K by gap.

Both are pure. They never touch the network or disk and never mutate
their inputs, so they can be called repeatedly from any thread.
"""

import logging
import math
from dataclasses import replace
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from .errors import ShowOrderError
from .models import (
    DEFAULT_TIMES_PLAYED, UNKNOWN_VENUE,
    RarestSong, ShowGapObservation, TourShow, TrackPerformance,
    parse_date
)

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 3
CURRENT_TOUR_WINDOW_DAYS = 180


def _is_number(value) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, float) and math.isfinite(value))


def _as_count(value) -> Optional[int]:
    """Whole-number value as an int, or None (floats only if integral)."""
    if not _is_number(value):
        return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    return value


def _has_name(name) -> bool:
    return isinstance(name, str) and bool(name.strip())


def _check_k(k) -> int:
    if not isinstance(k, int) or isinstance(k, bool) or k < 1:
        raise ValueError(f"k must be a positive integer, got {k!r}")
    return k


def normalize_song_key(song_name: str) -> str:
    """
    Identity key for a song name.

    Case and runs of whitespace are ignored, punctuation is significant:
    "Devotion To A Dream" and "devotion to  a dream" share a key.
    """
    return " ".join(song_name.split()).casefold()


# =============================================================================
# LONGEST SONGS
# =============================================================================

def select_longest(tracks: Iterable[TrackPerformance],
                   k: int = DEFAULT_TOP_K) -> List[TrackPerformance]:
    """
    Top-k performances by duration, longest first.

    Tracks without a song name or without a positive whole-number
    duration are dropped. Equal durations keep their input order.
    """
    k = _check_k(k)

    valid = []
    skipped = 0
    for track in tracks:
        seconds = _as_count(track.duration_seconds) if track is not None else None
        if seconds is None or seconds <= 0 or not _has_name(track.song_name):
            skipped += 1
            continue
        if isinstance(track.duration_seconds, float):
            track = replace(track, duration_seconds=seconds)
        valid.append(track)

    if skipped:
        logger.debug("Dropped %d tracks with missing name or duration", skipped)

    longest = sort_songs_by_duration(valid)[:k]

    for i, track in enumerate(longest, 1):
        logger.debug("  %d. %s - %s (%s)", i, track.song_name,
                     format_duration(track.duration_seconds), track.show_date)

    return longest


# =============================================================================
# RAREST SONGS
# =============================================================================

def _valid_observation(obs: ShowGapObservation) -> bool:
    if obs is None or not _has_name(obs.song_name):
        return False
    gap = _as_count(obs.gap)
    return gap is not None and gap >= 0


def _to_rarest(obs: ShowGapObservation, show: TourShow) -> RarestSong:
    """Shape a winning observation, attributing it to its containing show."""
    return RarestSong(
        song_name=obs.song_name,
        gap=_as_count(obs.gap),
        last_played=obs.last_played or obs.historical_last_played,
        tour_date=show.show_date,
        tour_venue=show.venue or UNKNOWN_VENUE,
        times_played=obs.times_played or DEFAULT_TIMES_PLAYED,
        historical_venue=obs.historical_venue,
        historical_city=obs.historical_city,
        historical_state=obs.historical_state,
        historical_last_played=obs.historical_last_played or obs.last_played,
    )


def select_rarest(shows: Iterable[TourShow],
                  k: int = DEFAULT_TOP_K) -> List[RarestSong]:
    """
    Top-k songs by the highest gap they reached during the tour.

    Shows must be in chronological order. For each song the first show
    at which its maximum gap occurred wins; a later show with an equal
    gap does not replace it. Date and venue always come from the show,
    never from fields carried on the observation.

    Raises ShowOrderError if a dated show precedes an earlier dated one.
    """
    k = _check_k(k)

    best: Dict[str, RarestSong] = {}
    last_date: Optional[date] = None
    n_shows = 0

    for show in shows:
        if show is None:
            continue
        n_shows += 1
        if show.show_date is not None:
            if last_date is not None and show.show_date < last_date:
                raise ShowOrderError(
                    f"Show {show.show_date} follows {last_date}; "
                    "shows must be in chronological order"
                )
            last_date = show.show_date

        for obs in show.song_gaps or ():
            if not _valid_observation(obs):
                logger.debug("Skipping invalid gap info in %s", show.show_date)
                continue

            key = normalize_song_key(obs.song_name)
            existing = best.get(key)
            candidate = _to_rarest(obs, show)

            if existing is None or candidate.gap > existing.gap:
                if existing is not None:
                    logger.debug("Updating %s: %d -> %d",
                                 obs.song_name, existing.gap, candidate.gap)
                best[key] = candidate

    # dict preserves first-insertion order, so equal gaps stay in that order
    rarest = sort_songs_by_gap(best.values())[:k]

    logger.info("Tracked %d songs across %d shows", len(best), n_shows)
    for i, song in enumerate(rarest, 1):
        logger.info("  %d. %s - Gap: %d (from %s)",
                    i, song.song_name, song.gap, song.tour_date)

    return rarest


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def sort_songs_by_duration(songs: Iterable) -> List:
    """Sort songs by duration (descending), missing durations last."""
    return sorted(songs, key=lambda s: s.duration_seconds or 0, reverse=True)


def sort_songs_by_gap(songs: Iterable) -> List:
    """Sort songs by gap (descending), missing gaps last."""
    return sorted(songs, key=lambda s: s.gap or 0, reverse=True)


def format_duration(seconds) -> str:
    """Format a duration in seconds as M:SS."""
    if not _is_number(seconds) or seconds < 0:
        return "0:00"
    minutes, remaining = divmod(int(seconds), 60)
    return f"{minutes}:{remaining:02d}"


def extract_tour_from_date(show_date) -> str:
    """Season-based tour name for a show date, e.g. 'Summer Tour 2025'."""
    if not show_date:
        return "Unknown Tour"
    try:
        d = parse_date(show_date)
    except ValueError:
        return "Unknown Tour"

    if 6 <= d.month <= 8:
        season = "Summer"
    elif 9 <= d.month <= 11:
        season = "Fall"
    elif d.month == 12 or d.month <= 2:
        season = "Winter"
    else:
        season = "Spring"
    return f"{season} Tour {d.year}"


def is_current_tour(show_date, today: Optional[date] = None) -> bool:
    """A tour counts as current if its latest show was within ~6 months."""
    if not show_date:
        return False
    today = today or date.today()
    return parse_date(show_date) >= today - timedelta(days=CURRENT_TOUR_WINDOW_DAYS)


def validate_tour_shows(shows: List[TourShow]) -> List[str]:
    """List problems with tour show data. An empty list means it looks usable."""
    if not shows:
        return ["Tour shows list is empty"]

    errors = []
    for i, show in enumerate(shows, 1):
        if show.show_date is None:
            errors.append(f"Show {i} missing show date")
        if not show.song_gaps:
            errors.append(f"Show {i} ({show.show_date}) has no song gap data")
    return errors
