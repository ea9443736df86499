"""
Tour Data Sources

The calculator talks to its data through the TourDataSource contract.
SnapshotDataSource fulfills it from catalog dumps kept on disk:

- setlists.json: Phish.net setlist rows (one row per song per show,
  carrying the song's gap as of that show)
- tracks.json: Phish.in track rows (one row per recorded track, with
  duration in milliseconds)

Each file may hold a bare list of rows or the API envelope
({"data": [...]} for Phish.net, {"tracks": [...]} for Phish.in).
"""

import json
import logging
from collections import defaultdict
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Protocol
from tqdm import tqdm

from .errors import NotFound, TransportError
from .models import (
    Setlist, ShowGapObservation, TourContext, TourShow, TrackPerformance,
    VenueRun, parse_date
)

logger = logging.getLogger(__name__)

PHISH_ARTIST_ID = 1
MAX_RUN_GAP_DAYS = 1  # Consecutive nights at one venue


class TourDataSource(Protocol):
    """What the calculator needs from the outside world."""

    def resolve_tour_for_show(self, show_date: date) -> TourContext:
        """Tour containing a show. Raises NotFound if there is none."""
        ...

    def fetch_tour_track_durations(self, tour_name: str) -> List[TrackPerformance]:
        """All timed tracks of a tour. Empty when there is no data."""
        ...

    def fetch_tour_shows_with_gaps(self, tour_name: str,
                                   through_date: date) -> List[TourShow]:
        """Tour shows up to through_date, in chronological order."""
        ...

    def fetch_show_setlist(self, show_date: date) -> Setlist:
        """Setlist of one show. Raises NotFound if there is none."""
        ...


def safe_int(value, default=None):
    """Safely convert a value to int, returning default if not possible."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def safe_date(value) -> Optional[date]:
    """Parse a date, returning None for blanks and junk."""
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError:
        return None


def build_venue_runs(shows: List[tuple]) -> Dict[date, VenueRun]:
    """
    Number the nights of multi-night runs.

    shows is a list of (show_date, venue) pairs. A run is a sequence of
    shows at the same venue with no more than MAX_RUN_GAP_DAYS between
    them. Single nights get no entry.
    """
    runs: List[List[date]] = []
    prev_date, prev_venue = None, None

    for show_date, venue in sorted(set(shows), key=lambda x: x[0]):
        same_run = (
            prev_date is not None
            and venue and venue == prev_venue
            and (show_date - prev_date).days <= MAX_RUN_GAP_DAYS
        )
        if same_run:
            runs[-1].append(show_date)
        else:
            runs.append([show_date])
        prev_date, prev_venue = show_date, venue

    result = {}
    for run in runs:
        if len(run) < 2:
            continue
        for night, show_date in enumerate(run, 1):
            result[show_date] = VenueRun(
                night_number=night,
                total_nights=len(run),
                display_text=f"N{night}/{len(run)}"
            )
    return result


class SnapshotDataSource:
    """TourDataSource backed by JSON catalog dumps in a directory."""

    def __init__(self, data_dir: str = "data/raw",
                 setlists_file: str = "setlists.json",
                 tracks_file: str = "tracks.json"):
        self.data_dir = Path(data_dir)
        self.setlists_path = self.data_dir / setlists_file
        self.tracks_path = self.data_dir / tracks_file

        self._setlists: Optional[List[Dict]] = None
        self._tracks: Optional[List[Dict]] = None

    def _load_rows(self, path: Path, envelope_key: str) -> List[Dict]:
        """Read a dump, unwrapping the API envelope if present."""
        if not path.exists():
            raise TransportError(f"Snapshot file not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise TransportError(f"Could not read {path}: {e}") from e

        if isinstance(data, dict):
            data = data.get(envelope_key, [])
        if not isinstance(data, list):
            raise TransportError(f"Unexpected snapshot layout in {path}")

        rows = [row for row in data if isinstance(row, dict)]
        logger.debug(f"Loaded {len(rows)} rows from {path}")
        return rows

    @property
    def setlists(self) -> List[Dict]:
        if self._setlists is None:
            rows = self._load_rows(self.setlists_path, 'data')
            # Filter to Phish only (artistid = 1)
            self._setlists = [
                r for r in rows
                if safe_int(r.get('artistid'), PHISH_ARTIST_ID) == PHISH_ARTIST_ID
            ]
        return self._setlists

    @property
    def tracks(self) -> List[Dict]:
        if self._tracks is None:
            self._tracks = self._load_rows(self.tracks_path, 'tracks')
        return self._tracks

    def _rows_for_date(self, show_date: date) -> List[Dict]:
        rows = [r for r in self.setlists if safe_date(r.get('showdate')) == show_date]
        return sorted(rows, key=lambda r: safe_int(r.get('position'), 0))

    # ==================== TourDataSource ====================

    def resolve_tour_for_show(self, show_date) -> TourContext:
        show_date = parse_date(show_date)
        rows = self._rows_for_date(show_date)
        if not rows:
            raise NotFound(f"No show found for {show_date}")

        for row in rows:
            if row.get('tourname'):
                return TourContext(tour_name=row['tourname'])

        raise NotFound(f"No tour recorded for {show_date}")

    def fetch_tour_track_durations(self, tour_name: str) -> List[TrackPerformance]:
        # the two catalogs name tours differently; join on show date instead
        tour_dates = {safe_date(r.get('showdate')) for r in self.setlists
                      if r.get('tourname') == tour_name}
        tour_dates.discard(None)
        tour_tracks = [t for t in self.tracks if safe_date(t.get('show_date')) in tour_dates]
        if not tour_tracks:
            logger.warning(f"No track data found for tour {tour_name}")
            return []

        dated = [(safe_date(t.get('show_date')), t.get('venue_name')) for t in tour_tracks]
        venue_runs = build_venue_runs([(d, v) for d, v in dated if d is not None])

        performances = []
        for track in tour_tracks:
            show_date = safe_date(track.get('show_date'))
            duration_ms = safe_int(track.get('duration'))
            performances.append(TrackPerformance(
                song_name=track.get('title'),
                duration_seconds=round(duration_ms / 1000) if duration_ms is not None else None,
                show_date=show_date,
                venue=track.get('venue_name'),
                venue_run=venue_runs.get(show_date)
            ))

        logger.info(f"Found {len(performances)} tracks for {tour_name}")
        return performances

    def fetch_tour_shows_with_gaps(self, tour_name: str, through_date) -> List[TourShow]:
        through_date = parse_date(through_date)
        tour_rows = [r for r in self.setlists if r.get('tourname') == tour_name]

        venues: Dict[date, Optional[str]] = {}
        gaps: Dict[date, List[ShowGapObservation]] = defaultdict(list)

        for entry in tqdm(tour_rows, desc="Building shows"):
            show_date = safe_date(entry.get('showdate'))
            if show_date is None or show_date > through_date:
                continue

            if not venues.get(show_date):
                venues[show_date] = entry.get('venue')

            gaps[show_date].append(ShowGapObservation(
                song_name=entry.get('song'),
                gap=safe_int(entry.get('gap')),
                last_played=safe_date(entry.get('lastplayed')),
                times_played=safe_int(entry.get('timesplayed')),
            ))

        shows = [
            TourShow(show_date=d, venue=venues[d], song_gaps=tuple(gaps[d]))
            for d in sorted(venues)
        ]
        logger.info(f"Built {len(shows)} shows for {tour_name} through {through_date}")
        return shows

    def fetch_show_setlist(self, show_date) -> Setlist:
        show_date = parse_date(show_date)
        rows = self._rows_for_date(show_date)
        if not rows:
            raise NotFound(f"No setlist found for {show_date}")

        song_names = []
        for row in rows:
            song = row.get('song')
            if song and song not in song_names:
                song_names.append(song)

        venue = next((r.get('venue') for r in rows if r.get('venue')), None)
        return Setlist(show_date=show_date, venue=venue, song_names=tuple(song_names))
