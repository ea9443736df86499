"""
Artifact Publication

Shapes TourStatistics into the JSON document clients fetch and writes it
to disk. Field names and nesting are the compatibility contract with
the client app, so they stay camelCase.
"""

import json
import logging
import os
import tempfile
from datetime import timezone
from pathlib import Path
from typing import Dict, List, Optional

from .models import UNKNOWN_VENUE, RarestSong, TourStatistics, TrackPerformance

logger = logging.getLogger(__name__)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _timestamp(value) -> str:
    """UTC timestamp, e.g. 2025-07-19T03:00:00.000Z"""
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def format_longest_songs(songs: List[TrackPerformance]) -> List[Dict]:
    formatted = []
    for song in songs:
        run = song.venue_run
        if run is not None:
            night = run.night_number or 1
            total = run.total_nights or 1
            venue_run = {
                'showNumber': night,
                'totalShows': total,
                'displayText': run.display_text or f"N{night}/{total}"
            }
        else:
            venue_run = None

        formatted.append({
            'songName': song.song_name,
            'durationSeconds': song.duration_seconds,
            'showDate': _iso(song.show_date),
            'venue': song.venue or UNKNOWN_VENUE,
            'venueRun': venue_run
        })
    return formatted


def format_rarest_songs(songs: List[RarestSong]) -> List[Dict]:
    return [
        {
            'songName': song.song_name,
            'gap': song.gap,
            'lastPlayed': _iso(song.last_played or song.historical_last_played),
            'tourDate': _iso(song.tour_date),
            'tourVenue': song.tour_venue or UNKNOWN_VENUE
        }
        for song in songs
    ]


def to_payload(statistics: TourStatistics) -> Dict:
    """The artifact document for a set of statistics."""
    return {
        'tourName': statistics.tour_name,
        'lastUpdated': _timestamp(statistics.last_updated),
        'latestShow': _iso(statistics.latest_show),
        'longestSongs': format_longest_songs(statistics.longest_songs),
        'rarestSongs': format_rarest_songs(statistics.rarest_songs)
    }


def calculate_completeness(payload: Dict) -> int:
    """Data completeness score (0-100) for a published payload."""
    score = 0
    max_score = 0

    max_score += 10
    if payload.get('tourName'):
        score += 10

    longest = payload.get('longestSongs') or []
    max_score += 30
    score += min(len(longest) * 10, 30)

    max_score += 30
    score += min(len(payload.get('rarestSongs') or []) * 10, 30)

    max_score += 10
    if payload.get('latestShow'):
        score += 10

    max_score += 10
    if payload.get('lastUpdated'):
        score += 10

    # Duration data quality
    max_score += 10
    if any((song.get('durationSeconds') or 0) > 0 for song in longest):
        score += 10

    return round(score / max_score * 100)


def write_artifact(statistics: TourStatistics, path) -> Dict:
    """
    Write the artifact as formatted JSON and return the payload.

    The file is replaced atomically, so on any failure the previous
    artifact stays as it was.
    """
    path = Path(path)
    payload = to_payload(statistics)
    content = json.dumps(payload, indent=2, ensure_ascii=False)

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(content)
            f.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.info(f"Saved: {path} ({len(content)} bytes, "
                f"{calculate_completeness(payload)}% complete)")
    return payload


def publish_tour_statistics(calculator, latest_show_date, path) -> Dict:
    """Calculate fresh statistics and publish them. Errors propagate."""
    statistics = calculator.calculate(latest_show_date)
    payload = write_artifact(statistics, path)
    logger.info(f"Updated: {statistics.tour_name}, latest show {payload['latestShow']}")
    return payload
