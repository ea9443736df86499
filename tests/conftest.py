"""Shared fixtures: Summer Tour 2025 reference data and a fake data source."""

from datetime import date, datetime, timezone

import pytest

from tourstats.errors import NotFound
from tourstats.models import (
    Setlist, ShowGapObservation, TourContext, TourShow, TrackPerformance
)


@pytest.fixture
def summer_2025_shows():
    return [
        TourShow(
            show_date=date(2025, 6, 24),
            venue="Bethel Woods Center for the Arts",
            song_gaps=(ShowGapObservation("Paul and Silas", 323,
                                          last_played=date(2016, 7, 22)),)
        ),
        TourShow(
            show_date=date(2025, 7, 11),
            venue="Pine Knob Music Theatre",
            song_gaps=(ShowGapObservation("Devotion To A Dream", 322,
                                          last_played=date(2016, 10, 15)),)
        ),
        TourShow(
            show_date=date(2025, 7, 18),
            venue="United Center",
            song_gaps=(ShowGapObservation("On Your Way Down", 522,
                                          last_played=date(2011, 8, 6)),)
        ),
    ]


@pytest.fixture
def summer_2025_tracks():
    return [
        TrackPerformance("What's Going Through Your Mind", 2544, date(2025, 6, 24),
                         "Bethel Woods Center for the Arts"),
        TrackPerformance("Sand", 2383, date(2025, 7, 15), "United Center"),
        TrackPerformance("Down with Disease", 2048, date(2025, 7, 11),
                         "Pine Knob Music Theatre"),
        TrackPerformance("Harry Hood", 1456, date(2025, 6, 25), "Brandon Amphitheater"),
        TrackPerformance("Tweezer", 1383, date(2025, 7, 27), "Broadview Stage at SPAC"),
    ]


FIXED_NOW = datetime(2025, 7, 19, 3, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


class FakeSource:
    """
    In-memory TourDataSource. Any value given as an Exception instance is
    raised instead of returned. Calls are recorded in self.calls.
    """

    def __init__(self, tour="Summer Tour 2025", tracks=None, shows=None, setlist=None):
        self.tour = tour
        self.tracks = tracks if tracks is not None else []
        self.shows = shows if shows is not None else []
        self.setlist = setlist
        self.calls = []

    @staticmethod
    def _give(value):
        if isinstance(value, Exception):
            raise value
        return value

    def resolve_tour_for_show(self, show_date):
        self.calls.append(('resolve_tour_for_show', show_date))
        return TourContext(self._give(self.tour))

    def fetch_tour_track_durations(self, tour_name):
        self.calls.append(('fetch_tour_track_durations', tour_name))
        return self._give(self.tracks)

    def fetch_tour_shows_with_gaps(self, tour_name, through_date):
        self.calls.append(('fetch_tour_shows_with_gaps', tour_name, through_date))
        return self._give(self.shows)

    def fetch_show_setlist(self, show_date):
        self.calls.append(('fetch_show_setlist', show_date))
        if self.setlist is None:
            raise NotFound(f"No setlist found for {show_date}")
        return self._give(self.setlist)


@pytest.fixture
def latest_setlist():
    return Setlist(
        show_date=date(2025, 7, 27),
        venue="Broadview Stage at SPAC",
        song_names=("Carini", "Tweezer", "Sand", "Ghost", "Slave to the Traffic Light", "Tweezer Reprise")
    )


@pytest.fixture
def make_source():
    return FakeSource
