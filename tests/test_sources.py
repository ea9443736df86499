import json
from datetime import date

import pytest

from tourstats.aggregator import TourStatisticsCalculator
from tourstats.calculations import select_rarest
from tourstats.errors import NotFound, TransportError
from tourstats.sources import SnapshotDataSource, build_venue_runs, safe_int

TOUR = "2025 Summer Tour"

SETLISTS = [
    {"showdate": "2025-07-18", "venue": "United Center", "song": "On Your Way Down",
     "gap": "522", "tourname": TOUR, "position": 2, "artistid": 1, "lastplayed": "2011-08-06"},
    {"showdate": "2025-07-18", "venue": "United Center", "song": "Tweezer",
     "gap": 4, "tourname": TOUR, "position": 1, "artistid": 1},
    {"showdate": "2025-06-24", "venue": "Bethel Woods Center for the Arts",
     "song": "Paul and Silas", "gap": 323, "tourname": TOUR, "position": 1, "artistid": 1},
    {"showdate": "2025-06-24", "venue": "Bethel Woods Center for the Arts",
     "song": "Tweezer", "gap": "n/a", "tourname": TOUR, "position": 2, "artistid": 1},
    {"showdate": "2025-07-19", "venue": "United Center", "song": "Ghost",
     "gap": 9, "tourname": TOUR, "position": 1, "artistid": 1},
    {"showdate": "2025-07-18", "venue": "Side Stage", "song": "Not Phish",
     "gap": 999, "tourname": TOUR, "position": 1, "artistid": 2},
    {"showdate": "2024-12-31", "venue": "Madison Square Garden", "song": "Harpua",
     "gap": 300, "tourname": "2024 NYE Run", "position": 1, "artistid": 1},
    {"showdate": "2025-05-01", "venue": "Somewhere", "song": "Jam",
     "gap": 1, "tourname": "", "position": 1, "artistid": 1},
]

TRACKS = [
    {"title": "What's Going Through Your Mind", "duration": 2544000, "show_date": "2025-06-24",
     "venue_name": "Bethel Woods Center for the Arts", "tour_name": "Summer Tour 2025"},
    {"title": "Sand", "duration": 2383400, "show_date": "2025-07-18",
     "venue_name": "United Center", "tour_name": "Summer Tour 2025"},
    {"title": "Ghost", "duration": 1100000, "show_date": "2025-07-19",
     "venue_name": "United Center", "tour_name": "Summer Tour 2025"},
    {"title": "Banter", "duration": None, "show_date": "2025-07-19",
     "venue_name": "United Center", "tour_name": "Summer Tour 2025"},
    {"title": "Harpua", "duration": 900000, "show_date": "2024-12-31",
     "venue_name": "Madison Square Garden", "tour_name": "New Year's Run 2024"},
]


@pytest.fixture
def snapshot_dir(tmp_path):
    (tmp_path / "setlists.json").write_text(json.dumps({"data": SETLISTS}))
    (tmp_path / "tracks.json").write_text(json.dumps(TRACKS))
    return tmp_path


@pytest.fixture
def source(snapshot_dir):
    return SnapshotDataSource(snapshot_dir)


def test_resolve_tour_for_show(source):
    assert source.resolve_tour_for_show("2025-07-18").tour_name == TOUR
    assert source.resolve_tour_for_show(date(2024, 12, 31)).tour_name == "2024 NYE Run"


def test_resolve_tour_not_found(source):
    with pytest.raises(NotFound):
        source.resolve_tour_for_show("2025-01-01")
    with pytest.raises(NotFound):
        source.resolve_tour_for_show("2025-05-01")


def test_tour_shows_chronological_and_bounded(source):
    shows = source.fetch_tour_shows_with_gaps(TOUR, "2025-07-18")

    assert [s.show_date for s in shows] == [date(2025, 6, 24), date(2025, 7, 18)]
    assert [s.venue for s in shows] == ["Bethel Woods Center for the Arts", "United Center"]

    united = shows[1]
    assert {g.song_name for g in united.song_gaps} == {"On Your Way Down", "Tweezer"}
    ouwd = next(g for g in united.song_gaps if g.song_name == "On Your Way Down")
    assert ouwd.gap == 522
    assert ouwd.last_played == date(2011, 8, 6)


def test_unparsable_gap_is_kept_as_none(source):
    shows = source.fetch_tour_shows_with_gaps(TOUR, "2025-07-19")
    tweezer = next(g for g in shows[0].song_gaps if g.song_name == "Tweezer")
    assert tweezer.gap is None


def test_tour_shows_feed_the_reducer(source):
    rarest = select_rarest(source.fetch_tour_shows_with_gaps(TOUR, "2025-07-19"))
    assert [(s.song_name, s.gap) for s in rarest] == [
        ("On Your Way Down", 522), ("Paul and Silas", 323), ("Ghost", 9)
    ]


def test_track_durations_in_seconds_with_venue_runs(source):
    tracks = source.fetch_tour_track_durations(TOUR)

    assert len(tracks) == 4
    by_name = {t.song_name: t for t in tracks}
    assert by_name["What's Going Through Your Mind"].duration_seconds == 2544
    assert by_name["Sand"].duration_seconds == 2383
    assert by_name["Banter"].duration_seconds is None

    assert by_name["What's Going Through Your Mind"].venue_run is None
    run = by_name["Sand"].venue_run
    assert (run.night_number, run.total_nights, run.display_text) == (1, 2, "N1/2")
    assert by_name["Ghost"].venue_run.display_text == "N2/2"


def test_unknown_tour_has_no_tracks(source):
    assert source.fetch_tour_track_durations("1997 Fall Tour") == []


def test_tracks_join_setlists_on_show_date_not_tour_name(source):
    # setlists say "2025 Summer Tour", tracks say "Summer Tour 2025"
    assert {t.show_date for t in source.fetch_tour_track_durations(TOUR)} == {
        date(2025, 6, 24), date(2025, 7, 18), date(2025, 7, 19)
    }
    assert source.fetch_tour_track_durations("Summer Tour 2025") == []
    assert [t.song_name for t in source.fetch_tour_track_durations("2024 NYE Run")] == ["Harpua"]


def test_calculator_uses_real_durations_across_catalogs(source):
    statistics = TourStatisticsCalculator(source).calculate("2025-07-18")
    assert [t.song_name for t in statistics.longest_songs] == [
        "What's Going Through Your Mind", "Sand", "Ghost"
    ]


def test_show_setlist(source):
    setlist = source.fetch_show_setlist("2025-07-18")
    assert setlist.venue == "United Center"
    assert setlist.song_names == ("Tweezer", "On Your Way Down")


def test_show_setlist_not_found(source):
    with pytest.raises(NotFound):
        source.fetch_show_setlist("2025-07-20")


def test_missing_snapshot_is_transport_error(tmp_path):
    source = SnapshotDataSource(tmp_path)
    with pytest.raises(TransportError):
        source.fetch_tour_track_durations(TOUR)
    with pytest.raises(TransportError):
        source.resolve_tour_for_show("2025-07-18")


def test_corrupt_snapshot_is_transport_error(tmp_path):
    (tmp_path / "setlists.json").write_text("{not json")
    with pytest.raises(TransportError):
        SnapshotDataSource(tmp_path).fetch_show_setlist("2025-07-18")


def test_build_venue_runs():
    runs = build_venue_runs([
        (date(2025, 8, 29), "Dick's"),
        (date(2025, 8, 30), "Dick's"),
        (date(2025, 8, 31), "Dick's"),
        (date(2025, 9, 2), "Dick's"),
        (date(2025, 9, 3), "Hollywood Bowl"),
    ])
    assert [runs[date(2025, 8, d)].display_text for d in (29, 30, 31)] == ["N1/3", "N2/3", "N3/3"]
    assert date(2025, 9, 2) not in runs
    assert date(2025, 9, 3) not in runs


@pytest.mark.parametrize("value,expected", [
    ("12", 12), (7, 7), (None, None), ("", None), ("n/a", None), (True, None)
])
def test_safe_int(value, expected):
    assert safe_int(value) == expected
