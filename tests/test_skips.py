from datetime import datetime, timedelta, timezone

from recommender.skips import aggregate_skips, is_skip_active
from recommender.types import SkipEvent

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _skip(album_id, reason, days_ago, genres=()):
    return SkipEvent(album_id=album_id, reason=reason, created_at=NOW - timedelta(days=days_ago), genres=tuple(genres))


def test_expired_temporary_skip_resurfaces():
    events = [
        _skip("A", "not_interested", 1),
        _skip("B", "not_now", 20),
    ]
    signals = aggregate_skips(events, now=NOW)
    assert signals.excluded_album_ids == {"A"}


def test_permanent_reasons_never_expire():
    events = [_skip("A", "not_interested", 400), _skip("B", "already_know", 400)]
    assert aggregate_skips(events, now=NOW).excluded_album_ids == {"A", "B"}


def test_temporary_skip_inside_window():
    assert is_skip_active(_skip("C", "not_now", 13), now=NOW)
    assert is_skip_active(_skip("D", None, 2), now=NOW)
    assert not is_skip_active(_skip("E", None, 14), now=NOW)


def test_naive_timestamps_are_treated_as_utc():
    event = SkipEvent(album_id="A", reason="not_now", created_at=datetime(2024, 5, 30, 12, 0))
    assert is_skip_active(event, now=NOW)


def test_genre_counts_include_expired_events():
    events = [
        _skip("A", "not_now", 30, ["metal"]),
        _skip("B", "not_now", 1, ["metal", "punk"]),
        _skip("C", "not_interested", 90, ["punk"]),
    ]
    signals = aggregate_skips(events, now=NOW)
    assert signals.genre_skip_counts == {"metal": 2, "punk": 2}
    assert signals.excluded_album_ids == {"B", "C"}


def test_no_events():
    signals = aggregate_skips([], now=NOW)
    assert signals.excluded_album_ids == set()
    assert signals.genre_skip_counts == {}
