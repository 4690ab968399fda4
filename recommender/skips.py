"""Turn skip feedback into exclusions and per-genre penalty counts."""

from datetime import datetime, timedelta, timezone

from recommender.constants import PERMANENT_SKIP_REASONS, SKIP_RESURFACE_DAYS
from recommender.types import SkipSignals


def _as_utc(value):
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_skip_active(event, now=None, window_days=SKIP_RESURFACE_DAYS):
    """Whether a skip still hides its album from candidate pools."""
    if event.reason in PERMANENT_SKIP_REASONS:
        return True
    if event.created_at is None:
        # No timestamp to expire from; keep hiding it
        return True
    now = _as_utc(now or datetime.now(timezone.utc))
    return now - _as_utc(event.created_at) < timedelta(days=window_days)


def aggregate_skips(events, now=None, window_days=SKIP_RESURFACE_DAYS):
    """Build exclusions and genre skip counts from skip events.

    Genre counts include every event, expired or not.
    """
    now = now or datetime.now(timezone.utc)
    excluded = set()
    genre_counts = {}

    for event in events:
        if is_skip_active(event, now=now, window_days=window_days):
            excluded.add(event.album_id)
        for genre in event.genres or ():
            genre_counts[genre] = genre_counts.get(genre, 0) + 1

    return SkipSignals(excluded_album_ids=excluded, genre_skip_counts=genre_counts)
