"""Service layer for skip feedback: validation plus reads and writes."""

from app.repos import albums as albums_repo
from app.repos import skips as skips_repo
from recommender.errors import InvalidInput, RecommenderError
from recommender.skips import is_skip_active
from recommender.types import SkipEvent, SkipReason
from utils.parsing import parse_timestamp

VALID_REASONS = {reason.value for reason in SkipReason}


def _normalize(username):
    return (username or "").strip().lower()


def _validate_reason(reason):
    if reason is None:
        return None
    if not isinstance(reason, str) or reason.strip().lower() not in VALID_REASONS:
        raise InvalidInput(f"reason must be one of {', '.join(sorted(VALID_REASONS))} or null")
    return reason.strip().lower()


def _payload(row):
    event = SkipEvent(
        album_id=row["album_id"],
        reason=row["reason"],
        created_at=parse_timestamp(row["created_at"]),
    )
    return {
        "album_id": event.album_id,
        "reason": event.reason,
        "created_at": row["created_at"],
        "active": is_skip_active(event),
    }


def record_skip(user_id, album_id, reason=None):
    """Record (or refresh) a skip and return it."""
    user_id = _normalize(user_id)
    reason = _validate_reason(reason)
    if not album_id:
        raise InvalidInput("album_id is required")
    if albums_repo.get_by_id(album_id) is None:
        raise RecommenderError("album not found", code="not_found", status=404)
    skips_repo.upsert(user_id, album_id, reason)
    return _payload(skips_repo.get(user_id, album_id))


def update_skip(user_id, album_id, reason):
    """Change the reason of an existing skip; its timestamp is kept."""
    user_id = _normalize(user_id)
    reason = _validate_reason(reason)
    if not skips_repo.update_reason(user_id, album_id, reason):
        raise RecommenderError("skip not found", code="not_found", status=404)
    return _payload(skips_repo.get(user_id, album_id))


def get_skip(user_id, album_id):
    row = skips_repo.get(_normalize(user_id), album_id)
    if row is None:
        raise RecommenderError("skip not found", code="not_found", status=404)
    return _payload(row)
