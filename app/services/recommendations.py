import logging

import numpy as np

from app.repos import reviews as reviews_repo
from app.repos import skips as skips_repo
from app.repos import users as users_repo
from app.services.catalog import get_catalog
from recommender.compatibility import compute_compatibility
from recommender.constants import (
    AUDIO_FEATURES,
    COLLABORATIVE_MIN_RATING,
    MIN_REVIEWS_FOR_COMPATIBILITY,
    MIN_REVIEWS_FOR_SPIN,
    SIMILAR_USER_MIN_RATING,
    SWIPE_DEFAULT_LIMIT,
)
from recommender.errors import InvalidInput, PreconditionUnmet
from recommender.profile import build_taste_profile
from recommender.recommender import (
    onboarding_batch,
    recommend_random_album,
    recommend_swipe_batch,
    spin_limit,
    validate_limit,
)
from recommender.scoring import validate_mode
from recommender.skips import aggregate_skips
from recommender.types import FeatureRange, Pool, Review, SkipEvent
from utils.parsing import parse_list, parse_timestamp

logger = logging.getLogger(__name__)


def _normalize(username):
    return (username or "").strip().lower()


def _load_reviews(user_id):
    reviews = []
    for row in reviews_repo.list_with_albums(user_id):
        if row["rating"] is None:
            continue
        reviews.append(
            Review(
                album_id=row["album_id"],
                rating=float(row["rating"]),
                genres=tuple(parse_list(row["genres"])),
                artist_name=row["artist_name"] or "",
                created_at=parse_timestamp(row["created_at"]),
            )
        )
    return reviews


def _load_skip_events(user_id):
    return [
        SkipEvent(
            album_id=row["album_id"],
            reason=row["reason"],
            created_at=parse_timestamp(row["created_at"]),
            genres=tuple(parse_list(row["genres"])),
        )
        for row in skips_repo.list_with_genres(user_id)
    ]


def _stored_adventurousness(user_id):
    user = users_repo.get_by_username(user_id)
    if not user or user["adventurousness"] is None:
        return None
    return float(user["adventurousness"])


def _audio_preferences(user_id):
    prefs = {}
    for row in users_repo.list_audio_prefs(user_id):
        if row["feature"] not in AUDIO_FEATURES:
            continue
        prefs[row["feature"]] = FeatureRange(
            min=float(row["min_value"]),
            max=float(row["max_value"]),
            sweet_spot=float(row["sweet_spot"]),
            weight=float(row["weight"] if row["weight"] is not None else 1.0),
        )
    return prefs


def _community_reviews():
    df = reviews_repo.community_frame(min(SIMILAR_USER_MIN_RATING, COLLABORATIVE_MIN_RATING))
    df["genres"] = df["genres"].apply(parse_list)
    return df


def _explain_pick(candidate, profile, mode):
    """One short line telling the user why this album came up."""
    album = candidate.album
    breakdown = candidate.breakdown
    rating = album.community_average_rating

    if mode == "pure-random":
        return "Pure chance"
    if mode == "discovery":
        if breakdown.get("quality", 0) > 0:
            return "Critically acclaimed discovery"
        if breakdown.get("collaborative", 0) > 0:
            return "Hidden gem from similar listeners"
        return "Outside your comfort zone"
    if mode == "quality":
        if rating is not None and rating >= 8.5:
            return "Essential listening"
        if rating is not None and rating >= 7.5:
            return "Highly acclaimed"
        return "Quality pick"

    if candidate.pool == Pool.ARTIST and album.artist_name in profile.top_artists:
        return f"Because you loved {album.artist_name}"
    loved = sorted(album.genres.intersection(profile.high_affinity_genres))
    if loved:
        return f"You rate {loved[0]} highly"
    if candidate.pool == Pool.DISCOVERY:
        return "Something new for you"

    factors = [
        (breakdown.get("genre", 0), "Matches your taste"),
        (breakdown.get("quality", 0), "Highly rated"),
        (breakdown.get("collaborative", 0), "Similar listeners loved this"),
        (breakdown.get("freshness", 0), "Fresh release"),
    ]
    value, reason = max(factors, key=lambda f: f[0])
    if value > 0:
        return reason
    return "Picked for you"


def _scored_item(candidate):
    item = candidate.album.to_dict()
    item["pool"] = candidate.pool.value
    item["score"] = int(round(candidate.score * 100))
    return item


def get_random_album(db_path, user_id, mode="smart", seed=None):
    """Spin the wheel: one album plus why it was picked and a stats echo."""
    user_id = _normalize(user_id)
    mode = validate_mode(mode)

    reviews = _load_reviews(user_id)
    if len(reviews) < MIN_REVIEWS_FOR_SPIN:
        raise PreconditionUnmet(f"Review at least {MIN_REVIEWS_FOR_SPIN} album(s) to spin the wheel")

    result = recommend_random_album(
        get_catalog(db_path),
        reviews,
        _load_skip_events(user_id),
        mode=mode,
        rng=np.random.default_rng(seed),
        adventurousness=_stored_adventurousness(user_id),
        audio_preferences=_audio_preferences(user_id),
        community_reviews=_community_reviews(),
        user_id=user_id,
    )
    pick = result.pick
    profile = result.profile
    return {
        "album": pick.album.to_dict(),
        "recommendation": {
            "reason": _explain_pick(pick, profile, result.mode),
            "score": int(round(pick.score * 100)),
            "breakdown": pick.breakdown,
            "mode": result.mode,
            "pool": pick.pool.value,
        },
        "user_stats": {
            "review_count": profile.review_count,
            "top_genres": profile.top_genres[:3],
            "average_rating": round(profile.average_rating, 2),
            "spin_limit": spin_limit(profile.review_count),
        },
        "degraded_pools": [p.value for p in result.degraded],
    }


def get_swipe_batch(db_path, user_id, limit=SWIPE_DEFAULT_LIMIT, onboarding=False, seed=None):
    """Batch for a quick-rate session; ``onboarding`` skips personalization."""
    user_id = _normalize(user_id)
    limit = validate_limit(limit)
    rng = np.random.default_rng(seed)
    catalog = get_catalog(db_path)
    reviews = _load_reviews(user_id)
    skip_events = _load_skip_events(user_id)

    if onboarding:
        excluded = aggregate_skips(skip_events).excluded_album_ids
        excluded.update(r.album_id for r in reviews)
        albums = onboarding_batch(catalog, limit, exclude_ids=excluded, rng=rng)
        items = [album.to_dict() for album in albums]
        return {"items": items, "onboarding": True, "count": len(items), "degraded_pools": []}

    batch = recommend_swipe_batch(
        catalog,
        reviews,
        skip_events,
        limit=limit,
        rng=rng,
        adventurousness=_stored_adventurousness(user_id),
        audio_preferences=_audio_preferences(user_id),
        community_reviews=_community_reviews(),
        user_id=user_id,
    )
    items = [_scored_item(c) for c in batch.items]
    return {
        "items": items,
        "onboarding": False,
        "count": len(items),
        "degraded_pools": [p.value for p in batch.degraded],
    }


def _profile_for(user_id, min_reviews):
    reviews = _load_reviews(user_id)
    if len(reviews) < min_reviews:
        return None
    return build_taste_profile(reviews, adventurousness=_stored_adventurousness(user_id))


def get_compatibility(db_path, user_a, user_b):
    """Taste match between two users, from ``user_a``'s point of view."""
    user_a = _normalize(user_a)
    user_b = _normalize(user_b)
    if not user_b:
        raise InvalidInput("other user id is required")
    if user_a == user_b:
        raise InvalidInput("cannot compare a user with themselves")

    profile_a = _profile_for(user_a, MIN_REVIEWS_FOR_COMPATIBILITY)
    profile_b = _profile_for(user_b, MIN_REVIEWS_FOR_COMPATIBILITY)
    if profile_a is None or profile_b is None:
        raise PreconditionUnmet(
            f"Both users need at least {MIN_REVIEWS_FOR_COMPATIBILITY} review(s) to compare taste"
        )
    result = compute_compatibility(profile_a, profile_b, user_a=user_a, user_b=user_b)
    logger.info("Compatibility %s -> %s: %s (%s)", user_a, user_b, result.overall_score, result.match_type.value)
    return result.to_dict()


def get_taste_profile(db_path, user_id):
    """Snapshot of the user's derived taste profile."""
    user_id = _normalize(user_id)
    reviews = _load_reviews(user_id)
    profile = build_taste_profile(reviews, adventurousness=_stored_adventurousness(user_id))
    snapshot = profile.to_dict()
    snapshot["spin_limit"] = spin_limit(profile.review_count)
    return snapshot
