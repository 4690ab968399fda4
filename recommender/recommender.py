"""Entry points that run profile -> pools -> scoring -> selection for one request."""

import logging
from datetime import datetime, timezone

import numpy as np

from recommender.collaborative import collaborative_boost_ids, find_similar_users
from recommender.constants import (
    DEFAULT_MODE,
    ONBOARDING_OVERFETCH,
    POOL_FETCH_TIMEOUT_SEC,
    POOL_SIZE_MULTIPLIER,
    PURE_RANDOM_MODE,
    RANDOM_PICK_POOL_SIZE,
    SPIN_LIMIT_TIERS,
    SWIPE_DEFAULT_LIMIT,
    SWIPE_MAX_LIMIT,
)
from recommender.errors import EmptyResult, InvalidInput
from recommender.pools import onboarding_pool, retrieve_pools
from recommender.profile import build_taste_profile, favorite_artists
from recommender.scoring import score_pools, validate_mode
from recommender.selection import pick_random, select_batch
from recommender.skips import aggregate_skips
from recommender.types import RandomPick, SwipeBatch

logger = logging.getLogger(__name__)


def spin_limit(review_count):
    """Daily random picks allowed for a review count (-1 = unlimited)."""
    for min_reviews, limit in SPIN_LIMIT_TIERS:
        if review_count >= min_reviews:
            return limit
    return 0


def validate_limit(limit, default=SWIPE_DEFAULT_LIMIT, max_limit=SWIPE_MAX_LIMIT):
    """Parse a batch limit; reject junk instead of guessing, cap at ``max_limit``."""
    if limit is None:
        return default
    if isinstance(limit, bool):
        raise InvalidInput("limit must be a positive integer")
    if isinstance(limit, str):
        text = limit.strip()
        if not text.lstrip("-").isdigit():
            raise InvalidInput("limit must be a positive integer")
        limit = int(text)
    if not isinstance(limit, (int, np.integer)):
        raise InvalidInput("limit must be a positive integer")
    if limit < 1:
        raise InvalidInput("limit must be at least 1")
    return min(int(limit), max_limit)


def _score_request(
    store,
    reviews,
    skip_events,
    pool_size,
    mode,
    rng,
    adventurousness=None,
    audio_preferences=None,
    community_reviews=None,
    user_id=None,
    exclude_ids=(),
    now=None,
    timeout=POOL_FETCH_TIMEOUT_SEC,
):
    now = now or datetime.now(timezone.utc)
    profile = build_taste_profile(reviews, adventurousness=adventurousness)
    skip_signals = aggregate_skips(skip_events, now=now)
    favorites = favorite_artists(reviews, profile)

    # Reviewed albums are never recommended again
    excluded = set(skip_signals.excluded_album_ids)
    excluded.update(r.album_id for r in reviews)
    excluded.update(exclude_ids or ())

    pools = retrieve_pools(store, profile, favorites, excluded, pool_size, rng, timeout=timeout)

    collaborative_ids = set()
    if community_reviews is not None and user_id is not None:
        similar = find_similar_users(user_id, profile.top_genres, community_reviews)
        candidate_ids = {album.id for albums in pools.pools.values() for album in albums}
        collaborative_ids = collaborative_boost_ids(similar, community_reviews, candidate_ids)

    scored = score_pools(
        pools,
        profile,
        genre_skip_counts=skip_signals.genre_skip_counts,
        mode=mode,
        audio_preferences=audio_preferences,
        artist_weights=favorites.weights,
        collaborative_ids=collaborative_ids,
        rng=rng,
        today=now.date(),
    )
    return profile, excluded, pools, scored


def recommend_random_album(
    store,
    reviews,
    skip_events=(),
    mode=DEFAULT_MODE,
    rng=None,
    adventurousness=None,
    audio_preferences=None,
    community_reviews=None,
    user_id=None,
    now=None,
    timeout=POOL_FETCH_TIMEOUT_SEC,
):
    """Pick one album for the "spin the wheel" flow.

    Raises InvalidInput for an unknown mode and EmptyResult when every pool
    comes back empty.
    """
    mode = validate_mode(mode)
    rng = rng if rng is not None else np.random.default_rng()

    profile, _, pools, scored = _score_request(
        store,
        reviews,
        skip_events,
        RANDOM_PICK_POOL_SIZE,
        mode,
        rng,
        adventurousness=adventurousness,
        audio_preferences=audio_preferences,
        community_reviews=community_reviews,
        user_id=user_id,
        now=now,
        timeout=timeout,
    )
    if not scored:
        raise EmptyResult("No albums left to recommend right now")

    pick = pick_random(scored, pure_random=(mode == PURE_RANDOM_MODE), rng=rng)
    logger.info(
        "Random pick mode=%s candidates=%s pick=%s pool=%s score=%.3f degraded=%s",
        mode,
        len(scored),
        pick.id,
        pick.pool.value,
        pick.score,
        [p.value for p in pools.degraded],
    )
    return RandomPick(
        pick=pick,
        profile=profile,
        mode=mode,
        degraded=list(pools.degraded),
        candidate_count=len(scored),
    )


def recommend_swipe_batch(
    store,
    reviews,
    skip_events=(),
    limit=SWIPE_DEFAULT_LIMIT,
    rng=None,
    adventurousness=None,
    audio_preferences=None,
    community_reviews=None,
    user_id=None,
    now=None,
    timeout=POOL_FETCH_TIMEOUT_SEC,
):
    """Interleaved batch for a quick-rate session; may be shorter than ``limit``."""
    limit = validate_limit(limit)
    rng = rng if rng is not None else np.random.default_rng()

    profile, excluded, pools, scored = _score_request(
        store,
        reviews,
        skip_events,
        limit * POOL_SIZE_MULTIPLIER,
        DEFAULT_MODE,
        rng,
        adventurousness=adventurousness,
        audio_preferences=audio_preferences,
        community_reviews=community_reviews,
        user_id=user_id,
        now=now,
        timeout=timeout,
    )
    items = select_batch(scored, limit, profile.adventurousness, excluded_ids=excluded, rng=rng)
    logger.info(
        "Swipe batch limit=%s candidates=%s returned=%s degraded=%s",
        limit,
        len(scored),
        len(items),
        [p.value for p in pools.degraded],
    )
    return SwipeBatch(items=items, profile=profile, degraded=list(pools.degraded))


def onboarding_batch(store, limit=SWIPE_DEFAULT_LIMIT, exclude_ids=(), rng=None):
    """Shuffled charted or well-reviewed albums; needs no history at all."""
    limit = validate_limit(limit)
    rng = rng if rng is not None else np.random.default_rng()

    albums = onboarding_pool(store, frozenset(exclude_ids or ()), limit * ONBOARDING_OVERFETCH, rng)
    seen = set()
    unique = []
    for album in albums:
        if album.dedupe_key in seen:
            continue
        seen.add(album.dedupe_key)
        unique.append(album)

    order = rng.permutation(len(unique))
    batch = [unique[i] for i in order][:limit]
    logger.info("Onboarding batch limit=%s returned=%s", limit, len(batch))
    return batch
