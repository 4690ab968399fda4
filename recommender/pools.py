"""Candidate pool retrieval: one catalog query per retrieval intent."""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from functools import partial

import numpy as np

from recommender.catalog import PoolQuery
from recommender.constants import (
    DISCOVERY_AVOID_TOP_GENRES,
    ONBOARDING_MIN_RATING,
    ONBOARDING_MIN_REVIEWS,
    POOL_FETCH_TIMEOUT_SEC,
    POOL_FETCH_WORKERS,
    QUALITY_MIN_RATING,
    QUALITY_MIN_REVIEWS,
)
from recommender.types import CandidatePools, Pool

logger = logging.getLogger(__name__)

# Shared by every request so hung fetches can never grow the thread count
_EXECUTOR = ThreadPoolExecutor(max_workers=POOL_FETCH_WORKERS, thread_name_prefix="pool-fetch")


def random_page_offset(total, page_size, rng):
    """Draw a page start uniformly from [0, max(0, total - page_size)].

    Replaces a persistent cursor: each call lands on a different slice of the
    eligible rows, so repeated requests see different candidates.
    """
    upper = max(0, int(total) - int(page_size))
    if upper == 0:
        return 0
    return int(rng.integers(0, upper + 1))


def fetch_random_page(store, query, page_size, rng):
    total = store.count(query)
    if total <= 0 or page_size <= 0:
        return []
    offset = random_page_offset(total, page_size, rng)
    return store.fetch(query, offset=offset, limit=page_size)


def artist_pool(store, favorites, excluded_ids, size, rng=None):
    if not favorites.names:
        return []
    query = PoolQuery(
        artists=tuple(favorites.names),
        exclude_ids=frozenset(excluded_ids),
        order="reviews",
    )
    return store.fetch(query, offset=0, limit=size)


def genre_pool(store, profile, excluded_ids, size, rng):
    if not profile.top_genres:
        return []
    query = PoolQuery(
        genres_any=tuple(profile.top_genres),
        exclude_ids=frozenset(excluded_ids),
        order="reviews",
    )
    return fetch_random_page(store, query, size, rng)


def quality_pool(store, excluded_ids, size, rng=None):
    query = PoolQuery(
        charted_or_min_rating=QUALITY_MIN_RATING,
        min_reviews=QUALITY_MIN_REVIEWS,
        exclude_ids=frozenset(excluded_ids),
        order="quality",
    )
    return store.fetch(query, offset=0, limit=size)


def discovery_pool(store, profile, excluded_ids, size, rng):
    # Only avoid core genres once the user actually has that many
    avoid = None
    if len(profile.top_genres) >= DISCOVERY_AVOID_TOP_GENRES:
        avoid = tuple(profile.top_genres[:DISCOVERY_AVOID_TOP_GENRES])
    query = PoolQuery(
        genres_none=avoid,
        exclude_ids=frozenset(excluded_ids),
        order="natural",
    )
    return fetch_random_page(store, query, size, rng)


def onboarding_pool(store, excluded_ids, size, rng):
    """Charted or well-reviewed albums; needs no taste profile."""
    query = PoolQuery(
        charted_or_min_rating=ONBOARDING_MIN_RATING,
        min_reviews=ONBOARDING_MIN_REVIEWS,
        exclude_ids=frozenset(excluded_ids),
        order="reviews",
    )
    return fetch_random_page(store, query, size, rng)


def retrieve_pools(store, profile, favorites, excluded_ids, pool_size, rng, timeout=POOL_FETCH_TIMEOUT_SEC):
    """Fetch the four pools concurrently under one shared deadline.

    A pool that raises or misses the deadline comes back empty and is listed
    in ``CandidatePools.degraded``; the other pools are still used.
    """
    excluded = frozenset(excluded_ids or ())
    # Generators are not thread-safe, so each fetch gets its own child stream
    seeds = rng.integers(0, 2**32 - 1, size=4)
    fetchers = {
        Pool.ARTIST: partial(artist_pool, store, favorites, excluded, pool_size, np.random.default_rng(seeds[0])),
        Pool.GENRE: partial(genre_pool, store, profile, excluded, pool_size, np.random.default_rng(seeds[1])),
        Pool.QUALITY: partial(quality_pool, store, excluded, pool_size, np.random.default_rng(seeds[2])),
        Pool.DISCOVERY: partial(discovery_pool, store, profile, excluded, pool_size, np.random.default_rng(seeds[3])),
    }

    result = CandidatePools()
    futures = {pool: _EXECUTOR.submit(fn) for pool, fn in fetchers.items()}
    _, not_done = wait(list(futures.values()), timeout=timeout)

    for pool, future in futures.items():
        if future in not_done:
            # Only drops it if still queued; a running fetch keeps its worker
            future.cancel()
            logger.warning("Candidate pool %s timed out after %.2fs; continuing without it", pool.value, timeout)
            result.pools[pool] = []
            result.degraded.append(pool)
            continue
        try:
            albums = future.result()
        except Exception:
            logger.warning("Candidate pool %s failed; continuing without it", pool.value, exc_info=True)
            result.pools[pool] = []
            result.degraded.append(pool)
            continue
        # Never hand back an excluded album
        result.pools[pool] = [a for a in albums if a.id not in excluded]

    logger.debug(
        "Retrieved pools %s (degraded=%s)",
        {p.value: len(v) for p, v in result.pools.items()},
        [p.value for p in result.degraded],
    )
    return result
