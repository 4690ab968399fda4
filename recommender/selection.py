"""Slot allocation, interleaving and weighted random picks over scored candidates."""

import logging
import math

import numpy as np

from recommender.constants import (
    ARTIST_SHARE,
    DISCOVERY_SHARE_MIN,
    DISCOVERY_SHARE_SPAN,
    GENRE_SHARE_MAX,
    GENRE_SHARE_SPAN,
    POOL_ORDER,
    QUALITY_SHARE,
    RANDOM_PICK_MIN_TOP,
    RANDOM_PICK_TOP_FRACTION,
    RANDOM_PICK_WEIGHT_OFFSET,
)
from recommender.errors import EmptyResult
from recommender.types import Pool

logger = logging.getLogger(__name__)


def allocate_slots(limit, adventurousness):
    """Slots per pool for ``limit`` outputs; discovery grows with adventurousness."""
    a = max(0.0, min(1.0, float(adventurousness)))

    def slots(share):
        # Round first so float noise like 3.0000000000000004 does not add a slot
        return math.ceil(round(share * limit, 9))

    return {
        Pool.ARTIST: slots(ARTIST_SHARE),
        Pool.GENRE: slots(GENRE_SHARE_MAX - GENRE_SHARE_SPAN * a),
        Pool.QUALITY: slots(QUALITY_SHARE),
        Pool.DISCOVERY: slots(DISCOVERY_SHARE_MIN + DISCOVERY_SHARE_SPAN * a),
    }


def _by_score(candidates):
    # Ties fall back to id so the order is reproducible
    return sorted(candidates, key=lambda c: (-c.score, c.id))


def dedupe(candidates, excluded_ids=None):
    """Drop repeats by id and by normalized title|artist, keeping the first seen."""
    excluded_ids = excluded_ids or set()
    seen_ids = set()
    seen_keys = set()
    unique = []
    for candidate in candidates:
        key = candidate.album.dedupe_key
        if candidate.id in excluded_ids or candidate.id in seen_ids or key in seen_keys:
            continue
        seen_ids.add(candidate.id)
        seen_keys.add(key)
        unique.append(candidate)
    return unique


def _interleave(queues):
    """Round-robin across pool queues until all are drained."""
    out = []
    queues = [list(q) for q in queues]
    while any(queues):
        for queue in queues:
            if queue:
                out.append(queue.pop(0))
    return out


def select_batch(scored, limit, adventurousness, excluded_ids=None, pure_random=False, rng=None):
    """Pick up to ``limit`` albums, alternating pools and never repeating an album."""
    if limit <= 0:
        return []
    rng = rng if rng is not None else np.random.default_rng()
    excluded_ids = set(excluded_ids or ())
    eligible = [c for c in scored if c.id not in excluded_ids]
    if not eligible:
        return []

    allocation = allocate_slots(limit, adventurousness)
    logger.debug("Slot allocation for limit=%s: %s", limit, {p.value: n for p, n in allocation.items()})

    queues = []
    for name in POOL_ORDER:
        pool = Pool(name)
        members = [c for c in eligible if c.pool == pool]
        if pure_random:
            # Scores are ignored entirely
            order = rng.permutation(len(members))
            members = [members[i] for i in order]
        else:
            members = _by_score(members)
        queues.append(members[: allocation[pool]])

    chosen = dedupe(_interleave(queues), excluded_ids)[:limit]

    if len(chosen) < limit:
        # Pool underflow: top up from everything else, best first
        if pure_random:
            order = rng.permutation(len(eligible))
            remainder = [eligible[i] for i in order]
        else:
            remainder = _by_score(eligible)
        chosen = dedupe(chosen + remainder, excluded_ids)[:limit]

    return chosen


def pick_random(scored, pure_random=False, rng=None):
    """Draw one album for the random-pick flow.

    Weighted by ``score + RANDOM_PICK_WEIGHT_OFFSET`` among the top slice of the
    score-sorted list; ``pure_random`` draws uniformly from everything.
    """
    rng = rng if rng is not None else np.random.default_rng()
    ranked = dedupe(_by_score(scored))
    if not ranked:
        raise EmptyResult("Nothing to recommend right now")

    if pure_random:
        return ranked[int(rng.integers(0, len(ranked)))]

    top_count = max(RANDOM_PICK_MIN_TOP, math.ceil(len(ranked) * RANDOM_PICK_TOP_FRACTION))
    top = ranked[:top_count]
    weights = np.array([c.score + RANDOM_PICK_WEIGHT_OFFSET for c in top], dtype=float)
    probabilities = weights / weights.sum()
    return top[int(rng.choice(len(top), p=probabilities))]
