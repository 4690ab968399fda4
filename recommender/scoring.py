"""Multi-factor candidate scoring driven by a per-mode weight table."""

from datetime import date

import numpy as np

from recommender.constants import (
    ACCLAIM_BONUS,
    ARTIST_POOL_BONUS,
    AUDIO_AFFINITY_MAX,
    AUDIO_EDGE_SCORE,
    AUDIO_FEATURES,
    AUDIO_OUTSIDE_SCORE,
    BACKFILL_ARTIST_WEIGHT,
    BASE_SCORE,
    CHART_RANK_BONUS_MAX,
    CHART_RANK_SCALE,
    COLLABORATIVE_BONUS,
    DEFAULT_MODE,
    FRESHNESS_BONUS_MAX,
    FRESHNESS_DECAY_YEARS,
    FRESHNESS_FULL_DAYS,
    GENRE_AFFINITY_MAX,
    HIGH_AFFINITY_BONUS,
    JITTER_MAX,
    MODE_WEIGHTS,
    QUALITY_MIN_RATING,
    QUALITY_MIN_REVIEWS,
    QUALITY_POOL_BONUS,
    SKIP_PENALTY_MAX,
    SKIP_PENALTY_MIN_COUNT,
    SKIP_PENALTY_PER_SKIP,
    UNKNOWN_GENRE_AFFINITY,
)
from recommender.errors import InvalidInput
from recommender.types import Pool, ScoredCandidate


def validate_mode(mode):
    """Return the normalized mode name or raise InvalidInput."""
    if mode is None:
        return DEFAULT_MODE
    if not isinstance(mode, str):
        raise InvalidInput(f"mode must be one of {', '.join(sorted(MODE_WEIGHTS))}")
    normalized = mode.strip().lower()
    if normalized not in MODE_WEIGHTS:
        raise InvalidInput(f"unknown mode '{mode}'; expected one of {', '.join(sorted(MODE_WEIGHTS))}")
    return normalized


def _clamp(value, low=0.0, high=1.0):
    return max(low, min(high, value))


def pool_bonus(album, pool, artist_weights=None):
    if pool == Pool.QUALITY and album.chart_rank is not None:
        rank = min(max(album.chart_rank, 0), CHART_RANK_SCALE)
        return QUALITY_POOL_BONUS * (1 - rank / CHART_RANK_SCALE)
    if pool == Pool.ARTIST:
        weights = {k.strip().lower(): v for k, v in (artist_weights or {}).items()}
        weight = weights.get((album.artist_name or "").strip().lower(), BACKFILL_ARTIST_WEIGHT)
        return ARTIST_POOL_BONUS * weight
    return 0.0


def genre_affinity(album, profile):
    """Mean relative weight of the album's genres in the user's history (0..1).

    Weights are scaled by the user's strongest genre so the favorite genre
    reads 1.0; genres the user never rated read UNKNOWN_GENRE_AFFINITY.
    """
    weights = profile.genre_weights
    if not album.genres:
        return UNKNOWN_GENRE_AFFINITY
    peak = max(weights.values()) if weights else 0.0
    values = []
    for genre in album.genres:
        if peak > 0 and genre in weights:
            values.append(weights[genre] / peak)
        else:
            values.append(UNKNOWN_GENRE_AFFINITY)
    return sum(values) / len(values)


def skip_penalty(album, genre_skip_counts):
    counts = [genre_skip_counts.get(g, 0) for g in album.genres]
    max_count = max(counts) if counts else 0
    if max_count < SKIP_PENALTY_MIN_COUNT:
        return 0.0
    return min(SKIP_PENALTY_MAX, max_count * SKIP_PENALTY_PER_SKIP)


def feature_fit(value, preference):
    """1.0 at the sweet spot, linear down to AUDIO_EDGE_SCORE at the range edge."""
    low, high = min(preference.min, preference.max), max(preference.min, preference.max)
    if value < low or value > high:
        return AUDIO_OUTSIDE_SCORE
    sweet = _clamp(preference.sweet_spot, low, high)
    span = (high - sweet) if value >= sweet else (sweet - low)
    if span <= 0:
        return 1.0
    return 1.0 - (1.0 - AUDIO_EDGE_SCORE) * (abs(value - sweet) / span)


def audio_affinity(audio_profile, preferences):
    """Weighted average feature fit, or None when there is nothing to compare."""
    if audio_profile is None or not preferences:
        return None
    total = 0.0
    weight_sum = 0.0
    for feature in AUDIO_FEATURES:
        preference = preferences.get(feature)
        if preference is None or preference.weight <= 0:
            continue
        total += feature_fit(getattr(audio_profile, feature), preference) * preference.weight
        weight_sum += preference.weight
    if weight_sum <= 0:
        return None
    return total / weight_sum


def quality_bonus(album):
    bonus = 0.0
    if album.chart_rank is not None:
        rank = min(max(album.chart_rank, 1), CHART_RANK_SCALE)
        bonus += CHART_RANK_BONUS_MAX * (1 - (rank - 1) / CHART_RANK_SCALE)
    rating = album.community_average_rating
    if rating is not None and rating >= QUALITY_MIN_RATING and album.total_reviews >= QUALITY_MIN_REVIEWS:
        bonus += ACCLAIM_BONUS
    return bonus


def freshness(album, today=None):
    if album.release_date is None:
        return 0.0
    today = today or date.today()
    age_days = (today - album.release_date).days
    if age_days <= FRESHNESS_FULL_DAYS:
        return 1.0
    years_old = age_days / 365.25
    return max(0.0, 1 - years_old / FRESHNESS_DECAY_YEARS)


def score_candidate(
    album,
    pool,
    profile,
    genre_skip_counts=None,
    mode=DEFAULT_MODE,
    audio_preferences=None,
    artist_weights=None,
    collaborative_ids=None,
    rng=None,
    today=None,
):
    """Score one candidate; the result is always within [0, 1]."""
    weights = MODE_WEIGHTS[validate_mode(mode)]
    rng = rng if rng is not None else np.random.default_rng()
    pool = Pool(pool)

    affinity = genre_affinity(album, profile)
    if weights["invert_genre"]:
        # Unfamiliar genres score higher
        affinity = 1.0 - affinity
    high_matches = len(album.genres.intersection(profile.high_affinity_genres))
    audio = audio_affinity(album.audio_profile, audio_preferences)

    breakdown = {
        "base": BASE_SCORE,
        "pool_bonus": pool_bonus(album, pool, artist_weights) * weights["pool_bonus"],
        "genre": GENRE_AFFINITY_MAX * affinity * weights["genre"],
        "high_affinity": HIGH_AFFINITY_BONUS * high_matches * weights["high_affinity"],
        "skip_penalty": -skip_penalty(album, genre_skip_counts or {}) * weights["skip_penalty"],
        "audio": (AUDIO_AFFINITY_MAX * audio * weights["audio"]) if audio is not None else 0.0,
        "quality": quality_bonus(album) * weights["quality"],
        "collaborative": (COLLABORATIVE_BONUS * weights["collaborative"]) if album.id in (collaborative_ids or ()) else 0.0,
        "freshness": FRESHNESS_BONUS_MAX * freshness(album, today) * weights["freshness"],
        "jitter": float(rng.uniform(0.0, JITTER_MAX)) * min(1.0, weights["jitter"]),
    }

    score = _clamp(sum(breakdown.values()))
    return ScoredCandidate(
        album=album,
        score=score,
        pool=pool,
        breakdown={k: round(v, 4) for k, v in breakdown.items()},
    )


def score_pools(candidate_pools, profile, genre_skip_counts=None, mode=DEFAULT_MODE, audio_preferences=None, artist_weights=None, collaborative_ids=None, rng=None, today=None):
    """Score every pooled album; an album found by several pools keeps its best score."""
    rng = rng if rng is not None else np.random.default_rng()
    best = {}
    for pool in Pool:
        for album in candidate_pools.get(pool):
            scored = score_candidate(
                album,
                pool,
                profile,
                genre_skip_counts=genre_skip_counts,
                mode=mode,
                audio_preferences=audio_preferences,
                artist_weights=artist_weights,
                collaborative_ids=collaborative_ids,
                rng=rng,
                today=today,
            )
            current = best.get(album.id)
            if current is None or scored.score > current.score:
                best[album.id] = scored
    return list(best.values())
