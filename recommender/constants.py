"""Weight constants and thresholds that tune recommendation behavior."""

import os


def _env_float(name, default):
    """Read a float tunable from the environment, falling back to the default."""
    raw = os.environ.get(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        return float(raw)
    except (TypeError, ValueError):
        return default


def _env_int(name, default):
    """Read an int tunable from the environment, falling back to the default."""
    return int(_env_float(name, default))


# Taste profile
TOP_GENRES_LIMIT = 10
TOP_ARTISTS_LIMIT = 20
HIGH_AFFINITY_MIN_OBSERVATIONS = 2
HIGH_AFFINITY_MARGIN = 0.5 # Genre avg must beat the user's overall avg by this much
HIGH_AFFINITY_LIMIT = 5
ADVENTUROUSNESS_CORE_GENRES = 3
DEFAULT_ADVENTUROUSNESS = 0.5

# Favorite artists (two-tier merge)
FAVORITE_ARTIST_MIN_RATING = 7
FAVORITE_ARTIST_RECENT_WINDOW = 50
FAVORITE_ARTISTS_LIMIT = 25
RECENT_ARTIST_WEIGHT = 1.0
BACKFILL_ARTIST_WEIGHT = 0.5

# Skips
SKIP_RESURFACE_DAYS = 14
PERMANENT_SKIP_REASONS = ("not_interested", "already_know")

# Candidate pools
QUALITY_MIN_RATING = 7
QUALITY_MIN_REVIEWS = 3
ONBOARDING_MIN_RATING = 6
ONBOARDING_MIN_REVIEWS = 3
DISCOVERY_AVOID_TOP_GENRES = 3
POOL_SIZE_MULTIPLIER = 5 # Pool size = multiplier x desired output
RANDOM_PICK_POOL_SIZE = 60
POOL_FETCH_TIMEOUT_SEC = _env_float("POOL_FETCH_TIMEOUT_SEC", 2.0)
POOL_FETCH_WORKERS = _env_int("POOL_FETCH_WORKERS", 8)

# Scoring
BASE_SCORE = 0.5
QUALITY_POOL_BONUS = 0.3 # Scaled by chart rank
ARTIST_POOL_BONUS = 0.2 # Scaled by artist recency weight
CHART_RANK_SCALE = 200
UNKNOWN_GENRE_AFFINITY = 0.3
GENRE_AFFINITY_MAX = 0.3
HIGH_AFFINITY_BONUS = 0.1 # Per matching high-affinity genre
SKIP_PENALTY_MIN_COUNT = 5
SKIP_PENALTY_PER_SKIP = 0.02
SKIP_PENALTY_MAX = 0.3
AUDIO_AFFINITY_MAX = 0.2
AUDIO_EDGE_SCORE = 0.5 # Score at the edge of the preferred range
AUDIO_OUTSIDE_SCORE = 0.2
CHART_RANK_BONUS_MAX = 0.1
ACCLAIM_BONUS = 0.1 # rating >= QUALITY_MIN_RATING with enough reviews
COLLABORATIVE_BONUS = 0.1
FRESHNESS_BONUS_MAX = 0.05
FRESHNESS_FULL_DAYS = 365
FRESHNESS_DECAY_YEARS = 5
JITTER_MAX = 0.1

AUDIO_FEATURES = ("energy", "valence", "danceability", "acousticness", "tempo")

# Each mode is one row; factors multiply the matching score contribution.
MODE_WEIGHTS = {
    "smart": {
        "pool_bonus": 1.0,
        "genre": 1.0,
        "high_affinity": 1.0,
        "skip_penalty": 1.0,
        "audio": 1.0,
        "quality": 1.0,
        "collaborative": 1.0,
        "freshness": 1.0,
        "jitter": 1.0,
        "invert_genre": False,
    },
    "discovery": {
        "pool_bonus": 0.5,
        "genre": 1.0,
        "high_affinity": 0.0,
        "skip_penalty": 1.0,
        "audio": 0.5,
        "quality": 1.5,
        "collaborative": 1.5,
        "freshness": 1.0,
        "jitter": 1.0,
        "invert_genre": True,
    },
    "quality": {
        "pool_bonus": 1.0,
        "genre": 0.5,
        "high_affinity": 0.5,
        "skip_penalty": 1.0,
        "audio": 0.5,
        "quality": 2.5,
        "collaborative": 1.0,
        "freshness": 0.5,
        "jitter": 0.5,
        "invert_genre": False,
    },
    "pure-random": {
        "pool_bonus": 1.0,
        "genre": 1.0,
        "high_affinity": 1.0,
        "skip_penalty": 1.0,
        "audio": 1.0,
        "quality": 1.0,
        "collaborative": 1.0,
        "freshness": 1.0,
        "jitter": 1.0,
        "invert_genre": False,
    },
}
DEFAULT_MODE = "smart"
PURE_RANDOM_MODE = "pure-random"

# Selection
POOL_ORDER = ("artist", "genre", "discovery", "quality")
ARTIST_SHARE = 0.25
GENRE_SHARE_MAX = 0.50 # At adventurousness 0
GENRE_SHARE_SPAN = 0.15 # Shrinks toward 0.35 at adventurousness 1
QUALITY_SHARE = 0.15
DISCOVERY_SHARE_MIN = 0.15 # At adventurousness 0
DISCOVERY_SHARE_SPAN = 0.15 # Grows toward 0.30 at adventurousness 1
RANDOM_PICK_TOP_FRACTION = 0.2
RANDOM_PICK_MIN_TOP = 5
RANDOM_PICK_WEIGHT_OFFSET = 0.1
SWIPE_DEFAULT_LIMIT = 20
SWIPE_MAX_LIMIT = 50
ONBOARDING_OVERFETCH = 2

# Collaborative filtering (similar users)
SIMILAR_USER_MIN_RATING = _env_float("SIMILAR_USER_MIN_RATING", 6)
SIMILAR_USER_MIN_OVERLAP = _env_int("SIMILAR_USER_MIN_OVERLAP", 3)
SIMILAR_USER_LIMIT = _env_int("SIMILAR_USER_LIMIT", 20)
SIMILAR_USER_GENRES = 3
COLLABORATIVE_MIN_RATING = _env_float("COLLABORATIVE_MIN_RATING", 8)

# Compatibility
COMPAT_GENRE_WEIGHT = 0.4
COMPAT_ALIGNMENT_WEIGHT = 0.6
COMPAT_ARTIST_WEIGHT = 0.1 # Bonus on top of genre + alignment, score capped at 100
COMPAT_MIN_SHARED_ALBUMS = 3
COMPAT_MEAN_SPAN = 5.0 # Mean difference that drives alignment to zero
COMPAT_STD_SPAN = 3.0
COMPAT_MEAN_SHARE = 0.75
COMPAT_SHARED_ALBUM_MIN_RATING = 8
COMPAT_SHARED_ALBUMS_LIMIT = 10

COMPATIBILITY_THRESHOLDS = {
    "taste_twin_min_score": 80,
    "genre_buddy_min_overlap": 50,
    "genre_buddy_min_alignment": 40,
    "genre_buddy_max_alignment": 80,
    "complementary_max_overlap": 30,
    "complementary_min_reviews": 20,
    "explorer_min_gap": 0.3,
}

# Eligibility
MIN_REVIEWS_FOR_SPIN = 1
MIN_REVIEWS_FOR_COMPATIBILITY = 1

# Daily spins by review count, checked from the highest tier down (-1 = unlimited)
SPIN_LIMIT_TIERS = ((15, -1), (10, 50), (5, 20), (3, 12), (2, 8), (1, 5))
