from datetime import datetime, timedelta

import pytest

from recommender.profile import build_taste_profile, compute_adventurousness, favorite_artists
from recommender.types import Review


def _review(album_id, rating, genres=(), artist="", days_ago=None):
    created_at = None
    if days_ago is not None:
        created_at = datetime(2024, 6, 1) - timedelta(days=days_ago)
    return Review(album_id=album_id, rating=rating, genres=tuple(genres), artist_name=artist, created_at=created_at)


def test_jazz_rock_history():
    reviews = [
        _review("a1", 9, ["jazz"]),
        _review("a2", 8, ["jazz"]),
        _review("a3", 4, ["rock"]),
    ]
    profile = build_taste_profile(reviews)

    assert profile.top_genres == ["jazz", "rock"]
    assert profile.high_affinity_genres == ["jazz"]
    assert profile.average_rating == pytest.approx(7.0)
    assert profile.rating_variance == pytest.approx(((2**2) + (1**2) + (3**2)) / 3)
    assert profile.review_count == 3


def test_genre_weights_sum_to_one():
    reviews = [
        _review("a1", 7, ["jazz", "bebop"]),
        _review("a2", 6, ["rock"]),
        _review("a3", 5, ["rock", "indie", "lo-fi"]),
    ]
    profile = build_taste_profile(reviews)
    assert sum(profile.genre_weights.values()) == pytest.approx(1.0)
    assert profile.genre_weights["rock"] == pytest.approx(2 / 6)
    assert all(w >= 0 for w in profile.genre_weights.values())


def test_high_affinity_requires_two_observations():
    reviews = [
        _review("a1", 10, ["ambient"]),
        _review("a2", 3, ["metal"]),
        _review("a3", 3, ["metal"]),
    ]
    profile = build_taste_profile(reviews)
    # ambient's single 10 beats the average but is only one observation
    assert "ambient" not in profile.high_affinity_genres
    assert profile.high_affinity_genres == []


def test_top_genre_ties_keep_first_appearance():
    reviews = [
        _review("a1", 5, ["soul"]),
        _review("a2", 5, ["funk"]),
        _review("a3", 5, ["funk", "soul", "disco"]),
    ]
    profile = build_taste_profile(reviews)
    assert profile.top_genres == ["soul", "funk", "disco"]


def test_no_genres_uses_default_adventurousness():
    reviews = [_review("a1", 8), _review("a2", 6)]
    profile = build_taste_profile(reviews)
    assert profile.genre_weights == {}
    assert profile.top_genres == []
    assert profile.high_affinity_genres == []
    assert profile.adventurousness == 0.5
    assert profile.average_rating == pytest.approx(7.0)


def test_empty_history_gives_zero_profile():
    profile = build_taste_profile([])
    assert profile.review_count == 0
    assert profile.average_rating == 0.0
    assert profile.top_genres == []


def test_single_review_is_a_valid_profile():
    profile = build_taste_profile([_review("a1", 7, ["pop"], artist="Robyn")])
    assert profile.top_genres == ["pop"]
    assert profile.genre_weights == {"pop": 1.0}
    assert profile.top_artists == ["Robyn"]


def test_rebuilding_is_deterministic():
    reviews = [_review(f"a{i}", 3 + i % 7, ["jazz" if i % 2 else "rock", "live"], artist=f"Artist {i % 3}") for i in range(12)]
    assert build_taste_profile(reviews) == build_taste_profile(reviews)


def test_stored_adventurousness_overrides_and_is_clamped():
    reviews = [_review("a1", 8, ["jazz"])]
    assert build_taste_profile(reviews, adventurousness=0.8).adventurousness == 0.8
    assert build_taste_profile(reviews, adventurousness=3).adventurousness == 1.0


def test_adventurousness_counts_reviews_outside_core_genres():
    reviews = [
        _review("a1", 8, ["jazz"]),
        _review("a2", 8, ["jazz"]),
        _review("a3", 8, ["rock"]),
        _review("a4", 8, ["rock"]),
        _review("a5", 8, ["pop"]),
        _review("a6", 8, ["folk"]),
    ]
    # Core genres are jazz, rock, pop; only the folk review falls outside
    assert compute_adventurousness(reviews, ["jazz", "rock", "pop", "folk"]) == pytest.approx(1 / 6)


def test_top_artists_tie_break_on_average_rating():
    reviews = [
        _review("a1", 5, artist="Low"),
        _review("a2", 9, artist="High"),
    ]
    profile = build_taste_profile(reviews)
    assert profile.top_artists == ["High", "Low"]


def test_favorite_artists_recent_tier_first():
    reviews = [
        _review("a1", 9, artist="Old Favorite", days_ago=300),
        _review("a2", 9, artist="Old Favorite", days_ago=290),
        _review("a3", 8, artist="New Crush", days_ago=1),
        _review("a4", 3, artist="Disliked", days_ago=0),
    ]
    profile = build_taste_profile(reviews)
    favorites = favorite_artists(reviews, profile)

    assert favorites.names[:2] == ["New Crush", "Old Favorite"]
    assert favorites.weights["New Crush"] == 1.0
    # Disliked only arrives through the all-time backfill
    assert favorites.names[-1] == "Disliked"
    assert favorites.weights["Disliked"] == 0.5


def test_favorite_artists_truncation_drops_backfill_first():
    reviews = [_review(f"r{i}", 9, artist=f"Recent {i}", days_ago=i) for i in range(3)]
    reviews += [_review(f"b{i}", 2, artist=f"Backfill {i}", days_ago=100 + i) for i in range(3)]
    profile = build_taste_profile(reviews)
    favorites = favorite_artists(reviews, profile, limit=4)

    assert favorites.names[:3] == ["Recent 0", "Recent 1", "Recent 2"]
    assert len(favorites.names) == 4
    assert favorites.names[3].startswith("Backfill")
