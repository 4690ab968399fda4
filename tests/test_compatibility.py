import pytest

from recommender.compatibility import compute_compatibility, genre_overlap, rating_alignment
from recommender.errors import PreconditionUnmet
from recommender.profile import build_taste_profile
from recommender.types import MatchType, Review, TasteProfile

GENRES = ["jazz", "soul", "funk", "blues", "gospel"]


def _history(offset=0.0):
    reviews = []
    ratings = [9, 8, 7, 6, 5, 9, 8, 7, 6, 5]
    for i, rating in enumerate(ratings):
        reviews.append(
            Review(
                album_id=f"alb{i}",
                rating=max(1.0, rating - offset),
                genres=(GENRES[i % 5],),
                artist_name=f"Artist {i % 4}",
            )
        )
    return reviews


def _profile(top_genres, average=7.0, variance=1.0, reviews=10, adventurousness=0.5, artists=(), ratings=None):
    return TasteProfile(
        genre_weights={g: 1 / len(top_genres) for g in top_genres},
        top_genres=list(top_genres),
        average_rating=average,
        rating_variance=variance,
        adventurousness=adventurousness,
        top_artists=list(artists),
        review_count=reviews,
        album_ratings=dict(ratings or {}),
    )


def test_identical_taste_is_a_taste_twin():
    profile_a = build_taste_profile(_history())
    profile_b = build_taste_profile(_history(offset=1.0))
    result = compute_compatibility(profile_a, profile_b, user_a="ana", user_b="ben")

    assert result.match_type == MatchType.TASTE_TWIN
    assert result.overall_score >= 80
    assert result.genre_overlap_pct == 100
    assert result.rating_alignment_pct == 100
    assert result.shared_genres == profile_a.top_genres
    assert result.shared_albums == ["alb0", "alb5"]


def test_correlated_ratings_without_shared_artists_are_taste_twins():
    ratings_b = [9, 7, 7, 6, 4, 8, 8, 6, 6, 5]
    history_b = [
        Review(album_id=r.album_id, rating=ratings_b[i], genres=r.genres, artist_name=f"B{i}")
        for i, r in enumerate(_history())
    ]
    history_a = [
        Review(album_id=r.album_id, rating=r.rating, genres=r.genres, artist_name=f"A{i}")
        for i, r in enumerate(_history())
    ]
    result = compute_compatibility(build_taste_profile(history_a), build_taste_profile(history_b))

    assert result.genre_overlap_pct == 100
    assert result.artist_overlap_pct == 0
    assert result.rating_alignment_pct >= 90
    assert result.overall_score >= 80
    assert result.match_type == MatchType.TASTE_TWIN


def test_artist_overlap_is_a_capped_bonus():
    profile_a = _profile(GENRES, artists=["A", "B"])
    profile_b = _profile(GENRES, artists=["A", "B"])
    assert compute_compatibility(profile_a, profile_b).overall_score == 100


def test_same_genres_with_looser_ratings_are_genre_buddies():
    profile_a = _profile(GENRES, average=7.0)
    profile_b = _profile(GENRES, average=4.0)
    result = compute_compatibility(profile_a, profile_b)

    assert result.rating_alignment_pct == 55
    assert result.overall_score == 73
    assert result.match_type == MatchType.GENRE_BUDDY


def test_disjoint_experienced_users_are_complementary():
    profile_a = _profile(["jazz", "soul"], reviews=40)
    profile_b = _profile(["metal", "punk"], reviews=25)
    result = compute_compatibility(profile_a, profile_b)

    assert result.genre_overlap_pct == 0
    assert result.shared_genres == []
    assert result.match_type == MatchType.COMPLEMENTARY


def test_adventurousness_gap_makes_an_explorer_guide():
    profile_a = _profile(["jazz", "soul", "funk"], reviews=5, adventurousness=0.9)
    profile_b = _profile(["jazz", "metal", "punk"], reviews=5, adventurousness=0.2)
    result = compute_compatibility(profile_a, profile_b)
    assert result.match_type == MatchType.EXPLORER_GUIDE


def test_fallback_is_genre_buddy():
    profile_a = _profile(["jazz", "soul", "funk"], reviews=5, adventurousness=0.5)
    profile_b = _profile(["jazz", "metal", "punk"], reviews=5, adventurousness=0.6)
    result = compute_compatibility(profile_a, profile_b)
    assert result.match_type == MatchType.GENRE_BUDDY


def test_missing_profile_is_not_eligible():
    with pytest.raises(PreconditionUnmet):
        compute_compatibility(_profile(["jazz"]), None)


def test_thresholds_can_be_overridden():
    profile_a = build_taste_profile(_history())
    profile_b = build_taste_profile(_history(offset=1.0))
    result = compute_compatibility(profile_a, profile_b, thresholds={"taste_twin_min_score": 101})
    assert result.match_type == MatchType.GENRE_BUDDY


def test_score_grows_with_genre_overlap():
    base = _profile(["a", "b", "c", "d"])
    scores = [
        compute_compatibility(base, _profile(other)).overall_score
        for other in (["w", "x", "y", "z"], ["a", "x", "y", "z"], ["a", "b", "y", "z"], ["a", "b", "c", "d"])
    ]
    assert scores == sorted(scores)
    assert scores[0] < scores[-1]


def test_anti_correlated_ratings_align_poorly():
    ratings_a = {"x": 9, "y": 5, "z": 2}
    ratings_b = {"x": 2, "y": 6, "z": 9}
    alignment = rating_alignment(_profile(["jazz"], ratings=ratings_a), _profile(["jazz"], ratings=ratings_b))
    assert alignment == pytest.approx(0.0, abs=1e-9)


def test_flat_rater_falls_back_to_mean_difference():
    ratings_a = {"x": 7, "y": 7, "z": 7}
    ratings_b = {"x": 8, "y": 6, "z": 7}
    alignment = rating_alignment(_profile(["jazz"], ratings=ratings_a), _profile(["jazz"], ratings=ratings_b))
    assert alignment == pytest.approx(1 - (2 / 3) / 10)


def test_genre_overlap_is_jaccard():
    assert genre_overlap(_profile(["a", "b"]), _profile(["b", "c"])) == pytest.approx(1 / 3)
    assert genre_overlap(TasteProfile(), TasteProfile()) == 0.0


def test_artist_overlap_uses_larger_list():
    profile_a = _profile(["jazz"], artists=["A", "B"])
    profile_b = _profile(["jazz"], artists=["A", "C", "D", "E"])
    result = compute_compatibility(profile_a, profile_b)
    assert result.shared_artists == ["A"]
    assert result.artist_overlap_pct == 25
