"""Pairwise taste compatibility between two users' profiles."""

import math

import numpy as np

from recommender.constants import (
    COMPAT_ALIGNMENT_WEIGHT,
    COMPAT_ARTIST_WEIGHT,
    COMPAT_GENRE_WEIGHT,
    COMPAT_MEAN_SHARE,
    COMPAT_MEAN_SPAN,
    COMPAT_MIN_SHARED_ALBUMS,
    COMPAT_SHARED_ALBUM_MIN_RATING,
    COMPAT_SHARED_ALBUMS_LIMIT,
    COMPAT_STD_SPAN,
    COMPATIBILITY_THRESHOLDS,
)
from recommender.errors import PreconditionUnmet
from recommender.types import CompatibilityResult, MatchType


def genre_overlap(profile_a, profile_b):
    """Jaccard similarity of the two top-genre sets (0..1)."""
    genres_a = set(profile_a.top_genres)
    genres_b = set(profile_b.top_genres)
    union = genres_a | genres_b
    if not union:
        return 0.0
    return len(genres_a & genres_b) / len(union)


def rating_alignment(profile_a, profile_b):
    """How similarly the two users rate (0..1).

    With enough albums rated by both, this is the Pearson correlation mapped
    onto 0..1. Otherwise it compares rating means and spreads.
    """
    shared = [album_id for album_id in profile_a.album_ratings if album_id in profile_b.album_ratings]
    if len(shared) >= COMPAT_MIN_SHARED_ALBUMS:
        ratings_a = np.array([profile_a.album_ratings[k] for k in shared], dtype=float)
        ratings_b = np.array([profile_b.album_ratings[k] for k in shared], dtype=float)
        if ratings_a.std() > 0 and ratings_b.std() > 0:
            r = float(np.corrcoef(ratings_a, ratings_b)[0, 1])
            return max(0.0, min(1.0, (r + 1) / 2))
        # Correlation is undefined for a flat rater
        return max(0.0, 1 - float(np.abs(ratings_a - ratings_b).mean()) / 10)

    mean_part = max(0.0, 1 - abs(profile_a.average_rating - profile_b.average_rating) / COMPAT_MEAN_SPAN)
    std_a = math.sqrt(max(profile_a.rating_variance, 0.0))
    std_b = math.sqrt(max(profile_b.rating_variance, 0.0))
    std_part = max(0.0, 1 - abs(std_a - std_b) / COMPAT_STD_SPAN)
    return COMPAT_MEAN_SHARE * mean_part + (1 - COMPAT_MEAN_SHARE) * std_part


def classify_match(overall_score, genre_overlap_pct, rating_alignment_pct, profile_a, profile_b, thresholds=None):
    t = {**COMPATIBILITY_THRESHOLDS, **(thresholds or {})}
    if overall_score >= t["taste_twin_min_score"]:
        return MatchType.TASTE_TWIN
    if (
        genre_overlap_pct >= t["genre_buddy_min_overlap"]
        and t["genre_buddy_min_alignment"] <= rating_alignment_pct < t["genre_buddy_max_alignment"]
    ):
        return MatchType.GENRE_BUDDY
    if (
        genre_overlap_pct < t["complementary_max_overlap"]
        and profile_a.review_count >= t["complementary_min_reviews"]
        and profile_b.review_count >= t["complementary_min_reviews"]
    ):
        return MatchType.COMPLEMENTARY
    if abs(profile_a.adventurousness - profile_b.adventurousness) >= t["explorer_min_gap"]:
        return MatchType.EXPLORER_GUIDE
    return MatchType.GENRE_BUDDY


def compute_compatibility(profile_a, profile_b, user_a="", user_b="", thresholds=None):
    """Compare two taste profiles from user A's point of view."""
    if profile_a is None or profile_b is None:
        raise PreconditionUnmet("Both users need a taste profile before they can be compared")

    overlap = genre_overlap(profile_a, profile_b)
    alignment = rating_alignment(profile_a, profile_b)

    artists_b = set(profile_b.top_artists)
    shared_artists = [a for a in profile_a.top_artists if a in artists_b]
    artist_overlap = len(shared_artists) / max(len(profile_a.top_artists), len(profile_b.top_artists), 1)

    genres_b = set(profile_b.top_genres)
    shared_genres = [g for g in profile_a.top_genres if g in genres_b]

    shared_albums = [
        album_id
        for album_id, rating in profile_a.album_ratings.items()
        if rating >= COMPAT_SHARED_ALBUM_MIN_RATING
        and profile_b.album_ratings.get(album_id, 0) >= COMPAT_SHARED_ALBUM_MIN_RATING
    ][:COMPAT_SHARED_ALBUMS_LIMIT]

    overall = round(
        100
        * (
            COMPAT_GENRE_WEIGHT * overlap
            + COMPAT_ALIGNMENT_WEIGHT * alignment
            + COMPAT_ARTIST_WEIGHT * artist_overlap
        )
    )
    overall = int(max(0, min(100, overall)))
    overlap_pct = int(round(overlap * 100))
    alignment_pct = int(round(alignment * 100))

    return CompatibilityResult(
        user_a=user_a,
        user_b=user_b,
        overall_score=overall,
        match_type=classify_match(overall, overlap_pct, alignment_pct, profile_a, profile_b, thresholds),
        shared_genres=shared_genres,
        shared_artists=shared_artists,
        shared_albums=shared_albums,
        genre_overlap_pct=overlap_pct,
        artist_overlap_pct=int(round(artist_overlap * 100)),
        rating_alignment_pct=alignment_pct,
    )
