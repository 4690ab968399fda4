"""Taste profile construction from a user's rating history."""

from datetime import datetime, timezone

import numpy as np

from recommender.constants import (
    ADVENTUROUSNESS_CORE_GENRES,
    BACKFILL_ARTIST_WEIGHT,
    DEFAULT_ADVENTUROUSNESS,
    FAVORITE_ARTIST_MIN_RATING,
    FAVORITE_ARTIST_RECENT_WINDOW,
    FAVORITE_ARTISTS_LIMIT,
    HIGH_AFFINITY_LIMIT,
    HIGH_AFFINITY_MARGIN,
    HIGH_AFFINITY_MIN_OBSERVATIONS,
    RECENT_ARTIST_WEIGHT,
    TOP_ARTISTS_LIMIT,
    TOP_GENRES_LIMIT,
)
from recommender.types import FavoriteArtists, TasteProfile


def _rank_keys(counts, secondary=None):
    """Order keys by count desc, then by a secondary value desc, then first appearance."""
    order = {key: i for i, key in enumerate(counts)}
    secondary = secondary or {}
    return sorted(counts, key=lambda k: (-counts[k], -secondary.get(k, 0.0), order[k]))


def compute_adventurousness(reviews, top_genres, default=DEFAULT_ADVENTUROUSNESS):
    """Fraction of reviews whose album sits entirely outside the user's core genres."""
    core = set(top_genres[:ADVENTUROUSNESS_CORE_GENRES])
    if not core or not reviews:
        return default
    outside = 0
    for review in reviews:
        if not core.intersection(review.genres or ()):
            outside += 1
    return outside / len(reviews)


def build_taste_profile(reviews, adventurousness=None, default_adventurousness=DEFAULT_ADVENTUROUSNESS):
    """Aggregate reviews into a TasteProfile.

    ``reviews`` is a list of :class:`recommender.types.Review`. A stored
    ``adventurousness`` overrides the computed one. Building twice from the
    same reviews returns equal profiles.
    """
    genre_count = {}
    genre_rating_sum = {}
    artist_count = {}
    artist_rating_sum = {}
    album_ratings = {}
    ratings = []

    # One pass over the history
    for review in reviews:
        rating = float(review.rating)
        ratings.append(rating)
        if review.album_id:
            album_ratings[review.album_id] = rating

        artist = (review.artist_name or "").strip()
        if artist:
            artist_count[artist] = artist_count.get(artist, 0) + 1
            artist_rating_sum[artist] = artist_rating_sum.get(artist, 0.0) + rating

        for genre in review.genres or ():
            genre_count[genre] = genre_count.get(genre, 0) + 1
            genre_rating_sum[genre] = genre_rating_sum.get(genre, 0.0) + rating

    if ratings:
        values = np.asarray(ratings, dtype=float)
        average_rating = float(values.mean())
        rating_variance = float(values.var()) # population variance
    else:
        average_rating = 0.0
        rating_variance = 0.0

    total_genre_observations = sum(genre_count.values())
    genre_weights = {}
    if total_genre_observations > 0:
        genre_weights = {g: c / total_genre_observations for g, c in genre_count.items()}

    top_genres = _rank_keys(genre_count)[:TOP_GENRES_LIMIT]

    genre_avg = {g: genre_rating_sum[g] / genre_count[g] for g in genre_count}
    high_affinity = [
        g
        for g in genre_count
        if genre_count[g] >= HIGH_AFFINITY_MIN_OBSERVATIONS
        and genre_avg[g] > average_rating + HIGH_AFFINITY_MARGIN
    ]
    high_affinity.sort(key=lambda g: genre_avg[g], reverse=True)

    artist_avg = {a: artist_rating_sum[a] / artist_count[a] for a in artist_count}
    top_artists = _rank_keys(artist_count, artist_avg)[:TOP_ARTISTS_LIMIT]

    if adventurousness is None:
        if genre_count:
            adventurousness = compute_adventurousness(reviews, top_genres, default_adventurousness)
        else:
            adventurousness = default_adventurousness
    adventurousness = max(0.0, min(1.0, float(adventurousness)))

    return TasteProfile(
        genre_weights=genre_weights,
        top_genres=top_genres,
        high_affinity_genres=high_affinity[:HIGH_AFFINITY_LIMIT],
        average_rating=average_rating,
        rating_variance=rating_variance,
        adventurousness=adventurousness,
        top_artists=top_artists,
        review_count=len(ratings),
        album_ratings=album_ratings,
    )


def _sort_timestamp(value):
    if value is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def favorite_artists(reviews, profile, limit=FAVORITE_ARTISTS_LIMIT):
    """Merge recent high-rated artists (tier 1) with all-time top artists (tier 2).

    Tier 1 keeps newest-first order from the last FAVORITE_ARTIST_RECENT_WINDOW
    high-rated reviews; tier 2 backfills from ``profile.top_artists``. The first
    occurrence wins, and truncation to ``limit`` drops backfill entries first.
    """
    liked = [r for r in reviews if r.rating is not None and float(r.rating) >= FAVORITE_ARTIST_MIN_RATING]
    # Stable sort keeps input order for equal timestamps
    liked = sorted(liked, key=lambda r: _sort_timestamp(r.created_at), reverse=True)
    liked = liked[:FAVORITE_ARTIST_RECENT_WINDOW]

    names = []
    weights = {}
    for review in liked:
        artist = (review.artist_name or "").strip()
        if artist and artist not in weights:
            names.append(artist)
            weights[artist] = RECENT_ARTIST_WEIGHT

    for artist in profile.top_artists:
        if artist and artist not in weights:
            names.append(artist)
            weights[artist] = BACKFILL_ARTIST_WEIGHT

    names = names[:limit]
    return FavoriteArtists(names=names, weights={a: weights[a] for a in names})
