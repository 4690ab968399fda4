"""Lightweight collaborative signal from users with overlapping taste."""

import pandas as pd

from recommender.constants import (
    COLLABORATIVE_MIN_RATING,
    SIMILAR_USER_GENRES,
    SIMILAR_USER_LIMIT,
    SIMILAR_USER_MIN_OVERLAP,
    SIMILAR_USER_MIN_RATING,
)


def find_similar_users(
    user_id,
    top_genres,
    reviews_df,
    min_rating=SIMILAR_USER_MIN_RATING,
    min_overlap=SIMILAR_USER_MIN_OVERLAP,
    limit=SIMILAR_USER_LIMIT,
):
    """Users who liked at least ``min_overlap`` albums in the target's core genres.

    ``reviews_df`` has one row per review with ``user_id``, ``rating`` and
    ``genres`` (an iterable). Ranked by overlap count desc, then user id.
    """
    core = set(top_genres[:SIMILAR_USER_GENRES])
    if not core or reviews_df is None or reviews_df.empty:
        return []

    df = reviews_df[reviews_df["user_id"].astype(str).str.lower() != str(user_id).lower()]
    df = df[pd.to_numeric(df["rating"], errors="coerce") >= min_rating]
    if df.empty:
        return []

    hits = df[df["genres"].apply(lambda genres: bool(core.intersection(genres or ())))]
    if hits.empty:
        return []

    counts = hits.groupby("user_id").size().reset_index(name="overlap")
    counts = counts[counts["overlap"] >= min_overlap]
    counts = counts.sort_values(["overlap", "user_id"], ascending=[False, True])
    return counts["user_id"].head(max(0, int(limit))).tolist()


def collaborative_boost_ids(similar_users, reviews_df, candidate_ids, min_rating=COLLABORATIVE_MIN_RATING):
    """Candidate album ids that any similar user rated at least ``min_rating``."""
    if not similar_users or reviews_df is None or reviews_df.empty:
        return set()
    candidate_ids = set(candidate_ids)
    df = reviews_df[reviews_df["user_id"].isin(similar_users)]
    df = df[pd.to_numeric(df["rating"], errors="coerce") >= min_rating]
    return {album_id for album_id in df["album_id"].tolist() if album_id in candidate_ids}
