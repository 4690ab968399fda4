"""Data-access helpers for user album reviews."""

import pandas as pd

from app.db import get_db


def list_with_albums(user_id):
    # Oldest first; ties in "first appearance" ranking follow this order.
    db = get_db()
    cur = db.execute(
        """
        SELECT r.album_id, r.rating, r.created_at, a.genres, a.artist_name
        FROM reviews r
        LEFT JOIN albums a ON a.id = r.album_id
        WHERE lower(r.user_id) = lower(?)
        ORDER BY r.created_at ASC, r.rowid ASC
        """,
        (user_id,),
    )
    return cur.fetchall()


def community_frame(min_rating):
    """Every review at or above ``min_rating`` with its album genres, as a DataFrame."""
    db = get_db()
    return pd.read_sql_query(
        """
        SELECT lower(r.user_id) AS user_id, r.album_id, r.rating, a.genres
        FROM reviews r
        JOIN albums a ON a.id = r.album_id
        WHERE r.rating >= ?
        """,
        db,
        params=(min_rating,),
    )

