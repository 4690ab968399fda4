"""Data-access helpers for album skip records."""

from app.db import get_db


def list_with_genres(user_id):
    db = get_db()
    cur = db.execute(
        """
        SELECT s.album_id, s.reason, s.created_at, a.genres
        FROM album_skips s
        LEFT JOIN albums a ON a.id = s.album_id
        WHERE lower(s.user_id) = lower(?)
        ORDER BY s.created_at DESC
        """,
        (user_id,),
    )
    return cur.fetchall()


def get(user_id, album_id):
    db = get_db()
    cur = db.execute(
        "SELECT album_id, reason, created_at FROM album_skips WHERE lower(user_id) = lower(?) AND album_id = ?",
        (user_id, album_id),
    )
    return cur.fetchone()


def upsert(user_id, album_id, reason):
    # Skipping again restarts the re-surface window.
    db = get_db()
    db.execute(
        """
        INSERT INTO album_skips (user_id, album_id, reason, created_at)
        VALUES (lower(?), ?, ?, CURRENT_TIMESTAMP)
        ON CONFLICT(user_id, album_id) DO UPDATE SET
            reason = excluded.reason,
            created_at = excluded.created_at
        """,
        (user_id, album_id, reason),
    )
    db.commit()


def update_reason(user_id, album_id, reason):
    db = get_db()
    cur = db.execute(
        "UPDATE album_skips SET reason = ? WHERE lower(user_id) = lower(?) AND album_id = ?",
        (reason, user_id, album_id),
    )
    db.commit()
    return cur.rowcount
