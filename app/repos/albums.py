"""Data-access helpers for catalog album rows."""

from app.db import get_db


def get_by_id(album_id):
    db = get_db()
    cur = db.execute("SELECT * FROM albums WHERE id = ?", (album_id,))
    return cur.fetchone()
