"""Data-access helpers for user rows and stored per-user settings."""

from app.db import get_db


def get_by_username(username):
    # Case-insensitive fetch so session ids are resilient to casing.
    db = get_db()
    cur = db.execute("SELECT * FROM users WHERE lower(username) = lower(?)", (username,))
    return cur.fetchone()


def list_audio_prefs(user_id):
    db = get_db()
    cur = db.execute(
        """
        SELECT feature, min_value, max_value, sweet_spot, weight
        FROM user_audio_prefs
        WHERE lower(user_id) = lower(?)
        """,
        (user_id,),
    )
    return cur.fetchall()

