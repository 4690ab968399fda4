"""Per-request SQLite connection kept on ``flask.g``."""

import sqlite3
from flask import current_app, g


def get_db():
    """Return the request's connection, opening it on first use."""
    if "db" not in g:
        db = sqlite3.connect(current_app.config["DATABASE"])
        db.row_factory = sqlite3.Row
        g.db = db
    return g.db


def close_db(_error=None):
    db = g.pop("db", None)
    if db is not None:
        db.close()
