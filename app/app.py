import logging
import os
import sqlite3

from flask import Flask

from app.db import close_db
from app.routes.api import api_bp

logger = logging.getLogger(__name__)


def _default_db_path():
    root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    return os.path.join(root, "data", "db", "spinwheel.db")


def init_db(app):
    # Make sure core tables exist (the import script shares the same DB)
    db_path = app.config["DATABASE"]
    db_dir = os.path.dirname(os.path.abspath(db_path))
    os.makedirs(db_dir, exist_ok=True)
    db = sqlite3.connect(db_path)
    cur = db.cursor()

    cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='users'")
    if not cur.fetchone():
        cur.execute(
            """
            CREATE TABLE users (
                username TEXT PRIMARY KEY,
                adventurousness REAL,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
            """
        )

    cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='albums'")
    if not cur.fetchone():
        cur.execute(
            """
            CREATE TABLE albums (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                artist_name TEXT NOT NULL,
                genres TEXT,
                release_date TEXT,
                average_rating REAL,
                total_reviews INTEGER DEFAULT 0,
                chart_rank INTEGER,
                energy REAL,
                valence REAL,
                danceability REAL,
                acousticness REAL,
                tempo REAL
            )
            """
        )

    cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='reviews'")
    if not cur.fetchone():
        cur.execute(
            """
            CREATE TABLE reviews (
                user_id TEXT NOT NULL,
                album_id TEXT NOT NULL,
                rating REAL NOT NULL,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (user_id, album_id)
            )
            """
        )

    cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='album_skips'")
    if not cur.fetchone():
        cur.execute(
            """
            CREATE TABLE album_skips (
                user_id TEXT NOT NULL,
                album_id TEXT NOT NULL,
                reason TEXT,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (user_id, album_id)
            )
            """
        )

    cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='user_audio_prefs'")
    if not cur.fetchone():
        cur.execute(
            """
            CREATE TABLE user_audio_prefs (
                user_id TEXT NOT NULL,
                feature TEXT NOT NULL,
                min_value REAL NOT NULL,
                max_value REAL NOT NULL,
                sweet_spot REAL NOT NULL,
                weight REAL DEFAULT 1.0,
                PRIMARY KEY (user_id, feature)
            )
            """
        )

    cur.execute("CREATE INDEX IF NOT EXISTS idx_reviews_album ON reviews (album_id)")
    db.commit()
    db.close()


def create_app():
    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.environ.get("FLASK_SECRET_KEY", "dev-change-me")
    app.config["DATABASE"] = os.environ.get("SPINWHEEL_DB_PATH", _default_db_path())

    init_db(app)
    app.teardown_appcontext(close_db)
    app.register_blueprint(api_bp)
    logger.info("Using database %s", app.config["DATABASE"])

    return app
