"""TTL-cached catalog snapshots, one per database path."""

import logging
import os
import sqlite3
import time

import pandas as pd

from recommender.catalog import CATALOG_COLUMNS, FrameCatalog
from utils.parsing import parse_list

logger = logging.getLogger(__name__)

_CATALOG_CACHE = {}


def _resolve_db_path(db_path):
    if db_path:
        db_path = os.path.expandvars(os.path.expanduser(db_path))
        if not os.path.isabs(db_path):
            base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
            db_path = os.path.join(base_dir, db_path)
        return os.path.abspath(db_path)
    base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
    return os.path.join(base_dir, "data", "db", "spinwheel.db")


def _load_albums_df(db_path):
    conn = sqlite3.connect(db_path)
    try:
        df = pd.read_sql_query(f"SELECT {', '.join(CATALOG_COLUMNS)} FROM albums", conn)
    finally:
        conn.close()

    # Pre-parse genre lists once per snapshot
    df["genres"] = df["genres"].apply(parse_list)
    return df


def get_catalog(db_path):
    """Return the cached FrameCatalog for ``db_path``, rebuilding it after the TTL."""
    db_path = _resolve_db_path(db_path)
    cache_ttl = int(os.environ.get("CATALOG_CACHE_TTL_SEC", "600"))
    now = time.time()
    cached = _CATALOG_CACHE.get(db_path)
    if cached is not None and cache_ttl > 0:
        if (now - cached["built_at"]) < cache_ttl:
            return cached["catalog"]
    elif cached is not None and cache_ttl <= 0:
        return cached["catalog"]

    started = time.time()
    catalog = FrameCatalog(_load_albums_df(db_path))
    _CATALOG_CACHE[db_path] = {"catalog": catalog, "built_at": now}
    logger.info("Built catalog snapshot for %s: %s albums in %.2fs", db_path, len(catalog), time.time() - started)
    return catalog


def invalidate(db_path=None):
    """Drop one cached snapshot, or all of them."""
    if db_path is None:
        _CATALOG_CACHE.clear()
        return
    _CATALOG_CACHE.pop(_resolve_db_path(db_path), None)
