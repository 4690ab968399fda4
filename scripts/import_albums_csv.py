import argparse
import csv
import sqlite3
from pathlib import Path

COLUMNS = [
    "id",
    "title",
    "artist_name",
    "genres",
    "release_date",
    "average_rating",
    "total_reviews",
    "chart_rank",
    "energy",
    "valence",
    "danceability",
    "acousticness",
    "tempo",
]
REQUIRED = ["id", "title", "artist_name"]


def ensure_tables(conn):
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS albums (
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
    conn.execute("CREATE INDEX IF NOT EXISTS idx_albums_artist ON albums (artist_name)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_albums_chart_rank ON albums (chart_rank)")


def clean(value):
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped != "" else None
    return value


def _insert(conn, rows):
    conn.executemany(
        f"""
        INSERT OR REPLACE INTO albums ({", ".join(COLUMNS)})
        VALUES ({", ".join("?" for _ in COLUMNS)})
        """,
        rows,
    )
    conn.commit()


def main():
    parser = argparse.ArgumentParser(description="Import an album catalog CSV into the albums table")
    parser.add_argument("--db", default="data/db/spinwheel.db")
    parser.add_argument("--csv", default="data/imports/albums.csv")
    parser.add_argument("--replace", action="store_true", help="replace existing album rows")
    parser.add_argument("--chunk", type=int, default=2000)
    args = parser.parse_args()

    csv_path = Path(args.csv)
    if not csv_path.exists():
        raise SystemExit(f"CSV not found: {csv_path}")
    Path(args.db).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(args.db)
    imported = 0
    try:
        ensure_tables(conn)
        if args.replace:
            conn.execute("DELETE FROM albums")
            conn.commit()

        with csv_path.open("r", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            missing = [col for col in REQUIRED if col not in (reader.fieldnames or [])]
            if missing:
                raise SystemExit(f"CSV missing columns: {missing}")

            rows = []
            for row in reader:
                values = [clean(row.get(col)) for col in COLUMNS]
                if not all(values[COLUMNS.index(col)] for col in REQUIRED):
                    continue
                rows.append(values)
                if len(rows) >= args.chunk:
                    _insert(conn, rows)
                    imported += len(rows)
                    rows = []
            if rows:
                _insert(conn, rows)
                imported += len(rows)
    finally:
        conn.close()

    print(f"Imported {imported} albums into {args.db}")


if __name__ == "__main__":
    main()
