"""Read-only catalog snapshot with vectorized pool filters."""

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.preprocessing import MultiLabelBinarizer

from recommender.constants import AUDIO_FEATURES
from recommender.types import AudioProfile, CandidateAlbum

CATALOG_COLUMNS = [
    "id",
    "title",
    "artist_name",
    "genres",
    "release_date",
    "average_rating",
    "total_reviews",
    "chart_rank",
    *AUDIO_FEATURES,
]


@dataclass(frozen=True)
class PoolQuery:
    """Filter + ordering for one pool fetch.

    ``None`` means "no restriction"; an empty ``artists`` or ``genres_any``
    tuple matches nothing. ``charted_or_min_rating`` keeps rows that have a
    chart rank, or a rating of at least that value with ``min_reviews``
    reviews.
    """

    artists: Optional[Tuple[str, ...]] = None
    genres_any: Optional[Tuple[str, ...]] = None
    genres_none: Optional[Tuple[str, ...]] = None
    charted_or_min_rating: Optional[float] = None
    min_reviews: int = 0
    exclude_ids: FrozenSet[str] = frozenset()
    order: str = "reviews"  # reviews | quality | natural


def _clean_genres(value):
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    try:
        return tuple(str(g).strip() for g in value if str(g).strip())
    except TypeError:
        return ()


def _optional_float(value):
    if value is None or pd.isna(value):
        return None
    return float(value)


def _optional_int(value):
    if value is None or pd.isna(value):
        return None
    return int(value)


class FrameCatalog:
    """Albums held in a DataFrame plus a binarized genre matrix.

    Instances are never mutated after construction, so one snapshot can be
    shared by the concurrent pool fetches of many requests.
    """

    def __init__(self, df):
        df = df.copy() if df is not None else pd.DataFrame(columns=CATALOG_COLUMNS)
        for column in CATALOG_COLUMNS:
            if column not in df.columns:
                df[column] = None
        df = df.reset_index(drop=True)

        df["id"] = df["id"].astype(str)
        df["title"] = df["title"].fillna("").astype(str)
        df["artist_name"] = df["artist_name"].fillna("").astype(str)
        df["genres"] = df["genres"].apply(_clean_genres)
        df["release_date"] = pd.to_datetime(df["release_date"], errors="coerce")
        df["average_rating"] = pd.to_numeric(df["average_rating"], errors="coerce")
        df["total_reviews"] = pd.to_numeric(df["total_reviews"], errors="coerce").fillna(0).astype(int)
        df["chart_rank"] = pd.to_numeric(df["chart_rank"], errors="coerce")
        for feature in AUDIO_FEATURES:
            df[feature] = pd.to_numeric(df[feature], errors="coerce")

        self.df = df
        self._artist_key = df["artist_name"].str.strip().str.lower().to_numpy()
        self._ids = df["id"].to_numpy()

        all_genres = {g for genres in df["genres"] for g in genres}
        if all_genres:
            self.genre_mlb = MultiLabelBinarizer()
            self.genre_matrix = self.genre_mlb.fit_transform(df["genres"]).astype(np.uint8)
            self.genre_index = {g: i for i, g in enumerate(self.genre_mlb.classes_.tolist())}
        else:
            self.genre_mlb = None
            self.genre_matrix = np.zeros((len(df), 0), dtype=np.uint8)
            self.genre_index = {}

    @classmethod
    def from_albums(cls, albums):
        rows = []
        for album in albums:
            audio = album.audio_profile
            row = {
                "id": album.id,
                "title": album.title,
                "artist_name": album.artist_name,
                "genres": tuple(sorted(album.genres)),
                "release_date": album.release_date,
                "average_rating": album.community_average_rating,
                "total_reviews": album.total_reviews,
                "chart_rank": album.chart_rank,
            }
            for feature in AUDIO_FEATURES:
                row[feature] = getattr(audio, feature) if audio is not None else None
            rows.append(row)
        return cls(pd.DataFrame(rows, columns=CATALOG_COLUMNS))

    def __len__(self):
        return len(self.df)

    def genres(self):
        return sorted(self.genre_index)

    def _genre_hits(self, genres):
        idxs = [self.genre_index[g] for g in genres if g in self.genre_index]
        if not idxs:
            return np.zeros(len(self.df), dtype=bool)
        return np.any(self.genre_matrix[:, idxs] > 0, axis=1)

    def _mask(self, query):
        mask = np.ones(len(self.df), dtype=bool)

        if query.exclude_ids:
            mask &= ~np.isin(self._ids, list(query.exclude_ids))

        if query.artists is not None:
            wanted = [a.strip().lower() for a in query.artists if a and a.strip()]
            mask &= np.isin(self._artist_key, wanted)

        if query.genres_any is not None:
            mask &= self._genre_hits(query.genres_any)

        if query.genres_none:
            mask &= ~self._genre_hits(query.genres_none)

        if query.charted_or_min_rating is not None:
            charted = self.df["chart_rank"].notna().to_numpy()
            rated = (
                (self.df["average_rating"] >= query.charted_or_min_rating)
                & (self.df["total_reviews"] >= query.min_reviews)
            ).to_numpy()
            mask &= charted | rated

        return mask

    def _ordered(self, frame, order):
        if order == "quality":
            # Charted first by rank, then best community rating
            return frame.sort_values(
                ["chart_rank", "average_rating"],
                ascending=[True, False],
                na_position="last",
                kind="mergesort",
            )
        if order == "reviews":
            return frame.sort_values(
                ["total_reviews", "average_rating"],
                ascending=[False, False],
                na_position="last",
                kind="mergesort",
            )
        return frame

    def count(self, query):
        return int(self._mask(query).sum())

    def fetch(self, query, offset=0, limit=None):
        frame = self._ordered(self.df[self._mask(query)], query.order)
        offset = max(0, int(offset or 0))
        if limit is None:
            frame = frame.iloc[offset:]
        else:
            frame = frame.iloc[offset : offset + max(0, int(limit))]
        return [self._to_album(row) for row in frame.itertuples(index=False)]

    def _to_album(self, row):
        audio_values = [getattr(row, feature) for feature in AUDIO_FEATURES]
        audio = None
        if all(v is not None and not pd.isna(v) for v in audio_values):
            audio = AudioProfile(*[float(v) for v in audio_values])
        release = row.release_date
        return CandidateAlbum(
            id=row.id,
            title=row.title,
            artist_name=row.artist_name,
            genres=frozenset(row.genres),
            release_date=None if pd.isna(release) else release.date(),
            community_average_rating=_optional_float(row.average_rating),
            total_reviews=int(row.total_reviews),
            chart_rank=_optional_int(row.chart_rank),
            audio_profile=audio,
        )
