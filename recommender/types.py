"""Domain records shared by the recommendation engine."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional


class Pool(str, Enum):
    ARTIST = "artist"
    GENRE = "genre"
    QUALITY = "quality"
    DISCOVERY = "discovery"


class SkipReason(str, Enum):
    NOT_INTERESTED = "not_interested"
    ALREADY_KNOW = "already_know"
    NOT_NOW = "not_now"


class MatchType(str, Enum):
    TASTE_TWIN = "taste_twin"
    GENRE_BUDDY = "genre_buddy"
    COMPLEMENTARY = "complementary"
    EXPLORER_GUIDE = "explorer_guide"


@dataclass(frozen=True)
class Review:
    album_id: str
    rating: float
    genres: tuple = ()
    artist_name: str = ""
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class SkipEvent:
    album_id: str
    reason: Optional[str] = None
    created_at: Optional[datetime] = None
    genres: tuple = ()


@dataclass(frozen=True)
class AudioProfile:
    energy: float
    valence: float
    danceability: float
    acousticness: float
    tempo: float


@dataclass(frozen=True)
class FeatureRange:
    min: float
    max: float
    sweet_spot: float
    weight: float = 1.0


@dataclass(frozen=True)
class CandidateAlbum:
    id: str
    title: str
    artist_name: str
    genres: FrozenSet[str] = frozenset()
    release_date: Optional[date] = None
    community_average_rating: Optional[float] = None
    total_reviews: int = 0
    chart_rank: Optional[int] = None
    audio_profile: Optional[AudioProfile] = None

    @property
    def dedupe_key(self):
        # Distinct catalog rows for the same real-world album share this key
        return f"{(self.title or '').strip().lower()}|{(self.artist_name or '').strip().lower()}"

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "artist_name": self.artist_name,
            "genres": sorted(self.genres),
            "release_date": self.release_date.isoformat() if self.release_date else None,
            "average_rating": self.community_average_rating,
            "total_reviews": self.total_reviews,
            "chart_rank": self.chart_rank,
        }


@dataclass
class ScoredCandidate:
    album: CandidateAlbum
    score: float
    pool: Pool
    breakdown: Dict[str, float] = field(default_factory=dict)

    @property
    def id(self):
        return self.album.id


@dataclass
class TasteProfile:
    genre_weights: Dict[str, float] = field(default_factory=dict)
    top_genres: List[str] = field(default_factory=list)
    high_affinity_genres: List[str] = field(default_factory=list)
    average_rating: float = 0.0
    rating_variance: float = 0.0
    adventurousness: float = 0.5
    top_artists: List[str] = field(default_factory=list)
    review_count: int = 0
    album_ratings: Dict[str, float] = field(default_factory=dict)

    def to_dict(self):
        return {
            "genre_weights": dict(self.genre_weights),
            "top_genres": list(self.top_genres),
            "high_affinity_genres": list(self.high_affinity_genres),
            "average_rating": round(self.average_rating, 2),
            "rating_variance": round(self.rating_variance, 3),
            "adventurousness": round(self.adventurousness, 3),
            "top_artists": list(self.top_artists),
            "review_count": self.review_count,
        }


@dataclass
class SkipSignals:
    excluded_album_ids: set = field(default_factory=set)
    genre_skip_counts: Dict[str, int] = field(default_factory=dict)


@dataclass
class FavoriteArtists:
    names: List[str] = field(default_factory=list)
    weights: Dict[str, float] = field(default_factory=dict)


@dataclass
class CandidatePools:
    pools: Dict[Pool, List[CandidateAlbum]] = field(default_factory=dict)
    degraded: List[Pool] = field(default_factory=list)

    def get(self, pool):
        return self.pools.get(pool, [])


@dataclass
class CompatibilityResult:
    user_a: str
    user_b: str
    overall_score: int
    match_type: MatchType
    shared_genres: List[str]
    shared_artists: List[str]
    shared_albums: List[str]
    genre_overlap_pct: int
    artist_overlap_pct: int
    rating_alignment_pct: int

    def to_dict(self):
        return {
            "user_a": self.user_a,
            "user_b": self.user_b,
            "overall_score": self.overall_score,
            "match_type": self.match_type.value,
            "shared_genres": self.shared_genres,
            "shared_artists": self.shared_artists,
            "shared_albums": self.shared_albums,
            "genre_overlap_pct": self.genre_overlap_pct,
            "artist_overlap_pct": self.artist_overlap_pct,
            "rating_alignment_pct": self.rating_alignment_pct,
        }


@dataclass
class RandomPick:
    pick: ScoredCandidate
    profile: TasteProfile
    mode: str
    degraded: List[Pool] = field(default_factory=list)
    candidate_count: int = 0


@dataclass
class SwipeBatch:
    items: List[ScoredCandidate]
    profile: TasteProfile
    degraded: List[Pool] = field(default_factory=list)
