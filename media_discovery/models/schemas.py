"""
Domain models using Pydantic.
All data structures for the discovery pipeline and the HTTP surface.
"""
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from media_discovery.config.lexicon import MEDIA_TYPE_ALIASES, normalize_mood


# =============================================================================
# Enumerations
# =============================================================================


class MediaType(str, Enum):
    """Catalog media types (values match the catalog's path segments)."""

    MOVIE = "movie"
    SHOW = "tv"


class SourceKind(str, Enum):
    """How a candidate entered the pool, strongest first."""

    EXACT_MATCH = "ExactMatch"
    MULTI_SEARCH_EXACT = "MultiSearchExact"
    TMDB_SIMILAR = "TmdbSimilar"
    TMDB_RECOMMENDATION = "TmdbRecommendation"
    PERSON_SEARCH = "PersonSearch"
    QUALITY_DISCOVERY = "QualityDiscovery"
    GENRE_DISCOVERY = "GenreDiscovery"


class PipelineState(str, Enum):
    """Search pipeline states."""

    INTENT_PARSED = "intent_parsed"
    RESOLVING = "resolving"
    EXACT_LOOKUP = "exact_lookup"
    DISCOVERY = "discovery"
    RANKED = "ranked"
    ASSEMBLED = "assembled"


class DiscoverSort(str, Enum):
    """Sort orders accepted by the catalog discover endpoint."""

    POPULARITY = "popularity.desc"
    RATING = "vote_average.desc"


# =============================================================================
# Intent
# =============================================================================


def _clean_strings(value: Any, lower: bool = False) -> Tuple[str, ...]:
    """Strip, drop blanks and de-duplicate while keeping order."""
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    seen = set()
    cleaned = []
    for raw in value:
        if raw is None:
            continue
        text = str(raw).strip()
        if lower:
            text = text.lower()
        if not text or text.lower() in seen:
            continue
        seen.add(text.lower())
        cleaned.append(text)
    return tuple(cleaned)


class Intent(BaseModel):
    """
    Structured representation of a parsed natural-language query.
    Immutable; produced once per query by an intent extractor.
    Accepts both snake_case and camelCase keys.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    titles: Tuple[str, ...] = ()
    people: Tuple[str, ...] = ()
    genres: Tuple[str, ...] = ()
    moods: Tuple[str, ...] = ()
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    runtime_max_minutes: Optional[int] = None
    media_types: Tuple[MediaType, ...] = ()
    requested_count: Optional[int] = None
    is_requesting_suggestions: bool = False
    original_language: Optional[str] = None

    @field_validator("titles", "people", mode="before")
    @classmethod
    def _clean_names(cls, value: Any) -> Tuple[str, ...]:
        return _clean_strings(value)

    @field_validator("genres", mode="before")
    @classmethod
    def _clean_genres(cls, value: Any) -> Tuple[str, ...]:
        return _clean_strings(value, lower=True)

    @field_validator("moods", mode="before")
    @classmethod
    def _clean_moods(cls, value: Any) -> Tuple[str, ...]:
        return _clean_strings(
            [normalize_mood(mood) for mood in _clean_strings(value)]
        )

    @field_validator("media_types", mode="before")
    @classmethod
    def _map_media_types(cls, value: Any) -> Tuple[str, ...]:
        if isinstance(value, (str, MediaType)):
            value = [value]
        values = [v.value if isinstance(v, MediaType) else v for v in value or ()]
        mapped = []
        for raw in _clean_strings(values, lower=True):
            media_type = MEDIA_TYPE_ALIASES.get(raw)
            if media_type and media_type not in mapped:
                mapped.append(media_type)
        return tuple(mapped)

    @field_validator("requested_count", "runtime_max_minutes", mode="before")
    @classmethod
    def _drop_non_positive(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value <= 0:
            return None
        return value

    @field_validator("original_language", mode="before")
    @classmethod
    def _lower_language(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @model_validator(mode="before")
    @classmethod
    def _order_year_range(cls, data: Any) -> Any:
        """Swap a reversed year range."""
        if not isinstance(data, dict):
            return data
        from_key = "yearFrom" if "yearFrom" in data else "year_from"
        to_key = "yearTo" if "yearTo" in data else "year_to"
        year_from, year_to = data.get(from_key), data.get(to_key)
        if isinstance(year_from, int) and isinstance(year_to, int) and year_from > year_to:
            data = {**data, from_key: year_to, to_key: year_from}
        return data

    @property
    def has_year_constraint(self) -> bool:
        return self.year_from is not None or self.year_to is not None

    def allows(self, media_type: "MediaType") -> bool:
        """No media types means every type is allowed."""
        return not self.media_types or media_type in self.media_types


# =============================================================================
# Catalog Models
# =============================================================================


class CatalogItem(BaseModel):
    """A movie or show as returned by the catalog."""

    id: int = Field(..., description="Catalog identifier")
    media_type: MediaType
    name: str
    overview: str = ""
    vote_average: float = Field(default=0.0, ge=0, le=10)
    vote_count: int = Field(default=0, ge=0)
    release_year: Optional[int] = None
    poster_path: Optional[str] = None
    genre_ids: Tuple[int, ...] = ()
    original_language: Optional[str] = None
    popularity: float = 0.0
    runtime_minutes: Optional[int] = None


class PersonRef(BaseModel):
    """A person hit from a multi-type search."""

    id: int
    name: str
    known_for_department: Optional[str] = None
    popularity: float = 0.0


class CatalogPage(BaseModel):
    """One page of search results, split by kind."""

    items: List[CatalogItem] = Field(default_factory=list)
    people: List[PersonRef] = Field(default_factory=list)


class DiscoverQuery(BaseModel):
    """Filters for the catalog discover endpoint."""

    model_config = ConfigDict(frozen=True)

    media_type: MediaType
    genre_ids: Tuple[int, ...] = ()
    genre_match_any: bool = True
    person_ids: Tuple[int, ...] = ()
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    runtime_max_minutes: Optional[int] = None
    min_vote_count: int = 0
    original_language: Optional[str] = None
    sort_by: DiscoverSort = DiscoverSort.POPULARITY


# =============================================================================
# Pipeline Models
# =============================================================================


class Candidate(BaseModel):
    """
    A catalog entry under evaluation.
    Identity is (media_type, catalog_id). Merge builds new instances
    rather than mutating, so candidates are frozen.
    """

    model_config = ConfigDict(frozen=True)

    media_type: MediaType
    catalog_id: int
    name: str
    overview: str = ""
    vote_average: float = Field(default=0.0, ge=0, le=10)
    vote_count: int = Field(default=0, ge=0)
    release_year: Optional[int] = None
    poster_path: Optional[str] = None
    matched_genre_ids: FrozenSet[int] = frozenset()
    matched_person_ids: FrozenSet[int] = frozenset()
    source: SourceKind
    original_language: Optional[str] = None
    runtime_minutes: Optional[int] = None

    @property
    def key(self) -> Tuple[MediaType, int]:
        return self.media_type, self.catalog_id

    @classmethod
    def from_item(
        cls,
        item: CatalogItem,
        source: SourceKind,
        person_ids: Tuple[int, ...] = (),
    ) -> "Candidate":
        """Build a candidate from a catalog item."""
        return cls(
            media_type=item.media_type,
            catalog_id=item.id,
            name=item.name,
            overview=item.overview,
            vote_average=item.vote_average,
            vote_count=item.vote_count,
            release_year=item.release_year,
            poster_path=item.poster_path,
            matched_genre_ids=frozenset(item.genre_ids),
            matched_person_ids=frozenset(person_ids),
            source=source,
            original_language=item.original_language,
            runtime_minutes=item.runtime_minutes,
        )


class GenreSelection(BaseModel):
    """Genre ids requested for one media type, split by origin."""

    model_config = ConfigDict(frozen=True)

    explicit_ids: FrozenSet[int] = frozenset()
    mood_ids: FrozenSet[int] = frozenset()

    @property
    def all_ids(self) -> FrozenSet[int]:
        return self.explicit_ids | self.mood_ids


class RankingContext(BaseModel):
    """Everything the ranker needs besides the candidates themselves."""

    model_config = ConfigDict(frozen=True)

    intent: Intent
    genre_selections: Dict[MediaType, GenreSelection] = Field(default_factory=dict)
    person_names: Dict[int, str] = Field(default_factory=dict)
    preferred_language: Optional[str] = None
    current_year: int

    @property
    def person_ids(self) -> FrozenSet[int]:
        return frozenset(self.person_names)

    def genre_selection(self, media_type: MediaType) -> GenreSelection:
        return self.genre_selections.get(media_type, GenreSelection())


class RankedResult(BaseModel):
    """Candidate plus its relevance score and justification."""

    model_config = ConfigDict(frozen=True)

    candidate: Candidate
    relevance_score: float = Field(..., ge=0, le=1)
    reasoning: str


class SearchOutcome(BaseModel):
    """Final state of one search run."""

    state: PipelineState
    intent: Intent
    results: List[RankedResult] = Field(default_factory=list)

    @property
    def is_exact_lookup(self) -> bool:
        return self.state == PipelineState.EXACT_LOOKUP


# =============================================================================
# API Models (External)
# =============================================================================


class SearchRequest(BaseModel):
    """Request body for the search endpoint."""

    query: str = Field(..., description="Free-text query")
    limit: Optional[int] = Field(
        default=None,
        ge=1,
        le=50,
        description="Result count hint (query wording takes precedence)",
    )


class SearchResultItem(BaseModel):
    """Single ranked result in the search response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    catalog_id: int = Field(..., description="Catalog identifier")
    media_type: MediaType
    name: str
    poster_url: Optional[str] = Field(default=None, description="Full poster URL")
    rating: float = Field(..., description="Catalog vote average (0-10)")
    overview: str = ""
    year: Optional[int] = None
    relevance_score: float = Field(..., ge=0, le=1)
    reasoning: str

    @classmethod
    def from_ranked(cls, result: RankedResult, image_base_url: str) -> "SearchResultItem":
        candidate = result.candidate
        poster_url = None
        if candidate.poster_path:
            poster_url = f"{image_base_url.rstrip('/')}/{candidate.poster_path.lstrip('/')}"
        return cls(
            catalog_id=candidate.catalog_id,
            media_type=candidate.media_type,
            name=candidate.name,
            poster_url=poster_url,
            rating=candidate.vote_average,
            overview=candidate.overview,
            year=candidate.release_year,
            relevance_score=round(result.relevance_score, 4),
            reasoning=result.reasoning,
        )


class SearchResponse(BaseModel):
    """Search endpoint response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    results: List[SearchResultItem] = Field(..., description="Ranked results")
    trace_id: str = Field(..., description="Request trace identifier")


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: Dict[str, Any] = Field(..., description="Error details")
