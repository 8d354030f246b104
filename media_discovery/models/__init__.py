"""Models package - domain entities and interfaces."""
from .interfaces import CatalogClient, IntentExtractor
from .schemas import (
    Candidate,
    CatalogItem,
    CatalogPage,
    DiscoverQuery,
    DiscoverSort,
    ErrorResponse,
    GenreSelection,
    Intent,
    MediaType,
    PersonRef,
    PipelineState,
    RankedResult,
    RankingContext,
    SearchOutcome,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
    SourceKind,
)

__all__ = [
    # Interfaces
    "CatalogClient",
    "IntentExtractor",
    # Schemas
    "Candidate",
    "CatalogItem",
    "CatalogPage",
    "DiscoverQuery",
    "DiscoverSort",
    "ErrorResponse",
    "GenreSelection",
    "Intent",
    "MediaType",
    "PersonRef",
    "PipelineState",
    "RankedResult",
    "RankingContext",
    "SearchOutcome",
    "SearchRequest",
    "SearchResponse",
    "SearchResultItem",
    "SourceKind",
]
