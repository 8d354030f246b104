"""
Collaborator interfaces (abstractions).
Using Protocol for structural subtyping (duck typing with type hints).
These define the contracts that catalog and intent implementations must follow.
"""
from typing import Dict, List, Optional, Protocol, Sequence, runtime_checkable

from media_discovery.models.schemas import (
    CatalogItem,
    CatalogPage,
    DiscoverQuery,
    Intent,
    MediaType,
)


@runtime_checkable
class CatalogClient(Protocol):
    """
    Interface for third-party catalog access.
    Production: TMDb over HTTP.
    Testing: In-memory dataset.

    Every operation either returns a typed result or raises CatalogError;
    callers treat an error as "no candidates from that call".
    """

    async def multi_search(self, query: str) -> CatalogPage:
        """
        Search movies, shows and people in one call.

        Args:
            query: Free-text title or name

        Returns:
            CatalogPage with movie/show items and people hits
        """
        ...

    async def discover(self, query: DiscoverQuery) -> List[CatalogItem]:
        """
        Run a filtered discover query.

        Args:
            query: Genre, person, year, runtime and vote filters

        Returns:
            One page of matching items in the requested sort order
        """
        ...

    async def find_exact_title(
        self,
        title: str,
        year: Optional[int] = None,
        media_types: Optional[Sequence[MediaType]] = None,
    ) -> List[CatalogItem]:
        """
        Type-specific title search keeping only case-insensitive exact names.

        Args:
            title: Title to look up
            year: Optional release year filter
            media_types: Types to search (default: movie and tv)

        Returns:
            Items whose name equals the title (may be empty)
        """
        ...

    async def recommendations(self, media_type: MediaType, catalog_id: int) -> List[CatalogItem]:
        """Catalog recommendations for one title."""
        ...

    async def similar(self, media_type: MediaType, catalog_id: int) -> List[CatalogItem]:
        """Titles the catalog considers similar to one title."""
        ...

    async def genre_map(self, media_type: MediaType) -> Dict[str, int]:
        """
        Genre name to id map for one media type.

        Returns:
            Lower-case genre name -> catalog genre id
        """
        ...

    async def aclose(self) -> None:
        """Release underlying connections."""
        ...


@runtime_checkable
class IntentExtractor(Protocol):
    """
    Interface for turning query text into an Intent.
    Production: chat-completion model.
    Fallback: rule-based heuristics.
    """

    async def extract(self, query: str) -> Intent:
        """
        Extract structured intent.

        Args:
            query: Raw user query

        Returns:
            Parsed Intent

        Raises:
            IntentExtractionError: Provider failure or malformed output
        """
        ...
