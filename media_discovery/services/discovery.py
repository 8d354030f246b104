"""
Discovery engine.
Turns an Intent into concurrent filtered catalog queries and gathers
loosely matching candidates from every applicable source.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Dict, List, Set, Tuple, TypeVar

from pydantic import BaseModel, Field

from media_discovery.config.lexicon import MOOD_GENRES, genre_candidates
from media_discovery.config.ranking import QUALITY_RATING_FLOOR
from media_discovery.models.interfaces import CatalogClient
from media_discovery.models.schemas import (
    Candidate,
    CatalogItem,
    DiscoverQuery,
    DiscoverSort,
    GenreSelection,
    Intent,
    MediaType,
    SourceKind,
)
from media_discovery.services.resolver import ResolutionResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

ALL_MEDIA_TYPES: Tuple[MediaType, ...] = (MediaType.MOVIE, MediaType.SHOW)


class DiscoveryPlan(BaseModel):
    """What to ask the catalog for, derived once per search."""

    intent: Intent
    media_types: List[MediaType]
    genre_selections: Dict[MediaType, GenreSelection] = Field(default_factory=dict)
    seeds: List[Candidate] = Field(default_factory=list)
    person_ids: Tuple[int, ...] = ()
    run_genre_discovery: bool = True

    def genre_selection(self, media_type: MediaType) -> GenreSelection:
        return self.genre_selections.get(media_type, GenreSelection())


def select_genres(intent: Intent, genre_map: Dict[str, int]) -> GenreSelection:
    """
    Map requested genres and moods to catalog genre ids for one media type.
    Lookups are case-insensitive; names missing from the map are ignored.
    """
    explicit: Set[int] = set()
    for genre in intent.genres:
        explicit.update(genre_map[name] for name in genre_candidates(genre) if name in genre_map)

    mood: Set[int] = set()
    for mood_name in intent.moods:
        for genre in MOOD_GENRES.get(mood_name, ()):
            mood.update(genre_map[name] for name in genre_candidates(genre) if name in genre_map)

    return GenreSelection(explicit_ids=frozenset(explicit), mood_ids=frozenset(mood))


# =============================================================================
# Candidate Sources
# =============================================================================


class CandidateSource(ABC):
    """
    One way of gathering candidates.
    New sources plug in here without touching merge or ranking.
    """

    name: str = "source"

    def __init__(self, catalog: CatalogClient) -> None:
        self._catalog = catalog

    async def produce(self, plan: DiscoveryPlan) -> List[Candidate]:
        """Run the source; a failure contributes zero candidates."""
        try:
            candidates = await self.produce_candidates(plan)
        except Exception as e:
            logger.warning(f"Discovery source '{self.name}' failed: {e}", extra={"operation": self.name})
            return []
        logger.debug(f"Discovery source '{self.name}' produced {len(candidates)} candidates")
        return candidates

    @abstractmethod
    async def produce_candidates(self, plan: DiscoveryPlan) -> List[Candidate]:
        """Gather candidates for the plan."""
        pass

    async def _isolated(self, label: str, call: Awaitable[List[T]]) -> List[T]:
        """Await one catalog call; errors are logged and yield nothing."""
        try:
            return await call
        except Exception as e:
            logger.warning(
                f"Discovery call '{self.name}:{label}' failed: {e}",
                extra={"operation": f"{self.name}:{label}"},
            )
            return []


class FilteredDiscoverySource(CandidateSource):
    """
    Genre/mood filtered discover query in one sort order.
    Rating-first hits with a high average count as quality picks.
    """

    def __init__(self, catalog: CatalogClient, sort_by: DiscoverSort, min_vote_count: int = 50) -> None:
        super().__init__(catalog)
        self._sort_by = sort_by
        self._min_vote_count = min_vote_count
        self.name = "quality_discovery" if sort_by == DiscoverSort.RATING else "genre_discovery"

    async def produce_candidates(self, plan: DiscoveryPlan) -> List[Candidate]:
        intent = plan.intent
        queries = [
            DiscoverQuery(
                media_type=media_type,
                genre_ids=tuple(sorted(plan.genre_selection(media_type).all_ids)),
                genre_match_any=True,
                year_from=intent.year_from,
                year_to=intent.year_to,
                runtime_max_minutes=intent.runtime_max_minutes,
                min_vote_count=self._min_vote_count,
                original_language=intent.original_language,
                sort_by=self._sort_by,
            )
            for media_type in plan.media_types
        ]
        pages = await asyncio.gather(
            *(self._isolated(q.media_type.value, self._catalog.discover(q)) for q in queries)
        )

        candidates = []
        for query, items in zip(queries, pages):
            requested = set(query.genre_ids)
            for item in items:
                if requested and not requested & set(item.genre_ids):
                    continue
                candidates.append(Candidate.from_item(item, self._tag(item)))
        return candidates

    def _tag(self, item: CatalogItem) -> SourceKind:
        if self._sort_by == DiscoverSort.RATING and item.vote_average >= QUALITY_RATING_FLOOR:
            return SourceKind.QUALITY_DISCOVERY
        return SourceKind.GENRE_DISCOVERY


class PersonDiscoverySource(CandidateSource):
    """Movies crediting every resolved person (TV discover has no people filter)."""

    name = "person_discovery"

    def __init__(self, catalog: CatalogClient, min_vote_count: int = 50) -> None:
        super().__init__(catalog)
        self._min_vote_count = min_vote_count

    async def produce_candidates(self, plan: DiscoveryPlan) -> List[Candidate]:
        if not plan.person_ids or MediaType.MOVIE not in plan.media_types:
            return []
        intent = plan.intent
        query = DiscoverQuery(
            media_type=MediaType.MOVIE,
            person_ids=plan.person_ids,
            year_from=intent.year_from,
            year_to=intent.year_to,
            runtime_max_minutes=intent.runtime_max_minutes,
            min_vote_count=self._min_vote_count,
            original_language=intent.original_language,
            sort_by=DiscoverSort.POPULARITY,
        )
        items = await self._catalog.discover(query)
        return [
            Candidate.from_item(item, SourceKind.PERSON_SEARCH, person_ids=plan.person_ids)
            for item in items
        ]


class SimilarTitleSource(CandidateSource):
    """Catalog 'similar' lists for each seed title."""

    name = "similar"
    kind = SourceKind.TMDB_SIMILAR

    async def produce_candidates(self, plan: DiscoveryPlan) -> List[Candidate]:
        pages = await asyncio.gather(
            *(
                self._isolated(str(seed.catalog_id), self._fetch(seed))
                for seed in plan.seeds
            )
        )
        return [
            Candidate.from_item(item, self.kind)
            for items in pages
            for item in items
            if plan.intent.allows(item.media_type)
        ]

    def _fetch(self, seed: Candidate) -> Awaitable[List[CatalogItem]]:
        return self._catalog.similar(seed.media_type, seed.catalog_id)


class RecommendationSource(SimilarTitleSource):
    """Catalog recommendations for each seed title."""

    name = "recommendations"
    kind = SourceKind.TMDB_RECOMMENDATION

    def _fetch(self, seed: Candidate) -> Awaitable[List[CatalogItem]]:
        return self._catalog.recommendations(seed.media_type, seed.catalog_id)


# =============================================================================
# Discovery Engine
# =============================================================================


class DiscoveryEngine:
    """
    Plans and runs discovery.
    All sources run concurrently; output is consumed only after every
    source has settled.
    """

    def __init__(self, catalog: CatalogClient, min_vote_count: int = 50) -> None:
        self._catalog = catalog
        self._min_vote_count = min_vote_count

    async def plan(self, intent: Intent, resolution: ResolutionResult) -> DiscoveryPlan:
        """Resolve genre ids per media type and decide which sources apply."""
        media_types = list(intent.media_types) or list(ALL_MEDIA_TYPES)

        selections: Dict[MediaType, GenreSelection] = {}
        if intent.genres or intent.moods:
            genre_maps = await asyncio.gather(*(self._genre_map(t) for t in media_types))
            for media_type, genre_map in zip(media_types, genre_maps):
                selections[media_type] = select_genres(intent, genre_map)

        seeds = [seed for seed in resolution.seeds if intent.allows(seed.media_type)]
        person_ids = tuple(resolution.people)
        has_genre_ids = any(selection.all_ids for selection in selections.values())

        return DiscoveryPlan(
            intent=intent,
            media_types=media_types,
            genre_selections=selections,
            seeds=seeds,
            person_ids=person_ids,
            # Without genre ids the filtered queries are unconstrained; run them
            # only when nothing more specific exists
            run_genre_discovery=has_genre_ids or not (seeds or person_ids),
        )

    def sources(self, plan: DiscoveryPlan) -> List[CandidateSource]:
        sources: List[CandidateSource] = []
        if plan.run_genre_discovery:
            sources.append(FilteredDiscoverySource(self._catalog, DiscoverSort.POPULARITY, self._min_vote_count))
            sources.append(FilteredDiscoverySource(self._catalog, DiscoverSort.RATING, self._min_vote_count))
        if plan.seeds:
            sources.append(SimilarTitleSource(self._catalog))
            sources.append(RecommendationSource(self._catalog))
        if plan.person_ids:
            sources.append(PersonDiscoverySource(self._catalog, self._min_vote_count))
        return sources

    async def discover(self, plan: DiscoveryPlan) -> List[Candidate]:
        """Run every applicable source concurrently and flatten in source order."""
        sources = self.sources(plan)
        results = await asyncio.gather(*(source.produce(plan) for source in sources))
        candidates = [candidate for batch in results for candidate in batch]
        logger.debug(
            f"Discovery ran {len(sources)} sources -> {len(candidates)} candidates"
        )
        return candidates

    async def _genre_map(self, media_type: MediaType) -> Dict[str, int]:
        try:
            return await self._catalog.genre_map(media_type)
        except Exception as e:
            logger.warning(f"Genre map lookup failed for {media_type.value}: {e}")
            return {}
