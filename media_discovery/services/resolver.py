"""
Candidate resolver.
Resolves explicit titles and people from an Intent to catalog ids and
detects high-confidence exact title matches.
"""
import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field
from rapidfuzz import fuzz, utils

from media_discovery.config.ranking import (
    EXACT_MATCH_SIMILARITY,
    EXACT_MATCH_YEAR_TOLERANCE,
    PERSON_MATCH_SIMILARITY,
)
from media_discovery.models.interfaces import CatalogClient
from media_discovery.models.schemas import (
    Candidate,
    CatalogItem,
    CatalogPage,
    Intent,
    PersonRef,
    SourceKind,
)

logger = logging.getLogger(__name__)


def title_similarity(query: str, name: str) -> float:
    """
    Normalised edit-distance similarity in [0, 1].
    Best of the plain and token-sorted comparisons, after lower-casing
    and stripping punctuation.
    """
    left = utils.default_process(query)
    right = utils.default_process(name)
    if not left or not right:
        return 0.0
    return max(fuzz.ratio(left, right), fuzz.token_sort_ratio(left, right)) / 100.0


def year_within(year: Optional[int], intent: Intent, tolerance: int = 0) -> bool:
    """True when the intent has no year or the year falls in its range (+/- tolerance)."""
    if not intent.has_year_constraint:
        return True
    if year is None:
        return False
    if intent.year_from is not None and year < intent.year_from - tolerance:
        return False
    if intent.year_to is not None and year > intent.year_to + tolerance:
        return False
    return True


class ResolutionResult(BaseModel):
    """Output of the resolver stage."""

    exact_matches: List[Candidate] = Field(default_factory=list)
    people: Dict[int, str] = Field(default_factory=dict)

    @property
    def best_match(self) -> Optional[Candidate]:
        return self.exact_matches[0] if self.exact_matches else None

    @property
    def seeds(self) -> List[Candidate]:
        """Best exact hit per requested title."""
        return [c for c in self.exact_matches if c.source == SourceKind.EXACT_MATCH]


class CandidateResolver:
    """
    Resolves titles and people concurrently.
    A failed catalog call only loses that title or person.
    """

    def __init__(self, catalog: CatalogClient) -> None:
        self._catalog = catalog

    async def resolve(self, intent: Intent) -> ResolutionResult:
        title_results, person_results = await asyncio.gather(
            asyncio.gather(*(self._resolve_title(t, intent) for t in intent.titles)),
            asyncio.gather(*(self._resolve_person(p) for p in intent.people)),
        )

        exact: List[Candidate] = []
        seen = set()
        for matches in title_results:
            for candidate in matches:
                if candidate.key not in seen:
                    seen.add(candidate.key)
                    exact.append(candidate)

        people = {person.id: person.name for person in person_results if person is not None}

        logger.debug(
            f"Resolved {len(intent.titles)} titles -> {len(exact)} exact matches, "
            f"{len(intent.people)} people -> {len(people)} ids"
        )
        return ResolutionResult(exact_matches=exact, people=people)

    # -------------------------------------------------------------------------
    # Titles
    # -------------------------------------------------------------------------

    async def _resolve_title(self, title: str, intent: Intent) -> List[Candidate]:
        """Exact hits for one title, best first."""
        try:
            page = await self._catalog.multi_search(title)
        except Exception as e:
            logger.warning(f"Title search failed for '{title}': {e}")
            page = CatalogPage()

        scored = [
            (title_similarity(title, item.name), item)
            for item in page.items
            if intent.allows(item.media_type)
        ]
        hits = [
            (similarity, item)
            for similarity, item in scored
            if similarity >= EXACT_MATCH_SIMILARITY
            and year_within(item.release_year, intent, EXACT_MATCH_YEAR_TOLERANCE)
        ]

        if not hits:
            hits = await self._find_exact_title(title, intent)

        hits.sort(key=lambda hit: self._hit_order(hit, intent))
        return [
            Candidate.from_item(
                item,
                SourceKind.EXACT_MATCH if index == 0 else SourceKind.MULTI_SEARCH_EXACT,
            )
            for index, (_, item) in enumerate(hits)
        ]

    async def _find_exact_title(self, title: str, intent: Intent) -> List[Tuple[float, CatalogItem]]:
        """Second chance through a type-specific exact-title lookup."""
        year = intent.year_from if intent.year_from == intent.year_to else None
        try:
            items = await self._catalog.find_exact_title(
                title,
                year=year,
                media_types=list(intent.media_types) or None,
            )
        except Exception as e:
            logger.warning(f"Exact title lookup failed for '{title}': {e}")
            return []
        return [
            (1.0, item)
            for item in items
            if intent.allows(item.media_type)
            and year_within(item.release_year, intent, EXACT_MATCH_YEAR_TOLERANCE)
        ]

    @staticmethod
    def _hit_order(hit: Tuple[float, CatalogItem], intent: Intent) -> tuple:
        similarity, item = hit
        in_range = intent.has_year_constraint and year_within(item.release_year, intent)
        return (-similarity, not in_range, -item.vote_count, item.media_type.value, item.id)

    # -------------------------------------------------------------------------
    # People
    # -------------------------------------------------------------------------

    async def _resolve_person(self, name: str) -> Optional[PersonRef]:
        try:
            page = await self._catalog.multi_search(name)
        except Exception as e:
            logger.warning(f"Person search failed for '{name}': {e}")
            return None

        best: Optional[PersonRef] = None
        best_key = (0.0, 0.0)
        for person in page.people:
            similarity = title_similarity(name, person.name)
            if similarity < PERSON_MATCH_SIMILARITY:
                continue
            key = (similarity, person.popularity)
            if best is None or key > best_key:
                best, best_key = person, key

        if best is None:
            logger.debug(f"No person match for '{name}'")
        return best
