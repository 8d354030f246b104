"""
Search service - main pipeline orchestrator.
Runs intent extraction, resolution, discovery, merge, ranking and assembly.
Degrades gracefully: a failing collaborator narrows the result, never aborts it.
"""
import logging
import re
import time
from datetime import date
from typing import List, Optional

from media_discovery.config.lexicon import MOOD_ALIASES
from media_discovery.config.ranking import DEFAULT_RESULT_CAP, EXACT_MATCH_REASONING
from media_discovery.core.circuit_breaker import CircuitBreaker
from media_discovery.core.exceptions import ValidationError
from media_discovery.models.interfaces import CatalogClient, IntentExtractor
from media_discovery.models.schemas import (
    Candidate,
    Intent,
    PipelineState,
    RankedResult,
    RankingContext,
    SearchOutcome,
)
from media_discovery.services.discovery import DiscoveryEngine
from media_discovery.services.intent import default_intent
from media_discovery.services.merge import merge_candidates
from media_discovery.services.ranking import HybridRanker, theme_keywords, tokenize
from media_discovery.services.resolver import CandidateResolver, ResolutionResult

logger = logging.getLogger(__name__)


def accompanying_terms(intent: Intent) -> List[str]:
    """
    Genre and mood terms requested on top of the named title.
    A term whose words all appear in the title ("dark" in "The Dark Knight")
    belongs to the title and is not counted.
    """
    title_words = tokenize(intent.titles[0]) if intent.titles else frozenset()
    extra = []
    for term in (*intent.genres, *intent.moods):
        spellings = [term, *(alias for alias, mood in MOOD_ALIASES.items() if mood == term)]
        if not any(set(re.split(r"[\s-]+", s)) <= title_words for s in spellings):
            extra.append(term)
    return extra


def is_exact_lookup(intent: Intent, resolution: ResolutionResult) -> bool:
    """One named title resolved exactly, with nothing else asked of it."""
    if resolution.best_match is None or intent.is_requesting_suggestions:
        return False
    if len(intent.titles) != 1 or intent.people:
        return False
    return not accompanying_terms(intent)


def is_genre_mood_compatible(candidate: Candidate, context: RankingContext) -> bool:
    """
    Whether a resolved title fits the requested genres and moods, by catalog
    genre or by theme words in its name and overview. Always true when none
    were requested.
    """
    intent = context.intent
    terms = [*intent.genres, *intent.moods]
    if not terms:
        return True
    if candidate.matched_genre_ids & context.genre_selection(candidate.media_type).all_ids:
        return True
    words = tokenize(f"{candidate.name} {candidate.overview}")
    return any(theme_keywords(term) & words for term in terms)


class SearchService:
    """
    Natural-language search over the catalog.

    State flow:
        INTENT_PARSED -> RESOLVING -> (EXACT_LOOKUP | DISCOVERY) -> RANKED -> ASSEMBLED

    Cancellation of the calling task propagates out of search(); no partial
    result is ever returned.
    """

    def __init__(
        self,
        catalog: CatalogClient,
        intent_extractor: IntentExtractor,
        ranker: Optional[HybridRanker] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        max_query_length: int = 500,
        max_result_limit: int = 50,
        min_vote_count: int = 50,
        preferred_language: Optional[str] = "en",
        current_year: Optional[int] = None,
    ) -> None:
        """
        Initialize search service with collaborators.

        Args:
            catalog: Catalog client (shared rate limiter lives inside it)
            intent_extractor: Query text -> Intent
            ranker: Hybrid ranker (default: all factors, default weights)
            circuit_breaker: Breaker around intent extraction
            max_query_length: Longest accepted query
            max_result_limit: Upper bound on returned results
            min_vote_count: Vote-count floor for discover queries
            preferred_language: Language credited when the query names none
            current_year: Fixed "now" for recency scoring (default: today)
        """
        self._extractor = intent_extractor
        self._resolver = CandidateResolver(catalog)
        self._discovery = DiscoveryEngine(catalog, min_vote_count=min_vote_count)
        self._ranker = ranker or HybridRanker()
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            name="intent_extractor",
            failure_threshold=5,
            recovery_timeout_sec=30,
        )
        self._max_query_length = max_query_length
        self._max_result_limit = max_result_limit
        self._preferred_language = preferred_language
        self._current_year = current_year

    async def search(
        self,
        query: str,
        requested_count_hint: Optional[int] = None,
    ) -> SearchOutcome:
        """
        Run the full pipeline for one query.

        Args:
            query: Free-text query
            requested_count_hint: Result count used when the query names none

        Returns:
            SearchOutcome with the terminal state, the intent and ordered results

        Raises:
            ValidationError: Empty or oversized query, or a non-positive hint
        """
        start_time = time.time()
        text = self._validate(query, requested_count_hint)

        intent = await self._extract_intent(text)
        self._log_state(PipelineState.INTENT_PARSED, text)

        self._log_state(PipelineState.RESOLVING, text)
        resolution = await self._resolver.resolve(intent)

        if is_exact_lookup(intent, resolution):
            best = resolution.best_match
            self._log_state(PipelineState.EXACT_LOOKUP, text)
            logger.info(f"Exact lookup for '{text}': {best.media_type.value}/{best.catalog_id}")
            return SearchOutcome(
                state=PipelineState.EXACT_LOOKUP,
                intent=intent,
                results=[
                    RankedResult(
                        candidate=best,
                        relevance_score=1.0,
                        reasoning=EXACT_MATCH_REASONING,
                    )
                ],
            )

        self._log_state(PipelineState.DISCOVERY, text)
        plan = await self._discovery.plan(intent, resolution)
        discovered = await self._discovery.discover(plan)

        context = RankingContext(
            intent=intent,
            genre_selections=plan.genre_selections,
            person_names=resolution.people,
            preferred_language=self._preferred_language,
            current_year=self._current_year or date.today().year,
        )
        # Named titles still seed similar/recommendations; only fitting ones join the pool
        seeds = [c for c in resolution.exact_matches if is_genre_mood_compatible(c, context)]
        if len(seeds) < len(resolution.exact_matches):
            logger.debug(
                f"Dropped {len(resolution.exact_matches) - len(seeds)} resolved titles "
                f"outside the requested genres/moods"
            )
        merged = merge_candidates(seeds, discovered)

        ranked = self._ranker.rank(merged, context)
        self._log_state(PipelineState.RANKED, text)

        results = self._assemble(ranked, intent, requested_count_hint)
        self._log_state(PipelineState.ASSEMBLED, text)

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Search served: query='{text[:60]}', candidates={len(merged)}, "
            f"results={len(results)}, elapsed_ms={elapsed_ms:.2f}"
        )
        return SearchOutcome(state=PipelineState.ASSEMBLED, intent=intent, results=results)

    def result_limit(self, intent: Intent, requested_count_hint: Optional[int] = None) -> int:
        """Requested count, else the caller's hint, else the default cap."""
        limit = intent.requested_count or requested_count_hint or DEFAULT_RESULT_CAP
        return min(limit, self._max_result_limit)

    def _validate(self, query: str, requested_count_hint: Optional[int]) -> str:
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Query must not be empty")
        text = query.strip()
        if len(text) > self._max_query_length:
            raise ValidationError(
                f"Query exceeds {self._max_query_length} characters",
                details={"length": len(text), "max_length": self._max_query_length},
            )
        if requested_count_hint is not None and requested_count_hint < 1:
            raise ValidationError(
                "Result limit must be positive",
                details={"limit": requested_count_hint},
            )
        return text

    async def _extract_intent(self, query: str) -> Intent:
        """Extraction failures and an open breaker both yield the default intent."""
        return await self._circuit_breaker.call(
            lambda: self._extractor.extract(query),
            fallback=default_intent,
        )

    def _assemble(
        self,
        ranked: List[RankedResult],
        intent: Intent,
        requested_count_hint: Optional[int],
    ) -> List[RankedResult]:
        allowed = [r for r in ranked if intent.allows(r.candidate.media_type)]
        return allowed[: self.result_limit(intent, requested_count_hint)]

    @staticmethod
    def _log_state(state: PipelineState, query: str) -> None:
        logger.debug(f"Search state -> {state.value}", extra={"query": query[:60], "state": state.value})
