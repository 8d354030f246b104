"""
Hybrid ranker.
Weighted multi-factor relevance score plus a short justification per candidate.
"""
import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from media_discovery.config.lexicon import THEME_KEYWORDS, genre_candidates
from media_discovery.config.ranking import (
    MAX_REASONS,
    MAX_SOURCE_CONFIDENCE,
    MOOD_GENRE_CREDIT,
    RANKING_WEIGHTS,
    RATING_SHARE,
    RECENT_RELEASE_BOOST,
    RECENT_RELEASE_YEARS,
    RUNTIME_UNKNOWN_CREDIT,
    SOURCE_CONFIDENCE,
    VOTE_COUNT_SATURATION,
    VOTE_COUNT_SHARE,
    YEAR_DECAY_WINDOW,
)
from media_discovery.models.schemas import (
    Candidate,
    RankedResult,
    RankingContext,
    SourceKind,
)

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*")


def tokenize(text: str) -> FrozenSet[str]:
    """
    Lower-case word tokens. Hyphenated words yield the whole word and
    each part ("feel-good" -> feel-good, feel, good). No stemming.
    """
    tokens = set()
    for token in TOKEN_PATTERN.findall(text.lower()):
        tokens.add(token)
        if "-" in token:
            tokens.update(token.split("-"))
    return frozenset(tokens)


def theme_keywords(term: str) -> FrozenSet[str]:
    """Overview words that signal a genre or mood term, aliases included."""
    keywords = set(tokenize(term))
    keywords.update(THEME_KEYWORDS.get(term, ()))
    for name in genre_candidates(term):
        keywords.update(THEME_KEYWORDS.get(name, ()))
    return frozenset(keywords)


def join_phrases(parts: Sequence[str]) -> str:
    if len(parts) <= 1:
        return "".join(parts)
    if len(parts) == 2:
        return f"{parts[0]} and {parts[1]}"
    return f"{', '.join(parts[:-1])}, and {parts[-1]}"


# =============================================================================
# Scoring Factors (Strategy Pattern)
# =============================================================================


class ScoringFactor(ABC):
    """One weighted term of the relevance score."""

    name: str = ""

    @abstractmethod
    def score(self, candidate: Candidate, context: RankingContext) -> float:
        """Factor value in [0, 1]."""
        pass

    def phrase(self, candidate: Candidate, context: RankingContext, value: float) -> Optional[str]:
        """Reasoning fragment, or None when this factor should stay silent."""
        return None


class SourceConfidenceFactor(ScoringFactor):
    """How directly the discovery source implies relevance."""

    name = "base"

    PHRASES: Dict[SourceKind, str] = {
        SourceKind.EXACT_MATCH: "it is the title you named",
        SourceKind.MULTI_SEARCH_EXACT: "it shares a title you named",
        SourceKind.TMDB_SIMILAR: "it is similar to a title you mentioned",
        SourceKind.TMDB_RECOMMENDATION: "fans of a title you mentioned recommend it",
        SourceKind.PERSON_SEARCH: "it came up for the people you named",
        SourceKind.QUALITY_DISCOVERY: "it is one of the best-rated picks for your search",
        SourceKind.GENRE_DISCOVERY: "it is a popular pick for your search",
    }

    def score(self, candidate: Candidate, context: RankingContext) -> float:
        return SOURCE_CONFIDENCE[candidate.source] / MAX_SOURCE_CONFIDENCE

    def phrase(self, candidate: Candidate, context: RankingContext, value: float) -> Optional[str]:
        return self.PHRASES.get(candidate.source)


class GenreOverlapFactor(ScoringFactor):
    """Share of requested genre ids the candidate carries; mood-only ids earn partial credit."""

    name = "genre"

    def score(self, candidate: Candidate, context: RankingContext) -> float:
        selection = context.genre_selection(candidate.media_type)
        requested = selection.all_ids
        if not requested:
            return 0.0
        credit = sum(
            1.0 if genre_id in selection.explicit_ids else MOOD_GENRE_CREDIT
            for genre_id in candidate.matched_genre_ids & requested
        )
        return credit / max(1, len(requested))

    def phrase(self, candidate: Candidate, context: RankingContext, value: float) -> Optional[str]:
        selection = context.genre_selection(candidate.media_type)
        intent = context.intent
        if candidate.matched_genre_ids & selection.explicit_ids and intent.genres:
            return f"it matches the {join_phrases(list(intent.genres))} you asked for"
        if intent.moods:
            return f"it has the {join_phrases(list(intent.moods))} feel you wanted"
        return None


class ThemeOverlapFactor(ScoringFactor):
    """Fraction of requested genre/mood terms whose keywords appear in the overview."""

    name = "theme"

    def score(self, candidate: Candidate, context: RankingContext) -> float:
        terms = self._terms(context)
        if not terms:
            return 0.0
        return len(self._matched_terms(candidate, terms)) / len(terms)

    def phrase(self, candidate: Candidate, context: RankingContext, value: float) -> Optional[str]:
        matched = self._matched_terms(candidate, self._terms(context))
        return f"its story has {join_phrases(matched)} themes" if matched else None

    @staticmethod
    def _terms(context: RankingContext) -> List[str]:
        return list(context.intent.genres) + list(context.intent.moods)

    @staticmethod
    def _matched_terms(candidate: Candidate, terms: List[str]) -> List[str]:
        overview = tokenize(candidate.overview)
        return [term for term in terms if theme_keywords(term) & overview]


class PeopleOverlapFactor(ScoringFactor):
    """Share of requested people the candidate credits."""

    name = "people"

    def score(self, candidate: Candidate, context: RankingContext) -> float:
        requested = context.person_ids
        if not requested:
            return 0.0
        return len(candidate.matched_person_ids & requested) / max(1, len(requested))

    def phrase(self, candidate: Candidate, context: RankingContext, value: float) -> Optional[str]:
        names = [
            context.person_names[pid]
            for pid in sorted(candidate.matched_person_ids & context.person_ids)
        ]
        return f"it features {join_phrases(names)}" if names else None


class YearProximityFactor(ScoringFactor):
    """
    1.0 inside the requested range, linear decay to 0 across the window
    outside it; without a range, recent releases get a small flat boost.
    """

    name = "year"

    def score(self, candidate: Candidate, context: RankingContext) -> float:
        intent = context.intent
        year = candidate.release_year
        if year is None:
            return 0.0

        if not intent.has_year_constraint:
            age = context.current_year - year
            return RECENT_RELEASE_BOOST if 0 <= age <= RECENT_RELEASE_YEARS else 0.0

        if intent.year_from is not None and year < intent.year_from:
            distance = intent.year_from - year
        elif intent.year_to is not None and year > intent.year_to:
            distance = year - intent.year_to
        else:
            return 1.0
        return max(0.0, 1.0 - distance / YEAR_DECAY_WINDOW)

    def phrase(self, candidate: Candidate, context: RankingContext, value: float) -> Optional[str]:
        if not context.intent.has_year_constraint:
            return f"it is a recent release ({candidate.release_year})"
        if value >= 1.0:
            return f"it was released in {candidate.release_year}"
        return f"it is close to your era ({candidate.release_year})"


class LanguageMatchFactor(ScoringFactor):
    """Original language against the explicit or configured preference."""

    name = "language"

    def score(self, candidate: Candidate, context: RankingContext) -> float:
        preferred = context.intent.original_language or context.preferred_language
        if not preferred or not candidate.original_language:
            return 0.0
        return 1.0 if candidate.original_language.lower() == preferred.lower() else 0.0

    def phrase(self, candidate: Candidate, context: RankingContext, value: float) -> Optional[str]:
        if context.intent.original_language:
            return "it is in the language you asked for"
        return None


class RuntimeMatchFactor(ScoringFactor):
    """Known runtime within the ceiling; unknown runtime is neutral."""

    name = "runtime"

    def score(self, candidate: Candidate, context: RankingContext) -> float:
        ceiling = context.intent.runtime_max_minutes
        if ceiling is None:
            return 0.0
        if candidate.runtime_minutes is None:
            return RUNTIME_UNKNOWN_CREDIT
        return 1.0 if candidate.runtime_minutes <= ceiling else 0.0

    def phrase(self, candidate: Candidate, context: RankingContext, value: float) -> Optional[str]:
        if candidate.runtime_minutes is None:
            return None
        return f"it runs {candidate.runtime_minutes} minutes"


class QualitySignalFactor(ScoringFactor):
    """Blend of average rating and (saturating) vote count."""

    name = "quality"

    def score(self, candidate: Candidate, context: RankingContext) -> float:
        rating = candidate.vote_average / 10.0
        votes = min(candidate.vote_count / VOTE_COUNT_SATURATION, 1.0)
        return RATING_SHARE * rating + VOTE_COUNT_SHARE * votes

    def phrase(self, candidate: Candidate, context: RankingContext, value: float) -> Optional[str]:
        return f"it is rated {candidate.vote_average:.1f}/10"


DEFAULT_FACTORS: Tuple[ScoringFactor, ...] = (
    SourceConfidenceFactor(),
    GenreOverlapFactor(),
    ThemeOverlapFactor(),
    PeopleOverlapFactor(),
    YearProximityFactor(),
    LanguageMatchFactor(),
    RuntimeMatchFactor(),
    QualitySignalFactor(),
)


# =============================================================================
# Ranker
# =============================================================================


class HybridRanker:
    """
    Scores, filters and orders merged candidates.

    Runtime is a hard filter: a known runtime above the requested ceiling
    excludes the candidate. Year is soft and only decays the score.
    Ranking is a pure function of the candidates and the context.
    """

    def __init__(
        self,
        factors: Optional[Sequence[ScoringFactor]] = None,
        weights: Optional[Dict[str, float]] = None,
    ) -> None:
        """
        Initialize ranker with scoring factors.

        Args:
            factors: Factors to apply (default: all eight)
            weights: Factor name -> weight (default: RANKING_WEIGHTS)
        """
        self._factors = list(factors or DEFAULT_FACTORS)
        self._weights = dict(weights or RANKING_WEIGHTS)
        self._total_weight = sum(self._weights.get(f.name, 0.0) for f in self._factors)

    def rank(self, candidates: Sequence[Candidate], context: RankingContext) -> List[RankedResult]:
        """
        Rank candidates for one search.

        Returns:
            RankedResults sorted by relevance, source confidence, vote count
        """
        eligible = [c for c in candidates if self._passes_filters(c, context)]

        results = []
        for candidate in eligible:
            relevance, contributions = self._score(candidate, context)
            if round(relevance, 4) == 0:
                continue
            results.append(
                RankedResult(
                    candidate=candidate,
                    relevance_score=relevance,
                    reasoning=self._reasoning(candidate, context, contributions),
                )
            )

        results.sort(key=self._sort_key)

        logger.debug(
            f"Ranked {len(candidates)} candidates -> {len(eligible)} eligible -> "
            f"{len(results)} scored"
        )
        return results

    def _passes_filters(self, candidate: Candidate, context: RankingContext) -> bool:
        ceiling = context.intent.runtime_max_minutes
        if ceiling is not None and candidate.runtime_minutes is not None:
            return candidate.runtime_minutes <= ceiling
        return True

    def _score(
        self,
        candidate: Candidate,
        context: RankingContext,
    ) -> Tuple[float, List[Tuple[ScoringFactor, float, float]]]:
        """Normalised relevance plus (factor, value, weighted value) per factor."""
        contributions = []
        total = 0.0
        for factor in self._factors:
            value = min(max(factor.score(candidate, context), 0.0), 1.0)
            weighted = value * self._weights.get(factor.name, 0.0)
            contributions.append((factor, value, weighted))
            total += weighted

        if self._total_weight <= 0:
            return 0.0, contributions
        return min(max(total / self._total_weight, 0.0), 1.0), contributions

    @staticmethod
    def _reasoning(
        candidate: Candidate,
        context: RankingContext,
        contributions: List[Tuple[ScoringFactor, float, float]],
    ) -> str:
        phrases = []
        # Stable sort keeps factor order on ties
        for factor, value, weighted in sorted(contributions, key=lambda c: -c[2]):
            if weighted <= 0:
                continue
            phrase = factor.phrase(candidate, context, value)
            if phrase and phrase not in phrases:
                phrases.append(phrase)
            if len(phrases) == MAX_REASONS:
                break
        if not phrases:
            return "Because it matches your search."
        return f"Because {join_phrases(phrases)}."

    @staticmethod
    def _sort_key(result: RankedResult) -> tuple:
        candidate = result.candidate
        return (
            -result.relevance_score,
            -SOURCE_CONFIDENCE[candidate.source],
            -candidate.vote_count,
            candidate.media_type.value,
            candidate.catalog_id,
        )
