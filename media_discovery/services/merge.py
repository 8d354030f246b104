"""
Merge & dedup of candidate sets.
Runs after all discovery tasks have joined; single-threaded, no locking.
"""
import logging
from typing import Dict, Iterable, List, Tuple

from media_discovery.config.ranking import SOURCE_CONFIDENCE
from media_discovery.models.schemas import Candidate, MediaType

logger = logging.getLogger(__name__)


def source_confidence(candidate: Candidate) -> float:
    return SOURCE_CONFIDENCE[candidate.source]


def combine(existing: Candidate, incoming: Candidate) -> Candidate:
    """
    Merge two instances of the same title.
    The stronger source keeps its base fields; matched genre and person
    sets are unioned and missing runtime/language are filled in.
    """
    if source_confidence(incoming) > source_confidence(existing):
        stronger, weaker = incoming, existing
    else:
        stronger, weaker = existing, incoming

    return stronger.model_copy(
        update={
            "matched_genre_ids": stronger.matched_genre_ids | weaker.matched_genre_ids,
            "matched_person_ids": stronger.matched_person_ids | weaker.matched_person_ids,
            "runtime_minutes": stronger.runtime_minutes or weaker.runtime_minutes,
            "original_language": stronger.original_language or weaker.original_language,
        }
    )


def merge_candidates(*candidate_sets: Iterable[Candidate]) -> List[Candidate]:
    """
    Union candidate sets keyed by (media_type, catalog_id).
    Keeps first-seen order.
    """
    merged: Dict[Tuple[MediaType, int], Candidate] = {}
    total = 0
    for candidates in candidate_sets:
        for candidate in candidates:
            total += 1
            existing = merged.get(candidate.key)
            merged[candidate.key] = combine(existing, candidate) if existing else candidate

    logger.debug(f"Merged {total} candidates -> {len(merged)} unique")
    return list(merged.values())
