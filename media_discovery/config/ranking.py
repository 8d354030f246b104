"""
Ranking and resolution constants.
Tunable literals live here so weights can be retuned without touching
pipeline logic.
"""
from typing import Dict

from media_discovery.models.schemas import SourceKind


# =============================================================================
# Source Confidence (highest wins on merge conflicts)
# =============================================================================

SOURCE_CONFIDENCE: Dict[SourceKind, float] = {
    SourceKind.EXACT_MATCH: 3.0,
    SourceKind.MULTI_SEARCH_EXACT: 2.8,
    SourceKind.TMDB_SIMILAR: 1.8,
    SourceKind.TMDB_RECOMMENDATION: 1.7,
    SourceKind.PERSON_SEARCH: 1.6,
    SourceKind.QUALITY_DISCOVERY: 1.4,
    SourceKind.GENRE_DISCOVERY: 1.2,
}

MAX_SOURCE_CONFIDENCE = 3.0


# =============================================================================
# Hybrid Ranking Weights
# =============================================================================

RANKING_WEIGHTS: Dict[str, float] = {
    "base": 1.0,
    "genre": 0.8,
    "theme": 0.7,
    "people": 0.9,
    "year": 0.5,
    "language": 0.3,
    "runtime": 0.4,
    "quality": 0.6,
}

# Genre ids reached only through a mood earn partial credit
MOOD_GENRE_CREDIT = 0.5

# Year proximity
YEAR_DECAY_WINDOW = 10
RECENT_RELEASE_YEARS = 3
RECENT_RELEASE_BOOST = 0.3

# Runtime match when the catalog did not report a runtime
RUNTIME_UNKNOWN_CREDIT = 0.5

# Quality signal
RATING_SHARE = 0.7
VOTE_COUNT_SHARE = 0.3
VOTE_COUNT_SATURATION = 500

# Reasoning
MAX_REASONS = 3


# =============================================================================
# Resolution & Discovery
# =============================================================================

EXACT_MATCH_SIMILARITY = 0.9
EXACT_MATCH_YEAR_TOLERANCE = 1
PERSON_MATCH_SIMILARITY = 0.8

# Rating-first discover hits at or above this average count as quality picks
QUALITY_RATING_FLOOR = 7.0


# =============================================================================
# Assembly
# =============================================================================

DEFAULT_RESULT_CAP = 12
EXACT_MATCH_REASONING = "Exact title match"
