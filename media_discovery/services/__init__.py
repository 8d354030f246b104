"""Services package - discovery pipeline."""
from .discovery import CandidateSource, DiscoveryEngine, DiscoveryPlan
from .intent import RuleBasedIntentExtractor, default_intent
from .merge import merge_candidates
from .ranking import HybridRanker, ScoringFactor
from .resolver import CandidateResolver, ResolutionResult
from .search import SearchService

__all__ = [
    "CandidateResolver",
    "CandidateSource",
    "DiscoveryEngine",
    "DiscoveryPlan",
    "HybridRanker",
    "ResolutionResult",
    "RuleBasedIntentExtractor",
    "ScoringFactor",
    "SearchService",
    "default_intent",
    "merge_candidates",
]
