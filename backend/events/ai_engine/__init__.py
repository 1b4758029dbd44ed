# events/ai_engine/__init__.py
"""
AI Engine Package
=================

This package contains the scoring and hybrid ranking core that decides
which pending event the user should start right now.

Modules:
--------
- context: Candidate schema, user state, emotion/difficulty classification
- weights: Tunable scoring weights and policies (two presets)
- urgency: Deadline urgency and calendar-day helpers
- scoring: The deterministic multi-factor scoring function
- recency: Bounded, thread-safe memory of recent picks
- ranker: Local arg-max ranker over the full candidate set
- rules: Rule-based pre-filter that shortlists candidates
- external_reranker: OpenAI integration that reranks the shortlist
- response_parser: JSON extraction and validation of model replies
- orchestrator: Hybrid path with guaranteed local fallback
- explainer: Short natural-language explanation of a pick

Architecture:
-------------
All recommendations flow through the RecommendationOrchestrator, which
tries the hybrid path and falls back to the local ranker on any failure.
The orchestrator returns a ``Recommendation``:

    {
        "outcome": "recommended" | "nothing_to_do",
        "method": "hybrid" | "local" | "fallback" | "none",
        "message": str,
        "event": {...} | None,
        "reason": str,
        "ranking": [...],
        "breakdown": {...} | None,
        "error_code": str | None,
        "notice": str | None
    }

Usage:
------
    from events.ai_engine import RecommendationOrchestrator, UserState

    orchestrator = RecommendationOrchestrator()
    result = orchestrator.recommend(
        Event.objects.load_candidates(),
        UserState(emotion="anxious", heart_rate_bpm=92),
    )
"""

from .context import Candidate, StaticPhysiologyProvider, UserState
from .exceptions import EmptyCandidateSet, HybridRankingError, RecommendationError
from .explainer import RecommendationExplainer
from .external_reranker import ExternalReranker
from .orchestrator import (
    METHOD_FALLBACK,
    METHOD_HYBRID,
    METHOD_LOCAL,
    METHOD_NONE,
    OUTCOME_NOTHING_TO_DO,
    OUTCOME_RECOMMENDED,
    Recommendation,
    RecommendationOrchestrator,
)
from .ranker import LocalRanker
from .recency import RecencyMemory
from .response_parser import RankingResult, parse_ranking_response
from .rules import RulePreFilter
from .scoring import ScoreBreakdown, score_candidate
from .weights import DurationFitMode, OverduePolicy, ScoringWeights

__all__ = [
    # Core classes
    "RecommendationOrchestrator",
    "ExternalReranker",
    "RecommendationExplainer",
    "LocalRanker",
    "RulePreFilter",
    "RecencyMemory",
    # Data
    "Candidate",
    "UserState",
    "StaticPhysiologyProvider",
    "ScoreBreakdown",
    "ScoringWeights",
    "OverduePolicy",
    "DurationFitMode",
    "Recommendation",
    "RankingResult",
    # Functions
    "score_candidate",
    "parse_ranking_response",
    # Errors
    "RecommendationError",
    "EmptyCandidateSet",
    "HybridRankingError",
    # Constants
    "OUTCOME_RECOMMENDED",
    "OUTCOME_NOTHING_TO_DO",
    "METHOD_HYBRID",
    "METHOD_LOCAL",
    "METHOD_FALLBACK",
    "METHOD_NONE",
]
