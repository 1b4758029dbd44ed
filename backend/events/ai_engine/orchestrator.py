# events/ai_engine/orchestrator.py

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from django.conf import settings

from .context import Candidate, UserState, classify_difficulty
from .exceptions import HybridRankingError, RerankerNotConfigured, UnknownChosenIdentifier
from .external_reranker import ExternalReranker
from .ranker import LocalRanker
from .recency import DEFAULT_CAPACITY, RecencyMemory
from .response_parser import RankingEntry, parse_ranking_response
from .rules import DEFAULT_TOP_K, RulePreFilter
from .scoring import ScoreBreakdown
from .weights import ScoringWeights

# Configure logging for pipeline auditing
logger = logging.getLogger(__name__)

OUTCOME_RECOMMENDED = "recommended"
OUTCOME_NOTHING_TO_DO = "nothing_to_do"

METHOD_HYBRID = "hybrid"
METHOD_LOCAL = "local"
METHOD_FALLBACK = "fallback"
METHOD_NONE = "none"

NOTHING_TO_DO_MESSAGE = "Nothing on your plate today. Take a break!"
REASON_LOCAL = "Local rule."
REASON_FALLBACK_ERROR = "Local rule (AI error)."
REASON_FALLBACK_UNKNOWN_ID = "AI fallback: ID not found. Used local rule."
NOTICE_MISSING_KEY = "Missing OPENAI_API_KEY."


def summary_line(candidate: Candidate) -> str:
    difficulty = classify_difficulty(candidate.difficulty).value.capitalize()
    hours = f"{candidate.estimated_hours:.2f}h" if candidate.estimated_hours is not None else "unestimated"
    due = f"due {candidate.deadline:%b %d, %H:%M}" if candidate.deadline else "no deadline"
    return f"Try: {candidate.name or 'Untitled'} ({difficulty}, {hours}, {due})"


@dataclass(frozen=True)
class Recommendation:
    outcome: str
    method: str
    message: str
    event: Optional[Candidate] = None
    reason: str = ""
    ranking: List[RankingEntry] = field(default_factory=list)
    breakdown: Optional[ScoreBreakdown] = None
    error_code: Optional[str] = None
    notice: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        event = None
        if self.event is not None:
            event = {
                "id": str(self.event.id),
                "name": self.event.name,
                "deadline": self.event.deadline.isoformat() if self.event.deadline else None,
                "estimated_hours": self.event.estimated_hours,
                "difficulty": self.event.difficulty,
            }
        return {
            "outcome": self.outcome,
            "method": self.method,
            "message": self.message,
            "event": event,
            "reason": self.reason,
            "ranking": [entry.to_dict() for entry in self.ranking],
            "breakdown": self.breakdown.to_dict() if self.breakdown else None,
            "error_code": self.error_code,
            "notice": self.notice,
        }


class RecommendationOrchestrator:
    """
    The central coordination layer for "what should I start now".

    Hybrid path: rule pre-filter -> remote reranker -> response parser.
    Any failure on that path is logged and replaced by the local ranker run
    over the FULL candidate set, so a recommendation is produced whenever
    at least one pending event exists. Only an empty candidate set yields
    the "nothing to do" outcome.
    """

    def __init__(
        self,
        reranker: Optional[ExternalReranker] = None,
        memory: Optional[RecencyMemory] = None,
        weights: Optional[ScoringWeights] = None,
        shortlist_size: Optional[int] = None,
        use_remote: Optional[bool] = None,
        skip_ai_init: bool = False,
    ):
        """
        Args:
            reranker: Remote reranker. Built from settings unless skip_ai_init.
            memory: Recency memory shared with other flows; a private one otherwise.
            weights: Local ranker weights. Defaults to the algorithm preset with
                settings.RECOMMENDER_WEIGHTS applied.
            shortlist_size: Pre-filter top-K. Falls back to settings.RECOMMENDER_SHORTLIST_SIZE.
            use_remote: Default for ``recommend``. Falls back to settings.RECOMMENDER_USE_REMOTE.
            skip_ai_init: Never construct a reranker (tests, offline use).
        """
        if reranker is None and not skip_ai_init:
            reranker = ExternalReranker()
        self.ai_service = reranker
        self.ai_available = bool(reranker is not None and reranker.is_configured)

        if memory is None:
            memory = RecencyMemory(getattr(settings, "RECOMMENDER_RECENCY_SIZE", DEFAULT_CAPACITY))
        self.memory = memory

        if weights is None:
            weights = ScoringWeights.algorithm().with_overrides(
                getattr(settings, "RECOMMENDER_WEIGHTS", None)
            )
        self.local_ranker = LocalRanker(weights=weights, memory=memory)

        if shortlist_size is None:
            shortlist_size = getattr(settings, "RECOMMENDER_SHORTLIST_SIZE", DEFAULT_TOP_K)
        self.prefilter = RulePreFilter(top_k=shortlist_size)

        if use_remote is None:
            use_remote = getattr(settings, "RECOMMENDER_USE_REMOTE", True)
        self.use_remote = bool(use_remote)

    def recommend(
        self,
        candidates: Sequence[Candidate],
        state: UserState,
        use_remote: Optional[bool] = None,
    ) -> Recommendation:
        candidates = list(candidates)
        if not candidates:
            logger.info("Orchestrator: no pending events, nothing to recommend")
            return Recommendation(
                outcome=OUTCOME_NOTHING_TO_DO,
                method=METHOD_NONE,
                message=NOTHING_TO_DO_MESSAGE,
            )

        want_remote = self.use_remote if use_remote is None else use_remote
        if not want_remote:
            return self._recommend_local(candidates, state, METHOD_LOCAL, REASON_LOCAL)

        if not self.ai_available:
            error = self.ai_service.configuration_error if self.ai_service else None
            logger.warning(f"Orchestrator: remote ranking unavailable ({error or 'no reranker'})")
            return self._recommend_local(
                candidates,
                state,
                METHOD_LOCAL,
                REASON_LOCAL,
                error_code=RerankerNotConfigured.error_code,
                notice=NOTICE_MISSING_KEY,
            )

        # --- HYBRID PATH, WITH LOCAL FALLBACK ---
        try:
            return self._recommend_hybrid(candidates, state)
        except UnknownChosenIdentifier as e:
            logger.warning(f"Orchestrator: {e}. Falling back to local ranking.")
            return self._recommend_local(
                candidates, state, METHOD_FALLBACK, REASON_FALLBACK_UNKNOWN_ID, error_code=e.error_code
            )
        except HybridRankingError as e:
            logger.warning(f"Orchestrator: hybrid ranking failed [{e.error_code}]: {e}")
            return self._recommend_local(
                candidates, state, METHOD_FALLBACK, REASON_FALLBACK_ERROR, error_code=e.error_code
            )
        except Exception as e:
            logger.exception(f"Orchestrator: unexpected hybrid pipeline failure: {str(e)}")
            return self._recommend_local(
                candidates, state, METHOD_FALLBACK, REASON_FALLBACK_ERROR, error_code="UNEXPECTED_ERROR"
            )

    def _recommend_hybrid(self, candidates: List[Candidate], state: UserState) -> Recommendation:
        shortlist = self.prefilter.shortlist(candidates, state)
        completion = self.ai_service.request_ranking(shortlist, state)

        by_id = {candidate.id: candidate for candidate in shortlist}
        result = parse_ranking_response(completion.text, known_ids=by_id.keys())
        chosen = by_id[result.chosen.event_id]

        logger.info(f"Orchestrator: hybrid ranking picked '{chosen.name}' ({chosen.id})")
        return Recommendation(
            outcome=OUTCOME_RECOMMENDED,
            method=METHOD_HYBRID,
            message=summary_line(chosen),
            event=chosen,
            reason=f"AI: {result.chosen.reason}",
            ranking=result.ranking,
        )

    def _recommend_local(
        self,
        candidates: List[Candidate],
        state: UserState,
        method: str,
        reason: str,
        error_code: Optional[str] = None,
        notice: Optional[str] = None,
    ) -> Recommendation:
        local = self.local_ranker.rank(candidates, state)
        ranking = [
            RankingEntry(event_id=candidate.id, score=round(breakdown.total, 4), reason="")
            for candidate, breakdown in local.ranked
        ]
        return Recommendation(
            outcome=OUTCOME_RECOMMENDED,
            method=method,
            message=summary_line(local.winner),
            event=local.winner,
            reason=reason,
            ranking=ranking,
            breakdown=local.breakdown,
            error_code=error_code,
            notice=notice,
        )

    def health_check(self) -> Dict[str, Any]:
        return {
            "orchestrator": "healthy",
            "rules_engine": "healthy",
            "ai_available": self.ai_available,
            "ai_service": self.ai_service.health_check() if self.ai_service else None,
            "shortlist_size": self.prefilter.top_k,
            "recency_size": len(self.memory),
            "weights": self.local_ranker.weights.to_dict(),
        }
