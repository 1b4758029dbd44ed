# events/ai_engine/exceptions.py
"""
Recommendation Error Taxonomy
=============================

Only ``EmptyCandidateSet`` is allowed to reach callers as a genuine
"no result" outcome. Everything deriving from ``HybridRankingError`` is
raised inside the hybrid (pre-filter + remote rerank) path and is caught
by the orchestrator, which falls back to the local ranker.

Each hybrid error carries a machine-readable ``error_code`` that is logged
and surfaced on the final recommendation for diagnostics.
"""

from __future__ import annotations

from typing import Optional


class RecommendationError(Exception):
    """Base class for every error raised by the recommendation engine."""

    error_code: str = "RECOMMENDATION_ERROR"


class EmptyCandidateSet(RecommendationError):
    """Raised when a ranking is requested over zero candidate events."""

    error_code = "EMPTY_CANDIDATE_SET"


# ---------------------------------------------------------------------------
# Recoverable hybrid-path failures
# ---------------------------------------------------------------------------


class HybridRankingError(RecommendationError):
    """A failure in the hybrid path. Always recovered locally."""

    error_code = "HYBRID_ERROR"


class RerankerNotConfigured(HybridRankingError):
    """Raised when the remote reranker is used without a credential or client."""

    error_code = "SCORER_NOT_CONFIGURED"


class EmptyCandidates(HybridRankingError):
    """Raised when the remote reranker is handed an empty shortlist."""

    error_code = "EMPTY_CANDIDATES"


class TransportError(HybridRankingError):
    """Network failure or timeout while talking to the completion endpoint."""

    def __init__(self, message: str, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out

    @property
    def error_code(self) -> str:  # type: ignore[override]
        return "TIMEOUT" if self.timed_out else "CONNECTION_ERROR"


class UpstreamError(HybridRankingError):
    """The completion endpoint answered with a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def error_code(self) -> str:  # type: ignore[override]
        if self.status_code is None:
            return "API_ERROR"
        return f"API_ERROR_{self.status_code}"


class EmptyCompletion(HybridRankingError):
    """The first completion choice carried no text content."""

    error_code = "EMPTY_COMPLETION"


class NoValidJson(HybridRankingError):
    """Neither the full text nor its first balanced object parsed as JSON."""

    error_code = "JSON_PARSE_ERROR"


class MalformedChosen(HybridRankingError):
    """The ``chosen`` block is missing, or its id/reason are invalid."""

    error_code = "VALIDATION_ERROR"


class UnknownChosenIdentifier(HybridRankingError):
    """The model chose an id that was not among the candidates sent to it."""

    error_code = "UNKNOWN_CHOSEN_ID"

    def __init__(self, message: str, event_id: Optional[object] = None) -> None:
        super().__init__(message)
        self.event_id = event_id
