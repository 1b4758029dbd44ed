# events/ai_engine/rules.py

import logging
from typing import List, Optional, Sequence

from .context import Candidate, UserState
from .scoring import score_candidate
from .weights import ScoringWeights

# Configure logging for rule-engine auditing
logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5


class RulePreFilter:
    """
    A cheap rule-based pass that shortlists candidates before the remote
    reranker is invoked, bounding prompt size and cost.

    Simplified score per event:
        0.6 * urgency + 0.25 * difficulty fit + 0.15 * quick wins + date boost

    Missing deadline, effort or difficulty fall back to neutral values
    (urgency 0.2, quick wins 0.3, no boost, medium difficulty).
    """

    def __init__(self, top_k: int = DEFAULT_TOP_K, weights: Optional[ScoringWeights] = None):
        """
        Args:
            top_k: Shortlist size. Values below 1 are treated as 1.
            weights: Rule scoring weights. Defaults to ``ScoringWeights.rule_based()``.
        """
        self.top_k = max(1, int(top_k))
        self.weights = weights or ScoringWeights.rule_based()

    def shortlist(self, candidates: Sequence[Candidate], state: UserState) -> List[Candidate]:
        """Return the top-K candidates, best first. Ties keep input order."""
        if not candidates:
            return []

        scored = [
            (candidate, score_candidate(candidate, state, self.weights).total)
            for candidate in candidates
        ]
        # sorted() is stable, so equal scores stay first-seen first
        scored = sorted(scored, key=lambda item: item[1], reverse=True)
        top = [candidate for candidate, _ in scored[: self.top_k]]

        logger.info(f"RulePreFilter: shortlisted {len(top)} of {len(candidates)} events")
        return top
