# events/ai_engine/ranker.py

import datetime
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .context import Candidate, UserState
from .exceptions import EmptyCandidateSet
from .recency import RecencyMemory
from .scoring import ScoreBreakdown, score_candidate
from .urgency import days_until
from .weights import ScoringWeights

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalRanking:
    winner: Candidate
    breakdown: ScoreBreakdown
    ranked: List[Tuple[Candidate, ScoreBreakdown]]


def _deadline_key(candidate: Candidate, now: datetime.datetime) -> Tuple[int, float]:
    # Events without a deadline sort after every dated one
    if candidate.deadline is None:
        return (1, 0.0)
    # Same timezone alignment as the urgency score
    return (0, days_until(candidate.deadline, now))


class LocalRanker:
    """
    Deterministic ranker over the full candidate set.

    Ordering: highest total score, then earliest deadline, then the order
    the candidates were supplied in. The winner is recorded in the recency
    memory once every candidate has been scored.
    """

    def __init__(
        self,
        weights: Optional[ScoringWeights] = None,
        memory: Optional[RecencyMemory] = None,
    ) -> None:
        self.weights = weights or ScoringWeights.algorithm()
        self.memory = memory

    def score_all(
        self, candidates: Sequence[Candidate], state: UserState
    ) -> List[Tuple[Candidate, ScoreBreakdown]]:
        scored = [
            (index, candidate, score_candidate(candidate, state, self.weights, self.memory))
            for index, candidate in enumerate(candidates)
        ]
        scored.sort(key=lambda item: (-item[2].total, _deadline_key(item[1], state.now), item[0]))
        return [(candidate, breakdown) for _, candidate, breakdown in scored]

    def rank(self, candidates: Sequence[Candidate], state: UserState) -> LocalRanking:
        if not candidates:
            raise EmptyCandidateSet("Cannot rank an empty candidate set")

        ranked = self.score_all(candidates, state)
        winner, breakdown = ranked[0]

        if self.memory is not None:
            self.memory.mark_picked(winner.id)

        logger.info(
            f"LocalRanker: picked '{winner.name}' ({winner.id}) "
            f"with total={breakdown.total:.4f} out of {len(ranked)} candidates"
        )
        return LocalRanking(winner=winner, breakdown=breakdown, ranked=ranked)
