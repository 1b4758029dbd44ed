# events/ai_engine/scoring.py
"""
Scoring Function
================

Pure, deterministic scoring of one candidate event against one user-state
snapshot. The only shared state read is the (optional) recency memory.

    total = w.urgency        * urgency
          + w.duration_fit   * duration_fit
          + w.difficulty_fit * difficulty_fit
          + w.quick_wins     * quick_wins
          + w.variety        * variety
          + due_today_boost + overdue_adjustment

Which overdue handling and which duration-fit model apply is decided by
the ``ScoringWeights`` passed in (see ``weights.py``).
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional, Tuple

from .context import (
    Candidate,
    DifficultyLevel,
    EmotionBucket,
    UserState,
    classify_difficulty,
)
from .recency import RecencyMemory
from .urgency import compute_urgency, is_due_today, is_overdue
from .weights import DurationFitMode, ScoringWeights

logger = logging.getLogger(__name__)


# Preferred task length by emotion bucket, in hours
PREFERRED_DURATION_HOURS = {
    EmotionBucket.STRESSED: 0.5,
    EmotionBucket.NEUTRAL: 1.5,
    EmotionBucket.ENERGIZED: 2.0,
}

PREFERRED_DIFFICULTY = {
    EmotionBucket.STRESSED: DifficultyLevel.EASY,
    EmotionBucket.NEUTRAL: DifficultyLevel.MEDIUM,
    EmotionBucket.ENERGIZED: DifficultyLevel.HARD,
}

_DIFFICULTY_RANK = {
    DifficultyLevel.EASY: 0,
    DifficultyLevel.MEDIUM: 1,
    DifficultyLevel.HARD: 2,
}

# Indexed by |preferred rank - actual rank|
DIFFICULTY_FIT_BY_DISTANCE = (1.0, 0.6, 0.25)

MIN_TARGET_HOURS = 0.25
MAX_PHYSIOLOGY_SHIFT = 0.75
MAX_PHYSIOLOGY_TILT = 0.25


@dataclass(frozen=True)
class ScoreBreakdown:
    urgency: float
    duration_fit: float
    difficulty_fit: float
    quick_wins: float
    variety: float
    due_today_boost: float
    overdue_adjustment: float
    total: float

    def to_dict(self) -> dict:
        return {k: round(v, 4) for k, v in asdict(self).items()}


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


def quick_wins_score(estimated_hours: Optional[float], missing: float = 0.3) -> float:
    """Step function favouring small tasks."""
    if estimated_hours is None:
        return missing
    if estimated_hours <= 0.5:
        return 1.0
    if estimated_hours <= 1.0:
        return 0.6
    return 0.2


def physiology_shift(heart_rate: Optional[float], hrv: Optional[float]) -> float:
    """Hours to add to the preferred duration. Negative means shorter."""
    shift = 0.0
    if heart_rate is not None:
        if heart_rate >= 90:
            shift -= 0.5
        elif heart_rate >= 80:
            shift -= 0.25
        elif heart_rate <= 60:
            shift += 0.15
    if hrv is not None:
        if hrv < 25:
            shift -= 0.35
        elif hrv > 60:
            shift += 0.20
    return max(-MAX_PHYSIOLOGY_SHIFT, min(MAX_PHYSIOLOGY_SHIFT, shift))


def physiology_difficulty_tilt(heart_rate: Optional[float], hrv: Optional[float]) -> float:
    """High heart rate and low HRV tilt the fit towards easier tasks."""
    tilt = 0.0
    if heart_rate is not None:
        if heart_rate >= 90:
            tilt -= 0.20
        elif heart_rate >= 80:
            tilt -= 0.10
        elif heart_rate <= 60:
            tilt += 0.05
    if hrv is not None:
        if hrv < 25:
            tilt -= 0.15
        elif hrv > 60:
            tilt += 0.10
    return max(-MAX_PHYSIOLOGY_TILT, min(MAX_PHYSIOLOGY_TILT, tilt))


def target_duration_hours(state: UserState) -> float:
    base = PREFERRED_DURATION_HOURS[state.bucket]
    shift = physiology_shift(state.heart_rate_bpm, state.hrv_sdnn_ms)
    return max(MIN_TARGET_HOURS, base + shift)


def duration_fit_score(
    estimated_hours: Optional[float],
    state: UserState,
    mode: DurationFitMode,
    missing: float = 0.3,
) -> float:
    if mode == DurationFitMode.BUCKETED:
        return quick_wins_score(estimated_hours, missing)
    if estimated_hours is None:
        return missing
    diff = estimated_hours - target_duration_hours(state)
    return 1.0 / (1.0 + diff * diff)


def difficulty_fit_score(
    difficulty: Optional[str],
    state: UserState,
    with_physiology: bool = False,
) -> float:
    preferred = PREFERRED_DIFFICULTY[state.bucket]
    actual = classify_difficulty(difficulty)
    distance = abs(_DIFFICULTY_RANK[preferred] - _DIFFICULTY_RANK[actual])
    base = DIFFICULTY_FIT_BY_DISTANCE[distance]
    if not with_physiology:
        return base
    tilt = physiology_difficulty_tilt(state.heart_rate_bpm, state.hrv_sdnn_ms)
    return max(0.0, min(1.0, base + tilt))


def date_modifiers(candidate: Candidate, state: UserState, weights: ScoringWeights) -> Tuple[float, float]:
    """Return ``(due_today_boost, overdue_adjustment)``."""
    if candidate.deadline is None:
        return 0.0, 0.0
    due_today = is_due_today(candidate.deadline, state.now)
    overdue = is_overdue(candidate.deadline, state.now)
    if not weights.stack_date_modifiers and due_today:
        overdue = False
    return (
        weights.due_today_boost if due_today else 0.0,
        weights.overdue_adjustment if overdue else 0.0,
    )


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def score_candidate(
    candidate: Candidate,
    state: UserState,
    weights: Optional[ScoringWeights] = None,
    memory: Optional[RecencyMemory] = None,
) -> ScoreBreakdown:
    w = weights or ScoringWeights.algorithm()

    urgency = compute_urgency(
        candidate.deadline,
        now=state.now,
        overdue_policy=w.overdue_policy,
        horizon_days=w.horizon_days,
        exponent=w.urgency_exponent,
        missing_deadline_urgency=w.missing_deadline_urgency,
    )
    duration = duration_fit_score(
        candidate.estimated_hours, state, w.duration_fit_mode, w.missing_effort_fit
    )
    difficulty = difficulty_fit_score(candidate.difficulty, state, w.physiology_tilt)
    quick = quick_wins_score(candidate.estimated_hours, w.missing_effort_fit)
    variety = memory.repetition_penalty(candidate.id) if memory is not None else 0.0
    due_today_boost, overdue_adjustment = date_modifiers(candidate, state, w)

    total = (
        w.urgency * urgency
        + w.duration_fit * duration
        + w.difficulty_fit * difficulty
        + w.quick_wins * quick
        + w.variety * variety
        + due_today_boost
        + overdue_adjustment
    )

    return ScoreBreakdown(
        urgency=urgency,
        duration_fit=duration,
        difficulty_fit=difficulty,
        quick_wins=quick,
        variety=variety,
        due_today_boost=due_today_boost,
        overdue_adjustment=overdue_adjustment,
        total=total,
    )
