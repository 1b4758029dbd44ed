# events/ai_engine/weights.py
"""
Tunable scoring configuration.

Two presets exist:

- ``ScoringWeights.algorithm()`` drives the local ranker. Overdue events get
  zero urgency plus a negative additive adjustment, and the duration fit is
  a continuous distance to an emotion/physiology-derived target.
- ``ScoringWeights.rule_based()`` drives the rule pre-filter. Overdue events
  saturate urgency at 1.0 and get a positive adjustment, and the duration
  fit is the three-bucket quick-wins rule.
"""

from __future__ import annotations

import dataclasses
import enum
from typing import Any, Mapping, Optional


class OverduePolicy(str, enum.Enum):
    CLAMP_TO_ZERO = "clamp_to_zero"
    CLAMP_TO_ONE_WITH_SEPARATE_PENALTY = "clamp_to_one_with_separate_penalty"


class DurationFitMode(str, enum.Enum):
    BUCKETED = "bucketed"
    CONTINUOUS_TARGET_DISTANCE = "continuous_target_distance"


@dataclasses.dataclass(frozen=True)
class ScoringWeights:
    # Weighted components
    urgency: float = 0.45
    duration_fit: float = 0.20
    difficulty_fit: float = 0.20
    quick_wins: float = 0.10
    variety: float = 0.05

    # Unweighted additive modifiers
    due_today_boost: float = 0.20
    overdue_adjustment: float = -0.30

    # Policies
    overdue_policy: OverduePolicy = OverduePolicy.CLAMP_TO_ZERO
    duration_fit_mode: DurationFitMode = DurationFitMode.CONTINUOUS_TARGET_DISTANCE
    physiology_tilt: bool = True
    stack_date_modifiers: bool = True

    # Urgency curve
    horizon_days: float = 14.0
    urgency_exponent: float = 0.7

    # Neutral stand-ins for missing event attributes
    missing_deadline_urgency: float = 0.2
    missing_effort_fit: float = 0.3

    @classmethod
    def algorithm(cls) -> "ScoringWeights":
        return cls()

    @classmethod
    def rule_based(cls) -> "ScoringWeights":
        return cls(
            urgency=0.60,
            duration_fit=0.15,
            difficulty_fit=0.25,
            quick_wins=0.0,
            variety=0.0,
            due_today_boost=0.20,
            overdue_adjustment=0.30,
            overdue_policy=OverduePolicy.CLAMP_TO_ONE_WITH_SEPARATE_PENALTY,
            duration_fit_mode=DurationFitMode.BUCKETED,
            physiology_tilt=False,
            stack_date_modifiers=False,
        )

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "ScoringWeights":
        """
        Return a copy with the given fields replaced.

        Policy fields accept either the enum member or its string value.

        Raises:
            ValueError: On an unknown field name or an invalid policy value.
        """
        if not overrides:
            return self

        known = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown scoring weight(s): {', '.join(unknown)}")

        changes = dict(overrides)
        if "overdue_policy" in changes:
            changes["overdue_policy"] = OverduePolicy(changes["overdue_policy"])
        if "duration_fit_mode" in changes:
            changes["duration_fit_mode"] = DurationFitMode(changes["duration_fit_mode"])
        for name in ("physiology_tilt", "stack_date_modifiers"):
            if name in changes:
                changes[name] = bool(changes[name])
        for name, value in changes.items():
            if name in ("overdue_policy", "duration_fit_mode", "physiology_tilt", "stack_date_modifiers"):
                continue
            try:
                changes[name] = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"Scoring weight '{name}' must be numeric, got {value!r}")

        if changes.get("horizon_days", self.horizon_days) <= 0:
            raise ValueError("horizon_days must be positive")

        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict:
        data = dataclasses.asdict(self)
        data["overdue_policy"] = self.overdue_policy.value
        data["duration_fit_mode"] = self.duration_fit_mode.value
        return data
