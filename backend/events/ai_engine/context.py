# events/ai_engine/context.py
"""
Inputs to the recommendation engine: the candidate schema, the user's
current state, and the coarse classifications both are reduced to.

The engine never touches the ORM. ``events.models.Event.to_candidate()``
produces the ``Candidate`` snapshots scored here.
"""

from __future__ import annotations

import datetime
import enum
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


STRESSED_KEYWORDS = ("anxious", "uneasy", "tired", "distracted", "stressed", "overwhelmed")
ENERGIZED_KEYWORDS = ("alert", "focused", "motivated", "energetic", "energized", "happy")

EASY_KEYWORDS = ("easy", "low", "simple")
HARD_KEYWORDS = ("hard", "high", "difficult")


class EmotionBucket(str, enum.Enum):
    STRESSED = "stressed"
    NEUTRAL = "neutral"
    ENERGIZED = "energized"


class DifficultyLevel(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def classify_emotion(label: Optional[str]) -> EmotionBucket:
    """Map a free-text emotion label to a bucket by keyword containment."""
    lower = (label or "").lower()
    if any(word in lower for word in STRESSED_KEYWORDS):
        return EmotionBucket.STRESSED
    if any(word in lower for word in ENERGIZED_KEYWORDS):
        return EmotionBucket.ENERGIZED
    return EmotionBucket.NEUTRAL


def classify_difficulty(raw: Optional[str]) -> DifficultyLevel:
    """Exact enum match first, then substring heuristics, else medium."""
    lower = (raw or "").strip().lower()
    for level in DifficultyLevel:
        if lower == level.value:
            return level
    if any(word in lower for word in EASY_KEYWORDS):
        return DifficultyLevel.EASY
    if any(word in lower for word in HARD_KEYWORDS):
        return DifficultyLevel.HARD
    return DifficultyLevel.MEDIUM


@dataclass(frozen=True)
class Candidate:
    """Read-only snapshot of a pending event."""

    id: uuid.UUID
    name: str
    deadline: Optional[datetime.datetime] = None
    estimated_hours: Optional[float] = None
    difficulty: Optional[str] = None

    def to_prompt_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name or "Untitled",
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "estimatedHours": self.estimated_hours,
            "difficulty": self.difficulty,
        }


# ---------------------------------------------------------------------------
# Physiology
# ---------------------------------------------------------------------------


class PhysiologyProvider(Protocol):
    def latest_heart_rate(self) -> Optional[float]: ...

    def latest_hrv(self) -> Optional[float]: ...


class StaticPhysiologyProvider:
    """Serves readings supplied up front (e.g. from a request body)."""

    def __init__(self, heart_rate: Optional[float] = None, hrv: Optional[float] = None) -> None:
        self._heart_rate = heart_rate
        self._hrv = hrv

    def latest_heart_rate(self) -> Optional[float]:
        return self._heart_rate

    def latest_hrv(self) -> Optional[float]:
        return self._hrv


def _safe_reading(reader, label: str) -> Optional[float]:
    try:
        value = reader()
    except Exception as e:
        logger.warning(f"Physiology provider failed to read {label}: {e}")
        return None
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric {label} reading: {value!r}")
        return None


@dataclass(frozen=True)
class UserState:
    emotion: str
    heart_rate_bpm: Optional[float] = None
    hrv_sdnn_ms: Optional[float] = None
    now: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    @property
    def bucket(self) -> EmotionBucket:
        return classify_emotion(self.emotion)

    @classmethod
    def capture(
        cls,
        emotion: str,
        provider: Optional[PhysiologyProvider] = None,
        now: Optional[datetime.datetime] = None,
    ) -> "UserState":
        """
        Snapshot the user state. A missing provider, a missing reading or a
        failing provider all mean "no physiology adjustment".
        """
        heart_rate = hrv = None
        if provider is not None:
            heart_rate = _safe_reading(provider.latest_heart_rate, "heart rate")
            hrv = _safe_reading(provider.latest_hrv, "HRV")
        return cls(
            emotion=emotion,
            heart_rate_bpm=heart_rate,
            hrv_sdnn_ms=hrv,
            now=now or datetime.datetime.now(datetime.timezone.utc),
        )

    def to_prompt_dict(self) -> dict:
        return {
            "emotion": self.emotion,
            "heartRateBPM": self.heart_rate_bpm,
            "hrvSDNNms": self.hrv_sdnn_ms,
        }
