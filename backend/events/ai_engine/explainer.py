# events/ai_engine/explainer.py

import logging
from typing import Any, Dict, List, Optional

from django.conf import settings
from openai import OpenAI, OpenAIError

from .context import Candidate, EmotionBucket, UserState, classify_difficulty
from .urgency import days_until

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a concise, supportive study coach. Explain in 1-3 sentences "
    "why the suggested task is a good choice *right now* given the user's current emotion, "
    "the deadline urgency, the time needed, and the difficulty. "
    "Be empathetic but direct; include one actionable next step "
    "(e.g., 'start with a 10-minute focus block'). "
    "Output plain text only (no bullets, no markdown)."
)

HEURISTICS_NOTE = """Heuristics used by the backend:
- Prioritize earlier deadlines.
- Match difficulty to state: stressed -> easy first, neutral -> medium, energized -> hard.
- Favour quick wins when stressed; allow longer tasks when energized."""

_NEXT_STEP = {
    EmotionBucket.STRESSED: "Start with a 10-minute focus block and stop there if you need to.",
    EmotionBucket.NEUTRAL: "Set a 25-minute timer and work through the first chunk.",
    EmotionBucket.ENERGIZED: "Block out a full session and tackle the hardest part first.",
}


class RecommendationExplainer:
    """
    Produces a short, friendly explanation of why a recommended event fits
    the moment. Uses the chat model when configured and always falls back
    to a locally composed explanation, so ``explain`` never raises.
    """

    DEFAULT_MODEL: str = "gpt-4o"
    DEFAULT_TEMPERATURE: float = 0.4
    DEFAULT_MAX_TOKENS: int = 300
    DEFAULT_TIMEOUT: float = 20.0

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.model = model or getattr(settings, "EXPLAINER_MODEL", None) or self.DEFAULT_MODEL
        self.timeout = float(
            timeout if timeout is not None
            else getattr(settings, "RECOMMENDER_TIMEOUT", None) or self.DEFAULT_TIMEOUT
        )
        self.client: Optional[OpenAI] = None

        resolved_key = api_key or getattr(settings, "OPENAI_API_KEY", None) or ""
        if resolved_key:
            try:
                self.client = OpenAI(api_key=resolved_key, max_retries=0)
            except Exception as e:
                logger.error(f"RecommendationExplainer: failed to initialize OpenAI client: {e}")

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def explain(self, candidate: Candidate, state: UserState) -> str:
        if self.client is None:
            return self.local_explanation(candidate, state)

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self._build_messages(candidate, state),
                temperature=self.DEFAULT_TEMPERATURE,
                max_tokens=self.DEFAULT_MAX_TOKENS,
                timeout=self.timeout,
            )
            text = (response.choices[0].message.content or "").strip() if response.choices else ""
        except OpenAIError as e:
            logger.warning(f"RecommendationExplainer: model call failed, using local text: {e}")
            return self.local_explanation(candidate, state)
        except Exception as e:
            logger.exception(f"RecommendationExplainer: unexpected failure, using local text: {str(e)}")
            return self.local_explanation(candidate, state)

        if not text:
            logger.warning("RecommendationExplainer: empty completion, using local text")
            return self.local_explanation(candidate, state)
        return text

    def _build_messages(self, candidate: Candidate, state: UserState) -> List[Dict[str, Any]]:
        deadline = f"{candidate.deadline:%b %d, %Y}" if candidate.deadline else "none"
        hours = f"{candidate.estimated_hours:.1f}" if candidate.estimated_hours is not None else "unknown"
        user_content = (
            f"CurrentEmotion: {state.emotion}\n"
            "RecommendedEvent:\n"
            f"- name: {candidate.name}\n"
            f"- deadline: {deadline}\n"
            f"- estimatedHours: {hours}\n"
            f"- difficulty: {candidate.difficulty or 'unspecified'}\n\n"
            f"{HEURISTICS_NOTE}"
        )
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": user_content},
        ]

    @staticmethod
    def local_explanation(candidate: Candidate, state: UserState) -> str:
        parts = []
        if candidate.deadline is not None:
            days = days_until(candidate.deadline, state.now)
            if days < 0:
                parts.append(f"'{candidate.name}' is already overdue, so clearing it now takes the pressure off.")
            elif days < 1:
                parts.append(f"'{candidate.name}' is due within a day, so it is the most pressing item.")
            else:
                parts.append(f"'{candidate.name}' is due in about {round(days)} days.")
        else:
            parts.append(f"'{candidate.name}' has no hard deadline, which makes it a low-pressure start.")

        difficulty = classify_difficulty(candidate.difficulty).value
        if candidate.estimated_hours is not None:
            parts.append(
                f"At {difficulty} difficulty and roughly {candidate.estimated_hours:g}h, "
                f"it suits feeling {state.emotion.lower() or 'the way you do'} right now."
            )
        parts.append(_NEXT_STEP[state.bucket])
        return " ".join(parts)
