# events/ai_engine/external_reranker.py
"""
External Reranker
=================

Service layer for AI-assisted reranking of a shortlist via the OpenAI
Chat Completions API.

This module is a pure service with NO Django ORM dependencies.
It handles prompt engineering and API communication; turning the reply
into a ranking is the job of ``response_parser``.

Design Principles:
------------------
1. Single Responsibility: Only handles OpenAI communication
2. Minimal Payload: Candidates are reduced to id, name, deadline,
   estimated hours and difficulty before transmission
3. Typed Failures: Every failure raises a ``HybridRankingError`` subclass
   that the orchestrator converts into a local fallback
4. Fail-Safe Initialization: Never crashes on missing API key
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from django.conf import settings
from openai import APIConnectionError, APIStatusError, APITimeoutError, OpenAI

from .context import Candidate, UserState
from .exceptions import (
    EmptyCandidates,
    EmptyCompletion,
    RerankerNotConfigured,
    TransportError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are a rigorous task recommender for a focus app.
Return STRICT JSON ONLY, no code fences, no extra text.
JSON shape:
{
  "chosen": { "chosenEventId": "<UUID>", "reason": "<short>" },
  "ranking": [
    { "eventId": "<UUID>", "score": <number|null>, "reason": "<short>" }
  ]
}
Rules:
- Choose ONE best event to start now.
- Prefer: near deadlines, fit to emotion/physiology, reasonable difficulty,
  and quick wins when stressed.
- All ids must be from candidates."""


@dataclass(frozen=True)
class CompletionText:
    text: str
    finish_reason: Optional[str] = None


class ExternalReranker:
    """
    Service class that asks a chat model to pick and rank events.

    The class uses DEFERRED INITIALIZATION - it will not raise errors during
    __init__ if the API key is missing. Instead, it tracks its availability
    state and raises ``RerankerNotConfigured`` when a ranking is requested.

    Attributes:
        model (str): The chat model identifier.
        timeout (float): Per-request timeout in seconds.
        is_configured (bool): Whether the reranker is ready for use.
        configuration_error (str | None): Description of configuration issue, if any.

    Example:
        >>> reranker = ExternalReranker()
        >>> if reranker.is_configured:
        ...     completion = reranker.request_ranking(shortlist, state)
    """

    DEFAULT_MODEL: str = "gpt-4o-mini"

    # API call configuration
    DEFAULT_TEMPERATURE: float = 0.2
    DEFAULT_SEED: int = 7
    DEFAULT_TIMEOUT: float = 20.0  # Seconds
    # Retries would stretch the wait past the caller's timeout
    DEFAULT_MAX_RETRIES: int = 0

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **client_kwargs: Any,
    ) -> None:
        """
        Args:
            api_key: OpenAI API key. Falls back to settings.OPENAI_API_KEY.
            model: Chat model identifier. Falls back to settings.RECOMMENDER_MODEL.
            timeout: Request timeout in seconds. Falls back to settings.RECOMMENDER_TIMEOUT.
            max_tokens: Optional output cap. Falls back to settings.RECOMMENDER_MAX_TOKENS.
            **client_kwargs: Additional keyword arguments passed to the OpenAI client.
        """
        self.model: str = model or getattr(settings, "RECOMMENDER_MODEL", None) or self.DEFAULT_MODEL
        self.timeout: float = float(
            timeout if timeout is not None
            else getattr(settings, "RECOMMENDER_TIMEOUT", None) or self.DEFAULT_TIMEOUT
        )
        self.max_tokens: Optional[int] = max_tokens or getattr(settings, "RECOMMENDER_MAX_TOKENS", None)
        client_kwargs.setdefault("max_retries", self.DEFAULT_MAX_RETRIES)
        self._client_kwargs: Dict[str, Any] = client_kwargs

        self.client: Optional[OpenAI] = None
        self.is_configured: bool = False
        self.configuration_error: Optional[str] = None

        self._configure(api_key)

    def _configure(self, api_key: Optional[str] = None) -> None:
        resolved_key = api_key or getattr(settings, "OPENAI_API_KEY", None) or ""
        if not resolved_key:
            self.configuration_error = (
                "OPENAI_API_KEY is not configured. "
                "Set the OPENAI_API_KEY environment variable or Django setting."
            )
            logger.warning(f"ExternalReranker: {self.configuration_error}")
            return

        try:
            self.client = OpenAI(api_key=resolved_key, **self._client_kwargs)
            self.is_configured = True
            self.configuration_error = None
            logger.info(f"ExternalReranker initialized with model={self.model}")
        except Exception as e:
            self.configuration_error = f"Failed to initialize OpenAI client: {str(e)}"
            logger.error(f"ExternalReranker: {self.configuration_error}")
            self.client = None
            self.is_configured = False

    def request_ranking(self, candidates: Sequence[Candidate], state: UserState) -> CompletionText:
        """
        Send the shortlist to the model and return its raw text reply.

        Raises:
            RerankerNotConfigured: No API key or client.
            EmptyCandidates: The shortlist is empty.
            TransportError: Timeout or connection failure.
            UpstreamError: Non-success HTTP status from the API.
            EmptyCompletion: The reply carried no text.
        """
        if not self.is_configured or self.client is None:
            raise RerankerNotConfigured(self.configuration_error or "Reranker not available")
        if not candidates:
            raise EmptyCandidates("No events to rank")

        messages = self._build_messages(candidates, state)
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.DEFAULT_TEMPERATURE,
            "seed": self.DEFAULT_SEED,
            "timeout": self.timeout,
        }
        if self.max_tokens:
            request["max_tokens"] = int(self.max_tokens)

        logger.debug(f"ExternalReranker: ranking {len(candidates)} candidates with {self.model}")

        try:
            response = self.client.chat.completions.create(**request)
        except APITimeoutError as e:
            logger.warning(f"OpenAI API timeout after {self.timeout}s: {e}")
            raise TransportError("API request timed out", timed_out=True) from e
        except APIConnectionError as e:
            logger.error(f"OpenAI connection error: {e}")
            raise TransportError("Could not connect to OpenAI API") from e
        except APIStatusError as e:
            body = e.body if isinstance(e.body, str) else json.dumps(e.body, default=str)
            logger.error(f"OpenAI API status error: {e.status_code} - {body}")
            raise UpstreamError(
                f"OpenAI API error (status {e.status_code})",
                status_code=e.status_code,
                body=body,
            ) from e

        if not response.choices:
            raise EmptyCompletion("Completion contained no choices")
        choice = response.choices[0]
        content = choice.message.content or ""
        if not content.strip():
            raise EmptyCompletion(f"Empty completion (finish_reason={choice.finish_reason})")

        logger.debug(f"ExternalReranker: raw response: {content[:200]}...")
        return CompletionText(text=content, finish_reason=choice.finish_reason)

    def _build_messages(self, candidates: Sequence[Candidate], state: UserState) -> List[Dict[str, str]]:
        payload = {
            "now": state.now.isoformat(),
            "context": state.to_prompt_dict(),
            "candidates": [candidate.to_prompt_dict() for candidate in candidates],
        }
        user_content = (
            "Rank these tasks and select one. Keep JSON strictly valid.\n"
            f"{json.dumps(payload)}"
        )
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": user_content},
        ]

    def health_check(self) -> Dict[str, Any]:
        return {
            "is_configured": self.is_configured,
            "model": self.model,
            "timeout": self.timeout,
            "configuration_error": self.configuration_error,
        }
