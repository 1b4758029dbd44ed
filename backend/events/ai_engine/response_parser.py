# events/ai_engine/response_parser.py
"""
Response Parser
===============

Turns the free-form text returned by the completion endpoint into a
validated ``RankingResult``.

The model is asked for strict JSON, but replies may still be wrapped in
prose or code fences. Extraction therefore tries the whole text first and
then the first balanced ``{...}`` object found in it.

Validation rules:
- ``chosen.chosenEventId`` must be a UUID and ``chosen.reason`` a string.
  Anything else raises ``MalformedChosen``.
- ``ranking`` is optional. Entries with an unparseable id are dropped
  silently, as are entries for ids outside ``known_ids`` when given.
- With ``known_ids``, a chosen id outside the set raises
  ``UnknownChosenIdentifier``.
"""

from __future__ import annotations

import json
import logging
import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Collection, List, Optional

from .exceptions import MalformedChosen, NoValidJson, UnknownChosenIdentifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChosenEvent:
    event_id: uuid.UUID
    reason: str


@dataclass(frozen=True)
class RankingEntry:
    event_id: uuid.UUID
    score: Optional[float]
    reason: str

    def to_dict(self) -> dict:
        return {"event_id": str(self.event_id), "score": self.score, "reason": self.reason}


@dataclass(frozen=True)
class RankingResult:
    chosen: ChosenEvent
    ranking: List[RankingEntry] = field(default_factory=list)


# ---------------------------------------------------------------------------
# JSON extraction
# ---------------------------------------------------------------------------


def first_balanced_object(text: str) -> Optional[str]:
    """
    Return the first complete top-level ``{...}`` substring, or None.

    Braces inside string literals are ignored once an object has been
    opened. A ``}`` seen before any ``{`` is ignored.
    """
    depth = 0
    start = None
    in_string = False
    escape_next = False

    for i, ch in enumerate(text):
        if depth > 0:
            if escape_next:
                escape_next = False
                continue
            if ch == "\\" and in_string:
                escape_next = True
                continue
            if ch == '"':
                in_string = not in_string
                continue
            if in_string:
                continue
        if ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0 and start is not None:
                return text[start : i + 1]
    return None


def extract_json_object(text: Optional[str]) -> dict:
    """
    Extract the first JSON object from ``text``.

    Raises:
        NoValidJson: If neither the whole text nor its first balanced object parses.
    """
    if not text or not text.strip():
        raise NoValidJson("Model returned an empty response")

    try:
        data = json.loads(text)
        if isinstance(data, dict):
            return data
    except json.JSONDecodeError:
        pass

    blob = first_balanced_object(text)
    if blob is not None:
        try:
            data = json.loads(blob)
            if isinstance(data, dict):
                return data
        except json.JSONDecodeError as e:
            logger.debug(f"ResponseParser: balanced object failed to parse: {e}")

    raise NoValidJson("Model did not return valid JSON")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _parse_uuid(value: Any) -> Optional[uuid.UUID]:
    if not isinstance(value, str):
        return None
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        return None


def _parse_score(value: Any) -> Optional[float]:
    # bool is an int subclass but never a meaningful score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    # json.loads accepts NaN and Infinity, which are not valid JSON on the way out
    if not math.isfinite(value):
        return None
    return float(value)


def parse_ranking_response(
    text: Optional[str],
    known_ids: Optional[Collection[uuid.UUID]] = None,
) -> RankingResult:
    data = extract_json_object(text)

    chosen = data.get("chosen")
    if not isinstance(chosen, dict):
        raise MalformedChosen("Missing 'chosen' object in model response")

    chosen_id = _parse_uuid(chosen.get("chosenEventId"))
    reason = chosen.get("reason")
    if chosen_id is None or not isinstance(reason, str):
        raise MalformedChosen("Invalid chosen JSON: need a UUID 'chosenEventId' and a string 'reason'")

    if known_ids is not None and chosen_id not in known_ids:
        raise UnknownChosenIdentifier(
            f"Model chose {chosen_id}, which was not among the candidates sent",
            event_id=chosen_id,
        )

    ranking: List[RankingEntry] = []
    raw_ranking = data.get("ranking")
    if isinstance(raw_ranking, list):
        for item in raw_ranking:
            if not isinstance(item, dict):
                continue
            entry_id = _parse_uuid(item.get("eventId", item.get("id")))
            if entry_id is None:
                continue
            if known_ids is not None and entry_id not in known_ids:
                logger.debug(f"ResponseParser: dropping ranking entry for unknown id {entry_id}")
                continue
            entry_reason = item.get("reason")
            ranking.append(
                RankingEntry(
                    event_id=entry_id,
                    score=_parse_score(item.get("score")),
                    reason=entry_reason if isinstance(entry_reason, str) else "",
                )
            )

    return RankingResult(chosen=ChosenEvent(event_id=chosen_id, reason=reason), ranking=ranking)
