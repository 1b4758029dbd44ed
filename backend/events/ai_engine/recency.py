# events/ai_engine/recency.py

import logging
import threading
import uuid
from collections import deque
from typing import List

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10

# Penalty by distance from the most recent pick; fades quickly
REPETITION_PENALTIES = {0: -0.10, 1: -0.06, 2: -0.03}


class RecencyMemory:
    """
    Bounded FIFO of recently picked event ids, used to discourage
    recommending the same event over and over.

    Lives in memory for the lifetime of its owner and is never persisted.
    All access goes through a single lock so concurrent recommendation
    flows can read and append safely.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("RecencyMemory capacity must be at least 1")
        self.capacity = capacity
        self._picked: deque = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def mark_picked(self, event_id: uuid.UUID) -> None:
        with self._lock:
            self._picked.append(event_id)
        logger.debug(f"RecencyMemory: recorded pick {event_id}")

    def repetition_penalty(self, event_id: uuid.UUID) -> float:
        with self._lock:
            picked = list(self._picked)
        for distance, seen in enumerate(reversed(picked)):
            if seen == event_id:
                return REPETITION_PENALTIES.get(distance, 0.0)
        return 0.0

    def snapshot(self) -> List[uuid.UUID]:
        with self._lock:
            return list(self._picked)

    def clear(self) -> None:
        with self._lock:
            self._picked.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._picked)
