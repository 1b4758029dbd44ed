# events/ai_engine/urgency.py
import datetime
from typing import Optional

from .weights import OverduePolicy

# Urgency horizon: events this many days out (or more) have urgency 0
URGENCY_HORIZON_DAYS = 14.0
# Concave easing so near-term deadlines dominate
URGENCY_EXPONENT = 0.7

SECONDS_PER_DAY = 86_400.0


def _align(deadline: datetime.datetime, now: datetime.datetime) -> datetime.datetime:
    """Give a naive deadline the timezone of ``now`` (and vice versa)."""
    if deadline.tzinfo is None and now.tzinfo is not None:
        return deadline.replace(tzinfo=now.tzinfo)
    if deadline.tzinfo is not None and now.tzinfo is None:
        return deadline.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return deadline


def days_until(deadline: datetime.datetime, now: datetime.datetime) -> float:
    """Fractional days from ``now`` to ``deadline`` (negative when overdue)."""
    return (_align(deadline, now) - now).total_seconds() / SECONDS_PER_DAY


def is_overdue(deadline: datetime.datetime, now: datetime.datetime) -> bool:
    return _align(deadline, now) < now


def is_due_today(deadline: datetime.datetime, now: datetime.datetime) -> bool:
    """Same calendar day as ``now``, judged in ``now``'s timezone."""
    aligned = _align(deadline, now)
    if now.tzinfo is not None:
        aligned = aligned.astimezone(now.tzinfo)
    return aligned.date() == now.date()


def compute_urgency(
    deadline: Optional[datetime.datetime],
    now: Optional[datetime.datetime] = None,
    overdue_policy: OverduePolicy = OverduePolicy.CLAMP_TO_ZERO,
    horizon_days: float = URGENCY_HORIZON_DAYS,
    exponent: float = URGENCY_EXPONENT,
    missing_deadline_urgency: float = 0.2,
) -> float:
    """
    Normalized urgency in [0.0, 1.0], closer deadlines scoring higher.

    deadline: aware or naive datetime, or None (neutral urgency)
    overdue_policy: what a deadline at or before ``now`` scores
    """
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)

    if deadline is None:
        return missing_deadline_urgency

    days = days_until(deadline, now)
    if days <= 0:
        if overdue_policy == OverduePolicy.CLAMP_TO_ONE_WITH_SEPARATE_PENALTY:
            return 1.0
        # overdue handled by the separate additive adjustment
        return 0.0

    clamped = max(0.0, min(1.0, 1.0 - days / horizon_days))
    return clamped ** exponent
