from __future__ import annotations

import re
from datetime import datetime

_DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

_RANGE_RE = re.compile(
    r"(\d{1,2}):?(\d{0,2})\s*(am|pm)?\s*-\s*(\d{1,2}):?(\d{0,2})\s*(am|pm)",
    re.IGNORECASE,
)


def _to_minutes(hour: str, minute: str, period: str | None) -> int:
    h = int(hour)
    if period:
        period = period.lower()
        if period == "pm" and h != 12:
            h += 12
        elif period == "am" and h == 12:
            h = 0
    return h * 60 + int(minute or 0)


def is_business_open(
    hours: str | None,
    days_closed: str | None = None,
    now: datetime | None = None,
) -> bool:
    """
    Best-effort check of free-text business hours against ``now``.

    Only the first ``9am - 5pm`` style range is considered. Anything that
    cannot be parsed counts as closed.
    """
    if not hours:
        return False
    now = now or datetime.now()

    if days_closed:
        closed = days_closed.lower()
        if _DAY_NAMES[now.weekday()] in closed or "daily" in closed:
            return False

    text = hours.lower()
    if "24" in text and ("7" in text or "hour" in text):
        return True
    if "closed" in text:
        return False

    match = _RANGE_RE.search(text)
    if not match:
        return False

    start_h, start_m, start_period, end_h, end_m, end_period = match.groups()
    opens = _to_minutes(start_h, start_m, start_period)
    closes = _to_minutes(end_h, end_m, end_period)
    current = now.hour * 60 + now.minute

    # Overnight ranges such as 10pm - 2am
    if closes < opens:
        return current >= opens or current <= closes
    return opens <= current <= closes
