# scheduler/recurrence.py
"""
Recurrence model for appointments.

The wire format carries recurrence as a small integer. `Recurrence` is the
one place that maps between that integer, the label the edit dialog shows,
and the enum used everywhere else. Unknown codes decode to NONE: recurrence
is scheduling metadata here, not something worth failing a load over.

The expansion helpers return the concrete occurrences of a recurring
appointment; the store materializes recurring creates with them and a UI
can use them to preview a series.
"""

from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, timedelta
from enum import IntEnum
from typing import Any, List, Optional, Tuple

MAX_OCCURRENCES = 100
DEFAULT_SPAN_MONTHS = 3
END_OF_DAY = "T23:59:59"


class Recurrence(IntEnum):
    NONE = 0
    DAILY = 1
    WEEKLY = 2
    MONTHLY = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def decode(cls, code: Any) -> "Recurrence":
        """
        int, numeric string or label -> member. Anything unrecognized is NONE.
        """
        if isinstance(code, Recurrence):
            return code
        if isinstance(code, bool):
            return cls.NONE
        if isinstance(code, int):
            try:
                return cls(code)
            except ValueError:
                return cls.NONE
        if isinstance(code, str):
            text = code.strip()
            if text.lstrip("-").isdigit():
                return cls.decode(int(text))
            return _LABELS.get(text.lower(), cls.NONE)
        return cls.NONE

    @classmethod
    def encode(cls, value: Any) -> int:
        """Label or member -> wire integer; unknown labels encode to 0."""
        return int(cls.decode(value))


_LABELS = {member.label.lower(): member for member in Recurrence}

RECURRENCE_LABELS: List[str] = [member.label for member in Recurrence]


# ---------- wire serialization ----------
def serialize_interval(recurrence: Any, raw: Any) -> Optional[int]:
    """
    Interval as sent to the store: a positive int while recurrence is set,
    otherwise None. A cleared field ("" / None / 0) is None, never 0.
    """
    if Recurrence.decode(recurrence) is Recurrence.NONE:
        return None
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
        try:
            raw = int(raw)
        except ValueError:
            return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def serialize_end_date(value: Any) -> Optional[str]:
    """
    ``YYYY-MM-DDT23:59:59`` so the end date itself still falls inside the
    series, or None when there is no end date.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        d = value.date()
    elif isinstance(value, date):
        d = value
    elif isinstance(value, str):
        try:
            d = date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    else:
        return None
    return d.isoformat() + END_OF_DAY


# ---------- expansion ----------
def add_months(d: datetime, months: int) -> datetime:
    """Shift by whole months, clamping the day (Jan 31 + 1 month -> Feb 28/29)."""
    total = d.month - 1 + months
    year = d.year + total // 12
    month = total % 12 + 1
    day = min(d.day, monthrange(year, month)[1])
    return d.replace(year=year, month=month, day=day)


def expand_daily_until(start: datetime, until_date: date, interval_days: int = 1) -> List[datetime]:
    """
    DAILY every 'interval_days' days, inclusive of until_date.
    """
    out: List[datetime] = []
    step = timedelta(days=max(1, interval_days))
    d = start
    while d.date() <= until_date and len(out) < MAX_OCCURRENCES:
        out.append(d)
        d += step
    return out


def expand_weekly_until(start: datetime, until_date: date, interval_weeks: int = 1) -> List[datetime]:
    """
    WEEKLY on the start's weekday, every 'interval_weeks' weeks, inclusive.
    """
    return expand_daily_until(start, until_date, 7 * max(1, interval_weeks))


def expand_monthly_until(start: datetime, until_date: date, interval_months: int = 1) -> List[datetime]:
    """
    MONTHLY on the start's day of month (clamped to shorter months).
    Each occurrence is computed from `start`, so a 31st keeps coming back
    as the 31st after a short month.
    """
    out: List[datetime] = []
    step = max(1, interval_months)
    n = 0
    d = start
    while d.date() <= until_date and len(out) < MAX_OCCURRENCES:
        out.append(d)
        n += 1
        d = add_months(start, n * step)
    return out


def expand_occurrences(
    start: datetime,
    end: datetime,
    recurrence: Any,
    interval: Optional[int] = None,
    until: Optional[date] = None,
) -> List[Tuple[datetime, datetime]]:
    """
    Concrete (start, end) pairs of a series. Duration is carried over from
    the first occurrence. `until` defaults to three months after `start`;
    at most MAX_OCCURRENCES pairs are returned.
    """
    kind = Recurrence.decode(recurrence)
    duration = end - start
    if kind is Recurrence.NONE:
        return [(start, end)]

    step = interval if isinstance(interval, int) and interval > 0 else 1
    if until is None:
        until = add_months(start, DEFAULT_SPAN_MONTHS).date()
    elif isinstance(until, datetime):
        until = until.date()

    if kind is Recurrence.DAILY:
        starts = expand_daily_until(start, until, step)
    elif kind is Recurrence.WEEKLY:
        starts = expand_weekly_until(start, until, step)
    else:
        starts = expand_monthly_until(start, until, step)
    return [(s, s + duration) for s in starts]
