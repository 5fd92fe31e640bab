# scheduler/status.py
"""
Appointment status relative to "now", and calendar-day matching.

Two classifiers coexist and callers pick one:

* `timezone_status_classifier(zone)` - the sidebar/day view rule. Only
  "upcoming" or "completed"; the viewer's zone decides what "now" is.
* `three_state_status` - the generic block rule, which also knows
  "ongoing" (start <= now <= end).

Both have the signature ``(appointment, now) -> Status`` so the placement
engine can take either.
"""

from __future__ import annotations

from datetime import datetime as _dt
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional

from scheduler.timecodec import now_in_zone, parse_date, parse_instant, resolve_zone


class Status(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"


StatusClassifier = Callable[[Any, Optional[_dt]], Status]


def _start_of(appointment: Any) -> Any:
    return getattr(appointment, "start_time", appointment)


def _end_of(appointment: Any) -> Any:
    return getattr(appointment, "end_time", None)


def timezone_status_classifier(time_zone_id: Optional[str]) -> StatusClassifier:
    """
    Two-state classifier bound to the viewer's zone.

    With a zone, "now" is converted into it and a start strictly after that
    wall-clock time is upcoming. Without one, a start strictly before local
    now is completed. A start that cannot be read is completed.
    """
    zone = resolve_zone(time_zone_id)

    def classify(appointment: Any, now: Optional[_dt] = None) -> Status:
        start = parse_instant(_start_of(appointment))
        if start is None:
            return Status.COMPLETED
        if zone is None:
            local_now = now_in_zone(None, now)
            return Status.COMPLETED if start < local_now else Status.UPCOMING
        zone_now = now_in_zone(time_zone_id, now)
        return Status.UPCOMING if start > zone_now else Status.COMPLETED

    return classify


def three_state_status(appointment: Any, now: Optional[_dt] = None) -> Status:
    start = parse_instant(_start_of(appointment))
    end = parse_instant(_end_of(appointment))
    current = now_in_zone(None, now)
    if start is None:
        return Status.COMPLETED
    if current < start:
        return Status.UPCOMING
    if end is not None and start <= current <= end:
        return Status.ONGOING
    return Status.COMPLETED


def is_same_calendar_day(value: Any, reference_date: Any) -> bool:
    """
    True when `value` (a datetime or ISO string) falls on the local calendar
    date of `reference_date`. Instants are not compared, only dates.
    """
    instant = parse_instant(value)
    ref = parse_date(reference_date)
    if instant is None or ref is None:
        return False
    return instant.date() == ref


def is_viewing_today(time_zone_id: Optional[str], selected_date: Any, now: Optional[_dt] = None) -> bool:
    """
    Whether the selected day is "today" in the viewer's zone.
    Always False for a viewer without a configured zone.
    """
    if resolve_zone(time_zone_id) is None:
        return False
    selected = parse_date(selected_date)
    if selected is None:
        return False
    return now_in_zone(time_zone_id, now).date() == selected


def upcoming_for_day(
    appointments: Iterable[Any],
    selected_date: Any,
    classifier: StatusClassifier,
    now: Optional[_dt] = None,
) -> List[Any]:
    """Sidebar list: the selected day's appointments that have not started."""
    return [
        a for a in appointments
        if is_same_calendar_day(_start_of(a), selected_date)
        and classifier(a, now) is Status.UPCOMING
    ]
