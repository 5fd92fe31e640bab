# scheduler/placement.py
"""
Day / week / month placement.

Given the appointment list and a view window, compute where each
appointment goes: pixel offsets on the half-hour day grid, a weekday
column, or a month cell. Nothing here is stored; the UI calls back in on
every render. Records whose start cannot be read simply match no bucket.
"""

from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Union

from config import MIN_BLOCK_HEIGHT_PX, MONTH_CELL_LIMIT, SLOT_HEIGHT_PX, SLOT_MINUTES, SLOTS_PER_DAY
from scheduler.recurrence import add_months
from scheduler.status import (
    Status,
    StatusClassifier,
    is_same_calendar_day,
    is_viewing_today,
    three_state_status,
)
from scheduler.timecodec import (
    duration_height,
    now_in_zone,
    parse_date,
    parse_instant,
    slot_height_offset,
    slot_labels,
)


class ViewMode(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class ViewWindow:
    mode: ViewMode
    anchor_date: date


# -----------------------------
# Layout types
# -----------------------------
@dataclass(frozen=True)
class SlotLayout:
    top: int
    height: int


@dataclass
class Entry:
    appointment: Any
    status: Status


@dataclass
class Placement:
    appointment: Any
    layout: SlotLayout
    status: Status
    highlighted: bool = False


@dataclass
class SlotRow:
    index: int
    start_minutes: int
    label: str


@dataclass
class DayLayout:
    day: date
    slots: List[SlotRow]
    placements: List[Placement]
    now_px: Optional[int] = None


@dataclass
class WeekColumn:
    day: date
    header: str
    entries: List[Entry] = field(default_factory=list)


@dataclass
class WeekLayout:
    columns: List[WeekColumn]
    label: str


@dataclass
class MonthCell:
    day: date
    entries: List[Entry] = field(default_factory=list)


@dataclass
class MonthLayout:
    year: int
    month: int
    leading_blanks: int
    cells: List[Optional[MonthCell]]
    label: str

    @property
    def day_cells(self) -> List[MonthCell]:
        return [c for c in self.cells if c is not None]


Layout = Union[DayLayout, WeekLayout, MonthLayout]


def _start_date(appointment: Any) -> Optional[date]:
    start = parse_instant(getattr(appointment, "start_time", None))
    return start.date() if start else None


def _key(appointment: Any) -> str:
    value = getattr(appointment, "id", None)
    return "" if value is None else str(value)


# -----------------------------
# Day
# -----------------------------
def slot_layout(
    appointment: Any,
    slot_height: float = SLOT_HEIGHT_PX,
    slot_minutes: int = SLOT_MINUTES,
    min_px: int = MIN_BLOCK_HEIGHT_PX,
) -> Optional[SlotLayout]:
    start = getattr(appointment, "start_time", None)
    top = slot_height_offset(start, slot_height, slot_minutes)
    if top is None:
        return None
    height = duration_height(start, getattr(appointment, "end_time", None), slot_height, slot_minutes, min_px)
    return SlotLayout(top=top, height=height)


def day_slots(slot_minutes: int = SLOT_MINUTES) -> List[SlotRow]:
    return [
        SlotRow(index=i, start_minutes=i * slot_minutes, label=label)
        for i, label in enumerate(slot_labels(slot_minutes, SLOTS_PER_DAY))
    ]


def layout_day(
    appointments: Iterable[Any],
    selected_date: Any,
    *,
    slot_height: float = SLOT_HEIGHT_PX,
    classifier: StatusClassifier = three_state_status,
    time_zone_id: Optional[str] = None,
    now: Optional[datetime] = None,
    highlighted: Sequence[Any] = (),
) -> DayLayout:
    day = parse_date(selected_date)
    marks = {str(h) for h in highlighted}
    placements: List[Placement] = []
    for appt in appointments or []:
        if not is_same_calendar_day(getattr(appt, "start_time", None), day):
            continue
        layout = slot_layout(appt, slot_height)
        if layout is None:
            continue
        placements.append(
            Placement(
                appointment=appt,
                layout=layout,
                status=classifier(appt, now),
                highlighted=_key(appt) in marks,
            )
        )

    now_px = None
    if is_viewing_today(time_zone_id, day, now):
        now_px = slot_height_offset(now_in_zone(time_zone_id, now), slot_height)

    return DayLayout(day=day, slots=day_slots(), placements=placements, now_px=now_px)


# -----------------------------
# Week
# -----------------------------
def week_start(selected_date: Any) -> date:
    """Sunday on or before the selected date."""
    d = parse_date(selected_date)
    return d - timedelta(days=(d.weekday() + 1) % 7)


def week_dates(selected_date: Any) -> List[date]:
    first = week_start(selected_date)
    return [first + timedelta(days=i) for i in range(7)]


def week_label(selected_date: Any) -> str:
    d = parse_date(selected_date)
    days = week_dates(d)
    first, last = days[0], days[-1]
    return f"{first:%b} {first.day} – {last:%b} {last.day}, {d.year}"


def layout_week(
    appointments: Iterable[Any],
    selected_date: Any,
    *,
    classifier: StatusClassifier = three_state_status,
    now: Optional[datetime] = None,
) -> WeekLayout:
    columns = [WeekColumn(day=d, header=f"{d:%a}, {d:%b} {d.day}") for d in week_dates(selected_date)]
    by_day = {c.day: c for c in columns}
    for appt in appointments or []:
        column = by_day.get(_start_date(appt))
        if column is not None:
            column.entries.append(Entry(appointment=appt, status=classifier(appt, now)))
    return WeekLayout(columns=columns, label=week_label(selected_date))


# -----------------------------
# Month
# -----------------------------
def month_label(selected_date: Any) -> str:
    d = parse_date(selected_date)
    return f"{d:%b} {d.year}"


def layout_month(
    appointments: Iterable[Any],
    selected_date: Any,
    *,
    classifier: StatusClassifier = three_state_status,
    now: Optional[datetime] = None,
    per_cell: int = MONTH_CELL_LIMIT,
) -> MonthLayout:
    d = parse_date(selected_date)
    first_weekday, days_in_month = monthrange(d.year, d.month)
    # monthrange counts Monday as 0; the grid starts on Sunday.
    leading = (first_weekday + 1) % 7

    cells: List[Optional[MonthCell]] = [None] * leading
    by_day = {}
    for n in range(1, days_in_month + 1):
        cell = MonthCell(day=date(d.year, d.month, n))
        cells.append(cell)
        by_day[cell.day] = cell

    for appt in appointments or []:
        cell = by_day.get(_start_date(appt))
        if cell is not None and len(cell.entries) < per_cell:
            cell.entries.append(Entry(appointment=appt, status=classifier(appt, now)))

    return MonthLayout(
        year=d.year,
        month=d.month,
        leading_blanks=leading,
        cells=cells,
        label=month_label(d),
    )


# -----------------------------
# Window helpers
# -----------------------------
def layout_window(
    window: ViewWindow,
    appointments: Iterable[Any],
    *,
    slot_height: float = SLOT_HEIGHT_PX,
    classifier: StatusClassifier = three_state_status,
    time_zone_id: Optional[str] = None,
    now: Optional[datetime] = None,
    highlighted: Sequence[Any] = (),
) -> Layout:
    if window.mode is ViewMode.WEEK:
        return layout_week(appointments, window.anchor_date, classifier=classifier, now=now)
    if window.mode is ViewMode.MONTH:
        return layout_month(appointments, window.anchor_date, classifier=classifier, now=now)
    return layout_day(
        appointments,
        window.anchor_date,
        slot_height=slot_height,
        classifier=classifier,
        time_zone_id=time_zone_id,
        now=now,
        highlighted=highlighted,
    )


def shift_anchor(anchor: Any, mode: ViewMode, steps: int = 1) -> date:
    """Previous/next navigation: one day, one week or one month per step."""
    d = parse_date(anchor)
    if mode is ViewMode.WEEK:
        return d + timedelta(days=7 * steps)
    if mode is ViewMode.MONTH:
        return add_months(d, steps)
    return d + timedelta(days=steps)


def pretty_date(anchor: Any) -> str:
    d = parse_date(anchor)
    return f"{d:%b} {d.day}, {d.year}"


def view_label(window: ViewWindow) -> str:
    if window.mode is ViewMode.WEEK:
        return week_label(window.anchor_date)
    if window.mode is ViewMode.MONTH:
        return month_label(window.anchor_date)
    return pretty_date(window.anchor_date)


def scroll_target(appointment: Any, viewport_height: float, slot_height: float = SLOT_HEIGHT_PX) -> Optional[float]:
    """Scroll position that centres `appointment` in a day grid viewport."""
    top = slot_height_offset(getattr(appointment, "start_time", None), slot_height)
    if top is None:
        return None
    return top - viewport_height / 2 + slot_height / 2
