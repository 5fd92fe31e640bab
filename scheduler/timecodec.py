# scheduler/timecodec.py
"""
Conversions between the edit dialog's 12-hour fields, ISO timestamps,
wall-clock strings and pixel offsets on the half-hour day grid.

Everything here is pure. Malformed input never raises: parsing helpers
return None and the pixel helpers degrade (None offset, minimum height)
so a single bad record cannot take down a render.
"""

from __future__ import annotations

import math
import re
from datetime import date as _date, datetime as _dt, timedelta, timezone as _tz
from typing import Any, List, NamedTuple, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import MIN_BLOCK_HEIGHT_PX, SLOT_MINUTES, SLOTS_PER_DAY

WALL_CLOCK_FORMAT = "%Y-%m-%dT%H:%M:%S"

_CLOCK_FIELD_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


class ClockFace(NamedTuple):
    """What the edit dialog shows: ``"hh:mm"`` plus an AM/PM selector."""
    time_text: str
    period: str


# ---------- zones ----------
def resolve_zone(time_zone_id: Optional[str]) -> Optional[ZoneInfo]:
    """IANA zone for `time_zone_id`, or None when absent or unknown."""
    if not time_zone_id:
        return None
    try:
        return ZoneInfo(time_zone_id.strip())
    except (ZoneInfoNotFoundError, ValueError):
        return None


def now_in_zone(time_zone_id: Optional[str] = None, now: Optional[_dt] = None) -> _dt:
    """
    Wall-clock "now" for the viewer, as a naive datetime.
    A naive `now` is taken to be machine-local time.
    """
    current = now if now is not None else _dt.now(_tz.utc)
    zone = resolve_zone(time_zone_id)
    if zone is None:
        if current.tzinfo is None:
            return current
        return current.astimezone().replace(tzinfo=None)
    return current.astimezone(zone).replace(tzinfo=None)


# ---------- parsing / formatting ----------
def parse_instant(value: Any, time_zone_id: Optional[str] = None) -> Optional[_dt]:
    """
    Accepts a datetime, a date or an ISO-8601 string and returns a naive
    wall-clock datetime. Offsets (including a trailing ``Z``) are converted
    into the viewer's zone first. Anything unparseable gives None.
    """
    if isinstance(value, _dt):
        parsed = value
    elif isinstance(value, _date):
        return _dt(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = _dt.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed
    zone = resolve_zone(time_zone_id)
    if zone is None:
        return parsed.astimezone().replace(tzinfo=None)
    return parsed.astimezone(zone).replace(tzinfo=None)


def parse_date(value: Any) -> Optional[_date]:
    """Calendar date from a date, a datetime or a ``YYYY-MM-DD[...]`` string."""
    if isinstance(value, _dt):
        return value.date()
    if isinstance(value, _date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return _date.fromisoformat(text[:10])
        except ValueError:
            instant = parse_instant(text)
            return instant.date() if instant else None
    return None


def format_wall_clock(instant: Any) -> Optional[str]:
    """``YYYY-MM-DDTHH:MM:SS`` with no offset; the store reads it as local."""
    parsed = parse_instant(instant)
    if parsed is None:
        return None
    return parsed.strftime(WALL_CLOCK_FORMAT)


def to_24_hour(time_text: str, period: str) -> Optional[str]:
    """
    ``("h:mm", "AM"|"PM")`` -> ``"HH:MM"``.

    12 AM is hour 0, 12 PM stays 12, every other PM hour gets +12.
    Returns None when the fields are not a readable clock face.
    """
    if not isinstance(time_text, str) or not isinstance(period, str):
        return None
    m = _CLOCK_FIELD_RE.match(time_text.strip())
    if not m:
        return None
    hh = int(m.group(1))
    mm = int(m.group(2))
    if hh > 23 or mm > 59:
        return None
    p = period.strip().upper()
    if p == "PM" and hh < 12:
        hh += 12
    if p == "AM" and hh == 12:
        hh = 0
    return f"{hh:02d}:{mm:02d}"


def to_12_hour_clock(instant: Any) -> ClockFace:
    """Inverse of `to_24_hour`, used to pre-fill the edit dialog."""
    parsed = parse_instant(instant)
    if parsed is None:
        return ClockFace("", "AM")
    hours = parsed.hour % 12 or 12
    period = "PM" if parsed.hour >= 12 else "AM"
    return ClockFace(f"{hours:02d}:{parsed.minute:02d}", period)


# ---------- grid math ----------
def minutes_since_midnight(instant: Any) -> Optional[int]:
    parsed = parse_instant(instant)
    if parsed is None:
        return None
    return parsed.hour * 60 + parsed.minute


def slot_height_offset(instant: Any, slot_height_px: float, slot_minutes: int = SLOT_MINUTES) -> Optional[int]:
    """Top offset in pixels of `instant` on a grid of `slot_minutes` rows."""
    minutes = minutes_since_midnight(instant)
    if minutes is None:
        return None
    return math.floor(minutes / slot_minutes * slot_height_px)


def duration_height(
    start: Any,
    end: Any,
    slot_height_px: float,
    slot_minutes: int = SLOT_MINUTES,
    min_px: int = MIN_BLOCK_HEIGHT_PX,
) -> int:
    """
    Block height in pixels. Only the time of day is compared, so an
    inverted or overnight record collapses to `min_px`.
    """
    start_min = minutes_since_midnight(start)
    end_min = minutes_since_midnight(end)
    if start_min is None or end_min is None:
        return min_px
    return max(min_px, math.floor((end_min - start_min) / slot_minutes * slot_height_px))


def slot_labels(slot_minutes: int = SLOT_MINUTES, count: int = SLOTS_PER_DAY) -> List[str]:
    """Row captions for the day grid: ``12:00 AM``, ``12:30 AM`` ... ``11:30 PM``."""
    labels: List[str] = []
    for i in range(count):
        total = i * slot_minutes
        hour24, minute = divmod(total, 60)
        hour12 = hour24 % 12 or 12
        ampm = "AM" if hour24 < 12 else "PM"
        labels.append(f"{hour12}:{minute:02d} {ampm}")
    return labels


def default_new_slot(now: _dt) -> _dt:
    """Start of the half hour containing `now` (the add button's default)."""
    minute = 0 if now.minute < 30 else 30
    return now.replace(minute=minute, second=0, microsecond=0)


def default_slot_end(slot_start: _dt, slot_minutes: int = SLOT_MINUTES) -> _dt:
    return slot_start + timedelta(minutes=slot_minutes)


# ---------- header clock ----------
def format_digital_time(instant: _dt) -> str:
    return instant.strftime("%I:%M:%S %p")


def timezone_abbreviation(time_zone_id: Optional[str], now: Optional[_dt] = None) -> str:
    """Short zone name (``EST``, ``CET``...) or an empty string."""
    zone = resolve_zone(time_zone_id)
    if zone is None:
        return ""
    current = now if now is not None else _dt.now(_tz.utc)
    return current.astimezone(zone).tzname() or ""
