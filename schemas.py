# schemas.py

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from config import DEFAULT_COLOR, DEFAULT_TYPE, TYPE_COLORS
from scheduler.recurrence import Recurrence, serialize_end_date, serialize_interval
from scheduler.timecodec import (
    ClockFace,
    default_slot_end,
    format_wall_clock,
    parse_date,
    parse_instant,
    to_12_hour_clock,
    to_24_hour,
)

AppointmentId = Union[int, str]


def color_for_type(type_: Optional[str]) -> str:
    """Display color of a category label; unknown labels get the fallback."""
    return TYPE_COLORS.get(type_ or "", DEFAULT_COLOR)


# -----------------------------
# Canonical appointment record
# -----------------------------
class Appointment(BaseModel):
    id: Optional[AppointmentId] = None
    title: str = ""
    # Naive wall-clock times in the viewer's zone. None when the store sent
    # something unparseable; layout skips such records instead of failing.
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    description: str = ""
    location: str = ""
    attendees: str = ""
    type: str = ""
    color_code: str = ""

    recurrence: Recurrence = Recurrence.NONE
    recurrence_interval: Optional[int] = None
    recurrence_end_date: Optional[date] = None

    user_id: Optional[AppointmentId] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _lenient_instant(cls, v):
        return parse_instant(v)

    @field_validator("title", "description", "location", "attendees", "type", "color_code", mode="before")
    @classmethod
    def _text_or_empty(cls, v):
        return "" if v is None else str(v)

    @field_validator("recurrence", mode="before")
    @classmethod
    def _decode_recurrence(cls, v):
        return Recurrence.decode(v)

    @field_validator("recurrence_interval", mode="before")
    @classmethod
    def _positive_interval(cls, v):
        if v is None or v == "" or isinstance(v, bool):
            return None
        try:
            value = int(v)
        except (TypeError, ValueError):
            return None
        return value if value > 0 else None

    @field_validator("recurrence_end_date", mode="before")
    @classmethod
    def _end_date(cls, v):
        if v is None or v == "":
            return None
        return parse_date(v)

    # No start/end ordering check here: an inverted record still has to load
    # and render (at minimum height).
    @model_validator(mode="after")
    def _derive_color(self):
        if not self.color_code:
            self.color_code = color_for_type(self.type)
        return self

    @property
    def key(self) -> str:
        """Identifier as a string, the form drag payloads carry it in."""
        return "" if self.id is None else str(self.id)


# -----------------------------
# Store boundary
# -----------------------------
# canonical field -> (PascalCase key, camelCase key)
FIELD_KEYS: Dict[str, Tuple[str, str]] = {
    "id": ("Id", "id"),
    "title": ("Title", "title"),
    "start_time": ("StartTime", "startTime"),
    "end_time": ("EndTime", "endTime"),
    "description": ("Description", "description"),
    "location": ("Location", "location"),
    "attendees": ("Attendees", "attendees"),
    "type": ("Type", "type"),
    "color_code": ("ColorCode", "colorCode"),
    "recurrence": ("Recurrence", "recurrence"),
    "recurrence_interval": ("RecurrenceInterval", "recurrenceInterval"),
    "recurrence_end_date": ("RecurrenceEndDate", "recurrenceEndDate"),
    "user_id": ("UserId", "userId"),
}


def normalize_record(raw: Union[Appointment, Mapping[str, Any]]) -> Appointment:
    """
    Turn whatever the store returned into an `Appointment`.

    For each field the PascalCase key wins when it holds a value, then
    camelCase, then the model default. None and "" both count as no value.
    Nothing past this function looks at key casing.
    """
    if isinstance(raw, Appointment):
        return raw
    data: Dict[str, Any] = {}
    for field, (pascal, camel) in FIELD_KEYS.items():
        for key in (pascal, camel):
            if raw.get(key) not in (None, ""):
                data[field] = raw[key]
                break
    return Appointment.model_validate(data)


def to_wire_payload(appt: Appointment, *, include_identity: bool = False) -> Dict[str, Any]:
    """
    PascalCase body for create/update. The store's update is full-replace,
    so this always carries every field. `include_identity` adds Id/UserId
    (the drag path sends the whole record back).
    """
    payload: Dict[str, Any] = {
        "Title": appt.title,
        "StartTime": format_wall_clock(appt.start_time),
        "EndTime": format_wall_clock(appt.end_time),
        "Description": appt.description,
        "Location": appt.location,
        "Attendees": appt.attendees,
        "Type": appt.type,
        "ColorCode": appt.color_code or color_for_type(appt.type),
        "Recurrence": int(appt.recurrence),
        "RecurrenceInterval": serialize_interval(appt.recurrence, appt.recurrence_interval),
        "RecurrenceEndDate": serialize_end_date(appt.recurrence_end_date),
    }
    if include_identity:
        payload["Id"] = appt.id
        payload["UserId"] = appt.user_id
    return payload


# -----------------------------
# Viewer
# -----------------------------
class UserProfile(BaseModel):
    id: Optional[AppointmentId] = None
    username: Optional[str] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    time_zone_id: Optional[str] = Field(default=None, alias="timeZoneId")

    model_config = {"populate_by_name": True}


# -----------------------------
# Edit dialog
# -----------------------------
class AppointmentForm(BaseModel):
    """Raw values as submitted from the create/edit dialog."""
    title: str = ""
    start: str = ""
    start_period: str = "AM"
    end: str = ""
    end_period: str = "AM"
    description: str = ""
    location: str = ""
    attendees: str = ""
    type: str = ""
    color_code: str = ""
    recurrence: str = "None"
    recurrence_interval: Optional[Union[int, str]] = None
    recurrence_end_date: Optional[str] = None


class FormDefaults(BaseModel):
    """Initial field values for the dialog in "new" or "edit" mode."""
    is_edit: bool = False
    title: str = ""
    start: ClockFace = ClockFace("", "AM")
    end: ClockFace = ClockFace("", "AM")
    description: str = ""
    location: str = ""
    attendees: str = ""
    type: str = DEFAULT_TYPE
    recurrence: str = Recurrence.NONE.label
    recurrence_interval: int = 1
    recurrence_end_date: str = ""


def form_defaults(editing: Optional[Appointment] = None, new_slot_time: Optional[datetime] = None) -> FormDefaults:
    if editing is not None:
        return FormDefaults(
            is_edit=True,
            title=editing.title,
            start=to_12_hour_clock(editing.start_time),
            end=to_12_hour_clock(editing.end_time),
            description=editing.description,
            location=editing.location,
            attendees=editing.attendees,
            type=editing.type or DEFAULT_TYPE,
            recurrence=editing.recurrence.label,
            recurrence_interval=editing.recurrence_interval or 1,
            recurrence_end_date=editing.recurrence_end_date.isoformat() if editing.recurrence_end_date else "",
        )
    if new_slot_time is not None:
        return FormDefaults(
            start=to_12_hour_clock(new_slot_time),
            end=to_12_hour_clock(default_slot_end(new_slot_time)),
        )
    return FormDefaults()


def form_to_payload(form: AppointmentForm, selected_date: Union[date, str]) -> Dict[str, Any]:
    """
    Wire payload for a dialog submit. Times land on `selected_date`.
    Fields are passed through as typed; an empty title is not rejected here.
    """
    day = parse_date(selected_date)
    day_text = day.isoformat() if day else str(selected_date)
    start24 = to_24_hour(form.start, form.start_period)
    end24 = to_24_hour(form.end, form.end_period)
    recurrence = Recurrence.decode(form.recurrence or "None")
    type_ = form.type or ""

    return {
        "Title": form.title,
        "StartTime": f"{day_text}T{start24}:00" if start24 else None,
        "EndTime": f"{day_text}T{end24}:00" if end24 else None,
        "Description": form.description or "",
        "Location": form.location or "",
        "Attendees": form.attendees or "",
        "Type": type_,
        "ColorCode": form.color_code or color_for_type(type_ or DEFAULT_TYPE),
        "Recurrence": int(recurrence),
        "RecurrenceInterval": serialize_interval(recurrence, form.recurrence_interval),
        "RecurrenceEndDate": serialize_end_date(form.recurrence_end_date),
    }
