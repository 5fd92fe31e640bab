from datetime import date, datetime

from schemas import (
    Appointment,
    AppointmentForm,
    UserProfile,
    color_for_type,
    form_defaults,
    form_to_payload,
    normalize_record,
    to_wire_payload,
)
from scheduler.recurrence import Recurrence
from scheduler.timecodec import ClockFace


def test_normalize_pascal_record(sample_record):
    appt = normalize_record(sample_record)
    assert appt.id == 7
    assert appt.title == "Standup"
    assert appt.start_time == datetime(2024, 1, 15, 9, 0)
    assert appt.attendees == "alice, bob"
    assert appt.recurrence is Recurrence.NONE
    assert appt.user_id == 1


def test_normalize_camel_record():
    appt = normalize_record(
        {
            "id": 3,
            "title": "Review",
            "startTime": "2024-01-15T15:00:00",
            "endTime": "2024-01-15T16:00:00",
            "type": "Deadline",
            "recurrence": 2,
            "recurrenceInterval": 2,
            "recurrenceEndDate": "2024-03-01T23:59:59",
        }
    )
    assert appt.end_time == datetime(2024, 1, 15, 16, 0)
    assert appt.recurrence is Recurrence.WEEKLY
    assert appt.recurrence_interval == 2
    assert appt.recurrence_end_date == date(2024, 3, 1)
    assert appt.color_code == color_for_type("Deadline")


def test_pascal_wins_over_camel():
    appt = normalize_record({"Title": "Pascal", "title": "camel", "Location": None, "location": "Hall"})
    assert appt.title == "Pascal"
    assert appt.location == "Hall"


def test_empty_pascal_text_falls_through_to_camel():
    appt = normalize_record({"Title": "", "title": "Standup", "Location": "", "location": ""})
    assert appt.title == "Standup"
    assert appt.location == ""


def test_normalize_is_lenient():
    appt = normalize_record({"Id": 1, "StartTime": "not a time", "Recurrence": 42, "RecurrenceInterval": -3})
    assert appt.start_time is None
    assert appt.end_time is None
    assert appt.recurrence is Recurrence.NONE
    assert appt.recurrence_interval is None
    assert appt.color_code == "#1976d2"


def test_normalize_passes_appointments_through(make_appt):
    appt = make_appt(1, "2024-01-15T09:00:00", "2024-01-15T10:00:00")
    assert normalize_record(appt) is appt


def test_key_is_string_id():
    assert Appointment(id=12).key == "12"
    assert Appointment().key == ""


def test_color_for_type():
    assert color_for_type("Personal") == "#0a560eff"
    assert color_for_type("Unknown") == "#1976d2"
    assert color_for_type(None) == "#1976d2"


def test_wire_payload_shape(sample_record):
    appt = normalize_record(sample_record)
    payload = to_wire_payload(appt)
    assert payload == {
        "Title": "Standup",
        "StartTime": "2024-01-15T09:00:00",
        "EndTime": "2024-01-15T09:30:00",
        "Description": "Daily sync",
        "Location": "Room 4",
        "Attendees": "alice, bob",
        "Type": "Meeting",
        "ColorCode": "#1976d2",
        "Recurrence": 0,
        "RecurrenceInterval": None,
        "RecurrenceEndDate": None,
    }
    full = to_wire_payload(appt, include_identity=True)
    assert full["Id"] == 7
    assert full["UserId"] == 1


def test_wire_payload_recurring():
    appt = Appointment(
        id=1,
        start_time="2024-01-15T09:00:00",
        end_time="2024-01-15T10:00:00",
        recurrence=Recurrence.DAILY,
        recurrence_interval=2,
        recurrence_end_date="2024-02-01",
    )
    payload = to_wire_payload(appt)
    assert payload["Recurrence"] == 1
    assert payload["RecurrenceInterval"] == 2
    assert payload["RecurrenceEndDate"] == "2024-02-01T23:59:59"


def test_user_profile_aliases():
    profile = UserProfile.model_validate({"id": 1, "username": "dana", "timeZoneId": "Europe/Paris"})
    assert profile.time_zone_id == "Europe/Paris"
    assert UserProfile(time_zone_id="UTC").time_zone_id == "UTC"


def test_form_defaults_for_new_slot():
    defaults = form_defaults(new_slot_time=datetime(2024, 1, 15, 11, 30))
    assert not defaults.is_edit
    assert defaults.start == ClockFace("11:30", "AM")
    assert defaults.end == ClockFace("12:00", "PM")
    assert defaults.type == "Meeting"
    assert defaults.recurrence == "None"
    assert defaults.recurrence_interval == 1


def test_form_defaults_for_edit():
    appt = Appointment(
        id=5,
        title="Retro",
        start_time="2024-01-15T16:00:00",
        end_time="2024-01-15T17:15:00",
        type="Personal",
        recurrence=3,
        recurrence_end_date="2024-06-30",
    )
    defaults = form_defaults(editing=appt)
    assert defaults.is_edit
    assert defaults.title == "Retro"
    assert defaults.start == ClockFace("04:00", "PM")
    assert defaults.end == ClockFace("05:15", "PM")
    assert defaults.recurrence == "Monthly"
    assert defaults.recurrence_interval == 1
    assert defaults.recurrence_end_date == "2024-06-30"


def test_form_to_payload():
    form = AppointmentForm(
        title="Planning",
        start="12:30",
        start_period="PM",
        end="01:00",
        end_period="PM",
        type="Follow-up",
        recurrence="Weekly",
        recurrence_interval="2",
        recurrence_end_date="2024-02-29",
    )
    payload = form_to_payload(form, date(2024, 1, 15))
    assert payload["StartTime"] == "2024-01-15T12:30:00"
    assert payload["EndTime"] == "2024-01-15T13:00:00"
    assert payload["ColorCode"] == "#858e08ff"
    assert payload["Recurrence"] == 2
    assert payload["RecurrenceInterval"] == 2
    assert payload["RecurrenceEndDate"] == "2024-02-29T23:59:59"


def test_form_to_payload_passes_empty_title_and_drops_interval():
    form = AppointmentForm(start="12:00", start_period="AM", end="12:30", end_period="AM", recurrence_interval=3)
    payload = form_to_payload(form, "2024-01-15")
    assert payload["Title"] == ""
    assert payload["StartTime"] == "2024-01-15T00:00:00"
    assert payload["Recurrence"] == 0
    assert payload["RecurrenceInterval"] is None
    assert payload["ColorCode"] == "#1976d2"


def test_form_to_payload_malformed_time_is_none():
    form = AppointmentForm(title="x", start="noon", end="1:00", end_period="PM")
    payload = form_to_payload(form, "2024-01-15")
    assert payload["StartTime"] is None
    assert payload["EndTime"] == "2024-01-15T13:00:00"
