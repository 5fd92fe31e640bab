from datetime import date, datetime, timezone

from scheduler.status import (
    Status,
    is_same_calendar_day,
    is_viewing_today,
    three_state_status,
    timezone_status_classifier,
    upcoming_for_day,
)


def test_three_state_status(make_appt):
    appt = make_appt(1, "2024-01-15T09:00:00", "2024-01-15T10:00:00")
    assert three_state_status(appt, datetime(2024, 1, 15, 8, 59)) is Status.UPCOMING
    assert three_state_status(appt, datetime(2024, 1, 15, 9, 0)) is Status.ONGOING
    assert three_state_status(appt, datetime(2024, 1, 15, 10, 0)) is Status.ONGOING
    assert three_state_status(appt, datetime(2024, 1, 15, 10, 1)) is Status.COMPLETED


def test_three_state_unreadable_start_is_completed(make_appt):
    appt = make_appt(1, "nope", "2024-01-15T10:00:00")
    assert three_state_status(appt, datetime(2024, 1, 1)) is Status.COMPLETED


def test_zone_classifier_two_states(make_appt):
    classify = timezone_status_classifier("America/New_York")
    # 14:00 UTC is 09:00 in New York
    now = datetime(2024, 1, 15, 14, 0, tzinfo=timezone.utc)
    later = make_appt(1, "2024-01-15T09:30:00", "2024-01-15T10:00:00")
    running = make_appt(2, "2024-01-15T08:30:00", "2024-01-15T10:00:00")
    exact = make_appt(3, "2024-01-15T09:00:00", "2024-01-15T09:30:00")
    assert classify(later, now) is Status.UPCOMING
    # never "ongoing": a started appointment is completed
    assert classify(running, now) is Status.COMPLETED
    assert classify(exact, now) is Status.COMPLETED


def test_zone_classifier_without_zone_uses_local_now(make_appt):
    classify = timezone_status_classifier(None)
    now = datetime(2024, 1, 15, 9, 0)
    assert classify(make_appt(1, "2024-01-15T09:00:00", "2024-01-15T10:00:00"), now) is Status.UPCOMING
    assert classify(make_appt(2, "2024-01-15T08:59:00", "2024-01-15T10:00:00"), now) is Status.COMPLETED


def test_zone_classifier_accepts_bare_start():
    classify = timezone_status_classifier("UTC")
    now = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
    assert classify("2024-01-15T13:00:00", now) is Status.UPCOMING
    assert classify("garbage", now) is Status.COMPLETED


def test_is_same_calendar_day():
    assert is_same_calendar_day("2024-01-15T23:59:00", "2024-01-15")
    assert not is_same_calendar_day("2024-01-16T00:00:00", "2024-01-15")
    assert is_same_calendar_day(datetime(2024, 1, 15, 0, 0), date(2024, 1, 15))
    assert not is_same_calendar_day(None, "2024-01-15")


def test_is_viewing_today():
    now = datetime(2024, 1, 16, 2, 0, tzinfo=timezone.utc)
    # still the 15th in New York
    assert is_viewing_today("America/New_York", "2024-01-15", now)
    assert not is_viewing_today("America/New_York", "2024-01-16", now)
    assert not is_viewing_today(None, "2024-01-16", now)


def test_upcoming_for_day(sample_appointments):
    classify = timezone_status_classifier("UTC")
    now = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
    upcoming = upcoming_for_day(sample_appointments, "2024-01-15", classify, now)
    assert [a.title for a in upcoming] == ["Lunch review"]


def test_three_state_boundary_microsecond(make_appt):
    appt = make_appt(1, "2024-01-15T09:00:00", "2024-01-15T10:00:00")
    assert three_state_status(appt, datetime(2024, 1, 15, 10, 0, 0, 1000)) is Status.COMPLETED
