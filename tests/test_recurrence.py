from datetime import date, datetime, timedelta

import pytest

from scheduler.recurrence import (
    MAX_OCCURRENCES,
    RECURRENCE_LABELS,
    Recurrence,
    add_months,
    expand_daily_until,
    expand_monthly_until,
    expand_occurrences,
    expand_weekly_until,
    serialize_end_date,
    serialize_interval,
)


@pytest.mark.parametrize(
    "code,expected",
    [
        (0, Recurrence.NONE),
        (1, Recurrence.DAILY),
        (2, Recurrence.WEEKLY),
        (3, Recurrence.MONTHLY),
        ("2", Recurrence.WEEKLY),
        ("Monthly", Recurrence.MONTHLY),
        ("daily", Recurrence.DAILY),
        (9, Recurrence.NONE),
        (-1, Recurrence.NONE),
        ("Yearly", Recurrence.NONE),
        (None, Recurrence.NONE),
        (True, Recurrence.NONE),
    ],
)
def test_decode(code, expected):
    assert Recurrence.decode(code) is expected


def test_labels_and_encode():
    assert RECURRENCE_LABELS == ["None", "Daily", "Weekly", "Monthly"]
    assert Recurrence.encode("Weekly") == 2
    assert Recurrence.encode("whatever") == 0
    for member in Recurrence:
        assert Recurrence.decode(int(member)) is member
        assert Recurrence.decode(member.label) is member


def test_serialize_interval():
    assert serialize_interval(Recurrence.DAILY, 3) == 3
    assert serialize_interval("Weekly", "2") == 2
    assert serialize_interval(Recurrence.DAILY, "") is None
    assert serialize_interval(Recurrence.DAILY, 0) is None
    assert serialize_interval(Recurrence.DAILY, None) is None
    assert serialize_interval(Recurrence.DAILY, "abc") is None
    # no recurrence, no interval on the wire
    assert serialize_interval(Recurrence.NONE, 4) is None


def test_serialize_end_date():
    assert serialize_end_date("2024-03-01") == "2024-03-01T23:59:59"
    assert serialize_end_date(date(2024, 3, 1)) == "2024-03-01T23:59:59"
    assert serialize_end_date("") is None
    assert serialize_end_date(None) is None
    assert serialize_end_date("soon") is None


def test_add_months_clamps_day():
    assert add_months(datetime(2024, 1, 31, 9), 1) == datetime(2024, 2, 29, 9)
    assert add_months(datetime(2023, 1, 31, 9), 1) == datetime(2023, 2, 28, 9)
    assert add_months(datetime(2024, 11, 15), 3) == datetime(2025, 2, 15)
    assert add_months(date(2024, 3, 31), -1) == date(2024, 2, 29)


def test_expand_daily_is_inclusive():
    start = datetime(2024, 1, 1, 9)
    out = expand_daily_until(start, date(2024, 1, 5), 2)
    assert [d.day for d in out] == [1, 3, 5]


def test_expand_weekly_keeps_weekday():
    start = datetime(2024, 1, 3, 9)  # Wednesday
    out = expand_weekly_until(start, date(2024, 2, 1))
    assert len(out) == 5
    assert {d.weekday() for d in out} == {2}


def test_expand_monthly_returns_to_31st():
    start = datetime(2024, 1, 31, 10)
    out = expand_monthly_until(start, date(2024, 4, 30))
    assert [(d.month, d.day) for d in out] == [(1, 31), (2, 29), (3, 31), (4, 30)]


def test_expand_occurrences_carries_duration():
    start = datetime(2024, 1, 1, 9)
    end = datetime(2024, 1, 1, 10, 30)
    pairs = expand_occurrences(start, end, Recurrence.WEEKLY, 1, date(2024, 1, 22))
    assert len(pairs) == 4
    assert all(e - s == timedelta(hours=1, minutes=30) for s, e in pairs)


def test_expand_occurrences_non_recurring_is_single():
    start = datetime(2024, 1, 1, 9)
    end = datetime(2024, 1, 1, 10)
    assert expand_occurrences(start, end, Recurrence.NONE) == [(start, end)]


def test_expand_occurrences_defaults_and_cap():
    start = datetime(2024, 1, 1, 9)
    end = datetime(2024, 1, 1, 10)
    # default window is three months
    pairs = expand_occurrences(start, end, Recurrence.MONTHLY)
    assert [s.month for s, _ in pairs] == [1, 2, 3, 4]
    # daily over a year is capped
    pairs = expand_occurrences(start, end, Recurrence.DAILY, until=date(2025, 1, 1))
    assert len(pairs) == MAX_OCCURRENCES
