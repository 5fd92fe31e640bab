"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path
from urllib.parse import urlsplit

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

# Modules live at the repository root
sys.path.insert(0, str(Path(__file__).parent.parent))

from schemas import Appointment, UserProfile  # noqa: E402
from session import Session  # noqa: E402

STORE_URL = "http://store.test"
TOKEN = "test-token"


class FlaskTestAdapter(BaseAdapter):
    """Routes a requests.Session into a Flask app's test client."""

    def __init__(self, app):
        super().__init__()
        self.client = app.test_client()

    def send(self, request, **kwargs):
        parts = urlsplit(request.url)
        path = parts.path + (f"?{parts.query}" if parts.query else "")
        body = request.body
        if isinstance(body, str):
            body = body.encode("utf-8")
        flask_resp = self.client.open(
            path,
            method=request.method,
            headers=dict(request.headers),
            data=body,
        )

        resp = requests.Response()
        resp.status_code = flask_resp.status_code
        resp._content = flask_resp.get_data()
        resp.headers = CaseInsensitiveDict(dict(flask_resp.headers))
        resp.encoding = "utf-8"
        resp.url = request.url
        resp.request = request
        return resp

    def close(self):
        pass


@pytest.fixture
def sample_record():
    """A store record in PascalCase, as the .NET store sends it."""
    return {
        "Id": 7,
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
        "UserId": 1,
    }


@pytest.fixture
def make_appt():
    def _make(id_, start, end, title="Item", **kw):
        return Appointment(id=id_, title=title, start_time=start, end_time=end, **kw)

    return _make


@pytest.fixture
def sample_appointments(make_appt):
    return [
        make_appt(1, "2024-01-15T09:00:00", "2024-01-15T10:00:00", "Standup"),
        make_appt(2, "2024-01-15T13:30:00", "2024-01-15T14:00:00", "Lunch review", type="Personal"),
        make_appt(3, "2024-01-17T08:00:00", "2024-01-17T08:30:00", "Dentist"),
        make_appt(4, "2024-02-01T11:00:00", "2024-02-01T12:00:00", "Board"),
    ]


@pytest.fixture
def user():
    return UserProfile(id=1, username="dana", firstName="Dana", timeZoneId="UTC")


@pytest.fixture
def session(user):
    return Session(token=TOKEN, user=user)


@pytest.fixture
def token():
    return TOKEN


@pytest.fixture
def store_app():
    from mock_store import create_app

    return create_app(token=TOKEN)


@pytest.fixture
def live_http(store_app):
    """A requests.Session whose traffic to STORE_URL lands in the mock store."""
    http = requests.Session()
    http.mount(STORE_URL, FlaskTestAdapter(store_app))
    return http


@pytest.fixture
def live_client(live_http):
    from store_client import StoreClient

    return StoreClient(STORE_URL, session=live_http)
