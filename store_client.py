# store_client.py
"""
HTTP client for the appointment store.

Every call takes the caller's bearer token; the client never manages it.
A 401 raises `UnauthorizedError` (callers end the session); any other
non-2xx response or transport failure raises `StoreError` carrying one
human-readable message, preferring the server's own ``message`` field.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from config import CALENDAR_STORE_TIMEOUT, CALENDAR_STORE_URL
from schemas import Appointment, AppointmentId, normalize_record

logger = logging.getLogger(__name__)

APPOINTMENTS_PATH = "/api/appointments/user"

FETCH_FAILED = "Failed to fetch appointments"
SAVE_FAILED = "Failed to save appointment"
DELETE_FAILED = "Failed to delete appointment"
SEARCH_FAILED = "Search failed"


class StoreError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UnauthorizedError(StoreError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=401)


def _server_message(resp: requests.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        msg = body.get("message") or body.get("Message")
        if isinstance(msg, str) and msg.strip():
            return msg
    return None


class StoreClient:
    def __init__(
        self,
        base_url: str = CALENDAR_STORE_URL,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = CALENDAR_STORE_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    # ---------- plumbing ----------
    def _request(self, method: str, path: str, token: str, default_error: str, **kwargs) -> requests.Response:
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {token}"}
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise StoreError(default_error) from e

        if resp.status_code == 401:
            logger.info("%s %s -> 401", method, path)
            raise UnauthorizedError()
        if not resp.ok:
            message = _server_message(resp) or default_error
            logger.warning("%s %s -> %s: %s", method, path, resp.status_code, message)
            raise StoreError(message, status_code=resp.status_code)
        return resp

    @staticmethod
    def _records(resp: requests.Response, default_error: str) -> List[Appointment]:
        try:
            data = resp.json()
        except ValueError as e:
            raise StoreError(default_error) from e
        if not isinstance(data, list):
            raise StoreError(default_error)
        return [normalize_record(item) for item in data if isinstance(item, dict)]

    # ---------- contract ----------
    def list(self, token: str) -> List[Appointment]:
        resp = self._request("GET", APPOINTMENTS_PATH, token, FETCH_FAILED)
        return self._records(resp, FETCH_FAILED)

    def create(self, token: str, payload: Dict[str, Any]) -> Optional[Appointment]:
        resp = self._request("POST", APPOINTMENTS_PATH, token, SAVE_FAILED, json=payload)
        return self._single(resp)

    def update(self, token: str, appointment_id: AppointmentId, payload: Dict[str, Any]) -> Optional[Appointment]:
        resp = self._request("PUT", f"{APPOINTMENTS_PATH}/{appointment_id}", token, SAVE_FAILED, json=payload)
        return self._single(resp)

    def delete(self, token: str, appointment_id: AppointmentId) -> None:
        self._request("DELETE", f"{APPOINTMENTS_PATH}/{appointment_id}", token, DELETE_FAILED)

    def search(self, token: str, keyword: str) -> List[Appointment]:
        resp = self._request("GET", f"{APPOINTMENTS_PATH}/search", token, SEARCH_FAILED, params={"keyword": keyword})
        return self._records(resp, SEARCH_FAILED)

    @staticmethod
    def _single(resp: requests.Response) -> Optional[Appointment]:
        # Some store endpoints answer 204 or a bare acknowledgement.
        if not resp.content:
            return None
        try:
            body = resp.json()
        except ValueError:
            return None
        return normalize_record(body) if isinstance(body, dict) else None
