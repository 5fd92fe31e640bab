# mock_store.py - in-memory appointment store for local development and tests

from __future__ import annotations

import logging
import threading
from datetime import datetime as _dt
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError

from config import MOCK_STORE_HOST, MOCK_STORE_PORT, MOCK_STORE_TOKEN
from schemas import Appointment, normalize_record
from scheduler.recurrence import Recurrence, expand_occurrences
from scheduler.timecodec import format_wall_clock
from store_client import APPOINTMENTS_PATH

logger = logging.getLogger(__name__)

MOCK_USER_ID = 1


# ---------- helpers ----------
def _serialize_appt(a: Appointment) -> Dict[str, Any]:
    return {
        "id": a.id,
        "title": a.title,
        "startTime": format_wall_clock(a.start_time),
        "endTime": format_wall_clock(a.end_time),
        "description": a.description,
        "location": a.location,
        "attendees": a.attendees,
        "type": a.type,
        "colorCode": a.color_code,
        "recurrence": int(a.recurrence),
        "recurrenceInterval": a.recurrence_interval,
        "recurrenceEndDate": a.recurrence_end_date.isoformat() if a.recurrence_end_date else None,
        "userId": a.user_id,
    }


def _error(message: str, status: int):
    return jsonify({"message": message}), status


def _overlaps(a: Appointment, start: _dt, end: _dt) -> bool:
    if a.start_time is None or a.end_time is None:
        return False
    return a.start_time < end and a.end_time > start


class MemoryStore:
    """Appointments of the single mock user, keyed by id."""

    def __init__(self):
        self._items: Dict[int, Appointment] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def all(self) -> List[Appointment]:
        with self._lock:
            return sorted(self._items.values(), key=lambda a: (a.start_time or _dt.min))

    def get(self, appointment_id: int) -> Optional[Appointment]:
        with self._lock:
            return self._items.get(appointment_id)

    def conflicts(self, start: _dt, end: _dt, exclude_id: Optional[int] = None) -> bool:
        with self._lock:
            return any(
                _overlaps(a, start, end)
                for a in self._items.values()
                if a.id != exclude_id
            )

    def add(self, appt: Appointment) -> Appointment:
        with self._lock:
            saved = appt.model_copy(update={"id": self._next_id, "user_id": MOCK_USER_ID})
            self._items[self._next_id] = saved
            self._next_id += 1
        return saved

    def put(self, appointment_id: int, appt: Appointment) -> Appointment:
        with self._lock:
            saved = appt.model_copy(update={"id": appointment_id, "user_id": MOCK_USER_ID})
            self._items[appointment_id] = saved
        return saved

    def remove(self, appointment_id: int) -> bool:
        with self._lock:
            return self._items.pop(appointment_id, None) is not None

    def search(self, keyword: str) -> List[Appointment]:
        needle = keyword.strip().lower()
        return [
            a for a in self.all()
            if needle in a.title.lower()
            or needle in a.description.lower()
            or needle in a.location.lower()
        ]


def create_app(token: str = MOCK_STORE_TOKEN, store: Optional[MemoryStore] = None) -> Flask:
    app = Flask(__name__)
    CORS(app)
    db = store or MemoryStore()
    app.config["STORE"] = db

    def _authorized() -> bool:
        header = request.headers.get("Authorization", "")
        return header == f"Bearer {token}"

    def _parse_body() -> Optional[Appointment]:
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return None
        try:
            return normalize_record(body)
        except ValidationError as e:
            logger.warning("rejected appointment body: %s", e)
            return None

    def _check_window(appt: Appointment):
        if appt.start_time is None or appt.end_time is None:
            return _error("StartTime and EndTime are required", 400)
        if appt.start_time >= appt.end_time:
            return _error("StartTime must be before EndTime", 400)
        return None

    @app.before_request
    def _require_token():
        if request.method == "OPTIONS" or request.path == "/health":
            return None
        if not _authorized():
            return _error("Unauthorized", 401)
        return None

    @app.get("/health")
    def health():
        return jsonify({"ok": True, "service": "appointment-store", "time": _dt.now().isoformat()})

    @app.get(APPOINTMENTS_PATH)
    def list_appointments():
        return jsonify([_serialize_appt(a) for a in db.all()])

    @app.get(f"{APPOINTMENTS_PATH}/search")
    def search_appointments():
        keyword = (request.args.get("keyword") or "").strip()
        if not keyword:
            return _error("Keyword is required", 400)
        return jsonify([_serialize_appt(a) for a in db.search(keyword)])

    @app.get(f"{APPOINTMENTS_PATH}/<int:appointment_id>")
    def get_appointment(appointment_id: int):
        appt = db.get(appointment_id)
        if appt is None:
            return _error("Appointment not found", 404)
        return jsonify(_serialize_appt(appt))

    @app.post(APPOINTMENTS_PATH)
    def create_appointment():
        appt = _parse_body()
        if appt is None:
            return _error("Invalid appointment", 400)
        bad = _check_window(appt)
        if bad is not None:
            return bad

        occurrences = expand_occurrences(
            appt.start_time,
            appt.end_time,
            appt.recurrence,
            appt.recurrence_interval,
            appt.recurrence_end_date,
        )
        if not occurrences:
            return _error("No future appointments could be created for this recurrence", 400)
        for start, end in occurrences:
            if db.conflicts(start, end):
                return _error("Appointment time overlaps with existing appointment", 400)

        created = [
            db.add(appt.model_copy(update={
                "start_time": start,
                "end_time": end,
                "recurrence": Recurrence.NONE,
                "recurrence_interval": None,
                "recurrence_end_date": None,
            }))
            for start, end in occurrences
        ]
        if appt.recurrence is not Recurrence.NONE:
            logger.info("created %d occurrences of %r", len(created), appt.title)
        return jsonify(_serialize_appt(created[0])), 201

    @app.put(f"{APPOINTMENTS_PATH}/<int:appointment_id>")
    def update_appointment(appointment_id: int):
        if db.get(appointment_id) is None:
            return _error("Appointment not found", 404)
        appt = _parse_body()
        if appt is None:
            return _error("Invalid appointment", 400)
        bad = _check_window(appt)
        if bad is not None:
            return bad
        if db.conflicts(appt.start_time, appt.end_time, exclude_id=appointment_id):
            return _error("Appointment time overlaps with existing appointment", 400)
        return jsonify(_serialize_appt(db.put(appointment_id, appt)))

    @app.delete(f"{APPOINTMENTS_PATH}/<int:appointment_id>")
    def delete_appointment(appointment_id: int):
        if not db.remove(appointment_id):
            return _error("Appointment not found", 404)
        return "", 204

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    logger.info("Starting mock appointment store on %s:%s", MOCK_STORE_HOST, MOCK_STORE_PORT)
    create_app().run(host=MOCK_STORE_HOST, port=MOCK_STORE_PORT, debug=True)
