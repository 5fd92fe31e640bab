# scheduler/book.py
"""The locally held appointment list shared by the views and the reconciler."""

from __future__ import annotations

import threading
from typing import Iterable, List, Optional

from schemas import Appointment


class AppointmentBook:
    def __init__(self, appointments: Optional[Iterable[Appointment]] = None):
        self._lock = threading.Lock()
        self._items: List[Appointment] = list(appointments or [])

    def items(self) -> List[Appointment]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def replace_all(self, appointments: Iterable[Appointment]) -> None:
        items = list(appointments)
        with self._lock:
            self._items = items

    def replace(self, appointment: Appointment) -> bool:
        """Swap in `appointment` for the record with the same id, in place."""
        key = appointment.key
        with self._lock:
            for i, existing in enumerate(self._items):
                if existing.key == key:
                    self._items[i] = appointment
                    return True
        return False

    def find(self, appointment_id) -> Optional[Appointment]:
        key = str(appointment_id)
        with self._lock:
            for a in self._items:
                if a.key == key:
                    return a
        return None

    def clear(self) -> None:
        self.replace_all([])
