# scheduler/reconciler.py
"""
Drag-to-reschedule.

A drop is snapped to the nearest half-hour slot of the selected day, the
appointment keeps its duration, and the local list is updated right away.
The store is then sent the full record (its update is full-replace) from a
background worker:

    IDLE -> DRAGGING -> DROPPED -> OPTIMISTICALLY_APPLIED -> CONFIRMED
                                                          -> ROLLED_BACK

On success one refetch is scheduled after a short delay to pick up any
server-side normalization. On any failure the list is refetched at once,
which throws the optimistic guess away. The store stays the source of
truth; this class only makes sure the view converges back to it.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, time as _time, timedelta
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from config import OPTIMISTIC_WITHOUT_TOKEN, REFETCH_DELAY_SECONDS, SLOT_HEIGHT_PX, SLOT_MINUTES
from schemas import Appointment, to_wire_payload
from scheduler.book import AppointmentBook
from scheduler.status import is_same_calendar_day
from scheduler.timecodec import parse_date
from scheduler.timers import ScopedTimers
from store_client import UnauthorizedError

logger = logging.getLogger(__name__)


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    DROPPED = "dropped"
    OPTIMISTICALLY_APPLIED = "optimistically_applied"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"
    # no token at drop time: nothing was sent
    ABORTED = "aborted"
    # store answered 401: session end requested
    UNAUTHORIZED = "unauthorized"


@dataclass
class DragGesture:
    appointment_id: str
    state: DragState = DragState.DRAGGING
    original: Optional[Appointment] = None
    moved: Optional[Appointment] = None
    error: Optional[str] = None


def snap_offset_to_minutes(offset_y: float, slot_height: float = SLOT_HEIGHT_PX, slot_minutes: int = SLOT_MINUTES) -> int:
    """Pixel offset inside the grid -> minutes after midnight, nearest slot (halves round up)."""
    return math.floor(offset_y / slot_height + 0.5) * slot_minutes


def reschedule_times(appointment: Appointment, selected_date: Any, total_minutes: int) -> Tuple[datetime, datetime]:
    """New (start, end) on `selected_date`, keeping the original duration."""
    day = parse_date(selected_date)
    new_start = datetime.combine(day, _time(0, 0)) + timedelta(minutes=total_minutes)
    if appointment.start_time is not None and appointment.end_time is not None:
        duration = appointment.end_time - appointment.start_time
    else:
        duration = timedelta(0)
    return new_start, new_start + duration


class DragRescheduleReconciler:
    def __init__(
        self,
        store,
        book: AppointmentBook,
        session,
        refetch: Callable[[], Any],
        *,
        submit: Optional[Callable[..., Any]] = None,
        call_later: Optional[Callable[[float, Callable[[], Any]], Any]] = None,
        on_unauthorized: Optional[Callable[[], Any]] = None,
        refetch_delay: float = REFETCH_DELAY_SECONDS,
        slot_height: float = SLOT_HEIGHT_PX,
        optimistic_without_token: bool = OPTIMISTIC_WITHOUT_TOKEN,
    ):
        self.store = store
        self.book = book
        self.session = session
        self.refetch = refetch
        self.refetch_delay = refetch_delay
        self.slot_height = slot_height
        self.optimistic_without_token = optimistic_without_token
        self.on_unauthorized = on_unauthorized or session.end
        self.active: Optional[DragGesture] = None
        self._closed = False

        self._executor: Optional[ThreadPoolExecutor] = None
        if submit is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="reschedule")
            submit = self._executor.submit
        self._submit = submit

        self._timers: Optional[ScopedTimers] = None
        if call_later is None:
            self._timers = ScopedTimers()
            call_later = self._timers.call_later
        self._call_later = call_later

    @property
    def closed(self) -> bool:
        return self._closed

    # ---------- gesture ----------
    def start_drag(self, appointment_id) -> DragGesture:
        self.active = DragGesture(appointment_id=str(appointment_id))
        return self.active

    def cancel_drag(self) -> None:
        if self.active is not None and self.active.state is DragState.DRAGGING:
            self.active.state = DragState.IDLE
        self.active = None

    def drop(self, offset_y: float, selected_date: Any, appointment_id=None) -> Optional[DragGesture]:
        """
        Resolve a drop at `offset_y` pixels into the day grid.
        Returns the gesture, or None when there was nothing to move.
        """
        if self._closed:
            return None
        gesture = self.active
        if appointment_id is not None:
            gesture = DragGesture(appointment_id=str(appointment_id))
        self.active = None
        if gesture is None or not gesture.appointment_id:
            return None

        appt = next(
            (
                a for a in self.book.items()
                if a.key == gesture.appointment_id and is_same_calendar_day(a.start_time, selected_date)
            ),
            None,
        )
        if appt is None:
            gesture.state = DragState.IDLE
            return None

        gesture.state = DragState.DROPPED
        total_minutes = snap_offset_to_minutes(offset_y, self.slot_height)
        new_start, new_end = reschedule_times(appt, selected_date, total_minutes)
        moved = appt.model_copy(update={"start_time": new_start, "end_time": new_end})
        gesture.original = appt
        gesture.moved = moved

        token = getattr(self.session, "token", None)
        if not token and not self.optimistic_without_token:
            logger.error("No auth token found; drop of %s ignored", gesture.appointment_id)
            gesture.state = DragState.ABORTED
            return gesture

        self.book.replace(moved)
        gesture.state = DragState.OPTIMISTICALLY_APPLIED
        logger.info("moved %s to %s", gesture.appointment_id, new_start.isoformat())

        if not token:
            logger.error("No auth token found; %s not sent to the store", gesture.appointment_id)
            gesture.state = DragState.ABORTED
            return gesture

        self._submit(self._push, gesture, token)
        return gesture

    # ---------- background leg ----------
    def _push(self, gesture: DragGesture, token: str) -> None:
        if self._closed:
            return
        moved = gesture.moved
        payload = to_wire_payload(moved, include_identity=True)
        try:
            self.store.update(token, moved.id, payload)
        except UnauthorizedError:
            if self._closed:
                return
            gesture.state = DragState.UNAUTHORIZED
            logger.warning("update of %s rejected as unauthorized", gesture.appointment_id)
            self.on_unauthorized()
            return
        except Exception as e:
            if self._closed:
                return
            gesture.state = DragState.ROLLED_BACK
            gesture.error = str(e)
            logger.warning("update of %s failed (%s); refetching", gesture.appointment_id, e)
            self._refetch()
            return

        if self._closed:
            return
        gesture.state = DragState.CONFIRMED
        logger.debug("update of %s confirmed; refetch in %.1fs", gesture.appointment_id, self.refetch_delay)
        self._call_later(self.refetch_delay, self._refetch)

    def _refetch(self) -> None:
        if self._closed:
            return
        self.refetch()

    # ---------- teardown ----------
    def close(self) -> None:
        self._closed = True
        self.active = None
        if self._timers is not None:
            self._timers.close()
        if self._executor is not None:
            self._executor.shutdown(wait=False)
