# controller.py
"""
Calendar controller.

Holds the state a calendar screen needs between events (selected day,
view mode, the local appointment list, the open dialog, search highlights)
and routes UI events into the scheduling engine and the appointment store.
Store failures never escape: a 401 ends the session, anything else lands
in `error_message` for the screen to show.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, List, Optional

from config import CLOCK_TICK_SECONDS, NOW_LINE_TICK_SECONDS, SLOT_HEIGHT_PX
from schemas import Appointment, AppointmentForm, FormDefaults, form_defaults, form_to_payload
from scheduler.book import AppointmentBook
from scheduler.placement import (
    Layout,
    ViewMode,
    ViewWindow,
    layout_window,
    shift_anchor,
    view_label,
)
from scheduler.reconciler import DragGesture, DragRescheduleReconciler
from scheduler.status import (
    StatusClassifier,
    three_state_status,
    timezone_status_classifier,
    upcoming_for_day,
)
from scheduler.timecodec import (
    default_new_slot,
    format_digital_time,
    now_in_zone,
    parse_date,
    slot_height_offset,
    timezone_abbreviation,
)
from scheduler.timers import ScopedTimers
from session import Session
from store_client import StoreError, UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass
class SearchOutcome:
    results: List[Appointment] = field(default_factory=list)
    # first hit, for the view to scroll to
    focus: Optional[Appointment] = None
    date_changed: bool = False


class CalendarController:
    def __init__(
        self,
        store,
        session: Session,
        *,
        selected_date: Any = None,
        mode: ViewMode = ViewMode.DAY,
        slot_height: float = SLOT_HEIGHT_PX,
        clock: Optional[Callable[[], datetime]] = None,
        timers: Optional[ScopedTimers] = None,
        submit: Optional[Callable[..., Any]] = None,
    ):
        self.store = store
        self.session = session
        self.slot_height = slot_height
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.timers = timers or ScopedTimers()
        self.book = AppointmentBook()

        self.mode = mode
        self.selected_date: date = parse_date(selected_date) or self.now().date()
        self.highlighted: List[str] = []
        self.error_message: Optional[str] = None

        self.show_modal = False
        self.editing: Optional[Appointment] = None
        self.new_slot_time: Optional[datetime] = None

        self.current_time: datetime = self.now()
        self.now_px: int = 0
        self._closed = False

        self.reconciler = DragRescheduleReconciler(
            store,
            self.book,
            session,
            self.refresh,
            submit=submit,
            call_later=self.timers.call_later,
            slot_height=slot_height,
        )
        session.on_end(self._on_session_end)

    # ---------- derived ----------
    @property
    def appointments(self) -> List[Appointment]:
        return self.book.items()

    @property
    def time_zone_id(self) -> Optional[str]:
        return self.session.time_zone_id

    @property
    def window(self) -> ViewWindow:
        return ViewWindow(mode=self.mode, anchor_date=self.selected_date)

    @property
    def zone_classifier(self) -> StatusClassifier:
        return timezone_status_classifier(self.time_zone_id)

    def now(self) -> datetime:
        """Viewer's wall-clock time."""
        return now_in_zone(self.time_zone_id, self.clock())

    def block_status(self, appointment, now: Optional[datetime] = None):
        # record times are wall-clock in the viewer's zone
        return three_state_status(appointment, self.now())

    # ---------- timers ----------
    def start(self) -> None:
        self.tick_clock()
        self.tick_now_line()
        self.timers.call_every(CLOCK_TICK_SECONDS, self.tick_clock)
        self.timers.call_every(NOW_LINE_TICK_SECONDS, self.tick_now_line)

    def tick_clock(self) -> None:
        if self._closed:
            return
        self.current_time = self.now()

    def tick_now_line(self) -> None:
        if self._closed or not self.time_zone_id:
            return
        self.now_px = slot_height_offset(self.now(), self.slot_height) or 0

    def clock_display(self) -> str:
        abbr = timezone_abbreviation(self.time_zone_id, self.clock())
        text = format_digital_time(self.current_time)
        return f"{text} {abbr}" if abbr else text

    # ---------- store ----------
    def refresh(self) -> bool:
        """Reload the full list from the store."""
        if self._closed:
            return False
        token = self.session.token
        if not token or self.session.user is None:
            return False
        try:
            items = self.store.list(token)
        except UnauthorizedError:
            logger.info("fetch rejected; token may be expired")
            self.session.end()
            return False
        except StoreError as e:
            if not self._closed:
                self.error_message = e.message
            return False
        if self._closed:
            return False
        self.book.replace_all(items)
        return True

    # ---------- dialog ----------
    def open_new(self, slot_time: Optional[datetime] = None) -> FormDefaults:
        self.editing = None
        self.new_slot_time = slot_time or default_new_slot(self.now())
        self.show_modal = True
        return form_defaults(new_slot_time=self.new_slot_time)

    def open_edit(self, appointment: Appointment) -> FormDefaults:
        self.editing = appointment
        self.new_slot_time = None
        self.show_modal = True
        return form_defaults(editing=appointment)

    def close_modal(self) -> None:
        self.show_modal = False
        self.editing = None
        self.new_slot_time = None

    def submit_form(self, form: AppointmentForm) -> bool:
        """
        Create (new mode) or full-replace update (edit mode). On failure the
        dialog stays open and the message is kept for display.
        """
        token = self.session.token
        if not token or self.session.user is None:
            return False
        payload = form_to_payload(form, self.selected_date)
        try:
            if self.editing is not None and self.editing.id is not None:
                self.store.update(token, self.editing.id, payload)
            else:
                self.store.create(token, payload)
        except UnauthorizedError:
            self.session.end()
            return False
        except StoreError as e:
            self.error_message = e.message
            return False
        self.close_modal()
        self.refresh()
        return True

    def delete(self) -> bool:
        """Delete the appointment being edited. A draft without an id is a no-op."""
        if self.editing is None or self.editing.id is None:
            return False
        token = self.session.token
        if not token:
            return False
        try:
            self.store.delete(token, self.editing.id)
        except UnauthorizedError:
            self.session.end()
            return False
        except StoreError as e:
            self.error_message = e.message
            return False
        self.close_modal()
        self.refresh()
        return True

    def dismiss_error(self) -> None:
        self.error_message = None

    # ---------- search ----------
    def search(self, keyword: str) -> Optional[SearchOutcome]:
        """
        Highlight matches and jump to the first one's day. A blank keyword
        does nothing; a failed search clears the highlights.
        """
        if not keyword or not keyword.strip():
            return None
        token = self.session.token or ""
        try:
            results = self.store.search(token, keyword)
        except UnauthorizedError:
            self.highlighted = []
            self.session.end()
            return SearchOutcome()
        except StoreError as e:
            logger.warning("search for %r failed: %s", keyword, e.message)
            self.highlighted = []
            return SearchOutcome()

        self.highlighted = [a.key for a in results]
        outcome = SearchOutcome(results=results)
        if results:
            outcome.focus = results[0]
            first_day = results[0].start_time.date() if results[0].start_time else None
            if first_day is not None and first_day != self.selected_date:
                self.selected_date = first_day
                outcome.date_changed = True
        return outcome

    # ---------- navigation ----------
    def set_view(self, mode: ViewMode) -> None:
        self.mode = ViewMode(mode)

    def select_date(self, value: Any) -> None:
        d = parse_date(value)
        if d is not None:
            self.selected_date = d

    def navigate(self, steps: int = 1) -> date:
        self.selected_date = shift_anchor(self.selected_date, self.mode, steps)
        return self.selected_date

    def handle_shortcut(self, key: str, *, shift: bool = False, alt: bool = False) -> bool:
        """Shift+N opens a new appointment; Alt+Shift+D/W/M switch views."""
        k = (key or "").lower()
        if shift and not alt and k == "n":
            self.open_new(self.now())
            return True
        if shift and alt and k in ("d", "w", "m"):
            self.mode = {"d": ViewMode.DAY, "w": ViewMode.WEEK, "m": ViewMode.MONTH}[k]
            return True
        return False

    # ---------- rendering ----------
    def render(self) -> Layout:
        # Day and week blocks use the three-state rule; the month grid
        # colours by the viewer's zone, like the sidebar.
        classifier = self.zone_classifier if self.mode is ViewMode.MONTH else self.block_status
        return layout_window(
            self.window,
            self.appointments,
            slot_height=self.slot_height,
            classifier=classifier,
            time_zone_id=self.time_zone_id,
            now=self.clock(),
            highlighted=self.highlighted,
        )

    def header_label(self) -> str:
        return view_label(self.window)

    def upcoming(self) -> List[Appointment]:
        return upcoming_for_day(self.appointments, self.selected_date, self.zone_classifier, self.clock())

    # ---------- drag ----------
    def drag_start(self, appointment_id) -> DragGesture:
        return self.reconciler.start_drag(appointment_id)

    def drop(self, offset_y: float, appointment_id=None) -> Optional[DragGesture]:
        return self.reconciler.drop(offset_y, self.selected_date, appointment_id)

    # ---------- teardown ----------
    def _on_session_end(self) -> None:
        if self._closed:
            return
        self.book.clear()
        self.highlighted = []
        self.close_modal()

    def close(self) -> None:
        self._closed = True
        self.session.off_end(self._on_session_end)
        self.timers.close()
        self.reconciler.close()
