"""
Drag-reschedule engine

Single active drag at a time: ``start`` picks up an event from the grid or
the staging area, ``hover`` tracks the cell under the pointer (and flips the
week when it rests on the first or last day column), and a drop either moves
the appointment to a new time or parks it in staging. All transitions are
synchronous mutations of the shared ``CalendarSession``.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from ...config import DRAG_EDGE_NAVIGATION_DELAY
from ...models import APPOINTMENT_STATUSES
from .errors import InvalidDropError, NoActiveDragError, SchedulingError
from .events import CalendarEvent
from .session import CalendarSession
from .week_grid import DAYS_PER_WEEK

logger = logging.getLogger(__name__)

# scheduler(delay_seconds, callback, *args) -> handle with .cancel()
Scheduler = Callable[..., Any]


def default_scheduler(delay: float, callback: Callable[..., None], *args):
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        timer = threading.Timer(delay, callback, args)
        timer.daemon = True
        timer.start()
        return timer
    return loop.call_later(delay, callback, *args)


class DragPhase(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class DragSource(str, Enum):
    GRID = "grid"
    STAGING = "staging"


class DropOutcome(str, Enum):
    UNCHANGED = "unchanged"
    MOVED = "moved"
    RESTORED = "restored"
    STAGED = "staged"


@dataclass(frozen=True)
class DropTarget:
    day_index: int
    slot_index: int


@dataclass
class DragState:
    phase: DragPhase = DragPhase.IDLE
    event: Optional[CalendarEvent] = None
    source: Optional[DragSource] = None
    hover: Optional[DropTarget] = None

    @property
    def active(self) -> bool:
        return self.phase is DragPhase.DRAGGING


class EdgeNavigator:
    """
    One-shot timer armed while a drag rests on an edge column.

    The default scheduler uses the running asyncio loop's ``call_later`` and
    falls back to a daemon ``threading.Timer`` when called from plain
    synchronous code. Tests inject their own.
    """

    def __init__(self, delay: float = DRAG_EDGE_NAVIGATION_DELAY, scheduler: Optional[Scheduler] = None):
        self.delay = delay
        self._scheduler = scheduler
        self._handle = None
        self.direction: Optional[int] = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self, direction: int, callback: Callable[[], None]) -> None:
        if self.armed and self.direction == direction:
            return
        self.cancel()
        schedule = self._scheduler or default_scheduler
        self.direction = direction
        self._handle = schedule(self.delay, self._fire, callback)

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        self.direction = None
        callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self.direction = None


class DragRescheduleEngine:
    def __init__(
        self,
        session: CalendarSession,
        scheduler: Optional[Scheduler] = None,
        delay: float = DRAG_EDGE_NAVIGATION_DELAY,
    ):
        self.session = session
        self.state = DragState()
        self.edge = EdgeNavigator(delay, scheduler)

    # ------------------------------------------------------------------
    # Drag lifecycle
    # ------------------------------------------------------------------

    def start(self, display_id: str) -> DragState:
        event = self.session.find_event(display_id)
        source = DragSource.GRID
        if event is None:
            entry = self.session.staging.find(display_id)
            if entry is None:
                raise SchedulingError(f"No event to drag: {display_id}")
            event, source = entry.event, DragSource.STAGING

        self.edge.cancel()
        self.state = DragState(DragPhase.DRAGGING, event, source)
        return self.state

    def _require_drag(self) -> DragState:
        if not self.state.active:
            raise NoActiveDragError("No drag in progress")
        return self.state

    def hover(self, target: DropTarget) -> None:
        state = self._require_drag()
        state.hover = target
        if target.day_index == 0:
            self.edge.arm(-1, lambda: self._edge_navigate(-1))
        elif target.day_index == DAYS_PER_WEEK - 1:
            self.edge.arm(1, lambda: self._edge_navigate(1))
        else:
            self.edge.cancel()

    def _edge_navigate(self, direction: int) -> None:
        if not self.state.active:
            return
        grid = self.session.previous_week() if direction < 0 else self.session.next_week()
        logger.debug(f"Drag rested on week edge, moved to week of {grid.anchor}")

    def leave_grid(self) -> None:
        self.edge.cancel()
        self.state.hover = None

    def cancel(self) -> None:
        self.edge.cancel()
        self.state = DragState()

    # ------------------------------------------------------------------
    # Drops
    # ------------------------------------------------------------------

    def drop_on_slot(self, target: DropTarget) -> DropOutcome:
        state = self._require_drag()
        try:
            try:
                new_start = self.session.grid.slot_datetime(target.day_index, target.slot_index)
            except ValueError as e:
                raise InvalidDropError(str(e)) from e

            event = state.event
            if event.start == new_start:
                return DropOutcome.UNCHANGED

            if state.source is DragSource.STAGING:
                self.session.staging.take(event.display_id)
                self.consolidate_to_single_time(event.appointment_id, new_start, event)
                return DropOutcome.RESTORED

            self.consolidate_to_single_time(event.appointment_id, new_start, event)
            return DropOutcome.MOVED
        finally:
            self.cancel()

    def drop_on_staging(self) -> DropOutcome:
        """Park the dragged event off the grid; no pending change is recorded"""
        state = self._require_drag()
        try:
            if state.source is DragSource.STAGING:
                return DropOutcome.UNCHANGED
            event = self.session.remove_event(state.event.display_id)
            if event is None:
                raise SchedulingError(f"Event left the grid during the drag: {state.event.display_id}")
            self.session.staging.append(replace(event, is_original=False))
            return DropOutcome.STAGED
        finally:
            self.cancel()

    # ------------------------------------------------------------------
    # Named edits
    # ------------------------------------------------------------------

    def consolidate_to_single_time(
        self, appointment_id: int, new_start: datetime, template: Optional[CalendarEvent] = None
    ) -> CalendarEvent:
        """
        Collapse every grid event of an appointment into one event at
        ``new_start`` and record the move.
        """
        removed = self.session.remove_appointment_events(appointment_id)
        base = template or (removed[0] if removed else None)
        if base is None:
            raise SchedulingError(f"Appointment {appointment_id} has no event to move")

        moved = base.moved_to(new_start)
        self.session.add_event(moved)
        self.session.changes.record_move(appointment_id, new_start)
        if len(removed) > 1:
            logger.debug(f"Consolidated {len(removed)} events of appointment {appointment_id} to {new_start}")
        return moved

    def change_status(self, display_id: str, status: str) -> CalendarEvent:
        """Set a status without moving the event"""
        if status not in APPOINTMENT_STATUSES:
            raise SchedulingError(f"Invalid status: {status}")
        event = self.session.find_event(display_id)
        if event is None:
            raise SchedulingError(f"No event on the grid: {display_id}")

        updated = event.with_status(status)
        self.session.replace_event(updated)
        self.session.changes.record_status(event.appointment_id, event.start, status)
        return updated
