"""
Calendar session state

One ``CalendarSession`` holds everything an agent's calendar view edits in
memory: the appointments last fetched from the record store, the projected
events, the pending change batch, the staging area and the visible week. The
drag engine and save coordinator share it by reference.
"""

import logging
from datetime import date, datetime
from typing import Callable, Iterable, Optional, Union
from zoneinfo import ZoneInfo

from ...config import WEEK_STARTS_ON
from ...shared.timeutils import calendar_zone, wall_clock_now
from ..appointments.schemas import AppointmentResponse
from .changes import ChangeBatch, PendingChange
from .events import CalendarEvent, project_events
from .staging import StagingArea
from .week_grid import DayLayout, WeekGrid, layout_week

logger = logging.getLogger(__name__)

WeekChangeCallback = Callable[[date, date], None]


class CalendarSession:
    def __init__(
        self,
        appointments: Iterable[AppointmentResponse] = (),
        *,
        staging: Optional[StagingArea] = None,
        on_week_change: Optional[WeekChangeCallback] = None,
        zone: Optional[ZoneInfo] = None,
        clock: Optional[Callable[[], datetime]] = None,
        week_starts_on: int = WEEK_STARTS_ON,
        grid: Optional[WeekGrid] = None,
    ):
        self.zone = zone or calendar_zone()
        self._clock = clock or (lambda: wall_clock_now(self.zone))
        self.appointments: list[AppointmentResponse] = []
        self.events: list[CalendarEvent] = []
        self.changes = ChangeBatch()
        self.staging = staging or StagingArea()
        self.on_week_change = on_week_change
        self.is_saving = False

        self.load(appointments)
        self.grid = grid or WeekGrid.initial_for(
            self.appointments, self.now(), self.zone, week_starts_on
        )

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def load(self, appointments: Iterable[AppointmentResponse]) -> None:
        """Replace the working copy with a fresh list from the record store"""
        self.appointments = list(appointments)
        self.reproject()

    def reproject(self) -> None:
        """
        Rebuild events from the appointments, then overlay what is still
        pending: staged events stay off the grid and unsaved changes keep
        their new time/status.
        """
        events = [
            e
            for e in project_events(self.appointments, self.now(), self.zone)
            if e.display_id not in self.staging
        ]
        for change in self.changes:
            events = self._overlay(events, change)
        self.events = events
        logger.debug(f"Projected {len(events)} calendar events from {len(self.appointments)} appointments")

    @staticmethod
    def _overlay(events: list[CalendarEvent], change: PendingChange) -> list[CalendarEvent]:
        own = [e for e in events if e.appointment_id == change.appointment_id]
        if not own:
            return events
        base = next((e for e in own if e.start == change.new_datetime), None)
        event = base if base is not None else own[0].moved_to(change.new_datetime)
        if change.status:
            event = event.with_status(change.status)
        return [e for e in events if e.appointment_id != change.appointment_id] + [event]

    def appointment(self, appointment_id: int) -> Optional[AppointmentResponse]:
        return next((a for a in self.appointments if a.id == appointment_id), None)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def find_event(self, display_id: str) -> Optional[CalendarEvent]:
        return next((e for e in self.events if e.display_id == display_id), None)

    def events_for(self, appointment_id: int) -> list[CalendarEvent]:
        return [e for e in self.events if e.appointment_id == appointment_id]

    def add_event(self, event: CalendarEvent) -> None:
        self.events.append(event)

    def remove_event(self, display_id: str) -> Optional[CalendarEvent]:
        event = self.find_event(display_id)
        if event is not None:
            self.events.remove(event)
        return event

    def replace_event(self, event: CalendarEvent) -> None:
        self.events = [event if e.display_id == event.display_id else e for e in self.events]

    def remove_appointment_events(self, appointment_id: int) -> list[CalendarEvent]:
        removed = self.events_for(appointment_id)
        self.events = [e for e in self.events if e.appointment_id != appointment_id]
        return removed

    # ------------------------------------------------------------------
    # Week navigation
    # ------------------------------------------------------------------

    def _navigate(self, grid: WeekGrid) -> WeekGrid:
        self.grid = grid
        if self.on_week_change:
            self.on_week_change(grid.anchor, grid.end)
        return grid

    def previous_week(self) -> WeekGrid:
        return self._navigate(self.grid.previous())

    def next_week(self) -> WeekGrid:
        return self._navigate(self.grid.next())

    def fast_forward(self) -> WeekGrid:
        return self._navigate(self.grid.fast_forward())

    def jump_to(self, target: Union[date, str]) -> WeekGrid:
        return self._navigate(self.grid.jump_to(target))

    def go_to_today(self) -> WeekGrid:
        return self._navigate(self.grid.today(self.now()))

    def week_layout(self) -> list[DayLayout]:
        return layout_week(self.events, self.grid)

    @property
    def has_pending_changes(self) -> bool:
        return bool(self.changes)
