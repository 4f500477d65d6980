"""
Event projection

Expands stored appointments into the calendar events shown on the agent's
week grid. An agent scheduled time supersedes the customer's candidates;
without one every candidate becomes its own event until the agent picks.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union
from zoneinfo import ZoneInfo

from ...shared.timeutils import calendar_zone, to_wall_clock, wall_clock_now
from ...shared.validators import candidate_to_datetime
from ..appointments.schemas import AppointmentResponse, PropertySummary

logger = logging.getLogger(__name__)

SLOT_MINUTES = 15
DEFAULT_DURATION_SLOTS = 4  # 1 hour

STATUS_COLORS = {
    "confirmed": "bg-green-500",
    "pending": "bg-yellow-500",
    "cancelled": "bg-red-500",
}
DEFAULT_STATUS_COLOR = "bg-gray-500"

MISSING_ADDRESS = "Property address not available"


@dataclass(frozen=True)
class CandidateEventKey:
    """Identity of an event derived from the customer's n-th candidate time"""

    appointment_id: int
    index: int

    @property
    def display_id(self) -> str:
        return f"{self.appointment_id}-{self.index}"


@dataclass(frozen=True)
class ScheduledEventKey:
    """Identity of the single event derived from the agent scheduled time"""

    appointment_id: int

    @property
    def display_id(self) -> str:
        return f"{self.appointment_id}-agent-scheduled"


EventKey = Union[CandidateEventKey, ScheduledEventKey]


@dataclass(frozen=True)
class CalendarEvent:
    key: EventKey
    start: datetime
    status: str
    customer_name: str
    property_address: str = MISSING_ADDRESS
    is_original: bool = False
    duration_slots: int = DEFAULT_DURATION_SLOTS

    @property
    def title(self) -> str:
        return self.customer_name

    @property
    def appointment_id(self) -> int:
        return self.key.appointment_id

    @property
    def display_id(self) -> str:
        return self.key.display_id

    @property
    def is_agent_scheduled(self) -> bool:
        return isinstance(self.key, ScheduledEventKey)

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=SLOT_MINUTES * self.duration_slots)

    @property
    def color(self) -> str:
        return status_color(self.status)

    def moved_to(self, start: datetime) -> "CalendarEvent":
        """Copy placed at ``start`` with the default duration, marked as agent-modified"""
        return replace(self, start=start, duration_slots=DEFAULT_DURATION_SLOTS, is_original=False)

    def with_status(self, status: str) -> "CalendarEvent":
        return replace(self, status=status)


def status_color(status: str) -> str:
    return STATUS_COLORS.get(status, DEFAULT_STATUS_COLOR)


def property_address(prop: Optional[PropertySummary]) -> str:
    if prop is None:
        return MISSING_ADDRESS
    return prop.short_address


def _scheduled_start(appointment: AppointmentResponse, zone: ZoneInfo) -> Optional[datetime]:
    if appointment.agentScheduledDateTime is None:
        return None
    return to_wall_clock(appointment.agentScheduledDateTime, zone)


def _candidate_starts(appointment: AppointmentResponse) -> list[tuple[int, datetime]]:
    starts = []
    for index, candidate in enumerate(appointment.customerPreferredDates or []):
        try:
            starts.append((index, candidate_to_datetime(candidate.model_dump())))
        except (ValueError, TypeError) as e:
            logger.warning(
                f"⚠️ Skipping unreadable preferred date {candidate!r} on appointment {appointment.id}: {e}"
            )
    return starts


def project_appointment(
    appointment: AppointmentResponse, today: date, zone: ZoneInfo
) -> list[CalendarEvent]:
    """Events for one appointment whose start date is today or later"""
    name = f"{appointment.firstName} {appointment.lastName}"
    address = property_address(appointment.property)
    status = appointment.status or "pending"

    scheduled = _scheduled_start(appointment, zone)
    if scheduled is not None:
        if scheduled.date() < today:
            return []
        return [
            CalendarEvent(
                key=ScheduledEventKey(appointment.id),
                start=scheduled,
                status=status,
                customer_name=name,
                property_address=address,
                is_original=False,
            )
        ]

    return [
        CalendarEvent(
            key=CandidateEventKey(appointment.id, index),
            start=start,
            status=status,
            customer_name=name,
            property_address=address,
            is_original=True,
        )
        for index, start in _candidate_starts(appointment)
        if start.date() >= today
    ]


def project_events(
    appointments: Iterable[AppointmentResponse],
    now: Optional[datetime] = None,
    zone: Optional[ZoneInfo] = None,
) -> list[CalendarEvent]:
    """
    Expand appointments into calendar events for today onwards.

    ``now`` is naive wall-clock time in ``zone`` (defaults to the calendar zone).
    """
    zone = zone or calendar_zone()
    today = (now or wall_clock_now(zone)).date()

    events: list[CalendarEvent] = []
    for appointment in appointments:
        events.extend(project_appointment(appointment, today, zone))
    return events


def earliest_event_date(
    appointments: Iterable[AppointmentResponse],
    now: Optional[datetime] = None,
    zone: Optional[ZoneInfo] = None,
) -> Optional[date]:
    """Earliest today-or-later event date across all appointments, if any"""
    dates = [event.start.date() for event in project_events(appointments, now, zone)]
    return min(dates) if dates else None
