"""Calendar domain schemas - week view and batch save payloads"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..appointments.schemas import AppointmentStatus
from .week_grid import DayLayout, EventPlacement, OverflowIndicator, TimeSlot, WeekGrid


class SlotOut(BaseModel):
    index: int
    hour: int
    minute: int
    label: str


class DayOut(BaseModel):
    index: int
    date: date
    label: str


class EventOut(BaseModel):
    id: str
    appointmentId: int
    title: str
    propertyAddress: str
    start: datetime
    end: datetime
    status: str
    color: str
    isOriginal: bool
    isAgentScheduled: bool
    dayIndex: int
    row: int
    rowSpan: int
    left: float
    width: float
    zIndex: int


class OverflowOut(BaseModel):
    dayIndex: int
    slotIndex: int
    hiddenCount: int
    label: str


class WeekViewResponse(BaseModel):
    success: bool = True
    title: str
    weekStart: date
    weekEnd: date
    days: list[DayOut]
    slots: list[SlotOut]
    events: list[EventOut]
    overflow: list[OverflowOut]


class CalendarChange(BaseModel):
    appointmentId: int
    newDateTime: datetime
    status: Optional[AppointmentStatus] = None


class CalendarChangesRequest(BaseModel):
    changes: list[CalendarChange] = Field(default_factory=list)

    @field_validator("changes")
    @classmethod
    def validate_unique(cls, v):
        ids = [c.appointmentId for c in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Only one change per appointment is allowed")
        return v


class CalendarSaveResponse(BaseModel):
    success: bool
    message: str
    appointmentsUpdated: int
    notificationsSent: int
    failed: int
    failedAppointmentIds: list[int] = []


def slot_out(slot: TimeSlot) -> SlotOut:
    return SlotOut(index=slot.index, hour=slot.hour, minute=slot.minute, label=slot.label)


def event_out(placement: EventPlacement) -> EventOut:
    event = placement.event
    return EventOut(
        id=event.display_id,
        appointmentId=event.appointment_id,
        title=event.title,
        propertyAddress=event.property_address,
        start=event.start,
        end=event.end,
        status=event.status,
        color=event.color,
        isOriginal=event.is_original,
        isAgentScheduled=event.is_agent_scheduled,
        dayIndex=placement.day_index,
        row=placement.row,
        rowSpan=placement.row_span,
        left=placement.left_pct,
        width=placement.width_pct,
        zIndex=placement.z_index,
    )


def overflow_out(indicator: OverflowIndicator) -> OverflowOut:
    return OverflowOut(
        dayIndex=indicator.day_index,
        slotIndex=indicator.slot_index,
        hiddenCount=indicator.hidden_count,
        label=indicator.label,
    )


def week_view(grid: WeekGrid, layouts: list[DayLayout]) -> WeekViewResponse:
    return WeekViewResponse(
        title=grid.title,
        weekStart=grid.anchor,
        weekEnd=grid.end,
        days=[
            DayOut(index=i, date=day, label=f"{day.strftime('%a')} {day.day}")
            for i, day in enumerate(grid.days)
        ],
        slots=[slot_out(s) for s in grid.slots],
        events=[event_out(p) for layout in layouts for p in layout.visible],
        overflow=[overflow_out(o) for layout in layouts for o in layout.overflow],
    )
