"""
Agent calendar domain

Projection of appointments onto a week grid, drag rescheduling, staging and
batch save against the appointment record store.
"""

from .changes import ChangeBatch, PendingChange
from .drag import DragRescheduleEngine, DragState, DropOutcome, DropTarget, EdgeNavigator
from .errors import (
    AppointmentNotFoundError,
    InvalidDropError,
    NoActiveDragError,
    SchedulingError,
    StoreError,
    StoreUnavailableError,
)
from .events import CalendarEvent, CandidateEventKey, ScheduledEventKey, project_events
from .router import router
from .save import SaveCoordinator, SaveSummary
from .session import CalendarSession
from .staging import StagingArea, StagingEntry
from .store import AppointmentStore, HttpAppointmentStore, ServiceAppointmentStore, UpdateOutcome
from .week_grid import OverflowIndicator, TimeSlot, WeekGrid, layout_day

__all__ = [
    "router",
    "AppointmentNotFoundError",
    "AppointmentStore",
    "CalendarEvent",
    "CalendarSession",
    "CandidateEventKey",
    "ChangeBatch",
    "DragRescheduleEngine",
    "DragState",
    "DropOutcome",
    "DropTarget",
    "EdgeNavigator",
    "HttpAppointmentStore",
    "InvalidDropError",
    "NoActiveDragError",
    "OverflowIndicator",
    "PendingChange",
    "SaveCoordinator",
    "SaveSummary",
    "ScheduledEventKey",
    "SchedulingError",
    "ServiceAppointmentStore",
    "StagingArea",
    "StagingEntry",
    "StoreError",
    "StoreUnavailableError",
    "TimeSlot",
    "UpdateOutcome",
    "WeekGrid",
    "layout_day",
    "project_events",
]
