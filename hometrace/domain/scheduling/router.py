"""Calendar router - week view and batch save for the agent calendar"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import require_staff
from ...database import get_db
from ...models import User
from ...shared.timeutils import to_wall_clock
from .save import SaveCoordinator
from .schemas import CalendarChangesRequest, CalendarSaveResponse, WeekViewResponse, week_view
from .session import CalendarSession
from .store import ServiceAppointmentStore
from .week_grid import WeekGrid, slot_index_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calendar", tags=["Calendar"])


def get_calendar_store(
    agentId: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
) -> ServiceAppointmentStore:
    """Dependency injection for the in-process appointment store"""
    return ServiceAppointmentStore(db, current_user, agent_id=agentId)


@router.get("/week", response_model=WeekViewResponse)
async def get_week(
    anchor: Optional[str] = Query(None, description="Any date in the week, YYYY-MM-DD"),
    store: ServiceAppointmentStore = Depends(get_calendar_store),
):
    """Laid-out week grid; without an anchor, the week of the earliest upcoming event"""
    grid = None
    if anchor:
        try:
            grid = WeekGrid(date.fromisoformat(anchor))
        except ValueError as e:
            raise HTTPException(status_code=400, detail="Invalid anchor date, expected YYYY-MM-DD") from e

    # Without an anchor the initial week depends on the earliest event, so load everything
    appointments = await (store.fetch_window(grid.anchor, grid.end) if grid else store.fetch_window())
    session = CalendarSession(appointments, zone=store.zone, grid=grid)
    return week_view(session.grid, session.week_layout())


@router.post("/changes", response_model=CalendarSaveResponse)
async def save_changes(
    data: CalendarChangesRequest,
    store: ServiceAppointmentStore = Depends(get_calendar_store),
):
    """Apply a batch of moves/status changes in order, tolerating per-item failures"""
    session = CalendarSession(zone=store.zone)
    for change in data.changes:
        new_start = change.newDateTime
        if new_start.tzinfo is not None:
            new_start = to_wall_clock(new_start, store.zone)
        if new_start.second or new_start.microsecond or new_start.minute % 15:
            raise HTTPException(
                status_code=400,
                detail=f"Appointment {change.appointmentId}: time must be on a 15-minute boundary",
            )
        if slot_index_for(new_start) is None:
            raise HTTPException(
                status_code=400,
                detail=f"Appointment {change.appointmentId}: time must be between 9:00 and 18:45",
            )

        session.changes.record_move(change.appointmentId, new_start)
        if change.status:
            session.changes.record_status(change.appointmentId, new_start, change.status)

    summary = await SaveCoordinator(session, store).save(refresh=False)
    logger.info(f"📆 Calendar save by user {store.user.id}: {summary.message}")
    return CalendarSaveResponse(
        success=summary.success,
        message=summary.message,
        appointmentsUpdated=summary.appointments_updated,
        notificationsSent=summary.notifications_sent,
        failed=summary.failed,
        failedAppointmentIds=list(summary.failed_ids),
    )
