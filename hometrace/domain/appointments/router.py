"""Appointment router - FastAPI endpoints for the appointment record store"""

import logging
from html import escape
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from ...auth import require_admin, require_staff
from ...config import FRONTEND_URL
from ...database import get_db
from ...email_service import format_viewing_time
from ...models import User
from ...shared.timeutils import to_wall_clock
from .schemas import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentUpdate,
    AppointmentUpdateResponse,
    CleanupResponse,
    appointment_response,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])
admin_router = APIRouter(prefix="/admin/appointments", tags=["Admin Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


# ============================================================================
# PUBLIC ROUTES
# ============================================================================


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Submit a viewing request with 1-3 preferred times"""
    appointment = await service.create_appointment(data)
    return appointment_response(appointment)


@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
    propertyId: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: AppointmentService = Depends(get_appointment_service),
):
    """List appointments, optionally for one property"""
    return service.list_appointments(propertyId, page, limit)


@router.get("/{appointment_id}/respond", response_class=HTMLResponse)
async def respond_to_proposal(
    appointment_id: int,
    action: str = Query(...),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Customer accepts or declines the agent's proposed time (email link target)"""
    appointment = await service.respond_to_proposal(appointment_id, action)
    accepted = action == "accept"
    proposed = format_viewing_time(to_wall_clock(appointment.agent_scheduled_at))
    heading = "Appointment Confirmed!" if accepted else "Appointment Declined"
    body = (
        "Thank you for confirming your appointment. We look forward to seeing you!"
        if accepted
        else "Your appointment has been cancelled. If you would like to reschedule, "
        "please contact your agent directly."
    )
    return HTMLResponse(
        f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>Appointment Response - HomeTrace</title></head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 50px auto; text-align: center;">
  <h1>{heading}</h1>
  <p>{body}</p>
  <p><strong>Status:</strong> {escape(appointment.status.upper())}<br>
     <strong>Proposed Time:</strong> {escape(proposed)}</p>
  <a href="{escape(FRONTEND_URL)}">Return to HomeTrace</a>
</body>
</html>"""
    )


# ============================================================================
# STAFF ROUTES
# ============================================================================


@admin_router.get("", response_model=AppointmentListResponse)
async def search_appointments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=1000),
    agentId: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    current_user: User = Depends(require_staff),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Appointments visible to the caller with agent/status/search/date-range filters"""
    return service.search_appointments(
        current_user,
        agent_id=agentId,
        status=status,
        search=search,
        start_date=startDate,
        end_date=endDate,
        page=page,
        limit=limit,
    )


@admin_router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_appointments(
    current_user: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Repair legacy appointments with no preferred dates"""
    return service.cleanup_missing_candidates()


@admin_router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.get_appointment(appointment_id)
    return {"success": True, "data": appointment_response(appointment)}


@admin_router.patch("/{appointment_id}", response_model=AppointmentUpdateResponse)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    current_user: User = Depends(require_staff),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Partially update status, preferred dates or the agent scheduled time"""
    return await service.update_appointment(appointment_id, data, current_user)


@admin_router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: int,
    current_user: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.delete_appointment(appointment_id)


__all__ = ["router", "admin_router", "get_appointment_service"]
