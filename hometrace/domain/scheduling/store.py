"""
Appointment record store boundary

The calendar core reads appointments and writes partial updates through an
``AppointmentStore``. ``ServiceAppointmentStore`` runs in-process against the
appointment service; ``HttpAppointmentStore`` talks to a remote HomeTrace API.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Optional, Protocol
from zoneinfo import ZoneInfo

import httpx
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import CALENDAR_FETCH_LIMIT
from ...models import User
from ...shared.timeutils import calendar_zone, to_utc_naive
from ..appointments.schemas import (
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentUpdate,
    AppointmentUpdateResponse,
    appointment_response,
)
from ..appointments.service import AppointmentService
from .errors import AppointmentNotFoundError, StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)


class UpdateRejectedError(StoreError):
    """Record store refused the payload (validation or permissions)"""


@dataclass(frozen=True)
class UpdateOutcome:
    appointment_id: int
    notification_sent: bool
    agent_scheduled_at: Optional[datetime] = None
    appointment: Optional[AppointmentResponse] = None


class AppointmentStore(Protocol):
    async def fetch_window(
        self, start: Optional[date] = None, end: Optional[date] = None
    ) -> list[AppointmentResponse]: ...

    async def update(self, appointment_id: int, payload: dict[str, Any]) -> UpdateOutcome: ...


def window_bounds(start: date, end: date, zone: Optional[ZoneInfo] = None) -> tuple[str, str]:
    """ISO UTC bounds covering whole wall-clock days ``start`` through ``end``"""
    zone = zone or calendar_zone()
    lower = to_utc_naive(datetime.combine(start, time.min), zone)
    upper = to_utc_naive(datetime.combine(end, time.max), zone)
    return lower.isoformat() + "Z", upper.isoformat() + "Z"


class ServiceAppointmentStore:
    """In-process store acting as ``user`` through ``AppointmentService``"""

    def __init__(
        self,
        db: Session,
        user: User,
        agent_id: Optional[str] = None,
        zone: Optional[ZoneInfo] = None,
        limit: int = CALENDAR_FETCH_LIMIT,
    ):
        self.db = db
        self.user = user
        self.agent_id = agent_id
        self.limit = limit
        self.zone = zone or calendar_zone()
        self.service = AppointmentService(db)

    async def fetch_window(
        self, start: Optional[date] = None, end: Optional[date] = None
    ) -> list[AppointmentResponse]:
        bounds = window_bounds(start, end, self.zone) if start and end else (None, None)
        try:
            items = self.service.filter_appointments(
                self.user, agent_id=self.agent_id, start_date=bounds[0], end_date=bounds[1]
            )
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to load appointments: {e}")
            raise StoreUnavailableError(message=str(e)) from e
        return [appointment_response(a) for a in items[: self.limit]]

    async def update(self, appointment_id: int, payload: dict[str, Any]) -> UpdateOutcome:
        try:
            data = AppointmentUpdate.model_validate(payload)
            result = await self.service.update_appointment(appointment_id, data, self.user)
        except ValidationError as e:
            raise UpdateRejectedError(appointment_id, str(e)) from e
        except HTTPException as e:
            if e.status_code == 404:
                raise AppointmentNotFoundError(appointment_id, str(e.detail)) from e
            raise UpdateRejectedError(appointment_id, str(e.detail)) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Database error updating appointment {appointment_id}: {e}")
            raise StoreUnavailableError(appointment_id, str(e)) from e

        return UpdateOutcome(
            appointment_id=appointment_id,
            notification_sent=result.proposalEmailSent,
            agent_scheduled_at=result.agentScheduledDateTime,
            appointment=result.data,
        )


class HttpAppointmentStore:
    """Store backed by the staff appointment API of a remote host"""

    def __init__(
        self,
        base_url: str,
        token: str,
        agent_id: Optional[str] = None,
        limit: int = CALENDAR_FETCH_LIMIT,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        zone: Optional[ZoneInfo] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.agent_id = agent_id
        self.limit = limit
        self.timeout = timeout
        self.transport = transport
        self.zone = zone or calendar_zone()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.token}"},
            timeout=self.timeout,
            transport=self.transport,
        )

    async def fetch_window(
        self, start: Optional[date] = None, end: Optional[date] = None
    ) -> list[AppointmentResponse]:
        params: dict[str, Any] = {"page": 1, "limit": self.limit}
        if self.agent_id:
            params["agentId"] = self.agent_id
        if start and end:
            params["startDate"], params["endDate"] = window_bounds(start, end, self.zone)

        try:
            async with self._client() as client:
                response = await client.get("/admin/appointments", params=params)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"❌ Failed to fetch appointments: {e}")
            raise StoreUnavailableError(message=str(e)) from e

        return AppointmentListResponse.model_validate(response.json()).data

    async def update(self, appointment_id: int, payload: dict[str, Any]) -> UpdateOutcome:
        try:
            async with self._client() as client:
                response = await client.patch(f"/admin/appointments/{appointment_id}", json=payload)
                if response.status_code != 200:
                    logger.error(
                        f"❌ Update of appointment {appointment_id} failed: {response.status_code} {response.text}"
                    )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                raise AppointmentNotFoundError(appointment_id, "Appointment not found") from e
            if status in (400, 401, 403, 422):
                raise UpdateRejectedError(appointment_id, e.response.text) from e
            raise StoreUnavailableError(appointment_id, str(e)) from e
        except httpx.HTTPError as e:
            raise StoreUnavailableError(appointment_id, str(e)) from e

        result = AppointmentUpdateResponse.model_validate(response.json())
        return UpdateOutcome(
            appointment_id=appointment_id,
            notification_sent=result.proposalEmailSent,
            agent_scheduled_at=result.agentScheduledDateTime,
            appointment=result.data,
        )
