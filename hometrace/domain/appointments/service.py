"""Appointment service - Business logic for the appointment record store"""

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...email_service import (
    send_appointment_update_notification,
    send_customer_response_notification,
    send_new_appointment_notification,
    send_time_proposal_notification,
)
from ...models import Appointment, User
from ...shared.timeutils import to_utc_naive, to_wall_clock, wall_clock_now
from ...shared.validators import candidate_to_datetime
from .repository import AppointmentRepository, in_date_window
from .schemas import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentUpdate,
    AppointmentUpdateResponse,
    CleanupResponse,
    CleanupResults,
    Pagination,
    appointment_response,
)

logger = logging.getLogger(__name__)

RESPONSE_ACTIONS = {"accept": "confirmed", "decline": "cancelled"}


def parse_range_bound(value: str) -> datetime:
    """Parse an ISO date or datetime query parameter to naive UTC"""
    return to_utc_naive(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))


def default_candidate(appointment: Appointment) -> dict:
    """
    Candidate used to repair legacy records that have none: the agent
    scheduled time when present, else tomorrow at 10:00.
    """
    if appointment.agent_scheduled_at:
        local = to_wall_clock(appointment.agent_scheduled_at)
        return {"date": local.date().isoformat(), "time": local.strftime("%H:%M")}
    tomorrow = wall_clock_now().date() + timedelta(days=1)
    return {"date": tomorrow.isoformat(), "time": "10:00"}


def paginate(items: list, page: int, limit: int) -> tuple[list, Pagination]:
    total = len(items)
    total_pages = math.ceil(total / limit) if limit else 0
    start = (page - 1) * limit
    return items[start : start + limit], Pagination(
        currentPage=page,
        totalPages=total_pages,
        totalCount=total,
        hasNextPage=page < total_pages,
        hasPrevPage=page > 1,
    )


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def create_appointment(self, data: AppointmentCreate) -> Appointment:
        """Create a viewing request and notify the property's agent"""
        prop = self.repo.get_property(self.db, data.propertyId)
        if not prop:
            raise HTTPException(status_code=404, detail="Property not found")

        candidates = [item.model_dump() for item in data.customerPreferredDates]
        appointment = self.repo.create(
            self.db,
            property_id=prop.id,
            agent_id=prop.agent_id,
            first_name=data.firstName,
            last_name=data.lastName,
            email=data.email,
            phone=data.phone,
            message=data.message,
            candidate_times=candidates,
            status="pending",
        )
        logger.info(f"📅 Appointment {appointment.id} created for property {prop.id}")

        agent = self.repo.get_user(self.db, prop.agent_id)
        if agent and agent.email:
            try:
                await send_new_appointment_notification(
                    agent_email=agent.email,
                    agent_name=agent.full_name,
                    customer_name=appointment.customer_name,
                    customer_email=appointment.email,
                    customer_phone=appointment.phone,
                    property_address=prop.full_address,
                    property_id=str(prop.id),
                    appointment_times=candidates,
                    appointment_id=str(appointment.id),
                    message=appointment.message,
                )
                logger.info(f"✅ New appointment email sent to agent: {agent.email}")
            except Exception as e:
                logger.error(f"❌ Error sending new appointment email: {e}")

        return appointment

    def list_appointments(
        self, property_id: Optional[int] = None, page: int = 1, limit: int = 20
    ) -> AppointmentListResponse:
        """Paged appointment list, optionally for a single property"""
        items, total = self.repo.list_for_property(self.db, property_id, page, limit)
        total_pages = math.ceil(total / limit) if limit else 0
        return AppointmentListResponse(
            data=[appointment_response(a) for a in items],
            pagination=Pagination(
                currentPage=page,
                totalPages=total_pages,
                totalCount=total,
                hasNextPage=page < total_pages,
                hasPrevPage=page > 1,
            ),
        )

    async def respond_to_proposal(self, appointment_id: int, action: str) -> Appointment:
        """Customer accepts or declines the agent's proposed time"""
        if action not in RESPONSE_ACTIONS:
            raise HTTPException(
                status_code=400, detail='Invalid action. Must be "accept" or "decline"'
            )

        appointment = self.get_appointment(appointment_id)
        if not appointment.agent_scheduled_at:
            raise HTTPException(status_code=400, detail="No proposed time found for this appointment")

        appointment.status = RESPONSE_ACTIONS[action]
        self.repo.save(self.db, appointment)
        logger.info(f"📬 Customer {action}ed appointment {appointment.id}")

        agent = self.repo.get_user(self.db, appointment.agent_id)
        if agent and agent.email and appointment.property:
            try:
                await send_customer_response_notification(
                    agent_email=agent.email,
                    agent_name=agent.full_name,
                    customer_name=appointment.customer_name,
                    customer_email=appointment.email,
                    property_address=appointment.property.short_address,
                    proposed_datetime=to_wall_clock(appointment.agent_scheduled_at),
                    accepted=action == "accept",
                )
            except Exception as e:
                logger.error(f"❌ Error sending customer response email: {e}")

        return appointment

    # ------------------------------------------------------------------
    # Staff operations
    # ------------------------------------------------------------------

    @staticmethod
    def scope_agent_id(user: User, agent_id: Optional[str] = None) -> Optional[int]:
        """Agents only ever see their own appointments; admins may pick any agent"""
        if user.role == "agent":
            return user.id
        if agent_id and agent_id != "all":
            try:
                return int(agent_id)
            except ValueError as e:
                raise HTTPException(status_code=400, detail="Invalid agentId") from e
        return None

    def search_appointments(
        self,
        user: User,
        agent_id: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> AppointmentListResponse:
        """Filtered, paged appointment list for the staff dashboard"""
        items = self.filter_appointments(user, agent_id, status, search, start_date, end_date)
        page_items, pagination = paginate(items, page, limit)
        return AppointmentListResponse(
            data=[appointment_response(a) for a in page_items], pagination=pagination
        )

    def filter_appointments(
        self,
        user: User,
        agent_id: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> list[Appointment]:
        window = None
        if start_date and end_date:
            try:
                window = (parse_range_bound(start_date), parse_range_bound(end_date))
            except ValueError as e:
                logger.error(f"Invalid date range: {start_date} - {end_date}")
                raise HTTPException(status_code=400, detail="Invalid date range provided") from e

        items = self.repo.search(
            self.db,
            agent_id=self.scope_agent_id(user, agent_id),
            status=status,
            search=search,
        )
        if window:
            items = [a for a in items if in_date_window(a, *window)]
        return items

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    def delete_appointment(self, appointment_id: int) -> dict:
        appointment = self.get_appointment(appointment_id)
        self.repo.delete(self.db, appointment)
        logger.info(f"🗑️ Appointment {appointment_id} deleted")
        return {"success": True, "message": "Appointment deleted successfully"}

    async def update_appointment(
        self, appointment_id: int, data: AppointmentUpdate, user: User
    ) -> AppointmentUpdateResponse:
        """
        Apply a partial update.

        A time proposal email goes to the customer only when the agent scheduled
        time is newly set or changed. Email failures never fail the update.
        """
        appointment = self.get_appointment(appointment_id)
        fields = data.model_fields_set
        logger.info(f"Updating appointment {appointment_id} with fields: {sorted(fields)}")

        if user.role == "agent" and appointment.agent_id != user.id:
            raise HTTPException(
                status_code=403, detail="Unauthorized - You can only update your own appointments"
            )

        if not appointment.candidate_times:
            appointment.candidate_times = [default_candidate(appointment)]
            logger.warning(
                f"⚠️ Appointment {appointment_id} had no preferred dates, repaired with "
                f"{appointment.candidate_times[0]}"
            )

        if data.status is not None:
            appointment.status = data.status
        if "message" in fields:
            appointment.message = data.message
        if data.customerPreferredDates is not None:
            appointment.candidate_times = [item.model_dump() for item in data.customerPreferredDates]

        should_send_proposal = False
        if "agentScheduledDateTime" in fields:
            previous = appointment.agent_scheduled_at
            if data.agentScheduledDateTime is None:
                appointment.agent_scheduled_at = None
                logger.info(f"Cleared agent scheduled time for appointment {appointment_id}")
            else:
                scheduled = to_utc_naive(data.agentScheduledDateTime)
                appointment.agent_scheduled_at = scheduled
                should_send_proposal = previous is None or previous != scheduled

        self.repo.save(self.db, appointment)

        proposal_email_sent = False
        if should_send_proposal:
            proposal_email_sent = await self._send_time_proposal(appointment)

        if data.sendNotification:
            await self._send_update_summary(appointment)

        return AppointmentUpdateResponse(
            data=appointment_response(appointment),
            proposalEmailSent=proposal_email_sent,
            agentScheduledDateTime=appointment.agent_scheduled_at,
        )

    def cleanup_missing_candidates(self) -> CleanupResponse:
        """Repair legacy appointments that have no preferred dates"""
        problematic = self.repo.get_missing_candidates(self.db)
        logger.info(f"Found {len(problematic)} appointments with empty preferred dates")

        fixed = 0
        for appointment in problematic:
            appointment.candidate_times = [default_candidate(appointment)]
            fixed += 1
        if problematic:
            self.db.commit()

        logger.info(f"Cleanup completed: {fixed} appointments fixed, 0 appointments deleted")
        return CleanupResponse(
            message="Cleanup completed successfully",
            results=CleanupResults(totalProblematic=len(problematic), fixed=fixed, deleted=0),
        )

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def _send_time_proposal(self, appointment: Appointment) -> bool:
        agent = self.repo.get_user(self.db, appointment.agent_id)
        if not (appointment.property and agent):
            logger.info(f"No property or agent for appointment {appointment.id}, proposal not sent")
            return False

        try:
            result = await send_time_proposal_notification(
                customer_email=appointment.email,
                customer_name=appointment.customer_name,
                appointment_id=str(appointment.id),
                property_address=appointment.property.short_address,
                proposed_datetime=to_wall_clock(appointment.agent_scheduled_at),
                agent_name=agent.full_name,
                agent_email=agent.email,
            )
            logger.info(f"✅ Time proposal email sent for appointment {appointment.id}: {result}")
            return True
        except Exception as e:
            logger.error(f"❌ Error sending proposal email for appointment {appointment.id}: {e}")
            return False

    async def _send_update_summary(self, appointment: Appointment) -> None:
        agent = self.repo.get_user(self.db, appointment.agent_id)
        if not (appointment.property and agent):
            return

        if appointment.agent_scheduled_at:
            new_datetime = to_wall_clock(appointment.agent_scheduled_at)
        else:
            new_datetime = candidate_to_datetime(appointment.candidate_times[0])

        try:
            await send_appointment_update_notification(
                customer_email=appointment.email,
                customer_name=appointment.customer_name,
                appointments=[
                    {
                        "property_address": appointment.property.short_address,
                        "new_datetime": new_datetime,
                        "status": appointment.status or "pending",
                        "agent_name": agent.full_name,
                    }
                ],
            )
        except Exception as e:
            logger.error(f"❌ Error sending update email for appointment {appointment.id}: {e}")
