"""Appointment repository - Database operations for appointments"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, Property, User


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        """Get an appointment with its property loaded"""
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.property))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def get_property(db: Session, property_id: int) -> Optional[Property]:
        return db.query(Property).filter(Property.id == property_id).first()

    @staticmethod
    def get_user(db: Session, user_id: Optional[int]) -> Optional[User]:
        if user_id is None:
            return None
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def create(db: Session, **appointment_data) -> Appointment:
        """Create a new appointment"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def save(db: Session, appointment: Appointment) -> Appointment:
        """Persist pending attribute changes on an appointment"""
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def delete(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.commit()

    @staticmethod
    def list_for_property(
        db: Session, property_id: Optional[int], page: int, limit: int
    ) -> tuple[list[Appointment], int]:
        """Paged appointments, optionally for one property, newest first"""
        query = db.query(Appointment).options(joinedload(Appointment.property))
        if property_id is not None:
            query = query.filter(Appointment.property_id == property_id)

        total = query.count()
        items = (
            query.order_by(Appointment.created_at.desc(), Appointment.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    @staticmethod
    def search(
        db: Session,
        agent_id: Optional[int] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Appointment]:
        """Filter appointments by agent, status and free text over customer/property fields"""
        query = db.query(Appointment).outerjoin(Property, Appointment.property_id == Property.id)
        query = query.options(joinedload(Appointment.property))

        if agent_id is not None:
            query = query.filter(Appointment.agent_id == agent_id)

        if status and status != "all":
            query = query.filter(Appointment.status == status)

        if search and search.strip():
            search_term = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Appointment.first_name.ilike(search_term),
                    Appointment.last_name.ilike(search_term),
                    Appointment.email.ilike(search_term),
                    Appointment.phone.ilike(search_term),
                    Property.street.ilike(search_term),
                    Property.suburb.ilike(search_term),
                    Property.state.ilike(search_term),
                    Property.postcode.ilike(search_term),
                    Property.description.ilike(search_term),
                )
            )

        return query.order_by(Appointment.created_at.desc(), Appointment.id.desc()).all()

    @staticmethod
    def get_missing_candidates(db: Session) -> list[Appointment]:
        """Appointments whose candidate list is empty or missing (legacy data)"""
        return [
            appointment
            for appointment in db.query(Appointment).all()
            if not appointment.candidate_times
        ]


def in_date_window(appointment: Appointment, start: datetime, end: datetime) -> bool:
    """
    True if any candidate date falls within [start.date(), end.date()] or the
    agent scheduled time falls within [start, end].
    """
    start_day: date = start.date()
    end_day: date = end.date()
    for candidate in appointment.candidate_times or []:
        candidate_day = candidate.get("date") if isinstance(candidate, dict) else None
        if candidate_day and start_day.isoformat() <= candidate_day <= end_day.isoformat():
            return True

    scheduled = appointment.agent_scheduled_at
    return scheduled is not None and start <= scheduled <= end
