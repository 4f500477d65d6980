"""Appointment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...shared.validators import validate_candidate_times, validate_email, validate_phone

AppointmentStatus = Literal["pending", "confirmed", "cancelled"]


class PreferredDate(BaseModel):
    """A customer candidate date/time, as stored"""

    date: str
    time: str


class PropertySummary(BaseModel):
    """Address snapshot of the property an appointment is for"""

    id: int
    street: str
    suburb: str
    state: Optional[str] = None
    postcode: Optional[str] = None
    description: Optional[str] = None
    agentId: Optional[int] = None

    @property
    def short_address(self) -> str:
        return f"{self.street}, {self.suburb}"


class AppointmentCreate(BaseModel):
    """Schema for the public appointment request form"""

    propertyId: int
    firstName: str
    lastName: str
    email: str
    phone: str
    customerPreferredDates: list[PreferredDate]
    message: Optional[str] = None

    @field_validator("firstName", "lastName")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if not v:
            raise ValueError("Email is required")
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if not v:
            raise ValueError("Phone is required")
        return validate_phone(v)

    @field_validator("customerPreferredDates")
    @classmethod
    def validate_preferred_dates(cls, v):
        validate_candidate_times([item.model_dump() for item in v])
        return v


class AppointmentUpdate(BaseModel):
    """
    Schema for a staff partial update.

    Only fields present in the request body are applied; an explicit
    ``agentScheduledDateTime: null`` clears the agent scheduled time.
    """

    status: Optional[AppointmentStatus] = None
    message: Optional[str] = None
    customerPreferredDates: Optional[list[PreferredDate]] = None
    agentScheduledDateTime: Optional[datetime] = None
    sendNotification: bool = False

    @field_validator("customerPreferredDates")
    @classmethod
    def validate_preferred_dates(cls, v):
        if v is not None:
            validate_candidate_times([item.model_dump() for item in v], require_at_least_one=False)
        return v


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    propertyId: Optional[int] = None
    property: Optional[PropertySummary] = None
    agentId: Optional[int] = None
    firstName: str
    lastName: str
    email: str
    phone: str
    customerPreferredDates: list[PreferredDate] = []
    agentScheduledDateTime: Optional[datetime] = None
    status: AppointmentStatus = "pending"
    message: Optional[str] = None
    createdAt: Optional[datetime] = None


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalCount: int
    hasNextPage: bool
    hasPrevPage: bool


class AppointmentListResponse(BaseModel):
    success: bool = True
    data: list[AppointmentResponse]
    pagination: Pagination


class AppointmentUpdateResponse(BaseModel):
    success: bool = True
    data: AppointmentResponse
    proposalEmailSent: bool = False
    agentScheduledDateTime: Optional[datetime] = None


class CleanupResults(BaseModel):
    totalProblematic: int
    fixed: int
    deleted: int


class CleanupResponse(BaseModel):
    success: bool = True
    message: str
    results: CleanupResults


def property_summary(prop) -> Optional[PropertySummary]:
    if prop is None:
        return None
    return PropertySummary(
        id=prop.id,
        street=prop.street,
        suburb=prop.suburb,
        state=prop.state,
        postcode=prop.postcode,
        description=prop.description,
        agentId=prop.agent_id,
    )


def appointment_response(appointment) -> AppointmentResponse:
    """Map an Appointment ORM row to its wire representation"""
    return AppointmentResponse(
        id=appointment.id,
        propertyId=appointment.property_id,
        property=property_summary(appointment.property),
        agentId=appointment.agent_id,
        firstName=appointment.first_name,
        lastName=appointment.last_name,
        email=appointment.email,
        phone=appointment.phone,
        customerPreferredDates=[PreferredDate(**c) for c in (appointment.candidate_times or [])],
        agentScheduledDateTime=appointment.agent_scheduled_at,
        status=appointment.status or "pending",
        message=appointment.message,
        createdAt=appointment.created_at,
    )
