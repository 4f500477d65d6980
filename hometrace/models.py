from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

APPOINTMENT_STATUSES = ("pending", "confirmed", "cancelled")
USER_ROLES = ("admin", "agent", "user")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=True)
    role = Column(String(20), default="user", nullable=False)  # admin, agent, user
    created_at = Column(DateTime, server_default=func.now())

    properties = relationship("Property", back_populates="agent")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    agent_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    description = Column(Text, nullable=True)

    # Address
    street = Column(String(255), nullable=False)
    suburb = Column(String(100), nullable=False)
    state = Column(String(50), nullable=True)
    postcode = Column(String(20), nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    agent = relationship("User", back_populates="properties")
    appointments = relationship("Appointment", back_populates="property")

    @property
    def short_address(self) -> str:
        return f"{self.street}, {self.suburb}"

    @property
    def full_address(self) -> str:
        return f"{self.street}, {self.suburb}, {self.state or ''} {self.postcode or ''}".strip()


class Appointment(Base):
    """Viewing appointment requested by a customer for a property"""

    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=True, index=True)
    # Copied from the property at creation so agents can be filtered without a join
    agent_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Customer
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    message = Column(Text, nullable=True)

    # Scheduling
    # [{"date": "YYYY-MM-DD", "time": "HH:MM"}, ...] - 1 to 3 customer candidates
    candidate_times = Column(JSON, default=list, nullable=False)
    # Agent confirmed time (naive UTC); supersedes candidate_times once set
    agent_scheduled_at = Column(DateTime, nullable=True)

    # Status workflow: pending → confirmed | cancelled
    status = Column(String(20), default="pending", nullable=False, index=True)

    created_at = Column(DateTime, server_default=func.now(), index=True)

    @property
    def customer_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    # Declared after customer_name: this attribute shadows the builtin in the class body
    property = relationship("Property", back_populates="appointments")
    agent = relationship("User")
