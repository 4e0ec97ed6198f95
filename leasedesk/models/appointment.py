"""Appointment model for provider bookings."""

from sqlalchemy import Column, String, DateTime, Numeric, Text, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
import uuid
from datetime import datetime
import enum
from leasedesk.core.database import Base


class AppointmentStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class CancelledBy(str, enum.Enum):
    PROVIDER = "provider"
    CUSTOMER = "customer"


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    provider_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    customer_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    job_id = Column(UUID(as_uuid=True), nullable=True)

    service_type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    address = Column(JSON, nullable=False)  # {"street": ..., "city": ..., "state": ..., "zip": ...}

    # Stored as naive UTC
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False, index=True)

    status = Column(SQLEnum(AppointmentStatus), default=AppointmentStatus.CONFIRMED, nullable=False, index=True)
    deposit_amount = Column(Numeric(10, 2), nullable=True)

    cancelled_at = Column(DateTime, nullable=True)
    cancelled_by = Column(SQLEnum(CancelledBy), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
