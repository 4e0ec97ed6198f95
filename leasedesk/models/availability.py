"""Provider weekly availability model.

One row per service provider (contractor). The weekly schedule is stored as
JSON keyed by lowercase day name:
{"monday": {"start": "09:00", "end": "17:00", "enabled": true}, ...}
"""

from sqlalchemy import Column, String, DateTime, Integer
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
import uuid
from datetime import datetime
from leasedesk.core.database import Base


class ProviderAvailability(Base):
    __tablename__ = "provider_availability"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    provider_id = Column(UUID(as_uuid=True), unique=True, index=True, nullable=False)

    weekly_schedule = Column(JSON, nullable=False)
    buffer_minutes = Column(Integer, nullable=False, default=0)
    min_notice_hours = Column(Integer, nullable=False, default=0)
    max_advance_days = Column(Integer, nullable=False, default=60)
    blocked_dates = Column(JSON, nullable=False, default=list)  # ["2026-12-25", ...]
    timezone = Column(String, nullable=False, default="America/New_York")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
