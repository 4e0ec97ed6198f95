"""Pydantic schemas for provider availability and appointments."""

from datetime import datetime, date, time
from decimal import Decimal
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic import BaseModel, Field, field_validator, model_validator
from leasedesk.models.appointment import AppointmentStatus, CancelledBy
from leasedesk.utils.timeutils import as_utc

DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def parse_hhmm(value: str) -> time:
    """Parse an "HH:MM" schedule time."""
    try:
        hours, minutes = value.split(":")
        return time(int(hours), int(minutes))
    except (ValueError, AttributeError):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")


class DaySchedule(BaseModel):
    """Working window for one weekday."""
    start: str = "09:00"
    end: str = "17:00"
    enabled: bool = True

    @field_validator("start", "end")
    @classmethod
    def validate_hhmm(cls, v: str) -> str:
        parse_hhmm(v)
        return v

    @model_validator(mode="after")
    def start_before_end(self):
        if self.enabled and parse_hhmm(self.start) >= parse_hhmm(self.end):
            raise ValueError("start must be before end for an enabled day")
        return self


def _default_day(day: str) -> DaySchedule:
    return DaySchedule(enabled=day not in ("saturday", "sunday"))


class WeeklyAvailability(BaseModel):
    """Full weekly schedule plus booking constraints for one provider.

    Days left out of `weekly_schedule` default to 09:00-17:00, enabled on
    weekdays and disabled on weekends.
    """
    weekly_schedule: dict[str, DaySchedule] = Field(default_factory=dict)
    buffer_minutes: int = Field(default=0, ge=0)
    min_notice_hours: int = Field(default=0, ge=0)
    max_advance_days: int = Field(default=60, ge=0)
    blocked_dates: list[date] = Field(default_factory=list)
    timezone: Optional[str] = None  # IANA name, e.g. "America/Chicago"

    @field_validator("weekly_schedule")
    @classmethod
    def fill_missing_days(cls, v: dict[str, DaySchedule]) -> dict[str, DaySchedule]:
        normalized = {k.lower(): s for k, s in v.items()}
        unknown = set(normalized) - set(DAY_NAMES)
        if unknown:
            raise ValueError(f"Unknown day(s): {', '.join(sorted(unknown))}")
        return {day: normalized.get(day) or _default_day(day) for day in DAY_NAMES}

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone '{v}'")
        return v

    @model_validator(mode="after")
    def ensure_all_days(self):
        # default_factory bypasses the field validator
        if len(self.weekly_schedule) != len(DAY_NAMES):
            self.weekly_schedule = self.fill_missing_days(self.weekly_schedule)
        return self


class Address(BaseModel):
    street: str
    city: str
    state: str
    zip: str


class AppointmentCreate(BaseModel):
    """Schema for creating an appointment."""
    provider_id: UUID
    customer_id: UUID
    service_type: str
    title: str
    description: Optional[str] = None
    address: Address
    start_time: datetime
    end_time: datetime
    deposit_amount: Optional[Decimal] = None
    job_id: Optional[UUID] = None

    # Contact details for the confirmation notifications (not persisted)
    customer_email: Optional[str] = None
    provider_phone: Optional[str] = None

    @model_validator(mode="after")
    def start_before_end(self):
        if as_utc(self.start_time) >= as_utc(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self


class AppointmentUpdate(BaseModel):
    """Partial update. A reschedule may move either bound; the other is kept."""
    service_type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    address: Optional[Address] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    deposit_amount: Optional[Decimal] = None

    @model_validator(mode="after")
    def start_before_end(self):
        if self.start_time and self.end_time and as_utc(self.start_time) >= as_utc(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self


class AppointmentCancel(BaseModel):
    cancelled_by: CancelledBy
    reason: Optional[str] = None


class AppointmentOut(BaseModel):
    """Schema for returning appointment details."""
    id: UUID
    provider_id: UUID
    customer_id: UUID
    job_id: Optional[UUID] = None
    service_type: str
    title: str
    description: Optional[str] = None
    address: Address
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    deposit_amount: Optional[Decimal] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[CancelledBy] = None
    cancellation_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("start_time", "end_time", "cancelled_at", "completed_at", "created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Naive datetimes coming from the database are UTC
        return as_utc(v) if v is not None else None

    class Config:
        from_attributes = True


class TimeSlot(BaseModel):
    """A candidate slot; unavailable slots are returned so the UI can grey them out."""
    start_time: datetime
    end_time: datetime
    is_available: bool


class SlotCheck(BaseModel):
    """Outcome of an availability check. `reason` names the first failing rule."""
    available: bool
    reason: Optional[str] = None
