"""Provider scheduling: weekly availability, slot checks and appointment lifecycle.

Availability is interpreted in the provider's own timezone. Schedule times
("09:00") are combined with the local calendar date of the slot being
checked, so a working day keeps its wall-clock hours across DST changes.

Conflict detection runs one query against the slot widened by the
provider's buffer on both sides, which rejects both direct overlaps and
appointments that sit inside the buffer zone.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import UUID
from zoneinfo import ZoneInfo
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.core.config import SchedulerConfig
from leasedesk.core.exceptions import AppointmentNotFound, InvalidTransition, SlotUnavailable
from leasedesk.models.appointment import Appointment, AppointmentStatus, CancelledBy
from leasedesk.models.availability import ProviderAvailability
from leasedesk.repositories.scheduling import AppointmentRepository, AvailabilityRepository
from leasedesk.schemas.appointment import (
    DAY_NAMES,
    AppointmentCreate,
    AppointmentUpdate,
    DaySchedule,
    SlotCheck,
    TimeSlot,
    WeeklyAvailability,
    parse_hhmm,
)
from leasedesk.services.notifications import APPOINTMENT_CREATED, AppointmentEvent, NotificationPort, NullNotifier
from leasedesk.utils.timeutils import as_utc, to_db, utc_now

logger = logging.getLogger(__name__)


class SlotReason:
    """Why a slot was rejected, in evaluation order."""
    NOT_CONFIGURED = "not_configured"
    INVALID_RANGE = "invalid_range"
    BLOCKED_DATE = "blocked_date"
    MIN_NOTICE = "min_notice"
    MAX_ADVANCE = "max_advance"
    DAY_DISABLED = "day_disabled"
    OUTSIDE_SCHEDULE = "outside_schedule"
    CONFLICT = "conflict"


class SchedulerService:
    """Service layer for provider availability and appointments."""

    def __init__(
        self,
        db: AsyncSession,
        config: SchedulerConfig = SchedulerConfig(),
        notifier: Optional[NotificationPort] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.config = config
        self.notifier = notifier or NullNotifier()
        self.now = now
        self.availability = AvailabilityRepository(db)
        self.appointments = AppointmentRepository(db)

    # ------------------------------------------------------------------
    # Availability settings
    # ------------------------------------------------------------------

    async def get_availability(self, provider_id: UUID) -> Optional[WeeklyAvailability]:
        """Return the provider's schedule, or None if never configured (cannot book)."""
        record = await self.availability.get(provider_id)
        if record is None:
            return None
        return self._to_schema(record)

    async def set_availability(self, provider_id: UUID, availability: WeeklyAvailability) -> WeeklyAvailability:
        """Replace the whole schedule. Already-confirmed appointments are left untouched."""
        record = await self.availability.upsert(
            provider_id,
            weekly_schedule={day: s.model_dump() for day, s in availability.weekly_schedule.items()},
            buffer_minutes=availability.buffer_minutes,
            min_notice_hours=availability.min_notice_hours,
            max_advance_days=availability.max_advance_days,
            blocked_dates=sorted({d.isoformat() for d in availability.blocked_dates}),
            timezone=availability.timezone or self.config.default_timezone,
        )
        await self.db.commit()
        await self.db.refresh(record)
        logger.info("Availability updated for provider %s", provider_id)
        return self._to_schema(record)

    def _to_schema(self, record: ProviderAvailability) -> WeeklyAvailability:
        return WeeklyAvailability(
            weekly_schedule=record.weekly_schedule,
            buffer_minutes=record.buffer_minutes,
            min_notice_hours=record.min_notice_hours,
            max_advance_days=record.max_advance_days,
            blocked_dates=[date.fromisoformat(d) for d in (record.blocked_dates or [])],
            timezone=record.timezone,
        )

    # ------------------------------------------------------------------
    # Slot checks
    # ------------------------------------------------------------------

    async def is_slot_available(
        self,
        provider_id: UUID,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[UUID] = None,
    ) -> bool:
        check = await self.check_slot(provider_id, start, end, exclude_appointment_id)
        return check.available

    async def check_slot(
        self,
        provider_id: UUID,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[UUID] = None,
    ) -> SlotCheck:
        record = await self.availability.get(provider_id)
        if record is None:
            return SlotCheck(available=False, reason=SlotReason.NOT_CONFIGURED)
        return await self._evaluate(record, start, end, exclude_appointment_id)

    def _tz(self, record: ProviderAvailability) -> ZoneInfo:
        return ZoneInfo(record.timezone or self.config.default_timezone)

    @staticmethod
    def _day_schedule(record: ProviderAvailability, day: date) -> Optional[DaySchedule]:
        raw = (record.weekly_schedule or {}).get(DAY_NAMES[day.weekday()])
        if not raw:
            return None
        return DaySchedule.model_validate(raw)

    def _schedule_window(self, record: ProviderAvailability, day: date, schedule: DaySchedule) -> tuple[datetime, datetime]:
        tz = self._tz(record)
        return (
            datetime.combine(day, parse_hhmm(schedule.start), tzinfo=tz),
            datetime.combine(day, parse_hhmm(schedule.end), tzinfo=tz),
        )

    async def _evaluate(
        self,
        record: ProviderAvailability,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[UUID] = None,
    ) -> SlotCheck:
        start_utc = as_utc(start)
        end_utc = as_utc(end)
        if start_utc >= end_utc:
            return SlotCheck(available=False, reason=SlotReason.INVALID_RANGE)

        local_start = start_utc.astimezone(self._tz(record))
        local_day = local_start.date()

        if local_day.isoformat() in set(record.blocked_dates or []):
            return SlotCheck(available=False, reason=SlotReason.BLOCKED_DATE)

        now = as_utc(self.now())
        if start_utc < now + timedelta(hours=record.min_notice_hours):
            return SlotCheck(available=False, reason=SlotReason.MIN_NOTICE)

        if start_utc > now + timedelta(days=record.max_advance_days):
            return SlotCheck(available=False, reason=SlotReason.MAX_ADVANCE)

        schedule = self._day_schedule(record, local_day)
        if schedule is None or not schedule.enabled:
            return SlotCheck(available=False, reason=SlotReason.DAY_DISABLED)

        window_start, window_end = self._schedule_window(record, local_day, schedule)
        if start_utc < window_start or end_utc > window_end:
            return SlotCheck(available=False, reason=SlotReason.OUTSIDE_SCHEDULE)

        buffer = timedelta(minutes=record.buffer_minutes)
        conflicts = await self.appointments.find_conflicts(
            record.provider_id,
            to_db(start_utc - buffer),
            to_db(end_utc + buffer),
            exclude_appointment_id,
        )
        if conflicts:
            return SlotCheck(available=False, reason=SlotReason.CONFLICT)

        return SlotCheck(available=True)

    async def get_available_slots(
        self,
        provider_id: UUID,
        day: date,
        slot_duration_minutes: int = 60,
    ) -> list[TimeSlot]:
        """Tile the day's working window into back-to-back slots.

        Every slot is returned with its own `is_available` flag. The list is
        empty when the provider has no availability, the day is past the
        booking horizon, blocked, or not a working day.
        """
        if slot_duration_minutes <= 0:
            raise ValueError("slot_duration_minutes must be positive")

        record = await self.availability.get(provider_id)
        if record is None:
            return []

        tz = self._tz(record)
        horizon = (as_utc(self.now()) + timedelta(days=record.max_advance_days)).astimezone(tz).date()
        if day > horizon:
            return []

        if day.isoformat() in set(record.blocked_dates or []):
            return []

        schedule = self._day_schedule(record, day)
        if schedule is None or not schedule.enabled:
            return []

        window_start, window_end = self._schedule_window(record, day, schedule)
        step = timedelta(minutes=slot_duration_minutes)
        current = window_start.astimezone(timezone.utc)
        window_end = window_end.astimezone(timezone.utc)

        slots: list[TimeSlot] = []
        while current < window_end:
            slot_end = current + step
            if slot_end > window_end:
                break
            check = await self._evaluate(record, current, slot_end)
            slots.append(TimeSlot(start_time=current, end_time=slot_end, is_available=check.available))
            current = slot_end

        return slots

    # ------------------------------------------------------------------
    # Appointment lifecycle
    # ------------------------------------------------------------------

    async def _locked_check(
        self,
        provider_id: UUID,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[UUID] = None,
    ) -> SlotCheck:
        """Run the slot check while holding the provider's availability row lock."""
        record = await self.availability.get_for_update(provider_id)
        if record is None:
            return SlotCheck(available=False, reason=SlotReason.NOT_CONFIGURED)
        return await self._evaluate(record, start, end, exclude_appointment_id)

    async def create_appointment(self, data: AppointmentCreate) -> Appointment:
        check = await self._locked_check(data.provider_id, data.start_time, data.end_time)
        if not check.available:
            await self.db.rollback()
            logger.info(
                "Rejected booking for provider %s at %s: %s",
                data.provider_id, data.start_time.isoformat(), check.reason,
            )
            raise SlotUnavailable(reason=check.reason)

        appointment = Appointment(
            provider_id=data.provider_id,
            customer_id=data.customer_id,
            job_id=data.job_id,
            service_type=data.service_type,
            title=data.title,
            description=data.description,
            address=data.address.model_dump(),
            start_time=to_db(data.start_time),
            end_time=to_db(data.end_time),
            deposit_amount=data.deposit_amount,
            status=AppointmentStatus.CONFIRMED,
        )
        self.appointments.add(appointment)
        await self.db.commit()
        await self.db.refresh(appointment)
        logger.info("Appointment %s booked for provider %s", appointment.id, appointment.provider_id)

        availability = await self.availability.get(data.provider_id)
        await self.notifier.notify(
            AppointmentEvent(
                name=APPOINTMENT_CREATED,
                appointment_id=appointment.id,
                provider_id=appointment.provider_id,
                customer_id=appointment.customer_id,
                title=appointment.title,
                service_type=appointment.service_type,
                start_time=as_utc(appointment.start_time),
                end_time=as_utc(appointment.end_time),
                timezone=availability.timezone if availability else self.config.default_timezone,
                customer_email=data.customer_email,
                provider_phone=data.provider_phone,
            )
        )
        return appointment

    async def _get_confirmed(self, appointment_id: UUID) -> Appointment:
        appointment = await self.appointments.get(appointment_id)
        if appointment is None:
            raise AppointmentNotFound()
        if appointment.status != AppointmentStatus.CONFIRMED:
            raise InvalidTransition(
                f"Appointment is already {appointment.status.value}",
                appointment_id=str(appointment_id),
            )
        return appointment

    async def update_appointment(self, appointment_id: UUID, updates: AppointmentUpdate) -> Appointment:
        """Apply a partial update. Any change to start/end re-runs the full slot check."""
        appointment = await self._get_confirmed(appointment_id)
        changes = updates.model_dump(exclude_unset=True)

        if "start_time" in changes or "end_time" in changes:
            new_start = updates.start_time or as_utc(appointment.start_time)
            new_end = updates.end_time or as_utc(appointment.end_time)
            if as_utc(new_start) >= as_utc(new_end):
                raise SlotUnavailable(reason=SlotReason.INVALID_RANGE, message="start_time must be before end_time")

            check = await self._locked_check(appointment.provider_id, new_start, new_end, appointment.id)
            if not check.available:
                await self.db.rollback()
                raise SlotUnavailable(reason=check.reason)
            appointment.start_time = to_db(new_start)
            appointment.end_time = to_db(new_end)

        for field in ("service_type", "title", "description", "deposit_amount"):
            if field in changes:
                setattr(appointment, field, changes[field])
        if "address" in changes and updates.address is not None:
            appointment.address = updates.address.model_dump()

        await self.db.commit()
        await self.db.refresh(appointment)
        return appointment

    async def cancel_appointment(
        self,
        appointment_id: UUID,
        cancelled_by: CancelledBy,
        reason: Optional[str] = None,
    ) -> Appointment:
        appointment = await self._get_confirmed(appointment_id)
        appointment.status = AppointmentStatus.CANCELLED
        appointment.cancelled_at = to_db(self.now())
        appointment.cancelled_by = cancelled_by
        appointment.cancellation_reason = reason
        await self.db.commit()
        await self.db.refresh(appointment)
        logger.info("Appointment %s cancelled by %s", appointment_id, cancelled_by.value)
        return appointment

    async def complete_appointment(self, appointment_id: UUID) -> Appointment:
        appointment = await self._get_confirmed(appointment_id)
        appointment.status = AppointmentStatus.COMPLETED
        appointment.completed_at = to_db(self.now())
        await self.db.commit()
        await self.db.refresh(appointment)
        return appointment

    async def get_appointments(self, provider_id: UUID, range_start: datetime, range_end: datetime) -> list[Appointment]:
        """Non-cancelled appointments starting within the range, earliest first."""
        return await self.appointments.list_in_range(provider_id, to_db(range_start), to_db(range_end))

    async def get_appointments_needing_reminders(self, lead_hours: int = 24, window_minutes: int = 5) -> list[Appointment]:
        """Confirmed appointments starting `lead_hours` from now (within a small window)."""
        window_start = as_utc(self.now()) + timedelta(hours=lead_hours)
        window_end = window_start + timedelta(minutes=window_minutes)
        return await self.appointments.list_confirmed_starting_between(to_db(window_start), to_db(window_end))
