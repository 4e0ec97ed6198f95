"""Repositories for provider availability and appointments."""

from datetime import datetime
from typing import Optional
from uuid import UUID
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.models.appointment import Appointment, AppointmentStatus
from leasedesk.models.availability import ProviderAvailability


class AvailabilityRepository:
    """Database operations for ProviderAvailability."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, provider_id: UUID) -> Optional[ProviderAvailability]:
        result = await self.db.execute(
            select(ProviderAvailability).where(ProviderAvailability.provider_id == provider_id)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, provider_id: UUID) -> Optional[ProviderAvailability]:
        """Fetch and row-lock the provider's availability.

        Serializes check-and-insert of appointments for one provider on
        PostgreSQL. SQLite ignores FOR UPDATE.
        """
        result = await self.db.execute(
            select(ProviderAvailability)
            .where(ProviderAvailability.provider_id == provider_id)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def upsert(self, provider_id: UUID, **fields) -> ProviderAvailability:
        record = await self.get(provider_id)
        if record is None:
            record = ProviderAvailability(provider_id=provider_id, **fields)
            self.db.add(record)
        else:
            for key, value in fields.items():
                setattr(record, key, value)
        await self.db.flush()
        return record


class AppointmentRepository:
    """Database operations for Appointment."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, appointment_id: UUID) -> Optional[Appointment]:
        result = await self.db.execute(select(Appointment).where(Appointment.id == appointment_id))
        return result.scalar_one_or_none()

    async def find_conflicts(
        self,
        provider_id: UUID,
        window_start: datetime,
        window_end: datetime,
        exclude_id: Optional[UUID] = None,
    ) -> list[Appointment]:
        """Confirmed appointments intersecting the open window (window_start, window_end).

        Callers pass the slot widened by the provider's buffer on both sides,
        which covers direct overlap and buffer adjacency in one query.
        """
        conditions = [
            Appointment.provider_id == provider_id,
            Appointment.status == AppointmentStatus.CONFIRMED,
            Appointment.start_time < window_end,
            Appointment.end_time > window_start,
        ]
        if exclude_id is not None:
            conditions.append(Appointment.id != exclude_id)

        result = await self.db.execute(select(Appointment).where(and_(*conditions)))
        return list(result.scalars().all())

    async def list_in_range(self, provider_id: UUID, range_start: datetime, range_end: datetime) -> list[Appointment]:
        """Non-cancelled appointments starting within [range_start, range_end]."""
        result = await self.db.execute(
            select(Appointment)
            .where(
                and_(
                    Appointment.provider_id == provider_id,
                    Appointment.status != AppointmentStatus.CANCELLED,
                    Appointment.start_time >= range_start,
                    Appointment.start_time <= range_end,
                )
            )
            .order_by(Appointment.start_time)
        )
        return list(result.scalars().all())

    async def list_confirmed_starting_between(self, range_start: datetime, range_end: datetime) -> list[Appointment]:
        result = await self.db.execute(
            select(Appointment)
            .where(
                and_(
                    Appointment.status == AppointmentStatus.CONFIRMED,
                    Appointment.start_time >= range_start,
                    Appointment.start_time <= range_end,
                )
            )
            .order_by(Appointment.start_time)
        )
        return list(result.scalars().all())

    def add(self, appointment: Appointment) -> None:
        self.db.add(appointment)
