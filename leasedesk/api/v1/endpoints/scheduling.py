"""Provider availability, slot and appointment endpoints."""

from datetime import date, datetime
from uuid import UUID
from fastapi import APIRouter, Depends, Query

from leasedesk.core.deps import get_scheduler
from leasedesk.core.exceptions import AvailabilityNotFound
from leasedesk.schemas.appointment import (
    AppointmentCancel,
    AppointmentCreate,
    AppointmentOut,
    AppointmentUpdate,
    SlotCheck,
    TimeSlot,
    WeeklyAvailability,
)
from leasedesk.services.scheduler import SchedulerService

router = APIRouter()


# ============================================================================
# AVAILABILITY
# ============================================================================

@router.put("/providers/{provider_id}/availability", response_model=WeeklyAvailability)
async def set_availability(
    provider_id: UUID,
    availability: WeeklyAvailability,
    scheduler: SchedulerService = Depends(get_scheduler),
):
    """Replace the provider's weekly schedule and booking constraints."""
    return await scheduler.set_availability(provider_id, availability)


@router.get("/providers/{provider_id}/availability", response_model=WeeklyAvailability)
async def get_availability(
    provider_id: UUID,
    scheduler: SchedulerService = Depends(get_scheduler),
):
    availability = await scheduler.get_availability(provider_id)
    if availability is None:
        raise AvailabilityNotFound(provider_id=str(provider_id))
    return availability


@router.get("/providers/{provider_id}/slots", response_model=list[TimeSlot])
async def get_available_slots(
    provider_id: UUID,
    day: date = Query(..., alias="date"),
    duration: int = Query(60, gt=0, le=24 * 60),
    scheduler: SchedulerService = Depends(get_scheduler),
):
    """Back-to-back slots for one day, each flagged available or not."""
    return await scheduler.get_available_slots(provider_id, day, duration)


@router.get("/providers/{provider_id}/slot-check", response_model=SlotCheck)
async def check_slot(
    provider_id: UUID,
    start: datetime,
    end: datetime,
    scheduler: SchedulerService = Depends(get_scheduler),
):
    return await scheduler.check_slot(provider_id, start, end)


# ============================================================================
# APPOINTMENTS
# ============================================================================

@router.post("/appointments", response_model=AppointmentOut, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    scheduler: SchedulerService = Depends(get_scheduler),
):
    return await scheduler.create_appointment(data)


@router.patch("/appointments/{appointment_id}", response_model=AppointmentOut)
async def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    scheduler: SchedulerService = Depends(get_scheduler),
):
    return await scheduler.update_appointment(appointment_id, data)


@router.post("/appointments/{appointment_id}/cancel", response_model=AppointmentOut)
async def cancel_appointment(
    appointment_id: UUID,
    data: AppointmentCancel,
    scheduler: SchedulerService = Depends(get_scheduler),
):
    return await scheduler.cancel_appointment(appointment_id, data.cancelled_by, data.reason)


@router.post("/appointments/{appointment_id}/complete", response_model=AppointmentOut)
async def complete_appointment(
    appointment_id: UUID,
    scheduler: SchedulerService = Depends(get_scheduler),
):
    return await scheduler.complete_appointment(appointment_id)


@router.get("/providers/{provider_id}/appointments", response_model=list[AppointmentOut])
async def list_appointments(
    provider_id: UUID,
    start: datetime,
    end: datetime,
    scheduler: SchedulerService = Depends(get_scheduler),
):
    """Non-cancelled appointments starting in [start, end]."""
    return await scheduler.get_appointments(provider_id, start, end)
