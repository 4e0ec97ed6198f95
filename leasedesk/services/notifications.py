"""Appointment event notifications.

The scheduler emits events through a NotificationPort. Implementations must
never raise: booking success does not depend on delivery.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from leasedesk.services.email_service import EmailService
from leasedesk.services.sms import SmsSender

logger = logging.getLogger(__name__)

APPOINTMENT_CREATED = "appointment.created"


@dataclass(frozen=True)
class AppointmentEvent:
    name: str
    appointment_id: UUID
    provider_id: UUID
    customer_id: UUID
    title: str
    service_type: str
    start_time: datetime  # aware UTC
    end_time: datetime
    timezone: str = "UTC"
    customer_email: Optional[str] = None
    provider_phone: Optional[str] = None


class NotificationPort(Protocol):
    async def notify(self, event: AppointmentEvent) -> None:
        ...


class NullNotifier:
    """Drops every event."""

    async def notify(self, event: AppointmentEvent) -> None:
        logger.debug("Notification skipped for %s (%s)", event.appointment_id, event.name)


class AppointmentNotifier:
    """Texts the provider and e-mails the customer when an appointment is booked."""

    def __init__(self, email_service: EmailService, sms_sender: SmsSender):
        self.email_service = email_service
        self.sms_sender = sms_sender

    async def notify(self, event: AppointmentEvent) -> None:
        try:
            if event.name == APPOINTMENT_CREATED:
                await self._appointment_created(event)
            else:
                logger.debug("No handler for event %s", event.name)
        except Exception:
            logger.exception("Failed to emit %s for appointment %s", event.name, event.appointment_id)

    async def _appointment_created(self, event: AppointmentEvent) -> None:
        local_start = event.start_time.astimezone(ZoneInfo(event.timezone))
        date_text = local_start.strftime("%A, %B %d, %Y")
        time_text = local_start.strftime("%I:%M %p")

        if event.provider_phone:
            await self.sms_sender.send(
                event.provider_phone,
                f"New appointment: {event.title} ({event.service_type}) on {date_text} at {time_text}.",
            )

        if event.customer_email:
            await self.email_service.send_appointment_confirmation(
                customer_email=event.customer_email,
                title=event.title,
                service=event.service_type,
                appointment_date=date_text,
                appointment_time=time_text,
            )
