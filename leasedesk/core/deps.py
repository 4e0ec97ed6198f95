"""FastAPI dependencies that wire engines to settings and the request session.

Tests override the collaborator providers (`get_notifier`, `get_object_store`,
`get_http_client`, `get_clock`) through `app.dependency_overrides`.
"""

from datetime import datetime
from typing import Callable, Optional

import httpx
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.core.config import scheduler_config, settings, signing_config, storage_config
from leasedesk.core.database import get_db
from leasedesk.services.blob_storage import BlobStorageService, ObjectStore
from leasedesk.services.email_service import EmailService
from leasedesk.services.lease_templates import LeaseTemplateService
from leasedesk.services.notifications import AppointmentNotifier, NotificationPort
from leasedesk.services.scheduler import SchedulerService
from leasedesk.services.signing import SigningService
from leasedesk.services.sms import SmsSender
from leasedesk.utils.timeutils import utc_now


def get_notifier() -> NotificationPort:
    return AppointmentNotifier(
        EmailService(settings.SENDGRID_API_KEY, settings.SENDGRID_FROM_EMAIL, settings.SENDGRID_FROM_NAME),
        SmsSender(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN, settings.TWILIO_PHONE_NUMBER),
    )


def get_object_store() -> ObjectStore:
    return BlobStorageService(storage_config())


def get_http_client() -> Optional[httpx.AsyncClient]:
    return None


def get_clock() -> Callable[[], datetime]:
    return utc_now


async def get_scheduler(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationPort = Depends(get_notifier),
    now: Callable[[], datetime] = Depends(get_clock),
) -> SchedulerService:
    return SchedulerService(db, scheduler_config(), notifier=notifier, now=now)


async def get_template_service(db: AsyncSession = Depends(get_db)) -> LeaseTemplateService:
    return LeaseTemplateService(db)


async def get_signing_service(
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
    now: Callable[[], datetime] = Depends(get_clock),
) -> SigningService:
    return SigningService(db, store, signing_config(), http_client=http_client, now=now)
