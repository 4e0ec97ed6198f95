"""Tests for appointment notifications."""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from leasedesk.services.email_service import EmailService
from leasedesk.services.notifications import APPOINTMENT_CREATED, AppointmentEvent, AppointmentNotifier, NullNotifier
from leasedesk.services.sms import SmsSender


def make_event(**overrides) -> AppointmentEvent:
    data = dict(
        name=APPOINTMENT_CREATED,
        appointment_id=uuid.uuid4(),
        provider_id=uuid.uuid4(),
        customer_id=uuid.uuid4(),
        title="Fix kitchen leak",
        service_type="plumbing",
        start_time=datetime(2026, 3, 3, 15, 0, tzinfo=timezone.utc),
        end_time=datetime(2026, 3, 3, 16, 0, tzinfo=timezone.utc),
        timezone="America/New_York",
        customer_email="tenant@example.com",
        provider_phone="+15125550100",
    )
    data.update(overrides)
    return AppointmentEvent(**data)


@pytest.mark.asyncio
async def test_created_event_texts_provider_and_emails_customer():
    email = MagicMock(spec=EmailService)
    email.send_appointment_confirmation = AsyncMock(return_value=True)
    sms = MagicMock(spec=SmsSender)
    sms.send = AsyncMock(return_value=True)

    await AppointmentNotifier(email, sms).notify(make_event())

    sms.send.assert_awaited_once()
    to, body = sms.send.await_args.args
    assert to == "+15125550100"
    assert "10:00 AM" in body  # local time, not UTC

    kwargs = email.send_appointment_confirmation.await_args.kwargs
    assert kwargs["customer_email"] == "tenant@example.com"
    assert kwargs["appointment_date"] == "Tuesday, March 03, 2026"


@pytest.mark.asyncio
async def test_missing_contacts_are_skipped():
    email = MagicMock(spec=EmailService)
    email.send_appointment_confirmation = AsyncMock()
    sms = MagicMock(spec=SmsSender)
    sms.send = AsyncMock()

    await AppointmentNotifier(email, sms).notify(make_event(customer_email=None, provider_phone=None))

    sms.send.assert_not_awaited()
    email.send_appointment_confirmation.assert_not_awaited()


@pytest.mark.asyncio
async def test_delivery_errors_never_propagate():
    email = MagicMock(spec=EmailService)
    email.send_appointment_confirmation = AsyncMock(side_effect=RuntimeError("sendgrid down"))
    sms = MagicMock(spec=SmsSender)
    sms.send = AsyncMock(side_effect=RuntimeError("twilio down"))

    await AppointmentNotifier(email, sms).notify(make_event())


@pytest.mark.asyncio
async def test_null_notifier_accepts_events():
    await NullNotifier().notify(make_event())


@pytest.mark.asyncio
async def test_sms_sender_skips_when_unconfigured():
    sender = SmsSender()
    assert sender.configured is False
    assert await sender.send("+15125550100", "hello") is False


@pytest.mark.asyncio
async def test_sms_sender_uses_twilio_client():
    sender = SmsSender("AC123", "token", "+15125550199")
    with patch("leasedesk.services.sms.Client") as mock_client:
        mock_client.return_value.messages.create.return_value = MagicMock(sid="SM1")
        assert await sender.send("+15125550100", "hello") is True

    mock_client.return_value.messages.create.assert_called_once_with(
        body="hello", from_="+15125550199", to="+15125550100"
    )


@pytest.mark.asyncio
async def test_email_service_disabled_without_key():
    service = EmailService(api_key="")
    assert service.enabled is False
    assert await service.send_email("tenant@example.com", "Hi", "<p>Hi</p>") is False


@pytest.mark.asyncio
async def test_appointment_confirmation_email_content():
    with patch("leasedesk.services.email_service.SendGridAPIClient") as mock_client:
        mock_client.return_value.send.return_value = MagicMock(status_code=202, body="")
        service = EmailService(api_key="SG.test")
        sent = await service.send_appointment_confirmation(
            customer_email="tenant@example.com",
            title="Fix leaking faucet <unit 2>",
            service="plumbing",
            appointment_date="Tuesday, March 03, 2026",
            appointment_time="10:00 AM",
        )

    assert sent is True
    message = mock_client.return_value.send.call_args.args[0].get()
    assert message["subject"] == "Appointment confirmed: Fix leaking faucet <unit 2>"
    contents = {c["type"]: c["value"] for c in message["content"]}
    assert "Tuesday, March 03, 2026 at 10:00 AM" in contents["text/plain"]
    assert "&lt;unit 2&gt;" in contents["text/html"]


@pytest.mark.asyncio
async def test_rejected_email_reports_failure():
    with patch("leasedesk.services.email_service.SendGridAPIClient") as mock_client:
        mock_client.return_value.send.return_value = MagicMock(status_code=401, body="unauthorized")
        service = EmailService(api_key="SG.test")
        assert await service.send_email("tenant@example.com", "Hi", "<p>Hi</p>") is False
