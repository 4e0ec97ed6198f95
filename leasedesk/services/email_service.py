"""SendGrid e-mail delivery for customer-facing appointment messages."""

import logging
from html import escape
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

logger = logging.getLogger(__name__)

_CONFIRMATION_HTML = """\
<html>
  <body style="font-family: Arial, sans-serif; color: #333;">
    <h2 style="color: #2F6F4E;">Your visit is booked</h2>
    <p>{title}</p>
    <table style="border-collapse: collapse;">
      <tr><td style="padding-right: 12px;"><strong>When</strong></td><td>{when}</td></tr>
      <tr><td style="padding-right: 12px;"><strong>Service</strong></td><td>{service}</td></tr>
    </table>
    <p style="color: #666; font-size: 13px;">Need a different time? Reply to this e-mail or reschedule from your portal.</p>
  </body>
</html>
"""


class EmailService:
    """Thin wrapper over SendGridAPIClient. Without an API key every send is a logged no-op."""

    def __init__(self, api_key: str = "", from_email: str = "noreply@leasedesk.app", from_name: str = "LeaseDesk"):
        self.sender = (from_email, from_name)
        self.client = SendGridAPIClient(api_key) if api_key else None
        if self.client is None:
            logger.warning("SENDGRID_API_KEY not configured; appointment e-mails are disabled")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def send_email(self, to: str, subject: str, html_body: str, plain_body: Optional[str] = None) -> bool:
        """Returns True when SendGrid accepted the message."""
        if not self.enabled:
            logger.info("E-mail disabled, dropping '%s' for %s", subject, to)
            return False

        message = Mail(from_email=self.sender, to_emails=to, subject=subject, html_content=html_body)
        if plain_body:
            message.plain_text_content = plain_body

        try:
            response = self.client.send(message)
        except Exception as e:
            logger.error("SendGrid error for %s: %s", to, e)
            return False

        if response.status_code >= 300:
            logger.error("SendGrid rejected e-mail to %s: %s %s", to, response.status_code, response.body)
            return False
        logger.info("E-mail '%s' sent to %s", subject, to)
        return True

    async def send_appointment_confirmation(
        self,
        customer_email: str,
        title: str,
        service: str,
        appointment_date: str,
        appointment_time: str,
    ) -> bool:
        """Confirm a booked contractor visit. Date and time arrive already formatted in the provider's zone."""
        when = f"{appointment_date} at {appointment_time}"
        html_body = _CONFIRMATION_HTML.format(title=escape(title), when=escape(when), service=escape(service))
        plain_body = "\n".join([
            "Your visit is booked",
            "",
            title,
            f"When: {when}",
            f"Service: {service}",
            "",
            "Need a different time? Reply to this e-mail or reschedule from your portal.",
        ])
        return await self.send_email(customer_email, f"Appointment confirmed: {title}", html_body, plain_body)
