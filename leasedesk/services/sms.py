"""Twilio SMS sender used for provider booking alerts."""

import logging
from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException

logger = logging.getLogger(__name__)


class SmsSender:

    def __init__(self, account_sid: str = "", auth_token: str = "", from_number: str = ""):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number

    @property
    def configured(self) -> bool:
        return all([self.account_sid, self.auth_token, self.from_number])

    def _client(self) -> Client:
        return Client(self.account_sid, self.auth_token)

    async def send(self, to: str, body: str) -> bool:
        """Send an SMS via Twilio. Returns True on success."""
        if not self.configured:
            logger.warning("Twilio credentials not configured, skipping SMS to %s", to)
            return False

        try:
            message = self._client().messages.create(body=body, from_=self.from_number, to=to)
            logger.info("SMS sent to %s, SID: %s", to, message.sid)
            return True
        except TwilioRestException as e:
            logger.error("Twilio error sending SMS to %s: %s", to, e)
            return False
        except Exception as e:
            logger.error("Unexpected error sending SMS to %s: %s", to, e)
            return False
