"""
Twilio SMS provider using the REST Messages API.
"""

import logging
from typing import Optional

import httpx

from common.sms.base import SMSProvider

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class TwilioSMSProvider(SMSProvider):
    """Sends messages through a Twilio account."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: Optional[str] = None,
        messaging_service_sid: Optional[str] = None,
        timeout_seconds: float = 10.0,
    ):
        if not from_number and not messaging_service_sid:
            raise ValueError("Either from_number or messaging_service_sid is required")

        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._messaging_service_sid = messaging_service_sid
        self._timeout = timeout_seconds

    async def send(self, to: str, body: str) -> Optional[str]:
        data = {"To": to, "Body": body}
        if self._messaging_service_sid:
            data["MessagingServiceSid"] = self._messaging_service_sid
        else:
            data["From"] = self._from_number

        url = f"{TWILIO_API_BASE}/Accounts/{self._account_sid}/Messages.json"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    url,
                    auth=(self._account_sid, self._auth_token),
                    data=data,
                )
        except httpx.HTTPError as e:
            logger.error(f"Twilio request failed: {e}")
            raise ConnectionError("SMS gateway unreachable") from e

        if response.status_code not in (200, 201):
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            error_code = error_data.get("code")
            error_message = error_data.get("message", "Unknown error")
            logger.error(f"Twilio API error [{error_code}]: {error_message}")
            raise ConnectionError(f"SMS gateway rejected message: {error_message}")

        message_sid = response.json().get("sid")
        logger.info(f"SMS accepted by Twilio (SID: {message_sid})")
        return message_sid
