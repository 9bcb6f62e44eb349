"""
Abstract SMS provider interface.

Defines the contract every text-message gateway must implement, so the code
that sends verification codes never depends on a specific vendor.

Example:
    from common.sms import SMSProvider, TwilioSMSProvider

    def get_sms_provider(settings) -> SMSProvider:
        return TwilioSMSProvider(
            account_sid=settings.TWILIO_ACCOUNT_SID,
            auth_token=settings.TWILIO_AUTH_TOKEN,
            from_number=settings.TWILIO_PHONE_NUMBER,
        )
"""

from abc import ABC, abstractmethod
from typing import Optional


class SMSProvider(ABC):
    """
    Abstract SMS provider.

    Implementations deliver a single text message and report failures by
    raising; they never retry.
    """

    @abstractmethod
    async def send(self, to: str, body: str) -> Optional[str]:
        """
        Send a text message.

        Args:
            to: Destination phone number in E.164 format
            body: Message text

        Returns:
            Provider message ID, when the gateway returns one

        Raises:
            ConnectionError: If the gateway is unreachable or rejects the message
        """
        pass
