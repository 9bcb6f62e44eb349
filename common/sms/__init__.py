"""
SMS module - Pluggable text-message delivery.

Usage:
    from common.sms import SMSProvider, TwilioSMSProvider

    sms = TwilioSMSProvider(account_sid, auth_token, from_number="+15550100")
    await sms.send("+46701234567", "Your code is 123456")
"""

from common.sms.base import SMSProvider
from common.sms.twilio import TwilioSMSProvider

__all__ = [
    "SMSProvider",
    "TwilioSMSProvider",
]
