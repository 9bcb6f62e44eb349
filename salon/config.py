"""
Salon backend application settings.

Extends the base settings with OTP, SMS and OAuth configuration.
"""

from typing import Optional
from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """Salon-specific settings."""

    # ==========================================================================
    # Phone Verification (OTP)
    # ==========================================================================
    OTP_EXPIRE_MINUTES: int = 10
    OTP_RESEND_COOLDOWN_SECONDS: int = 60
    OTP_MAX_ATTEMPTS: int = 5

    # Phone registration requires a verified registration code for that number
    REQUIRE_PHONE_OTP_FOR_REGISTRATION: bool = True

    # Hard deadline for SMS dispatch and identity-provider calls
    EXTERNAL_CALL_TIMEOUT_SECONDS: float = 10.0

    # ==========================================================================
    # Twilio SMS
    # ==========================================================================
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_PHONE_NUMBER: Optional[str] = None

    # ==========================================================================
    # OAuth
    # ==========================================================================
    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CLIENT_SECRET: Optional[str] = None
    APPLE_CLIENT_ID: Optional[str] = None

    @property
    def sms_configured(self) -> bool:
        return bool(
            self.TWILIO_ACCOUNT_SID
            and self.TWILIO_AUTH_TOKEN
            and self.TWILIO_PHONE_NUMBER
        )


# Global settings instance
settings = Settings()
