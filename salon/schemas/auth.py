"""
Pydantic models for Auth system request/response validation.

Defines schemas for registration, login, tokens, phone verification and
OAuth sign-in.
"""

from typing import Optional
from pydantic import BaseModel, Field, EmailStr

E164_PATTERN = r"^\+[1-9]\d{6,14}$"


class SalonRegistrationInput(BaseModel):
    """Salon details supplied by a registering salon owner."""
    salonName: str = Field(..., min_length=2, max_length=100)
    salonAddress: str = Field(..., min_length=5, max_length=200)
    salonCity: str = Field(..., min_length=2, max_length=50)
    salonCountry: str = Field(..., min_length=2, max_length=50)
    salonPhone: str = Field(..., pattern=E164_PATTERN)
    salonEmail: EmailStr
    salonWebsite: Optional[str] = Field(None, max_length=200)
    salonDescription: Optional[str] = Field(None, max_length=500)


class RegisterRequest(BaseModel):
    """Request body for password registration."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    firstName: str = Field(..., min_length=1, max_length=50)
    lastName: str = Field(..., min_length=1, max_length=50)
    phone: Optional[str] = Field(None, pattern=E164_PATTERN)
    # Validated by the registration policy so STAFF/ADMIN get a 403, not a 422
    role: str = Field(default="CUSTOMER", description="CUSTOMER | SALON_OWNER")
    salonData: Optional[SalonRegistrationInput] = None


class LoginRequest(BaseModel):
    """Request body for password login."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refreshToken: str = Field(..., min_length=1)


class LogoutRequest(BaseModel):
    """Request body for logout. Without a token every session is ended."""
    refreshToken: Optional[str] = None


class SendOTPRequest(BaseModel):
    """Request body for sending a phone verification code."""
    phone: str = Field(..., pattern=E164_PATTERN, description="E.164 phone number")
    purpose: str = Field(
        default="registration",
        pattern=r"^(registration|login|password_reset)$",
    )
    userId: Optional[str] = Field(None, description="Omit before registration; one is returned")


class VerifyOTPRequest(BaseModel):
    """Request body for verifying a phone code."""
    phone: str = Field(..., pattern=E164_PATTERN)
    otp: str = Field(..., pattern=r"^[0-9]{6}$", description="6-digit code")
    purpose: str = Field(
        default="registration",
        pattern=r"^(registration|login|password_reset)$",
    )
    userId: Optional[str] = None


class PhoneRegistrationRequest(BaseModel):
    """Request body for phone-only registration (after OTP verification)."""
    phone: str = Field(..., pattern=E164_PATTERN)
    firstName: str = Field(..., min_length=1, max_length=50)
    lastName: str = Field(..., min_length=1, max_length=50)
    role: str = Field(default="CUSTOMER", pattern=r"^(CUSTOMER|SALON_OWNER)$")


class GoogleOAuthRequest(BaseModel):
    accessToken: str = Field(..., min_length=1)
    idToken: Optional[str] = None


class AppleOAuthRequest(BaseModel):
    """Request body for Sign in with Apple. Names are only sent on first sign-in."""
    identityToken: str = Field(..., min_length=1)
    authorizationCode: Optional[str] = None
    email: Optional[EmailStr] = None
    firstName: Optional[str] = Field(None, max_length=50)
    lastName: Optional[str] = Field(None, max_length=50)

