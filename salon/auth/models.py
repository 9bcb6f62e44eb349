"""
Type definitions for the Auth system.

Contains the closed role/purpose/provider enumerations and the user
document formatter shared by pipelines and routers.
"""

from enum import Enum
from typing import Any, Dict


class UserRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    SALON_OWNER = "SALON_OWNER"
    STAFF = "STAFF"
    ADMIN = "ADMIN"


class OTPPurpose(str, Enum):
    REGISTRATION = "registration"
    LOGIN = "login"
    PASSWORD_RESET = "password_reset"


class OAuthProvider(str, Enum):
    GOOGLE = "google"
    APPLE = "apple"

    @property
    def id_field(self) -> str:
        """User document field holding this provider's subject id."""
        return f"{self.value}Id"


# Companion row defaults
DEFAULT_LOYALTY_TIER = "BRONZE"
DEFAULT_SUBSCRIPTION_TIER = "FREE"
OWNER_ROLE = "OWNER"

# Domain used for synthetic emails of phone-only accounts
PHONE_EMAIL_DOMAIN = "phone.local"


def format_user(user: dict) -> Dict[str, Any]:
    """Format user document for API response."""
    return {
        "id": str(user["_id"]),
        "email": user.get("email"),
        "firstName": user.get("firstName"),
        "lastName": user.get("lastName"),
        "phone": user.get("phone"),
        "avatar": user.get("avatar"),
        "role": user.get("role"),
        "isActive": user.get("isActive", True),
        "isEmailVerified": user.get("isEmailVerified", False),
        "isPhoneVerified": user.get("isPhoneVerified", False),
        "createdAt": user.get("createdAt"),
        "updatedAt": user.get("updatedAt"),
    }
