"""
Self-registration policy.

Decides, from the requested role alone (plus the salon payload for owners),
whether an account may be created without an administrator and which
companion rows must be written with it.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from common.utils.exceptions import ForbiddenException, ValidationException
from salon.auth.models import UserRole

SALON_REQUIRED_FIELDS = (
    "salonName",
    "salonAddress",
    "salonCity",
    "salonCountry",
    "salonPhone",
    "salonEmail",
)
SALON_OPTIONAL_FIELDS = ("salonWebsite", "salonDescription")


@dataclass(frozen=True)
class RegistrationPlan:
    """Outcome of a permitted registration."""
    role: UserRole
    create_customer_profile: bool = False
    salon: Optional[Dict[str, Any]] = None  # normalised salon payload for owners


def coerce_role(role: Union[str, UserRole, None]) -> UserRole:
    """
    Turn a raw role value into a UserRole.

    Raises:
        ValidationException: Unknown role
    """
    if isinstance(role, UserRole):
        return role
    if role is None:
        return UserRole.CUSTOMER
    try:
        return UserRole(str(role).upper())
    except ValueError:
        raise ValidationException(
            message=f"Invalid role: {role}",
            code="INVALID_ROLE",
        )


class RegistrationPolicy:
    """
    Role gate for self-registration.

    CUSTOMER and SALON_OWNER may sign themselves up; STAFF and ADMIN may not,
    whatever else the request contains.
    """

    def evaluate(
        self,
        role: Union[str, UserRole, None],
        salon_data: Optional[Dict[str, Any]] = None,
    ) -> RegistrationPlan:
        """
        Check that ``role`` may self-register.

        Returns:
            RegistrationPlan naming the companion rows to create

        Raises:
            ForbiddenException: STAFF or ADMIN
            ValidationException: Unknown role, or owner without salon data
        """
        user_role = coerce_role(role)

        if user_role is UserRole.STAFF:
            raise ForbiddenException(
                message="Staff accounts must be created by salon owners",
                code="STAFF_SELF_REGISTRATION",
            )

        if user_role is UserRole.ADMIN:
            raise ForbiddenException(
                message="Admin accounts must be created manually",
                code="ADMIN_SELF_REGISTRATION",
            )

        if user_role is UserRole.SALON_OWNER:
            return RegistrationPlan(
                role=user_role,
                salon=self._validate_salon_data(salon_data),
            )

        return RegistrationPlan(role=user_role, create_customer_profile=True)

    def _validate_salon_data(self, salon_data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if not salon_data:
            raise ValidationException(
                message="Salon data is required for salon owner registration",
                code="SALON_DATA_REQUIRED",
            )

        missing = [
            field for field in SALON_REQUIRED_FIELDS
            if not isinstance(salon_data.get(field), str) or not salon_data[field].strip()
        ]
        if missing:
            raise ValidationException(
                message="Salon data is incomplete",
                code="SALON_DATA_REQUIRED",
                errors=[f"{field} is required" for field in missing],
            )

        salon = {field: salon_data[field].strip() for field in SALON_REQUIRED_FIELDS}
        for field in SALON_OPTIONAL_FIELDS:
            if salon_data.get(field):
                salon[field] = salon_data[field]
        return salon
