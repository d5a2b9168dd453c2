"""Enum definitions for application constants."""

from enum import Enum


class Role(str, Enum):
    """
    User roles.

    - ADMIN: reviews, prices and approves/rejects every form in the org
    - CLIENT: creates and submits its own forms
    """
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class LoginType(str, Enum):
    """Login flows accepted by POST /api/auth/login."""
    ADMIN = "admin"
    CLIENT = "client"


class FormStatus(str, Enum):
    """
    Form lifecycle, in order.

        Draft → Submitted → Reviewing → Approved/Rejected

    Clients may only move Draft → Submitted; admins may set any status.
    """
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    REVIEWING = "Reviewing"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class InsuranceType(str, Enum):
    PRIVATE_LIABILITY = "Private Liability Insurance"
    LEGAL_PROTECTION = "Legal Protection Insurance"
    HOUSEHOLD = "Household Insurance"
    TRAFFIC_LEGAL = "Traffic Legal Insurance"
    HEALTH_SUPPLEMENT = "Health Supplement Insurance"
    BUSINESS_LEGAL = "Business Legal Insurance"


class PackageTier(str, Enum):
    BASIC = "Basic"
    COMFORT = "Comfort"
    PREMIUM = "Premium"


class RequestType(str, Enum):
    NEW_POLICY = "New Policy"
    UPGRADE = "Upgrade"


# Status transitions a client may perform on its own form
CLIENT_STATUS_TRANSITIONS = frozenset({
    (FormStatus.DRAFT, FormStatus.SUBMITTED),
})

# Roles allowed to set item prices
ROLES_CAN_PRICE = frozenset({Role.ADMIN})

# Roles that see every form in the organization
ROLES_CAN_VIEW_ALL_FORMS = frozenset({Role.ADMIN})

# Roles allowed to move a form to any status
ROLES_CAN_REVIEW = frozenset({Role.ADMIN})
