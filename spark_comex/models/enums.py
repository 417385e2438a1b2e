"""
Shared Enumerations for Spark Comex Models.

All string enumerations for type-safe field constraints.
StrEnum values compare equal to their string equivalents,
so persisted rows like ``status == 'planning'`` keep working.
"""

from __future__ import annotations
from enum import StrEnum


class UserRole(StrEnum):
    """Valid user roles in the system.

    ``INACTIVE`` is a soft-delete sentinel.  Users are never hard-deleted
    so that their credit applications and imports remain reportable.
    """

    ADMIN = "admin"
    FINANCEIRA = "financeira"
    IMPORTER = "importer"
    SUPER_ADMIN = "super_admin"
    INACTIVE = "inactive"


class ImportStatus(StrEnum):
    """Canonical shipment lifecycle statuses, declared in pipeline order.

    The set is closed.  ``COMPLETED`` and ``CANCELLED`` are terminal; the
    remaining seven are active.  Exactly one of the two transport
    sub-stages (maritime or air) applies to a given shipment.
    """

    PLANNING = "planning"
    PRODUCTION = "production"
    DELIVERED_TO_AGENT = "delivered_to_agent"
    MARITIME_TRANSPORT = "maritime_transport"
    AIR_TRANSPORT = "air_transport"
    CUSTOMS_CLEARANCE = "customs_clearance"
    NATIONAL_TRANSPORT = "national_transport"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ShippingMethod(StrEnum):
    """International leg of a shipment."""

    AIR = "air"
    SEA = "sea"


class StatusColor(StrEnum):
    """Display color tokens for status badges.

    ``GRAY`` is the neutral token used for anything unrecognised.
    """

    BLUE = "blue"
    ORANGE = "orange"
    PURPLE = "purple"
    CYAN = "cyan"
    SKY = "sky"
    YELLOW = "yellow"
    INDIGO = "indigo"
    GREEN = "green"
    RED = "red"
    GRAY = "gray"


class CreditStatus(StrEnum):
    """General status of a credit application."""

    DRAFT = "draft"
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class FinancialStatus(StrEnum):
    """Decision recorded by the financeira on a credit application."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AdminStatus(StrEnum):
    """Admin finalization state of a credit application.

    Only ``FINALIZED`` applications expose a usable limit to importers.
    """

    PENDING = "pending"
    FINALIZED = "finalized"
