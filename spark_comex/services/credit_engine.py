"""
Credit Utilization Engine.

Pure-function module computing credit metrics and credit usage over
already-loaded collections of credit applications and imports.

Inputs may be model instances or plain mappings in either snake_case or
camelCase (rows straight from the hosted database or the SQLite cache).
Functions are total: malformed amounts count as 0, division by zero
yields 0, and an empty credit pool yields an all-zero usage record.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Mapping, Optional, Sequence, Union

from spark_comex.logger import StructuredLogger
from spark_comex.models.credit_application import CreditApplication
from spark_comex.models.enums import CreditStatus, ImportStatus
from spark_comex.models.import_record import Import
from spark_comex.models.service_models import (
    CreditMetrics,
    CreditUsage,
    ImportMetrics,
    MetricsData,
)
from spark_comex.services.credit_policy import policy_for
from spark_comex.services.import_lifecycle import is_active, is_final, is_transport
from spark_comex.utils.numbers import ZERO, to_decimal

__all__ = [
    "build_metrics_data",
    "calculate_application_usage",
    "calculate_credit_metrics",
    "calculate_credit_usage",
    "calculate_import_metrics",
    "coerce_applications",
    "coerce_imports",
    "holds_credit",
]

ApplicationInput = Union[CreditApplication, Mapping[str, object]]
ImportInput = Union[Import, Mapping[str, object]]


# ---------------------------------------------------------------------------
# Input coercion
# ---------------------------------------------------------------------------

def coerce_applications(
    applications: Optional[Iterable[ApplicationInput]],
) -> list[CreditApplication]:
    """Normalise mappings to ``CreditApplication`` models (models pass through)."""
    return [
        app if isinstance(app, CreditApplication)
        else CreditApplication.model_validate(app)
        for app in applications or ()
    ]


def coerce_imports(imports: Optional[Iterable[ImportInput]]) -> list[Import]:
    """Normalise mappings to ``Import`` models (models pass through)."""
    return [
        imp if isinstance(imp, Import) else Import.model_validate(imp)
        for imp in imports or ()
    ]


def holds_credit(status: Optional[str]) -> bool:
    """An import draws on its credit line until it is completed or cancelled.

    Unknown statuses hold credit.
    """
    return not is_final(status)


def _sum_values(imports: Iterable[Import]) -> Decimal:
    return sum((to_decimal(imp.total_value) for imp in imports), ZERO)


# ---------------------------------------------------------------------------
# Credit metrics
# ---------------------------------------------------------------------------

def calculate_credit_metrics(
    applications: Optional[Iterable[ApplicationInput]],
    role: Optional[str],
    logger: Optional[StructuredLogger] = None,
) -> CreditMetrics:
    """
    Summarise a set of credit applications for a viewer with *role*.

    ``total_requested`` and every count are role-independent.
    ``total_approved`` follows the role's credit visibility policy (see
    ``spark_comex.services.credit_policy``).

    ``utilization_rate`` is ``total_requested / total_approved``; it is 0
    whenever nothing is approved.

    Counts:
        - pending: general status ``pending``
        - approved: financially approved, finalized or not
        - finalized: financially approved and admin-finalized
        - awaiting finalization: financially approved, not yet finalized
    """
    apps = coerce_applications(applications)

    total_requested: Decimal = sum(
        (to_decimal(app.requested_amount) for app in apps), ZERO,
    )
    total_approved: Decimal = policy_for(role, logger=logger).total_approved(apps)

    utilization_rate: Decimal = (
        total_requested / total_approved if total_approved > 0 else ZERO
    )

    approved = [app for app in apps if app.is_financially_approved]
    finalized_count = sum(1 for app in approved if app.is_finalized)

    return CreditMetrics(
        total_requested=total_requested,
        total_approved=total_approved,
        utilization_rate=utilization_rate,
        pending_count=sum(1 for app in apps if app.status == CreditStatus.PENDING),
        approved_count=len(approved),
        finalized_count=finalized_count,
        awaiting_finalization_count=len(approved) - finalized_count,
    )


# ---------------------------------------------------------------------------
# Credit usage
# ---------------------------------------------------------------------------

def calculate_credit_usage(
    applications: Optional[Iterable[ApplicationInput]],
    imports: Optional[Iterable[ImportInput]],
    role: Optional[str] = None,
) -> CreditUsage:
    """
    Net in-flight imports against the usable credit pool.

    The pool is every application that is financially approved and
    admin-finalized.  Each contributes its final limit, falling back to
    the original limit, falling back to 0.  Imports linked to a pool
    application consume credit until they reach a final status
    (completed or cancelled).

    *role* is accepted for symmetry with ``calculate_credit_metrics``;
    usage is committed exposure and does not depend on the viewer.
    """
    pool = [app for app in coerce_applications(applications) if app.has_usable_limit]
    if not pool:
        return CreditUsage(used=ZERO, available=ZERO, limit=ZERO)

    limit: Decimal = sum(
        (to_decimal(app.final_credit_limit, app.credit_limit) for app in pool),
        ZERO,
    )

    pool_ids = {app.id for app in pool if app.id is not None}
    used: Decimal = _sum_values(
        imp for imp in coerce_imports(imports)
        if imp.credit_application_id in pool_ids and holds_credit(imp.status)
    )

    return CreditUsage(used=used, available=max(ZERO, limit - used), limit=limit)


def calculate_application_usage(
    application: ApplicationInput,
    imports: Optional[Iterable[ImportInput]],
) -> CreditUsage:
    """
    Usage of a single credit application.

    Unlike the pooled calculation, the limit is reported for any
    application (final limit, else original limit) so reviewers can see
    it before finalization.  Imports linked to this application count as
    used under the same rule as the pool (see ``holds_credit``).
    """
    app = coerce_applications([application])[0]
    limit = to_decimal(app.final_credit_limit, app.credit_limit)

    used: Decimal = _sum_values(
        imp for imp in coerce_imports(imports)
        if app.id is not None
        and imp.credit_application_id == app.id
        and holds_credit(imp.status)
    )

    return CreditUsage(used=used, available=max(ZERO, limit - used), limit=limit)


# ---------------------------------------------------------------------------
# Import metrics
# ---------------------------------------------------------------------------

def calculate_import_metrics(imports: Optional[Iterable[ImportInput]]) -> ImportMetrics:
    """
    Count and value a set of imports.

    ``status_breakdown`` groups shipments for the importer dashboard:
    ``planning``, ``production`` (production and hand-off to the agent),
    ``shipping`` (transport and customs) and ``completed``.  Unknown
    statuses are counted in ``total`` only.
    """
    items = coerce_imports(imports)
    total_value = _sum_values(items)

    breakdown: dict[str, int] = {
        "planning": 0,
        "production": 0,
        "shipping": 0,
        "completed": 0,
    }
    for imp in items:
        if imp.status == ImportStatus.PLANNING:
            breakdown["planning"] += 1
        elif imp.status in (ImportStatus.PRODUCTION, ImportStatus.DELIVERED_TO_AGENT):
            breakdown["production"] += 1
        elif is_transport(imp.status) or imp.status == ImportStatus.CUSTOMS_CLEARANCE:
            breakdown["shipping"] += 1
        elif imp.status == ImportStatus.COMPLETED:
            breakdown["completed"] += 1

    return ImportMetrics(
        total=len(items),
        active=sum(1 for imp in items if is_active(imp.status)),
        completed=breakdown["completed"],
        cancelled=sum(1 for imp in items if imp.status == ImportStatus.CANCELLED),
        total_value=total_value,
        average_value=total_value / len(items) if items else ZERO,
        status_breakdown=breakdown,
    )


def build_metrics_data(
    applications: Optional[Sequence[ApplicationInput]],
    imports: Optional[Sequence[ImportInput]],
    role: Optional[str] = None,
    total_users: int = 0,
    logger: Optional[StructuredLogger] = None,
) -> MetricsData:
    """Flatten credit and import metrics into one dashboard record."""
    credit = calculate_credit_metrics(applications, role, logger=logger)
    shipments = calculate_import_metrics(imports)

    return MetricsData(
        total_users=total_users,
        total_credit_requested=credit.total_requested,
        total_credit_approved=credit.total_approved,
        total_imports=shipments.total,
        active_imports=shipments.active,
        completed_imports=shipments.completed,
        total_import_value=shipments.total_value,
        utilization_rate=credit.utilization_rate,
    )
