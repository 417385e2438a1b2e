"""
Service Layer Data Transfer Objects.

Pydantic models for validated output at service boundaries.
Replaces raw dict passing between layers.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

__all__ = [
    "AdminFeeCalculation",
    "CreditMetrics",
    "CreditUsage",
    "ImportMetrics",
    "MetricsData",
    "PaymentInstallment",
    "PipelineStage",
    "ServiceResult",
]

_ZERO = Decimal("0")


class _CamelOutput(BaseModel):
    """Output records dump camelCase with ``by_alias=True``."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


# ---------------------------------------------------------------------------
# Import lifecycle models
# ---------------------------------------------------------------------------

class PipelineStage(_CamelOutput):
    """One stage of the shipment pipeline.  Instances are immutable."""

    model_config = ConfigDict(frozen=True)

    status: str
    label: str
    description: str
    order: int
    estimated_days: int


# ---------------------------------------------------------------------------
# Credit utilization models
# ---------------------------------------------------------------------------

class CreditMetrics(_CamelOutput):
    """Output model for ``calculate_credit_metrics``.

    ``total_approved`` depends on the viewer's role; every other field is
    role-independent.  ``utilization_rate`` is the ratio
    ``total_requested / total_approved`` (not a percentage), ``0`` when
    nothing is approved.
    """

    total_requested: Decimal = _ZERO
    total_approved: Decimal = _ZERO
    utilization_rate: Decimal = _ZERO
    pending_count: int = 0
    approved_count: int = 0
    finalized_count: int = 0
    awaiting_finalization_count: int = 0


class CreditUsage(_CamelOutput):
    """Output model for ``calculate_credit_usage``.

    Always fully populated; ``available`` is never negative.
    """

    used: Decimal = _ZERO
    available: Decimal = _ZERO
    limit: Decimal = _ZERO


class ImportMetrics(_CamelOutput):
    """Output model for ``calculate_import_metrics``."""

    total: int = 0
    active: int = 0
    completed: int = 0
    cancelled: int = 0
    total_value: Decimal = _ZERO
    average_value: Decimal = _ZERO
    status_breakdown: dict[str, int] = Field(default_factory=dict)


class MetricsData(_CamelOutput):
    """Flat dashboard summary combining credit and import metrics."""

    total_users: int = 0
    total_credit_requested: Decimal = _ZERO
    total_credit_approved: Decimal = _ZERO
    total_imports: int = 0
    active_imports: int = 0
    completed_imports: int = 0
    total_import_value: Decimal = _ZERO
    utilization_rate: Decimal = _ZERO


class AdminFeeCalculation(_CamelOutput):
    """Breakdown of the admin fee charged on a financed import.

    The fee applies to the financed portion only; the down payment is
    paid up front and carries no fee.
    """

    import_value: Decimal
    down_payment_percent: Decimal
    down_payment_amount: Decimal
    financed_amount: Decimal
    admin_fee_percent: Decimal
    admin_fee_amount: Decimal
    total_with_fee: Decimal


class PaymentInstallment(_CamelOutput):
    """One line of an import's payment schedule.

    ``installment_number`` and ``total_installments`` are unset for the
    down payment.
    """

    payment_type: str
    amount: Decimal
    currency: str = "USD"
    due_date: date
    installment_number: Optional[int] = None
    total_installments: Optional[int] = None


# ---------------------------------------------------------------------------
# Generic service models
# ---------------------------------------------------------------------------

class ServiceResult(BaseModel, Generic[T]):
    """
    Standard service return envelope.

    All service methods return this, providing a consistent contract
    for the calling layer.

    Generic over ``T`` so callers can annotate return types precisely
    (e.g. ``ServiceResult[dict[str, float]]``).  Bare ``ServiceResult(...)``
    is treated as ``ServiceResult[Any]`` at runtime.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    status_code: int = 200
