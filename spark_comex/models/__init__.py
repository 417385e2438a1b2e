"""
Data Models Package.

Re-exports all Pydantic models for short imports:
    from spark_comex.models import CreditApplication, Import, User
    from spark_comex.models import ImportStatus, UserRole
    from spark_comex.models import CreditMetrics, CreditUsage, ServiceResult
"""

from __future__ import annotations

from spark_comex.models.enums import (
    AdminStatus,
    CreditStatus,
    FinancialStatus,
    ImportStatus,
    ShippingMethod,
    StatusColor,
    UserRole,
)
from spark_comex.models.user import User
from spark_comex.models.credit_application import CreditApplication
from spark_comex.models.import_record import Import
from spark_comex.models.service_models import (
    AdminFeeCalculation,
    CreditMetrics,
    CreditUsage,
    ImportMetrics,
    MetricsData,
    PaymentInstallment,
    PipelineStage,
    ServiceResult,
)

__all__ = [
    "AdminStatus",
    "CreditStatus",
    "FinancialStatus",
    "ImportStatus",
    "ShippingMethod",
    "StatusColor",
    "UserRole",
    "User",
    "CreditApplication",
    "Import",
    "AdminFeeCalculation",
    "CreditMetrics",
    "CreditUsage",
    "ImportMetrics",
    "MetricsData",
    "PaymentInstallment",
    "PipelineStage",
    "ServiceResult",
]
