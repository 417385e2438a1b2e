"""
Credit Application Model.

A credit application moves through two independent decisions:

1. The financeira approves or rejects it (``financial_status``), fixing the
   original ``credit_limit``.
2. An admin finalizes it (``admin_status``), optionally adjusting the
   limit into ``final_credit_limit``.

Only applications that are financially approved **and** admin-finalized
expose a usable limit to the importer.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import field_validator

from spark_comex.models.base import RecordModel, lenient_decimal
from spark_comex.models.enums import AdminStatus, CreditStatus, FinancialStatus

# Spellings written by older releases before the status split.
_LEGACY_ADMIN_STATUS: dict[str, str] = {
    "admin_finalized": AdminStatus.FINALIZED,
    "pending_admin": AdminStatus.PENDING,
}
_LEGACY_FINANCIAL_STATUS: dict[str, str] = {
    "pending_financial": FinancialStatus.PENDING,
}


class CreditApplication(RecordModel):
    """Represents a credit line request owned by an importer."""

    id: Optional[int] = None
    user_id: Optional[int] = None
    legal_company_name: str = ""
    cnpj: Optional[str] = None
    requested_amount: Optional[Decimal] = None
    status: str = CreditStatus.PENDING

    # Financeira decision
    financial_status: str = FinancialStatus.PENDING
    credit_limit: Optional[Decimal] = None
    approved_terms: Optional[str] = None
    financial_notes: Optional[str] = None
    submitted_to_financial_at: Optional[datetime] = None
    financial_analyzed_at: Optional[datetime] = None

    # Admin finalization
    admin_status: str = AdminStatus.PENDING
    final_credit_limit: Optional[Decimal] = None
    final_approved_terms: Optional[str] = None
    admin_fee: Optional[Decimal] = None
    final_down_payment: Optional[Decimal] = None
    admin_finalized_at: Optional[datetime] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator(
        "requested_amount",
        "credit_limit",
        "final_credit_limit",
        "admin_fee",
        "final_down_payment",
        mode="before",
    )
    @classmethod
    def parse_amount(cls: type[CreditApplication], v: object) -> Optional[Decimal]:
        return lenient_decimal(v)

    @field_validator("approved_terms", "final_approved_terms", mode="before")
    @classmethod
    def terms_as_text(cls: type[CreditApplication], v: object) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)

    @field_validator("admin_status", mode="before")
    @classmethod
    def normalize_admin_status(cls: type[CreditApplication], v: object) -> str:
        if v is None:
            return AdminStatus.PENDING
        text = str(v)
        return _LEGACY_ADMIN_STATUS.get(text, text)

    @field_validator("financial_status", mode="before")
    @classmethod
    def normalize_financial_status(cls: type[CreditApplication], v: object) -> str:
        if v is None:
            return FinancialStatus.PENDING
        text = str(v)
        return _LEGACY_FINANCIAL_STATUS.get(text, text)

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls: type[CreditApplication], v: object) -> str:
        return CreditStatus.PENDING if v is None else str(v)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def is_financially_approved(self) -> bool:
        return self.financial_status == FinancialStatus.APPROVED

    @property
    def is_finalized(self) -> bool:
        return self.admin_status == AdminStatus.FINALIZED

    @property
    def has_usable_limit(self) -> bool:
        """True when the importer may draw on this application."""
        return self.is_financially_approved and self.is_finalized
