"""
Credit Workflow Service.

Handles submission of a credit application by an importer and the two
decisions on it:

1. Financial analysis by the financeira: approve with a credit limit, or
   reject.
2. Admin finalization: confirm (and optionally adjust) the limit, terms,
   admin fee and down payment.  Only then does the importer see and use
   the limit.

Every transition is audit-logged and returns a ``ServiceResult``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Union

from spark_comex.config import AppConfig
from spark_comex.database import DatabaseManager
from spark_comex.logger import StructuredLogger
from spark_comex.models.credit_application import CreditApplication
from spark_comex.models.enums import AdminStatus, CreditStatus, FinancialStatus, UserRole
from spark_comex.models.service_models import ServiceResult
from spark_comex.models.user import User
from spark_comex.repositories.credit_application_repository import (
    CreditApplicationRepository,
)
from spark_comex.services.base_service import BaseService
from spark_comex.utils.audit import log_audit_event
from spark_comex.utils.documents import format_cnpj, format_usd, validate_cnpj
from spark_comex.utils.numbers import parse_decimal
from spark_comex.utils.roles import has_admin_access

_DEFAULT_REJECTION_NOTE = "Rejeitado após análise financeira"

AmountInput = Union[Decimal, int, float, str, None]


class CreditWorkflowService(BaseService):
    """
    Service handling credit application state transitions.

    Dependencies are injected via __init__.
    """

    def __init__(
        self,
        credit_repo: CreditApplicationRepository,
        db: DatabaseManager,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._credit_repo = credit_repo
        self._db = db
        self._config = config

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _load_pending_financial(
        self,
        application_id: int,
        current_user: User,
        action: str,
    ) -> Union[CreditApplication, ServiceResult]:
        """Shared RBAC and state checks for financeira decisions."""
        if current_user.role != UserRole.FINANCEIRA:
            return self._fail(
                f"Only financeira users can {action} credit applications.", 403,
            )

        application = self._credit_repo.get_by_id(application_id)
        if application is None:
            return self._fail("Credit application not found.", 404)

        if application.financial_status != FinancialStatus.PENDING:
            return self._fail(
                f"Cannot {action} credit application. Financial status is "
                f"'{application.financial_status}'; only 'pending' "
                f"applications can be decided.",
                400,
            )
        return application

    def _audit(
        self,
        action: str,
        application_id: int,
        current_user: User,
        details: dict[str, Union[str, int, float, bool, None]],
    ) -> None:
        log_audit_event(
            logger=self._logger,
            action=action,
            entity_type="CreditApplication",
            entity_id=application_id,
            user_id=current_user.id,
            details=details,
            conn=self._db.sqlite,
        )

    # ------------------------------------------------------------------
    # Public: submission
    # ------------------------------------------------------------------

    def submit_application(
        self,
        current_user: User,
        legal_company_name: str,
        cnpj: str,
        requested_amount: AmountInput,
    ) -> ServiceResult[CreditApplication]:
        """
        Submit a credit application for financial analysis.

        Args:
            current_user: Must have the importer role.
            legal_company_name: Registered company name.
            cnpj: Company registry number, formatted or bare; stored as
                ``XX.XXX.XXX/XXXX-XX``.
            requested_amount: Requested credit; must be a positive amount.

        Returns:
            ServiceResult with the pending application (201).
        """
        if current_user.role != UserRole.IMPORTER:
            return self._fail("Only importers can submit credit applications.", 403)

        amount = parse_decimal(requested_amount)
        if amount is None or amount <= 0:
            return self._fail("A positive requested amount is required.", 400)
        if not legal_company_name or not legal_company_name.strip():
            return self._fail("The legal company name is required.", 400)
        if not validate_cnpj(cnpj):
            return self._fail(f"Invalid CNPJ: '{cnpj}'.", 400)

        try:
            now = datetime.now(timezone.utc)
            created = self._credit_repo.create(CreditApplication(
                user_id=current_user.id,
                legal_company_name=legal_company_name.strip(),
                cnpj=format_cnpj(cnpj),
                requested_amount=amount,
                status=CreditStatus.PENDING,
                financial_status=FinancialStatus.PENDING,
                admin_status=AdminStatus.PENDING,
                submitted_to_financial_at=now,
                created_at=now,
                updated_at=now,
            ))

            self._logger.info(
                "Credit application %s submitted for %s", created.id, format_usd(amount),
            )
            self._audit(
                "SUBMIT",
                created.id if created.id is not None else 0,
                current_user,
                {"requested_amount": str(amount), "cnpj": created.cnpj},
            )
            return ServiceResult(success=True, data=created, status_code=201)
        except Exception as exc:
            return self._unexpected("submit credit application", exc)

    # ------------------------------------------------------------------
    # Public: financial decisions
    # ------------------------------------------------------------------

    def approve_financially(
        self,
        application_id: int,
        current_user: User,
        credit_limit: AmountInput,
        approved_terms: Optional[Union[int, str]] = None,
        financial_notes: str = "",
    ) -> ServiceResult[CreditApplication]:
        """
        Approve a pending application with an original credit limit.

        Args:
            application_id: The application to approve.
            current_user: Must have the financeira role.
            credit_limit: Approved limit; must be a positive amount.
            approved_terms: Payment terms in days (defaults to the
                configured ``DEFAULT_APPROVED_TERMS``).
            financial_notes: Free-text analysis notes.

        Returns:
            ServiceResult with the updated application.
        """
        try:
            loaded = self._load_pending_financial(application_id, current_user, "approve")
            if isinstance(loaded, ServiceResult):
                return loaded

            limit = parse_decimal(credit_limit)
            if limit is None or limit <= 0:
                return self._fail("A positive credit limit is required.", 400)

            terms = approved_terms or self._config.DEFAULT_APPROVED_TERMS
            updated = self._credit_repo.update_fields(
                application_id,
                {
                    "status": CreditStatus.APPROVED,
                    "financial_status": FinancialStatus.APPROVED,
                    "credit_limit": limit,
                    "approved_terms": str(terms),
                    "financial_notes": financial_notes,
                    "financial_analyzed_at": datetime.now(timezone.utc),
                    "updated_at": datetime.now(timezone.utc),
                },
            )
            if updated is None:
                return self._fail("Credit application not found.", 404)

            self._audit(
                "FINANCIAL_APPROVE",
                application_id,
                current_user,
                {"credit_limit": str(limit), "approved_terms": str(terms)},
            )
            return ServiceResult(success=True, data=updated)
        except Exception as exc:
            return self._unexpected(f"approve credit application {application_id}", exc)

    def reject_financially(
        self,
        application_id: int,
        current_user: User,
        financial_notes: Optional[str] = None,
    ) -> ServiceResult[CreditApplication]:
        """
        Reject a pending application.

        Returns:
            ServiceResult with the updated application.
        """
        try:
            loaded = self._load_pending_financial(application_id, current_user, "reject")
            if isinstance(loaded, ServiceResult):
                return loaded

            notes = financial_notes or _DEFAULT_REJECTION_NOTE
            updated = self._credit_repo.update_fields(
                application_id,
                {
                    "status": CreditStatus.REJECTED,
                    "financial_status": FinancialStatus.REJECTED,
                    "financial_notes": notes,
                    "financial_analyzed_at": datetime.now(timezone.utc),
                    "updated_at": datetime.now(timezone.utc),
                },
            )
            if updated is None:
                return self._fail("Credit application not found.", 404)

            self._audit(
                "FINANCIAL_REJECT", application_id, current_user, {"notes": notes},
            )
            return ServiceResult(success=True, data=updated)
        except Exception as exc:
            return self._unexpected(f"reject credit application {application_id}", exc)

    # ------------------------------------------------------------------
    # Public: admin finalization
    # ------------------------------------------------------------------

    def finalize(
        self,
        application_id: int,
        current_user: User,
        final_credit_limit: AmountInput = None,
        final_approved_terms: Optional[Union[int, str]] = None,
        admin_fee: AmountInput = None,
        final_down_payment: AmountInput = None,
    ) -> ServiceResult[CreditApplication]:
        """
        Finalize a financially approved application.

        Unset values fall back to the financeira decision (limit, terms)
        or to defaults (0% admin fee, configured down payment).

        Returns:
            ServiceResult with the updated application; 403 for non-admin
            callers, 404 when missing, 400 when not financially approved
            or already finalized.
        """
        if not has_admin_access(current_user.role):
            return self._fail("Only admin users can finalize credit applications.", 403)

        try:
            application = self._credit_repo.get_by_id(application_id)
            if application is None:
                return self._fail("Credit application not found.", 404)

            if not application.is_financially_approved:
                return self._fail(
                    "Cannot finalize credit application before financial approval.",
                    400,
                )
            if application.is_finalized:
                return self._fail("Credit application is already finalized.", 400)

            limit = parse_decimal(final_credit_limit)
            if limit is None:
                limit = application.credit_limit
            if limit is None or limit <= 0:
                return self._fail("A positive final credit limit is required.", 400)

            fee = parse_decimal(admin_fee)
            down_payment = parse_decimal(final_down_payment)
            if down_payment is None:
                down_payment = self._config.DEFAULT_DOWN_PAYMENT_PERCENT
            if not (0 <= down_payment <= 100) or (fee is not None and fee < 0):
                return self._fail(
                    "Down payment must be between 0 and 100 and the admin fee "
                    "cannot be negative.",
                    400,
                )

            terms = final_approved_terms or application.approved_terms
            now = datetime.now(timezone.utc)
            updated = self._credit_repo.update_fields(
                application_id,
                {
                    "admin_status": AdminStatus.FINALIZED,
                    "final_credit_limit": limit,
                    "final_approved_terms": str(terms) if terms is not None else None,
                    "admin_fee": fee if fee is not None else Decimal("0"),
                    "final_down_payment": down_payment,
                    "admin_finalized_at": now,
                    "updated_at": now,
                },
            )
            if updated is None:
                return self._fail("Credit application not found.", 404)

            self._audit(
                "FINALIZE",
                application_id,
                current_user,
                {
                    "original_limit": str(application.credit_limit),
                    "final_credit_limit": str(limit),
                    "admin_fee": str(fee) if fee is not None else "0",
                    "final_down_payment": str(down_payment),
                },
            )
            return ServiceResult(success=True, data=updated)
        except Exception as exc:
            return self._unexpected(f"finalize credit application {application_id}", exc)
