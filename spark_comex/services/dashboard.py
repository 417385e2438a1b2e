"""
Dashboard Service.

Provides the credit and shipment figures shown on the importer, admin and
financeira dashboards.  All queries are RBAC-scoped: importers see only
their own applications and imports, while admin, super admin and
financeira see everything.

The arithmetic lives in ``credit_engine``; this service only selects the
records each caller may see and shapes the result.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from spark_comex.config import AppConfig
from spark_comex.logger import StructuredLogger
from spark_comex.models.credit_application import CreditApplication
from spark_comex.models.enums import CreditStatus, FinancialStatus, UserRole
from spark_comex.models.import_record import Import
from spark_comex.models.service_models import CreditMetrics, CreditUsage, ServiceResult
from spark_comex.models.user import User
from spark_comex.repositories.credit_application_repository import (
    CreditApplicationRepository,
)
from spark_comex.repositories.import_repository import ImportRepository
from spark_comex.repositories.user_repository import UserRepository
from spark_comex.services.base_service import BaseService
from spark_comex.services.credit_engine import (
    calculate_application_usage,
    calculate_credit_metrics,
    calculate_credit_usage,
    calculate_import_metrics,
    holds_credit,
)
from spark_comex.services.import_lifecycle import (
    color_of,
    label_of,
    overall_progress,
)
from spark_comex.utils.general import convert_to_json_safe
from spark_comex.utils.numbers import ZERO, to_decimal
from spark_comex.utils.roles import can_view_all_credit, has_admin_access

_FINANCEIRA_DASHBOARD_ROLES: frozenset[UserRole] = frozenset({
    UserRole.FINANCEIRA,
    UserRole.ADMIN,
    UserRole.SUPER_ADMIN,
})


def display_status(application: CreditApplication) -> str:
    """Collapse the financial and admin decisions into one dashboard status.

    A financially approved application only shows as ``approved`` once an
    admin has finalized it; until then it is still ``under_review``.
    """
    if application.is_financially_approved:
        return CreditStatus.APPROVED if application.is_finalized else CreditStatus.UNDER_REVIEW
    if (
        application.financial_status == FinancialStatus.REJECTED
        or application.status == CreditStatus.REJECTED
    ):
        return CreditStatus.REJECTED
    if application.status == CreditStatus.CANCELLED:
        return CreditStatus.CANCELLED
    return CreditStatus.UNDER_REVIEW


def _approved_amount(application: CreditApplication) -> Decimal:
    return to_decimal(application.final_credit_limit, application.credit_limit)


def _sort_key(created_at: Optional[datetime]) -> str:
    return created_at.isoformat() if created_at else ""


def _as_utc(moment: datetime) -> datetime:
    """Naive timestamps from the local cache are stored in UTC."""
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


class DashboardService(BaseService):
    """
    Service layer for dashboard metrics.

    Delegates data access to the repositories and all credit arithmetic
    to ``credit_engine``.
    """

    def __init__(
        self,
        credit_repo: CreditApplicationRepository,
        import_repo: ImportRepository,
        user_repo: UserRepository,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._credit_repo = credit_repo
        self._import_repo = import_repo
        self._user_repo = user_repo
        self._config = config

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _visible_applications(self, current_user: User) -> list[CreditApplication]:
        """All applications for privileged roles, own applications otherwise."""
        if can_view_all_credit(current_user.role):
            return self._credit_repo.get_all()
        return self._credit_repo.get_by_user(current_user.id)

    def _recent_imports(self, imports: list[Import]) -> list[dict[str, object]]:
        newest = sorted(imports, key=lambda imp: _sort_key(imp.created_at), reverse=True)
        return [
            {
                "id": imp.id,
                "import_name": imp.import_name,
                "total_value": imp.total_value,
                "status": imp.status,
                "status_label": label_of(imp.status),
                "status_color": color_of(imp.status),
                "progress": overall_progress(imp.status, imp.shipping_method),
                "created_at": imp.created_at,
            }
            for imp in newest[: self._config.RECENT_ACTIVITY_LIMIT]
        ]

    def _recent_applications(
        self,
        applications: list[CreditApplication],
    ) -> list[dict[str, object]]:
        newest = sorted(
            applications, key=lambda app: _sort_key(app.created_at), reverse=True,
        )
        return [
            {
                "id": app.id,
                "legal_company_name": app.legal_company_name,
                "requested_amount": app.requested_amount,
                "status": display_status(app),
                "created_at": app.created_at,
            }
            for app in newest[: self._config.RECENT_ACTIVITY_LIMIT]
        ]

    # ------------------------------------------------------------------
    # Credit summaries
    # ------------------------------------------------------------------

    def get_credit_summary(self, current_user: User) -> ServiceResult[CreditMetrics]:
        """
        Credit metrics over the applications the caller may see.

        ``total_approved`` follows the caller's role: financeira sees
        original limits, admin a live total, importers only finalized
        limits.

        Returns:
            ServiceResult with a ``CreditMetrics`` payload.
        """
        if self._is_inactive(current_user):
            return self._fail("Inactive users cannot view credit data.", 403)

        try:
            applications = self._visible_applications(current_user)
            metrics = calculate_credit_metrics(
                applications, current_user.role, logger=self._logger,
            )
            return ServiceResult(success=True, data=metrics)
        except Exception as exc:
            return self._unexpected("compute credit summary", exc)

    def get_credit_usage(self, current_user: User) -> ServiceResult[CreditUsage]:
        """
        Used / available / limit for the caller's own finalized credit.

        Returns:
            ServiceResult with a ``CreditUsage`` payload.
        """
        if self._is_inactive(current_user):
            return self._fail("Inactive users cannot view credit data.", 403)

        try:
            usage = calculate_credit_usage(
                self._credit_repo.get_by_user(current_user.id),
                self._import_repo.get_by_user(current_user.id),
                current_user.role,
            )
            return ServiceResult(success=True, data=usage)
        except Exception as exc:
            return self._unexpected("compute credit usage", exc)

    def get_application_usage(
        self,
        application_id: int,
        current_user: User,
    ) -> ServiceResult[CreditUsage]:
        """
        Usage of one credit application.

        Importers may only query their own applications.

        Returns:
            ServiceResult with a ``CreditUsage`` payload, 404 when the
            application does not exist, 403 when it belongs to someone else.
        """
        if self._is_inactive(current_user):
            return self._fail("Inactive users cannot view credit data.", 403)

        try:
            application = self._credit_repo.get_by_id(application_id)
            if application is None:
                return self._fail("Credit application not found.", 404)

            if (
                not can_view_all_credit(current_user.role)
                and application.user_id != current_user.id
            ):
                return self._fail(
                    "You can only view usage of your own credit applications.", 403,
                )

            imports = self._import_repo.get_by_credit_application(application_id)
            return ServiceResult(
                success=True,
                data=calculate_application_usage(application, imports),
            )
        except Exception as exc:
            return self._unexpected("compute application usage", exc)

    # ------------------------------------------------------------------
    # Dashboards
    # ------------------------------------------------------------------

    def get_importer_dashboard(self, current_user: User) -> ServiceResult:
        """
        Everything the importer home screen shows, in one call.

        Returns:
            ServiceResult with data dict containing:
                - credit: approved, used, available, utilization (percent
                  of the limit in use)
                - imports: counts, totals and status breakdown
                - recent_imports / recent_applications
        """
        if self._is_inactive(current_user):
            return self._fail("Inactive users cannot view the dashboard.", 403)

        try:
            applications = self._credit_repo.get_by_user(current_user.id)
            imports = self._import_repo.get_by_user(current_user.id)

            usage = calculate_credit_usage(applications, imports, current_user.role)
            utilization = (
                (usage.used / usage.limit * 100).quantize(Decimal("0.01"))
                if usage.limit > 0 else ZERO
            )

            return ServiceResult(
                success=True,
                data=convert_to_json_safe({
                    "credit": {
                        "approved": usage.limit,
                        "used": usage.used,
                        "available": usage.available,
                        "utilization": utilization,
                    },
                    "imports": calculate_import_metrics(imports).model_dump(),
                    "recent_imports": self._recent_imports(imports),
                    "recent_applications": self._recent_applications(applications),
                }),
            )
        except Exception as exc:
            return self._unexpected("build importer dashboard", exc)

    def get_admin_metrics(self, current_user: User) -> ServiceResult:
        """
        Platform-wide overview for administrators.

        Returns:
            ServiceResult with data dict containing:
                - total_importers, total_applications
                - applications_by_status (display status -> count)
                - total_credit_volume (requested)
                - approved_credit_volume (finalized limits)
                - total_imports
                - recent_activity
        """
        if not has_admin_access(current_user.role):
            return self._fail("Only admin users can view admin metrics.", 403)

        try:
            applications = self._credit_repo.get_all()
            imports = self._import_repo.get_all()

            by_status: dict[str, int] = {}
            for app in applications:
                key = str(display_status(app))
                by_status[key] = by_status.get(key, 0) + 1

            usable = [app for app in applications if app.has_usable_limit]

            return ServiceResult(
                success=True,
                data=convert_to_json_safe({
                    "total_importers": self._user_repo.count_importers(),
                    "total_applications": len(applications),
                    "applications_by_status": by_status,
                    "total_credit_volume": sum(
                        (to_decimal(app.requested_amount) for app in applications), ZERO,
                    ),
                    "approved_credit_volume": sum(
                        (_approved_amount(app) for app in usable), ZERO,
                    ),
                    "total_imports": len(imports),
                    "recent_activity": self._recent_applications(applications),
                }),
            )
        except Exception as exc:
            return self._unexpected("compute admin metrics", exc)

    def get_financeira_metrics(
        self,
        current_user: User,
        today: Optional[date] = None,
    ) -> ServiceResult:
        """
        Financial-analysis overview.

        Args:
            current_user: Must be financeira, admin or super admin.
            today: Reference date for the monthly figures (defaults to the
                current date).

        Returns:
            ServiceResult with data dict containing:
                - total_applications_submitted
                - total_credit_requested / total_credit_approved
                - total_credit_in_use / total_credit_available
                - applications_by_status
                - approval_rate (percent of decided applications approved)
                - average_approval_time (days)
                - monthly_stats (applications, approvals, volume)
        """
        if current_user.role not in _FINANCEIRA_DASHBOARD_ROLES:
            return self._fail("Only financeira or admin users can view these metrics.", 403)

        try:
            submitted = [
                app for app in self._credit_repo.get_all()
                if app.status != CreditStatus.DRAFT
            ]
            submitted_ids = {app.id for app in submitted}
            metrics = calculate_credit_metrics(submitted, UserRole.FINANCEIRA)

            in_use: Decimal = sum(
                (
                    to_decimal(imp.total_value)
                    for imp in self._import_repo.get_all()
                    if imp.credit_application_id in submitted_ids
                    and holds_credit(imp.status)
                ),
                ZERO,
            )

            approved = [app for app in submitted if app.is_financially_approved]
            rejected = [
                app for app in submitted
                if not app.is_financially_approved
                and (
                    app.financial_status == FinancialStatus.REJECTED
                    or app.status == CreditStatus.REJECTED
                )
            ]
            by_status = {
                "pending": sum(
                    1 for app in submitted
                    if app.financial_status == FinancialStatus.PENDING
                    and app.status == CreditStatus.PENDING
                ),
                "under_review": sum(
                    1 for app in submitted if app.status == CreditStatus.UNDER_REVIEW
                ),
                "approved": len(approved),
                "rejected": len(rejected),
                "cancelled": sum(
                    1 for app in submitted if app.status == CreditStatus.CANCELLED
                ),
            }

            decided = len(approved) + len(rejected)
            approval_rate = (
                round(len(approved) / decided * 100, 2) if decided else 0.0
            )

            # Partial days count as a full day.
            durations = [
                math.ceil(
                    (
                        _as_utc(app.financial_analyzed_at)
                        - _as_utc(app.submitted_to_financial_at)
                    ).total_seconds()
                    / 86400
                )
                for app in approved
                if app.submitted_to_financial_at and app.financial_analyzed_at
            ]
            average_approval_time = (
                round(sum(durations) / len(durations), 2) if durations else 0.0
            )

            reference = today or date.today()
            month_start = reference.replace(day=1)
            monthly = [
                app for app in submitted
                if app.created_at and app.created_at.date() >= month_start
            ]
            monthly_approvals = [app for app in monthly if app.is_financially_approved]

            return ServiceResult(
                success=True,
                data=convert_to_json_safe({
                    "total_applications_submitted": len(submitted),
                    "total_credit_requested": metrics.total_requested,
                    "total_credit_approved": metrics.total_approved,
                    "total_credit_in_use": in_use,
                    "total_credit_available": max(ZERO, metrics.total_approved - in_use),
                    "applications_by_status": by_status,
                    "approval_rate": approval_rate,
                    "average_approval_time": average_approval_time,
                    "monthly_stats": {
                        "applications": len(monthly),
                        "approvals": len(monthly_approvals),
                        "volume": sum(
                            (_approved_amount(app) for app in monthly_approvals), ZERO,
                        ),
                    },
                }),
            )
        except Exception as exc:
            return self._unexpected("compute financeira metrics", exc)
