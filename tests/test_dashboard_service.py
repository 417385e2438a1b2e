"""Tests for DashboardService against the seeded local cache."""

from datetime import date
from decimal import Decimal

import pytest

from spark_comex.models import CreditApplication, CreditStatus
from spark_comex.services import ServiceContainer
from spark_comex.services.dashboard import DashboardService, display_status

from conftest import SampleData


@pytest.fixture
def dashboard(services: ServiceContainer) -> DashboardService:
    return services["dashboard_service"]


class TestDisplayStatus:
    """Tests for display_status."""

    @pytest.mark.parametrize(
        ("fields", "expected"),
        [
            ({"financial_status": "approved", "admin_status": "finalized"}, CreditStatus.APPROVED),
            ({"financial_status": "approved"}, CreditStatus.UNDER_REVIEW),
            ({"financial_status": "rejected"}, CreditStatus.REJECTED),
            ({"status": "rejected"}, CreditStatus.REJECTED),
            ({"status": "cancelled"}, CreditStatus.CANCELLED),
            ({"status": "pending"}, CreditStatus.UNDER_REVIEW),
            ({"status": "draft"}, CreditStatus.UNDER_REVIEW),
        ],
    )
    def test_display_status(self, fields: dict, expected: CreditStatus) -> None:
        assert display_status(CreditApplication.model_validate(fields)) == expected


class TestCreditSummary:
    """Tests for get_credit_summary and get_credit_usage."""

    def test_importer_sees_own_finalized_limits(
        self, dashboard: DashboardService, sample: SampleData,
    ) -> None:
        result = dashboard.get_credit_summary(sample.importer)

        assert result.success
        assert result.data.total_requested == Decimal("170000")
        assert result.data.total_approved == Decimal("75000")
        assert result.data.pending_count == 1
        assert result.data.awaiting_finalization_count == 1

    def test_financeira_sees_original_limits_of_everyone(
        self, dashboard: DashboardService, sample: SampleData,
    ) -> None:
        result = dashboard.get_credit_summary(sample.financeira)

        assert result.data.total_requested == Decimal("200000")
        assert result.data.total_approved == Decimal("120000")

    def test_admin_sees_live_total(self, dashboard: DashboardService, sample: SampleData) -> None:
        assert dashboard.get_credit_summary(sample.admin).data.total_approved == Decimal("115000")

    def test_inactive_is_forbidden(self, dashboard: DashboardService, sample: SampleData) -> None:
        result = dashboard.get_credit_summary(sample.inactive)

        assert not result.success
        assert result.status_code == 403

    def test_credit_usage(self, dashboard: DashboardService, sample: SampleData) -> None:
        usage = dashboard.get_credit_usage(sample.importer).data

        assert usage.limit == Decimal("75000")
        assert usage.used == Decimal("25000")
        assert usage.available == Decimal("50000")

    def test_credit_usage_without_finalized_credit(
        self, dashboard: DashboardService, sample: SampleData,
    ) -> None:
        usage = dashboard.get_credit_usage(sample.other_importer).data

        assert (usage.used, usage.available, usage.limit) == (0, 0, 0)


class TestApplicationUsage:
    """Tests for get_application_usage."""

    def test_owner(self, dashboard: DashboardService, sample: SampleData) -> None:
        usage = dashboard.get_application_usage(sample.finalized.id, sample.importer).data

        assert usage.limit == Decimal("75000")
        assert usage.used == Decimal("25000")
        assert usage.available == Decimal("50000")

    def test_unfinalized_application_reports_original_limit(
        self, dashboard: DashboardService, sample: SampleData,
    ) -> None:
        usage = dashboard.get_application_usage(sample.awaiting.id, sample.importer).data

        assert usage.limit == Decimal("40000")
        assert usage.used == Decimal("7000")

    def test_financeira_may_view_any(self, dashboard: DashboardService, sample: SampleData) -> None:
        assert dashboard.get_application_usage(sample.finalized.id, sample.financeira).success

    def test_other_importer_forbidden(self, dashboard: DashboardService, sample: SampleData) -> None:
        result = dashboard.get_application_usage(sample.finalized.id, sample.other_importer)

        assert result.status_code == 403

    def test_missing(self, dashboard: DashboardService, sample: SampleData) -> None:
        assert dashboard.get_application_usage(404, sample.importer).status_code == 404


class TestImporterDashboard:
    """Tests for get_importer_dashboard."""

    def test_payload(self, dashboard: DashboardService, sample: SampleData) -> None:
        data = dashboard.get_importer_dashboard(sample.importer).data

        assert data["credit"] == {
            "approved": 75000.0,
            "used": 25000.0,
            "available": 50000.0,
            "utilization": 33.33,
        }
        assert data["imports"]["total"] == 5
        assert data["imports"]["active"] == 4
        assert data["imports"]["total_value"] == 45000.0
        assert data["imports"]["status_breakdown"] == {
            "planning": 2,
            "production": 1,
            "shipping": 1,
            "completed": 1,
        }

    def test_recent_imports(self, dashboard: DashboardService, sample: SampleData) -> None:
        recent = dashboard.get_importer_dashboard(sample.importer).data["recent_imports"]

        assert [item["id"] for item in recent] == [
            sample.unlinked.id,
            sample.awaiting_planning.id,
            sample.at_sea.id,
            sample.completed.id,
            sample.in_production.id,
        ]
        at_sea = recent[2]
        assert at_sea["status_label"] == "Transporte Marítimo"
        assert at_sea["status_color"] == "cyan"
        assert at_sea["progress"] == 57

    def test_recent_applications_use_display_status(
        self, dashboard: DashboardService, sample: SampleData,
    ) -> None:
        recent = dashboard.get_importer_dashboard(sample.importer).data["recent_applications"]

        assert [(item["id"], item["status"]) for item in recent] == [
            (sample.pending.id, "under_review"),
            (sample.awaiting.id, "under_review"),
            (sample.finalized.id, "approved"),
        ]

    def test_empty_dashboard(self, dashboard: DashboardService, sample: SampleData) -> None:
        data = dashboard.get_importer_dashboard(sample.other_importer).data

        assert data["credit"]["utilization"] == 0
        assert data["imports"]["total"] == 0
        assert data["recent_imports"] == []

    def test_inactive_is_forbidden(self, dashboard: DashboardService, sample: SampleData) -> None:
        assert dashboard.get_importer_dashboard(sample.inactive).status_code == 403


class TestAdminMetrics:
    """Tests for get_admin_metrics."""

    @pytest.mark.parametrize("who", ["admin", "super_admin"])
    def test_payload(self, dashboard: DashboardService, sample: SampleData, who: str) -> None:
        data = dashboard.get_admin_metrics(getattr(sample, who)).data

        assert data["total_importers"] == 2
        assert data["total_applications"] == 4
        assert data["applications_by_status"] == {
            "approved": 1,
            "under_review": 2,
            "rejected": 1,
        }
        assert data["total_credit_volume"] == 200000.0
        assert data["approved_credit_volume"] == 75000.0
        assert data["total_imports"] == 5
        assert [item["id"] for item in data["recent_activity"]] == [
            sample.rejected.id,
            sample.pending.id,
            sample.awaiting.id,
            sample.finalized.id,
        ]

    @pytest.mark.parametrize("who", ["importer", "financeira", "inactive"])
    def test_forbidden(self, dashboard: DashboardService, sample: SampleData, who: str) -> None:
        result = dashboard.get_admin_metrics(getattr(sample, who))

        assert result.status_code == 403
        assert result.data is None


class TestFinanceiraMetrics:
    """Tests for get_financeira_metrics."""

    def test_payload(self, dashboard: DashboardService, sample: SampleData) -> None:
        data = dashboard.get_financeira_metrics(sample.financeira, today=date(2026, 3, 20)).data

        assert data["total_applications_submitted"] == 4
        assert data["total_credit_requested"] == 200000.0
        assert data["total_credit_approved"] == 120000.0
        assert data["total_credit_in_use"] == 32000.0
        assert data["total_credit_available"] == 88000.0
        assert data["applications_by_status"] == {
            "pending": 1,
            "under_review": 0,
            "approved": 2,
            "rejected": 1,
            "cancelled": 0,
        }
        assert data["approval_rate"] == 66.67
        assert data["average_approval_time"] == 2.0
        assert data["monthly_stats"] == {
            "applications": 3,
            "approvals": 1,
            "volume": 40000.0,
        }

    def test_drafts_are_not_submitted(
        self, dashboard: DashboardService, sample: SampleData, credit_repo,
    ) -> None:
        credit_repo.update_fields(sample.pending.id, {"status": "draft"})

        data = dashboard.get_financeira_metrics(sample.financeira, today=date(2026, 3, 20)).data

        assert data["total_applications_submitted"] == 3
        assert data["applications_by_status"]["pending"] == 0

    def test_financially_approved_is_never_counted_as_rejected(
        self, dashboard: DashboardService, sample: SampleData, credit_repo,
    ) -> None:
        credit_repo.update_fields(sample.awaiting.id, {"status": "rejected"})

        data = dashboard.get_financeira_metrics(sample.financeira, today=date(2026, 3, 20)).data

        assert data["applications_by_status"]["approved"] == 2
        assert data["applications_by_status"]["rejected"] == 1
        assert data["approval_rate"] == 66.67

    @pytest.mark.parametrize(("status", "in_use"), [("on_hold", 32000.0), ("concluido", 12000.0)])
    def test_credit_in_use_follows_usage_rule(
        self,
        dashboard: DashboardService,
        sample: SampleData,
        import_repo,
        status: str,
        in_use: float,
    ) -> None:
        import_repo.update_fields(sample.in_production.id, {"status": status})

        data = dashboard.get_financeira_metrics(sample.financeira).data
        usage = dashboard.get_application_usage(sample.finalized.id, sample.importer).data
        pool = dashboard.get_credit_usage(sample.importer).data

        assert data["total_credit_in_use"] == in_use
        assert usage.used == pool.used

    def test_admin_allowed(self, dashboard: DashboardService, sample: SampleData) -> None:
        assert dashboard.get_financeira_metrics(sample.admin).success

    def test_importer_forbidden(self, dashboard: DashboardService, sample: SampleData) -> None:
        assert dashboard.get_financeira_metrics(sample.importer).status_code == 403

    def test_no_decisions(self, dashboard: DashboardService, sample: SampleData) -> None:
        empty = DashboardService(
            credit_repo=_EmptyCreditRepo(),
            import_repo=_EmptyImportRepo(),
            user_repo=None,
            config=dashboard._config,
            logger=dashboard._logger,
        )

        data = empty.get_financeira_metrics(sample.financeira).data

        assert data["approval_rate"] == 0
        assert data["average_approval_time"] == 0
        assert data["total_credit_available"] == 0


class TestUnexpectedFailure:
    """Tests for the service boundary."""

    def test_repository_error_becomes_500(
        self, dashboard: DashboardService, sample: SampleData, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def _boom(*_: object) -> None:
            raise RuntimeError("disk full")

        monkeypatch.setattr(dashboard._credit_repo, "get_by_user", _boom)

        result = dashboard.get_credit_summary(sample.importer)

        assert not result.success
        assert result.status_code == 500
        assert "disk full" in result.error


class _EmptyCreditRepo:
    def get_all(self) -> list:
        return []


class _EmptyImportRepo:
    def get_all(self) -> list:
        return []
