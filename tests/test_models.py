"""Tests for record models."""

from datetime import date
from decimal import Decimal

import pytest

from spark_comex.models import (
    AdminStatus,
    CreditApplication,
    CreditStatus,
    FinancialStatus,
    Import,
    ImportStatus,
    User,
    UserRole,
)


class TestCreditApplication:
    """Tests for CreditApplication parsing and derived state."""

    def test_defaults(self) -> None:
        app = CreditApplication()

        assert app.status == CreditStatus.PENDING
        assert app.financial_status == FinancialStatus.PENDING
        assert app.admin_status == AdminStatus.PENDING
        assert not app.has_usable_limit

    def test_camel_case_row(self) -> None:
        app = CreditApplication.model_validate({
            "id": 3,
            "userId": 9,
            "legalCompanyName": "Spark Ltda",
            "requestedAmount": "150000.00",
            "creditLimit": 120000,
            "approvedTerms": 90,
        })

        assert app.user_id == 9
        assert app.legal_company_name == "Spark Ltda"
        assert app.requested_amount == Decimal("150000.00")
        assert app.credit_limit == Decimal("120000")
        assert app.approved_terms == "90"

    def test_lenient_amounts(self) -> None:
        app = CreditApplication(requested_amount="abc", credit_limit="", admin_fee=None)

        assert app.requested_amount is None
        assert app.credit_limit is None
        assert app.admin_fee is None

    def test_legacy_status_spellings(self) -> None:
        app = CreditApplication.model_validate({
            "financial_status": "pending_financial",
            "admin_status": "pending_admin",
        })
        finalized = CreditApplication.model_validate({
            "financial_status": "approved",
            "admin_status": "admin_finalized",
        })

        assert app.financial_status == FinancialStatus.PENDING
        assert app.admin_status == AdminStatus.PENDING
        assert finalized.is_finalized
        assert finalized.has_usable_limit

    def test_null_statuses_default(self) -> None:
        app = CreditApplication.model_validate(
            {"status": None, "financial_status": None, "admin_status": None}
        )

        assert app.status == CreditStatus.PENDING
        assert app.financial_status == FinancialStatus.PENDING
        assert app.admin_status == AdminStatus.PENDING

    def test_dump_by_alias(self) -> None:
        dumped = CreditApplication(final_credit_limit=Decimal("10")).model_dump(by_alias=True)

        assert dumped["finalCreditLimit"] == Decimal("10")
        assert "final_credit_limit" not in dumped


class TestImport:
    """Tests for Import parsing."""

    def test_unknown_status_kept(self) -> None:
        record = Import(status="on_hold")

        assert record.status == "on_hold"

    @pytest.mark.parametrize(
        ("legacy", "canonical"),
        [
            ("planejamento", ImportStatus.PLANNING),
            ("producao", ImportStatus.PRODUCTION),
            ("entregue_agente", ImportStatus.DELIVERED_TO_AGENT),
            ("delivered_agent", ImportStatus.DELIVERED_TO_AGENT),
            ("transporte_maritimo", ImportStatus.MARITIME_TRANSPORT),
            ("transporte_aereo", ImportStatus.AIR_TRANSPORT),
            ("desembaraco", ImportStatus.CUSTOMS_CLEARANCE),
            ("transporte_nacional", ImportStatus.NATIONAL_TRANSPORT),
            ("concluido", ImportStatus.COMPLETED),
            ("cancelado", ImportStatus.CANCELLED),
        ],
    )
    def test_legacy_status_spellings(self, legacy: str, canonical: ImportStatus) -> None:
        assert Import.model_validate({"status": legacy}).status == canonical

    def test_defaults(self) -> None:
        record = Import.model_validate({"status": None, "creditApplicationId": ""})

        assert record.status == ImportStatus.PLANNING
        assert record.credit_application_id is None
        assert record.currency == "USD"
        assert record.shipping_method == "sea"

    def test_camel_case_row(self) -> None:
        record = Import.model_validate({
            "importName": "Motores",
            "totalValue": "9,99",
            "estimatedDelivery": "2026-05-01",
            "shippingMethod": "air",
        })

        assert record.import_name == "Motores"
        assert record.total_value is None
        assert record.estimated_delivery == date(2026, 5, 1)
        assert record.shipping_method == "air"


class TestUser:
    """Tests for User."""

    def test_legacy_role_loads(self) -> None:
        user = User(id=1, email="a@b.com", role="auditor")

        assert user.role == "auditor"

    def test_default_role(self) -> None:
        assert User(id=1, email="a@b.com").role == UserRole.IMPORTER
