"""Tests for the admin fee calculator."""

from datetime import date
from decimal import Decimal

import pytest

from spark_comex.config import AppConfig
from spark_comex.models import CreditApplication
from spark_comex.services.admin_fee import (
    admin_fee_from_credit,
    build_payment_schedule,
    calculate_admin_fee,
    down_payment_from_credit,
    parse_payment_terms,
)


class TestCalculateAdminFee:
    """Tests for calculate_admin_fee."""

    def test_fee_on_financed_portion_only(self) -> None:
        result = calculate_admin_fee("10000", 30, "10")

        assert result.down_payment_amount == 3000
        assert result.financed_amount == 7000
        assert result.admin_fee_amount == 700
        assert result.total_with_fee == 10700

    def test_fractional_fee(self) -> None:
        result = calculate_admin_fee(Decimal("25000"), Decimal("20"), Decimal("2.5"))

        assert result.financed_amount == 20000
        assert result.admin_fee_amount == 500
        assert result.total_with_fee == 25500

    def test_full_down_payment_has_no_fee(self) -> None:
        result = calculate_admin_fee(5000, 100, 10)

        assert result.financed_amount == 0
        assert result.admin_fee_amount == 0
        assert result.total_with_fee == 5000

    def test_missing_values_are_zero(self) -> None:
        result = calculate_admin_fee(None, "", "abc")

        assert result.import_value == 0
        assert result.total_with_fee == 0

    def test_dumps_camel_case(self) -> None:
        dumped = calculate_admin_fee(1000, 30, 5).model_dump(by_alias=True)

        assert {"importValue", "downPaymentPercent", "adminFeeAmount", "totalWithFee"} <= set(dumped)


class TestCreditDefaults:
    """Tests for reading fee terms off a credit application."""

    def test_admin_fee_from_credit(self) -> None:
        assert admin_fee_from_credit(CreditApplication(admin_fee="2.5")) == Decimal("2.5")
        assert admin_fee_from_credit(CreditApplication()) == 0
        assert admin_fee_from_credit(None) == 0

    def test_down_payment_from_credit(self) -> None:
        assert down_payment_from_credit(CreditApplication(final_down_payment="20")) == 20
        assert down_payment_from_credit(CreditApplication()) == 30
        assert down_payment_from_credit(None) == 30

    def test_zero_down_payment_is_kept(self) -> None:
        assert down_payment_from_credit(CreditApplication(final_down_payment="0")) == 0

    def test_default_comes_from_config(self) -> None:
        config = AppConfig(DEFAULT_DOWN_PAYMENT_PERCENT=Decimal("40"))

        assert down_payment_from_credit(CreditApplication(), config) == 40
        assert down_payment_from_credit(None, config) == 40


class TestPaymentSchedule:
    """Tests for parse_payment_terms and build_payment_schedule."""

    @pytest.mark.parametrize(
        ("terms", "expected"),
        [
            ("30,60,90,120", [30, 60, 90, 120]),
            (" 45 ", [45]),
            ("30,,x,0,60", [30, 60]),
            ("", []),
            (None, []),
        ],
    )
    def test_parse_payment_terms(self, terms: object, expected: list[int]) -> None:
        assert parse_payment_terms(terms) == expected

    def test_final_terms_win(self) -> None:
        app = CreditApplication(
            approved_terms="30", final_approved_terms="30,60", final_down_payment="50",
        )

        schedule = build_payment_schedule("1000", app, date(2026, 1, 1))

        assert [(line.payment_type, line.amount, line.due_date) for line in schedule] == [
            ("down_payment", Decimal("500.00"), date(2026, 1, 1)),
            ("installment", Decimal("250.00"), date(2026, 1, 31)),
            ("installment", Decimal("250.00"), date(2026, 3, 2)),
        ]
        assert schedule[0].installment_number is None

    def test_rounding_goes_to_last_installment(self) -> None:
        app = CreditApplication(final_approved_terms="30,60,90", final_down_payment="0")

        schedule = build_payment_schedule("100", app, date(2026, 1, 1))

        assert [line.amount for line in schedule[1:]] == [
            Decimal("33.33"), Decimal("33.33"), Decimal("33.34"),
        ]

    def test_configured_terms_when_none_set(self) -> None:
        config = AppConfig(DEFAULT_APPROVED_TERMS=45, DEFAULT_DOWN_PAYMENT_PERCENT=Decimal("10"))

        schedule = build_payment_schedule(
            "2000", CreditApplication(), date(2026, 1, 1), currency="EUR", config=config,
        )

        assert [line.amount for line in schedule] == [Decimal("200.00"), Decimal("1800.00")]
        assert schedule[1].due_date == date(2026, 2, 15)
        assert {line.currency for line in schedule} == {"EUR"}
