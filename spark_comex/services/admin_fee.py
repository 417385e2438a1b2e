"""
Admin Fee Calculator.

An importer pays a down payment up front and the remainder of the
import value is financed.  The admin fee is charged on the financed
portion only.  The financed portion is repaid in equal installments, one
per payment term of the credit line ("30,60,90" means three installments
due 30, 60 and 90 days out).

All percentages are expressed as whole numbers (``30`` means 30%).
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from spark_comex.config import AppConfig
from spark_comex.models.credit_application import CreditApplication
from spark_comex.models.service_models import AdminFeeCalculation, PaymentInstallment
from spark_comex.utils.numbers import ZERO, NumericInput, parse_decimal, to_decimal

_HUNDRED = Decimal("100")
_CENT = Decimal("0.01")


def calculate_admin_fee(
    import_value: NumericInput,
    down_payment_percent: NumericInput,
    admin_fee_percent: NumericInput,
) -> AdminFeeCalculation:
    """
    Break down the cost of financing an import.

    Example: a 10,000 import with 30% down and a 10% fee finances 7,000
    and pays a 700 fee, 10,700 in total.
    """
    value = to_decimal(import_value)
    down_pct = to_decimal(down_payment_percent)
    fee_pct = to_decimal(admin_fee_percent)

    down_payment_amount = value * down_pct / _HUNDRED
    financed_amount = value - down_payment_amount
    admin_fee_amount = financed_amount * fee_pct / _HUNDRED

    return AdminFeeCalculation(
        import_value=value,
        down_payment_percent=down_pct,
        down_payment_amount=down_payment_amount,
        financed_amount=financed_amount,
        admin_fee_percent=fee_pct,
        admin_fee_amount=admin_fee_amount,
        total_with_fee=value + admin_fee_amount,
    )


def admin_fee_from_credit(application: Optional[CreditApplication]) -> Decimal:
    """Admin fee percent set at finalization; 0 when not configured."""
    if application is None:
        return ZERO
    return to_decimal(application.admin_fee)


def down_payment_from_credit(
    application: Optional[CreditApplication],
    config: Optional[AppConfig] = None,
) -> Decimal:
    """Down payment percent set at finalization, else the configured default."""
    default = (
        config.DEFAULT_DOWN_PAYMENT_PERCENT if config is not None else Decimal("30")
    )
    if application is None:
        return default
    down_payment = parse_decimal(application.final_down_payment)
    if down_payment is None:
        return default
    return down_payment


def parse_payment_terms(terms: Optional[str]) -> list[int]:
    """Day offsets from a terms string; blank or non-positive entries are dropped.

    >>> parse_payment_terms("30, 60,90")
    [30, 60, 90]
    """
    days: list[int] = []
    for part in (terms or "").split(","):
        part = part.strip()
        if part.isdigit() and int(part) > 0:
            days.append(int(part))
    return days


def build_payment_schedule(
    import_value: NumericInput,
    application: CreditApplication,
    start_date: date,
    currency: str = "USD",
    config: Optional[AppConfig] = None,
) -> list[PaymentInstallment]:
    """
    Down payment due on *start_date*, then one installment per payment term.

    Terms come from the finalized credit line, falling back to the
    financeira terms and then to the configured default.  Amounts are
    rounded to cents and the last installment absorbs the rounding, so the
    schedule always adds up to the import value.
    """
    value = to_decimal(import_value).quantize(_CENT, rounding=ROUND_HALF_UP)
    down_pct = down_payment_from_credit(application, config)
    down_payment = (value * down_pct / _HUNDRED).quantize(_CENT, rounding=ROUND_HALF_UP)

    days = parse_payment_terms(application.final_approved_terms) or parse_payment_terms(
        application.approved_terms
    )
    if not days:
        days = [config.DEFAULT_APPROVED_TERMS if config is not None else 30]

    schedule = [
        PaymentInstallment(
            payment_type="down_payment",
            amount=down_payment,
            currency=currency,
            due_date=start_date,
        )
    ]

    financed = value - down_payment
    share = (financed / len(days)).quantize(_CENT, rounding=ROUND_HALF_UP)
    for number, offset in enumerate(days, start=1):
        amount = share if number < len(days) else financed - share * (len(days) - 1)
        schedule.append(PaymentInstallment(
            payment_type="installment",
            amount=amount,
            currency=currency,
            due_date=start_date + timedelta(days=offset),
            installment_number=number,
            total_installments=len(days),
        ))
    return schedule
