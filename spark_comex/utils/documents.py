"""
Brazilian Document and Currency Formatting.

CNPJ (company registry, 14 digits) carries two trailing check digits
computed modulo 11.  The validator accepts formatted or bare input;
anything other than digits is ignored.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Optional

from spark_comex.utils.numbers import NumericInput, to_decimal

__all__ = [
    "format_cnpj",
    "format_usd",
    "only_digits",
    "validate_cnpj",
]

_NON_DIGIT = re.compile(r"\D")

_CNPJ_FIRST_WEIGHTS: tuple[int, ...] = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_CNPJ_SECOND_WEIGHTS: tuple[int, ...] = (6,) + _CNPJ_FIRST_WEIGHTS


def only_digits(value: Optional[str]) -> str:
    return _NON_DIGIT.sub("", value or "")


def _check_digit(digits: str, weights: tuple[int, ...]) -> int:
    remainder = sum(int(d) * w for d, w in zip(digits, weights)) % 11
    return 0 if remainder < 2 else 11 - remainder


def _all_same(digits: str) -> bool:
    return len(set(digits)) == 1


# ---------------------------------------------------------------------------
# CNPJ
# ---------------------------------------------------------------------------

def format_cnpj(value: Optional[str]) -> str:
    """Progressively format to ``XX.XXX.XXX/XXXX-XX``.

    Partial input is formatted as far as it goes, so the function can be
    applied on every keystroke.  Extra digits are dropped.
    """
    digits = only_digits(value)[:14]
    parts = [digits[:2], digits[2:5], digits[5:8], digits[8:12], digits[12:14]]
    formatted = parts[0]
    for separator, part in zip((".", ".", "/", "-"), parts[1:]):
        if not part:
            break
        formatted += separator + part
    return formatted


def validate_cnpj(value: Optional[str]) -> bool:
    digits = only_digits(value)
    if len(digits) != 14 or _all_same(digits):
        return False
    if int(digits[12]) != _check_digit(digits[:12], _CNPJ_FIRST_WEIGHTS):
        return False
    return int(digits[13]) == _check_digit(digits[:13], _CNPJ_SECOND_WEIGHTS)


# ---------------------------------------------------------------------------
# Currency
# ---------------------------------------------------------------------------

def format_usd(value: NumericInput) -> str:
    """``US$ 10,000`` style; cents are shown only when present.

    >>> format_usd("10000")
    'US$ 10,000'
    >>> format_usd(Decimal("1234.5"))
    'US$ 1,234.5'
    """
    amount: Decimal = to_decimal(value)
    if amount == amount.to_integral_value():
        return f"US$ {int(amount):,}"
    return f"US$ {amount.normalize():,}"
