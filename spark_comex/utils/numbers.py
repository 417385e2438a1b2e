"""
Lenient Numeric Parsing.

Amounts arrive from the hosted database, the local SQLite cache and legacy
JSON exports as ``numeric`` strings, floats, ints or ``None``.  A single bad
record must never fail an aggregate, so parsing here never raises.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

__all__: list[str] = ["ZERO", "parse_decimal", "to_decimal"]

ZERO: Decimal = Decimal("0")

NumericInput = Union[Decimal, int, float, str, None]


def parse_decimal(value: NumericInput) -> Optional[Decimal]:
    """Convert *value* to a finite ``Decimal``, or ``None`` when absent.

    ``None``, blank strings, booleans, non-numeric strings and NaN/Inf all
    count as absent.  Thousands separators are not interpreted; stored
    amounts use a plain ``.`` decimal point.

    Examples::

        parse_decimal("1500.50")  -> Decimal("1500.50")
        parse_decimal(250)        -> Decimal("250")
        parse_decimal("")         -> None
        parse_decimal("n/a")      -> None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            result = Decimal(text)
        except (InvalidOperation, ValueError, TypeError):
            return None

    if result.is_nan() or result.is_infinite():
        return None
    return result


def to_decimal(*candidates: NumericInput) -> Decimal:
    """Return the first present candidate as a ``Decimal``, else ``0``.

    Mirrors the ``final or original or 0`` fallback chain used for credit
    limits::

        to_decimal(app.final_credit_limit, app.credit_limit)
    """
    for candidate in candidates:
        parsed = parse_decimal(candidate)
        if parsed is not None:
            return parsed
    return ZERO
