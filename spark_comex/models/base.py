"""
Shared Pydantic configuration for persisted records.

Both stores use snake_case columns (``credit_application_id``), while
REST payloads and legacy JSON exports use camelCase
(``creditApplicationId``).  Every record model accepts both and dumps
camelCase with ``by_alias=True``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from spark_comex.utils.numbers import parse_decimal

__all__ = ["RecordModel", "lenient_decimal"]


class RecordModel(BaseModel):
    """Base class for persisted entities."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


def lenient_decimal(value: object) -> Optional[Decimal]:
    """``mode="before"`` validator body for amount fields.

    Malformed amounts become ``None`` instead of raising so a single bad
    row never rejects a whole page of results.
    """
    return parse_decimal(value)  # type: ignore[arg-type]
