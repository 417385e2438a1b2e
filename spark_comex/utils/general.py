"""General Utility Functions."""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Union

from pydantic import BaseModel

__all__ = ["JsonSafeType", "convert_to_json_safe"]

JsonSafeType = Union[None, str, int, bool, float, dict[str, "JsonSafeType"], list["JsonSafeType"]]
"""Values ``json.dumps`` accepts without a ``default`` hook."""


def _finite_or_none(value: float) -> Union[float, None]:
    return None if math.isnan(value) or math.isinf(value) else value


def convert_to_json_safe(data: object) -> JsonSafeType:
    """Recursively convert dashboard payloads to JSON-safe values.

    - ``Enum`` members become their value (``ImportStatus.PLANNING`` ->
      ``"planning"``).
    - ``Decimal`` amounts become ``float``; NaN and infinities become
      ``None``, as do non-finite floats.
    - ``datetime`` / ``date`` become ISO-8601 strings.
    - Pydantic models are dumped with their snake_case field names.
    - Mappings, lists and tuples are converted item by item; mapping keys
      are stringified.

    Anything else (``UUID``, ``Path``, ...) is stringified.
    """
    # Enum first: StrEnum members are also str.
    if isinstance(data, Enum):
        return convert_to_json_safe(data.value)
    if data is None or isinstance(data, (str, bool, int)):
        return data
    if isinstance(data, float):
        return _finite_or_none(data)
    if isinstance(data, Decimal):
        return None if not data.is_finite() else float(data)
    # datetime before date: datetime is a date subclass.
    if isinstance(data, (datetime, date)):
        return data.isoformat()
    if isinstance(data, BaseModel):
        return convert_to_json_safe(data.model_dump())
    if isinstance(data, Mapping):
        return {str(key): convert_to_json_safe(value) for key, value in data.items()}
    if isinstance(data, (list, tuple, set, frozenset)):
        return [convert_to_json_safe(item) for item in data]
    return str(data)
