"""Shared utility functions and models for Spark Comex.

Convenience re-exports so consumers can import directly from
``spark_comex.utils`` (e.g. ``from spark_comex.utils import parse_decimal``)
while full absolute imports remain supported.
"""

from spark_comex.utils.audit import AuditEvent, log_audit_event
from spark_comex.utils.documents import (
    format_cnpj,
    format_usd,
    validate_cnpj,
)
from spark_comex.utils.general import convert_to_json_safe
from spark_comex.utils.numbers import parse_decimal, to_decimal

__all__ = [
    "AuditEvent",
    "convert_to_json_safe",
    "format_cnpj",
    "format_usd",
    "log_audit_event",
    "parse_decimal",
    "to_decimal",
    "validate_cnpj",
]
