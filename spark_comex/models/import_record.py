"""
Import Model.

An import is a single shipment tracked through the logistics pipeline.
``status`` is kept as a plain string so unknown values load and render
unchanged; legacy Portuguese spellings are mapped to the canonical
statuses on load.  Classification lives in
``spark_comex.services.import_lifecycle``.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import field_validator

from spark_comex.models.base import RecordModel, lenient_decimal
from spark_comex.models.enums import ImportStatus, ShippingMethod

# Portuguese spellings written by earlier releases, and the short
# ``delivered_agent`` form.
_LEGACY_IMPORT_STATUS: dict[str, str] = {
    "planejamento": ImportStatus.PLANNING,
    "producao": ImportStatus.PRODUCTION,
    "entregue_agente": ImportStatus.DELIVERED_TO_AGENT,
    "delivered_agent": ImportStatus.DELIVERED_TO_AGENT,
    "transporte_maritimo": ImportStatus.MARITIME_TRANSPORT,
    "transporte_aereo": ImportStatus.AIR_TRANSPORT,
    "desembaraco": ImportStatus.CUSTOMS_CLEARANCE,
    "transporte_nacional": ImportStatus.NATIONAL_TRANSPORT,
    "concluido": ImportStatus.COMPLETED,
    "cancelado": ImportStatus.CANCELLED,
}


class Import(RecordModel):
    """Represents a shipment owned by an importer."""

    id: Optional[int] = None
    user_id: Optional[int] = None
    credit_application_id: Optional[int] = None
    import_name: str = ""
    total_value: Optional[Decimal] = None
    currency: str = "USD"
    status: str = ImportStatus.PLANNING
    shipping_method: Optional[str] = ShippingMethod.SEA
    estimated_delivery: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("total_value", mode="before")
    @classmethod
    def parse_total_value(cls: type[Import], v: object) -> Optional[Decimal]:
        return lenient_decimal(v)

    @field_validator("credit_application_id", mode="before")
    @classmethod
    def blank_link_is_none(cls: type[Import], v: object) -> object:
        return None if v == "" else v

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls: type[Import], v: object) -> str:
        if v is None:
            return ImportStatus.PLANNING
        text = str(v)
        return _LEGACY_IMPORT_STATUS.get(text, text)
