"""
Import Lifecycle Model.

Single authoritative table of shipment statuses: display label, color
token, group membership (active / final / transport) and pipeline stage
metadata.  Every lookup is tolerant: unknown or legacy status strings
pass through with a neutral rendering instead of raising.

This is a classification table, not a state machine.  Nothing here
validates transitions; ``next_stage`` / ``previous_stage`` are
informational navigation for progress displays only.

Usage::

    from spark_comex.services.import_lifecycle import label_of, is_active

    label_of("customs_clearance")   # "Desembaraço"
    label_of("legacy_status")       # "legacy_status"
    is_active("completed")          # False
"""

from __future__ import annotations

from datetime import date, timedelta
from types import MappingProxyType
from typing import Mapping, Optional

from spark_comex.models.enums import ImportStatus, ShippingMethod, StatusColor
from spark_comex.models.service_models import PipelineStage

__all__ = [
    "ACTIVE_STATUSES",
    "FINAL_STATUSES",
    "PIPELINE_STAGES",
    "STATUS_COLORS",
    "STATUS_LABELS",
    "TRANSPORT_STATUSES",
    "color_of",
    "estimated_delivery",
    "is_active",
    "is_final",
    "is_transport",
    "is_valid_status",
    "label_of",
    "labels_for",
    "next_stage",
    "overall_progress",
    "previous_stage",
    "stage_for",
    "stages_for",
    "transport_status_for",
]


# ---------------------------------------------------------------------------
# Status table
# ---------------------------------------------------------------------------

STATUS_LABELS: Mapping[ImportStatus, str] = MappingProxyType({
    ImportStatus.PLANNING: "Planejamento",
    ImportStatus.PRODUCTION: "Produção",
    ImportStatus.DELIVERED_TO_AGENT: "Entregue ao Agente",
    ImportStatus.MARITIME_TRANSPORT: "Transporte Marítimo",
    ImportStatus.AIR_TRANSPORT: "Transporte Aéreo",
    ImportStatus.CUSTOMS_CLEARANCE: "Desembaraço",
    ImportStatus.NATIONAL_TRANSPORT: "Transporte Nacional",
    ImportStatus.COMPLETED: "Concluído",
    ImportStatus.CANCELLED: "Cancelado",
})

STATUS_COLORS: Mapping[ImportStatus, StatusColor] = MappingProxyType({
    ImportStatus.PLANNING: StatusColor.BLUE,
    ImportStatus.PRODUCTION: StatusColor.ORANGE,
    ImportStatus.DELIVERED_TO_AGENT: StatusColor.PURPLE,
    ImportStatus.MARITIME_TRANSPORT: StatusColor.CYAN,
    ImportStatus.AIR_TRANSPORT: StatusColor.SKY,
    ImportStatus.CUSTOMS_CLEARANCE: StatusColor.YELLOW,
    ImportStatus.NATIONAL_TRANSPORT: StatusColor.INDIGO,
    ImportStatus.COMPLETED: StatusColor.GREEN,
    ImportStatus.CANCELLED: StatusColor.RED,
})

FINAL_STATUSES: frozenset[ImportStatus] = frozenset({
    ImportStatus.COMPLETED,
    ImportStatus.CANCELLED,
})

ACTIVE_STATUSES: frozenset[ImportStatus] = frozenset(
    status for status in ImportStatus if status not in FINAL_STATUSES
)

TRANSPORT_STATUSES: frozenset[ImportStatus] = frozenset({
    ImportStatus.MARITIME_TRANSPORT,
    ImportStatus.AIR_TRANSPORT,
    ImportStatus.NATIONAL_TRANSPORT,
})

_INTERNATIONAL_LEGS: frozenset[ImportStatus] = frozenset({
    ImportStatus.MARITIME_TRANSPORT,
    ImportStatus.AIR_TRANSPORT,
})


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def is_valid_status(status: Optional[str]) -> bool:
    """True when *status* is one of the canonical ``ImportStatus`` values."""
    return status in STATUS_LABELS


def label_of(status: Optional[str]) -> str:
    """Return the display label, or the raw status when it is unknown."""
    if status is None:
        return ""
    return STATUS_LABELS.get(status, status)


def color_of(status: Optional[str]) -> StatusColor:
    """Return the badge color token; unknown statuses render gray."""
    return STATUS_COLORS.get(status, StatusColor.GRAY)


def is_active(status: Optional[str]) -> bool:
    return status in ACTIVE_STATUSES


def is_final(status: Optional[str]) -> bool:
    return status in FINAL_STATUSES


def is_transport(status: Optional[str]) -> bool:
    return status in TRANSPORT_STATUSES


def transport_status_for(shipping_method: Optional[str]) -> ImportStatus:
    """Pick the international transport stage for a shipment.

    Only ``"air"`` selects air freight.  ``"sea"``, an empty or missing
    method and any unrecognised value all default to maritime transport.
    """
    if shipping_method == ShippingMethod.AIR:
        return ImportStatus.AIR_TRANSPORT
    return ImportStatus.MARITIME_TRANSPORT


def labels_for(shipping_method: Optional[str]) -> dict[ImportStatus, str]:
    """Ordered status -> label mapping for one shipment.

    Exactly one international transport stage is present, chosen with
    ``transport_status_for``; the other one is omitted.
    """
    transport = transport_status_for(shipping_method)
    return {
        status: label
        for status, label in STATUS_LABELS.items()
        if status not in _INTERNATIONAL_LEGS or status == transport
    }


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------

# Both international legs share order 4; a shipment only ever uses one.
PIPELINE_STAGES: tuple[PipelineStage, ...] = (
    PipelineStage(
        status=ImportStatus.PLANNING,
        label=STATUS_LABELS[ImportStatus.PLANNING],
        description="Definição da importação e documentação inicial",
        order=1,
        estimated_days=3,
    ),
    PipelineStage(
        status=ImportStatus.PRODUCTION,
        label=STATUS_LABELS[ImportStatus.PRODUCTION],
        description="Fabricação dos produtos pelo fornecedor",
        order=2,
        estimated_days=15,
    ),
    PipelineStage(
        status=ImportStatus.DELIVERED_TO_AGENT,
        label=STATUS_LABELS[ImportStatus.DELIVERED_TO_AGENT],
        description="Produtos entregues ao agente de carga na origem",
        order=3,
        estimated_days=2,
    ),
    PipelineStage(
        status=ImportStatus.MARITIME_TRANSPORT,
        label=STATUS_LABELS[ImportStatus.MARITIME_TRANSPORT],
        description="Envio por navio para o Brasil",
        order=4,
        estimated_days=30,
    ),
    PipelineStage(
        status=ImportStatus.AIR_TRANSPORT,
        label=STATUS_LABELS[ImportStatus.AIR_TRANSPORT],
        description="Envio por avião para o Brasil",
        order=4,
        estimated_days=5,
    ),
    PipelineStage(
        status=ImportStatus.CUSTOMS_CLEARANCE,
        label=STATUS_LABELS[ImportStatus.CUSTOMS_CLEARANCE],
        description="Liberação alfandegária no Brasil",
        order=5,
        estimated_days=7,
    ),
    PipelineStage(
        status=ImportStatus.NATIONAL_TRANSPORT,
        label=STATUS_LABELS[ImportStatus.NATIONAL_TRANSPORT],
        description="Entrega do porto/aeroporto ao destino final",
        order=6,
        estimated_days=3,
    ),
    PipelineStage(
        status=ImportStatus.COMPLETED,
        label=STATUS_LABELS[ImportStatus.COMPLETED],
        description="Importação finalizada e entregue",
        order=7,
        estimated_days=0,
    ),
)

_STAGES_BY_STATUS: Mapping[str, PipelineStage] = MappingProxyType(
    {stage.status: stage for stage in PIPELINE_STAGES}
)


def stages_for(shipping_method: Optional[str]) -> list[PipelineStage]:
    """Stage list for one shipment, with a single international leg."""
    transport = transport_status_for(shipping_method)
    return [
        stage for stage in PIPELINE_STAGES
        if stage.status not in _INTERNATIONAL_LEGS or stage.status == transport
    ]


def stage_for(status: Optional[str]) -> Optional[PipelineStage]:
    """Stage metadata for *status*; ``None`` for cancelled or unknown."""
    return _STAGES_BY_STATUS.get(status)


def _position(status: Optional[str], stages: list[PipelineStage]) -> Optional[int]:
    # Matching on order lets an air status resolve inside a sea pipeline
    # (and vice versa) when the shipping method was edited afterwards.
    stage = stage_for(status)
    if stage is None:
        return None
    for index, candidate in enumerate(stages):
        if candidate.order == stage.order:
            return index
    return None


def next_stage(
    status: Optional[str],
    shipping_method: Optional[str] = None,
) -> Optional[PipelineStage]:
    """The stage after *status* for this shipment.

    Unknown statuses point at the first stage.  Terminal statuses
    (completed, cancelled) have no next stage.
    """
    if is_final(status):
        return None
    stages = stages_for(shipping_method)
    index = _position(status, stages)
    if index is None:
        return stages[0]
    if index + 1 >= len(stages):
        return None
    return stages[index + 1]


def previous_stage(
    status: Optional[str],
    shipping_method: Optional[str] = None,
) -> Optional[PipelineStage]:
    """The stage before *status*; ``None`` at the first stage or when unknown."""
    stages = stages_for(shipping_method)
    index = _position(status, stages)
    if index is None or index == 0:
        return None
    return stages[index - 1]


def overall_progress(
    status: Optional[str],
    shipping_method: Optional[str] = None,
) -> int:
    """Percentage (0-100) of the shipment's stages reached.

    Cancelled and unknown statuses report 0.
    """
    stages = stages_for(shipping_method)
    index = _position(status, stages)
    if index is None:
        return 0
    return round((index + 1) / len(stages) * 100)


def estimated_delivery(start: date, shipping_method: Optional[str] = None) -> date:
    """Start date plus the estimated duration of every stage."""
    total_days = sum(stage.estimated_days for stage in stages_for(shipping_method))
    return start + timedelta(days=total_days)
