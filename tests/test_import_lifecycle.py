"""Tests for the shipment status table and pipeline navigation."""

from datetime import date

import pytest
from pydantic import ValidationError

from spark_comex.models.enums import ImportStatus, StatusColor
from spark_comex.services import import_lifecycle as lifecycle


class TestStatusGroups:
    """Tests for the active / final / transport partition."""

    @pytest.mark.parametrize("status", list(ImportStatus))
    def test_every_status_is_active_xor_final(self, status: ImportStatus) -> None:
        assert lifecycle.is_active(status) != lifecycle.is_final(status)

    @pytest.mark.parametrize("status", list(ImportStatus))
    def test_transport_implies_active(self, status: ImportStatus) -> None:
        if lifecycle.is_transport(status):
            assert lifecycle.is_active(status)

    def test_group_sizes(self) -> None:
        assert len(lifecycle.ACTIVE_STATUSES) == 7
        assert lifecycle.FINAL_STATUSES == {ImportStatus.COMPLETED, ImportStatus.CANCELLED}
        assert lifecycle.TRANSPORT_STATUSES == {
            ImportStatus.MARITIME_TRANSPORT,
            ImportStatus.AIR_TRANSPORT,
            ImportStatus.NATIONAL_TRANSPORT,
        }

    def test_plain_strings_classify_like_enum_members(self) -> None:
        assert lifecycle.is_active("customs_clearance")
        assert lifecycle.is_final("cancelled")
        assert lifecycle.is_transport("air_transport")

    def test_unknown_status_belongs_to_no_group(self) -> None:
        assert not lifecycle.is_active("on_hold")
        assert not lifecycle.is_final("on_hold")
        assert not lifecycle.is_transport("on_hold")
        assert not lifecycle.is_active(None)

    def test_is_valid_status(self) -> None:
        assert lifecycle.is_valid_status("planning")
        assert not lifecycle.is_valid_status("shipped")
        assert not lifecycle.is_valid_status(None)


class TestLabelsAndColors:
    """Tests for display metadata and fallbacks."""

    def test_every_status_has_label_and_color(self) -> None:
        for status in ImportStatus:
            assert lifecycle.label_of(status)
            assert lifecycle.color_of(status) != StatusColor.GRAY

    def test_known_labels(self) -> None:
        assert lifecycle.label_of("customs_clearance") == "Desembaraço"
        assert lifecycle.label_of(ImportStatus.AIR_TRANSPORT) == "Transporte Aéreo"
        assert lifecycle.color_of("completed") == StatusColor.GREEN
        assert lifecycle.color_of("cancelled") == StatusColor.RED

    @pytest.mark.parametrize("unknown", ["legacy_status", "", "PLANNING"])
    def test_unknown_status_passes_through(self, unknown: str) -> None:
        assert lifecycle.label_of(unknown) == unknown
        assert lifecycle.color_of(unknown) == StatusColor.GRAY

    def test_missing_status(self) -> None:
        assert lifecycle.label_of(None) == ""
        assert lifecycle.color_of(None) == StatusColor.GRAY


class TestTransportSelection:
    """Tests for transport_status_for and labels_for."""

    @pytest.mark.parametrize(
        ("method", "expected"),
        [
            ("air", ImportStatus.AIR_TRANSPORT),
            ("sea", ImportStatus.MARITIME_TRANSPORT),
            ("", ImportStatus.MARITIME_TRANSPORT),
            (None, ImportStatus.MARITIME_TRANSPORT),
            ("truck", ImportStatus.MARITIME_TRANSPORT),
            ("AIR", ImportStatus.MARITIME_TRANSPORT),
        ],
    )
    def test_transport_status_for(self, method: str, expected: ImportStatus) -> None:
        assert lifecycle.transport_status_for(method) == expected

    @pytest.mark.parametrize("method", ["air", "sea", "", None, "rail"])
    def test_labels_for_has_one_international_leg(self, method: str) -> None:
        labels = lifecycle.labels_for(method)

        assert len(labels) == 8
        legs = {ImportStatus.MARITIME_TRANSPORT, ImportStatus.AIR_TRANSPORT} & set(labels)
        assert legs == {lifecycle.transport_status_for(method)}

    def test_labels_for_air(self) -> None:
        labels = lifecycle.labels_for("air")

        assert labels[ImportStatus.AIR_TRANSPORT] == "Transporte Aéreo"
        assert ImportStatus.MARITIME_TRANSPORT not in labels

    def test_labels_for_keeps_pipeline_order(self) -> None:
        assert list(lifecycle.labels_for("sea"))[:4] == [
            ImportStatus.PLANNING,
            ImportStatus.PRODUCTION,
            ImportStatus.DELIVERED_TO_AGENT,
            ImportStatus.MARITIME_TRANSPORT,
        ]


class TestPipelineStages:
    """Tests for stage metadata and informational navigation."""

    def test_stage_table(self) -> None:
        assert len(lifecycle.PIPELINE_STAGES) == 8
        assert lifecycle.stage_for("production").estimated_days == 15
        assert lifecycle.stage_for("cancelled") is None
        assert lifecycle.stage_for("unknown") is None

    def test_stages_are_immutable(self) -> None:
        with pytest.raises(ValidationError):
            lifecycle.PIPELINE_STAGES[0].order = 99  # type: ignore[misc]

    def test_stages_for_picks_one_leg(self) -> None:
        statuses = [stage.status for stage in lifecycle.stages_for("air")]

        assert len(statuses) == 7
        assert ImportStatus.AIR_TRANSPORT in statuses
        assert ImportStatus.MARITIME_TRANSPORT not in statuses

    def test_next_stage(self) -> None:
        assert lifecycle.next_stage("planning").status == ImportStatus.PRODUCTION
        assert lifecycle.next_stage("delivered_to_agent", "air").status == ImportStatus.AIR_TRANSPORT
        assert lifecycle.next_stage("delivered_to_agent", "sea").status == ImportStatus.MARITIME_TRANSPORT
        assert lifecycle.next_stage("national_transport").status == ImportStatus.COMPLETED

    def test_next_stage_of_unknown_is_first_stage(self) -> None:
        assert lifecycle.next_stage("on_hold").status == ImportStatus.PLANNING

    @pytest.mark.parametrize("status", ["completed", "cancelled"])
    def test_final_status_has_no_next_stage(self, status: str) -> None:
        assert lifecycle.next_stage(status) is None

    def test_previous_stage(self) -> None:
        assert lifecycle.previous_stage("planning") is None
        assert lifecycle.previous_stage("customs_clearance", "air").status == ImportStatus.AIR_TRANSPORT
        assert lifecycle.previous_stage("on_hold") is None

    def test_leg_resolves_after_method_change(self) -> None:
        # Shipment switched to sea after reaching the air leg.
        assert lifecycle.next_stage("air_transport", "sea").status == ImportStatus.CUSTOMS_CLEARANCE

    def test_overall_progress(self) -> None:
        assert lifecycle.overall_progress("planning", "sea") == 14
        assert lifecycle.overall_progress("maritime_transport", "sea") == 57
        assert lifecycle.overall_progress("completed", "air") == 100
        assert lifecycle.overall_progress("cancelled") == 0
        assert lifecycle.overall_progress("on_hold") == 0

    def test_estimated_delivery(self) -> None:
        start = date(2026, 1, 1)

        assert lifecycle.estimated_delivery(start, "sea") == date(2026, 3, 2)
        assert lifecycle.estimated_delivery(start, "air") == date(2026, 2, 5)
        assert lifecycle.estimated_delivery(start) == lifecycle.estimated_delivery(start, "sea")
