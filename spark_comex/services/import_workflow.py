"""
Import Workflow Service.

Creates shipments, previews their financing against the linked credit
line, builds their payment schedule and moves them through the logistics
pipeline.

Status changes are permissive: any status may be set from
any other, in any order.  Unknown statuses are stored as given and only
logged as a warning, so legacy clients keep working.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Union

from spark_comex.config import AppConfig
from spark_comex.database import DatabaseManager
from spark_comex.logger import StructuredLogger
from spark_comex.models.credit_application import CreditApplication
from spark_comex.models.enums import ImportStatus, ShippingMethod, UserRole
from spark_comex.models.import_record import Import
from spark_comex.models.service_models import (
    AdminFeeCalculation,
    PaymentInstallment,
    ServiceResult,
)
from spark_comex.models.user import User
from spark_comex.repositories.credit_application_repository import (
    CreditApplicationRepository,
)
from spark_comex.repositories.import_repository import ImportRepository
from spark_comex.services.admin_fee import (
    admin_fee_from_credit,
    build_payment_schedule,
    calculate_admin_fee,
    down_payment_from_credit,
)
from spark_comex.services.base_service import BaseService
from spark_comex.services.import_lifecycle import (
    estimated_delivery,
    is_valid_status,
    label_of,
    transport_status_for,
)
from spark_comex.utils.audit import log_audit_event
from spark_comex.utils.documents import format_usd
from spark_comex.utils.numbers import parse_decimal
from spark_comex.utils.roles import can_view_all_credit, has_admin_access


class ImportWorkflowService(BaseService):
    """
    Service handling shipment creation and status changes.

    Dependencies are injected via __init__.
    """

    def __init__(
        self,
        import_repo: ImportRepository,
        credit_repo: CreditApplicationRepository,
        db: DatabaseManager,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._import_repo = import_repo
        self._credit_repo = credit_repo
        self._db = db
        self._config = config

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _load_editable(
        self,
        import_id: int,
        current_user: User,
    ) -> Union[Import, ServiceResult]:
        """Shipment owners and admins may change a shipment."""
        if self._is_inactive(current_user):
            return self._fail("Inactive users cannot change imports.", 403)

        record = self._import_repo.get_by_id(import_id)
        if record is None:
            return self._fail("Import not found.", 404)

        if record.user_id != current_user.id and not has_admin_access(current_user.role):
            return self._fail("You can only change your own imports.", 403)
        return record

    def _load_own_application(
        self,
        credit_application_id: int,
        current_user: User,
    ) -> Union[CreditApplication, ServiceResult]:
        application = self._credit_repo.get_by_id(credit_application_id)
        if application is None:
            return self._fail("Credit application not found.", 404)
        if application.user_id != current_user.id:
            return self._fail(
                "Imports can only be linked to your own credit applications.", 403,
            )
        return application

    def _financing(self, value: Decimal, application: CreditApplication) -> AdminFeeCalculation:
        return calculate_admin_fee(
            value,
            down_payment_from_credit(application, self._config),
            admin_fee_from_credit(application),
        )

    def _change_status(
        self,
        record: Import,
        new_status: str,
        current_user: User,
    ) -> ServiceResult[Import]:
        if record.id is None:
            return self._fail("Import has no id; it was never stored.", 400)
        updated = self._import_repo.update_fields(
            record.id,
            {"status": new_status, "updated_at": datetime.now(timezone.utc)},
        )
        if updated is None:
            return self._fail("Import not found.", 404)

        log_audit_event(
            logger=self._logger,
            action="STATUS_CHANGE",
            entity_type="Import",
            entity_id=record.id,
            user_id=current_user.id,
            details={
                "from": record.status,
                "to": new_status,
                "label": label_of(new_status),
            },
            conn=self._db.sqlite,
        )
        return ServiceResult(success=True, data=updated)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_import(
        self,
        current_user: User,
        import_name: str,
        total_value: Union[Decimal, int, float, str],
        shipping_method: Optional[str] = ShippingMethod.SEA,
        credit_application_id: Optional[int] = None,
        currency: str = "USD",
        start_date: Optional[date] = None,
    ) -> ServiceResult[Import]:
        """
        Create a shipment in ``planning``.

        Args:
            current_user: The importer creating the shipment.
            import_name: Display name.
            total_value: Shipment value; must be a positive amount.
            shipping_method: ``"air"`` or ``"sea"``.
            credit_application_id: Optional credit line financing the
                shipment; it must belong to *current_user*.
            currency: ISO currency code.
            start_date: Base date for the delivery estimate (today when
                omitted).

        Returns:
            ServiceResult with the created import.
        """
        if current_user.role != UserRole.IMPORTER:
            return self._fail("Only importers can create imports.", 403)

        value = parse_decimal(total_value)
        if value is None or value <= 0:
            return self._fail("A positive total value is required.", 400)
        if not import_name or not import_name.strip():
            return self._fail("An import name is required.", 400)

        try:
            financing: Optional[AdminFeeCalculation] = None
            if credit_application_id is not None:
                loaded = self._load_own_application(credit_application_id, current_user)
                if isinstance(loaded, ServiceResult):
                    return loaded
                financing = self._financing(value, loaded)

            now = datetime.now(timezone.utc)
            record = Import(
                user_id=current_user.id,
                credit_application_id=credit_application_id,
                import_name=import_name.strip(),
                total_value=value,
                currency=currency,
                status=ImportStatus.PLANNING,
                shipping_method=shipping_method,
                estimated_delivery=estimated_delivery(
                    start_date or now.date(), shipping_method,
                ),
                created_at=now,
                updated_at=now,
            )
            created = self._import_repo.create(record)

            details: dict[str, Union[str, int, None]] = {
                "total_value": str(value),
                "credit_application_id": credit_application_id,
            }
            if financing is not None:
                details["down_payment_amount"] = str(financing.down_payment_amount)
                details["admin_fee_amount"] = str(financing.admin_fee_amount)
                self._logger.info(
                    "Import %s financed: %s down payment, %s admin fee",
                    created.id,
                    format_usd(financing.down_payment_amount),
                    format_usd(financing.admin_fee_amount),
                )

            log_audit_event(
                logger=self._logger,
                action="CREATE",
                entity_type="Import",
                entity_id=created.id if created.id is not None else "",
                user_id=current_user.id,
                details=details,
                conn=self._db.sqlite,
            )
            return ServiceResult(success=True, data=created, status_code=201)
        except Exception as exc:
            return self._unexpected("create import", exc)

    def update_status(
        self,
        import_id: int,
        new_status: str,
        current_user: User,
    ) -> ServiceResult[Import]:
        """
        Set a shipment's status.

        No ordering is enforced and unknown statuses are accepted with a
        warning.

        Returns:
            ServiceResult with the updated import.
        """
        try:
            loaded = self._load_editable(import_id, current_user)
            if isinstance(loaded, ServiceResult):
                return loaded

            if not is_valid_status(new_status):
                self._logger.bind(import_id=import_id, user_id=current_user.id).warning(
                    "Import %s set to unrecognized status '%s'",
                    import_id,
                    new_status,
                )
            return self._change_status(loaded, new_status, current_user)
        except Exception as exc:
            return self._unexpected(f"update status of import {import_id}", exc)

    def start_transport(self, import_id: int, current_user: User) -> ServiceResult[Import]:
        """
        Move a shipment into its international transport stage.

        ``air`` shipments go to air transport; every other shipping method
        goes to maritime transport.
        """
        try:
            loaded = self._load_editable(import_id, current_user)
            if isinstance(loaded, ServiceResult):
                return loaded

            return self._change_status(
                loaded, transport_status_for(loaded.shipping_method), current_user,
            )
        except Exception as exc:
            return self._unexpected(f"start transport of import {import_id}", exc)

    def preview_financing(
        self,
        current_user: User,
        credit_application_id: int,
        total_value: Union[Decimal, int, float, str],
    ) -> ServiceResult[AdminFeeCalculation]:
        """
        Down payment, financed amount and admin fee for a prospective import.

        Uses the down payment and admin fee fixed when the credit line was
        finalized (configured defaults until then).  Importers may only
        preview against their own credit applications.
        """
        if current_user.role != UserRole.IMPORTER:
            return self._fail("Only importers can preview import financing.", 403)

        value = parse_decimal(total_value)
        if value is None or value <= 0:
            return self._fail("A positive total value is required.", 400)

        try:
            loaded = self._load_own_application(credit_application_id, current_user)
            if isinstance(loaded, ServiceResult):
                return loaded
            return ServiceResult(success=True, data=self._financing(value, loaded))
        except Exception as exc:
            return self._unexpected(
                f"preview financing on credit application {credit_application_id}", exc,
            )

    def get_payment_schedule(
        self,
        import_id: int,
        current_user: User,
        start_date: Optional[date] = None,
    ) -> ServiceResult[list[PaymentInstallment]]:
        """
        Payment schedule of a credit-financed shipment.

        Visible to the owner and to admin, super admin and financeira
        users.  Installments are counted from *start_date* (today when
        omitted).

        Returns:
            ServiceResult with the down payment followed by the
            installments; 400 when the shipment has no credit line.
        """
        if self._is_inactive(current_user):
            return self._fail("Inactive users cannot view imports.", 403)

        try:
            record = self._import_repo.get_by_id(import_id)
            if record is None:
                return self._fail("Import not found.", 404)
            if record.user_id != current_user.id and not can_view_all_credit(current_user.role):
                return self._fail("You can only view your own imports.", 403)
            if record.credit_application_id is None:
                return self._fail("Import is not financed by a credit application.", 400)

            application = self._credit_repo.get_by_id(record.credit_application_id)
            if application is None:
                return self._fail("Credit application not found.", 404)

            schedule = build_payment_schedule(
                record.total_value,
                application,
                start_date or datetime.now(timezone.utc).date(),
                currency=record.currency,
                config=self._config,
            )
            return ServiceResult(success=True, data=schedule)
        except Exception as exc:
            return self._unexpected(f"build payment schedule of import {import_id}", exc)
