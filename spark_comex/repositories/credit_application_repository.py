"""
Credit Application Repository.

Handles credit application data access via Supabase (primary) and
SQLite (offline cache).  Decision writes (financial approval, admin
finalization) go through :meth:`update_fields`.
"""

from __future__ import annotations

from typing import Mapping, Optional

from spark_comex.models.credit_application import CreditApplication
from spark_comex.repositories.base_repository import BaseRepository


class CreditApplicationRepository(BaseRepository):
    """Data access layer for CreditApplication entities."""

    TABLE = "credit_applications"
    COLUMNS = (
        "id",
        "user_id",
        "legal_company_name",
        "cnpj",
        "requested_amount",
        "status",
        "financial_status",
        "credit_limit",
        "approved_terms",
        "financial_notes",
        "submitted_to_financial_at",
        "financial_analyzed_at",
        "admin_status",
        "final_credit_limit",
        "final_approved_terms",
        "admin_fee",
        "final_down_payment",
        "admin_finalized_at",
        "created_at",
        "updated_at",
    )

    def get_by_id(self, application_id: int) -> Optional[CreditApplication]:
        """Fetch one application. Tries Supabase first, falls back to SQLite."""
        def _supabase() -> Optional[CreditApplication]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("id", application_id)
                .maybe_single()
                .execute()
            )
            if not response or not response.data:
                return None
            return CreditApplication.model_validate(response.data)

        return self._execute_with_fallback(
            supabase_op=_supabase,
            sqlite_op=lambda: self._get_local(application_id),
            default_factory=lambda: None,
            operation_name="get_by_id (credit_applications)",
            on_supabase_success=self._cache_to_sqlite,
        )

    def get_by_user(self, user_id: int) -> list[CreditApplication]:
        """Applications owned by one importer, newest first."""
        def _supabase() -> list[CreditApplication]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
            return [CreditApplication.model_validate(row) for row in response.data]

        def _sqlite() -> list[CreditApplication]:
            return [
                CreditApplication.model_validate(row)
                for row in self._select_local("user_id = ?", (user_id,))
            ]

        return self._execute_with_fallback(
            supabase_op=_supabase,
            sqlite_op=_sqlite,
            default_factory=list,
            operation_name="get_by_user (credit_applications)",
            on_supabase_success=self._cache_many,
        )

    def get_all(self) -> list[CreditApplication]:
        """Every application, newest first (admin and financeira views)."""
        def _supabase() -> list[CreditApplication]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .order("created_at", desc=True)
                .execute()
            )
            return [CreditApplication.model_validate(row) for row in response.data]

        def _sqlite() -> list[CreditApplication]:
            return [CreditApplication.model_validate(row) for row in self._select_local()]

        return self._execute_with_fallback(
            supabase_op=_supabase,
            sqlite_op=_sqlite,
            default_factory=list,
            operation_name="get_all (credit_applications)",
            on_supabase_success=self._cache_many,
        )

    def create(self, application: CreditApplication) -> CreditApplication:
        """Insert a new application.  Offline inserts are queued for sync."""
        data = application.model_dump(mode="json", exclude={"id"}, exclude_none=True)
        try:
            response = self.supabase.table(self.TABLE).insert(data).execute()
            result = CreditApplication.model_validate(response.data[0])
            self._cache_to_sqlite(result)
            self._logger.info("Credit application created: %s", result.id)
            return result
        except Exception as exc:
            self._logger.warning(
                "Supabase insert failed for credit application, storing locally: %s", exc,
            )
            new_id = self._insert_local(data)
            self._queue_pending_sync("insert", new_id, {**data, "id": new_id})
            return self._get_local(new_id) or application.model_copy(update={"id": new_id})

    def update_fields(
        self,
        application_id: int,
        fields: Mapping[str, object],
    ) -> Optional[CreditApplication]:
        """Apply a partial update and return the updated application.

        Returns ``None`` when the application does not exist.
        """
        payload = self._allowed(fields)
        try:
            response = (
                self.supabase.table(self.TABLE)
                .update(payload)
                .eq("id", application_id)
                .execute()
            )
            if response.data:
                result = CreditApplication.model_validate(response.data[0])
                self._cache_to_sqlite(result)
                return result
            return None
        except Exception as exc:
            self._logger.warning(
                "Supabase update failed for credit application %s, updating locally: %s",
                application_id,
                exc,
            )
            if not self._update_local(application_id, payload):
                return None
            self._queue_pending_sync("update", application_id, payload)
            return self._get_local(application_id)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _get_local(self, application_id: int) -> Optional[CreditApplication]:
        rows = self._select_local("id = ?", (application_id,), order_by="")
        return CreditApplication.model_validate(rows[0]) if rows else None

    def _cache_many(self, applications: list[CreditApplication]) -> None:
        with self._db.batch_write():
            for application in applications:
                self._cache_to_sqlite(application)

    def _cache_to_sqlite(self, application: CreditApplication) -> None:
        self._upsert_local(application.model_dump())
