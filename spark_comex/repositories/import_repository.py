"""
Import Repository.

Handles shipment data access via Supabase (primary) and SQLite (offline
cache).
"""

from __future__ import annotations

from typing import Mapping, Optional

from spark_comex.models.import_record import Import
from spark_comex.repositories.base_repository import BaseRepository


class ImportRepository(BaseRepository):
    """Data access layer for Import entities."""

    TABLE = "imports"
    COLUMNS = (
        "id",
        "user_id",
        "credit_application_id",
        "import_name",
        "total_value",
        "currency",
        "status",
        "shipping_method",
        "estimated_delivery",
        "created_at",
        "updated_at",
    )

    def get_by_id(self, import_id: int) -> Optional[Import]:
        """Fetch one shipment. Tries Supabase first, falls back to SQLite."""
        def _supabase() -> Optional[Import]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("id", import_id)
                .maybe_single()
                .execute()
            )
            return Import.model_validate(response.data) if response and response.data else None

        return self._execute_with_fallback(
            supabase_op=_supabase,
            sqlite_op=lambda: self._get_local(import_id),
            default_factory=lambda: None,
            operation_name="get_by_id (imports)",
            on_supabase_success=self._cache_to_sqlite,
        )

    def get_by_user(self, user_id: int) -> list[Import]:
        """Shipments owned by one importer, newest first."""
        return self._get_where("user_id", user_id)

    def get_by_credit_application(self, application_id: int) -> list[Import]:
        """Shipments financed by one credit application, newest first."""
        return self._get_where("credit_application_id", application_id)

    def get_all(self) -> list[Import]:
        """Every shipment, newest first."""
        def _supabase() -> list[Import]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .order("created_at", desc=True)
                .execute()
            )
            return [Import.model_validate(row) for row in response.data]

        return self._execute_with_fallback(
            supabase_op=_supabase,
            sqlite_op=lambda: [Import.model_validate(row) for row in self._select_local()],
            default_factory=list,
            operation_name="get_all (imports)",
            on_supabase_success=self._cache_many,
        )

    def create(self, record: Import) -> Import:
        """Insert a new shipment.  Offline inserts are queued for sync."""
        data = record.model_dump(mode="json", exclude={"id"}, exclude_none=True)
        try:
            response = self.supabase.table(self.TABLE).insert(data).execute()
            result = Import.model_validate(response.data[0])
            self._cache_to_sqlite(result)
            self._logger.info("Import created: %s", result.id)
            return result
        except Exception as exc:
            self._logger.warning(
                "Supabase insert failed for import, storing locally: %s", exc,
            )
            new_id = self._insert_local(data)
            self._queue_pending_sync("insert", new_id, {**data, "id": new_id})
            return self._get_local(new_id) or record.model_copy(update={"id": new_id})

    def update_fields(self, import_id: int, fields: Mapping[str, object]) -> Optional[Import]:
        """Apply a partial update; ``None`` when the shipment does not exist."""
        payload = self._allowed(fields)
        try:
            response = (
                self.supabase.table(self.TABLE)
                .update(payload)
                .eq("id", import_id)
                .execute()
            )
            if response.data:
                result = Import.model_validate(response.data[0])
                self._cache_to_sqlite(result)
                return result
            return None
        except Exception as exc:
            self._logger.warning(
                "Supabase update failed for import %s, updating locally: %s",
                import_id,
                exc,
            )
            if not self._update_local(import_id, payload):
                return None
            self._queue_pending_sync("update", import_id, payload)
            return self._get_local(import_id)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _get_where(self, column: str, value: int) -> list[Import]:
        def _supabase() -> list[Import]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq(column, value)
                .order("created_at", desc=True)
                .execute()
            )
            return [Import.model_validate(row) for row in response.data]

        def _sqlite() -> list[Import]:
            return [
                Import.model_validate(row)
                for row in self._select_local(f"{column} = ?", (value,))
            ]

        return self._execute_with_fallback(
            supabase_op=_supabase,
            sqlite_op=_sqlite,
            default_factory=list,
            operation_name=f"get_by_{column} (imports)",
            on_supabase_success=self._cache_many,
        )

    def _get_local(self, import_id: int) -> Optional[Import]:
        rows = self._select_local("id = ?", (import_id,), order_by="")
        return Import.model_validate(rows[0]) if rows else None

    def _cache_many(self, records: list[Import]) -> None:
        with self._db.batch_write():
            for record in records:
                self._cache_to_sqlite(record)

    def _cache_to_sqlite(self, record: Import) -> None:
        self._upsert_local(record.model_dump())
