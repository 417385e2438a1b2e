"""
Base Repository.

Provides shared infrastructure for all repositories:
- DatabaseManager reference (Supabase + SQLite)
- Logger reference
- Supabase-first / SQLite-fallback reads
- Column-allowlisted local upserts and updates
- Sync queue management for writes that could not reach Supabase
"""

from __future__ import annotations

import json
import sqlite3
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Callable, Mapping, Optional, TypeVar

from supabase import Client as SupabaseClient

from spark_comex.database import DatabaseManager
from spark_comex.logger import StructuredLogger

T = TypeVar("T")

SqlValue = Optional[object]


def to_storage_value(value: object) -> SqlValue:
    """Convert a model value to what both stores accept.

    Decimals become exact strings, dates ISO strings, enums their value.
    """
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__.

    Subclasses set ``TABLE`` and ``COLUMNS``.  ``COLUMNS`` is the
    allowlist of every column that may be written locally; it is the only
    source of column names interpolated into SQL.
    """

    TABLE: str = ""
    COLUMNS: tuple[str, ...] = ()

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        self._db = db
        self._logger = logger

    @property
    def supabase(self) -> SupabaseClient:
        """Returns the Supabase client (raises ``RuntimeError`` offline)."""
        return self._db.supabase

    @property
    def sqlite(self) -> sqlite3.Connection:
        """Returns the SQLite connection for local cache operations."""
        return self._db.sqlite

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _execute_with_fallback(
        self,
        supabase_op: Callable[[], Optional[T]],
        sqlite_op: Callable[[], Optional[T]],
        default_factory: Callable[[], T],
        *,
        operation_name: str,
        on_supabase_success: Optional[Callable[[T], None]] = None,
    ) -> T:
        """Execute a read with Supabase-first, SQLite-fallback semantics.

        Execution order:
        1. Call ``supabase_op()``.  If it returns a non-``None`` value,
           optionally invoke ``on_supabase_success``, then return.
        2. Call ``sqlite_op()``.  If it returns a non-``None`` value, return.
        3. Return ``default_factory()``.

        Parameters
        ----------
        supabase_op:
            Zero-argument callable performing the Supabase query.
        sqlite_op:
            Zero-argument callable performing the SQLite query.
        default_factory:
            Produces the typed default when both sources fail or return
            ``None``.
        operation_name:
            Label for log messages, e.g. ``"get_by_id (imports)"``.
        on_supabase_success:
            Optional cache-warming callback invoked with the Supabase
            result.  Its failures are logged and never mask the result.
        """
        try:
            result = supabase_op()
            if result is not None:
                if on_supabase_success is not None:
                    try:
                        on_supabase_success(result)
                    except Exception as cache_exc:
                        self._logger.warning(
                            "Post-Supabase callback failed for %s: %s",
                            operation_name,
                            cache_exc,
                        )
                return result
        except Exception as exc:
            self._logger.warning(
                "Supabase unavailable for %s: %s", operation_name, exc
            )

        try:
            result = sqlite_op()
            if result is not None:
                return result
        except sqlite3.Error as sqlite_exc:
            self._logger.error(
                "SQLite fallback also failed for %s: %s",
                operation_name,
                sqlite_exc,
            )

        return default_factory()

    def _select_local(
        self,
        where: str = "",
        params: tuple[object, ...] = (),
        order_by: str = "created_at DESC, id DESC",
    ) -> list[dict[str, object]]:
        """Run a ``SELECT *`` against the local table and return plain dicts."""
        sql = f"SELECT * FROM {self.TABLE}"
        if where:
            sql += f" WHERE {where}"
        if order_by:
            sql += f" ORDER BY {order_by}"
        return [dict(row) for row in self.sqlite.execute(sql, params).fetchall()]

    # ------------------------------------------------------------------
    # Local writes
    # ------------------------------------------------------------------

    def _commit(self) -> None:
        """Commit unless a :meth:`DatabaseManager.batch_write` is active."""
        if not self._db.in_batch:
            self.sqlite.commit()

    def _allowed(self, data: Mapping[str, object]) -> dict[str, SqlValue]:
        return {
            key: to_storage_value(value)
            for key, value in data.items()
            if key in self.COLUMNS
        }

    def _upsert_local(self, data: Mapping[str, object]) -> None:
        """Insert or replace one row in the local cache by ``id``.

        Exceptions are logged, not raised, so a cache failure never masks
        a successful Supabase write.
        """
        row = self._allowed(data)
        if row.get("id") is None:
            self._logger.warning(
                "Refusing to cache %s row without an id.", self.TABLE,
            )
            return

        columns = list(row)
        placeholders = ", ".join("?" for _ in columns)
        updates = ", ".join(
            f"{col} = excluded.{col}" for col in columns if col != "id"
        )
        sql = (
            f"INSERT INTO {self.TABLE} ({', '.join(columns)}) "
            f"VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}"
        )
        try:
            with self._db.write_lock:
                self.sqlite.execute(sql, tuple(row[col] for col in columns))
                self._commit()
        except sqlite3.Error as exc:
            self._logger.warning(
                "Failed to cache %s/%s to SQLite (non-fatal): %s",
                self.TABLE,
                row["id"],
                exc,
            )

    def _insert_local(self, data: Mapping[str, object]) -> int:
        """Insert a new row locally and return the generated id."""
        row = self._allowed(data)
        row.pop("id", None)
        columns = list(row)
        sql = (
            f"INSERT INTO {self.TABLE} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})"
        )
        with self._db.write_lock:
            cursor = self.sqlite.execute(sql, tuple(row[col] for col in columns))
            self._commit()
        return int(cursor.lastrowid)

    def _update_local(self, entity_id: int, fields: Mapping[str, object]) -> bool:
        """Update allowlisted *fields* of one local row.  True when a row changed."""
        row = self._allowed(fields)
        row.pop("id", None)
        if not row:
            return False
        assignments = ", ".join(f"{col} = ?" for col in row)
        with self._db.write_lock:
            cursor = self.sqlite.execute(
                f"UPDATE {self.TABLE} SET {assignments} WHERE id = ?",
                (*row.values(), entity_id),
            )
            self._commit()
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Sync queue
    # ------------------------------------------------------------------

    def _queue_pending_sync(
        self,
        operation: str,
        entity_id: object,
        payload: Mapping[str, object],
    ) -> None:
        """Record a write that must be replayed against Supabase later.

        Args:
            operation: ``insert``, ``update`` or ``upsert``.
            entity_id: The ID of the affected entity.
            payload: Column values; serialized to JSON.
        """
        try:
            with self._db.write_lock:
                self.sqlite.execute(
                    """
                    INSERT INTO sync_queue (table_name, operation, entity_id, payload)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        self.TABLE,
                        operation,
                        str(entity_id),
                        json.dumps(self._allowed(payload), default=str),
                    ),
                )
                self._commit()
            self._logger.info(
                "Queued pending sync: %s %s/%s", operation, self.TABLE, entity_id
            )
        except sqlite3.Error as exc:
            self._logger.warning(
                "Failed to queue pending sync for %s/%s: %s",
                self.TABLE,
                entity_id,
                exc,
            )
