"""
Database Abstraction Layer.

Spark Comex reads and writes through two stores:

- **Supabase** (hosted PostgreSQL) holds the authoritative users, credit
  applications and imports.
- **SQLite** is a local cache that is always available.  When Supabase
  is unconfigured or unreachable, reads are served from the cache and
  writes are applied locally and recorded in ``sync_queue``.

``DatabaseManager`` owns the two connections and the SQLite write lock.
Queries live in ``spark_comex.repositories``.

Usage::

    db = DatabaseManager.from_config(get_config(), StructuredLogger(name="database"))
    initialize_schema(db.sqlite, logger)
    ...
    db.close()
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional, Union

from supabase import Client as SupabaseClient, create_client

from spark_comex.config import AppConfig
from spark_comex.logger import StructuredLogger

_IN_MEMORY = ":memory:"


# ---------------------------------------------------------------------------
# Connection factories
# ---------------------------------------------------------------------------

def _create_supabase(
    url: str,
    key: str,
    logger: StructuredLogger,
) -> Optional[SupabaseClient]:
    """Supabase client, or ``None`` (offline mode) when it cannot be built."""
    if not (url and key):
        logger.warning("Supabase credentials not configured -- running in offline mode.")
        return None
    try:
        client = create_client(url, key)
    except (ValueError, TypeError) as exc:
        logger.warning("Supabase credential format error: %s. Running in offline mode.", exc)
        return None
    except Exception as exc:
        logger.error(
            "Unexpected Supabase initialization failure: %s. Running in offline mode.",
            exc,
            exc_info=True,
        )
        return None
    logger.info("Supabase client initialized for %s", url)
    return client


def _open_sqlite(path: Union[Path, str], logger: StructuredLogger) -> sqlite3.Connection:
    """Open (or create) the local cache with dict-like rows.

    Raises:
        PermissionError: The file or its directory is read-only or locked.
    """
    location = str(path)
    try:
        conn = sqlite3.connect(location, check_same_thread=False)
    except PermissionError as exc:
        msg = (
            f"Cannot open the local database at '{location}'. The file or its "
            "directory may be read-only or locked by another process."
        )
        logger.error(msg)
        raise PermissionError(msg) from exc

    conn.row_factory = sqlite3.Row
    if location != _IN_MEMORY:
        conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA foreign_keys = ON;")
    logger.info("SQLite cache opened at %s", location)
    return conn


class DatabaseManager:
    """Owns the Supabase client and the SQLite cache connection.

    Without Supabase credentials the manager runs offline: ``is_online``
    is ``False`` and ``supabase`` raises ``RuntimeError``, which the
    repositories treat like any other remote failure.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        sqlite_path: Union[Path, str],
        logger: StructuredLogger,
    ) -> None:
        self._logger: StructuredLogger = logger
        self._write_lock: threading.RLock = threading.RLock()
        self._in_batch: bool = False
        self._closed: bool = False

        self._supabase: Optional[SupabaseClient] = _create_supabase(
            supabase_url, supabase_key, logger,
        )
        self._sqlite_conn: sqlite3.Connection = _open_sqlite(sqlite_path, logger)

    @classmethod
    def from_config(cls, config: AppConfig, logger: StructuredLogger) -> "DatabaseManager":
        return cls(
            supabase_url=config.SUPABASE_URL,
            supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
            sqlite_path=config.SQLITE_PATH,
            logger=logger,
        )

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    @property
    def supabase(self) -> SupabaseClient:
        """The Supabase client.

        Raises:
            RuntimeError: Running in offline mode.
        """
        if self._supabase is None:
            raise RuntimeError("Supabase is not configured; running in offline mode.")
        return self._supabase

    @property
    def is_online(self) -> bool:
        return self._supabase is not None

    @property
    def sqlite(self) -> sqlite3.Connection:
        return self._sqlite_conn

    # ------------------------------------------------------------------
    # Local writes
    # ------------------------------------------------------------------

    @property
    def write_lock(self) -> threading.RLock:
        """Hold around every SQLite write and its ``commit()``."""
        return self._write_lock

    @property
    def in_batch(self) -> bool:
        """``True`` inside :meth:`batch_write`; repositories then skip ``commit()``."""
        return self._in_batch

    @contextmanager
    def batch_write(self) -> Generator[None, None, None]:
        """Apply every local write in the block as one transaction.

        Commits once on normal exit and rolls back (re-raising) on error.
        A nested ``batch_write`` joins the outer one.

        Example::

            with db.batch_write():
                for record in imports:
                    import_repo.upsert(record)
        """
        if self._in_batch:
            yield
            return

        with self._write_lock:
            self._in_batch = True
            try:
                yield
            except Exception:
                self._sqlite_conn.rollback()
                self._logger.error("Batch write rolled back.", exc_info=True)
                raise
            else:
                self._sqlite_conn.commit()
                self._logger.debug("Batch write committed.")
            finally:
                self._in_batch = False

    # ------------------------------------------------------------------
    # Sync backlog
    # ------------------------------------------------------------------

    def pending_sync_by_table(self) -> dict[str, int]:
        """Writes still waiting for Supabase, counted per table.

        Empty when nothing is queued or the schema has not been created.
        """
        with self._write_lock:
            try:
                rows = self._sqlite_conn.execute(
                    """
                    SELECT table_name, COUNT(*) AS pending
                    FROM sync_queue
                    WHERE status = 'pending'
                    GROUP BY table_name
                    ORDER BY table_name
                    """
                ).fetchall()
            except sqlite3.Error:
                self._logger.debug("sync_queue not readable; no backlog reported.", exc_info=True)
                return {}
        return {row["table_name"]: int(row["pending"]) for row in rows}

    def get_pending_sync_count(self) -> int:
        return sum(self.pending_sync_by_table().values())

    def close(self) -> None:
        """Close the SQLite connection; later calls do nothing."""
        with self._write_lock:
            if self._closed:
                return
            self._sqlite_conn.close()
            self._closed = True
        self._logger.info("SQLite connection closed.")
