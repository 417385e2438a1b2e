"""
Centralized SQLite Schema Initialization.

Defines the canonical schema for the Spark Comex local cache and provides
a single entry-point -- :func:`initialize_schema` -- that creates all
required tables idempotently.  A ``schema_version`` table tracks applied
migrations so that later schema changes roll forward without data loss.

Migration Strategy
~~~~~~~~~~~~~~~~~~
- **Fresh databases** (version 0): all tables are created in one shot from
  :data:`_TABLE_DEFINITIONS`.
- **Existing databases** (version N > 0): only incremental migrations
  registered in :data:`_MIGRATIONS` are executed.
- The entire upgrade (migrations + version bump) runs in one SQLite
  transaction.  On failure the database rolls back to version N and the
  next startup retries.

Adding a New Migration
~~~~~~~~~~~~~~~~~~~~~~
1. Bump :data:`CURRENT_SCHEMA_VERSION`.
2. Update the relevant DDL in :data:`_TABLE_DEFINITIONS` (for fresh installs).
3. Write a ``_migrate_vN_to_vN+1()`` function (guard each ``ALTER TABLE``
   with a ``PRAGMA table_info`` check for idempotency).
4. Register the function in :data:`_MIGRATIONS`.

Monetary columns are TEXT: amounts round-trip as exact decimal strings
(``"1500.50"``) and are parsed leniently by the models.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable

from spark_comex.logger import StructuredLogger

__all__ = ["CURRENT_SCHEMA_VERSION", "initialize_schema"]

# ---------------------------------------------------------------------------
# Schema version -- bump this whenever a migration is added.
# ---------------------------------------------------------------------------
CURRENT_SCHEMA_VERSION: int = 1

# ---------------------------------------------------------------------------
# DDL statements for every table in the local database.
# ---------------------------------------------------------------------------
_VERSION_TABLE = """
    CREATE TABLE IF NOT EXISTS schema_version (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        version INTEGER NOT NULL,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""

_TABLE_DEFINITIONS: list[str] = [
    _VERSION_TABLE,
    # -- outbound sync buffer --------------------------------------------------
    """
    CREATE TABLE IF NOT EXISTS sync_queue (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        table_name TEXT NOT NULL,
        operation TEXT NOT NULL,
        entity_id TEXT NOT NULL,
        payload TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        attempted_at TIMESTAMP,
        error_message TEXT
    )
    """,
    # -- persistent structured audit trail ------------------------------------
    """
    CREATE TABLE IF NOT EXISTS audit_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp TEXT NOT NULL,
        action TEXT NOT NULL,
        entity_type TEXT NOT NULL,
        entity_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        details TEXT DEFAULT '{}',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # -- users ------------------------------------------------------------------
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        email TEXT NOT NULL UNIQUE,
        full_name TEXT NOT NULL DEFAULT '',
        company_name TEXT,
        cnpj TEXT,
        role TEXT NOT NULL DEFAULT 'importer',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # -- credit_applications ----------------------------------------------------
    """
    CREATE TABLE IF NOT EXISTS credit_applications (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        legal_company_name TEXT NOT NULL DEFAULT '',
        cnpj TEXT,
        requested_amount TEXT,
        status TEXT NOT NULL DEFAULT 'pending',
        financial_status TEXT NOT NULL DEFAULT 'pending',
        credit_limit TEXT,
        approved_terms TEXT,
        financial_notes TEXT,
        submitted_to_financial_at TIMESTAMP,
        financial_analyzed_at TIMESTAMP,
        admin_status TEXT NOT NULL DEFAULT 'pending',
        final_credit_limit TEXT,
        final_approved_terms TEXT,
        admin_fee TEXT,
        final_down_payment TEXT,
        admin_finalized_at TIMESTAMP,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (user_id) REFERENCES users(id)
    )
    """,
    # -- imports ----------------------------------------------------------------
    """
    CREATE TABLE IF NOT EXISTS imports (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        credit_application_id INTEGER,
        import_name TEXT NOT NULL DEFAULT '',
        total_value TEXT,
        currency TEXT DEFAULT 'USD',
        status TEXT NOT NULL DEFAULT 'planning',
        shipping_method TEXT DEFAULT 'sea',
        estimated_delivery DATE,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (user_id) REFERENCES users(id),
        FOREIGN KEY (credit_application_id) REFERENCES credit_applications(id)
    )
    """,
    # -- indexes ------------------------------------------------------------------
    "CREATE INDEX IF NOT EXISTS idx_credit_applications_user_id ON credit_applications(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_credit_applications_financial_status ON credit_applications(financial_status)",
    "CREATE INDEX IF NOT EXISTS idx_imports_user_id ON imports(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_imports_credit_application_id ON imports(credit_application_id)",
    "CREATE INDEX IF NOT EXISTS idx_sync_queue_status ON sync_queue(status)",
]


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _ensure_version_table(conn: sqlite3.Connection) -> None:
    conn.execute(_VERSION_TABLE)
    conn.commit()


def _get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the current schema version, or ``0`` for a fresh database."""
    row = conn.execute(
        "SELECT version FROM schema_version WHERE id = 1"
    ).fetchone()
    return row[0] if row is not None else 0


def _set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Upsert the single-row version tracker.  Does **not** commit."""
    conn.execute(
        """
        INSERT INTO schema_version (id, version) VALUES (1, ?)
        ON CONFLICT(id) DO UPDATE SET version = excluded.version,
                                      applied_at = CURRENT_TIMESTAMP
        """,
        (version,),
    )


def _create_all_tables(conn: sqlite3.Connection, logger: StructuredLogger) -> None:
    """Execute every DDL statement in :data:`_TABLE_DEFINITIONS`.

    Only used for fresh databases.  Does **not** commit.
    """
    for ddl in _TABLE_DEFINITIONS:
        conn.execute(ddl)
    logger.info(
        "All %d schema statements applied successfully.", len(_TABLE_DEFINITIONS),
    )


# ---------------------------------------------------------------------------
# Migration registry -- maps *target* version to its migration function.
# ---------------------------------------------------------------------------

MigrationFunc = Callable[[sqlite3.Connection, StructuredLogger], None]

_MIGRATIONS: dict[int, MigrationFunc] = {}


def _run_incremental_migrations(
    conn: sqlite3.Connection,
    logger: StructuredLogger,
    from_version: int,
    to_version: int,
) -> None:
    """Run registered migrations in ``(from_version, to_version]``, ascending.

    Does **not** commit.
    """
    versions_to_apply: list[int] = sorted(
        v for v in _MIGRATIONS if from_version < v <= to_version
    )
    if not versions_to_apply:
        logger.info("No incremental migrations to apply.")
        return

    logger.info(
        "Applying %d migration(s): %s",
        len(versions_to_apply),
        " -> ".join(str(v) for v in versions_to_apply),
    )
    for version in versions_to_apply:
        logger.info("Running migration to version %d", version)
        _MIGRATIONS[version](conn, logger)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def initialize_schema(conn: sqlite3.Connection, logger: StructuredLogger) -> None:
    """Ensure the local SQLite database matches the current schema version.

    Workflow:
        1. Guarantee the ``schema_version`` table exists (separate commit).
        2. Read the stored version number (``0`` for a fresh database).
        3. Return immediately when already at :data:`CURRENT_SCHEMA_VERSION`.
        4. Otherwise upgrade within a single transaction: create every
           table on a fresh database, or run the incremental migrations
           on an existing one, then bump the version and commit.  Any
           failure rolls back and re-raises.

    Called on every startup; idempotent.
    """
    _ensure_version_table(conn)
    current: int = _get_schema_version(conn)

    if current >= CURRENT_SCHEMA_VERSION:
        logger.info("Schema is up to date (version %d).", current)
        return

    logger.info(
        "Upgrading schema from version %d to %d",
        current,
        CURRENT_SCHEMA_VERSION,
    )

    try:
        if current == 0:
            _create_all_tables(conn, logger)
        else:
            _run_incremental_migrations(
                conn, logger, current, CURRENT_SCHEMA_VERSION,
            )
        _set_schema_version(conn, CURRENT_SCHEMA_VERSION)
        conn.commit()
    except Exception:
        conn.rollback()
        logger.error(
            "Schema migration failed -- rolled back to version %d.", current,
        )
        raise

    logger.info("Schema initialised at version %d.", CURRENT_SCHEMA_VERSION)
