"""
Structured Audit Logging Utility.

Every credit decision and shipment status change is recorded as a
structured JSON log line and, when a SQLite connection is available, as a
row in ``audit_log`` so the application timeline can be queried later.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, Field

from spark_comex.logger import StructuredLogger

__all__ = [
    "AuditEvent",
    "fetch_audit_events",
    "log_audit_event",
    "persist_audit_event",
]

# Flat scalars only; nested structures belong in their own tables.
DetailValue = Union[str, int, float, bool, None]


class AuditEvent(BaseModel):
    """Schema-validated representation of a single audit trail entry."""

    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    action: str
    entity_type: str
    entity_id: str
    user_id: str
    details: dict[str, DetailValue] = Field(default_factory=dict)


def log_audit_event(
    logger: StructuredLogger,
    action: str,
    entity_type: str,
    entity_id: Union[str, int],
    user_id: Union[str, int],
    details: Optional[dict[str, DetailValue]] = None,
    conn: Optional[sqlite3.Connection] = None,
) -> AuditEvent:
    """Log a structured audit event, with optional SQLite persistence.

    Args:
        logger: The logger instance to write to.
        action: What happened (e.g. ``"FINANCIAL_APPROVE"``,
            ``"FINALIZE"``, ``"STATUS_CHANGE"``).
        entity_type: Type of entity affected (``"CreditApplication"``,
            ``"Import"``).
        entity_id: Primary key of the affected entity.
        user_id: ID of the user who performed the action.
        details: Optional additional context (e.g. old/new values).
        conn: Optional SQLite connection.  When provided the event is
            also written to ``audit_log``; a failed write is logged as a
            warning and does not fail the calling operation.

    Returns:
        The validated event.
    """
    event = AuditEvent(
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        user_id=str(user_id),
        details=details or {},
    )
    logger.info("AUDIT: %s", json.dumps(event.model_dump(), default=str))

    if conn is not None:
        try:
            persist_audit_event(conn, event)
        except sqlite3.Error as db_err:
            logger.warning(
                "Failed to persist audit event to SQLite: %s", db_err
            )
    return event


def persist_audit_event(conn: sqlite3.Connection, event: AuditEvent) -> None:
    """Write a validated *event* to the SQLite ``audit_log`` table."""
    conn.execute(
        """
        INSERT INTO audit_log (timestamp, action, entity_type, entity_id, user_id, details)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            event.timestamp,
            event.action,
            event.entity_type,
            event.entity_id,
            event.user_id,
            json.dumps(event.details, default=str),
        ),
    )
    conn.commit()


def fetch_audit_events(
    conn: sqlite3.Connection,
    entity_type: str,
    entity_id: Union[str, int],
) -> list[AuditEvent]:
    """Return the recorded history of one entity, oldest first."""
    rows = conn.execute(
        """
        SELECT timestamp, action, entity_type, entity_id, user_id, details
        FROM audit_log
        WHERE entity_type = ? AND entity_id = ?
        ORDER BY id
        """,
        (entity_type, str(entity_id)),
    ).fetchall()
    return [
        AuditEvent(
            timestamp=row[0],
            action=row[1],
            entity_type=row[2],
            entity_id=row[3],
            user_id=row[4],
            details=json.loads(row[5]) if row[5] else {},
        )
        for row in rows
    ]
