"""
Spark Comex Command-Line Entry Point.

Bootstraps the dependency graph via constructor injection, initialises
the local SQLite schema and prints the dashboard of one user as JSON.
Every subsystem is wired here, with no module-level globals.

Usage::

    python main.py --user-id 1
"""

from __future__ import annotations

import argparse
import atexit
import json
import sys
from typing import Optional, Sequence

from spark_comex.config import get_config
from spark_comex.database import DatabaseManager
from spark_comex.logger import StructuredLogger, get_logger
from spark_comex.models.enums import UserRole
from spark_comex.models.service_models import ServiceResult
from spark_comex.models.user import User
from spark_comex.schema import initialize_schema
from spark_comex.services import ServiceContainer, create_services
from spark_comex.utils.general import convert_to_json_safe
from spark_comex.utils.roles import has_admin_access, role_display_name


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="spark-comex",
        description="Print the Spark Comex dashboard of one user as JSON.",
    )
    parser.add_argument("--user-id", type=int, required=True, help="User primary key.")
    return parser.parse_args(argv)


def _dashboard_for(user: User, services: ServiceContainer) -> ServiceResult:
    """Pick the dashboard matching the user's role."""
    dashboard = services["dashboard_service"]
    if user.role == UserRole.FINANCEIRA:
        return dashboard.get_financeira_metrics(user)
    if has_admin_access(user.role):
        return dashboard.get_admin_metrics(user)
    return dashboard.get_importer_dashboard(user)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Application entry point. Returns the process exit code."""
    args = _parse_args(argv)

    logger: StructuredLogger = get_logger("main")
    logger.info("Starting Spark Comex...")

    # ------------------------------------------------------------------
    # 1. Configuration (from .env / environment variables)
    # ------------------------------------------------------------------
    config = get_config()

    # ------------------------------------------------------------------
    # 2. Database Manager (offline-first: Supabase optional, SQLite always)
    # ------------------------------------------------------------------
    db = DatabaseManager.from_config(config, StructuredLogger(name="database"))
    atexit.register(db.close)

    # ------------------------------------------------------------------
    # 3. SQLite Schema Initialization (idempotent)
    # ------------------------------------------------------------------
    initialize_schema(db.sqlite, StructuredLogger(name="schema"))

    backlog = db.pending_sync_by_table()
    if backlog:
        logger.warning(
            "%d local change(s) not yet synced to Supabase.",
            sum(backlog.values()),
            extra={"sync_backlog": json.dumps(backlog)},
        )

    # ------------------------------------------------------------------
    # 4. Service Container (repositories + services, single composition root)
    # ------------------------------------------------------------------
    services = create_services(db=db, config=config)

    try:
        user = services["user_repository"].get_by_id(args.user_id)
        if user is None:
            logger.error("User %s not found.", args.user_id)
            return 1

        logger.info(
            "Showing %s dashboard for user %s.", role_display_name(user.role), user.id,
        )
        result = _dashboard_for(user, services)
        if not result.success:
            logger.error(
                "Dashboard unavailable (%s): %s", result.status_code, result.error,
            )
            return 1

        print(json.dumps(convert_to_json_safe(result.data), indent=2, ensure_ascii=False))
        return 0
    finally:
        db.close()
        logger.info("Spark Comex shut down.")


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
