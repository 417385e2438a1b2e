"""
Business Logic Services Package.

Services depend on the Repository layer for data access and on the pure
calculation modules (``import_lifecycle``, ``credit_engine``,
``credit_policy``, ``admin_fee``) for every figure they report.

The ``create_services()`` factory wires every repository and service together,
returning a typed dict that the application layer (commands / views) can
consume without knowing the internal dependency graph.
"""

from __future__ import annotations

from typing import Optional, TypedDict

from spark_comex.config import AppConfig
from spark_comex.database import DatabaseManager
from spark_comex.logger import StructuredLogger, get_logger
from spark_comex.repositories.credit_application_repository import (
    CreditApplicationRepository,
)
from spark_comex.repositories.import_repository import ImportRepository
from spark_comex.repositories.user_repository import UserRepository
from spark_comex.services.credit_workflow import CreditWorkflowService
from spark_comex.services.dashboard import DashboardService
from spark_comex.services.import_workflow import ImportWorkflowService


class ServiceContainer(TypedDict):
    """Typed container for repositories and services."""

    # --- Repositories ---
    user_repository: UserRepository
    credit_application_repository: CreditApplicationRepository
    import_repository: ImportRepository

    # --- Services ---
    dashboard_service: DashboardService
    credit_workflow_service: CreditWorkflowService
    import_workflow_service: ImportWorkflowService


def create_services(
    db: DatabaseManager,
    config: AppConfig,
    logger: Optional[StructuredLogger] = None,
) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root for the service layer.  The
    application entry-point calls this once at startup.

    Args:
        db: Initialised DatabaseManager (Supabase optional, SQLite ready).
        config: Application configuration.
        logger: Shared service logger (defaults to ``get_logger("services")``).

    Returns:
        ServiceContainer mapping names to fully-wired instances.
    """
    logger = logger or get_logger("services")

    # ------------------------------------------------------------------
    # 1. Repositories (data-access layer)
    # ------------------------------------------------------------------
    user_repo = UserRepository(db=db, logger=logger)
    credit_repo = CreditApplicationRepository(db=db, logger=logger)
    import_repo = ImportRepository(db=db, logger=logger)

    # ------------------------------------------------------------------
    # 2. Services
    # ------------------------------------------------------------------
    dashboard_service = DashboardService(
        credit_repo=credit_repo,
        import_repo=import_repo,
        user_repo=user_repo,
        config=config,
        logger=logger,
    )
    credit_workflow_service = CreditWorkflowService(
        credit_repo=credit_repo,
        db=db,
        config=config,
        logger=logger,
    )
    import_workflow_service = ImportWorkflowService(
        import_repo=import_repo,
        credit_repo=credit_repo,
        db=db,
        config=config,
        logger=logger,
    )

    return ServiceContainer(
        user_repository=user_repo,
        credit_application_repository=credit_repo,
        import_repository=import_repo,
        dashboard_service=dashboard_service,
        credit_workflow_service=credit_workflow_service,
        import_workflow_service=import_workflow_service,
    )
