"""Pytest configuration and fixtures.

Every database fixture is an offline ``DatabaseManager`` over in-memory
SQLite: Supabase is never configured, so repositories exercise their
local-cache fallback and sync queue.
"""

import io
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterator, Optional

import pytest

from spark_comex.config import AppConfig
from spark_comex.database import DatabaseManager
from spark_comex.logger import StructuredLogger
from spark_comex.models import CreditApplication, Import, User
from spark_comex.models.enums import (
    AdminStatus,
    CreditStatus,
    FinancialStatus,
    ImportStatus,
    UserRole,
)
from spark_comex.repositories import (
    CreditApplicationRepository,
    ImportRepository,
    UserRepository,
)
from spark_comex.schema import initialize_schema
from spark_comex.services import ServiceContainer, create_services


@pytest.fixture(scope="session")
def logger(tmp_path_factory: pytest.TempPathFactory) -> StructuredLogger:
    """Quiet structured logger writing to a throwaway file."""
    log_file = tmp_path_factory.mktemp("logs") / "spark_comex_tests.log"
    return StructuredLogger(
        name="spark_comex.tests",
        stream=io.StringIO(),
        log_file=str(log_file),
    )


@pytest.fixture
def config() -> AppConfig:
    """Offline configuration with default credit terms."""
    return AppConfig(
        SUPABASE_URL="",
        SUPABASE_ANON_KEY="",
        SQLITE_PATH=":memory:",
    )


@pytest.fixture
def db(config: AppConfig, logger: StructuredLogger) -> Iterator[DatabaseManager]:
    """Fresh in-memory database with the current schema."""
    manager = DatabaseManager.from_config(config, logger)
    initialize_schema(manager.sqlite, logger)
    yield manager
    manager.close()


@pytest.fixture
def user_repo(db: DatabaseManager, logger: StructuredLogger) -> UserRepository:
    return UserRepository(db=db, logger=logger)


@pytest.fixture
def credit_repo(db: DatabaseManager, logger: StructuredLogger) -> CreditApplicationRepository:
    return CreditApplicationRepository(db=db, logger=logger)


@pytest.fixture
def import_repo(db: DatabaseManager, logger: StructuredLogger) -> ImportRepository:
    return ImportRepository(db=db, logger=logger)


@pytest.fixture
def services(
    db: DatabaseManager,
    config: AppConfig,
    logger: StructuredLogger,
) -> ServiceContainer:
    return create_services(db=db, config=config, logger=logger)


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

@dataclass
class SampleData:
    """Handles to the seeded records.

    Importer ``importer`` owns applications ``finalized`` (approved and
    finalized, final limit 75,000), ``awaiting`` (approved, original limit
    40,000, not finalized) and ``pending``.  ``other_importer`` owns the
    ``rejected`` application.
    """

    importer: User
    other_importer: User
    admin: User
    financeira: User
    super_admin: User
    inactive: User

    finalized: CreditApplication
    awaiting: CreditApplication
    pending: CreditApplication
    rejected: CreditApplication

    in_production: Import
    completed: Import
    at_sea: Import
    awaiting_planning: Import
    unlinked: Import


@pytest.fixture
def sample(
    user_repo: UserRepository,
    credit_repo: CreditApplicationRepository,
    import_repo: ImportRepository,
) -> SampleData:
    """Seed users, credit applications and imports into the local cache."""
    users = {
        user_id: user_repo.upsert(
            User(id=user_id, email=f"{name}@sparkcomex.com.br", full_name=name, role=role)
        )
        for user_id, name, role in (
            (1, "importer", UserRole.IMPORTER),
            (2, "other", "importer"),
            (3, "admin", UserRole.ADMIN),
            (4, "financeira", UserRole.FINANCEIRA),
            (5, "root", UserRole.SUPER_ADMIN),
            (6, "former", UserRole.INACTIVE),
        )
    }
    importer = users[1]
    other = user_repo.get_by_id(2)
    assert other is not None

    finalized = credit_repo.create(CreditApplication(
        user_id=importer.id,
        legal_company_name="Spark Importadora Ltda",
        cnpj="11.222.333/0001-81",
        requested_amount=Decimal("100000"),
        status=CreditStatus.APPROVED,
        financial_status=FinancialStatus.APPROVED,
        credit_limit=Decimal("80000"),
        approved_terms="60",
        submitted_to_financial_at=datetime(2026, 1, 10, 9, 0),
        financial_analyzed_at=datetime(2026, 1, 12, 10, 0),
        admin_status=AdminStatus.FINALIZED,
        final_credit_limit=Decimal("75000"),
        final_approved_terms="60",
        admin_fee=Decimal("2.5"),
        final_down_payment=Decimal("20"),
        created_at=datetime(2026, 1, 10, 9, 0),
    ))
    awaiting = credit_repo.create(CreditApplication(
        user_id=importer.id,
        legal_company_name="Spark Importadora Ltda",
        requested_amount=Decimal("50000"),
        status=CreditStatus.APPROVED,
        financial_status=FinancialStatus.APPROVED,
        credit_limit=Decimal("40000"),
        approved_terms="30",
        submitted_to_financial_at=datetime(2026, 3, 5, 9, 0),
        financial_analyzed_at=datetime(2026, 3, 6, 9, 0),
        created_at=datetime(2026, 3, 5, 9, 0),
    ))
    pending = credit_repo.create(CreditApplication(
        user_id=importer.id,
        legal_company_name="Spark Importadora Ltda",
        requested_amount=Decimal("20000"),
        submitted_to_financial_at=datetime(2026, 3, 10, 9, 0),
        created_at=datetime(2026, 3, 10, 9, 0),
    ))
    rejected = credit_repo.create(CreditApplication(
        user_id=other.id,
        legal_company_name="Outra Comercial S.A.",
        requested_amount=Decimal("30000"),
        status=CreditStatus.REJECTED,
        financial_status=FinancialStatus.REJECTED,
        financial_notes="Rejeitado após análise financeira",
        created_at=datetime(2026, 3, 15, 9, 0),
    ))

    def _import(
        name: str,
        value: str,
        status: str,
        link: Optional[CreditApplication],
        day: int,
    ) -> Import:
        return import_repo.create(Import(
            user_id=importer.id,
            credit_application_id=link.id if link is not None else None,
            import_name=name,
            total_value=Decimal(value),
            status=status,
            created_at=datetime(2026, 2, day, 12, 0),
        ))

    return SampleData(
        importer=importer,
        other_importer=other,
        admin=users[3],
        financeira=users[4],
        super_admin=users[5],
        inactive=users[6],
        finalized=finalized,
        awaiting=awaiting,
        pending=pending,
        rejected=rejected,
        in_production=_import("Motores elétricos", "20000", ImportStatus.PRODUCTION, finalized, 1),
        completed=_import("Painéis solares", "10000", ImportStatus.COMPLETED, finalized, 2),
        at_sea=_import("Rolamentos", "5000", ImportStatus.MARITIME_TRANSPORT, finalized, 3),
        awaiting_planning=_import("Sensores", "7000", ImportStatus.PLANNING, awaiting, 4),
        unlinked=_import("Amostras", "3000", ImportStatus.PLANNING, None, 5),
    )
