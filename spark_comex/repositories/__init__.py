"""Repository layer: Supabase-first data access with a SQLite cache."""

from spark_comex.repositories.base_repository import BaseRepository
from spark_comex.repositories.credit_application_repository import (
    CreditApplicationRepository,
)
from spark_comex.repositories.import_repository import ImportRepository
from spark_comex.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "CreditApplicationRepository",
    "ImportRepository",
    "UserRepository",
]
