"""
User Repository.

Handles user data access via Supabase (primary) and SQLite (offline cache).
"""

from __future__ import annotations

from typing import Optional

from spark_comex.models.enums import UserRole
from spark_comex.models.user import User
from spark_comex.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository):
    """Data access layer for User entities.

    Users are never hard-deleted: an ``inactive`` role keeps their credit
    applications and imports attributable.
    """

    TABLE = "users"
    COLUMNS = (
        "id",
        "email",
        "full_name",
        "company_name",
        "cnpj",
        "role",
        "created_at",
        "updated_at",
    )

    def get_by_id(self, user_id: int) -> Optional[User]:
        """Fetch a user by primary key. Tries Supabase first, falls back to SQLite."""
        def _supabase() -> Optional[User]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("id", user_id)
                .maybe_single()
                .execute()
            )
            return User.model_validate(response.data) if response and response.data else None

        def _sqlite() -> Optional[User]:
            rows = self._select_local("id = ?", (user_id,), order_by="")
            return User.model_validate(rows[0]) if rows else None

        return self._execute_with_fallback(
            supabase_op=_supabase,
            sqlite_op=_sqlite,
            default_factory=lambda: None,
            operation_name="get_by_id (users)",
            on_supabase_success=self._cache_to_sqlite,
        )

    def get_by_email(self, email: str) -> Optional[User]:
        """Fetch a user by email address (case-insensitive)."""
        normalized_email = email.strip().lower()

        def _supabase() -> Optional[User]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("email", normalized_email)
                .maybe_single()
                .execute()
            )
            return User.model_validate(response.data) if response and response.data else None

        def _sqlite() -> Optional[User]:
            rows = self._select_local("lower(email) = ?", (normalized_email,), order_by="")
            return User.model_validate(rows[0]) if rows else None

        return self._execute_with_fallback(
            supabase_op=_supabase,
            sqlite_op=_sqlite,
            default_factory=lambda: None,
            operation_name="get_by_email (users)",
            on_supabase_success=self._cache_to_sqlite,
        )

    def get_all(self, role: Optional[str] = None) -> list[User]:
        """Fetch all users, optionally restricted to one role."""
        def _supabase() -> list[User]:
            query = self.supabase.table(self.TABLE).select("*")
            if role is not None:
                query = query.eq("role", str(role))
            response = query.order("id").execute()
            return [User.model_validate(row) for row in response.data]

        def _sqlite() -> list[User]:
            if role is None:
                rows = self._select_local(order_by="id")
            else:
                rows = self._select_local("role = ?", (str(role),), order_by="id")
            return [User.model_validate(row) for row in rows]

        return self._execute_with_fallback(
            supabase_op=_supabase,
            sqlite_op=_sqlite,
            default_factory=list,
            operation_name="get_all (users)",
            on_supabase_success=lambda users: [self._cache_to_sqlite(u) for u in users],
        )

    def count_importers(self) -> int:
        return len(self.get_all(role=UserRole.IMPORTER))

    def upsert(self, user: User) -> User:
        """Insert or update a user. Writes to Supabase and caches to SQLite."""
        data = user.model_dump(mode="json")
        try:
            response = self.supabase.table(self.TABLE).upsert(data).execute()
            result = User.model_validate(response.data[0])
            self._cache_to_sqlite(result)
            self._logger.info("User upserted: %s", result.id)
            return result
        except Exception as exc:
            self._logger.error("Failed to upsert user to Supabase: %s", exc)
            self._cache_to_sqlite(user)
            self._queue_pending_sync("upsert", user.id, data)
            return user

    def _cache_to_sqlite(self, user: User) -> None:
        """Write *user* to the local cache for offline access."""
        self._upsert_local(user.model_dump())
