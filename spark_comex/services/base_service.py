"""
Base Service Class.

Minimal base class standardizing the logger pattern for all services.
Services extend this and add their own repository dependencies via __init__.
"""

from __future__ import annotations

from spark_comex.logger import StructuredLogger
from spark_comex.models.enums import UserRole
from spark_comex.models.service_models import ServiceResult
from spark_comex.models.user import User


class BaseService:
    """Base class for all service classes. Provides a logger."""

    def __init__(self, logger: StructuredLogger) -> None:
        self._logger: StructuredLogger = logger

    @staticmethod
    def _fail(error: str, status_code: int) -> ServiceResult:
        return ServiceResult(success=False, error=error, status_code=status_code)

    def _unexpected(self, action: str, exc: Exception) -> ServiceResult:
        """Log an unexpected failure with traceback and wrap it as a 500."""
        self._logger.error("Failed to %s: %s", action, exc, exc_info=True)
        return self._fail(f"Database error: {exc}", 500)

    @staticmethod
    def _is_inactive(current_user: User) -> bool:
        return current_user.role == UserRole.INACTIVE
