"""
User Model.

Role is kept as a plain string: legacy rows may carry roles that are no
longer part of ``UserRole``, and those are treated as importers by the
credit policy table rather than failing validation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from spark_comex.models.base import RecordModel
from spark_comex.models.enums import UserRole


class User(RecordModel):
    """Represents a user account (importer, admin, financeira...)."""

    id: int
    email: str
    full_name: str = ""
    company_name: Optional[str] = None
    cnpj: Optional[str] = None
    role: str = UserRole.IMPORTER
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
