"""
Role Helpers.

Display names and coarse permission checks shared by the services.
Roles are compared as strings so legacy values never raise.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from spark_comex.models.enums import UserRole

ROLE_DISPLAY_NAMES: Mapping[UserRole, str] = MappingProxyType({
    UserRole.SUPER_ADMIN: "Super Administrador",
    UserRole.ADMIN: "Administrador",
    UserRole.FINANCEIRA: "Financeira",
    UserRole.IMPORTER: "Importador",
    UserRole.INACTIVE: "Inativo",
})

_ADMIN_ROLES: frozenset[UserRole] = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})
_FINANCEIRA_VIEW_ROLES: frozenset[UserRole] = _ADMIN_ROLES | {UserRole.FINANCEIRA}


def role_display_name(role: Optional[str]) -> str:
    return ROLE_DISPLAY_NAMES.get(role, "Usuário")  # type: ignore[arg-type]


def has_admin_access(role: Optional[str]) -> bool:
    return role in _ADMIN_ROLES


def can_view_all_credit(role: Optional[str]) -> bool:
    """Admin, super admin and financeira see every importer's applications."""
    return role in _FINANCEIRA_VIEW_ROLES
