"""
Credit Visibility Policies.

Each role sees a different "total approved" figure for the same set of
credit applications:

- FINANCEIRA: the original limit it approved, regardless of what the
  admin did afterwards.
- ADMIN: a live figure; the final limit once finalized, the original
  limit before that.
- IMPORTER (and every other role): only limits that are usable, i.e.
  financially approved and admin-finalized, valued at the final limit.

``policy_for`` resolves a role through an explicit table that covers
every ``UserRole``.  Adding a role without deciding its policy fails the
coverage test instead of silently falling through.
"""

from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from spark_comex.logger import StructuredLogger
from spark_comex.models.credit_application import CreditApplication
from spark_comex.models.enums import UserRole
from spark_comex.utils.numbers import ZERO, to_decimal

__all__ = [
    "AdminCreditPolicy",
    "CREDIT_POLICIES",
    "CreditPolicy",
    "FinanceiraCreditPolicy",
    "ImporterCreditPolicy",
    "policy_for",
]


class CreditPolicy:
    """Base policy: how much of one application a role counts as approved."""

    name: str = "base"

    def approved_amount(self, application: CreditApplication) -> Decimal:
        raise NotImplementedError

    def total_approved(self, applications: Iterable[CreditApplication]) -> Decimal:
        return sum(
            (self.approved_amount(app) for app in applications),
            ZERO,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class FinanceiraCreditPolicy(CreditPolicy):
    """Original limit of every financially approved application."""

    name = "financeira"

    def approved_amount(self, application: CreditApplication) -> Decimal:
        if not application.is_financially_approved:
            return ZERO
        return to_decimal(application.credit_limit)


class AdminCreditPolicy(CreditPolicy):
    """Final limit when finalized (falling back to the original), else original."""

    name = "admin"

    def approved_amount(self, application: CreditApplication) -> Decimal:
        if not application.is_financially_approved:
            return ZERO
        if application.is_finalized:
            return to_decimal(application.final_credit_limit, application.credit_limit)
        return to_decimal(application.credit_limit)


class ImporterCreditPolicy(CreditPolicy):
    """Final limit of applications that are approved and finalized."""

    name = "importer"

    def approved_amount(self, application: CreditApplication) -> Decimal:
        if not application.has_usable_limit:
            return ZERO
        return to_decimal(application.final_credit_limit)


_FINANCEIRA = FinanceiraCreditPolicy()
_ADMIN = AdminCreditPolicy()
_IMPORTER = ImporterCreditPolicy()

CREDIT_POLICIES: Mapping[UserRole, CreditPolicy] = MappingProxyType({
    UserRole.FINANCEIRA: _FINANCEIRA,
    UserRole.ADMIN: _ADMIN,
    UserRole.IMPORTER: _IMPORTER,
    UserRole.SUPER_ADMIN: _IMPORTER,
    UserRole.INACTIVE: _IMPORTER,
})


def policy_for(
    role: Optional[str],
    logger: Optional[StructuredLogger] = None,
) -> CreditPolicy:
    """Resolve the credit visibility policy for *role*.

    Unrecognised roles get the importer policy, the most restrictive
    view.  When *logger* is provided a warning is emitted for them.
    """
    policy = CREDIT_POLICIES.get(role)  # type: ignore[arg-type]
    if policy is None:
        if logger is not None:
            logger.warning(
                "Unrecognized role '%s' -- applying importer credit policy",
                role,
            )
        return _IMPORTER
    return policy
