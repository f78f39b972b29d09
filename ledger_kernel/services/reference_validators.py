"""
Reference validators -- existence checks for the ids a journal references.

Both validators collect every offending id before raising, so a caller
fixing a rejected entry sees all problems at once rather than one per
attempt.  They are read-only and take no locks.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.exceptions import (
    AccountsNotFoundError,
    CompanyNotFoundError,
    InvalidAnalysisCentersError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.analysis_center import AnalysisCenter
from ledger_kernel.models.company import Company

logger = get_logger("services.reference_validators")


def _distinct(ids: Iterable[UUID | None]) -> list[UUID]:
    seen: dict[UUID, None] = {}
    for value in ids:
        if value is not None:
            seen.setdefault(value, None)
    return list(seen)


class AccountExistenceValidator:
    """Confirms referenced accounts exist for the company."""

    def __init__(self, session: Session):
        self.session = session

    def validate(self, company_id: UUID, account_ids: Iterable[UUID]) -> None:
        """
        Raise AccountsNotFoundError listing every missing id.

        An account that exists but belongs to another company counts as
        missing.
        """
        wanted = _distinct(account_ids)
        if not wanted:
            return

        found = set(
            self.session.execute(
                select(Account.id).where(
                    Account.company_id == company_id,
                    Account.id.in_(wanted),
                )
            ).scalars()
        )
        missing = [str(account_id) for account_id in wanted if account_id not in found]
        if missing:
            logger.warning(
                "accounts_not_found",
                extra={"company_id": str(company_id), "account_ids": missing},
            )
            raise AccountsNotFoundError(str(company_id), missing)


class AnalysisCenterValidator:
    """Confirms referenced analysis centers exist, are active and belong to the company."""

    def __init__(self, session: Session):
        self.session = session

    def validate(
        self,
        company_id: UUID,
        analysis_center_ids: Iterable[UUID | None],
    ) -> None:
        """Raise InvalidAnalysisCentersError listing every invalid id."""
        wanted = _distinct(analysis_center_ids)
        if not wanted:
            return

        valid = set(
            self.session.execute(
                select(AnalysisCenter.id).where(
                    AnalysisCenter.company_id == company_id,
                    AnalysisCenter.is_active.is_(True),
                    AnalysisCenter.id.in_(wanted),
                )
            ).scalars()
        )
        invalid = [str(center_id) for center_id in wanted if center_id not in valid]
        if invalid:
            logger.warning(
                "analysis_centers_invalid",
                extra={"company_id": str(company_id), "analysis_center_ids": invalid},
            )
            raise InvalidAnalysisCentersError(str(company_id), invalid)


class CompanyExistenceValidator:
    """Confirms a company exists."""

    def __init__(self, session: Session):
        self.session = session

    def validate(self, company_id: UUID) -> None:
        if self.session.get(Company, company_id) is None:
            raise CompanyNotFoundError(str(company_id))
