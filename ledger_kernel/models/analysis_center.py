"""
Module: ledger_kernel.models.analysis_center
Responsibility: ORM persistence for cost / revenue centers used to tag journal
    lines for analytical breakdowns.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - A journal line may only reference a center that exists, is active, and
      belongs to the line's company (enforced by AnalysisCenterValidator).
    - Centers are deactivated, never deleted, once referenced (FK RESTRICT).
"""

from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, UUIDString


class AnalysisCenterType(str, Enum):
    """Whether the center collects costs or revenues."""

    COST = "cost"
    REVENUE = "revenue"


class AnalysisCenter(TrackedBase):
    """Cost or revenue center owned by a company."""

    __tablename__ = "analysis_centers"

    __table_args__ = (
        Index("idx_analysis_center_company", "company_id", "code"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=False,
    )

    code: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    center_type: Mapped[AnalysisCenterType] = mapped_column(
        String(20),
        default=AnalysisCenterType.COST,
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AnalysisCenter {self.code}: {'active' if self.is_active else 'inactive'}>"
