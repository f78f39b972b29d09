"""
Balance arithmetic for journal lines.

Pure checks with no I/O, shared by JournalPostingService at create and at
post time.  Amounts must be Decimal; comparison is exact (no tolerance).
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal, localcontext
from typing import Any, Protocol

from ledger_kernel.exceptions import UnbalancedEntryError, ValidationError

# Twice the digits of a NUMERIC(38, 9) amount: sums never round
_SUM_PRECISION = 76


class HasAmounts(Protocol):
    debit: Decimal
    credit: Decimal


def require_decimal(value: Any, name: str = "amount") -> Decimal:
    """Return value if it is a finite Decimal; raise ValidationError otherwise."""
    if isinstance(value, bool) or not isinstance(value, Decimal):
        raise ValidationError(name, f"must be Decimal, not {type(value).__name__}")
    if not value.is_finite():
        raise ValidationError(name, "must be finite")
    return value


def totals(lines: Iterable[HasAmounts]) -> tuple[Decimal, Decimal]:
    """Sum debits and credits independently."""
    debits = Decimal("0")
    credits = Decimal("0")
    with localcontext() as ctx:
        ctx.prec = _SUM_PRECISION
        for line in lines:
            debits += line.debit
            credits += line.credit
    return debits, credits


def validate_line_amounts(lines: Iterable[HasAmounts]) -> None:
    """Every amount is a non-negative Decimal."""
    for index, line in enumerate(lines):
        for side in ("debit", "credit"):
            amount = require_decimal(getattr(line, side), f"lines[{index}].{side}")
            if amount < 0:
                raise ValidationError(f"lines[{index}].{side}", "must not be negative")


def ensure_balanced(lines: Iterable[HasAmounts]) -> tuple[Decimal, Decimal]:
    """Raise UnbalancedEntryError unless sum(debit) == sum(credit)."""
    debits, credits = totals(lines)
    if debits != credits:
        raise UnbalancedEntryError(str(debits), str(credits))
    return debits, credits
