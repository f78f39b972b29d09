"""
Module: ledger_kernel.db.types
Responsibility: Column types that keep money exact and timestamps in UTC on
    every supported backend.
Architecture position: Kernel > DB.  Imported by db/base.py (type map),
    db/engine.py (SQLite aggregate) and selectors/ (money_sum).  MUST NOT
    import from models/, services/ or selectors/.

Invariants enforced:
    - Money round-trips exactly.  PostgreSQL stores NUMERIC(38, 9); SQLite
      has no decimal storage class, so amounts are stored as TEXT and summed
      with the ``decimal_sum`` aggregate instead of the float-based SUM.
    - Timestamps are written as UTC and read back as aware UTC datetimes.
      A naive value is taken to be UTC already.
"""

from datetime import UTC, datetime
from decimal import Decimal, localcontext

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement
from sqlalchemy.types import TypeDecorator

MONEY_PRECISION = 38
MONEY_SCALE = 9


class Money(TypeDecorator):
    """Exact Decimal column: NUMERIC(38, 9), or TEXT on SQLite."""

    impl = Numeric(MONEY_PRECISION, MONEY_SCALE, asdecimal=True)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(MONEY_PRECISION + 2))
        return dialect.type_descriptor(
            Numeric(MONEY_PRECISION, MONEY_SCALE, asdecimal=True)
        )

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            return format(Decimal(value), "f")
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, Decimal):
            return value
        return Decimal(str(value))


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime normalized to UTC on write and on read."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


# ---------------------------------------------------------------------------
# Exact SUM over Money columns
# ---------------------------------------------------------------------------


class money_sum(FunctionElement):
    """``SUM(column)`` that stays exact: plain SUM, or decimal_sum on SQLite."""

    type = Money()
    name = "money_sum"
    inherit_cache = True


@compiles(money_sum)
def _compile_money_sum(element, compiler, **kw):
    return f"sum({compiler.process(element.clauses, **kw)})"


@compiles(money_sum, "sqlite")
def _compile_money_sum_sqlite(element, compiler, **kw):
    return f"decimal_sum({compiler.process(element.clauses, **kw)})"


class SQLiteDecimalSum:
    """
    SQLite aggregate registered as ``decimal_sum(x)``.

    Sums TEXT amounts with Decimal arithmetic and returns TEXT; like SUM,
    it yields NULL when every input is NULL.
    """

    def __init__(self):
        self._total: Decimal | None = None

    def step(self, value) -> None:
        if value is None:
            return
        amount = Decimal(str(value))
        if self._total is None:
            self._total = amount
            return
        with localcontext() as ctx:
            ctx.prec = 2 * MONEY_PRECISION
            self._total += amount

    def finalize(self) -> str | None:
        return None if self._total is None else str(self._total)
