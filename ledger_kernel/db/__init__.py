"""Database layer - engine, base classes, unit of work and immutability."""

from ledger_kernel.db.base import Base, TrackedBase, UUIDString
from ledger_kernel.db.types import Money, UTCDateTime, money_sum
from ledger_kernel.db.engine import (
    UnitOfWork,
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    transaction_scope,
)
from ledger_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "get_session_factory",
    "create_tables",
    "drop_tables",
    "transaction_scope",
    "UnitOfWork",
    "Base",
    "TrackedBase",
    "UUIDString",
    "Money",
    "UTCDateTime",
    "money_sum",
    "register_immutability_listeners",
    "unregister_immutability_listeners",
]
