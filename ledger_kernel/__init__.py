"""
Ledger Kernel

The double-entry ledger and accounting-period lifecycle engine of a
multi-tenant accounting backend:
- Draft creation and posting of balanced journal entries
- Accounting period create / close / reopen / delete
- Trial balance aggregation over posted lines
- Best-effort batch posting with per-item failure reporting
- Append-only audit log for every mutation
"""

__version__ = "0.1.0"
