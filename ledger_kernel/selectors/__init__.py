"""Read-only query selectors."""

from ledger_kernel.selectors.base import BaseSelector
from ledger_kernel.selectors.trial_balance_selector import TrialBalanceSelector

__all__ = ["BaseSelector", "TrialBalanceSelector"]
