"""
Astro Sale - Balance Ledger

Account balances for mint payments and withdrawals. Payouts settle every
balance change before any receiving party is notified.
"""

import logging
from threading import RLock
from typing import Callable, Dict, List, Optional, Tuple

from sale.access import normalize_address
from sale.exceptions import InsufficientBalance

logger = logging.getLogger(__name__)

# Called as hook(sender, receiver, amount) after a payout has settled
ReceiveHook = Callable[[str, str, int], None]


class BalanceLedger:
    """In-process value-transfer ledger."""

    def __init__(self, balances: Optional[Dict[str, int]] = None):
        self._balances: Dict[str, int] = {}
        self._hooks: Dict[str, ReceiveHook] = {}
        self._lock = RLock()
        for account, amount in (balances or {}).items():
            self.credit(account, amount)

    def balance_of(self, account: str) -> int:
        account = normalize_address(account)
        with self._lock:
            return self._balances.get(account, 0)

    def credit(self, account: str, amount: int) -> int:
        """Add value arriving from outside the ledger (e.g. a call's attached payment)."""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise ValueError(f"Credit amount must be a non-negative integer: {amount!r}")
        account = normalize_address(account)
        with self._lock:
            self._balances[account] = self._balances.get(account, 0) + amount
            return self._balances[account]

    def register_receive_hook(self, account: str, hook: Optional[ReceiveHook]) -> None:
        account = normalize_address(account)
        with self._lock:
            if hook is None:
                self._hooks.pop(account, None)
            else:
                self._hooks[account] = hook

    def payout(self, sender: str, payouts: List[Tuple[str, int]]) -> List[Tuple[str, int]]:
        """
        Move value from `sender` to each receiver in one settlement.

        All debits and credits are applied before any receive hook runs, so
        a hook that calls back into the sender observes the final balances.

        Args:
            sender: Paying account
            payouts: (receiver, amount) pairs

        Returns:
            The normalized (receiver, amount) pairs that were paid
        """
        sender = normalize_address(sender)
        settled = []
        for receiver, amount in payouts:
            if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
                raise ValueError(f"Payout amount must be a non-negative integer: {amount!r}")
            settled.append((normalize_address(receiver), amount))

        total = sum(amount for _, amount in settled)

        with self._lock:
            available = self._balances.get(sender, 0)
            if total > available:
                raise InsufficientBalance(sender, total, available)

            self._balances[sender] = available - total
            for receiver, amount in settled:
                self._balances[receiver] = self._balances.get(receiver, 0) + amount
            hooks = [(self._hooks.get(receiver), receiver, amount) for receiver, amount in settled]

        logger.debug(f"Settled payout of {total} from {sender} to {len(settled)} receivers")

        for hook, receiver, amount in hooks:
            if hook is not None and amount > 0:
                hook(sender, receiver, amount)

        return settled

    def balances(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._balances)
