"""
Astro Sale - Royalty Registry

Default royalty bookkeeping: one receiver and a fee fraction in basis points
applied to every token's sale price.
"""

import logging
from threading import RLock
from typing import Optional, Tuple

from sale.access import normalize_address, ZERO_ADDRESS
from sale.exceptions import InvalidRoyalty

logger = logging.getLogger(__name__)

FEE_DENOMINATOR = 10000


class RoyaltyRegistry:
    """Default royalty configuration."""

    def __init__(self, receiver: Optional[str] = None, fee_bps: int = 0):
        self._receiver: Optional[str] = None
        self._fee_bps = 0
        self._lock = RLock()
        if receiver is not None:
            self.set_default_royalty(receiver, fee_bps)

    def set_default_royalty(self, receiver: str, fee_bps: int) -> Tuple[str, int]:
        if isinstance(fee_bps, bool) or not isinstance(fee_bps, int) or fee_bps < 0:
            raise InvalidRoyalty(f"Royalty fee must be a non-negative integer: {fee_bps!r}")
        if fee_bps > FEE_DENOMINATOR:
            raise InvalidRoyalty("Royalty fee will exceed sale price")
        try:
            receiver = normalize_address(receiver)
        except ValueError as e:
            raise InvalidRoyalty(f"Invalid royalty receiver: {e}") from e
        if receiver == ZERO_ADDRESS:
            raise InvalidRoyalty("Invalid royalty receiver: zero address")

        with self._lock:
            self._receiver = receiver
            self._fee_bps = fee_bps

        logger.debug(f"Default royalty set to {fee_bps} bps for {receiver}")
        return receiver, fee_bps

    def delete_default_royalty(self) -> None:
        with self._lock:
            self._receiver = None
            self._fee_bps = 0

    def default_royalty(self) -> Tuple[Optional[str], int]:
        with self._lock:
            return self._receiver, self._fee_bps

    def royalty_info(self, token_id: int, sale_price: int) -> Tuple[Optional[str], int]:
        """Receiver and royalty amount owed on a sale of `token_id` at `sale_price`."""
        if sale_price < 0:
            raise ValueError("Sale price cannot be negative")
        with self._lock:
            return self._receiver, sale_price * self._fee_bps // FEE_DENOMINATOR
