"""
Astro Sale - Token Registry

In-process unique-asset registry: sequential token ids, ownership, balances
and per-owner enumeration.
"""

import logging
from collections import defaultdict
from threading import RLock
from typing import Dict, Iterable, List

from sale.access import require_nonzero
from sale.exceptions import NonexistentToken

logger = logging.getLogger(__name__)


def _is_token_id(token_id) -> bool:
    return not isinstance(token_id, bool) and isinstance(token_id, int) and token_id >= 0


class TokenRegistry:
    """Registry of minted tokens and their owners."""

    def __init__(self):
        self._owners: Dict[int, str] = {}
        self._owned: Dict[str, List[int]] = defaultdict(list)
        self._lock = RLock()

    def total_minted(self) -> int:
        with self._lock:
            return len(self._owners)

    def exists(self, token_id: int) -> bool:
        if not _is_token_id(token_id):
            return False
        with self._lock:
            return token_id in self._owners

    def owner_of(self, token_id: int) -> str:
        if not _is_token_id(token_id):
            raise NonexistentToken(token_id)
        with self._lock:
            owner = self._owners.get(token_id)
        if owner is None:
            raise NonexistentToken(token_id)
        return owner

    def balance_of(self, owner: str) -> int:
        owner = require_nonzero(owner, "owner")
        with self._lock:
            return len(self._owned.get(owner, []))

    def tokens_of_owner(self, owner: str) -> List[int]:
        owner = require_nonzero(owner, "owner")
        with self._lock:
            return list(self._owned.get(owner, []))

    def mint_batch(self, owner: str, token_ids: Iterable[int]) -> List[int]:
        """
        Register a batch of new token ids to `owner`.

        Every id is checked before any is registered, so a rejected batch
        leaves the registry untouched.

        Args:
            owner: Receiving account
            token_ids: New, unused token ids

        Returns:
            The registered ids
        """
        owner = require_nonzero(owner, "mint recipient")
        token_ids = list(token_ids)

        with self._lock:
            if len(set(token_ids)) != len(token_ids):
                raise ValueError("Duplicate token ids in mint batch")
            for token_id in token_ids:
                if not _is_token_id(token_id):
                    raise ValueError(f"Token id must be a non-negative integer: {token_id!r}")
                if token_id in self._owners:
                    raise ValueError(f"Token {token_id} already minted")

            for token_id in token_ids:
                self._owners[token_id] = owner
                self._owned[owner].append(token_id)

        logger.debug(f"Minted tokens {token_ids} to {owner}")
        return token_ids

    def owners_in_order(self) -> List[str]:
        """Owners of tokens 0..n-1; ids are expected to be contiguous."""
        with self._lock:
            return [self._owners[i] for i in range(len(self._owners))]

    @classmethod
    def from_owners(cls, owners: List[str]) -> 'TokenRegistry':
        registry = cls()
        for token_id, owner in enumerate(owners):
            registry.mint_batch(owner, [token_id])
        return registry
