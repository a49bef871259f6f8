"""
Astro Sale - Access Control

Caller identity is passed explicitly into every operation as a CallContext and
checked at the operation boundary against the single administrator account.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .exceptions import InvalidAddress, Unauthorized

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40

_ADDRESS_RE = re.compile(r'^0x[a-fA-F0-9]{40}$')


def normalize_address(address: str) -> str:
    """Validate an account address and return its lowercase form."""
    if not isinstance(address, str) or not _ADDRESS_RE.match(address):
        raise InvalidAddress(f"Address must be a 0x-prefixed 40 hex digit string: {address!r}")
    return address.lower()


def require_nonzero(address: str, role: str = "address") -> str:
    """Normalize an address and reject the zero address."""
    address = normalize_address(address)
    if address == ZERO_ADDRESS:
        raise InvalidAddress(f"Invalid {role}: zero address")
    return address


@dataclass(frozen=True)
class CallContext:
    """Identity of the account invoking an operation."""

    sender: str

    def __post_init__(self):
        object.__setattr__(self, "sender", normalize_address(self.sender))


class AccessControl:
    """Single-owner access control."""

    def __init__(self, owner: Optional[str]):
        self._owner: Optional[str] = None
        if owner is not None:
            self._owner = require_nonzero(owner, "owner")

    @property
    def owner(self) -> Optional[str]:
        return self._owner

    def is_admin(self, ctx: CallContext) -> bool:
        return self._owner is not None and ctx.sender == self._owner

    def require_admin(self, ctx: CallContext, operation: Optional[str] = None) -> None:
        """Raise Unauthorized unless the caller is the administrator."""
        if not self.is_admin(ctx):
            logger.warning(f"Rejected {operation or 'admin operation'} from {ctx.sender}")
            raise Unauthorized(ctx.sender, operation)

    def transfer_ownership(self, ctx: CallContext, new_owner: str) -> str:
        self.require_admin(ctx, "transfer_ownership")
        new_owner = require_nonzero(new_owner, "new owner")
        previous, self._owner = self._owner, new_owner
        logger.info(f"Ownership transferred from {previous} to {new_owner}")
        return previous

    def renounce_ownership(self, ctx: CallContext) -> str:
        """Drop the administrator; every admin operation fails afterwards."""
        self.require_admin(ctx, "renounce_ownership")
        previous, self._owner = self._owner, None
        logger.info(f"Ownership renounced by {previous}")
        return previous
