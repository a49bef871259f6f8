"""
Astro Sale - Exceptions

This module defines the error taxonomy for sale, reveal, royalty and fund operations.
Every error is a precondition violation raised before any state is changed.
"""

from typing import Optional


class SaleError(Exception):
    """Base exception for all sale engine errors."""
    pass


class Unauthorized(SaleError):
    """Raised when a non-administrator invokes an admin-only operation."""

    def __init__(self, caller: str, operation: Optional[str] = None):
        self.caller = caller
        self.operation = operation
        message = f"Caller {caller} is not the owner"
        if operation:
            message += f" (operation: {operation})"
        super().__init__(message)


class InvalidQuantity(SaleError):
    """Raised when a mint quantity is outside [1, max purchase per transaction]."""

    def __init__(self, quantity: int, maximum: int):
        self.quantity = quantity
        self.maximum = maximum
        super().__init__(f"Requested number {quantity} must be between 1 and {maximum}")


class SupplyExceeded(SaleError):
    """Raised when minting would push the supply counter above the cap."""

    def __init__(self, requested: int, total_minted: int, max_supply: int):
        self.requested = requested
        self.total_minted = total_minted
        self.max_supply = max_supply
        self.remaining = max_supply - total_minted
        super().__init__(
            f"Minting {requested} would exceed max supply "
            f"(minted: {total_minted}, maximum: {max_supply}, remaining: {self.remaining})"
        )


class IncorrectPayment(SaleError):
    """Raised when the attached payment is not exactly unit price times quantity."""

    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(f"Value sent is not correct: expected {expected}, received {received}")


class MetadataFrozen(SaleError):
    """Raised when metadata is changed after it has been frozen."""

    def __init__(self, field_name: Optional[str] = None):
        self.field_name = field_name
        message = "Metadata is frozen"
        if field_name:
            message += f", cannot change {field_name}"
        super().__init__(message)


class NonexistentToken(SaleError):
    """Raised when querying a token id that has not been minted."""

    def __init__(self, token_id: int):
        self.token_id = token_id
        super().__init__(f"URI query for nonexistent token {token_id}")


class SaleNotActive(SaleError):
    """Raised by operations that require an open sale window."""
    pass


class InvalidDuration(SaleError, ValueError):
    """Raised when a sale window duration is not a positive integer."""
    pass


class InvalidRoyalty(SaleError, ValueError):
    """Raised when a royalty receiver or fee is rejected."""
    pass


class InvalidAddress(SaleError, ValueError):
    """Raised when an account address is malformed or the zero address."""
    pass


class InsufficientBalance(SaleError):
    """Raised when a ledger payout exceeds the sender's balance."""

    def __init__(self, account: str, required: int, available: int):
        self.account = account
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient balance for {account}: required {required}, available {available}"
        )


class StorageError(SaleError):
    """Raised when the persisted sale state cannot be read or written."""
    pass
