"""
Unit tests for call contexts and access control.
"""

import pytest

from sale.access import (
    AccessControl, CallContext, ZERO_ADDRESS, normalize_address, require_nonzero
)
from sale.exceptions import InvalidAddress, Unauthorized

OWNER = "0x" + "a1" * 20
STRANGER = "0x" + "b2" * 20


class TestAddresses:
    """Test address validation helpers."""

    def test_normalize_lowercases(self):
        """Test mixed case addresses are normalized."""
        address = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

        assert normalize_address(address) == address.lower()

    @pytest.mark.parametrize("address", ["", "0x123", "70997970c51812dc3a010c7d01b50e0d17dc79c8",
                                         "0x" + "g" * 40, None])
    def test_normalize_rejects_malformed(self, address):
        """Test malformed addresses are rejected."""
        with pytest.raises(InvalidAddress):
            normalize_address(address)

    def test_require_nonzero(self):
        """Test the zero address is rejected."""
        with pytest.raises(InvalidAddress):
            require_nonzero(ZERO_ADDRESS)

        assert require_nonzero(OWNER) == OWNER

    def test_call_context_normalizes_sender(self):
        """Test CallContext stores a normalized sender."""
        ctx = CallContext(OWNER.upper().replace("0X", "0x"))

        assert ctx.sender == OWNER


class TestAccessControl:
    """Test single-owner access control."""

    @pytest.fixture
    def access(self):
        return AccessControl(OWNER)

    def test_owner_is_admin(self, access):
        """Test only the owner passes the admin check."""
        assert access.is_admin(CallContext(OWNER))
        assert not access.is_admin(CallContext(STRANGER))

        access.require_admin(CallContext(OWNER))

    def test_stranger_is_rejected(self, access):
        """Test a non-owner gets Unauthorized with caller details."""
        with pytest.raises(Unauthorized) as exc_info:
            access.require_admin(CallContext(STRANGER), "withdraw")

        assert exc_info.value.caller == STRANGER
        assert exc_info.value.operation == "withdraw"
        assert "not the owner" in str(exc_info.value)

    def test_transfer_ownership(self, access):
        """Test ownership moves to the new owner."""
        previous = access.transfer_ownership(CallContext(OWNER), STRANGER)

        assert previous == OWNER
        assert access.owner == STRANGER
        assert not access.is_admin(CallContext(OWNER))

    def test_transfer_ownership_to_zero(self, access):
        """Test ownership cannot go to the zero address."""
        with pytest.raises(InvalidAddress):
            access.transfer_ownership(CallContext(OWNER), ZERO_ADDRESS)

        assert access.owner == OWNER

    def test_transfer_ownership_requires_owner(self, access):
        """Test only the owner can transfer ownership."""
        with pytest.raises(Unauthorized):
            access.transfer_ownership(CallContext(STRANGER), STRANGER)

    def test_renounce_ownership(self, access):
        """Test renouncing leaves no administrator."""
        access.renounce_ownership(CallContext(OWNER))

        assert access.owner is None
        with pytest.raises(Unauthorized):
            access.require_admin(CallContext(OWNER))

    def test_ownerless_control(self):
        """Test an ownerless control rejects everyone."""
        access = AccessControl(None)

        assert access.owner is None
        assert not access.is_admin(CallContext(OWNER))
