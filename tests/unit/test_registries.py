"""
Unit tests for the token registry, royalty registry and balance ledger.
"""

import pytest

from registry.ledger import BalanceLedger
from registry.royalty import RoyaltyRegistry
from registry.tokens import TokenRegistry
from sale.access import ZERO_ADDRESS
from sale.exceptions import InsufficientBalance, InvalidAddress, InvalidRoyalty, NonexistentToken

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
VAULT = "0x" + "c3" * 20


class TestTokenRegistry:
    """Test token ownership bookkeeping."""

    @pytest.fixture
    def tokens(self):
        return TokenRegistry()

    def test_empty_registry(self, tokens):
        """Test a new registry has no tokens."""
        assert tokens.total_minted() == 0
        assert not tokens.exists(0)
        assert tokens.balance_of(ALICE) == 0

    def test_mint_batch(self, tokens):
        """Test a batch registers every id to the owner."""
        assert tokens.mint_batch(ALICE, range(3)) == [0, 1, 2]

        assert tokens.total_minted() == 3
        assert tokens.owner_of(2) == ALICE
        assert tokens.balance_of(ALICE) == 3
        assert tokens.tokens_of_owner(ALICE) == [0, 1, 2]

    def test_owner_of_unknown_token(self, tokens):
        """Test unknown ids raise NonexistentToken."""
        with pytest.raises(NonexistentToken):
            tokens.owner_of(5)

    @pytest.mark.parametrize("token_id", [True, False, "0", 1.0, -1, None])
    def test_non_integer_ids_do_not_exist(self, tokens, token_id):
        """Test bools, strings, floats and negatives never match a minted token."""
        tokens.mint_batch(ALICE, range(2))

        assert not tokens.exists(token_id)
        with pytest.raises(NonexistentToken):
            tokens.owner_of(token_id)

    def test_duplicate_id_rejects_whole_batch(self, tokens):
        """Test a batch with an already minted id registers nothing."""
        tokens.mint_batch(ALICE, [0])

        with pytest.raises(ValueError):
            tokens.mint_batch(BOB, [1, 0])

        assert tokens.total_minted() == 1
        assert not tokens.exists(1)
        assert tokens.balance_of(BOB) == 0

    def test_repeated_id_in_batch(self, tokens):
        """Test a batch cannot repeat an id."""
        with pytest.raises(ValueError):
            tokens.mint_batch(ALICE, [4, 4])

        assert tokens.total_minted() == 0

    def test_mint_to_zero_address(self, tokens):
        """Test minting to the zero address is rejected."""
        with pytest.raises(InvalidAddress):
            tokens.mint_batch(ZERO_ADDRESS, [0])

    def test_owners_round_trip(self, tokens):
        """Test rebuilding a registry from its ordered owners."""
        tokens.mint_batch(ALICE, [0, 1])
        tokens.mint_batch(BOB, [2])

        rebuilt = TokenRegistry.from_owners(tokens.owners_in_order())

        assert rebuilt.owners_in_order() == [ALICE, ALICE, BOB]
        assert rebuilt.balance_of(BOB) == 1


class TestRoyaltyRegistry:
    """Test default royalty configuration."""

    def test_initial_royalty(self):
        """Test construction sets the default royalty."""
        royalty = RoyaltyRegistry(ALICE, 750)

        assert royalty.default_royalty() == (ALICE, 750)

    def test_royalty_info(self):
        """Test royalty amounts use basis points of the sale price."""
        royalty = RoyaltyRegistry(ALICE, 750)

        assert royalty.royalty_info(0, 10000) == (ALICE, 750)
        assert royalty.royalty_info(1, 1_000_000_000_000_000_000) == (ALICE, 75_000_000_000_000_000)
        assert royalty.royalty_info(1, 99) == (ALICE, 7)

    def test_fee_above_sale_price(self):
        """Test fees above 100% are rejected."""
        royalty = RoyaltyRegistry(ALICE, 500)

        with pytest.raises(InvalidRoyalty):
            royalty.set_default_royalty(BOB, 10001)

        assert royalty.default_royalty() == (ALICE, 500)

    @pytest.mark.parametrize("receiver", [ZERO_ADDRESS, "not-an-address"])
    def test_invalid_receiver(self, receiver):
        """Test zero and malformed receivers are rejected."""
        royalty = RoyaltyRegistry()

        with pytest.raises(InvalidRoyalty):
            royalty.set_default_royalty(receiver, 100)

    def test_delete_default_royalty(self):
        """Test deleting clears receiver and fee."""
        royalty = RoyaltyRegistry(ALICE, 750)
        royalty.delete_default_royalty()

        assert royalty.royalty_info(0, 1000) == (None, 0)


class TestBalanceLedger:
    """Test ledger credits and payouts."""

    def test_credit_and_balance(self):
        """Test credits accumulate per account."""
        ledger = BalanceLedger()
        ledger.credit(VAULT, 100)
        ledger.credit(VAULT, 50)

        assert ledger.balance_of(VAULT) == 150
        assert ledger.balance_of(ALICE) == 0

    def test_credit_rejects_negative(self):
        """Test negative credits are rejected."""
        with pytest.raises(ValueError):
            BalanceLedger().credit(VAULT, -1)

    def test_payout(self):
        """Test payouts move value to every receiver."""
        ledger = BalanceLedger({VAULT: 100})

        settled = ledger.payout(VAULT, [(ALICE, 30), (BOB, 70)])

        assert settled == [(ALICE, 30), (BOB, 70)]
        assert ledger.balance_of(VAULT) == 0
        assert ledger.balance_of(ALICE) == 30
        assert ledger.balance_of(BOB) == 70

    def test_payout_insufficient_balance(self):
        """Test an oversized payout changes nothing."""
        ledger = BalanceLedger({VAULT: 100})

        with pytest.raises(InsufficientBalance) as exc_info:
            ledger.payout(VAULT, [(ALICE, 60), (BOB, 60)])

        assert exc_info.value.required == 120
        assert exc_info.value.available == 100
        assert ledger.balances() == {VAULT: 100}

    def test_hooks_run_after_settlement(self):
        """Test receive hooks observe settled balances."""
        ledger = BalanceLedger({VAULT: 100})
        observed = []

        def hook(sender, receiver, amount):
            observed.append((ledger.balance_of(sender), ledger.balance_of(BOB), amount))

        ledger.register_receive_hook(ALICE, hook)
        ledger.payout(VAULT, [(ALICE, 40), (BOB, 60)])

        assert observed == [(0, 60, 40)]

    def test_remove_hook(self):
        """Test a hook can be unregistered."""
        ledger = BalanceLedger({VAULT: 10})
        calls = []
        ledger.register_receive_hook(ALICE, lambda *args: calls.append(args))
        ledger.register_receive_hook(ALICE, None)

        ledger.payout(VAULT, [(ALICE, 10)])

        assert calls == []
