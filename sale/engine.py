"""
Astro Sale - Sale & Reveal Engine

This module implements the SaleEngine, the state machine that governs the
public sale window, minting with exact payment and capped supply, the
hidden-to-revealed metadata transition and its permanent freeze, default
royalties and withdrawal of collected funds.

Every operation runs under a single re-entrant lock and checks all of its
preconditions before mutating any state.
"""

import hashlib
import logging
from threading import RLock
from typing import Any, Dict, List, Optional, Tuple

from registry.ledger import BalanceLedger
from registry.royalty import FEE_DENOMINATOR, RoyaltyRegistry
from registry.tokens import TokenRegistry

from .access import AccessControl, CallContext, normalize_address
from .clock import Clock, SystemClock
from .events import EventLog, EventType, SaleEvent
from .exceptions import (
    IncorrectPayment, InvalidQuantity, NonexistentToken, SaleError,
    SaleNotActive, SupplyExceeded
)
from .reveal import RevealMetadata, RevealState
from .schema import (
    CollectionConfig, RevealSnapshot, RoyaltySnapshot, SaleSnapshot, WindowSnapshot
)
from .window import SaleWindow

logger = logging.getLogger(__name__)


def derive_engine_address(owner: str, name: str, symbol: str) -> str:
    """Deterministic account address holding a collection's funds."""
    data = f"{owner.lower()}{name}{symbol}".encode('utf-8')
    return "0x" + hashlib.sha256(data).hexdigest()[:40]


class SaleEngine:
    """Sale & reveal state machine for one collection."""

    def __init__(
        self,
        config: CollectionConfig,
        owner: Optional[str],
        clock: Optional[Clock] = None,
        address: Optional[str] = None,
        tokens: Optional[TokenRegistry] = None,
        royalty: Optional[RoyaltyRegistry] = None,
        ledger: Optional[BalanceLedger] = None,
        events: Optional[EventLog] = None,
    ):
        self.config = config
        self.clock = clock or SystemClock()
        self.access = AccessControl(owner)
        self.address = normalize_address(
            address or derive_engine_address(owner or "", config.name, config.symbol)
        )

        self.window = SaleWindow(reveal_delay_seconds=config.reveal_delay_seconds)
        self.metadata = RevealMetadata(
            hidden_metadata_uri=config.hidden_metadata_uri,
            uri_suffix=config.base_extension,
            contract_uri=config.contract_uri,
        )
        self.tokens = tokens if tokens is not None else TokenRegistry()
        if royalty is None:
            royalty = RoyaltyRegistry(config.payee_address, config.royalty_fee_bps)
        self.royalty = royalty
        self.ledger = ledger if ledger is not None else BalanceLedger()
        self.events = events if events is not None else EventLog()

        self._lock = RLock()

        logger.info(
            f"Created collection '{config.name}' ({config.symbol}) at {self.address}: "
            f"max supply {config.max_supply}, unit price {config.unit_price}"
        )

    @classmethod
    def create(
        cls,
        owner: str,
        contract_uri: str,
        hidden_metadata_uri: str,
        payee_address: str,
        royalty_fee_bps: int,
        clock: Optional[Clock] = None,
        **overrides
    ) -> 'SaleEngine':
        """Construct a collection from the four deployment arguments plus optional overrides."""
        config = CollectionConfig(
            contract_uri=contract_uri,
            hidden_metadata_uri=hidden_metadata_uri,
            payee_address=payee_address,
            royalty_fee_bps=royalty_fee_bps,
            **overrides
        )
        return cls(config, owner, clock=clock)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _now(self) -> int:
        return self.clock.now()

    def _record(self, event_type: EventType, ctx: Optional[CallContext], **details) -> SaleEvent:
        return self.events.record(
            event_type, self._now(), ctx.sender if ctx else None, **details
        )

    def _rejected(self, operation: str, error: SaleError) -> SaleError:
        logger.warning(f"{operation} rejected: {error}")
        return error

    # ------------------------------------------------------------------
    # Sale window
    # ------------------------------------------------------------------

    def start_sale(self, ctx: CallContext, duration_seconds: int) -> None:
        """Open the public sale window now. Restarting an open window resets its clock."""
        with self._lock:
            self.access.require_admin(ctx, "start_sale")
            now = self._now()
            self.window.open(now, duration_seconds)

            self._record(EventType.SALE_STARTED, ctx, start_time=now,
                         duration_seconds=duration_seconds,
                         reveal_time=self.window.reveal_time)
            logger.info(f"Public sale started at {now} for {duration_seconds}s, "
                        f"reveal time {self.window.reveal_time}")

    def stop_sale(self, ctx: CallContext) -> None:
        with self._lock:
            self.access.require_admin(ctx, "stop_sale")
            self.window.close()

            self._record(EventType.SALE_STOPPED, ctx)
            logger.info("Public sale stopped")

    def get_elapsed_sale_time(self) -> int:
        """
        Remaining seconds of the active sale window.

        Despite the name this is `duration - (now - start)`, the time left
        rather than the time elapsed.
        """
        with self._lock:
            return self.window.remaining(self._now())

    # ------------------------------------------------------------------
    # Minting
    # ------------------------------------------------------------------

    def mint(self, ctx: CallContext, quantity: int, payment: int) -> List[int]:
        """
        Mint `quantity` sequential tokens to the caller.

        Args:
            ctx: Caller; receives the new tokens
            quantity: Number of tokens, 1..max_purchase_per_transaction
            payment: Attached value, must equal unit_price * quantity exactly

        Returns:
            The newly minted token ids
        """
        with self._lock:
            config = self.config

            if isinstance(quantity, bool) or not isinstance(quantity, int) \
                    or quantity < 1 or quantity > config.max_purchase_per_transaction:
                raise self._rejected(
                    "mint", InvalidQuantity(quantity, config.max_purchase_per_transaction)
                )

            total_minted = self.tokens.total_minted()
            if total_minted + quantity > config.max_supply:
                raise self._rejected(
                    "mint", SupplyExceeded(quantity, total_minted, config.max_supply)
                )

            expected = config.unit_price * quantity
            if isinstance(payment, bool) or not isinstance(payment, int) or payment != expected:
                raise self._rejected("mint", IncorrectPayment(expected, payment))

            if config.require_active_sale and not self.window.is_open(self._now()):
                raise self._rejected("mint", SaleNotActive("Public sale is not active"))

            token_ids = self.tokens.mint_batch(
                ctx.sender, range(total_minted, total_minted + quantity)
            )
            self.ledger.credit(self.address, payment)

            self._record(EventType.MINTED, ctx, token_ids=token_ids, payment=payment)
            logger.info(f"Minted {quantity} tokens ({token_ids[0]}..{token_ids[-1]}) "
                        f"to {ctx.sender}, total supply {total_minted + quantity}")
            return token_ids

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def _set_metadata_field(self, ctx: CallContext, operation: str,
                            field_name: str, value: str) -> None:
        with self._lock:
            self.access.require_admin(ctx, operation)
            try:
                previous = self.metadata.update(field_name, value)
            except SaleError as e:
                raise self._rejected(operation, e)

            self._record(EventType.METADATA_UPDATED, ctx, field=field_name,
                         previous=previous, value=value)
            logger.info(f"{field_name} set to {value!r}")

    def set_hidden_metadata_uri(self, ctx: CallContext, uri: str) -> None:
        self._set_metadata_field(ctx, "set_hidden_metadata_uri", "hidden_metadata_uri", uri)

    def set_contract_uri(self, ctx: CallContext, uri: str) -> None:
        self._set_metadata_field(ctx, "set_contract_uri", "contract_uri", uri)

    def set_base_extension(self, ctx: CallContext, suffix: str) -> None:
        self._set_metadata_field(ctx, "set_base_extension", "uri_suffix", suffix)

    def set_base_uri(self, ctx: CallContext, uri: str) -> None:
        self._set_metadata_field(ctx, "set_base_uri", "base_uri", uri)

    def set_revealed(self, ctx: CallContext, flag: bool, new_base_uri: str) -> RevealState:
        """Set the reveal flag and base URI in one step."""
        with self._lock:
            self.access.require_admin(ctx, "set_revealed")
            try:
                state = self.metadata.set_revealed(bool(flag), new_base_uri)
            except SaleError as e:
                raise self._rejected("set_revealed", e)

            self._record(EventType.REVEAL_CHANGED, ctx, revealed=state.is_revealed,
                         base_uri=new_base_uri)
            logger.info(f"Reveal state is now {state.value}, base URI {new_base_uri!r}")
            return state

    def freeze_metadata(self, ctx: CallContext) -> None:
        """Permanently lock all metadata. Freezing twice is a no-op."""
        with self._lock:
            self.access.require_admin(ctx, "freeze_metadata")
            if not self.metadata.freeze():
                logger.debug("Metadata already frozen")
                return

            self._record(EventType.METADATA_FROZEN, ctx, state=self.metadata.state.value)
            logger.info(f"Metadata frozen in state {self.metadata.state.value}")

    def token_uri(self, token_id: int) -> str:
        with self._lock:
            if not self.tokens.exists(token_id):
                raise NonexistentToken(token_id)
            return self.metadata.token_uri(token_id)

    # ------------------------------------------------------------------
    # Royalties and funds
    # ------------------------------------------------------------------

    def set_default_royalty(self, ctx: CallContext, receiver: str, fee_bps: int) -> None:
        with self._lock:
            self.access.require_admin(ctx, "set_default_royalty")
            try:
                receiver, fee_bps = self.royalty.set_default_royalty(receiver, fee_bps)
            except SaleError as e:
                raise self._rejected("set_default_royalty", e)

            self._record(EventType.ROYALTY_UPDATED, ctx, receiver=receiver, fee_bps=fee_bps)
            logger.info(f"Default royalty set to {fee_bps} bps for {receiver}")

    def royalty_info(self, token_id: int, sale_price: int) -> Tuple[Optional[str], int]:
        return self.royalty.royalty_info(token_id, sale_price)

    def withdraw(self, ctx: CallContext) -> List[Tuple[str, int]]:
        """
        Pay out the whole held balance.

        The payee receives `payee_share_bps` of it and the administrator the
        rest. The ledger settles every balance before receivers are notified.

        Returns:
            (receiver, amount) pairs paid
        """
        with self._lock:
            self.access.require_admin(ctx, "withdraw")

            held = self.ledger.balance_of(self.address)
            payee_amount = held * self.config.payee_share_bps // FEE_DENOMINATOR
            payouts = []
            if payee_amount:
                payouts.append((self.config.payee_address, payee_amount))
            payouts.append((ctx.sender, held - payee_amount))

            self._record(EventType.WITHDRAWN, ctx, amount=held,
                         payouts=[[receiver, amount] for receiver, amount in payouts])
            settled = self.ledger.payout(self.address, payouts)
            logger.info(f"Withdrew {held} from {self.address}")
            return settled

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    def transfer_ownership(self, ctx: CallContext, new_owner: str) -> None:
        with self._lock:
            previous = self.access.transfer_ownership(ctx, new_owner)
            self._record(EventType.OWNERSHIP_TRANSFERRED, ctx,
                         previous_owner=previous, new_owner=self.access.owner)

    def renounce_ownership(self, ctx: CallContext) -> None:
        with self._lock:
            previous = self.access.renounce_ownership(ctx)
            self._record(EventType.OWNERSHIP_TRANSFERRED, ctx,
                         previous_owner=previous, new_owner=None)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def owner(self) -> Optional[str]:
        return self.access.owner

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def symbol(self) -> str:
        return self.config.symbol

    @property
    def contract_uri(self) -> str:
        return self.metadata.contract_uri

    @property
    def hidden_metadata_uri(self) -> str:
        return self.metadata.hidden_metadata_uri

    @property
    def base_uri(self) -> str:
        return self.metadata.base_uri

    @property
    def base_extension(self) -> str:
        return self.metadata.uri_suffix

    @property
    def revealed(self) -> bool:
        return self.metadata.revealed

    @property
    def is_frozen(self) -> bool:
        return self.metadata.frozen

    @property
    def sale_active(self) -> bool:
        return self.window.active

    @property
    def sale_start_time(self) -> int:
        return self.window.start_time

    @property
    def sale_duration(self) -> int:
        return self.window.duration_seconds

    @property
    def reveal_time(self) -> int:
        return self.window.reveal_time

    @property
    def total_supply(self) -> int:
        return self.tokens.total_minted()

    @property
    def balance(self) -> int:
        """Funds held by the engine awaiting withdrawal."""
        return self.ledger.balance_of(self.address)

    def balance_of(self, owner: str) -> int:
        return self.tokens.balance_of(owner)

    def owner_of(self, token_id: int) -> str:
        return self.tokens.owner_of(token_id)

    def tokens_of_owner(self, owner: str) -> List[int]:
        return self.tokens.tokens_of_owner(owner)

    def status(self) -> Dict[str, Any]:
        """Summary of collection state for display."""
        with self._lock:
            receiver, fee_bps = self.royalty.default_royalty()
            return {
                "name": self.name,
                "symbol": self.symbol,
                "address": self.address,
                "owner": self.owner,
                "total_supply": self.total_supply,
                "max_supply": self.config.max_supply,
                "unit_price": self.config.unit_price,
                "sale": self.window.to_dict(),
                "metadata": self.metadata.to_dict(),
                "royalty": {"receiver": receiver, "fee_bps": fee_bps},
                "balance": self.balance,
            }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> SaleSnapshot:
        with self._lock:
            receiver, fee_bps = self.royalty.default_royalty()
            return SaleSnapshot(
                address=self.address,
                owner=self.owner,
                config=self.config,
                window=WindowSnapshot(
                    active=self.window.active,
                    start_time=self.window.start_time,
                    duration_seconds=self.window.duration_seconds,
                ),
                reveal=RevealSnapshot(
                    state=self.metadata.state,
                    hidden_metadata_uri=self.metadata.hidden_metadata_uri,
                    base_uri=self.metadata.base_uri,
                    uri_suffix=self.metadata.uri_suffix,
                    contract_uri=self.metadata.contract_uri,
                ),
                royalty=RoyaltySnapshot(receiver=receiver, fee_bps=fee_bps),
                token_owners=self.tokens.owners_in_order(),
                balances=self.ledger.balances(),
                events=[event.to_dict() for event in self.events.list()],
            )

    @classmethod
    def from_snapshot(cls, snapshot: SaleSnapshot, clock: Optional[Clock] = None) -> 'SaleEngine':
        """Rebuild an engine from a snapshot."""
        royalty = RoyaltyRegistry()
        if snapshot.royalty.receiver is not None:
            royalty.set_default_royalty(snapshot.royalty.receiver, snapshot.royalty.fee_bps)

        engine = cls(
            snapshot.config,
            snapshot.owner,
            clock=clock,
            address=snapshot.address,
            tokens=TokenRegistry.from_owners(snapshot.token_owners),
            royalty=royalty,
            ledger=BalanceLedger(snapshot.balances),
            events=EventLog([SaleEvent.from_dict(e) for e in snapshot.events]),
        )
        engine.window = SaleWindow(
            active=snapshot.window.active,
            start_time=snapshot.window.start_time,
            duration_seconds=snapshot.window.duration_seconds,
            reveal_delay_seconds=snapshot.config.reveal_delay_seconds,
        )
        engine.metadata = RevealMetadata(
            hidden_metadata_uri=snapshot.reveal.hidden_metadata_uri,
            base_uri=snapshot.reveal.base_uri,
            uri_suffix=snapshot.reveal.uri_suffix,
            contract_uri=snapshot.reveal.contract_uri,
            state=snapshot.reveal.state,
        )
        return engine
