"""
Astro Sale - Schema Models

This module defines the Pydantic models for collection configuration and for
persisted snapshots of the sale engine state.
"""

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .access import ZERO_ADDRESS
from .reveal import RevealState
from .window import DEFAULT_REVEAL_DELAY_SECONDS

BPS_DENOMINATOR = 10000

DEFAULT_NAME = "Cosmic Collection: Astro  Helmets"
DEFAULT_SYMBOL = "CCSH"
DEFAULT_MAX_SUPPLY = 10000
DEFAULT_MAX_PURCHASE = 20
DEFAULT_UNIT_PRICE = 80000000000000000  # 0.08 ether in wei


def _validate_address(v: Optional[str], allow_zero: bool = False) -> Optional[str]:
    if v is None:
        return v
    if not re.match(r'^0x[a-fA-F0-9]{40}$', v):
        raise ValueError('Address must be a 0x-prefixed 40-character hex string')
    v = v.lower()
    if not allow_zero and v == ZERO_ADDRESS:
        raise ValueError('Address cannot be the zero address')
    return v


class CollectionConfig(BaseModel):
    """Construction-time collection configuration."""

    name: str = Field(default=DEFAULT_NAME, min_length=1, max_length=100)
    symbol: str = Field(default=DEFAULT_SYMBOL, min_length=1, max_length=10)
    max_supply: int = Field(default=DEFAULT_MAX_SUPPLY, gt=0, description="Total mintable tokens")
    max_purchase_per_transaction: int = Field(default=DEFAULT_MAX_PURCHASE, gt=0,
                                              description="Tokens a single mint call may create")
    unit_price: int = Field(default=DEFAULT_UNIT_PRICE, ge=0, description="Price per token, smallest unit")
    contract_uri: str = Field(..., description="Collection-level metadata URI")
    hidden_metadata_uri: str = Field(..., description="Placeholder URI shown before reveal")
    payee_address: str = Field(..., description="Secondary fund recipient")
    royalty_fee_bps: int = Field(..., ge=0, le=BPS_DENOMINATOR, description="Default royalty in basis points")
    payee_share_bps: int = Field(default=0, ge=0, le=BPS_DENOMINATOR,
                                 description="Share of each withdrawal routed to the payee")
    reveal_delay_seconds: int = Field(default=DEFAULT_REVEAL_DELAY_SECONDS, ge=0)
    base_extension: str = Field(default=".json")
    require_active_sale: bool = Field(default=False, description="Reject mints outside the sale window")

    @field_validator('payee_address')
    @classmethod
    def validate_payee_address(cls, v):
        """Validate payee address format."""
        return _validate_address(v)

    @field_validator('symbol')
    @classmethod
    def validate_symbol(cls, v):
        """Validate symbol format."""
        if not re.match(r'^[A-Z0-9]+$', v):
            raise ValueError('Symbol must contain only uppercase letters and numbers')
        return v

    @model_validator(mode='after')
    def validate_supply_constraints(self):
        """Validate supply constraint relationships."""
        if self.max_purchase_per_transaction > self.max_supply:
            raise ValueError('Max purchase per transaction cannot exceed max supply')

        return self


class WindowSnapshot(BaseModel):
    active: bool = False
    start_time: int = Field(default=0, ge=0)
    duration_seconds: int = Field(default=0, ge=0)


class RevealSnapshot(BaseModel):
    state: RevealState = RevealState.HIDDEN
    hidden_metadata_uri: str
    base_uri: str = ""
    uri_suffix: str = ".json"
    contract_uri: str = ""


class RoyaltySnapshot(BaseModel):
    receiver: Optional[str] = None
    fee_bps: int = Field(default=0, ge=0, le=BPS_DENOMINATOR)

    @field_validator('receiver')
    @classmethod
    def validate_receiver(cls, v):
        return _validate_address(v)


class SaleSnapshot(BaseModel):
    """Complete persisted state of a sale engine."""

    version: str = Field(default="1.0.0", description="Snapshot schema version")
    address: str = Field(..., description="Account holding collected funds")
    owner: Optional[str] = None
    config: CollectionConfig
    window: WindowSnapshot = Field(default_factory=WindowSnapshot)
    reveal: RevealSnapshot
    royalty: RoyaltySnapshot = Field(default_factory=RoyaltySnapshot)
    token_owners: List[str] = Field(default_factory=list, description="Owner of token id i at index i")
    balances: Dict[str, int] = Field(default_factory=dict)
    events: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator('address', 'owner')
    @classmethod
    def validate_accounts(cls, v):
        return _validate_address(v)

    @model_validator(mode='after')
    def validate_supply(self):
        if len(self.token_owners) > self.config.max_supply:
            raise ValueError('Snapshot holds more tokens than the max supply')
        if any(amount < 0 for amount in self.balances.values()):
            raise ValueError('Balances cannot be negative')
        return self
