"""
Astro Sale - Collaborator Registries

Token ownership, default royalty and balance ledger components used by the
sale engine.
"""

from .tokens import TokenRegistry
from .royalty import RoyaltyRegistry, FEE_DENOMINATOR
from .ledger import BalanceLedger

__all__ = [
    "TokenRegistry",
    "RoyaltyRegistry",
    "FEE_DENOMINATOR",
    "BalanceLedger",
]
