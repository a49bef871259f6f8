"""
Astro Sale CLI Commands Package

Command modules for the sale window, minting, metadata, funds and configuration.
"""

from typing import Optional

import click

from sale.access import CallContext
from sale.engine import SaleEngine

__all__ = ['sale', 'mint', 'metadata', 'funds', 'config']


def caller_option(required: bool = False):
    help_text = 'Calling account address'
    if not required:
        help_text += ' (default: collection administrator)'
    return click.option('--caller', required=required, help=help_text)


def resolve_caller(engine: SaleEngine, caller: Optional[str]) -> CallContext:
    """Call context for `caller`, defaulting to the administrator."""
    caller = caller or engine.owner
    if caller is None:
        raise click.UsageError("Collection has no administrator; pass --caller")
    return CallContext(caller)
