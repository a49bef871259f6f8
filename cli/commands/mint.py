#!/usr/bin/env python3
"""
Minting Commands for Astro Sale CLI

Mint tokens from the collection with exact payment.
"""

from typing import Optional

import click

from cli.context import CLIContext, handle_cli_error, pass_context
from sale.access import CallContext


@click.command('mint')
@click.option('--caller', required=True, help='Minting account; receives the tokens')
@click.option('--quantity', type=int, required=True, help='Number of tokens to mint')
@click.option('--payment', type=int, help='Attached payment in the smallest unit (default: exact price)')
@click.option('--dry-run', is_flag=True, help='Show the price without minting')
@pass_context
@handle_cli_error
def mint(ctx: CLIContext, caller: str, quantity: int, payment: Optional[int], dry_run: bool):
    """
    Mint tokens to the calling account.

    The payment must equal the unit price times the quantity exactly.

    Examples:
        astro-sale mint --caller 0x... --quantity 2
        astro-sale mint --caller 0x... --quantity 1 --payment 80000000000000000
    """
    if dry_run:
        engine = ctx.load_engine()
        ctx.output({
            "quantity": quantity,
            "unit_price": engine.config.unit_price,
            "price": engine.config.unit_price * quantity,
            "total_supply": engine.total_supply,
            "max_supply": engine.config.max_supply,
        })
        return

    with ctx.engine_session() as engine:
        if payment is None:
            payment = engine.config.unit_price * quantity
        token_ids = engine.mint(CallContext(caller), quantity, payment)
        ctx.output({
            "token_ids": token_ids,
            "payment": payment,
            "total_supply": engine.total_supply,
        })
