#!/usr/bin/env python3
"""
Funds and Royalty Commands for Astro Sale CLI

Configure default royalties, query them and withdraw collected funds.
"""

from typing import Optional

import click

from cli.context import CLIContext, handle_cli_error, pass_context

from . import caller_option, resolve_caller


@click.group()
@pass_context
def funds(ctx: CLIContext):
    """
    Royalty and fund commands.
    """
    ctx.logger.debug("Funds command group invoked")


@funds.command('royalty-set')
@click.argument('receiver')
@click.argument('fee_bps', type=int)
@caller_option()
@pass_context
@handle_cli_error
def royalty_set(ctx: CLIContext, receiver: str, fee_bps: int, caller: Optional[str]):
    """Set the default royalty RECEIVER and FEE_BPS (basis points)."""
    with ctx.engine_session() as engine:
        engine.set_default_royalty(resolve_caller(engine, caller), receiver, fee_bps)
        receiver, fee_bps = engine.royalty.default_royalty()
        ctx.output({"receiver": receiver, "fee_bps": fee_bps})


@funds.command('royalty-info')
@click.argument('token_id', type=int)
@click.argument('sale_price', type=int)
@pass_context
@handle_cli_error
def royalty_info(ctx: CLIContext, token_id: int, sale_price: int):
    """Show the royalty owed on a sale of TOKEN_ID at SALE_PRICE."""
    receiver, amount = ctx.load_engine().royalty_info(token_id, sale_price)
    ctx.output({"receiver": receiver, "royalty_amount": amount})


@funds.command('balance')
@click.argument('account', required=False)
@pass_context
@handle_cli_error
def balance(ctx: CLIContext, account: Optional[str]):
    """Show the held sale balance, or the ledger balance of ACCOUNT."""
    engine = ctx.load_engine()
    if account:
        ctx.output({"account": account, "balance": engine.ledger.balance_of(account)})
    else:
        ctx.output({"account": engine.address, "balance": engine.balance})


@funds.command('withdraw')
@caller_option()
@pass_context
@handle_cli_error
def withdraw(ctx: CLIContext, caller: Optional[str]):
    """Pay the whole held balance out to the administrator and payee."""
    with ctx.engine_session() as engine:
        payouts = engine.withdraw(resolve_caller(engine, caller))
        ctx.output([{"receiver": receiver, "amount": amount} for receiver, amount in payouts])
