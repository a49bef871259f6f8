#!/usr/bin/env python3
"""
Sale Window Commands for Astro Sale CLI

Open, close and inspect the public sale window.
"""

from typing import Optional

import click

from cli.context import CLIContext, handle_cli_error, pass_context

from . import caller_option, resolve_caller


@click.group()
@pass_context
def sale(ctx: CLIContext):
    """
    Public sale window commands.

    Start and stop the sale and check how much time is left.
    """
    ctx.logger.debug("Sale command group invoked")


@sale.command('start')
@click.option('--duration', type=int, required=True, help='Sale duration in seconds')
@caller_option()
@pass_context
@handle_cli_error
def start(ctx: CLIContext, duration: int, caller: Optional[str]):
    """
    Open the public sale window now.

    Starting an already open sale restarts its clock.

    Examples:
        astro-sale sale start --duration 120
    """
    with ctx.engine_session() as engine:
        engine.start_sale(resolve_caller(engine, caller), duration)
        ctx.output(engine.window.to_dict())


@sale.command('stop')
@caller_option()
@pass_context
@handle_cli_error
def stop(ctx: CLIContext, caller: Optional[str]):
    """Close the public sale window."""
    with ctx.engine_session() as engine:
        engine.stop_sale(resolve_caller(engine, caller))
        ctx.output(engine.window.to_dict())


@sale.command('status')
@pass_context
@handle_cli_error
def status(ctx: CLIContext):
    """Show the sale window."""
    ctx.output(ctx.load_engine().window.to_dict())


@sale.command('remaining')
@pass_context
@handle_cli_error
def remaining(ctx: CLIContext):
    """Show the seconds left in the active sale window."""
    ctx.output({"remaining_seconds": ctx.load_engine().get_elapsed_sale_time()})
