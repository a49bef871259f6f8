#!/usr/bin/env python3
"""
Metadata Commands for Astro Sale CLI

Update collection URIs, reveal, freeze and resolve token metadata URIs.
"""

from typing import Optional

import click

from cli.context import CLIContext, handle_cli_error, pass_context

from . import caller_option, resolve_caller


@click.group()
@pass_context
def metadata(ctx: CLIContext):
    """
    Metadata commands.

    Every update fails once metadata has been frozen.
    """
    ctx.logger.debug("Metadata command group invoked")


def _setter(name: str, method: str, help_text: str):
    @metadata.command(name, help=help_text)
    @click.argument('value')
    @caller_option()
    @pass_context
    @handle_cli_error
    def command(ctx: CLIContext, value: str, caller: Optional[str]):
        with ctx.engine_session() as engine:
            getattr(engine, method)(resolve_caller(engine, caller), value)
            ctx.output(engine.metadata.to_dict())

    return command


set_hidden_uri = _setter('set-hidden-uri', 'set_hidden_metadata_uri',
                         'Set the placeholder URI shown before reveal.')
set_contract_uri = _setter('set-contract-uri', 'set_contract_uri',
                           'Set the collection-level metadata URI.')
set_base_extension = _setter('set-base-extension', 'set_base_extension',
                             'Set the suffix appended to revealed token URIs.')
set_base_uri = _setter('set-base-uri', 'set_base_uri',
                       'Set the prefix of revealed token URIs.')


@metadata.command('reveal')
@click.argument('base_uri')
@click.option('--hide', is_flag=True, help='Return to the hidden state instead of revealing')
@caller_option()
@pass_context
@handle_cli_error
def reveal(ctx: CLIContext, base_uri: str, hide: bool, caller: Optional[str]):
    """
    Reveal per-token metadata under BASE_URI.

    Examples:
        astro-sale metadata reveal https://metadata.example/json/
    """
    with ctx.engine_session() as engine:
        engine.set_revealed(resolve_caller(engine, caller), not hide, base_uri)
        ctx.output(engine.metadata.to_dict())


@metadata.command('freeze')
@caller_option()
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@pass_context
@handle_cli_error
def freeze(ctx: CLIContext, caller: Optional[str], yes: bool):
    """Permanently lock all metadata."""
    if not yes:
        click.confirm("Freezing metadata is permanent. Continue?", abort=True)

    with ctx.engine_session() as engine:
        engine.freeze_metadata(resolve_caller(engine, caller))
        ctx.output(engine.metadata.to_dict())


@metadata.command('token-uri')
@click.argument('token_id', type=int)
@pass_context
@handle_cli_error
def token_uri(ctx: CLIContext, token_id: int):
    """Show the metadata URI of TOKEN_ID."""
    ctx.output({"token_id": token_id, "uri": ctx.load_engine().token_uri(token_id)})
