#!/usr/bin/env python3
"""
Astro Sale - Command Line Interface

A CLI for creating a collection, running its public sale, revealing and
freezing metadata, and managing royalties and collected funds.
"""

from typing import Optional

import click

from sale.engine import SaleEngine

from .context import CLIContext, handle_cli_error, pass_context


@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.option('--config-file', '-c',
              type=click.Path(exists=True, dir_okay=False),
              help='Path to configuration file')
@click.option('--profile', '-p',
              type=click.Choice(['mainnet', 'testnet', 'development']),
              help='Configuration profile')
@click.option('--state-file', '-s',
              type=click.Path(dir_okay=False),
              help='Collection state file (overrides sale.state_file)')
@click.option('--output-format', '-o',
              type=click.Choice(['table', 'json', 'yaml']),
              default=None,
              help='Output format')
@click.option('--verbose', '-v',
              count=True,
              help='Increase verbosity (-v for INFO, -vv for DEBUG)')
@click.version_option(package_name='astro-sale', prog_name='astro-sale')
@pass_context
def cli(ctx: CLIContext, config_file: Optional[str], profile: Optional[str],
        state_file: Optional[str], output_format: Optional[str], verbose: int):
    """
    Astro Sale Command Line Interface

    Run a fixed-supply token sale and reveal its metadata.

    Examples:
        astro-sale init --owner 0x... --payee 0x...
        astro-sale sale start --duration 3600
        astro-sale mint --caller 0x... --quantity 2
        astro-sale metadata reveal https://metadata.example/json/
    """
    ctx.config_file = config_file
    ctx.profile = profile
    ctx.state_file = state_file

    ctx.load_config()
    ctx.verbose = verbose or ctx.get_config('cli.verbose', 0)
    ctx.output_format = output_format or ctx.get_config('cli.output_format', 'table')
    ctx.setup_logging()

    ctx.logger.debug("CLI initialized with context")


@cli.command('init')
@click.option('--owner', help='Administrator address (default: sale.admin)')
@click.option('--contract-uri', help='Collection metadata URI')
@click.option('--hidden-uri', help='Placeholder metadata URI shown before reveal')
@click.option('--payee', help='Secondary payee and default royalty receiver')
@click.option('--royalty-bps', type=int, help='Default royalty in basis points')
@click.option('--force', is_flag=True, help='Overwrite an existing collection state file')
@pass_context
@handle_cli_error
def init(ctx: CLIContext, owner: Optional[str], contract_uri: Optional[str],
         hidden_uri: Optional[str], payee: Optional[str], royalty_bps: Optional[int],
         force: bool):
    """Create a new collection from configuration and options."""
    owner = owner or ctx.get_config('sale.admin')
    if not owner:
        raise click.UsageError("An administrator is required: pass --owner or set sale.admin")

    config = ctx.config_manager.collection_config(
        contract_uri=contract_uri,
        hidden_metadata_uri=hidden_uri,
        payee_address=payee,
        royalty_fee_bps=royalty_bps,
    )
    engine = SaleEngine(config, owner)

    storage = ctx.storage()
    with storage.transaction():
        if storage.exists() and not force:
            raise click.ClickException(
                f"Collection state already exists at {storage.state_file}; use --force to replace it"
            )
        storage.save(engine.snapshot())

    ctx.logger.info(f"Initialized collection state at {storage.state_file}")
    ctx.output(engine.status())


@cli.command('status')
@pass_context
@handle_cli_error
def status(ctx: CLIContext):
    """Show collection, sale window, metadata and funds state."""
    ctx.output(ctx.load_engine().status())


@cli.command('events')
@click.option('--type', 'event_type', help='Only show events of this type (e.g. Minted)')
@click.option('--limit', type=int, default=50, show_default=True, help='Most recent events to show')
@pass_context
@handle_cli_error
def events(ctx: CLIContext, event_type: Optional[str], limit: int):
    """List recorded events, oldest first."""
    records = [e.to_dict() for e in ctx.load_engine().events.list()]
    if event_type:
        records = [e for e in records if e['event_type'] == event_type]
    ctx.output(records[-limit:] if limit > 0 else records)


def register_commands():
    """Register all command groups with the main CLI."""
    from cli.commands.sale import sale
    from cli.commands.mint import mint
    from cli.commands.metadata import metadata
    from cli.commands.funds import funds
    from cli.commands.config import config

    for command in (sale, mint, metadata, funds, config):
        cli.add_command(command)


register_commands()


def main():
    cli()


if __name__ == '__main__':
    main()
