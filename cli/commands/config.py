#!/usr/bin/env python3
"""
Configuration Commands for Astro Sale CLI

Inspect, change, save and validate the layered CLI configuration.
"""

import sys
from pathlib import Path
from typing import Optional

import click

from cli.config import PROFILES
from cli.context import CLIContext, handle_cli_error, pass_context


@click.group()
@pass_context
def config(ctx: CLIContext):
    """
    Configuration management commands.

    Settings are merged from defaults, the selected profile, the config file
    and ASTRO_* environment variables.
    """
    ctx.logger.debug("Config command group invoked")


@config.command('show')
@click.option('--key', help='Specific configuration key to show (dot notation)')
@click.option('--sources', is_flag=True, help='Show configuration sources')
@pass_context
@handle_cli_error
def show_config(ctx: CLIContext, key: Optional[str], sources: bool):
    """
    Display current configuration settings.

    Examples:
        astro-sale config show
        astro-sale config show --key collection
        astro-sale config show --sources
    """
    manager = ctx.config_manager

    if sources:
        click.echo("Configuration sources (lowest to highest precedence):")
        for i, source in enumerate(manager.get_sources(), 1):
            click.echo(f"   {i}. {source}")
        return

    if key:
        value = manager.get(key)
        if value is None:
            click.echo(f"Configuration key not found: {key}", err=True)
            sys.exit(1)
        ctx.output({key: value})
    else:
        ctx.output(manager.load())


@config.command('get')
@click.argument('key')
@click.option('--default', help='Default value if key not found')
@pass_context
@handle_cli_error
def get_config(ctx: CLIContext, key: str, default: Optional[str]):
    """
    Get a specific configuration value.

    Examples:
        astro-sale config get collection.max_supply
        astro-sale config get sale.admin --default none
    """
    value = ctx.config_manager.get(key, default)

    if value is None:
        click.echo(f"Configuration key not found: {key}", err=True)
        sys.exit(1)

    if isinstance(value, dict):
        ctx.output(value)
    else:
        click.echo(value)


@config.command('set')
@click.argument('key')
@click.argument('value')
@click.option('--save', is_flag=True, help='Save the merged configuration to a file')
@click.option('--output', type=click.Path(dir_okay=False),
              help='File to save to (default: --config-file, else ./.astro.yml)')
@pass_context
@handle_cli_error
def set_config(ctx: CLIContext, key: str, value: str, save: bool, output: Optional[str]):
    """
    Set a configuration value.

    Without --save the change only applies to this invocation.

    Examples:
        astro-sale config set collection.payee_address 0x... --save
        astro-sale config set cli.output_format json --save --output astro.json
    """
    manager = ctx.config_manager
    parsed_value = manager.parse_value(value)
    manager.set(key, parsed_value)

    click.echo(f"Set {key} = {parsed_value}")

    if save:
        path = Path(output or ctx.config_file or '.astro.yml')
        saved = manager.save(str(path), format='json' if path.suffix == '.json' else 'yaml')
        click.echo(f"Saved to {saved}")


@config.command('validate')
@pass_context
@handle_cli_error
def validate_config(ctx: CLIContext):
    """
    Validate configuration for errors and inconsistencies.

    Examples:
        astro-sale config validate
        astro-sale -p mainnet config validate
    """
    ctx.logger.info("Validating configuration")

    errors = ctx.config_manager.validate()
    if errors:
        click.echo("Configuration validation failed:")
        for error in errors:
            click.echo(f"   - {error}")
        sys.exit(1)

    click.echo("Configuration is valid")


@config.command('list-profiles')
@pass_context
@handle_cli_error
def list_profiles(ctx: CLIContext):
    """List the available configuration profiles and what they override."""
    ctx.output({name: overrides for name, overrides in PROFILES.items()})
