"""
Shared CLI context, output formatting and error handling for Astro Sale commands.
"""

import functools
import json
import logging
import sys
import traceback
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

import click
import yaml
from pydantic import ValidationError

from sale.clock import SystemClock
from sale.engine import SaleEngine
from sale.exceptions import SaleError
from sale.storage import SaleStorage

from .config import ConfigurationManager


class CLIContext:
    """Global CLI context for sharing state across commands."""

    def __init__(self):
        self.config_file: Optional[str] = None
        self.profile: Optional[str] = None
        self.state_file: Optional[str] = None
        self.output_format: str = "table"
        self.verbose: int = 0
        self.config_manager: Optional[ConfigurationManager] = None
        self.logger: logging.Logger = logging.getLogger('astro-cli')

    def setup_logging(self):
        """Configure logging based on verbosity level."""
        log_levels = {
            0: logging.WARNING,
            1: logging.INFO,
            2: logging.DEBUG
        }

        level = log_levels.get(min(self.verbose, 2), logging.DEBUG)

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)

        # Engine and registry loggers share the root handler
        root = logging.getLogger()
        for existing in list(root.handlers):
            if getattr(existing, '_astro_cli', False):
                root.removeHandler(existing)
        handler._astro_cli = True
        root.addHandler(handler)
        root.setLevel(level)
        self.logger.setLevel(level)

    def load_config(self):
        self.config_manager = ConfigurationManager(self.config_file, self.profile)
        self.config_manager.load()
        self.logger.debug(f"Configuration sources: {self.config_manager.get_sources()}")

    def get_config(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value with fallback to default."""
        if self.config_manager is None:
            return default
        return self.config_manager.get(key_path, default)

    def storage(self) -> SaleStorage:
        state_file = self.state_file or self.get_config('sale.state_file')
        return SaleStorage(Path(state_file), backup_count=self.get_config('sale.backup_count', 5))

    def load_engine(self, storage: Optional[SaleStorage] = None) -> SaleEngine:
        storage = storage or self.storage()
        snapshot = storage.load()
        if snapshot is None:
            raise click.ClickException(
                f"No collection state at {storage.state_file}; run 'astro-sale init' first"
            )
        return SaleEngine.from_snapshot(snapshot, clock=SystemClock())

    @contextmanager
    def engine_session(self) -> Iterator[SaleEngine]:
        """
        Load the engine and save it back only if the command succeeds.

        The state file stays locked from the load until the save, so
        concurrent commands apply one after another.
        """
        storage = self.storage()
        with storage.transaction():
            engine = self.load_engine(storage)
            yield engine
            storage.save(engine.snapshot())
        self.logger.debug("Saved collection state")

    def output(self, data: Any, format_override: Optional[str] = None):
        """Output data in specified format."""
        format_type = format_override or self.output_format

        if format_type == "json":
            click.echo(json.dumps(data, indent=2, default=str))
        elif format_type == "yaml":
            click.echo(yaml.safe_dump(json.loads(json.dumps(data, default=str)),
                                      default_flow_style=False, sort_keys=False).rstrip())
        elif format_type == "table":
            self._output_table(data)
        else:
            click.echo(str(data))

    def _output_table(self, data: Any):
        """Output data in table format."""
        if isinstance(data, dict):
            for key, value in data.items():
                if isinstance(value, dict):
                    value = ", ".join(f"{k}={v}" for k, v in value.items())
                click.echo(f"{key:20} {value}")
        elif isinstance(data, list) and data:
            if isinstance(data[0], dict):
                headers = list(data[0].keys())
                click.echo(" | ".join(f"{h:15}" for h in headers))
                click.echo("-" * (len(headers) * 18))
                for item in data:
                    values = [str(item.get(h, ""))[:15] for h in headers]
                    click.echo(" | ".join(f"{v:15}" for v in values))
            else:
                for item in data:
                    click.echo(item)
        else:
            click.echo(str(data))


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def handle_cli_error(func):
    """Decorator to turn sale and validation errors into a one-line CLI failure."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.ClickException:
            raise
        except (SaleError, ValidationError, ValueError, OSError) as e:
            ctx = click.get_current_context().find_object(CLIContext)

            click.echo(f"Error: {e}", err=True)
            if ctx and ctx.verbose >= 2:
                click.echo(traceback.format_exc(), err=True)
            else:
                click.echo("Use -vv for detailed error information.", err=True)

            sys.exit(1)

    return wrapper
