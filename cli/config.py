#!/usr/bin/env python3
"""
Configuration Management Module for Astro Sale CLI

Handles hierarchical configuration loading, environment variable mapping,
validation, and construction of collection settings.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from sale.schema import (
    CollectionConfig, DEFAULT_MAX_PURCHASE, DEFAULT_MAX_SUPPLY,
    DEFAULT_NAME, DEFAULT_SYMBOL, DEFAULT_UNIT_PRICE
)
from sale.window import DEFAULT_REVEAL_DELAY_SECONDS

# Configuration file locations in order of precedence (highest to lowest)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / '.astro.yml',             # Project-specific YAML
    Path.cwd() / '.astro.json',            # Project-specific JSON
    Path.home() / '.astro' / 'config.yml',   # User global YAML
    Path.home() / '.astro' / 'config.json',  # User global JSON
]

# Environment variable prefix
ENV_PREFIX = 'ASTRO_'

# Default configuration values
DEFAULT_CONFIG = {
    # Collection construction settings
    'collection': {
        'name': DEFAULT_NAME,
        'symbol': DEFAULT_SYMBOL,
        'max_supply': DEFAULT_MAX_SUPPLY,
        'max_purchase_per_transaction': DEFAULT_MAX_PURCHASE,
        'unit_price': DEFAULT_UNIT_PRICE,
        'contract_uri': 'ipfs-contract-metadata',
        'hidden_metadata_uri': 'https://hidden.json',
        'payee_address': None,
        'royalty_fee_bps': 750,
        'payee_share_bps': 0,
        'reveal_delay_seconds': DEFAULT_REVEAL_DELAY_SECONDS,
        'base_extension': '.json',
        'require_active_sale': False
    },

    # Engine state and administrator
    'sale': {
        'state_file': '~/.astro/sale.json',
        'admin': None,
        'backup_count': 5
    },

    # CLI behavior
    'cli': {
        'output_format': 'table',  # table, json, yaml
        'verbose': 0
    }
}

# Configuration profiles
PROFILES = {
    'mainnet': {
        'collection': {'require_active_sale': True},
        'cli': {'verbose': 0}
    },
    'testnet': {
        'cli': {'verbose': 1}
    },
    'development': {
        'collection': {'max_supply': 100, 'unit_price': 1000},
        'sale': {'state_file': '.astro/sale.json'},
        'cli': {'verbose': 2}
    }
}


class ConfigurationManager:
    """Manages hierarchical configuration with environment variable support."""

    def __init__(self, config_file: Optional[str] = None, profile: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Explicit configuration file path
            profile: Configuration profile to load (mainnet, testnet, development)
        """
        self.logger = logging.getLogger('astro-cli.config')
        self.config_file = config_file
        self.profile = profile
        self._config_cache = None
        self._config_sources = []

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources in hierarchical order.

        Returns:
            Merged configuration dictionary
        """
        if self._config_cache is not None:
            return self._config_cache

        configs = []
        self._config_sources = []

        # 1. Start with default configuration
        configs.append(copy.deepcopy(DEFAULT_CONFIG))
        self._config_sources.append("defaults")

        # 2. Apply profile if specified
        if self.profile:
            if self.profile not in PROFILES:
                raise ValueError(f"Unknown configuration profile: {self.profile}")
            configs.append(PROFILES[self.profile])
            self._config_sources.append(f"profile:{self.profile}")
            self.logger.debug(f"Applied profile: {self.profile}")

        # 3. Load configuration files
        if self.config_file:
            config_data = self._load_config_file(Path(self.config_file))
            if config_data:
                configs.append(config_data)
                self._config_sources.append(f"file:{self.config_file}")
        else:
            for config_path in CONFIG_SEARCH_PATHS:
                if config_path.exists():
                    config_data = self._load_config_file(config_path)
                    if config_data:
                        configs.append(config_data)
                        self._config_sources.append(f"file:{config_path}")
                        self.logger.debug(f"Loaded config from {config_path}")
                        break  # Use first found config file

        # 4. Apply environment variables
        env_config = self._load_environment_variables()
        if env_config:
            configs.append(env_config)
            self._config_sources.append("environment")

        # Later sources override earlier ones
        self._config_cache = self._deep_merge(*configs)
        self._expand_paths(self._config_cache)

        return self._config_cache

    def _load_config_file(self, path: Path) -> Optional[Dict[str, Any]]:
        """Load configuration from file."""
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yml', '.yaml']:
                return yaml.safe_load(f)
            elif path.suffix == '.json':
                return json.load(f)

        self.logger.warning(f"Unknown config file format: {path}")
        return None

    def _load_environment_variables(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            # ASTRO_COLLECTION_MAX_SUPPLY -> {'collection': {'max_supply': value}}
            config_key = key[len(ENV_PREFIX):].lower()
            section, _, option = config_key.partition('_')
            if section not in DEFAULT_CONFIG or not option:
                self.logger.debug(f"Ignoring unknown environment setting {key}")
                continue

            env_config.setdefault(section, {})[option] = self.parse_value(value)

        return env_config

    def parse_value(self, value: str) -> Union[str, int, float, bool, None]:
        """Parse an environment or command-line value to the appropriate type."""
        if value.lower() in ['true', 'yes']:
            return True
        elif value.lower() in ['false', 'no']:
            return False

        # Numbers, null and JSON structures
        try:
            return json.loads(value)
        except ValueError:
            return value

    def _deep_merge(self, *dicts: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge multiple dictionaries."""
        result = {}

        for dictionary in dicts:
            for key, value in dictionary.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = self._deep_merge(result[key], value)
                else:
                    result[key] = value

        return result

    def _expand_paths(self, config: Dict[str, Any]):
        """Expand ~ and environment variables in path values."""
        state_file = config.get('sale', {}).get('state_file')
        if isinstance(state_file, str):
            config['sale']['state_file'] = os.path.expanduser(os.path.expandvars(state_file))

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key_path: Dot-separated path (e.g., 'collection.max_supply')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        current = self.load()

        for key in key_path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def set(self, key_path: str, value: Any):
        """Set configuration value by dot-notation path."""
        config = self.load()

        keys = key_path.split('.')
        current = config

        for key in keys[:-1]:
            current = current.setdefault(key, {})

        current[keys[-1]] = value

    def save(self, path: Optional[str] = None, format: str = 'yaml') -> Path:
        """Save current configuration to file."""
        config = self.load()

        if not path:
            path = Path.cwd() / ('.astro.yml' if format == 'yaml' else '.astro.json')

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            if format == 'yaml':
                yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(config, f, indent=2)

        self.logger.info(f"Configuration saved to {path}")
        return path

    def collection_config(self, **overrides) -> CollectionConfig:
        """Build a validated collection configuration, with non-None overrides applied."""
        values = dict(self.get('collection', {}))
        values.update({k: v for k, v in overrides.items() if v is not None})
        return CollectionConfig(**values)

    def validate(self) -> List[str]:
        """
        Validate current configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        config = self.load()
        errors = []

        collection = config.get('collection', {})
        if collection.get('payee_address') is None:
            errors.append("collection.payee_address is required")
        else:
            try:
                CollectionConfig(**collection)
            except ValidationError as e:
                for error in e.errors():
                    location = '.'.join(str(part) for part in error['loc'])
                    errors.append(f"collection.{location}: {error['msg']}")

        output_format = config.get('cli', {}).get('output_format')
        if output_format not in ['table', 'json', 'yaml']:
            errors.append(f"Invalid output format: {output_format}")

        backup_count = config.get('sale', {}).get('backup_count')
        if not isinstance(backup_count, int) or backup_count < 0:
            errors.append("sale.backup_count must be a non-negative integer")

        return errors

    def get_sources(self) -> List[str]:
        """Get list of configuration sources that were loaded."""
        self.load()
        return self._config_sources

    def reset(self):
        """Reset configuration cache."""
        self._config_cache = None
        self._config_sources = []
