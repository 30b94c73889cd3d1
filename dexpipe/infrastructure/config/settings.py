"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
configuration file (~/.dexpipe/config.yaml). `load_pipeline_settings()`
turns the resolved values into the typed `PipelineSettings` consumed by
the composition root.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from dexpipe import __version__

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".dexpipe"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values passed to `get_config`

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (no file found).")

    # 3. Environment Variables (Highest priority) are handled in get_config

    _loaded = True
    logger.debug("Configuration loading process completed.")


def _coerce(value: str) -> Any:
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def _lookup_yaml(key: str) -> Any:
    """Finds `a.b.c` either as a flat key or as nested mappings."""
    if key in _config:
        return _config[key]
    node: Any = _config
    for part in key.split('.'):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def get_config(key: str, default: Any = None) -> Any:
    """Get a configuration value by key.

    Priority:
    1. Test configuration
    2. Environment variable (`logging.level` -> `LOGGING_LEVEL`)
    3. YAML config
    4. Default value

    Args:
        key: The configuration key
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper().replace('.', '_')
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    value = _lookup_yaml(key)
    if value is not None:
        return value

    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """Set configuration values for testing purposes.

    These values override any other source until `clear_test_config()`.
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")


# --- Typed Pipeline Settings ---

@dataclass(frozen=True)
class PipelineSettings:
    """Every tunable of the acquisition pipeline, resolved once at startup."""
    base_url: str = "https://pokeapi.co/api/v2"
    user_agent: str = f"dexpipe/{__version__}"
    request_timeout: float = 30.0
    resource_timeout: float = 60.0
    min_request_interval: float = 0.1
    memory_cache_bytes: int = 50 * 1024 * 1024
    disk_cache_bytes: int = 50 * 1024 * 1024
    memory_cache_ttl: int = 15 * 60
    disk_cache_ttl: int = 24 * 60 * 60
    cache_dir: Path = DEFAULT_CONFIG_DIR / "http_cache"
    batch_pause_seconds: float = 0.05
    bulk_pause_every: int = 10
    bulk_pause_seconds: float = 0.05
    related_cap: int = 50
    related_pause_every: int = 5
    related_pause_seconds: float = 0.01
    move_listing_limit: int = 1000
    move_item_cap: int = 300
    pokemon_listing_limit: int = 1025
    search_listing_limit: int = 1000
    recent_capacity: int = 10
    max_retries: int = 0
    retry_backoff_seconds: float = 0.5


def load_pipeline_settings() -> PipelineSettings:
    """Builds `PipelineSettings` from `get_config`, falling back to the defaults."""
    load_configuration()
    defaults = PipelineSettings()
    return PipelineSettings(
        base_url=str(get_config('api.base_url', defaults.base_url)).rstrip('/'),
        user_agent=str(get_config('api.user_agent', defaults.user_agent)),
        request_timeout=float(get_config('api.request_timeout', defaults.request_timeout)),
        resource_timeout=float(get_config('api.resource_timeout', defaults.resource_timeout)),
        min_request_interval=float(get_config('api.min_request_interval', defaults.min_request_interval)),
        memory_cache_bytes=int(get_config('cache.memory_bytes', defaults.memory_cache_bytes)),
        disk_cache_bytes=int(get_config('cache.disk_bytes', defaults.disk_cache_bytes)),
        memory_cache_ttl=int(get_config('cache.memory_ttl', defaults.memory_cache_ttl)),
        disk_cache_ttl=int(get_config('cache.disk_ttl', defaults.disk_cache_ttl)),
        cache_dir=Path(get_config('cache.dir', defaults.cache_dir)).expanduser(),
        batch_pause_seconds=float(get_config('fetch.batch_pause', defaults.batch_pause_seconds)),
        bulk_pause_every=int(get_config('fetch.bulk_pause_every', defaults.bulk_pause_every)),
        bulk_pause_seconds=float(get_config('fetch.bulk_pause', defaults.bulk_pause_seconds)),
        related_cap=int(get_config('fetch.related_cap', defaults.related_cap)),
        related_pause_every=int(get_config('fetch.related_pause_every', defaults.related_pause_every)),
        related_pause_seconds=float(get_config('fetch.related_pause', defaults.related_pause_seconds)),
        move_listing_limit=int(get_config('fetch.move_listing_limit', defaults.move_listing_limit)),
        move_item_cap=int(get_config('fetch.move_item_cap', defaults.move_item_cap)),
        pokemon_listing_limit=int(get_config('fetch.pokemon_listing_limit', defaults.pokemon_listing_limit)),
        search_listing_limit=int(get_config('fetch.search_listing_limit', defaults.search_listing_limit)),
        recent_capacity=int(get_config('fetch.recent_capacity', defaults.recent_capacity)),
        max_retries=int(get_config('api.max_retries', defaults.max_retries)),
        retry_backoff_seconds=float(get_config('api.retry_backoff', defaults.retry_backoff_seconds)),
    )
