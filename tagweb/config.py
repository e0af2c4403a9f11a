"""
Configuration management for TagWeb.

Handles persistent configuration including:
- GraphQL endpoint the article queries are sent to
- Batch limits for the initial and per-tag queries
- Link deduplication variant and log level

Config is stored in config.json next to the executable/project root, or
wherever TAGWEB_CONFIG points.
Environment variables (optionally loaded from .env by app.py) take priority.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from tagweb.paths import get_config_path

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:4000/graphql"
DEFAULT_RECENT_LIMIT = 30
DEFAULT_TAG_LIMIT = 10

# Environment variable -> config.json key
ENV_KEYS = {
    "TAGWEB_GRAPHQL_ENDPOINT": "graphql_endpoint",
    "TAGWEB_RECENT_LIMIT": "recent_limit",
    "TAGWEB_TAG_LIMIT": "tag_limit",
    "TAGWEB_DEDUPE_LINKS": "dedupe_links",
    "TAGWEB_LOG_LEVEL": "log_level",
}


@dataclass(frozen=True)
class Settings:
    graphql_endpoint: str = DEFAULT_ENDPOINT
    recent_limit: int = DEFAULT_RECENT_LIMIT
    tag_limit: int = DEFAULT_TAG_LIMIT
    dedupe_links: bool = False
    log_level: str = "INFO"


def load_config(config_path: Optional[Union[str, Path]] = None) -> dict:
    """Load configuration from config.json."""
    path = Path(config_path) if config_path else get_config_path()
    if path.exists():
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable config {path}: {e}")
            return {}
    return {}


def save_config(config: dict, config_path: Optional[Union[str, Path]] = None) -> None:
    """Save configuration to config.json."""
    path = Path(config_path) if config_path else get_config_path()
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _as_limit(value, default: int) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid batch limit {value!r}, using {default}")
        return default
    return limit if limit > 0 else default


def get_settings(config_path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Resolve the effective settings.

    Priority:
    1. Environment variables (TAGWEB_*)
    2. Stored in config.json
    3. Built-in defaults
    """
    config = load_config(config_path)
    for env_name, key in ENV_KEYS.items():
        env_value = os.environ.get(env_name)
        if env_value:
            config[key] = env_value

    return Settings(
        graphql_endpoint=config.get("graphql_endpoint") or DEFAULT_ENDPOINT,
        recent_limit=_as_limit(config.get("recent_limit", DEFAULT_RECENT_LIMIT), DEFAULT_RECENT_LIMIT),
        tag_limit=_as_limit(config.get("tag_limit", DEFAULT_TAG_LIMIT), DEFAULT_TAG_LIMIT),
        dedupe_links=_as_bool(config.get("dedupe_links", False)),
        log_level=str(config.get("log_level") or "INFO").upper(),
    )


def set_endpoint(endpoint: str, config_path: Optional[Union[str, Path]] = None) -> None:
    """Save the GraphQL endpoint to config.json."""
    config = load_config(config_path)
    config["graphql_endpoint"] = endpoint
    save_config(config, config_path)
