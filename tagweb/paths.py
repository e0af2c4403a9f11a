"""
Where TagWeb keeps its settings files.

TagWeb has no data directory: the graph lives in memory for the page session.
The only files on disk are the GraphQL endpoint/batch-limit settings
(config.json) and an optional .env with TAGWEB_* overrides. Both sit in the
project root when run from source, or beside the executable when packaged
with PyInstaller, so a packaged build can be pointed at another API without
rebuilding.
"""

import os
import sys
from pathlib import Path

# Overrides the config.json location, e.g. for one config per API environment
CONFIG_PATH_ENV = "TAGWEB_CONFIG"


def get_app_dir() -> Path:
    """Project root (parent of tagweb/), or the executable's folder when frozen."""
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    return Path(__file__).resolve().parent.parent


def get_config_path() -> Path:
    """config.json holding the endpoint and batch limits; TAGWEB_CONFIG wins if set."""
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return get_app_dir() / "config.json"


def get_env_path() -> Path:
    return get_app_dir() / ".env"
