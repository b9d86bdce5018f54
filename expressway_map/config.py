"""
Configuration management for the expressway map.

Settings are resolved in this order:
1. Environment variables (EXPRESSWAY_MAP_*; app.py loads .env via python-dotenv)
2. config.json next to the project root / executable
3. Built-in defaults

config.json is edited by hand; the app only reads it.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from expressway_map.paths import get_config_path, get_data_dir

logger = logging.getLogger(__name__)

ENV_PREFIX = "EXPRESSWAY_MAP_"

DEFAULT_PROVINCES_URL = (
    "https://hoanglongcao.github.io/bib/mekong%20delta%20database/vietnam_provinces.geojson"
)
DEFAULT_GEOJSON_NAME = "vietnam_express_way.geojson"

DEFAULTS = {
    "port": 3000,
    "geojson_path": None,  # resolved against the data dir
    "provinces_url": DEFAULT_PROVINCES_URL,
    "api_base_url": None,
    "storage_secret": "expressway_map_secret",
}


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from config.json."""
    config_path = config_path or get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable config file {config_path}: {e}")
            return {}
    return {}


def get_setting(name: str, config_path: Optional[Path] = None) -> Any:
    """
    Resolve a single setting.

    Environment variables win over config.json, which wins over DEFAULTS.
    Unknown names raise KeyError so typos fail loudly.
    """
    if name not in DEFAULTS:
        raise KeyError(f"Unknown setting: {name}")

    env_value = os.environ.get(ENV_PREFIX + name.upper())
    if env_value:
        return env_value

    config = load_config(config_path)
    if config.get(name) is not None:
        return config[name]

    return DEFAULTS[name]


def get_port(config_path: Optional[Path] = None) -> int:
    value = get_setting("port", config_path)
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid port {value!r}, falling back to {DEFAULTS['port']}")
        return DEFAULTS["port"]


def get_geojson_path(config_path: Optional[Path] = None) -> Path:
    """Path of the expressway GeoJSON file the server rewrites on save."""
    value = get_setting("geojson_path", config_path)
    if value:
        return Path(value)
    return get_data_dir() / DEFAULT_GEOJSON_NAME


def get_provinces_url(config_path: Optional[Path] = None) -> str:
    return get_setting("provinces_url", config_path)


def get_api_base_url(config_path: Optional[Path] = None) -> Optional[str]:
    """
    Base URL of a remote expressway API.

    When unset the UI talks to the file store in-process.
    """
    value = get_setting("api_base_url", config_path)
    return value.rstrip('/') if value else None


def get_storage_secret(config_path: Optional[Path] = None) -> str:
    return get_setting("storage_secret", config_path)
