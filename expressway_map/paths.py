"""
Where the expressway map keeps its files.

Everything the app writes (the expressway GeoJSON, the cached province
boundaries) goes under data/, and the optional config.json sits beside it.
Both hang off the project root, or off the executable's folder in a frozen
build so the data survives an upgrade of the bundle.
"""

import sys
from pathlib import Path

DATA_DIR_NAME = "data"
CONFIG_FILE_NAME = "config.json"


def get_app_dir() -> Path:
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    # expressway_map/paths.py -> project root
    return Path(__file__).resolve().parent.parent


def get_data_dir() -> Path:
    return get_app_dir() / DATA_DIR_NAME


def get_config_path() -> Path:
    return get_app_dir() / CONFIG_FILE_NAME


def ensure_data_dir() -> Path:
    """Create data/ if needed and return it; app.py serves it at /data."""
    data_dir = get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir
