"""Configuration loading for the trajectory map viewer."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Optional

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "species": {
        "slug": "anser",
        "common_name": "Goose",
    },
    "service": {
        "base_url": "http://localhost:5000",
        "timeout": None,
    },
    "map": {
        "center_lat": 37.8,
        "center_lon": -96.9,
        "zoom": 4,
        "width": 800,
        "height": 600,
        "tile_provider": "OpenStreetMap.Mapnik",
        "retina": False,
    },
    "track": {
        "color": "#3388ff",
        "width": 3,
    },
    "arrows": {
        "offset_km": 10.0,
        "repeat_km": 150.0,
        "size": 8,
        "color": "red",
    },
    "server": {
        "port": 5006,
    },
}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _merge(base[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(config_path: Optional[Path] = None) -> dict[str, Any]:
    """Load configuration from file or use defaults."""
    if config_path is None:
        return _merge(DEFAULT_CONFIG, {})

    requested_path = config_path
    resolved_path = (
        config_path if config_path.is_absolute() else (Path.cwd() / config_path)
    )
    if not resolved_path.exists():
        raise SystemExit(
            "Config file "
            f"'{requested_path}' not found. Use '--config configs/<name>.yaml'."
        )

    with resolved_path.open("r", encoding="utf-8") as handle:
        config = yaml.safe_load(handle) or {}

    if not isinstance(config, dict):
        raise SystemExit(f"Config file '{requested_path}' must contain a mapping.")

    return _merge(DEFAULT_CONFIG, config)
