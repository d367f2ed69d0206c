"""Configuration loading and validation."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

from bifrost.common import constants
from bifrost.common.errors import ConfigError
from bifrost.common.fs import read_yaml
from bifrost.common.http import RetryConfig, TimeoutConfig
from bifrost.common.schema import validate_config

CONFIG_FILENAME = "bifrost.yml"

DEFAULT_CONFIG: dict[str, Any] = {
    "atlas": {
        "source_url": constants.GEONAMES_ZIP_URL,
        "member_name": constants.GEONAMES_MEMBER,
        "database_path": constants.ATLAS_DB_PATH,
    },
    "finly": {
        "release_url": constants.IFSC_RELEASE_URL,
        "csv_asset": constants.IFSC_CSV_ASSET,
        "catalog_asset": constants.IFSC_CATALOG_ASSET,
        "database_path": constants.FINLY_DB_PATH,
        "version_file": constants.FINLY_VERSION_FILE,
    },
    "http": {
        "connect_timeout": 20,
        "read_timeout": 120,
        "max_attempts": 3,
    },
}


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def load_config(config_dir: Path | None = None, *, allow_unknown: bool = False) -> dict:
    """Merge ``bifrost.yml`` from ``config_dir`` (when present) over the built-in defaults."""
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    if config_dir is not None:
        path = config_dir / CONFIG_FILENAME
        if path.exists():
            try:
                overlay = read_yaml(path)
            except (OSError, yaml.YAMLError) as exc:
                raise ConfigError(f"Could not read config file {path}") from exc
            if overlay is not None:
                if not isinstance(overlay, dict):
                    raise ConfigError(f"Config file {path} must contain a mapping")
                cfg = _deep_merge(cfg, overlay)
    return validate_config(cfg, allow_unknown=allow_unknown)


def http_settings(cfg: dict) -> tuple[TimeoutConfig, RetryConfig]:
    http_cfg = cfg["http"]
    timeout = TimeoutConfig(connect=http_cfg["connect_timeout"], read=http_cfg["read_timeout"])
    return timeout, RetryConfig(max_attempts=int(http_cfg["max_attempts"]))
