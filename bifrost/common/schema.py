"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from bifrost.common.errors import ConfigError


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_non_empty_strings(obj: dict, keys: set[str], ctx: str) -> None:
    for key in sorted(keys):
        value = obj[key]
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"{ctx}.{key} must be a non-empty string")


def _assert_optional_positive_number(obj: dict, key: str, ctx: str) -> None:
    value = obj[key]
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{ctx}.{key} must be a positive number or null")


ATLAS_KEYS = {"source_url", "member_name", "database_path"}
FINLY_KEYS = {"release_url", "csv_asset", "catalog_asset", "database_path", "version_file"}
HTTP_KEYS = {"connect_timeout", "read_timeout", "max_attempts"}


def validate_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"atlas", "finly", "http"}
    _assert_required_keys(cfg, top_required, "config")
    _assert_no_unknown_keys(cfg, top_required, "config", allow_unknown)

    _assert_required_keys(cfg["atlas"], ATLAS_KEYS, "atlas")
    _assert_no_unknown_keys(cfg["atlas"], ATLAS_KEYS, "atlas", allow_unknown)
    _assert_non_empty_strings(cfg["atlas"], ATLAS_KEYS, "atlas")

    _assert_required_keys(cfg["finly"], FINLY_KEYS, "finly")
    _assert_no_unknown_keys(cfg["finly"], FINLY_KEYS, "finly", allow_unknown)
    _assert_non_empty_strings(cfg["finly"], FINLY_KEYS, "finly")

    _assert_required_keys(cfg["http"], HTTP_KEYS, "http")
    _assert_no_unknown_keys(cfg["http"], HTTP_KEYS, "http", allow_unknown)
    _assert_optional_positive_number(cfg["http"], "connect_timeout", "http")
    _assert_optional_positive_number(cfg["http"], "read_timeout", "http")
    attempts = cfg["http"]["max_attempts"]
    if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
        raise ConfigError("http.max_attempts must be an integer >= 1")

    return cfg
