from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from uieval.config.schema import RunConfig
from uieval.utils.io import read_yaml


def _coerce_scalar(raw: str) -> Any:
    lowered = raw.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered == "none":
        return None
    try:
        if "." in raw:
            return float(raw)
        return int(raw)
    except ValueError:
        return raw


def _coerce_value(raw: str) -> Any:
    # List overrides carry class tags, so items stay strings: [Button, 2] -> ["Button", "2"].
    if raw.startswith("[") and raw.endswith("]"):
        return [v.strip().strip("'\"") for v in raw[1:-1].split(",") if v.strip()]
    return _coerce_scalar(raw)


def _apply_override(doc: dict[str, Any], key: str, value: Any) -> None:
    parts = key.split(".")
    if not all(parts):
        raise ValueError(f"Invalid override key '{key}'")
    cursor = doc
    for part in parts[:-1]:
        if part not in cursor or not isinstance(cursor[part], dict):
            cursor[part] = {}
        cursor = cursor[part]
    cursor[parts[-1]] = value


def load_config(config_path: Path | None = None, overrides: list[str] | None = None) -> RunConfig:
    """Build a ``RunConfig`` from an optional YAML file plus ``key=value`` overrides."""
    payload: dict[str, Any] = {}
    if config_path is not None:
        try:
            payload = read_yaml(config_path)
        except yaml.YAMLError as exc:
            raise ValueError(f"Config file {config_path} is not valid YAML: {exc}") from exc
    for item in overrides or []:
        if "=" not in item:
            raise ValueError(f"Invalid override '{item}'. Expected key=value")
        key, raw = item.split("=", 1)
        _apply_override(payload, key.strip(), _coerce_value(raw.strip()))
    return RunConfig.model_validate(payload)
