"""Layered configuration: defaults < YAML < environment (.env) < CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

# Where each flat key lives in the sectioned document.
_KEY_PATHS: dict[str, tuple[str, ...]] = {
    "app_name": ("app_name",),
    "environment": ("environment",),
    "public_url": ("public_url",),
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_follow_redirects": ("http", "follow_redirects"),
    "http_user_agent": ("http", "user_agent"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
    "data_dir": ("storage", "dir"),
    "lock_timeout_seconds": ("storage", "lock_timeout_seconds"),
    "cinemeta_url": ("upstream", "cinemeta_url"),
    "torrentio_url": ("upstream", "torrentio_url"),
    "premiumize_max_retries": ("premiumize", "max_retries"),
    "premiumize_timeout_seconds": ("premiumize", "timeout_seconds"),
    "premiumize_retry_delay_seconds": ("premiumize", "retry_delay_seconds"),
}
_SECTIONS = {path[0] for path in _KEY_PATHS.values() if len(path) > 1}


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = value


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Rewrite a flat or mixed layer into sections; unknown keys are dropped."""
    doc: dict[str, Any] = {}
    for section in _SECTIONS:
        block = layer.get(section)
        if isinstance(block, Mapping):
            doc[section] = dict(block)
    for flat, path in _KEY_PATHS.items():
        if flat not in layer:
            continue
        *parents, leaf = path
        node = doc
        for name in parents:
            node = node.setdefault(name, {})
        node[leaf] = layer[flat]
    return doc


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data)!r}")
    return data


def _combine(layers: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    doc: dict[str, Any] = {}
    for layer in layers:
        _merge_into(doc, _sectioned(layer))
    return doc


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Build the final ``AppConfig``. Later layers win key by key.

    A ``.env`` file is loaded into the process environment first, without
    replacing variables that are already set, so it counts as part of the
    environment layer. Nothing is written to disk.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [DEFAULT_CONFIG]
    if config_path is not None:
        layers.append(_read_yaml(config_path))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    return AppConfig.model_validate(_combine(layers))
