"""
Settings loader (``storefront_config.loader``).

Responsibility
--------------
Reads YAML files and parses them into the frozen dataclasses of
``storefront_config.schema``.  Runtime callers use
``storefront_config.get_settings()``; this module is its implementation.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; required keys have no silent defaults.
* Overrides are deep-merged over the bundled defaults; a key absent from
  the override keeps its default.
* ``compute_checksum`` is deterministic over the merged data.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``database.url``  -> ``KeyError``; empty  -> ``ValueError``.
* Bad currency, unknown log level, default provider not enabled
  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from storefront_config.schema import (
    DatabaseSettings,
    LoggingSettings,
    PaymentSettings,
    StorefrontSettings,
)
from storefront_kernel.db.types import validate_currency


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` merged in; nested mappings merge key by key."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    """Parse ``database``; ``url`` is required."""
    url = data["url"]
    if not url:
        raise ValueError("database.url must be a non-empty connection string")
    return DatabaseSettings(
        url=str(url),
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 20)),
        max_overflow=int(data.get("max_overflow", 10)),
        pool_timeout=int(data.get("pool_timeout", 30)),
        pool_recycle=int(data.get("pool_recycle", 1800)),
        lock_timeout=float(data.get("lock_timeout", 30.0)),
    )


def parse_payment(data: dict[str, Any]) -> PaymentSettings:
    providers = data.get("providers", ["mock"])
    if isinstance(providers, str) or not isinstance(providers, (list, tuple)):
        raise ValueError(f"payment.providers must be a list, got {providers!r}")
    providers = tuple(str(p) for p in providers)
    default_provider = str(data.get("default_provider", providers[0] if providers else "mock"))
    if default_provider not in providers:
        raise ValueError(
            f"payment.default_provider {default_provider!r} is not in payment.providers {providers}"
        )
    return PaymentSettings(
        currency=validate_currency(str(data.get("currency", "GHS"))),
        providers=providers,
        default_provider=default_provider,
    )


def parse_logging(data: dict[str, Any]) -> LoggingSettings:
    level = str(data.get("level", "INFO")).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown log level: {level!r}")
    return LoggingSettings(level=level)


def parse_settings(data: dict[str, Any]) -> StorefrontSettings:
    """Parse the merged settings document."""
    return StorefrontSettings(
        database=parse_database(data["database"]),
        payment=parse_payment(data.get("payment") or {}),
        logging=parse_logging(data.get("logging") or {}),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
