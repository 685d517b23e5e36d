"""
storefront_config -- single public entrypoint for storefront settings.

Responsibility:
    ``get_settings()`` is the only way runtime code obtains configuration.
    It loads the bundled ``defaults.yaml``, deep-merges an optional override
    file, applies environment overrides, and returns a frozen
    ``StorefrontSettings``.

Architecture position:
    Configuration -- sits above ``storefront_kernel``.  The kernel MUST
    NEVER import from ``storefront_config``; ``bootstrap`` translates
    settings into kernel constructor arguments.

Environment:
    STOREFRONT_CONFIG  path of an override YAML (used when ``path`` is None)
    DATABASE_URL       replaces ``database.url``

Failure modes:
    - ``FileNotFoundError`` -- override file missing.
    - ``ValueError`` / ``KeyError`` -- invalid or incomplete settings.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from storefront_config.loader import deep_merge, load_yaml_file, parse_settings
from storefront_config.schema import (
    DatabaseSettings,
    LoggingSettings,
    PaymentSettings,
    StorefrontSettings,
)

_logger = logging.getLogger("storefront_kernel.config")

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

CONFIG_PATH_ENV = "STOREFRONT_CONFIG"
DATABASE_URL_ENV = "DATABASE_URL"


def get_settings(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> StorefrontSettings:
    """
    The ONLY public configuration entrypoint.

    Args:
        path: Override YAML merged over the defaults.  Falls back to
            $STOREFRONT_CONFIG; with neither, the defaults are used as-is.
        environ: Environment mapping (defaults to ``os.environ``).
    """
    env = os.environ if environ is None else environ

    data = load_yaml_file(DEFAULTS_PATH)

    override_path = path if path is not None else env.get(CONFIG_PATH_ENV)
    if override_path:
        data = deep_merge(data, load_yaml_file(Path(override_path)))

    database_url = env.get(DATABASE_URL_ENV)
    if database_url:
        data = deep_merge(data, {"database": {"url": database_url}})

    settings = parse_settings(data)

    _logger.info(
        "STOREFRONT_CONFIG_TRACE",
        extra={
            "config_source": str(override_path) if override_path else "defaults",
            "checksum": settings.checksum,
            "currency": settings.payment.currency,
            "providers": list(settings.payment.providers),
        },
    )
    return settings


__all__ = [
    "get_settings",
    "CONFIG_PATH_ENV",
    "DATABASE_URL_ENV",
    "DEFAULTS_PATH",
    "DatabaseSettings",
    "LoggingSettings",
    "PaymentSettings",
    "StorefrontSettings",
]
