"""
Storefront settings schema.

Frozen dataclasses the loader produces from YAML.  Nothing here reads files
or the environment.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DatabaseSettings:
    """Engine parameters passed to ``init_engine_from_url``."""

    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    lock_timeout: float = 30.0


@dataclass(frozen=True)
class PaymentSettings:
    currency: str = "GHS"
    providers: tuple[str, ...] = ("mock",)
    default_provider: str = "mock"


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class StorefrontSettings:
    """Complete runtime settings; ``checksum`` identifies the merged source."""

    database: DatabaseSettings
    payment: PaymentSettings
    logging: LoggingSettings
    checksum: str = ""
