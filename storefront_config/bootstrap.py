"""
Bridges from StorefrontSettings to the kernel.

Responsibility:
    Initialize logging, the engine and the immutability listeners from
    settings, and build orchestrators wired with the configured currency
    and payment providers.  This is the only place where settings become
    kernel constructor arguments.
"""

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from storefront_config.schema import StorefrontSettings
from storefront_kernel.db.engine import create_tables, init_engine_from_url
from storefront_kernel.domain.clock import Clock
from storefront_kernel.logging_config import configure_logging
from storefront_kernel.services.payment_providers import ProviderRegistry
from storefront_kernel.services.storefront_orchestrator import StorefrontOrchestrator


def init_storefront(settings: StorefrontSettings, create_schema: bool = False) -> Engine:
    """Configure logging and the engine; optionally create missing tables."""
    configure_logging(level=logging.getLevelName(settings.logging.level))
    db = settings.database
    engine = init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
        lock_timeout=db.lock_timeout,
    )
    if create_schema:
        create_tables()
    return engine


def build_orchestrator(
    session: Session,
    settings: StorefrontSettings,
    clock: Clock | None = None,
    auto_commit: bool = True,
) -> StorefrontOrchestrator:
    """A StorefrontOrchestrator using the configured currency and providers."""
    return StorefrontOrchestrator(
        session,
        clock=clock,
        auto_commit=auto_commit,
        providers=ProviderRegistry.only(settings.payment.providers),
        currency=settings.payment.currency,
        default_provider=settings.payment.default_provider,
    )
