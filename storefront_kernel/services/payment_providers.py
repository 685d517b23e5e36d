"""
Payment provider adapters.

Responsibility:
    Attach a provider-side identity to a freshly recorded payment and hand
    back the secret the client uses to confirm it.  Only the ``mock``
    provider ships with the kernel; it charges nothing.

Architecture position:
    Kernel > Services.  Used only by PaymentTracker.

Non-goals:
    No gateway protocol beyond "record + confirm": no webhooks, refunds or
    captures.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping

from storefront_kernel.exceptions import UnsupportedProviderError
from storefront_kernel.models.payment import Payment


@dataclass(frozen=True)
class ProviderAttachment:
    provider_payment_id: str
    client_secret: str


class PaymentProvider(ABC):
    """Adapter for one payment provider."""

    name: str

    @abstractmethod
    def attach(self, payment: Payment) -> ProviderAttachment:
        """Register ``payment`` with the provider (payment.id is assigned)."""
        ...


class MockPaymentProvider(PaymentProvider):
    """In-process provider: ids and secrets derive from the payment id."""

    name = "mock"

    def attach(self, payment: Payment) -> ProviderAttachment:
        return ProviderAttachment(
            provider_payment_id=f"mock_{payment.id}",
            client_secret=f"mock_secret_{payment.id}",
        )


class ProviderRegistry:
    """Lookup of provider adapters by name."""

    def __init__(self, providers: Mapping[str, PaymentProvider] | None = None):
        self._providers: dict[str, PaymentProvider] = dict(
            providers if providers is not None else {"mock": MockPaymentProvider()}
        )

    def get(self, name: str) -> PaymentProvider:
        provider = self._providers.get(name)
        if provider is None:
            raise UnsupportedProviderError(name)
        return provider

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._providers))

    @classmethod
    def only(cls, names: tuple[str, ...]) -> "ProviderRegistry":
        """
        Registry restricted to the built-in adapters named in ``names``.

        Raises:
            UnsupportedProviderError: a name has no built-in adapter.
        """
        builtin: dict[str, PaymentProvider] = {"mock": MockPaymentProvider()}
        for name in names:
            if name not in builtin:
                raise UnsupportedProviderError(name)
        return cls({name: builtin[name] for name in names})
