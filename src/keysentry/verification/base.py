"""Abstract base class for active key verifiers.

Verification sends the key itself to its provider, so it only ever runs
with explicit user consent and only against read-only endpoints.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from keysentry.core.identifier import Provider
    from keysentry.core.secure_buffer import SecretBuffer


@dataclass
class VerificationResult:
    """Outcome of an active verification attempt."""

    provider: Provider
    active: bool
    details: str
    endpoint: str
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider.value,
            "active": self.active,
            "details": self.details,
            "endpoint": self.endpoint,
            "error": self.error,
        }


class KeyVerifier(ABC):
    """Interface for provider-specific verifiers.

    Implementations must provide:
    - provider: which Provider this verifier handles
    - endpoint: what will be contacted, shown to the user for consent
    - description: what the call does
    - verify: perform the read-only call
    """

    provider: Provider
    endpoint: str
    description: str

    @abstractmethod
    def verify(self, secret: SecretBuffer) -> VerificationResult:
        """Check whether the key is currently active.

        Failures are reported through VerificationResult.error, never raised.
        """
        ...


class VerifierRegistry:
    """Maps providers to their verifier."""

    def __init__(self) -> None:
        self._verifiers: dict[Provider, KeyVerifier] = {}

    def register(self, verifier: KeyVerifier) -> None:
        self._verifiers[verifier.provider] = verifier

    def get(self, provider: Provider) -> KeyVerifier | None:
        return self._verifiers.get(provider)

    def __contains__(self, provider: object) -> bool:
        return provider in self._verifiers

    def all(self) -> list[KeyVerifier]:
        return list(self._verifiers.values())
