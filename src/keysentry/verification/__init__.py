"""Active key verification (opt-in, consent required)."""

from keysentry.verification.aws import AwsAccessKeyVerifier
from keysentry.verification.base import KeyVerifier, VerificationResult, VerifierRegistry


def default_verifiers() -> VerifierRegistry:
    """Registry with every built-in verifier."""
    registry = VerifierRegistry()
    registry.register(AwsAccessKeyVerifier())
    return registry


__all__ = [
    "AwsAccessKeyVerifier",
    "KeyVerifier",
    "VerificationResult",
    "VerifierRegistry",
    "default_verifiers",
]
