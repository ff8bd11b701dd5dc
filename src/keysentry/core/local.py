"""Local-only analysis: provider identification, entropy and format warnings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from keysentry.core.entropy import EntropyProfile, analyze_entropy
from keysentry.core.identifier import Identification, Provider, identify_text

if TYPE_CHECKING:
    from keysentry.core.secure_buffer import SecretBuffer

SECRET_MIN_ENTROPY = 3.5
SECRET_MIN_LENGTH = 16
UNKNOWN_LOW_ENTROPY = 3.0


@dataclass(frozen=True)
class LocalVerdict:
    """Everything keysentry can say about a secret without the network."""

    identification: Identification
    entropy: EntropyProfile
    warnings: tuple[str, ...] = field(default_factory=tuple)
    looks_like_secret: bool = False


def looks_like_secret(identification: Identification, entropy: EntropyProfile) -> bool:
    """A recognized provider format, or long enough and random enough to be one."""
    if identification.recognized:
        return True
    return entropy.exact_entropy >= SECRET_MIN_ENTROPY and entropy.length >= SECRET_MIN_LENGTH


def _collect_warnings(identification: Identification, entropy: EntropyProfile) -> list[str]:
    warnings: list[str] = []
    if entropy.warning:
        warnings.append(entropy.warning)

    if identification.provider is Provider.STRIPE_TEST:
        warnings.append("Stripe TEST key: not a production secret, but still should not be shared")

    if not identification.recognized and entropy.exact_entropy < UNKNOWN_LOW_ENTROPY:
        warnings.append("Unrecognized format with low entropy, may be a password or placeholder")

    return warnings


def analyze_text(text: str) -> LocalVerdict:
    trimmed = text.strip()
    identification = identify_text(trimmed)
    entropy = analyze_entropy(trimmed)
    return LocalVerdict(
        identification=identification,
        entropy=entropy,
        warnings=tuple(_collect_warnings(identification, entropy)),
        looks_like_secret=looks_like_secret(identification, entropy),
    )


def build_local_verdict(secret: SecretBuffer) -> LocalVerdict:
    """Compose identification, entropy and warnings for ``secret``.

    Local analysis never fails; unrecognized input yields an Unknown/low
    identification.
    """
    return secret.with_text(analyze_text)
