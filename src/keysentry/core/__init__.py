"""Local analysis primitives: secret storage, entropy and provider identification."""

from keysentry.core.entropy import Encoding, EntropyProfile, analyze_entropy, detect_encoding, shannon_entropy
from keysentry.core.identifier import (
    SIGNATURES,
    Confidence,
    Identification,
    Provider,
    ProviderSignature,
    identify,
)
from keysentry.core.local import LocalVerdict, build_local_verdict
from keysentry.core.secure_buffer import ContractViolation, SecretBuffer

__all__ = [
    "SIGNATURES",
    "Confidence",
    "ContractViolation",
    "Encoding",
    "EntropyProfile",
    "Identification",
    "LocalVerdict",
    "Provider",
    "ProviderSignature",
    "SecretBuffer",
    "analyze_entropy",
    "build_local_verdict",
    "detect_encoding",
    "identify",
    "shannon_entropy",
]
