"""Shannon entropy and alphabet detection for candidate secrets.

Higher entropy indicates more randomness, which is characteristic of
generated credentials. Typical values for trimmed input:
- < 2.5: placeholders, repeated characters
- 2.5-3.5: words, short test values
- > 3.5: plausible generated secrets
"""

from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum


class Encoding(str, Enum):
    """Alphabet inferred from a candidate secret."""

    HEX = "hex"
    BASE64 = "base64"
    BASE62 = "base62"
    ALPHANUMERIC = "alphanumeric"
    MIXED = "mixed"


ALPHABET_SIZES: dict[Encoding, int] = {
    Encoding.HEX: 16,
    Encoding.BASE62: 62,
    Encoding.BASE64: 64,
    Encoding.ALPHANUMERIC: 64,  # base62 plus "_" and "-"
    Encoding.MIXED: 95,  # printable ASCII
}

_HEX_RE = re.compile(r"[0-9a-fA-F]+")
_BASE64_PADDED_RE = re.compile(r"[A-Za-z0-9+/]+=+")
_BASE64_SYMBOL_RE = re.compile(r"[A-Za-z0-9+/]*[+/][A-Za-z0-9+/=]*")
_BASE62_RE = re.compile(r"[A-Za-z0-9]+")
_ALNUM_RE = re.compile(r"[A-Za-z0-9_-]+")

VERY_SHORT_LENGTH = 8
VERY_LOW_ENTROPY = 2.5
LOW_ENTROPY = 3.5
LOW_ENTROPY_MAX_LENGTH = 20

WARN_VERY_SHORT = "Very short, likely not a real API key"
WARN_VERY_LOW_ENTROPY = "Very low entropy, likely a placeholder or test value"
WARN_LOW_ENTROPY = "Low entropy, verify this is a real secret"


@dataclass(frozen=True)
class EntropyProfile:
    """Entropy measurements over whitespace-trimmed content.

    Attributes:
        shannon_entropy: Bits per symbol.
        max_possible_entropy: log2 of the inferred alphabet size.
        normalized_entropy: shannon_entropy / max_possible_entropy (0 if undefined).
        encoding: Inferred alphabet.
        length: Length of the trimmed content.
        exact_entropy: Unrounded shannon_entropy, used for threshold comparisons.
        warning: Human-readable caution, or None.
    """

    shannon_entropy: float
    max_possible_entropy: float
    normalized_entropy: float
    encoding: Encoding
    length: int
    exact_entropy: float = field(repr=False)
    warning: str | None = None


def _as_text(data: str | bytes | bytearray | memoryview) -> str:
    if isinstance(data, str):
        return data
    return bytes(data).decode("utf-8", errors="replace")


def shannon_entropy(data: str | bytes | bytearray | memoryview) -> float:
    """Calculate Shannon entropy in bits per symbol.

    Returns 0.0 for empty input and for input made of a single repeated symbol.
    """
    if len(data) == 0:
        return 0.0

    length = len(data)
    entropy = 0.0
    for count in Counter(data).values():
        prob = count / length
        entropy -= prob * math.log2(prob)

    # -0.0 for single-symbol input
    return abs(entropy)


def detect_encoding(data: str) -> Encoding:
    """Infer the alphabet of ``data``. Rules are exclusive and checked in order."""
    if _HEX_RE.fullmatch(data):
        return Encoding.HEX
    # base64 needs "+", "/" or trailing "=" to be told apart from base62
    if _BASE64_PADDED_RE.fullmatch(data) or _BASE64_SYMBOL_RE.fullmatch(data):
        return Encoding.BASE64
    if _BASE62_RE.fullmatch(data):
        return Encoding.BASE62
    if _ALNUM_RE.fullmatch(data):
        return Encoding.ALPHANUMERIC
    return Encoding.MIXED


def max_entropy(encoding: Encoding) -> float:
    size = ALPHABET_SIZES.get(encoding, 0)
    return math.log2(size) if size > 0 else 0.0


def entropy_warning(entropy: float, length: int) -> str | None:
    """Return the first applicable warning for the given measurements."""
    if length < VERY_SHORT_LENGTH:
        return WARN_VERY_SHORT
    if entropy < VERY_LOW_ENTROPY:
        return WARN_VERY_LOW_ENTROPY
    if entropy < LOW_ENTROPY and length < LOW_ENTROPY_MAX_LENGTH:
        return WARN_LOW_ENTROPY
    return None


def analyze_entropy(data: str | bytes | bytearray | memoryview) -> EntropyProfile:
    """Build an EntropyProfile for ``data`` after trimming surrounding whitespace."""
    text = _as_text(data).strip()
    entropy = shannon_entropy(text)
    encoding = detect_encoding(text)
    max_ent = max_entropy(encoding)
    normalized = entropy / max_ent if max_ent > 0 else 0.0

    return EntropyProfile(
        shannon_entropy=round(entropy, 3),
        max_possible_entropy=round(max_ent, 3),
        normalized_entropy=round(normalized, 3),
        encoding=encoding,
        length=len(text),
        exact_entropy=entropy,
        warning=entropy_warning(entropy, len(text)),
    )
