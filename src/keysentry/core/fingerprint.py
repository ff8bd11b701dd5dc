"""Short, non-invertible identifiers for secrets."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from keysentry.core.secure_buffer import SecretBuffer

# Hex characters kept from the SHA-256 digest: enough to cross-reference
# reports, far too few to recover the secret.
FINGERPRINT_LENGTH = 16


def fingerprint(secret: SecretBuffer) -> str:
    """Return the first 16 hex characters of the secret's SHA-256 digest.

    Only the truncated prefix is ever rendered as a str; the full digest
    stays in a bytearray that is zeroed before returning.
    """
    raw = secret.digest_bytes("sha256")
    try:
        with memoryview(raw) as view:
            return view[: FINGERPRINT_LENGTH // 2].hex()
    finally:
        for i in range(len(raw)):
            raw[i] = 0
