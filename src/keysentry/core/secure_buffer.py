"""Disposal-guaranteed container for secret material.

Secrets must always travel through the core as a SecretBuffer, never as a
plain ``str``. Python strings are immutable and cannot be scrubbed, so the
buffer keeps its content in a ``bytearray`` that is overwritten with zeros
on disposal.

Typical use is scoped acquisition:

    with SecretBuffer.from_bytes(raw) as secret:
        verdict = build_local_verdict(secret)
    # secret is zeroed here, even if an exception (or Ctrl-C) escaped
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")

REDACTED = "[SecretBuffer: REDACTED]"


class ContractViolation(RuntimeError):
    """A disposed SecretBuffer was used.

    This is a programming error inside the caller, not a runtime condition,
    and is never caught by keysentry itself.
    """

    pass


class SecretBuffer:
    """Owned, zeroable byte storage for a single secret.

    Attributes:
        disposed: True once the content has been overwritten.
    """

    __slots__ = ("_buf", "_disposed")

    def __init__(self, data: bytearray) -> None:
        # Private: use from_bytes()/from_str() so the storage is always a copy.
        self._buf = data
        self._disposed = False

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> SecretBuffer:
        """Copy ``data`` into a new buffer. The caller's object is left untouched."""
        return cls(bytearray(data))

    @classmethod
    def from_str(cls, text: str) -> SecretBuffer:
        """Encode ``text`` as UTF-8 into a new buffer.

        The caller's ``str`` stays in memory until garbage collected; prefer
        from_bytes() with a bytearray the caller can zero itself.
        """
        return cls(bytearray(text.encode("utf-8")))

    @property
    def disposed(self) -> bool:
        return self._disposed

    def __len__(self) -> int:
        self._ensure_live()
        return len(self._buf)

    def read_bytes(self) -> memoryview:
        """Return a read-only view of the content.

        The view must not outlive the current call and should be released
        (``view.release()`` or a ``with`` block) before the buffer is disposed.
        """
        self._ensure_live()
        return memoryview(self._buf).toreadonly()

    def with_text(self, fn: Callable[[str], T]) -> T:
        """Apply ``fn`` to the UTF-8 decoded content and return its result.

        The temporary ``str`` is scoped to the callback.
        """
        self._ensure_live()
        return fn(self._buf.decode("utf-8", errors="replace"))

    def digest_bytes(self, algorithm: str = "sha256") -> bytearray:
        """Return the raw digest in a bytearray the caller must zero."""
        self._ensure_live()
        hasher = hashlib.new(algorithm)
        hasher.update(self._buf)
        return bytearray(hasher.digest())

    def digest(self, algorithm: str = "sha256") -> str:
        """Return the lowercase hex digest of the content."""
        self._ensure_live()
        hasher = hashlib.new(algorithm)
        hasher.update(self._buf)
        return hasher.hexdigest()

    def dispose(self) -> None:
        """Overwrite every byte with zero. Safe to call more than once."""
        if self._disposed:
            return
        for i in range(len(self._buf)):
            self._buf[i] = 0
        self._disposed = True

    def __enter__(self) -> SecretBuffer:
        self._ensure_live()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def __del__(self) -> None:
        # Last-resort scrub when the owner forgot to dispose.
        try:
            self.dispose()
        except Exception:  # nosec B110
            pass

    def __repr__(self) -> str:
        return REDACTED

    __str__ = __repr__

    def __format__(self, format_spec: str) -> str:
        return REDACTED

    def __reduce__(self):
        raise TypeError("SecretBuffer cannot be pickled")

    def __copy__(self):
        raise TypeError("SecretBuffer cannot be copied; create a new buffer instead")

    def __deepcopy__(self, memo):
        raise TypeError("SecretBuffer cannot be copied; create a new buffer instead")

    def __eq__(self, other: object) -> bool:
        return self is other

    __hash__ = object.__hash__

    def _ensure_live(self) -> None:
        if self._disposed:
            raise ContractViolation("SecretBuffer has been disposed")
