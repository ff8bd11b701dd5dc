"""Read a secret from stdin into a SecretBuffer.

Piped input is read as raw bytes into a bytearray that is zeroed once
copied, so the secret never exists as a ``str``. Interactive input falls
back to a hidden prompt, whose ``str`` cannot be scrubbed.
"""

from __future__ import annotations

import sys
from typing import BinaryIO

import typer

from keysentry.core.secure_buffer import SecretBuffer

CHUNK_SIZE = 4096
MAX_SECRET_BYTES = 64 * 1024


class EmptySecretError(ValueError):
    """No secret was provided."""

    pass


def _zero(buf: bytearray) -> None:
    for i in range(len(buf)):
        buf[i] = 0


def _strip_line_ending(buf: bytearray) -> int:
    """Return the length of ``buf`` without trailing CR/LF characters."""
    end = len(buf)
    while end > 0 and buf[end - 1] in (0x0A, 0x0D):
        end -= 1
    return end


def read_secret_from_stream(stream: BinaryIO, limit: int = MAX_SECRET_BYTES) -> SecretBuffer:
    """Read all of ``stream`` into a new SecretBuffer.

    Intermediate buffers are zeroed on every exit path, including
    KeyboardInterrupt while reading.

    Raises:
        EmptySecretError: If the stream held nothing but line endings.
        ValueError: If the input exceeds ``limit`` bytes.
    """
    collected = bytearray()
    chunk = bytearray(CHUNK_SIZE)
    try:
        while True:
            n = stream.readinto(chunk)
            if not n:
                break
            if len(collected) + n > limit:
                raise ValueError(f"Secret input exceeds {limit} bytes")
            collected += memoryview(chunk)[:n]

        end = _strip_line_ending(collected)
        if end == 0:
            raise EmptySecretError("No secret provided on stdin")
        return SecretBuffer.from_bytes(memoryview(collected)[:end])
    finally:
        _zero(chunk)
        _zero(collected)


def read_secret() -> SecretBuffer:
    """Read the secret from piped stdin, or prompt for it without echo."""
    if not sys.stdin.isatty():
        return read_secret_from_stream(sys.stdin.buffer)

    value = typer.prompt("Enter secret (input hidden)", hide_input=True, err=True)
    if not value:
        raise EmptySecretError("No secret provided")
    return SecretBuffer.from_str(value)
