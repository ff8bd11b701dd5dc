"""K-anonymity breach lookup against a Pwned Passwords style range API.

Protocol:
- SHA-1 the secret into a zeroable buffer and render it as uppercase hex.
- Disclose only the first ``prefix_length`` hex characters (at most 5,
  so each prefix is shared by hundreds of unrelated hashes).
- Keep the remaining suffix local and compare it against every returned
  ``<SUFFIX>:<COUNT>`` record in constant time, scanning the whole list.

Neither the secret nor its full digest ever leaves the process.
"""

from __future__ import annotations

import contextlib
import logging
import re
import time
from dataclasses import dataclass, field
from hmac import compare_digest
from typing import TYPE_CHECKING, Any

import httpx

from keysentry import __version__
from keysentry.checks.base import CheckError, NetworkError, Severity, SignalResult, UpstreamError
from keysentry.core.sanitize import sanitize_for_terminal

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from keysentry.core.secure_buffer import SecretBuffer

logger = logging.getLogger(__name__)

DEFAULT_RANGE_URL = "https://api.pwnedpasswords.com/range/"
USER_AGENT = f"keysentry/{__version__}"

PREFIX_HEX_LENGTH = 5
# Longer prefixes shrink the candidate set until the lookup identifies the hash.
MAX_PREFIX_HEX_LENGTH = 5
DEFAULT_TIMEOUT = 10.0
DEFAULT_RETRY_AFTER = 1.0
MAX_RETRY_AFTER = 10.0

BREACH_CHECK_ID = "hibp-password"
BREACH_CHECK_NAME = "HIBP Pwned Passwords"

_HEX_DIGITS = b"0123456789ABCDEF"
_RECORD_RE = re.compile(r"([0-9A-Fa-f]+):([0-9]+)")


def _zero(buf: bytearray) -> None:
    for i in range(len(buf)):
        buf[i] = 0


def _hex_into(raw: bytearray, out: bytearray) -> None:
    """Write uppercase hex of ``raw`` into ``out`` without creating a str."""
    for i, byte in enumerate(raw):
        out[2 * i] = _HEX_DIGITS[byte >> 4]
        out[2 * i + 1] = _HEX_DIGITS[byte & 0x0F]


@dataclass
class BreachQuery:
    """The disclosed prefix and the locally retained suffix of one lookup.

    Call dispose() as soon as matching is finished.
    """

    prefix: str
    suffix: bytearray

    def dispose(self) -> None:
        _zero(self.suffix)

    def __repr__(self) -> str:
        return f"BreachQuery(prefix={self.prefix!r}, suffix=****)"


def build_query(secret: SecretBuffer, prefix_length: int = PREFIX_HEX_LENGTH) -> BreachQuery:
    """Split the secret's SHA-1 into a disclosed prefix and a retained suffix.

    Raises:
        ValueError: If prefix_length is outside 1..MAX_PREFIX_HEX_LENGTH.
    """
    if not 1 <= prefix_length <= MAX_PREFIX_HEX_LENGTH:
        raise ValueError(f"prefix_length must be between 1 and {MAX_PREFIX_HEX_LENGTH}")

    raw = secret.digest_bytes("sha1")
    hex_buf = bytearray(len(raw) * 2)
    try:
        _hex_into(raw, hex_buf)
        prefix = hex_buf[:prefix_length].decode("ascii")
        suffix = hex_buf[prefix_length:]
        return BreachQuery(prefix=prefix, suffix=suffix)
    finally:
        _zero(raw)
        _zero(hex_buf)


def iter_records(body: str) -> Iterator[tuple[str, int]]:
    """Yield (suffix, count) for every well-formed line; malformed lines are skipped."""
    for line in body.splitlines():
        record = _RECORD_RE.fullmatch(line.strip())
        if record is None:
            continue
        yield record.group(1), int(record.group(2))


@dataclass
class CandidateMatch:
    """Outcome of scanning a range response.

    Attributes:
        found: A candidate matched the target suffix with a nonzero count.
        occurrences: Count reported for the matching candidate.
        comparisons: Constant-time comparisons performed (one per record).
    """

    found: bool
    occurrences: int
    comparisons: int


def match_candidates(target_suffix: bytearray | bytes, body: str) -> CandidateMatch:
    """Compare ``target_suffix`` against every candidate in ``body``.

    Each candidate is padded or truncated to the target length so that
    compare_digest runs for every record, and the loop never breaks early:
    elapsed time does not depend on where (or whether) the match occurs.
    Padding rows carry a count of 0 and never count as a match.
    """
    target_len = len(target_suffix)
    padded = bytearray(target_len)
    found = False
    occurrences = 0
    comparisons = 0

    try:
        for suffix, count in iter_records(body):
            candidate = suffix.upper().encode("ascii")
            n = min(len(candidate), target_len)
            padded[:] = bytes(target_len)
            padded[:n] = candidate[:n]

            length_match = len(candidate) == target_len
            bytes_match = compare_digest(padded, target_suffix)
            comparisons += 1

            hit = length_match & bytes_match & (count > 0)
            if hit:
                found = True
                occurrences = count
    finally:
        _zero(padded)

    return CandidateMatch(found=found, occurrences=occurrences, comparisons=comparisons)


@dataclass
class BreachResult:
    """Outcome of one breach lookup.

    ``checked`` with ``error`` set means the lookup was attempted and failed;
    that is never equivalent to "not found".
    """

    checked: bool
    found: bool
    occurrences: int
    hash_prefix: str
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def clean(self) -> bool:
        """Checked successfully and not found."""
        return self.checked and self.error is None and not self.found

    def to_signal(self) -> SignalResult:
        if self.error:
            return SignalResult.failure(BREACH_CHECK_ID, BREACH_CHECK_NAME, self.error)
        return SignalResult(
            check_id=BREACH_CHECK_ID,
            name=BREACH_CHECK_NAME,
            found=self.found,
            severity=Severity.CRITICAL if self.found else Severity.LOW,
            details=(
                f"Found in {self.occurrences:,} breach record(s)"
                if self.found
                else "Not found in breach data"
            ),
            metadata={"occurrences": self.occurrences, "hash_prefix": self.hash_prefix},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "checked": self.checked,
            "found": self.found,
            "occurrences": self.occurrences,
            "hash_prefix": self.hash_prefix,
            "error": self.error,
        }


class BreachChecker:
    """Client for the k-anonymity range endpoint.

    Example:
        checker = BreachChecker()
        with SecretBuffer.from_bytes(raw) as secret:
            result = checker.check(secret)
    """

    id = BREACH_CHECK_ID
    name = BREACH_CHECK_NAME
    requires_network = True

    def __init__(
        self,
        range_url: str = DEFAULT_RANGE_URL,
        prefix_length: int = PREFIX_HEX_LENGTH,
        timeout: float = DEFAULT_TIMEOUT,
        max_retry_after: float = MAX_RETRY_AFTER,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the checker.

        Args:
            range_url: Base URL; the prefix is appended to it.
            prefix_length: Hex characters disclosed per lookup.
            timeout: Request timeout in seconds.
            max_retry_after: Upper bound for a server-provided backoff hint.
            client: Optional preconfigured httpx client (not closed by us).
            sleep: Injected for tests.
        """
        if not 1 <= prefix_length <= MAX_PREFIX_HEX_LENGTH:
            raise ValueError(f"prefix_length must be between 1 and {MAX_PREFIX_HEX_LENGTH}")
        self.range_url = range_url if range_url.endswith("/") else f"{range_url}/"
        self.prefix_length = prefix_length
        self.timeout = timeout
        self.max_retry_after = max_retry_after
        self._client = client
        self._sleep = sleep

    @property
    def privacy_summary(self) -> str:
        host = httpx.URL(self.range_url).host
        return f"SHA-1 prefix ({self.prefix_length} hex chars) -> {host}"

    def check(self, secret: SecretBuffer) -> BreachResult:
        """Run one k-anonymity lookup for ``secret``.

        Network and upstream failures are returned as an errored result.
        """
        query = build_query(secret, self.prefix_length)
        try:
            body = self.fetch_range(query.prefix)
            match = match_candidates(query.suffix, body)
            logger.debug(
                "Range lookup scanned %d candidate(s) for a %d-char prefix",
                match.comparisons,
                len(query.prefix),
            )
            return BreachResult(
                checked=True,
                found=match.found,
                occurrences=match.occurrences,
                hash_prefix=query.prefix,
            )
        except CheckError as e:
            logger.debug("Range lookup failed: %s", e)
            return BreachResult(
                checked=True,
                found=False,
                occurrences=0,
                hash_prefix=query.prefix,
                error=str(e),
            )
        finally:
            query.dispose()

    def fetch_range(self, prefix: str) -> str:
        """Fetch the candidate list for ``prefix``.

        A 429 is retried exactly once after the server's Retry-After hint
        (bounded by max_retry_after).

        Raises:
            NetworkError: If the endpoint cannot be reached.
            UpstreamError: On any non-2xx response.
        """
        if len(prefix) > self.prefix_length:
            raise ValueError("Refusing to disclose more than the configured prefix length")

        with self._session() as client:
            response = self._get(client, prefix)
            if response.status_code == 429:
                delay = self._retry_delay(response)
                logger.debug("Rate limited; retrying once in %.1fs", delay)
                self._sleep(delay)
                response = self._get(client, prefix)

        if not response.is_success:
            reason = sanitize_for_terminal(response.reason_phrase or "")
            raise UpstreamError(
                response.status_code,
                f"API returned {response.status_code}: {reason}".rstrip(": "),
            )
        return response.text

    def _session(self) -> contextlib.AbstractContextManager[httpx.Client]:
        if self._client is not None:
            return contextlib.nullcontext(self._client)
        return httpx.Client(timeout=self.timeout)

    def _get(self, client: httpx.Client, prefix: str) -> httpx.Response:
        try:
            return client.get(
                f"{self.range_url}{prefix}",
                headers={"User-Agent": USER_AGENT, "Add-Padding": "true"},
            )
        except httpx.HTTPError as e:
            raise NetworkError("Network error") from e

    def _retry_delay(self, response: httpx.Response) -> float:
        header = response.headers.get("Retry-After")
        try:
            delay = float(header) if header is not None else DEFAULT_RETRY_AFTER
        except ValueError:
            delay = DEFAULT_RETRY_AFTER
        return max(0.0, min(delay, self.max_retry_after))
