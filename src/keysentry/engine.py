"""Check engine - runs the full pipeline for one secret or a batch.

The CheckEngine is responsible for:
- Building the local verdict
- Running the k-anonymity breach lookup (unless offline)
- Selecting runnable plugins and running them with bounded fan-out
- Optional, consented active verification
- Aggregating everything into a RiskVerdict

Secrets are only ever held in SecretBuffers; the engine never disposes a
buffer it did not create.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from keysentry.checks.base import SignalResult
from keysentry.checks.breach import BreachChecker, BreachResult
from keysentry.checks.common_secrets import CommonSecretsPlugin
from keysentry.checks.registry import CheckRegistry
from keysentry.config import CheckConfig
from keysentry.core.fingerprint import fingerprint
from keysentry.core.local import LocalVerdict, build_local_verdict
from keysentry.core.sanitize import sanitize_for_terminal
from keysentry.core.secure_buffer import ContractViolation, SecretBuffer
from keysentry.risk import RiskLevel, RiskVerdict, assess, exit_code_for
from keysentry.verification import default_verifiers

if TYPE_CHECKING:
    from collections.abc import Callable

    from keysentry.checks.base import SignalPlugin
    from keysentry.core.batch import BatchEntry, BatchInput, InputValidationError
    from keysentry.verification.base import KeyVerifier, VerificationResult, VerifierRegistry

logger = logging.getLogger(__name__)


class CheckCancelled(Exception):
    """The check was cancelled before network I/O was issued."""

    pass


@dataclass
class CheckReport:
    """Everything the output layer may see about one secret.

    Contains only derived data; no field can reconstruct the secret.
    """

    local: LocalVerdict
    breach: BreachResult | None
    signals: list[SignalResult]
    verdict: RiskVerdict
    verification: VerificationResult | None = None
    name: str | None = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def level(self) -> RiskLevel:
        return self.verdict.level

    @property
    def errored_checks(self) -> list[str]:
        """Ids of checks that ran but could not complete."""
        errored = [s.check_id for s in self.signals if s.errored]
        if self.breach is not None and self.breach.error:
            errored.insert(0, BreachChecker.id)
        return errored

    def to_dict(self) -> dict[str, Any]:
        ident = self.local.identification
        entropy = self.local.entropy
        return {
            "name": self.name,
            "timestamp": self.timestamp,
            "risk_level": self.verdict.level.value,
            "summary": self.verdict.summary,
            "fingerprint": self.verdict.fingerprint,
            "local": {
                "provider": ident.provider.value,
                "confidence": ident.confidence.value,
                "description": ident.description,
                "entropy": {
                    "shannon_entropy": entropy.shannon_entropy,
                    "max_possible_entropy": entropy.max_possible_entropy,
                    "normalized_entropy": entropy.normalized_entropy,
                    "encoding": entropy.encoding.value,
                    "length": entropy.length,
                    "warning": entropy.warning,
                },
                "warnings": list(self.local.warnings),
                "looks_like_secret": self.local.looks_like_secret,
            },
            "breach": self.breach.to_dict() if self.breach else None,
            "signals": [s.to_dict() for s in self.signals],
            "verification": self.verification.to_dict() if self.verification else None,
            "errored_checks": self.errored_checks,
        }


@dataclass
class BatchReport:
    """Reports for every parsed entry plus the entries that were skipped."""

    reports: list[CheckReport] = field(default_factory=list)
    skipped: list[InputValidationError] = field(default_factory=list)

    @property
    def highest_level(self) -> RiskLevel | None:
        return max((r.level for r in self.reports), default=None)

    @property
    def exit_code(self) -> int:
        level = self.highest_level
        return exit_code_for(level) if level is not None else 0

    def count(self, level: RiskLevel) -> int:
        return sum(1 for r in self.reports if r.level is level)


def default_registry() -> CheckRegistry:
    """Registry with every built-in signal plugin."""
    return CheckRegistry([CommonSecretsPlugin()])


class CheckEngine:
    """Runs the check pipeline.

    Example:
        engine = CheckEngine(CheckConfig(offline=True))
        report = engine.check_bytes(raw)
        print(report.verdict.level)
    """

    def __init__(
        self,
        config: CheckConfig | None = None,
        registry: CheckRegistry | None = None,
        breach_checker: BreachChecker | None = None,
        verifiers: VerifierRegistry | None = None,
        confirm_verification: Callable[[KeyVerifier], bool] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Runtime configuration. Uses defaults if None.
            registry: Signal plugins. Uses the built-in set if None.
            breach_checker: Breach lookup client. Built from config if None.
            verifiers: Active verifiers. Uses the built-in set if None.
            confirm_verification: Asked before a key is sent to its provider;
                verification never runs without it.
            cancel_event: When set, pending network calls are not issued.
        """
        self.config = config or CheckConfig()
        self.registry = registry if registry is not None else default_registry()
        self.breach_checker = breach_checker or BreachChecker(
            range_url=self.config.range_url,
            prefix_length=self.config.prefix_length,
            timeout=self.config.request_timeout,
            max_retry_after=self.config.max_retry_after,
        )
        self.verifiers = verifiers if verifiers is not None else default_verifiers()
        self.confirm_verification = confirm_verification
        self.cancel_event = cancel_event or threading.Event()

    def cancel(self) -> None:
        self.cancel_event.set()

    def check_bytes(self, data: bytes | bytearray, name: str | None = None) -> CheckReport:
        """Copy ``data`` into a SecretBuffer, check it, and dispose it on every exit path."""
        with SecretBuffer.from_bytes(data) as secret:
            return self.check(secret, name=name)

    def check(self, secret: SecretBuffer, name: str | None = None) -> CheckReport:
        """Run the full pipeline for ``secret``.

        The caller keeps ownership of ``secret`` and must dispose it.

        Raises:
            CheckCancelled: If cancelled before a network call was issued.
            ContractViolation: If ``secret`` was already disposed.
        """
        local = build_local_verdict(secret)

        breach: BreachResult | None = None
        if not self.config.offline:
            self._ensure_not_cancelled()
            breach = self.breach_checker.check(secret)

        plugins = self.registry.runnable(self.config)
        signals = self._run_plugins(secret, plugins)

        verification = self._maybe_verify(secret, local)

        verdict = assess(local, breach, signals, fingerprint(secret), verification)
        logger.debug("Secret %s assessed as %s", verdict.fingerprint, verdict.level.value)

        return CheckReport(
            local=local,
            breach=breach,
            signals=signals,
            verdict=verdict,
            verification=verification,
            name=name,
        )

    def check_batch(self, batch: BatchInput) -> BatchReport:
        """Check every entry of ``batch``.

        Entries run sequentially unless config.batch_workers > 1. The caller
        still owns (and must dispose) the batch.
        """
        report = BatchReport(skipped=list(batch.skipped))
        if not batch.entries:
            return report

        workers = max(1, self.config.batch_workers)
        if workers == 1:
            report.reports = [self._check_entry(entry) for entry in batch.entries]
        else:
            with ThreadPoolExecutor(max_workers=min(workers, len(batch.entries))) as executor:
                report.reports = list(executor.map(self._check_entry, batch.entries))
        return report

    def _check_entry(self, entry: BatchEntry) -> CheckReport:
        return self.check(entry.secret, name=entry.name)

    def _run_plugins(self, secret: SecretBuffer, plugins: list[SignalPlugin]) -> list[SignalResult]:
        """Run plugins, fanning out to at most config.max_workers threads.

        Concurrent plugins each get a private copy of the secret so that no
        buffer is ever shared between threads.
        """
        if not plugins:
            return []

        if any(p.requires_network for p in plugins):
            self._ensure_not_cancelled()

        workers = min(len(plugins), max(1, self.config.max_workers))
        if workers == 1:
            return [self._run_plugin(plugin, secret) for plugin in plugins]

        copies: list[SecretBuffer] = []
        try:
            for _ in plugins:
                with secret.read_bytes() as view:
                    copies.append(SecretBuffer.from_bytes(view))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(self._run_plugin, plugin, private)
                    for plugin, private in zip(plugins, copies)
                ]
                return [future.result() for future in futures]
        finally:
            for private in copies:
                private.dispose()

    def _run_plugin(self, plugin: SignalPlugin, secret: SecretBuffer) -> SignalResult:
        if plugin.requires_network and self.cancel_event.is_set():
            return SignalResult.failure(plugin.id, plugin.name, "Cancelled")
        try:
            return plugin.check(secret, self.config)
        except ContractViolation:
            raise
        except Exception as e:
            logger.debug("Plugin %s failed: %s", plugin.id, type(e).__name__)
            return SignalResult.failure(
                plugin.id, plugin.name, f"Check failed: {sanitize_for_terminal(str(e))}"
            )

    def _maybe_verify(self, secret: SecretBuffer, local: LocalVerdict) -> VerificationResult | None:
        if not self.config.verify or self.config.offline or not local.identification.recognized:
            return None

        verifier = self.verifiers.get(local.identification.provider)
        if verifier is None or self.confirm_verification is None:
            return None

        if not self.confirm_verification(verifier):
            logger.debug("Verification declined for %s", verifier.provider.value)
            return None

        self._ensure_not_cancelled()
        return verifier.verify(secret)

    def _ensure_not_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise CheckCancelled("Check cancelled before network access")
