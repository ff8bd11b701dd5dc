"""Risk aggregation: merge local, breach, signal and verification results.

The ladder is evaluated top-down and the first applicable rule wins:

1. verified-active key and any exposure signal   -> critical
2. breach match with nonzero occurrences         -> critical
3. any signal found at critical                  -> critical
4. any signal found at high                      -> high
5. high-confidence provider, breach not checked  -> medium
6. recognized provider, breach checked clean     -> low
7. other secret-looking input: breach found -> critical,
   checked clean -> low, unchecked or errored -> medium
8. any signal found at medium                    -> medium
9. otherwise                                     -> info

A check that errored is never treated as "clean".
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from keysentry.checks.base import Severity
from keysentry.core.identifier import Confidence
from keysentry.core.sanitize import sanitize_for_terminal

if TYPE_CHECKING:
    from keysentry.checks.base import SignalResult
    from keysentry.checks.breach import BreachResult
    from keysentry.core.local import LocalVerdict
    from keysentry.verification.base import VerificationResult

RiskLevel = Severity


@dataclass(frozen=True)
class RiskVerdict:
    """Final verdict for one secret.

    Attributes:
        level: Overall risk, CRITICAL highest.
        summary: One-line sanitized explanation.
        fingerprint: Truncated SHA-256, safe to log.
    """

    level: RiskLevel
    summary: str
    fingerprint: str

    @property
    def exit_code(self) -> int:
        return exit_code_for(self.level)

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level.value, "summary": self.summary, "fingerprint": self.fingerprint}


def _found(signals: Sequence[SignalResult], severity: Severity) -> bool:
    return any(s.found and not s.errored and s.severity is severity for s in signals)


def determine_risk_level(
    local: LocalVerdict,
    breach: BreachResult | None,
    signals: Sequence[SignalResult] = (),
    verification: VerificationResult | None = None,
) -> RiskLevel:
    """Apply the precedence ladder.

    Args:
        local: Local verdict for the secret.
        breach: Breach lookup result, or None when the lookup was skipped.
        signals: Results of the plugins that ran.
        verification: Active verification result, if one was performed.
    """
    breach_found = breach is not None and breach.error is None and breach.found
    breach_clean = breach is not None and breach.clean
    identification = local.identification

    if verification is not None and verification.active:
        if breach_found or any(s.found and not s.errored for s in signals):
            return Severity.CRITICAL

    if breach_found and breach.occurrences > 0:
        return Severity.CRITICAL

    if _found(signals, Severity.CRITICAL):
        return Severity.CRITICAL

    if _found(signals, Severity.HIGH):
        return Severity.HIGH

    if identification.confidence is Confidence.HIGH and local.looks_like_secret and not breach_clean:
        return Severity.MEDIUM

    if identification.recognized and breach_clean:
        return Severity.LOW

    if local.looks_like_secret:
        if breach_found:
            return Severity.CRITICAL
        return Severity.LOW if breach_clean else Severity.MEDIUM

    if _found(signals, Severity.MEDIUM):
        return Severity.MEDIUM

    return Severity.INFO


def build_summary(
    local: LocalVerdict,
    breach: BreachResult | None,
    signals: Sequence[SignalResult] = (),
    verification: VerificationResult | None = None,
) -> str:
    """Render a one-line, sanitized summary of the findings."""
    parts: list[str] = []

    if local.identification.recognized:
        parts.append(f"Identified as {local.identification.provider.value}")
    else:
        parts.append("Unknown key format")

    if breach is None:
        parts.append("breach lookup skipped")
    elif breach.error:
        parts.append(f"breach lookup failed: {sanitize_for_terminal(breach.error)}")
    elif breach.found:
        parts.append(f"EXPOSED in {breach.occurrences:,} breach record(s)")
    else:
        parts.append("not found in breach data")

    found = [s for s in signals if s.found and not s.errored]
    if found:
        parts.append(f"flagged by {len(found)} additional check(s)")

    errored = [s for s in signals if s.errored]
    if errored:
        parts.append(f"{len(errored)} check(s) errored")

    if verification is not None and verification.active:
        parts.append("KEY IS CURRENTLY ACTIVE")

    return "; ".join(parts)


def assess(
    local: LocalVerdict,
    breach: BreachResult | None,
    signals: Sequence[SignalResult],
    fingerprint: str,
    verification: VerificationResult | None = None,
) -> RiskVerdict:
    """Merge every result into a RiskVerdict."""
    return RiskVerdict(
        level=determine_risk_level(local, breach, signals, verification),
        summary=build_summary(local, breach, signals, verification),
        fingerprint=fingerprint,
    )


def exit_code_for(level: RiskLevel) -> int:
    """Process exit status: 1 for high or critical risk, 0 otherwise."""
    return 1 if level >= Severity.HIGH else 0
