"""Signal model and plugin interface shared by every check.

Every check, local or networked, reports through the same SignalResult
shape. The risk aggregator depends only on this module, never on concrete
plugin classes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from keysentry.config import CheckConfig
    from keysentry.core.secure_buffer import SecretBuffer


class Severity(str, Enum):
    """Totally ordered severity, CRITICAL highest."""

    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_ORDER: tuple[Severity, ...] = (
    Severity.INFO,
    Severity.LOW,
    Severity.MEDIUM,
    Severity.HIGH,
    Severity.CRITICAL,
)


class CheckError(Exception):
    """Base exception for failures while talking to an external source."""

    pass


class NetworkError(CheckError):
    """The lookup could not reach its upstream."""

    pass


class UpstreamError(CheckError):
    """The upstream answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class SignalResult:
    """Uniform result emitted by every check.

    Attributes:
        check_id: Identifier of the check that produced this result.
        name: Display name of the check.
        found: True when the check found evidence of exposure or weakness.
        severity: How bad the finding is when found is True.
        details: Sanitized, human-readable explanation.
        error: Sanitized error message when the check could not complete.
        metadata: Extra non-secret data for reports.
    """

    check_id: str
    name: str
    found: bool
    severity: Severity
    details: str
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def errored(self) -> bool:
        return self.error is not None

    @classmethod
    def failure(cls, check_id: str, name: str, error: str) -> SignalResult:
        """Result for a check that could not complete. Never reads as "safe"."""
        return cls(
            check_id=check_id,
            name=name,
            found=False,
            severity=Severity.INFO,
            details=error,
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "check_id": self.check_id,
            "name": self.name,
            "found": self.found,
            "severity": self.severity.value,
            "details": self.details,
            "error": self.error,
            "metadata": dict(self.metadata),
        }


class SignalPlugin(ABC):
    """Interface for exposure/weakness checks.

    Implementations must provide:
    - id: unique identifier, used by allow/deny lists
    - name: display label
    - check: run against a SecretBuffer and return a SignalResult

    Class attributes describe how the runnability policy treats the plugin.
    """

    id: ClassVar[str]
    name: ClassVar[str]
    requires_network: ClassVar[bool] = False
    required_credential_keys: ClassVar[tuple[str, ...]] = ()
    privacy_summary: ClassVar[str] = "No data sent (local only)"

    @abstractmethod
    def check(self, secret: SecretBuffer, config: CheckConfig) -> SignalResult:
        """Run the check.

        Args:
            secret: The secret under test. Must not be retained or disposed.
            config: Runtime configuration, including credentials.

        Returns:
            SignalResult describing the outcome. Failures should be reported
            through SignalResult.failure rather than raised.
        """
        ...

    def result(
        self,
        found: bool,
        severity: Severity,
        details: str,
        metadata: dict[str, Any] | None = None,
    ) -> SignalResult:
        """Build a SignalResult stamped with this plugin's id and name."""
        return SignalResult(
            check_id=self.id,
            name=self.name,
            found=found,
            severity=severity,
            details=details,
            metadata=metadata or {},
        )
