"""Exposure and weakness checks.

- BreachChecker: k-anonymity lookup against a Pwned Passwords range API
- CommonSecretsPlugin: local blocklist, placeholder and keyboard-sequence screening
- CheckRegistry: plugin collection plus the runnability policy

Every check reports through SignalResult.
"""

from keysentry.checks.base import (
    CheckError,
    NetworkError,
    Severity,
    SignalPlugin,
    SignalResult,
    UpstreamError,
)
from keysentry.checks.breach import BreachChecker, BreachQuery, BreachResult, build_query, match_candidates
from keysentry.checks.common_secrets import CommonSecretsPlugin
from keysentry.checks.registry import CheckRegistry, DuplicatePluginError

__all__ = [
    "BreachChecker",
    "BreachQuery",
    "BreachResult",
    "CheckError",
    "CheckRegistry",
    "CommonSecretsPlugin",
    "DuplicatePluginError",
    "NetworkError",
    "Severity",
    "SignalPlugin",
    "SignalResult",
    "UpstreamError",
    "build_query",
    "match_candidates",
]
