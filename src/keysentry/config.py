"""Configuration for keysentry.

Three layers, later ones winning:
- defaults on CheckConfig
- keysentry.toml ([check] table) or pyproject.toml ([tool.keysentry.check])
- KEYSENTRY_* environment variables (and a local .env file), via pydantic-settings

Example keysentry.toml:
    [check]
    offline = false
    enabled_plugins = []
    disabled_plugins = ["common-secrets"]
    prefix_length = 5
    max_workers = 4

    [check.credentials]
    GITGUARDIAN_API_TOKEN = "..."
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from keysentry.checks.breach import (
    DEFAULT_RANGE_URL,
    DEFAULT_TIMEOUT,
    MAX_PREFIX_HEX_LENGTH,
    MAX_RETRY_AFTER,
    PREFIX_HEX_LENGTH,
)

CONFIG_FILENAME = "keysentry.toml"


class ConfigurationError(Exception):
    """Configuration is missing or invalid."""

    pass


class ConfigNotFoundError(ConfigurationError):
    """No configuration file was found."""

    pass


def parse_plugin_list(value: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Normalize "a, b" or ["a", "b"] into a list of plugin ids."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [item.strip() for item in value if item and item.strip()]


class Settings(BaseSettings):
    """Environment-driven settings (KEYSENTRY_ prefix).

    Plugin lists are comma-separated strings so they read naturally from a
    shell: KEYSENTRY_DISABLED_PLUGINS="common-secrets,hibp-password".
    """

    model_config = SettingsConfigDict(
        env_prefix="KEYSENTRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    offline: bool | None = None
    enabled_plugins: str | None = None
    disabled_plugins: str | None = None
    range_url: str | None = None
    request_timeout: float | None = Field(default=None, gt=0)
    max_retry_after: float | None = Field(default=None, ge=0)
    max_workers: int | None = Field(default=None, ge=1)
    plugin_api_keys: dict[str, str] = Field(default_factory=dict)


@dataclass
class CheckConfig:
    """Runtime configuration consumed by the check pipeline.

    Attributes:
        offline: Skip every check that needs the network, including the breach lookup.
        enabled_plugins: If non-empty, only these plugin ids may run.
        disabled_plugins: Plugin ids that must not run.
        credentials: Credential values keyed by name (e.g. "GITGUARDIAN_API_TOKEN").
        verify: Allow active key verification (sends the key to its provider).
        range_url: Base URL of the k-anonymity range endpoint.
        prefix_length: Hex characters of the SHA-1 disclosed per lookup.
        request_timeout: Per-request timeout in seconds.
        max_retry_after: Cap on a server-provided rate-limit backoff.
        max_workers: Concurrent plugin checks per secret.
        batch_workers: Concurrent batch entries (1 = sequential).
    """

    offline: bool = False
    enabled_plugins: list[str] = field(default_factory=list)
    disabled_plugins: list[str] = field(default_factory=list)
    credentials: dict[str, str] = field(default_factory=dict)
    verify: bool = False
    range_url: str = DEFAULT_RANGE_URL
    prefix_length: int = PREFIX_HEX_LENGTH
    request_timeout: float = DEFAULT_TIMEOUT
    max_retry_after: float = MAX_RETRY_AFTER
    max_workers: int = 4
    batch_workers: int = 1

    def credential(self, key: str) -> str | None:
        """Look up a credential, falling back to the process environment."""
        value = self.credentials.get(key) or os.environ.get(key)
        return value or None

    @classmethod
    def from_dict(cls, config: dict) -> CheckConfig:
        """Create config from a dictionary (e.g., from keysentry.toml).

        Args:
            config: Dictionary with a "check" section.

        Returns:
            CheckConfig instance.

        Raises:
            ConfigurationError: If a value has the wrong type or is out of range.
        """
        section = config.get("check", {})
        if not isinstance(section, dict):
            raise ConfigurationError("[check] must be a table")

        credentials = section.get("credentials", {})
        if not isinstance(credentials, dict):
            raise ConfigurationError("[check.credentials] must be a table")

        try:
            prefix_length = int(section.get("prefix_length", PREFIX_HEX_LENGTH))
            max_workers = max(1, int(section.get("max_workers", 4)))
            batch_workers = max(1, int(section.get("batch_workers", 1)))
            request_timeout = float(section.get("request_timeout", DEFAULT_TIMEOUT))
            max_retry_after = float(section.get("max_retry_after", MAX_RETRY_AFTER))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid [check] value: {e}") from e

        if not 1 <= prefix_length <= MAX_PREFIX_HEX_LENGTH:
            raise ConfigurationError(
                f"Invalid [check] value: prefix_length must be between 1 and {MAX_PREFIX_HEX_LENGTH}"
            )

        return cls(
            offline=bool(section.get("offline", False)),
            enabled_plugins=parse_plugin_list(section.get("enabled_plugins")),
            disabled_plugins=parse_plugin_list(section.get("disabled_plugins")),
            credentials={str(k): str(v) for k, v in credentials.items()},
            verify=bool(section.get("verify", False)),
            range_url=str(section.get("range_url", DEFAULT_RANGE_URL)),
            prefix_length=prefix_length,
            request_timeout=request_timeout,
            max_retry_after=max_retry_after,
            max_workers=max_workers,
            batch_workers=batch_workers,
        )

    def merge_settings(self, settings: Settings) -> CheckConfig:
        """Overlay values explicitly set in the environment."""
        if settings.offline is not None:
            self.offline = settings.offline
        if settings.enabled_plugins is not None:
            self.enabled_plugins = parse_plugin_list(settings.enabled_plugins)
        if settings.disabled_plugins is not None:
            self.disabled_plugins = parse_plugin_list(settings.disabled_plugins)
        if settings.range_url:
            self.range_url = settings.range_url
        if settings.request_timeout is not None:
            self.request_timeout = settings.request_timeout
        if settings.max_retry_after is not None:
            self.max_retry_after = settings.max_retry_after
        if settings.max_workers is not None:
            self.max_workers = settings.max_workers
        self.credentials = {**self.credentials, **settings.plugin_api_keys}
        return self


def find_config(start: Path | None = None) -> Path | None:
    """Find keysentry.toml (or a pyproject.toml with [tool.keysentry]) upwards from ``start``."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        pyproject = directory / "pyproject.toml"
        if pyproject.is_file():
            try:
                data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
            except tomllib.TOMLDecodeError:
                continue
            if "keysentry" in data.get("tool", {}):
                return pyproject
    return None


def load_config(path: Path | str | None = None) -> dict[str, Any]:
    """Load the raw configuration dictionary.

    Args:
        path: Explicit file; when None the nearest config file is used, and an
            empty dict is returned if there is none.

    Raises:
        ConfigNotFoundError: If an explicit path does not exist.
        ConfigurationError: If the file is not valid TOML.
    """
    if path is None:
        found = find_config()
        if found is None:
            return {}
        path = found

    path = Path(path)
    if not path.is_file():
        raise ConfigNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e

    if path.name == "pyproject.toml":
        return data.get("tool", {}).get("keysentry", {})
    return data


def resolve_config(path: Path | str | None = None) -> CheckConfig:
    """Build the effective CheckConfig from file and environment."""
    config = CheckConfig.from_dict(load_config(path))
    return config.merge_settings(Settings())
