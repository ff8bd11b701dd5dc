"""Plugin registry and the declarative runnability policy."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from keysentry.config import ConfigurationError

if TYPE_CHECKING:
    from keysentry.checks.base import SignalPlugin
    from keysentry.config import CheckConfig

logger = logging.getLogger(__name__)


class DuplicatePluginError(ValueError):
    """A plugin with the same id is already registered."""

    pass


class CheckRegistry:
    """Ordered collection of signal plugins.

    The runnability policy is applied in a fixed order before any plugin runs:
    1. disable list (subtractive)
    2. allow list (exclusive when non-empty)
    3. offline mode drops plugins that need the network
    4. plugins with a missing required credential are dropped
    """

    def __init__(self, plugins: list[SignalPlugin] | None = None) -> None:
        self._plugins: list[SignalPlugin] = []
        for plugin in plugins or []:
            self.register(plugin)

    def register(self, plugin: SignalPlugin) -> None:
        """Add a plugin.

        Raises:
            DuplicatePluginError: If a plugin with this id already exists.
        """
        if any(p.id == plugin.id for p in self._plugins):
            raise DuplicatePluginError(f"Plugin already registered: {plugin.id}")
        self._plugins.append(plugin)

    def get(self, plugin_id: str) -> SignalPlugin | None:
        return next((p for p in self._plugins if p.id == plugin_id), None)

    def all(self) -> tuple[SignalPlugin, ...]:
        return tuple(self._plugins)

    def __len__(self) -> int:
        return len(self._plugins)

    def __contains__(self, plugin_id: object) -> bool:
        return any(p.id == plugin_id for p in self._plugins)

    def exclusion_reason(self, plugin: SignalPlugin, config: CheckConfig) -> str | None:
        """Return why ``plugin`` may not run under ``config``, or None if it may."""
        if plugin.id in config.disabled_plugins:
            return "disabled"
        if config.enabled_plugins and plugin.id not in config.enabled_plugins:
            return "not enabled"
        if config.offline and plugin.requires_network:
            return "offline"
        for key in plugin.required_credential_keys:
            if not config.credential(key):
                return f"missing credential {key}"
        return None

    def runnable(self, config: CheckConfig) -> list[SignalPlugin]:
        """Plugins allowed to run under ``config``, in registration order."""
        selected: list[SignalPlugin] = []
        for plugin in self._plugins:
            reason = self.exclusion_reason(plugin, config)
            if reason is None:
                selected.append(plugin)
            else:
                logger.debug("Skipping plugin %s: %s", plugin.id, reason)
        return selected

    def require_credentials(self, plugin: SignalPlugin, config: CheckConfig) -> None:
        """Raise when ``plugin`` lacks a credential.

        The policy drops such plugins silently; call this only when the user
        explicitly asked for the plugin and should be told why it did not run.

        Raises:
            ConfigurationError: Naming the first missing credential key.
        """
        for key in plugin.required_credential_keys:
            if not config.credential(key):
                raise ConfigurationError(f"Plugin {plugin.id} requires {key} to be set")
