"""
Plugin Registry

PluginRegistry: in-process singleton that stores registered plugins and
dispatches hook events to subscribers.

Hooks are fire-and-forget: each subscriber's handle_hook() is awaited in
sequence; exceptions are caught, logged, and execution continues.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ectaxonomy.plugins.base import PluginBase

logger = logging.getLogger(__name__)


class PluginRegistry:
    """
    In-process registry for host plugins.

    Stores registered plugins by name and maintains an index of hook
    subscriptions for efficient dispatch.
    """

    def __init__(self) -> None:
        self._plugins: dict[str, PluginBase] = {}
        self._hook_subscriptions: dict[str, list[PluginBase]] = defaultdict(list)

    # ── Registration ──────────────────────────────────────────────────────────

    def register(self, plugin: PluginBase) -> None:
        """Register a plugin and index its hook subscriptions.

        Registering a second plugin under an existing name replaces the first.
        """
        if plugin.meta.name in self._plugins:
            self.unregister(plugin.meta.name)
        self._plugins[plugin.meta.name] = plugin
        for hook in plugin.meta.hooks:
            self._hook_subscriptions[hook].append(plugin)
        logger.info("Plugin registered: %s v%s", plugin.meta.name, plugin.meta.version)

    def unregister(self, name: str) -> PluginBase | None:
        """Remove a plugin and its hook subscriptions. Returns the removed plugin."""
        plugin = self._plugins.pop(name, None)
        if plugin is None:
            return None
        for subscribers in self._hook_subscriptions.values():
            if plugin in subscribers:
                subscribers.remove(plugin)
        logger.info("Plugin unregistered: %s", name)
        return plugin

    # ── Lookup ────────────────────────────────────────────────────────────────

    def get(self, name: str) -> PluginBase | None:
        """Return the plugin with the given name, or None if not registered."""
        return self._plugins.get(name)

    def all_plugins(self) -> list[PluginBase]:
        """Return all registered plugins in registration order."""
        return list(self._plugins.values())

    def is_registered(self, name: str) -> bool:
        return name in self._plugins

    def subscribers(self, hook_name: str) -> list[PluginBase]:
        """Return the plugins subscribed to a hook, in registration order."""
        return list(self._hook_subscriptions.get(hook_name, []))

    # ── Hook dispatch ─────────────────────────────────────────────────────────

    async def collect_hook(self, hook_name: str, payload: dict[str, Any]) -> list[tuple[str, Any]]:
        """
        Fire a hook and pair each result with the name of the plugin that
        produced it.

        Each plugin's handle_hook() is called in turn.  Exceptions are caught
        and logged, so a misbehaving plugin never prevents others from running.

        Args:
            hook_name: Hook constant from ectaxonomy.plugins.hooks.
            payload:   Arbitrary data passed to each subscriber.

        Returns:
            List of (plugin name, return value) pairs for subscribers that
            did not raise.
        """
        results: list[tuple[str, Any]] = []
        for plugin in self.subscribers(hook_name):
            try:
                result = await plugin.handle_hook(hook_name, payload)
                results.append((plugin.meta.name, result))
            except Exception as exc:
                logger.warning(
                    "Plugin %s hook %s raised: %s",
                    plugin.meta.name,
                    hook_name,
                    exc,
                )
        return results

    async def fire_hook(self, hook_name: str, payload: dict[str, Any]) -> list[Any]:
        """Fire a hook to all subscribing plugins and return their results."""
        return [result for _name, result in await self.collect_hook(hook_name, payload)]


# ── Global singleton ──────────────────────────────────────────────────────────
# Import this wherever you need to fire hooks or inspect registered plugins.
plugin_registry = PluginRegistry()
