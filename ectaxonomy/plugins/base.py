"""
Plugin Base Classes

PluginMeta: declarative metadata for a plugin (name, version, hooks, config schema).
PluginBase: abstract base class all plugins must subclass.

Consumer plugins of the taxonomy manager subscribe to
HOOK_ENTITY_COLLECTION_TAXONOMY_RUN and return their taxonomy configuration
record from handle_hook().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class PluginMeta:
    """
    Declarative metadata describing a plugin.

    Attributes:
        name:          Plugin identifier, e.g. "color_demo". Consumer plugins
                       use the same value as the plugin_name of their
                       taxonomy configuration record.
        version:       Semver string, e.g. "1.0.0".
        description:   Human-readable description shown by the admin routes.
        author:        Plugin author.
        hooks:         List of hook names this plugin subscribes to.
        config_schema: JSON Schema fragments describing configurable options.
    """

    name: str
    version: str
    description: str
    author: str = "Unknown"
    hooks: list[str] = field(default_factory=list)
    config_schema: dict[str, Any] = field(default_factory=dict)


class PluginBase(ABC):
    """
    Abstract base class for all host plugins.

    Subclasses must implement the `meta` property.
    All lifecycle methods have default no-op implementations so subclasses only
    override what they need.
    """

    @property
    @abstractmethod
    def meta(self) -> PluginMeta:
        """Return the plugin's metadata."""
        ...

    async def on_load(self, config: dict[str, Any]) -> None:  # noqa: B027
        """Called once at startup with the plugin's persisted config dict."""

    async def on_unload(self) -> None:  # noqa: B027
        """Called when the plugin is removed from the registry."""

    async def handle_hook(self, hook_name: str, payload: dict[str, Any]) -> Any:
        """
        Receive and process a hook event.

        Called by PluginRegistry for each hook the plugin declared in
        PluginMeta.hooks.  Default implementation is a no-op.

        Args:
            hook_name: The hook constant, e.g. "entity_collection_taxonomy.run".
            payload:   Arbitrary data provided by the hook dispatcher.

        Returns:
            Any value. For the taxonomy registration hook this is the
            plugin's configuration record.
        """
        return None
