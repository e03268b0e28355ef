"""
Plugin Loader

Handles reading/writing host plugin state from `data/plugins_config.json`
and initialising the bundled plugins at application startup.

A plugin is active when it is registered and its config entry does not set
`enabled` to false. The taxonomy manager compares its persisted registry
record against this list to detect deactivated consumer plugins.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ectaxonomy.config import settings

if TYPE_CHECKING:
    from ectaxonomy.plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)

# ── Config file location ──────────────────────────────────────────────────────
_PLUGINS_CONFIG_FILE = Path(settings.data_dir) / "plugins_config.json"

# ── Default plugin config (bundled plugins enabled) ──────────────────────────
_DEFAULT_CONFIG: dict[str, dict[str, Any]] = {
    "color_demo": {"enabled": True},
}


# ── Config I/O ────────────────────────────────────────────────────────────────


def load_plugins_config() -> dict[str, dict[str, Any]]:
    """
    Load plugin configuration from disk.

    Returns defaults if the file does not exist or cannot be parsed.
    """
    if _PLUGINS_CONFIG_FILE.exists():
        try:
            return json.loads(_PLUGINS_CONFIG_FILE.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Failed to read plugins config: %s", exc)
    return copy.deepcopy(_DEFAULT_CONFIG)


def save_plugins_config(config: dict[str, dict[str, Any]]) -> None:
    """Persist plugin configuration to disk."""
    _PLUGINS_CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    _PLUGINS_CONFIG_FILE.write_text(
        json.dumps(config, indent=2, ensure_ascii=False),
        encoding="utf-8",
    )


def is_enabled(name: str, config: dict[str, dict[str, Any]]) -> bool:
    return bool(config.get(name, {}).get("enabled", True))


def set_enabled(name: str, enabled: bool) -> dict[str, dict[str, Any]]:
    """Flip a plugin's `enabled` flag on disk and return the full config."""
    config = load_plugins_config()
    plugin_config = config.get(name, {})
    plugin_config["enabled"] = enabled
    config[name] = plugin_config
    save_plugins_config(config)
    return config


def active_plugin_names(registry: PluginRegistry) -> list[str]:
    """Names of registered plugins that are currently enabled."""
    config = load_plugins_config()
    return [p.meta.name for p in registry.all_plugins() if is_enabled(p.meta.name, config)]


# ── Startup initialisation ────────────────────────────────────────────────────


async def initialize_plugins(registry: PluginRegistry) -> None:
    """
    Load and register all bundled plugins.

    Called from main.py lifespan() before the taxonomy manager runs.
    Deferred imports inside this function prevent circular imports at module
    load time.
    """
    from ectaxonomy.plugins.color_demo_plugin import ColorDemoPlugin

    config = load_plugins_config()

    for plugin_class in [ColorDemoPlugin]:
        plugin = plugin_class()
        plugin_config = config.get(plugin.meta.name, {})
        await plugin.on_load(plugin_config)
        registry.register(plugin)

    logger.info("Plugin initialisation complete: %d plugins loaded", len(registry.all_plugins()))
