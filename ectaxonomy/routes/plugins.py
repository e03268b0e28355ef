"""
Plugin Administration Routes

GET  /api/v1/plugins                → list all registered plugins
GET  /api/v1/plugins/{name}         → get single plugin by name
POST /api/v1/plugins/{name}/enable  → enable plugin
POST /api/v1/plugins/{name}/disable → disable plugin

Plugin state is stored in data/plugins_config.json. Enabling or disabling a
plugin re-runs the taxonomy manager so default terms of consumer plugins are
added or removed right away.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ectaxonomy.auth import require_admin
from ectaxonomy.database import get_db
from ectaxonomy.plugins.base import PluginBase  # noqa: TC001
from ectaxonomy.plugins.loader import is_enabled, load_plugins_config, set_enabled
from ectaxonomy.plugins.registry import plugin_registry
from ectaxonomy.taxonomy.manager import taxonomy_manager

router = APIRouter(tags=["Plugins"], dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


# ── Pydantic schemas ───────────────────────────────────────────────────────────


class PluginResponse(BaseModel):
    name: str
    version: str
    description: str
    author: str
    enabled: bool
    hooks: list[str]
    config: dict[str, Any]
    config_schema: dict[str, Any]


# ── Helpers ────────────────────────────────────────────────────────────────────


def _build_response(plugin: PluginBase, all_config: dict[str, Any]) -> PluginResponse:
    plugin_config = all_config.get(plugin.meta.name, {})
    return PluginResponse(
        name=plugin.meta.name,
        version=plugin.meta.version,
        description=plugin.meta.description,
        author=plugin.meta.author,
        enabled=is_enabled(plugin.meta.name, all_config),
        hooks=plugin.meta.hooks,
        config=plugin_config,
        config_schema=plugin.meta.config_schema,
    )


def _get_or_404(name: str) -> PluginBase:
    plugin = plugin_registry.get(name)
    if plugin is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Plugin not found: {name}",
        )
    return plugin


# ── Routes ─────────────────────────────────────────────────────────────────────


@router.get("/", response_model=list[PluginResponse])
async def list_plugins() -> list[PluginResponse]:
    """List all registered plugins with their status and configuration."""
    all_config = load_plugins_config()
    return [_build_response(p, all_config) for p in plugin_registry.all_plugins()]


@router.get("/{name}", response_model=PluginResponse)
async def get_plugin(name: str) -> PluginResponse:
    plugin = _get_or_404(name)
    return _build_response(plugin, load_plugins_config())


@router.post("/{name}/enable", response_model=PluginResponse)
async def enable_plugin(name: str, db: AsyncSession = Depends(get_db)) -> PluginResponse:
    """Enable a plugin and add its default terms if it has not been seen yet."""
    plugin = _get_or_404(name)
    all_config = set_enabled(name, True)
    logger.info("Plugin enabled: %s", name)
    await taxonomy_manager.init(db)
    return _build_response(plugin, all_config)


@router.post("/{name}/disable", response_model=PluginResponse)
async def disable_plugin(name: str, db: AsyncSession = Depends(get_db)) -> PluginResponse:
    """Disable a plugin and remove the terms of its taxonomies."""
    plugin = _get_or_404(name)
    all_config = set_enabled(name, False)
    logger.info("Plugin disabled: %s", name)
    await taxonomy_manager.init(db)
    return _build_response(plugin, all_config)
