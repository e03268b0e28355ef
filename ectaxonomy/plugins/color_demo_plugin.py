"""
Color Demo Plugin

Bundled consumer of the taxonomy manager. Registers "Primary Colors" as the
collection taxonomy and "Secondary Colors" as the entity taxonomy for the
"post" content type. When editing a post, the metabox lists the secondary
colors grouped under the primary colors they are mixed from.

Hook subscriptions:
  - entity_collection_taxonomy.run → return the taxonomy configuration record
"""

from __future__ import annotations

import logging
from typing import Any

from ectaxonomy.plugins.base import PluginBase, PluginMeta
from ectaxonomy.plugins.hooks import HOOK_ENTITY_COLLECTION_TAXONOMY_RUN

logger = logging.getLogger(__name__)

_META = PluginMeta(
    name="color_demo",
    version="1.0.0",
    description=(
        "Demo consumer: primary colors as collections, secondary colors as "
        "entities linked to the two primaries they are mixed from"
    ),
    author="Entity Collection Taxonomy",
    hooks=[HOOK_ENTITY_COLLECTION_TAXONOMY_RUN],
    config_schema={
        "content_types": {
            "type": "array",
            "items": {"type": "string"},
            "default": ["post"],
        },
    },
)

COLLECTION_TERMS: dict[str, dict[str, Any]] = {
    "Red": {
        "slug": "primary-color-red",
        "term_meta": {"background_color": "#ff0000", "color": "#ffffff"},
    },
    "Green": {
        "slug": "primary-color-green",
        "term_meta": {"background_color": "#00ff00", "color": "#000000"},
    },
    "Blue": {
        "slug": "primary-color-blue",
        "term_meta": {"background_color": "#0000ff", "color": "#ffffff"},
    },
}

# Term ids are unknown until insert, so entities link to collections by
# collection slug. Names work as well.
ENTITY_TERMS: dict[str, dict[str, Any]] = {
    "Cyan": {
        "slug": "secondary-color-cyan",
        "term_meta": {"primary_color": ["primary-color-green", "primary-color-blue"]},
    },
    "Magenta": {
        "slug": "secondary-color-magenta",
        "term_meta": {"primary_color": ["primary-color-red", "primary-color-blue"]},
    },
    "Yellow": {
        "slug": "secondary-color-yellow",
        "term_meta": {"primary_color": ["primary-color-red", "primary-color-green"]},
    },
}


class ColorDemoPlugin(PluginBase):
    """Demo consumer plugin supplying the primary/secondary color taxonomies."""

    def __init__(self) -> None:
        self._config: dict[str, Any] = {}

    @property
    def meta(self) -> PluginMeta:
        return _META

    async def on_load(self, config: dict[str, Any]) -> None:
        self._config = config
        logger.debug("ColorDemoPlugin loaded (content_types=%s)", self.content_types)

    @property
    def content_types(self) -> list[str]:
        return list(self._config.get("content_types") or ["post"])

    async def handle_hook(self, hook_name: str, payload: dict[str, Any]) -> dict[str, Any] | None:
        if hook_name != HOOK_ENTITY_COLLECTION_TAXONOMY_RUN:
            return None
        return {
            "plugin_name": self.meta.name,
            "content_types": self.content_types,
            "collection": {
                "taxonomy": "primary_color",
                "singular_name": "Primary Color",
                "plural_name": "Primary Colors",
                "terms": COLLECTION_TERMS,
            },
            "entity": {
                "taxonomy": "secondary_color",
                "singular_name": "Secondary Color",
                "plural_name": "Secondary Colors",
                "terms": ENTITY_TERMS,
            },
        }
