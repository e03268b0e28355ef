"""
Taxonomy Registry

In-process table of registered taxonomies: the key, the content types it is
attached to, its display labels and registration args. Registrations are
rebuilt on every taxonomy manager init and are never persisted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TAXONOMY_ARGS: dict[str, Any] = {
    "public": True,
    "hierarchical": False,
    "show_ui": True,
    "show_in_nav_menus": False,
    "query_var": True,
    "rewrite": True,
}


def build_labels(singular: str, plural: str) -> dict[str, str]:
    """Admin labels for a taxonomy from its singular and plural names."""
    return {
        "name": plural,
        "singular_name": singular,
        "all_items": f"All {plural}",
        "parent_item": f"Parent {singular}",
        "add_new_item": f"Add New {singular}",
        "new_item_name": f"New {singular}",
        "edit_item": f"Edit {singular}",
        "update_item": f"Update {singular}",
        "add_or_remove_items": f"Add or remove {plural}",
        "separate_items_with_commas": f"Separate {plural} with commas",
        "search_items": f"Search {plural}",
        "popular_items": f"Popular {plural}",
        "choose_from_most_used": f"Choose from most used {plural}",
    }


@dataclass
class RegisteredTaxonomy:
    key: str
    object_types: list[str]
    labels: dict[str, str] = field(default_factory=dict)
    args: dict[str, Any] = field(default_factory=dict)
    owner: str | None = None
    kind: str | None = None


class TaxonomyRegistry:
    def __init__(self) -> None:
        self._taxonomies: dict[str, RegisteredTaxonomy] = {}

    def register(
        self,
        key: str,
        object_types: list[str],
        *,
        labels: dict[str, str] | None = None,
        args: dict[str, Any] | None = None,
        owner: str | None = None,
        kind: str | None = None,
    ) -> RegisteredTaxonomy:
        """Register (or re-register) a taxonomy for the given content types."""
        taxonomy = RegisteredTaxonomy(
            key=key,
            object_types=list(object_types),
            labels=dict(labels or {}),
            args={**DEFAULT_TAXONOMY_ARGS, **(args or {})},
            owner=owner,
            kind=kind,
        )
        self._taxonomies[key] = taxonomy
        logger.debug("Taxonomy registered: %s for %s (owner=%s)", key, object_types, owner)
        return taxonomy

    def unregister(self, key: str) -> bool:
        if self._taxonomies.pop(key, None) is None:
            return False
        logger.debug("Taxonomy unregistered: %s", key)
        return True

    def get(self, key: str) -> RegisteredTaxonomy | None:
        return self._taxonomies.get(key)

    def is_registered(self, key: str) -> bool:
        return key in self._taxonomies

    def all(self) -> list[RegisteredTaxonomy]:
        return list(self._taxonomies.values())

    def for_content_type(self, content_type: str) -> list[RegisteredTaxonomy]:
        return [t for t in self._taxonomies.values() if content_type in t.object_types]


taxonomy_registry = TaxonomyRegistry()
