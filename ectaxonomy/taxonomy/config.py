"""
Taxonomy Configuration Records

A consumer plugin describes its two linked taxonomies in a plain mapping
returned from the registration hook:

    {
        "plugin_name": "color_demo",
        "content_types": ["post"],            # "post_type" is accepted too
        "collection": {
            "taxonomy": "primary_color",      # lowercase letters and underscore
            "singular_name": "Primary Color",
            "plural_name": "Primary Colors",
            "terms": {"Red": {"slug": "...", "term_meta": {...}}},
        },
        "entity": {...},
    }

check_config() turns such a mapping into a PluginConfig, or None when the
record is empty or unusable. Unusable records are skipped by the caller.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

COLLECTION = "collection"
ENTITY = "entity"
TYPES: tuple[str, str] = (COLLECTION, ENTITY)

_TAXONOMY_KEY_STRIP = re.compile(r"[^a-z_]")

CONFIG_DEFAULTS: dict[str, Any] = {
    "plugin_name": "",
    "content_types": [],
    COLLECTION: {
        "taxonomy": "",
        "singular_name": "",
        "plural_name": "",
        "terms": {},
    },
    ENTITY: {
        "taxonomy": "",
        "singular_name": "",
        "plural_name": "",
        "terms": {},
    },
}


def normalize_taxonomy_key(value: Any) -> str:
    """Lowercase a taxonomy key and drop every character outside [a-z_]."""
    if value is None:
        return ""
    return _TAXONOMY_KEY_STRIP.sub("", str(value).lower())


@dataclass
class DefaultTerm:
    """A term added when a consumer plugin is first initialised."""

    name: str
    slug: str | None = None
    description: str | None = None
    term_meta: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, name: str, entry: Any) -> DefaultTerm:
        if not isinstance(entry, Mapping):
            entry = {}
        term_meta = entry.get("term_meta")
        return cls(
            name=name,
            slug=entry.get("slug") or None,
            description=entry.get("description") or None,
            term_meta=dict(term_meta) if isinstance(term_meta, Mapping) else {},
        )


@dataclass
class TaxonomyConfig:
    taxonomy: str
    singular_name: str
    plural_name: str
    terms: dict[str, DefaultTerm] = field(default_factory=dict)

    def to_record(self) -> dict[str, str]:
        """Stored form: everything except the default terms."""
        return {
            "taxonomy": self.taxonomy,
            "singular_name": self.singular_name,
            "plural_name": self.plural_name,
        }


@dataclass
class PluginConfig:
    plugin_name: str
    content_types: list[str]
    collection: TaxonomyConfig
    entity: TaxonomyConfig

    def taxonomy_config(self, type_: str) -> TaxonomyConfig:
        if type_ == COLLECTION:
            return self.collection
        if type_ == ENTITY:
            return self.entity
        raise KeyError(type_)

    def to_record(self) -> dict[str, Any]:
        return {
            "plugin_name": self.plugin_name,
            "content_types": list(self.content_types),
            COLLECTION: self.collection.to_record(),
            ENTITY: self.entity.to_record(),
        }

    @classmethod
    def from_record(cls, record: Any) -> PluginConfig | None:
        """Rebuild a config from its stored form. Terms come back empty."""
        return check_config(record)


def _merge_defaults(raw: Mapping[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(CONFIG_DEFAULTS)
    for key, value in raw.items():
        if key == "post_type":
            key = "content_types"
        if key in TYPES:
            if isinstance(value, Mapping):
                merged[key].update(value)
            continue
        merged[key] = value
    return merged


def _taxonomy_config(block: Mapping[str, Any]) -> TaxonomyConfig | None:
    taxonomy = normalize_taxonomy_key(block.get("taxonomy"))
    if not taxonomy:
        return None

    default_label = taxonomy.replace("_", " ").strip().title()
    singular = str(block.get("singular_name") or "").strip() or default_label
    plural = str(block.get("plural_name") or "").strip() or f"{singular}s"

    terms: dict[str, DefaultTerm] = {}
    raw_terms = block.get("terms")
    if isinstance(raw_terms, Mapping):
        for name, entry in raw_terms.items():
            name = str(name).strip()
            if name:
                terms[name] = DefaultTerm.from_mapping(name, entry)

    return TaxonomyConfig(taxonomy=taxonomy, singular_name=singular, plural_name=plural, terms=terms)


def check_config(raw: Any) -> PluginConfig | None:
    """
    Validate and normalise a configuration record from a consumer plugin.

    Returns None when the record is not a mapping, adds nothing to the
    defaults, lacks a plugin name, or names a taxonomy key that is empty
    after normalisation. The collection and entity keys must differ.
    """
    if not isinstance(raw, Mapping):
        return None

    merged = _merge_defaults(raw)
    if merged == CONFIG_DEFAULTS:
        return None

    plugin_name = str(merged.get("plugin_name") or "").strip()
    if not plugin_name:
        return None

    content_types = merged.get("content_types")
    if isinstance(content_types, str):
        content_types = [content_types]
    if not isinstance(content_types, (list, tuple)):
        return None
    content_types = list(dict.fromkeys(str(ct) for ct in content_types if ct))

    collection = _taxonomy_config(merged[COLLECTION])
    entity = _taxonomy_config(merged[ENTITY])
    if collection is None or entity is None:
        return None
    if collection.taxonomy == entity.taxonomy:
        return None

    return PluginConfig(
        plugin_name=plugin_name,
        content_types=content_types,
        collection=collection,
        entity=entity,
    )
