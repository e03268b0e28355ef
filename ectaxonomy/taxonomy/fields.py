"""
Admin UI glue for collection and entity terms.

Builds the structured field definitions of the add/edit term forms, the
column set of the term lists and the column values. Rendering is left to
whatever front end consumes the admin routes.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from ectaxonomy.exceptions import ValidationError
from ectaxonomy.schemas.taxonomy import FieldDefinition, FieldOption
from ectaxonomy.services.term_service import TermWithMeta

COLOR_FIELDS = ("background_color", "color")
COLOR_HINT = "Use color picker if available or type in hexadecimal code, eg. #ff0000."

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")


def color_swatch(meta: Mapping[str, Any]) -> dict[str, str]:
    return {name: str(meta.get(name) or "") for name in COLOR_FIELDS}


def validate_collection_meta(meta: Mapping[str, Any]) -> None:
    """Color values must be empty or a #rgb / #rrggbb hex code."""
    for name in COLOR_FIELDS:
        value = meta.get(name)
        if value in (None, ""):
            continue
        if not isinstance(value, str) or not _HEX_COLOR.match(value):
            raise ValidationError(f"Invalid color code: {value!r}", field=name)


def linked_collections(entity_meta: Mapping[str, Any], collection_taxonomy: str) -> list[str]:
    """Collection names or slugs an entity is linked to."""
    links = entity_meta.get(collection_taxonomy) or []
    if isinstance(links, str):
        links = [links]
    return [str(link) for link in links]


def belongs_to(entity: TermWithMeta, collection: TermWithMeta, collection_taxonomy: str) -> bool:
    links = linked_collections(entity.meta, collection_taxonomy)
    return collection.name in links or collection.slug in links


def entity_collections(
    entity: TermWithMeta,
    collections: Mapping[str, TermWithMeta],
    collection_taxonomy: str,
) -> list[TermWithMeta]:
    """The collections an entity belongs to, in collection order."""
    return [c for c in collections.values() if belongs_to(entity, c, collection_taxonomy)]


# ── Form fields ───────────────────────────────────────────────────────────────


def collection_fields(singular_name: str, term_meta: Mapping[str, Any]) -> list[FieldDefinition]:
    return [
        FieldDefinition(
            name="background_color",
            label=f"Background color for {singular_name}",
            hint=COLOR_HINT,
            type="color",
            value=term_meta.get("background_color", ""),
        ),
        FieldDefinition(
            name="color",
            label=f"Foreground color for {singular_name}",
            hint=COLOR_HINT,
            type="color",
            value=term_meta.get("color", ""),
        ),
    ]


def entity_fields(
    collection_taxonomy: str,
    collection_plural: str,
    collections: Mapping[str, TermWithMeta],
    entity: TermWithMeta | None,
) -> list[FieldDefinition]:
    options = [
        FieldOption(value=c.name, label=c.name, **color_swatch(c.meta))
        for c in collections.values()
    ]
    selected = (
        [c.name for c in entity_collections(entity, collections, collection_taxonomy)]
        if entity is not None
        else []
    )
    return [
        FieldDefinition(
            name=collection_taxonomy,
            label=collection_plural,
            type="multicheckbox",
            value=selected,
            options=options,
            selected_options=selected,
        ),
    ]


# ── List columns ──────────────────────────────────────────────────────────────


def collection_columns() -> dict[str, str]:
    return {
        "name": "Name",
        "color": "Color",
        "slug": "Slug",
        "posts": "Posts",
    }


def entity_columns(collection_taxonomy: str, collection_plural: str) -> dict[str, str]:
    return {
        "name": "Name",
        collection_taxonomy: collection_plural,
        "slug": "Slug",
        "posts": "Posts",
    }


def count_selections(values: Iterable[Any], names: Iterable[str]) -> int:
    """Number of stored selections that include any of `names`."""
    wanted = set(names)
    count = 0
    for value in values:
        if isinstance(value, str):
            value = [value]
        if isinstance(value, list) and wanted.intersection(str(v) for v in value):
            count += 1
    return count
