"""
Entity Collection Taxonomy manager

Lets any number of consumer plugins register a pair of linked taxonomies
(a collection taxonomy and an entity taxonomy) against their content types
through HOOK_ENTITY_COLLECTION_TAXONOMY_RUN.

Default terms of a consumer plugin are added once, the first time the
plugin is seen, and a copy of its config (terms omitted) is remembered in
the persisted registry record. When a remembered plugin is no longer active
its terms are removed and the record entry is forgotten. Data of consumer
plugins is removed on their deactivation, not on deactivation of the
manager itself.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ectaxonomy.exceptions import (
    DuplicateResourceError,
    PluginNotFoundError,
    TaxonomyNotFoundError,
    TermNotFoundError,
    ValidationError,
)
from ectaxonomy.plugins.hooks import (
    HOOK_CONTENT_SAVED,
    HOOK_ENTITY_COLLECTION_TAXONOMY_RUN,
    HOOK_TERM_CREATED,
    HOOK_TERM_DELETED,
    HOOK_TERM_EDITED,
)
from ectaxonomy.plugins.loader import active_plugin_names
from ectaxonomy.plugins.registry import PluginRegistry, plugin_registry
from ectaxonomy.schemas.content import MetaBoxEntity, MetaBoxGroup, MetaBoxResponse
from ectaxonomy.schemas.taxonomy import FieldDefinition, TermRow
from ectaxonomy.services.content_service import ContentService
from ectaxonomy.services.term_service import TermService, TermWithMeta
from ectaxonomy.taxonomy import fields, options
from ectaxonomy.taxonomy.config import COLLECTION, ENTITY, TYPES, DefaultTerm, PluginConfig, check_config
from ectaxonomy.taxonomy.registry import TaxonomyRegistry, build_labels, taxonomy_registry

logger = logging.getLogger(__name__)


class EntityCollectionTaxonomy:
    """Registry of consumer plugin configs and driver of their term lifecycle."""

    def __init__(
        self,
        plugins: PluginRegistry | None = None,
        taxonomies: TaxonomyRegistry | None = None,
    ) -> None:
        self.plugins = plugins if plugins is not None else plugin_registry
        self.taxonomies = taxonomies if taxonomies is not None else taxonomy_registry
        self._config_by_plugin: dict[str, PluginConfig] = {}
        self._content_types: dict[str, str] = {}
        self._lock: asyncio.Lock = asyncio.Lock()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def reset(self) -> None:
        """Forget the configs and taxonomy registrations of the previous init."""
        for config in self._config_by_plugin.values():
            for type_ in TYPES:
                self.taxonomies.unregister(config.taxonomy_config(type_).taxonomy)
        self._config_by_plugin.clear()
        self._content_types.clear()

    async def init(self, db: AsyncSession) -> None:
        """
        Collect configs from consumer plugins and reconcile default terms.

        Safe to call repeatedly: default terms are added only for plugins
        missing from the registry record, and removed only for remembered
        plugins that are no longer active. Concurrent calls run one at a time.
        """
        async with self._lock:
            self.reset()
            record = options.load_registry_record()
            active = set(active_plugin_names(self.plugins))

            for subscriber, raw in await self.plugins.collect_hook(HOOK_ENTITY_COLLECTION_TAXONOMY_RUN, {}):
                config = check_config(raw)
                if config is None:
                    logger.debug("Skipping empty or malformed taxonomy config from plugin %s", subscriber)
                    continue
                plugin_name = config.plugin_name
                if plugin_name not in active:
                    logger.debug("Skipping taxonomy config of inactive plugin %s", plugin_name)
                    continue

                self._config_by_plugin[plugin_name] = config
                for content_type in config.content_types:
                    self._content_types[content_type] = content_type
                self.register_collection_taxonomy(plugin_name)
                self.register_entity_taxonomy(plugin_name)

                if plugin_name not in record:
                    added = await self.add_terms(db, plugin_name)
                    record[plugin_name] = config.to_record()
                    logger.info("Initialised taxonomies of plugin %s (%d default terms added)", plugin_name, added)

            for plugin_name in list(record):
                if plugin_name in active:
                    continue
                plugin_config = PluginConfig.from_record(record[plugin_name])
                if plugin_config is None:
                    logger.warning("Dropping unreadable registry entry for plugin %s", plugin_name)
                else:
                    # Terms are looked up through registered taxonomies, so register
                    # the pair for the duration of the removal only.
                    temporary = []
                    for type_ in TYPES:
                        taxonomy = plugin_config.taxonomy_config(type_).taxonomy
                        if not self.taxonomies.is_registered(taxonomy):
                            self.taxonomies.register(
                                taxonomy, plugin_config.content_types, owner=plugin_name, kind=type_
                            )
                            temporary.append(taxonomy)
                    try:
                        removed = await self.remove_terms(db, plugin_name, plugin_config)
                    finally:
                        for taxonomy in temporary:
                            self.taxonomies.unregister(taxonomy)
                    logger.info("Removed %d terms of deactivated plugin %s", removed, plugin_name)
                del record[plugin_name]

            options.save_registry_record(record)

    def on_activation(self) -> None:
        """Create the registry record if there is none yet."""
        if not options.registry_record_exists():
            options.save_registry_record({})
            logger.info("Taxonomy registry record created")

    def on_deactivation(self) -> None:
        if options.delete_registry_record():
            logger.info("Taxonomy registry record deleted")

    def on_uninstall(self) -> None:
        self.on_deactivation()

    # ── Config lookup ─────────────────────────────────────────────────────────

    def get_config(self, plugin_name: str) -> PluginConfig:
        config = self._config_by_plugin.get(plugin_name)
        if config is None:
            raise PluginNotFoundError(plugin_name)
        return config

    def configured_plugins(self) -> list[str]:
        return list(self._config_by_plugin)

    def get_content_types(self, plugin_name: str | None = None) -> list[str]:
        """Content types of one plugin, or of all configured plugins."""
        if plugin_name is None:
            return list(self._content_types)
        config = self._config_by_plugin.get(plugin_name)
        return list(config.content_types) if config else []

    def get_taxonomy(self, plugin_name: str, type_: str) -> str:
        return self.get_config(plugin_name).taxonomy_config(type_).taxonomy

    def get_singular_name(self, plugin_name: str, type_: str) -> str:
        return self.get_config(plugin_name).taxonomy_config(type_).singular_name

    def get_plural_name(self, plugin_name: str, type_: str) -> str:
        return self.get_config(plugin_name).taxonomy_config(type_).plural_name

    def get_default_terms(self, plugin_name: str, type_: str) -> dict[str, DefaultTerm]:
        return self.get_config(plugin_name).taxonomy_config(type_).terms

    def find_plugin_for_taxonomy(self, taxonomy: str) -> tuple[str, str] | None:
        """Return (plugin name, collection|entity) owning a taxonomy key."""
        for plugin_name, config in self._config_by_plugin.items():
            for type_ in TYPES:
                if config.taxonomy_config(type_).taxonomy == taxonomy:
                    return plugin_name, type_
        return None

    def resolve(self, taxonomy: str) -> tuple[str, str]:
        found = self.find_plugin_for_taxonomy(taxonomy)
        if found is None:
            raise TaxonomyNotFoundError(taxonomy)
        return found

    # ── Registration ──────────────────────────────────────────────────────────

    def register_taxonomy(self, plugin_name: str, type_: str) -> None:
        config = self.get_config(plugin_name)
        taxonomy = config.taxonomy_config(type_)
        self.taxonomies.register(
            taxonomy.taxonomy,
            config.content_types,
            labels=build_labels(taxonomy.singular_name, taxonomy.plural_name),
            owner=plugin_name,
            kind=type_,
        )
        logger.info("Registered %s taxonomy %s for plugin %s", type_, taxonomy.taxonomy, plugin_name)

    def register_collection_taxonomy(self, plugin_name: str) -> None:
        self.register_taxonomy(plugin_name, COLLECTION)

    def register_entity_taxonomy(self, plugin_name: str) -> None:
        self.register_taxonomy(plugin_name, ENTITY)

    # ── Default terms ─────────────────────────────────────────────────────────

    async def add_terms(self, db: AsyncSession, plugin_name: str) -> int:
        """Insert the default terms of both taxonomies. Returns the number added.

        Terms that already exist or fail to store are skipped.
        """
        service = TermService(db)
        added = 0
        for type_ in TYPES:
            taxonomy = self.get_taxonomy(plugin_name, type_)
            for name, default in self.get_default_terms(plugin_name, type_).items():
                try:
                    term = await service.insert_term(taxonomy, name, slug=default.slug, description=default.description)
                    if default.term_meta:
                        await service.merge_term_meta(term.id, taxonomy, default.term_meta)
                except (DuplicateResourceError, ValidationError) as exc:
                    logger.debug("Default term %r not added to %s: %s", name, taxonomy, exc.message)
                    continue
                except SQLAlchemyError as exc:
                    await db.rollback()
                    logger.warning("Could not add default term %r to %s: %s", name, taxonomy, exc)
                    continue
                added += 1
        return added

    async def remove_terms(self, db: AsyncSession, plugin_name: str, plugin_config: PluginConfig) -> int:
        """
        Delete every term, with its metadata, of a plugin's two taxonomies.

        The config is passed in because the plugin is no longer configured
        when this runs. Taxonomies now owned by another configured plugin are
        left alone. Storage failures skip the term.
        """
        service = TermService(db)
        removed = 0
        for type_ in TYPES:
            taxonomy = plugin_config.taxonomy_config(type_).taxonomy
            owner = self.find_plugin_for_taxonomy(taxonomy)
            if owner is not None and owner[0] != plugin_name:
                logger.warning("Not removing terms of %s: taxonomy now belongs to plugin %s", taxonomy, owner[0])
                continue
            try:
                term_ids = [term.id for term in await service.get_terms(taxonomy)]
            except SQLAlchemyError as exc:
                logger.warning("Could not list terms of %s for plugin %s: %s", taxonomy, plugin_name, exc)
                continue
            for term_id in term_ids:
                try:
                    if await service.delete_term(term_id, taxonomy):
                        removed += 1
                except SQLAlchemyError as exc:
                    await db.rollback()
                    logger.warning("Could not delete term %d of %s: %s", term_id, taxonomy, exc)
        return removed

    # ── Term forms ────────────────────────────────────────────────────────────

    async def fetch_all(self, db: AsyncSession, taxonomy: str) -> dict[str, TermWithMeta]:
        return await TermService(db).fetch_all(taxonomy)

    async def get_term(self, db: AsyncSession, taxonomy: str, term_id: int) -> TermWithMeta:
        for term in (await self.fetch_all(db, taxonomy)).values():
            if term.id == term_id:
                return term
        raise TermNotFoundError(term_id)

    async def custom_fields(
        self, db: AsyncSession, plugin_name: str, type_: str, term_id: int | None = None
    ) -> list[FieldDefinition]:
        """Fields of the add form (no term) or the edit form of a term."""
        config = self.get_config(plugin_name)
        taxonomy = config.taxonomy_config(type_).taxonomy
        term = await self.get_term(db, taxonomy, term_id) if term_id is not None else None

        if type_ == COLLECTION:
            return fields.collection_fields(config.collection.singular_name, term.meta if term else {})

        collections = await self.fetch_all(db, config.collection.taxonomy)
        return fields.entity_fields(config.collection.taxonomy, config.collection.plural_name, collections, term)

    async def save_custom_fields(
        self,
        db: AsyncSession,
        plugin_name: str,
        type_: str,
        term_id: int,
        data: Mapping[str, Any] | None,
    ) -> dict[str, Any] | None:
        """Merge data["term_meta"] into a term's metadata. No-op without it."""
        if not data or not isinstance(data.get("term_meta"), Mapping):
            return None
        term_meta = dict(data["term_meta"])
        if type_ == COLLECTION:
            fields.validate_collection_meta(term_meta)
        taxonomy = self.get_taxonomy(plugin_name, type_)
        return await TermService(db).merge_term_meta(term_id, taxonomy, term_meta)

    async def create_term(
        self,
        db: AsyncSession,
        taxonomy: str,
        name: str,
        slug: str | None = None,
        description: str | None = None,
        term_meta: Mapping[str, Any] | None = None,
    ) -> TermWithMeta:
        plugin_name, type_ = self.resolve(taxonomy)
        if type_ == COLLECTION and term_meta:
            fields.validate_collection_meta(term_meta)

        term = await TermService(db).insert_term(taxonomy, name, slug=slug, description=description)
        await self.save_custom_fields(db, plugin_name, type_, term.id, {"term_meta": term_meta})
        await self.plugins.fire_hook(HOOK_TERM_CREATED, {"taxonomy": taxonomy, "term_id": term.id})
        return await self.get_term(db, taxonomy, term.id)

    async def edit_term(
        self,
        db: AsyncSession,
        taxonomy: str,
        term_id: int,
        name: str | None = None,
        slug: str | None = None,
        description: str | None = None,
        term_meta: Mapping[str, Any] | None = None,
    ) -> TermWithMeta:
        plugin_name, type_ = self.resolve(taxonomy)
        if type_ == COLLECTION and term_meta:
            fields.validate_collection_meta(term_meta)

        await TermService(db).update_term(term_id, taxonomy, name=name, slug=slug, description=description)
        await self.save_custom_fields(db, plugin_name, type_, term_id, {"term_meta": term_meta})
        await self.plugins.fire_hook(HOOK_TERM_EDITED, {"taxonomy": taxonomy, "term_id": term_id})
        return await self.get_term(db, taxonomy, term_id)

    async def delete_term(self, db: AsyncSession, taxonomy: str, term_id: int) -> None:
        self.resolve(taxonomy)
        if not await TermService(db).delete_term(term_id, taxonomy):
            raise TermNotFoundError(term_id)
        await self.plugins.fire_hook(HOOK_TERM_DELETED, {"taxonomy": taxonomy, "term_id": term_id})

    # ── Term lists ────────────────────────────────────────────────────────────

    def columns(self, plugin_name: str, type_: str) -> dict[str, str]:
        config = self.get_config(plugin_name)
        if type_ == COLLECTION:
            return fields.collection_columns()
        return fields.entity_columns(config.collection.taxonomy, config.collection.plural_name)

    def _column_value(
        self,
        config: PluginConfig,
        type_: str,
        column_name: str,
        term: TermWithMeta,
        collections: Mapping[str, TermWithMeta],
    ) -> Any:
        if type_ == COLLECTION and column_name == "color":
            return fields.color_swatch(term.meta)
        if type_ == ENTITY and column_name == config.collection.taxonomy:
            return [
                {"name": c.name, **fields.color_swatch(c.meta)}
                for c in fields.entity_collections(term, collections, config.collection.taxonomy)
            ]
        return None

    async def custom_column(
        self, db: AsyncSession, plugin_name: str, type_: str, column_name: str, term_id: int
    ) -> Any:
        """Value of a custom column for one term; None for other columns."""
        config = self.get_config(plugin_name)
        term = await self.get_term(db, config.taxonomy_config(type_).taxonomy, term_id)
        collections = await self.fetch_all(db, config.collection.taxonomy) if type_ == ENTITY else {}
        return self._column_value(config, type_, column_name, term, collections)

    async def term_rows(self, db: AsyncSession, plugin_name: str, type_: str) -> list[TermRow]:
        config = self.get_config(plugin_name)
        collections = await self.fetch_all(db, config.collection.taxonomy)
        entities = await self.fetch_all(db, config.entity.taxonomy)
        selections = await ContentService(db).meta_values(config.entity.taxonomy)
        terms = collections if type_ == COLLECTION else entities

        rows = []
        for term in terms.values():
            if type_ == COLLECTION:
                members = [
                    e.name for e in entities.values() if fields.belongs_to(e, term, config.collection.taxonomy)
                ]
            else:
                members = [term.name]

            values: dict[str, Any] = {}
            for column_name in self.columns(plugin_name, type_):
                if column_name == "name":
                    values[column_name] = term.name
                elif column_name == "slug":
                    values[column_name] = term.slug
                elif column_name == "posts":
                    values[column_name] = fields.count_selections(selections, members)
                else:
                    values[column_name] = self._column_value(config, type_, column_name, term, collections)
            rows.append(TermRow(id=term.id, columns=values))
        return rows

    # ── Content metabox ───────────────────────────────────────────────────────

    async def meta_box(self, db: AsyncSession, plugin_name: str, content_id: int) -> MetaBoxResponse:
        """Entities grouped under the collections they belong to, for one content item."""
        config = self.get_config(plugin_name)
        content = await ContentService(db).get_content_or_404(content_id)
        if content.content_type not in config.content_types:
            raise ValidationError(
                f"Content type '{content.content_type}' has no {config.entity.plural_name} box",
                field="content_type",
            )

        taxonomy = config.entity.taxonomy
        collection_taxonomy = config.collection.taxonomy
        entities = await self.fetch_all(db, taxonomy)
        collections = await self.fetch_all(db, collection_taxonomy)
        selected = _as_name_list(await ContentService(db).get_meta(content_id, taxonomy, []))

        groups = []
        for collection in collections.values():
            members = [
                MetaBoxEntity(id=e.id, name=e.name, slug=e.slug, checked=e.name in selected)
                for e in entities.values()
                if fields.belongs_to(e, collection, collection_taxonomy)
            ]
            groups.append(
                MetaBoxGroup(
                    collection=collection.name,
                    slug=collection.slug,
                    entities=members,
                    **fields.color_swatch(collection.meta),
                )
            )

        return MetaBoxResponse(
            plugin_name=plugin_name,
            content_id=content_id,
            taxonomy=taxonomy,
            collection_taxonomy=collection_taxonomy,
            title=config.entity.plural_name,
            groups=groups,
            selected=selected,
        )

    async def save_post_meta(
        self, db: AsyncSession, plugin_name: str, content_id: int, data: Mapping[str, Any]
    ) -> bool:
        """Store the entities checked for a content item. False when `data` has none."""
        field = self.get_taxonomy(plugin_name, ENTITY)
        if field not in data:
            return False
        service = ContentService(db)
        await service.get_content_or_404(content_id)
        await service.update_meta(content_id, field, _as_name_list(data[field]))
        await self.plugins.fire_hook(
            HOOK_CONTENT_SAVED, {"content_id": content_id, "plugin_name": plugin_name, "taxonomy": field}
        )
        return True


def _as_name_list(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple, set)):
        value = [value]
    return list(dict.fromkeys(str(v) for v in value if v not in (None, "")))


# ── Global singleton ──────────────────────────────────────────────────────────
taxonomy_manager = EntityCollectionTaxonomy()
