"""
Tests for the Entity Collection Taxonomy manager

Covers consumer plugin registration, one-time default terms, removal of a
deactivated plugin's terms, the registry record lifecycle, term forms,
term lists and the content metabox.
"""

import asyncio

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import TestSessionLocal
from ectaxonomy.exceptions import (
    PluginNotFoundError,
    TaxonomyNotFoundError,
    TermNotFoundError,
    ValidationError,
)
from ectaxonomy.plugins.hooks import HOOK_CONTENT_SAVED, HOOK_TERM_CREATED, HOOK_TERM_DELETED
from ectaxonomy.plugins.loader import set_enabled
from ectaxonomy.services.content_service import ContentService
from ectaxonomy.services.term_service import TermService
from ectaxonomy.taxonomy import options
from ectaxonomy.taxonomy.config import COLLECTION, ENTITY
from utils.mock_utils import StubConsumerPlugin, consumer_record, create_test_content

MUSIC_GENRES = {
    "Jazz": {"slug": "jazz", "term_meta": {"background_color": "#000080", "color": "#ffffff"}},
    "Rock": {"slug": "rock"},
}
MUSIC_ARTISTS = {
    "Miles Davis": {"term_meta": {"genre": ["jazz"]}},
    "Frank Zappa": {"term_meta": {"genre": ["jazz", "Rock"]}},
    "Nobody": {},
}


def music_record(**overrides):
    record = consumer_record(
        "music",
        collection="genre",
        entity="artist",
        collection_terms=MUSIC_GENRES,
        entity_terms=MUSIC_ARTISTS,
    )
    record.update(overrides)
    return record


class HookRecorder:
    """Consumer-agnostic subscriber recording term and content hooks"""

    def __init__(self):
        self.events = []

    def plugin(self):
        from ectaxonomy.plugins.base import PluginBase, PluginMeta

        recorder = self

        class _Recorder(PluginBase):
            @property
            def meta(self) -> PluginMeta:
                return PluginMeta(
                    name="recorder",
                    version="1.0.0",
                    description="records hooks",
                    hooks=[HOOK_TERM_CREATED, HOOK_TERM_DELETED, HOOK_CONTENT_SAVED],
                )

            async def handle_hook(self, hook_name, payload):
                recorder.events.append((hook_name, payload))

        return _Recorder()


@pytest.fixture
async def music(manager, plugin_registry, test_db):
    """The manager after init with the 'music' consumer plugin active"""
    plugin_registry.register(StubConsumerPlugin("music", music_record()))
    await manager.init(test_db)
    return manager


# ══════════════════════════════════════════════════════════════════════════════
# Registration and default terms
# ══════════════════════════════════════════════════════════════════════════════


class TestInitRegistration:
    async def test_registers_both_taxonomies(self, music, taxonomy_registry):
        genre = taxonomy_registry.get("genre")
        artist = taxonomy_registry.get("artist")
        assert genre.object_types == ["post"]
        assert genre.owner == "music"
        assert genre.kind == COLLECTION
        assert genre.labels["name"] == "Genres"
        assert artist.kind == ENTITY
        assert artist.labels["add_new_item"] == "Add New Artist"

    async def test_config_getters(self, music):
        assert music.configured_plugins() == ["music"]
        assert music.get_taxonomy("music", COLLECTION) == "genre"
        assert music.get_singular_name("music", ENTITY) == "Artist"
        assert music.get_plural_name("music", COLLECTION) == "Genres"
        assert set(music.get_default_terms("music", ENTITY)) == set(MUSIC_ARTISTS)
        assert music.get_content_types() == ["post"]
        assert music.get_content_types("music") == ["post"]
        assert music.get_content_types("unknown") == []

    async def test_unknown_plugin(self, music):
        with pytest.raises(PluginNotFoundError):
            music.get_config("unknown")

    async def test_resolve(self, music):
        assert music.resolve("genre") == ("music", COLLECTION)
        assert music.resolve("artist") == ("music", ENTITY)
        assert music.find_plugin_for_taxonomy("mood") is None
        with pytest.raises(TaxonomyNotFoundError):
            music.resolve("mood")

    async def test_default_terms_added_with_meta(self, music, test_db):
        genres = await music.fetch_all(test_db, "genre")
        artists = await music.fetch_all(test_db, "artist")
        assert set(genres) == {"Jazz", "Rock"}
        assert genres["Jazz"].meta == {"background_color": "#000080", "color": "#ffffff"}
        assert set(artists) == {"Miles Davis", "Frank Zappa", "Nobody"}
        assert artists["Miles Davis"].slug == "miles-davis"

    async def test_registry_record_stored_without_terms(self, music):
        record = options.load_registry_record()
        assert list(record) == ["music"]
        assert record["music"]["collection"] == {
            "taxonomy": "genre",
            "singular_name": "Genre",
            "plural_name": "Genres",
        }

    async def test_default_terms_added_only_once(self, music, test_db):
        genres = await music.fetch_all(test_db, "genre")
        await TermService(test_db).delete_term(genres["Rock"].id, "genre")

        await music.init(test_db)

        assert set(await music.fetch_all(test_db, "genre")) == {"Jazz"}

    async def test_existing_terms_kept_on_first_run(self, manager, plugin_registry, test_db):
        await TermService(test_db).insert_term("genre", "Jazz", slug="jazz")
        plugin_registry.register(StubConsumerPlugin("music", music_record()))

        await manager.init(test_db)

        assert set(await manager.fetch_all(test_db, "genre")) == {"Jazz", "Rock"}

    async def test_reinit_drops_stale_registrations(self, music, plugin_registry, taxonomy_registry, test_db):
        plugin_registry.register(StubConsumerPlugin("music", music_record(entity={"taxonomy": "musician"})))
        await music.init(test_db)
        assert not taxonomy_registry.is_registered("artist")
        assert taxonomy_registry.is_registered("musician")

    async def test_register_each_taxonomy(self, music, taxonomy_registry):
        taxonomy_registry.unregister("genre")
        taxonomy_registry.unregister("artist")

        music.register_collection_taxonomy("music")
        assert taxonomy_registry.get("genre").kind == COLLECTION
        assert not taxonomy_registry.is_registered("artist")

        music.register_entity_taxonomy("music")
        assert taxonomy_registry.get("artist").kind == ENTITY

    async def test_storage_failure_skips_term(self, manager, plugin_registry, test_db, monkeypatch):
        insert_term = TermService.insert_term

        async def failing_insert(service, taxonomy, name, **kwargs):
            if name == "Rock":
                raise IntegrityError("INSERT INTO terms", {}, Exception("UNIQUE constraint failed"))
            return await insert_term(service, taxonomy, name, **kwargs)

        monkeypatch.setattr(TermService, "insert_term", failing_insert)
        plugin_registry.register(StubConsumerPlugin("music", music_record()))

        await manager.init(test_db)

        assert set(await manager.fetch_all(test_db, "genre")) == {"Jazz"}
        assert set(await manager.fetch_all(test_db, "artist")) == set(MUSIC_ARTISTS)
        assert list(options.load_registry_record()) == ["music"]


class TestInitRobustness:
    async def test_overlapping_init_adds_defaults_once(self, manager, plugin_registry, test_db):
        plugin_registry.register(StubConsumerPlugin("music", music_record()))

        async def run():
            async with TestSessionLocal() as session:
                await manager.init(session)

        results = await asyncio.gather(run(), run(), return_exceptions=True)

        assert results == [None, None]
        genres = await TermService(test_db).get_terms("genre")
        assert sorted(term.name for term in genres) == ["Jazz", "Rock"]
        assert len(await TermService(test_db).get_terms("artist")) == len(MUSIC_ARTISTS)
        assert manager.configured_plugins() == ["music"]

    async def test_failed_removal_drops_temporary_registrations(self, music, taxonomy_registry, test_db, monkeypatch):
        set_enabled("music", False)

        async def broken_remove(db, plugin_name, plugin_config):
            raise RuntimeError("storage offline")

        monkeypatch.setattr(music, "remove_terms", broken_remove)

        with pytest.raises(RuntimeError):
            await music.init(test_db)

        assert not taxonomy_registry.is_registered("genre")
        assert not taxonomy_registry.is_registered("artist")
        assert list(options.load_registry_record()) == ["music"]


class TestInitSkipsBadConsumers:
    async def test_malformed_and_empty_configs_skipped(self, manager, plugin_registry, test_db):
        plugin_registry.register(StubConsumerPlugin("empty", {}))
        plugin_registry.register(StubConsumerPlugin("garbage", "not a record"))
        plugin_registry.register(StubConsumerPlugin("nameless", consumer_record("", collection="a", entity="b")))
        plugin_registry.register(StubConsumerPlugin("music", music_record()))

        await manager.init(test_db)

        assert manager.configured_plugins() == ["music"]
        assert list(options.load_registry_record()) == ["music"]

    async def test_raising_consumer_skipped(self, manager, plugin_registry, test_db):
        plugin_registry.register(StubConsumerPlugin("broken", raises=RuntimeError("boom")))
        plugin_registry.register(StubConsumerPlugin("music", music_record()))

        await manager.init(test_db)

        assert manager.configured_plugins() == ["music"]

    async def test_disabled_consumer_not_registered(self, manager, plugin_registry, taxonomy_registry, test_db):
        set_enabled("music", False)
        plugin_registry.register(StubConsumerPlugin("music", music_record()))

        await manager.init(test_db)

        assert manager.configured_plugins() == []
        assert not taxonomy_registry.is_registered("genre")
        assert await manager.fetch_all(test_db, "genre") == {}


# ══════════════════════════════════════════════════════════════════════════════
# Deactivation of consumer plugins
# ══════════════════════════════════════════════════════════════════════════════


class TestConsumerDeactivation:
    async def test_disabling_removes_terms_and_forgets_plugin(self, music, test_db, taxonomy_registry):
        jazz = (await music.fetch_all(test_db, "genre"))["Jazz"]
        set_enabled("music", False)

        await music.init(test_db)

        assert await music.fetch_all(test_db, "genre") == {}
        assert await music.fetch_all(test_db, "artist") == {}
        assert await TermService(test_db).get_term_meta(jazz.id) == {}
        assert options.load_registry_record() == {}
        assert not taxonomy_registry.is_registered("genre")

    async def test_removal_also_removes_user_terms(self, music, test_db):
        await music.create_term(test_db, "genre", "Blues")
        set_enabled("music", False)

        await music.init(test_db)

        assert await music.fetch_all(test_db, "genre") == {}

    async def test_unregistered_plugin_is_removed(self, music, plugin_registry, test_db):
        plugin_registry.unregister("music")

        await music.init(test_db)

        assert await music.fetch_all(test_db, "artist") == {}
        assert options.load_registry_record() == {}

    async def test_other_consumers_untouched(self, music, plugin_registry, test_db):
        plugin_registry.register(
            StubConsumerPlugin(
                "films",
                consumer_record("films", collection="studio", entity="director", collection_terms={"Ghibli": {}}),
            )
        )
        await music.init(test_db)
        set_enabled("music", False)

        await music.init(test_db)

        assert set(await music.fetch_all(test_db, "studio")) == {"Ghibli"}
        assert list(options.load_registry_record()) == ["films"]
        assert music.configured_plugins() == ["films"]

    async def test_reactivation_adds_defaults_again(self, music, test_db):
        set_enabled("music", False)
        await music.init(test_db)
        set_enabled("music", True)

        await music.init(test_db)

        assert set(await music.fetch_all(test_db, "genre")) == {"Jazz", "Rock"}

    async def test_taxonomy_taken_over_by_active_plugin_kept(self, music, plugin_registry, test_db):
        plugin_registry.register(
            StubConsumerPlugin("jazzclub", consumer_record("jazzclub", collection="genre", entity="band"))
        )
        set_enabled("music", False)

        await music.init(test_db)

        assert set(await music.fetch_all(test_db, "genre")) == {"Jazz", "Rock"}
        assert "music" not in options.load_registry_record()

    async def test_unreadable_record_entry_dropped(self, manager, test_db):
        options.save_registry_record({"ghost": {"plugin_name": ""}})

        await manager.init(test_db)

        assert options.load_registry_record() == {}


class TestManagerLifecycle:
    def test_activation_creates_record(self, manager):
        assert not options.registry_record_exists()
        manager.on_activation()
        assert options.registry_record_exists()
        assert options.load_registry_record() == {}

    def test_activation_keeps_existing_record(self, manager):
        options.save_registry_record({"music": {"plugin_name": "music"}})
        manager.on_activation()
        assert "music" in options.load_registry_record()

    def test_deactivation_and_uninstall_delete_record(self, manager):
        manager.on_activation()
        manager.on_deactivation()
        assert not options.registry_record_exists()
        manager.on_activation()
        manager.on_uninstall()
        assert not options.registry_record_exists()

    def test_corrupt_record_reads_empty(self, data_dir):
        (data_dir / "entity_collection_taxonomy.json").write_text("[1, 2", encoding="utf-8")
        assert options.load_registry_record() == {}


# ══════════════════════════════════════════════════════════════════════════════
# Term forms and lists
# ══════════════════════════════════════════════════════════════════════════════


class TestTermAdmin:
    async def test_create_collection_term_with_colors(self, music, test_db):
        term = await music.create_term(
            test_db, "genre", "Blues", term_meta={"background_color": "#0000ff", "color": "#fff"}
        )
        assert term.slug == "blues"
        assert term.meta == {"background_color": "#0000ff", "color": "#fff"}

    async def test_create_rejects_bad_color_before_insert(self, music, test_db):
        with pytest.raises(ValidationError):
            await music.create_term(test_db, "genre", "Blues", term_meta={"color": "blue"})
        assert "Blues" not in await music.fetch_all(test_db, "genre")

    async def test_create_in_unknown_taxonomy(self, music, test_db):
        with pytest.raises(TaxonomyNotFoundError):
            await music.create_term(test_db, "mood", "Calm")

    async def test_edit_entity_links(self, music, test_db):
        nobody = (await music.fetch_all(test_db, "artist"))["Nobody"]
        term = await music.edit_term(test_db, "artist", nobody.id, name="Somebody", term_meta={"genre": ["Rock"]})
        assert term.name == "Somebody"
        assert term.meta == {"genre": ["Rock"]}

    async def test_edit_merges_meta(self, music, test_db):
        jazz = (await music.fetch_all(test_db, "genre"))["Jazz"]
        term = await music.edit_term(test_db, "genre", jazz.id, term_meta={"color": "#000"})
        assert term.meta == {"background_color": "#000080", "color": "#000"}

    async def test_save_custom_fields_without_meta_is_noop(self, music, test_db):
        jazz = (await music.fetch_all(test_db, "genre"))["Jazz"]
        assert await music.save_custom_fields(test_db, "music", COLLECTION, jazz.id, {}) is None
        assert await music.save_custom_fields(test_db, "music", COLLECTION, jazz.id, {"term_meta": "x"}) is None

    async def test_delete_term(self, music, test_db):
        rock = (await music.fetch_all(test_db, "genre"))["Rock"]
        await music.delete_term(test_db, "genre", rock.id)
        with pytest.raises(TermNotFoundError):
            await music.get_term(test_db, "genre", rock.id)
        with pytest.raises(TermNotFoundError):
            await music.delete_term(test_db, "genre", rock.id)

    async def test_term_hooks_fired(self, music, plugin_registry, test_db):
        recorder = HookRecorder()
        plugin_registry.register(recorder.plugin())

        term = await music.create_term(test_db, "genre", "Blues")
        await music.delete_term(test_db, "genre", term.id)

        assert [name for name, _ in recorder.events] == [HOOK_TERM_CREATED, HOOK_TERM_DELETED]
        assert recorder.events[0][1] == {"taxonomy": "genre", "term_id": term.id}

    async def test_collection_form_fields(self, music, test_db):
        jazz = (await music.fetch_all(test_db, "genre"))["Jazz"]
        add_form = await music.custom_fields(test_db, "music", COLLECTION)
        edit_form = await music.custom_fields(test_db, "music", COLLECTION, jazz.id)
        assert [f.value for f in add_form] == ["", ""]
        assert [f.value for f in edit_form] == ["#000080", "#ffffff"]

    async def test_entity_form_fields(self, music, test_db):
        zappa = (await music.fetch_all(test_db, "artist"))["Frank Zappa"]
        (field,) = await music.custom_fields(test_db, "music", ENTITY, zappa.id)
        assert field.type == "multicheckbox"
        assert [o.label for o in field.options] == ["Jazz", "Rock"]
        assert field.selected_options == ["Jazz", "Rock"]

    async def test_columns(self, music):
        assert list(music.columns("music", COLLECTION)) == ["name", "color", "slug", "posts"]
        assert music.columns("music", ENTITY)["genre"] == "Genres"

    async def test_custom_column_values(self, music, test_db):
        jazz = (await music.fetch_all(test_db, "genre"))["Jazz"]
        miles = (await music.fetch_all(test_db, "artist"))["Miles Davis"]
        color = await music.custom_column(test_db, "music", COLLECTION, "color", jazz.id)
        linked = await music.custom_column(test_db, "music", ENTITY, "genre", miles.id)
        other = await music.custom_column(test_db, "music", COLLECTION, "slug", jazz.id)
        assert color == {"background_color": "#000080", "color": "#ffffff"}
        assert linked == [{"name": "Jazz", "background_color": "#000080", "color": "#ffffff"}]
        assert other is None

    async def test_term_rows_count_selections(self, music, test_db):
        first = await create_test_content(test_db, "First")
        second = await create_test_content(test_db, "Second")
        await music.save_post_meta(test_db, "music", first.id, {"artist": ["Miles Davis"]})
        await music.save_post_meta(test_db, "music", second.id, {"artist": ["Frank Zappa"]})

        genre_rows = {row.columns["name"]: row.columns for row in await music.term_rows(test_db, "music", COLLECTION)}
        artist_rows = {row.columns["name"]: row.columns for row in await music.term_rows(test_db, "music", ENTITY)}

        assert genre_rows["Jazz"]["posts"] == 2
        assert genre_rows["Rock"]["posts"] == 1
        assert genre_rows["Rock"]["slug"] == "rock"
        assert artist_rows["Miles Davis"]["posts"] == 1
        assert artist_rows["Nobody"]["posts"] == 0
        assert artist_rows["Nobody"]["genre"] == []


# ══════════════════════════════════════════════════════════════════════════════
# Content metabox
# ══════════════════════════════════════════════════════════════════════════════


class TestMetaBox:
    async def test_groups_entities_by_collection(self, music, test_db):
        content = await create_test_content(test_db, "Hot Rats")
        box = await music.meta_box(test_db, "music", content.id)

        assert box.title == "Artists"
        assert box.taxonomy == "artist"
        groups = {g.collection: g for g in box.groups}
        assert [e.name for e in groups["Jazz"].entities] == ["Frank Zappa", "Miles Davis"]
        assert [e.name for e in groups["Rock"].entities] == ["Frank Zappa"]
        assert groups["Jazz"].background_color == "#000080"
        assert box.selected == []

    async def test_save_and_reload_selection(self, music, test_db):
        content = await create_test_content(test_db, "Hot Rats")
        saved = await music.save_post_meta(
            test_db, "music", content.id, {"artist": ["Frank Zappa", "Frank Zappa", ""]}
        )
        box = await music.meta_box(test_db, "music", content.id)

        assert saved is True
        assert box.selected == ["Frank Zappa"]
        zappa = [e for g in box.groups for e in g.entities if e.name == "Frank Zappa"]
        assert all(e.checked for e in zappa)

    async def test_save_single_value_and_clear(self, music, test_db):
        content = await create_test_content(test_db, "Hot Rats")
        await music.save_post_meta(test_db, "music", content.id, {"artist": "Nobody"})
        assert await ContentService(test_db).get_meta(content.id, "artist") == ["Nobody"]
        await music.save_post_meta(test_db, "music", content.id, {"artist": []})
        assert await ContentService(test_db).get_meta(content.id, "artist") == []

    async def test_save_without_field_is_noop(self, music, test_db):
        content = await create_test_content(test_db, "Hot Rats")
        assert await music.save_post_meta(test_db, "music", content.id, {"genre": ["Jazz"]}) is False
        assert await ContentService(test_db).get_meta(content.id, "artist") is None

    async def test_other_content_type_rejected(self, music, test_db):
        page = await create_test_content(test_db, "About", content_type="page")
        with pytest.raises(ValidationError):
            await music.meta_box(test_db, "music", page.id)

    async def test_content_saved_hook(self, music, plugin_registry, test_db):
        recorder = HookRecorder()
        plugin_registry.register(recorder.plugin())
        content = await create_test_content(test_db, "Hot Rats")

        await music.save_post_meta(test_db, "music", content.id, {"artist": ["Nobody"]})

        assert recorder.events == [
            (HOOK_CONTENT_SAVED, {"content_id": content.id, "plugin_name": "music", "taxonomy": "artist"})
        ]
