"""
Pytest configuration and fixtures for the taxonomy service tests
"""

import os
import sys
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH119, PTH120

import ectaxonomy.models  # noqa: E402, F401
from ectaxonomy.database import Base  # noqa: E402
from ectaxonomy.plugins.registry import PluginRegistry  # noqa: E402
from ectaxonomy.taxonomy.manager import EntityCollectionTaxonomy  # noqa: E402
from ectaxonomy.taxonomy.registry import TaxonomyRegistry  # noqa: E402

# Test database URL (SQLite in-memory for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def setup_test_database():
    """Create a fresh database for each test function that needs it"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
async def test_db(setup_test_database) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for tests that need it"""
    async with TestSessionLocal() as session:
        yield session


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    """
    Point the JSON option files (plugin state, taxonomy registry record)
    at a per-test temporary directory.
    """
    from ectaxonomy.plugins import loader
    from ectaxonomy.taxonomy import options

    monkeypatch.setattr(loader, "_PLUGINS_CONFIG_FILE", tmp_path / "plugins_config.json")
    monkeypatch.setattr(options, "_REGISTRY_RECORD_FILE", tmp_path / "entity_collection_taxonomy.json")
    return tmp_path


@pytest.fixture
def plugin_registry() -> PluginRegistry:
    """An empty plugin registry, isolated from the global singleton"""
    return PluginRegistry()


@pytest.fixture
def taxonomy_registry() -> TaxonomyRegistry:
    return TaxonomyRegistry()


@pytest.fixture
def manager(plugin_registry, taxonomy_registry) -> EntityCollectionTaxonomy:
    """A taxonomy manager wired to the isolated registries"""
    return EntityCollectionTaxonomy(plugins=plugin_registry, taxonomies=taxonomy_registry)


def override_get_db():
    """Override database dependency for testing"""

    async def _override():
        async with TestSessionLocal() as session:
            yield session

    return _override
