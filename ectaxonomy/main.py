import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

import ectaxonomy.models  # noqa: F401
from ectaxonomy.config import settings
from ectaxonomy.database import AsyncSessionLocal, Base, engine
from ectaxonomy.exception_handlers import register_exception_handlers
from ectaxonomy.plugins.loader import initialize_plugins
from ectaxonomy.plugins.registry import plugin_registry
from ectaxonomy.routes import content, manager, plugins, taxonomies
from ectaxonomy.taxonomy.manager import taxonomy_manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Development schema; production deployments run the Alembic migrations
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await initialize_plugins(plugin_registry)
    taxonomy_manager.on_activation()
    async with AsyncSessionLocal() as db:
        await taxonomy_manager.init(db)
    logger.info("Taxonomy manager ready: %s", ", ".join(taxonomy_manager.configured_plugins()) or "no consumers")

    yield

    for plugin in plugin_registry.all_plugins():
        await plugin.on_unload()
    await engine.dispose()


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Linked collection and entity taxonomies for host plugins",
        debug=settings.debug,
        version=settings.app_version,
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    app.include_router(plugins.router, prefix="/api/v1/plugins")
    app.include_router(taxonomies.router, prefix="/api/v1/taxonomies")
    app.include_router(content.router, prefix="/api/v1/content")
    app.include_router(manager.router, prefix="/api/v1/taxonomy-manager")

    @app.get("/")
    def root():
        return {"message": f"Welcome to the {settings.app_name} API"}

    if settings.debug:
        logger.info(f"Running in {settings.environment} mode")
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)  # Logs SQL statements
        logging.getLogger("sqlalchemy.pool").setLevel(logging.INFO)  # Logs connection pool checkouts

    return app
