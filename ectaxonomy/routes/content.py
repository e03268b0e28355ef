"""
Content Routes

POST /api/v1/content                                     → create content item
GET  /api/v1/content/{content_id}                        → get content item
GET  /api/v1/content/{content_id}/metabox/{plugin_name}  → entities grouped by collection
PUT  /api/v1/content/{content_id}/metabox/{plugin_name}  → save checked entities
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ectaxonomy.auth import require_admin
from ectaxonomy.database import get_db
from ectaxonomy.schemas.content import ContentCreate, ContentResponse, EntitySelectionUpdate, MetaBoxResponse
from ectaxonomy.services.content_service import ContentService
from ectaxonomy.taxonomy.config import ENTITY
from ectaxonomy.taxonomy.manager import taxonomy_manager

router = APIRouter(tags=["Content"], dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


@router.post("/", response_model=ContentResponse, status_code=status.HTTP_201_CREATED)
async def create_content(payload: ContentCreate, db: AsyncSession = Depends(get_db)):
    return await ContentService(db).create_content(payload.title, payload.content_type, payload.slug)


@router.get("/{content_id}", response_model=ContentResponse)
async def get_content(content_id: int, db: AsyncSession = Depends(get_db)):
    return await ContentService(db).get_content_or_404(content_id)


@router.get("/{content_id}/metabox/{plugin_name}", response_model=MetaBoxResponse)
async def get_meta_box(content_id: int, plugin_name: str, db: AsyncSession = Depends(get_db)):
    return await taxonomy_manager.meta_box(db, plugin_name, content_id)


@router.put("/{content_id}/metabox/{plugin_name}", response_model=MetaBoxResponse)
async def save_meta_box(
    content_id: int,
    plugin_name: str,
    payload: EntitySelectionUpdate,
    db: AsyncSession = Depends(get_db),
):
    field = taxonomy_manager.get_taxonomy(plugin_name, ENTITY)
    await taxonomy_manager.save_post_meta(db, plugin_name, content_id, {field: payload.entities})
    logger.info("Saved %s selection of content %d", field, content_id)
    return await taxonomy_manager.meta_box(db, plugin_name, content_id)
