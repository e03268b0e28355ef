"""
Taxonomy Manager Lifecycle Routes

POST /api/v1/taxonomy-manager/activate   → create the registry record
POST /api/v1/taxonomy-manager/deactivate → delete the registry record
POST /api/v1/taxonomy-manager/uninstall  → delete the registry record
POST /api/v1/taxonomy-manager/init       → re-run consumer plugin registration
GET  /api/v1/taxonomy-manager/record     → persisted registry record
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ectaxonomy.auth import require_admin
from ectaxonomy.database import get_db
from ectaxonomy.taxonomy import options
from ectaxonomy.taxonomy.manager import taxonomy_manager

router = APIRouter(tags=["Taxonomy Manager"], dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


@router.post("/activate")
async def activate() -> dict[str, Any]:
    taxonomy_manager.on_activation()
    return {"active": True, "record": options.load_registry_record()}


@router.post("/deactivate")
async def deactivate() -> dict[str, Any]:
    taxonomy_manager.on_deactivation()
    return {"active": False}


@router.post("/uninstall")
async def uninstall() -> dict[str, Any]:
    taxonomy_manager.on_uninstall()
    return {"active": False}


@router.post("/init")
async def run_init(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    await taxonomy_manager.init(db)
    return {
        "plugins": taxonomy_manager.configured_plugins(),
        "content_types": taxonomy_manager.get_content_types(),
        "record": options.load_registry_record(),
    }


@router.get("/record")
async def get_record() -> dict[str, Any]:
    return options.load_registry_record()
