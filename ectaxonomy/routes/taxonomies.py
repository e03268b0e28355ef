"""
Taxonomy Administration Routes

GET    /api/v1/taxonomies                              → registered taxonomies
GET    /api/v1/taxonomies/{taxonomy}                   → one taxonomy
GET    /api/v1/taxonomies/{taxonomy}/fields            → add/edit form fields
GET    /api/v1/taxonomies/{taxonomy}/columns           → term list columns
GET    /api/v1/taxonomies/{taxonomy}/terms             → term list rows
POST   /api/v1/taxonomies/{taxonomy}/terms             → create term
GET    /api/v1/taxonomies/{taxonomy}/terms/{term_id}   → one term with metadata
PUT    /api/v1/taxonomies/{taxonomy}/terms/{term_id}   → edit term
DELETE /api/v1/taxonomies/{taxonomy}/terms/{term_id}   → delete term
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ectaxonomy.auth import require_admin
from ectaxonomy.database import get_db
from ectaxonomy.exceptions import TaxonomyNotFoundError
from ectaxonomy.schemas.taxonomy import (
    FieldDefinition,
    TaxonomyResponse,
    TermCreate,
    TermResponse,
    TermRow,
    TermUpdate,
)
from ectaxonomy.services.term_service import TermWithMeta
from ectaxonomy.taxonomy.manager import taxonomy_manager
from ectaxonomy.taxonomy.registry import RegisteredTaxonomy

router = APIRouter(tags=["Taxonomies"], dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


def _taxonomy_response(taxonomy: RegisteredTaxonomy) -> TaxonomyResponse:
    return TaxonomyResponse(
        key=taxonomy.key,
        kind=taxonomy.kind,
        owner=taxonomy.owner,
        object_types=taxonomy.object_types,
        labels=taxonomy.labels,
        args=taxonomy.args,
    )


def _term_response(term: TermWithMeta) -> TermResponse:
    return TermResponse(
        id=term.id,
        taxonomy=term.taxonomy,
        name=term.name,
        slug=term.slug,
        description=term.description,
        term_meta=term.meta,
    )


@router.get("/", response_model=list[TaxonomyResponse])
async def list_taxonomies(content_type: Optional[str] = None) -> list[TaxonomyResponse]:
    """List registered taxonomies, optionally only those of one content type."""
    registry = taxonomy_manager.taxonomies
    taxonomies = registry.for_content_type(content_type) if content_type else registry.all()
    return [_taxonomy_response(t) for t in taxonomies]


@router.get("/{taxonomy}", response_model=TaxonomyResponse)
async def get_taxonomy(taxonomy: str) -> TaxonomyResponse:
    registered = taxonomy_manager.taxonomies.get(taxonomy)
    if registered is None:
        raise TaxonomyNotFoundError(taxonomy)
    return _taxonomy_response(registered)


@router.get("/{taxonomy}/fields", response_model=list[FieldDefinition])
async def get_fields(
    taxonomy: str,
    term_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
) -> list[FieldDefinition]:
    """Custom fields of the add form, or of the edit form when term_id is given."""
    plugin_name, type_ = taxonomy_manager.resolve(taxonomy)
    return await taxonomy_manager.custom_fields(db, plugin_name, type_, term_id)


@router.get("/{taxonomy}/columns")
async def get_columns(taxonomy: str) -> dict[str, str]:
    plugin_name, type_ = taxonomy_manager.resolve(taxonomy)
    return taxonomy_manager.columns(plugin_name, type_)


@router.get("/{taxonomy}/terms", response_model=list[TermRow])
async def list_terms(taxonomy: str, db: AsyncSession = Depends(get_db)) -> list[TermRow]:
    plugin_name, type_ = taxonomy_manager.resolve(taxonomy)
    return await taxonomy_manager.term_rows(db, plugin_name, type_)


@router.post("/{taxonomy}/terms", response_model=TermResponse, status_code=status.HTTP_201_CREATED)
async def create_term(taxonomy: str, payload: TermCreate, db: AsyncSession = Depends(get_db)) -> TermResponse:
    term = await taxonomy_manager.create_term(
        db,
        taxonomy,
        payload.name,
        slug=payload.slug,
        description=payload.description,
        term_meta=payload.term_meta,
    )
    logger.info("Term %r created in %s", term.name, taxonomy)
    return _term_response(term)


@router.get("/{taxonomy}/terms/{term_id}", response_model=TermResponse)
async def get_term(taxonomy: str, term_id: int, db: AsyncSession = Depends(get_db)) -> TermResponse:
    taxonomy_manager.resolve(taxonomy)
    return _term_response(await taxonomy_manager.get_term(db, taxonomy, term_id))


@router.put("/{taxonomy}/terms/{term_id}", response_model=TermResponse)
async def update_term(
    taxonomy: str,
    term_id: int,
    payload: TermUpdate,
    db: AsyncSession = Depends(get_db),
) -> TermResponse:
    term = await taxonomy_manager.edit_term(
        db,
        taxonomy,
        term_id,
        name=payload.name,
        slug=payload.slug,
        description=payload.description,
        term_meta=payload.term_meta,
    )
    logger.info("Term %d edited in %s", term_id, taxonomy)
    return _term_response(term)


@router.delete("/{taxonomy}/terms/{term_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_term(taxonomy: str, term_id: int, db: AsyncSession = Depends(get_db)) -> None:
    await taxonomy_manager.delete_term(db, taxonomy, term_id)
    logger.info("Term %d deleted from %s", term_id, taxonomy)
