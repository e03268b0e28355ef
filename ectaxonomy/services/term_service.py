"""
Term Service

Storage operations for taxonomy terms and their metadata mapping.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ectaxonomy.exceptions import DuplicateResourceError, TermNotFoundError, ValidationError
from ectaxonomy.models.term import Term, TermMeta
from ectaxonomy.utils.slugify import slugify

logger = logging.getLogger(__name__)


@dataclass
class TermWithMeta:
    """A term joined with its metadata mapping."""

    id: int
    taxonomy: str
    name: str
    slug: str
    description: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.meta.get(key, default)


class TermService:
    """Service for terms and term metadata."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ============== Terms ==============

    async def get_term(self, term_id: int, taxonomy: str | None = None) -> Term | None:
        query = select(Term).where(Term.id == term_id)
        if taxonomy is not None:
            query = query.where(Term.taxonomy == taxonomy)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_terms(self, taxonomy: str) -> list[Term]:
        result = await self.db.execute(select(Term).where(Term.taxonomy == taxonomy).order_by(Term.name))
        return list(result.scalars().all())

    async def _ensure_unique(self, taxonomy: str, name: str, slug: str, exclude_id: int | None = None) -> None:
        query = select(Term).where(Term.taxonomy == taxonomy, or_(Term.name == name, Term.slug == slug))
        if exclude_id is not None:
            query = query.where(Term.id != exclude_id)
        existing = (await self.db.execute(query)).scalars().first()
        if existing is None:
            return
        if existing.name == name:
            raise DuplicateResourceError("Term", "name", name)
        raise DuplicateResourceError("Term", "slug", slug)

    async def insert_term(
        self,
        taxonomy: str,
        name: str,
        slug: str | None = None,
        description: str | None = None,
    ) -> Term:
        """Create a term. Names and slugs are unique within a taxonomy."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Term name must not be empty", field="name")
        try:
            slug = slugify(slug or name)
        except ValueError as exc:
            raise ValidationError(str(exc), field="slug") from exc

        await self._ensure_unique(taxonomy, name, slug)

        term = Term(taxonomy=taxonomy, name=name, slug=slug, description=description)
        self.db.add(term)
        await self.db.commit()

        logger.info("Created term %r in %s (id=%d)", name, taxonomy, term.id)
        return term

    async def update_term(
        self,
        term_id: int,
        taxonomy: str,
        name: str | None = None,
        slug: str | None = None,
        description: str | None = None,
    ) -> Term:
        term = await self.get_term(term_id, taxonomy)
        if term is None:
            raise TermNotFoundError(term_id)

        new_name = name.strip() if name is not None else term.name
        if not new_name:
            raise ValidationError("Term name must not be empty", field="name")
        try:
            new_slug = slugify(slug) if slug is not None else term.slug
        except ValueError as exc:
            raise ValidationError(str(exc), field="slug") from exc

        await self._ensure_unique(taxonomy, new_name, new_slug, exclude_id=term.id)

        term.name = new_name
        term.slug = new_slug
        if description is not None:
            term.description = description
        await self.db.commit()
        return term

    async def delete_term(self, term_id: int, taxonomy: str) -> bool:
        """Delete a term and its metadata."""
        term = await self.get_term(term_id, taxonomy)
        if term is None:
            return False
        await self.db.execute(delete(TermMeta).where(TermMeta.term_id == term_id))
        await self.db.delete(term)
        await self.db.commit()
        logger.info("Deleted term %r from %s (id=%d)", term.name, taxonomy, term_id)
        return True

    # ============== Term metadata ==============

    async def _get_meta_row(self, term_id: int) -> TermMeta | None:
        result = await self.db.execute(select(TermMeta).where(TermMeta.term_id == term_id))
        return result.scalar_one_or_none()

    async def get_term_meta(self, term_id: int) -> dict[str, Any]:
        row = await self._get_meta_row(term_id)
        return dict(row.value or {}) if row else {}

    async def update_term_meta(self, term_id: int, taxonomy: str, value: dict[str, Any]) -> dict[str, Any]:
        """Replace the metadata mapping of a term."""
        row = await self._get_meta_row(term_id)
        if row is None:
            row = TermMeta(term_id=term_id, taxonomy=taxonomy, value=dict(value))
            self.db.add(row)
        else:
            # Assign a new dict so the JSON column is flagged as modified
            row.value = dict(value)
        await self.db.commit()
        return dict(row.value)

    async def merge_term_meta(self, term_id: int, taxonomy: str, values: dict[str, Any]) -> dict[str, Any]:
        """Overlay `values` onto the stored metadata of a term."""
        current = await self.get_term_meta(term_id)
        current.update(values)
        return await self.update_term_meta(term_id, taxonomy, current)

    async def fetch_all(self, taxonomy: str) -> dict[str, TermWithMeta]:
        """All terms of a taxonomy with metadata merged in, keyed by term name."""
        result = await self.db.execute(
            select(Term, TermMeta.value)
            .outerjoin(TermMeta, TermMeta.term_id == Term.id)
            .where(Term.taxonomy == taxonomy)
            .order_by(Term.name)
        )
        terms: dict[str, TermWithMeta] = {}
        for term, value in result.all():
            terms[term.name] = TermWithMeta(
                id=term.id,
                taxonomy=term.taxonomy,
                name=term.name,
                slug=term.slug,
                description=term.description,
                meta=dict(value or {}),
            )
        return terms
