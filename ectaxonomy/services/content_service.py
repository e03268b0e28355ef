"""
Content Service

Minimal host content store: content items and their key/value metadata.
"""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ectaxonomy.exceptions import ContentNotFoundError, DuplicateResourceError, ValidationError
from ectaxonomy.models.content import Content, ContentMeta
from ectaxonomy.utils.slugify import slugify

logger = logging.getLogger(__name__)


class ContentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_content(self, title: str, content_type: str = "post", slug: str | None = None) -> Content:
        try:
            slug = slugify(slug or title)
        except ValueError as exc:
            raise ValidationError(str(exc), field="slug") from exc

        existing = await self.db.execute(select(Content).where(Content.slug == slug))
        if existing.scalar_one_or_none():
            raise DuplicateResourceError("Content", "slug", slug)

        content = Content(title=title, slug=slug, content_type=content_type)
        self.db.add(content)
        await self.db.commit()
        logger.info("Created %s content %r (id=%d)", content_type, title, content.id)
        return content

    async def get_content(self, content_id: int) -> Content | None:
        return await self.db.get(Content, content_id)

    async def get_content_or_404(self, content_id: int) -> Content:
        content = await self.get_content(content_id)
        if content is None:
            raise ContentNotFoundError(content_id)
        return content

    # ============== Content metadata ==============

    async def _get_meta_row(self, content_id: int, key: str) -> ContentMeta | None:
        result = await self.db.execute(
            select(ContentMeta).where(ContentMeta.content_id == content_id, ContentMeta.meta_key == key)
        )
        return result.scalar_one_or_none()

    async def get_meta(self, content_id: int, key: str, default: Any = None) -> Any:
        row = await self._get_meta_row(content_id, key)
        return row.meta_value if row is not None else default

    async def update_meta(self, content_id: int, key: str, value: Any) -> None:
        row = await self._get_meta_row(content_id, key)
        if row is None:
            self.db.add(ContentMeta(content_id=content_id, meta_key=key, meta_value=value))
        else:
            row.meta_value = value
        await self.db.commit()

    async def meta_values(self, key: str) -> list[Any]:
        """Every stored value for a metadata key, one per content item."""
        result = await self.db.execute(select(ContentMeta.meta_value).where(ContentMeta.meta_key == key))
        return list(result.scalars().all())
