"""
Content Models

Content:     a content item of some content type (e.g. "post", "page").
ContentMeta: per-item key/value metadata; entity selections are stored under
             the entity taxonomy key.
"""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint

from ectaxonomy.database import Base

class Content(Base):
    __tablename__ = "content"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String, index=True, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    content_type = Column(String(64), nullable=False, default="post")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (Index("idx_content_type", "content_type"),)


class ContentMeta(Base):
    __tablename__ = "content_meta"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    content_id = Column(Integer, ForeignKey("content.id", ondelete="CASCADE"), nullable=False, index=True)
    meta_key = Column(String(255), nullable=False, index=True)
    meta_value = Column(JSON, nullable=True)

    __table_args__ = (UniqueConstraint("content_id", "meta_key", name="uq_content_meta_key"),)
