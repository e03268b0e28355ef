"""
Taxonomy Term Models

Term:     a named, slugged term belonging to one taxonomy key.
TermMeta: the custom metadata mapping stored for a term (collection colors,
          entity to collection links, or anything a consumer plugin supplies).
"""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from ectaxonomy.database import Base


class Term(Base):
    __tablename__ = "terms"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    taxonomy = Column(String(64), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("taxonomy", "slug", name="uq_term_taxonomy_slug"),
        UniqueConstraint("taxonomy", "name", name="uq_term_taxonomy_name"),
    )

    def __repr__(self) -> str:
        return f"<Term(id={self.id}, taxonomy='{self.taxonomy}', name='{self.name}')>"


class TermMeta(Base):
    """One metadata mapping per term, keyed by the owning taxonomy."""

    __tablename__ = "term_meta"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="CASCADE"), nullable=False, unique=True)
    taxonomy = Column(String(64), nullable=False, index=True)
    value = Column(JSON, nullable=False, default=dict)
