from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint

from cms_multilingual.database import Base


class TaxonomyTerm(Base):
    __tablename__ = "taxonomy_terms"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    taxonomy = Column(String(50), nullable=False, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False)
    parent_id = Column(Integer, ForeignKey("taxonomy_terms.id", ondelete="SET NULL"), nullable=True)
    language = Column(String(10), nullable=True, index=True)
    translation_group = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("taxonomy", "slug", name="uq_term_taxonomy_slug"),
        Index("idx_term_group_language", "translation_group", "language"),
    )

    def __repr__(self) -> str:
        return f"<TaxonomyTerm(id={self.id}, taxonomy={self.taxonomy}, name={self.name!r}, lang={self.language})>"


class TermSortOrder(Base):
    """Explicit manual position of a term inside its taxonomy listing."""

    __tablename__ = "term_sort_orders"

    term_id = Column(Integer, ForeignKey("taxonomy_terms.id", ondelete="CASCADE"), primary_key=True)
    position = Column(Integer, nullable=False, default=0)
