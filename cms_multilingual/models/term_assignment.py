from sqlalchemy import Column, ForeignKey, Index, Integer, String, Table

from cms_multilingual.database import Base

# TermAssignment edge, scoped to the term's taxonomy so per-taxonomy
# replacement does not need a join.
content_term_assignments = Table(
    "content_term_assignments",
    Base.metadata,
    Column("content_id", Integer, ForeignKey("content_items.id", ondelete="CASCADE"), primary_key=True),
    Column("term_id", Integer, ForeignKey("taxonomy_terms.id", ondelete="CASCADE"), primary_key=True),
    Column("taxonomy", String(50), nullable=False),
    Index("idx_assignment_content_taxonomy", "content_id", "taxonomy"),
)
