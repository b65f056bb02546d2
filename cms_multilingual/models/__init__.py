from .content_item import TRANSIENT_STATUSES, ContentFieldValue, ContentItem, ContentStatus
from .diagnostic_log import DiagnosticLogEntry, IssueStatus
from .site_option import SiteOption
from .taxonomy_term import TaxonomyTerm, TermSortOrder
from .term_assignment import content_term_assignments
from .translation_group import EmptyTranslationGroup, EntityKind, new_group_id

__all__ = [
    "ContentItem",
    "ContentFieldValue",
    "ContentStatus",
    "TRANSIENT_STATUSES",
    "DiagnosticLogEntry",
    "IssueStatus",
    "SiteOption",
    "TaxonomyTerm",
    "TermSortOrder",
    "content_term_assignments",
    "EmptyTranslationGroup",
    "EntityKind",
    "new_group_id",
]
