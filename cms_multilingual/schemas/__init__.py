from .diagnostics import CheckInfo, DiagnosticLogEntryResponse, FixPreviewResponse, FixRequest
from .multilingual import (
    BatchTranslationsRequest,
    TermResponse,
    TermTranslationCreate,
    TranslationCreate,
    TranslationCreated,
)

__all__ = [
    "BatchTranslationsRequest",
    "CheckInfo",
    "DiagnosticLogEntryResponse",
    "FixPreviewResponse",
    "FixRequest",
    "TermResponse",
    "TermTranslationCreate",
    "TranslationCreate",
    "TranslationCreated",
]
