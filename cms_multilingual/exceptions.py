"""
Custom Exception Classes for the multilingual CMS engine

This module defines custom exceptions for better error handling and
consistent error responses across the application.

Propagation policy:
    - creation-service errors (validation, conflict, not found) bubble to the caller
    - synchronization failures are recorded as PartialSyncFailure values and logged,
      never raised out of the save path
    - integrity violations are only surfaced through the diagnostics log
"""

from enum import Enum
from typing import Any

from fastapi import status


class ErrorCode(str, Enum):
    """Machine-readable error codes returned in every error envelope."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_CONTENT_NOT_FOUND = "RESOURCE_CONTENT_NOT_FOUND"
    RESOURCE_TERM_NOT_FOUND = "RESOURCE_TERM_NOT_FOUND"
    RESOURCE_CHECK_NOT_FOUND = "RESOURCE_CHECK_NOT_FOUND"
    CONFLICT = "CONFLICT"
    TRANSLATION_EXISTS = "TRANSLATION_EXISTS"
    GROUP_LANGUAGE_CONFLICT = "GROUP_LANGUAGE_CONFLICT"
    FIX_NOT_AVAILABLE = "FIX_NOT_AVAILABLE"
    SYNC_PARTIAL_FAILURE = "SYNC_PARTIAL_FAILURE"
    SERVICE_ERROR = "SERVICE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class CMSError(Exception):
    """Base exception class for all CMS-related exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(CMSError):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=ErrorCode.VALIDATION_FAILED,
            details=error_details,
        )


class FixNotAvailableError(CMSError):
    """Raised when an automatic fix is requested for an issue that has none"""

    def __init__(self, check_id: str, issue_id: str):
        super().__init__(
            message=f"Issue '{issue_id}' of check '{check_id}' cannot be auto-fixed",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code=ErrorCode.FIX_NOT_AVAILABLE,
            details={"check_id": check_id, "issue_id": issue_id},
        )


# ============================================================================
# Resource Not Found Exceptions
# ============================================================================


class ResourceNotFoundError(CMSError):
    """Base class for resource not found errors"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Any | None = None,
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND,
    ):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code=error_code,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ContentNotFoundError(ResourceNotFoundError):
    """Raised when a content item is not found"""

    def __init__(self, content_id: Any | None = None):
        super().__init__(
            resource_type="Content", resource_id=content_id, error_code=ErrorCode.RESOURCE_CONTENT_NOT_FOUND
        )


class TermNotFoundError(ResourceNotFoundError):
    """Raised when a taxonomy term is not found"""

    def __init__(self, term_id: Any | None = None):
        super().__init__(resource_type="Term", resource_id=term_id, error_code=ErrorCode.RESOURCE_TERM_NOT_FOUND)


class CheckNotFoundError(ResourceNotFoundError):
    """Raised when a diagnostics check id is not registered"""

    def __init__(self, check_id: str):
        super().__init__(
            resource_type="Diagnostics check", resource_id=check_id, error_code=ErrorCode.RESOURCE_CHECK_NOT_FOUND
        )


# ============================================================================
# Conflict Exceptions
# ============================================================================


class ConflictError(CMSError):
    """Raised when a write would break a uniqueness invariant"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFLICT,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code=error_code,
            details=details or {},
        )


class TranslationExistsError(ConflictError):
    """Raised when a translation group already has a member in the target language"""

    def __init__(self, group_id: str, language: str, existing_id: int):
        super().__init__(
            message=f"Translation group '{group_id}' already has a member in '{language}'",
            error_code=ErrorCode.TRANSLATION_EXISTS,
            details={"group_id": group_id, "language": language, "existing_id": existing_id},
        )


class GroupLanguageConflictError(ConflictError):
    """Raised when linking a term into a group that already holds its language"""

    def __init__(self, group_id: str, language: str):
        super().__init__(
            message=f"Group already contains a term for {language.upper()}",
            error_code=ErrorCode.GROUP_LANGUAGE_CONFLICT,
            details={"group_id": group_id, "language": language},
        )


# ============================================================================
# Service Exceptions
# ============================================================================


class ServiceError(CMSError):
    """Raised when a service layer operation fails"""

    def __init__(self, message: str, service: str | None = None):
        details = {"service": service} if service else {}
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code=ErrorCode.SERVICE_ERROR,
            details=details,
        )


class PartialSyncFailure(CMSError):
    """One sibling failed during taxonomy synchronization.

    Recorded in the sync report and logged; never raised out of the save path.
    """

    def __init__(self, content_id: int, language: str, cause: Exception):
        super().__init__(
            message=f"Taxonomy sync failed for content {content_id} ({language}): {cause}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code=ErrorCode.SYNC_PARTIAL_FAILURE,
            details={"content_id": content_id, "language": language},
        )
        self.content_id = content_id
        self.language = language
        self.cause = cause
