"""
Error classification for purrgallery.

Every error raised by the storage tiers and the media store derives from
PurrGalleryError, which carries a category, severity, machine-readable code
and a user-facing message, and logs itself when constructed.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .logging_config import get_logger, log_error

logger = get_logger(__name__)


class ErrorCategory(Enum):
    """Error categories for classification and handling."""

    STORAGE = "storage"
    DATABASE = "database"
    UPLOAD = "upload"
    DISPLAY = "display"
    VALIDATION = "validation"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorInfo:
    """Structured error information."""

    category: ErrorCategory
    severity: ErrorSeverity
    code: str
    message: str
    user_message: str
    details: dict[str, Any]
    timestamp: datetime
    recoverable: bool = True
    retry_suggested: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert error info to dictionary."""
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "retry_suggested": self.retry_suggested,
        }


class PurrGalleryError(Exception):
    """Base exception class for purrgallery."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
        retry_suggested: bool = False,
        original_exception: Exception | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.severity = severity
        self.code = code or f"{category.value}_error"
        self.user_message = user_message or self._generate_user_message()
        self.details = details or {}
        self.recoverable = recoverable
        self.retry_suggested = retry_suggested
        self.original_exception = original_exception
        self.timestamp = datetime.now()

        self._log_error()

    def _generate_user_message(self) -> str:
        """Generate user-friendly error message."""
        user_messages = {
            ErrorCategory.STORAGE: "Media storage failed.",
            ErrorCategory.DATABASE: "Gallery data could not be saved.",
            ErrorCategory.UPLOAD: "The file could not be uploaded.",
            ErrorCategory.DISPLAY: "The media item can no longer be displayed.",
            ErrorCategory.VALIDATION: "The input is invalid.",
            ErrorCategory.SYSTEM: "A system error occurred.",
            ErrorCategory.UNKNOWN: "An unexpected error occurred.",
        }
        return user_messages.get(self.category, "An error occurred.")

    def _log_error(self) -> None:
        """Log the error with its classification."""
        error_context = {
            "category": self.category.value,
            "severity": self.severity.value,
            "code": self.code,
            "recoverable": self.recoverable,
            "retry_suggested": self.retry_suggested,
            **self.details,
        }

        if self.original_exception:
            error_context["original_exception"] = str(self.original_exception)

        log_error(self, error_context)

    def get_error_info(self) -> ErrorInfo:
        """Get structured error information."""
        return ErrorInfo(
            category=self.category,
            severity=self.severity,
            code=self.code,
            message=str(self),
            user_message=self.user_message,
            details=self.details,
            timestamp=self.timestamp,
            recoverable=self.recoverable,
            retry_suggested=self.retry_suggested,
        )


class StorageError(PurrGalleryError):
    """Blob storage errors."""

    default_code = "storage_error"
    default_user_message = "Media storage failed. Please try again."

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
        retry_suggested: bool = True,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.STORAGE,
            severity=ErrorSeverity.HIGH,
            code=code or self.default_code,
            user_message=user_message or self.default_user_message,
            details=details,
            recoverable=recoverable,
            retry_suggested=retry_suggested,
            original_exception=original_exception,
        )


class StorageUnavailableError(StorageError):
    """The blob store could not be opened."""

    default_code = "storage_unavailable"
    default_user_message = "Media storage is unavailable."


class BlobReadError(StorageError):
    """Reading records from the blob store failed."""

    default_code = "blob_read_failed"
    default_user_message = "Stored media could not be loaded."


class BlobWriteError(StorageError):
    """Writing a record to the blob store failed."""

    default_code = "blob_write_failed"
    default_user_message = "The media file could not be saved."


class BlobDeleteError(StorageError):
    """Deleting records from the blob store failed."""

    default_code = "blob_delete_failed"
    default_user_message = "The media file could not be removed from storage."


class MetadataError(PurrGalleryError):
    """Metadata snapshot write errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.DATABASE,
            severity=ErrorSeverity.HIGH,
            code=code or "metadata_error",
            details=details,
            recoverable=True,
            retry_suggested=True,
            original_exception=original_exception,
        )


class DisplayReferenceError(PurrGalleryError):
    """A revoked or unknown display reference was used."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            category=ErrorCategory.DISPLAY,
            severity=ErrorSeverity.LOW,
            code="display_reference_invalid",
            details=details,
            recoverable=True,
            retry_suggested=False,
        )


class UploadError(PurrGalleryError):
    """Upload errors raised while preparing files for the store."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.UPLOAD,
            severity=ErrorSeverity.MEDIUM,
            code=code or "upload_failed",
            details=details,
            recoverable=True,
            retry_suggested=True,
            original_exception=original_exception,
        )
