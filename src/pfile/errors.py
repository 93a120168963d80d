"""
Centralized error classification for pfile.

Every error raised by the photo store derives from PFileError, carries a
category, severity, machine-readable code and a user-facing message, and
logs itself when constructed.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pfile.logging_config import log_error, log_security_event


class ErrorCategory(Enum):
    """Error categories for classification and handling."""

    IMAGE_PROCESSING = "image_processing"
    CRYPTO = "crypto"
    STORAGE = "storage"
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


class PFileError(Exception):
    """Base exception class for pfile."""

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
            ErrorCategory.IMAGE_PROCESSING: "The file could not be processed as an image.",
            ErrorCategory.CRYPTO: "The photo could not be decrypted with the current key.",
            ErrorCategory.STORAGE: "Local storage could not be read or written.",
            ErrorCategory.VALIDATION: "The request contains invalid data.",
            ErrorCategory.SYSTEM: "A system error occurred.",
            ErrorCategory.UNKNOWN: "An unexpected error occurred.",
        }
        return user_messages.get(self.category, "An error occurred.")

    def _log_error(self) -> None:
        """Log the error with appropriate level."""
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

        if self.category == ErrorCategory.CRYPTO:
            log_security_event(self.code, **error_context)

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


class UnsupportedImageError(PFileError):
    """Input is not an image or cannot be decoded as one."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.IMAGE_PROCESSING,
            severity=ErrorSeverity.LOW,
            code=code or "unsupported_image",
            user_message=user_message or "Please select image files only.",
            details=details,
            recoverable=True,
            retry_suggested=False,
            original_exception=original_exception,
        )


class DecryptionError(PFileError):
    """Ciphertext does not match the key, or is malformed or truncated."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.CRYPTO,
            severity=ErrorSeverity.HIGH,
            code=code or "decryption_failed",
            user_message=user_message or "This photo cannot be decrypted with the current encryption key.",
            details=details,
            recoverable=True,
            retry_suggested=False,
            original_exception=original_exception,
        )


class EncryptionError(PFileError):
    """Plaintext could not be encrypted with the given key."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.CRYPTO,
            severity=ErrorSeverity.HIGH,
            code=code or "encryption_failed",
            user_message=user_message or "The photo could not be encrypted.",
            details=details,
            recoverable=True,
            retry_suggested=False,
            original_exception=original_exception,
        )


class KeyUnavailableError(PFileError):
    """No durable encryption key exists for this session."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.CRYPTO,
            severity=ErrorSeverity.CRITICAL,
            code=code or "key_unavailable",
            user_message=user_message
            or "Your encryption key could not be loaded. Import your exported key to regain access to your photos.",
            details=details,
            recoverable=True,
            retry_suggested=False,
            original_exception=original_exception,
        )


class PersistenceError(PFileError):
    """Durable storage could not be read or written."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.STORAGE,
            severity=ErrorSeverity.HIGH,
            code=code or "persistence_failed",
            user_message=user_message or "Your changes could not be saved to local storage.",
            details=details,
            recoverable=True,
            retry_suggested=True,
            original_exception=original_exception,
        )


class ValidationError(PFileError):
    """Invalid arguments or input data."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            code=code or "validation_failed",
            user_message=user_message or "The request contains invalid data.",
            details=details,
            recoverable=True,
            retry_suggested=False,
            original_exception=original_exception,
        )


# Short alias matching the condition name used throughout the docs
KeyUnavailable = KeyUnavailableError
