"""Custom exceptions for the Keep to Memos importer.

Provides a structured exception hierarchy with error codes so that every
failure can be logged with the file or note it belongs to.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Error codes for machine-readable error identification."""

    # Source errors (1xxx)
    SOURCE_DIR_UNREADABLE = 1001
    SOURCE_FILE_UNREADABLE = 1002
    SOURCE_FILE_EMPTY = 1003
    SOURCE_PARSE_FAILED = 1004

    # Transport errors (2xxx)
    TRANSPORT_FAILED = 2001
    TRANSPORT_UNEXPECTED_STATUS = 2002
    TRANSPORT_INVALID_RESPONSE = 2003

    # Persistence errors (3xxx)
    PERSISTENCE_FAILED = 3001

    # Attachment errors (4xxx)
    ATTACHMENT_UNREADABLE = 4003
    ATTACHMENT_COPY_FAILED = 4004
    ATTACHMENT_STORE_FAILED = 4005
    PATH_TRAVERSAL_DETECTED = 4006

    # Configuration errors (6xxx)
    CONFIG_INVALID = 6001
    CONFIG_MISSING = 6002


class ImporterError(Exception):
    """Base exception for all importer errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "code": self.code.value,
            "code_name": self.code.name,
            "message": self.message,
            "details": self.details
        }

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"[{self.code.name}] {self.message} ({detail_str})"
        return f"[{self.code.name}] {self.message}"


class SourceDirectoryError(ImporterError):
    """Raised when the export directory itself cannot be listed."""

    def __init__(self, path: str, original_error: Optional[Exception] = None):
        details = {"path": path}
        if original_error:
            details["original_error"] = str(original_error)[:200]
        super().__init__(
            f"Cannot list source directory '{path}'",
            code=ErrorCode.SOURCE_DIR_UNREADABLE,
            details=details
        )
        self.path = path
        self.original_error = original_error


class ReadError(ImporterError):
    """Raised when a note file cannot be read or is empty."""

    def __init__(
        self,
        message: str,
        file_name: str,
        code: ErrorCode = ErrorCode.SOURCE_FILE_UNREADABLE,
        original_error: Optional[Exception] = None
    ):
        details = {"file": file_name}
        if original_error:
            details["original_error"] = str(original_error)[:200]
        super().__init__(message, code=code, details=details)
        self.file_name = file_name
        self.original_error = original_error


class ParseError(ImporterError):
    """Raised when a note file does not decode into a Keep note."""

    def __init__(
        self,
        message: str,
        file_name: str,
        original_error: Optional[Exception] = None
    ):
        details = {"file": file_name}
        if original_error:
            # pydantic messages span several lines
            details["original_error"] = " ".join(str(original_error).split())[:200]
        super().__init__(
            message, code=ErrorCode.SOURCE_PARSE_FAILED, details=details
        )
        self.file_name = file_name
        self.original_error = original_error


class TransportError(ImporterError):
    """Raised when an HTTP call to the Memos API fails or times out.

    Attributes:
        step: Protocol step that failed (create_note, patch_note, ...)
        status_code: HTTP status if a response was received
        body: Response body lines joined with " | "
    """

    def __init__(
        self,
        message: str,
        step: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        code: ErrorCode = ErrorCode.TRANSPORT_FAILED,
        original_error: Optional[Exception] = None
    ):
        details: Dict[str, Any] = {"step": step}
        if status_code is not None:
            details["status"] = status_code
        if body:
            details["body"] = body[:300]
        if original_error:
            details["original_error"] = str(original_error)[:200]
        super().__init__(message, code=code, details=details)
        self.step = step
        self.status_code = status_code
        self.body = body
        self.original_error = original_error


class PersistenceError(ImporterError):
    """Raised when a database transaction fails."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if original_error:
            details["original_error"] = str(original_error)[:200]
        super().__init__(
            message, code=ErrorCode.PERSISTENCE_FAILED, details=details
        )
        self.operation = operation
        self.original_error = original_error


class AttachmentError(ImporterError):
    """Raised when a single attachment cannot be stored.

    Always recovered by the caller: the attachment is dropped and the
    note carries on.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        code: ErrorCode = ErrorCode.ATTACHMENT_STORE_FAILED,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if path:
            details["attachment"] = path
        if original_error:
            details["original_error"] = str(original_error)[:200]
        super().__init__(message, code=code, details=details)
        self.path = path
        self.original_error = original_error


class ConfigurationError(ImporterError):
    """Raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        code: ErrorCode = ErrorCode.CONFIG_INVALID
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, code=code, details=details)
        self.config_key = config_key
