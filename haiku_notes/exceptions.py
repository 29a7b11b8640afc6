"""
Haiku Notes Backend: Custom Exception Hierarchy
================================================

What:  Application-specific exceptions, one per failure class the API reports.
How:   Each exception carries a client-safe message and an optional context
       dict. Global handlers registered in main.py turn them into JSON error
       responses with the matching HTTP status code.
Who:   Raised by the decoder, identifier generator, path validation and
       services; caught by the global handlers.

Exception Hierarchy:
    HaikuNotesError (base)
    ├── ConfigurationError           → startup abort (never reaches HTTP)
    ├── ValidationError              → 400 Bad Request
    ├── RequestDecodeError           → status carried by the subclass
    │   ├── MalformedBodyError       → 400 Bad Request
    │   ├── RequestTimeoutError      → 408 Request Timeout
    │   ├── PayloadTooLargeError     → 413 Payload Too Large
    │   └── UnsupportedMediaTypeError→ 415 Unsupported Media Type
    ├── NotFoundError                → 404 Not Found
    ├── ConflictError                → 409 Conflict
    ├── DatabaseError                → 500 Internal Server Error
    │   └── DatabaseConnectionError  → 503 Service Unavailable
    └── IdentifierGenerationError    → 500 Internal Server Error

    The store tags every database failure with one of NotFoundError,
    ConflictError, DatabaseConnectionError or DatabaseError, so handlers
    never see raw SQLAlchemy exceptions.
"""

from typing import Any, Dict, Optional


class HaikuNotesError(Exception):
    """
    Base exception for all Haiku Notes application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where a handler says so)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ConfigurationError(HaikuNotesError):
    """Raised when settings are missing or invalid at startup."""

    def __init__(
        self,
        message: str = "Configuration validation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(HaikuNotesError):
    """
    Raised when client input breaks a rule the client can fix.

    When:    Malformed path identifier, empty required field, payload id that
             does not match the endpoint, client-chosen id on create.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


# ══════════════════════════════════════════════════════════════════════════
# Body decoding failures
# ══════════════════════════════════════════════════════════════════════════


class RequestDecodeError(HaikuNotesError):
    """
    Raised by the strict JSON body decoder.

    Unlike the other exceptions, the HTTP status lives on the instance:
    a single handler serves every subclass.
    """

    status_code: int = 400
    error_code: str = "malformed_body"

    def __init__(
        self,
        message: str = "Request body could not be decoded",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MalformedBodyError(RequestDecodeError):
    """Body is empty, not JSON, not a single object, or does not fit the schema."""

    status_code = 400
    error_code = "malformed_body"


class RequestTimeoutError(RequestDecodeError):
    """The client did not finish sending the body within the read timeout."""

    status_code = 408
    error_code = "request_timeout"

    def __init__(
        self,
        timeout: float = 0.0,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["timeout_seconds"] = timeout
        super().__init__(
            message=f"Request body was not received within {timeout:g} seconds",
            context=ctx,
        )


class PayloadTooLargeError(RequestDecodeError):
    """Body exceeds the decoder's size limit."""

    status_code = 413
    error_code = "payload_too_large"

    def __init__(
        self,
        message: str = "Request body must not be larger than 1MB",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnsupportedMediaTypeError(RequestDecodeError):
    """Content-Type header is present and is not application/json."""

    status_code = 415
    error_code = "unsupported_media_type"

    def __init__(
        self,
        message: str = "Content-Type header is not application/json",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


# ══════════════════════════════════════════════════════════════════════════
# Store failures
# ══════════════════════════════════════════════════════════════════════════


class NotFoundError(HaikuNotesError):
    """
    Raised when a requested resource does not exist.

    When:    No row matches the id, or an owner-scoped update/delete matched
             zero rows.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource


class ConflictError(HaikuNotesError):
    """
    Raised when an insert or update violates a database constraint.

    When:    Duplicate primary key (identifier collision), note whose owner
             does not exist.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "The request conflicts with existing data",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(HaikuNotesError):
    """
    Raised when a database operation fails unexpectedly.

    HTTP:    500 Internal Server Error

    The response message is always generic. The context (statement name,
    driver exception type) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseConnectionError(DatabaseError):
    """
    Raised when the database cannot be reached.

    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        message: str = "The database is temporarily unavailable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IdentifierGenerationError(HaikuNotesError):
    """
    Raised when the random source used for identifiers fails.

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Could not generate an identifier",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
