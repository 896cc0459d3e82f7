"""
WriterID Portal Backend — Exception Hierarchy
==============================================

What:  Application-specific exceptions, each mapped to one HTTP status by the
       handlers registered in main.py.
Who:   Raised by services, gateways and auth dependencies.

Exception Hierarchy:
    WriterIDError (base)
    ├── ValidationError                  → 400 Bad Request
    │   └── InvalidStatusTransitionError → 400 Bad Request
    ├── AuthenticationError              → 401 Unauthorized
    ├── UnauthorizedError                → 403 Forbidden (ownership violation)
    ├── NotFoundError                    → 404 Not Found (missing or inactive)
    ├── ConflictError                    → 409 Conflict
    ├── StorageError                     → 500 Internal Server Error
    ├── QueueError                       → 500 Internal Server Error
    ├── DatabaseError                    → 500 Internal Server Error
    └── ExecutorError                    → 502 Bad Gateway
        └── ExecutorTimeoutError         → 504 Gateway Timeout

`message` is safe to return to API consumers; `context` is logged and only
returned for client errors (4xx).
"""

from typing import Any, Dict, Optional


class WriterIDError(Exception):
    """
    Base exception for all portal errors.

    Attributes:
        message:  User-facing error description
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(WriterIDError):
    """
    Raised when client input fails validation.

    When:  Malformed base64 image, missing model id, incomplete dataset
           analysis, mismatched passwords.
    HTTP:  400 Bad Request
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


class InvalidStatusTransitionError(ValidationError):
    """
    Raised when a status change would move an entity backwards.

    Example: a Completed dataset receiving a Processing callback, or
    /analyze called on a dataset that is already being analyzed.
    """

    def __init__(
        self,
        resource: str,
        resource_id: Optional[str],
        current: str,
        target: str,
    ):
        super().__init__(
            message=f"Cannot change {resource} status from {current} to {target}",
            field="status",
            context={
                "resource": resource,
                "resource_id": resource_id,
                "current_status": current,
                "requested_status": target,
            },
        )
        self.current = current
        self.target = target


class AuthenticationError(WriterIDError):
    """
    Raised when credentials are missing, malformed, expired or wrong.

    HTTP:  401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthorizedError(WriterIDError):
    """
    Raised when an authenticated user touches an entity they do not own.

    Kept distinct from NotFoundError: the entity exists, the caller just
    isn't allowed to use it.
    HTTP:  403 Forbidden
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"You do not have access to this {resource}"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class NotFoundError(WriterIDError):
    """
    Raised when a requested resource does not exist or was soft-deleted.

    HTTP:  404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(WriterIDError):
    """
    Raised when a create would duplicate a unique record (e.g. user email).

    HTTP:  409 Conflict
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageError(WriterIDError):
    """
    Raised when a blob storage operation fails.

    When:  Container provisioning, upload, download or delete failed in the
           configured backend (Azure or local filesystem).
    HTTP:  500 Internal Server Error (generic message, details logged)
    """

    def __init__(
        self,
        message: str = "Blob storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class QueueError(WriterIDError):
    """
    Raised when a work-queue message could not be sent.

    HTTP:  500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Failed to enqueue work item",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(WriterIDError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:  500 Internal Server Error. SQL details are logged, never returned.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ExecutorError(WriterIDError):
    """
    Raised when the external executor call fails or returns garbage.

    TaskService catches this during task creation and records a Failed task
    instead of propagating it.
    HTTP:  502 Bad Gateway (only if it escapes a service)
    """

    def __init__(
        self,
        message: str = "The prediction executor failed to process the request",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code


class ExecutorTimeoutError(ExecutorError):
    """
    Raised when the executor call exceeds executor_timeout_seconds.

    HTTP:  504 Gateway Timeout
    """

    def __init__(
        self,
        timeout_seconds: float,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["timeout_seconds"] = timeout_seconds
        super().__init__(
            message=f"The prediction executor did not respond within {timeout_seconds} seconds",
            context=ctx,
        )
        self.timeout_seconds = timeout_seconds
