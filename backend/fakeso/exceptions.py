"""
FakeSO Backend — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the error kinds the services raise.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and short human-readable messages, without leaking
       internal details to the client.
How:   Each exception carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses.
Who:   Raised by services; caught by global handlers.

Exception Hierarchy:
    FakeSOError (base)
    ├── ValidationError       → 400 Bad Request (missing/malformed field)
    ├── AuthenticationError   → 401 Unauthorized (bad credentials)
    ├── NotFoundError         → 404 Not Found
    ├── ConflictError         → 409 Conflict (duplicates, friendship rules)
    └── DatabaseError         → 500 Internal Server Error

Validation errors are raised before any write. Database errors always
carry a generic message; the underlying exception type goes into
`context`, which is logged but never returned.
"""

from typing import Any, Dict, Optional


class FakeSOError(Exception):
    """
    Base exception for all FakeSO application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(FakeSOError):
    """
    Raised when client input fails validation.

    When:    Missing text/author/timestamp on an answer or comment, missing
             user fields, unknown vote direction or notification type.
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


class AuthenticationError(FakeSOError):
    """
    Raised when login credentials do not match.

    The message never says which half (username or password) was wrong.
    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Invalid username or password",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(FakeSOError):
    """
    Raised when a referenced entity does not exist.

    SQLAlchemy returns None for missing rows; services convert that
    None into this exception so the handler can answer 404.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(FakeSOError):
    """
    Raised when a request collides with existing state.

    When:    Username or email already registered, a user befriending
             themselves, an existing friendship, a pending duplicate
             friend request, or accepting a notification twice.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "The request conflicts with existing data",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(FakeSOError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The message returned to the client is always generic.
        Detailed error info is logged server-side only.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
