"""
OP-Blog API: Exception Hierarchy
================================

What:  Application-specific exceptions, one per HTTP failure class.
How:   Each exception carries a client-safe message and an optional context
       dict. Handlers registered in main.py map them onto the error envelope
       {message, errors?, stack?, request_id}.
Who:   Raised by services and auth dependencies; caught by global handlers.

Exception Hierarchy:
    OpBlogError (base)                 → 500
    ├── BadRequestError                → 400
    │   └── ValidationError            → 400 (per-field errors)
    ├── AuthenticationError            → 401
    ├── AuthorizationError             → 403
    ├── NotFoundError                  → 404
    ├── ConflictError                  → 409
    ├── PayloadTooLargeError           → 413
    ├── RateLimitExceededError         → 429
    ├── MailDeliveryError              → 500
    ├── ImageHostError                 → 500
    └── DatabaseError                  → 500
"""

from typing import Any, Dict, Iterable, Optional

# FastAPI loc heads → error envelope keys
_REQUEST_PARTS = {"body": "body", "query": "query", "path": "params"}


class OpBlogError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class BadRequestError(OpBlogError):
    """The request cannot be served as sent (bad credentials, invalid link, ...)."""

    status_code = 400

    def __init__(
        self,
        message: str = "Bad request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(BadRequestError):
    """
    Raised when client input fails validation.

    `errors` is grouped by request part, mirroring request validation:
        {"body": {"password": "..."}, "params": {"id": "..."}}
    """

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[Dict[str, Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.errors = errors or {}

    @classmethod
    def for_field(cls, part: str, field: str, message: str) -> "ValidationError":
        return cls(errors={part: {field: message}})

    @classmethod
    def from_pydantic(
        cls, errors: Iterable[Dict[str, Any]], part: Optional[str] = None
    ) -> "ValidationError":
        """
        Group pydantic/FastAPI error dicts by request part and field.

        With `part` None the part is taken from the head of each `loc`
        (FastAPI request validation); otherwise `loc` starts at the field.
        Only the first message per field is kept.
        """
        grouped: Dict[str, Dict[str, str]] = {}
        for err in errors:
            loc = [str(p) for p in err.get("loc", ())]
            where = part
            if where is None:
                where = _REQUEST_PARTS.get(loc.pop(0), "body") if loc else "body"
            field = ".".join(loc) or where
            message = str(err.get("msg", "Invalid value"))
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
            grouped.setdefault(where, {}).setdefault(field, message)
        return cls(errors=grouped)


class AuthenticationError(OpBlogError):
    """Missing, malformed, expired or forged credential."""

    status_code = 401

    def __init__(
        self,
        message: str = "No token provided",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(OpBlogError):
    """Authenticated principal is not allowed to act on the resource."""

    status_code = 403

    def __init__(
        self,
        message: str = "Access denied, not allowed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(OpBlogError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    this exception so the handler can answer 404.
    """

    status_code = 404

    def __init__(
        self,
        message: str = "The requested resource was not found",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConflictError(OpBlogError):
    """
    Raised when a write would violate a uniqueness invariant.

    Produced by translating the store's duplicate-key IntegrityError; the
    unique index decides, never an application-side pre-check.
    """

    status_code = 409

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PayloadTooLargeError(OpBlogError):
    status_code = 413

    def __init__(
        self,
        message: str = "Request entity too large",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(OpBlogError):
    """
    Raised when a client exceeds the per-IP request rate limit.
    The handler also sets the Retry-After header.
    """

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class MailDeliveryError(OpBlogError):
    """
    Raised when the SMTP send fails or exceeds its deadline.

    Records written before the send (user, verification token) stay
    committed; the client sees a 500 and may ask for a new link.
    """

    def __init__(
        self,
        message: str = "Email send failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ImageHostError(OpBlogError):
    """Raised when an upload, destroy or bulk delete on the image host fails."""

    def __init__(
        self,
        message: str = "Image service error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(OpBlogError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic. Details stay in
    the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
