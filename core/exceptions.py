"""
Recipedium Error Taxonomy
Domain exceptions raised by services and rendered by the API exception handlers
"""

from typing import Any, Dict, List, Optional


class RecipediumError(Exception):
    """Base class for all domain errors"""

    status_code: int = 500
    default_message: str = "Server Error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"msg": self.message}


class ValidationError(RecipediumError):
    """Client-correctable input error carrying per-field messages"""

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: Optional[List[Dict[str, str]]] = None, message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, msg: str) -> "ValidationError":
        return cls([{"field": field, "msg": msg}], message=msg)

    def to_dict(self) -> Dict[str, Any]:
        return {"msg": self.message, "errors": self.errors}


class AuthenticationError(RecipediumError):
    """Missing or invalid credential"""

    status_code = 401
    default_message = "Not authorized"


class AuthorizationError(RecipediumError):
    """Authenticated caller lacks rights (ownership or role)"""

    status_code = 403
    default_message = "User not authorized"


class NotFoundError(RecipediumError):
    """Resource id does not resolve"""

    status_code = 404
    default_message = "Resource not found"


class ConflictError(RecipediumError):
    """Request conflicts with current state (duplicate email, already liked)"""

    status_code = 400
    default_message = "Conflict"


class RateLimitExceededError(RecipediumError):
    """Too many attempts from one client within the window"""

    status_code = 429
    default_message = "Too many attempts. Please try again later."


class ServiceUnavailableError(RecipediumError):
    """Infrastructure dependency is unreachable"""

    status_code = 503
    default_message = "Database service temporarily unavailable"


def pydantic_errors_to_fields(errors) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into [{field, msg}] entries"""
    fields = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        fields.append({"field": ".".join(location) or "body", "msg": message})
    return fields
