"""
Application error taxonomy.

Services raise these; ``main.py`` turns them into the
``{"success": false, "message": ..., "errors": [...]}`` envelope.
"""
from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": False, "message": self.message}
        if self.errors:
            payload["errors"] = self.errors
        return payload


class ValidationError(AppError):
    """Malformed or out-of-range input."""
    status_code = 400
    default_message = "Validation failed"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Could not validate credentials"


class AuthorizationError(AppError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Resource state conflict"


class ServerError(AppError):
    status_code = 500
    default_message = "Internal server error"


def field_error(field: str, message: str) -> Dict[str, str]:
    return {"field": field, "message": message}


# request sections FastAPI prefixes onto error locations
_LOCATION_ROOTS = {"body", "query", "path", "header", "cookie", "form"}


def field_errors(raw_errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into ``[{field, message}]``."""
    flattened = []
    for error in raw_errors:
        loc = list(error.get("loc", ()))
        if loc and loc[0] in _LOCATION_ROOTS:
            loc = loc[1:]
        flattened.append(field_error(".".join(str(part) for part in loc) or "body", error.get("msg", "Invalid value")))
    return flattened
