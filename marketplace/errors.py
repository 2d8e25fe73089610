"""
Taxonomía de errores del marketplace.

Cada error lleva el status HTTP y el código que el handler de FastAPI
publica en el sobre {"error": {"code", "message", "details"}}.
"""
from typing import Any, Dict, List, Optional


class MarketplaceError(Exception):
    """Base exception for marketplace errors"""

    status_code = 500
    code = "INTERNAL"

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class AuthenticationError(MarketplaceError):
    """Missing or unknown bearer token"""

    status_code = 401
    code = "UNAUTHORIZED"


class ValidationError(MarketplaceError):
    """Malformed or missing request fields"""

    status_code = 400
    code = "VALIDATION_ERROR"


class AuthorizationError(MarketplaceError):
    """Caller lacks the required access grant"""

    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(MarketplaceError):
    """Entity absent or invisible to the caller"""

    status_code = 404
    code = "NOT_FOUND"


class ExternalServiceError(MarketplaceError):
    """Description provider unreachable, failing or too slow"""

    status_code = 502
    code = "EXTERNAL_SERVICE"


class PersistenceError(MarketplaceError):
    """Transaction failed and was rolled back; the whole call is safe to retry"""

    status_code = 500
    code = "PERSISTENCE"


class SerializationError(MarketplaceError):
    """Workflow data could not be copied, not even in degraded form"""

    status_code = 500
    code = "SERIALIZATION"
