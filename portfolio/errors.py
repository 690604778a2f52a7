"""
Error taxonomy shared by the stores, services, auth gate and HTTP layer.

Every error carries the HTTP status it maps to, so route handlers never
translate errors by hand.
"""

from __future__ import annotations

from typing import List, Optional


class PortfolioError(Exception):
    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PortfolioError):
    status_code = 400
    default_message = "Missing required fields"

    def __init__(
        self,
        message: Optional[str] = None,
        missing_fields: Optional[List[str]] = None,
        invalid_fields: Optional[List[str]] = None,
    ):
        self.missing_fields = list(missing_fields or [])
        self.invalid_fields = list(invalid_fields or [])
        if message is None and self.missing_fields:
            message = f"Missing required fields: {', '.join(self.missing_fields)}"
        super().__init__(message)


class Unauthenticated(PortfolioError):
    status_code = 401
    default_message = "Unauthorized: No token provided"


class Forbidden(PortfolioError):
    status_code = 403
    default_message = "Forbidden: Admin access required"


class NotFound(PortfolioError):
    status_code = 404
    default_message = "Not found"


class TransportError(PortfolioError):
    status_code = 503
    default_message = "Storage backend unavailable"


class SendError(PortfolioError):
    """Email dispatch failure. Logged by the notifier, never returned to a caller."""

    default_message = "Failed to send notification"
