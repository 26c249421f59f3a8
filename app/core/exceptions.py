"""
Named HTTP errors raised by services.
Each is an HTTPException so routes and the `except HTTPException: raise`
pattern in services pass them through untouched.
"""

from typing import Any, Optional
from fastapi import HTTPException, status


class NotFound(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class Forbidden(HTTPException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InvalidTransition(HTTPException):
    """Requested status change is not allowed from the record's current status."""

    def __init__(self, current: str, target: str, detail: Optional[str] = None):
        self.current = current
        self.target = target
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail or f"Cannot move appointment from '{current}' to '{target}'"
        )


class ValidationFailed(HTTPException):
    def __init__(self, detail: Any):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ProviderUnavailable(HTTPException):
    def __init__(self, provider: str):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{provider} is not configured"
        )


class DeliveryFailed(HTTPException):
    """Every channel of a notification dispatch failed."""

    def __init__(self, detail: Any):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)
