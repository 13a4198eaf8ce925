"""
Domain errors raised by services and mapped to HTTP responses in main.py
"""
from decimal import Decimal
from typing import Optional


class WoodflowError(Exception):
    """Base class for every error a service raises on purpose."""

    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(WoodflowError):
    """The id does not resolve inside the caller's company."""

    status_code = 404
    default_message = "Not found"


class InvalidInput(WoodflowError):
    status_code = 400
    default_message = "Invalid input"


class InvalidStatus(WoodflowError):
    status_code = 400
    default_message = "Invalid status"


class Forbidden(WoodflowError):
    status_code = 403
    default_message = "You do not have permission to perform this action"


class Conflict(WoodflowError):
    status_code = 409
    default_message = "Resource already exists"


class OverLimit(WoodflowError):
    """A payment would take the amount paid past the document total."""

    status_code = 400
    default_message = "Payment exceeds the remaining balance"

    def __init__(self, remaining: Decimal, message: Optional[str] = None):
        self.remaining = remaining
        super().__init__(
            message or f"Payment amount exceeds remaining balance. Remaining balance: {remaining:.2f}"
        )


class NoActiveCompany(WoodflowError):
    status_code = 400
    default_message = "No active company found for this user"


class UpstreamFailure(WoodflowError):
    """An email, SMS or notification collaborator failed. Logged, never returned."""

    status_code = 502
    default_message = "Upstream service failed"
