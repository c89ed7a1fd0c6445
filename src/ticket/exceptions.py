"""
Typed failures raised by the ticket workflow.

Each carries a stable ``code`` and an HTTP-like ``status_code`` so the API
layer can translate it without inspecting messages.
"""

from typing import Any, Dict, Optional


class TicketError(Exception):
    """Base class for workflow failures."""

    code = "TICKET_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "statusCode": self.status_code,
            "details": self.details,
        }


class NotFoundError(TicketError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier: Optional[Any] = None):
        message = f"{resource} not found" if identifier is None else f"{resource} {identifier} not found"
        super().__init__(message)
        self.resource = resource


class ValidationError(TicketError):
    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidTransitionError(TicketError):
    code = "INVALID_TRANSITION"
    status_code = 409


class ForbiddenError(TicketError):
    code = "FORBIDDEN"
    status_code = 403


class ConflictError(TicketError):
    code = "CONFLICT"
    status_code = 409


class NoEligibleAssigneeError(TicketError):
    code = "NO_ELIGIBLE_ASSIGNEE"
    status_code = 422
