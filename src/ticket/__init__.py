"""
Ticket workflow module for the helpdesk.

Models, errors, persistence and assignment selection. The lifecycle engine
depends on notifications and is imported from ``src.ticket.service``.
"""

from .models import (
    TicketModel,
    MISTicketModel,
    ITSTicketModel,
    TicketAssignmentModel,
    TicketNoteModel,
    TicketStatusHistoryModel,
    TicketCounterModel,
    TicketStatus,
    TicketPriority,
    TicketType,
    MISCategory,
    CreateMISTicketRequest,
    CreateITSTicketRequest,
    SLAConfig,
)
from .exceptions import (
    TicketError,
    NotFoundError,
    ValidationError,
    InvalidTransitionError,
    ForbiddenError,
    ConflictError,
    NoEligibleAssigneeError,
)
from .repository import TicketRepository
from .assignment import AutoAssignmentService

__all__ = [
    # Models
    "TicketModel",
    "MISTicketModel",
    "ITSTicketModel",
    "TicketAssignmentModel",
    "TicketNoteModel",
    "TicketStatusHistoryModel",
    "TicketCounterModel",
    "TicketStatus",
    "TicketPriority",
    "TicketType",
    "MISCategory",
    "CreateMISTicketRequest",
    "CreateITSTicketRequest",
    "SLAConfig",
    # Errors
    "TicketError",
    "NotFoundError",
    "ValidationError",
    "InvalidTransitionError",
    "ForbiddenError",
    "ConflictError",
    "NoEligibleAssigneeError",
    # Services
    "TicketRepository",
    "AutoAssignmentService",
]
