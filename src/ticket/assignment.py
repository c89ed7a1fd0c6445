"""
Assignment selection for approved tickets.

Resolves the eligible pool for a ticket type, picks the least loaded
responder and maintains the assignment rows together with the status
changes they imply.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.security.models import UserModel, UserRole
from src.security.repository import UserRepository
from src.ticket.exceptions import ConflictError, NoEligibleAssigneeError, NotFoundError
from src.ticket.models import (
    TicketModel, TicketAssignmentModel, TicketType, TicketStatus, OFFICE_WORK_STATUSES,
)
from src.ticket.repository import TicketRepository, ticket_transaction

logger = logging.getLogger(__name__)


class AutoAssignmentService:
    """
    Load-balanced and manual ticket assignment.

    Approved tickets go to the head of the office that owns the ticket type;
    heads then delegate to their staff through manual assignment.
    """

    ELIGIBLE_ROLES: Dict[TicketType, List[UserRole]] = {
        TicketType.MIS: [UserRole.MIS_HEAD],
        TicketType.ITS: [UserRole.ITS_HEAD],
    }

    # Statuses in which a ticket is waiting for its first assignee
    AWAITING_ASSIGNMENT = (TicketStatus.FOR_REVIEW, TicketStatus.DIRECTOR_APPROVED)

    def __init__(
        self,
        session: Session,
        ticket_repository: Optional[TicketRepository] = None,
        user_repository: Optional[UserRepository] = None,
    ):
        self.session = session
        self.tickets = ticket_repository or TicketRepository(session)
        self.users = user_repository or UserRepository(session)

    def _get_ticket(self, ticket_id: int) -> TicketModel:
        ticket = self.tickets.find_by_id(ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket", ticket_id)
        return ticket

    def _get_user(self, user_id: int) -> UserModel:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def get_eligible_users(self, ticket_type: TicketType) -> List[UserModel]:
        return self.users.find_by_roles(self.ELIGIBLE_ROLES[ticket_type])

    def select_assignee(self, ticket_type: TicketType) -> UserModel:
        """
        Least loaded eligible user for ``ticket_type``.

        Load is the number of assignments on tickets that are not resolved,
        closed or cancelled; ties go to the lowest user id.
        """
        candidates = self.get_eligible_users(ticket_type)
        if not candidates:
            raise NoEligibleAssigneeError(
                f"No eligible users available for {ticket_type.value} tickets",
                details={"ticketType": ticket_type.value},
            )

        workload = self.tickets.count_active_assignments(user.id for user in candidates)
        return min(candidates, key=lambda user: (workload.get(user.id, 0), user.id))

    async def auto_assign(self, ticket_id: int, ticket_type: TicketType) -> UserModel:
        """
        Assign the ticket to the least loaded eligible user.

        The assignment row is flushed but not committed, and the ticket status
        is left untouched: the caller commits together with its own
        status change.
        """
        selected = self.select_assignee(ticket_type)

        if self.tickets.find_assignment(ticket_id, selected.id) is None:
            self.tickets.add_assignment(ticket_id, selected.id)
            self.session.flush()

        logger.info(f"Auto-assigned ticket {ticket_id} ({ticket_type.value}) to user {selected.id}")
        return selected

    async def manual_assign(
        self,
        ticket_id: int,
        user_id: int,
        assigned_by_id: Optional[int] = None,
        comment: Optional[str] = None,
    ) -> TicketAssignmentModel:
        """Assign a specific user; a ticket still awaiting assignment moves to ASSIGNED."""
        ticket = self._get_ticket(ticket_id)
        user = self._get_user(user_id)

        if self.tickets.find_assignment(ticket_id, user_id) is not None:
            raise ConflictError(
                f"User {user_id} is already assigned to ticket {ticket_id}",
                details={"ticketId": ticket_id, "userId": user_id},
            )

        try:
            with ticket_transaction(self.session, ticket_id):
                assignment = self.tickets.add_assignment(ticket_id, user_id)
                if ticket.status in self.AWAITING_ASSIGNMENT:
                    self.tickets.transition(
                        ticket,
                        TicketStatus.ASSIGNED,
                        assigned_by_id or user_id,
                        comment or f"Assigned to {user.display_name}",
                    )
        except IntegrityError as e:
            raise ConflictError(
                f"User {user_id} is already assigned to ticket {ticket_id}",
                details={"ticketId": ticket_id, "userId": user_id},
            ) from e

        logger.info(f"User {user_id} assigned to ticket {ticket_id} by {assigned_by_id}")
        return assignment

    async def unassign(self, ticket_id: int, user_id: int, actor_id: int) -> TicketModel:
        """
        Remove an assignment.

        Removing the last assignee of a ticket in active work sends it back to
        DIRECTOR_APPROVED when the director already approved it, otherwise to
        FOR_REVIEW.
        """
        ticket = self._get_ticket(ticket_id)
        assignment = self.tickets.find_assignment(ticket_id, user_id)
        if assignment is None:
            raise NotFoundError("Assignment", f"of user {user_id} on ticket {ticket_id}")

        with ticket_transaction(self.session, ticket_id):
            self.tickets.remove_assignment(assignment)

            if self.tickets.count_assignments(ticket_id) == 0 and ticket.status in OFFICE_WORK_STATUSES:
                target = (
                    TicketStatus.DIRECTOR_APPROVED
                    if ticket.director_approved_at is not None
                    else TicketStatus.FOR_REVIEW
                )
                self.tickets.transition(ticket, target, actor_id, "All assignees removed")
                logger.info(f"Ticket {ticket_id} returned to {target.value} after last unassignment")

        logger.info(f"User {user_id} unassigned from ticket {ticket_id} by {actor_id}")
        return self._get_ticket(ticket_id)

    async def reassign(
        self,
        ticket_id: int,
        from_user_id: int,
        to_user_id: int,
        actor_id: Optional[int] = None,
    ) -> TicketAssignmentModel:
        """Move an assignment between users in a single transaction."""
        self._get_ticket(ticket_id)
        self._get_user(to_user_id)

        current = self.tickets.find_assignment(ticket_id, from_user_id)
        if current is None:
            raise NotFoundError("Assignment", f"of user {from_user_id} on ticket {ticket_id}")
        if self.tickets.find_assignment(ticket_id, to_user_id) is not None:
            raise ConflictError(
                f"User {to_user_id} is already assigned to ticket {ticket_id}",
                details={"ticketId": ticket_id, "userId": to_user_id},
            )

        try:
            with ticket_transaction(self.session, ticket_id):
                self.tickets.remove_assignment(current)
                assignment = self.tickets.add_assignment(ticket_id, to_user_id)
                self.session.flush()
        except IntegrityError as e:
            raise ConflictError(
                f"User {to_user_id} is already assigned to ticket {ticket_id}",
                details={"ticketId": ticket_id, "userId": to_user_id},
            ) from e

        logger.info(
            f"Ticket {ticket_id} reassigned from user {from_user_id} to user {to_user_id} by {actor_id}"
        )
        return assignment
