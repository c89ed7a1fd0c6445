"""
Ticket lifecycle engine.

Drives a ticket through the approval chain (secretary review, director
approval, assignment, visit scheduling, work and closure), enforcing the legal
transition for every action. Each status change is committed together with
its history row; notifications are sent after the commit and never fail the
operation that triggered them.
"""

import logging
from datetime import datetime
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from src.notification.service import NotificationService
from src.security.models import UserModel, UserRole
from src.security.repository import UserRepository
from src.system.logging_config import log_audit_event
from src.ticket.assignment import AutoAssignmentService
from src.ticket.exceptions import (
    NotFoundError, ValidationError, InvalidTransitionError, ForbiddenError,
)
from src.ticket.models import (
    TicketModel, TicketNoteModel, TicketType, TicketStatus, SLAConfig,
    CreateTicketRequest, CreateMISTicketRequest, CreateITSTicketRequest,
    OFFICE_WORK_STATUSES,
)
from src.ticket.repository import TicketRepository, ticket_transaction

logger = logging.getLogger(__name__)


class TicketService:
    """
    Ticket workflow operations for one request.

    Built per request around a session; the notification and assignment
    collaborators default to instances sharing that session.
    """

    # Work-status moves available through update_status
    VALID_STATUS_TRANSITIONS: Dict[TicketStatus, List[TicketStatus]] = {
        TicketStatus.ASSIGNED: [TicketStatus.IN_PROGRESS],
        TicketStatus.SCHEDULED: [TicketStatus.IN_PROGRESS],
        TicketStatus.IN_PROGRESS: [TicketStatus.ON_HOLD, TicketStatus.RESOLVED],
        TicketStatus.ON_HOLD: [TicketStatus.IN_PROGRESS],
        TicketStatus.RESOLVED: [TicketStatus.CLOSED, TicketStatus.IN_PROGRESS],
    }

    DEFAULT_COMMENTS: Dict[tuple, str] = {
        (TicketStatus.FOR_REVIEW, TicketStatus.REVIEWED): "Reviewed by secretary",
        (TicketStatus.REVIEWED, TicketStatus.DIRECTOR_APPROVED): "Approved by director",
        (TicketStatus.DIRECTOR_APPROVED, TicketStatus.ASSIGNED): "Assigned to department",
        (TicketStatus.ASSIGNED, TicketStatus.IN_PROGRESS): "Work started",
        (TicketStatus.SCHEDULED, TicketStatus.IN_PROGRESS): "Work started",
        (TicketStatus.IN_PROGRESS, TicketStatus.ON_HOLD): "Work paused",
        (TicketStatus.ON_HOLD, TicketStatus.IN_PROGRESS): "Work resumed",
        (TicketStatus.IN_PROGRESS, TicketStatus.RESOLVED): "Issue resolved",
        (TicketStatus.RESOLVED, TicketStatus.IN_PROGRESS): "Work reopened",
        (TicketStatus.RESOLVED, TicketStatus.CLOSED): "Ticket closed",
        (TicketStatus.CANCELLED, TicketStatus.FOR_REVIEW): "Ticket reopened by creator",
        (TicketStatus.ASSIGNED, TicketStatus.PENDING_ACKNOWLEDGMENT): "Visit schedule proposed",
        (TicketStatus.PENDING_ACKNOWLEDGMENT, TicketStatus.SCHEDULED): "Visit schedule acknowledged",
    }

    MONITOR_STATUSES = (
        TicketStatus.SCHEDULED,
        TicketStatus.IN_PROGRESS,
        TicketStatus.ON_HOLD,
        TicketStatus.RESOLVED,
    )

    OFFICE_TYPES: Dict[UserRole, TicketType] = {
        UserRole.MIS_HEAD: TicketType.MIS,
        UserRole.ITS_HEAD: TicketType.ITS,
    }

    def __init__(
        self,
        session: Session,
        notification_service: Optional[NotificationService] = None,
        assignment_service: Optional[AutoAssignmentService] = None,
        ticket_repository: Optional[TicketRepository] = None,
        user_repository: Optional[UserRepository] = None,
    ):
        self.session = session
        self.repository = ticket_repository or TicketRepository(session)
        self.users = user_repository or UserRepository(session)
        self.notifications = notification_service or NotificationService(session, user_repository=self.users)
        self.assignments = assignment_service or AutoAssignmentService(
            session, ticket_repository=self.repository, user_repository=self.users
        )

    # ==================== Helpers ====================

    def _get_ticket(self, ticket_id: int) -> TicketModel:
        ticket = self.repository.find_by_id(ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket", ticket_id)
        return ticket

    def _get_user(self, user_id: int) -> UserModel:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    @staticmethod
    def _require_status(ticket: TicketModel, allowed: Iterable[TicketStatus], action: str) -> None:
        allowed = tuple(allowed)
        if ticket.status not in allowed:
            expected = ", ".join(status.value for status in allowed)
            raise InvalidTransitionError(
                f"Cannot {action}: ticket {ticket.ticket_number} is {ticket.status.value}, expected {expected}",
                details={
                    "ticketId": ticket.id,
                    "currentStatus": ticket.status.value,
                    "allowedStatuses": [status.value for status in allowed],
                },
            )

    @staticmethod
    def _require_text(value: Optional[str], field: str) -> str:
        text = (value or "").strip()
        if not text:
            raise ValidationError(f"{field} is required", details={"field": field})
        return text

    @staticmethod
    def _optional_text(value: Optional[str]) -> Optional[str]:
        text = (value or "").strip()
        return text or None

    def _default_comment(self, from_status: TicketStatus, to_status: TicketStatus) -> str:
        return self.DEFAULT_COMMENTS.get(
            (from_status, to_status),
            f"Status changed from {from_status.value} to {to_status.value}",
        )

    def _audit(self, actor_id: int, action: str, ticket: TicketModel, **details: Any) -> None:
        log_audit_event(
            user_id=actor_id,
            action=action,
            resource_type="ticket",
            resource_id=str(ticket.id),
            details={"ticketNumber": ticket.ticket_number, "status": ticket.status.value, **details},
        )

    async def _safe_notify(self, ticket_id: int, notification: Awaitable[Any]) -> None:
        """Await a notification; failures are rolled back and logged, never raised."""
        try:
            await notification
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to send notification for ticket {ticket_id}: {e}", exc_info=True)

    # ==================== Creation ====================

    async def create_ticket(
        self,
        kind: Union[TicketType, str],
        payload: Union[Dict[str, Any], CreateTicketRequest],
        creator_id: int,
    ) -> TicketModel:
        """
        Submit a new MIS or ITS ticket.

        The ticket starts in FOR_REVIEW with an SLA due date derived from its
        priority, and every secretary is notified.
        """
        try:
            ticket_type = TicketType(kind)
        except ValueError:
            raise ValidationError(f"Unknown ticket type: {kind}", details={"field": "type"})

        request_model = CreateMISTicketRequest if ticket_type == TicketType.MIS else CreateITSTicketRequest
        try:
            if isinstance(payload, request_model):
                request = payload
            elif isinstance(payload, CreateTicketRequest):
                request = request_model.model_validate(payload.model_dump())
            else:
                request = request_model.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid ticket data",
                details=[
                    {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
                    for error in e.errors()
                ],
            ) from e

        self._get_user(creator_id)

        now = datetime.now()
        due_date = SLAConfig.get_due_date(request.priority, now)
        estimated_duration = request.estimated_duration or SLAConfig.get_estimated_duration(
            ticket_type, request.priority
        )

        with ticket_transaction(self.session):
            ticket = self.repository.create(
                ticket_type, request, creator_id,
                due_date=due_date,
                estimated_duration=estimated_duration,
                created_at=now,
            )

        ticket = self._get_ticket(ticket.id)
        logger.info(f"Created {ticket_type.value} ticket {ticket.ticket_number} for user {creator_id}")
        self._audit(creator_id, "ticket_created", ticket, priority=ticket.priority.value)

        await self._safe_notify(ticket.id, self.notifications.notify_new_ticket_for_review(ticket))
        return ticket

    # ==================== Work status ====================

    async def update_status(
        self,
        ticket_id: int,
        actor_id: int,
        new_status: Union[TicketStatus, str],
        comment: Optional[str] = None,
        target_completion_date: Optional[datetime] = None,
    ) -> TicketModel:
        """Move a ticket along its work statuses (start, pause, resume, resolve, close)."""
        try:
            new_status = TicketStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown status: {new_status}", details={"field": "status"})

        ticket = self._get_ticket(ticket_id)
        actor = self._get_user(actor_id)

        from_status = ticket.status
        allowed = self.VALID_STATUS_TRANSITIONS.get(from_status, [])
        if new_status not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition ticket {ticket.ticket_number} from {from_status.value} to {new_status.value}",
                details={
                    "ticketId": ticket.id,
                    "fromStatus": from_status.value,
                    "toStatus": new_status.value,
                    "allowedStatuses": [status.value for status in allowed],
                },
            )

        with ticket_transaction(self.session, ticket_id):
            now = datetime.now()
            if new_status == TicketStatus.RESOLVED:
                ticket.resolved_at = now
                ticket.actual_duration = int((now - ticket.created_at).total_seconds() // 3600)
            elif new_status == TicketStatus.CLOSED:
                ticket.closed_at = now
            elif from_status == TicketStatus.RESOLVED:
                ticket.resolved_at = None
                ticket.actual_duration = None

            if target_completion_date is not None:
                ticket.target_completion_date = target_completion_date

            self.repository.transition(
                ticket, new_status, actor_id,
                self._optional_text(comment) or self._default_comment(from_status, new_status),
            )

        ticket = self._get_ticket(ticket_id)
        self._audit(actor_id, "status_changed", ticket, fromStatus=from_status.value)

        if actor_id != ticket.created_by_id:
            await self._safe_notify(
                ticket_id,
                self.notifications.notify_status_changed(ticket, from_status, new_status, actor),
            )
        return ticket

    # ==================== Approval chain ====================

    async def review_as_secretary(
        self, ticket_id: int, secretary_id: int, comment: Optional[str] = None
    ) -> TicketModel:
        """Secretary review: FOR_REVIEW -> REVIEWED, forwarded to the director."""
        ticket = self._get_ticket(ticket_id)
        reviewer = self._get_user(secretary_id)
        self._require_status(ticket, [TicketStatus.FOR_REVIEW], "review ticket")

        with ticket_transaction(self.session, ticket_id):
            ticket.secretary_reviewed_by_id = secretary_id
            ticket.secretary_reviewed_at = datetime.now()
            self.repository.transition(
                ticket, TicketStatus.REVIEWED, secretary_id,
                self._optional_text(comment) or self._default_comment(TicketStatus.FOR_REVIEW, TicketStatus.REVIEWED),
            )

        ticket = self._get_ticket(ticket_id)
        self._audit(secretary_id, "ticket_reviewed", ticket)

        await self._safe_notify(ticket_id, self.notifications.notify_ticket_reviewed(ticket, reviewer))
        await self._safe_notify(ticket_id, self.notifications.notify_ready_for_approval(ticket, reviewer))
        return ticket

    async def reject_as_secretary(self, ticket_id: int, secretary_id: int, reason: str) -> TicketModel:
        """Secretary rejection: FOR_REVIEW -> CANCELLED with a mandatory reason."""
        ticket = self._get_ticket(ticket_id)
        secretary = self._get_user(secretary_id)
        reason = self._require_text(reason, "reason")
        self._require_status(ticket, [TicketStatus.FOR_REVIEW], "reject ticket")

        with ticket_transaction(self.session, ticket_id):
            self.repository.transition(
                ticket, TicketStatus.CANCELLED, secretary_id, f"Rejected by secretary: {reason}"
            )

        ticket = self._get_ticket(ticket_id)
        self._audit(secretary_id, "ticket_rejected", ticket, reason=reason)

        await self._safe_notify(ticket_id, self.notifications.notify_ticket_rejected(ticket, reason, secretary))
        return ticket

    async def approve_as_director(
        self, ticket_id: int, director_id: int, comment: Optional[str] = None
    ) -> TicketModel:
        """
        Director approval: REVIEWED -> DIRECTOR_APPROVED, then auto-assignment.

        Auto-assignment runs as its own transaction. If nobody is eligible the
        failure is logged and the ticket stays DIRECTOR_APPROVED for manual
        assignment.
        """
        ticket = self._get_ticket(ticket_id)
        director = self._get_user(director_id)
        self._require_status(ticket, [TicketStatus.REVIEWED], "approve ticket")

        with ticket_transaction(self.session, ticket_id):
            ticket.director_approved_by_id = director_id
            ticket.director_approved_at = datetime.now()
            self.repository.transition(
                ticket, TicketStatus.DIRECTOR_APPROVED, director_id,
                self._optional_text(comment)
                or self._default_comment(TicketStatus.REVIEWED, TicketStatus.DIRECTOR_APPROVED),
            )

        ticket = self._get_ticket(ticket_id)
        self._audit(director_id, "ticket_approved", ticket)
        await self._safe_notify(ticket_id, self.notifications.notify_ticket_approved(ticket, director))

        try:
            with ticket_transaction(self.session, ticket_id):
                assignee = await self.assignments.auto_assign(ticket.id, ticket.type)
                self.repository.transition(
                    ticket, TicketStatus.ASSIGNED, director_id,
                    self._default_comment(TicketStatus.DIRECTOR_APPROVED, TicketStatus.ASSIGNED),
                )
        except Exception as e:
            logger.exception(f"Auto-assignment failed for ticket {ticket_id}, left DIRECTOR_APPROVED: {e}")
            return self._get_ticket(ticket_id)

        ticket = self._get_ticket(ticket_id)
        self._audit(director_id, "ticket_auto_assigned", ticket, assigneeId=assignee.id)
        await self._safe_notify(
            ticket_id, self.notifications.notify_ticket_assigned(ticket, assignee.id, director)
        )
        return ticket

    async def disapprove_as_director(self, ticket_id: int, director_id: int, reason: str) -> TicketModel:
        """Director disapproval: REVIEWED -> CANCELLED with a mandatory reason."""
        ticket = self._get_ticket(ticket_id)
        director = self._get_user(director_id)
        reason = self._require_text(reason, "reason")
        self._require_status(ticket, [TicketStatus.REVIEWED], "disapprove ticket")

        with ticket_transaction(self.session, ticket_id):
            self.repository.transition(
                ticket, TicketStatus.CANCELLED, director_id, f"Disapproved by director: {reason}"
            )

        ticket = self._get_ticket(ticket_id)
        self._audit(director_id, "ticket_disapproved", ticket, reason=reason)

        await self._safe_notify(
            ticket_id, self.notifications.notify_ticket_disapproved(ticket, reason, director)
        )
        return ticket

    async def reopen_ticket(
        self,
        ticket_id: int,
        user_id: int,
        updated_description: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> TicketModel:
        """Creator resubmits a cancelled ticket: CANCELLED -> FOR_REVIEW."""
        ticket = self._get_ticket(ticket_id)
        if ticket.created_by_id != user_id:
            raise ForbiddenError(
                "Only the ticket creator can reopen this ticket",
                details={"ticketId": ticket_id},
            )
        self._require_status(ticket, [TicketStatus.CANCELLED], "reopen ticket")

        description = self._optional_text(updated_description)
        note = self._optional_text(comment)

        with ticket_transaction(self.session, ticket_id):
            ticket.secretary_reviewed_by_id = None
            ticket.secretary_reviewed_at = None
            ticket.director_approved_by_id = None
            ticket.director_approved_at = None
            if description:
                ticket.description = description

            self.repository.transition(
                ticket, TicketStatus.FOR_REVIEW, user_id,
                self._default_comment(TicketStatus.CANCELLED, TicketStatus.FOR_REVIEW),
            )
            if note:
                self.repository.add_note(ticket.id, user_id, note, is_internal=False)

        ticket = self._get_ticket(ticket_id)
        self._audit(user_id, "ticket_reopened", ticket, descriptionUpdated=bool(description))

        await self._safe_notify(ticket_id, self.notifications.notify_new_ticket_for_review(ticket))
        return ticket

    # ==================== Assignment ====================

    async def assign_user(
        self,
        ticket_id: int,
        user_id: int,
        assigned_by_id: int,
        comment: Optional[str] = None,
    ) -> TicketModel:
        assigner = self._get_user(assigned_by_id)
        await self.assignments.manual_assign(
            ticket_id, user_id, assigned_by_id=assigned_by_id, comment=self._optional_text(comment)
        )

        ticket = self._get_ticket(ticket_id)
        self._audit(assigned_by_id, "ticket_assigned", ticket, assigneeId=user_id)

        await self._safe_notify(
            ticket_id, self.notifications.notify_ticket_assigned(ticket, user_id, assigner)
        )
        return ticket

    async def unassign_user(self, ticket_id: int, user_id: int, actor_id: int) -> TicketModel:
        ticket = await self.assignments.unassign(ticket_id, user_id, actor_id)
        self._audit(actor_id, "ticket_unassigned", ticket, userId=user_id)
        return ticket

    async def reassign_user(
        self, ticket_id: int, from_user_id: int, to_user_id: int, actor_id: int
    ) -> TicketModel:
        actor = self._get_user(actor_id)
        await self.assignments.reassign(ticket_id, from_user_id, to_user_id, actor_id=actor_id)

        ticket = self._get_ticket(ticket_id)
        self._audit(actor_id, "ticket_reassigned", ticket, fromUserId=from_user_id, toUserId=to_user_id)

        await self._safe_notify(
            ticket_id, self.notifications.notify_ticket_assigned(ticket, to_user_id, actor)
        )
        return ticket

    # ==================== Visit schedule ====================

    async def schedule_visit(
        self,
        ticket_id: int,
        head_id: int,
        date_to_visit: datetime,
        target_completion_date: datetime,
        comment: Optional[str] = None,
    ) -> TicketModel:
        """Office head proposes a visit: ASSIGNED -> PENDING_ACKNOWLEDGMENT."""
        ticket = self._get_ticket(ticket_id)
        head = self._get_user(head_id)
        self._require_status(ticket, [TicketStatus.ASSIGNED], "schedule visit")

        if date_to_visit is None or target_completion_date is None:
            raise ValidationError(
                "Visit date and target completion date are required",
                details={"fields": ["dateToVisit", "targetCompletionDate"]},
            )
        if target_completion_date < date_to_visit:
            raise ValidationError(
                "Target completion date cannot be before the visit date",
                details={"field": "targetCompletionDate"},
            )

        with ticket_transaction(self.session, ticket_id):
            ticket.date_to_visit = date_to_visit
            ticket.target_completion_date = target_completion_date
            ticket.head_scheduled_by_id = head_id
            ticket.head_scheduled_at = datetime.now()
            self.repository.transition(
                ticket, TicketStatus.PENDING_ACKNOWLEDGMENT, head_id,
                self._optional_text(comment)
                or f"Visit scheduled for {date_to_visit:%Y-%m-%d} by {head.display_name}",
            )

        ticket = self._get_ticket(ticket_id)
        self._audit(head_id, "visit_scheduled", ticket, dateToVisit=date_to_visit.isoformat())

        await self._safe_notify(ticket_id, self.notifications.notify_schedule_set(ticket, head))
        return ticket

    async def acknowledge_schedule(
        self, ticket_id: int, admin_id: int, comment: Optional[str] = None
    ) -> TicketModel:
        """Admin/director confirms the visit: PENDING_ACKNOWLEDGMENT -> SCHEDULED."""
        ticket = self._get_ticket(ticket_id)
        self._get_user(admin_id)
        self._require_status(ticket, [TicketStatus.PENDING_ACKNOWLEDGMENT], "acknowledge schedule")

        with ticket_transaction(self.session, ticket_id):
            ticket.admin_acknowledged_by_id = admin_id
            ticket.admin_acknowledged_at = datetime.now()
            self.repository.transition(
                ticket, TicketStatus.SCHEDULED, admin_id,
                self._optional_text(comment)
                or self._default_comment(TicketStatus.PENDING_ACKNOWLEDGMENT, TicketStatus.SCHEDULED),
            )

        ticket = self._get_ticket(ticket_id)
        self._audit(admin_id, "schedule_acknowledged", ticket)

        await self._safe_notify(ticket_id, self.notifications.notify_visit_scheduled(ticket))
        return ticket

    async def reject_schedule(self, ticket_id: int, admin_id: int, reason: str) -> TicketModel:
        """Admin/director declines the proposal: back to ASSIGNED with the dates cleared."""
        ticket = self._get_ticket(ticket_id)
        admin = self._get_user(admin_id)
        reason = self._require_text(reason, "reason")
        self._require_status(ticket, [TicketStatus.PENDING_ACKNOWLEDGMENT], "reject schedule")

        head_id = ticket.head_scheduled_by_id

        with ticket_transaction(self.session, ticket_id):
            ticket.date_to_visit = None
            ticket.target_completion_date = None
            ticket.head_scheduled_by_id = None
            ticket.head_scheduled_at = None
            self.repository.transition(ticket, TicketStatus.ASSIGNED, admin_id, f"Schedule rejected: {reason}")

        ticket = self._get_ticket(ticket_id)
        self._audit(admin_id, "schedule_rejected", ticket, reason=reason)

        if head_id is not None:
            await self._safe_notify(
                ticket_id, self.notifications.notify_schedule_rejected(ticket, head_id, reason, admin)
            )
        return ticket

    async def add_monitor_and_recommendations(
        self,
        ticket_id: int,
        head_id: int,
        monitor_notes: str,
        recommendations: str,
        comment: Optional[str] = None,
    ) -> TicketModel:
        """Record post-visit monitoring and recommendations without changing status."""
        ticket = self._get_ticket(ticket_id)
        head = self._get_user(head_id)
        monitor_notes = self._require_text(monitor_notes, "monitorNotes")
        recommendations = self._require_text(recommendations, "recommendations")
        self._require_status(ticket, self.MONITOR_STATUSES, "add monitor and recommendations")

        note = self._optional_text(comment)

        with ticket_transaction(self.session, ticket_id):
            ticket.monitor_notes = monitor_notes
            ticket.recommendations = recommendations
            ticket.monitored_by_id = head_id
            ticket.monitored_at = datetime.now()
            if note:
                self.repository.add_note(ticket.id, head_id, note, is_internal=False)

        ticket = self._get_ticket(ticket_id)
        self._audit(head_id, "monitor_updated", ticket)

        await self._safe_notify(ticket_id, self.notifications.notify_monitor_updated(ticket, head))
        return ticket

    # ==================== Notes ====================

    async def add_note(
        self, ticket_id: int, user_id: int, content: str, is_internal: bool = False
    ) -> TicketNoteModel:
        """
        Add a note and notify the other side of the conversation.

        Internal notes reach the other assignees, public notes by the creator
        reach every assignee and public notes by anyone else reach the
        creator. Admins and secretaries see every note.
        """
        ticket = self._get_ticket(ticket_id)
        author = self._get_user(user_id)
        content = self._require_text(content, "content")

        with ticket_transaction(self.session, ticket_id):
            note = self.repository.add_note(ticket.id, user_id, content, is_internal=is_internal)

        if is_internal:
            recipients = [uid for uid in ticket.assignee_ids if uid != user_id]
        elif user_id == ticket.created_by_id:
            recipients = [uid for uid in ticket.assignee_ids if uid != user_id]
        else:
            recipients = [ticket.created_by_id]

        for recipient_id in dict.fromkeys(recipients):
            await self._safe_notify(
                ticket_id,
                self.notifications.notify_note_added(ticket, recipient_id, author, is_internal),
            )
        await self._safe_notify(
            ticket_id, self.notifications.notify_note_added_to_staff(ticket, author, is_internal)
        )

        logger.debug(f"Note {note.id} added to ticket {ticket_id} by user {user_id}")
        return note

    # ==================== Reads ====================

    async def get_ticket(self, ticket_id: int) -> TicketModel:
        return self._get_ticket(ticket_id)

    async def get_ticket_by_number(self, ticket_number: str) -> TicketModel:
        ticket = self.repository.find_by_number(ticket_number)
        if ticket is None:
            raise NotFoundError("Ticket", ticket_number)
        return ticket

    async def get_tickets(
        self,
        status: Optional[TicketStatus] = None,
        ticket_type: Optional[TicketType] = None,
        created_by_id: Optional[int] = None,
        assigned_to_user_id: Optional[int] = None,
    ) -> List[TicketModel]:
        return self.repository.find_many(
            status=status,
            ticket_type=ticket_type,
            created_by_id=created_by_id,
            assigned_to_user_id=assigned_to_user_id,
        )

    async def get_user_tickets(self, user_id: int) -> List[TicketModel]:
        """Tickets assigned to the user."""
        return self.repository.find_many(assigned_to_user_id=user_id)

    async def get_user_created_tickets(self, user_id: int) -> List[TicketModel]:
        return self.repository.find_many(created_by_id=user_id)

    async def get_tickets_for_secretary_review(self) -> List[TicketModel]:
        return self.repository.find_many(status=TicketStatus.FOR_REVIEW)

    async def get_tickets_pending_director_approval(self) -> List[TicketModel]:
        return self.repository.find_many(status=TicketStatus.REVIEWED)

    async def get_tickets_pending_acknowledgment(self) -> List[TicketModel]:
        return self.repository.find_many(status=TicketStatus.PENDING_ACKNOWLEDGMENT)

    async def get_all_secretary_tickets(self) -> List[TicketModel]:
        return self.repository.find_many(statuses=[TicketStatus.FOR_REVIEW, TicketStatus.REVIEWED])

    async def get_office_head_tickets(self, head_role: Union[UserRole, str]) -> List[TicketModel]:
        """Open work for the office the head runs."""
        try:
            ticket_type = self.OFFICE_TYPES[UserRole(head_role)]
        except (KeyError, ValueError):
            raise ForbiddenError(
                "Only office heads have an office worklist",
                details={"role": str(head_role)},
            )
        return self.repository.find_many(ticket_type=ticket_type, statuses=OFFICE_WORK_STATUSES)

    async def get_sla_metrics(self) -> Dict[str, int]:
        return self.repository.sla_metrics()
