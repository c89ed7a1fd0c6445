"""
Notification dispatcher for the ticket workflow.

Records in-app notifications for workflow events. Each event helper owns a
fixed type/title/message/metadata shape and commits its own writes, so the
ticket engine can call it after the ticket transaction has been committed.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from src.database.connection import transaction
from src.notification.models import NotificationModel, NotificationType
from src.notification.repository import NotificationRepository
from src.security.models import UserModel, UserRole
from src.security.repository import UserRepository

if TYPE_CHECKING:
    from src.ticket.models import TicketModel, TicketStatus

logger = logging.getLogger(__name__)

OFFICE_NAMES = {
    "MIS": "MIS Office",
    "ITS": "ITS Office",
}


def _ticket_metadata(ticket: "TicketModel", **extra: Any) -> Dict[str, Any]:
    metadata = {"ticketNumber": ticket.ticket_number, "ticketType": ticket.type.value}
    metadata.update({key: value for key, value in extra.items() if value is not None})
    return metadata


class NotificationService:
    """In-app notifications: user queries plus workflow event helpers."""

    def __init__(
        self,
        session: Session,
        repository: Optional[NotificationRepository] = None,
        user_repository: Optional[UserRepository] = None,
    ):
        self.session = session
        self.repository = repository or NotificationRepository(session)
        self.users = user_repository or UserRepository(session)

    # ==================== Queries & Mutations ====================

    async def get_my_notifications(
        self,
        user_id: int,
        unread_only: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[NotificationModel]:
        return self.repository.find_by_user(user_id, unread_only=unread_only, limit=limit, offset=offset)

    async def get_unread_count(self, user_id: int) -> int:
        return self.repository.count_unread(user_id)

    async def mark_as_read(self, notification_id: int, user_id: int) -> NotificationModel:
        with transaction(self.session):
            notification = self.repository.mark_as_read(notification_id, user_id)
        return notification

    async def mark_all_as_read(self, user_id: int) -> int:
        with transaction(self.session):
            count = self.repository.mark_all_as_read(user_id)
        logger.debug(f"Marked {count} notifications read for user {user_id}")
        return count

    async def cleanup_old_notifications(self, days: Optional[int] = None) -> int:
        """Delete read notifications older than the retention period."""
        with transaction(self.session):
            deleted = self.repository.delete_old(days)
        logger.info(f"Deleted {deleted} old read notifications")
        return deleted

    # ==================== Dispatch primitives ====================

    async def notify_user(
        self,
        user_id: int,
        notification_type: NotificationType,
        title: str,
        message: str,
        ticket_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> NotificationModel:
        with transaction(self.session):
            notification = self.repository.create(
                user_id, notification_type, title, message,
                ticket_id=ticket_id, metadata=metadata,
            )
        logger.debug(f"Notified user {user_id}: {notification_type.value}")
        return notification

    async def notify_users(
        self,
        user_ids: Iterable[int],
        notification_type: NotificationType,
        title: str,
        message: str,
        ticket_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Notify each distinct user once with a single bulk insert."""
        recipients = list(dict.fromkeys(user_ids))
        if not recipients:
            return 0

        rows = [
            {
                "user_id": user_id,
                "ticket_id": ticket_id,
                "type": notification_type,
                "title": title,
                "message": message,
                "notification_metadata": metadata,
            }
            for user_id in recipients
        ]
        with transaction(self.session):
            count = self.repository.create_many(rows)
        logger.debug(f"Notified {count} users: {notification_type.value}")
        return count

    async def notify_roles(
        self,
        roles: Iterable[UserRole],
        notification_type: NotificationType,
        title: str,
        message: str,
        ticket_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
        exclude_user_id: Optional[int] = None,
    ) -> int:
        """Notify every active user holding one of ``roles``; no-op when nobody does."""
        users = self.users.find_by_roles(roles, exclude_user_id=exclude_user_id)
        if not users:
            return 0
        return await self.notify_users(
            [user.id for user in users], notification_type, title, message,
            ticket_id=ticket_id, metadata=metadata,
        )

    # ==================== Workflow events ====================

    async def notify_new_ticket_for_review(self, ticket: "TicketModel") -> int:
        return await self.notify_roles(
            [UserRole.SECRETARY],
            NotificationType.TICKET_CREATED,
            "New Ticket for Review",
            f"New {ticket.type.value} ticket {ticket.ticket_number} is waiting for review: {ticket.title}",
            ticket_id=ticket.id,
            metadata=_ticket_metadata(ticket, priority=ticket.priority.value),
        )

    async def notify_ticket_reviewed(self, ticket: "TicketModel", reviewer: UserModel) -> NotificationModel:
        return await self.notify_user(
            ticket.created_by_id,
            NotificationType.TICKET_REVIEWED,
            "Ticket Reviewed",
            f"Your ticket {ticket.ticket_number} has been reviewed by {reviewer.display_name} "
            f"and forwarded to the director for approval",
            ticket_id=ticket.id,
            metadata=_ticket_metadata(ticket, reviewedBy=reviewer.display_name),
        )

    async def notify_ready_for_approval(self, ticket: "TicketModel", reviewer: UserModel) -> int:
        return await self.notify_roles(
            [UserRole.DIRECTOR, UserRole.ADMIN],
            NotificationType.TICKET_REVIEWED,
            "Ticket Ready for Endorsement",
            f"Ticket {ticket.ticket_number} has been reviewed by {reviewer.display_name} "
            f"and is awaiting your approval",
            ticket_id=ticket.id,
            metadata=_ticket_metadata(ticket, reviewedBy=reviewer.display_name),
        )

    async def notify_ticket_rejected(
        self, ticket: "TicketModel", reason: str, rejected_by: UserModel
    ) -> NotificationModel:
        return await self.notify_user(
            ticket.created_by_id,
            NotificationType.TICKET_REJECTED,
            "Ticket Rejected",
            f"Your ticket {ticket.ticket_number} has been rejected by {rejected_by.display_name}. Reason: {reason}",
            ticket_id=ticket.id,
            metadata=_ticket_metadata(ticket, reason=reason, rejectedBy=rejected_by.display_name),
        )

    async def notify_ticket_approved(self, ticket: "TicketModel", approver: UserModel) -> NotificationModel:
        return await self.notify_user(
            ticket.created_by_id,
            NotificationType.TICKET_APPROVED,
            "Ticket Approved",
            f"Your ticket {ticket.ticket_number} has been approved by {approver.display_name}",
            ticket_id=ticket.id,
            metadata=_ticket_metadata(ticket, approvedBy=approver.display_name),
        )

    async def notify_ticket_disapproved(
        self, ticket: "TicketModel", reason: str, disapproved_by: UserModel
    ) -> NotificationModel:
        return await self.notify_user(
            ticket.created_by_id,
            NotificationType.TICKET_DISAPPROVED,
            "Ticket Disapproved",
            f"Your ticket {ticket.ticket_number} has been disapproved by {disapproved_by.display_name}. "
            f"Reason: {reason}",
            ticket_id=ticket.id,
            metadata=_ticket_metadata(ticket, reason=reason, disapprovedBy=disapproved_by.display_name),
        )

    async def notify_ticket_assigned(
        self, ticket: "TicketModel", assignee_id: int, assigned_by: Optional[UserModel] = None
    ) -> NotificationModel:
        by = f" by {assigned_by.display_name}" if assigned_by else ""
        return await self.notify_user(
            assignee_id,
            NotificationType.TICKET_ASSIGNED,
            "Ticket Assigned",
            f"Ticket {ticket.ticket_number} has been assigned to you{by}: {ticket.title}",
            ticket_id=ticket.id,
            metadata=_ticket_metadata(
                ticket,
                priority=ticket.priority.value,
                assignedBy=assigned_by.display_name if assigned_by else None,
            ),
        )

    async def notify_status_changed(
        self,
        ticket: "TicketModel",
        from_status: "TicketStatus",
        to_status: "TicketStatus",
        changed_by: UserModel,
    ) -> NotificationModel:
        return await self.notify_user(
            ticket.created_by_id,
            NotificationType.STATUS_CHANGED,
            "Ticket Status Updated",
            f"Ticket {ticket.ticket_number} status changed from {from_status.value} to {to_status.value} "
            f"by {changed_by.display_name}",
            ticket_id=ticket.id,
            metadata=_ticket_metadata(ticket, fromStatus=from_status.value, toStatus=to_status.value),
        )

    async def notify_note_added(
        self, ticket: "TicketModel", recipient_id: int, author: UserModel, is_internal: bool = False
    ) -> NotificationModel:
        kind = "an internal note" if is_internal else "a note"
        return await self.notify_user(
            recipient_id,
            NotificationType.NOTE_ADDED,
            "New Note Added",
            f"{author.display_name} added {kind} to ticket {ticket.ticket_number}",
            ticket_id=ticket.id,
            metadata=_ticket_metadata(ticket, author=author.display_name, isInternal=is_internal),
        )

    async def notify_note_added_to_staff(
        self, ticket: "TicketModel", author: UserModel, is_internal: bool = False
    ) -> int:
        """Admins and secretaries see every note on every ticket."""
        kind = "an internal note" if is_internal else "a note"
        return await self.notify_roles(
            [UserRole.ADMIN, UserRole.SECRETARY],
            NotificationType.NOTE_ADDED,
            "New Note Added",
            f"{author.display_name} added {kind} to ticket {ticket.ticket_number}",
            ticket_id=ticket.id,
            metadata=_ticket_metadata(ticket, author=author.display_name, isInternal=is_internal),
            exclude_user_id=author.id,
        )

    async def notify_schedule_set(self, ticket: "TicketModel", head: UserModel) -> int:
        visit = ticket.date_to_visit.strftime("%Y-%m-%d") if ticket.date_to_visit else "an unspecified date"
        return await self.notify_roles(
            [UserRole.ADMIN, UserRole.DIRECTOR],
            NotificationType.SCHEDULE_SET,
            "Visit Schedule Set",
            f"{head.display_name} scheduled a visit for ticket {ticket.ticket_number} on {visit}. "
            f"Please acknowledge the schedule.",
            ticket_id=ticket.id,
            metadata=_ticket_metadata(
                ticket,
                dateToVisit=ticket.date_to_visit.isoformat() if ticket.date_to_visit else None,
                targetCompletionDate=(
                    ticket.target_completion_date.isoformat() if ticket.target_completion_date else None
                ),
                scheduledBy=head.display_name,
            ),
            exclude_user_id=head.id,
        )

    async def notify_visit_scheduled(self, ticket: "TicketModel") -> NotificationModel:
        office = OFFICE_NAMES[ticket.type.value]
        visit = ticket.date_to_visit.strftime("%Y-%m-%d") if ticket.date_to_visit else "a date to be confirmed"
        return await self.notify_user(
            ticket.created_by_id,
            NotificationType.VISIT_SCHEDULED,
            "Visit Scheduled",
            f"The {office} will visit for your ticket {ticket.ticket_number} on {visit}",
            ticket_id=ticket.id,
            metadata=_ticket_metadata(
                ticket,
                office=office,
                dateToVisit=ticket.date_to_visit.isoformat() if ticket.date_to_visit else None,
            ),
        )

    async def notify_schedule_rejected(
        self, ticket: "TicketModel", head_id: int, reason: str, rejected_by: UserModel
    ) -> NotificationModel:
        return await self.notify_user(
            head_id,
            NotificationType.SCHEDULE_REJECTED,
            "Schedule Rejected",
            f"The proposed visit schedule for ticket {ticket.ticket_number} was rejected by "
            f"{rejected_by.display_name}. Reason: {reason}",
            ticket_id=ticket.id,
            metadata=_ticket_metadata(ticket, reason=reason, rejectedBy=rejected_by.display_name),
        )

    async def notify_monitor_updated(self, ticket: "TicketModel", head: UserModel) -> NotificationModel:
        return await self.notify_user(
            ticket.created_by_id,
            NotificationType.MONITOR_UPDATED,
            "Monitor and Recommendations Updated",
            f"{head.display_name} added monitoring notes and recommendations to your ticket "
            f"{ticket.ticket_number}",
            ticket_id=ticket.id,
            metadata=_ticket_metadata(ticket, monitoredBy=head.display_name),
        )
