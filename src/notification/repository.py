"""
Notification persistence.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, delete, insert, func
from sqlalchemy.orm import Session

from src.config.settings import settings
from src.notification.models import NotificationModel, NotificationType
from src.ticket.exceptions import NotFoundError


class NotificationRepository:
    """Notification queries and writes; committing is left to the caller."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        user_id: int,
        notification_type: NotificationType,
        title: str,
        message: str,
        ticket_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> NotificationModel:
        notification = NotificationModel(
            user_id=user_id,
            ticket_id=ticket_id,
            type=notification_type,
            title=title,
            message=message,
            notification_metadata=metadata,
        )
        self.session.add(notification)
        self.session.flush()
        return notification

    def create_many(self, rows: List[Dict[str, Any]]) -> int:
        """
        Insert many notifications in one statement.

        Each row uses the model's attribute names (``user_id``, ``type``,
        ``title``, ``message``, ``ticket_id``, ``notification_metadata``).
        """
        if not rows:
            return 0

        now = datetime.now()
        values = [{"is_read": False, "created_at": now, **row} for row in rows]
        self.session.execute(insert(NotificationModel), values)
        return len(values)

    def find_by_user(
        self,
        user_id: int,
        unread_only: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[NotificationModel]:
        """A user's notifications, newest first."""
        query = select(NotificationModel).where(NotificationModel.user_id == user_id)
        if unread_only:
            query = query.where(NotificationModel.is_read.is_(False))

        query = (
            query.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
            .limit(settings.workflow.notification_page_size if limit is None else limit)
            .offset(offset)
        )
        return list(self.session.execute(query).scalars().all())

    def count_unread(self, user_id: int) -> int:
        return self.session.execute(
            select(func.count(NotificationModel.id)).where(
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
        ).scalar_one()

    def mark_as_read(self, notification_id: int, user_id: int) -> NotificationModel:
        """Mark one notification read; ids owned by someone else are not found."""
        notification = self.session.execute(
            select(NotificationModel).where(
                NotificationModel.id == notification_id,
                NotificationModel.user_id == user_id,
            )
        ).scalars().first()
        if notification is None:
            raise NotFoundError("Notification", notification_id)

        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now()
        return notification

    def mark_all_as_read(self, user_id: int) -> int:
        result = self.session.execute(
            update(NotificationModel)
            .where(NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False))
            .values(is_read=True, read_at=datetime.now())
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    def delete_old(self, older_than_days: Optional[int] = None) -> int:
        """Delete read notifications created before the retention cutoff."""
        days = older_than_days if older_than_days is not None else settings.workflow.notification_retention_days
        cutoff = datetime.now() - timedelta(days=days)
        result = self.session.execute(
            delete(NotificationModel)
            .where(NotificationModel.is_read.is_(True), NotificationModel.created_at < cutoff)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount
