"""
In-app notification model.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import String, Text, Integer, DateTime, ForeignKey, Boolean, JSON, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.database.connection import Base


class NotificationType(str, Enum):
    """Kinds of workflow events a user can be notified about."""
    TICKET_CREATED = "TICKET_CREATED"
    TICKET_REVIEWED = "TICKET_REVIEWED"
    TICKET_REJECTED = "TICKET_REJECTED"
    TICKET_APPROVED = "TICKET_APPROVED"
    TICKET_DISAPPROVED = "TICKET_DISAPPROVED"
    TICKET_ASSIGNED = "TICKET_ASSIGNED"
    STATUS_CHANGED = "STATUS_CHANGED"
    NOTE_ADDED = "NOTE_ADDED"
    SCHEDULE_SET = "SCHEDULE_SET"
    VISIT_SCHEDULED = "VISIT_SCHEDULED"
    SCHEDULE_REJECTED = "SCHEDULE_REJECTED"
    MONITOR_UPDATED = "MONITOR_UPDATED"


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
MetadataType = JSON().with_variant(JSONB(), "postgresql")


class NotificationModel(Base):
    """
    Notification addressed to a single user.

    Only ``is_read``/``read_at`` change after creation; rows are removed by
    the retention sweep once read.
    """
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    ticket_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("tickets.id"), nullable=True, index=True)
    type: Mapped[NotificationType] = mapped_column(SQLEnum(NotificationType), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    notification_metadata: Mapped[Optional[dict]] = mapped_column("metadata", MetadataType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "ticket_id": self.ticket_id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "is_read": self.is_read,
            "read_at": self.read_at.isoformat() if self.read_at else None,
            "metadata": self.notification_metadata,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
