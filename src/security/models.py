"""
User models for the helpdesk workflow.

Users are owned by the identity layer; the ticket workflow only reads their
role and display name.
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, DateTime, Boolean, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.database.connection import Base


class UserRole(str, enum.Enum):
    """User role enumeration."""
    ADMIN = "ADMIN"
    DEVELOPER = "DEVELOPER"
    TECHNICAL = "TECHNICAL"
    MIS_HEAD = "MIS_HEAD"
    ITS_HEAD = "ITS_HEAD"
    USER = "USER"
    SECRETARY = "SECRETARY"
    DIRECTOR = "DIRECTOR"


class UserModel(Base):
    """User table referenced by tickets, assignments, notes and notifications."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(SQLEnum(UserRole), default=UserRole.USER, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def display_name(self) -> str:
        return self.name or self.email
