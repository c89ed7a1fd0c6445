"""
Ticket data models for the helpdesk workflow.

Contains both SQLAlchemy ORM models for database persistence
and Pydantic models for validating ticket creation payloads.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import (
    String, Text, Integer, DateTime, ForeignKey, Boolean,
    Enum as SQLEnum, UniqueConstraint,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from src.database.connection import Base
from src.security.models import UserModel


# ==================== Enumerations ====================

class TicketType(str, Enum):
    """Ticket type enumeration."""
    MIS = "MIS"    # Management information systems: websites and software
    ITS = "ITS"    # IT services: hardware, network, equipment borrowing


class TicketStatus(str, Enum):
    """Ticket status enumeration."""
    FOR_REVIEW = "FOR_REVIEW"
    REVIEWED = "REVIEWED"
    DIRECTOR_APPROVED = "DIRECTOR_APPROVED"
    ASSIGNED = "ASSIGNED"
    PENDING_ACKNOWLEDGMENT = "PENDING_ACKNOWLEDGMENT"
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    ON_HOLD = "ON_HOLD"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


class TicketPriority(str, Enum):
    """Ticket priority enumeration."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class MISCategory(str, Enum):
    """MIS request category."""
    WEBSITE = "WEBSITE"
    SOFTWARE = "SOFTWARE"


# Statuses that no longer count towards a responder's workload
INACTIVE_STATUSES: Tuple[TicketStatus, ...] = (
    TicketStatus.RESOLVED,
    TicketStatus.CLOSED,
    TicketStatus.CANCELLED,
)

# Statuses an office head works through for tickets of its type
OFFICE_WORK_STATUSES: Tuple[TicketStatus, ...] = (
    TicketStatus.ASSIGNED,
    TicketStatus.PENDING_ACKNOWLEDGMENT,
    TicketStatus.SCHEDULED,
    TicketStatus.IN_PROGRESS,
    TicketStatus.ON_HOLD,
)


# ==================== SQLAlchemy ORM Models ====================

class TicketModel(Base):
    """
    Ticket table, the central entity of the workflow.

    Status and audit fields are only written by the lifecycle engine. The
    ``version`` column is the optimistic concurrency token: every flush of a
    changed ticket checks and bumps it.
    """
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    control_number: Mapped[Optional[str]] = mapped_column(String(32), unique=True, nullable=True)

    # Basic info
    type: Mapped[TicketType] = mapped_column(SQLEnum(TicketType), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[TicketStatus] = mapped_column(SQLEnum(TicketStatus), default=TicketStatus.FOR_REVIEW, index=True)
    priority: Mapped[TicketPriority] = mapped_column(SQLEnum(TicketPriority), default=TicketPriority.MEDIUM)

    # SLA
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    estimated_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # hours
    actual_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # hours

    created_by_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Approval chain
    secretary_reviewed_by_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    secretary_reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    director_approved_by_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    director_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Visit schedule: office head proposes, admin/director acknowledges
    date_to_visit: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    target_completion_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    head_scheduled_by_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    head_scheduled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    admin_acknowledged_by_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    admin_acknowledged_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Monitoring after the visit
    monitor_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recommendations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    monitored_by_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    monitored_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_by: Mapped[UserModel] = relationship(UserModel, foreign_keys=[created_by_id])
    mis_ticket: Mapped[Optional["MISTicketModel"]] = relationship(
        back_populates="ticket", uselist=False, cascade="all, delete-orphan"
    )
    its_ticket: Mapped[Optional["ITSTicketModel"]] = relationship(
        back_populates="ticket", uselist=False, cascade="all, delete-orphan"
    )
    assignments: Mapped[List["TicketAssignmentModel"]] = relationship(
        back_populates="ticket", cascade="all, delete-orphan",
        order_by="TicketAssignmentModel.id",
    )
    notes: Mapped[List["TicketNoteModel"]] = relationship(
        back_populates="ticket", cascade="all, delete-orphan",
        order_by="TicketNoteModel.id.desc()",
    )
    status_history: Mapped[List["TicketStatusHistoryModel"]] = relationship(
        back_populates="ticket", cascade="all, delete-orphan",
        order_by="TicketStatusHistoryModel.id.desc()",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def assignee_ids(self) -> List[int]:
        return [assignment.user_id for assignment in self.assignments]


class MISTicketModel(Base):
    """MIS-specific request details."""
    __tablename__ = "mis_tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(Integer, ForeignKey("tickets.id"), unique=True, nullable=False)
    category: Mapped[MISCategory] = mapped_column(SQLEnum(MISCategory), nullable=False)
    website_new_request: Mapped[bool] = mapped_column(Boolean, default=False)
    website_update: Mapped[bool] = mapped_column(Boolean, default=False)
    software_new_request: Mapped[bool] = mapped_column(Boolean, default=False)
    software_update: Mapped[bool] = mapped_column(Boolean, default=False)
    software_install: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    ticket: Mapped[TicketModel] = relationship(back_populates="mis_ticket")


class ITSTicketModel(Base):
    """ITS-specific request details."""
    __tablename__ = "its_tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(Integer, ForeignKey("tickets.id"), unique=True, nullable=False)
    borrow_request: Mapped[bool] = mapped_column(Boolean, default=False)
    borrow_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    maintenance_desktop_laptop: Mapped[bool] = mapped_column(Boolean, default=False)
    maintenance_internet_network: Mapped[bool] = mapped_column(Boolean, default=False)
    maintenance_printer: Mapped[bool] = mapped_column(Boolean, default=False)
    maintenance_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    ticket: Mapped[TicketModel] = relationship(back_populates="its_ticket")


class TicketAssignmentModel(Base):
    """A user currently responsible for a ticket."""
    __tablename__ = "ticket_assignments"
    __table_args__ = (
        UniqueConstraint("ticket_id", "user_id", name="uq_ticket_assignment_ticket_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(Integer, ForeignKey("tickets.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    ticket: Mapped[TicketModel] = relationship(back_populates="assignments")
    user: Mapped[UserModel] = relationship(UserModel)


class TicketNoteModel(Base):
    """Comment or internal staff note on a ticket."""
    __tablename__ = "ticket_notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(Integer, ForeignKey("tickets.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    ticket: Mapped[TicketModel] = relationship(back_populates="notes")
    user: Mapped[UserModel] = relationship(UserModel)


class TicketStatusHistoryModel(Base):
    """Append-only audit trail of status transitions."""
    __tablename__ = "ticket_status_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(Integer, ForeignKey("tickets.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    from_status: Mapped[Optional[TicketStatus]] = mapped_column(SQLEnum(TicketStatus), nullable=True)
    to_status: Mapped[TicketStatus] = mapped_column(SQLEnum(TicketStatus), nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    ticket: Mapped[TicketModel] = relationship(back_populates="status_history")
    user: Mapped[UserModel] = relationship(UserModel)


class TicketCounterModel(Base):
    """
    Per-scope sequence for human readable numbers.

    Scopes look like ``MIS-20261019`` for ticket numbers and
    ``CONTROL-2026-10`` for MIS control numbers.
    """
    __tablename__ = "ticket_counters"

    scope: Mapped[str] = mapped_column(String(32), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# ==================== Pydantic Request Models ====================

class CreateTicketRequest(BaseModel):
    """Fields shared by MIS and ITS ticket submissions."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=5, max_length=200, description="Ticket title")
    description: str = Field(..., min_length=10, description="Detailed description")
    priority: TicketPriority = Field(default=TicketPriority.MEDIUM, description="Priority level")
    estimated_duration: Optional[int] = Field(None, ge=1, description="Override for estimated hours")

    @field_validator('priority', mode='before')
    @classmethod
    def default_priority(cls, v):
        """Treat an explicit null priority as the default."""
        return TicketPriority.MEDIUM if v is None else v


class CreateMISTicketRequest(CreateTicketRequest):
    """MIS ticket submission."""

    category: MISCategory = Field(..., description="Website or software request")
    website_new_request: bool = False
    website_update: bool = False
    software_new_request: bool = False
    software_update: bool = False
    software_install: bool = False


class CreateITSTicketRequest(CreateTicketRequest):
    """ITS ticket submission."""

    borrow_request: bool = False
    borrow_details: Optional[str] = None
    maintenance_desktop_laptop: bool = False
    maintenance_internet_network: bool = False
    maintenance_printer: bool = False
    maintenance_details: Optional[str] = None


# ==================== SLA Configuration ====================

class SLAConfig:
    """SLA configuration for the different priority levels."""

    SLA_HOURS = {
        TicketPriority.CRITICAL: 4,
        TicketPriority.HIGH: 24,
        TicketPriority.MEDIUM: 72,
        TicketPriority.LOW: 168,
    }

    ESTIMATED_DURATION_HOURS = {
        TicketType.MIS: {
            TicketPriority.CRITICAL: 3,
            TicketPriority.HIGH: 8,
            TicketPriority.MEDIUM: 16,
            TicketPriority.LOW: 24,
        },
        TicketType.ITS: {
            TicketPriority.CRITICAL: 2,
            TicketPriority.HIGH: 4,
            TicketPriority.MEDIUM: 8,
            TicketPriority.LOW: 16,
        },
    }

    # Hours remaining at which an open ticket counts as at risk
    AT_RISK_HOURS = 4

    @classmethod
    def get_due_date(cls, priority: TicketPriority, created_at: Optional[datetime] = None) -> datetime:
        """Calculate the due date based on priority."""
        created_at = created_at or datetime.now()
        return created_at + timedelta(hours=cls.SLA_HOURS[priority])

    @classmethod
    def get_estimated_duration(cls, ticket_type: TicketType, priority: TicketPriority) -> int:
        """Estimated working hours for a ticket type and priority."""
        return cls.ESTIMATED_DURATION_HOURS[ticket_type][priority]

    @classmethod
    def get_time_remaining(cls, due_date: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
        """Whole hours until the due date (negative if overdue)."""
        if due_date is None:
            return None
        now = now or datetime.now()
        return int((due_date - now).total_seconds() // 3600)

    @classmethod
    def get_sla_status(cls, due_date: Optional[datetime], now: Optional[datetime] = None) -> str:
        """Return ``on-track``, ``at-risk`` or ``overdue``."""
        hours_remaining = cls.get_time_remaining(due_date, now)
        if hours_remaining is None:
            return "on-track"
        if hours_remaining < 0:
            return "overdue"
        if hours_remaining <= cls.AT_RISK_HOURS:
            return "at-risk"
        return "on-track"
