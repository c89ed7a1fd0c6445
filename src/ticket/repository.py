"""
Data access for tickets.

Loads tickets with their nested collections, generates human readable
ticket/control numbers from atomic counters and writes status changes
together with their history row. Committing is left to the caller.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from src.config.settings import settings
from src.database.connection import transaction
from src.ticket.exceptions import ConflictError
from src.ticket.models import (
    TicketModel, MISTicketModel, ITSTicketModel, TicketAssignmentModel,
    TicketNoteModel, TicketStatusHistoryModel, TicketCounterModel,
    TicketType, TicketStatus, INACTIVE_STATUSES,
    CreateTicketRequest, CreateMISTicketRequest, CreateITSTicketRequest,
)

logger = logging.getLogger(__name__)


@contextmanager
def ticket_transaction(session: Session, ticket_id: Optional[int] = None) -> Iterator[Session]:
    """Commit ticket writes as one unit; a stale version check becomes a ConflictError."""
    try:
        with transaction(session):
            yield session
    except StaleDataError as e:
        logger.warning(f"Concurrent modification detected on ticket {ticket_id}: {e}")
        raise ConflictError(
            f"Ticket {ticket_id} was modified by another request, reload and retry",
            details={"ticketId": ticket_id},
        ) from e


class TicketRepository:
    """Ticket persistence on a request-scoped session."""

    def __init__(self, session: Session):
        self.session = session

    # ==================== Loading ====================

    def _ticket_query(self):
        return select(TicketModel).options(
            selectinload(TicketModel.created_by),
            selectinload(TicketModel.mis_ticket),
            selectinload(TicketModel.its_ticket),
            selectinload(TicketModel.assignments).selectinload(TicketAssignmentModel.user),
            selectinload(TicketModel.notes).selectinload(TicketNoteModel.user),
            selectinload(TicketModel.status_history).selectinload(TicketStatusHistoryModel.user),
        ).execution_options(populate_existing=True)

    def find_by_id(self, ticket_id: int) -> Optional[TicketModel]:
        """Load a ticket with creator, details, assignments, notes and history."""
        query = self._ticket_query().where(TicketModel.id == ticket_id)
        return self.session.execute(query).scalars().first()

    def find_by_number(self, ticket_number: str) -> Optional[TicketModel]:
        query = self._ticket_query().where(TicketModel.ticket_number == ticket_number)
        return self.session.execute(query).scalars().first()

    def find_many(
        self,
        status: Optional[TicketStatus] = None,
        ticket_type: Optional[TicketType] = None,
        created_by_id: Optional[int] = None,
        assigned_to_user_id: Optional[int] = None,
        statuses: Optional[Iterable[TicketStatus]] = None,
    ) -> List[TicketModel]:
        """Filtered ticket list, newest first."""
        query = self._ticket_query()

        if status is not None:
            query = query.where(TicketModel.status == status)
        if statuses is not None:
            query = query.where(TicketModel.status.in_(list(statuses)))
        if ticket_type is not None:
            query = query.where(TicketModel.type == ticket_type)
        if created_by_id is not None:
            query = query.where(TicketModel.created_by_id == created_by_id)
        if assigned_to_user_id is not None:
            query = query.where(
                TicketModel.assignments.any(TicketAssignmentModel.user_id == assigned_to_user_id)
            )

        query = query.order_by(TicketModel.created_at.desc(), TicketModel.id.desc())
        return list(self.session.execute(query).scalars().all())

    # ==================== Numbering ====================

    def _max_sequence(self, column, prefix: str) -> int:
        """Highest numeric suffix already used under ``prefix``."""
        numbers = self.session.execute(
            select(column).where(column.like(f"{prefix}%"))
        ).scalars().all()

        highest = 0
        for number in numbers:
            try:
                highest = max(highest, int(number.rsplit("-", 1)[1]))
            except (IndexError, ValueError):
                continue
        return highest

    def next_sequence(self, scope: str, seed: Callable[[], int]) -> int:
        """
        Atomically increment the counter for ``scope`` and return the new value.

        A missing counter row is created inside a savepoint starting from
        ``seed()``; losing that insert race falls back to the increment.
        """
        for _ in range(settings.workflow.ticket_number_max_retries + 1):
            value = self.session.execute(
                update(TicketCounterModel)
                .where(TicketCounterModel.scope == scope)
                .values(value=TicketCounterModel.value + 1)
                .returning(TicketCounterModel.value)
                .execution_options(synchronize_session=False)
            ).scalar_one_or_none()
            if value is not None:
                return value

            initial = seed() + 1
            try:
                with self.session.begin_nested():
                    self.session.add(TicketCounterModel(scope=scope, value=initial))
                return initial
            except IntegrityError:
                logger.debug(f"Counter {scope} created concurrently, retrying increment")

        raise RuntimeError(f"Could not allocate a sequence value for {scope}")

    def generate_ticket_number(self, ticket_type: TicketType, now: Optional[datetime] = None) -> str:
        """``{TYPE}-{YYYYMMDD}-{seq:03d}``, sequence restarting every day per type."""
        now = now or datetime.now()
        scope = f"{ticket_type.value}-{now.strftime('%Y%m%d')}"
        seq = self.next_sequence(
            scope, lambda: self._max_sequence(TicketModel.ticket_number, f"{scope}-")
        )
        return f"{scope}-{seq:03d}"

    def generate_control_number(self, now: Optional[datetime] = None) -> str:
        """``{YYYY}-{MM}-{seq:03d}``, sequence restarting every month."""
        now = now or datetime.now()
        prefix = now.strftime("%Y-%m")
        seq = self.next_sequence(
            f"CONTROL-{prefix}",
            lambda: self._max_sequence(TicketModel.control_number, f"{prefix}-"),
        )
        return f"{prefix}-{seq:03d}"

    # ==================== Writes ====================

    def create(
        self,
        ticket_type: TicketType,
        request: CreateTicketRequest,
        creator_id: int,
        due_date: datetime,
        estimated_duration: int,
        created_at: Optional[datetime] = None,
    ) -> TicketModel:
        """
        Insert a ticket in FOR_REVIEW with its type details and initial history.

        A ticket number collision (unique constraint) retries with a fresh number.
        """
        max_retries = settings.workflow.ticket_number_max_retries
        created_at = created_at or datetime.now()
        for attempt in range(1, max_retries + 1):
            ticket = TicketModel(
                ticket_number=self.generate_ticket_number(ticket_type, now=created_at),
                control_number=self.generate_control_number(now=created_at) if ticket_type == TicketType.MIS else None,
                type=ticket_type,
                title=request.title,
                description=request.description,
                status=TicketStatus.FOR_REVIEW,
                priority=request.priority,
                due_date=due_date,
                estimated_duration=estimated_duration,
                created_by_id=creator_id,
                created_at=created_at,
            )
            if isinstance(request, CreateMISTicketRequest):
                ticket.mis_ticket = MISTicketModel(
                    category=request.category,
                    website_new_request=request.website_new_request,
                    website_update=request.website_update,
                    software_new_request=request.software_new_request,
                    software_update=request.software_update,
                    software_install=request.software_install,
                )
            elif isinstance(request, CreateITSTicketRequest):
                ticket.its_ticket = ITSTicketModel(
                    borrow_request=request.borrow_request,
                    borrow_details=request.borrow_details,
                    maintenance_desktop_laptop=request.maintenance_desktop_laptop,
                    maintenance_internet_network=request.maintenance_internet_network,
                    maintenance_printer=request.maintenance_printer,
                    maintenance_details=request.maintenance_details,
                )

            try:
                with self.session.begin_nested():
                    self.session.add(ticket)
                    self.session.flush()
                    self.add_history(ticket.id, creator_id, None, TicketStatus.FOR_REVIEW, "Ticket created")
                return ticket
            except IntegrityError as e:
                logger.warning(
                    f"Ticket number {ticket.ticket_number} already taken "
                    f"(attempt {attempt}/{max_retries}): {e.orig}"
                )

        raise RuntimeError(f"Could not allocate a unique {ticket_type.value} ticket number")

    def add_history(
        self,
        ticket_id: int,
        user_id: int,
        from_status: Optional[TicketStatus],
        to_status: TicketStatus,
        comment: Optional[str] = None,
    ) -> TicketStatusHistoryModel:
        entry = TicketStatusHistoryModel(
            ticket_id=ticket_id,
            user_id=user_id,
            from_status=from_status,
            to_status=to_status,
            comment=comment,
        )
        self.session.add(entry)
        return entry

    def transition(
        self,
        ticket: TicketModel,
        to_status: TicketStatus,
        actor_id: int,
        comment: Optional[str] = None,
    ) -> TicketStatusHistoryModel:
        """Change the status and append the matching history row."""
        from_status = ticket.status
        ticket.status = to_status
        return self.add_history(ticket.id, actor_id, from_status, to_status, comment)

    def add_note(self, ticket_id: int, user_id: int, content: str, is_internal: bool = False) -> TicketNoteModel:
        note = TicketNoteModel(
            ticket_id=ticket_id,
            user_id=user_id,
            content=content,
            is_internal=is_internal,
        )
        self.session.add(note)
        return note

    # ==================== Assignments ====================

    def find_assignment(self, ticket_id: int, user_id: int) -> Optional[TicketAssignmentModel]:
        return self.session.execute(
            select(TicketAssignmentModel).where(
                TicketAssignmentModel.ticket_id == ticket_id,
                TicketAssignmentModel.user_id == user_id,
            )
        ).scalars().first()

    def add_assignment(self, ticket_id: int, user_id: int) -> TicketAssignmentModel:
        assignment = TicketAssignmentModel(ticket_id=ticket_id, user_id=user_id)
        self.session.add(assignment)
        return assignment

    def remove_assignment(self, assignment: TicketAssignmentModel) -> None:
        self.session.delete(assignment)
        self.session.flush()

    def count_assignments(self, ticket_id: int) -> int:
        return self.session.execute(
            select(func.count(TicketAssignmentModel.id)).where(TicketAssignmentModel.ticket_id == ticket_id)
        ).scalar_one()

    def count_active_assignments(self, user_ids: Iterable[int]) -> Dict[int, int]:
        """Assignments per user on tickets that are not resolved, closed or cancelled."""
        user_ids = list(user_ids)
        counts = {user_id: 0 for user_id in user_ids}
        if not user_ids:
            return counts

        rows = self.session.execute(
            select(TicketAssignmentModel.user_id, func.count(TicketAssignmentModel.id))
            .join(TicketModel, TicketModel.id == TicketAssignmentModel.ticket_id)
            .where(
                TicketAssignmentModel.user_id.in_(user_ids),
                TicketModel.status.not_in(list(INACTIVE_STATUSES)),
            )
            .group_by(TicketAssignmentModel.user_id)
        ).all()
        for user_id, count in rows:
            counts[user_id] = count
        return counts

    # ==================== SLA ====================

    def sla_metrics(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Counts of open tickets that are overdue, due today and due within three days."""
        now = now or datetime.now()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        end_of_day = start_of_day + timedelta(days=1)

        def count(*conditions) -> int:
            return self.session.execute(
                select(func.count(TicketModel.id)).where(
                    TicketModel.status.not_in(list(INACTIVE_STATUSES)),
                    TicketModel.due_date.is_not(None),
                    *conditions,
                )
            ).scalar_one()

        return {
            "overdue": count(TicketModel.due_date < now),
            "due_today": count(TicketModel.due_date >= start_of_day, TicketModel.due_date < end_of_day),
            "due_soon": count(TicketModel.due_date >= now, TicketModel.due_date < now + timedelta(days=3)),
        }
