"""
Helpdesk GraphQL API.

Queries and mutations over the ticket workflow and in-app notifications.
Role allow-lists are checked before the workflow is invoked; workflow errors
are returned as GraphQL errors carrying ``code``, ``statusCode`` and
``details`` extensions.
"""

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, List, Optional

import strawberry
from graphql import GraphQLError
from strawberry.fastapi import GraphQLRouter
from strawberry.scalars import JSON
from strawberry.types import Info

from src.api.context import RequestContext, get_context
from src.notification.models import NotificationModel, NotificationType
from src.security.models import UserModel, UserRole
from src.ticket.exceptions import TicketError, ValidationError
from src.ticket.models import (
    TicketModel, TicketAssignmentModel, TicketNoteModel, TicketStatusHistoryModel,
    TicketStatus, TicketPriority, TicketType, MISCategory, SLAConfig,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Role allow-lists
# =============================================================================

STAFF_ROLES = [UserRole.ADMIN, UserRole.MIS_HEAD, UserRole.ITS_HEAD]
REVIEW_ROLES = [UserRole.ADMIN, UserRole.SECRETARY, UserRole.MIS_HEAD, UserRole.ITS_HEAD]
REJECT_ROLES = [UserRole.ADMIN, UserRole.SECRETARY, UserRole.DIRECTOR]
DIRECTOR_ROLES = [UserRole.ADMIN, UserRole.DIRECTOR]
DIRECTOR_QUEUE_ROLES = [UserRole.ADMIN, UserRole.DIRECTOR, UserRole.MIS_HEAD, UserRole.ITS_HEAD]
SECRETARY_QUEUE_ROLES = [
    UserRole.ADMIN, UserRole.DIRECTOR, UserRole.SECRETARY, UserRole.MIS_HEAD, UserRole.ITS_HEAD,
]
OFFICE_HEAD_ROLES = [UserRole.MIS_HEAD, UserRole.ITS_HEAD]
SCHEDULE_ROLES = [UserRole.MIS_HEAD, UserRole.ITS_HEAD, UserRole.ADMIN]
CREATE_ROLES = list(UserRole)


# =============================================================================
# GraphQL Types
# =============================================================================

UserRoleGQL = strawberry.enum(UserRole, name="UserRole")
TicketStatusGQL = strawberry.enum(TicketStatus, name="TicketStatus")
TicketPriorityGQL = strawberry.enum(TicketPriority, name="TicketPriority")
TicketTypeGQL = strawberry.enum(TicketType, name="TicketType")
MISCategoryGQL = strawberry.enum(MISCategory, name="MISCategory")
NotificationTypeGQL = strawberry.enum(NotificationType, name="NotificationType")


@strawberry.type
class User:
    id: strawberry.ID
    email: str
    name: Optional[str]
    role: UserRoleGQL


@strawberry.type
class MISTicketDetails:
    category: MISCategoryGQL
    website_new_request: bool
    website_update: bool
    software_new_request: bool
    software_update: bool
    software_install: bool


@strawberry.type
class ITSTicketDetails:
    borrow_request: bool
    borrow_details: Optional[str]
    maintenance_desktop_laptop: bool
    maintenance_internet_network: bool
    maintenance_printer: bool
    maintenance_details: Optional[str]


@strawberry.type
class TicketAssignment:
    id: strawberry.ID
    user: User
    assigned_at: datetime


@strawberry.type
class TicketNote:
    id: strawberry.ID
    content: str
    is_internal: bool
    user: User
    created_at: datetime
    updated_at: datetime


@strawberry.type
class TicketStatusHistory:
    id: strawberry.ID
    from_status: Optional[TicketStatusGQL]
    to_status: TicketStatusGQL
    comment: Optional[str]
    user: User
    created_at: datetime


@strawberry.type
class Ticket:
    """A helpdesk ticket with its details, assignees, notes and history."""
    id: strawberry.ID
    ticket_number: str
    control_number: Optional[str]
    type: TicketTypeGQL
    title: str
    description: str
    status: TicketStatusGQL
    priority: TicketPriorityGQL
    due_date: Optional[datetime]
    estimated_duration: Optional[int]
    actual_duration: Optional[int]
    sla_status: str
    hours_remaining: Optional[int]
    created_by: User
    secretary_reviewed_by_id: Optional[strawberry.ID]
    secretary_reviewed_at: Optional[datetime]
    director_approved_by_id: Optional[strawberry.ID]
    director_approved_at: Optional[datetime]
    date_to_visit: Optional[datetime]
    target_completion_date: Optional[datetime]
    head_scheduled_by_id: Optional[strawberry.ID]
    head_scheduled_at: Optional[datetime]
    admin_acknowledged_by_id: Optional[strawberry.ID]
    admin_acknowledged_at: Optional[datetime]
    monitor_notes: Optional[str]
    recommendations: Optional[str]
    monitored_by_id: Optional[strawberry.ID]
    monitored_at: Optional[datetime]
    mis_ticket: Optional[MISTicketDetails]
    its_ticket: Optional[ITSTicketDetails]
    assignments: List[TicketAssignment]
    notes: List[TicketNote]
    status_history: List[TicketStatusHistory]
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime]
    closed_at: Optional[datetime]


@strawberry.type
class Notification:
    id: strawberry.ID
    ticket_id: Optional[strawberry.ID]
    type: NotificationTypeGQL
    title: str
    message: str
    is_read: bool
    read_at: Optional[datetime]
    metadata: Optional[JSON]
    created_at: datetime


@strawberry.type
class SLAMetrics:
    overdue: int
    due_today: int
    due_soon: int


# =============================================================================
# Input Types
# =============================================================================

@strawberry.input
class CreateMISTicketInput:
    title: str
    description: str
    category: MISCategoryGQL
    priority: Optional[TicketPriorityGQL] = None
    estimated_duration: Optional[int] = None
    website_new_request: bool = False
    website_update: bool = False
    software_new_request: bool = False
    software_update: bool = False
    software_install: bool = False


@strawberry.input
class CreateITSTicketInput:
    title: str
    description: str
    priority: Optional[TicketPriorityGQL] = None
    estimated_duration: Optional[int] = None
    borrow_request: bool = False
    borrow_details: Optional[str] = None
    maintenance_desktop_laptop: bool = False
    maintenance_internet_network: bool = False
    maintenance_printer: bool = False
    maintenance_details: Optional[str] = None


@strawberry.input
class TicketFilterInput:
    status: Optional[TicketStatusGQL] = None
    type: Optional[TicketTypeGQL] = None
    created_by_id: Optional[strawberry.ID] = None
    assigned_to_user_id: Optional[strawberry.ID] = None


# =============================================================================
# Helper Functions
# =============================================================================

def _id(value: Any, field: str = "id") -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value}", details={"field": field})


def _optional_id(value: Optional[int]) -> Optional[strawberry.ID]:
    return strawberry.ID(str(value)) if value is not None else None


def _graphql_error(error: TicketError) -> GraphQLError:
    extensions = error.to_dict()
    return GraphQLError(extensions.pop("message"), extensions=extensions)


async def _execute(
    info: Info,
    roles: Optional[Iterable[UserRole]],
    operation: Callable[[RequestContext, UserModel], Awaitable[Any]],
) -> Any:
    """Authorize the caller, run the operation and translate workflow errors."""
    context: RequestContext = info.context
    try:
        user = context.require_role(roles)
        return await operation(context, user)
    except TicketError as e:
        raise _graphql_error(e) from e
    except Exception as e:
        logger.error(f"Unexpected error in GraphQL operation {info.field_name}: {e}", exc_info=True)
        raise GraphQLError(
            "Internal server error",
            extensions={"code": "INTERNAL_SERVER_ERROR", "statusCode": 500},
        ) from e


def _user_to_gql(user: UserModel) -> User:
    return User(
        id=strawberry.ID(str(user.id)),
        email=user.email,
        name=user.name,
        role=user.role,
    )


def _ticket_to_gql(ticket: TicketModel, viewer: UserModel) -> Ticket:
    """Convert a loaded ticket; internal notes are hidden from plain users."""
    notes = [
        note for note in ticket.notes
        if not note.is_internal or viewer.role != UserRole.USER
    ]
    open_ticket = ticket.status not in (TicketStatus.RESOLVED, TicketStatus.CLOSED, TicketStatus.CANCELLED)

    return Ticket(
        id=strawberry.ID(str(ticket.id)),
        ticket_number=ticket.ticket_number,
        control_number=ticket.control_number,
        type=ticket.type,
        title=ticket.title,
        description=ticket.description,
        status=ticket.status,
        priority=ticket.priority,
        due_date=ticket.due_date,
        estimated_duration=ticket.estimated_duration,
        actual_duration=ticket.actual_duration,
        sla_status=SLAConfig.get_sla_status(ticket.due_date) if open_ticket else "completed",
        hours_remaining=SLAConfig.get_time_remaining(ticket.due_date) if open_ticket else None,
        created_by=_user_to_gql(ticket.created_by),
        secretary_reviewed_by_id=_optional_id(ticket.secretary_reviewed_by_id),
        secretary_reviewed_at=ticket.secretary_reviewed_at,
        director_approved_by_id=_optional_id(ticket.director_approved_by_id),
        director_approved_at=ticket.director_approved_at,
        date_to_visit=ticket.date_to_visit,
        target_completion_date=ticket.target_completion_date,
        head_scheduled_by_id=_optional_id(ticket.head_scheduled_by_id),
        head_scheduled_at=ticket.head_scheduled_at,
        admin_acknowledged_by_id=_optional_id(ticket.admin_acknowledged_by_id),
        admin_acknowledged_at=ticket.admin_acknowledged_at,
        monitor_notes=ticket.monitor_notes,
        recommendations=ticket.recommendations,
        monitored_by_id=_optional_id(ticket.monitored_by_id),
        monitored_at=ticket.monitored_at,
        mis_ticket=MISTicketDetails(
            category=ticket.mis_ticket.category,
            website_new_request=ticket.mis_ticket.website_new_request,
            website_update=ticket.mis_ticket.website_update,
            software_new_request=ticket.mis_ticket.software_new_request,
            software_update=ticket.mis_ticket.software_update,
            software_install=ticket.mis_ticket.software_install,
        ) if ticket.mis_ticket else None,
        its_ticket=ITSTicketDetails(
            borrow_request=ticket.its_ticket.borrow_request,
            borrow_details=ticket.its_ticket.borrow_details,
            maintenance_desktop_laptop=ticket.its_ticket.maintenance_desktop_laptop,
            maintenance_internet_network=ticket.its_ticket.maintenance_internet_network,
            maintenance_printer=ticket.its_ticket.maintenance_printer,
            maintenance_details=ticket.its_ticket.maintenance_details,
        ) if ticket.its_ticket else None,
        assignments=[_assignment_to_gql(a) for a in ticket.assignments],
        notes=[_note_to_gql(n) for n in notes],
        status_history=[_history_to_gql(h) for h in ticket.status_history],
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
        resolved_at=ticket.resolved_at,
        closed_at=ticket.closed_at,
    )


def _tickets_to_gql(tickets: List[TicketModel], viewer: UserModel) -> List[Ticket]:
    return [_ticket_to_gql(ticket, viewer) for ticket in tickets]


def _assignment_to_gql(assignment: TicketAssignmentModel) -> TicketAssignment:
    return TicketAssignment(
        id=strawberry.ID(str(assignment.id)),
        user=_user_to_gql(assignment.user),
        assigned_at=assignment.assigned_at,
    )


def _note_to_gql(note: TicketNoteModel) -> TicketNote:
    return TicketNote(
        id=strawberry.ID(str(note.id)),
        content=note.content,
        is_internal=note.is_internal,
        user=_user_to_gql(note.user),
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


def _history_to_gql(entry: TicketStatusHistoryModel) -> TicketStatusHistory:
    return TicketStatusHistory(
        id=strawberry.ID(str(entry.id)),
        from_status=entry.from_status,
        to_status=entry.to_status,
        comment=entry.comment,
        user=_user_to_gql(entry.user),
        created_at=entry.created_at,
    )


def _notification_to_gql(notification: NotificationModel) -> Notification:
    return Notification(
        id=strawberry.ID(str(notification.id)),
        ticket_id=_optional_id(notification.ticket_id),
        type=notification.type,
        title=notification.title,
        message=notification.message,
        is_read=notification.is_read,
        read_at=notification.read_at,
        metadata=notification.notification_metadata,
        created_at=notification.created_at,
    )


def _input_payload(data: Any) -> dict:
    payload = {key: value for key, value in vars(data).items()}
    if payload.get("priority") is None:
        payload.pop("priority", None)
    return payload


# =============================================================================
# Query Type
# =============================================================================

@strawberry.type
class Query:
    """Root query type."""

    @strawberry.field
    async def ticket(self, info: Info, id: strawberry.ID) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            return _ticket_to_gql(await ctx.tickets.get_ticket(_id(id)), user)
        return await _execute(info, None, run)

    @strawberry.field
    async def ticket_by_number(self, info: Info, ticket_number: str) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            return _ticket_to_gql(await ctx.tickets.get_ticket_by_number(ticket_number), user)
        return await _execute(info, None, run)

    @strawberry.field
    async def tickets(self, info: Info, filter: Optional[TicketFilterInput] = None) -> List[Ticket]:
        async def run(ctx: RequestContext, user: UserModel):
            criteria = filter or TicketFilterInput()
            tickets = await ctx.tickets.get_tickets(
                status=criteria.status,
                ticket_type=criteria.type,
                created_by_id=_id(criteria.created_by_id, "createdById") if criteria.created_by_id else None,
                assigned_to_user_id=(
                    _id(criteria.assigned_to_user_id, "assignedToUserId")
                    if criteria.assigned_to_user_id else None
                ),
            )
            return _tickets_to_gql(tickets, user)
        return await _execute(info, None, run)

    @strawberry.field
    async def my_tickets(self, info: Info) -> List[Ticket]:
        async def run(ctx: RequestContext, user: UserModel):
            return _tickets_to_gql(await ctx.tickets.get_user_tickets(user.id), user)
        return await _execute(info, None, run)

    @strawberry.field
    async def my_created_tickets(self, info: Info) -> List[Ticket]:
        async def run(ctx: RequestContext, user: UserModel):
            return _tickets_to_gql(await ctx.tickets.get_user_created_tickets(user.id), user)
        return await _execute(info, None, run)

    @strawberry.field
    async def tickets_for_secretary_review(self, info: Info) -> List[Ticket]:
        async def run(ctx: RequestContext, user: UserModel):
            return _tickets_to_gql(await ctx.tickets.get_tickets_for_secretary_review(), user)
        return await _execute(info, REVIEW_ROLES, run)

    @strawberry.field
    async def tickets_pending_director_approval(self, info: Info) -> List[Ticket]:
        async def run(ctx: RequestContext, user: UserModel):
            return _tickets_to_gql(await ctx.tickets.get_tickets_pending_director_approval(), user)
        return await _execute(info, DIRECTOR_QUEUE_ROLES, run)

    @strawberry.field
    async def tickets_pending_acknowledgment(self, info: Info) -> List[Ticket]:
        async def run(ctx: RequestContext, user: UserModel):
            return _tickets_to_gql(await ctx.tickets.get_tickets_pending_acknowledgment(), user)
        return await _execute(info, DIRECTOR_ROLES, run)

    @strawberry.field
    async def all_secretary_tickets(self, info: Info) -> List[Ticket]:
        async def run(ctx: RequestContext, user: UserModel):
            return _tickets_to_gql(await ctx.tickets.get_all_secretary_tickets(), user)
        return await _execute(info, SECRETARY_QUEUE_ROLES, run)

    @strawberry.field
    async def office_head_tickets(self, info: Info) -> List[Ticket]:
        async def run(ctx: RequestContext, user: UserModel):
            return _tickets_to_gql(await ctx.tickets.get_office_head_tickets(user.role), user)
        return await _execute(info, OFFICE_HEAD_ROLES, run)

    @strawberry.field
    async def sla_metrics(self, info: Info) -> SLAMetrics:
        async def run(ctx: RequestContext, user: UserModel):
            return SLAMetrics(**await ctx.tickets.get_sla_metrics())
        return await _execute(info, None, run)

    @strawberry.field
    async def my_notifications(
        self,
        info: Info,
        unread_only: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Notification]:
        async def run(ctx: RequestContext, user: UserModel):
            notifications = await ctx.notifications.get_my_notifications(
                user.id, unread_only=unread_only, limit=limit, offset=offset
            )
            return [_notification_to_gql(n) for n in notifications]
        return await _execute(info, None, run)

    @strawberry.field
    async def unread_notification_count(self, info: Info) -> int:
        async def run(ctx: RequestContext, user: UserModel):
            return await ctx.notifications.get_unread_count(user.id)
        return await _execute(info, None, run)


# =============================================================================
# Mutation Type
# =============================================================================

@strawberry.type
class Mutation:
    """Root mutation type."""

    @strawberry.mutation(name="createMISTicket")
    async def create_mis_ticket(self, info: Info, input: CreateMISTicketInput) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            ticket = await ctx.tickets.create_ticket(TicketType.MIS, _input_payload(input), user.id)
            return _ticket_to_gql(ticket, user)
        return await _execute(info, CREATE_ROLES, run)

    @strawberry.mutation(name="createITSTicket")
    async def create_its_ticket(self, info: Info, input: CreateITSTicketInput) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            ticket = await ctx.tickets.create_ticket(TicketType.ITS, _input_payload(input), user.id)
            return _ticket_to_gql(ticket, user)
        return await _execute(info, CREATE_ROLES, run)

    @strawberry.mutation
    async def update_ticket_status(
        self,
        info: Info,
        id: strawberry.ID,
        status: TicketStatusGQL,
        comment: Optional[str] = None,
        target_completion_date: Optional[datetime] = None,
    ) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            ticket = await ctx.tickets.update_status(
                _id(id), user.id, status, comment=comment, target_completion_date=target_completion_date
            )
            return _ticket_to_gql(ticket, user)
        return await _execute(info, None, run)

    @strawberry.mutation
    async def review_ticket_as_secretary(
        self, info: Info, id: strawberry.ID, comment: Optional[str] = None
    ) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            return _ticket_to_gql(await ctx.tickets.review_as_secretary(_id(id), user.id, comment), user)
        return await _execute(info, REVIEW_ROLES, run)

    @strawberry.mutation
    async def reject_ticket_as_secretary(self, info: Info, id: strawberry.ID, reason: str) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            return _ticket_to_gql(await ctx.tickets.reject_as_secretary(_id(id), user.id, reason), user)
        return await _execute(info, REJECT_ROLES, run)

    @strawberry.mutation
    async def approve_ticket_as_director(
        self, info: Info, id: strawberry.ID, comment: Optional[str] = None
    ) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            return _ticket_to_gql(await ctx.tickets.approve_as_director(_id(id), user.id, comment), user)
        return await _execute(info, DIRECTOR_ROLES, run)

    @strawberry.mutation
    async def disapprove_ticket_as_director(self, info: Info, id: strawberry.ID, reason: str) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            return _ticket_to_gql(await ctx.tickets.disapprove_as_director(_id(id), user.id, reason), user)
        return await _execute(info, DIRECTOR_ROLES, run)

    @strawberry.mutation
    async def assign_ticket(
        self,
        info: Info,
        ticket_id: strawberry.ID,
        user_id: strawberry.ID,
        comment: Optional[str] = None,
    ) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            ticket = await ctx.tickets.assign_user(
                _id(ticket_id, "ticketId"), _id(user_id, "userId"), user.id, comment
            )
            return _ticket_to_gql(ticket, user)
        return await _execute(info, STAFF_ROLES, run)

    @strawberry.mutation
    async def unassign_ticket(self, info: Info, ticket_id: strawberry.ID, user_id: strawberry.ID) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            ticket = await ctx.tickets.unassign_user(_id(ticket_id, "ticketId"), _id(user_id, "userId"), user.id)
            return _ticket_to_gql(ticket, user)
        return await _execute(info, STAFF_ROLES, run)

    @strawberry.mutation
    async def reassign_ticket(
        self,
        info: Info,
        ticket_id: strawberry.ID,
        from_user_id: strawberry.ID,
        to_user_id: strawberry.ID,
    ) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            ticket = await ctx.tickets.reassign_user(
                _id(ticket_id, "ticketId"),
                _id(from_user_id, "fromUserId"),
                _id(to_user_id, "toUserId"),
                user.id,
            )
            return _ticket_to_gql(ticket, user)
        return await _execute(info, STAFF_ROLES, run)

    @strawberry.mutation
    async def add_ticket_note(
        self,
        info: Info,
        ticket_id: strawberry.ID,
        content: str,
        is_internal: bool = False,
    ) -> TicketNote:
        async def run(ctx: RequestContext, user: UserModel):
            note = await ctx.tickets.add_note(_id(ticket_id, "ticketId"), user.id, content, is_internal)
            return _note_to_gql(note)
        return await _execute(info, None, run)

    @strawberry.mutation
    async def reopen_ticket(
        self,
        info: Info,
        id: strawberry.ID,
        updated_description: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            ticket = await ctx.tickets.reopen_ticket(_id(id), user.id, updated_description, comment)
            return _ticket_to_gql(ticket, user)
        return await _execute(info, None, run)

    @strawberry.mutation
    async def schedule_visit(
        self,
        info: Info,
        id: strawberry.ID,
        date_to_visit: datetime,
        target_completion_date: datetime,
        comment: Optional[str] = None,
    ) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            ticket = await ctx.tickets.schedule_visit(
                _id(id), user.id, date_to_visit, target_completion_date, comment
            )
            return _ticket_to_gql(ticket, user)
        return await _execute(info, SCHEDULE_ROLES, run)

    @strawberry.mutation
    async def acknowledge_schedule(self, info: Info, id: strawberry.ID, comment: Optional[str] = None) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            return _ticket_to_gql(await ctx.tickets.acknowledge_schedule(_id(id), user.id, comment), user)
        return await _execute(info, DIRECTOR_ROLES, run)

    @strawberry.mutation
    async def reject_schedule(self, info: Info, id: strawberry.ID, reason: str) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            return _ticket_to_gql(await ctx.tickets.reject_schedule(_id(id), user.id, reason), user)
        return await _execute(info, DIRECTOR_ROLES, run)

    @strawberry.mutation
    async def add_monitor_and_recommendations(
        self,
        info: Info,
        id: strawberry.ID,
        monitor_notes: str,
        recommendations: str,
        comment: Optional[str] = None,
    ) -> Ticket:
        async def run(ctx: RequestContext, user: UserModel):
            ticket = await ctx.tickets.add_monitor_and_recommendations(
                _id(id), user.id, monitor_notes, recommendations, comment
            )
            return _ticket_to_gql(ticket, user)
        return await _execute(info, SCHEDULE_ROLES, run)

    @strawberry.mutation
    async def mark_notification_as_read(self, info: Info, id: strawberry.ID) -> Notification:
        async def run(ctx: RequestContext, user: UserModel):
            return _notification_to_gql(await ctx.notifications.mark_as_read(_id(id), user.id))
        return await _execute(info, None, run)

    @strawberry.mutation
    async def mark_all_notifications_as_read(self, info: Info) -> int:
        async def run(ctx: RequestContext, user: UserModel):
            return await ctx.notifications.mark_all_as_read(user.id)
        return await _execute(info, None, run)


# =============================================================================
# Schema Creation
# =============================================================================

schema = strawberry.Schema(query=Query, mutation=Mutation)


def create_graphql_router() -> GraphQLRouter:
    """Create the GraphQL router with the per-request context."""
    return GraphQLRouter(schema, context_getter=get_context)
