"""
Unit tests for the ticket lifecycle engine.

Covers creation, the secretary/director approval chain, work status
transitions, visit scheduling, monitoring, notes and the worklists.
"""

import re
import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine, func, select, update
from sqlalchemy.orm import sessionmaker

from conftest import create_test_users
from src.database.connection import Base
from src.notification.models import NotificationModel, NotificationType
from src.ticket.exceptions import (
    NotFoundError, ValidationError, InvalidTransitionError, ForbiddenError, ConflictError,
)
from src.ticket.models import (
    CreateMISTicketRequest, TicketAssignmentModel, TicketModel, TicketStatus, TicketType,
    TicketStatusHistoryModel,
)
from src.ticket.repository import ticket_transaction
from src.ticket.service import TicketService


def notifications_for(session, user, notification_type=None):
    query = select(NotificationModel).where(NotificationModel.user_id == user.id)
    if notification_type is not None:
        query = query.where(NotificationModel.type == notification_type)
    return list(session.execute(query.order_by(NotificationModel.id)).scalars().all())


def history_of(session, ticket):
    return list(session.execute(
        select(TicketStatusHistoryModel)
        .where(TicketStatusHistoryModel.ticket_id == ticket.id)
        .order_by(TicketStatusHistoryModel.id)
    ).scalars().all())


def run_to_completion(coro):
    """Drive a coroutine that never suspends, from synchronous code."""
    try:
        coro.send(None)
    except StopIteration as stop:
        return stop.value
    coro.close()
    raise RuntimeError("coroutine suspended")


async def assigned_ticket(service, users, payload):
    """Create an MIS ticket and take it through review and approval."""
    ticket = await service.create_ticket(TicketType.MIS, payload, users.requester.id)
    await service.review_as_secretary(ticket.id, users.secretary.id)
    return await service.approve_as_director(ticket.id, users.director.id)


@pytest.fixture
def service(session):
    return TicketService(session)


class TestTicketCreation:
    """Ticket submission."""

    @pytest.mark.asyncio
    async def test_create_mis_ticket(self, session, service, users, mis_payload):
        ticket = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)

        assert re.fullmatch(r"MIS-\d{8}-001", ticket.ticket_number)
        assert ticket.ticket_number[4:12] == ticket.created_at.strftime("%Y%m%d")
        assert ticket.control_number == f"{ticket.created_at:%Y-%m}-001"
        assert ticket.status == TicketStatus.FOR_REVIEW
        assert ticket.estimated_duration == 16
        assert ticket.mis_ticket.website_update is True
        assert ticket.its_ticket is None

        history = history_of(session, ticket)
        assert len(history) == 1
        assert history[0].from_status is None
        assert history[0].to_status == TicketStatus.FOR_REVIEW

        created = notifications_for(session, users.secretary, NotificationType.TICKET_CREATED)
        assert len(created) == 1
        assert ticket.ticket_number in created[0].message

    @pytest.mark.asyncio
    async def test_ticket_numbers_are_sequential_per_type(self, service, users, mis_payload, its_payload):
        first = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)
        second = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)
        its = await service.create_ticket(TicketType.ITS, its_payload, users.requester.id)

        assert first.ticket_number.endswith("-001")
        assert second.ticket_number.endswith("-002")
        assert its.ticket_number.startswith("ITS-") and its.ticket_number.endswith("-001")
        assert second.control_number.endswith("-002")
        assert its.control_number is None

    @pytest.mark.asyncio
    async def test_numbers_follow_creation_time(self, service, users, mis_payload):
        created_at = datetime(2025, 12, 31, 23, 59, 59)
        request = CreateMISTicketRequest.model_validate(mis_payload)

        with ticket_transaction(service.session):
            ticket = service.repository.create(
                TicketType.MIS, request, users.requester.id,
                due_date=created_at + timedelta(hours=72),
                estimated_duration=16,
                created_at=created_at,
            )

        assert ticket.created_at == created_at
        assert ticket.ticket_number == "MIS-20251231-001"
        assert ticket.control_number == "2025-12-001"

    @pytest.mark.asyncio
    async def test_high_priority_due_in_24_hours(self, service, users, its_payload):
        ticket = await service.create_ticket(TicketType.ITS, its_payload, users.requester.id)

        assert ticket.due_date == ticket.created_at + timedelta(hours=24)
        assert ticket.estimated_duration == 4

    @pytest.mark.asyncio
    async def test_estimated_duration_override(self, service, users, its_payload):
        ticket = await service.create_ticket(
            TicketType.ITS, {**its_payload, "estimated_duration": 7}, users.requester.id
        )

        assert ticket.estimated_duration == 7

    @pytest.mark.asyncio
    async def test_invalid_payload_reports_fields(self, session, service, users):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_ticket(
                TicketType.MIS, {"title": "Hi", "description": "short"}, users.requester.id
            )

        fields = {detail["field"] for detail in exc_info.value.details}
        assert {"title", "description", "category"} <= fields
        assert session.execute(select(TicketModel)).first() is None

    @pytest.mark.asyncio
    async def test_unknown_creator(self, service, mis_payload):
        with pytest.raises(NotFoundError):
            await service.create_ticket(TicketType.MIS, mis_payload, 9999)


class TestApprovalChain:
    """Secretary review and director approval."""

    @pytest.mark.asyncio
    async def test_create_review_approve_assigns_office_head(self, session, service, users, mis_payload):
        ticket = await assigned_ticket(service, users, mis_payload)

        assert ticket.status == TicketStatus.ASSIGNED
        assert ticket.assignee_ids == [users.mis_head.id]
        assert ticket.secretary_reviewed_by_id == users.secretary.id
        assert ticket.director_approved_by_id == users.director.id

        transitions = [(h.from_status, h.to_status) for h in history_of(session, ticket)]
        assert transitions == [
            (None, TicketStatus.FOR_REVIEW),
            (TicketStatus.FOR_REVIEW, TicketStatus.REVIEWED),
            (TicketStatus.REVIEWED, TicketStatus.DIRECTOR_APPROVED),
            (TicketStatus.DIRECTOR_APPROVED, TicketStatus.ASSIGNED),
        ]
        assert history_of(session, ticket)[-1].user_id == users.director.id

        assignments = session.execute(
            select(TicketAssignmentModel).where(TicketAssignmentModel.ticket_id == ticket.id)
        ).scalars().all()
        assert [assignment.user_id for assignment in assignments] == [users.mis_head.id]

        assert len(notifications_for(session, users.requester, NotificationType.TICKET_REVIEWED)) == 1
        assert len(notifications_for(session, users.requester, NotificationType.TICKET_APPROVED)) == 1
        assert len(notifications_for(session, users.director, NotificationType.TICKET_REVIEWED)) == 1
        assert len(notifications_for(session, users.admin, NotificationType.TICKET_REVIEWED)) == 1
        assert len(notifications_for(session, users.mis_head, NotificationType.TICKET_ASSIGNED)) == 1

    @pytest.mark.asyncio
    async def test_its_ticket_goes_to_its_head(self, service, users, its_payload):
        ticket = await service.create_ticket(TicketType.ITS, its_payload, users.requester.id)
        await service.review_as_secretary(ticket.id, users.secretary.id)
        ticket = await service.approve_as_director(ticket.id, users.director.id)

        assert ticket.assignee_ids == [users.its_head.id]

    @pytest.mark.asyncio
    async def test_failed_review_leaves_ticket_untouched(self, session, service, users, mis_payload):
        ticket = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)
        await service.review_as_secretary(ticket.id, users.secretary.id)
        before = len(history_of(session, ticket))

        with pytest.raises(InvalidTransitionError):
            await service.review_as_secretary(ticket.id, users.secretary.id)

        ticket = await service.get_ticket(ticket.id)
        assert ticket.status == TicketStatus.REVIEWED
        assert len(history_of(session, ticket)) == before

    @pytest.mark.asyncio
    async def test_reject_requires_reason(self, session, service, users, mis_payload):
        ticket = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)

        for reason in ["", "   ", None]:
            with pytest.raises(ValidationError):
                await service.reject_as_secretary(ticket.id, users.secretary.id, reason)
        assert (await service.get_ticket(ticket.id)).status == TicketStatus.FOR_REVIEW

        ticket = await service.reject_as_secretary(ticket.id, users.secretary.id, "  Duplicate request  ")

        assert ticket.status == TicketStatus.CANCELLED
        assert history_of(session, ticket)[-1].comment == "Rejected by secretary: Duplicate request"
        rejected = notifications_for(session, users.requester, NotificationType.TICKET_REJECTED)
        assert rejected[0].notification_metadata["reason"] == "Duplicate request"

    @pytest.mark.asyncio
    async def test_disapprove(self, session, service, users, mis_payload):
        ticket = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)

        with pytest.raises(InvalidTransitionError):
            await service.disapprove_as_director(ticket.id, users.director.id, "Not a priority")

        await service.review_as_secretary(ticket.id, users.secretary.id)
        with pytest.raises(ValidationError):
            await service.disapprove_as_director(ticket.id, users.director.id, "  ")

        ticket = await service.disapprove_as_director(ticket.id, users.director.id, "Not a priority")

        assert ticket.status == TicketStatus.CANCELLED
        assert notifications_for(session, users.requester, NotificationType.TICKET_DISAPPROVED)

    @pytest.mark.asyncio
    async def test_approval_without_eligible_head_stays_approved(self, session, service, users, mis_payload):
        users.mis_head.is_active = False
        session.commit()

        ticket = await assigned_ticket(service, users, mis_payload)

        assert ticket.status == TicketStatus.DIRECTOR_APPROVED
        assert ticket.assignments == []
        assert history_of(session, ticket)[-1].to_status == TicketStatus.DIRECTOR_APPROVED

    @pytest.mark.asyncio
    async def test_unexpected_assignment_failure_keeps_approval(
        self, session, service, users, mis_payload, monkeypatch, caplog
    ):
        async def broken(*args, **kwargs):
            raise RuntimeError("workload query timed out")

        monkeypatch.setattr(service.assignments, "auto_assign", broken)

        ticket = await assigned_ticket(service, users, mis_payload)

        assert ticket.status == TicketStatus.DIRECTOR_APPROVED
        assert ticket.assignments == []
        assert f"Auto-assignment failed for ticket {ticket.id}" in caplog.text
        assert len(notifications_for(session, users.requester, NotificationType.TICKET_APPROVED)) == 1

    @pytest.mark.asyncio
    async def test_missing_ticket(self, service, users):
        with pytest.raises(NotFoundError):
            await service.review_as_secretary(424242, users.secretary.id)


class TestReopen:
    """Creator resubmission of cancelled tickets."""

    @pytest.mark.asyncio
    async def test_non_creator_is_forbidden(self, service, users, mis_payload):
        ticket = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)
        await service.reject_as_secretary(ticket.id, users.secretary.id, "Incomplete")

        with pytest.raises(ForbiddenError):
            await service.reopen_ticket(ticket.id, users.other_user.id)

    @pytest.mark.asyncio
    async def test_creator_check_precedes_status_check(self, service, users, mis_payload):
        ticket = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)

        with pytest.raises(ForbiddenError):
            await service.reopen_ticket(ticket.id, users.other_user.id)
        with pytest.raises(InvalidTransitionError):
            await service.reopen_ticket(ticket.id, users.requester.id)

    @pytest.mark.asyncio
    async def test_reopen_cancelled_ticket(self, session, service, users, mis_payload):
        ticket = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)
        await service.review_as_secretary(ticket.id, users.secretary.id)
        await service.disapprove_as_director(ticket.id, users.director.id, "Missing details")

        ticket = await service.reopen_ticket(
            ticket.id, users.requester.id,
            updated_description="  The faculty page for the Physics department is outdated.  ",
            comment="Added the department name",
        )

        assert ticket.status == TicketStatus.FOR_REVIEW
        assert ticket.secretary_reviewed_by_id is None
        assert ticket.secretary_reviewed_at is None
        assert ticket.director_approved_by_id is None
        assert ticket.description == "The faculty page for the Physics department is outdated."
        assert [note.content for note in ticket.notes] == ["Added the department name"]
        assert history_of(session, ticket)[-1].from_status == TicketStatus.CANCELLED
        assert len(notifications_for(session, users.secretary, NotificationType.TICKET_CREATED)) == 2

    @pytest.mark.asyncio
    async def test_blank_description_keeps_original(self, service, users, mis_payload):
        ticket = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)
        await service.reject_as_secretary(ticket.id, users.secretary.id, "Incomplete")

        ticket = await service.reopen_ticket(ticket.id, users.requester.id, updated_description="   ")

        assert ticket.description == mis_payload["description"]
        assert ticket.notes == []


class TestWorkStatus:
    """Generic work status transitions."""

    @pytest.mark.asyncio
    async def test_work_lifecycle(self, session, service, users, mis_payload):
        ticket = await assigned_ticket(service, users, mis_payload)

        ticket = await service.update_status(ticket.id, users.mis_head.id, TicketStatus.IN_PROGRESS)
        ticket = await service.update_status(ticket.id, users.mis_head.id, "ON_HOLD", comment="Waiting for parts")
        ticket = await service.update_status(ticket.id, users.mis_head.id, TicketStatus.IN_PROGRESS)
        ticket = await service.update_status(ticket.id, users.mis_head.id, TicketStatus.RESOLVED)

        assert ticket.resolved_at is not None
        assert ticket.actual_duration == 0

        ticket = await service.update_status(ticket.id, users.mis_head.id, TicketStatus.CLOSED)
        assert ticket.closed_at is not None

        comments = [h.comment for h in history_of(session, ticket)][-5:]
        assert comments == ["Work started", "Waiting for parts", "Work resumed", "Issue resolved", "Ticket closed"]
        assert len(notifications_for(session, users.requester, NotificationType.STATUS_CHANGED)) == 5

    @pytest.mark.asyncio
    async def test_illegal_transition(self, session, service, users, mis_payload):
        ticket = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)

        with pytest.raises(InvalidTransitionError) as exc_info:
            await service.update_status(ticket.id, users.admin.id, TicketStatus.IN_PROGRESS)

        assert exc_info.value.details["fromStatus"] == "FOR_REVIEW"
        assert len(history_of(session, ticket)) == 1

    @pytest.mark.asyncio
    async def test_closed_is_terminal(self, service, users, mis_payload):
        ticket = await assigned_ticket(service, users, mis_payload)
        for status in [TicketStatus.IN_PROGRESS, TicketStatus.RESOLVED, TicketStatus.CLOSED]:
            await service.update_status(ticket.id, users.mis_head.id, status)

        with pytest.raises(InvalidTransitionError):
            await service.update_status(ticket.id, users.mis_head.id, TicketStatus.IN_PROGRESS)

    @pytest.mark.asyncio
    async def test_reopen_work_clears_resolution(self, service, users, mis_payload):
        ticket = await assigned_ticket(service, users, mis_payload)
        await service.update_status(ticket.id, users.mis_head.id, TicketStatus.IN_PROGRESS)
        await service.update_status(ticket.id, users.mis_head.id, TicketStatus.RESOLVED)

        ticket = await service.update_status(ticket.id, users.mis_head.id, TicketStatus.IN_PROGRESS)

        assert ticket.resolved_at is None
        assert ticket.actual_duration is None

    @pytest.mark.asyncio
    async def test_creator_actions_do_not_notify_creator(self, session, service, users, mis_payload):
        ticket = await assigned_ticket(service, users, mis_payload)

        await service.update_status(ticket.id, users.requester.id, TicketStatus.IN_PROGRESS)

        assert notifications_for(session, users.requester, NotificationType.STATUS_CHANGED) == []

    @pytest.mark.asyncio
    async def test_target_completion_date_update(self, service, users, mis_payload):
        ticket = await assigned_ticket(service, users, mis_payload)
        target = datetime(2026, 12, 1, 17, 0)

        ticket = await service.update_status(
            ticket.id, users.mis_head.id, TicketStatus.IN_PROGRESS, target_completion_date=target
        )

        assert ticket.target_completion_date == target

    @pytest.mark.asyncio
    async def test_stale_version_becomes_conflict(self, session, service, users, mis_payload):
        ticket = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)

        # Another writer bumps the version behind the loaded ticket
        session.execute(
            update(TicketModel.__table__)
            .where(TicketModel.__table__.c.id == ticket.id)
            .values(version=TicketModel.__table__.c.version + 1)
        )
        session.commit()

        with pytest.raises(ConflictError):
            with ticket_transaction(session, ticket.id):
                ticket.title = "Concurrent edit"

        assert (await service.get_ticket(ticket.id)).title == mis_payload["title"]

    @pytest.mark.asyncio
    async def test_concurrent_approvals_only_one_wins(self, tmp_path, mis_payload, monkeypatch):
        engine = create_engine(f"sqlite:///{tmp_path / 'helpdesk.db'}")
        Base.metadata.create_all(bind=engine)
        factory = sessionmaker(bind=engine, expire_on_commit=False)
        first, second = factory(), factory()
        try:
            users = create_test_users(first)
            first_service, second_service = TicketService(first), TicketService(second)
            ticket = await first_service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)
            await first_service.review_as_secretary(ticket.id, users.secretary.id)

            transition = second_service.repository.transition

            def approved_elsewhere_first(loaded, to_status, actor_id, comment=None):
                # The other session commits after this one passed its status check
                run_to_completion(first_service.approve_as_director(loaded.id, users.director.id))
                return transition(loaded, to_status, actor_id, comment)

            monkeypatch.setattr(second_service.repository, "transition", approved_elsewhere_first)

            with pytest.raises(ConflictError):
                await second_service.approve_as_director(ticket.id, users.director.id)

            ticket = await first_service.get_ticket(ticket.id)
            assert ticket.status == TicketStatus.ASSIGNED
            assert ticket.assignee_ids == [users.mis_head.id]
            approvals = first.execute(
                select(func.count(TicketStatusHistoryModel.id)).where(
                    TicketStatusHistoryModel.ticket_id == ticket.id,
                    TicketStatusHistoryModel.to_status == TicketStatus.DIRECTOR_APPROVED,
                )
            ).scalar_one()
            assert approvals == 1
            assert len(notifications_for(first, users.requester, NotificationType.TICKET_APPROVED)) == 1
        finally:
            first.close()
            second.close()
            engine.dispose()


class TestVisitSchedule:
    """Office head scheduling and admin acknowledgment."""

    @pytest.mark.asyncio
    async def test_schedule_acknowledge_and_start(self, session, service, users, mis_payload):
        ticket = await assigned_ticket(service, users, mis_payload)
        visit = datetime(2026, 11, 2, 9, 0)

        with pytest.raises(ValidationError):
            await service.schedule_visit(ticket.id, users.mis_head.id, visit, visit - timedelta(days=1))

        ticket = await service.schedule_visit(ticket.id, users.mis_head.id, visit, visit + timedelta(days=2))

        assert ticket.status == TicketStatus.PENDING_ACKNOWLEDGMENT
        assert ticket.head_scheduled_by_id == users.mis_head.id
        assert notifications_for(session, users.admin, NotificationType.SCHEDULE_SET)
        assert notifications_for(session, users.director, NotificationType.SCHEDULE_SET)
        assert notifications_for(session, users.mis_head, NotificationType.SCHEDULE_SET) == []

        ticket = await service.acknowledge_schedule(ticket.id, users.admin.id)

        assert ticket.status == TicketStatus.SCHEDULED
        assert ticket.admin_acknowledged_by_id == users.admin.id
        visit_notice = notifications_for(session, users.requester, NotificationType.VISIT_SCHEDULED)
        assert "MIS Office" in visit_notice[0].message

        ticket = await service.update_status(ticket.id, users.mis_head.id, TicketStatus.IN_PROGRESS)
        assert ticket.status == TicketStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_reject_schedule(self, session, service, users, mis_payload):
        ticket = await assigned_ticket(service, users, mis_payload)
        visit = datetime(2026, 11, 2, 9, 0)
        await service.schedule_visit(ticket.id, users.mis_head.id, visit, visit)

        with pytest.raises(ValidationError):
            await service.reject_schedule(ticket.id, users.director.id, " ")

        ticket = await service.reject_schedule(ticket.id, users.director.id, "Office closed that week")

        assert ticket.status == TicketStatus.ASSIGNED
        assert ticket.date_to_visit is None
        assert ticket.target_completion_date is None
        assert ticket.head_scheduled_by_id is None
        rejected = notifications_for(session, users.mis_head, NotificationType.SCHEDULE_REJECTED)
        assert "Office closed that week" in rejected[0].message

    @pytest.mark.asyncio
    async def test_acknowledge_requires_pending_schedule(self, service, users, mis_payload):
        ticket = await assigned_ticket(service, users, mis_payload)

        with pytest.raises(InvalidTransitionError):
            await service.acknowledge_schedule(ticket.id, users.admin.id)

    @pytest.mark.asyncio
    async def test_monitor_and_recommendations(self, session, service, users, mis_payload):
        ticket = await assigned_ticket(service, users, mis_payload)

        with pytest.raises(InvalidTransitionError):
            await service.add_monitor_and_recommendations(
                ticket.id, users.mis_head.id, "Checked", "Replace cable"
            )

        await service.update_status(ticket.id, users.mis_head.id, TicketStatus.IN_PROGRESS)

        with pytest.raises(ValidationError):
            await service.add_monitor_and_recommendations(ticket.id, users.mis_head.id, "Checked", "  ")

        ticket = await service.add_monitor_and_recommendations(
            ticket.id, users.mis_head.id, "Page layout verified", "Schedule quarterly review",
            comment="Monitoring done",
        )

        assert ticket.status == TicketStatus.IN_PROGRESS
        assert ticket.monitor_notes == "Page layout verified"
        assert ticket.recommendations == "Schedule quarterly review"
        assert ticket.monitored_by_id == users.mis_head.id
        assert ticket.notes[0].content == "Monitoring done"
        assert notifications_for(session, users.requester, NotificationType.MONITOR_UPDATED)


class TestNotes:
    """Note persistence and notification fan-out."""

    @pytest.mark.asyncio
    async def test_internal_note_reaches_other_assignees_only(self, session, service, users, mis_payload):
        ticket = await assigned_ticket(service, users, mis_payload)
        await service.assign_user(ticket.id, users.developer.id, users.mis_head.id)
        await service.assign_user(ticket.id, users.technical.id, users.mis_head.id)
        before = len(session.execute(
            select(NotificationModel).where(NotificationModel.type == NotificationType.NOTE_ADDED)
        ).scalars().all())

        note = await service.add_note(ticket.id, users.developer.id, "Needs DB access", is_internal=True)

        assert note.is_internal is True
        received = {
            key: len(notifications_for(session, getattr(users, key), NotificationType.NOTE_ADDED))
            for key in ["mis_head", "technical", "developer", "requester", "admin", "secretary", "director"]
        }
        assert received == {
            "mis_head": 1,
            "technical": 1,
            "developer": 0,
            "requester": 0,
            "admin": 1,
            "secretary": 1,
            "director": 0,
        }
        after = session.execute(
            select(NotificationModel).where(NotificationModel.type == NotificationType.NOTE_ADDED)
        ).scalars().all()
        assert len(after) - before == 4

    @pytest.mark.asyncio
    async def test_public_note_by_creator_reaches_all_assignees(self, session, service, users, mis_payload):
        ticket = await assigned_ticket(service, users, mis_payload)
        await service.assign_user(ticket.id, users.developer.id, users.mis_head.id)

        await service.add_note(ticket.id, users.requester.id, "Any update?")

        assert notifications_for(session, users.mis_head, NotificationType.NOTE_ADDED)
        assert notifications_for(session, users.developer, NotificationType.NOTE_ADDED)
        assert notifications_for(session, users.requester, NotificationType.NOTE_ADDED) == []

    @pytest.mark.asyncio
    async def test_public_note_by_staff_reaches_creator(self, session, service, users, mis_payload):
        ticket = await assigned_ticket(service, users, mis_payload)

        await service.add_note(ticket.id, users.mis_head.id, "We will visit on Monday")

        assert notifications_for(session, users.requester, NotificationType.NOTE_ADDED)

    @pytest.mark.asyncio
    async def test_note_by_secretary_skips_author(self, session, service, users, mis_payload):
        ticket = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)

        await service.add_note(ticket.id, users.secretary.id, "Please attach a screenshot")

        assert notifications_for(session, users.secretary, NotificationType.NOTE_ADDED) == []
        assert notifications_for(session, users.admin, NotificationType.NOTE_ADDED)

    @pytest.mark.asyncio
    async def test_empty_note_rejected(self, service, users, mis_payload):
        ticket = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)

        with pytest.raises(ValidationError):
            await service.add_note(ticket.id, users.requester.id, "   ")

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_operation(
        self, session, service, users, mis_payload, monkeypatch, caplog
    ):
        ticket = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)

        async def broken(*args, **kwargs):
            raise RuntimeError("mail relay down")

        monkeypatch.setattr(service.notifications, "notify_ticket_reviewed", broken)

        ticket = await service.review_as_secretary(ticket.id, users.secretary.id)

        assert ticket.status == TicketStatus.REVIEWED
        assert f"Failed to send notification for ticket {ticket.id}" in caplog.text
        assert notifications_for(session, users.director, NotificationType.TICKET_REVIEWED)


class TestWorklists:
    """Read queries."""

    @pytest.mark.asyncio
    async def test_role_worklists(self, service, users, mis_payload, its_payload):
        for_review = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)
        reviewed = await service.create_ticket(TicketType.ITS, its_payload, users.other_user.id)
        await service.review_as_secretary(reviewed.id, users.secretary.id)
        assigned = await assigned_ticket(service, users, mis_payload)

        assert [t.id for t in await service.get_tickets_for_secretary_review()] == [for_review.id]
        assert [t.id for t in await service.get_tickets_pending_director_approval()] == [reviewed.id]
        assert {t.id for t in await service.get_all_secretary_tickets()} == {for_review.id, reviewed.id}
        assert [t.id for t in await service.get_office_head_tickets("MIS_HEAD")] == [assigned.id]
        assert await service.get_office_head_tickets("ITS_HEAD") == []
        assert [t.id for t in await service.get_user_tickets(users.mis_head.id)] == [assigned.id]
        assert {t.id for t in await service.get_user_created_tickets(users.requester.id)} == {
            for_review.id, assigned.id
        }

        with pytest.raises(ForbiddenError):
            await service.get_office_head_tickets("USER")

    @pytest.mark.asyncio
    async def test_filters_and_lookup_by_number(self, service, users, mis_payload, its_payload):
        mis = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)
        its = await service.create_ticket(TicketType.ITS, its_payload, users.requester.id)

        assert [t.id for t in await service.get_tickets(ticket_type=TicketType.ITS)] == [its.id]
        assert [t.id for t in await service.get_tickets(status=TicketStatus.FOR_REVIEW)] == [its.id, mis.id]
        assert (await service.get_ticket_by_number(mis.ticket_number)).id == mis.id

        with pytest.raises(NotFoundError):
            await service.get_ticket_by_number("MIS-19990101-001")

    @pytest.mark.asyncio
    async def test_sla_metrics(self, session, service, users, mis_payload):
        now = datetime(2026, 10, 19, 12, 0)
        due_dates = [
            now - timedelta(hours=1),
            now + timedelta(hours=2),
            now + timedelta(days=2),
            now + timedelta(days=5),
        ]
        for due in due_dates:
            ticket = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)
            ticket.due_date = due
        closed = await service.create_ticket(TicketType.MIS, mis_payload, users.requester.id)
        closed.due_date = now - timedelta(hours=1)
        closed.status = TicketStatus.CANCELLED
        session.commit()

        metrics = service.repository.sla_metrics(now=now)

        assert metrics == {"overdue": 1, "due_today": 2, "due_soon": 2}
        assert set(await service.get_sla_metrics()) == {"overdue", "due_today", "due_soon"}
