"""
API tests for the GraphQL endpoint and health checks.

Requests go through FastAPI's TestClient with the database session
dependency pointed at the in-memory test database.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from src.app import app
from src.database.connection import get_db_session
from src.security.controller import SecurityController
from src.ticket.models import TicketModel, TicketStatus, TicketType
from src.ticket.service import TicketService


TICKET_FIELDS = """
    id ticketNumber controlNumber type status priority slaStatus hoursRemaining
    createdBy { id }
    assignments { user { id role } }
    notes { content isInternal }
    statusHistory { fromStatus toStatus comment }
"""

CREATE_MIS = """
mutation Create($input: CreateMISTicketInput!) {
  createMISTicket(input: $input) { %s }
}
""" % TICKET_FIELDS


class TestGraphQLAPI:
    """End-to-end requests against the GraphQL schema."""

    @pytest.fixture(autouse=True)
    def api_client(self, session, users):
        def override_session():
            yield session

        app.dependency_overrides[get_db_session] = override_session
        self.session = session
        self.users = users
        self.client = TestClient(app)
        self.tokens = SecurityController()
        yield
        app.dependency_overrides.clear()

    def graphql(self, query, variables=None, user=None, token=None):
        headers = {}
        if user is not None:
            token = self.tokens.create_access_token(user.id)
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"
        response = self.client.post("/graphql", json={"query": query, "variables": variables or {}}, headers=headers)
        assert response.status_code == 200
        return response.json()

    def error_code(self, body):
        return body["errors"][0]["extensions"]["code"]

    def create_ticket(self, user=None, **overrides):
        payload = {
            "title": "Update faculty page",
            "description": "The faculty directory page lists outdated contact information.",
            "category": "WEBSITE",
            "websiteUpdate": True,
            **overrides,
        }
        body = self.graphql(CREATE_MIS, {"input": payload}, user=user or self.users.requester)
        assert "errors" not in body, body
        return body["data"]["createMISTicket"]

    def test_requires_authentication(self):
        body = self.graphql("{ myTickets { id } }")

        assert self.error_code(body) == "UNAUTHORIZED"
        assert body["errors"][0]["extensions"]["statusCode"] == 401

    def test_invalid_token_is_unauthenticated(self):
        body = self.graphql("{ myTickets { id } }", token="not-a-jwt")

        assert self.error_code(body) == "UNAUTHORIZED"

    def test_inactive_user_is_unauthenticated(self):
        self.users.requester.is_active = False
        self.session.commit()

        body = self.graphql("{ myTickets { id } }", user=self.users.requester)

        assert self.error_code(body) == "UNAUTHORIZED"

    def test_create_ticket(self):
        ticket = self.create_ticket(priority="HIGH")

        assert ticket["ticketNumber"].startswith("MIS-")
        assert ticket["status"] == "FOR_REVIEW"
        assert ticket["priority"] == "HIGH"
        assert ticket["slaStatus"] == "on-track"
        assert ticket["hoursRemaining"] in (23, 24)
        assert ticket["createdBy"]["id"] == str(self.users.requester.id)
        assert ticket["statusHistory"] == [
            {"fromStatus": None, "toStatus": "FOR_REVIEW", "comment": "Ticket created"}
        ]

    def test_create_ticket_validation_error(self):
        body = self.graphql(
            CREATE_MIS,
            {"input": {"title": "Hi", "description": "The faculty page is outdated.", "category": "WEBSITE"}},
            user=self.users.requester,
        )

        assert self.error_code(body) == "VALIDATION_ERROR"
        assert body["errors"][0]["extensions"]["details"][0]["field"] == "title"

    def test_approval_chain_over_api(self):
        ticket = self.create_ticket()

        review = self.graphql(
            "mutation($id: ID!) { reviewTicketAsSecretary(id: $id) { status } }",
            {"id": ticket["id"]}, user=self.users.secretary,
        )
        assert review["data"]["reviewTicketAsSecretary"]["status"] == "REVIEWED"

        approve = self.graphql(
            "mutation($id: ID!) { approveTicketAsDirector(id: $id) { status assignments { user { id role } } } }",
            {"id": ticket["id"]}, user=self.users.director,
        )
        approved = approve["data"]["approveTicketAsDirector"]
        assert approved["status"] == "ASSIGNED"
        assert approved["assignments"] == [{"user": {"id": str(self.users.mis_head.id), "role": "MIS_HEAD"}}]

        worklist = self.graphql("{ officeHeadTickets { id } }", user=self.users.mis_head)
        assert worklist["data"]["officeHeadTickets"] == [{"id": ticket["id"]}]

    def test_role_guard_rejects_before_workflow(self):
        ticket = self.create_ticket()

        body = self.graphql(
            "mutation($id: ID!) { approveTicketAsDirector(id: $id) { status } }",
            {"id": ticket["id"]}, user=self.users.requester,
        )

        assert self.error_code(body) == "FORBIDDEN"
        stored = self.session.get(TicketModel, int(ticket["id"]))
        self.session.refresh(stored)
        assert stored.status == TicketStatus.FOR_REVIEW

    def test_invalid_transition_is_reported(self):
        ticket = self.create_ticket()

        body = self.graphql(
            "mutation($id: ID!) { approveTicketAsDirector(id: $id) { status } }",
            {"id": ticket["id"]}, user=self.users.director,
        )

        assert self.error_code(body) == "INVALID_TRANSITION"
        assert body["errors"][0]["extensions"]["statusCode"] == 409

    def test_blank_rejection_reason(self):
        ticket = self.create_ticket()

        body = self.graphql(
            'mutation($id: ID!) { rejectTicketAsSecretary(id: $id, reason: "   ") { status } }',
            {"id": ticket["id"]}, user=self.users.secretary,
        )

        assert self.error_code(body) == "VALIDATION_ERROR"

    def test_unknown_ticket(self):
        body = self.graphql('{ ticket(id: "4242") { id } }', user=self.users.admin)

        assert self.error_code(body) == "NOT_FOUND"

    def test_internal_notes_hidden_from_requester(self):
        service = TicketService(self.session)
        ticket = asyncio.run(service.create_ticket(
            TicketType.MIS,
            {
                "title": "Update faculty page",
                "description": "The faculty directory page lists outdated contact information.",
                "category": "WEBSITE",
            },
            self.users.requester.id,
        ))
        asyncio.run(service.add_note(ticket.id, self.users.secretary.id, "Checked with HR", is_internal=True))
        asyncio.run(service.add_note(ticket.id, self.users.secretary.id, "We are on it"))

        query = "query($id: ID!) { ticket(id: $id) { notes { content isInternal } } }"
        as_requester = self.graphql(query, {"id": str(ticket.id)}, user=self.users.requester)
        as_admin = self.graphql(query, {"id": str(ticket.id)}, user=self.users.admin)

        assert as_requester["data"]["ticket"]["notes"] == [{"content": "We are on it", "isInternal": False}]
        assert len(as_admin["data"]["ticket"]["notes"]) == 2

    def test_notifications_over_api(self):
        self.create_ticket()

        listing = self.graphql(
            "{ myNotifications { id type isRead metadata } unreadNotificationCount }",
            user=self.users.secretary,
        )["data"]
        assert listing["unreadNotificationCount"] == 1
        notification = listing["myNotifications"][0]
        assert notification["type"] == "TICKET_CREATED"
        assert notification["metadata"]["ticketType"] == "MIS"

        mark = "mutation($id: ID!) { markNotificationAsRead(id: $id) { isRead } }"
        foreign = self.graphql(mark, {"id": notification["id"]}, user=self.users.requester)
        assert self.error_code(foreign) == "NOT_FOUND"

        own = self.graphql(mark, {"id": notification["id"]}, user=self.users.secretary)
        assert own["data"]["markNotificationAsRead"]["isRead"] is True

        remaining = self.graphql("{ unreadNotificationCount }", user=self.users.secretary)
        assert remaining["data"]["unreadNotificationCount"] == 0

    def test_unexpected_errors_are_masked(self, monkeypatch):
        async def broken(self):
            raise RuntimeError("database exploded")

        monkeypatch.setattr(TicketService, "get_sla_metrics", broken)

        body = self.graphql("{ slaMetrics { overdue dueToday dueSoon } }", user=self.users.admin)

        assert self.error_code(body) == "INTERNAL_SERVER_ERROR"
        assert "database exploded" not in body["errors"][0]["message"]

    def test_health(self, monkeypatch):
        monkeypatch.setattr("src.app.test_database_connection", lambda: True)
        assert self.client.get("/health").status_code == 200

        monkeypatch.setattr("src.app.test_database_connection", lambda: False)
        response = self.client.get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
