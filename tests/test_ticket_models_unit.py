"""
Unit tests for ticket request validation and SLA configuration.
"""

import pytest
from datetime import datetime, timedelta
from pydantic import ValidationError as PydanticValidationError

from src.ticket.models import (
    CreateMISTicketRequest, CreateITSTicketRequest, SLAConfig,
    TicketPriority, TicketType, MISCategory,
)


class TestCreateTicketRequests:
    """Payload validation for ticket submission."""

    def test_mis_request_defaults(self):
        request = CreateMISTicketRequest(
            title="New intranet page",
            description="Please add a page for the HR forms.",
            category="SOFTWARE",
        )

        assert request.priority == TicketPriority.MEDIUM
        assert request.category == MISCategory.SOFTWARE
        assert request.software_install is False
        assert request.estimated_duration is None

    def test_title_and_description_are_trimmed(self):
        request = CreateITSTicketRequest(
            title="   Broken mouse   ",
            description="   Mouse stopped responding.   ",
        )

        assert request.title == "Broken mouse"
        assert request.description == "Mouse stopped responding."

    def test_short_title_after_trim_rejected(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            CreateITSTicketRequest(title="  abc   ", description="A sufficiently long description")

        assert exc_info.value.errors()[0]["loc"] == ("title",)

    def test_short_description_rejected(self):
        with pytest.raises(PydanticValidationError):
            CreateITSTicketRequest(title="Network down", description="  short   ")

    def test_mis_request_requires_category(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            CreateMISTicketRequest(title="Website fix", description="The home page banner is broken.")

        assert any(error["loc"] == ("category",) for error in exc_info.value.errors())

    def test_null_priority_falls_back_to_medium(self):
        request = CreateITSTicketRequest(
            title="Laptop upgrade",
            description="Need more memory for the design laptop.",
            priority=None,
        )

        assert request.priority == TicketPriority.MEDIUM

    def test_estimated_duration_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            CreateITSTicketRequest(
                title="Laptop upgrade",
                description="Need more memory for the design laptop.",
                estimated_duration=0,
            )


class TestSLAConfig:
    """SLA due dates, durations and status."""

    @pytest.mark.parametrize("priority,hours", [
        (TicketPriority.CRITICAL, 4),
        (TicketPriority.HIGH, 24),
        (TicketPriority.MEDIUM, 72),
        (TicketPriority.LOW, 168),
    ])
    def test_due_date_by_priority(self, priority, hours):
        created_at = datetime(2026, 10, 19, 9, 30)

        assert SLAConfig.get_due_date(priority, created_at) == created_at + timedelta(hours=hours)

    def test_estimated_duration_table(self):
        assert SLAConfig.get_estimated_duration(TicketType.MIS, TicketPriority.CRITICAL) == 3
        assert SLAConfig.get_estimated_duration(TicketType.MIS, TicketPriority.LOW) == 24
        assert SLAConfig.get_estimated_duration(TicketType.ITS, TicketPriority.HIGH) == 4
        assert SLAConfig.get_estimated_duration(TicketType.ITS, TicketPriority.MEDIUM) == 8

    def test_time_remaining(self):
        now = datetime(2026, 10, 19, 12, 0)

        assert SLAConfig.get_time_remaining(now + timedelta(hours=10, minutes=30), now) == 10
        assert SLAConfig.get_time_remaining(now - timedelta(hours=2), now) == -2
        assert SLAConfig.get_time_remaining(None, now) is None

    def test_sla_status(self):
        now = datetime(2026, 10, 19, 12, 0)

        assert SLAConfig.get_sla_status(now + timedelta(hours=48), now) == "on-track"
        assert SLAConfig.get_sla_status(now + timedelta(hours=3), now) == "at-risk"
        assert SLAConfig.get_sla_status(now - timedelta(hours=1), now) == "overdue"
