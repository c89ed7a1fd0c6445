"""
Per-request GraphQL context.

Every request gets its own session, the resolved caller and the workflow
services built around that session.
"""

import logging
from typing import Iterable, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from strawberry.fastapi import BaseContext

from src.database.connection import get_db_session
from src.notification.service import NotificationService
from src.security.controller import SecurityController
from src.security.models import UserModel, UserRole
from src.ticket.exceptions import TicketError, ForbiddenError
from src.ticket.service import TicketService

logger = logging.getLogger(__name__)


class UnauthorizedError(TicketError):
    code = "UNAUTHORIZED"
    status_code = 401


class RequestContext(BaseContext):
    """Session, caller and services for one GraphQL request."""

    def __init__(self, session: Session, current_user: Optional[UserModel]):
        super().__init__()
        self.session = session
        self.current_user = current_user
        self.notifications = NotificationService(session)
        self.tickets = TicketService(session, notification_service=self.notifications)

    def require_user(self) -> UserModel:
        if self.current_user is None:
            raise UnauthorizedError("Authentication required")
        return self.current_user

    def require_role(self, roles: Optional[Iterable[UserRole]] = None) -> UserModel:
        """Authenticated caller whose role is in ``roles`` (any role when None)."""
        user = self.require_user()
        if roles is not None:
            allowed = list(roles)
            if user.role not in allowed:
                logger.warning(f"User {user.id} with role {user.role.value} denied; requires one of {allowed}")
                raise ForbiddenError(
                    "You do not have permission to perform this action",
                    details={"requiredRoles": [role.value for role in allowed]},
                )
        return user


security_controller = SecurityController()


async def get_context(request: Request, session: Session = Depends(get_db_session)) -> RequestContext:
    """FastAPI dependency building the GraphQL context."""
    user = security_controller.resolve_current_user(session, request.headers.get("Authorization"))
    return RequestContext(session, user)
