"""
Read-only user lookups used by the ticket workflow.
"""

from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.security.models import UserModel, UserRole


class UserRepository:
    """User queries; the workflow never creates or mutates users."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: int) -> Optional[UserModel]:
        return self.session.get(UserModel, user_id)

    def find_by_roles(
        self,
        roles: Iterable[UserRole],
        exclude_user_id: Optional[int] = None,
    ) -> List[UserModel]:
        """Active users holding any of ``roles``, ordered by id."""
        query = select(UserModel).where(
            UserModel.role.in_(list(roles)),
            UserModel.is_active.is_(True),
        )
        if exclude_user_id is not None:
            query = query.where(UserModel.id != exclude_user_id)

        return list(self.session.execute(query.order_by(UserModel.id)).scalars().all())
