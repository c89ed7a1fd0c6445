"""
Security Controller for the helpdesk workflow.

Resolves a request's bearer token into the acting user. Token issuance
lives here so local tooling and tests can mint credentials.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

import jwt
from sqlalchemy.orm import Session

from src.config.settings import settings
from src.security.models import UserModel
from src.security.repository import UserRepository

logger = logging.getLogger(__name__)


class SecurityController:
    """
    Identity resolution for API requests.

    Tokens are HS256 JWTs whose ``sub`` claim carries the numeric user id.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        expire_minutes: Optional[int] = None,
    ):
        self.secret_key = secret_key or settings.security.jwt_secret_key
        self.algorithm = algorithm or settings.security.jwt_algorithm
        self.expire_minutes = expire_minutes or settings.security.jwt_expire_minutes

    def create_access_token(self, user_id: int) -> str:
        """Create a JWT access token for a user."""
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.expire_minutes)
        payload = {
            "sub": str(user_id),
            "exp": expire,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Verify and decode a JWT token."""
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired access token")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected invalid access token: {e}")
            return None

    def resolve_current_user(self, db: Session, authorization: Optional[str]) -> Optional[UserModel]:
        """Turn an ``Authorization: Bearer ...`` header into an active user."""
        if not authorization or not authorization.startswith("Bearer "):
            return None

        payload = self.verify_token(authorization[len("Bearer "):].strip())
        if not payload or "sub" not in payload:
            return None

        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            return None

        user = UserRepository(db).get(user_id)
        if user is None or not user.is_active:
            return None
        return user
