"""
Shared fixtures: an in-memory SQLite database with one user per role.
"""

from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from src.database.connection import Base
from src.security.models import UserModel, UserRole

# Register every table on the declarative base
import src.ticket.models  # noqa: F401
import src.notification.models  # noqa: F401


def create_test_session() -> Session:
    """Fresh in-memory database and session, usable outside pytest fixtures."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, expire_on_commit=False)()


def create_test_users(session: Session) -> SimpleNamespace:
    """One active user per workflow role plus a second requester."""
    specs = {
        "admin": ("admin@example.com", "Ada Admin", UserRole.ADMIN),
        "director": ("director@example.com", "Dana Director", UserRole.DIRECTOR),
        "secretary": ("secretary@example.com", "Sam Secretary", UserRole.SECRETARY),
        "mis_head": ("mis.head@example.com", "Morgan MIS", UserRole.MIS_HEAD),
        "its_head": ("its.head@example.com", "Ira ITS", UserRole.ITS_HEAD),
        "developer": ("dev@example.com", "Devon Developer", UserRole.DEVELOPER),
        "technical": ("tech@example.com", "Toni Technical", UserRole.TECHNICAL),
        "requester": ("requester@example.com", "Riley Requester", UserRole.USER),
        "other_user": ("other@example.com", "Oakley Other", UserRole.USER),
    }
    users = {}
    for key, (email, name, role) in specs.items():
        user = UserModel(email=email, name=name, role=role, is_active=True)
        session.add(user)
        users[key] = user
    session.commit()
    return SimpleNamespace(**users)


@pytest.fixture
def session():
    db = create_test_session()
    try:
        yield db
    finally:
        db.close()
        db.get_bind().dispose()


@pytest.fixture
def users(session):
    return create_test_users(session)


@pytest.fixture
def mis_payload():
    return {
        "title": "Update faculty page",
        "description": "The faculty directory page lists outdated contact information.",
        "category": "WEBSITE",
        "website_update": True,
    }


@pytest.fixture
def its_payload():
    return {
        "title": "Printer not working",
        "description": "The second floor printer jams on every print job.",
        "priority": "HIGH",
        "maintenance_printer": True,
    }
