"""
Database initialization for the helpdesk workflow.

Creates all tables and seeds one account per role for local development.
"""

import logging
from typing import List, Tuple

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from src.database.connection import db_manager
from src.security.models import UserModel, UserRole
from src.ticket.models import TicketModel
from src.notification.models import NotificationModel

logger = logging.getLogger(__name__)


# (email, name, role) accounts created by seed_default_users
DEFAULT_USERS: List[Tuple[str, str, UserRole]] = [
    ("admin@helpdesk.local", "System Administrator", UserRole.ADMIN),
    ("director@helpdesk.local", "Office Director", UserRole.DIRECTOR),
    ("secretary@helpdesk.local", "Office Secretary", UserRole.SECRETARY),
    ("mis.head@helpdesk.local", "MIS Head", UserRole.MIS_HEAD),
    ("its.head@helpdesk.local", "ITS Head", UserRole.ITS_HEAD),
    ("developer@helpdesk.local", "MIS Developer", UserRole.DEVELOPER),
    ("technical@helpdesk.local", "ITS Technician", UserRole.TECHNICAL),
    ("user@helpdesk.local", "Requesting Employee", UserRole.USER),
]


def create_database_tables() -> bool:
    """Create all database tables using SQLAlchemy."""
    try:
        db_manager.initialize()
        db_manager.create_tables()
        return True

    except Exception as e:
        logger.error(f"Failed to create database tables: {e}")
        return False


def seed_default_users(session: Session) -> List[UserModel]:
    """Create the default accounts that do not exist yet; returns the ones created."""
    existing = set(session.execute(select(UserModel.email)).scalars().all())

    created = []
    for email, name, role in DEFAULT_USERS:
        if email in existing:
            continue
        user = UserModel(email=email, name=name, role=role, is_active=True)
        session.add(user)
        created.append(user)

    session.flush()
    logger.info(f"Seeded {len(created)} default users")
    return created


def test_database_setup() -> bool:
    """Test the database setup by querying each core table."""
    try:
        if not db_manager.test_connection():
            logger.error("Database connection test failed")
            return False

        with db_manager.get_session() as session:
            user_count = session.execute(select(func.count(UserModel.id))).scalar()
            ticket_count = session.execute(select(func.count(TicketModel.id))).scalar()
            notification_count = session.execute(select(func.count(NotificationModel.id))).scalar()

            logger.info(f"Database test successful - Tables exist with counts: "
                        f"users={user_count}, tickets={ticket_count}, "
                        f"notifications={notification_count}")
            return True

    except Exception as e:
        logger.error(f"Database setup test failed: {e}")
        return False


def initialize_database() -> bool:
    """
    Complete database initialization: tables, then a smoke test.

    Returns:
        bool: True if initialization was successful, False otherwise.
    """
    logger.info("Starting database initialization...")

    if not create_database_tables():
        return False

    if not test_database_setup():
        return False

    logger.info("Database initialization completed successfully")
    return True
