#!/usr/bin/env python3
"""
IT Helpdesk administration command line tool.

Database setup, development seeding and maintenance jobs that run against
the configured database directly.
"""

import sys
import json
import asyncio
import argparse
import logging
from typing import Any, Dict, List

from src.config.settings import settings
from src.database.connection import db_manager
from src.database.init_db import initialize_database, seed_default_users
from src.notification.service import NotificationService
from src.security.controller import SecurityController
from src.security.repository import UserRepository
from src.ticket.service import TicketService

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def format_table(data: List[Dict], headers: List[str]) -> str:
    """Format rows as a plain text table."""
    if not data:
        return "No data"

    col_widths = {}
    for header in headers:
        col_widths[header] = len(header)
        for row in data:
            value = str(row.get(header, ''))
            col_widths[header] = max(col_widths[header], len(value))

    lines = []

    header_line = " | ".join(header.ljust(col_widths[header]) for header in headers)
    lines.append(header_line)
    lines.append("-" * len(header_line))

    for row in data:
        data_line = " | ".join(str(row.get(header, '')).ljust(col_widths[header]) for header in headers)
        lines.append(data_line)

    return "\n".join(lines)


def format_json(data: Any, indent: int = 2) -> str:
    return json.dumps(data, indent=indent, ensure_ascii=False)


def cmd_init_db(args) -> int:
    if not initialize_database():
        print("Database initialization failed")
        return 1
    print(f"Database initialized at {settings.database.database_url}")
    return 0


def cmd_seed_users(args) -> int:
    db_manager.create_tables()
    with db_manager.get_session() as session:
        created = seed_default_users(session)
        rows = [
            {"id": user.id, "email": user.email, "name": user.name, "role": user.role.value}
            for user in created
        ]

    if args.format == "json":
        print(format_json(rows))
    elif rows:
        print(format_table(rows, ["id", "email", "name", "role"]))
    else:
        print("All default users already exist")
    return 0


def cmd_cleanup_notifications(args) -> int:
    days = args.days if args.days is not None else settings.workflow.notification_retention_days
    with db_manager.get_session() as session:
        deleted = asyncio.run(NotificationService(session).cleanup_old_notifications(days))

    if args.format == "json":
        print(format_json({"deleted": deleted, "olderThanDays": days}))
    else:
        print(f"Deleted {deleted} read notifications older than {days} days")
    return 0


def cmd_sla_metrics(args) -> int:
    with db_manager.get_session() as session:
        metrics = asyncio.run(TicketService(session).get_sla_metrics())

    if args.format == "json":
        print(format_json(metrics))
    else:
        print("SLA metrics:")
        print(f"  Overdue:   {metrics['overdue']}")
        print(f"  Due today: {metrics['due_today']}")
        print(f"  Due soon:  {metrics['due_soon']}")
    return 0


def cmd_token(args) -> int:
    with db_manager.get_session() as session:
        user = UserRepository(session).get(args.user_id)
        if user is None or not user.is_active:
            print(f"No active user with id {args.user_id}")
            return 1
        token = SecurityController().create_access_token(user.id)

    if args.format == "json":
        print(format_json({"userId": args.user_id, "token": token}))
    else:
        print(token)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="IT Helpdesk administration tool")
    parser.add_argument("--format", choices=["table", "json"], default="table", help="Output format")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create database tables")
    subparsers.add_parser("seed-users", help="Create one default account per role")

    cleanup_parser = subparsers.add_parser("cleanup-notifications", help="Delete old read notifications")
    cleanup_parser.add_argument("--days", type=int, default=None, help="Retention period in days")

    subparsers.add_parser("sla-metrics", help="Show overdue and upcoming ticket counts")

    token_parser = subparsers.add_parser("token", help="Issue an access token for a user")
    token_parser.add_argument("user_id", type=int, help="User id")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "init-db": cmd_init_db,
        "seed-users": cmd_seed_users,
        "cleanup-notifications": cmd_cleanup_notifications,
        "sla-metrics": cmd_sla_metrics,
        "token": cmd_token,
    }

    try:
        return commands[args.command](args)
    except KeyboardInterrupt:
        print("\nCancelled")
        return 1
    except Exception as e:
        logger.error(f"Command {args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
