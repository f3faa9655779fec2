"""CLI to create (or promote) an admin user.

Usage:
  poetry run create-admin admin --email admin@example.com
  ADMIN_PASSWORD=... poetry run create-admin admin
"""
import argparse
import getpass
import logging
import os
import sys

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from staking_dashboard.config import Settings, configure_logging
from staking_dashboard.db.sessions import create_db_engine, init_db
from staking_dashboard.services import UserService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Create an admin user, or promote an existing one.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("username", help="Admin username")
    parser.add_argument("--email", default=None, help="Optional email address")
    parser.add_argument(
        "--password",
        default=None,
        help="Password (default: $ADMIN_PASSWORD, else prompt)",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override DATABASE_URL",
    )
    args = parser.parse_args(argv)
    configure_logging()

    password = args.password or os.getenv("ADMIN_PASSWORD") or getpass.getpass("Password: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", file=sys.stderr)
        return 2

    settings = Settings.from_env()
    if args.database_url:
        settings = settings.model_copy(update={"database_url": args.database_url})
    engine = create_db_engine(settings.database_url, echo=settings.sql_echo)
    try:
        init_db(engine)
        with Session(engine) as session:
            user = UserService(settings).create_admin(
                session, args.username, password, email=args.email
            )
    except SQLAlchemyError as exc:
        logger.error("Failed to create admin user: %s", exc)
        return 1
    finally:
        engine.dispose()

    print(f"Admin user ready: {user.username} (id={user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
