"""Operator commands: seed content, reset progress, promote admins, recount paid users.

Usage::

    relohub seed
    relohub reset-progress --yes
    relohub promote-admin someone@example.com
    relohub recount-paid-users
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Awaitable, Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from relohub.auth.plans import recount_paid_users
from relohub.auth.service import get_user_by_email
from relohub.config import get_settings
from relohub.content.seed import seed_default_content
from relohub.database import close_db, get_session_factory, init_db
from relohub.middleware.logging import configure_logging
from relohub.progress.service import ProgressService

logger = structlog.get_logger()


async def seed(db: AsyncSession, _args: argparse.Namespace) -> int:
    created = await seed_default_content(db)
    print(f"Seeded {created} categor{'y' if created == 1 else 'ies'}")  # noqa: T201
    return 0


async def reset_progress(db: AsyncSession, args: argparse.Namespace) -> int:
    if not args.yes:
        print("Refusing to reset all progress without --yes")  # noqa: T201
        return 2
    removed = await ProgressService(db).reset_all()
    print(f"Removed {removed} progress record(s)")  # noqa: T201
    return 0


async def promote_admin(db: AsyncSession, args: argparse.Namespace) -> int:
    user = await get_user_by_email(db, args.email)
    if user is None:
        print(f"No user with email {args.email}")  # noqa: T201
        return 1
    user.role = "admin"
    await db.commit()
    logger.info("user_promoted", user_id=user.id)
    print(f"{user.email} is now an admin")  # noqa: T201
    return 0


async def recount(db: AsyncSession, _args: argparse.Namespace) -> int:
    count = await recount_paid_users(db)
    await db.commit()
    print(f"Paid users: {count}")  # noqa: T201
    return 0


Command = Callable[[AsyncSession, argparse.Namespace], Awaitable[int]]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="relohub", description="Relocation Hub maintenance commands.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("seed", help="Insert default categories and tasks into an empty database.").set_defaults(
        handler=seed,
    )

    reset = sub.add_parser("reset-progress", help="Delete every user's progress record.")
    reset.add_argument("--yes", action="store_true", help="Confirm the reset.")
    reset.set_defaults(handler=reset_progress)

    promote = sub.add_parser("promote-admin", help="Give an existing account the admin role.")
    promote.add_argument("email", type=str.lower)
    promote.set_defaults(handler=promote_admin)

    sub.add_parser("recount-paid-users", help="Rebuild the paid-user counter from user rows.").set_defaults(
        handler=recount,
    )
    return parser


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    await init_db(settings.database_url)
    handler: Command = args.handler
    try:
        async with get_session_factory()() as db:
            return await handler(db, args)
    finally:
        await close_db()


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    configure_logging(settings.log_level, "console")
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
