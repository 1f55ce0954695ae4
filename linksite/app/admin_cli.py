"""Promote an existing account to admin from the command line.

Used to bootstrap the first admin, since only admins can grant the role
through the API.

    linksite-set-admin you@example.com
"""

import argparse
import asyncio
import sys
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from linksite.app.core.config import settings
from linksite.app.core.logging import get_logger, setup_logging
from linksite.app.db.crud import get_user_by_email, set_admin
from linksite.app.db.init_db import create_all_tables

logger = get_logger(__name__)


class PromoteResult(str, Enum):
    PROMOTED = "promoted"
    ALREADY_ADMIN = "already_admin"
    NOT_FOUND = "not_found"


async def promote_user_by_email(session: AsyncSession, email: str) -> PromoteResult:
    """Set the admin flag on the account registered with ``email``."""
    user = await get_user_by_email(session, email)
    if user is None:
        return PromoteResult.NOT_FOUND
    if user.is_admin:
        return PromoteResult.ALREADY_ADMIN
    await set_admin(session, user, True)
    return PromoteResult.PROMOTED


async def set_first_admin(email: str, database_url: str | None = None) -> PromoteResult:
    engine = create_async_engine(database_url or settings.database_url)
    try:
        await create_all_tables(engine)
        session_maker = async_sessionmaker(engine, expire_on_commit=False)
        async with session_maker() as session:
            result = await promote_user_by_email(session, email)
            await session.commit()
        return result
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Grant the admin role to an existing user")
    parser.add_argument("email", help="Email address the user registered with")
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override DATABASE_URL from the environment/.env",
    )
    args = parser.parse_args(argv)

    setup_logging()
    result = asyncio.run(set_first_admin(args.email, args.database_url))

    if result is PromoteResult.NOT_FOUND:
        logger.error(f"User not found with email: {args.email}")
        return 1
    if result is PromoteResult.ALREADY_ADMIN:
        logger.info("User is already an admin")
    else:
        logger.info("Successfully set user as admin")
    return 0


if __name__ == "__main__":
    sys.exit(main())
