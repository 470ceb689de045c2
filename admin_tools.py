"""
Admin Tools - Create the initial administrator account

Usage:
    python admin_tools.py --email admin@example.edu --password 'S3cret!' [--fullname Administrator]
"""
import argparse
import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from auth_utils import hash_password
from crud.user import UserRepository
from database import AsyncSessionLocal, init_db
from config.settings import ROLE_ADMIN

logger = logging.getLogger(__name__)


async def create_admin(db: AsyncSession, email: str, password: str, fullname: str = "Administrator") -> bool:
    """
    Create an admin user unless one with this email already exists.

    Returns:
        True if a user was created, False if the email was already taken
    """
    user_repo = UserRepository(db)
    if await user_repo.get_user_by_email(email):
        logger.info(f"Admin user already exists: {email}")
        return False

    await user_repo.create_user({
        "fullname": fullname,
        "email": email,
        "hashed_password": hash_password(password),
        "role": ROLE_ADMIN,
    })
    logger.info(f"Admin user created: {email}")
    return True


async def _run(email: str, password: str, fullname: str) -> bool:
    await init_db()
    async with AsyncSessionLocal() as session:
        created = await create_admin(session, email, password, fullname)
        await session.commit()
    return created


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Create the administrator account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--fullname", default="Administrator")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    created = asyncio.run(_run(args.email, args.password, args.fullname))
    print("Admin user created" if created else "Admin user already exists")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
