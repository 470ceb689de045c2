"""
Auth Service for registration, login, session status and logout
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth_utils import hash_password, verify_password
from crud.user import UserRepository
from utils.session_manager import SessionStore

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base class for authentication failures."""


class ConflictError(AuthError):
    """A user with the same email already exists."""


class UnauthorizedError(AuthError):
    """Bad credentials, missing or unknown session, or deleted user."""


class AuthService:
    """
    Service implementing the auth operations on top of the User repository
    and the session store.
    """

    def __init__(self, db: AsyncSession, sessions: SessionStore):
        """
        Args:
            db: AsyncSession instance for database operations
            sessions: Session store built at startup
        """
        self.db = db
        self.user_repo = UserRepository(db)
        self.sessions = sessions

    async def register(self, fullname: Optional[str], email: str, password: str) -> None:
        """
        Create a user account.

        Raises:
            ConflictError: If the email is already registered
        """
        existing_user = await self.user_repo.get_user_by_email(email)
        if existing_user:
            raise ConflictError("Email already exists")

        try:
            await self.user_repo.create_user({
                "fullname": fullname,
                "email": email,
                "hashed_password": hash_password(password),
            })
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            await self.db.rollback()
            raise ConflictError("Email already exists")
        logger.info(f"Registered user {email}")

    async def login(self, email: str, password: str) -> tuple[str, dict]:
        """
        Check credentials and open a session.

        Returns:
            Tuple of (session_token, public user dict)

        Raises:
            UnauthorizedError: If the email is unknown or the password is wrong
        """
        user = await self.user_repo.get_user_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            logger.info(f"Failed login for {email}")
            raise UnauthorizedError("Invalid credentials")

        token = self.sessions.create(user.id, user.email, user.role)
        logger.info(f"User {user.id} logged in")
        return token, user.public_dict()

    async def status(self, token: Optional[str]) -> dict:
        """
        Resolve a session token to the current user.

        A session whose user no longer exists is evicted.

        Raises:
            UnauthorizedError: If the session is missing, unknown, expired, or
                its user was deleted
        """
        session = self.sessions.get(token)
        if session is None:
            raise UnauthorizedError("Not authenticated")

        user = await self.user_repo.get_user_by_id(session.user_id)
        if user is None:
            self.sessions.delete(token)
            logger.info(f"Evicted session for deleted user {session.user_id}")
            raise UnauthorizedError("User not found")

        return user.public_dict()

    def logout(self, token: Optional[str]) -> None:
        if self.sessions.delete(token):
            logger.info("Session closed")
