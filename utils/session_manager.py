"""
Session Manager - Maps opaque session tokens to the logged-in user

Sessions are records with an explicit expiry timestamp that is checked on every
lookup. The store is built once at startup (see build_session_store) and
injected into handlers; Redis is used when REDIS_URL is configured so sessions
survive restarts and are shared across instances.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import redis
from fastapi import Request
from pydantic import BaseModel

from auth_utils import generate_session_token
from config.settings import Settings

logger = logging.getLogger(__name__)

REDIS_KEY_PREFIX = "session:"

# Token generation is retried on collision; this bounds the loop
MAX_TOKEN_ATTEMPTS = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionData(BaseModel):
    user_id: int
    email: str
    role: str
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or _utcnow()) >= self.expires_at


class SessionStore:
    """
    Base class for session stores.
    Subclasses implement the raw _load/_save/_remove primitives.
    """

    def __init__(self, ttl_seconds: int):
        self.ttl_seconds = ttl_seconds

    def _load(self, token: str) -> Optional[SessionData]:
        raise NotImplementedError

    def _save(self, token: str, data: SessionData) -> None:
        raise NotImplementedError

    def _remove(self, token: str) -> bool:
        raise NotImplementedError

    def create(self, user_id: int, email: str, role: str) -> str:
        """
        Create a session for a user and return its token.

        Raises:
            RuntimeError: If no unused token could be generated
        """
        data = SessionData(
            user_id=user_id,
            email=email,
            role=role,
            expires_at=_utcnow() + timedelta(seconds=self.ttl_seconds),
        )
        for _ in range(MAX_TOKEN_ATTEMPTS):
            token = generate_session_token()
            if self._load(token) is None:
                self._save(token, data)
                return token
        raise RuntimeError("Could not generate a unique session token")

    def get(self, token: Optional[str]) -> Optional[SessionData]:
        """
        Look up a session. Expired sessions are evicted and reported as missing.
        """
        if not token:
            return None
        data = self._load(token)
        if data is None:
            return None
        if data.is_expired():
            logger.info("Session expired for user %s", data.user_id)
            self._remove(token)
            return None
        return data

    def delete(self, token: Optional[str]) -> bool:
        """Remove a session. Returns True if one was removed."""
        if not token:
            return False
        return self._remove(token)


class InMemorySessionStore(SessionStore):
    """Process-local store; sessions are lost on restart."""

    def __init__(self, ttl_seconds: int):
        super().__init__(ttl_seconds)
        self._sessions: Dict[str, SessionData] = {}

    def _load(self, token: str) -> Optional[SessionData]:
        return self._sessions.get(token)

    def _save(self, token: str, data: SessionData) -> None:
        self._sessions[token] = data

    def _remove(self, token: str) -> bool:
        return self._sessions.pop(token, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, token: str) -> bool:
        return token in self._sessions


class RedisSessionStore(SessionStore):
    """Redis-backed store; entries also carry a Redis TTL."""

    def __init__(self, client: redis.Redis, ttl_seconds: int):
        super().__init__(ttl_seconds)
        self.client = client

    def _key(self, token: str) -> str:
        return f"{REDIS_KEY_PREFIX}{token}"

    def _load(self, token: str) -> Optional[SessionData]:
        raw = self.client.get(self._key(token))
        if raw is None:
            return None
        try:
            return SessionData.model_validate(json.loads(raw))
        except (ValueError, TypeError) as e:
            logger.warning(f"Discarding unreadable session record: {e}")
            self._remove(token)
            return None

    def _save(self, token: str, data: SessionData) -> None:
        self.client.set(self._key(token), data.model_dump_json(), ex=self.ttl_seconds)

    def _remove(self, token: str) -> bool:
        return bool(self.client.delete(self._key(token)))


def build_session_store(settings: Settings) -> SessionStore:
    """
    Build the session store for this process.

    Uses Redis when REDIS_URL is set and reachable, otherwise falls back to the
    in-memory store.
    """
    ttl = settings.session_ttl_seconds
    if settings.redis_url:
        try:
            client = redis.from_url(settings.redis_url, decode_responses=True)
            client.ping()
            logger.info("Redis connected successfully for sessions")
            return RedisSessionStore(client, ttl)
        except redis.RedisError as e:
            logger.warning(f"Redis connection failed: {e}. Falling back to in-memory sessions.")
    else:
        logger.info("REDIS_URL not set. Using in-memory sessions.")
    return InMemorySessionStore(ttl)


def get_session_store(request: Request) -> SessionStore:
    """Dependency returning the store attached to the app at startup."""
    return request.app.state.session_store
