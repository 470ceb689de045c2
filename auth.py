"""
Authentication routes and dependencies
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Cookie, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from route_guard import guard_route, auth_state_from_status
from services.auth_service import AuthService, ConflictError, UnauthorizedError
from utils.session_manager import SessionStore, get_session_store
from utils.responses import message_response
from config.settings import settings, IS_PRODUCTION, SESSION_COOKIE_NAME, ROLE_ADMIN

logger = logging.getLogger(__name__)

# Create auth router
auth_router = APIRouter(prefix="/api/auth", tags=["auth"])


# Request models
class RegisterRequest(BaseModel):
    fullname: Optional[str] = None
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
) -> AuthService:
    return AuthService(db, sessions)


def _set_session_cookie(response: JSONResponse, token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="lax",
        max_age=settings.session_ttl_seconds,
    )


@auth_router.post("/register")
async def register(request: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """Create a new user account"""
    try:
        await service.register(request.fullname, request.email, request.password)
    except ConflictError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Registration failed for {request.email}: {e}")
        raise HTTPException(status_code=500, detail=f"Registration failed: {str(e)}")

    return message_response("User created", status=201)


@auth_router.post("/login")
async def login(request: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """Login and receive a session cookie"""
    try:
        token, user = await service.login(request.email, request.password)
    except UnauthorizedError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except Exception as e:
        logger.error(f"Login failed for {request.email}: {e}")
        raise HTTPException(status_code=500, detail=f"Login failed: {str(e)}")

    response = message_response("Login successful", user=user)
    _set_session_cookie(response, token)
    return response


@auth_router.get("/status")
async def status(
    session_id: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
    service: AuthService = Depends(get_auth_service),
):
    """Return the user behind the session cookie"""
    try:
        user = await service.status(session_id)
    except UnauthorizedError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except Exception as e:
        logger.error(f"Status check failed: {e}")
        raise HTTPException(status_code=500, detail=f"Status check failed: {str(e)}")

    return {"user": user}


@auth_router.post("/logout")
async def logout(
    session_id: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
    service: AuthService = Depends(get_auth_service),
):
    """Logout and clear the session cookie. Always succeeds."""
    try:
        service.logout(session_id)
    except Exception as e:
        # The cookie is still cleared; a record left in the store expires on its own
        logger.error(f"Session removal failed during logout: {e}")

    response = message_response("Logged out successfully")
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="lax",
    )
    return response


@auth_router.get("/guard")
async def guard(
    path: str = "/",
    require_admin: bool = Query(False, alias="requireAdmin"),
    session_id: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
    service: AuthService = Depends(get_auth_service),
):
    """Evaluate the route guard for path against this request's session"""
    try:
        user = await service.status(session_id)
    except UnauthorizedError:
        user = None
    decision = guard_route(auth_state_from_status(user), path, require_admin=require_admin)
    return decision.model_dump()


# Dependencies for protected routes
async def get_current_user(
    session_id: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
    service: AuthService = Depends(get_auth_service),
) -> dict:
    """
    Dependency function to get the current authenticated user.

    Raises:
        HTTPException: 401 if the session is missing, unknown or stale
    """
    try:
        return await service.status(session_id)
    except UnauthorizedError as e:
        raise HTTPException(status_code=401, detail=str(e))


async def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """Dependency that additionally requires the admin role."""
    if current_user.get("role") != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user
