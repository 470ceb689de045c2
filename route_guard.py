"""
Route guard - decides what a protected view renders for a given client auth state

Mirrors the frontend's ProtectedRoute component so the same rules can be
served to and tested against the API's notion of auth state. The decision is
pure: it owns no state and performs no I/O.
"""
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel

from config.settings import ROLE_ADMIN

LOGIN_PATH = "/login"
DEFAULT_PATH = "/dashboard"


class AuthUser(BaseModel):
    fullname: Optional[str] = None
    email: str
    role: str


class AuthState(BaseModel):
    """Client-held auth state, as kept by the frontend auth store."""
    user: Optional[AuthUser] = None
    is_authenticated: bool = False
    is_loading: bool = False


class RenderLoading(BaseModel):
    kind: str = "loading"


class RenderChildren(BaseModel):
    kind: str = "children"


class Redirect(BaseModel):
    kind: str = "redirect"
    to: str
    replace: bool = True
    # Navigation state; carries the originating location for post-login return
    state: Optional[Dict[str, Any]] = None


GuardDecision = Union[RenderLoading, RenderChildren, Redirect]


def guard_route(auth_state: AuthState, location: str, require_admin: bool = False) -> GuardDecision:
    """
    Decide what a protected route renders.

    Args:
        auth_state: Current client auth state
        location: Path the user was trying to reach
        require_admin: Whether the subtree needs the admin role

    Returns:
        RenderLoading while auth state is loading, a Redirect to the login view
        (remembering location) when unauthenticated, a Redirect to the default
        view when admin is required and the user is not one, otherwise
        RenderChildren.
    """
    if auth_state.is_loading:
        return RenderLoading()

    if not auth_state.is_authenticated:
        return Redirect(to=LOGIN_PATH, state={"from": location})

    role = auth_state.user.role if auth_state.user else None
    if require_admin and role != ROLE_ADMIN:
        return Redirect(to=DEFAULT_PATH)

    return RenderChildren()


def auth_state_from_status(user: Optional[dict]) -> AuthState:
    """Build the client auth state that follows an /api/auth/status response."""
    if not user:
        return AuthState()
    return AuthState(user=AuthUser(**user), is_authenticated=True)
