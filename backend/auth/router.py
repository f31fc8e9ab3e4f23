# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – register, login, logout, current user, password reset.

Security notes
--------------
* Login returns the *same* error whether the username doesn't exist or the
  password is wrong.  This prevents user-enumeration attacks.
* forgot-password returns the same message whether or not the email is
  registered, for the same reason.
* The session is a signed JWT in an HttpOnly cookie.  Registration marks the
  session as "new user" so the client can steer toward onboarding; the flag
  is not stored on the user.
"""

from fastapi import APIRouter, Depends, Query, Response, status

from core.config import settings
from core.dependencies import UserManagerDep
from core.logger import logger
from core.security import (
    clear_session_cookie,
    create_session_token,
    get_current_user,
    get_session_claims,
    set_session_cookie,
)
from models.user import User
from auth.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    PublicUser,
    RegisterRequest,
    ResetPasswordRequest,
    SessionUserResponse,
    SuccessResponse,
)

router = APIRouter(prefix="/api", tags=["auth"])

# Same answer for known and unknown emails
_RESET_REQUESTED = "If an account with that email exists, a password reset link has been sent."


def _session_user(user: User, new_user: bool = False) -> SessionUserResponse:
    return SessionUserResponse(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        email=user.email,
        role=user.role,
        is_new_user=new_user,
    )


# ---------------------------------------------------------------------------
# POST /api/register
# ---------------------------------------------------------------------------


@router.post("/register", response_model=SessionUserResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, response: Response, users: UserManagerDep):
    """Create an account and open a session for it."""
    user = users.register(body.username, body.password, body.full_name, body.email)
    set_session_cookie(response, create_session_token(user, new_user=True))
    return _session_user(user, new_user=True)


# ---------------------------------------------------------------------------
# POST /api/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=SessionUserResponse)
def login(body: LoginRequest, response: Response, users: UserManagerDep):
    """Authenticate and set the session cookie."""
    user = users.authenticate(body.username, body.password)
    set_session_cookie(response, create_session_token(user))
    return _session_user(user)


# ---------------------------------------------------------------------------
# POST /api/logout
# ---------------------------------------------------------------------------


@router.post("/logout", response_model=SuccessResponse)
def logout(response: Response):
    """
    Drop the session cookie.  Sessions are stateless JWTs, so a copy of the
    token used as a bearer stays valid until its ``exp``
    (``SESSION_EXPIRE_MINUTES``); no server-side revocation list is kept.
    """
    clear_session_cookie(response)
    return SuccessResponse()


# ---------------------------------------------------------------------------
# GET /api/user
# ---------------------------------------------------------------------------


@router.get("/user", response_model=SessionUserResponse)
def me(
    claims: dict = Depends(get_session_claims),
    current_user: User = Depends(get_current_user),
):
    """Return the authenticated user's profile (no secrets)."""
    return _session_user(current_user, new_user=bool(claims.get("new_user")))


# ---------------------------------------------------------------------------
# GET /api/user/find-by-email  – resolve an invitee before adding them
# ---------------------------------------------------------------------------


@router.get("/user/find-by-email", response_model=PublicUser)
def find_by_email(
    users: UserManagerDep,
    email: str = Query(..., min_length=3),
    current_user: User = Depends(get_current_user),
):
    return users.get_by_email(email)


# ---------------------------------------------------------------------------
# POST /api/forgot-password
# ---------------------------------------------------------------------------


@router.post("/forgot-password", response_model=MessageResponse, response_model_exclude_none=True)
def forgot_password(body: ForgotPasswordRequest, users: UserManagerDep):
    """
    Issue a reset token when the email is registered.  The response is the
    same either way.  No mailer is wired up; with EXPOSE_RESET_TOKEN enabled
    the token is echoed back for development.
    """
    token = users.request_password_reset(body.email)
    if token and settings.expose_reset_token:
        logger.warning("EXPOSE_RESET_TOKEN is enabled – returning reset token in response")
        return MessageResponse(message=_RESET_REQUESTED, token=token)
    return MessageResponse(message=_RESET_REQUESTED)


# ---------------------------------------------------------------------------
# POST /api/reset-password
# ---------------------------------------------------------------------------


@router.post("/reset-password", response_model=MessageResponse, response_model_exclude_none=True)
def reset_password(body: ResetPasswordRequest, users: UserManagerDep):
    users.reset_password(body.token, body.password)
    return MessageResponse(message="Password has been reset successfully")
