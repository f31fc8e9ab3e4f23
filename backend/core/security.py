# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Central security module.  All credential primitives and auth guards live
here.  No other module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. Session tokens                           (PyJWT / HS256, carried in a cookie)
3. Password-reset token material            (secrets + SHA-256 digest)
4. FastAPI dependency guards                (get_current_user, require_admin)
"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as _jwt        # PyJWT
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps
from fastapi import Depends, Request, Response
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from core.config import settings
from core.exceptions import Unauthenticated, Forbidden
from database import get_db

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------
# passlib embeds the per-password random salt in the hash string and
# verify() compares digests in constant time.
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Hash a plaintext password with PBKDF2-SHA256 (``settings.password_hash_rounds``)."""
    return _pbkdf2.using(rounds=settings.password_hash_rounds).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """
    Constant-time verification of a plaintext password against a hash
    produced by :func:`hash_password`.  A malformed stored hash never matches.
    """
    try:
        return _pbkdf2.verify(plain, stored_hash)
    except ValueError:
        return False


# A throw-away hash used to burn the same amount of CPU when the username
# does not exist, so response timing does not reveal registered usernames.
_DUMMY_HASH: Optional[str] = None


def burn_password_check(plain: str) -> None:
    global _DUMMY_HASH
    if _DUMMY_HASH is None:
        _DUMMY_HASH = hash_password(secrets.token_urlsafe(16))
    _pbkdf2.verify(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# 2.  JWT – session tokens
# ---------------------------------------------------------------------------


def create_session_token(
    user,
    new_user: bool = False,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Sign a session JWT with HS256.

    Claims: ``sub`` (username), ``user_id``, ``role``, ``new_user`` and ``exp``.
    ``new_user`` is the onboarding hint set only by registration; it lives
    and dies with the session and is never written to the users table.
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.session_expire_minutes)
    )
    claims = {
        "sub": user.username,
        "user_id": user.id,
        "role": user.role,
        "new_user": new_user,
        "exp": expire,
    }
    return _jwt.encode(claims, settings.secret_key, algorithm="HS256")


def decode_session_token(token: str) -> dict:
    """
    Decode and verify a session JWT.  Raises :class:`Unauthenticated` on any
    failure (expired, bad signature, malformed).
    """
    try:
        return _jwt.decode(token, settings.secret_key, algorithms=["HS256"])
    except _jwt.InvalidTokenError:
        raise Unauthenticated("Invalid or expired session")


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


# ---------------------------------------------------------------------------
# 3.  Password-reset tokens
# ---------------------------------------------------------------------------


def generate_reset_token() -> str:
    """Return a fresh opaque URL-safe token (256 bits of entropy)."""
    return secrets.token_urlsafe(32)


def hash_reset_token(token: str) -> str:
    """SHA-256 digest stored in place of the raw reset token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# 4.  FastAPI dependency guards
# ---------------------------------------------------------------------------

# Browsers authenticate with the session cookie; API clients may send the same
# JWT as a bearer token instead.  tokenUrl only feeds the OpenAPI docs.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)


def get_session_claims(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
) -> dict:
    """Dependency: return the verified claims of the caller's session."""
    token = request.cookies.get(settings.session_cookie_name) or bearer
    if not token:
        raise Unauthenticated()
    return decode_session_token(token)


def get_current_user(
    claims: dict = Depends(get_session_claims),
    db: Session = Depends(get_db),
):
    """
    Dependency: load the User row named by the session.  Returns the User
    ORM instance, or raises 401 if the user no longer exists.
    """
    # Lazy import to avoid circular dependency at module load time
    from models.user import User  # noqa: E402

    user = db.get(User, claims.get("user_id"))
    if not user:
        raise Unauthenticated("User not found")
    return user


def require_admin(current_user=Depends(get_current_user)):
    """
    Dependency: wraps :func:`get_current_user` and additionally asserts
    ``role == 'admin'``.  Raises 403 otherwise.
    """
    if current_user.role != "admin":
        raise Forbidden("Admin access required")
    return current_user


# -- IP Address extraction ----------------------------------------------------


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from the request.
    Checks X-Forwarded-For header first (for proxies), then falls back to client host.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first (original client)
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"
