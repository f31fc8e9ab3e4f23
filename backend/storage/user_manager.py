# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Identity store – registration, login, password reset and global roles.

Security notes
--------------
* ``authenticate`` raises the *same* InvalidCredentials error whether the
  username is unknown or the password is wrong, and spends the same hashing
  time in both cases.
* ``request_password_reset`` behaves identically for known and unknown
  emails from the caller's point of view.
* ``reset_password`` consumes the token with one conditional UPDATE, so two
  concurrent redemptions of the same token cannot both succeed.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import settings
from core.exceptions import (
    DuplicateEmail,
    DuplicateUsername,
    Forbidden,
    InvalidCredentials,
    InvalidOrExpiredToken,
    InvalidRole,
    UserNotFound,
    ValidationError,
)
from core.logger import logger
from core.security import (
    burn_password_check,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)
from models.password_reset_token import PasswordResetToken
from models.user import USER_ROLES, User
from storage.audit import record_event


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserManager:
    """Manages users, credentials and password-reset tokens."""

    def __init__(self, db: Session, request_ip: Optional[str] = None):
        self.db = db
        self.request_ip = request_ip

    # -- lookups -----------------------------------------------------------

    def get(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise UserNotFound()
        return user

    def find_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def get_by_email(self, email: str) -> User:
        user = self.find_by_email(email)
        if not user:
            raise UserNotFound()
        return user

    def list_users(self) -> List[User]:
        return self.db.query(User).order_by(User.id).all()

    # -- registration / login ------------------------------------------------

    def register(self, username: str, password: str, full_name: str, email: str) -> User:
        """Create a user with a salted PBKDF2 hash.  Raises 409 on duplicates."""
        username = username.strip()
        email = email.strip().lower()
        if not username:
            raise ValidationError("Username cannot be empty")

        if self.find_by_username(username):
            raise DuplicateUsername()
        if self.find_by_email(email):
            raise DuplicateEmail()

        user = User(
            username=username,
            email=email,
            full_name=full_name.strip(),
            password_hash=hash_password(password),
            role="user",
        )
        self.db.add(user)
        try:
            self.db.flush()  # get user.id before commit
        except IntegrityError:
            # Lost a race against a concurrent registration
            self.db.rollback()
            if self.find_by_username(username):
                raise DuplicateUsername()
            raise DuplicateEmail()

        record_event(self.db, "register", actor_id=user.id, target_user_id=user.id,
                     request_ip=self.request_ip)
        self.db.commit()
        self.db.refresh(user)
        logger.info("Registered user id=%d username=%s", user.id, user.username)
        return user

    def authenticate(self, username: str, password: str) -> User:
        user = self.find_by_username(username.strip())

        # Unified failure path – no information leaks about whether the username exists
        if not user:
            burn_password_check(password)
            logger.info("Login failed for unknown username")
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            logger.info("Login failed for user id=%d", user.id)
            raise InvalidCredentials()

        user.last_login = _utcnow()
        record_event(self.db, "user_login", actor_id=user.id, target_user_id=user.id,
                     request_ip=self.request_ip)
        self.db.commit()
        self.db.refresh(user)
        return user

    # -- password reset ------------------------------------------------------

    def request_password_reset(self, email: str) -> Optional[str]:
        """
        Issue a one-hour, single-use reset token for the account owning
        *email* and return the raw token.  Returns None when no such account
        exists; callers must respond identically in both cases.
        """
        user = self.find_by_email(email)
        if not user:
            logger.info("Password reset requested for unknown email")
            return None

        token = generate_reset_token()
        self.db.add(PasswordResetToken(
            user_id=user.id,
            token_hash=hash_reset_token(token),
            expires_at=_utcnow() + timedelta(minutes=settings.reset_token_expire_minutes),
            used=False,
        ))
        record_event(self.db, "password_reset_requested", target_user_id=user.id,
                     request_ip=self.request_ip)
        self.db.commit()
        return token

    def reset_password(self, token: str, new_password: str) -> User:
        """
        Consume *token* and rotate the owner's password.

        The token is claimed by a single ``UPDATE ... WHERE used = false AND
        expires_at > now``; only the request whose update touched the row
        proceeds, the rest get InvalidOrExpiredToken.
        """
        if not token:
            raise InvalidOrExpiredToken()
        token_hash = hash_reset_token(token)

        claimed = self.db.execute(
            update(PasswordResetToken)
            .where(
                PasswordResetToken.token_hash == token_hash,
                PasswordResetToken.used.is_(False),
                PasswordResetToken.expires_at > _utcnow(),
            )
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            self.db.rollback()
            raise InvalidOrExpiredToken()

        row = (
            self.db.query(PasswordResetToken)
            .filter(PasswordResetToken.token_hash == token_hash)
            .one()
        )
        user = self.db.get(User, row.user_id)
        if not user:
            self.db.rollback()
            raise InvalidOrExpiredToken()

        user.password_hash = hash_password(new_password)
        record_event(self.db, "password_reset", actor_id=user.id, target_user_id=user.id,
                     request_ip=self.request_ip)
        self.db.commit()
        self.db.refresh(user)
        return user

    # -- global role ---------------------------------------------------------

    def change_role(self, admin: User, user_id: int, role: str) -> User:
        """
        Promote or demote a user globally.  Guards:
        * Role value must be 'admin' or 'user'.
        * An admin cannot change their own role (prevents accidental self-lockout).
        """
        if admin.role != "admin":
            raise Forbidden("Admin access required")
        if role not in USER_ROLES:
            raise InvalidRole("Invalid role. Must be 'admin' or 'user'")
        if user_id == admin.id:
            raise ValidationError("Cannot change your own role")

        target = self.get(user_id)
        target.role = role
        record_event(self.db, "change_role", actor_id=admin.id, target_user_id=user_id,
                     detail=f"new_role={role}", request_ip=self.request_ip)
        self.db.commit()
        self.db.refresh(target)
        return target
