# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Admin endpoints – global roles and the audit trail.

Every endpoint in this router is guarded by ``require_admin``.  A request
that carries a valid session but belongs to a ``user`` role will receive 403
before any business logic runs.  Cohort-level management for admins goes
through the regular cohort endpoints, where admins bypass moderator checks.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, aliased

from database import get_db
from core.dependencies import UserManagerDep
from core.security import require_admin
from models.user import User
from models.audit_log import AuditLog
from admin.schemas import (
    AuditLogListResponse,
    AuditLogRow,
    ChangeRoleRequest,
    UserListResponse,
    UserRow,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _as_utc(value: datetime) -> datetime:
    # created_at is stored as naive UTC; offset-aware bounds are shifted to match
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# ---------------------------------------------------------------------------
# GET /api/admin/users  – list all users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=UserListResponse)
def list_users(
    users: UserManagerDep,
    admin: User = Depends(require_admin),
):
    """Return every user row (no password data – handled by the schema)."""
    return UserListResponse(users=users.list_users())


# ---------------------------------------------------------------------------
# PUT /api/admin/users/{id}/role  – promote or demote a user
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}/role", response_model=UserRow)
def change_role(
    user_id: int,
    body: ChangeRoleRequest,
    users: UserManagerDep,
    admin: User = Depends(require_admin),
):
    """
    Change the global role of an existing user.  Guards:
    * Role value must be 'admin' or 'user'.
    * An admin cannot change their own role (prevents accidental self-lockout).
    """
    return users.change_role(admin, user_id, body.role)


# ---------------------------------------------------------------------------
# GET /api/admin/audit-logs  – audit trail with optional filters
# ---------------------------------------------------------------------------


@router.get("/audit-logs", response_model=AuditLogListResponse)
def list_audit_logs(
    usernames: list[str] | None = Query(None, description="Filter by exact username(s) – repeated param"),
    cohort_id: int | None = Query(None, description="Only events in this cohort"),
    since: datetime | None = Query(None, description="ISO-8601 start of time window"),
    until: datetime | None = Query(None, description="ISO-8601 end of time window"),
    limit: int = Query(200, ge=1, le=1000),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Return audit log rows newest-first.  Supports optional filters:

    * ``usernames`` – match rows where *either* the actor or the target is one
                      of them.
    * ``cohort_id`` – only events scoped to that cohort.
    * ``since`` / ``until`` – ISO-8601 bounds on ``created_at``; values with
                             an offset are converted to UTC first.
    * ``limit`` – max rows returned (default 200, cap 1000).
    """
    ActorUser  = aliased(User)
    TargetUser = aliased(User)

    q = (
        db.query(AuditLog, ActorUser.username, TargetUser.username)
        .outerjoin(ActorUser,  AuditLog.actor_id       == ActorUser.id)
        .outerjoin(TargetUser, AuditLog.target_user_id == TargetUser.id)
    )

    if usernames:
        q = q.filter(
            ActorUser.username.in_(usernames) | TargetUser.username.in_(usernames)
        )
    if cohort_id is not None:
        q = q.filter(AuditLog.cohort_id == cohort_id)
    if since:
        q = q.filter(AuditLog.created_at >= _as_utc(since))
    if until:
        q = q.filter(AuditLog.created_at <= _as_utc(until))

    rows = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()

    return AuditLogListResponse(logs=[
        AuditLogRow(
            id=row.id,
            actor_username=actor_username,
            target_username=target_username,
            cohort_id=row.cohort_id,
            action=row.action,
            detail=row.detail,
            request_ip=row.request_ip,
            created_at=row.created_at,
        )
        for row, actor_username, target_username in rows
    ])
