# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Audit trail helper shared by the storage managers."""

from typing import Optional

from sqlalchemy.orm import Session

from core.logger import audit_logger
from models.audit_log import AuditLog


def record_event(
    db: Session,
    action: str,
    *,
    actor_id: Optional[int] = None,
    target_user_id: Optional[int] = None,
    cohort_id: Optional[int] = None,
    detail: Optional[str] = None,
    request_ip: Optional[str] = None,
) -> None:
    """
    Stage an AuditLog row in the caller's transaction and mirror it to the
    audit logger.  The caller commits; a rolled-back action leaves no row.
    Never pass secrets in *detail*.
    """
    db.add(AuditLog(
        actor_id=actor_id,
        target_user_id=target_user_id,
        cohort_id=cohort_id,
        action=action,
        detail=detail,
        request_ip=request_ip,
    ))
    audit_logger.info(
        "%s | actor=%s target=%s cohort=%s ip=%s %s",
        action,
        actor_id,
        target_user_id,
        cohort_id,
        request_ip or "-",
        detail or "",
    )
