# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the admin endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


# -- Requests --------------------------------------------------------------


class ChangeRoleRequest(BaseModel):
    role: str  # "admin" or "user"


# -- Responses -------------------------------------------------------------


class UserRow(BaseModel):
    id: int
    username: str
    email: str
    full_name: str
    role: str
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    users: List[UserRow]


# -- Audit log responses ---------------------------------------------------


class AuditLogRow(BaseModel):
    id: int
    actor_username: Optional[str] = None    # resolved from actor_id join
    target_username: Optional[str] = None   # resolved from target_user_id join
    cohort_id: Optional[int] = None
    action: str
    detail: Optional[str] = None
    request_ip: Optional[str] = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    logs: List[AuditLogRow]
