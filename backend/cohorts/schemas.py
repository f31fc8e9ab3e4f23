# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for cohorts and memberships."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


# -- Requests --------------------------------------------------------------


class CohortCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None


class MembershipCreate(BaseModel):
    cohort_id: int
    # Either user_id or email identifies the new member
    user_id: Optional[int] = None
    email: Optional[EmailStr] = None
    role: str = "member"  # "member" or "moderator"


class MembershipUpdate(BaseModel):
    role: str  # "member" or "moderator"


# -- Responses -------------------------------------------------------------


class CohortResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    creator_id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class UserCohortResponse(CohortResponse):
    # The caller's role in the cohort
    role: str
    membership_id: int


class MembershipResponse(BaseModel):
    id: int
    user_id: int
    cohort_id: int
    role: str
    created_at: datetime

    model_config = {"from_attributes": True}


class MemberRow(BaseModel):
    membership_id: int
    user_id: int
    username: str
    full_name: str
    email: str
    role: str
    joined_at: datetime


class IsModeratorResponse(BaseModel):
    is_moderator: bool
    # True for moderators of the cohort and for global admins
    can_manage: bool
