# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Cohort endpoints – cohorts, membership listing and membership management.

Every endpoint requires a session.  Membership mutations are authorized in
``CohortManager`` through ``core.permissions``: the caller must moderate the
target cohort or be a global admin, otherwise 403.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from core.dependencies import CohortManagerDep
from core.permissions import Action, can
from core.security import get_current_user
from models.user import User
from auth.schemas import SuccessResponse
from cohorts.schemas import (
    CohortCreate,
    CohortResponse,
    IsModeratorResponse,
    MemberRow,
    MembershipCreate,
    MembershipResponse,
    MembershipUpdate,
    UserCohortResponse,
)

router = APIRouter(prefix="/api", tags=["cohorts"])


def _member_rows(rows) -> List[MemberRow]:
    return [
        MemberRow(
            membership_id=membership.id,
            user_id=user.id,
            username=user.username,
            full_name=user.full_name,
            email=user.email,
            role=membership.role,
            joined_at=membership.created_at,
        )
        for membership, user in rows
    ]


# ---------------------------------------------------------------------------
# Cohorts
# ---------------------------------------------------------------------------


@router.post("/cohorts", response_model=CohortResponse, status_code=status.HTTP_201_CREATED)
def create_cohort(
    body: CohortCreate,
    cohorts: CohortManagerDep,
    current_user: User = Depends(get_current_user),
):
    """Create a cohort; the caller becomes its first moderator."""
    return cohorts.create_cohort(current_user, body.name, body.description)


@router.get("/cohorts", response_model=List[CohortResponse])
def list_cohorts(
    cohorts: CohortManagerDep,
    current_user: User = Depends(get_current_user),
):
    return cohorts.list_cohorts()


@router.get("/cohorts/{cohort_id}", response_model=CohortResponse)
def get_cohort(
    cohort_id: int,
    cohorts: CohortManagerDep,
    current_user: User = Depends(get_current_user),
):
    return cohorts.get_cohort(cohort_id)


@router.get("/user/cohorts", response_model=List[UserCohortResponse])
def list_my_cohorts(
    cohorts: CohortManagerDep,
    current_user: User = Depends(get_current_user),
):
    """Cohorts the caller belongs to, with the caller's role in each."""
    return [
        UserCohortResponse(
            id=cohort.id,
            name=cohort.name,
            description=cohort.description,
            start_date=cohort.start_date,
            end_date=cohort.end_date,
            creator_id=cohort.creator_id,
            created_at=cohort.created_at,
            role=membership.role,
            membership_id=membership.id,
        )
        for cohort, membership in cohorts.list_cohorts_for_user(current_user.id)
    ]


# ---------------------------------------------------------------------------
# Membership queries
# ---------------------------------------------------------------------------


@router.get("/cohorts/{cohort_id}/members", response_model=List[MemberRow])
def list_members(
    cohort_id: int,
    cohorts: CohortManagerDep,
    current_user: User = Depends(get_current_user),
):
    return _member_rows(cohorts.list_members(cohort_id))


@router.get("/cohorts/{cohort_id}/moderators", response_model=List[MemberRow])
def list_moderators(
    cohort_id: int,
    cohorts: CohortManagerDep,
    current_user: User = Depends(get_current_user),
):
    return _member_rows(cohorts.list_moderators(cohort_id))


@router.get("/cohorts/{cohort_id}/is-moderator", response_model=IsModeratorResponse)
def is_moderator(
    cohort_id: int,
    cohorts: CohortManagerDep,
    current_user: User = Depends(get_current_user),
):
    """Whether the caller moderates the cohort, and whether they may manage it."""
    cohorts.get_cohort(cohort_id)
    return IsModeratorResponse(
        is_moderator=cohorts.is_moderator(current_user.id, cohort_id),
        can_manage=can(cohorts.db, current_user, Action.MANAGE_MEMBERS, cohort_id),
    )


# ---------------------------------------------------------------------------
# Membership management (moderator or admin)
# ---------------------------------------------------------------------------


@router.post(
    "/cohort-membership",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_member(
    body: MembershipCreate,
    cohorts: CohortManagerDep,
    current_user: User = Depends(get_current_user),
):
    return cohorts.add_member(
        current_user,
        body.cohort_id,
        user_id=body.user_id,
        email=body.email,
        role=body.role,
    )


@router.put("/cohort-membership/{membership_id}", response_model=MembershipResponse)
def update_membership_role(
    membership_id: int,
    body: MembershipUpdate,
    cohorts: CohortManagerDep,
    current_user: User = Depends(get_current_user),
):
    return cohorts.update_membership_role(current_user, membership_id, body.role)


@router.delete("/cohort-membership/{membership_id}", response_model=SuccessResponse)
def remove_member(
    membership_id: int,
    cohorts: CohortManagerDep,
    current_user: User = Depends(get_current_user),
):
    cohorts.remove_member(current_user, membership_id)
    return SuccessResponse()
