# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Baby endpoints – the legacy birth-month cohort path.

Adding a baby resolves its birth date to a "<Month> <Year> Babies" cohort
(created on first use) and makes the parent a member of it.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from core.dependencies import BabyManagerDep
from core.security import get_current_user
from models.user import User
from auth.schemas import PublicUser
from babies.schemas import BabyCreate, BabyResponse, CohortBabyRow

router = APIRouter(prefix="/api", tags=["babies"])


@router.post("/baby", response_model=BabyResponse, status_code=status.HTTP_201_CREATED)
def create_baby(
    body: BabyCreate,
    babies: BabyManagerDep,
    current_user: User = Depends(get_current_user),
):
    return babies.create_baby(current_user, body.name, body.birth_date, body.photo_url)


@router.get("/baby", response_model=BabyResponse)
def get_my_baby(
    babies: BabyManagerDep,
    current_user: User = Depends(get_current_user),
):
    return babies.get_baby_for_user(current_user.id)


@router.get("/cohorts/{cohort_id}/babies", response_model=List[CohortBabyRow])
def list_cohort_babies(
    cohort_id: int,
    babies: BabyManagerDep,
    current_user: User = Depends(get_current_user),
):
    return [
        CohortBabyRow(
            baby=BabyResponse.model_validate(baby),
            parent=PublicUser.model_validate(parent),
            membership_role=role,
        )
        for baby, parent, role in babies.list_babies_in_cohort(cohort_id)
    ]
