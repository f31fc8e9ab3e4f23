# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for baby profiles."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from auth.schemas import PublicUser


class BabyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    birth_date: date
    photo_url: Optional[str] = Field(None, max_length=2048)


class BabyResponse(BaseModel):
    id: int
    user_id: int
    name: str
    birth_date: date
    birth_week: date
    photo_url: Optional[str] = None
    cohort_id: Optional[int] = None

    model_config = {"from_attributes": True}


class CohortBabyRow(BaseModel):
    baby: BabyResponse
    parent: PublicUser
    # Parent's role in the cohort; None if they have since been removed
    membership_role: Optional[str] = None
