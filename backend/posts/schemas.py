# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for posts, comments and upvotes."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from auth.schemas import PublicUser


# -- Requests --------------------------------------------------------------


class PostCreate(BaseModel):
    cohort_id: int
    # Blank content is rejected by the content store with code "empty_content"
    content: str = Field(max_length=10000)
    photo_url: Optional[str] = Field(None, max_length=2048)


class PostUpdate(BaseModel):
    content: Optional[str] = Field(None, max_length=10000)
    photo_url: Optional[str] = Field(None, max_length=2048)


class CommentCreate(BaseModel):
    post_id: int
    content: str = Field(max_length=5000)


class CommentUpdate(BaseModel):
    content: str = Field(max_length=5000)


class UpvoteCreate(BaseModel):
    post_id: int


# -- Responses -------------------------------------------------------------


class PostResponse(BaseModel):
    id: int
    cohort_id: int
    user_id: int
    content: str
    photo_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    author: Optional[PublicUser] = None

    model_config = {"from_attributes": True}


class CommentResponse(BaseModel):
    id: int
    post_id: int
    user_id: int
    content: str
    created_at: datetime
    updated_at: datetime
    author: Optional[PublicUser] = None

    model_config = {"from_attributes": True}


class UpvoteResponse(BaseModel):
    id: int
    post_id: int
    user_id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class UpvoteCountResponse(BaseModel):
    count: int


class UpvoteStatusResponse(BaseModel):
    upvoted: bool
