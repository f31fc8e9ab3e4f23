# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Content endpoints – posts, comments and upvotes.

Security invariants enforced by every handler
---------------------------------------------
* A session is required on every endpoint (via ``get_current_user``).
* Edit / delete of a post or comment is allowed to its author and to global
  admins only.  Moderators have no override on content.
* A post or comment that does not exist and one the caller may not touch
  both answer 404 ``not_found_or_forbidden``.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from core.dependencies import ContentManagerDep
from core.security import get_current_user
from models.user import User
from auth.schemas import PublicUser, SuccessResponse
from posts.schemas import (
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    PostCreate,
    PostResponse,
    PostUpdate,
    UpvoteCountResponse,
    UpvoteCreate,
    UpvoteResponse,
    UpvoteStatusResponse,
)

router = APIRouter(prefix="/api", tags=["posts"])


def _post_response(post, author: User) -> PostResponse:
    response = PostResponse.model_validate(post)
    response.author = PublicUser.model_validate(author)
    return response


def _comment_response(comment, author: User) -> CommentResponse:
    response = CommentResponse.model_validate(comment)
    response.author = PublicUser.model_validate(author)
    return response


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


@router.post("/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
def create_post(
    body: PostCreate,
    content: ContentManagerDep,
    current_user: User = Depends(get_current_user),
):
    post = content.create_post(current_user, body.cohort_id, body.content, body.photo_url)
    return _post_response(post, current_user)


@router.get("/cohorts/{cohort_id}/posts", response_model=List[PostResponse])
def list_posts(
    cohort_id: int,
    content: ContentManagerDep,
    current_user: User = Depends(get_current_user),
):
    """Posts of a cohort, newest first, with each author's public profile."""
    return [_post_response(post, author) for post, author in content.list_posts_by_cohort(cohort_id)]


@router.put("/posts/{post_id}", response_model=PostResponse)
def update_post(
    post_id: int,
    body: PostUpdate,
    content: ContentManagerDep,
    current_user: User = Depends(get_current_user),
):
    post = content.update_post(current_user, post_id, body.content, body.photo_url)
    return _post_response(post, content.db.get(User, post.user_id))


@router.delete("/posts/{post_id}", response_model=SuccessResponse)
def delete_post(
    post_id: int,
    content: ContentManagerDep,
    current_user: User = Depends(get_current_user),
):
    content.delete_post(current_user, post_id)
    return SuccessResponse()


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


@router.post("/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def create_comment(
    body: CommentCreate,
    content: ContentManagerDep,
    current_user: User = Depends(get_current_user),
):
    comment = content.create_comment(current_user, body.post_id, body.content)
    return _comment_response(comment, current_user)


@router.get("/posts/{post_id}/comments", response_model=List[CommentResponse])
def list_comments(
    post_id: int,
    content: ContentManagerDep,
    current_user: User = Depends(get_current_user),
):
    return [_comment_response(comment, author) for comment, author in content.list_comments(post_id)]


@router.put("/comments/{comment_id}", response_model=CommentResponse)
def update_comment(
    comment_id: int,
    body: CommentUpdate,
    content: ContentManagerDep,
    current_user: User = Depends(get_current_user),
):
    comment = content.update_comment(current_user, comment_id, body.content)
    return _comment_response(comment, content.db.get(User, comment.user_id))


@router.delete("/comments/{comment_id}", response_model=SuccessResponse)
def delete_comment(
    comment_id: int,
    content: ContentManagerDep,
    current_user: User = Depends(get_current_user),
):
    content.delete_comment(current_user, comment_id)
    return SuccessResponse()


# ---------------------------------------------------------------------------
# Upvotes
# ---------------------------------------------------------------------------


@router.post("/upvotes", response_model=UpvoteResponse, status_code=status.HTTP_201_CREATED)
def upvote(
    body: UpvoteCreate,
    content: ContentManagerDep,
    current_user: User = Depends(get_current_user),
):
    return content.upvote(current_user, body.post_id)


@router.delete("/posts/{post_id}/upvotes", response_model=SuccessResponse)
def remove_upvote(
    post_id: int,
    content: ContentManagerDep,
    current_user: User = Depends(get_current_user),
):
    content.remove_upvote(current_user, post_id)
    return SuccessResponse()


@router.get("/posts/{post_id}/upvotes/count", response_model=UpvoteCountResponse)
def upvote_count(
    post_id: int,
    content: ContentManagerDep,
    current_user: User = Depends(get_current_user),
):
    return UpvoteCountResponse(count=content.count_upvotes(post_id))


@router.get("/posts/{post_id}/upvotes/user", response_model=UpvoteStatusResponse)
def upvote_status(
    post_id: int,
    content: ContentManagerDep,
    current_user: User = Depends(get_current_user),
):
    """Whether the caller has upvoted the post."""
    return UpvoteStatusResponse(upvoted=content.has_upvoted(current_user.id, post_id))
