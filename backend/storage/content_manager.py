# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Content store – posts, comments and upvotes.

Every edit/delete goes through ``_owned_post`` / ``_owned_comment``, which
load the row and ask :func:`core.permissions.can` whether the actor may modify
it.  A missing row and somebody else's row raise the same NotFoundOrForbidden,
so a non-owner cannot probe for existence.
"""

from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import (
    AlreadyUpvoted,
    CohortNotFound,
    EmptyContent,
    NotFound,
    NotFoundOrForbidden,
    NotUpvoted,
)
from core.logger import logger
from core.permissions import Action, authorize, can
from models.cohort import Cohort
from models.post import Comment, Post, Upvote
from models.user import User


def _clean_content(content: Optional[str]) -> str:
    text = (content or "").strip()
    if not text:
        raise EmptyContent()
    return text


class ContentManager:
    """Manages posts, comments and upvotes."""

    def __init__(self, db: Session):
        self.db = db

    # -- ownership helpers ---------------------------------------------------

    def _owned_post(self, actor: User, post_id: int) -> Post:
        post = self.db.get(Post, post_id)
        if not post or not can(self.db, actor, Action.MODIFY_CONTENT, post):
            raise NotFoundOrForbidden("Post not found or you do not have permission")
        return post

    def _owned_comment(self, actor: User, comment_id: int) -> Comment:
        comment = self.db.get(Comment, comment_id)
        if not comment or not can(self.db, actor, Action.MODIFY_CONTENT, comment):
            raise NotFoundOrForbidden("Comment not found or you do not have permission")
        return comment

    def get_post(self, post_id: int) -> Post:
        post = self.db.get(Post, post_id)
        if not post:
            raise NotFound("Post not found")
        return post

    # -- posts ---------------------------------------------------------------

    def create_post(
        self,
        author: User,
        cohort_id: int,
        content: str,
        photo_url: Optional[str] = None,
    ) -> Post:
        content = _clean_content(content)
        if not self.db.get(Cohort, cohort_id):
            raise CohortNotFound()
        authorize(self.db, author, Action.POST_TO_COHORT, cohort_id)

        post = Post(
            user_id=author.id,
            cohort_id=cohort_id,
            content=content,
            photo_url=photo_url or None,
        )
        self.db.add(post)
        self.db.commit()
        self.db.refresh(post)
        logger.info("Post id=%d created in cohort id=%d by user id=%d", post.id, cohort_id, author.id)
        return post

    def list_posts_by_cohort(self, cohort_id: int) -> List[Tuple[Post, User]]:
        """Posts of a cohort, newest first, each paired with its author."""
        if not self.db.get(Cohort, cohort_id):
            raise CohortNotFound()
        return (
            self.db.query(Post, User)
            .join(User, User.id == Post.user_id)
            .filter(Post.cohort_id == cohort_id)
            .order_by(Post.created_at.desc(), Post.id.desc())
            .all()
        )

    def update_post(
        self,
        actor: User,
        post_id: int,
        content: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> Post:
        post = self._owned_post(actor, post_id)
        if content is not None:
            post.content = _clean_content(content)
        if photo_url is not None:
            post.photo_url = photo_url or None
        self.db.commit()
        self.db.refresh(post)
        return post

    def delete_post(self, actor: User, post_id: int) -> None:
        post = self._owned_post(actor, post_id)
        # Children are removed explicitly; SQLite does not enforce ON DELETE
        # CASCADE unless the foreign_keys pragma is on.
        self.db.query(Comment).filter(Comment.post_id == post.id).delete(synchronize_session=False)
        self.db.query(Upvote).filter(Upvote.post_id == post.id).delete(synchronize_session=False)
        self.db.delete(post)
        self.db.commit()
        logger.info("Post id=%d deleted by user id=%d", post_id, actor.id)

    # -- comments ------------------------------------------------------------

    def create_comment(self, author: User, post_id: int, content: str) -> Comment:
        content = _clean_content(content)
        post = self.get_post(post_id)
        authorize(self.db, author, Action.POST_TO_COHORT, post.cohort_id)

        comment = Comment(post_id=post_id, user_id=author.id, content=content)
        self.db.add(comment)
        self.db.commit()
        self.db.refresh(comment)
        return comment

    def list_comments(self, post_id: int) -> List[Tuple[Comment, User]]:
        """Comments of a post in conversation order (oldest first)."""
        self.get_post(post_id)
        return (
            self.db.query(Comment, User)
            .join(User, User.id == Comment.user_id)
            .filter(Comment.post_id == post_id)
            .order_by(Comment.created_at, Comment.id)
            .all()
        )

    def update_comment(self, actor: User, comment_id: int, content: str) -> Comment:
        comment = self._owned_comment(actor, comment_id)
        comment.content = _clean_content(content)
        self.db.commit()
        self.db.refresh(comment)
        return comment

    def delete_comment(self, actor: User, comment_id: int) -> None:
        comment = self._owned_comment(actor, comment_id)
        self.db.delete(comment)
        self.db.commit()

    # -- upvotes -------------------------------------------------------------

    def _find_upvote(self, post_id: int, user_id: int) -> Optional[Upvote]:
        return (
            self.db.query(Upvote)
            .filter(Upvote.post_id == post_id, Upvote.user_id == user_id)
            .first()
        )

    def upvote(self, user: User, post_id: int) -> Upvote:
        """
        Record the user's upvote.  The existence check gives the common case
        a clean error; the unique index settles concurrent duplicates.
        """
        post = self.get_post(post_id)
        authorize(self.db, user, Action.POST_TO_COHORT, post.cohort_id)
        if self._find_upvote(post_id, user.id):
            raise AlreadyUpvoted()

        upvote = Upvote(post_id=post_id, user_id=user.id)
        self.db.add(upvote)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise AlreadyUpvoted()
        self.db.refresh(upvote)
        return upvote

    def remove_upvote(self, user: User, post_id: int) -> None:
        upvote = self._find_upvote(post_id, user.id)
        if not upvote:
            raise NotUpvoted()
        self.db.delete(upvote)
        self.db.commit()

    def count_upvotes(self, post_id: int) -> int:
        self.get_post(post_id)
        return self.db.query(Upvote).filter(Upvote.post_id == post_id).count()

    def has_upvoted(self, user_id: int, post_id: int) -> bool:
        self.get_post(post_id)
        return self._find_upvote(post_id, user_id) is not None
