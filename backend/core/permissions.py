# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Authorization predicate.

Every permission question in the application goes through :func:`can`, so the
admin / moderator / author rules are written down exactly once:

* **admin** (``users.role == 'admin'``) – allowed everything.
* **moderator** of a cohort – may add, re-role and remove that cohort's members.
  Moderators get no override on other people's posts or comments.
* **author** – may edit and delete their own posts and comments.
* **member** – may post, comment and upvote in the cohort when membership is
  required for posting.

Permissions are derived from the rows on every call; nothing is cached on
the user.
"""

import enum

from sqlalchemy.orm import Session

from core.config import settings
from core.exceptions import Forbidden
from models.cohort import CohortMembership


class Action(str, enum.Enum):
    MANAGE_MEMBERS = "manage_members"   # resource: cohort id
    MODIFY_CONTENT = "modify_content"   # resource: Post or Comment row
    POST_TO_COHORT = "post_to_cohort"   # resource: cohort id


def is_admin(actor) -> bool:
    return actor is not None and actor.role == "admin"


def is_moderator(db: Session, user_id: int, cohort_id: int) -> bool:
    """True iff a membership row with role=moderator exists for the pair."""
    return (
        db.query(CohortMembership.id)
        .filter(
            CohortMembership.user_id == user_id,
            CohortMembership.cohort_id == cohort_id,
            CohortMembership.role == "moderator",
        )
        .first()
        is not None
    )


def is_member(db: Session, user_id: int, cohort_id: int) -> bool:
    """True iff the user holds any membership (member or moderator) in the cohort."""
    return (
        db.query(CohortMembership.id)
        .filter(
            CohortMembership.user_id == user_id,
            CohortMembership.cohort_id == cohort_id,
        )
        .first()
        is not None
    )


def can(db: Session, actor, action: Action, resource) -> bool:
    if actor is None:
        return False
    if is_admin(actor):
        return True

    if action is Action.MANAGE_MEMBERS:
        return is_moderator(db, actor.id, resource)
    if action is Action.MODIFY_CONTENT:
        return resource is not None and resource.user_id == actor.id
    if action is Action.POST_TO_COHORT:
        if not settings.require_membership_to_post:
            return True
        return is_member(db, actor.id, resource)

    raise ValueError(f"Unknown action: {action!r}")


def authorize(db: Session, actor, action: Action, resource, error=Forbidden) -> None:
    """Raise *error* unless :func:`can` allows the action."""
    if not can(db, actor, action, resource):
        raise error()
