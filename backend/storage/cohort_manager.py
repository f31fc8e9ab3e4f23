# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Cohort registry – cohorts, membership edges and birth-month bucketing.

Invariants enforced here
------------------------
* A cohort created by a user is committed together with the creator's
  moderator membership, or not at all.
* A (user, cohort) pair has at most one membership (unique index; duplicates
  raise DuplicateMembership).
* A cohort never loses its last moderator through demotion or removal.
* Birth-month cohorts are keyed by the exact (start_date, end_date) pair that
  :func:`birth_cohort_range` computes; every code path uses that one helper.
"""

import calendar
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import (
    CohortNotFound,
    DuplicateMembership,
    Forbidden,
    InvalidRole,
    LastModerator,
    MembershipNotFound,
    UserNotFound,
    ValidationError,
)
from core.logger import logger
from core.permissions import Action, authorize, is_admin, is_moderator
from models.cohort import MEMBERSHIP_ROLES, Cohort, CohortMembership
from models.user import User
from storage.audit import record_event


def birth_cohort_range(birth_date) -> Tuple[date, date]:
    """
    Return ``(start, end)`` for the birth-month cohort of *birth_date*:
    the first day of its month and the last day of the following month.
    """
    if isinstance(birth_date, datetime):
        birth_date = birth_date.date()
    start = birth_date.replace(day=1)
    if start.month == 12:
        year, month = start.year + 1, 1
    else:
        year, month = start.year, start.month + 1
    end = date(year, month, calendar.monthrange(year, month)[1])
    return start, end


def birth_cohort_name(start: date) -> str:
    return f"{calendar.month_name[start.month]} {start.year} Babies"


def _validate_role(role: str) -> str:
    if role not in MEMBERSHIP_ROLES:
        raise InvalidRole("Invalid role. Must be 'member' or 'moderator'")
    return role


class CohortManager:
    """Manages cohorts and the membership edges between users and cohorts."""

    def __init__(self, db: Session, request_ip: Optional[str] = None):
        self.db = db
        self.request_ip = request_ip

    # -- cohorts -------------------------------------------------------------

    def create_cohort(self, creator: User, name: str, description: Optional[str] = None) -> Cohort:
        """Create a cohort and make *creator* its first moderator, atomically."""
        name = name.strip()
        if not name:
            raise ValidationError("Cohort name cannot be empty")

        try:
            cohort = Cohort(
                name=name,
                description=(description or "").strip() or None,
                creator_id=creator.id,
            )
            self.db.add(cohort)
            self.db.flush()  # get cohort.id before adding the membership

            self.db.add(CohortMembership(
                user_id=creator.id,
                cohort_id=cohort.id,
                role="moderator",
            ))
            record_event(self.db, "create_cohort", actor_id=creator.id,
                         target_user_id=creator.id, cohort_id=cohort.id,
                         detail=f"name={name}", request_ip=self.request_ip)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(cohort)
        logger.info("Cohort id=%d created by user id=%d", cohort.id, creator.id)
        return cohort

    def get_cohort(self, cohort_id: int) -> Cohort:
        cohort = self.db.get(Cohort, cohort_id)
        if not cohort:
            raise CohortNotFound()
        return cohort

    def list_cohorts(self) -> List[Cohort]:
        return self.db.query(Cohort).order_by(Cohort.name, Cohort.id).all()

    def list_cohorts_for_user(self, user_id: int) -> List[Tuple[Cohort, CohortMembership]]:
        return (
            self.db.query(Cohort, CohortMembership)
            .join(CohortMembership, CohortMembership.cohort_id == Cohort.id)
            .filter(CohortMembership.user_id == user_id)
            .order_by(Cohort.name, Cohort.id)
            .all()
        )

    # -- membership queries --------------------------------------------------

    def list_members(self, cohort_id: int) -> List[Tuple[CohortMembership, User]]:
        self.get_cohort(cohort_id)
        return (
            self.db.query(CohortMembership, User)
            .join(User, User.id == CohortMembership.user_id)
            .filter(CohortMembership.cohort_id == cohort_id)
            .order_by(CohortMembership.id)
            .all()
        )

    def list_moderators(self, cohort_id: int) -> List[Tuple[CohortMembership, User]]:
        return [row for row in self.list_members(cohort_id) if row[0].role == "moderator"]

    def is_moderator(self, user_id: int, cohort_id: int) -> bool:
        return is_moderator(self.db, user_id, cohort_id)

    def _moderator_count(self, cohort_id: int) -> int:
        return (
            self.db.query(CohortMembership)
            .filter(
                CohortMembership.cohort_id == cohort_id,
                CohortMembership.role == "moderator",
            )
            .count()
        )

    def _managed_membership(self, actor: User, membership_id: int) -> CohortMembership:
        """
        Load a membership the actor is about to change.  Only admins learn
        that an id does not exist; everyone else without rights gets Forbidden.
        """
        membership = self.db.get(CohortMembership, membership_id)
        if not membership:
            if not is_admin(actor):
                raise Forbidden()
            raise MembershipNotFound()
        authorize(self.db, actor, Action.MANAGE_MEMBERS, membership.cohort_id)
        return membership

    # -- membership mutations ------------------------------------------------

    def add_member(
        self,
        actor: User,
        cohort_id: int,
        user_id: Optional[int] = None,
        email: Optional[str] = None,
        role: str = "member",
    ) -> CohortMembership:
        """
        Add a user (by id, or resolved by email) to a cohort.  The actor must
        moderate the cohort or be an admin.
        """
        authorize(self.db, actor, Action.MANAGE_MEMBERS, cohort_id)
        _validate_role(role)
        self.get_cohort(cohort_id)

        if user_id is not None:
            target = self.db.get(User, user_id)
        elif email:
            target = self.db.query(User).filter(User.email == email.strip().lower()).first()
        else:
            raise ValidationError("Either user_id or email is required")
        if not target:
            raise UserNotFound()

        membership = CohortMembership(user_id=target.id, cohort_id=cohort_id, role=role)
        self.db.add(membership)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateMembership()

        record_event(self.db, "add_member", actor_id=actor.id, target_user_id=target.id,
                     cohort_id=cohort_id, detail=f"role={role}", request_ip=self.request_ip)
        self.db.commit()
        self.db.refresh(membership)
        return membership

    def update_membership_role(self, actor: User, membership_id: int, role: str) -> CohortMembership:
        membership = self._managed_membership(actor, membership_id)
        _validate_role(role)

        if (
            membership.role == "moderator"
            and role != "moderator"
            and self._moderator_count(membership.cohort_id) <= 1
        ):
            raise LastModerator()

        previous = membership.role
        membership.role = role
        record_event(self.db, "change_member_role", actor_id=actor.id,
                     target_user_id=membership.user_id, cohort_id=membership.cohort_id,
                     detail=f"{previous}->{role}", request_ip=self.request_ip)
        self.db.commit()
        self.db.refresh(membership)
        return membership

    def remove_member(self, actor: User, membership_id: int) -> None:
        membership = self._managed_membership(actor, membership_id)

        if membership.role == "moderator" and self._moderator_count(membership.cohort_id) <= 1:
            raise LastModerator()

        record_event(self.db, "remove_member", actor_id=actor.id,
                     target_user_id=membership.user_id, cohort_id=membership.cohort_id,
                     request_ip=self.request_ip)
        self.db.delete(membership)
        self.db.commit()

    def find_membership(self, user_id: int, cohort_id: int) -> Optional[CohortMembership]:
        return (
            self.db.query(CohortMembership)
            .filter(
                CohortMembership.user_id == user_id,
                CohortMembership.cohort_id == cohort_id,
            )
            .first()
        )

    def ensure_member(self, user_id: int, cohort_id: int) -> CohortMembership:
        """
        Return the user's membership in the cohort, creating a plain member
        row when there is none.  Used by birth-month assignment, which is not
        a moderator action.  A concurrent insert of the same pair is settled
        by the unique index and the existing row is returned.
        """
        existing = self.find_membership(user_id, cohort_id)
        if existing:
            return existing

        membership = CohortMembership(user_id=user_id, cohort_id=cohort_id, role="member")
        self.db.add(membership)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            winner = self.find_membership(user_id, cohort_id)
            if winner is None:
                raise
            return winner
        record_event(self.db, "auto_join", actor_id=user_id, target_user_id=user_id,
                     cohort_id=cohort_id, request_ip=self.request_ip)
        return membership

    # -- legacy birth-month bucketing ----------------------------------------

    def find_birth_cohort(self, start: date, end: date) -> Optional[Cohort]:
        return (
            self.db.query(Cohort)
            .filter(Cohort.start_date == start, Cohort.end_date == end)
            .first()
        )

    def get_or_create_birth_cohort(self, birth_date, creator_id: int) -> Cohort:
        """
        Resolve *birth_date* to its birth-month cohort, creating it on first
        use.  Idempotent: the same range always yields the same cohort id.
        The insert is committed on its own; if a concurrent request created
        the range first, the unique index rejects ours and the winner is
        returned.
        """
        start, end = birth_cohort_range(birth_date)
        existing = self.find_birth_cohort(start, end)
        if existing:
            return existing

        cohort = Cohort(
            name=birth_cohort_name(start),
            start_date=start,
            end_date=end,
            creator_id=creator_id,
        )
        self.db.add(cohort)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            winner = self.find_birth_cohort(start, end)
            if winner is None:
                raise
            return winner

        self.db.refresh(cohort)
        logger.info("Created birth cohort id=%d for %s..%s", cohort.id, start, end)
        return cohort
