# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Baby profiles and the birth-month cohort assignment built on them."""

from datetime import date, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from core.exceptions import BabyNotFound, ValidationError
from core.logger import logger
from models.baby import Baby
from models.cohort import CohortMembership
from models.user import User
from storage.cohort_manager import CohortManager


def birth_week_of(birth_date: date) -> date:
    """Monday of the ISO week containing *birth_date*."""
    return birth_date - timedelta(days=birth_date.weekday())


class BabyManager:
    def __init__(self, db: Session, request_ip: Optional[str] = None):
        self.db = db
        self.cohorts = CohortManager(db, request_ip=request_ip)

    def create_baby(
        self,
        parent: User,
        name: str,
        birth_date: date,
        photo_url: Optional[str] = None,
    ) -> Baby:
        """
        Store a baby for *parent*, resolve its birth-month cohort (creating it
        if needed) and make the parent a member of that cohort.
        """
        name = name.strip()
        if not name:
            raise ValidationError("Baby name cannot be empty")

        cohort = self.cohorts.get_or_create_birth_cohort(birth_date, creator_id=parent.id)
        self.cohorts.ensure_member(parent.id, cohort.id)

        baby = Baby(
            user_id=parent.id,
            name=name,
            birth_date=birth_date,
            birth_week=birth_week_of(birth_date),
            photo_url=photo_url or None,
            cohort_id=cohort.id,
        )
        self.db.add(baby)
        self.db.commit()
        self.db.refresh(baby)
        logger.info("Baby id=%d assigned to cohort id=%d", baby.id, cohort.id)
        return baby

    def get_baby_for_user(self, user_id: int) -> Baby:
        baby = (
            self.db.query(Baby)
            .filter(Baby.user_id == user_id)
            .order_by(Baby.id)
            .first()
        )
        if not baby:
            raise BabyNotFound()
        return baby

    def list_babies_in_cohort(self, cohort_id: int) -> List[Tuple[Baby, User, Optional[str]]]:
        """Babies of a cohort with their parent and the parent's membership role."""
        self.cohorts.get_cohort(cohort_id)
        return (
            self.db.query(Baby, User, CohortMembership.role)
            .join(User, User.id == Baby.user_id)
            .outerjoin(
                CohortMembership,
                (CohortMembership.user_id == Baby.user_id)
                & (CohortMembership.cohort_id == Baby.cohort_id),
            )
            .filter(Baby.cohort_id == cohort_id)
            .order_by(Baby.birth_date, Baby.id)
            .all()
        )
