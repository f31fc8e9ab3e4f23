# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Cohort and CohortMembership ORM models."""

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from database import Base

MEMBERSHIP_ROLES = ("member", "moderator")


class Cohort(Base):
    __tablename__ = "cohorts"
    # Birth-month cohorts are keyed by their exact date range.  User-created
    # cohorts leave both columns NULL, and NULLs never collide in a unique index.
    __table_args__ = (
        UniqueConstraint("start_date", "end_date", name="uq_cohorts_date_range"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    # Creator is informational only; management rights come from memberships.
    creator_id = Column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class CohortMembership(Base):
    __tablename__ = "cohort_memberships"
    __table_args__ = (
        UniqueConstraint("user_id", "cohort_id", name="uq_cohort_memberships_user_cohort"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    cohort_id = Column(
        Integer,
        ForeignKey("cohorts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = Column(Enum(*MEMBERSHIP_ROLES, name="membership_role"), nullable=False, default="member")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
