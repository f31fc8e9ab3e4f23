"""Cohort registry: creation, membership rules and birth-month bucketing."""

from datetime import date, datetime

import pytest

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
from models.audit_log import AuditLog
from models.cohort import Cohort, CohortMembership
from storage.cohort_manager import CohortManager, birth_cohort_name, birth_cohort_range


@pytest.fixture
def cohorts(db):
    return CohortManager(db)


class TestCreateCohort:
    def test_creator_gets_exactly_one_moderator_membership(self, db, cohorts, make_user):
        for name in ("ann", "ben", "cat"):
            creator = make_user(name)
            cohort = cohorts.create_cohort(creator, f"{name}'s group", "desc")

            rows = db.query(CohortMembership).filter(CohortMembership.cohort_id == cohort.id).all()
            assert len(rows) == 1
            assert rows[0].user_id == creator.id
            assert rows[0].role == "moderator"
            assert cohort.creator_id == creator.id

    def test_blank_name_creates_nothing(self, db, cohorts, make_user):
        creator = make_user("ann")
        with pytest.raises(ValidationError):
            cohorts.create_cohort(creator, "   ")
        assert db.query(Cohort).count() == 0
        assert db.query(CohortMembership).count() == 0

    def test_failed_membership_insert_rolls_back_cohort(self, db, cohorts, make_user, monkeypatch):
        creator = make_user("ann")

        def _boom(*args, **kwargs):
            raise RuntimeError("audit store down")

        monkeypatch.setattr("storage.cohort_manager.record_event", _boom)
        with pytest.raises(RuntimeError):
            cohorts.create_cohort(creator, "NYC Parents")
        assert db.query(Cohort).count() == 0
        assert db.query(CohortMembership).count() == 0

    def test_get_missing_cohort(self, cohorts):
        with pytest.raises(CohortNotFound):
            cohorts.get_cohort(999)


class TestMembershipAuthorization:
    @pytest.fixture
    def setup(self, cohorts, make_user):
        owner = make_user("owner")
        outsider = make_user("outsider")
        member = make_user("member")
        cohort = cohorts.create_cohort(owner, "NYC Parents")
        membership = cohorts.add_member(owner, cohort.id, user_id=member.id)
        return owner, outsider, member, cohort, membership

    def test_outsider_cannot_manage(self, cohorts, setup):
        owner, outsider, member, cohort, membership = setup
        with pytest.raises(Forbidden):
            cohorts.add_member(outsider, cohort.id, user_id=outsider.id)
        with pytest.raises(Forbidden):
            cohorts.update_membership_role(outsider, membership.id, "moderator")
        with pytest.raises(Forbidden):
            cohorts.remove_member(outsider, membership.id)

    def test_plain_member_cannot_manage(self, cohorts, setup):
        owner, outsider, member, cohort, membership = setup
        with pytest.raises(Forbidden):
            cohorts.add_member(member, cohort.id, user_id=outsider.id)
        with pytest.raises(Forbidden):
            cohorts.update_membership_role(member, membership.id, "moderator")
        with pytest.raises(Forbidden):
            cohorts.remove_member(member, membership.id)

    def test_forbidden_even_for_missing_cohort(self, cohorts, setup):
        owner, outsider, member, cohort, membership = setup
        with pytest.raises(Forbidden):
            cohorts.add_member(outsider, 12345, user_id=member.id)

    def test_forbidden_even_for_missing_membership(self, cohorts, make_user, setup):
        owner, outsider, member, cohort, membership = setup
        with pytest.raises(Forbidden):
            cohorts.update_membership_role(outsider, 98765, "member")
        with pytest.raises(Forbidden):
            cohorts.remove_member(member, 98765)

        admin = make_user("root", role="admin")
        with pytest.raises(MembershipNotFound):
            cohorts.update_membership_role(admin, 98765, "member")
        with pytest.raises(MembershipNotFound):
            cohorts.remove_member(admin, 98765)

    def test_admin_bypasses_moderator_check(self, cohorts, make_user, setup):
        owner, outsider, member, cohort, membership = setup
        admin = make_user("root", role="admin")
        added = cohorts.add_member(admin, cohort.id, user_id=outsider.id, role="moderator")
        assert added.role == "moderator"
        cohorts.remove_member(admin, membership.id)

    def test_creator_without_moderator_role_loses_rights(self, db, cohorts, make_user, setup):
        owner, outsider, member, cohort, membership = setup
        cohorts.update_membership_role(owner, membership.id, "moderator")
        owner_membership = (
            db.query(CohortMembership)
            .filter(CohortMembership.user_id == owner.id, CohortMembership.cohort_id == cohort.id)
            .one()
        )
        cohorts.update_membership_role(member, owner_membership.id, "member")

        assert cohorts.get_cohort(cohort.id).creator_id == owner.id
        assert cohorts.is_moderator(owner.id, cohort.id) is False
        with pytest.raises(Forbidden):
            cohorts.add_member(owner, cohort.id, user_id=outsider.id)


class TestMembershipRules:
    def test_duplicate_membership_is_rejected(self, db, cohorts, make_user):
        owner = make_user("owner")
        friend = make_user("friend")
        cohort = cohorts.create_cohort(owner, "Group")
        cohorts.add_member(owner, cohort.id, user_id=friend.id)
        with pytest.raises(DuplicateMembership):
            cohorts.add_member(owner, cohort.id, user_id=friend.id)
        assert db.query(CohortMembership).filter(CohortMembership.user_id == friend.id).count() == 1

    def test_add_member_by_email(self, cohorts, make_user):
        owner = make_user("owner")
        friend = make_user("friend")
        cohort = cohorts.create_cohort(owner, "Group")
        membership = cohorts.add_member(owner, cohort.id, email="FRIEND@example.com")
        assert membership.user_id == friend.id

    def test_add_unknown_user(self, cohorts, make_user):
        owner = make_user("owner")
        cohort = cohorts.create_cohort(owner, "Group")
        with pytest.raises(UserNotFound):
            cohorts.add_member(owner, cohort.id, user_id=999)
        with pytest.raises(UserNotFound):
            cohorts.add_member(owner, cohort.id, email="ghost@example.com")

    def test_invalid_role(self, cohorts, make_user):
        owner = make_user("owner")
        friend = make_user("friend")
        cohort = cohorts.create_cohort(owner, "Group")
        with pytest.raises(InvalidRole):
            cohorts.add_member(owner, cohort.id, user_id=friend.id, role="owner")
        membership = cohorts.add_member(owner, cohort.id, user_id=friend.id)
        with pytest.raises(InvalidRole):
            cohorts.update_membership_role(owner, membership.id, "admin")

    def test_last_moderator_cannot_be_removed_or_demoted(self, db, cohorts, make_user):
        owner = make_user("owner")
        admin = make_user("root", role="admin")
        cohort = cohorts.create_cohort(owner, "Group")
        own = db.query(CohortMembership).filter(CohortMembership.cohort_id == cohort.id).one()

        with pytest.raises(LastModerator):
            cohorts.remove_member(owner, own.id)
        with pytest.raises(LastModerator):
            cohorts.update_membership_role(admin, own.id, "member")
        assert cohorts.is_moderator(owner.id, cohort.id)

    def test_moderator_can_step_down_once_replaced(self, db, cohorts, make_user):
        owner = make_user("owner")
        friend = make_user("friend")
        cohort = cohorts.create_cohort(owner, "Group")
        cohorts.add_member(owner, cohort.id, user_id=friend.id, role="moderator")
        own = (
            db.query(CohortMembership)
            .filter(CohortMembership.cohort_id == cohort.id, CohortMembership.user_id == owner.id)
            .one()
        )
        cohorts.remove_member(owner, own.id)
        assert [m.user_id for m, _ in cohorts.list_members(cohort.id)] == [friend.id]

    def test_membership_changes_are_audited(self, db, cohorts, make_user):
        owner = make_user("owner")
        friend = make_user("friend")
        cohort = cohorts.create_cohort(owner, "Group")
        membership = cohorts.add_member(owner, cohort.id, user_id=friend.id)
        cohorts.update_membership_role(owner, membership.id, "moderator")
        cohorts.remove_member(owner, membership.id)

        actions = [row.action for row in db.query(AuditLog).filter(AuditLog.cohort_id == cohort.id).order_by(AuditLog.id)]
        assert actions == ["create_cohort", "add_member", "change_member_role", "remove_member"]

    def test_list_cohorts_for_user_includes_role(self, cohorts, make_user):
        owner = make_user("owner")
        friend = make_user("friend")
        mine = cohorts.create_cohort(owner, "Mine")
        theirs = cohorts.create_cohort(friend, "Theirs")
        cohorts.add_member(friend, theirs.id, user_id=owner.id)

        rows = {cohort.id: membership.role for cohort, membership in cohorts.list_cohorts_for_user(owner.id)}
        assert rows == {mine.id: "moderator", theirs.id: "member"}


class TestBirthCohortBucketing:
    @pytest.mark.parametrize("birth, expected", [
        (date(2025, 3, 10), (date(2025, 3, 1), date(2025, 4, 30))),
        (date(2025, 3, 31), (date(2025, 3, 1), date(2025, 4, 30))),
        (date(2024, 1, 15), (date(2024, 1, 1), date(2024, 2, 29))),
        (date(2025, 1, 15), (date(2025, 1, 1), date(2025, 2, 28))),
        (date(2025, 12, 25), (date(2025, 12, 1), date(2026, 1, 31))),
    ])
    def test_range(self, birth, expected):
        assert birth_cohort_range(birth) == expected

    def test_datetime_and_date_agree(self):
        assert birth_cohort_range(datetime(2025, 3, 10, 23, 59)) == birth_cohort_range(date(2025, 3, 10))

    def test_name(self):
        assert birth_cohort_name(date(2025, 3, 1)) == "March 2025 Babies"

    def test_same_month_resolves_to_same_cohort(self, db, cohorts, make_user):
        parent = make_user("parent")
        first = cohorts.get_or_create_birth_cohort(date(2025, 3, 2), creator_id=parent.id)
        second = cohorts.get_or_create_birth_cohort(date(2025, 3, 28), creator_id=parent.id)
        third = cohorts.get_or_create_birth_cohort(date(2025, 3, 2), creator_id=parent.id)

        assert first.id == second.id == third.id
        assert first.name == "March 2025 Babies"
        assert (first.start_date, first.end_date) == (date(2025, 3, 1), date(2025, 4, 30))
        assert db.query(Cohort).count() == 1

    def test_adjacent_months_get_distinct_cohorts(self, db, cohorts, make_user):
        parent = make_user("parent")
        march = cohorts.get_or_create_birth_cohort(date(2025, 3, 31), creator_id=parent.id)
        april = cohorts.get_or_create_birth_cohort(date(2025, 4, 1), creator_id=parent.id)
        assert march.id != april.id
        assert db.query(Cohort).count() == 2

    def test_range_is_matched_exactly_not_by_inclusion(self, db, cohorts, make_user):
        # A cohort whose range merely contains the birth month is not reused
        parent = make_user("parent")
        db.add(Cohort(name="Spring", start_date=date(2025, 3, 1), end_date=date(2025, 5, 31),
                      creator_id=parent.id))
        db.commit()

        cohort = cohorts.get_or_create_birth_cohort(date(2025, 3, 10), creator_id=parent.id)
        assert cohort.name == "March 2025 Babies"
        assert db.query(Cohort).count() == 2

    def test_user_created_cohorts_do_not_collide(self, cohorts, make_user):
        owner = make_user("owner")
        a = cohorts.create_cohort(owner, "A")
        b = cohorts.create_cohort(owner, "B")
        assert a.start_date is None and b.start_date is None
        assert a.id != b.id


class TestUniqueIndexRaces:
    """A lost race on an existence check is settled by the unique index."""

    @staticmethod
    def _miss_once(monkeypatch, manager, name):
        real = getattr(manager, name)
        misses = []

        def stale(*args):
            if not misses:
                misses.append(args)
                return None
            return real(*args)

        monkeypatch.setattr(manager, name, stale)
        return misses

    def test_birth_cohort_insert_conflict_returns_winner(self, db, cohorts, make_user, monkeypatch):
        parent = make_user("parent")
        winner_id = cohorts.get_or_create_birth_cohort(date(2025, 6, 3), creator_id=parent.id).id

        misses = self._miss_once(monkeypatch, cohorts, "find_birth_cohort")
        again = cohorts.get_or_create_birth_cohort(date(2025, 6, 20), creator_id=parent.id)

        assert misses == [(date(2025, 6, 1), date(2025, 7, 31))]
        assert again.id == winner_id
        assert db.query(Cohort).count() == 1

    def test_auto_join_conflict_returns_existing_membership(self, db, cohorts, make_user, monkeypatch):
        parent = make_user("parent")
        cohort = cohorts.get_or_create_birth_cohort(date(2025, 6, 3), creator_id=parent.id)
        first = cohorts.ensure_member(parent.id, cohort.id)
        db.commit()
        first_id = first.id

        misses = self._miss_once(monkeypatch, cohorts, "find_membership")
        again = cohorts.ensure_member(parent.id, cohort.id)

        assert len(misses) == 1
        assert again.id == first_id
        assert db.query(CohortMembership).filter(CohortMembership.cohort_id == cohort.id).count() == 1
