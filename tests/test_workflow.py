"""Approval state machine and role predicates — pure logic tests (no DB)."""

from __future__ import annotations

import pytest

from leave_portal.common.constants import (
    LeaveAction,
    LeaveStatus,
    LeaveType,
    RecommendedBy,
)
from leave_portal.common.exceptions import ForbiddenException, InvalidTransitionException
from leave_portal.leave.predicates import (
    is_actionable_for,
    is_visible_to,
    is_visible_to_principal,
)
from leave_portal.leave.workflow import allowed_actions, apply_transition
from tests.conftest import (
    ADMIN,
    DIRECTOR,
    HOD,
    NOW,
    OTHER_HOD,
    PRINCIPAL,
    STAFF,
    STAFF_2,
    _make_record,
    make_actor,
)

COMP = LeaveType.compensatory.value


# ═════════════════════════════════════════════════════════════════════
# 1. Principal visibility / Compensatory Leave routing
# ═════════════════════════════════════════════════════════════════════


class TestPrincipalPredicates:

    def test_pending_never_visible_to_principal(self):
        assert not is_visible_to_principal(_make_record(status=LeaveStatus.pending))

    def test_recommended_casual_leave_is_actionable(self):
        record = _make_record(status=LeaveStatus.recommended, recommended_by="HOD")
        assert is_visible_to_principal(record)
        assert is_actionable_for(PRINCIPAL, record)

    def test_compensatory_recommended_by_hod_excluded(self):
        record = _make_record(
            leave_type=COMP, status=LeaveStatus.recommended, recommended_by="HOD",
        )
        assert not is_visible_to_principal(record)
        assert not is_actionable_for(PRINCIPAL, record)

    def test_compensatory_recommended_by_director_included(self):
        record = _make_record(
            leave_type=COMP, status=LeaveStatus.recommended, recommended_by="Director",
        )
        assert is_visible_to_principal(record)
        assert is_actionable_for(PRINCIPAL, record)

    def test_approved_records_visible_but_not_actionable(self):
        record = _make_record(status=LeaveStatus.approved, recommended_by="HOD")
        assert is_visible_to(PRINCIPAL, record)
        assert not is_actionable_for(PRINCIPAL, record)


# ═════════════════════════════════════════════════════════════════════
# 2. Visibility / actionability by role
# ═════════════════════════════════════════════════════════════════════


class TestRolePredicates:

    def test_owner_always_sees_own_records(self):
        assert is_visible_to(STAFF, _make_record())

    def test_staff_cannot_see_colleagues(self):
        assert not is_visible_to(STAFF_2, _make_record())

    def test_hod_scoped_to_department(self):
        record = _make_record()
        assert is_visible_to(HOD, record)
        assert is_actionable_for(HOD, record)
        assert not is_visible_to(OTHER_HOD, record)
        assert not is_actionable_for(OTHER_HOD, record)

    def test_hod_without_department_sees_nothing(self):
        hod = make_actor("hod-x", HOD.role, department=None)
        assert not is_visible_to(hod, _make_record(department=None))

    def test_hod_not_actionable_once_recommended(self):
        record = _make_record(status=LeaveStatus.recommended, recommended_by="HOD")
        assert is_visible_to(HOD, record)
        assert not is_actionable_for(HOD, record)

    def test_director_only_handles_compensatory(self):
        casual = _make_record(status=LeaveStatus.recommended, recommended_by="HOD")
        comp = _make_record(leave_type=COMP, status=LeaveStatus.recommended, recommended_by="HOD")
        assert not is_actionable_for(DIRECTOR, casual)
        assert is_actionable_for(DIRECTOR, comp)

    def test_director_done_once_cleared(self):
        comp = _make_record(leave_type=COMP, status=LeaveStatus.recommended, recommended_by="Director")
        assert is_visible_to(DIRECTOR, comp)
        assert not is_actionable_for(DIRECTOR, comp)

    def test_admin_acts_on_any_open_record(self):
        assert is_actionable_for(ADMIN, _make_record())
        assert is_actionable_for(ADMIN, _make_record(leave_type=COMP, status=LeaveStatus.recommended))
        assert not is_actionable_for(ADMIN, _make_record(status=LeaveStatus.rejected))

    def test_nobody_acts_on_own_record(self):
        record = _make_record(user_id=HOD.user_id)
        assert not is_actionable_for(HOD, record)


# ═════════════════════════════════════════════════════════════════════
# 3. Transitions
# ═════════════════════════════════════════════════════════════════════


class TestTransitions:

    def test_hod_recommends(self):
        record = _make_record()
        previous = apply_transition(HOD, record, LeaveAction.recommend, NOW, remarks="OK")
        assert previous == LeaveStatus.pending
        assert record.status == LeaveStatus.recommended
        assert record.recommended_by == RecommendedBy.hod.value
        assert record.reviewed_by == HOD.user_id
        assert record.reviewer_remarks == "OK"

    def test_hod_rejects_pending(self):
        record = _make_record()
        apply_transition(HOD, record, LeaveAction.reject, NOW)
        assert record.status == LeaveStatus.rejected
        assert record.recommended_by is None

    def test_hod_cannot_approve(self):
        with pytest.raises(ForbiddenException):
            apply_transition(HOD, _make_record(), LeaveAction.approve, NOW)

    def test_hod_other_department_forbidden(self):
        with pytest.raises(ForbiddenException):
            apply_transition(OTHER_HOD, _make_record(), LeaveAction.recommend, NOW)

    def test_full_chain_to_approved(self):
        record = _make_record()
        apply_transition(HOD, record, LeaveAction.recommend, NOW)
        apply_transition(PRINCIPAL, record, LeaveAction.approve, NOW)
        assert record.status == LeaveStatus.approved
        assert record.recommended_by == RecommendedBy.hod.value

    def test_principal_cannot_act_on_pending(self):
        with pytest.raises(InvalidTransitionException):
            apply_transition(PRINCIPAL, _make_record(), LeaveAction.approve, NOW)

    def test_principal_rejects_recommended(self):
        record = _make_record(status=LeaveStatus.recommended, recommended_by="HOD")
        apply_transition(PRINCIPAL, record, LeaveAction.reject, NOW)
        assert record.status == LeaveStatus.rejected

    def test_compensatory_needs_director_hop(self):
        record = _make_record(leave_type=COMP)
        apply_transition(HOD, record, LeaveAction.recommend, NOW)

        with pytest.raises(InvalidTransitionException) as exc_info:
            apply_transition(PRINCIPAL, record, LeaveAction.approve, NOW)
        assert "Director" in exc_info.value.detail

        apply_transition(DIRECTOR, record, LeaveAction.recommend, NOW)
        assert record.status == LeaveStatus.recommended
        assert record.recommended_by == RecommendedBy.director.value

        apply_transition(PRINCIPAL, record, LeaveAction.approve, NOW)
        assert record.status == LeaveStatus.approved
        assert record.recommended_by == RecommendedBy.director.value

    def test_director_cannot_touch_casual_leave(self):
        record = _make_record(status=LeaveStatus.recommended, recommended_by="HOD")
        with pytest.raises(ForbiddenException):
            apply_transition(DIRECTOR, record, LeaveAction.recommend, NOW)

    def test_director_rejects_compensatory(self):
        record = _make_record(leave_type=COMP, status=LeaveStatus.recommended, recommended_by="HOD")
        apply_transition(DIRECTOR, record, LeaveAction.reject, NOW)
        assert record.status == LeaveStatus.rejected
        assert record.recommended_by == "HOD"

    def test_admin_bypass_approves_pending(self):
        record = _make_record()
        apply_transition(ADMIN, record, LeaveAction.approve, NOW)
        assert record.status == LeaveStatus.approved

    def test_admin_recommend_marks_admin(self):
        record = _make_record()
        apply_transition(ADMIN, record, LeaveAction.recommend, NOW)
        assert record.recommended_by == RecommendedBy.admin.value

    def test_staff_cannot_act(self):
        with pytest.raises(ForbiddenException):
            apply_transition(STAFF_2, _make_record(), LeaveAction.approve, NOW)

    def test_self_action_forbidden_even_for_admin(self):
        record = _make_record(user_id=ADMIN.user_id)
        with pytest.raises(ForbiddenException):
            apply_transition(ADMIN, record, LeaveAction.approve, NOW)

    @pytest.mark.parametrize("status", [LeaveStatus.approved, LeaveStatus.rejected])
    @pytest.mark.parametrize("action", list(LeaveAction))
    def test_terminal_states_are_final(self, status, action):
        record = _make_record(status=status, recommended_by="HOD")
        with pytest.raises(InvalidTransitionException):
            apply_transition(ADMIN, record, action, NOW)
        assert record.status == status


# ═════════════════════════════════════════════════════════════════════
# 4. Allowed actions
# ═════════════════════════════════════════════════════════════════════


class TestAllowedActions:

    def test_hod_on_pending(self):
        assert allowed_actions(HOD, _make_record()) == [LeaveAction.recommend, LeaveAction.reject]

    def test_principal_on_recommended(self):
        record = _make_record(status=LeaveStatus.recommended, recommended_by="HOD")
        assert allowed_actions(PRINCIPAL, record) == [LeaveAction.approve, LeaveAction.reject]

    def test_principal_on_uncleared_compensatory(self):
        record = _make_record(leave_type=COMP, status=LeaveStatus.recommended, recommended_by="HOD")
        assert allowed_actions(PRINCIPAL, record) == []

    def test_admin_on_recommended(self):
        record = _make_record(status=LeaveStatus.recommended, recommended_by="HOD")
        assert allowed_actions(ADMIN, record) == [LeaveAction.approve, LeaveAction.reject]
