"""Unit tests for department-scoped complaint visibility."""

import pytest

from complaintdesk.core.exceptions import InvalidScopeUser
from complaintdesk.services.predicates import And, Eq, Ne, Regex, evaluate
from complaintdesk.services.scoping import build_role_scope_filter, build_scope_filter

HOD = {"id": "hod-1", "department": "IT"}
STAFF = "staff-1"


def complaint(**fields):
    base = {"department": "it", "is_deleted": False, "submitted_to": None}
    base.update(fields)
    return base


class TestPreconditions:
    @pytest.mark.parametrize("user", [
        None,
        {"id": "hod-1"},
        {"id": "hod-1", "department": ""},
        {"department": "IT"},
        {"id": "", "department": "IT"},
    ])
    def test_malformed_user_raises(self, user):
        with pytest.raises(InvalidScopeUser):
            build_scope_filter(user)

    def test_accepts_objects_with_attributes(self):
        class User:
            id = "hod-1"
            department = "IT"

        assert isinstance(build_scope_filter(User()), And)


class TestPredicateShape:
    def test_department_is_anchored_escaped_case_insensitive(self):
        pred = build_scope_filter({"id": "h", "department": "C++ (Systems)"})
        dept = pred.children[1]
        assert dept == Regex("department", r"^C\+\+\ \(Systems\)$", ignore_case=True)

    def test_excludes_deleted_first(self):
        assert build_scope_filter(HOD).children[0] == Ne("is_deleted", True)

    def test_staff_clause_omitted_without_staff(self):
        group_a = build_scope_filter(HOD).children[2]
        assert len(group_a.children) == 2
        group_a = build_scope_filter(HOD, staff_ids=[STAFF]).children[2]
        assert len(group_a.children) == 3

    def test_each_call_builds_a_new_equal_tree(self):
        a = build_scope_filter(HOD, staff_ids=[STAFF])
        b = build_scope_filter(HOD, staff_ids=[STAFF])
        assert a == b and a is not b

    def test_strict_mode_appends_narrowing_clause(self):
        base = build_scope_filter(HOD)
        strict = build_scope_filter(HOD, strict_recipient=True)
        assert strict.children[:4] == base.children
        assert len(strict.children) == 5


class TestVisibility:
    def test_dean_routed_complaint_assigned_elsewhere_is_hidden(self):
        pred = build_scope_filter(HOD)
        c = complaint(assigned_to="other-9", submitted_to="dean office")
        assert evaluate(pred, c) is False

    def test_dean_routed_complaint_assigned_to_hod_is_visible(self):
        pred = build_scope_filter(HOD)
        c = complaint(assigned_to="hod-1", submitted_to="dean office")
        assert evaluate(pred, c) is True

    def test_directly_addressed_complaint_is_visible(self):
        pred = build_scope_filter(HOD)
        c = complaint(recipient_role="hod", recipient_id="hod-1", submitted_to="HoD IT")
        assert evaluate(pred, c) is True

    def test_addressed_to_other_hod_is_hidden(self):
        pred = build_scope_filter(HOD)
        c = complaint(recipient_role="hod", recipient_id="hod-2")
        assert evaluate(pred, c) is False

    def test_department_is_full_string_match(self):
        pred = build_scope_filter(HOD)
        assert evaluate(pred, complaint(department="IT Services", assigned_to="hod-1")) is False
        assert evaluate(pred, complaint(department="iT", assigned_to="hod-1")) is True

    def test_trailing_newline_in_department_is_not_a_match(self):
        pred = build_scope_filter(HOD)
        assert evaluate(pred, complaint(department="IT\n", assigned_to="hod-1")) is False

    def test_regex_metacharacters_cannot_broaden_match(self):
        pred = build_scope_filter({"id": "hod-1", "department": ".*"})
        assert evaluate(pred, complaint(department="IT", assigned_to="hod-1")) is False
        assert evaluate(pred, complaint(department=".*", assigned_to="hod-1")) is True

    def test_deleted_complaints_are_hidden(self):
        pred = build_scope_filter(HOD)
        assert evaluate(pred, complaint(assigned_to="hod-1", is_deleted=True)) is False

    def test_missing_is_deleted_counts_as_not_deleted(self):
        pred = build_scope_filter(HOD)
        c = {"department": "IT", "assigned_to": "hod-1"}
        assert evaluate(pred, c) is True

    def test_staff_assignment_visible_even_when_admin_routed(self):
        pred = build_scope_filter(HOD, staff_ids=[STAFF])
        assert evaluate(pred, complaint(assigned_to=STAFF, submitted_to="Admin")) is True

    def test_hod_addressed_but_admin_routed_is_hidden(self):
        pred = build_scope_filter(HOD)
        c = complaint(recipient_role="hod", recipient_id="hod-1", submitted_to="admin desk")
        assert evaluate(pred, c) is False

    def test_strict_mode_drops_staff_only_visibility(self):
        c = complaint(assigned_to=STAFF)
        assert evaluate(build_scope_filter(HOD, staff_ids=[STAFF]), c) is True
        strict = build_scope_filter(HOD, staff_ids=[STAFF], strict_recipient=True)
        assert evaluate(strict, c) is False

    def test_strict_mode_keeps_direct_targets(self):
        strict = build_scope_filter(HOD, staff_ids=[STAFF], strict_recipient=True)
        assert evaluate(strict, complaint(assigned_to="hod-1")) is True
        assert evaluate(strict, complaint(recipient_role="hod", recipient_id="hod-1")) is True


class TestRoleScope:
    def test_admin_and_dean_see_everything_not_deleted(self):
        for role in ("admin", "Dean"):
            assert build_role_scope_filter({"id": "x", "role": role}) == Ne("is_deleted", True)

    def test_hod_delegates_to_scope_filter(self):
        user = {"id": "hod-1", "department": "IT", "role": "hod"}
        assert build_role_scope_filter(user, staff_ids=[STAFF]) == build_scope_filter(user, staff_ids=[STAFF])

    def test_hod_without_department_is_a_programming_error(self):
        with pytest.raises(InvalidScopeUser):
            build_role_scope_filter({"id": "hod-1", "role": "hod"})

    def test_staff_sees_own_assignments(self):
        pred = build_role_scope_filter({"id": "s1", "role": "staff"})
        assert pred == And(Ne("is_deleted", True), Eq("assigned_to", "s1"))

    def test_student_sees_own_submissions(self):
        pred = build_role_scope_filter({"id": "st", "role": "student"})
        assert evaluate(pred, {"submitted_by": "st"}) is True
        assert evaluate(pred, {"submitted_by": "other"}) is False
