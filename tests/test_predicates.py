"""Tests for the predicate tree: in-memory evaluation and the SQLAlchemy translator."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from complaintdesk.db.filters import to_sqlalchemy
from complaintdesk.db.models import Complaint
from complaintdesk.services.predicates import (
    And,
    Eq,
    Exists,
    In,
    IsNull,
    Lt,
    Ne,
    Not,
    NotIn,
    Or,
    Regex,
    evaluate,
)
from complaintdesk.services.scoping import build_scope_filter


class TestEvaluateMissingFields:
    """Missing fields behave the way a document store treats them."""

    def test_eq_and_in_do_not_match_missing(self):
        assert evaluate(Eq("assigned_to", None), {}) is False
        assert evaluate(In("assigned_to", ["a"]), {}) is False

    def test_ne_and_not_in_match_missing(self):
        assert evaluate(Ne("is_deleted", True), {}) is True
        assert evaluate(NotIn("status", ["Closed"]), {}) is True

    def test_exists(self):
        assert evaluate(Exists("submitted_to"), {"submitted_to": None}) is True
        assert evaluate(Exists("submitted_to", present=False), {}) is True

    def test_is_null(self):
        assert evaluate(IsNull("submitted_to"), {}) is True
        assert evaluate(IsNull("submitted_to"), {"submitted_to": None}) is True
        assert evaluate(IsNull("submitted_to"), {"submitted_to": "dean"}) is False

    def test_regex_never_matches_non_strings(self):
        r = Regex("submitted_to", "dean", ignore_case=True)
        assert evaluate(r, {}) is False
        assert evaluate(r, {"submitted_to": None}) is False
        assert evaluate(Not(r), {}) is True

    def test_lt_skips_missing(self):
        assert evaluate(Lt("assigned_at", 10), {}) is False
        assert evaluate(Lt("assigned_at", 10), {"assigned_at": None}) is False
        assert evaluate(Lt("assigned_at", 10), {"assigned_at": 3}) is True

    def test_end_anchor_does_not_match_before_trailing_newline(self):
        r = Regex("department", "^IT$", ignore_case=True)
        assert evaluate(r, {"department": "it"}) is True
        assert evaluate(r, {"department": "IT\n"}) is False

    def test_escaped_dollar_stays_literal(self):
        r = Regex("title", r"cost \$")
        assert evaluate(r, {"title": "cost $"}) is True
        assert evaluate(r, {"title": "cost "}) is False


class TestEvaluateCombinators:
    def test_and_or_not(self):
        rec = {"a": 1, "b": 2}
        assert evaluate(And(Eq("a", 1), Eq("b", 2)), rec)
        assert not evaluate(And(Eq("a", 1), Eq("b", 3)), rec)
        assert evaluate(Or(Eq("a", 9), Eq("b", 2)), rec)
        assert evaluate(Not(Eq("a", 9)), rec)

    def test_empty_groups(self):
        assert evaluate(And(), {}) is True
        assert evaluate(Or(), {}) is False

    def test_attribute_records(self):
        c = Complaint.new(title="t", category="c", submitted_by="s", department="IT")
        assert evaluate(Eq("status", "Pending"), c)
        assert evaluate(Ne("is_deleted", True), c)

    def test_unknown_node_rejected(self):
        with pytest.raises(TypeError):
            evaluate(object(), {})  # type: ignore[arg-type]

    def test_unknown_node_inside_group_rejected(self):
        with pytest.raises(TypeError):
            evaluate(And(Eq("a", 1), object()), {"a": 1})  # type: ignore[arg-type]


def _sql(predicate) -> str:
    stmt = select(Complaint.id).where(to_sqlalchemy(predicate, Complaint))
    return str(stmt.compile(dialect=postgresql.dialect()))


class TestToSqlalchemy:
    def test_case_insensitive_regex_uses_postgres_operator(self):
        sql = _sql(Regex("department", "^IT$", ignore_case=True))
        assert "complaints.department IS NOT NULL" in sql
        assert "complaints.department ~* " in sql

    def test_ne_is_null_safe(self):
        assert "IS DISTINCT FROM" in _sql(Ne("is_deleted", True))

    def test_in_and_is_null(self):
        sql = _sql(And(In("assigned_to", ["a", "b"]), IsNull("submitted_to")))
        assert "complaints.assigned_to IN" in sql
        assert "complaints.submitted_to IS NULL" in sql

    def test_eq_none_becomes_is_null(self):
        assert "complaints.assigned_to IS NULL" in _sql(Eq("assigned_to", None))

    def test_lt(self):
        cutoff = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert "complaints.assigned_at <" in _sql(Lt("assigned_at", cutoff))

    def test_full_scope_filter_translates(self):
        pred = build_scope_filter({"id": "hod-1", "department": "IT"}, staff_ids=["s1"], strict_recipient=True)
        sql = _sql(pred)
        assert "complaints.recipient_role =" in sql
        assert "NOT (" in sql

    def test_unknown_column_rejected(self):
        with pytest.raises(ValueError):
            to_sqlalchemy(Eq("no_such_field", 1), Complaint)

    def test_unknown_node_rejected(self):
        with pytest.raises(TypeError):
            to_sqlalchemy(object(), Complaint)  # type: ignore[arg-type]

    def test_sql_keeps_dollar_anchor(self):
        assert Regex("department", "^IT$").pattern == "^IT$"
        sql = str(
            select(Complaint.id)
            .where(to_sqlalchemy(Regex("department", "^IT$"), Complaint))
            .compile(dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True})
        )
        assert "'^IT$'" in sql
