# complaintdesk/db/filters.py
"""
Переклад дерева предикатів (services.predicates) у SQLAlchemy-вираз.

Відсутнє поле документа в SQL — це NULL, тож:
  Ne/NotIn пропускають NULL, Regex/Eq/In/Lt на NULL не збігаються.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import and_, false, not_, or_, true
from sqlalchemy.sql.elements import ColumnElement

from complaintdesk.services.predicates import (
    And,
    Eq,
    Exists,
    In,
    IsNull,
    LEAF_TYPES,
    Lt,
    Ne,
    Not,
    NotIn,
    Or,
    Predicate,
    Regex,
)


def _column(model: Any, name: str):
    col = getattr(model, name, None)
    if col is None:
        raise ValueError(f"{model.__name__} has no column '{name}'")
    return col


def to_sqlalchemy(predicate: Predicate, model: Any) -> ColumnElement[bool]:
    """
    Приклад:
        stmt = select(Complaint).where(to_sqlalchemy(build_scope_filter(user), Complaint))
    """
    p = predicate
    if isinstance(p, And):
        if not p.children:
            return true()
        return and_(*(to_sqlalchemy(c, model) for c in p.children))
    if isinstance(p, Or):
        if not p.children:
            return false()
        return or_(*(to_sqlalchemy(c, model) for c in p.children))
    if isinstance(p, Not):
        return not_(to_sqlalchemy(p.child, model))
    if not isinstance(p, LEAF_TYPES):
        raise TypeError(f"Unknown predicate node: {p!r}")

    col = _column(model, p.field)
    if isinstance(p, Eq):
        return col.is_(None) if p.value is None else col == p.value
    if isinstance(p, Ne):
        return col.is_distinct_from(p.value)
    if isinstance(p, In):
        return col.in_(p.values)
    if isinstance(p, NotIn):
        return or_(col.is_(None), col.not_in(p.values))
    if isinstance(p, Exists):
        return col.is_not(None) if p.present else col.is_(None)
    if isinstance(p, IsNull):
        return col.is_(None)
    if isinstance(p, Regex):
        # IS NOT NULL, щоб NOT(regex) на NULL давав true, як у документному сховищі
        flags = "i" if p.ignore_case else None
        return and_(col.is_not(None), col.regexp_match(p.pattern, flags=flags))
    if isinstance(p, Lt):
        return col < p.value
    raise TypeError(f"Unknown predicate node: {p!r}")
