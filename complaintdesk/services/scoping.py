"""
Scoping service: хто які скарги бачить.

build_scope_filter будує предикат для HoD (голова кафедри):
  - скарги, призначені самому HoD або staff його кафедри,
    або адресовані йому напряму (recipient_role="hod");
  - кафедра збігається повністю і без урахування регістру;
  - скарги, скеровані admin/dean, виключаються, якщо їх не призначено
    всередині кафедри.
Запит тут не виконується: результат віддається сховищу.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Sequence

from complaintdesk.core.exceptions import InvalidScopeUser
from complaintdesk.services.predicates import (
    And,
    Eq,
    In,
    IsNull,
    Ne,
    Not,
    Or,
    Predicate,
    Regex,
    get_field,
    MISSING,
)

ABOVE_DEPARTMENT_ROUTING = r"(admin|dean)"


def _attr(user: Any, name: str) -> Any:
    value = get_field(user, name)
    return None if value is MISSING else value


def _department_match(department: str) -> Regex:
    # повний збіг; спецсимволи в назві кафедри екрануємо
    return Regex("department", f"^{re.escape(str(department))}$", ignore_case=True)


def build_scope_filter(
    user: Any,
    staff_ids: Iterable[Any] | None = None,
    strict_recipient: bool = False,
) -> Predicate:
    """
    Предикат видимості скарг для HoD.

    user — об'єкт або dict з полями id і department.
    staff_ids — ідентифікатори staff цієї кафедри (їхні скарги теж видно).
    strict_recipient — лише скарги, призначені HoD або адресовані йому напряму.
    """
    if user is None:
        raise InvalidScopeUser()
    uid = _attr(user, "id")
    department = _attr(user, "department")
    if not uid or not department:
        raise InvalidScopeUser()

    staff: Sequence[Any] = tuple(staff_ids or ())

    assigned_to_me = Eq("assigned_to", uid)
    addressed_to_me = And(Eq("recipient_role", "hod"), Eq("recipient_id", uid))
    assigned_to_staff = [In("assigned_to", staff)] if staff else []

    base = [
        Ne("is_deleted", True),
        _department_match(department),
        Or(assigned_to_me, *assigned_to_staff, addressed_to_me),
        Or(
            IsNull("submitted_to"),
            Not(Regex("submitted_to", ABOVE_DEPARTMENT_ROUTING, ignore_case=True)),
            assigned_to_me,
            *assigned_to_staff,
        ),
    ]
    if strict_recipient:
        # звуження, а не заміна: базові умови лишаються
        base.append(Or(assigned_to_me, addressed_to_me))
    return And(*base)


def build_role_scope_filter(
    user: Any,
    staff_ids: Iterable[Any] | None = None,
    strict_recipient: bool = False,
) -> Predicate:
    """
    Видимість для списку скарг залежно від ролі:
      - admin/dean бачать усе, крім видаленого;
      - hod — build_scope_filter;
      - staff — призначене йому;
      - student (і решта) — подане ним.
    """
    role = (_attr(user, "role") or "").lower()
    uid = _attr(user, "id")
    not_deleted = Ne("is_deleted", True)

    if role in {"admin", "dean"}:
        return not_deleted
    if role == "hod":
        return build_scope_filter(user, staff_ids=staff_ids, strict_recipient=strict_recipient)
    if role == "staff":
        return And(not_deleted, Eq("assigned_to", uid))
    return And(not_deleted, Eq("submitted_by", uid))
