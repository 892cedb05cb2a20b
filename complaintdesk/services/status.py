"""
Complaint status service (бізнес-правила життєвого циклу скарги)

Тут живе state machine. Роутери імпортують ці функції, щоб не дублювати логіку.
Жодного стану між викликами: усі функції чисті.
"""

from __future__ import annotations

import enum
import re
from types import MappingProxyType
from typing import Any, Mapping

from complaintdesk.core.exceptions import StatusTransitionDenied


class ComplaintStatus(str, enum.Enum):
    pending = "Pending"
    accepted = "Accepted"
    assigned = "Assigned"
    in_progress = "In Progress"
    resolved = "Resolved"
    closed = "Closed"


COMPLAINT_STATUSES: tuple[str, ...] = tuple(s.value for s in ComplaintStatus)

# Допустимі переходи (state machine). Closed -> Accepted = reopen
ALLOWED_TRANSITIONS: Mapping[str, frozenset[str]] = MappingProxyType({
    "Pending": frozenset({"Accepted", "In Progress", "Closed"}),
    "Accepted": frozenset({"In Progress", "Closed"}),
    "Assigned": frozenset({"In Progress", "Closed"}),
    "In Progress": frozenset({"Resolved", "Closed"}),
    "Resolved": frozenset({"Closed"}),
    "Closed": frozenset({"Accepted"}),
})

# Порядок перевірки важливий: перший збіг виграє
_STATUS_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^in[-_ ]?progress$", re.IGNORECASE), "In Progress"),
    (re.compile(r"^accepted$", re.IGNORECASE), "Accepted"),
    (re.compile(r"^pending$", re.IGNORECASE), "Pending"),
    (re.compile(r"^resolved$", re.IGNORECASE), "Resolved"),
    (re.compile(r"^closed$", re.IGNORECASE), "Closed"),
    (re.compile(r"^assigned$", re.IGNORECASE), "Assigned"),
)


def _allowed_targets(status: Any) -> tuple[str, ...]:
    # стабільний порядок для повідомлень: як у енумі
    targets = ALLOWED_TRANSITIONS.get(status, frozenset())
    return tuple(s for s in COMPLAINT_STATUSES if s in targets)


def normalize_status(value: Any) -> Any:
    """
    Зводить варіанти написання ("in-progress", "IN_PROGRESS", " closed ")
    до канонічної форми. Невідоме значення повертається як є (після strip),
    тож помилка в написанні мовчки проходить далі.
    """
    if isinstance(value, ComplaintStatus):
        return value.value
    if not value:
        return value
    v = str(value).strip()
    for pattern, canonical in _STATUS_PATTERNS:
        if pattern.match(v):
            return canonical
    return v


def can_transition(src: Any, dst: Any) -> bool:
    """Чи дозволено перейти зі стану src до dst."""
    src_n = normalize_status(src)
    dst_n = normalize_status(dst)
    targets = ALLOWED_TRANSITIONS.get(src_n)
    if targets is None:
        return False
    return dst_n in targets


def assert_transition(src: Any, dst: Any) -> None:
    if not can_transition(src, dst):
        raise StatusTransitionDenied(src, dst, _allowed_targets(normalize_status(src)))


def derive_status_on_approval(current_status: Any, approver_role: str | None) -> str:
    """
    Погодження скарги:
      - HoD одразу бере в роботу -> In Progress;
      - будь-хто інший -> Accepted.
    Якщо цільовий стан недосяжний з поточного — StatusTransitionDenied.
    """
    current = normalize_status(current_status)
    role = (approver_role or "").lower()
    target = "In Progress" if role == "hod" else "Accepted"
    assert_transition(current, target)
    return target


def sanitize_incoming_status(desired: Any, current: Any) -> Any:
    """
    Для недовіреного вводу: незаконний перехід мовчки ігнорується,
    повертається current без змін.
    """
    target = normalize_status(desired)
    if can_transition(current, target):
        return target
    return current


def is_terminal(status: Any) -> bool:
    # "зараз закрита"; Closed усе ще можна перевідкрити в Accepted
    return normalize_status(status) == "Closed"
