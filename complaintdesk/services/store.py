"""
In-memory сховище скарг (процес-локальне).

Виконує предикати через services.predicates.evaluate. Для реляційної БД
той самий предикат перекладається db.filters.to_sqlalchemy.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional

from complaintdesk.core.exceptions import ComplaintNotFound
from complaintdesk.db.models import ActivityLog, Complaint
from complaintdesk.services.predicates import Predicate, evaluate


class ComplaintStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: Dict[str, Complaint] = {}
        # department (lower) -> staff user ids
        self._staff: Dict[str, List[str]] = {}
        # у порядку запису
        self._activity: List[ActivityLog] = []

    def add(self, complaint: Complaint) -> Complaint:
        with self._lock:
            self._items[complaint.id] = complaint
        return complaint

    def save(self, complaint: Complaint) -> Complaint:
        return self.add(complaint)

    def get(self, complaint_id: str) -> Complaint:
        with self._lock:
            c = self._items.get(complaint_id)
        if c is None:
            raise ComplaintNotFound(complaint_id)
        return c

    def find(self, predicate: Optional[Predicate] = None) -> List[Complaint]:
        """Скарги, що задовольняють предикат, новіші першими."""
        with self._lock:
            items = list(self._items.values())
        if predicate is not None:
            items = [c for c in items if evaluate(predicate, c)]
        items.sort(key=lambda c: c.created_at, reverse=True)
        return items

    def all(self) -> List[Complaint]:
        return self.find()

    # --- журнал дій ---

    def log_activity(self, entry: ActivityLog) -> ActivityLog:
        with self._lock:
            self._activity.append(entry)
        return entry

    def activity(self, complaint_id: Optional[str] = None) -> List[ActivityLog]:
        """Записи журналу (усі або однієї скарги), новіші першими."""
        with self._lock:
            entries = list(self._activity)
        if complaint_id is not None:
            entries = [e for e in entries if e.complaint_id == complaint_id]
        entries.reverse()
        return entries

    # --- staff roster ---

    def set_staff(self, department: str, user_ids: Iterable[str]) -> None:
        with self._lock:
            self._staff[department.strip().lower()] = list(user_ids)

    def staff_ids_for(self, department: Optional[str]) -> List[str]:
        if not department:
            return []
        with self._lock:
            return list(self._staff.get(department.strip().lower(), []))

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._staff.clear()
            self._activity.clear()


_store: ComplaintStore | None = None


def get_store() -> ComplaintStore:
    global _store
    if _store is None:
        _store = ComplaintStore()
    return _store
