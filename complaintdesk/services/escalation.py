"""
Escalation service

Скарга ескалюється, якщо її призначили понад threshold_days днів тому,
а вона досі не Resolved/Closed і ще не ескалована.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from complaintdesk.core.config import settings
from complaintdesk.db.models import Complaint
from complaintdesk.schemas.complaints import ComplaintOut
from complaintdesk.services.notifications import notify_escalated
from complaintdesk.services.predicates import And, Lt, Ne, NotIn, Not, IsNull, Predicate
from complaintdesk.services.store import ComplaintStore

log = logging.getLogger(__name__)

FINISHED_STATUSES = ("Resolved", "Closed")


def build_escalation_filter(now: datetime, threshold_days: int) -> Predicate:
    cutoff = now - timedelta(days=threshold_days)
    return And(
        NotIn("status", FINISHED_STATUSES),
        Ne("is_escalated", True),
        Ne("is_deleted", True),
        Not(IsNull("assigned_at")),
        Lt("assigned_at", cutoff),
    )


def escalate_overdue(
    store: ComplaintStore,
    now: Optional[datetime] = None,
    threshold_days: Optional[int] = None,
) -> List[Complaint]:
    now = now or datetime.now(timezone.utc)
    if threshold_days is None:
        threshold_days = settings.escalation_threshold_days

    escalated: List[Complaint] = []
    for c in store.find(build_escalation_filter(now, threshold_days)):
        c.is_escalated = True
        c.escalated_on = now
        store.save(c)
        escalated.append(c)
        log.info("complaint_escalated", extra={"complaint_id": c.id, "assigned_at": c.assigned_at})
        notify_escalated(ComplaintOut.from_record(c).model_dump(mode="json"))
    return escalated
