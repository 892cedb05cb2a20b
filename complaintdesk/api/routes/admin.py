# complaintdesk/api/routes/admin.py
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from ..deps import StoreDep, require_role
from complaintdesk.core.logging import log_extra
from complaintdesk.db.models import RoleEnum as Role
from complaintdesk.schemas.complaints import ActivityLogOut, ComplaintOut, enum_str
from complaintdesk.services.escalation import escalate_overdue
from complaintdesk.services.predicates import Ne

router = APIRouter()
log = logging.getLogger(__name__)


class EscalationRunIn(BaseModel):
    threshold_days: Optional[int] = None


class EscalationRunOut(BaseModel):
    escalated: list[ComplaintOut]


@router.post(
    "/escalations/run",
    dependencies=[Depends(require_role(Role.admin))],
    response_model=EscalationRunOut,
)
async def run_escalations(request: Request, store: StoreDep, payload: Optional[EscalationRunIn] = None):
    threshold = payload.threshold_days if payload else None
    escalated = escalate_overdue(store, threshold_days=threshold)
    log.info("escalation_run_done", extra={**log_extra(request), "escalated": len(escalated)})
    return EscalationRunOut(escalated=[ComplaintOut.from_record(c) for c in escalated])


@router.get(
    "/reports/latest",
    dependencies=[Depends(require_role(Role.admin, Role.dean))],
)
async def latest_report(store: StoreDep):
    """
    Простий звіт:
      - розподіл за статусом
      - розподіл за пріоритетом
      - скільки ескальовано
    """
    rows = store.find(Ne("is_deleted", True))
    return {
        "by_status": dict(Counter(enum_str(c.status) for c in rows)),
        "by_priority": dict(Counter(enum_str(c.priority) for c in rows)),
        "escalated": sum(1 for c in rows if c.is_escalated),
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }


@router.get(
    "/activity",
    dependencies=[Depends(require_role(Role.admin))],
    response_model=list[ActivityLogOut],
)
async def list_activity(
    store: StoreDep,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
):
    """Журнал дій по всіх скаргах, новіші першими."""
    return [ActivityLogOut.model_validate(e) for e in store.activity()[offset:offset + limit]]
