# complaintdesk/api/routes/complaints.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import Response

from ..deps import CurrentUser, StoreDep, UserDep, require_role
from complaintdesk.core.config import settings
from complaintdesk.core.exceptions import ComplaintNotFound
from complaintdesk.core.logging import log_extra
from complaintdesk.db.models import ActivityLog, Complaint, PriorityEnum, RoleEnum as Role
from complaintdesk.schemas.complaints import (
    ActivityLogOut,
    ComplaintCreate,
    ComplaintOut,
    FeedbackIn,
    StatusChangeOut,
    StatusUpdate,
)
from complaintdesk.services.notifications import notify_approved, notify_status_changed
from complaintdesk.services.predicates import And, Eq, Predicate
from complaintdesk.services.scoping import build_role_scope_filter
from complaintdesk.services.status import (
    ComplaintStatus,
    assert_transition,
    derive_status_on_approval,
    normalize_status,
    sanitize_incoming_status,
)
from complaintdesk.services.store import ComplaintStore

router = APIRouter()
log = logging.getLogger(__name__)

# ці ролі міняють статус напряму (assert_transition); студентський ввід недовірений
TRUSTED_ROLES = {Role.staff, Role.hod, Role.dean, Role.admin}
APPROVER_ROLES = (Role.staff, Role.hod, Role.dean, Role.admin)
ASSIGNER_ROLES = (Role.hod, Role.dean, Role.admin)
SUBMITTER_ROLES = (Role.student, Role.staff)


def _scope_for(current: CurrentUser, store: ComplaintStore, strict: Optional[bool] = None) -> Predicate:
    staff_ids = store.staff_ids_for(current.department) if current.role == Role.hod else ()
    # клієнт може лише звузити видимість, але не зняти політику
    return build_role_scope_filter(
        current,
        staff_ids=staff_ids,
        strict_recipient=settings.hod_strict_recipient or bool(strict),
    )


def _get_visible(complaint_id: str, current: CurrentUser, store: ComplaintStore) -> Complaint:
    found = store.find(And(Eq("id", complaint_id), _scope_for(current, store)))
    if not found:
        raise ComplaintNotFound(complaint_id)
    return found[0]


def _apply_status(c: Complaint, new_status: str) -> str:
    """Виставляє статус і SLA-поля; повертає старий статус."""
    old = normalize_status(c.status)
    c.status = ComplaintStatus(new_status)
    if new_status == "Resolved":
        if c.resolved_at is None:
            c.resolved_at = datetime.now(timezone.utc)
    elif old == "Resolved" and new_status != "Closed":
        # повернули з Resolved назад у роботу
        c.resolved_at = None
    c.updated_at = datetime.now(timezone.utc)
    return old


def _payload(c: Complaint) -> dict:
    # DTO + адреса для листа автору (у DTO її немає)
    return {**ComplaintOut.from_record(c).model_dump(mode="json"), "submitter_email": c.submitter_email}


def _record_activity(store: ComplaintStore, current: CurrentUser, c: Complaint, action: str, **details) -> None:
    store.log_activity(
        ActivityLog.new(
            user_id=current.id,
            role=current.role.value,
            action=action,
            complaint_id=c.id,
            details=details,
        )
    )


@router.get("", response_model=list[ComplaintOut])
async def list_complaints(
    store: StoreDep,
    current: UserDep,
    status_: Optional[str] = Query(default=None, alias="status"),
    strict: Optional[bool] = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
):
    predicate = _scope_for(current, store, strict)
    if status_:
        predicate = And(predicate, Eq("status", normalize_status(status_)))
    rows = store.find(predicate)[offset:offset + limit]
    return [ComplaintOut.from_record(c) for c in rows]


@router.get("/{complaint_id}", response_model=ComplaintOut)
async def get_complaint(complaint_id: str, store: StoreDep, current: UserDep):
    return ComplaintOut.from_record(_get_visible(complaint_id, current, store))


@router.post("", response_model=ComplaintOut, status_code=status.HTTP_201_CREATED)
async def create_complaint(
    payload: ComplaintCreate,
    request: Request,
    store: StoreDep,
    current: CurrentUser = Depends(require_role(*SUBMITTER_ROLES)),
):
    c = Complaint.new(
        title=payload.title,
        category=payload.category,
        description=payload.description,
        department=payload.department or current.department,
        priority=PriorityEnum(payload.priority),
        is_anonymous=payload.is_anonymous,
        submitted_by=current.id,
        submitter_name=current.name or current.email,
        submitter_email=current.email,
        source_role=current.role.value,
        submitted_to=payload.submitted_to,
        recipient_role=(payload.recipient_role or "").lower() or None,
        recipient_id=payload.recipient_id,
        deadline=payload.deadline,
    )
    store.add(c)
    _record_activity(store, current, c, "Complaint Submitted", title=c.title, category=c.category)
    log.info("complaint_created", extra={**log_extra(request), "complaint_id": c.id})
    return ComplaintOut.from_record(c)


@router.post("/{complaint_id}/status", response_model=StatusChangeOut)
async def change_status(
    complaint_id: str,
    payload: StatusUpdate,
    request: Request,
    store: StoreDep,
    current: UserDep,
):
    c = _get_visible(complaint_id, current, store)
    old = normalize_status(c.status)

    if current.role in TRUSTED_ROLES:
        # StatusTransitionDenied -> 409 (див. main.py)
        assert_transition(old, payload.status)
        new_status = normalize_status(payload.status)
    else:
        if c.submitted_by != current.id:
            raise HTTPException(status_code=403, detail="Forbidden")
        new_status = sanitize_incoming_status(payload.status, old)

    if new_status == old:
        # запит проігноровано, це не успіх
        log.info(
            "status_change_ignored",
            extra={**log_extra(request), "complaint_id": c.id, "requested": payload.status},
        )
        return StatusChangeOut(applied=False, complaint=ComplaintOut.from_record(c))

    _apply_status(c, new_status)
    if payload.resolution_note is not None:
        c.resolution_note = payload.resolution_note
    store.save(c)
    _record_activity(
        store, current, c, f"Status Updated to {new_status}",
        from_status=old, resolution_note=payload.resolution_note,
    )

    log.info("status_changed", extra={**log_extra(request), "complaint_id": c.id, "from": old, "to": new_status})
    notify_status_changed(_payload(c), old, new_status, current.actor())
    return StatusChangeOut(applied=True, complaint=ComplaintOut.from_record(c))


@router.post("/{complaint_id}/approve", response_model=ComplaintOut)
async def approve_complaint(
    complaint_id: str,
    request: Request,
    store: StoreDep,
    current: CurrentUser = Depends(require_role(*APPROVER_ROLES)),
):
    """Погодження: HoD -> In Progress (і бере на себе, якщо не призначено), інші -> Accepted."""
    c = _get_visible(complaint_id, current, store)
    target = derive_status_on_approval(c.status, current.role.value)

    old = _apply_status(c, target)
    role = current.role.value
    if current.role in ASSIGNER_ROLES:
        c.assigned_by_role = role
    c.assignment_path = [*(c.assignment_path or []), role]
    if current.role == Role.hod and c.assigned_to is None:
        c.assigned_to = current.id
        c.assigned_at = datetime.now(timezone.utc)
    store.save(c)
    _record_activity(store, current, c, "Complaint Approved", from_status=old, to_status=target)

    log.info("complaint_approved", extra={**log_extra(request), "complaint_id": c.id, "from": old, "to": target})
    notify_approved(_payload(c), current.actor())
    return ComplaintOut.from_record(c)


@router.post("/{complaint_id}/assign", response_model=ComplaintOut)
async def assign_complaint(
    complaint_id: str,
    staff_id: str,
    request: Request,
    store: StoreDep,
    current: CurrentUser = Depends(require_role(*ASSIGNER_ROLES)),
):
    c = _get_visible(complaint_id, current, store)
    reassigned = c.assigned_to is not None
    if current.role == Role.hod and staff_id != current.id and staff_id not in store.staff_ids_for(current.department):
        raise HTTPException(status_code=403, detail="Can only assign staff in your department")

    c.assigned_to = staff_id
    c.assigned_at = datetime.now(timezone.utc)
    c.assigned_by_role = current.role.value
    c.assignment_path = [*(c.assignment_path or []), current.role.value, Role.staff.value]
    c.updated_at = datetime.now(timezone.utc)
    store.save(c)
    _record_activity(
        store, current, c, "Complaint Reassigned" if reassigned else "Complaint Assigned", staff_id=staff_id,
    )

    log.info("complaint_assigned", extra={**log_extra(request), "complaint_id": c.id, "assigned_to": staff_id})
    return ComplaintOut.from_record(c)


@router.post("/{complaint_id}/feedback", response_model=ComplaintOut)
async def leave_feedback(complaint_id: str, payload: FeedbackIn, store: StoreDep, current: UserDep):
    c = _get_visible(complaint_id, current, store)
    if c.submitted_by != current.id:
        raise HTTPException(status_code=403, detail="Only the submitter can leave feedback")
    if normalize_status(c.status) != "Resolved":
        raise HTTPException(status_code=409, detail="Feedback is allowed only for resolved complaints")

    c.feedback = payload.model_dump()
    c.updated_at = datetime.now(timezone.utc)
    store.save(c)
    _record_activity(store, current, c, "Feedback Given", **payload.model_dump())
    return ComplaintOut.from_record(c)


@router.get("/{complaint_id}/activity", response_model=list[ActivityLogOut])
async def complaint_activity(complaint_id: str, store: StoreDep, current: UserDep):
    """Історія дій над скаргою; доступна тим, хто бачить саму скаргу."""
    c = _get_visible(complaint_id, current, store)
    return [ActivityLogOut.model_validate(e) for e in store.activity(c.id)]


# === SOFT DELETE (лише admin) ===
@router.delete(
    "/{complaint_id}",
    status_code=204,
    dependencies=[Depends(require_role(Role.admin))],
)
async def delete_complaint(complaint_id: str, store: StoreDep):
    c = store.get(complaint_id)
    c.is_deleted = True
    store.save(c)
    return Response(status_code=204)
