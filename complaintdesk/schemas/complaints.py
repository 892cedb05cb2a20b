# complaintdesk/schemas/complaints.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from complaintdesk.services.predicates import MISSING, get_field

Priority = Literal["Low", "Medium", "High", "Critical"]


class ComplaintCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=64)
    description: Optional[str] = Field(default=None, max_length=10_000)
    department: Optional[str] = Field(default=None, max_length=128)
    priority: Priority = "Medium"
    is_anonymous: bool = False

    # маршрутизація: кому адресовано
    submitted_to: Optional[str] = Field(default=None, max_length=255)
    recipient_role: Optional[str] = Field(default=None, max_length=16)
    recipient_id: Optional[str] = Field(default=None, max_length=36)
    deadline: Optional[datetime] = None


class StatusUpdate(BaseModel):
    # сирий рядок: нормалізацію робить services.status
    status: str = Field(..., min_length=1, max_length=32)
    resolution_note: Optional[str] = Field(default=None, max_length=10_000)


class FeedbackIn(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=2_000)


class FeedbackOut(BaseModel):
    rating: Optional[int] = None
    comment: Optional[str] = None


def _value(record: Any, name: str) -> Any:
    v = get_field(record, name)
    return None if v is MISSING else v


def enum_str(v: Any) -> Any:
    # значення енума ("In Progress"), а не сам член
    return v.value if hasattr(v, "value") else v


def _person(v: Any, *keys: str) -> Optional[str]:
    """Ім'я/email з підтягнутого користувача; рядок-ідентифікатор не показуємо."""
    if v is None or isinstance(v, str):
        return None
    for key in keys:
        found = _value(v, key)
        if found:
            return found
    return None


def _display_name(record: Any) -> Optional[str]:
    if _value(record, "is_anonymous"):
        return "Anonymous"
    submitter_name = _value(record, "submitter_name")
    if submitter_name:
        return submitter_name
    submitted_by = _value(record, "submitted_by")
    if isinstance(submitted_by, str) and submitted_by:
        return submitted_by
    return _person(submitted_by, "name", "full_name", "email")


class ComplaintOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    complaint_code: Optional[str] = None
    title: str
    status: str
    priority: str
    department: Optional[str] = None
    category: Optional[str] = None
    submitted_date: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    assigned_to: Optional[str] = None
    submitted_by: Optional[str] = None
    display_name: Optional[str] = None
    deadline: Optional[datetime] = None
    source_role: Optional[str] = None
    assigned_by_role: Optional[str] = None
    assignment_path: list[str] = Field(default_factory=list)
    submitted_to: Optional[str] = None
    feedback: Optional[FeedbackOut] = None
    is_escalated: bool = False
    is_deleted: bool = False
    recipient_role: Optional[str] = None
    recipient_id: Optional[str] = None
    is_anonymous: bool = False

    @classmethod
    def from_record(cls, record: Any) -> "ComplaintOut":
        """
        DTO для клієнта: ORM-об'єкт або dict.
        assigned_to/submitted_by показуються лише як ім'я/email підтягнутого
        користувача; фідбек віддаємо тільки для Resolved.
        """
        status = enum_str(_value(record, "status")) or "Pending"
        path = _value(record, "assignment_path")
        feedback = _value(record, "feedback") if status == "Resolved" else None
        return cls(
            id=str(_value(record, "id")),
            complaint_code=_value(record, "complaint_code"),
            title=_value(record, "title") or "Untitled Complaint",
            status=status,
            priority=enum_str(_value(record, "priority")) or "Medium",
            department=_value(record, "department"),
            category=_value(record, "category"),
            submitted_date=_value(record, "created_at"),
            last_updated=_value(record, "updated_at"),
            resolved_at=_value(record, "resolved_at"),
            assigned_to=_person(_value(record, "assigned_to"), "name", "email"),
            submitted_by=_person(_value(record, "submitted_by"), "name", "email"),
            display_name=_display_name(record),
            deadline=_value(record, "deadline"),
            source_role=_value(record, "source_role"),
            assigned_by_role=_value(record, "assigned_by_role"),
            assignment_path=list(path) if isinstance(path, (list, tuple)) else [],
            submitted_to=_value(record, "submitted_to"),
            feedback=FeedbackOut(**feedback) if feedback else None,
            is_escalated=bool(_value(record, "is_escalated")),
            is_deleted=bool(_value(record, "is_deleted")),
            recipient_role=_value(record, "recipient_role"),
            recipient_id=_value(record, "recipient_id"),
            is_anonymous=bool(_value(record, "is_anonymous")),
        )


class StatusChangeOut(BaseModel):
    # applied=False: недовірений запит проігноровано, статус не змінився
    applied: bool
    complaint: ComplaintOut


class ActivityLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    complaint_id: str
    user_id: str
    role: str
    action: str
    timestamp: datetime
    details: dict[str, Any] = Field(default_factory=dict)
