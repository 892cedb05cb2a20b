# complaintdesk/db/models.py
from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from complaintdesk.db.base import Base
from complaintdesk.services.status import ComplaintStatus

# ==== Енуми (python + sqlalchemy) ====


class RoleEnum(str, enum.Enum):
    student = "student"
    staff = "staff"
    hod = "hod"
    dean = "dean"
    admin = "admin"


class PriorityEnum(str, enum.Enum):
    low = "Low"
    medium = "Medium"
    high = "High"
    critical = "Critical"


def _enum_values(enum_cls) -> list[str]:
    # зберігаємо value ("In Progress"), а не ім'я члена
    return [m.value for m in enum_cls]


# ==== Міксини ====


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


# ==== Моделі ====


class Complaint(TimestampMixin, Base):
    __tablename__ = "complaints"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    complaint_code: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, unique=True)
    title: Mapped[str] = mapped_column(String(255))
    category: Mapped[str] = mapped_column(String(64))
    department: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[ComplaintStatus] = mapped_column(
        Enum(ComplaintStatus, name="complaint_status_enum", values_callable=_enum_values),
        default=ComplaintStatus.pending,
        nullable=False,
    )
    priority: Mapped[PriorityEnum] = mapped_column(
        Enum(PriorityEnum, name="priority_enum", values_callable=_enum_values),
        default=PriorityEnum.medium,
        nullable=False,
    )

    # хто подав
    submitted_by: Mapped[str] = mapped_column(String(36), index=True)
    submitter_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    submitter_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # маршрутизація / призначення
    source_role: Mapped[Optional[str]] = mapped_column(String(16), default="student", nullable=True)
    submitted_to: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    recipient_role: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    recipient_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    assigned_by_role: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    assignment_path: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    assigned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # SLA / ескалація
    deadline: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_escalated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    escalated_on: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolution_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # {"rating": int, "comment": str}
    feedback: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    evidence_file: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("ix_complaints_status_priority", "status", "priority"),
        Index("ix_complaints_created_at", "created_at"),
    )

    @classmethod
    def new(cls, **fields: Any) -> "Complaint":
        """
        Нова скарга з уже виставленими дефолтами
        (column default спрацьовує лише при flush, а in-memory сховище без сесії).
        """
        now = datetime.now(timezone.utc)
        values: dict[str, Any] = {
            "id": str(uuid.uuid4()),
            "status": ComplaintStatus.pending,
            "priority": PriorityEnum.medium,
            "is_anonymous": False,
            "source_role": "student",
            "assignment_path": [],
            "is_escalated": False,
            "is_deleted": False,
            "created_at": now,
            "updated_at": now,
        }
        values.update(fields)
        return cls(**values)

    def __repr__(self) -> str:
        return f"<Complaint id={self.id} status={self.status} department={self.department}>"



class ActivityLog(Base):
    """Журнал дій над скаргою: хто, у якій ролі, що зробив."""

    __tablename__ = "activity_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    role: Mapped[str] = mapped_column(String(16))
    action: Mapped[str] = mapped_column(String(128))
    complaint_id: Mapped[str] = mapped_column(String(36), ForeignKey("complaints.id"), index=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    details: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    @classmethod
    def new(cls, **fields: Any) -> "ActivityLog":
        values: dict[str, Any] = {
            "id": str(uuid.uuid4()),
            "timestamp": datetime.now(timezone.utc),
            "details": {},
        }
        values.update(fields)
        return cls(**values)

    def __repr__(self) -> str:
        return f"<ActivityLog complaint={self.complaint_id} action={self.action!r}>"
