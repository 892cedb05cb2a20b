# complaintdesk/core/exceptions.py
"""
Доменні винятки ComplaintDesk.

HTTP-шар мапить їх на статуси у main.py (див. register_exception_handlers).
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence


class ComplaintDeskError(Exception):
    """Базовий виняток для всіх помилок домену."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class StatusTransitionDenied(ComplaintDeskError):
    """Недозволений перехід статусу (src -> dst)."""

    code = "STATUS_TRANSITION_DENIED"

    def __init__(self, src: Any, dst: Any, allowed: Sequence[str]):
        self.src = src
        self.dst = dst
        self.allowed = tuple(allowed)
        message = (
            f"Illegal status transition: {src} -> {dst}. "
            f"Allowed: {', '.join(self.allowed) or '(none)'}"
        )
        super().__init__(
            message,
            error_code=self.code,
            details={"from": src, "to": dst, "allowed": list(self.allowed)},
        )


class InvalidScopeUser(ComplaintDeskError):
    """
    Користувач без id або department переданий у build_scope_filter.
    Це помилка програміста, а не валідація вводу.
    """

    def __init__(self, message: str = "HoD user and department required"):
        super().__init__(message, error_code="INVALID_SCOPE_USER")


class ComplaintNotFound(ComplaintDeskError):
    def __init__(self, complaint_id: str):
        self.complaint_id = complaint_id
        super().__init__(
            "Complaint not found",
            error_code="COMPLAINT_NOT_FOUND",
            details={"id": complaint_id},
        )
