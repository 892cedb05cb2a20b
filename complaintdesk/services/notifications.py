# complaintdesk/services/notifications.py
import logging
from typing import Any, Mapping

import redis
from rq import Queue, Retry

from complaintdesk.core.config import settings

log = logging.getLogger(__name__)

_queue: Queue | None = None


def _get_queue() -> Queue:
    global _queue
    if _queue is None:
        _queue = Queue(settings.notifications_queue, connection=redis.from_url(settings.redis_url))
    return _queue


def notify_status_changed(complaint: Mapping[str, Any], old: str, new: str, actor: Mapping[str, Any]) -> None:
    enqueue("status_changed", {"complaint": dict(complaint), "from": old, "to": new, "actor": dict(actor)})


def notify_approved(complaint: Mapping[str, Any], actor: Mapping[str, Any]) -> None:
    enqueue("complaint_approved", {"complaint": dict(complaint), "actor": dict(actor)})


def notify_escalated(complaint: Mapping[str, Any]) -> None:
    enqueue("complaint_escalated", {"complaint": dict(complaint)})


def enqueue(event_type: str, payload: Mapping[str, Any]) -> str | None:
    """
    Кладемо подію в чергу: у воркері її обробить handle_event.
    Повертає job.id або None у разі помилки (щоб не валити HTTP-запит).
    """
    try:
        job = _get_queue().enqueue(
            "complaintdesk.workers.rq_worker.handle_event",
            event_type,
            dict(payload),
            job_timeout=60,
            retry=Retry(max=3, interval=[5, 15, 30]),
        )
        return getattr(job, "id", None)
    except Exception as e:
        # Логуємо й не піднімаємо виняток — щоб клієнт не отримував 500
        log.exception("Failed to enqueue event '%s': %s", event_type, e)
        return None
