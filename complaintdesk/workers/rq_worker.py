# complaintdesk/workers/rq_worker.py
import hashlib
import hmac
import json
import logging
from typing import Any, Callable, Mapping

import redis
import requests
from rq import Queue, Worker

from complaintdesk.core.config import settings
from complaintdesk.core.logging import setup_logging

logger = logging.getLogger("worker.notifications")


def _sign(payload: Mapping[str, Any]) -> str | None:
    if not settings.webhook_secret:
        return None
    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return hmac.new(settings.webhook_secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def _post(url: str, event_type: str, payload: Mapping[str, Any]) -> None:
    if not url:
        logger.warning("webhook_url_missing", extra={"event_type": event_type})
        return
    headers = {"Content-Type": "application/json", "X-ComplaintDesk-Event": event_type}
    sig = _sign(payload)
    if sig:
        headers["X-ComplaintDesk-Signature"] = f"sha256={sig}"
    r = requests.post(url, json=payload, headers=headers, timeout=10)
    logger.info("webhook_sent", extra={"event_type": event_type, "status": r.status_code})


def send_mail_mock(to: str, subject: str, body: str) -> None:
    logger.info("SEND_MAIL", extra={"to": to, "subject": subject, "body_len": len(body)})


def on_status_changed(payload: Mapping[str, Any]) -> None:
    complaint = payload.get("complaint", {})
    cid = complaint.get("id")
    logger.info("status_changed", extra={"complaint_id": cid, "from": payload.get("from"), "to": payload.get("to")})
    email = complaint.get("submitter_email")
    if email:
        send_mail_mock(email, f"Complaint {cid} is now {payload.get('to')}", "The status of your complaint changed.")


def on_complaint_approved(payload: Mapping[str, Any]) -> None:
    complaint = payload.get("complaint", {})
    actor = payload.get("actor", {})
    logger.info(
        "complaint_approved",
        extra={"complaint_id": complaint.get("id"), "status": complaint.get("status"), "actor_role": actor.get("role")},
    )


def on_complaint_escalated(payload: Mapping[str, Any]) -> None:
    _post(settings.webhook_escalation_url or "", "complaint.escalated", payload)
    complaint = payload.get("complaint", {})
    logger.warning("complaint_escalated", extra={"complaint_id": complaint.get("id")})


EVENT_HANDLERS: dict[str, Callable[[Mapping[str, Any]], None]] = {
    "status_changed": on_status_changed,
    "complaint_approved": on_complaint_approved,
    "complaint_escalated": on_complaint_escalated,
}


def handle_event(event_type: str, payload: Mapping[str, Any] | None = None) -> None:
    handler = EVENT_HANDLERS.get(event_type)
    if not handler:
        logger.warning("unknown_event", extra={"event_type": event_type})
        return
    handler(payload or {})


def main() -> None:
    setup_logging(settings.log_level)
    logger.info("worker_starting", extra={"queue": settings.notifications_queue, "redis": settings.redis_url})
    conn = redis.from_url(settings.redis_url)
    queue = Queue(settings.notifications_queue, connection=conn)
    worker = Worker([queue], connection=conn, name="complaintdesk-notifications")
    worker.work(logging_level="INFO")


if __name__ == "__main__":
    main()
