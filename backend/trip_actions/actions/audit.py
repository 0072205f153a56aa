"""Audit trail for previewed and executed assistant actions."""

import logging
from typing import Any

from backend.trip_actions.config import get_settings
from backend.trip_actions.db.repositories import ActionAuditRecord, AuditLog

logger = logging.getLogger(__name__)


def record_action_audit(
    audit_log: AuditLog,
    event: str,
    user_id: str,
    action_type: str,
    summary: str,
    payload: dict[str, Any],
) -> None:
    """Write one audit record.

    Runs after the response has been sent; a failing audit write is logged and
    never reaches the caller.
    """
    if not get_settings().audit_enabled:
        return

    try:
        audit_log.record_audit(
            ActionAuditRecord(
                event=event,
                user_id=user_id,
                action_type=action_type,
                summary=summary,
                payload=payload,
            )
        )
    except Exception:
        logger.warning(
            "Assistant action audit logging failed",
            exc_info=True,
            extra={"structured": {"event": event, "action_type": action_type, "user_id": user_id}},
        )
