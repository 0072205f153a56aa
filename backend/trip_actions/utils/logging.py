"""Structured logging for assistant action dispatch."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class StructuredActionLogger:
    """Structured logger for action outcomes."""

    def log_outcome(
        self,
        action_type: str,
        status: str,
        latency_ms: float,
        request_id: str | None = None,
        owner: str | None = None,
        reason: str | None = None,
    ) -> None:
        """Log a single action outcome with structured data."""
        log_data: dict[str, Any] = {
            "action_type": action_type,
            "status": status,
            "latency_ms": round(latency_ms, 2),
            "request_id": request_id,
            "owner": owner,
        }

        if reason:
            log_data["reason"] = reason

        log_msg = f"Assistant action: {action_type} - {status}"

        if status == "applied":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})

    def log_batch_rejected(self, issues: list[dict[str, str]], meta: dict[str, Any] | None) -> None:
        """Log a batch that failed schema validation as a whole."""
        logger.warning(
            "Invalid actions payload",
            extra={"structured": {"issues": issues, "meta": meta or {}}},
        )
