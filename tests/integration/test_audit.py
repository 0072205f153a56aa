"""Tests for assistant action audit logging."""

import logging

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.trip_actions.actions.audit import record_action_audit
from backend.trip_actions.db.inmemory import InMemoryAuditLog
from backend.trip_actions.db.models import AssistantActionLog
from backend.trip_actions.db.repositories import ActionAuditRecord
from backend.trip_actions.db.sql_repositories import SqlAuditLog
from tests.fixtures import USER_ID


class BrokenAuditLog:
    def record_audit(self, record: ActionAuditRecord) -> None:
        raise RuntimeError("audit table missing")


def test_record_is_written(sql_session: Session) -> None:
    record_action_audit(
        SqlAuditLog(sql_session),
        "execute",
        USER_ID,
        "add_destination",
        "Added “Gelato” to Day 1 (Apr 10)",
        {"action": {"type": "add_destination"}},
    )

    row = sql_session.scalars(select(AssistantActionLog)).one()
    assert row.event_type == "execute"
    assert row.user_id == USER_ID
    assert row.payload == {"action": {"type": "add_destination"}}


def test_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="backend.trip_actions.actions.audit"):
        record_action_audit(BrokenAuditLog(), "preview", USER_ID, "toggle_map_overlay", "Show", {})

    assert "audit logging failed" in caplog.text
    assert caplog.records[0].structured["event"] == "preview"


def test_audit_can_be_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUDIT_ENABLED", "false")
    audit_log = InMemoryAuditLog()

    record_action_audit(audit_log, "preview", USER_ID, "toggle_map_overlay", "Show", {})

    assert audit_log.records == []
