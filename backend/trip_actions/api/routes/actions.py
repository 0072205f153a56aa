"""Assistant action endpoints - POST /actions/preview, /actions/execute, /actions/dispatch."""

from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, ConfigDict, Field, model_validator

from backend.trip_actions.actions.audit import record_action_audit
from backend.trip_actions.actions.dispatcher import ActionDispatcher, RequestLedger
from backend.trip_actions.actions.executor import StoreExecutor
from backend.trip_actions.actions.ownership import OwnershipResolver
from backend.trip_actions.actions.preview import build_preview, resolve_preview_context
from backend.trip_actions.actions.schema import parse_action_batch, parse_envelope
from backend.trip_actions.api.auth import get_current_context
from backend.trip_actions.api.dependencies import (
    get_audit_log,
    get_itinerary_store,
    get_processed_requests,
)
from backend.trip_actions.config import get_settings
from backend.trip_actions.db.context import RequestContext
from backend.trip_actions.db.repositories import AuditLog, ItineraryStore, ProcessedRequestStore
from backend.trip_actions.models.dispatch import DispatchResult, DispatchStatus

router = APIRouter(prefix="/actions", tags=["actions"])


class ExecuteRequest(BaseModel):
    """Request body for POST /actions/execute: a batch or a single action."""

    model_config = ConfigDict(extra="forbid")

    actions: list[dict[str, Any]] | None = Field(None, min_length=1)
    action: dict[str, Any] | None = None

    @model_validator(mode="after")
    def validate_one_form(self) -> "ExecuteRequest":
        """Ensure exactly one of actions/action is provided."""
        if (self.actions is None) == (self.action is None):
            raise ValueError("Provide either 'actions' or 'action'")
        return self

    def raw_actions(self) -> list[dict[str, Any]]:
        return self.actions if self.actions is not None else [self.action]  # type: ignore[list-item]


class DispatchRequest(BaseModel):
    """Request body for POST /actions/dispatch (assistant vocabulary)."""

    actions: list[Any] = Field(default_factory=list)
    meta: dict[str, Any] | None = None


class ResultsResponse(BaseModel):
    results: list[dict[str, Any]]


def _schedule_execute_audits(
    background_tasks: BackgroundTasks,
    audit_log: AuditLog,
    user_id: str,
    results: list[DispatchResult],
) -> None:
    for result in results:
        if result.status is not DispatchStatus.applied:
            continue
        background_tasks.add_task(
            record_action_audit,
            audit_log,
            "execute",
            user_id,
            result.action.type,
            result.summary or "",
            {"action": result.action.to_wire()},
        )


@router.post("/preview")
def preview_action(
    body: dict[str, Any],
    background_tasks: BackgroundTasks,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    store: Annotated[ItineraryStore, Depends(get_itinerary_store)],
    audit_log: Annotated[AuditLog, Depends(get_audit_log)],
) -> dict[str, Any]:
    """Validate a suggested action, check ownership and summarize it.

    Nothing is written except the audit record, which is recorded after the
    response is sent.
    """
    envelope = parse_envelope(body)
    action = envelope.suggested_action

    context = resolve_preview_context(OwnershipResolver(store), ctx.user_id, action)
    preview = build_preview(action, context)

    background_tasks.add_task(
        record_action_audit,
        audit_log,
        "preview",
        ctx.user_id,
        action.type,
        preview.summary,
        {
            "action": action.to_wire(),
            "details": preview.details,
            "rationale": envelope.rationale,
        },
    )

    return {"preview": preview.to_wire(), "rationale": envelope.rationale}


@router.post("/execute", response_model=ResultsResponse)
def execute_actions(
    request: ExecuteRequest,
    background_tasks: BackgroundTasks,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    store: Annotated[ItineraryStore, Depends(get_itinerary_store)],
    audit_log: Annotated[AuditLog, Depends(get_audit_log)],
    processed: Annotated[ProcessedRequestStore, Depends(get_processed_requests)],
) -> ResultsResponse:
    """Apply server-vocabulary actions for the authenticated user.

    An invalid batch is rejected as a whole with 400; otherwise every action
    gets its own applied/skipped/failed result.
    """
    max_actions = get_settings().max_batch_actions
    parsed = parse_action_batch(
        request.raw_actions(), strict=True, max_actions=max_actions, vocabulary="intent"
    )

    dispatcher = ActionDispatcher(
        StoreExecutor(store, ctx.user_id),
        ledger=RequestLedger(processed, ctx.user_id),
        owner=ctx.user_id,
        max_actions=max_actions,
        vocabulary="intent",
    )
    results = dispatcher.dispatch(parsed)

    _schedule_execute_audits(background_tasks, audit_log, ctx.user_id, results)
    return ResultsResponse(results=[result.to_wire() for result in results])


@router.post("/dispatch", response_model=ResultsResponse)
def dispatch_actions(
    request: DispatchRequest,
    background_tasks: BackgroundTasks,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    store: Annotated[ItineraryStore, Depends(get_itinerary_store)],
    audit_log: Annotated[AuditLog, Depends(get_audit_log)],
    processed: Annotated[ProcessedRequestStore, Depends(get_processed_requests)],
) -> ResultsResponse:
    """Apply assistant-vocabulary actions with fail-safe batch semantics.

    A batch that fails validation applies nothing and returns no results.
    """
    dispatcher = ActionDispatcher(
        StoreExecutor(store, ctx.user_id),
        ledger=RequestLedger(processed, ctx.user_id),
        owner=ctx.user_id,
        max_actions=get_settings().max_batch_actions,
        vocabulary="ui",
    )
    results = dispatcher.dispatch(request.actions, meta=request.meta)

    _schedule_execute_audits(background_tasks, audit_log, ctx.user_id, results)
    return ResultsResponse(results=[result.to_wire() for result in results])
