"""Validation entry points for untrusted action payloads.

Every function either returns a typed, narrowed action model or raises
ActionValidationError listing each violated constraint as (path, reason).
"""

from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from backend.trip_actions.errors import ActionValidationError, ValidationIssue
from backend.trip_actions.models import (
    ActionEnvelope,
    AnyAction,
    AssistantActionIntent,
    StructuredPlan,
    UiAction,
)

_intent_adapter: TypeAdapter[Any] = TypeAdapter(AssistantActionIntent)
_ui_adapter: TypeAdapter[Any] = TypeAdapter(UiAction)
_any_adapter: TypeAdapter[Any] = TypeAdapter(Annotated[AnyAction, Field(discriminator="type")])
_batch_adapters = {"any": _any_adapter, "intent": _intent_adapter, "ui": _ui_adapter}


def _format_path(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc)


def collect_issues(
    exc: PydanticValidationError, raw: Any = None, prefix: tuple[int | str, ...] = ()
) -> list[ValidationIssue]:
    """Convert pydantic errors into path/reason issues.

    The discriminated-union tag pydantic inserts into each error location is
    dropped so that paths match the payload the caller sent.
    """
    tag = raw.get("type") if isinstance(raw, dict) else None
    issues: list[ValidationIssue] = []
    for error in exc.errors():
        loc = tuple(error["loc"])
        if tag is not None and loc and loc[0] == tag:
            loc = loc[1:]
        issues.append(ValidationIssue(path=_format_path(prefix + loc), reason=error["msg"]))
    return issues


def _parse(adapter: TypeAdapter[Any], raw: Any, label: str) -> Any:
    try:
        return adapter.validate_python(raw)
    except PydanticValidationError as e:
        raise ActionValidationError(f"Invalid {label} payload", collect_issues(e, raw)) from e


def parse_action(raw: Any) -> AssistantActionIntent:
    """Validate a server-vocabulary action intent."""
    return _parse(_intent_adapter, raw, "action")


def parse_ui_action(raw: Any) -> UiAction:
    """Validate an LLM-vocabulary action."""
    return _parse(_ui_adapter, raw, "assistant action")


def parse_any_action(raw: Any) -> AnyAction:
    """Validate an action from either vocabulary."""
    return _parse(_any_adapter, raw, "action")


def parse_envelope(raw: Any) -> ActionEnvelope:
    """Validate a preview envelope ``{suggestedAction, rationale?}``."""
    try:
        return ActionEnvelope.model_validate(raw)
    except PydanticValidationError as e:
        issues = collect_issues(e)
        suggested = raw.get("suggestedAction") if isinstance(raw, dict) else None
        tag = suggested.get("type") if isinstance(suggested, dict) else None
        if tag is not None:
            # Strip the union tag that follows the suggestedAction segment
            needle = f"suggestedAction.{tag}"
            issues = [
                ValidationIssue(
                    path=issue.path.replace(needle, "suggestedAction", 1), reason=issue.reason
                )
                for issue in issues
            ]
        raise ActionValidationError("Invalid action envelope", issues) from e


def _drop_union_tags(loc: tuple[int | str, ...], raw: Any) -> tuple[int | str, ...]:
    """Remove discriminator tags from an error location by walking ``raw``."""
    kept: list[int | str] = []
    node = raw
    for part in loc:
        if isinstance(node, dict) and part not in node and part == node.get("type"):
            continue
        kept.append(part)
        if isinstance(node, dict):
            node = node.get(part)
        elif isinstance(node, list) and isinstance(part, int) and 0 <= part < len(node):
            node = node[part]
        else:
            node = None
    return tuple(kept)


def parse_structured_plan(raw: Any) -> StructuredPlan:
    """Validate a multi-step plan ``{steps, rationale?}`` of server intents."""
    try:
        return StructuredPlan.model_validate(raw)
    except PydanticValidationError as e:
        issues = [
            ValidationIssue(
                path=_format_path(_drop_union_tags(tuple(error["loc"]), raw)), reason=error["msg"]
            )
            for error in e.errors()
        ]
        raise ActionValidationError("Invalid structured plan", issues) from e


def parse_action_batch(
    raw: Any,
    *,
    strict: bool = True,
    max_actions: int | None = None,
    vocabulary: Literal["any", "intent", "ui"] = "any",
) -> list[Any]:
    """Validate an ordered batch of actions from either vocabulary.

    Each element is validated independently. In strict mode any invalid element
    raises one ActionValidationError carrying the issues of every element. In
    non-strict mode the returned list holds either the parsed action or the
    ActionValidationError for that position. ``vocabulary`` restricts which
    action family is accepted.
    """
    adapter = _batch_adapters[vocabulary]
    if not isinstance(raw, list):
        raise ActionValidationError(
            "Invalid actions payload", [ValidationIssue(path="", reason="Expected a list of actions")]
        )
    if max_actions is not None and len(raw) > max_actions:
        raise ActionValidationError(
            "Invalid actions payload",
            [ValidationIssue(path="", reason=f"At most {max_actions} actions are allowed per batch")],
        )

    results: list[Any] = []
    all_issues: list[ValidationIssue] = []

    for index, item in enumerate(raw):
        try:
            results.append(adapter.validate_python(item))
        except PydanticValidationError as e:
            issues = collect_issues(e, item, prefix=(index,))
            all_issues.extend(issues)
            results.append(ActionValidationError(f"Invalid action at index {index}", issues))

    if strict and all_issues:
        raise ActionValidationError("Invalid actions payload", all_issues)

    return results


def action_json_schemas() -> dict[str, dict[str, Any]]:
    """JSON schemas for both vocabularies and their wrappers, suitable for LLM tool definitions."""
    return {
        "AssistantActionIntent": _intent_adapter.json_schema(by_alias=True),
        "AssistantUiAction": _ui_adapter.json_schema(by_alias=True),
        "AssistantUiActionCollection": TypeAdapter(list[UiAction]).json_schema(by_alias=True),
        "ActionEnvelope": ActionEnvelope.model_json_schema(by_alias=True),
        "StructuredPlan": StructuredPlan.model_json_schema(by_alias=True),
    }
