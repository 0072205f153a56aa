"""Tests for the schema export script."""

import json
from pathlib import Path

from scripts.export_schemas import main


def test_exports_one_file_per_schema(tmp_path: Path) -> None:
    written = main(tmp_path / "schemas")

    assert sorted(path.name for path in written) == [
        "ActionEnvelope.schema.json",
        "AssistantActionIntent.schema.json",
        "AssistantUiAction.schema.json",
        "AssistantUiActionCollection.schema.json",
        "StructuredPlan.schema.json",
    ]
    collection = json.loads((tmp_path / "schemas" / "AssistantUiActionCollection.schema.json").read_text())
    assert collection["type"] == "array"


def test_export_is_repeatable(tmp_path: Path) -> None:
    first = [path.read_text() for path in main(tmp_path)]
    second = [path.read_text() for path in main(tmp_path)]

    assert first == second
