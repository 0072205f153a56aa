"""Export JSON schemas for both action vocabularies."""

import json
from pathlib import Path

from backend.trip_actions.actions.schema import action_json_schemas


def main(schemas_dir: Path = Path("docs/schemas")) -> list[Path]:
    """Export schemas to docs/schemas/, one file per schema."""
    schemas_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for name, schema in action_json_schemas().items():
        path = schemas_dir / f"{name}.schema.json"
        with open(path, "w") as f:
            json.dump(schema, f, indent=2)
        print(f"Exported {name} schema to {path}")
        written.append(path)

    return written


if __name__ == "__main__":
    main()
