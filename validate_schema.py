# validate_schema.py
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Union

from jsonschema import Draft202012Validator

Json = Union[Dict[str, Any], List[Any], str, int, float, bool, None]

SCHEMA_NAME = "score-response.schema.json"


def fail(msg: str, code: int = 1) -> NoReturn:
    print(f"ERROR: {msg}")
    sys.exit(code)


def repo_root_from(start: Path) -> Path:
    """
    Find the repo root containing 'schemas' and 'examples' folders,
    starting at 'start' and walking upward at most 5 levels.
    """
    p = start
    for _ in range(6):
        if (p / "schemas").exists() and (p / "examples").exists():
            return p
        p = p.parent
    fail("Could not find repo root with 'schemas' and 'examples' folders.")


def load_json(path: Path, label: str) -> Json:
    if not path.exists():
        fail(f"{label} not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except Exception as e:
        fail(f"Failed to read {label} at {path}: {e}")


def json_pointer(e_path: List[Union[str, int]]) -> str:
    """
    Format a jsonschema error path like $.a[0].b
    """
    out = "$"
    for seg in e_path:
        out += f"[{seg}]" if isinstance(seg, int) else f".{seg}"
    return out


def response_errors(schema: Dict[str, Any], data: Json) -> List[str]:
    """Return one readable line per schema violation (empty list when valid)."""
    validator = Draft202012Validator(schema)
    lines = []
    for e in sorted(validator.iter_errors(data), key=lambda e: list(e.path)):
        ctx = ""
        if e.context:
            ctx = " | context: " + "; ".join(c.message for c in e.context)
        lines.append(f"{json_pointer(list(e.path))}: {e.message}{ctx}")
    return lines


def main() -> None:
    # Allow running from repo root or a subfolder (like /src)
    cwd = Path.cwd()
    root = repo_root_from(cwd)

    schema_path = root / "schemas" / SCHEMA_NAME

    # Data file may be provided as argv[1]; otherwise default to examples/sample-response.json
    if len(sys.argv) > 1:
        data_path = Path(sys.argv[1])
        if not data_path.is_absolute():
            data_path = (cwd / data_path).resolve()
    else:
        data_path = (root / "examples" / "sample-response.json").resolve()

    schema = load_json(schema_path, "schema")
    data = load_json(data_path, "data")

    if not isinstance(schema, dict):
        fail("Schema root must be a JSON object (dict).")

    try:
        Draft202012Validator.check_schema(schema)
    except Exception as e:
        fail(f"Schema is invalid for Draft 2020-12: {e}")

    errors = response_errors(schema, data)
    if errors:
        print("Response does NOT match schema.")
        for line in errors[:15]:
            print(f" - {line}")
        if len(errors) > 15:
            print(f" ... and {len(errors) - 15} more errors")
        sys.exit(2)

    print("OK: response matches schema.")
    if isinstance(data, dict):
        print(f"score={data.get('score')}, error={data.get('error')}")


if __name__ == "__main__":
    main()
