import json
from pathlib import Path

from jsonschema import Draft202012Validator

SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"


def _load_schema(schema_path: Path) -> dict:
    with open(schema_path, encoding="utf-8") as f:
        return json.load(f)


def validate_dashboard_data(data: dict, schema_path: Path = SCHEMA_DIR / "dashboard_data.schema.json") -> None:
    """Raise jsonschema.ValidationError if `data` is not a valid dashboard export."""
    Draft202012Validator(_load_schema(schema_path)).validate(data)


def dashboard_data_errors(data: dict, schema_path: Path = SCHEMA_DIR / "dashboard_data.schema.json") -> list[str]:
    validator = Draft202012Validator(_load_schema(schema_path))
    return [
        f"{'/'.join(str(p) for p in err.absolute_path) or '<root>'}: {err.message}"
        for err in sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    ]
