"""JSON schema helpers for validating exported traces."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema

_SCHEMA_FILENAME = "trace_export.schema.json"


def validate_export(payload: dict[str, Any]) -> None:
    """Validate an exported trace against the published JSON schema."""

    try:
        jsonschema.validate(instance=payload, schema=_load_export_schema())
    except jsonschema.ValidationError as exc:
        raise ValueError(f"Trace export failed validation: {exc.message}") from exc


@lru_cache(maxsize=1)
def _load_export_schema() -> dict[str, Any]:
    schema_path = Path(__file__).resolve().parent / "resources" / _SCHEMA_FILENAME
    if not schema_path.exists():  # pragma: no cover - defensive
        raise FileNotFoundError(f"Trace export schema not found at {schema_path}")
    return json.loads(schema_path.read_text(encoding="utf-8"))
