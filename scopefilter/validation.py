# scopefilter/validation.py
"""
JSON Schema validation shared by the config and manifest loaders.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError


def format_validation_errors(errors: Iterable[ValidationError]) -> List[str]:
    """
    One "dotted.path: message" line per error, sorted by path.
    Errors at the document root are reported as "<root>".
    """
    messages: List[str] = []
    for err in sorted(errors, key=lambda e: [str(p) for p in e.path]):
        path = ".".join(str(p) for p in err.path)
        prefix = path if path else "<root>"
        messages.append(f"{prefix}: {err.message}")
    return messages


def schema_errors(schema: Mapping[str, Any], document: Any) -> List[str]:
    return format_validation_errors(Draft202012Validator(schema).iter_errors(document))
