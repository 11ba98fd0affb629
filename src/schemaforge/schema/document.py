"""
schema/document.py — JSON Schema validation for SchemaForge YAML schema documents.

Checks the shape of a document (sections, constraint entries, argument types)
before the loader builds constraint chains from it. Semantic problems such as
unknown types or contradictory ranges are left to the loader and compiler.

Usage:
    from schemaforge.schema.document import validate_document_file

    issues = validate_document_file(Path("schemas/signup.yaml"))
    for issue in issues:
        print(issue)
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

logger = logging.getLogger(__name__)

_SCHEMAS_DIR = Path(__file__).parent / "schemas"

DOCUMENT_SCHEMA = "schema.schema.json"
_SCHEMA_NAMES = ("_defs.schema.json", DOCUMENT_SCHEMA)


# ---------------------------------------------------------------------------
# Public data types
# ---------------------------------------------------------------------------


@dataclass
class DocumentIssue:
    """A single finding for a schema document."""

    file: Path | None
    message: str
    path: str = ""          # location within the document, e.g. "fields/username/constraints[1]"
    severity: str = "error" # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        source = self.file if self.file is not None else "<document>"
        return f"[{self.severity.upper()}] {source}{loc}: {self.message}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_schema(name: str) -> dict[str, Any]:
    with (_SCHEMAS_DIR / name).open() as fh:
        return json.load(fh)


@lru_cache(maxsize=1)
def _load_registry() -> Registry:
    """Build a referencing Registry holding the bundled document schemas."""
    resources = []
    for name in _SCHEMA_NAMES:
        schema = _load_schema(name)
        resources.append(
            (schema["$id"], Resource(contents=schema, specification=DRAFT202012))
        )
    return Registry().with_resources(resources)


@lru_cache(maxsize=1)
def _document_validator() -> Draft202012Validator:
    return Draft202012Validator(_load_schema(DOCUMENT_SCHEMA), registry=_load_registry())


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema error path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def _best_message(error: ValidationError) -> str:
    """Prefer the most specific sub-error for oneOf failures."""
    if error.context:
        deepest = max(error.context, key=lambda e: len(e.absolute_path))
        return deepest.message
    return error.message


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_document(doc: Any, *, file: Path | None = None) -> list[DocumentIssue]:
    """
    Validate an already-parsed schema document.

    Args:
        doc:  The parsed YAML (or JSON) document.
        file: Source path, used only for reporting.

    Returns:
        A list of :class:`DocumentIssue` objects (empty on success).
    """
    if doc is None:
        return [DocumentIssue(file=file, message="Document is empty")]

    validator = _document_validator()
    return [
        DocumentIssue(file=file, message=_best_message(error), path=_json_path(error))
        for error in sorted(validator.iter_errors(doc), key=lambda e: list(map(str, e.path)))
    ]


def read_document(yaml_path: Path) -> tuple[Any, list[DocumentIssue]]:
    """
    Parse a YAML schema document and validate its shape.

    Returns:
        The parsed document (None when unparseable) and the issues found.
    """
    try:
        with yaml_path.open() as fh:
            raw = yaml.safe_load(fh)
    except OSError as exc:
        return None, [DocumentIssue(file=yaml_path, message=f"Cannot read file: {exc}")]
    except yaml.YAMLError as exc:
        return None, [DocumentIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    issues = validate_document(raw, file=yaml_path)
    if issues:
        logger.debug("Schema document %s has %d issue(s)", yaml_path, len(issues))
    return raw, issues


def validate_document_file(yaml_path: Path) -> list[DocumentIssue]:
    """Validate a single YAML schema document file."""
    _, issues = read_document(yaml_path)
    return issues
