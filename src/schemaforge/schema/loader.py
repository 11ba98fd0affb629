"""Load schemas from YAML documents.

A document names its fields, each with a type and a list of constraints:

    schema: signup
    aliases:
      handle: {type: string, constraints: [alphanum, {min: 3}]}
    fields:
      username:
        type: handle
        constraints: [required, {max: 30}, {with: [email]}]
      email: {type: string, constraints: [email]}

Types resolve against the document's aliases first (in declaration order, so
an alias may build on an earlier one), then against the Type Registry.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from schemaforge.core.types import ConstraintKind
from schemaforge.schema.chain import ConstraintChain
from schemaforge.schema.compiler import Schema
from schemaforge.schema.document import DocumentIssue, read_document, validate_document
from schemaforge.schema.errors import InvalidSchemaError
from schemaforge.schema.registry import Types

logger = logging.getLogger(__name__)

# Constraint name -> bound chain method
_METHODS: dict[ConstraintKind, Callable[..., ConstraintChain]] = {
    ConstraintKind.REQUIRED: ConstraintChain.required,
    ConstraintKind.OPTIONAL: ConstraintChain.optional,
    ConstraintKind.NULL_OK: ConstraintChain.null_ok,
    ConstraintKind.EMPTY_OK: ConstraintChain.empty_ok,
    ConstraintKind.DEFAULT: ConstraintChain.default,
    ConstraintKind.RENAME: ConstraintChain.rename,
    ConstraintKind.MIN: ConstraintChain.min,
    ConstraintKind.MAX: ConstraintChain.max,
    ConstraintKind.REGEX: ConstraintChain.regex,
    ConstraintKind.ALPHANUM: ConstraintChain.alphanum,
    ConstraintKind.EMAIL: ConstraintChain.email,
    ConstraintKind.DATE: ConstraintChain.date,
    ConstraintKind.INTEGER: ConstraintChain.integer,
    ConstraintKind.FLOAT: ConstraintChain.float,
    ConstraintKind.ENCODING: ConstraintChain.encoding,
    ConstraintKind.INCLUDES: ConstraintChain.includes,
    ConstraintKind.EXCLUDES: ConstraintChain.excludes,
    ConstraintKind.WITH: ConstraintChain.with_,
    ConstraintKind.WITHOUT: ConstraintChain.without,
    ConstraintKind.VALID: ConstraintChain.valid,
    ConstraintKind.INVALID: ConstraintChain.invalid,
    ConstraintKind.ALLOW: ConstraintChain.allow,
    ConstraintKind.DENY: ConstraintChain.deny,
}


class SchemaLoader:
    """Loads schema documents from a directory of YAML files."""

    def __init__(self, schema_path: Path):
        self.schema_path = schema_path
        self.schemas: dict[str, Schema] = {}

    def load_all(self) -> None:
        """Load every ``*.yaml`` document in the directory.

        Raises:
            InvalidSchemaError: If a document is malformed or two documents
                declare the same schema name
        """
        for yaml_file in sorted(self.schema_path.glob("*.yaml")):
            schema = load_schema_file(yaml_file)
            if schema.name in self.schemas:
                raise InvalidSchemaError(
                    f"Duplicate schema name '{schema.name}' in {yaml_file}"
                )
            self.schemas[schema.name] = schema
        logger.info("Loaded %d schema(s) from %s", len(self.schemas), self.schema_path)

    def get(self, name: str) -> Schema | None:
        return self.schemas.get(name)


def load_schema_file(yaml_path: Path) -> Schema:
    """Read, check and build one schema document.

    The schema name defaults to the file stem.

    Raises:
        InvalidSchemaError: If the document fails its shape check (the
            issues are attached as ``error.issues``)
        SchemaError: If building a chain fails (unknown type, bad parameter)
    """
    doc, issues = read_document(yaml_path)
    if issues:
        raise InvalidSchemaError(f"Invalid schema document {yaml_path}", issues)
    return build_schema(doc, default_name=yaml_path.stem, checked=True)


def build_schema(
    doc: dict[str, Any],
    *,
    default_name: str = "",
    checked: bool = False,
) -> Schema:
    """Build a Schema from a parsed document.

    Args:
        doc: Parsed document with ``fields`` and optional ``schema``/``aliases``
        default_name: Name used when the document has no ``schema`` key
        checked: Skip the shape check when the caller already ran it
    """
    if not checked:
        issues: list[DocumentIssue] = validate_document(doc)
        if issues:
            raise InvalidSchemaError("Invalid schema document", issues)

    aliases: dict[str, ConstraintChain] = {}
    for alias, type_ref in (doc.get("aliases") or {}).items():
        aliases[alias] = _build_chain(type_ref, aliases)

    fields = {
        field_name: _build_chain(type_ref, aliases)
        for field_name, type_ref in doc["fields"].items()
    }
    return Schema(fields, name=doc.get("schema") or default_name)


def _build_chain(type_ref: dict[str, Any], aliases: dict[str, ConstraintChain]) -> ConstraintChain:
    """Resolve a ``{type, constraints}`` entry into a chain."""
    type_name = type_ref["type"]
    chain = aliases[type_name] if type_name in aliases else Types.get(type_name)

    for entry in type_ref.get("constraints") or []:
        if isinstance(entry, str):
            name, argument = entry, None
        else:
            ((name, argument),) = entry.items()
        chain = _apply_entry(chain, ConstraintKind(name), argument, aliases)
    return chain


def _apply_entry(
    chain: ConstraintChain,
    kind: ConstraintKind,
    argument: Any,
    aliases: dict[str, ConstraintChain],
) -> ConstraintChain:
    method = _METHODS[kind]

    if kind is ConstraintKind.DEFAULT:
        return method(chain, argument)
    if kind is ConstraintKind.RENAME:
        if isinstance(argument, str):
            return method(chain, argument)
        return method(
            chain,
            argument["to"],
            delete_orig=argument.get("deleteOrig", False),
            allow_mult=argument.get("allowMult", False),
            allow_overwrite=argument.get("allowOverwrite", False),
        )
    if kind in (ConstraintKind.INCLUDES, ConstraintKind.EXCLUDES):
        return method(chain, *(_build_chain(ref, aliases) for ref in argument))
    if argument is None and kind not in _LITERAL_KINDS:
        return method(chain)
    if isinstance(argument, list):
        return method(chain, *argument)
    return method(chain, argument)


# Constraints whose argument is a literal, so an explicit null is a value
_LITERAL_KINDS = frozenset({
    ConstraintKind.VALID,
    ConstraintKind.INVALID,
    ConstraintKind.ALLOW,
    ConstraintKind.DENY,
})
