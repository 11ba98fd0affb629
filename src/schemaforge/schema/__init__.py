"""Schema definition and compilation.

This module provides:
- TypeRegistry / Types: named type prototypes
- ConstraintChain: immutable constraint builder
- resolve_chain: folds a chain into an EffectiveRule
- build_groups: AND / XOR relationship groups
- Schema / compile_schema: compiled, shareable schemas
- SchemaLoader: YAML schema documents
"""

from schemaforge.schema.chain import ConstraintApplication, ConstraintChain
from schemaforge.schema.compiler import CompiledSchema, Schema, compile_schema
from schemaforge.schema.errors import (
    ConflictingRelationError,
    ContradictoryConstraintError,
    DuplicateTypeError,
    InvalidConstraintParamError,
    InvalidSchemaError,
    RegistryFrozenError,
    SchemaError,
    UnknownTypeError,
)
from schemaforge.schema.loader import SchemaLoader, build_schema, load_schema_file
from schemaforge.schema.registry import TypeRegistry, Types
from schemaforge.schema.relations import GroupMode, RelationshipGroup, build_groups
from schemaforge.schema.resolver import EffectiveRule, RangeConstraint, resolve_chain

__all__ = [
    # Builder
    "ConstraintApplication",
    "ConstraintChain",
    "TypeRegistry",
    "Types",
    # Compilation
    "CompiledSchema",
    "EffectiveRule",
    "GroupMode",
    "RangeConstraint",
    "RelationshipGroup",
    "Schema",
    "build_groups",
    "compile_schema",
    "resolve_chain",
    # Documents
    "SchemaLoader",
    "build_schema",
    "load_schema_file",
    # Errors
    "ConflictingRelationError",
    "ContradictoryConstraintError",
    "DuplicateTypeError",
    "InvalidConstraintParamError",
    "InvalidSchemaError",
    "RegistryFrozenError",
    "SchemaError",
    "UnknownTypeError",
]
