"""Schema compilation.

Compiling a schema resolves every field's chain into an EffectiveRule and
reduces the relational declarations into RelationshipGroups. Both are pure
functions of the schema, so a Schema compiles once and shares the result
across every evaluation run.
"""

import logging
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from schemaforge.config import EngineConfig
from schemaforge.schema.chain import IDENTIFIER_PATTERN, ConstraintChain
from schemaforge.schema.errors import InvalidSchemaError
from schemaforge.schema.registry import TypeRegistry
from schemaforge.schema.relations import RelationshipGroup, build_groups
from schemaforge.schema.resolver import EffectiveRule, resolve_chain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledSchema:
    """Effective rules and relationship groups for one schema.

    Attributes:
        rules: Effective rule per field, in schema order (read-only)
        groups: AND-groups followed by XOR-groups
        registry_version: Type Registry version at compile time
        name: Optional schema name (used in logs and the CLI)
    """

    rules: Mapping[str, EffectiveRule]
    groups: tuple[RelationshipGroup, ...]
    registry_version: int
    name: str = ""

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self.rules)

    @property
    def relation_keys(self) -> frozenset[str]:
        """Every key named by a relationship group."""
        return frozenset(m for group in self.groups for m in group.members)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "registryVersion": self.registry_version,
            "fields": {name: rule.to_dict() for name, rule in self.rules.items()},
            "groups": [group.to_dict() for group in self.groups],
        }


def compile_schema(
    fields: Mapping[str, ConstraintChain],
    *,
    name: str = "",
    freeze_registry: bool | None = None,
) -> CompiledSchema:
    """Compile a mapping of field name -> constraint chain.

    Args:
        fields: Field chains in schema order
        name: Optional schema name
        freeze_registry: Freeze the Type Registry first. Defaults to the
            ``freeze_on_compile`` setting of the environment config.

    Returns:
        The CompiledSchema

    Raises:
        InvalidSchemaError: If a field name is not an identifier or a value
            is not a constraint chain
        ContradictoryConstraintError: If a field's rule is unsatisfiable
        ConflictingRelationError: If relations contradict each other
    """
    if freeze_registry is None:
        freeze_registry = EngineConfig.from_env().freeze_on_compile
    if freeze_registry:
        TypeRegistry.freeze()

    rules: dict[str, EffectiveRule] = {}
    for field_name, chain in fields.items():
        if not isinstance(field_name, str) or not IDENTIFIER_PATTERN.match(field_name):
            raise InvalidSchemaError(f"Field name {field_name!r} is not a valid identifier")
        if not isinstance(chain, ConstraintChain):
            raise InvalidSchemaError(
                f"Field '{field_name}' must be a constraint chain, got {type(chain).__name__}"
            )
        rules[field_name] = resolve_chain(chain, field_name)

    groups = build_groups(rules)
    logger.debug(
        "Compiled schema '%s': %d field(s), %d group(s)",
        name,
        len(rules),
        len(groups),
    )
    return CompiledSchema(
        rules=MappingProxyType(rules),
        groups=groups,
        registry_version=TypeRegistry.version(),
        name=name,
    )


class Schema(Mapping[str, ConstraintChain]):
    """A read-only mapping of field name -> constraint chain.

    The first call to compile() (or the ``compiled`` property) compiles the
    schema; later calls return the same CompiledSchema.

    Example:
        signup = Schema({
            "username": Types.string().required().alphanum().min(3).max(30).with_("email"),
            "email": Types.string().email(),
        }, name="signup")

        outcome = validate(signup, {"username": "bob1", "email": "b@x.com"})
    """

    def __init__(self, fields: Mapping[str, ConstraintChain], name: str = ""):
        self._fields = MappingProxyType(dict(fields))
        self.name = name
        self._compiled: CompiledSchema | None = None
        self._lock = threading.Lock()

    def __getitem__(self, key: str) -> ConstraintChain:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Schema(name={self.name!r}, fields={list(self._fields)!r})"

    def compile(self, *, freeze_registry: bool | None = None) -> CompiledSchema:
        if self._compiled is None:
            with self._lock:
                if self._compiled is None:
                    self._compiled = compile_schema(
                        self._fields, name=self.name, freeze_registry=freeze_registry
                    )
        return self._compiled

    @property
    def compiled(self) -> CompiledSchema:
        return self.compile()
