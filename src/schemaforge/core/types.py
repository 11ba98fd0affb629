"""Base kinds, constraint kinds, and the built-in type descriptors."""

from dataclasses import dataclass, field
from enum import Enum


class BaseKind(Enum):
    """The built-in kinds every constraint chain originates from."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class ConstraintCategory(Enum):
    """How repeated applications of one constraint kind combine.

    OVERRIDE: a later application replaces an earlier one
    OVERRULE: a later application narrows (intersects with) an earlier one
    RELATIONAL: applications accumulate into cross-field relations
    ENUMERATION: applications accumulate into allow-sets / deny-sets
    """

    OVERRIDE = "override"
    OVERRULE = "overrule"
    RELATIONAL = "relational"
    ENUMERATION = "enumeration"


class ConstraintKind(Enum):
    """Closed set of constraint kinds a chain can carry."""

    # Override
    REQUIRED = "required"
    OPTIONAL = "optional"
    NULL_OK = "nullOk"
    EMPTY_OK = "emptyOk"
    DEFAULT = "default"
    RENAME = "rename"

    # Overrule
    MIN = "min"
    MAX = "max"
    REGEX = "regex"
    ALPHANUM = "alphanum"
    EMAIL = "email"
    DATE = "date"
    INTEGER = "integer"
    FLOAT = "float"
    ENCODING = "encoding"
    INCLUDES = "includes"
    EXCLUDES = "excludes"

    # Relational
    WITH = "with"
    WITHOUT = "without"

    # Enumeration
    VALID = "valid"
    INVALID = "invalid"
    ALLOW = "allow"
    DENY = "deny"

    @property
    def category(self) -> ConstraintCategory:
        return CONSTRAINT_CATEGORIES[self]


CONSTRAINT_CATEGORIES: dict[ConstraintKind, ConstraintCategory] = {
    ConstraintKind.REQUIRED: ConstraintCategory.OVERRIDE,
    ConstraintKind.OPTIONAL: ConstraintCategory.OVERRIDE,
    ConstraintKind.NULL_OK: ConstraintCategory.OVERRIDE,
    ConstraintKind.EMPTY_OK: ConstraintCategory.OVERRIDE,
    ConstraintKind.DEFAULT: ConstraintCategory.OVERRIDE,
    ConstraintKind.RENAME: ConstraintCategory.OVERRIDE,
    ConstraintKind.MIN: ConstraintCategory.OVERRULE,
    ConstraintKind.MAX: ConstraintCategory.OVERRULE,
    ConstraintKind.REGEX: ConstraintCategory.OVERRULE,
    ConstraintKind.ALPHANUM: ConstraintCategory.OVERRULE,
    ConstraintKind.EMAIL: ConstraintCategory.OVERRULE,
    ConstraintKind.DATE: ConstraintCategory.OVERRULE,
    ConstraintKind.INTEGER: ConstraintCategory.OVERRULE,
    ConstraintKind.FLOAT: ConstraintCategory.OVERRULE,
    ConstraintKind.ENCODING: ConstraintCategory.OVERRULE,
    ConstraintKind.INCLUDES: ConstraintCategory.OVERRULE,
    ConstraintKind.EXCLUDES: ConstraintCategory.OVERRULE,
    ConstraintKind.WITH: ConstraintCategory.RELATIONAL,
    ConstraintKind.WITHOUT: ConstraintCategory.RELATIONAL,
    ConstraintKind.VALID: ConstraintCategory.ENUMERATION,
    ConstraintKind.INVALID: ConstraintCategory.ENUMERATION,
    ConstraintKind.ALLOW: ConstraintCategory.ENUMERATION,
    ConstraintKind.DENY: ConstraintCategory.ENUMERATION,
}


# Kinds every base type accepts
COMMON_CONSTRAINTS: frozenset[ConstraintKind] = frozenset({
    ConstraintKind.REQUIRED,
    ConstraintKind.OPTIONAL,
    ConstraintKind.NULL_OK,
    ConstraintKind.DEFAULT,
    ConstraintKind.RENAME,
    ConstraintKind.WITH,
    ConstraintKind.WITHOUT,
    ConstraintKind.VALID,
    ConstraintKind.INVALID,
    ConstraintKind.ALLOW,
    ConstraintKind.DENY,
})


@dataclass(frozen=True)
class TypeDescriptor:
    """A named base type and the constraint kinds legal on it.

    Attributes:
        name: Registry name (e.g., "string", "username")
        kind: The base kind values are coerced to
        constraints: Constraint kinds a chain of this type may carry
        description: Human-readable description
    """

    name: str
    kind: BaseKind
    constraints: frozenset[ConstraintKind] = field(default=COMMON_CONSTRAINTS)
    description: str = ""

    def allows(self, kind: ConstraintKind) -> bool:
        return kind in self.constraints

    def narrowed(
        self,
        name: str,
        *,
        drop: frozenset[ConstraintKind] | set[ConstraintKind] = frozenset(),
        description: str = "",
    ) -> "TypeDescriptor":
        """Derive a descriptor with the same kind and fewer legal constraints."""
        return TypeDescriptor(
            name=name,
            kind=self.kind,
            constraints=self.constraints - frozenset(drop),
            description=description or self.description,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "constraints": sorted(k.value for k in self.constraints),
            "description": self.description,
        }


# Built-in base types
BUILTIN_TYPES: dict[str, TypeDescriptor] = {
    "string": TypeDescriptor(
        name="string",
        kind=BaseKind.STRING,
        constraints=COMMON_CONSTRAINTS | {
            ConstraintKind.EMPTY_OK,
            ConstraintKind.MIN,  # length
            ConstraintKind.MAX,
            ConstraintKind.REGEX,
            ConstraintKind.ALPHANUM,
            ConstraintKind.EMAIL,
            ConstraintKind.DATE,
            ConstraintKind.ENCODING,
        },
        description="Text value",
    ),
    "number": TypeDescriptor(
        name="number",
        kind=BaseKind.NUMBER,
        constraints=COMMON_CONSTRAINTS | {
            ConstraintKind.MIN,  # value
            ConstraintKind.MAX,
            ConstraintKind.INTEGER,
            ConstraintKind.FLOAT,
        },
        description="Finite integer or decimal value",
    ),
    "boolean": TypeDescriptor(
        name="boolean",
        kind=BaseKind.BOOLEAN,
        constraints=COMMON_CONSTRAINTS,
        description="'true' (any case) or false",
    ),
    "array": TypeDescriptor(
        name="array",
        kind=BaseKind.ARRAY,
        constraints=COMMON_CONSTRAINTS | {
            ConstraintKind.MIN,  # element count
            ConstraintKind.MAX,
            ConstraintKind.INCLUDES,
            ConstraintKind.EXCLUDES,
        },
        description="Ordered sequence of values",
    ),
    "object": TypeDescriptor(
        name="object",
        kind=BaseKind.OBJECT,
        constraints=COMMON_CONSTRAINTS | {
            ConstraintKind.MIN,  # key count
            ConstraintKind.MAX,
        },
        description="Mapping of keys to values",
    ),
}
