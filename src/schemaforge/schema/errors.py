"""Schema-compile-time errors.

Every error here is fatal to schema construction: a schema that raises one
of these is never registered or compiled. Run-time violations are data, see
``schemaforge.validation.types``.
"""

from typing import Any


class SchemaError(Exception):
    """Base class for all schema construction errors."""


class UnknownTypeError(SchemaError):
    """A type name was resolved that is not in the Type Registry."""

    def __init__(self, name: str, available: list[str] | None = None):
        self.name = name
        self.available = available or []
        message = f"Type '{name}' is not registered"
        if self.available:
            message += ". Available types: " + ", ".join(self.available)
        super().__init__(message)


class DuplicateTypeError(SchemaError):
    """A type name was registered twice without asking for replacement."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Type '{name}' is already registered; pass replace=True to replace it"
        )


class RegistryFrozenError(SchemaError):
    """The Type Registry was mutated after being frozen."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Cannot register type '{name}': the type registry is frozen")


class InvalidConstraintParamError(SchemaError):
    """A builder method received a missing or malformed parameter."""

    def __init__(self, constraint: str, message: str, value: Any = None):
        self.constraint = constraint
        self.value = value
        super().__init__(f"{constraint}(): {message}")


class ContradictoryConstraintError(SchemaError):
    """A resolved rule can never be satisfied by any input."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Field '{field}': {message}")


class ConflictingRelationError(SchemaError):
    """``with`` and ``without`` declarations contradict each other."""

    def __init__(self, fields: list[str], message: str):
        self.fields = fields
        super().__init__(f"{message} (fields: {', '.join(fields)})")


class InvalidSchemaError(SchemaError):
    """A schema mapping or schema document is structurally malformed.

    Attributes:
        issues: Structured findings (document issues) when raised by the loader
    """

    def __init__(self, message: str, issues: list[Any] | None = None):
        self.issues = issues or []
        super().__init__(message)
