"""SchemaForge: declarative field constraints and input validation.

Usage:
    from schemaforge import Schema, Types, validate

    signup = Schema({
        "username": Types.string().required().alphanum().min(3).max(30).with_("birthyear"),
        "birthyear": Types.number().integer().min(1850).max(2012),
    }, name="signup")

    outcome = validate(signup, {"username": "bob1", "birthyear": "1990"})
    if not outcome.accepted:
        for violation in outcome.violations:
            print(violation.to_dict())
"""

from schemaforge.schema import (
    CompiledSchema,
    ConstraintChain,
    Schema,
    SchemaError,
    TypeRegistry,
    Types,
    compile_schema,
)
from schemaforge.validation import (
    EvaluationOptions,
    ValidationEngine,
    ValidationOutcome,
    Violation,
    ViolationCode,
    validate,
)

__version__ = "0.1.0"

__all__ = [
    "CompiledSchema",
    "ConstraintChain",
    "EvaluationOptions",
    "Schema",
    "SchemaError",
    "TypeRegistry",
    "Types",
    "ValidationEngine",
    "ValidationOutcome",
    "Violation",
    "ViolationCode",
    "compile_schema",
    "validate",
]
