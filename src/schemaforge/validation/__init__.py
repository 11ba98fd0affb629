"""SchemaForge evaluation.

Runs compiled schemas against input records:
- Step 1: Presence and type coercion
- Step 2: Range, pattern and enumeration checks
- Step 3: Relationship groups (AND / XOR)
- Step 4: Rename pass

Usage:
    from schemaforge.validation import ValidationEngine, EvaluationOptions

    engine = ValidationEngine(EvaluationOptions(abort_early=True))
    outcome = engine.validate(schema, {"username": "bob1"})
"""

from schemaforge.validation.engine import EvaluationOptions, ValidationEngine, validate
from schemaforge.validation.types import (
    OutcomeStatus,
    ValidationOutcome,
    Violation,
    ViolationCode,
)

__all__ = [
    "EvaluationOptions",
    "OutcomeStatus",
    "ValidationEngine",
    "ValidationOutcome",
    "Violation",
    "ViolationCode",
    "validate",
]
