"""Core types for SchemaForge evaluation results.

Violations are plain data: the engine never raises them and never renders
human-readable text. ``code`` is the message key a caller renders from, and
``params`` carries the structured data (limits, patterns, group members).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from schemaforge.core.types import ConstraintKind


class ViolationCode(Enum):
    """Message keys for run-time violations."""

    # Presence & type
    MISSING_REQUIRED = "MissingRequired"
    TYPE_MISMATCH = "TypeMismatch"
    NULL_NOT_ALLOWED = "NullNotAllowed"
    EMPTY_NOT_ALLOWED = "EmptyNotAllowed"
    UNKNOWN_FIELD = "UnknownField"

    # Enumeration
    NOT_ALLOWED = "NotAllowed"
    DENIED = "Denied"

    # Range / format
    NOT_INTEGER = "NotInteger"
    BELOW_MINIMUM = "BelowMinimum"
    ABOVE_MAXIMUM = "AboveMaximum"
    PATTERN_MISMATCH = "PatternMismatch"
    ENCODING_MISMATCH = "EncodingMismatch"

    # Array elements
    ELEMENT_MISMATCH = "ElementMismatch"
    EXCLUDED_ELEMENT = "ExcludedElement"

    # Relationships
    INCOMPLETE_GROUP = "IncompleteGroup"
    CONFLICTING_GROUP = "ConflictingGroup"

    # Output shape
    RENAME_COLLISION = "RenameCollision"


class OutcomeStatus(Enum):
    """Terminal state of a validation run."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Violation:
    """A single run-time violation.

    Attributes:
        field: Field name this violation relates to, or None for group violations
        constraint: Constraint kind that failed, or None for base-type coercion
        code: Machine-readable message key
        params: Structured data for rendering (e.g. {"limit": 1850})
    """

    field: str | None
    constraint: ConstraintKind | None
    code: ViolationCode
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "constraint": self.constraint.value if self.constraint else None,
            "code": self.code.value,
            "params": dict(self.params),
        }


@dataclass
class ValidationOutcome:
    """Result of evaluating one input record.

    Attributes:
        status: ACCEPTED or REJECTED
        value: The normalized record (renames applied) when accepted, else None
        violations: Every violation collected, in evaluation order
    """

    status: OutcomeStatus
    value: dict[str, Any] | None = None
    violations: list[Violation] = field(default_factory=list)

    @classmethod
    def accepted_with(cls, value: dict[str, Any]) -> "ValidationOutcome":
        return cls(status=OutcomeStatus.ACCEPTED, value=value)

    @classmethod
    def rejected_with(cls, violations: list[Violation]) -> "ValidationOutcome":
        return cls(status=OutcomeStatus.REJECTED, violations=list(violations))

    @property
    def accepted(self) -> bool:
        return self.status is OutcomeStatus.ACCEPTED

    def codes(self) -> list[ViolationCode]:
        return [v.code for v in self.violations]

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"status": self.status.value}
        if self.accepted:
            result["value"] = self.value
        else:
            result["violations"] = [v.to_dict() for v in self.violations]
        return result
