"""Chain resolver: folds a constraint chain into one effective rule.

Resolution is a single left-to-right pass over the chain's applications.
Each constraint kind has exactly one handler, chosen by its category:

- override: the latest application wins (required/optional, nullOk,
  emptyOk, default, rename)
- overrule: applications intersect; min keeps the larger minimum, max the
  smaller maximum, integer narrows float, patterns and encodings accumulate
- relational: with/without targets accumulate verbatim
- enumeration: allow/valid and deny/invalid accumulate; deny wins

A resolved rule no input could satisfy raises ContradictoryConstraintError.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from schemaforge.core.types import BaseKind, ConstraintKind
from schemaforge.schema.chain import ConstraintApplication, ConstraintChain
from schemaforge.schema.errors import ContradictoryConstraintError
from schemaforge.schema.patterns import ALPHANUM_PATTERN, EMAIL_PATTERN, implied_length


# =============================================================================
# Rule Types
# =============================================================================


class NumberFormat(Enum):
    """Numeric format constraint. INTEGER is narrower than FLOAT."""

    FLOAT = "float"
    INTEGER = "integer"


@dataclass(frozen=True)
class RangeConstraint:
    """Merged min/max bounds.

    Bounds apply to the string length, numeric value, array element count or
    object key count depending on the base kind.

    Attributes:
        minimum: Effective lower bound (inclusive), None if unbounded
        maximum: Effective upper bound (inclusive), None if unbounded
        implied_by_pattern: Patterns whose implied length was intersected in
    """

    minimum: int | None = None
    maximum: int | None = None
    implied_by_pattern: tuple[str, ...] = ()

    def narrow(self, minimum: int | None, maximum: int | None) -> "RangeConstraint":
        new_min = self.minimum
        if minimum is not None and (new_min is None or minimum > new_min):
            new_min = minimum
        new_max = self.maximum
        if maximum is not None and (new_max is None or maximum < new_max):
            new_max = maximum
        return replace(self, minimum=new_min, maximum=new_max)

    @property
    def is_empty(self) -> bool:
        return (
            self.minimum is not None
            and self.maximum is not None
            and self.minimum > self.maximum
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "min": self.minimum,
            "max": self.maximum,
            "impliedByPattern": list(self.implied_by_pattern),
        }


@dataclass(frozen=True)
class PatternConstraint:
    """One format check, evaluated in declaration order.

    Attributes:
        kind: REGEX, ALPHANUM, EMAIL or DATE
        pattern: Compiled pattern (None for DATE, which parses instead)
        sequence: Declaration index of the application that added it
    """

    kind: ConstraintKind
    pattern: re.Pattern | None
    sequence: int

    def matches(self, value: str) -> bool:
        if self.kind is ConstraintKind.DATE:
            try:
                datetime.fromisoformat(value)
            except ValueError:
                return False
            return True
        return self.pattern.search(value) is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "pattern": self.pattern.pattern if self.pattern is not None else None,
        }


@dataclass(frozen=True)
class RenameSpec:
    """Output renaming for a field (the last rename declared)."""

    target: str
    delete_orig: bool = False
    allow_mult: bool = False
    allow_overwrite: bool = False
    sequence: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "to": self.target,
            "deleteOrig": self.delete_orig,
            "allowMult": self.allow_mult,
            "allowOverwrite": self.allow_overwrite,
        }


@dataclass(frozen=True)
class EffectiveRule:
    """The resolved, order-independent validation rule for one field.

    Attributes:
        name: Field name (or a label for nested element rules)
        kind: Base kind values are coerced to
        type_name: Registry name of the chain's type
        required: Absence is a violation
        null_ok: None is accepted as a value
        empty_ok: The empty string is accepted (strings only)
        has_default / default: Value output when the field is absent
        allow_set: Literals accepted outright (deny already removed)
        deny_set: Literals always rejected
        valid_only: Only allow_set literals are accepted
        range: Merged min/max bounds
        number_format: INTEGER, FLOAT or None
        patterns: Format checks in declaration order
        encodings: Codecs the value must encode in
        includes: Alternatives groups; each element must match one rule per group
        excludes: Rules no element may match
        rename: Final rename, if any
        with_fields / without_fields: Relation targets in declaration order
    """

    name: str
    kind: BaseKind
    type_name: str
    required: bool = False
    null_ok: bool = False
    empty_ok: bool = False
    has_default: bool = False
    default: Any = None
    allow_set: tuple[Any, ...] = ()
    deny_set: tuple[Any, ...] = ()
    valid_only: bool = False
    range: RangeConstraint = field(default_factory=RangeConstraint)
    number_format: NumberFormat | None = None
    patterns: tuple[PatternConstraint, ...] = ()
    encodings: tuple[str, ...] = ()
    includes: tuple[tuple["EffectiveRule", ...], ...] = ()
    excludes: tuple["EffectiveRule", ...] = ()
    rename: RenameSpec | None = None
    with_fields: tuple[str, ...] = ()
    without_fields: tuple[str, ...] = ()

    def is_allowed(self, value: Any) -> bool:
        return contains_literal(self.allow_set, value)

    def is_denied(self, value: Any) -> bool:
        return contains_literal(self.deny_set, value)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "type": self.type_name,
            "kind": self.kind.value,
            "required": self.required,
            "nullOk": self.null_ok,
            "emptyOk": self.empty_ok,
            "allow": list(self.allow_set),
            "deny": list(self.deny_set),
            "validOnly": self.valid_only,
            "range": self.range.to_dict(),
            "numberFormat": self.number_format.value if self.number_format else None,
            "patterns": [p.to_dict() for p in self.patterns],
            "encodings": list(self.encodings),
            "includes": [[r.to_dict() for r in group] for group in self.includes],
            "excludes": [r.to_dict() for r in self.excludes],
            "rename": self.rename.to_dict() if self.rename else None,
            "with": list(self.with_fields),
            "without": list(self.without_fields),
        }
        if self.has_default:
            result["default"] = self.default
        return result


def same_literal(a: Any, b: Any) -> bool:
    """Literal equality that keeps booleans apart from numbers."""
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    return a == b


def contains_literal(values: tuple[Any, ...], value: Any) -> bool:
    return any(same_literal(v, value) for v in values)


# =============================================================================
# Folding
# =============================================================================


@dataclass
class _Accumulator:
    """Mutable state of one resolution pass."""

    name: str
    chain: ConstraintChain
    required: bool = False
    null_ok: bool = False
    empty_ok: bool = False
    has_default: bool = False
    default: Any = None
    allow: list[Any] = field(default_factory=list)
    deny: list[Any] = field(default_factory=list)
    valid_only: bool = False
    range: RangeConstraint = field(default_factory=RangeConstraint)
    number_format: NumberFormat | None = None
    patterns: list[PatternConstraint] = field(default_factory=list)
    encodings: list[str] = field(default_factory=list)
    includes: list[tuple[EffectiveRule, ...]] = field(default_factory=list)
    excludes: list[EffectiveRule] = field(default_factory=list)
    rename: RenameSpec | None = None
    with_fields: list[str] = field(default_factory=list)
    without_fields: list[str] = field(default_factory=list)


def _append_unique(target: list[Any], values: tuple[Any, ...]) -> None:
    for value in values:
        if not contains_literal(tuple(target), value):
            target.append(value)


def _on_required(acc: _Accumulator, app: ConstraintApplication) -> None:
    acc.required = app.params[0]


def _on_optional(acc: _Accumulator, app: ConstraintApplication) -> None:
    acc.required = False


def _on_null_ok(acc: _Accumulator, app: ConstraintApplication) -> None:
    acc.null_ok = app.params[0]


def _on_empty_ok(acc: _Accumulator, app: ConstraintApplication) -> None:
    acc.empty_ok = app.params[0]


def _on_default(acc: _Accumulator, app: ConstraintApplication) -> None:
    acc.has_default = True
    acc.default = app.params[0]


def _on_rename(acc: _Accumulator, app: ConstraintApplication) -> None:
    acc.rename = RenameSpec(
        target=app.params[0],
        delete_orig=app.option("delete_orig", False),
        allow_mult=app.option("allow_mult", False),
        allow_overwrite=app.option("allow_overwrite", False),
        sequence=app.sequence,
    )


def _on_min(acc: _Accumulator, app: ConstraintApplication) -> None:
    acc.range = acc.range.narrow(app.params[0], None)


def _on_max(acc: _Accumulator, app: ConstraintApplication) -> None:
    acc.range = acc.range.narrow(None, app.params[0])


def _add_pattern(acc: _Accumulator, kind: ConstraintKind, pattern: re.Pattern | None, sequence: int) -> None:
    for existing in acc.patterns:
        if existing.kind is kind and existing.pattern == pattern:
            return
    acc.patterns.append(PatternConstraint(kind=kind, pattern=pattern, sequence=sequence))


def _on_regex(acc: _Accumulator, app: ConstraintApplication) -> None:
    pattern = app.params[0]
    _add_pattern(acc, ConstraintKind.REGEX, pattern, app.sequence)
    if acc.chain.kind is BaseKind.STRING:
        implied = implied_length(pattern)
        if implied is not None:
            narrowed = acc.range.narrow(*implied)
            acc.range = replace(
                narrowed,
                implied_by_pattern=narrowed.implied_by_pattern + (pattern.pattern,),
            )


def _on_alphanum(acc: _Accumulator, app: ConstraintApplication) -> None:
    _add_pattern(acc, ConstraintKind.ALPHANUM, ALPHANUM_PATTERN, app.sequence)


def _on_email(acc: _Accumulator, app: ConstraintApplication) -> None:
    _add_pattern(acc, ConstraintKind.EMAIL, EMAIL_PATTERN, app.sequence)


def _on_date(acc: _Accumulator, app: ConstraintApplication) -> None:
    _add_pattern(acc, ConstraintKind.DATE, None, app.sequence)


def _on_integer(acc: _Accumulator, app: ConstraintApplication) -> None:
    acc.number_format = NumberFormat.INTEGER


def _on_float(acc: _Accumulator, app: ConstraintApplication) -> None:
    if acc.number_format is None:
        acc.number_format = NumberFormat.FLOAT


def _on_encoding(acc: _Accumulator, app: ConstraintApplication) -> None:
    _append_unique(acc.encodings, app.params)


def _nested_rules(acc: _Accumulator, app: ConstraintApplication) -> tuple[EffectiveRule, ...]:
    return tuple(
        resolve_chain(chain, f"{acc.name}[{app.kind.value}:{i}]")
        for i, chain in enumerate(app.params)
    )


def _on_includes(acc: _Accumulator, app: ConstraintApplication) -> None:
    acc.includes.append(_nested_rules(acc, app))


def _on_excludes(acc: _Accumulator, app: ConstraintApplication) -> None:
    acc.excludes.extend(_nested_rules(acc, app))


def _on_with(acc: _Accumulator, app: ConstraintApplication) -> None:
    _append_unique(acc.with_fields, app.params)


def _on_without(acc: _Accumulator, app: ConstraintApplication) -> None:
    _append_unique(acc.without_fields, app.params)


def _on_valid(acc: _Accumulator, app: ConstraintApplication) -> None:
    acc.valid_only = True
    _append_unique(acc.allow, app.params)


def _on_allow(acc: _Accumulator, app: ConstraintApplication) -> None:
    _append_unique(acc.allow, app.params)


def _on_deny(acc: _Accumulator, app: ConstraintApplication) -> None:
    _append_unique(acc.deny, app.params)


Handler = Callable[[_Accumulator, ConstraintApplication], None]

RESOLUTION_HANDLERS: dict[ConstraintKind, Handler] = {
    ConstraintKind.REQUIRED: _on_required,
    ConstraintKind.OPTIONAL: _on_optional,
    ConstraintKind.NULL_OK: _on_null_ok,
    ConstraintKind.EMPTY_OK: _on_empty_ok,
    ConstraintKind.DEFAULT: _on_default,
    ConstraintKind.RENAME: _on_rename,
    ConstraintKind.MIN: _on_min,
    ConstraintKind.MAX: _on_max,
    ConstraintKind.REGEX: _on_regex,
    ConstraintKind.ALPHANUM: _on_alphanum,
    ConstraintKind.EMAIL: _on_email,
    ConstraintKind.DATE: _on_date,
    ConstraintKind.INTEGER: _on_integer,
    ConstraintKind.FLOAT: _on_float,
    ConstraintKind.ENCODING: _on_encoding,
    ConstraintKind.INCLUDES: _on_includes,
    ConstraintKind.EXCLUDES: _on_excludes,
    ConstraintKind.WITH: _on_with,
    ConstraintKind.WITHOUT: _on_without,
    ConstraintKind.VALID: _on_valid,
    ConstraintKind.INVALID: _on_deny,
    ConstraintKind.ALLOW: _on_allow,
    ConstraintKind.DENY: _on_deny,
}


def resolve_chain(chain: ConstraintChain, name: str = "value") -> EffectiveRule:
    """Fold a chain into its effective rule.

    Args:
        chain: The constraint chain to resolve
        name: Field name the rule is for (used in errors and violations)

    Returns:
        The resolved EffectiveRule

    Raises:
        ContradictoryConstraintError: If no input could satisfy the rule
    """
    acc = _Accumulator(name=name, chain=chain)
    for application in sorted(chain.applications, key=lambda a: a.sequence):
        RESOLUTION_HANDLERS[application.kind](acc, application)

    # Deny always wins over allow for the same literal
    allow = tuple(v for v in acc.allow if not contains_literal(tuple(acc.deny), v))

    rule = EffectiveRule(
        name=name,
        kind=chain.kind,
        type_name=chain.type_name,
        required=acc.required,
        null_ok=acc.null_ok,
        empty_ok=acc.empty_ok,
        has_default=acc.has_default,
        default=acc.default,
        allow_set=allow,
        deny_set=tuple(acc.deny),
        valid_only=acc.valid_only,
        range=acc.range,
        number_format=acc.number_format,
        patterns=tuple(acc.patterns),
        encodings=tuple(acc.encodings),
        includes=tuple(acc.includes),
        excludes=tuple(acc.excludes),
        rename=acc.rename,
        with_fields=tuple(acc.with_fields),
        without_fields=tuple(acc.without_fields),
    )
    _check_satisfiable(rule)
    return rule


def _check_satisfiable(rule: EffectiveRule) -> None:
    if rule.range.is_empty:
        source = ""
        if rule.range.implied_by_pattern:
            source = " (including lengths implied by " + ", ".join(rule.range.implied_by_pattern) + ")"
        raise ContradictoryConstraintError(
            rule.name,
            f"effective min {rule.range.minimum} is greater than effective max "
            f"{rule.range.maximum}{source}",
        )
    if rule.valid_only and not rule.allow_set:
        raise ContradictoryConstraintError(
            rule.name, "every valid() value is also denied"
        )
    if rule.has_default:
        if rule.is_denied(rule.default):
            raise ContradictoryConstraintError(
                rule.name, f"default {rule.default!r} is denied"
            )
        if rule.valid_only and not rule.is_allowed(rule.default):
            raise ContradictoryConstraintError(
                rule.name, f"default {rule.default!r} is not among the valid values"
            )
        if not rule.is_allowed(rule.default):
            problem = _default_problem(rule)
            if problem:
                raise ContradictoryConstraintError(
                    rule.name, f"default {rule.default!r} {problem}"
                )


def _default_problem(rule: EffectiveRule) -> str | None:
    """Describe how a default breaks its own rule's format, range or patterns."""
    default = rule.default
    if rule.kind is BaseKind.BOOLEAN:
        return None
    if rule.kind is BaseKind.STRING and default == "":
        return None if rule.empty_ok else "is empty"
    if (
        rule.number_format is NumberFormat.INTEGER
        and isinstance(default, float)
        and not default.is_integer()
    ):
        return "is not an integer"

    measured = default if rule.kind is BaseKind.NUMBER else len(default)
    if rule.range.minimum is not None and measured < rule.range.minimum:
        return f"is below the effective min {rule.range.minimum}"
    if rule.range.maximum is not None and measured > rule.range.maximum:
        return f"is above the effective max {rule.range.maximum}"

    if rule.kind is BaseKind.STRING:
        for constraint in rule.patterns:
            if not constraint.matches(default):
                return f"does not satisfy {constraint.kind.value}"
    return None
