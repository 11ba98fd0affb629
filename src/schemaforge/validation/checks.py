"""Per-field rule checks.

A RuleChecker applies one EffectiveRule to one present raw value:
- Null handling
- Coercion to the base kind
- Allow / deny / valid sets (deny wins)
- Empty string handling
- Integer format
- Range bounds (length, value, element or key count)
- Patterns, in declaration order (first failure only)
- Encodings
- Array element includes / excludes, recursing into nested rules
"""

from dataclasses import dataclass
from typing import Any

from schemaforge.core.types import BaseKind, ConstraintKind
from schemaforge.schema.resolver import EffectiveRule, NumberFormat
from schemaforge.validation.coercion import CoercionError, coerce
from schemaforge.validation.types import Violation, ViolationCode


@dataclass
class RuleChecker:
    """Validates one value against an effective rule.

    ``field`` is the name violations are reported under; it differs from
    ``rule.name`` for nested element rules, which report under the array field.
    """

    rule: EffectiveRule
    field: str | None = None

    @property
    def field_name(self) -> str:
        return self.field or self.rule.name

    def check(self, raw: Any) -> tuple[Any, list[Violation]]:
        """Coerce and check a present raw value.

        Returns:
            The coerced value and the violations found (empty means valid)
        """
        rule = self.rule

        if raw is None:
            if rule.is_denied(None):
                return None, [self._violation(ConstraintKind.DENY, ViolationCode.DENIED, value=None)]
            if rule.null_ok or rule.is_allowed(None):
                return None, []
            return None, [self._violation(ConstraintKind.NULL_OK, ViolationCode.NULL_NOT_ALLOWED)]

        try:
            value = coerce(rule.kind, raw)
        except CoercionError:
            return raw, [self._violation(
                None,
                ViolationCode.TYPE_MISMATCH,
                expected=rule.kind.value,
                received=type(raw).__name__,
            )]

        # Enumeration: an explicit denial is authoritative
        if rule.is_denied(value):
            return value, [self._violation(ConstraintKind.DENY, ViolationCode.DENIED, value=value)]
        if rule.is_allowed(value):
            return value, []
        if rule.valid_only:
            return value, [self._violation(
                ConstraintKind.VALID,
                ViolationCode.NOT_ALLOWED,
                value=value,
                allowed=list(rule.allow_set),
            )]

        if rule.kind is BaseKind.STRING and value == "":
            if rule.empty_ok:
                return value, []
            return value, [self._violation(ConstraintKind.EMPTY_OK, ViolationCode.EMPTY_NOT_ALLOWED)]

        violations: list[Violation] = []

        if rule.kind is BaseKind.NUMBER and rule.number_format is NumberFormat.INTEGER:
            if isinstance(value, float):
                if value.is_integer():
                    value = int(value)
                else:
                    violations.append(self._violation(
                        ConstraintKind.INTEGER, ViolationCode.NOT_INTEGER, value=value
                    ))
                    return value, violations

        violations.extend(self._check_range(value))

        if rule.kind is BaseKind.STRING:
            pattern_violation = self._check_patterns(value)
            if pattern_violation:
                violations.append(pattern_violation)
            violations.extend(self._check_encodings(value))

        if rule.kind is BaseKind.ARRAY and (rule.includes or rule.excludes):
            value, element_violations = self._check_elements(value)
            violations.extend(element_violations)

        return value, violations

    def _violation(
        self,
        constraint: ConstraintKind | None,
        code: ViolationCode,
        **params: Any,
    ) -> Violation:
        return Violation(field=self.field_name, constraint=constraint, code=code, params=params)

    def _measure(self, value: Any) -> int | float:
        if self.rule.kind is BaseKind.NUMBER:
            return value
        return len(value)

    def _check_range(self, value: Any) -> list[Violation]:
        """Validate merged min/max bounds."""
        bounds = self.rule.range
        if self.rule.kind is BaseKind.BOOLEAN or (bounds.minimum is None and bounds.maximum is None):
            return []
        measured = self._measure(value)

        if bounds.minimum is not None and measured < bounds.minimum:
            return [self._violation(
                ConstraintKind.MIN,
                ViolationCode.BELOW_MINIMUM,
                limit=bounds.minimum,
                actual=measured,
            )]
        if bounds.maximum is not None and measured > bounds.maximum:
            return [self._violation(
                ConstraintKind.MAX,
                ViolationCode.ABOVE_MAXIMUM,
                limit=bounds.maximum,
                actual=measured,
            )]
        return []

    def _check_patterns(self, value: str) -> Violation | None:
        """Return the first failing format check, in declaration order."""
        for constraint in self.rule.patterns:
            if not constraint.matches(value):
                return self._violation(
                    constraint.kind,
                    ViolationCode.PATTERN_MISMATCH,
                    pattern=constraint.pattern.pattern if constraint.pattern is not None else None,
                )
        return None

    def _check_encodings(self, value: str) -> list[Violation]:
        violations = []
        for encoding in self.rule.encodings:
            try:
                value.encode(encoding)
            except UnicodeEncodeError:
                violations.append(self._violation(
                    ConstraintKind.ENCODING,
                    ViolationCode.ENCODING_MISMATCH,
                    encoding=encoding,
                ))
        return violations

    def _check_elements(self, elements: list[Any]) -> tuple[list[Any], list[Violation]]:
        """Validate each array element against includes / excludes rules.

        Matched elements are replaced by the value coerced by the first
        matching included type.
        """
        violations: list[Violation] = []
        result: list[Any] = []

        for index, element in enumerate(elements):
            coerced = element
            replaced = False
            for group in self.rule.includes:
                match = self._first_match(group, element)
                if match is None:
                    violations.append(self._violation(
                        ConstraintKind.INCLUDES,
                        ViolationCode.ELEMENT_MISMATCH,
                        index=index,
                        types=[r.type_name for r in group],
                    ))
                elif not replaced:
                    coerced = match[0]
                    replaced = True

            for excluded in self.rule.excludes:
                _, nested = RuleChecker(excluded, self.field_name).check(element)
                if not nested:
                    violations.append(self._violation(
                        ConstraintKind.EXCLUDES,
                        ViolationCode.EXCLUDED_ELEMENT,
                        index=index,
                        type=excluded.type_name,
                    ))
            result.append(coerced)

        return result, violations

    def _first_match(
        self, group: tuple[EffectiveRule, ...], element: Any
    ) -> tuple[Any] | None:
        for nested_rule in group:
            value, nested = RuleChecker(nested_rule, self.field_name).check(element)
            if not nested:
                return (value,)
        return None
