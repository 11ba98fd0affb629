"""Evaluation engine: runs a compiled schema against one input record.

A run moves through four steps and ends Accepted or Rejected:
1. Presence & type: required fields, defaults, coercion
2. Range / pattern / enumeration checks per present field
3. Relationship groups: AND all-or-nothing, XOR at most one
4. Rename pass: shapes the output record, detecting collisions

Violations are collected across all steps (collect-all). With
``abort_early`` the run ends at the first violation instead. Violations are
returned as data; nothing is raised across the engine boundary.
"""

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from schemaforge.config import EngineConfig
from schemaforge.core.types import ConstraintKind
from schemaforge.schema.chain import ConstraintChain
from schemaforge.schema.compiler import CompiledSchema, Schema, compile_schema
from schemaforge.schema.relations import GroupMode
from schemaforge.validation.checks import RuleChecker
from schemaforge.validation.types import ValidationOutcome, Violation, ViolationCode

logger = logging.getLogger(__name__)

SchemaLike = Schema | CompiledSchema | Mapping[str, ConstraintChain]


@dataclass(frozen=True)
class EvaluationOptions:
    """Per-engine evaluation policy.

    Attributes:
        abort_early: Stop at the first violation (fail-fast) instead of
            collecting every violation
        allow_unknown: Accept input keys that are neither schema fields nor
            relation targets; when False each one is an UnknownField violation
    """

    abort_early: bool = False
    allow_unknown: bool = True


class _Collector:
    """Accumulates violations and tracks the fail-fast cut-off."""

    def __init__(self, abort_early: bool):
        self.abort_early = abort_early
        self.violations: list[Violation] = []

    def add(self, violations: list[Violation]) -> bool:
        """Record violations; returns True when the run must stop."""
        if self.abort_early and violations:
            self.violations.append(violations[0])
        else:
            self.violations.extend(violations)
        return self.stopped

    @property
    def stopped(self) -> bool:
        return self.abort_early and bool(self.violations)


class ValidationEngine:
    """Evaluates input records against schemas.

    The engine holds no per-run state, so one instance can serve concurrent
    runs against the same compiled schema.
    """

    def __init__(self, options: EvaluationOptions | None = None):
        self.options = options or EngineConfig.from_env().evaluation_options()

    def validate(self, schema: SchemaLike, raw: Mapping[str, Any]) -> ValidationOutcome:
        """Validate one input record.

        Args:
            schema: A Schema (compiled once and cached), a CompiledSchema, or
                a plain mapping of field name -> chain (compiled per call)
            raw: Field name -> raw value(s); absent keys are not supplied

        Returns:
            Accepted with the normalized record, or Rejected with violations
        """
        if not isinstance(raw, Mapping):
            raise TypeError(f"Input must be a mapping, got {type(raw).__name__}")

        compiled = self._compiled(schema)
        collector = _Collector(self.options.abort_early)
        record: dict[str, Any] = {}

        for step in (self._check_fields, self._check_unknown, self._check_groups):
            if step(compiled, raw, record, collector):
                return self._rejected(compiled, collector)

        output, rename_violations = self._rename(compiled, record)
        collector.add(rename_violations)

        if collector.violations:
            return self._rejected(compiled, collector)
        return ValidationOutcome.accepted_with(output)

    def _compiled(self, schema: SchemaLike) -> CompiledSchema:
        if isinstance(schema, CompiledSchema):
            return schema
        if isinstance(schema, Schema):
            return schema.compiled
        return compile_schema(schema)

    def _rejected(self, compiled: CompiledSchema, collector: _Collector) -> ValidationOutcome:
        logger.debug(
            "Rejected input for schema '%s' with %d violation(s)",
            compiled.name,
            len(collector.violations),
        )
        return ValidationOutcome.rejected_with(collector.violations)

    # -------------------------------------------------------------------------
    # Steps 1-2: presence, type, per-field checks
    # -------------------------------------------------------------------------

    def _check_fields(
        self,
        compiled: CompiledSchema,
        raw: Mapping[str, Any],
        record: dict[str, Any],
        collector: _Collector,
    ) -> bool:
        for name, rule in compiled.rules.items():
            if name not in raw:
                if rule.required:
                    violation = Violation(
                        field=name,
                        constraint=ConstraintKind.REQUIRED,
                        code=ViolationCode.MISSING_REQUIRED,
                    )
                    if collector.add([violation]):
                        return True
                elif rule.has_default:
                    record[name] = copy.deepcopy(rule.default)
                continue

            value, violations = RuleChecker(rule).check(raw[name])
            record[name] = value
            if collector.add(violations):
                return True
        return False

    def _check_unknown(
        self,
        compiled: CompiledSchema,
        raw: Mapping[str, Any],
        record: dict[str, Any],
        collector: _Collector,
    ) -> bool:
        if self.options.allow_unknown:
            return False
        known = set(compiled.rules) | compiled.relation_keys
        for key in raw:
            if key not in known:
                violation = Violation(field=key, constraint=None, code=ViolationCode.UNKNOWN_FIELD)
                if collector.add([violation]):
                    return True
        return False

    # -------------------------------------------------------------------------
    # Step 3: relationship groups
    # -------------------------------------------------------------------------

    def _check_groups(
        self,
        compiled: CompiledSchema,
        raw: Mapping[str, Any],
        record: dict[str, Any],
        collector: _Collector,
    ) -> bool:
        for group in compiled.groups:
            present = group.present(raw)
            if group.mode is GroupMode.AND:
                missing = group.absent(raw)
                if present and missing:
                    violation = Violation(
                        field=None,
                        constraint=ConstraintKind.WITH,
                        code=ViolationCode.INCOMPLETE_GROUP,
                        params={"group": list(group.members), "missing": missing},
                    )
                    if collector.add([violation]):
                        return True
            elif len(present) > 1:
                violation = Violation(
                    field=None,
                    constraint=ConstraintKind.WITHOUT,
                    code=ViolationCode.CONFLICTING_GROUP,
                    params={"group": list(group.members), "present": present},
                )
                if collector.add([violation]):
                    return True
        return False

    # -------------------------------------------------------------------------
    # Step 4: rename pass
    # -------------------------------------------------------------------------

    def _rename(
        self,
        compiled: CompiledSchema,
        record: dict[str, Any],
    ) -> tuple[dict[str, Any], list[Violation]]:
        """Apply renames in schema order.

        Runs over every present (or defaulted) field even when earlier steps
        failed, so collisions are always reported; the output is only used
        when no violation was collected.
        """
        output = dict(record)
        renamed: dict[str, str] = {}  # target -> source
        violations: list[Violation] = []

        for name, rule in compiled.rules.items():
            spec = rule.rename
            if spec is None or name not in record or spec.target == name:
                continue

            target = spec.target
            reason = None
            if target in renamed and not spec.allow_mult:
                reason = "multiple"
            elif target in output and target not in renamed and not spec.allow_overwrite:
                reason = "overwrite"
            if reason is not None:
                violations.append(Violation(
                    field=name,
                    constraint=ConstraintKind.RENAME,
                    code=ViolationCode.RENAME_COLLISION,
                    params={
                        "target": target,
                        "reason": reason,
                        "occupiedBy": renamed.get(target, target),
                    },
                ))
                continue

            output[target] = record[name]
            renamed[target] = name
            if spec.delete_orig:
                del output[name]

        return output, violations


def validate(
    schema: SchemaLike,
    raw: Mapping[str, Any],
    options: EvaluationOptions | None = None,
) -> ValidationOutcome:
    """Validate ``raw`` against ``schema`` with a one-off engine.

    Options default to the environment config (see EngineConfig).
    """
    return ValidationEngine(options).validate(schema, raw)
