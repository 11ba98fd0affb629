"""Fluent constraint chains.

A chain is an immutable value: every builder method returns a new chain
carrying the accumulated applications plus the new one. Binding a chain to a
name and chaining further from it (an alias) is therefore always safe:

    handle = Types.string().alphanum().min(3)
    username = handle.max(30).required()
    nickname = handle.max(12)          # unaffected by username

Parameters are validated here, at build time; a malformed call raises
InvalidConstraintParamError immediately instead of failing every evaluation.
"""

from __future__ import annotations

import codecs
import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from schemaforge.core.types import BaseKind, ConstraintKind, TypeDescriptor
from schemaforge.schema.errors import InvalidConstraintParamError

# Field names usable in schemas and relation declarations
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def matches_kind(kind: BaseKind, value: Any) -> bool:
    """Check whether a literal belongs to a base kind.

    ``None`` is the null literal and belongs to every kind.
    """
    if value is None:
        return True
    if kind is BaseKind.STRING:
        return isinstance(value, str)
    if kind is BaseKind.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind is BaseKind.BOOLEAN:
        return isinstance(value, bool)
    if kind is BaseKind.ARRAY:
        return isinstance(value, (list, tuple))
    return isinstance(value, Mapping)


def _normalize_literal(value: Any) -> Any:
    # Tuples compare unequal to the lists coercion produces
    if isinstance(value, tuple):
        return [_normalize_literal(v) for v in value]
    if isinstance(value, list):
        return [_normalize_literal(v) for v in value]
    return value


def _render_param(value: Any) -> Any:
    if isinstance(value, ConstraintChain):
        return value.to_dict()
    if isinstance(value, re.Pattern):
        return value.pattern
    return value


@dataclass(frozen=True)
class ConstraintApplication:
    """One constraint invocation within a chain.

    Attributes:
        kind: The constraint kind
        params: Positional parameters, in call order
        sequence: Zero-based declaration index within the chain
        options: Keyword parameters as (name, value) pairs
    """

    kind: ConstraintKind
    params: tuple[Any, ...] = ()
    sequence: int = 0
    options: tuple[tuple[str, Any], ...] = ()

    def option(self, name: str, default: Any = None) -> Any:
        for key, value in self.options:
            if key == name:
                return value
        return default

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "params": [_render_param(p) for p in self.params],
            "sequence": self.sequence,
        }
        if self.options:
            result["options"] = dict(self.options)
        return result


@dataclass(frozen=True, repr=False)
class ConstraintChain:
    """An ordered list of constraint applications on a base type.

    Attributes:
        descriptor: The base type, captured when the chain was created
        applications: Applications in declaration order
        registry_version: Type Registry version the chain was created under
    """

    descriptor: TypeDescriptor
    applications: tuple[ConstraintApplication, ...] = ()
    registry_version: int = 0

    @property
    def kind(self) -> BaseKind:
        return self.descriptor.kind

    @property
    def type_name(self) -> str:
        return self.descriptor.name

    def _apply(
        self, kind: ConstraintKind, *params: Any, **options: Any
    ) -> ConstraintChain:
        if not self.descriptor.allows(kind):
            raise InvalidConstraintParamError(
                kind.value,
                f"not a legal constraint for type '{self.descriptor.name}'",
            )
        application = ConstraintApplication(
            kind=kind,
            params=params,
            sequence=len(self.applications),
            options=tuple(sorted(options.items())),
        )
        return replace(self, applications=self.applications + (application,))

    def _check_flag(self, kind: ConstraintKind, flag: Any) -> None:
        if not isinstance(flag, bool):
            raise InvalidConstraintParamError(kind.value, "flag must be a bool", flag)

    def _check_literals(self, kind: ConstraintKind, values: tuple[Any, ...]) -> list[Any]:
        if not values:
            raise InvalidConstraintParamError(kind.value, "at least one value is required")
        for value in values:
            if not matches_kind(self.kind, value):
                raise InvalidConstraintParamError(
                    kind.value,
                    f"{value!r} is not a {self.kind.value} value",
                    value,
                )
        return [_normalize_literal(v) for v in values]

    def _check_limit(self, kind: ConstraintKind, limit: Any) -> None:
        if limit is None:
            raise InvalidConstraintParamError(kind.value, "a limit is required")
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise InvalidConstraintParamError(
                kind.value, "limit must be a non-negative integer", limit
            )

    def _check_fields(self, kind: ConstraintKind, fields: tuple[Any, ...]) -> None:
        if not fields:
            raise InvalidConstraintParamError(kind.value, "at least one field name is required")
        for name in fields:
            if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name):
                raise InvalidConstraintParamError(
                    kind.value, f"{name!r} is not a valid field name", name
                )

    def _check_chains(self, kind: ConstraintKind, chains: tuple[Any, ...]) -> None:
        if not chains:
            raise InvalidConstraintParamError(kind.value, "at least one type is required")
        for chain in chains:
            if not isinstance(chain, ConstraintChain):
                raise InvalidConstraintParamError(
                    kind.value, f"{chain!r} is not a constraint chain", chain
                )

    # -------------------------------------------------------------------------
    # Override constraints
    # -------------------------------------------------------------------------

    def required(self, flag: bool = True) -> ConstraintChain:
        self._check_flag(ConstraintKind.REQUIRED, flag)
        return self._apply(ConstraintKind.REQUIRED, flag)

    def optional(self) -> ConstraintChain:
        """Alias for ``required(False)``."""
        return self._apply(ConstraintKind.OPTIONAL)

    def null_ok(self, flag: bool = True) -> ConstraintChain:
        self._check_flag(ConstraintKind.NULL_OK, flag)
        return self._apply(ConstraintKind.NULL_OK, flag)

    def empty_ok(self, flag: bool = True) -> ConstraintChain:
        self._check_flag(ConstraintKind.EMPTY_OK, flag)
        return self._apply(ConstraintKind.EMPTY_OK, flag)

    def default(self, value: Any) -> ConstraintChain:
        """Value to output when the field is absent from the input."""
        if value is None or not matches_kind(self.kind, value):
            raise InvalidConstraintParamError(
                ConstraintKind.DEFAULT.value,
                f"{value!r} is not a {self.kind.value} value",
                value,
            )
        return self._apply(ConstraintKind.DEFAULT, _normalize_literal(value))

    def rename(
        self,
        target: str,
        *,
        delete_orig: bool = False,
        allow_mult: bool = False,
        allow_overwrite: bool = False,
    ) -> ConstraintChain:
        """Rename the field in the output record.

        Args:
            target: Output key
            delete_orig: Drop the original key from the output
            allow_mult: Allow other fields to rename onto the same target
            allow_overwrite: Allow replacing an original field of that name
        """
        if not isinstance(target, str) or not target:
            raise InvalidConstraintParamError(
                ConstraintKind.RENAME.value, "target must be a non-empty string", target
            )
        for flag in (delete_orig, allow_mult, allow_overwrite):
            self._check_flag(ConstraintKind.RENAME, flag)
        return self._apply(
            ConstraintKind.RENAME,
            target,
            delete_orig=delete_orig,
            allow_mult=allow_mult,
            allow_overwrite=allow_overwrite,
        )

    # -------------------------------------------------------------------------
    # Overrule constraints
    # -------------------------------------------------------------------------

    def min(self, limit: int) -> ConstraintChain:
        self._check_limit(ConstraintKind.MIN, limit)
        return self._apply(ConstraintKind.MIN, limit)

    def max(self, limit: int) -> ConstraintChain:
        self._check_limit(ConstraintKind.MAX, limit)
        return self._apply(ConstraintKind.MAX, limit)

    def regex(self, pattern: str | re.Pattern) -> ConstraintChain:
        if isinstance(pattern, re.Pattern):
            compiled = pattern
        elif isinstance(pattern, str):
            try:
                compiled = re.compile(pattern)
            except re.error as e:
                raise InvalidConstraintParamError(
                    ConstraintKind.REGEX.value, f"invalid pattern: {e}", pattern
                ) from e
        else:
            raise InvalidConstraintParamError(
                ConstraintKind.REGEX.value, "a pattern string is required", pattern
            )
        return self._apply(ConstraintKind.REGEX, compiled)

    def alphanum(self) -> ConstraintChain:
        return self._apply(ConstraintKind.ALPHANUM)

    def email(self) -> ConstraintChain:
        return self._apply(ConstraintKind.EMAIL)

    def date(self) -> ConstraintChain:
        return self._apply(ConstraintKind.DATE)

    def integer(self) -> ConstraintChain:
        return self._apply(ConstraintKind.INTEGER)

    def float(self) -> ConstraintChain:
        return self._apply(ConstraintKind.FLOAT)

    def encoding(self, name: str) -> ConstraintChain:
        try:
            codec = codecs.lookup(name)
        except (LookupError, TypeError) as e:
            raise InvalidConstraintParamError(
                ConstraintKind.ENCODING.value, f"unknown encoding {name!r}", name
            ) from e
        try:
            "".encode(codec.name)
        except LookupError as e:
            raise InvalidConstraintParamError(
                ConstraintKind.ENCODING.value, f"{name!r} is not a text encoding", name
            ) from e
        return self._apply(ConstraintKind.ENCODING, codec.name)

    def includes(self, *types: ConstraintChain) -> ConstraintChain:
        """Every element must match at least one of the given types."""
        self._check_chains(ConstraintKind.INCLUDES, types)
        return self._apply(ConstraintKind.INCLUDES, *types)

    def excludes(self, *types: ConstraintChain) -> ConstraintChain:
        """No element may match any of the given types."""
        self._check_chains(ConstraintKind.EXCLUDES, types)
        return self._apply(ConstraintKind.EXCLUDES, *types)

    # -------------------------------------------------------------------------
    # Relational constraints
    # -------------------------------------------------------------------------

    def with_(self, *fields: str) -> ConstraintChain:
        self._check_fields(ConstraintKind.WITH, fields)
        return self._apply(ConstraintKind.WITH, *fields)

    def without(self, *fields: str) -> ConstraintChain:
        self._check_fields(ConstraintKind.WITHOUT, fields)
        return self._apply(ConstraintKind.WITHOUT, *fields)

    # -------------------------------------------------------------------------
    # Enumeration constraints
    # -------------------------------------------------------------------------

    def valid(self, *values: Any) -> ConstraintChain:
        """Only the given values are accepted."""
        return self._apply(ConstraintKind.VALID, *self._check_literals(ConstraintKind.VALID, values))

    def invalid(self, *values: Any) -> ConstraintChain:
        return self._apply(ConstraintKind.INVALID, *self._check_literals(ConstraintKind.INVALID, values))

    def allow(self, *values: Any) -> ConstraintChain:
        """Accept the given values in addition to whatever the rule accepts."""
        return self._apply(ConstraintKind.ALLOW, *self._check_literals(ConstraintKind.ALLOW, values))

    def deny(self, *values: Any) -> ConstraintChain:
        return self._apply(ConstraintKind.DENY, *self._check_literals(ConstraintKind.DENY, values))

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.descriptor.name,
            "constraints": [a.to_dict() for a in self.applications],
        }

    def describe(self) -> dict[str, Any]:
        """Plain-data view of the chain, in declaration order."""
        return self.to_dict()

    def __repr__(self) -> str:
        parts = [f"{self.descriptor.name}()"]
        for application in self.applications:
            args = [repr(_render_param(p)) for p in application.params]
            args.extend(f"{k}={v!r}" for k, v in application.options)
            parts.append(f"{application.kind.value}({', '.join(args)})")
        return ".".join(parts)
