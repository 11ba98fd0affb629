"""Coercion of raw input values to base kinds.

The input source hands over strings or sequences of strings; JSON bodies
may already carry typed values, which are accepted when they fit the kind.
"""

import json
import math
from collections.abc import Mapping, Sequence
from typing import Any

from schemaforge.core.types import BaseKind


class CoercionError(ValueError):
    """A raw value cannot be coerced to the rule's base kind."""

    def __init__(self, kind: BaseKind, value: Any):
        self.kind = kind
        self.value = value
        super().__init__(f"{value!r} is not a valid {kind.value}")


def _is_multi(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def coerce_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    raise CoercionError(BaseKind.STRING, value)


def coerce_number(value: Any) -> int | float:
    """Parse an integer literal, else a finite decimal."""
    if isinstance(value, bool):
        raise CoercionError(BaseKind.NUMBER, value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise CoercionError(BaseKind.NUMBER, value)
        return value
    if not isinstance(value, str):
        raise CoercionError(BaseKind.NUMBER, value)

    text = value.strip()
    if "_" in text:
        # int() and float() accept digit separators; input literals may not
        raise CoercionError(BaseKind.NUMBER, value)
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        raise CoercionError(BaseKind.NUMBER, value) from None
    if not math.isfinite(number):
        raise CoercionError(BaseKind.NUMBER, value)
    return number


def coerce_boolean(value: Any) -> bool:
    """Case-insensitive comparison with the literal 'true'; anything else is False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    raise CoercionError(BaseKind.BOOLEAN, value)


def coerce_array(value: Any) -> list[Any]:
    if _is_multi(value):
        return list(value)
    return [value]


def coerce_object(value: Any) -> dict[str, Any]:
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            raise CoercionError(BaseKind.OBJECT, value) from None
        if isinstance(parsed, dict):
            return parsed
    raise CoercionError(BaseKind.OBJECT, value)


_COERCERS = {
    BaseKind.STRING: coerce_string,
    BaseKind.NUMBER: coerce_number,
    BaseKind.BOOLEAN: coerce_boolean,
    BaseKind.ARRAY: coerce_array,
    BaseKind.OBJECT: coerce_object,
}


def coerce(kind: BaseKind, value: Any) -> Any:
    """Coerce a raw (non-None) value to ``kind``.

    Multi-valued raw input is only accepted by arrays.

    Raises:
        CoercionError: If the value does not fit the kind
    """
    if kind is not BaseKind.ARRAY and _is_multi(value):
        raise CoercionError(kind, value)
    return _COERCERS[kind](value)
