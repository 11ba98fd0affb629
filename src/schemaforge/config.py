"""Engine configuration from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from schemaforge.validation.engine import EvaluationOptions

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got {raw!r}")


@dataclass
class EngineConfig:
    """Engine-wide settings.

    Attributes:
        log_level: Level name for the ``schemaforge`` loggers
        freeze_on_compile: Freeze the Type Registry when a schema compiles
        abort_early: Stop a validation run at the first violation
        allow_unknown: Accept input keys that are not schema fields
    """

    log_level: str = "WARNING"
    freeze_on_compile: bool = True
    abort_early: bool = False
    allow_unknown: bool = True

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Create config from environment variables.

        Variables:
        1. SCHEMAFORGE_LOG_LEVEL (default WARNING)
        2. SCHEMAFORGE_FREEZE_ON_COMPILE (default true)
        3. SCHEMAFORGE_ABORT_EARLY (default false)
        4. SCHEMAFORGE_ALLOW_UNKNOWN (default true)

        Raises:
            ValueError: For boolean variables that cannot be parsed
        """
        return cls(
            log_level=os.environ.get("SCHEMAFORGE_LOG_LEVEL", "WARNING").upper(),
            freeze_on_compile=_env_flag("SCHEMAFORGE_FREEZE_ON_COMPILE", True),
            abort_early=_env_flag("SCHEMAFORGE_ABORT_EARLY", False),
            allow_unknown=_env_flag("SCHEMAFORGE_ALLOW_UNKNOWN", True),
        )

    def evaluation_options(self) -> EvaluationOptions:
        from schemaforge.validation.engine import EvaluationOptions

        return EvaluationOptions(
            abort_early=self.abort_early,
            allow_unknown=self.allow_unknown,
        )
