"""Shared fixtures for SchemaForge tests."""

import logging

import pytest

from schemaforge.schema.registry import TypeRegistry

_ENV_VARS = (
    "SCHEMAFORGE_LOG_LEVEL",
    "SCHEMAFORGE_FREEZE_ON_COMPILE",
    "SCHEMAFORGE_ABORT_EARLY",
    "SCHEMAFORGE_ALLOW_UNKNOWN",
)


@pytest.fixture(autouse=True)
def reset_registry(monkeypatch):
    """Give every test the built-in types, an unfrozen registry and a clean env."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    TypeRegistry.reset()
    yield
    TypeRegistry.reset()
    logger = logging.getLogger("schemaforge")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
