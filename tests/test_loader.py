"""Tests for loading schemas from YAML documents."""

from pathlib import Path

import pytest

from schemaforge.schema.compiler import Schema
from schemaforge.schema.errors import (
    InvalidConstraintParamError,
    InvalidSchemaError,
    UnknownTypeError,
)
from schemaforge.schema.loader import SchemaLoader, build_schema, load_schema_file
from schemaforge.schema.registry import TypeRegistry, Types
from schemaforge.validation.engine import validate
from schemaforge.validation.types import ViolationCode

SIGNUP_YAML = """\
schema: signup
aliases:
  handle: {type: string, constraints: [alphanum, {min: 3}]}
  short_handle: {type: handle, constraints: [{max: 12}]}
fields:
  username:
    type: handle
    constraints: [required, {max: 30}, {with: [email]}]
  email: {type: string, constraints: [email]}
  nickname: {type: short_handle}
"""


def _write(path: Path, content: str) -> Path:
    path.write_text(content)
    return path


class TestLoadSchemaFile:
    def test_loads_schema(self, tmp_path):
        schema = load_schema_file(_write(tmp_path / "signup.yaml", SIGNUP_YAML))

        assert isinstance(schema, Schema)
        assert schema.name == "signup"
        assert list(schema) == ["username", "email", "nickname"]

    def test_loaded_schema_validates(self, tmp_path):
        schema = load_schema_file(_write(tmp_path / "signup.yaml", SIGNUP_YAML))

        assert validate(schema, {"username": "bob1", "email": "b@x.com"}).accepted
        outcome = validate(schema, {"username": "bob1"})
        assert outcome.codes() == [ViolationCode.INCOMPLETE_GROUP]

    def test_aliases_build_on_each_other(self, tmp_path):
        schema = load_schema_file(_write(tmp_path / "signup.yaml", SIGNUP_YAML))

        rule = schema.compiled.rules["nickname"]
        assert rule.range.minimum == 3
        assert rule.range.maximum == 12
        assert len(rule.patterns) == 1

    def test_name_defaults_to_file_stem(self, tmp_path):
        path = _write(tmp_path / "contact.yaml", "fields:\n  name: {type: string}\n")
        assert load_schema_file(path).name == "contact"

    def test_invalid_document_carries_issues(self, tmp_path):
        path = _write(tmp_path / "bad.yaml", "fields:\n  name: {type: string, constraints: [nope]}\n")
        with pytest.raises(InvalidSchemaError) as exc_info:
            load_schema_file(path)
        assert exc_info.value.issues
        assert exc_info.value.issues[0].path == "fields/name/constraints[0]"

    def test_unknown_type(self, tmp_path):
        path = _write(tmp_path / "bad.yaml", "fields:\n  name: {type: handle}\n")
        with pytest.raises(UnknownTypeError):
            load_schema_file(path)

    def test_registered_types_resolve(self, tmp_path):
        TypeRegistry.register("handle", Types.string().alphanum())
        path = _write(tmp_path / "ok.yaml", "fields:\n  name: {type: handle}\n")
        assert load_schema_file(path)["name"].applications[0].params == ()


class TestBuildSchema:
    def test_constraint_arguments(self):
        schema = build_schema({
            "fields": {
                "role": {
                    "type": "string",
                    "constraints": [
                        {"valid": ["admin", "user"]},
                        {"default": "user"},
                        {"rename": {"to": "r", "deleteOrig": True}},
                    ],
                },
                "tags": {
                    "type": "array",
                    "constraints": [
                        {"includes": [{"type": "number", "constraints": ["integer"]}]},
                        {"default": ["1"]},
                    ],
                },
                "code": {"type": "string", "constraints": [{"regex": "^[A-Z]+$"}, {"required": False}]},
                "token": {"type": "string", "constraints": [{"without": "code"}, {"allow": None}]},
            }
        }, default_name="account")

        rules = schema.compiled.rules
        assert rules["role"].allow_set == ("admin", "user")
        assert rules["role"].default == "user"
        assert rules["role"].rename.delete_orig is True
        assert rules["tags"].includes[0][0].type_name == "number"
        assert rules["tags"].default == ["1"]
        assert rules["code"].required is False
        assert rules["token"].without_fields == ("code",)
        assert rules["token"].allow_set == (None,)
        assert schema.name == "account"

    def test_rename_shorthand(self):
        schema = build_schema({"fields": {"a": {"type": "string", "constraints": [{"rename": "b"}]}}})
        assert schema.compiled.rules["a"].rename.target == "b"

    def test_bad_parameter_raises(self):
        doc = {"fields": {"a": {"type": "boolean", "constraints": [{"min": 1}]}}}
        with pytest.raises(InvalidConstraintParamError):
            build_schema(doc)

    def test_shape_checked_unless_told_otherwise(self):
        with pytest.raises(InvalidSchemaError):
            build_schema({"fields": {"a": {}}})


class TestSchemaLoader:
    def test_load_all(self, tmp_path):
        _write(tmp_path / "signup.yaml", SIGNUP_YAML)
        _write(tmp_path / "contact.yaml", "fields:\n  name: {type: string}\n")

        loader = SchemaLoader(tmp_path)
        loader.load_all()

        assert sorted(loader.schemas) == ["contact", "signup"]
        assert loader.get("signup") is loader.schemas["signup"]
        assert loader.get("missing") is None

    def test_duplicate_schema_names(self, tmp_path):
        _write(tmp_path / "a.yaml", "schema: same\nfields:\n  x: {type: string}\n")
        _write(tmp_path / "b.yaml", "schema: same\nfields:\n  y: {type: string}\n")

        with pytest.raises(InvalidSchemaError):
            SchemaLoader(tmp_path).load_all()
