"""Tests for schema compilation."""

import threading

import pytest

from schemaforge.schema.compiler import CompiledSchema, Schema, compile_schema
from schemaforge.schema.errors import ContradictoryConstraintError, InvalidSchemaError
from schemaforge.schema.registry import TypeRegistry, Types


def signup_fields():
    return {
        "username": Types.string().required().alphanum().min(3).max(30).with_("email"),
        "email": Types.string().email(),
    }


class TestCompileSchema:
    def test_rules_in_schema_order(self):
        compiled = compile_schema(signup_fields(), name="signup")

        assert isinstance(compiled, CompiledSchema)
        assert compiled.fields == ("username", "email")
        assert compiled.rules["username"].required
        assert compiled.name == "signup"

    def test_rules_are_read_only(self):
        compiled = compile_schema(signup_fields())
        with pytest.raises(TypeError):
            compiled.rules["extra"] = compiled.rules["email"]

    def test_deterministic(self):
        first = compile_schema(signup_fields(), freeze_registry=False)
        second = compile_schema(signup_fields(), freeze_registry=False)
        assert first.to_dict() == second.to_dict()

    def test_invalid_field_name(self):
        with pytest.raises(InvalidSchemaError):
            compile_schema({"1st": Types.string()})

    def test_value_must_be_chain(self):
        with pytest.raises(InvalidSchemaError):
            compile_schema({"name": "string"})

    def test_contradiction_names_field(self):
        with pytest.raises(ContradictoryConstraintError) as exc_info:
            compile_schema({"code": Types.string().min(5).max(2)})
        assert exc_info.value.field == "code"


class TestRegistryFreeze:
    def test_compile_freezes_registry_by_default(self):
        compile_schema(signup_fields())
        assert TypeRegistry.is_frozen()

    def test_explicit_opt_out(self):
        compile_schema(signup_fields(), freeze_registry=False)
        assert not TypeRegistry.is_frozen()

    def test_env_opt_out(self, monkeypatch):
        monkeypatch.setenv("SCHEMAFORGE_FREEZE_ON_COMPILE", "false")
        compile_schema(signup_fields())
        assert not TypeRegistry.is_frozen()

    def test_records_registry_version(self):
        TypeRegistry.register("handle", Types.string().alphanum())
        compiled = compile_schema({"nick": Types.get("handle")})
        assert compiled.registry_version == 1


class TestSchema:
    def test_mapping_interface(self):
        schema = Schema(signup_fields(), name="signup")
        assert list(schema) == ["username", "email"]
        assert len(schema) == 2
        assert schema["email"].type_name == "string"
        assert "signup" in repr(schema)

    def test_compiles_once(self):
        schema = Schema(signup_fields())
        assert schema.compile() is schema.compiled

    def test_concurrent_compile_returns_one_result(self):
        schema = Schema(signup_fields())
        results = []

        def worker():
            results.append(schema.compile())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(r is results[0] for r in results)

    def test_source_mapping_is_copied(self):
        fields = signup_fields()
        schema = Schema(fields)
        fields["extra"] = Types.string()
        assert "extra" not in schema
