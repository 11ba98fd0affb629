"""Tests for base kinds, constraint kinds and built-in descriptors."""

from schemaforge.core.types import (
    BUILTIN_TYPES,
    COMMON_CONSTRAINTS,
    CONSTRAINT_CATEGORIES,
    BaseKind,
    ConstraintCategory,
    ConstraintKind,
)


class TestConstraintKinds:
    def test_every_kind_has_a_category(self):
        assert set(CONSTRAINT_CATEGORIES) == set(ConstraintKind)

    def test_categories(self):
        assert ConstraintKind.REQUIRED.category is ConstraintCategory.OVERRIDE
        assert ConstraintKind.RENAME.category is ConstraintCategory.OVERRIDE
        assert ConstraintKind.MAX.category is ConstraintCategory.OVERRULE
        assert ConstraintKind.INTEGER.category is ConstraintCategory.OVERRULE
        assert ConstraintKind.WITHOUT.category is ConstraintCategory.RELATIONAL
        assert ConstraintKind.DENY.category is ConstraintCategory.ENUMERATION

    def test_values_are_document_names(self):
        assert ConstraintKind("nullOk") is ConstraintKind.NULL_OK
        assert ConstraintKind("with") is ConstraintKind.WITH


class TestBuiltinTypes:
    def test_one_builtin_per_kind(self):
        assert {d.kind for d in BUILTIN_TYPES.values()} == set(BaseKind)
        for name, descriptor in BUILTIN_TYPES.items():
            assert descriptor.name == name

    def test_common_constraints_everywhere(self):
        for descriptor in BUILTIN_TYPES.values():
            assert COMMON_CONSTRAINTS <= descriptor.constraints

    def test_kind_specific_constraints(self):
        assert BUILTIN_TYPES["string"].allows(ConstraintKind.REGEX)
        assert BUILTIN_TYPES["number"].allows(ConstraintKind.INTEGER)
        assert BUILTIN_TYPES["array"].allows(ConstraintKind.INCLUDES)
        assert BUILTIN_TYPES["object"].allows(ConstraintKind.MIN)
        assert not BUILTIN_TYPES["boolean"].allows(ConstraintKind.MIN)
        assert not BUILTIN_TYPES["number"].allows(ConstraintKind.EMPTY_OK)

    def test_narrowed_descriptor(self):
        code = BUILTIN_TYPES["string"].narrowed(
            "code", drop={ConstraintKind.EMAIL}, description="Short code"
        )
        assert code.kind is BaseKind.STRING
        assert not code.allows(ConstraintKind.EMAIL)
        assert code.allows(ConstraintKind.REGEX)
        assert code.to_dict()["name"] == "code"
        assert "email" not in code.to_dict()["constraints"]
