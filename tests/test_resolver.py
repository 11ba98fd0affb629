"""Tests for the chain resolver."""

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from schemaforge.core.types import ConstraintKind
from schemaforge.schema.errors import ContradictoryConstraintError
from schemaforge.schema.registry import Types
from schemaforge.schema.resolver import (
    RESOLUTION_HANDLERS,
    NumberFormat,
    RangeConstraint,
    resolve_chain,
    same_literal,
)

_LIMITS = st.integers(min_value=0, max_value=10_000)
_PROPERTY_SETTINGS = settings(
    max_examples=50,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)


# =============================================================================
# Override
# =============================================================================


class TestOverride:
    def test_required_last_wins(self):
        assert resolve_chain(Types.string().required(False).required()).required is True
        assert resolve_chain(Types.string().required().optional()).required is False
        assert resolve_chain(Types.string().optional().required()).required is True

    def test_null_ok_last_wins(self):
        assert resolve_chain(Types.string().null_ok().null_ok(False)).null_ok is False

    def test_default(self):
        rule = resolve_chain(Types.string().default("a").default("b"))
        assert rule.has_default
        assert rule.default == "b"

    def test_rename_last_wins(self):
        rule = resolve_chain(Types.string().rename("a").rename("b", delete_orig=True))
        assert rule.rename.target == "b"
        assert rule.rename.delete_orig is True

    def test_no_rename(self):
        assert resolve_chain(Types.string()).rename is None


# =============================================================================
# Overrule
# =============================================================================


class TestOverrule:
    @_PROPERTY_SETTINGS
    @given(a=_LIMITS, b=_LIMITS)
    def test_max_keeps_smaller(self, a, b):
        rule = resolve_chain(Types.number().max(a).max(b))
        assert rule.range.maximum == min(a, b)

    @_PROPERTY_SETTINGS
    @given(a=_LIMITS, b=_LIMITS)
    def test_min_keeps_larger(self, a, b):
        rule = resolve_chain(Types.number().min(a).min(b))
        assert rule.range.minimum == max(a, b)

    def test_unbounded_by_default(self):
        assert resolve_chain(Types.string()).range == RangeConstraint()

    def test_integer_narrows_float_in_any_order(self):
        assert resolve_chain(Types.number().float().integer()).number_format is NumberFormat.INTEGER
        assert resolve_chain(Types.number().integer().float()).number_format is NumberFormat.INTEGER
        assert resolve_chain(Types.number().float()).number_format is NumberFormat.FLOAT
        assert resolve_chain(Types.number()).number_format is None

    def test_patterns_keep_declaration_order(self):
        rule = resolve_chain(Types.string().email().regex(r"x").alphanum())
        assert [p.kind for p in rule.patterns] == [
            ConstraintKind.EMAIL,
            ConstraintKind.REGEX,
            ConstraintKind.ALPHANUM,
        ]

    def test_repeated_pattern_kept_once(self):
        rule = resolve_chain(Types.string().alphanum().min(2).alphanum())
        assert len(rule.patterns) == 1

    def test_encodings_accumulate(self):
        rule = resolve_chain(Types.string().encoding("ascii").encoding("latin-1").encoding("ascii"))
        assert rule.encodings == ("ascii", "iso8859-1")

    def test_pattern_implied_length_intersects_range(self):
        rule = resolve_chain(Types.string().regex(r"^[a-z]{3,30}$").max(10))
        assert rule.range.minimum == 3
        assert rule.range.maximum == 10
        assert rule.range.implied_by_pattern == (r"^[a-z]{3,30}$",)
        assert len(rule.patterns) == 1

    def test_underivable_pattern_leaves_range_alone(self):
        rule = resolve_chain(Types.string().regex(r"^(ab)+$").max(10))
        assert rule.range == RangeConstraint(maximum=10)

    def test_nested_rules_for_array_elements(self):
        rule = resolve_chain(
            Types.array().includes(Types.number(), Types.string()).excludes(Types.boolean()),
            "tags",
        )
        assert [r.name for r in rule.includes[0]] == ["tags[includes:0]", "tags[includes:1]"]
        assert rule.excludes[0].name == "tags[excludes:0]"


# =============================================================================
# Relational / Enumeration
# =============================================================================


class TestRelational:
    def test_targets_accumulate_without_duplicates(self):
        rule = resolve_chain(Types.string().with_("a", "b").with_("b", "c").without("d"))
        assert rule.with_fields == ("a", "b", "c")
        assert rule.without_fields == ("d",)


class TestEnumeration:
    def test_deny_wins_over_allow(self):
        for chain in (Types.string().allow("x").deny("x"), Types.string().deny("x").allow("x")):
            rule = resolve_chain(chain)
            assert rule.allow_set == ()
            assert rule.is_denied("x")

    def test_valid_sets_valid_only(self):
        rule = resolve_chain(Types.string().valid("a", "b").allow("c"))
        assert rule.valid_only
        assert rule.allow_set == ("a", "b", "c")

    def test_invalid_is_deny(self):
        rule = resolve_chain(Types.number().invalid(0))
        assert rule.deny_set == (0,)
        assert not rule.valid_only

    def test_booleans_are_not_numbers(self):
        assert not same_literal(True, 1)
        assert not same_literal(0, False)
        assert same_literal(1, 1.0)


# =============================================================================
# Satisfiability
# =============================================================================


class TestContradictions:
    def test_empty_range(self):
        with pytest.raises(ContradictoryConstraintError) as exc_info:
            resolve_chain(Types.string().min(10).max(3), "code")
        assert exc_info.value.field == "code"
        assert "effective min 10 is greater than effective max 3" in str(exc_info.value)

    def test_empty_range_from_pattern(self):
        with pytest.raises(ContradictoryConstraintError) as exc_info:
            resolve_chain(Types.string().regex(r"^[a-z]{3,5}\Z").min(10))
        assert "^[a-z]{3,5}\\Z" in str(exc_info.value)

    def test_every_valid_value_denied(self):
        with pytest.raises(ContradictoryConstraintError):
            resolve_chain(Types.string().valid("a").invalid("a"))

    def test_denied_default(self):
        with pytest.raises(ContradictoryConstraintError):
            resolve_chain(Types.string().default("a").deny("a"))

    def test_default_outside_valid_values(self):
        with pytest.raises(ContradictoryConstraintError):
            resolve_chain(Types.string().valid("a", "b").default("c"))

    @pytest.mark.parametrize("chain, message", [
        (Types.string().min(5).default("ab"), "below the effective min 5"),
        (Types.number().max(10).default(11), "above the effective max 10"),
        (Types.number().integer().default(2.5), "not an integer"),
        (Types.string().alphanum().default("a b"), "does not satisfy alphanum"),
        (Types.string().default(""), "is empty"),
    ])
    def test_default_breaks_own_rule(self, chain, message):
        with pytest.raises(ContradictoryConstraintError) as exc_info:
            resolve_chain(chain, "field")
        assert message in str(exc_info.value)

    def test_default_that_fits(self):
        rule = resolve_chain(Types.string().min(2).alphanum().default("guest"))
        assert rule.default == "guest"

    def test_allowed_default_skips_rule(self):
        rule = resolve_chain(Types.string().min(5).allow("ab").default("ab"))
        assert rule.default == "ab"

    def test_contradictory_nested_rule(self):
        with pytest.raises(ContradictoryConstraintError):
            resolve_chain(Types.array().includes(Types.number().min(5).max(1)))


class TestResolution:
    def test_every_kind_has_a_handler(self):
        assert set(RESOLUTION_HANDLERS) == set(ConstraintKind)

    def test_deterministic(self):
        chain = (
            Types.string().required().alphanum().min(3).max(30)
            .with_("email").valid("admin", "bob1").rename("user")
        )
        assert resolve_chain(chain, "username").to_dict() == resolve_chain(chain, "username").to_dict()

    def test_to_dict(self):
        data = resolve_chain(Types.number().integer().min(1).default(3), "n").to_dict()
        assert data["numberFormat"] == "integer"
        assert data["range"] == {"min": 1, "max": None, "impliedByPattern": []}
        assert data["default"] == 3
