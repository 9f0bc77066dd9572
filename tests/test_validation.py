"""Tests for the pydantic-backed ValidationGateway."""
from typing import List

import pytest
from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from typing_extensions import Annotated

from schemastate import InvalidRule, MissingRule, ValidationGateway, ValidationResult

from conftest import SystemRule


class Point(BaseModel):
    x: int
    y: int


class TestValidate:
    """validate() outcomes."""

    def test_accepts_valid_value(self):
        gateway = ValidationGateway()
        gateway.set_rule("system", SystemRule)

        result = gateway.validate("system", {"id": 1, "name": "test"})

        assert result == ValidationResult(valid=True, value={"id": 1, "name": "test"})

    def test_rejects_with_pydantic_error(self):
        gateway = ValidationGateway()
        gateway.set_rule("system", SystemRule)

        result = gateway.validate("system", {"id": "invalid", "name": ""})

        assert result.valid is False
        assert result.value is None
        assert isinstance(result.error, ValidationError)
        assert result.error.errors()[0]["loc"] == ("id",)

    def test_lenient_normalizes(self):
        """Lenient mode coerces and returns the normalized value."""
        gateway = ValidationGateway(strict=False)
        gateway.set_rule("system", SystemRule)

        result = gateway.validate("system", {"id": "5", "name": "n"})

        assert result.valid is True
        assert result.value == {"id": 5, "name": "n"}

    def test_strict_refuses_coercion(self):
        gateway = ValidationGateway(strict=True)
        gateway.set_rule("system", SystemRule)

        assert gateway.validate("system", {"id": "5", "name": "n"}).valid is False
        assert gateway.validate("system", {"id": 5, "name": "n"}).valid is True

    def test_model_rule_dumps_plain_dict(self):
        gateway = ValidationGateway()
        gateway.set_rule("point", Point)

        result = gateway.validate("point", {"x": 1, "y": "2"})

        assert result.valid is True
        assert result.value == {"x": 1, "y": 2}

    def test_constrained_rule(self):
        gateway = ValidationGateway()
        gateway.set_rule("ids", Annotated[List[int], Field(max_length=2)])

        assert gateway.validate("ids", [1, 2]).valid is True
        assert gateway.validate("ids", [1, 2, 3]).valid is False

    def test_missing_rule_is_distinct(self):
        """No rule is an error of its own, not a failed validation."""
        gateway = ValidationGateway()
        with pytest.raises(MissingRule) as info:
            gateway.validate("nope", 1)
        assert info.value.field == "nope"


class TestRuleTable:
    """set_rule / remove_rule / rules view."""

    def test_rules_view_is_read_only(self):
        gateway = ValidationGateway()
        gateway.set_rule("a", int)
        rules = gateway.rules

        assert dict(rules) == {"a": int}
        with pytest.raises(TypeError):
            rules["b"] = str

    def test_rules_view_is_live(self):
        gateway = ValidationGateway()
        rules = gateway.rules
        gateway.set_rule("a", int)
        assert "a" in rules
        gateway.remove_rule("a")
        assert "a" not in rules
        assert gateway.get_rule("a") is None

    def test_remove_unknown_rule_is_noop(self):
        ValidationGateway().remove_rule("missing")

    def test_accepts_prebuilt_adapter(self):
        gateway = ValidationGateway()
        gateway.set_rule("n", TypeAdapter(int))
        assert gateway.validate("n", 3).valid is True

    def test_invalid_rule(self):
        class Opaque:
            pass

        gateway = ValidationGateway()
        with pytest.raises(InvalidRule) as info:
            gateway.set_rule("thing", Opaque)

        assert info.value.field == "thing"
        assert not gateway.has_rule("thing")
