"""
Validation gateway between the state tree and pydantic.

Holds the field -> rule table (what Store exposes as ``schema``) and turns a
candidate field value into a ValidationResult. A rule is anything pydantic can
build a TypeAdapter for: a TypedDict, a BaseModel subclass, ``List[int]``,
``Annotated[int, Field(ge=0)]``, or a ready-made TypeAdapter.

Two modes, fixed at construction:
- strict: the candidate must already have the rule's representation
- lenient: pydantic may coerce (``"5"`` for an ``int`` field is accepted)
"""
from dataclasses import dataclass
import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from pydantic import PydanticUserError, TypeAdapter, ValidationError

from schemastate.errors import InvalidRule, MissingRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one field value.

    ``value`` is the normalized value dumped back to plain Python containers
    (None when rejected). ``error`` is the pydantic ValidationError on rejection.
    """
    valid: bool
    value: Any = None
    error: Optional[ValidationError] = None


class ValidationGateway:
    """Rule table plus cached pydantic adapters, one per field."""

    def __init__(self, strict: bool = False):
        self.strict = strict
        self._rules: Dict[str, Any] = {}
        self._adapters: Dict[str, TypeAdapter] = {}

    @property
    def rules(self) -> Mapping[str, Any]:
        """Read-only live view of the rule table."""
        return MappingProxyType(self._rules)

    def set_rule(self, field: str, rule: Any) -> None:
        """Bind ``rule`` to ``field``, replacing any previous rule.

        Raises:
            InvalidRule: pydantic cannot build a validator for ``rule``.
        """
        adapter = self._build_adapter(field, rule)
        self._rules[field] = rule
        self._adapters[field] = adapter
        logger.debug(f"Rule set: field={field}, rule={rule!r}")

    def remove_rule(self, field: str) -> None:
        self._rules.pop(field, None)
        self._adapters.pop(field, None)

    def has_rule(self, field: str) -> bool:
        return field in self._rules

    def get_rule(self, field: str) -> Any:
        return self._rules.get(field)

    def validate(self, field: str, candidate: Any) -> ValidationResult:
        """Check the whole value of ``field`` against its rule.

        Raises:
            MissingRule: no rule is bound to ``field``. This is never folded
                into an ordinary rejection.
        """
        adapter = self._adapters.get(field)
        if adapter is None:
            raise MissingRule(field)

        try:
            validated = adapter.validate_python(candidate, strict=self.strict)
        except ValidationError as error:
            logger.debug(f"Validation failed: field={field}, errors={error.error_count()}")
            return ValidationResult(valid=False, error=error)

        return ValidationResult(valid=True, value=adapter.dump_python(validated))

    @staticmethod
    def _build_adapter(field: str, rule: Any) -> TypeAdapter:
        if isinstance(rule, TypeAdapter):
            return rule
        try:
            return TypeAdapter(rule)
        except (PydanticUserError, TypeError) as e:
            raise InvalidRule(field, rule, e) from e
