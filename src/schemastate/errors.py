"""
Error kinds raised or reported by the store.

Only HistoryFieldSetMismatch and InvalidRule ever escape a public call.
The rest are recovered locally (the offending write is reverted or ignored)
and handed to the store's error callbacks.
"""
from typing import Any, Iterable, Optional, Tuple


class StoreError(Exception):
    """Base class for every error the store raises or reports."""


class ValidationRejected(StoreError):
    """A write left its field in a state the field's rule does not accept."""

    def __init__(self, field: str, path: Tuple[Any, ...], detail: Any):
        self.field = field
        self.path = path
        self.detail = detail
        super().__init__(f"Validation rejected write to '{field}': {detail}")


class UnknownField(StoreError):
    """A write or unregister targeted a field that was never registered."""

    def __init__(self, field: Any):
        self.field = field
        super().__init__(f"No field registered with name {field!r}")


class MissingRule(StoreError):
    """A field has a value but no validation rule to check it against."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"No schema registered for field '{field}'")


class InvalidRule(StoreError):
    """The rule engine cannot build a validator for the given rule."""

    def __init__(self, field: str, rule: Any, cause: Optional[BaseException] = None):
        self.field = field
        self.rule = rule
        self.cause = cause
        super().__init__(f"Cannot build validator for field '{field}' from rule {rule!r}: {cause}")


class HistoryFieldSetMismatch(StoreError):
    """Restoring a snapshot would change the set of registered fields.

    The history assumes no register/unregister happened between capture and
    replay, so this is an internal consistency fault and the replay is aborted.
    """

    def __init__(self, expected: Iterable[str], actual: Iterable[str]):
        self.expected = frozenset(expected)
        self.actual = frozenset(actual)
        super().__init__(
            f"Snapshot fields {sorted(self.actual)} do not match registered fields {sorted(self.expected)}"
        )
