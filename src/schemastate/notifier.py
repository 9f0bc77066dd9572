"""
Per-field change subscriptions.

Subscribers are called synchronously, in registration order, once per
committed write to their field. Rejected writes and undo/redo replay never
reach the notifier.
"""
from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, List, Tuple

from schemastate.treeutil import format_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """A committed write, attributed to its owning top-level field.

    Attributes:
        field: Owning top-level field name.
        path: Keys/indices from the field root to the touched location.
              Empty for a whole-field assignment.
        value: New value at ``path`` (None for a deletion).
        field_value: Proxy over the field's whole current value.
        state: Root state proxy; writes through it re-enter the store.
    """
    field: str
    path: Tuple[Any, ...]
    value: Any
    field_value: Any
    state: Any

    @property
    def dotted_path(self) -> str:
        return format_path((self.field,) + self.path)


ChangeCallback = Callable[[ChangeEvent], None]


class ChangeNotifier:
    """Subscription table: field name -> ordered callbacks."""

    def __init__(self):
        self._subscribers: Dict[str, List[ChangeCallback]] = {}

    def subscribe(self, field: str, callback: ChangeCallback) -> None:
        """Add ``callback`` for ``field``. The field need not be registered yet."""
        self._subscribers.setdefault(field, []).append(callback)

    def unsubscribe(self, field: str, callback: ChangeCallback) -> None:
        callbacks = self._subscribers.get(field)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)

    def clear(self, field: str) -> None:
        self._subscribers.pop(field, None)

    def subscribers(self, field: str) -> List[ChangeCallback]:
        return list(self._subscribers.get(field, ()))

    def publish(self, event: ChangeEvent) -> None:
        """Deliver ``event`` to every subscriber of its field (best-effort)."""
        # Copy: a callback may subscribe more callbacks while we iterate
        callbacks = list(self._subscribers.get(event.field, ()))
        if not callbacks:
            return
        logger.debug(f"Publishing change {event.dotted_path} to {len(callbacks)} subscriber(s)")
        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Error in change callback for '{event.field}': {e}")
