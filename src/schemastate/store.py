"""
Store: the public facade over the validated state tree.

Composes the ValidationGateway (rules), HistoryLedger (undo/redo),
ChangeNotifier (per-field subscriptions) and StateTree (live values), and
owns the lifecycle of fields.

Example:
    >>> store = Store(history_buffer=50)
    >>> store.register("user", UserRule, {"id": 0, "name": ""})
    >>> store.state.user.name = "Bert"          # validated, recorded, announced
    >>> store.state.user = {"id": "x", "name": ""}   # rejected, reverted
    >>> store.undo()
"""
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from schemastate.config import StoreConfig
from schemastate.errors import HistoryFieldSetMismatch, StoreError, UnknownField
from schemastate.history import HistoryLedger, Snapshot
from schemastate.notifier import ChangeCallback, ChangeNotifier
from schemastate.tree import StateProxy, StateTree, WriteMode
from schemastate.validation import ValidationGateway

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[StoreError, Dict[str, Any]], None]
LifecycleCallback = Callable[[str, StateProxy], None]


class Store:
    """Reactive, schema-validated state container with linear undo/redo.

    Lifecycle ownership:
    - register(): binds a rule and default value to a new top-level field
    - writes through ``state``: validated against the owning field's rule
    - unregister(): removes rule and value together (not undoable)

    Callbacks run synchronously inside the triggering call. A change callback
    may write to the store again; that write is a fresh mutation with its own
    validation and history entry.

    Thread safety: Not thread-safe (all operations expected on one thread).
    """

    def __init__(
        self,
        history_buffer: Optional[int] = None,
        strict: Optional[bool] = None,
        error_log: Optional[bool] = None,
        config: Optional[StoreConfig] = None,
    ):
        if config is None:
            overrides = {
                'history_buffer': history_buffer,
                'strict': strict,
                'error_log': error_log,
            }
            config = StoreConfig(**{k: v for k, v in overrides.items() if v is not None})
        elif any(v is not None for v in (history_buffer, strict, error_log)):
            raise ValueError("Pass either config or individual options, not both")
        self.config = config

        self._on_register_callbacks: List[LifecycleCallback] = []
        self._on_unregister_callbacks: List[LifecycleCallback] = []
        self._on_error_callbacks: List[ErrorCallback] = []
        if config.error_log:
            self._on_error_callbacks.append(_log_error)

        self._gateway = ValidationGateway(strict=config.strict)
        self._ledger = HistoryLedger(config.history_buffer)
        self._notifier = ChangeNotifier()
        self._tree = StateTree(self._gateway, self._ledger, self._notifier, self._fire_error_callbacks)

    # === Read access ===

    @property
    def state(self) -> StateProxy:
        """Live view of every field. Writes through it are validated."""
        return self._tree.view()

    @property
    def schema(self) -> Mapping[str, Any]:
        """Read-only field -> rule mapping."""
        return self._gateway.rules

    @property
    def history(self) -> HistoryLedger:
        return self._ledger

    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of the current state as plain Python containers."""
        return self._tree.snapshot()

    # === Field lifecycle ===

    def register(self, field: str, rule: Any, default: Any) -> None:
        """Register a field with its validation rule and default value.

        The default is assumed valid: it is written without validation, does
        not consume history capacity and does not fire change callbacks.

        Raises:
            InvalidRule: pydantic cannot build a validator for ``rule``.

        Example:
            register("user", User, {"id": 0, "name": "John Doe"})
        """
        if self._gateway.has_rule(field) or self._tree.has_field(field):
            logger.warning(f"Overwriting existing field: {field}")

        self._gateway.set_rule(field, rule)
        self._tree.write((field,), default, WriteMode.REPLAYING)
        logger.debug(f"Registered field: {field}")

        self._fire_lifecycle_callbacks(self._on_register_callbacks, field, "register")

    def unregister(self, field: str) -> bool:
        """Remove a field's rule and value. Returns False if it was never registered.

        No history entry is recorded; the field cannot be brought back by undo.
        """
        if not self._gateway.has_rule(field) and not self._tree.has_field(field):
            self._fire_error_callbacks(UnknownField(field))
            return False

        self._gateway.remove_rule(field)
        self._tree.remove_field(field)
        logger.debug(f"Unregistered field: {field}")

        self._fire_lifecycle_callbacks(self._on_unregister_callbacks, field, "unregister")
        return True

    # === Subscriptions ===

    def on_change(self, field: str, callback: ChangeCallback) -> None:
        """Call ``callback(event)`` after every committed write to ``field``.

        Example:
            on_change("user", lambda event: print(event.dotted_path, event.value))
        """
        self._notifier.subscribe(field, callback)

    def off_change(self, field: str, callback: ChangeCallback) -> None:
        self._notifier.unsubscribe(field, callback)

    def on_error(self, callback: ErrorCallback) -> None:
        """Call ``callback(error, state_snapshot)`` for every reported error."""
        if callback not in self._on_error_callbacks:
            self._on_error_callbacks.append(callback)

    def off_error(self, callback: ErrorCallback) -> None:
        if callback in self._on_error_callbacks:
            self._on_error_callbacks.remove(callback)

    def on_register(self, callback: LifecycleCallback) -> None:
        """Call ``callback(field, state)`` after a field is registered."""
        if callback not in self._on_register_callbacks:
            self._on_register_callbacks.append(callback)

    def off_register(self, callback: LifecycleCallback) -> None:
        if callback in self._on_register_callbacks:
            self._on_register_callbacks.remove(callback)

    def on_unregister(self, callback: LifecycleCallback) -> None:
        """Call ``callback(field, state)`` after a field is unregistered."""
        if callback not in self._on_unregister_callbacks:
            self._on_unregister_callbacks.append(callback)

    def off_unregister(self, callback: LifecycleCallback) -> None:
        if callback in self._on_unregister_callbacks:
            self._on_unregister_callbacks.remove(callback)

    # === History ===

    def undo(self) -> bool:
        """Restore the state before the last committed write.

        Returns:
            False if there is nothing to undo, True otherwise.

        Raises:
            HistoryFieldSetMismatch: the snapshot's fields differ from the
                registered ones. Nothing is changed.

        Example:
            store.state.user.name = "John Doe"
            store.state.user.name = "Jane Doe"
            store.undo()  # name is "John Doe" again
        """
        target = self._ledger.peek_undo()
        if target is None:
            return False
        self._check_fields(target)

        self._ledger.pop_undo()
        self._ledger.push_redo(Snapshot.create(self._tree.snapshot(), f"before undo of {target.label}"))
        self._tree.restore(target.values)
        logger.info(f"UNDO: restored '{target.label}' ({target.id[:8]})")
        return True

    def redo(self) -> bool:
        """Re-apply the last undone write. Mirror of undo()."""
        target = self._ledger.peek_redo()
        if target is None:
            return False
        self._check_fields(target)

        self._ledger.pop_redo()
        self._ledger.push_undo(Snapshot.create(self._tree.snapshot(), f"before redo of {target.label}"))
        self._tree.restore(target.values)
        logger.info(f"REDO: restored '{target.label}' ({target.id[:8]})")
        return True

    def clear_history(self) -> None:
        self._ledger.clear()

    def atomic(self, label: str):
        """Group several writes into one undo step. See StateTree.atomic."""
        return self._tree.atomic(label)

    def _check_fields(self, target: Snapshot) -> None:
        current = frozenset(self._tree.fields)
        if target.fields != current:
            raise HistoryFieldSetMismatch(current, target.fields)

    # === Callback dispatch ===

    def _fire_error_callbacks(self, error: StoreError) -> None:
        state = self._tree.snapshot()
        for callback in list(self._on_error_callbacks):
            try:
                callback(error, state)
            except Exception as e:
                logger.warning(f"Error in error callback: {e}")

    def _fire_lifecycle_callbacks(self, callbacks: List[LifecycleCallback], field: str, kind: str) -> None:
        state = self.state
        for callback in list(callbacks):
            try:
                callback(field, state)
            except Exception as e:
                logger.warning(f"Error in {kind} callback: {e}")

    def __repr__(self) -> str:
        return f"Store(fields={list(self._tree.fields)}, history={self._ledger!r})"


def _log_error(error: StoreError, state: Dict[str, Any]) -> None:
    logger.warning(f"{type(error).__name__}: {error}")
