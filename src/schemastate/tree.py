"""
StateTree: the live value tree and the single commit routine every write goes through.

Writes never touch the tree directly. A write names an explicit path tuple
(``('user', 'tags', 2)``); the first segment is the owning field. The commit
routine for a normal write:

    capture pre-write snapshot -> apply speculatively -> validate whole field
        accepted: push snapshot to undo, clear redo, publish ChangeEvent
        rejected: put the previous value back (or drop the new key), report

Replaying writes (undo/redo, registering a default) skip validation, history
and notification. The mode is an argument of the routine, never ambient state.

Proxies (StateProxy, MappingProxy, SequenceProxy) are thin path-bound views:
    store.state.user.name = "Bert"
    -> MappingProxy(tree, ('user',)).__setattr__('name', 'Bert')
    -> tree.write(('user', 'name'), 'Bert')

Thread safety: Not thread-safe (all operations expected on one thread).
"""
from collections.abc import Mapping, MutableMapping, MutableSequence
from contextlib import contextmanager
from enum import Enum
import logging
from typing import Any, Callable, Dict, Generator, Optional, Tuple

from schemastate.errors import MissingRule, StoreError, UnknownField, ValidationRejected
from schemastate.history import HistoryLedger, Snapshot
from schemastate.notifier import ChangeEvent, ChangeNotifier
from schemastate.treeutil import clone_tree, format_path
from schemastate.validation import ValidationGateway

logger = logging.getLogger(__name__)

Path = Tuple[Any, ...]
Revert = Callable[[], None]

_MISSING = object()


class WriteMode(Enum):
    NORMAL = "normal"
    REPLAYING = "replaying"


class StateTree:
    """Owns field values and funnels every mutation through ``_commit``."""

    def __init__(
        self,
        gateway: ValidationGateway,
        ledger: HistoryLedger,
        notifier: ChangeNotifier,
        report_error: Callable[[StoreError], None],
    ):
        self._values: Dict[str, Any] = {}
        self._gateway = gateway
        self._ledger = ledger
        self._notifier = notifier
        self._report_error = report_error

        # Atomic blocks coalesce accepted writes into one undo entry
        self._atomic_depth = 0
        self._atomic_label: Optional[str] = None
        self._atomic_recorded = False

    # === Reads ===

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(self._values)

    def has_field(self, field: str) -> bool:
        return field in self._values

    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of every field's value."""
        return clone_tree(self._values)

    def view(self) -> 'StateProxy':
        return StateProxy(self, ())

    def resolve(self, path: Path) -> Any:
        """Raw value at ``path``. Raises KeyError/IndexError for missing locations."""
        node: Any = self._values
        for segment in path:
            node = node[segment]
        return node

    def read(self, path: Path) -> Any:
        """Value at ``path``: a proxy for dicts/lists, an independent copy otherwise."""
        return _wrap(self, path, self.resolve(path))

    # === Writes ===

    def write(self, path: Path, value: Any, mode: WriteMode = WriteMode.NORMAL) -> bool:
        """Assign ``value`` at ``path``. Returns True if the write was committed."""
        if not path:
            raise TypeError("Cannot assign to the state root; assign individual fields")
        if isinstance(value, _NodeProxy) and value._tree is self and value._path == path:
            # x.tags += [...] re-assigns the view to its own location after __iadd__
            return True
        stored = clone_tree(_unwrap(value))
        return self._commit(path, lambda: self._apply_set(path, stored), stored, mode, f"set {format_path(path)}")

    def delete(self, path: Path, mode: WriteMode = WriteMode.NORMAL) -> bool:
        """Remove the location at ``path`` inside a field. Returns True if committed."""
        if len(path) < 2:
            raise TypeError("Fields cannot be deleted through state; use Store.unregister()")
        return self._commit(path, lambda: self._apply_delete(path), None, mode, f"delete {format_path(path)}")

    def remove_field(self, field: str) -> None:
        """Drop a field's value outright. Used by unregister; not validated or recorded."""
        self._values.pop(field, None)

    def restore(self, values: Dict[str, Any]) -> None:
        """Replay a snapshot's values into live state.

        Inside an atomic block the next accepted write records a fresh undo
        entry, since the coalesced one may just have been popped.
        """
        self._atomic_recorded = False
        for field, value in values.items():
            self.write((field,), value, WriteMode.REPLAYING)

    @contextmanager
    def atomic(self, label: str) -> Generator[None, None, None]:
        """Coalesce every accepted write inside the block into a single undo step.

        Validation still happens per write; a rejected write inside the block
        is reverted on its own. Nested blocks are supported - only the
        outermost label is used.

        Example:
            with store.atomic("rename user"):
                store.state.user.first = "Ada"
                store.state.user.last = "Lovelace"
            store.undo()  # reverts both
        """
        self._atomic_depth += 1
        if self._atomic_depth == 1:
            self._atomic_label = label
            self._atomic_recorded = False
        try:
            yield
        finally:
            self._atomic_depth -= 1
            if self._atomic_depth == 0:
                self._atomic_label = None
                self._atomic_recorded = False

    # === Commit routine ===

    def _commit(self, path: Path, apply: Callable[[], Revert], value: Any, mode: WriteMode, label: str) -> bool:
        field = path[0]
        if field not in self._values and not self._gateway.has_rule(field):
            self._report_error(UnknownField(field))
            return False

        if mode is WriteMode.REPLAYING:
            apply()
            return True

        coalesced = self._atomic_depth > 0 and self._atomic_recorded
        before = None
        if not coalesced:
            before = Snapshot.create(self._values, self._atomic_label or label, field)

        revert = apply()
        try:
            result = self._gateway.validate(field, self._values[field])
        except MissingRule as error:
            revert()
            self._report_error(error)
            return False
        except BaseException:
            # Anything else the rule raises propagates once the write is undone
            revert()
            raise

        if not result.valid:
            revert()
            logger.debug(f"Rejected {label}")
            self._report_error(ValidationRejected(field, path[1:], result.error))
            return False

        if before is not None:
            self._ledger.push_undo(before)
            self._ledger.clear_redo()
            if self._atomic_depth > 0:
                self._atomic_recorded = True
        logger.debug(f"Committed {label}")

        self._notifier.publish(ChangeEvent(
            field=field,
            path=path[1:],
            value=clone_tree(value),
            field_value=self.read((field,)),
            state=self.view(),
        ))
        return True

    def _locate(self, path: Path) -> Tuple[Any, Any]:
        container = self.resolve(path[:-1])
        key = path[-1]
        if isinstance(container, list):
            if not isinstance(key, int) or isinstance(key, bool):
                raise TypeError(f"List indices must be integers, got {key!r} at {format_path(path)}")
            if key < 0:
                key += len(container)
            if not 0 <= key < len(container):
                raise IndexError(f"Index out of range at {format_path(path)}")
        elif not isinstance(container, dict):
            raise TypeError(f"Cannot mutate {type(container).__name__} at {format_path(path[:-1]) or '<root>'}")
        return container, key

    def _apply_set(self, path: Path, value: Any) -> Revert:
        container, key = self._locate(path)
        existed = isinstance(container, list) or key in container
        previous = container[key] if existed else None
        container[key] = value

        def revert() -> None:
            if existed:
                container[key] = previous
            else:
                del container[key]
        return revert

    def _apply_delete(self, path: Path) -> Revert:
        container, key = self._locate(path)
        previous = container[key]
        if isinstance(container, list):
            del container[key]
            return lambda: container.insert(key, previous)

        # Rebuild on revert so the key keeps its original position
        order = list(container)
        del container[key]

        def revert() -> None:
            remaining = dict(container)
            container.clear()
            for k in order:
                container[k] = previous if k == key else remaining[k]
        return revert


def _unwrap(value: Any) -> Any:
    if isinstance(value, _NodeProxy):
        return value._tree.resolve(value._path)
    return value


def _wrap(tree: StateTree, path: Path, raw: Any) -> Any:
    if isinstance(raw, dict):
        return MappingProxy(tree, path)
    if isinstance(raw, list):
        return SequenceProxy(tree, path)
    return clone_tree(raw)


class _NodeProxy:
    """Base for path-bound views. Holds no data of its own."""

    __slots__ = ('_tree', '_path')

    def __init__(self, tree: StateTree, path: Path):
        object.__setattr__(self, '_tree', tree)
        object.__setattr__(self, '_path', path)

    def _raw(self) -> Any:
        return self._tree.resolve(self._path)

    def unwrap(self) -> Any:
        """Independent deep copy of the data behind this view."""
        return clone_tree(self._raw())

    def __deepcopy__(self, memo: Dict[int, Any]) -> Any:
        # Views nested inside a written value are stored as plain data
        return self.unwrap()

    def __eq__(self, other: Any) -> bool:
        return self._raw() == _unwrap(other)

    def __ne__(self, other: Any) -> bool:
        return not self == other

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        where = format_path(self._path) or 'state'
        return f"{type(self).__name__}({where}={self._raw()!r})"


class _AttributeAccessMixin:
    """Expose string keys as attributes: ``proxy.name`` == ``proxy['name']``."""

    __slots__ = ()

    def __getattr__(self, name: str) -> Any:
        if name.startswith('_'):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(f"{format_path(self._path) or 'state'} has no field '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith('_'):
            object.__setattr__(self, name, value)
            return
        self[name] = value

    def __delattr__(self, name: str) -> None:
        if name.startswith('_'):
            object.__delattr__(self, name)
            return
        del self[name]


class StateProxy(_AttributeAccessMixin, _NodeProxy, Mapping):
    """Root view: one entry per registered field.

    Assigning a field replaces its whole value through the commit routine.
    Fields are created and removed only by Store.register/unregister.
    """

    __slots__ = ()

    def __getitem__(self, field: str) -> Any:
        return self._tree.read((field,))

    def __setitem__(self, field: str, value: Any) -> None:
        self._tree.write((field,), value)

    def __delitem__(self, field: str) -> None:
        raise TypeError("Fields cannot be deleted through state; use Store.unregister()")

    def __iter__(self):
        return iter(self._tree.fields)

    def __len__(self) -> int:
        return len(self._tree.fields)

    def __contains__(self, field: object) -> bool:
        return field in self._tree.fields

    def to_dict(self) -> Dict[str, Any]:
        return self._tree.snapshot()


class MappingProxy(_AttributeAccessMixin, _NodeProxy, MutableMapping):
    """View over a dict somewhere inside a field."""

    __slots__ = ()

    def __getitem__(self, key: Any) -> Any:
        return self._tree.read(self._path + (key,))

    def __setitem__(self, key: Any, value: Any) -> None:
        self._tree.write(self._path + (key,), value)

    def __delitem__(self, key: Any) -> None:
        if key not in self._raw():
            raise KeyError(key)
        self._tree.delete(self._path + (key,))

    def __iter__(self):
        return iter(list(self._raw()))

    def __len__(self) -> int:
        return len(self._raw())

    def __contains__(self, key: object) -> bool:
        return key in self._raw()

    def pop(self, key: Any, default: Any = _MISSING) -> Any:
        raw = self._raw()
        if key not in raw:
            if default is _MISSING:
                raise KeyError(key)
            return default
        value = clone_tree(raw[key])
        del self[key]
        return value

    def popitem(self) -> Tuple[Any, Any]:
        raw = self._raw()
        if not raw:
            raise KeyError('popitem(): mapping is empty')
        key = next(reversed(list(raw)))
        return key, self.pop(key)

    def update(self, other: Any = (), **kwargs: Any) -> None:
        """Merge as a single write (one history entry, one change event)."""
        merged = dict(self._raw())
        merged.update(_unwrap(other), **kwargs)
        self._tree.write(self._path, merged)

    def clear(self) -> None:
        self._tree.write(self._path, {})


class SequenceProxy(_NodeProxy, MutableSequence):
    """View over a list somewhere inside a field.

    Index assignment and ``del`` target a single element. Operations that
    touch several elements (append, insert, extend, sort, ...) replace the
    list as one write at the list's own path.
    """

    __slots__ = ()

    def _index(self, index: int) -> int:
        size = len(self._raw())
        if index < 0:
            index += size
        if not 0 <= index < size:
            raise IndexError("list index out of range")
        return index

    def _replace(self, new_items: list) -> None:
        self._tree.write(self._path, new_items)

    def __getitem__(self, index: Any) -> Any:
        if isinstance(index, slice):
            return clone_tree(self._raw()[index])
        return self._tree.read(self._path + (self._index(index),))

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            items = list(self._raw())
            items[index] = [_unwrap(v) for v in value]
            self._replace(items)
            return
        self._tree.write(self._path + (self._index(index),), value)

    def __delitem__(self, index: Any) -> None:
        if isinstance(index, slice):
            items = list(self._raw())
            del items[index]
            self._replace(items)
            return
        self._tree.delete(self._path + (self._index(index),))

    def __len__(self) -> int:
        return len(self._raw())

    def __iter__(self):
        for i in range(len(self._raw())):
            yield self._tree.read(self._path + (i,))

    def __contains__(self, value: object) -> bool:
        return _unwrap(value) in self._raw()

    def pop(self, index: int = -1) -> Any:
        index = self._index(index)
        value = clone_tree(self._raw()[index])
        self._tree.delete(self._path + (index,))
        return value

    def insert(self, index: int, value: Any) -> None:
        items = list(self._raw())
        items.insert(index, _unwrap(value))
        self._replace(items)

    def append(self, value: Any) -> None:
        self._replace(list(self._raw()) + [_unwrap(value)])

    def extend(self, values: Any) -> None:
        self._replace(list(self._raw()) + [_unwrap(v) for v in _unwrap(values)])

    def __iadd__(self, values: Any) -> 'SequenceProxy':
        self.extend(values)
        return self

    def clear(self) -> None:
        self._replace([])

    def reverse(self) -> None:
        self._replace(list(reversed(self._raw())))

    def sort(self, *, key: Optional[Callable[[Any], Any]] = None, reverse: bool = False) -> None:
        self._replace(sorted(self._raw(), key=key, reverse=reverse))
