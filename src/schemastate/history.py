"""
Snapshot and HistoryLedger for linear undo/redo.

A Snapshot is the whole state tree at one instant (not a diff), deep-copied
when it is created. The ledger keeps two bounded stacks of them. There is no
branching: a fresh edit after an undo throws the redo stack away.

Design Philosophy:
- Immutable snapshots (frozen dataclass), data only, no live references
- Oldest entries are evicted first; the most recent is always retained
- Popping an empty stack is a no-op that returns None
"""
from collections import deque
from dataclasses import dataclass
import logging
import time
from typing import Any, Deque, Dict, Optional, Tuple
import uuid

from schemastate.treeutil import clone_tree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Immutable capture of every field's value at a point in time."""
    id: str  # UUID string
    timestamp: float
    label: str
    triggering_field: Optional[str]  # field whose write produced this entry
    values: Dict[str, Any]  # field name -> deep copy of its value

    @classmethod
    def create(
        cls,
        values: Dict[str, Any],
        label: str = "",
        triggering_field: Optional[str] = None,
    ) -> 'Snapshot':
        """Create a snapshot with auto-generated ID and timestamp.

        ``values`` is cloned here, so later edits to the caller's tree never
        reach the snapshot.
        """
        return cls(
            id=str(uuid.uuid4()),
            timestamp=time.time(),
            label=label,
            triggering_field=triggering_field,
            values=clone_tree(values),
        )

    @property
    def fields(self) -> frozenset:
        return frozenset(self.values)

    def to_dict(self) -> Dict:
        """Export to a plain dict (JSON-serializable if the values are)."""
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'label': self.label,
            'triggering_field': self.triggering_field,
            'values': clone_tree(self.values),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Snapshot':
        """Import from dict (e.g., loaded from JSON)."""
        return cls(
            id=data['id'],
            timestamp=data['timestamp'],
            label=data.get('label', ""),
            triggering_field=data.get('triggering_field'),
            values=clone_tree(data['values']),
        )


class HistoryLedger:
    """Two capacity-bounded stacks of Snapshots.

    Invariant: ``len(undo) <= capacity`` and ``len(redo) <= capacity``.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._undo: Deque[Snapshot] = deque(maxlen=capacity)
        self._redo: Deque[Snapshot] = deque(maxlen=capacity)

    @property
    def undo(self) -> Tuple[Snapshot, ...]:
        """Undo stack, oldest first."""
        return tuple(self._undo)

    @property
    def redo(self) -> Tuple[Snapshot, ...]:
        """Redo stack, oldest first."""
        return tuple(self._redo)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def push_undo(self, snapshot: Snapshot) -> None:
        self._push(self._undo, snapshot, 'undo')

    def push_redo(self, snapshot: Snapshot) -> None:
        self._push(self._redo, snapshot, 'redo')

    def pop_undo(self) -> Optional[Snapshot]:
        return self._undo.pop() if self._undo else None

    def pop_redo(self) -> Optional[Snapshot]:
        return self._redo.pop() if self._redo else None

    def peek_undo(self) -> Optional[Snapshot]:
        return self._undo[-1] if self._undo else None

    def peek_redo(self) -> Optional[Snapshot]:
        return self._redo[-1] if self._redo else None

    def clear_redo(self) -> None:
        self._redo.clear()

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    def _push(self, stack: Deque[Snapshot], snapshot: Snapshot, name: str) -> None:
        if len(stack) == self.capacity:
            # deque(maxlen) drops from the left on append
            logger.debug(f"HISTORY: {name} at capacity {self.capacity}, evicting '{stack[0].label}'")
        stack.append(snapshot)

    def to_dict(self) -> Dict[str, Any]:
        """Export both stacks (oldest first) for persistence or inspection."""
        return {
            'capacity': self.capacity,
            'undo': [snapshot.to_dict() for snapshot in self._undo],
            'redo': [snapshot.to_dict() for snapshot in self._redo],
        }

    def load_dict(self, data: Dict[str, Any]) -> None:
        """Replace both stacks from an exported dict.

        Entries beyond this ledger's capacity are dropped oldest-first, the
        same as if they had been pushed one by one.
        """
        self.clear()
        for entry in data.get('undo', []):
            self.push_undo(Snapshot.from_dict(entry))
        for entry in data.get('redo', []):
            self.push_redo(Snapshot.from_dict(entry))
        logger.debug(f"HISTORY: loaded {len(self._undo)} undo / {len(self._redo)} redo entries")

    def __repr__(self) -> str:
        return f"HistoryLedger(capacity={self.capacity}, undo={len(self._undo)}, redo={len(self._redo)})"
