"""
Reactive, schema-validated state container with transactional undo/redo.

Callers register named top-level fields, each backed by a validation rule and
a default value. Any later write, at any depth inside a field's value, is
validated against the field's rule and either committed (recorded for undo,
announced to subscribers) or reverted in place.

Key Features:
- Pydantic rules per field (TypedDict, BaseModel, List[int], Annotated, ...)
- Depth-transparent writes through path-bound proxies
- Whole-field re-validation on every write, strict or lenient
- Bounded linear undo/redo of full-state snapshots
- Per-field change subscriptions and error callbacks

Quick Start:
    >>> from typing_extensions import TypedDict
    >>> from schemastate import Store
    >>>
    >>> class System(TypedDict):
    ...     id: int
    ...     name: str
    >>>
    >>> store = Store()
    >>> store.register("system", System, {"id": 0, "name": ""})
    >>> store.state.system = {"id": 1, "name": "test"}    # accepted
    >>> store.state.system.id = "bad"                     # rejected, reverted
    >>> store.undo()
    True
    >>> store.state.system == {"id": 0, "name": ""}
    True

Modules:
    - store: Store facade (register/unregister, callbacks, undo/redo)
    - tree: StateTree commit routine and the state proxies
    - validation: pydantic-backed ValidationGateway
    - history: Snapshot and HistoryLedger
    - notifier: ChangeNotifier and ChangeEvent
    - config: StoreConfig
    - errors: StoreError hierarchy
"""

# Facade
from schemastate.store import Store

# Configuration
from schemastate.config import StoreConfig, DEFAULT_HISTORY_BUFFER

# Errors
from schemastate.errors import (
    StoreError,
    ValidationRejected,
    UnknownField,
    MissingRule,
    InvalidRule,
    HistoryFieldSetMismatch,
)

# Components
from schemastate.validation import ValidationGateway, ValidationResult
from schemastate.history import HistoryLedger, Snapshot
from schemastate.notifier import ChangeNotifier, ChangeEvent
from schemastate.tree import StateTree, WriteMode, StateProxy, MappingProxy, SequenceProxy

__all__ = [
    # Facade
    'Store',
    # Configuration
    'StoreConfig',
    'DEFAULT_HISTORY_BUFFER',
    # Errors
    'StoreError',
    'ValidationRejected',
    'UnknownField',
    'MissingRule',
    'InvalidRule',
    'HistoryFieldSetMismatch',
    # Components
    'ValidationGateway',
    'ValidationResult',
    'HistoryLedger',
    'Snapshot',
    'ChangeNotifier',
    'ChangeEvent',
    'StateTree',
    'WriteMode',
    'StateProxy',
    'MappingProxy',
    'SequenceProxy',
]

__version__ = '1.0.0'
__description__ = 'Reactive, schema-validated state container with undo/redo'
