"""
Store configuration.

Options accepted at Store construction. Frozen so a running store never sees
its history capacity or validation mode change underneath it.
"""
from dataclasses import dataclass


DEFAULT_HISTORY_BUFFER = 20


@dataclass(frozen=True)
class StoreConfig:
    """Construction options for a Store.

    Attributes:
        history_buffer: Max entries kept in each of the undo and redo ledgers.
        strict: Validate without coercion (e.g. "5" is not accepted as 5).
        error_log: Install a default error callback that logs reported errors.
    """
    history_buffer: int = DEFAULT_HISTORY_BUFFER
    strict: bool = False
    error_log: bool = True

    def __post_init__(self):
        # bool is an int subclass; True is not a capacity
        if isinstance(self.history_buffer, bool) or not isinstance(self.history_buffer, int):
            raise ValueError(f"history_buffer must be an int, got {type(self.history_buffer).__name__}")
        if self.history_buffer < 1:
            raise ValueError(f"history_buffer must be positive, got {self.history_buffer}")
