"""Helpers over plain value trees (dicts, lists, tuples and scalars)."""
import copy
from typing import Any, Tuple


def clone_tree(value: Any) -> Any:
    """Deep, independent copy of a value tree.

    Mappings, lists and tuples are rebuilt recursively. Anything else that is
    mutable (sets, dataclass instances, ...) goes through copy.deepcopy so no
    reference into the original survives.
    """
    if isinstance(value, dict):
        return {key: clone_tree(item) for key, item in value.items()}
    if isinstance(value, list):
        return [clone_tree(item) for item in value]
    if isinstance(value, tuple):
        return tuple(clone_tree(item) for item in value)
    if value is None or isinstance(value, (str, int, float, complex, bytes, bool)):
        return value
    return copy.deepcopy(value)


def format_path(path: Tuple[Any, ...]) -> str:
    """Render a path tuple as 'user.tags[2].name'."""
    text = ''
    for segment in path:
        if isinstance(segment, int) and not isinstance(segment, bool):
            text += f'[{segment}]'
        else:
            text = f'{text}.{segment}' if text else str(segment)
    return text
