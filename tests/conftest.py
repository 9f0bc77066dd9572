"""Pytest configuration and shared fixtures."""
from typing import List

import pytest
from typing_extensions import TypedDict

from schemastate import Store


class SystemRule(TypedDict):
    """Rule for the 'system' test field."""
    id: int
    name: str


class WorkspaceRule(TypedDict):
    """Rule for the 'workspace' test field."""
    id: int
    name: str
    sequence: List[int]


class Membership(TypedDict):
    count: int
    members: List[int]


class UserRule(TypedDict):
    """Nested rule: a dict inside a dict, plus a list."""
    id: int
    name: str
    sequence: Membership


SYSTEM_STATE_1 = {"id": 0, "name": ""}
SYSTEM_STATE_2 = {"id": 1, "name": "test"}
SYSTEM_STATE_3 = {"id": 1, "name": "test2"}

WORKSPACE_STATE_1 = {"id": 0, "name": "", "sequence": []}
WORKSPACE_STATE_2 = {"id": 1, "name": "test", "sequence": [0, 1]}
WORKSPACE_STATE_3 = {"id": 1, "name": "test", "sequence": [0, 1, 2, 3, 4, 5]}

USER_STATE = {"id": 1, "name": "Michael", "sequence": {"count": 3, "members": [1, 2, 3, 4]}}

INVALID_SYSTEM_STATE_1 = {"id": "invalid", "name": ""}


@pytest.fixture
def store():
    """A fresh store with error logging off (tests collect errors explicitly)."""
    return Store(error_log=False)


@pytest.fixture
def errors(store):
    """Errors reported by ``store``, in order."""
    collected = []
    store.on_error(lambda error, state: collected.append(error))
    return collected


@pytest.fixture
def system_store(store):
    """Store with the 'system' field registered at SYSTEM_STATE_1."""
    store.register("system", SystemRule, SYSTEM_STATE_1)
    return store


@pytest.fixture
def user_store(store):
    """Store with the nested 'user' field registered."""
    store.register("user", UserRule, USER_STATE)
    return store
