"""
State reducer for the data layer.

The state is a nested dict folded from the ``data`` payloads of DATA and
EVENT items. Merging is recursive: nested mappings are merged key by key,
every other value (lists included) overwrites what was there. A source value
of ``DELETE`` removes the key from the state instead of being stored, so the
state never holds the sentinel.

The reducer only ever hands out deep copies. Nothing pushed into the data
layer is aliased into the state, and nothing read from it aliases back.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from copy import deepcopy
from typing import Any

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "."


class _DeleteSentinel:
    """Type of the ``DELETE`` marker. There is exactly one instance."""

    _instance: _DeleteSentinel | None = None

    def __new__(cls) -> _DeleteSentinel:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DELETE"

    def __copy__(self) -> _DeleteSentinel:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _DeleteSentinel:
        return self

    def __reduce__(self) -> str:
        return "DELETE"


DELETE = _DeleteSentinel()
"""Merge marker: ``{"data": {"key": DELETE}}`` removes ``key`` from the state."""


def _copy_value(value: Any) -> Any:
    """Deep copy a source value, dropping ``DELETE`` keys from nested mappings."""
    if isinstance(value, Mapping):
        return {k: _copy_value(v) for k, v in value.items() if v is not DELETE}
    return deepcopy(value)


def custom_merge(obj: MutableMapping[str, Any], source: Mapping[str, Any]) -> None:
    """Merge ``source`` into ``obj`` in place, deleting keys set to ``DELETE``."""
    for key, src_value in source.items():
        if src_value is DELETE:
            obj.pop(key, None)
            continue
        obj_value = obj.get(key)
        if isinstance(src_value, Mapping) and isinstance(obj_value, MutableMapping):
            custom_merge(obj_value, src_value)
        else:
            obj[key] = _copy_value(src_value)


# ── Dotted paths ────────────────────────────────────────────────────────────


def split_path(path: str) -> list[str]:
    """Split ``"a.b.c"`` into ``["a", "b", "c"]``; empty segments are ignored."""
    return [segment for segment in path.split(PATH_SEPARATOR) if segment]


def get_path(obj: Any, path: str) -> tuple[bool, Any]:
    """
    Resolve a dotted path inside nested mappings.

    Returns ``(found, value)``. ``found`` is False when a segment is missing
    or traverses a non-mapping value.
    """
    segments = split_path(path)
    if not segments:
        return False, None
    current = obj
    for segment in segments:
        if not isinstance(current, Mapping) or segment not in current:
            return False, None
        current = current[segment]
    return True, current


def path_addressed(data: Mapping[str, Any] | None, path: str) -> bool:
    """
    True if ``data`` sets or deletes the value at ``path``.

    The path is addressed when it resolves inside ``data``, or when the path
    itself or one of its ancestors is set to ``DELETE``.
    """
    if not isinstance(data, Mapping):
        return False
    segments = split_path(path)
    if not segments:
        return False
    current: Any = data
    for segment in segments:
        if not isinstance(current, Mapping) or segment not in current:
            return False
        current = current[segment]
        if current is DELETE:
            return True
    return True


def value_at_path(data: Mapping[str, Any] | None, path: str) -> Any:
    """Value at ``path`` in ``data``; None when missing or deleted."""
    found, value = get_path(data, path)
    if not found or value is DELETE:
        return None
    return _copy_value(value)


class StateReducer:
    """
    Owns the data layer state and the copy taken before the last merge.

    Only ``update()`` mutates the state. Readers get independent deep copies.
    """

    def __init__(self) -> None:
        self._state: dict[str, Any] = {}
        self._previous_state: dict[str, Any] = {}

    def update(self, data: Mapping[str, Any]) -> None:
        """
        Merge ``data``; the state before the merge becomes the previous state.

        The merge runs on a copy, so a payload that cannot be deep copied
        raises before either snapshot changes.
        """
        state = deepcopy(self._state)
        custom_merge(state, data)
        self._previous_state = self._state
        self._state = state
        logger.debug(f"State updated with keys {list(data)}")

    def get_state(self) -> dict[str, Any]:
        """Deep copy of the current state."""
        return deepcopy(self._state)

    def get_previous_state(self) -> dict[str, Any]:
        """Deep copy of the state as it was before the last merge."""
        return deepcopy(self._previous_state)

    def clear(self) -> None:
        """Drop all state (for testing)."""
        self._state.clear()
        self._previous_state.clear()
