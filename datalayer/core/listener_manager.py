"""
Listener registry for the data layer.

Stores future/all-scope registrations in the order they were added and
dispatches classified items to the ones that match. Dispatch is
synchronous: every handler has run by the time ``trigger_listeners()``
returns. A handler raising is logged and skipped; delivery continues with
the next handler and nothing propagates to the caller.

Event identities:
    DATA item    → ``datalayer:change``
    EVENT item   → ``datalayer:event``, ``datalayer:change`` when it
                   carries data, and the event's own name
    ready        → ``datalayer:ready`` only, dispatched by ``trigger_ready()``
"""

from __future__ import annotations

import logging
from copy import deepcopy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from datalayer.core.constants import DataLayerEvent, ItemType
from datalayer.core.item import Item
from datalayer.core.listener import Listener
from datalayer.core.merge import path_addressed, value_at_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListenerEvent:
    """
    What a handler receives.

    Attributes:
        name: Event identity the listener was bound to.
        type: Type of the item that triggered the listener.
        config: Deep copy of the item configuration.
        data: Deep copy of the item's data payload, if any.
        info: Deep copy of the event info, if any.
        path: The listener's path filter, if any.
        value: Value the item's data holds at ``path`` (None if deleted).
        data_layer: The data layer the item was dispatched from, so handlers
            can push follow-up entries.
    """

    name: str
    type: ItemType | None
    config: dict[str, Any]
    data: dict[str, Any] | None = None
    info: dict[str, Any] | None = None
    path: str | None = None
    value: Any = None
    data_layer: Any = field(default=None, repr=False, compare=False)


def event_names(item: Item) -> list[str]:
    """Event identities an item is dispatched under."""
    if item.type == ItemType.DATA:
        return [DataLayerEvent.CHANGE.value]
    if item.type == ItemType.EVENT:
        name = item.config["event"]
        names = [DataLayerEvent.EVENT.value]
        if item.data is not None:
            names.append(DataLayerEvent.CHANGE.value)
        if name not in names:
            names.append(name)
        return names
    return []


def listener_matches(listener: Listener, item: Item) -> bool:
    """True if ``listener`` should fire for ``item``."""
    if listener.event_name not in event_names(item):
        return False
    if listener.path:
        return path_addressed(item.data, listener.path)
    return True


def request_matches(registration: Listener, request: Listener) -> bool:
    """True if a deregistration request targets a stored registration."""
    if request.event_name is not None and registration.event_name != request.event_name:
        return False
    if request.handler is not None and registration.handler != request.handler:
        return False
    if request.path is not None and registration.path != request.path:
        return False
    return True


def build_listener_event(listener: Listener, item: Item, data_layer: Any = None) -> ListenerEvent:
    config = item.config
    data = item.data
    info = config.get("info") if item.type == ItemType.EVENT else None
    return ListenerEvent(
        name=listener.event_name or "",
        type=item.type,
        config=deepcopy(dict(config)),
        data=deepcopy(dict(data)) if data is not None else None,
        info=deepcopy(dict(info)) if isinstance(info, Mapping) else None,
        path=listener.path,
        value=value_at_path(data, listener.path) if listener.path else None,
        data_layer=data_layer,
    )


class ListenerManager:
    """Registry of data layer listeners."""

    def __init__(self, data_layer: Any = None) -> None:
        self._data_layer = data_layer
        self._listeners: list[Listener] = []

    def register(self, listener: Listener) -> None:
        """Store a registration. Duplicates are kept and fire independently."""
        self._listeners.append(listener)
        logger.debug(f"Registered listener {listener.describe()}")

    def unregister(self, request: Listener) -> int:
        """
        Remove every registration matching ``request``.

        Returns the number of registrations removed; zero is not an error.
        """
        kept = [r for r in self._listeners if not request_matches(r, request)]
        removed = len(self._listeners) - len(kept)
        self._listeners = kept
        logger.debug(f"Unregistered {removed} listener(s) for {request.describe()}")
        return removed

    def matching(self, item: Item) -> list[Listener]:
        """Registrations that fire for ``item``, in registration order."""
        return [r for r in self._listeners if listener_matches(r, item)]

    def trigger_listeners(self, item: Item) -> int:
        """
        Dispatch ``item`` to every matching registration.

        Returns the number of handlers that completed without raising.
        """
        delivered = 0
        # Matches are resolved before the first handler runs.
        for listener in self.matching(item):
            if self._call_handler(listener, item):
                delivered += 1
        return delivered

    def trigger_ready(self) -> int:
        """
        Dispatch the readiness notification to ``datalayer:ready`` listeners only.

        Pushed events named ``datalayer:ready`` go through
        ``trigger_listeners()`` like any other event.
        """
        ready_item = Item({"event": DataLayerEvent.READY.value})
        ready_listeners = [
            r for r in self._listeners
            if r.event_name == DataLayerEvent.READY.value and not r.path
        ]
        delivered = 0
        for listener in ready_listeners:
            if self._call_handler(listener, ready_item):
                delivered += 1
        return delivered

    def trigger_listener(self, listener: Listener, item: Item) -> bool:
        """Dispatch ``item`` to a single listener if it matches. True if delivered."""
        if not listener_matches(listener, item):
            return False
        return self._call_handler(listener, item)

    def _call_handler(self, listener: Listener, item: Item) -> bool:
        if listener.handler is None:
            return False
        try:
            event = build_listener_event(listener, item, self._data_layer)
            listener.handler(event)
        except Exception:
            logger.exception(
                f"Listener {listener.describe()} failed while handling {item!r}"
            )
            return False
        return True

    def clear(self) -> None:
        """Remove all registrations (for testing)."""
        self._listeners.clear()

    @property
    def listeners(self) -> list[Listener]:
        """Registrations in the order they were added."""
        return list(self._listeners)

    @property
    def count(self) -> int:
        """Number of stored registrations."""
        return len(self._listeners)
