"""
Data Layer Manager.

Attaches to a shared, append-only list of data layer entries and derives
from it a merged state and ordered listener notifications.

Architecture:
    producer → DataLayer.push(*entries) → DataLayerManager
        ├── Item (classify)
        ├── StateReducer (merge data, DELETE removes keys)
        └── ListenerManager (register / unregister / dispatch)

Lifecycle of one entry, completed within the push call:
    received → classified →
        invalid      — reported and dropped
        data         — merged into the state, then dispatched
        event        — merged if it carries data, then dispatched
        listenerOn   — replayed against history and/or registered
        listenerOff  — matching registrations removed

Only valid data and event entries stay in the log. Entries already present
when the manager attaches are replayed in order at construction time,
listener and invalid entries are removed from the list as the walk goes,
then ``datalayer:ready`` is dispatched once.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import Any, overload

from datalayer.config import Settings, get_settings
from datalayer.core.constants import ItemType, ListenerScope
from datalayer.core.item import Item, describe_config
from datalayer.core.listener import Listener
from datalayer.core.listener_manager import ListenerManager
from datalayer.core.merge import StateReducer

logger = logging.getLogger(__name__)


class DataLayer(Sequence[Any]):
    """
    Read-only view of the data layer log with an intercepted ``push``.

    Reads behave like the underlying list. ``push`` routes every entry
    through the manager before anything is stored.
    """

    def __init__(self, manager: DataLayerManager, entries: list[Any]) -> None:
        self._manager = manager
        self._entries = entries

    @overload
    def __getitem__(self, index: int) -> Any: ...

    @overload
    def __getitem__(self, index: slice) -> list[Any]: ...

    def __getitem__(self, index: int | slice) -> Any:
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._entries))

    def __repr__(self) -> str:
        return f"DataLayer({self._entries!r})"

    def push(self, *entries: Any) -> int | None:
        """
        Push one or more entries to the data layer.

        Returns the length of the log after the push, or None if every entry
        of this call was consumed (listeners) or rejected (invalid).
        """
        return self._manager.push(*entries)

    def get_state(self) -> dict[str, Any]:
        """Deep copy of the data layer state."""
        return self._manager.get_state()

    def get_previous_state(self) -> dict[str, Any]:
        """Deep copy of the state before the last data-bearing merge."""
        return self._manager.get_previous_state()


class DataLayerManager:
    """
    Coordinates classification, state updates and listener dispatch.

    Args:
        config: Manager configuration. ``config["data_layer"]`` is the list
            of existing entries to attach to; anything other than a list is
            replaced by a fresh empty one.
        settings: Environment settings; defaults to ``get_settings()``.
    """

    def __init__(
        self,
        config: Mapping[str, Any] | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._config: dict[str, Any] = dict(config or {})
        self._settings = settings or get_settings()
        self._ready = False
        self._initialize()

    def _initialize(self) -> None:
        entries = self._config.get("data_layer")
        if not isinstance(entries, list):
            if entries is not None:
                logger.warning(
                    f"Ignoring data_layer of type {type(entries).__name__}; "
                    "starting from an empty data layer"
                )
            entries = []
            self._config["data_layer"] = entries

        self._entries: list[Any] = entries
        self._reducer = StateReducer()
        self._data_layer = DataLayer(self, self._entries)
        self._listener_manager = ListenerManager(self._data_layer)

        self._process_items()

        self._listener_manager.trigger_ready()
        self._ready = True
        logger.debug(f"Data layer ready with {len(self._entries)} entries")

    # ── Public surface ──────────────────────────────────────────────────

    @property
    def data_layer(self) -> DataLayer:
        """The log facade handed to producers."""
        return self._data_layer

    @property
    def listener_manager(self) -> ListenerManager:
        return self._listener_manager

    @property
    def is_ready(self) -> bool:
        """True once the entries present at start-up have been processed."""
        return self._ready

    def push(self, *entries: Any) -> int | None:
        """Process entries left to right, then store the retained ones."""
        retained: list[Any] = []
        for config in entries:
            if self._process_item(Item(config)):
                retained.append(config)

        if not retained:
            return None
        self._entries.extend(retained)
        return len(self._entries)

    def get_state(self) -> dict[str, Any]:
        """Deep copy of the current state."""
        return self._reducer.get_state()

    def get_previous_state(self) -> dict[str, Any]:
        """Deep copy of the state before the last data-bearing merge."""
        return self._reducer.get_previous_state()

    # ── Processing ──────────────────────────────────────────────────────

    def _process_items(self) -> None:
        """Replay the entries present at start-up, removing transient ones."""
        pending = len(self._entries)
        index = 0
        while pending > 0:
            pending -= 1
            if self._process_item(Item(self._entries[index], index)):
                index += 1
            else:
                del self._entries[index]

    def _process_item(self, item: Item) -> bool:
        """Process one item. True if it stays in the log."""
        if not item.valid:
            logger.log(
                self._settings.invalid_item_log_level,
                "The following item cannot be handled by the data layer "
                f"because it does not have a valid format: {describe_config(item.config)}",
            )
            return False

        processors: dict[ItemType, Callable[[Item], bool]] = {
            ItemType.DATA: self._process_data,
            ItemType.EVENT: self._process_event,
            ItemType.LISTENER_ON: self._process_listener_on,
            ItemType.LISTENER_OFF: self._process_listener_off,
        }
        return processors[item.type](item)

    def _update_state(self, item: Item, data: Mapping[str, Any]) -> bool:
        try:
            self._reducer.update(data)
        except (TypeError, copy.Error) as exc:
            logger.error(
                "The following item cannot be handled by the data layer because "
                f"its data cannot be copied ({exc}): {describe_config(item.config)}"
            )
            return False
        return True

    def _process_data(self, item: Item) -> bool:
        if not self._update_state(item, item.config["data"]):
            return False
        self._listener_manager.trigger_listeners(item)
        return True

    def _process_event(self, item: Item) -> bool:
        data = item.config.get("data")
        if isinstance(data, Mapping) and not self._update_state(item, data):
            return False
        self._listener_manager.trigger_listeners(item)
        return True

    def _process_listener_on(self, item: Item) -> bool:
        listener = Listener.from_item(item)
        if listener.scope in (ListenerScope.PAST, ListenerScope.ALL):
            for registered_item in self._get_before(item):
                self._listener_manager.trigger_listener(listener, registered_item)
        if listener.scope in (ListenerScope.FUTURE, ListenerScope.ALL):
            self._listener_manager.register(listener)
        return False

    def _process_listener_off(self, item: Item) -> bool:
        self._listener_manager.unregister(Listener.from_item(item))
        return False

    def _get_before(self, item: Item) -> list[Item]:
        """
        Items logged before ``item``.

        For an item replayed at start-up this is everything ahead of its
        index; for a pushed item (index -1) it is the whole log. An index
        past the end of the log yields nothing.
        """
        if not self._entries or item.index > len(self._entries) - 1:
            return []
        end = item.index if item.index >= 0 else len(self._entries)
        return [Item(config) for config in self._entries[:end]]
