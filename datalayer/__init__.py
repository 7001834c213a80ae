"""
Client data layer.

A shared, append-only log of entries (data updates, events, listener
registrations) from which a merged state and ordered listener
notifications are derived.

Entry points:
    DataLayerManager — attaches to an existing list of entries and replays it
    DataLayer        — the log facade producers push to and read from
    DELETE           — merge marker that removes a key from the state
"""
from __future__ import annotations

from datalayer.core.constants import DataLayerEvent, ItemType, ListenerScope
from datalayer.core.item import InvalidItemError, Item
from datalayer.core.listener import Listener
from datalayer.core.listener_manager import ListenerEvent, ListenerManager
from datalayer.core.merge import DELETE, StateReducer
from datalayer.manager import DataLayer, DataLayerManager

__all__ = [
    "DELETE",
    "DataLayer",
    "DataLayerEvent",
    "DataLayerManager",
    "InvalidItemError",
    "Item",
    "ItemType",
    "Listener",
    "ListenerEvent",
    "ListenerManager",
    "ListenerScope",
    "StateReducer",
]
