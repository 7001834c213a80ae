"""
Data layer vocabulary.

Item types, reserved event names and listener scopes shared by the
classifier, the listener registry and the manager.
"""

from __future__ import annotations

from enum import Enum


class ItemType(str, Enum):
    """Classified shape of a data layer entry."""

    DATA = "data"
    EVENT = "event"
    LISTENER_ON = "listenerOn"
    LISTENER_OFF = "listenerOff"


class DataLayerEvent(str, Enum):
    """Reserved event names triggered by the data layer itself."""

    # Any change in the data layer state
    CHANGE = "datalayer:change"
    # Any event pushed to the data layer, alongside its own name
    EVENT = "datalayer:event"
    # Fired once, after the entries present at start-up were processed
    READY = "datalayer:ready"
    # Reserved for events that need to be persisted; not dispatched by the core
    PERSIST = "datalayer:persist"


class ListenerScope(str, Enum):
    """Temporal reach of a listener registration."""

    PAST = "past"
    FUTURE = "future"
    ALL = "all"


LISTENER_SCOPE_VALUES: tuple[str, ...] = tuple(s.value for s in ListenerScope)
