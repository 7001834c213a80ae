"""Listener registrations parsed from listenerOn / listenerOff items."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from datalayer.core.constants import ItemType, ListenerScope
from datalayer.core.item import Item

Handler = Callable[..., Any]


@dataclass(frozen=True, eq=False)
class Listener:
    """
    A listener registration (or deregistration request).

    Attributes:
        event_name: Event the listener is bound to. ``None`` only for a
            deregistration request that targets every event.
        handler: Callable invoked with a ``ListenerEvent``. Optional for
            deregistration requests.
        scope: Temporal reach. Defaults to ``future`` for registrations;
            deregistration requests keep what was given, if anything.
        path: Dotted state path the listener is restricted to.
    """

    event_name: str | None
    handler: Handler | None = None
    scope: ListenerScope | None = ListenerScope.FUTURE
    path: str | None = None

    @classmethod
    def from_item(cls, item: Item) -> Listener:
        """Build a listener from a valid LISTENER_ON or LISTENER_OFF item."""
        config = item.config
        if item.type == ItemType.LISTENER_ON:
            scope = config.get("scope") or ListenerScope.FUTURE
            return cls(
                event_name=config["on"],
                handler=config["handler"],
                scope=ListenerScope(scope),
                path=config.get("path") or None,
            )
        if item.type == ItemType.LISTENER_OFF:
            scope = config.get("scope")
            return cls(
                event_name=config["off"],
                handler=config.get("handler"),
                scope=ListenerScope(scope) if scope else None,
                path=config.get("path") or None,
            )
        raise ValueError(f"Cannot build a listener from {item!r}")

    def describe(self) -> str:
        handler_name = getattr(self.handler, "__qualname__", repr(self.handler))
        suffix = f" path={self.path}" if self.path else ""
        return f"{self.event_name} -> {handler_name}{suffix}"
