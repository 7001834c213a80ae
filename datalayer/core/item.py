"""
Data layer item classification.

An entry pushed to the data layer carries no explicit type field. Its type
is derived from its shape: each item type declares a set of keys with
their kind, whether they are optional, and (for enumerations) the allowed
values. An entry is of a given type only if it satisfies every key
constraint of that type AND carries no key the type does not declare.

Shapes are tried in a fixed order (data, event, listenerOn, listenerOff);
the first one that matches wins. An entry matching no shape is invalid and
must never reach the state or the listeners.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from datalayer.core.constants import LISTENER_SCOPE_VALUES, ItemType

logger = logging.getLogger(__name__)


ItemConfig = Mapping[str, Any]

KeyKind = Literal["object", "string", "function"]


@dataclass(frozen=True)
class KeyConstraint:
    """Constraint on one key of an item configuration."""

    kind: KeyKind
    optional: bool = False
    values: tuple[str, ...] | None = None


ITEM_CONSTRAINTS: dict[ItemType, dict[str, KeyConstraint]] = {
    ItemType.DATA: {
        "data": KeyConstraint("object"),
    },
    ItemType.EVENT: {
        "event": KeyConstraint("string"),
        "info": KeyConstraint("object", optional=True),
        "data": KeyConstraint("object", optional=True),
    },
    ItemType.LISTENER_ON: {
        "on": KeyConstraint("string"),
        "handler": KeyConstraint("function"),
        "scope": KeyConstraint("string", optional=True, values=LISTENER_SCOPE_VALUES),
        "path": KeyConstraint("string", optional=True),
    },
    ItemType.LISTENER_OFF: {
        "off": KeyConstraint("string"),
        "handler": KeyConstraint("function", optional=True),
        "scope": KeyConstraint("string", optional=True, values=LISTENER_SCOPE_VALUES),
        "path": KeyConstraint("string", optional=True),
    },
}


class InvalidItemError(ValueError):
    """Raised when an item configuration matches none of the item shapes."""

    def __init__(self, config: object):
        self.config = config
        super().__init__(
            "The following item cannot be handled by the data layer because "
            f"it does not have a valid format: {describe_config(config)}"
        )


def describe_config(config: object) -> str:
    """Render an item configuration for diagnostics (handlers become their repr)."""
    try:
        return json.dumps(config, default=repr, sort_keys=True)
    except (TypeError, ValueError):
        return repr(config)


def _is_missing(value: object) -> bool:
    # Mirrors a falsy check restricted to the values the kinds can hold:
    # an empty mapping is still a present value.
    return value is None or value == ""


def _matches_kind(value: object, kind: KeyKind) -> bool:
    if kind == "object":
        return isinstance(value, Mapping)
    if kind == "string":
        return isinstance(value, str)
    return callable(value)


def _satisfies(value: object, constraint: KeyConstraint) -> bool:
    if not _matches_kind(value, constraint.kind):
        return False
    if constraint.values is not None and value not in constraint.values:
        return False
    return True


def item_config_has_custom_properties(
    item_config: ItemConfig,
    item_constraints: Mapping[str, KeyConstraint],
) -> bool:
    """True if the configuration carries keys the constraints do not declare."""
    if len(item_config) > len(item_constraints):
        return True
    return any(key not in item_constraints for key in item_config)


def item_config_matches_constraints(
    item_config: object,
    item_constraints: Mapping[str, KeyConstraint],
) -> bool:
    """Check an item configuration against the constraints of one item type."""
    if not isinstance(item_config, Mapping):
        return False

    for key, constraint in item_constraints.items():
        value = item_config.get(key)
        if _is_missing(value):
            if not constraint.optional:
                return False
            continue
        if not _satisfies(value, constraint):
            return False

    return not item_config_has_custom_properties(item_config, item_constraints)


def classify(item_config: object) -> ItemType | None:
    """Return the type of an item configuration, or None if it is invalid."""
    for item_type, item_constraints in ITEM_CONSTRAINTS.items():
        if item_config_matches_constraints(item_config, item_constraints):
            return item_type
    return None


class Item:
    """
    A classified data layer item.

    Wraps the raw configuration (never copied or altered) together with its
    derived type and its index in the log at start-up replay time. Items
    pushed after start-up have index -1.
    """

    def __init__(self, config: object, index: int = -1) -> None:
        self._config = config
        self._type = classify(config)
        self._index = index

    @property
    def config(self) -> Any:
        """The item configuration as it was pushed."""
        return self._config

    @property
    def type(self) -> ItemType | None:
        """The item type, or None if the item is invalid."""
        return self._type

    @property
    def valid(self) -> bool:
        return self._type is not None

    @property
    def index(self) -> int:
        """Position in the log when replayed at start-up, -1 otherwise."""
        return self._index

    @property
    def data(self) -> Mapping[str, Any] | None:
        """The data payload of a DATA or EVENT item."""
        if self._type in (ItemType.DATA, ItemType.EVENT):
            data = self._config.get("data")
            if isinstance(data, Mapping):
                return data
        return None

    def validate(self) -> Item:
        """Return self, or raise InvalidItemError if the item is invalid."""
        if not self.valid:
            raise InvalidItemError(self._config)
        return self

    def __repr__(self) -> str:
        item_type = self._type.value if self._type else "invalid"
        return f"Item(type={item_type}, index={self._index})"
