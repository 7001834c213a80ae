"""
Tests for data layer item classification.

Covers the four item shapes, strict key matching, enum-valued keys,
optional keys, and the invalid marker.
"""
from __future__ import annotations

import pytest

from datalayer.core.constants import ItemType
from datalayer.core.item import (
    ITEM_CONSTRAINTS,
    InvalidItemError,
    Item,
    classify,
    item_config_has_custom_properties,
    item_config_matches_constraints,
)
from datalayer.core.merge import DELETE


def handler(event):
    pass


# =============================================================================
# Valid shapes
# =============================================================================


class TestValidShapes:
    """Each well-formed entry is classified as its own type."""

    def test_data(self) -> None:
        assert classify({"data": {"page": {"title": "Home"}}}) == ItemType.DATA

    def test_data_with_empty_payload(self) -> None:
        """An empty mapping is still a present value."""
        assert classify({"data": {}}) == ItemType.DATA

    def test_event(self) -> None:
        assert classify({"event": "click"}) == ItemType.EVENT

    def test_event_with_info_and_data(self) -> None:
        config = {"event": "click", "info": {"id": "btn"}, "data": {"clicks": 1}}
        assert classify(config) == ItemType.EVENT

    def test_listener_on(self) -> None:
        assert classify({"on": "click", "handler": handler}) == ItemType.LISTENER_ON

    @pytest.mark.parametrize("scope", ["past", "future", "all"])
    def test_listener_on_with_scope(self, scope: str) -> None:
        config = {"on": "click", "handler": handler, "scope": scope, "path": "page"}
        assert classify(config) == ItemType.LISTENER_ON

    def test_listener_on_accepts_lambda(self) -> None:
        assert classify({"on": "click", "handler": lambda e: None}) == ItemType.LISTENER_ON

    def test_listener_off_without_handler(self) -> None:
        assert classify({"off": "click"}) == ItemType.LISTENER_OFF

    def test_listener_off_with_handler(self) -> None:
        assert classify({"off": "click", "handler": handler}) == ItemType.LISTENER_OFF

    def test_optional_none_is_treated_as_absent(self) -> None:
        assert classify({"on": "click", "handler": handler, "scope": None}) == ItemType.LISTENER_ON


# =============================================================================
# Invalid shapes
# =============================================================================


class TestInvalidShapes:
    """Entries matching no shape are invalid."""

    @pytest.mark.parametrize(
        "config",
        [
            {"foo": 1},
            {},
            {"data": "not an object"},
            {"data": None},
            {"data": DELETE},
            {"data": {"a": 1}, "extra": True},
            {"event": ""},
            {"event": 42},
            {"event": "click", "info": "not an object"},
            {"event": "click", "foo": "bar"},
            {"on": "click"},
            {"on": "click", "handler": "not callable"},
            {"on": "click", "handler": handler, "scope": "sometimes"},
            {"on": "click", "handler": handler, "path": 3},
            {"off": "click", "handler": handler, "scope": "never"},
            "a string",
            42,
            None,
            [{"data": {}}],
        ],
    )
    def test_invalid(self, config: object) -> None:
        assert classify(config) is None

    def test_more_keys_than_declared(self) -> None:
        config = {"on": "x", "handler": handler, "scope": "all", "path": "a", "info": {}}
        assert classify(config) is None


# =============================================================================
# Constraint helpers
# =============================================================================


class TestConstraintHelpers:
    """Low-level constraint checks."""

    def test_constraints_cover_every_item_type(self) -> None:
        assert set(ITEM_CONSTRAINTS) == set(ItemType)

    def test_custom_properties_detected(self) -> None:
        constraints = ITEM_CONSTRAINTS[ItemType.DATA]
        assert item_config_has_custom_properties({"data": {}, "x": 1}, constraints)
        assert not item_config_has_custom_properties({"data": {}}, constraints)

    def test_matches_constraints_rejects_non_mapping(self) -> None:
        assert not item_config_matches_constraints(["data"], ITEM_CONSTRAINTS[ItemType.DATA])

    def test_mandatory_key_missing(self) -> None:
        constraints = ITEM_CONSTRAINTS[ItemType.LISTENER_ON]
        assert not item_config_matches_constraints({"handler": handler}, constraints)


# =============================================================================
# Item wrapper
# =============================================================================


class TestItem:
    """Item keeps the raw config, its type and its index."""

    def test_defaults(self) -> None:
        config = {"data": {"a": 1}}
        item = Item(config)
        assert item.config is config
        assert item.type == ItemType.DATA
        assert item.valid
        assert item.index == -1
        assert item.data == {"a": 1}

    def test_index(self) -> None:
        assert Item({"event": "x"}, 3).index == 3

    def test_invalid_item(self) -> None:
        item = Item({"foo": 1})
        assert item.type is None
        assert not item.valid
        assert item.data is None

    def test_event_without_data(self) -> None:
        assert Item({"event": "x"}).data is None

    def test_listener_item_has_no_data(self) -> None:
        assert Item({"on": "x", "handler": handler}).data is None

    def test_validate_returns_item(self) -> None:
        item = Item({"event": "x"})
        assert item.validate() is item

    def test_validate_raises_for_invalid(self) -> None:
        with pytest.raises(InvalidItemError, match="does not have a valid format") as exc_info:
            Item({"foo": 1}).validate()
        assert exc_info.value.config == {"foo": 1}

    def test_classification_is_pure(self) -> None:
        config = {"event": "x", "data": {"a": 1}}
        Item(config)
        Item(config)
        assert config == {"event": "x", "data": {"a": 1}}


# =============================================================================
# Overlapping keys
# =============================================================================


class TestOverlappingKeys:
    """Keys shared between shapes resolve to the shape that declares them all."""

    def test_event_with_empty_data_is_event(self) -> None:
        assert classify({"event": "click", "data": {}}) == ItemType.EVENT
