"""Tests for formdsl.form module."""

from __future__ import annotations

import json

import pytest

from formdsl.errors import FactoryFailure, ReferenceNotFound
from formdsl.fields import NumberField, ObjectField, TextField
from formdsl.form import Form
from formdsl.typefield import TypeField

SCHEMA = {
    "type": "object",
    "definitions": {
        "shape": {
            "type": "typefield",
            "types": {
                "circle": {
                    "type": "object",
                    "children": {"radius": {"type": "number"}},
                },
                "label": {"type": "text"},
            },
        },
    },
    "children": {
        "title": {"type": "text", "default": "Untitled"},
        "shapes": {"type": "array", "item": {"$ref": "#/definitions/shape"}},
    },
}


class TestFormConstruction:
    """Test building forms from schemas."""

    def test_from_dict(self) -> None:
        """Test that the root field is built from the schema."""
        form = Form.from_dict(SCHEMA)

        assert isinstance(form.root, ObjectField)
        assert form.get_value() == {"title": "Untitled", "shapes": []}

    def test_from_json(self) -> None:
        """Test building a form from a JSON schema document."""
        form = Form.from_json(json.dumps(SCHEMA), id="doc")

        assert form.root.id == "doc"
        assert form.get_value() == {"title": "Untitled", "shapes": []}

    def test_unbuildable_root_raises(self) -> None:
        """Test that an unknown root type raises FactoryFailure."""
        with pytest.raises(FactoryFailure):
            Form.from_dict({"type": "no_such_field"})

    def test_missing_reference_during_construction(self) -> None:
        """Test that a reference used at construction must resolve."""
        with pytest.raises(ReferenceNotFound):
            Form.from_dict({"type": "object", "children": {"a": {"$ref": "nope"}}})

    def test_schema_is_not_mutated(self) -> None:
        """Test that building and using a form leaves the schema untouched."""
        snapshot = json.dumps(SCHEMA, sort_keys=True)

        form = Form.from_dict(SCHEMA)
        form.set_value({"title": "T", "shapes": [{"radius": 2, "type": "circle"}]})

        assert json.dumps(SCHEMA, sort_keys=True) == snapshot


class TestFormValues:
    """Test loading and exporting values."""

    def test_mapping_variants_round_trip_through_json(self) -> None:
        """Test that exported JSON loads back into an equal value."""
        form = Form.from_dict(SCHEMA)
        shapes = form.find("shapes")
        shape = shapes.add_item()  # type: ignore[attr-defined]
        assert isinstance(shape, TypeField)
        assert shape.child is not None
        shape.child.set_value({"radius": 3})

        exported = form.to_json()
        other = Form.from_dict(SCHEMA)
        other.load_json(exported)

        assert json.loads(exported) == {
            "title": "Untitled",
            "shapes": [{"radius": 3, "type": "circle"}],
        }
        assert other.get_value() == form.get_value()

    def test_scalar_variants_round_trip_through_json(self) -> None:
        """Test that wrapped scalar variants load back into their children."""
        schema = {
            "type": "object",
            "children": {
                "size": {
                    "type": "typefield",
                    "types": {"px": {"type": "number"}, "name": {"type": "text"}},
                },
            },
        }
        form = Form.from_dict(schema)
        form.set_value({"size": {"value": 12, "type": "px"}})

        other = Form.from_dict(schema)
        other.load_json(form.to_json())

        size = other.find("size")
        assert isinstance(size, TypeField)
        assert size.child is not None
        assert size.child.get_value() == 12
        assert other.get_value() == {"size": {"value": 12, "type": "px"}}

    def test_to_json_compact(self) -> None:
        """Test compact JSON output."""
        form = Form.from_dict({"type": "text", "default": "x"})

        assert form.to_json(indent=None) == '"x"'


class TestFind:
    """Test looking up fields by path."""

    def test_find_through_arrays_and_type_fields(self) -> None:
        """Test that paths continue into array items and type field children."""
        form = Form.from_dict(SCHEMA)
        form.find("shapes").add_item()  # type: ignore[attr-defined]

        radius = form.find("shapes.0.radius")

        assert isinstance(radius, NumberField)

    def test_find_root(self) -> None:
        """Test that an empty path is the root."""
        form = Form.from_dict(SCHEMA)

        assert form.find("") is form.root

    def test_find_missing_raises(self) -> None:
        """Test that a missing path raises KeyError."""
        form = Form.from_dict(SCHEMA)

        with pytest.raises(KeyError, match="shapes.5"):
            form.find("shapes.5")


class TestDefinitions:
    """Test registering definitions on a form."""

    def test_add_definition_is_visible_to_switches(self) -> None:
        """Test that a definition added later resolves on the next switch."""
        form = Form.from_dict(
            {
                "type": "object",
                "children": {
                    "pick": {
                        "type": "typefield",
                        "types": {"none": {"type": "text"}, "late": {"$ref": "late"}},
                    },
                },
            },
        )
        pick = form.find("pick")
        assert isinstance(pick, TypeField)

        with pytest.raises(ReferenceNotFound):
            pick.set_type("late")
        form.add_definition("late", {"type": "number"})
        pick.set_type("late")

        assert isinstance(pick.child, NumberField)

    def test_find_text(self) -> None:
        """Test finding a plain child."""
        form = Form.from_dict(SCHEMA)

        assert isinstance(form.find("title"), TextField)
