"""Form documents: a root field plus JSON import and export of its value."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from formdsl.errors import FactoryFailure
from formdsl.factory import build
from formdsl.fields import ArrayField, Field, ObjectField
from formdsl.typefield import TypeField


@dataclass
class Form:
    """A form built from a schema.

    The root schema may register ``"definitions"`` for ``$ref`` tokens used
    anywhere below it:

        Form.from_dict({
            "type": "object",
            "definitions": {"expr": {"type": "typefield", "types": {...}}},
            "children": {"body": {"$ref": "#/definitions/expr"}},
        })
    """

    root: Field

    @classmethod
    def from_dict(cls, schema: Mapping[str, Any], id: str = "") -> Form:
        """Build a form from a schema mapping.

        Raises:
            FactoryFailure: If the root or any child schema cannot be built
            ReferenceNotFound: If a reference used during construction is
                not defined by an enclosing field

        """
        root = build(id, dict(schema))
        if root is None:
            raise FactoryFailure(id, schema)
        return cls(root)

    @classmethod
    def from_json(cls, s: str, id: str = "") -> Form:
        """Build a form from a JSON schema document."""
        return cls.from_dict(json.loads(s), id)

    def get_value(self) -> Any:
        return self.root.get_value()

    def set_value(self, value: Any) -> None:
        self.root.set_value(value)

    def to_json(self, *, indent: int | None = 2) -> str:
        """Serialize the form value to a JSON string."""
        return json.dumps(self.get_value(), indent=indent)

    def load_json(self, s: str) -> None:
        """Load a JSON document produced by ``to_json`` into the form."""
        self.set_value(json.loads(s))

    def find(self, path: str) -> Field:
        """Look up a field by dotted id path relative to the root.

        Type fields are transparent: a path continues into the current child.

        Raises:
            KeyError: If no field exists at ``path``

        """
        node = self.root
        for part in filter(None, path.split(".")):
            node = _step(node, part, path)
        return node

    def add_definition(self, name: str, schema: Mapping[str, Any]) -> None:
        """Register a schema on the root for later ``$ref`` resolution."""
        self.root.definitions[name] = dict(schema)


def _step(node: Field, part: str, path: str) -> Field:
    while isinstance(node, TypeField) and node.child is not None:
        node = node.child
    if isinstance(node, ObjectField) and part in node.children:
        return node.children[part]
    if isinstance(node, ArrayField) and part.isdigit() and int(part) < len(node.items):
        return node.items[int(part)]
    msg = f"No field at '{path}' (stopped at '{part}' under {node!r})"
    raise KeyError(msg)
