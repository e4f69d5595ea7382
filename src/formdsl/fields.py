"""Form field infrastructure with automatic registration."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, ClassVar, Self, TypeAlias

from formdsl import refs
from formdsl.factory import instantiate

Schema: TypeAlias = Mapping[str, Any]


class Field(ABC):
    """Base for form fields.

    A field is built from a schema mapping whose ``"type"`` entry names the
    registered field class. ``parent`` is a non-owning back-reference used only
    to resolve ``$ref`` tokens against the definitions of enclosing fields.
    """

    tag: ClassVar[str]
    registry: ClassVar[dict[str, type[Field]]] = {}

    def __init_subclass__(cls, tag: str | None = None, **kwargs: Any) -> None:
        """Register field subclass with automatic tag derivation."""
        super().__init_subclass__(**kwargs)
        cls.tag = tag if tag is not None else cls.__name__.lower().removesuffix("field")

        if (existing := Field.registry.get(cls.tag)) and existing is not cls:
            msg = (
                f"Tag '{cls.tag}' already registered to {existing}. "
                "Choose a different tag."
            )
            raise ValueError(msg)

        Field.registry[cls.tag] = cls

    def __init__(self) -> None:
        self.id = ""
        self.label = ""
        self.key = ""
        self.parent: Field | None = None
        self.schema: dict[str, Any] = {}
        self.definitions: dict[str, Schema] = {}

    def init(self, id: str = "", args: Schema | None = None) -> Self:
        """Apply the generic part of a field schema.

        Args:
            id: Identifier of the field within its parent
            args: The schema mapping the field is built from

        Returns:
            The field itself, so that construction can be chained

        """
        args = args or {}
        self.id = id
        self.key = id
        self.label = args.get("label", id)
        self.schema = copy.deepcopy(dict(args))
        self.definitions = dict(args.get("definitions", {}))
        return self

    @property
    def path(self) -> str:
        """Dotted id path from the root field."""
        if self.parent is None:
            return self.id
        parent_path = self.parent.path
        if not parent_path:
            return self.id
        return f"{parent_path}.{self.id}" if self.id else parent_path

    @abstractmethod
    def get_value(self) -> Any:
        """Return the value of this field, or None if it has none."""
        ...

    @abstractmethod
    def set_value(self, value: Any) -> None:
        """Load a value into this field. None means "no value"."""
        ...

    def resolve_ref(self, token: str) -> Field:
        """Build the schema registered under ``token`` by an enclosing field.

        Raises:
            ReferenceNotFound: If no field up the parent chain defines ``token``

        """
        return refs.resolve(self, token)

    def clone(self) -> Self:
        """Return an independent copy of this field and its current value."""
        field = self._blank()
        value = self.get_value()
        if value is not None:
            field.set_value(value)
        return field

    def _blank(self) -> Self:
        """Build a new field of the same class from the same schema."""
        field = type(self)()
        field.parent = self.parent
        field.init(self.id, copy.deepcopy(self.schema))
        field.key = self.key
        return field

    def __repr__(self) -> str:
        if self.label == self.id:
            return f"{type(self).__name__}(id={self.id!r})"
        return f"{type(self).__name__}(id={self.id!r}, label={self.label!r})"


class TextField(Field, tag="text"):
    """Free-form field. Stores whatever it is given."""

    def init(self, id: str = "", args: Schema | None = None) -> Self:
        super().init(id, args)
        self.default = (args or {}).get("default", "")
        self.value: Any = self.default
        return self

    def get_value(self) -> Any:
        return self.value

    def set_value(self, value: Any) -> None:
        self.value = self.default if value is None else value


class NumberField(Field, tag="number"):
    """Numeric field. Numeric strings are converted to float."""

    def init(self, id: str = "", args: Schema | None = None) -> Self:
        super().init(id, args)
        self.value: int | float | None = (args or {}).get("default")
        return self

    def get_value(self) -> int | float | None:
        return self.value

    def set_value(self, value: Any) -> None:
        if value is None or (isinstance(value, int | float) and not isinstance(value, bool)):
            self.value = value
        elif isinstance(value, str):
            try:
                self.value = float(value)
            except ValueError:
                msg = f"Field '{self.path}' expects a number, got {value!r}"
                raise ValueError(msg) from None
        else:
            msg = f"Field '{self.path}' expects a number, got {type(value).__name__}"
            raise TypeError(msg)


class CheckboxField(Field, tag="checkbox"):
    """Boolean field."""

    def init(self, id: str = "", args: Schema | None = None) -> Self:
        super().init(id, args)
        self.default = bool((args or {}).get("default", False))
        self.checked = self.default
        return self

    def get_value(self) -> bool:
        return self.checked

    def set_value(self, value: Any) -> None:
        self.checked = self.default if value is None else bool(value)


class ObjectField(Field, tag="object"):
    """Keyed group of child fields.

    The value is a dict holding the non-None values of the children, keyed by
    child id. Children may be literal schemas or ``$ref`` tokens.
    """

    def init(self, id: str = "", args: Schema | None = None) -> Self:
        super().init(id, args)
        self.children: dict[str, Field] = {}
        for key, schema in (args or {}).get("children", {}).items():
            self.children[key] = instantiate(key, schema, parent=self)
        return self

    def get_value(self) -> dict[str, Any]:
        value = {}
        for key, child in self.children.items():
            child_value = child.get_value()
            if child_value is not None:
                value[key] = child_value
        return value

    def set_value(self, value: Any) -> None:
        if value is None:
            value = {}
        if not isinstance(value, Mapping):
            msg = f"Field '{self.path}' expects a mapping, got {type(value).__name__}"
            raise TypeError(msg)
        applied: list[tuple[Field, Any]] = []
        try:
            for key, child in self.children.items():
                previous = child.get_value()
                child.set_value(value.get(key))
                applied.append((child, previous))
        except Exception:
            # Put back the children loaded before the failing one.
            for child, previous in reversed(applied):
                child.set_value(previous)
            raise

    def clone(self) -> Self:
        """Return a copy whose children are clones of this field's children."""
        field = self._blank()
        for key, child in self.children.items():
            field.children[key] = _adopt(child.clone(), field)
        return field


class ArrayField(Field, tag="array"):
    """Homogeneous list of fields built from the ``"item"`` schema."""

    def init(self, id: str = "", args: Schema | None = None) -> Self:
        super().init(id, args)
        self.item_schema: Schema = (args or {}).get("item", {"type": "text"})
        self.items: list[Field] = []
        return self

    def add_item(self) -> Field:
        """Append a new item built from the item schema and return it."""
        item = instantiate(str(len(self.items)), self.item_schema, parent=self)
        self.items.append(item)
        return item

    def remove_item(self, index: int) -> None:
        """Remove the item at ``index`` and renumber the rest."""
        del self.items[index]
        for position, item in enumerate(self.items):
            item.id = item.key = str(position)

    def get_value(self) -> list[Any]:
        return [item.get_value() for item in self.items]

    def set_value(self, value: Any) -> None:
        if value is None:
            value = []
        if isinstance(value, str | bytes) or not isinstance(value, Sequence):
            msg = f"Field '{self.path}' expects a list, got {type(value).__name__}"
            raise TypeError(msg)
        items = []
        for position, item_value in enumerate(value):
            item = instantiate(str(position), self.item_schema, parent=self)
            item.set_value(item_value)
            items.append(item)
        self.items = items

    def clone(self) -> Self:
        field = self._blank()
        field.items = [_adopt(item.clone(), field) for item in self.items]
        return field


def _adopt(child: Field, parent: Field) -> Field:
    child.parent = parent
    return child
