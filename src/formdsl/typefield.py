"""Type field: a field whose child shape follows a selected variant."""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Self

from formdsl.errors import UnknownVariant
from formdsl.factory import instantiate
from formdsl.fields import Field, Schema

logger = logging.getLogger(__name__)

_VALUE_KEY = "value"
_TYPE_KEY = "type"
_DEFAULT_TYPES: dict[str, Schema] = {"null": {"type": "text"}}

# Schema key -> TypeFieldOptions attribute
_OPTION_KEYS = {
    "valueKey": "value_key",
    "externalKey": "external_key",
    "externalKeyPlaceholder": "external_key_placeholder",
    "showTypeTag": "show_type_tag",
    "copyValueOnSwitch": "copy_value_on_switch",
    "types": "types",
    "defaultType": "default_type",
}


def _default_types() -> dict[str, Schema]:
    return copy.deepcopy(_DEFAULT_TYPES)


@dataclass(frozen=True)
class TypeFieldOptions:
    """Options of a type field, read from its schema.

    Attributes:
        value_key: Key the child value is wrapped under (``"value"`` if empty)
        external_key: Key that receives the field's own key in the value
        external_key_placeholder: Prompt shown by editors for the key
        show_type_tag: Whether the variant name is stored under ``"type"``
        copy_value_on_switch: Whether switching variants carries the value over
        types: Candidate variant schemas, in presentation order
        default_type: Variant selected at initialisation

    """

    value_key: str = ""
    external_key: str = ""
    external_key_placeholder: str = "Object key..."
    show_type_tag: bool = True
    copy_value_on_switch: bool = False
    types: Mapping[str, Schema] = field(default_factory=_default_types)
    default_type: str = ""

    @classmethod
    def from_schema(cls, args: Mapping[str, Any]) -> TypeFieldOptions:
        """Read options from schema keys; unknown keys are ignored."""
        kwargs = {attr: args[key] for key, attr in _OPTION_KEYS.items() if key in args}
        if not kwargs.get("types"):
            kwargs["types"] = _default_types()
        return cls(**kwargs)


class TypeField(Field, tag="typefield"):
    """Field that shows a different child depending on the chosen variant.

    Each variant maps to a schema, either literal or a ``$ref`` token resolved
    against enclosing definitions. The child is rebuilt whenever the selected
    variant changes, so references nest lazily and may refer back to the
    type field itself.

    The value of a type field is the child's value, wrapped under
    ``value_key`` (or ``"value"``) when:
      a) ``value_key`` is set, or
      b) the child value is not a mapping and either ``external_key`` or
         ``show_type_tag`` is set.
    The selected variant is added under ``"type"`` when ``show_type_tag`` is
    set, and the field's key under ``external_key`` when that is set.
    """

    def __init__(self) -> None:
        super().__init__()
        self.child: Field | None = None
        self.types: dict[str, Schema] = {}
        self._selected_type = ""

    def init(self, id: str = "", args: Schema | None = None) -> Self:
        self._configure(id, args)
        self._switch(self._initial_type)
        return self

    def _configure(self, id: str, args: Schema | None) -> None:
        """Apply the schema without building a child."""
        super().init(id, args)
        options = TypeFieldOptions.from_schema(args or {})
        self.value_key = options.value_key
        self.external_key = options.external_key
        self.external_key_placeholder = options.external_key_placeholder
        self.show_type_tag = options.show_type_tag
        self.copy_value_on_switch = options.copy_value_on_switch
        self.types = dict(options.types)

        if options.default_type in self.types:
            self._initial_type = options.default_type
        else:
            self._initial_type = next(iter(self.types))

    @property
    def selected_type(self) -> str:
        """Name of the selected variant. Assigning switches the child."""
        return self._selected_type

    @selected_type.setter
    def selected_type(self, new_type: str) -> None:
        self._switch(new_type)

    @property
    def possible_types(self) -> tuple[str, ...]:
        """Names of the selectable variants, in schema order."""
        return tuple(self.types)

    def set_type(self, new_type: str) -> None:
        self.selected_type = new_type

    def get_type(self) -> str:
        return self.selected_type

    def _switch(self, new_type: str) -> None:
        """Replace the child with one built for ``new_type``.

        The previous child and variant stay in place if the variant is
        unknown, cannot be built, or rejects the carried-over value.

        Raises:
            UnknownVariant: If ``new_type`` is not one of the variants
            ReferenceNotFound: If the variant's reference cannot be resolved
            FactoryFailure: If the variant's schema cannot be built

        """
        if new_type not in self.types:
            raise UnknownVariant(new_type, self.types)

        snapshot = self.get_value() if self.copy_value_on_switch else None
        child = instantiate(new_type, self.types[new_type], parent=self)
        child.parent = self
        if snapshot is not None:
            self._transplant(child, snapshot)

        logger.debug(
            "Switched %r from %r to %r",
            self.path,
            self._selected_type or None,
            new_type,
        )
        self.child = child
        self._selected_type = new_type

    def _wraps(self, raw: Any) -> bool:
        """Whether a child value ``raw`` is encoded under the value key."""
        if self.value_key:
            return True
        return not isinstance(raw, Mapping) and bool(self.external_key or self.show_type_tag)

    def _tag_keys(self) -> set[str]:
        keys = {self.external_key} if self.external_key else set()
        if self.show_type_tag:
            keys.add(_TYPE_KEY)
        return keys

    def get_value(self) -> Any:
        if self.child is None:
            return None
        raw = self.child.get_value()
        if raw is None:
            return None

        if self._wraps(raw):
            value = {self.value_key or _VALUE_KEY: raw}
        elif isinstance(raw, Mapping):
            value = dict(raw)
        else:
            return raw

        if self.external_key:
            value[self.external_key] = self.key
        if self.show_type_tag:
            value[_TYPE_KEY] = self._selected_type
        return value

    def set_value(self, value: Any) -> None:
        """Load a value produced by ``get_value`` for the selected variant.

        The wrap decision is made the way ``get_value`` makes it, from the
        shape of the child's current value. A child without a value has no
        shape, so a mapping holding nothing but the value key and tag entries
        is taken to be wrapped. The caller's mapping is never modified.
        """
        if self.child is None:
            msg = f"Type field '{self.path}' has not been initialised"
            raise RuntimeError(msg)
        tag_keys = self._tag_keys()
        raw = self.child.get_value()
        if raw is None and isinstance(value, Mapping):
            envelope = tag_keys | {self.value_key or _VALUE_KEY}
            wrapped = self._wraps(raw) and (bool(self.value_key) or set(value) <= envelope)
        else:
            wrapped = self._wraps(raw)

        if wrapped:
            payload = value.get(self.value_key or _VALUE_KEY) if isinstance(value, Mapping) else None
        elif isinstance(value, Mapping) and tag_keys:
            payload = {k: v for k, v in value.items() if k not in tag_keys}
        else:
            payload = value
        self.child.set_value(payload)

    def _transplant(self, child: Field, value: Any) -> None:
        """Hand the previous variant's value to a new child, best effort.

        Only the type entry is dropped; nothing is unwrapped or reshaped.
        """
        if not self.show_type_tag:
            child.set_value(value)
        elif isinstance(value, Mapping):
            child.set_value({k: v for k, v in value.items() if k != _TYPE_KEY})
        else:
            child.set_value(None)

    def clone(self) -> Self:
        """Return a copy with the same variant selected and a cloned child."""
        twin = type(self)()
        twin.parent = self.parent
        twin._configure(self.id, copy.deepcopy(self.schema))
        twin.key = self.key
        if self.child is not None:
            twin.child = self.child.clone()
            twin.child.parent = twin
            twin._selected_type = self._selected_type
        return twin
