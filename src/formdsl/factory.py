"""Construction of fields from schema descriptors."""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from formdsl.errors import FactoryFailure

if TYPE_CHECKING:
    from formdsl.fields import Field

logger = logging.getLogger(__name__)

_REF_KEY = "$ref"
_TYPE_KEY = "type"


def is_reference(schema: Any) -> bool:
    """Check if a schema descriptor is a ``{"$ref": token}`` reference."""
    return isinstance(schema, Mapping) and _REF_KEY in schema


def build(
    name: str,
    schema: Mapping[str, Any],
    *,
    parent: Field | None = None,
) -> Field | None:
    """Build a field from a literal schema.

    The schema is handed to the field as given, so callers pass a copy they
    no longer need. ``parent`` is assigned before the field initialises, which
    lets references inside the new subtree resolve while it is being built.

    Args:
        name: Id of the new field
        schema: Schema mapping with a ``"type"`` entry naming a registered field
        parent: Enclosing field, if any

    Returns:
        The initialised field, or None if the schema names no registered type

    """
    from formdsl.fields import Field

    if not isinstance(schema, Mapping):
        logger.warning("Schema for field %r is not a mapping: %r", name, schema)
        return None
    tag = schema.get(_TYPE_KEY)
    field_cls = Field.registry.get(tag) if isinstance(tag, str) else None
    if field_cls is None:
        logger.warning("No field type registered for %r (field %r)", tag, name)
        return None

    field = field_cls()
    field.parent = parent
    return field.init(name, schema)


def instantiate(name: str, schema: Mapping[str, Any], *, parent: Field) -> Field:
    """Turn a schema descriptor into a new child of ``parent``.

    References are resolved from ``parent`` upwards and the result is cloned,
    so every instantiation of the same token yields its own subtree. Literal
    schemas are deep-copied before they reach the factory.

    Raises:
        ReferenceNotFound: If a reference cannot be resolved
        FactoryFailure: If no field could be built

    """
    if is_reference(schema):
        child = parent.resolve_ref(schema[_REF_KEY]).clone()
    else:
        child = build(name, copy.deepcopy(schema), parent=parent)
        if child is None:
            raise FactoryFailure(name, schema)
    child.id = child.key = name
    child.parent = parent
    return child
