"""Resolution of ``$ref`` tokens against enclosing field definitions.

A field may register named schemas under ``"definitions"``. A reference is
resolved by walking from the referring field up through its parents, never
into children or siblings, and the first field defining the name wins.
Nothing is cached: every resolution copies the registered schema and builds a
fresh subtree, which is what makes self-referential schemas nest lazily.
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any

from formdsl.errors import CircularReference, FactoryFailure, ReferenceNotFound
from formdsl.factory import build, is_reference

if TYPE_CHECKING:
    from formdsl.fields import Field

logger = logging.getLogger(__name__)

_PREFIXES = ("#/definitions/", "#/$defs/")


def definition_name(token: str) -> str:
    """Strip a JSON pointer prefix from a reference token."""
    for prefix in _PREFIXES:
        if token.startswith(prefix):
            return token.removeprefix(prefix)
    return token


def lookup(start: Field, token: str) -> tuple[Field, dict[str, Any]]:
    """Find the field that defines ``token``.

    Returns:
        The defining field and a deep copy of the registered schema

    Raises:
        ReferenceNotFound: If no field up the parent chain defines ``token``

    """
    name = definition_name(token)
    searched: list[str] = []
    node: Field | None = start
    while node is not None:
        if name in node.definitions:
            return node, copy.deepcopy(dict(node.definitions[name]))
        searched.append(node.path or "<root>")
        node = node.parent
    raise ReferenceNotFound(token, searched)


def resolve(start: Field, token: str) -> Field:
    """Build a new field from the schema registered under ``token``.

    Raises:
        ReferenceNotFound: If no field up the parent chain defines ``token``
        CircularReference: If aliases among the definitions form a cycle
        FactoryFailure: If the registered schema cannot be built

    """
    owner, schema = lookup(start, token)
    name = definition_name(token)
    seen = {(owner, name)}
    chain = [token]
    while is_reference(schema):
        token = schema["$ref"]
        chain.append(token)
        owner, schema = lookup(owner, token)
        name = definition_name(token)
        if (owner, name) in seen:
            raise CircularReference(chain[0], chain)
        seen.add((owner, name))
    logger.debug("Resolved %r from definitions of %r", chain[0], owner.path or "<root>")
    field = build(name, schema, parent=owner)
    if field is None:
        raise FactoryFailure(name, schema)
    return field
