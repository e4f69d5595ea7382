"""Errors raised while assembling and switching form field trees."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

# Constant for error message truncation
_MAX_AVAILABLE_SHOWN = 10


def _shown(names: Iterable[str]) -> str:
    names = list(names)
    suffix = "..." if len(names) > _MAX_AVAILABLE_SHOWN else ""
    return f"{names[:_MAX_AVAILABLE_SHOWN]}{suffix}"


class FormError(Exception):
    """Base class for form tree errors."""


class ReferenceNotFound(FormError, KeyError):
    """A ``$ref`` token is not registered on any ancestor field."""

    def __init__(self, token: str, searched: Iterable[str] = ()) -> None:
        self.token = token
        self.searched = tuple(searched)
        msg = (
            f"Reference '{token}' not found in any enclosing definitions. "
            f"Searched fields: {_shown(self.searched)}"
        )
        super().__init__(msg)

    def __str__(self) -> str:
        return str(self.args[0])


class CircularReference(ReferenceNotFound):
    """A chain of ``$ref`` aliases leads back to itself."""

    def __init__(self, token: str, chain: Iterable[str] = ()) -> None:
        super().__init__(token)
        self.chain = tuple(chain)
        msg = f"Reference '{token}' is circular: {' -> '.join(self.chain)}"
        self.args = (msg,)


class UnknownVariant(FormError, KeyError):
    """A type field was asked to select a variant it does not offer."""

    def __init__(self, variant: str, available: Iterable[str] = ()) -> None:
        self.variant = variant
        self.available = tuple(available)
        msg = f"Unknown variant '{variant}'. Available variants: {_shown(self.available)}"
        super().__init__(msg)

    def __str__(self) -> str:
        return str(self.args[0])


class FactoryFailure(FormError, ValueError):
    """The factory produced no field for a schema."""

    def __init__(self, name: str, schema: Mapping[str, Any] | Any) -> None:
        self.name = name
        self.schema = schema
        kind = schema.get("type") if isinstance(schema, Mapping) else None
        msg = f"Cannot build field '{name}' from schema with type {kind!r}"
        super().__init__(msg)
