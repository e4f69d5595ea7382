"""formDSL - Recursively nestable form field trees for Python 3.12+."""

from formdsl.errors import (
    CircularReference,
    FactoryFailure,
    FormError,
    ReferenceNotFound,
    UnknownVariant,
)
from formdsl.factory import (
    build,
    instantiate,
    is_reference,
)
from formdsl.fields import (
    ArrayField,
    CheckboxField,
    Field,
    NumberField,
    ObjectField,
    Schema,
    TextField,
)
from formdsl.form import Form
from formdsl.typefield import (
    TypeField,
    TypeFieldOptions,
)

__all__ = [
    # Fields
    "ArrayField",
    "CheckboxField",
    "CircularReference",
    # Errors
    "FactoryFailure",
    "Field",
    # Documents
    "Form",
    "FormError",
    "NumberField",
    "ObjectField",
    "ReferenceNotFound",
    "Schema",
    "TextField",
    # Variants
    "TypeField",
    "TypeFieldOptions",
    "UnknownVariant",
    # Construction
    "build",
    "instantiate",
    "is_reference",
]
