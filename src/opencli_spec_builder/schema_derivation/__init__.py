"""Schema derivation exports."""

from .command_surfaces import (
    DEFAULT_MEDIA_TYPE,
    parameter_for,
    parameters_from_struct,
    response_for,
    responses_from_enum,
)
from .derivation_engine import SchemaDeriver, annotate_schema, derive_schema, primitive_schema

__all__ = [
    "DEFAULT_MEDIA_TYPE",
    "SchemaDeriver",
    "annotate_schema",
    "derive_schema",
    "parameter_for",
    "parameters_from_struct",
    "primitive_schema",
    "response_for",
    "responses_from_enum",
]
