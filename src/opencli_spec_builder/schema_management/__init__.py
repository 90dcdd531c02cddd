"""Schema management exports."""

from .schema_fingerprint import schema_fingerprint
from .schema_models import (
    COMPONENT_REF_PREFIX,
    ArraySchema,
    EnumSchema,
    ObjectSchema,
    OneOfSchema,
    PrimitiveSchema,
    Reference,
    Schema,
    SchemaRef,
    SchemaType,
    iter_references,
    schema_to_canonical,
)

__all__ = [
    "COMPONENT_REF_PREFIX",
    "ArraySchema",
    "EnumSchema",
    "ObjectSchema",
    "OneOfSchema",
    "PrimitiveSchema",
    "Reference",
    "Schema",
    "SchemaRef",
    "SchemaType",
    "iter_references",
    "schema_fingerprint",
    "schema_to_canonical",
]
