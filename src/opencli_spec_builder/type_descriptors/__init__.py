"""Type descriptor exports."""

from .descriptor_catalog import (
    DescriptorCatalog,
    DescriptorCatalogError,
    load_descriptor_catalog,
    parse_directives,
    plain_value,
)
from .descriptor_models import (
    DescriptorResolver,
    EnumDescriptor,
    FieldDescriptor,
    MapDescriptor,
    NamedDescriptor,
    OpaqueDescriptor,
    OptionalDescriptor,
    PrimitiveDescriptor,
    PrimitiveKind,
    SequenceDescriptor,
    StructDescriptor,
    StructShape,
    TupleDescriptor,
    TupleShape,
    TypeDescriptor,
    TypeIdentity,
    TypeReference,
    UnitShape,
    VariantDescriptor,
    identity_of,
)
from .type_expressions import (
    NamedExpression,
    TupleExpression,
    TypeExpression,
    TypeExpressionError,
    parse_type_expression,
)

__all__ = [
    "DescriptorCatalog",
    "DescriptorCatalogError",
    "load_descriptor_catalog",
    "parse_directives",
    "plain_value",
    "DescriptorResolver",
    "EnumDescriptor",
    "FieldDescriptor",
    "MapDescriptor",
    "NamedDescriptor",
    "OpaqueDescriptor",
    "OptionalDescriptor",
    "PrimitiveDescriptor",
    "PrimitiveKind",
    "SequenceDescriptor",
    "StructDescriptor",
    "StructShape",
    "TupleDescriptor",
    "TupleShape",
    "TypeDescriptor",
    "TypeIdentity",
    "TypeReference",
    "UnitShape",
    "VariantDescriptor",
    "identity_of",
    "NamedExpression",
    "TupleExpression",
    "TypeExpression",
    "TypeExpressionError",
    "parse_type_expression",
]
