"""Format-agnostic schema values produced by derivation."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

COMPONENT_REF_PREFIX = "#/components/schemas/"


class SchemaType(str, Enum):
    """JSON-schema style value types."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True, kw_only=True)
class SchemaMetadata:
    """Annotations shared by every schema and reference."""

    description: str | None = None
    title: str | None = None
    deprecated: bool = False
    example: Any = None
    default: Any = None
    nullable: bool = False


@dataclass(frozen=True, kw_only=True)
class PrimitiveSchema(SchemaMetadata):  # pylint: disable=too-many-instance-attributes
    """Scalar value with an optional format hint and validation keywords.

    Numeric keywords apply to integer and number schemas, length and pattern
    keywords to string schemas.
    """

    schema_type: SchemaType
    format: str | None = None
    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: bool = False
    exclusive_maximum: bool = False
    multiple_of: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None


@dataclass(frozen=True, kw_only=True)
class ArraySchema(SchemaMetadata):
    """Homogeneous array (``items``) or fixed tuple (``prefix_items``)."""

    items: SchemaRef | None = None
    prefix_items: tuple[SchemaRef, ...] = ()
    min_items: int | None = None
    max_items: int | None = None

    @property
    def is_tuple(self) -> bool:
        """Return True when the array describes fixed positions."""
        return bool(self.prefix_items)


@dataclass(frozen=True, kw_only=True)
class ObjectSchema(SchemaMetadata):
    """Object with ordered properties and an ordered required set."""

    properties: Mapping[str, SchemaRef] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    additional_properties: SchemaRef | None = None

    def __post_init__(self) -> None:
        # Freeze a private copy so declaration order and contents cannot drift.
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))
        unknown = [name for name in self.required if name not in self.properties]
        if unknown:
            raise ValueError(f"Required names missing from properties: {unknown}")
        if len(set(self.required)) != len(self.required):
            raise ValueError(f"Duplicate required names: {list(self.required)}")


@dataclass(frozen=True, kw_only=True)
class EnumSchema(SchemaMetadata):
    """Closed set of string values."""

    values: tuple[str, ...]


@dataclass(frozen=True, kw_only=True)
class OneOfSchema(SchemaMetadata):
    """Exactly one of the listed alternatives."""

    variants: tuple[SchemaRef, ...]


@dataclass(frozen=True)
class Reference(SchemaMetadata):
    """Pointer to a named component.

    Annotations describe the use site, not the component, and render as
    siblings of ``$ref``.
    """

    name: str

    @property
    def ref_path(self) -> str:
        """Document-relative path of the referenced component."""
        return f"{COMPONENT_REF_PREFIX}{self.name}"


Schema = PrimitiveSchema | ArraySchema | ObjectSchema | EnumSchema | OneOfSchema
SchemaRef = Schema | Reference


def iter_references(schema: SchemaRef) -> Iterator[Reference]:
    """Yield every Reference reachable from schema without following components."""
    if isinstance(schema, Reference):
        yield schema
        return
    if isinstance(schema, ArraySchema):
        if schema.items is not None:
            yield from iter_references(schema.items)
        for element in schema.prefix_items:
            yield from iter_references(element)
    elif isinstance(schema, ObjectSchema):
        for child in schema.properties.values():
            yield from iter_references(child)
        if schema.additional_properties is not None:
            yield from iter_references(schema.additional_properties)
    elif isinstance(schema, OneOfSchema):
        for variant in schema.variants:
            yield from iter_references(variant)


def schema_to_canonical(schema: SchemaRef) -> dict[str, Any]:
    """Return a plain ordered mapping describing schema, used for rendering and fingerprints."""
    mapping: dict[str, Any] = {}
    if isinstance(schema, Reference):
        mapping["$ref"] = schema.ref_path
    elif isinstance(schema, PrimitiveSchema):
        mapping["type"] = schema.schema_type.value
        if schema.format:
            mapping["format"] = schema.format
        mapping.update(_primitive_constraints(schema))
    elif isinstance(schema, ArraySchema):
        mapping["type"] = SchemaType.ARRAY.value
        if schema.prefix_items:
            mapping["prefixItems"] = [schema_to_canonical(item) for item in schema.prefix_items]
            mapping["minItems"] = len(schema.prefix_items)
            mapping["maxItems"] = len(schema.prefix_items)
        if schema.items is not None:
            mapping["items"] = schema_to_canonical(schema.items)
        if schema.min_items is not None:
            mapping["minItems"] = schema.min_items
        if schema.max_items is not None:
            mapping["maxItems"] = schema.max_items
    elif isinstance(schema, ObjectSchema):
        mapping["type"] = SchemaType.OBJECT.value
        if schema.properties:
            mapping["properties"] = {
                name: schema_to_canonical(child) for name, child in schema.properties.items()
            }
        if schema.required:
            mapping["required"] = list(schema.required)
        if schema.additional_properties is not None:
            mapping["additionalProperties"] = schema_to_canonical(schema.additional_properties)
    elif isinstance(schema, EnumSchema):
        mapping["type"] = SchemaType.STRING.value
        mapping["enum"] = list(schema.values)
    elif isinstance(schema, OneOfSchema):
        mapping["oneOf"] = [schema_to_canonical(variant) for variant in schema.variants]
    else:
        raise TypeError(f"Not a schema: {schema!r}")

    if schema.title:
        mapping["title"] = schema.title
    if schema.description:
        mapping["description"] = schema.description
    if schema.nullable:
        mapping["nullable"] = True
    if schema.deprecated:
        mapping["deprecated"] = True
    if schema.default is not None:
        mapping["default"] = schema.default
    if schema.example is not None:
        mapping["example"] = schema.example
    return mapping


def _primitive_constraints(schema: PrimitiveSchema) -> dict[str, Any]:
    constraints: dict[str, Any] = {}
    if schema.minimum is not None:
        constraints["minimum"] = schema.minimum
        if schema.exclusive_minimum:
            constraints["exclusiveMinimum"] = True
    if schema.maximum is not None:
        constraints["maximum"] = schema.maximum
        if schema.exclusive_maximum:
            constraints["exclusiveMaximum"] = True
    if schema.multiple_of is not None:
        constraints["multipleOf"] = schema.multiple_of
    if schema.min_length is not None:
        constraints["minLength"] = schema.min_length
    if schema.max_length is not None:
        constraints["maxLength"] = schema.max_length
    if schema.pattern is not None:
        constraints["pattern"] = schema.pattern
    return constraints
