"""Schema derivation service.

Walks a type descriptor and produces a schema, consulting the attribute
override resolver for names and metadata and the component registry for named
types. Structs and data-carrying enums always become components and are
returned as references; everything else is inlined.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Mapping, Sequence

from opencli_spec_builder.attribute_overrides.override_directives import (
    CasingPolicy,
    Constraint,
    ConstraintKind,
    DirectiveScope,
    Format,
)
from opencli_spec_builder.attribute_overrides.override_resolver import (
    DEFAULT_DISCRIMINATOR_PROPERTY,
    EffectiveAttributes,
    resolve_container,
    resolve_field,
    resolve_variant,
)
from opencli_spec_builder.component_registry.component_registry import ComponentRegistry
from opencli_spec_builder.derivation_failures import (
    AttributeConflict,
    MissingDescriptor,
    UnsupportedType,
)
from opencli_spec_builder.schema_management.schema_models import (
    ArraySchema,
    EnumSchema,
    ObjectSchema,
    OneOfSchema,
    PrimitiveSchema,
    Reference,
    SchemaRef,
    SchemaType,
)
from opencli_spec_builder.type_descriptors.descriptor_models import (
    DescriptorResolver,
    EnumDescriptor,
    FieldDescriptor,
    MapDescriptor,
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

_LOGGER = logging.getLogger("opencli_spec_builder.derivation")
_LOGGER.addHandler(logging.NullHandler())

_PRIMITIVE_SCHEMAS: Mapping[PrimitiveKind, tuple[SchemaType, str | None]] = {
    PrimitiveKind.BOOL: (SchemaType.BOOLEAN, None),
    PrimitiveKind.STRING: (SchemaType.STRING, None),
    PrimitiveKind.CHAR: (SchemaType.STRING, None),
    PrimitiveKind.I8: (SchemaType.INTEGER, None),
    PrimitiveKind.I16: (SchemaType.INTEGER, None),
    PrimitiveKind.I32: (SchemaType.INTEGER, "int32"),
    PrimitiveKind.I64: (SchemaType.INTEGER, "int64"),
    PrimitiveKind.I128: (SchemaType.INTEGER, None),
    PrimitiveKind.ISIZE: (SchemaType.INTEGER, None),
    PrimitiveKind.U8: (SchemaType.INTEGER, None),
    PrimitiveKind.U16: (SchemaType.INTEGER, None),
    PrimitiveKind.U32: (SchemaType.INTEGER, "int32"),
    PrimitiveKind.U64: (SchemaType.INTEGER, "int64"),
    PrimitiveKind.U128: (SchemaType.INTEGER, None),
    PrimitiveKind.USIZE: (SchemaType.INTEGER, None),
    PrimitiveKind.F32: (SchemaType.NUMBER, "float"),
    PrimitiveKind.F64: (SchemaType.NUMBER, "double"),
    PrimitiveKind.PATH: (SchemaType.STRING, "path"),
    PrimitiveKind.URI: (SchemaType.STRING, "uri"),
    PrimitiveKind.DATE: (SchemaType.STRING, "date"),
    PrimitiveKind.DATE_TIME: (SchemaType.STRING, "date-time"),
    PrimitiveKind.UUID: (SchemaType.STRING, "uuid"),
}

_MAP_KEY_TYPES = frozenset({SchemaType.STRING, SchemaType.INTEGER})
_NUMERIC_TYPES = frozenset({SchemaType.INTEGER, SchemaType.NUMBER})
_NUMERIC_CONSTRAINTS = frozenset(
    {
        ConstraintKind.MINIMUM,
        ConstraintKind.MAXIMUM,
        ConstraintKind.EXCLUSIVE_MINIMUM,
        ConstraintKind.EXCLUSIVE_MAXIMUM,
        ConstraintKind.MULTIPLE_OF,
    }
)
_STRING_CONSTRAINTS = frozenset(
    {ConstraintKind.MIN_LENGTH, ConstraintKind.MAX_LENGTH, ConstraintKind.PATTERN}
)

Path = tuple[str, ...]


def primitive_schema(kind: PrimitiveKind) -> PrimitiveSchema:
    """Return the inline schema of a primitive kind."""
    schema_type, fmt = _PRIMITIVE_SCHEMAS[kind]
    return PrimitiveSchema(schema_type=schema_type, format=fmt)


class SchemaDeriver:
    """Derives schemas into one shared component registry.

    Args:
      registry: Registry receiving every named component.
      resolver: Looks up descriptors behind ``TypeReference`` nodes. Without a
        resolver every reference fails with ``MissingDescriptor``.
    """

    def __init__(
        self, registry: ComponentRegistry, resolver: DescriptorResolver | None = None
    ) -> None:
        self._registry = registry
        self._resolver = resolver

    @property
    def registry(self) -> ComponentRegistry:
        """Registry the deriver populates."""
        return self._registry

    def derive(self, descriptor: TypeDescriptor) -> SchemaRef:
        """Return the schema of descriptor, registering named components on the way."""
        root = str(identity_of(descriptor))
        _LOGGER.debug("Deriving schema of %s", root)
        return self._derive(descriptor, (root,))

    def derive_field(
        self,
        field: FieldDescriptor,
        *,
        rename_all: CasingPolicy | None = None,
        target: str | None = None,
    ) -> tuple[EffectiveAttributes, SchemaRef | None]:
        """Resolve one field and derive its annotated schema.

        Returns the effective attributes and the schema, or ``None`` as the
        schema when the field is skipped.
        """
        return self._derive_field(field, rename_all, (field.name,), target or field.name)

    def resolve_descriptor(self, descriptor: TypeDescriptor) -> TypeDescriptor:
        """Follow type references until a structural descriptor is reached."""
        while isinstance(descriptor, TypeReference):
            descriptor = self._resolve(descriptor.identity, (str(descriptor.identity),))
        return descriptor

    def _derive(self, descriptor: TypeDescriptor, path: Path) -> SchemaRef:
        if isinstance(descriptor, TypeReference):
            return self._derive(self._resolve(descriptor.identity, path), path)
        if isinstance(descriptor, PrimitiveDescriptor):
            return primitive_schema(descriptor.kind)
        if isinstance(descriptor, OptionalDescriptor):
            return self._derive(descriptor.inner, path)
        if isinstance(descriptor, SequenceDescriptor):
            return ArraySchema(items=self._derive(descriptor.inner, (*path, "[]")))
        if isinstance(descriptor, MapDescriptor):
            self._check_map_key(descriptor.key, path)
            return ObjectSchema(additional_properties=self._derive(descriptor.value, (*path, "{}")))
        if isinstance(descriptor, TupleDescriptor):
            if not descriptor.elements:
                raise UnsupportedType(identity_of(descriptor), path, "empty tuples have no schema")
            return ArraySchema(prefix_items=self._derive_elements(descriptor.elements, path))
        if isinstance(descriptor, StructDescriptor):
            return self._derive_struct(descriptor, path)
        if isinstance(descriptor, EnumDescriptor):
            return self._derive_enum(descriptor, path)
        if isinstance(descriptor, OpaqueDescriptor):
            raise UnsupportedType(descriptor.identity, path, "opaque types have no structure")
        raise UnsupportedType(type(descriptor).__name__, path, "not a type descriptor")

    def _resolve(self, identity: TypeIdentity, path: Path) -> TypeDescriptor:
        resolved = self._resolver.resolve(identity) if self._resolver is not None else None
        if resolved is None:
            raise MissingDescriptor(identity, path)
        return resolved

    def _derive_elements(
        self, elements: Sequence[TypeDescriptor], path: Path
    ) -> tuple[SchemaRef, ...]:
        return tuple(
            self._derive(element, (*path, str(position)))
            for position, element in enumerate(elements)
        )

    def _check_map_key(self, key: TypeDescriptor, path: Path) -> None:
        while isinstance(key, TypeReference):
            key = self._resolve(key.identity, path)
        if isinstance(key, PrimitiveDescriptor):
            if primitive_schema(key.kind).schema_type in _MAP_KEY_TYPES:
                return
        elif isinstance(key, EnumDescriptor):
            if all(isinstance(variant.shape, UnitShape) for variant in key.variants):
                return
        raise UnsupportedType(
            identity_of(key),
            (*path, "{}"),
            "map keys must be strings, integers or unit-only enums",
        )

    def _component_name(self, identity: TypeIdentity, container: EffectiveAttributes) -> str:
        if container.name != identity.base_name:
            return self._registry.name_for(
                TypeIdentity(container.name, identity.generic_arguments)
            )
        return self._registry.name_for(identity)

    def _register(
        self, name: str, identity: TypeIdentity, build: Callable[[], SchemaRef]
    ) -> Reference:
        outcome = self._registry.reserve(name, identity)
        if isinstance(outcome, Reference):
            return outcome
        try:
            body = build()
            self._registry.finalize(name, body, identity)
        except Exception:
            self._registry.release(outcome)
            raise
        return Reference(name)

    def _derive_struct(self, descriptor: StructDescriptor, path: Path) -> Reference:
        identity = descriptor.identity
        container = resolve_container(
            identity.base_name,
            descriptor.directives,
            scope=DirectiveScope.STRUCT,
            description=descriptor.description,
        )
        name = self._component_name(identity, container)

        def build() -> SchemaRef:
            properties, required = self._derive_fields(
                descriptor.fields, container.rename_all, path, str(identity)
            )
            return ObjectSchema(
                properties=properties, required=required, **_container_metadata(container)
            )

        return self._register(name, identity, build)

    def _derive_fields(
        self,
        fields: Sequence[FieldDescriptor],
        rename_all: CasingPolicy | None,
        path: Path,
        owner: str,
        reserved: Sequence[str] = (),
    ) -> tuple[dict[str, SchemaRef], tuple[str, ...]]:
        properties: dict[str, SchemaRef] = {}
        required: list[str] = []
        for field in fields:
            target = f"{owner}.{field.name}"
            attributes, schema = self._derive_field(field, rename_all, (*path, field.name), target)
            if schema is None:
                continue
            if attributes.name in properties or attributes.name in reserved:
                raise AttributeConflict(
                    target, field.directives, f"property name '{attributes.name}' is already used"
                )
            properties[attributes.name] = schema
            if attributes.required:
                required.append(attributes.name)
        return properties, tuple(required)

    def _derive_field(
        self,
        field: FieldDescriptor,
        rename_all: CasingPolicy | None,
        path: Path,
        target: str,
    ) -> tuple[EffectiveAttributes, SchemaRef | None]:
        attributes = resolve_field(
            field.name,
            field.directives,
            container_rename_all=rename_all,
            is_optional=field.is_optional or isinstance(field.descriptor, OptionalDescriptor),
            description=field.description,
            target=target,
        )
        if attributes.skip:
            return attributes, None
        schema = self._derive(field.descriptor, path)
        return attributes, annotate_schema(schema, attributes, target)

    def _derive_enum(self, descriptor: EnumDescriptor, path: Path) -> SchemaRef:
        identity = descriptor.identity
        container = resolve_container(
            identity.base_name,
            descriptor.directives,
            scope=DirectiveScope.ENUM,
            description=descriptor.description,
        )
        variants: list[tuple[VariantDescriptor, EffectiveAttributes]] = []
        for variant in descriptor.variants:
            attributes = resolve_variant(
                variant.name,
                variant.directives,
                container_rename_all=container.rename_all,
                description=variant.description,
                target=f"{identity}::{variant.name}",
            )
            if attributes.skip:
                continue
            if any(attributes.name == kept.name for _, kept in variants):
                raise AttributeConflict(
                    f"{identity}::{variant.name}",
                    variant.directives,
                    f"variant name '{attributes.name}' is already used",
                )
            variants.append((variant, attributes))
        if not variants:
            raise UnsupportedType(identity, path, "enum has no variants to represent")

        if all(_is_unit(variant) for variant, _ in variants):
            return EnumSchema(
                values=tuple(attributes.name for _, attributes in variants),
                **_container_metadata(container),
            )

        tag = container.tag or DEFAULT_DISCRIMINATOR_PROPERTY
        name = self._component_name(identity, container)

        def build() -> SchemaRef:
            alternatives = tuple(
                self._derive_variant(variant, attributes, tag, (*path, variant.name), identity)
                for variant, attributes in variants
            )
            return OneOfSchema(variants=alternatives, **_container_metadata(container))

        return self._register(name, identity, build)

    def _derive_variant(
        self,
        variant: VariantDescriptor,
        attributes: EffectiveAttributes,
        tag: str,
        path: Path,
        owner: TypeIdentity,
    ) -> SchemaRef:
        metadata = _container_metadata(attributes)
        shape = variant.shape
        if _is_unit(variant):
            return EnumSchema(values=(attributes.name,), **metadata)
        if isinstance(shape, TupleShape):
            if len(shape.elements) == 1:
                element = self._derive(shape.elements[0], (*path, "0"))
                return annotate_schema(element, attributes, f"{owner}::{variant.name}")
            return ArraySchema(prefix_items=self._derive_elements(shape.elements, path), **metadata)
        if isinstance(shape, StructShape):
            properties, required = self._derive_fields(
                shape.fields,
                attributes.rename_all,
                path,
                f"{owner}::{variant.name}",
                reserved=(tag,),
            )
            return ObjectSchema(
                properties={tag: EnumSchema(values=(attributes.name,)), **properties},
                required=(tag, *required),
                **metadata,
            )
        raise UnsupportedType(owner, path, f"unknown variant shape {type(shape).__name__}")


def derive_schema(
    descriptor: TypeDescriptor,
    registry: ComponentRegistry,
    resolver: DescriptorResolver | None = None,
) -> SchemaRef:
    """Derive descriptor into registry and return its schema or reference."""
    return SchemaDeriver(registry, resolver).derive(descriptor)


def annotate_schema(schema: SchemaRef, attributes: EffectiveAttributes, target: str) -> SchemaRef:
    """Apply field or variant level metadata to a derived schema.

    On a reference the annotations describe the use site and stay beside the
    reference. Format hints and validation keywords must fit the schema they
    land on, otherwise the field is an ``AttributeConflict``.
    """
    if attributes.format is not None and not isinstance(schema, PrimitiveSchema):
        raise AttributeConflict(
            target, [Format(attributes.format)], "format hints apply to primitive schemas only"
        )

    changes: dict[str, object] = {}
    if attributes.format is not None:
        changes["format"] = attributes.format
    if attributes.description is not None:
        changes["description"] = attributes.description
    if attributes.title is not None:
        changes["title"] = attributes.title
    if attributes.deprecated:
        changes["deprecated"] = True
    if attributes.example is not None:
        changes["example"] = attributes.example
    if attributes.has_default:
        changes["default"] = attributes.default
    for constraint in attributes.constraints:
        _check_constraint(schema, constraint, target)
        changes[constraint.kind.value] = constraint.value
    return dataclasses.replace(schema, **changes) if changes else schema


def _check_constraint(schema: SchemaRef, constraint: Constraint, target: str) -> None:
    kind = constraint.kind
    if kind is ConstraintKind.NULLABLE:
        return
    if kind in _NUMERIC_CONSTRAINTS:
        fits = isinstance(schema, PrimitiveSchema) and schema.schema_type in _NUMERIC_TYPES
        expected = "integer and number"
    elif kind in _STRING_CONSTRAINTS:
        fits = isinstance(schema, PrimitiveSchema) and schema.schema_type is SchemaType.STRING
        expected = "string"
    else:
        fits = isinstance(schema, ArraySchema) and not schema.is_tuple
        expected = "sequence"
    if not fits:
        raise AttributeConflict(
            target, [constraint], f"{kind.value} applies to {expected} schemas only"
        )


def _container_metadata(attributes: EffectiveAttributes) -> dict[str, object]:
    return {
        "description": attributes.description,
        "title": attributes.title,
        "deprecated": attributes.deprecated,
        "example": attributes.example,
    }


def _is_unit(variant: VariantDescriptor) -> bool:
    shape = variant.shape
    return isinstance(shape, UnitShape) or (isinstance(shape, TupleShape) and not shape.elements)
