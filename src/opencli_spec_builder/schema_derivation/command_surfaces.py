"""Parameters and responses derived along the struct field path."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from opencli_spec_builder.attribute_overrides.override_directives import (
    CasingPolicy,
    DirectiveScope,
    OverrideDirective,
)
from opencli_spec_builder.attribute_overrides.override_resolver import (
    EffectiveAttributes,
    resolve_container,
    resolve_variant,
)
from opencli_spec_builder.derivation_failures import AttributeConflict, UnsupportedType
from opencli_spec_builder.document_assembly.document_models import (
    Arity,
    MediaType,
    Parameter,
    ParameterLocation,
    ParameterScope,
    Response,
)
from opencli_spec_builder.schema_management.schema_models import (
    ArraySchema,
    ObjectSchema,
    SchemaRef,
)
from opencli_spec_builder.type_descriptors.descriptor_models import (
    EnumDescriptor,
    FieldDescriptor,
    OptionalDescriptor,
    SequenceDescriptor,
    StructDescriptor,
    StructShape,
    TupleShape,
    TypeDescriptor,
    VariantDescriptor,
    identity_of,
)

from .derivation_engine import SchemaDeriver

DEFAULT_MEDIA_TYPE = "application/json"


def parameter_for(  # pylint: disable=too-many-arguments
    name: str,
    descriptor: TypeDescriptor,
    deriver: SchemaDeriver,
    *,
    location: ParameterLocation = ParameterLocation.OPTION,
    position: int | None = None,
    aliases: Iterable[str] = (),
    description: str | None = None,
    required: bool | None = None,
    scope: ParameterScope | None = None,
    directives: Iterable[OverrideDirective] = (),
) -> Parameter | None:
    """Derive one command parameter the way a struct field is derived.

    The parameter is required unless its type is optional, it carries a
    ``Default`` directive, or ``required`` says otherwise. Returns ``None``
    when a ``Skip`` directive removes it.
    """
    field = FieldDescriptor(
        name=name,
        descriptor=descriptor,
        directives=tuple(directives),
        description=description,
    )
    return _parameter_from_field(
        field,
        deriver,
        rename_all=None,
        location=location,
        position=position,
        aliases=tuple(aliases),
        required=required,
        scope=scope,
    )


def parameters_from_struct(
    descriptor: TypeDescriptor,
    deriver: SchemaDeriver,
    *,
    locations: Mapping[str, ParameterLocation] | None = None,
    scope: ParameterScope | None = None,
    first_position: int = 1,
) -> tuple[Parameter, ...]:
    """Flatten the fields of a struct into command parameters.

    Fields become options unless ``locations`` (keyed by declared field name)
    says otherwise. Arguments are numbered from ``first_position`` in field
    order.
    """
    struct = deriver.resolve_descriptor(descriptor)
    if not isinstance(struct, StructDescriptor):
        raise UnsupportedType(
            identity_of(struct), (str(identity_of(struct)),), "parameters need a struct"
        )
    container = resolve_container(
        struct.identity.base_name,
        struct.directives,
        scope=DirectiveScope.STRUCT,
        description=struct.description,
    )
    resolved_locations = locations or {}
    parameters: list[Parameter] = []
    next_position = first_position
    for field in struct.fields:
        location = resolved_locations.get(field.name, ParameterLocation.OPTION)
        parameter = _parameter_from_field(
            field,
            deriver,
            rename_all=container.rename_all,
            location=location,
            position=next_position if location is ParameterLocation.ARGUMENT else None,
            aliases=(),
            required=None,
            scope=scope,
            target=f"{struct.identity}.{field.name}",
        )
        if parameter is None:
            continue
        if parameter.location is ParameterLocation.ARGUMENT:
            next_position += 1
        parameters.append(parameter)
    return tuple(parameters)


def response_for(
    descriptor: TypeDescriptor | None,
    deriver: SchemaDeriver,
    *,
    description: str | None = None,
    media_type: str = DEFAULT_MEDIA_TYPE,
    example: Any = None,
) -> Response:
    """Derive a command response whose output has the shape of descriptor.

    Without a descriptor the response carries only its description. The
    description defaults to the doc comment of a named output type.
    """
    if descriptor is None:
        return Response(description=description)
    resolved = deriver.resolve_descriptor(descriptor)
    if description is None and isinstance(resolved, (StructDescriptor, EnumDescriptor)):
        description = resolved.description
    schema = deriver.derive(resolved)
    return Response(
        description=description,
        content={media_type: MediaType(schema=schema, example=example)},
    )


def responses_from_enum(
    descriptor: TypeDescriptor,
    deriver: SchemaDeriver,
    *,
    media_type: str = DEFAULT_MEDIA_TYPE,
) -> dict[str, Response]:
    """Derive one response per enum variant, keyed by the variant's exit code.

    Every kept variant needs a ``Status`` directive. The description comes from
    the variant's ``Description`` directive or its doc comment. Unit variants
    carry no content, a single-element tuple variant outputs its element and a
    struct variant outputs an object of its fields.
    """
    enum = deriver.resolve_descriptor(descriptor)
    if not isinstance(enum, EnumDescriptor):
        raise UnsupportedType(
            identity_of(enum), (str(identity_of(enum)),), "responses need an enum"
        )
    container = resolve_container(
        enum.identity.base_name,
        enum.directives,
        scope=DirectiveScope.ENUM,
        description=enum.description,
    )
    responses: dict[str, Response] = {}
    for variant in enum.variants:
        target = f"{enum.identity}::{variant.name}"
        attributes = resolve_variant(
            variant.name,
            variant.directives,
            container_rename_all=container.rename_all,
            description=variant.description,
            target=target,
        )
        if attributes.skip:
            continue
        if attributes.status is None:
            raise AttributeConflict(target, variant.directives, "response variants need a status")
        if attributes.status in responses:
            raise AttributeConflict(
                target, variant.directives, f"exit code {attributes.status} is already used"
            )
        schema = _variant_output(variant, attributes, deriver, target)
        content = (
            {media_type: MediaType(schema=schema, example=attributes.example)}
            if schema is not None
            else {}
        )
        responses[attributes.status] = Response(description=attributes.description, content=content)
    if not responses:
        raise UnsupportedType(enum.identity, (str(enum.identity),), "enum has no responses")
    return responses


def _variant_output(
    variant: VariantDescriptor,
    attributes: EffectiveAttributes,
    deriver: SchemaDeriver,
    target: str,
) -> SchemaRef | None:
    shape = variant.shape
    if isinstance(shape, StructShape):
        properties: dict[str, SchemaRef] = {}
        required: list[str] = []
        for field in shape.fields:
            field_target = f"{target}.{field.name}"
            field_attributes, schema = deriver.derive_field(
                field, rename_all=attributes.rename_all, target=field_target
            )
            if schema is None:
                continue
            if field_attributes.name in properties:
                raise AttributeConflict(
                    field_target,
                    field.directives,
                    f"property name '{field_attributes.name}' is already used",
                )
            properties[field_attributes.name] = schema
            if field_attributes.required:
                required.append(field_attributes.name)
        return ObjectSchema(properties=properties, required=tuple(required))
    if isinstance(shape, TupleShape) and shape.elements:
        if len(shape.elements) == 1:
            return deriver.derive(shape.elements[0])
        return ArraySchema(prefix_items=tuple(deriver.derive(item) for item in shape.elements))
    return None


def _parameter_from_field(  # pylint: disable=too-many-arguments
    field: FieldDescriptor,
    deriver: SchemaDeriver,
    *,
    rename_all: CasingPolicy | None,
    location: ParameterLocation,
    position: int | None,
    aliases: tuple[str, ...],
    required: bool | None,
    scope: ParameterScope | None,
    target: str | None = None,
) -> Parameter | None:
    attributes, schema = deriver.derive_field(field, rename_all=rename_all, target=target)
    if schema is None:
        return None
    is_required = attributes.required if required is None else required
    return Parameter(
        name=attributes.name,
        location=location,
        position=position,
        aliases=aliases,
        description=attributes.description,
        required=is_required,
        scope=scope,
        arity=_arity_of(deriver.resolve_descriptor(field.descriptor), is_required),
        schema=schema,
    )


def _arity_of(descriptor: TypeDescriptor, required: bool) -> Arity | None:
    if isinstance(descriptor, OptionalDescriptor):
        return _arity_of(descriptor.inner, required)
    if isinstance(descriptor, SequenceDescriptor):
        return Arity(min=1 if required else 0)
    return None
