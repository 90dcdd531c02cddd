"""Structural type descriptors consumed by the schema derivation engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from opencli_spec_builder.attribute_overrides.override_directives import OverrideDirective


class PrimitiveKind(str, Enum):
    """Primitive value kinds a descriptor can name."""

    BOOL = "bool"
    STRING = "string"
    CHAR = "char"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    I128 = "i128"
    ISIZE = "isize"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"
    USIZE = "usize"
    F32 = "f32"
    F64 = "f64"
    PATH = "path"
    URI = "uri"
    DATE = "date"
    DATE_TIME = "date-time"
    UUID = "uuid"


@dataclass(frozen=True)
class TypeIdentity:
    """Qualified name plus ordered generic argument identities."""

    qualified_name: str
    generic_arguments: tuple[TypeIdentity, ...] = ()

    @property
    def base_name(self) -> str:
        """Last segment of the qualified name."""
        for separator in ("::", "."):
            if separator in self.qualified_name:
                return self.qualified_name.rsplit(separator, 1)[-1]
        return self.qualified_name

    def __str__(self) -> str:
        if not self.generic_arguments:
            return self.qualified_name
        rendered = ", ".join(str(argument) for argument in self.generic_arguments)
        return f"{self.qualified_name}<{rendered}>"


@dataclass(frozen=True)
class PrimitiveDescriptor:
    """Primitive value."""

    kind: PrimitiveKind


@dataclass(frozen=True)
class OptionalDescriptor:
    """Value that may be absent."""

    inner: TypeDescriptor


@dataclass(frozen=True)
class SequenceDescriptor:
    """Homogeneous ordered collection."""

    inner: TypeDescriptor


@dataclass(frozen=True)
class MapDescriptor:
    """Key/value mapping."""

    key: TypeDescriptor
    value: TypeDescriptor


@dataclass(frozen=True)
class TupleDescriptor:
    """Fixed-length heterogeneous sequence."""

    elements: tuple[TypeDescriptor, ...]


@dataclass(frozen=True)
class FieldDescriptor:
    """Named member of a struct or struct-shaped variant."""

    name: str
    descriptor: TypeDescriptor
    directives: tuple[OverrideDirective, ...] = ()
    is_optional: bool = False
    description: str | None = None


@dataclass(frozen=True)
class StructDescriptor:
    """Named record with ordered fields."""

    identity: TypeIdentity
    fields: tuple[FieldDescriptor, ...]
    directives: tuple[OverrideDirective, ...] = ()
    description: str | None = None


@dataclass(frozen=True)
class UnitShape:
    """Variant without payload."""


@dataclass(frozen=True)
class TupleShape:
    """Variant carrying positional elements."""

    elements: tuple[TypeDescriptor, ...]


@dataclass(frozen=True)
class StructShape:
    """Variant carrying named fields."""

    fields: tuple[FieldDescriptor, ...]


VariantShape = UnitShape | TupleShape | StructShape


@dataclass(frozen=True)
class VariantDescriptor:
    """One alternative of an enum."""

    name: str
    shape: VariantShape = UnitShape()
    directives: tuple[OverrideDirective, ...] = ()
    description: str | None = None


@dataclass(frozen=True)
class EnumDescriptor:
    """Named sum type with ordered variants."""

    identity: TypeIdentity
    variants: tuple[VariantDescriptor, ...]
    directives: tuple[OverrideDirective, ...] = ()
    description: str | None = None


@dataclass(frozen=True)
class TypeReference:
    """By-name pointer to a nameable type resolved through a descriptor resolver."""

    identity: TypeIdentity


@dataclass(frozen=True)
class OpaqueDescriptor:
    """External type the front end could not describe structurally."""

    identity: TypeIdentity


TypeDescriptor = (
    PrimitiveDescriptor
    | OptionalDescriptor
    | SequenceDescriptor
    | MapDescriptor
    | TupleDescriptor
    | StructDescriptor
    | EnumDescriptor
    | TypeReference
    | OpaqueDescriptor
)

NamedDescriptor = StructDescriptor | EnumDescriptor


class DescriptorResolver(Protocol):
    """Looks up the descriptor of a nameable type by identity."""

    def resolve(self, identity: TypeIdentity) -> NamedDescriptor | None:
        """Return the descriptor for identity, or None when unknown."""


def identity_of(descriptor: TypeDescriptor) -> TypeIdentity:
    """Return a stable identity for any descriptor, nameable or not."""
    if isinstance(descriptor, (StructDescriptor, EnumDescriptor, TypeReference, OpaqueDescriptor)):
        return descriptor.identity
    if isinstance(descriptor, PrimitiveDescriptor):
        return TypeIdentity(descriptor.kind.value)
    if isinstance(descriptor, OptionalDescriptor):
        return TypeIdentity("Option", (identity_of(descriptor.inner),))
    if isinstance(descriptor, SequenceDescriptor):
        return TypeIdentity("Vec", (identity_of(descriptor.inner),))
    if isinstance(descriptor, MapDescriptor):
        return TypeIdentity("Map", (identity_of(descriptor.key), identity_of(descriptor.value)))
    if isinstance(descriptor, TupleDescriptor):
        return TypeIdentity("Tuple", tuple(identity_of(element) for element in descriptor.elements))
    raise TypeError(f"Not a type descriptor: {descriptor!r}")
