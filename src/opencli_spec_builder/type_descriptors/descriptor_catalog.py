"""Descriptor catalog service.

A catalog is the serialized form of already-normalized type descriptors, one
entry per nameable type::

    types:
      Page:
        kind: struct
        generics: [T]
        fields:
          - name: items
            type: Vec<T>
      Status:
        kind: enum
        variants:
          - name: Active
          - name: Custom
            tuple: [String]

Named types inside type expressions become ``TypeReference`` nodes, so
recursive and mutually recursive types need no special treatment here; the
derivation engine resolves them through ``DescriptorCatalog.resolve``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, time
from pathlib import Path
from typing import Any

import yaml

from opencli_spec_builder.attribute_overrides.identifier_casing import parse_casing_policy
from opencli_spec_builder.attribute_overrides.override_directives import (
    Constraint,
    ConstraintKind,
    Default,
    Deprecated,
    Description,
    Example,
    Format,
    OverrideDirective,
    Rename,
    RenameAll,
    Skip,
    Status,
    Tag,
    Title,
)

from .descriptor_models import (
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
    VariantShape,
    identity_of,
)
from .type_expressions import (
    TupleExpression,
    TypeExpression,
    TypeExpressionError,
    parse_type_expression,
)

_PRIMITIVE_ALIASES: Mapping[str, PrimitiveKind] = {
    **{kind.value: kind for kind in PrimitiveKind},
    "String": PrimitiveKind.STRING,
    "str": PrimitiveKind.STRING,
    "PathBuf": PrimitiveKind.PATH,
    "Path": PrimitiveKind.PATH,
    "Url": PrimitiveKind.URI,
    "Uuid": PrimitiveKind.UUID,
    "NaiveDate": PrimitiveKind.DATE,
    "DateTime": PrimitiveKind.DATE_TIME,
}
_OPTIONAL_NAMES = frozenset({"Option", "Optional"})
_SEQUENCE_NAMES = frozenset({"Vec", "List", "VecDeque", "HashSet", "BTreeSet"})
_MAP_NAMES = frozenset({"Map", "HashMap", "BTreeMap", "IndexMap"})
_TRANSPARENT_NAMES = frozenset({"Box", "Rc", "Arc"})
_TUPLE_NAME = "Tuple"
_BUILTIN_NAMES = frozenset(
    {*_PRIMITIVE_ALIASES, *_OPTIONAL_NAMES, *_SEQUENCE_NAMES, *_MAP_NAMES, *_TRANSPARENT_NAMES}
)
_KINDS = ("struct", "enum", "opaque")
_CONSTRAINT_KEYS: Mapping[str, ConstraintKind] = {kind.value: kind for kind in ConstraintKind}
_NUMBER_CONSTRAINTS = frozenset(
    {ConstraintKind.MINIMUM, ConstraintKind.MAXIMUM, ConstraintKind.MULTIPLE_OF}
)
_FLAG_CONSTRAINTS = frozenset(
    {
        ConstraintKind.EXCLUSIVE_MINIMUM,
        ConstraintKind.EXCLUSIVE_MAXIMUM,
        ConstraintKind.NULLABLE,
    }
)


class DescriptorCatalogError(Exception):
    """Raised when a descriptor catalog is malformed."""


@dataclass(frozen=True)
class CatalogField:
    """Field entry holding its parsed type expression."""

    name: str
    expression: TypeExpression
    directives: tuple[OverrideDirective, ...]
    is_optional: bool
    description: str | None


@dataclass(frozen=True)
class CatalogVariant:
    """Variant entry; exactly one of tuple or fields is used per shape."""

    name: str
    shape: str
    elements: tuple[TypeExpression, ...]
    fields: tuple[CatalogField, ...]
    directives: tuple[OverrideDirective, ...]
    description: str | None


@dataclass(frozen=True)
class CatalogEntry:  # pylint: disable=too-many-instance-attributes
    """One nameable type of the catalog, possibly a generic template."""

    name: str
    kind: str
    generics: tuple[str, ...]
    fields: tuple[CatalogField, ...]
    variants: tuple[CatalogVariant, ...]
    directives: tuple[OverrideDirective, ...]
    description: str | None


class DescriptorCatalog:
    """Resolves catalog entries into type descriptors, instantiating generics on demand."""

    def __init__(self, entries: Mapping[str, CatalogEntry], source: Path | None = None) -> None:
        self._entries = dict(entries)
        self._source = source
        self._cache: dict[TypeIdentity, NamedDescriptor] = {}

    @property
    def source(self) -> Path | None:
        """File the catalog was read from, if any."""
        return self._source

    def names(self) -> tuple[str, ...]:
        """Catalog type names in declaration order."""
        return tuple(self._entries)

    def entry(self, name: str) -> CatalogEntry | None:
        """Return the raw entry of name."""
        return self._entries.get(name)

    def descriptor_for(self, expression: str | TypeExpression) -> TypeDescriptor:
        """Return the descriptor a type expression denotes.

        Named catalog types come back as ``TypeReference`` nodes.
        """
        if isinstance(expression, str):
            try:
                expression = parse_type_expression(expression)
            except TypeExpressionError as exc:
                raise DescriptorCatalogError(str(exc)) from exc
        return self._to_descriptor(expression, {})

    def resolve(self, identity: TypeIdentity) -> NamedDescriptor | None:
        """Return the structural descriptor behind identity, or None when unknown."""
        cached = self._cache.get(identity)
        if cached is not None:
            return cached
        entry = self._entries.get(identity.qualified_name)
        if entry is None or entry.kind == "opaque":
            return None
        if len(identity.generic_arguments) != len(entry.generics):
            raise DescriptorCatalogError(
                f"Type '{entry.name}' expects {len(entry.generics)} generic arguments, "
                f"got {len(identity.generic_arguments)} in '{identity}'"
            )
        bindings = {
            parameter: self._from_identity(argument)
            for parameter, argument in zip(entry.generics, identity.generic_arguments)
        }
        descriptor: NamedDescriptor
        if entry.kind == "struct":
            descriptor = StructDescriptor(
                identity=identity,
                fields=tuple(self._field(field, bindings) for field in entry.fields),
                directives=entry.directives,
                description=entry.description,
            )
        else:
            descriptor = EnumDescriptor(
                identity=identity,
                variants=tuple(self._variant(variant, bindings) for variant in entry.variants),
                directives=entry.directives,
                description=entry.description,
            )
        self._cache[identity] = descriptor
        return descriptor

    def _field(
        self, field: CatalogField, bindings: Mapping[str, TypeDescriptor]
    ) -> FieldDescriptor:
        return FieldDescriptor(
            name=field.name,
            descriptor=self._to_descriptor(field.expression, bindings),
            directives=field.directives,
            is_optional=field.is_optional,
            description=field.description,
        )

    def _variant(
        self, variant: CatalogVariant, bindings: Mapping[str, TypeDescriptor]
    ) -> VariantDescriptor:
        shape: VariantShape
        if variant.shape == "tuple":
            shape = TupleShape(
                tuple(self._to_descriptor(element, bindings) for element in variant.elements)
            )
        elif variant.shape == "struct":
            shape = StructShape(tuple(self._field(field, bindings) for field in variant.fields))
        else:
            shape = UnitShape()
        return VariantDescriptor(
            name=variant.name,
            shape=shape,
            directives=variant.directives,
            description=variant.description,
        )

    def _to_descriptor(
        self, expression: TypeExpression, bindings: Mapping[str, TypeDescriptor]
    ) -> TypeDescriptor:
        if isinstance(expression, TupleExpression):
            return TupleDescriptor(
                tuple(self._to_descriptor(element, bindings) for element in expression.elements)
            )
        name, arguments = expression.name, expression.arguments
        if name in bindings and not arguments:
            return bindings[name]
        converted = tuple(self._to_descriptor(argument, bindings) for argument in arguments)
        entry = self._entries.get(name)
        if entry is not None:
            identity = TypeIdentity(name, tuple(identity_of(item) for item in converted))
            if entry.kind == "opaque":
                return OpaqueDescriptor(identity)
            return TypeReference(identity)
        return _builtin_descriptor(name, converted, str(expression))

    def _from_identity(self, identity: TypeIdentity) -> TypeDescriptor:
        arguments = tuple(self._from_identity(argument) for argument in identity.generic_arguments)
        name = identity.qualified_name
        if name not in self._entries and (name in _BUILTIN_NAMES or name == _TUPLE_NAME):
            return _builtin_descriptor(name, arguments, str(identity))
        if name in self._entries and self._entries[name].kind == "opaque":
            return OpaqueDescriptor(identity)
        return TypeReference(identity)


def load_descriptor_catalog(source: Path | str | Mapping[str, Any]) -> DescriptorCatalog:
    """Load and validate a descriptor catalog from a YAML/JSON file or a mapping."""
    path: Path | None = None
    if isinstance(source, Mapping):
        parsed: Any = source
    else:
        path = Path(source)
        if not path.exists():
            raise DescriptorCatalogError(f"Descriptor catalog not found: {path}")
        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise DescriptorCatalogError(f"Failed to parse descriptor catalog: {exc}") from exc

    if not isinstance(parsed, Mapping):
        raise DescriptorCatalogError("Descriptor catalog root must be a mapping.")
    types = parsed.get("types")
    if not isinstance(types, Mapping) or not types:
        raise DescriptorCatalogError("Descriptor catalog requires a non-empty 'types' mapping.")

    entries: dict[str, CatalogEntry] = {}
    for name, raw_entry in types.items():
        if not isinstance(name, str) or not name.strip():
            raise DescriptorCatalogError("Descriptor catalog type names must be strings.")
        entries[name] = _parse_entry(name, raw_entry)
    return DescriptorCatalog(entries, source=path)


def parse_directives(value: Any, label: str) -> tuple[OverrideDirective, ...]:
    """Parse a ``directives`` mapping into override directives, in key order."""
    if value is None:
        return ()
    if not isinstance(value, Mapping):
        raise DescriptorCatalogError(f"{label}.directives must be a mapping.")
    directives: list[OverrideDirective] = []
    for key, raw in value.items():
        directive_label = f"{label}.directives.{key}"
        if key == "rename":
            directives.append(Rename(_require_string(raw, directive_label)))
        elif key == "rename_all":
            try:
                policy = parse_casing_policy(_require_string(raw, directive_label))
            except ValueError as exc:
                raise DescriptorCatalogError(f"{directive_label}: {exc}") from exc
            directives.append(RenameAll(policy))
        elif key == "description":
            directives.append(Description(_require_string(raw, directive_label)))
        elif key == "title":
            directives.append(Title(_require_string(raw, directive_label)))
        elif key == "format":
            directives.append(Format(_require_string(raw, directive_label)))
        elif key == "tag":
            directives.append(Tag(_require_string(raw, directive_label)))
        elif key == "skip":
            if _require_bool(raw, directive_label):
                directives.append(Skip())
        elif key == "deprecated":
            if _require_bool(raw, directive_label):
                directives.append(Deprecated())
        elif key == "example":
            directives.append(Example(plain_value(raw, directive_label)))
        elif key == "default":
            directives.append(Default(plain_value(raw, directive_label)))
        elif key == "status":
            directives.append(Status(_require_exit_code(raw, directive_label)))
        elif key in _CONSTRAINT_KEYS:
            constraint = _parse_constraint(_CONSTRAINT_KEYS[key], raw, directive_label)
            if constraint is not None:
                directives.append(constraint)
        else:
            raise DescriptorCatalogError(f"Unknown directive '{key}' in {label}.")
    return tuple(directives)


def plain_value(value: Any, label: str) -> Any:
    """Return value with YAML-only scalars turned into JSON-compatible ones.

    Dates and times become ISO 8601 strings; mappings and lists are converted
    recursively so YAML and JSON output carry the same value.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {
            _plain_key(key, label): plain_value(item, f"{label}.{key}")
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [plain_value(item, f"{label}[{index}]") for index, item in enumerate(value)]
    raise DescriptorCatalogError(
        f"{label} holds a {type(value).__name__} value that has no JSON form."
    )


def _plain_key(key: Any, label: str) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, (date, time)):
        return key.isoformat()
    if isinstance(key, (int, float)) and not isinstance(key, bool):
        return str(key)
    raise DescriptorCatalogError(f"{label} keys must be strings or numbers.")


def _parse_constraint(kind: ConstraintKind, raw: Any, label: str) -> Constraint | None:
    if kind in _FLAG_CONSTRAINTS:
        return Constraint(kind, True) if _require_bool(raw, label) else None
    if kind is ConstraintKind.PATTERN:
        pattern = _require_string(raw, label)
        try:
            re.compile(pattern)
        except re.error as exc:
            raise DescriptorCatalogError(f"{label} is not a valid pattern: {exc}") from exc
        return Constraint(kind, pattern)
    if kind in _NUMBER_CONSTRAINTS:
        number = _require_number(raw, label)
        if kind is ConstraintKind.MULTIPLE_OF and number <= 0:
            raise DescriptorCatalogError(f"{label} must be greater than zero.")
        return Constraint(kind, number)
    return Constraint(kind, _require_count(raw, label))


def _parse_entry(name: str, value: Any) -> CatalogEntry:
    label = f"types.{name}"
    entry = _require_mapping(value, label)
    kind = entry.get("kind", "struct")
    if kind not in _KINDS:
        raise DescriptorCatalogError(f"{label}.kind must be one of {', '.join(_KINDS)}.")
    generics = _string_list(entry.get("generics"), f"{label}.generics")
    if len(set(generics)) != len(generics):
        raise DescriptorCatalogError(f"{label}.generics must not repeat names.")

    fields: tuple[CatalogField, ...] = ()
    variants: tuple[CatalogVariant, ...] = ()
    if kind == "struct":
        fields = _parse_fields(entry.get("fields", []), label)
    elif kind == "enum":
        raw_variants = entry.get("variants")
        if not isinstance(raw_variants, list) or not raw_variants:
            raise DescriptorCatalogError(f"{label}.variants must be a non-empty list.")
        variants = tuple(
            _parse_variant(raw, f"{label}.variants[{index}]")
            for index, raw in enumerate(raw_variants)
        )
    return CatalogEntry(
        name=name,
        kind=kind,
        generics=generics,
        fields=fields,
        variants=variants,
        directives=parse_directives(entry.get("directives"), label),
        description=_optional_string(entry.get("description"), f"{label}.description"),
    )


def _parse_fields(value: Any, label: str) -> tuple[CatalogField, ...]:
    if not isinstance(value, list):
        raise DescriptorCatalogError(f"{label}.fields must be a list.")
    fields: list[CatalogField] = []
    for index, raw in enumerate(value):
        field_label = f"{label}.fields[{index}]"
        field = _require_mapping(raw, field_label)
        name = _require_string(field.get("name"), f"{field_label}.name")
        if any(existing.name == name for existing in fields):
            raise DescriptorCatalogError(f"{label} declares field '{name}' twice.")
        fields.append(
            CatalogField(
                name=name,
                expression=_parse_expression(field.get("type"), f"{field_label}.type"),
                directives=parse_directives(field.get("directives"), field_label),
                is_optional=_require_bool(field.get("optional", False), f"{field_label}.optional"),
                description=_optional_string(
                    field.get("description"), f"{field_label}.description"
                ),
            )
        )
    return tuple(fields)


def _parse_variant(value: Any, label: str) -> CatalogVariant:
    if isinstance(value, str):
        value = {"name": value}
    variant = _require_mapping(value, label)
    name = _require_string(variant.get("name"), f"{label}.name")
    has_tuple = "tuple" in variant
    has_fields = "fields" in variant
    if has_tuple and has_fields:
        raise DescriptorCatalogError(f"{label} must not set both tuple and fields.")
    elements: tuple[TypeExpression, ...] = ()
    fields: tuple[CatalogField, ...] = ()
    shape = "unit"
    if has_tuple:
        raw_elements = variant["tuple"]
        if not isinstance(raw_elements, list):
            raise DescriptorCatalogError(f"{label}.tuple must be a list of type expressions.")
        elements = tuple(
            _parse_expression(raw, f"{label}.tuple[{index}]")
            for index, raw in enumerate(raw_elements)
        )
        shape = "tuple"
    elif has_fields:
        fields = _parse_fields(variant["fields"], label)
        shape = "struct"
    return CatalogVariant(
        name=name,
        shape=shape,
        elements=elements,
        fields=fields,
        directives=parse_directives(variant.get("directives"), label),
        description=_optional_string(variant.get("description"), f"{label}.description"),
    )


def _parse_expression(value: Any, label: str) -> TypeExpression:
    text = _require_string(value, label)
    try:
        return parse_type_expression(text)
    except TypeExpressionError as exc:
        raise DescriptorCatalogError(f"{label}: {exc}") from exc


def _builtin_descriptor(
    name: str, arguments: tuple[TypeDescriptor, ...], rendered: str
) -> TypeDescriptor:
    if name in _PRIMITIVE_ALIASES and not arguments:
        return PrimitiveDescriptor(_PRIMITIVE_ALIASES[name])
    if name in _OPTIONAL_NAMES and len(arguments) == 1:
        return OptionalDescriptor(arguments[0])
    if name in _SEQUENCE_NAMES and len(arguments) == 1:
        return SequenceDescriptor(arguments[0])
    if name in _MAP_NAMES and len(arguments) == 2:
        return MapDescriptor(arguments[0], arguments[1])
    if name in _TRANSPARENT_NAMES and len(arguments) == 1:
        return arguments[0]
    if name == _TUPLE_NAME:
        return TupleDescriptor(arguments)
    if name in _BUILTIN_NAMES:
        raise DescriptorCatalogError(f"Wrong number of type arguments in '{rendered}'.")
    # Unknown names stay references and surface as MissingDescriptor during derivation.
    return TypeReference(TypeIdentity(name, tuple(identity_of(item) for item in arguments)))


def _require_mapping(value: Any, label: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise DescriptorCatalogError(f"{label} must be a mapping.")
    return value


def _require_string(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise DescriptorCatalogError(f"{label} must be a non-empty string.")
    return value.strip()


def _optional_string(value: Any, label: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise DescriptorCatalogError(f"{label} must be a string.")
    return value.strip() or None


def _require_bool(value: Any, label: str) -> bool:
    if not isinstance(value, bool):
        raise DescriptorCatalogError(f"{label} must be true or false.")
    return value


def _require_number(value: Any, label: str) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DescriptorCatalogError(f"{label} must be a number.")
    return value


def _require_count(value: Any, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise DescriptorCatalogError(f"{label} must be a non-negative integer.")
    return value


def _require_exit_code(value: Any, label: str) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, str)) or not str(value).strip():
        raise DescriptorCatalogError(f"{label} must be an exit code.")
    return str(value).strip()


def _string_list(value: Any, label: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise DescriptorCatalogError(f"{label} must be a list of strings.")
    return tuple(item.strip() for item in value)
