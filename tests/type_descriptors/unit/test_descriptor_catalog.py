"""Descriptor catalog tests."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
from opencli_spec_builder.attribute_overrides.override_directives import (
    CasingPolicy,
    Constraint,
    ConstraintKind,
    Default,
    Example,
    Rename,
    RenameAll,
    Skip,
    Status,
)
from opencli_spec_builder.type_descriptors import (
    DescriptorCatalogError,
    EnumDescriptor,
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
    TypeIdentity,
    TypeReference,
    UnitShape,
    load_descriptor_catalog,
    parse_directives,
    plain_value,
)


def _write_file(path: Path, contents: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(contents, encoding="utf-8")


def _field(name: str, **extra: object) -> dict:
    return {"name": name, "type": "u8", **extra}


def _catalog_yaml() -> str:
    return """
types:
  User:
    description: A registered user.
    directives:
      rename_all: camelCase
    fields:
      - name: user_id
        type: u64
      - name: email
        type: Option<String>
      - name: nickname
        type: String
        optional: true
        directives:
          rename: alias
  Page:
    generics: [T]
    fields:
      - name: items
        type: Vec<T>
      - name: total
        type: usize
  Shape:
    kind: enum
    variants:
      - Empty
      - name: Square
        tuple: [f64]
      - name: Circle
        fields:
          - name: radius
            type: f64
  Socket:
    kind: opaque
"""


def test_loads_catalog_file_and_resolves_struct(tmp_path: Path) -> None:
    path = tmp_path / "types.yaml"
    _write_file(path, _catalog_yaml())

    catalog = load_descriptor_catalog(path)
    user = catalog.resolve(TypeIdentity("User"))

    assert catalog.source == path
    assert catalog.names() == ("User", "Page", "Shape", "Socket")
    assert isinstance(user, StructDescriptor)
    assert user.description == "A registered user."
    assert user.directives == (RenameAll(CasingPolicy.CAMEL_CASE),)
    assert [field.name for field in user.fields] == ["user_id", "email", "nickname"]
    assert user.fields[0].descriptor == PrimitiveDescriptor(PrimitiveKind.U64)
    assert user.fields[1].descriptor == OptionalDescriptor(
        PrimitiveDescriptor(PrimitiveKind.STRING)
    )
    assert user.fields[2].is_optional is True
    assert user.fields[2].directives == (Rename("alias"),)


def test_generic_entry_is_instantiated_per_argument(tmp_path: Path) -> None:
    path = tmp_path / "types.yaml"
    _write_file(path, _catalog_yaml())
    catalog = load_descriptor_catalog(path)

    reference = catalog.descriptor_for("Page<User>")
    assert reference == TypeReference(TypeIdentity("Page", (TypeIdentity("User"),)))

    assert isinstance(reference, TypeReference)
    page = catalog.resolve(reference.identity)
    assert isinstance(page, StructDescriptor)
    assert page.fields[0].descriptor == SequenceDescriptor(TypeReference(TypeIdentity("User")))

    strings = catalog.resolve(TypeIdentity("Page", (TypeIdentity("string"),)))
    assert isinstance(strings, StructDescriptor)
    assert strings.fields[0].descriptor == SequenceDescriptor(
        PrimitiveDescriptor(PrimitiveKind.STRING)
    )


def test_generic_arity_mismatch_is_rejected() -> None:
    catalog = load_descriptor_catalog({"types": {"Page": {"generics": ["T"], "fields": []}}})

    with pytest.raises(DescriptorCatalogError, match="expects 1 generic arguments, got 0"):
        catalog.resolve(TypeIdentity("Page"))


def test_enum_variant_shapes() -> None:
    catalog = load_descriptor_catalog(
        {
            "types": {
                "Shape": {
                    "kind": "enum",
                    "variants": [
                        "Empty",
                        {"name": "Square", "tuple": ["f64"]},
                        {"name": "Circle", "fields": [{"name": "radius", "type": "f64"}]},
                    ],
                }
            }
        }
    )

    shape = catalog.resolve(TypeIdentity("Shape"))

    assert isinstance(shape, EnumDescriptor)
    assert [variant.name for variant in shape.variants] == ["Empty", "Square", "Circle"]
    assert isinstance(shape.variants[0].shape, UnitShape)
    assert shape.variants[1].shape == TupleShape((PrimitiveDescriptor(PrimitiveKind.F64),))
    assert isinstance(shape.variants[2].shape, StructShape)


def test_builtin_type_expressions() -> None:
    catalog = load_descriptor_catalog({"types": {"Socket": {"kind": "opaque"}}})

    assert catalog.descriptor_for("BTreeMap<String, i32>") == MapDescriptor(
        PrimitiveDescriptor(PrimitiveKind.STRING), PrimitiveDescriptor(PrimitiveKind.I32)
    )
    assert catalog.descriptor_for("Box<PathBuf>") == PrimitiveDescriptor(PrimitiveKind.PATH)
    assert catalog.descriptor_for("(f64, Uuid)") == TupleDescriptor(
        (PrimitiveDescriptor(PrimitiveKind.F64), PrimitiveDescriptor(PrimitiveKind.UUID))
    )
    assert catalog.descriptor_for("Socket") == OpaqueDescriptor(TypeIdentity("Socket"))
    assert catalog.descriptor_for("Ghost") == TypeReference(TypeIdentity("Ghost"))
    assert catalog.resolve(TypeIdentity("Socket")) is None
    assert catalog.resolve(TypeIdentity("Ghost")) is None


def test_builtin_with_wrong_argument_count_is_rejected() -> None:
    catalog = load_descriptor_catalog({"types": {"Socket": {"kind": "opaque"}}})

    with pytest.raises(DescriptorCatalogError, match="Wrong number of type arguments in 'Vec'"):
        catalog.descriptor_for("Vec")
    with pytest.raises(DescriptorCatalogError, match="Expected"):
        catalog.descriptor_for("Vec<")


def test_parse_directives_reads_known_keys_in_order() -> None:
    directives = parse_directives({"skip": True, "default": 3, "deprecated": False}, "field")

    assert directives == (Skip(), Default(3))


@pytest.mark.parametrize(
    ("catalog", "message"),
    [
        ({}, "non-empty 'types' mapping"),
        ({"types": {"User": {"kind": "class"}}}, "types.User.kind must be one of"),
        ({"types": {"User": {"fields": [{"name": "id"}]}}}, "fields\\[0\\].type must be"),
        (
            {"types": {"User": {"fields": [_field("id", directives={"x": 1})]}}},
            "Unknown directive 'x'",
        ),
        (
            {"types": {"User": {"directives": {"rename_all": "Title Case"}}}},
            "Unknown casing policy",
        ),
        ({"types": {"Status": {"kind": "enum"}}}, "variants must be a non-empty list"),
        (
            {"types": {"User": {"fields": [_field("a"), _field("a")]}}},
            "declares field 'a' twice",
        ),
    ],
)
def test_malformed_catalog_is_rejected(catalog: dict, message: str) -> None:
    with pytest.raises(DescriptorCatalogError, match=message):
        load_descriptor_catalog(catalog)


def test_missing_catalog_file_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(DescriptorCatalogError, match="Descriptor catalog not found"):
        load_descriptor_catalog(tmp_path / "missing.yaml")


def test_parse_directives_reads_validation_constraints() -> None:
    directives = parse_directives(
        {
            "minimum": 1,
            "maximum": 9.5,
            "exclusive_maximum": True,
            "multiple_of": 0.5,
            "pattern": "^[a-z]+$",
            "max_items": 3,
            "nullable": False,
        },
        "field",
    )

    assert directives == (
        Constraint(ConstraintKind.MINIMUM, 1),
        Constraint(ConstraintKind.MAXIMUM, 9.5),
        Constraint(ConstraintKind.EXCLUSIVE_MAXIMUM, True),
        Constraint(ConstraintKind.MULTIPLE_OF, 0.5),
        Constraint(ConstraintKind.PATTERN, "^[a-z]+$"),
        Constraint(ConstraintKind.MAX_ITEMS, 3),
    )


@pytest.mark.parametrize(
    ("directives", "message"),
    [
        ({"minimum": "zero"}, "field.directives.minimum must be a number"),
        ({"maximum": True}, "field.directives.maximum must be a number"),
        ({"multiple_of": 0}, "multiple_of must be greater than zero"),
        ({"min_length": -1}, "min_length must be a non-negative integer"),
        ({"max_items": 2.5}, "max_items must be a non-negative integer"),
        ({"pattern": "[a-"}, "pattern is not a valid pattern"),
        ({"nullable": "yes"}, "nullable must be"),
        ({"status": True}, "status must be an exit code"),
    ],
)
def test_malformed_directive_values_are_rejected(directives: dict, message: str) -> None:
    with pytest.raises(DescriptorCatalogError, match=message):
        parse_directives(directives, "field")


def test_status_directive_keeps_exit_code_as_text() -> None:
    assert parse_directives({"status": 4}, "variant") == (Status("4"),)
    assert parse_directives({"status": " 0 "}, "variant") == (Status("0"),)


def test_yaml_dates_in_examples_become_iso_strings(tmp_path: Path) -> None:
    path = tmp_path / "types.yaml"
    _write_file(
        path,
        """
types:
  Release:
    fields:
      - name: published
        type: string
        directives:
          example: 2024-01-01
          default:
            window: [2024-01-01, 2024-02-01]
""",
    )

    release = load_descriptor_catalog(path).resolve(TypeIdentity("Release"))

    assert isinstance(release, StructDescriptor)
    assert release.fields[0].directives == (
        Example("2024-01-01"),
        Default({"window": ["2024-01-01", "2024-02-01"]}),
    )


def test_plain_value_rejects_values_without_json_form() -> None:
    assert plain_value({date(2024, 5, 1): [1, 2]}, "example") == {"2024-05-01": [1, 2]}

    with pytest.raises(DescriptorCatalogError, match="example holds a bytes value"):
        plain_value(b"\x00", "example")
