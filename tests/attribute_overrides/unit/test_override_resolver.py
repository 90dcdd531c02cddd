"""Attribute override resolver tests."""

from __future__ import annotations

import pytest
from opencli_spec_builder.attribute_overrides.override_directives import (
    CasingPolicy,
    Constraint,
    ConstraintKind,
    Default,
    Deprecated,
    Description,
    DirectiveScope,
    Format,
    Rename,
    RenameAll,
    Skip,
    Status,
    Tag,
    Title,
)
from opencli_spec_builder.attribute_overrides.override_resolver import (
    resolve_container,
    resolve_field,
    resolve_variant,
)
from opencli_spec_builder.derivation_failures import AttributeConflict


def test_rename_all_applies_to_field_names() -> None:
    user_id = resolve_field(
        "user_id", (), container_rename_all=CasingPolicy.CAMEL_CASE, is_optional=False
    )
    created_at = resolve_field(
        "created_at", (), container_rename_all=CasingPolicy.CAMEL_CASE, is_optional=False
    )

    assert user_id.name == "userId"
    assert created_at.name == "createdAt"


def test_explicit_rename_wins_over_container_rename_all() -> None:
    attributes = resolve_field(
        "user_id",
        (Rename("uid"),),
        container_rename_all=CasingPolicy.CAMEL_CASE,
        is_optional=False,
    )

    assert attributes.name == "uid"


def test_explicit_description_wins_over_doc_comment() -> None:
    documented = resolve_field(
        "name", (), container_rename_all=None, is_optional=False, description="From docs."
    )
    overridden = resolve_field(
        "name",
        (Description("Explicit."), Title("Name")),
        container_rename_all=None,
        is_optional=False,
        description="From docs.",
    )

    assert documented.description == "From docs."
    assert overridden.description == "Explicit."
    assert overridden.title == "Name"


def test_optional_or_defaulted_fields_are_not_required() -> None:
    optional = resolve_field("email", (), container_rename_all=None, is_optional=True)
    defaulted = resolve_field(
        "retries", (Default(3),), container_rename_all=None, is_optional=False
    )

    assert optional.required is False
    assert defaulted.required is False
    assert defaulted.has_default is True
    assert defaulted.default == 3


def test_skip_and_deprecated_are_flags() -> None:
    attributes = resolve_field(
        "secret", (Skip(), Skip(), Deprecated()), container_rename_all=None, is_optional=False
    )

    assert attributes.skip is True
    assert attributes.deprecated is True


def test_differing_values_of_one_directive_conflict() -> None:
    with pytest.raises(AttributeConflict, match="Format is given more than one value") as exc_info:
        resolve_field(
            "created",
            (Format("date"), Format("date-time")),
            container_rename_all=None,
            is_optional=False,
            target="Event.created",
        )

    assert exc_info.value.target == "Event.created"
    assert exc_info.value.directives == (Format("date"), Format("date-time"))


def test_directive_outside_its_scope_conflicts() -> None:
    with pytest.raises(AttributeConflict, match="Tag cannot be applied to a field"):
        resolve_field("kind", (Tag("kind"),), container_rename_all=None, is_optional=False)

    with pytest.raises(AttributeConflict, match="Format cannot be applied to a struct"):
        resolve_container("User", (Format("uuid"),), scope=DirectiveScope.STRUCT)


def test_container_resolution_keeps_rename_all_and_tag() -> None:
    attributes = resolve_container(
        "Shape",
        (RenameAll(CasingPolicy.SNAKE_CASE), Tag("kind"), Rename("Figure")),
        scope=DirectiveScope.ENUM,
        description="A shape.",
    )

    assert attributes.name == "Figure"
    assert attributes.rename_all is CasingPolicy.SNAKE_CASE
    assert attributes.tag == "kind"
    assert attributes.description == "A shape."


def test_variant_rename_all_is_kept_for_its_fields() -> None:
    attributes = resolve_variant(
        "BigCircle",
        (RenameAll(CasingPolicy.CAMEL_CASE),),
        container_rename_all=CasingPolicy.SNAKE_CASE,
    )

    assert attributes.name == "big_circle"
    assert attributes.rename_all is CasingPolicy.CAMEL_CASE


def test_field_keeps_one_constraint_per_kind() -> None:
    attributes = resolve_field(
        "count",
        (
            Constraint(ConstraintKind.MINIMUM, 5),
            Constraint(ConstraintKind.MAXIMUM, 100),
            Constraint(ConstraintKind.MINIMUM, 5),
        ),
        container_rename_all=None,
        is_optional=False,
    )

    assert attributes.constraints == (
        Constraint(ConstraintKind.MINIMUM, 5),
        Constraint(ConstraintKind.MAXIMUM, 100),
    )


def test_differing_values_of_one_constraint_conflict() -> None:
    with pytest.raises(AttributeConflict, match="min_length is given more than one value"):
        resolve_field(
            "username",
            (Constraint(ConstraintKind.MIN_LENGTH, 3), Constraint(ConstraintKind.MIN_LENGTH, 4)),
            container_rename_all=None,
            is_optional=False,
        )


@pytest.mark.parametrize(
    ("directives", "message"),
    [
        (
            (Constraint(ConstraintKind.MINIMUM, 10), Constraint(ConstraintKind.MAXIMUM, 1)),
            "minimum exceeds maximum",
        ),
        (
            (Constraint(ConstraintKind.MIN_ITEMS, 3), Constraint(ConstraintKind.MAX_ITEMS, 2)),
            "min_items exceeds max_items",
        ),
        (
            (Constraint(ConstraintKind.EXCLUSIVE_MAXIMUM, True),),
            "exclusive_maximum needs a maximum",
        ),
    ],
)
def test_inconsistent_bounds_conflict(directives: tuple, message: str) -> None:
    with pytest.raises(AttributeConflict, match=message):
        resolve_field("value", directives, container_rename_all=None, is_optional=False)


def test_constraints_and_status_are_limited_to_their_scope() -> None:
    with pytest.raises(AttributeConflict, match="pattern cannot be applied to a struct"):
        resolve_container(
            "User", (Constraint(ConstraintKind.PATTERN, "[a-z]+"),), scope=DirectiveScope.STRUCT
        )

    with pytest.raises(AttributeConflict, match="Status cannot be applied to a field"):
        resolve_field("code", (Status("0"),), container_rename_all=None, is_optional=False)


def test_variant_status_is_resolved() -> None:
    attributes = resolve_variant(
        "NotFound",
        (Status("4"), Description("No such user.")),
        container_rename_all=None,
    )

    assert attributes.status == "4"
    assert attributes.description == "No such user."
