"""Component registry tests."""

from __future__ import annotations

import pytest
from opencli_spec_builder.component_registry import (
    ComponentRegistry,
    ComponentRegistryError,
    NamingStrategy,
    ReservationToken,
)
from opencli_spec_builder.derivation_failures import NameCollision
from opencli_spec_builder.schema_management.schema_models import (
    ObjectSchema,
    PrimitiveSchema,
    Reference,
    SchemaType,
)
from opencli_spec_builder.type_descriptors.descriptor_models import TypeIdentity

USER = TypeIdentity("app::models::User")
ORDER = TypeIdentity("app::models::Order")
STRING = PrimitiveSchema(schema_type=SchemaType.STRING)


def _user_body() -> ObjectSchema:
    return ObjectSchema(properties={"name": STRING}, required=("name",))


def test_reserve_returns_token_then_reference_while_in_progress() -> None:
    registry = ComponentRegistry()

    token = registry.reserve("User", USER)
    nested = registry.reserve("User", USER)

    assert isinstance(token, ReservationToken)
    assert nested == Reference("User")
    assert registry.is_in_progress("User") is True
    assert registry.open_reservations() == ("User",)


def test_finalize_same_body_twice_is_idempotent() -> None:
    registry = ComponentRegistry()
    registry.reserve("User", USER)

    registry.finalize("User", _user_body(), USER)
    registry.finalize("User", _user_body(), USER)

    assert registry.resolves("User") is True
    assert registry.open_reservations() == ()
    assert dict(registry.snapshot()) == {"User": _user_body()}


def test_finalize_different_body_raises_name_collision() -> None:
    registry = ComponentRegistry()
    registry.finalize("User", _user_body(), USER)

    with pytest.raises(NameCollision, match="Component name 'User'") as exc_info:
        registry.finalize("User", ObjectSchema(properties={"id": STRING}), USER)

    assert exc_info.value.name == "User"


def test_reserve_by_other_identity_while_reserved_collides() -> None:
    registry = ComponentRegistry()
    registry.reserve("User", USER)

    with pytest.raises(NameCollision):
        registry.reserve("User", TypeIdentity("billing::User"))


def test_structurally_identical_types_share_one_component() -> None:
    registry = ComponentRegistry()
    other = TypeIdentity("billing::User")
    registry.reserve("User", USER)
    registry.finalize("User", _user_body(), USER)

    token = registry.reserve("User", other)
    assert isinstance(token, ReservationToken)
    assert token.verifying is True
    registry.finalize("User", _user_body(), other)

    assert registry.reserve("User", other) == Reference("User")
    assert registry.open_reservations() == ()


def test_structurally_different_types_with_same_short_name_collide() -> None:
    registry = ComponentRegistry()
    other = TypeIdentity("billing::User")
    registry.finalize("User", _user_body(), USER)
    token = registry.reserve("User", other)

    with pytest.raises(NameCollision):
        registry.finalize("User", ObjectSchema(properties={"iban": STRING}), other)

    assert isinstance(token, ReservationToken)
    registry.release(token)
    assert registry.open_reservations() == ()


def test_release_drops_reservation() -> None:
    registry = ComponentRegistry()
    token = registry.reserve("User", USER)
    assert isinstance(token, ReservationToken)

    registry.release(token)

    assert registry.entry("User") is None
    assert registry.is_in_progress("User") is False


def test_snapshot_is_sorted_and_excludes_reservations() -> None:
    registry = ComponentRegistry()
    registry.finalize("User", _user_body(), USER)
    registry.finalize("Order", ObjectSchema(), ORDER)
    registry.reserve("Pending", TypeIdentity("Pending"))

    assert list(registry.snapshot()) == ["Order", "User"]


def test_closed_registry_rejects_mutation() -> None:
    registry = ComponentRegistry()
    registry.close()

    assert registry.closed is True
    with pytest.raises(ComponentRegistryError, match="closed"):
        registry.reserve("User", USER)
    with pytest.raises(ComponentRegistryError, match="closed"):
        registry.finalize("User", _user_body(), USER)


@pytest.mark.parametrize(
    ("identity", "expected"),
    [
        (USER, "User"),
        (TypeIdentity("Page", (USER,)), "Page<User>"),
        (TypeIdentity("Page", (ORDER,)), "Page<Order>"),
        (TypeIdentity("Pair", (USER, ORDER)), "Pair<User,Order>"),
        (TypeIdentity("Pair", (ORDER, USER)), "Pair<Order,User>"),
        (TypeIdentity("Page", (TypeIdentity("Page", (USER,)),)), "Page<Page<User>>"),
    ],
)
def test_short_names_keep_generic_instantiations_apart(
    identity: TypeIdentity, expected: str
) -> None:
    assert ComponentRegistry().name_for(identity) == expected


def test_qualified_naming_uses_full_path() -> None:
    registry = ComponentRegistry(NamingStrategy.QUALIFIED)

    assert registry.naming is NamingStrategy.QUALIFIED
    assert registry.name_for(TypeIdentity("Page", (USER,))) == "Page<app::models::User>"


def test_qualified_naming_keeps_path_separators_apart() -> None:
    registry = ComponentRegistry(NamingStrategy.QUALIFIED)

    colon_name = registry.name_for(TypeIdentity("billing::Account"))
    dotted_name = registry.name_for(TypeIdentity("billing.Account"))

    assert colon_name == "billing::Account"
    assert dotted_name == "billing.Account"
    assert colon_name != dotted_name
