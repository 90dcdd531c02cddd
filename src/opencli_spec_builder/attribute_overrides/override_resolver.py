"""Resolve effective names and metadata from override directives.

Precedence, highest first:

1. explicit ``Rename`` / ``Format`` / ``Description`` / ``Title`` on the target
2. the enclosing container's ``RenameAll`` applied to the target's own name
3. the descriptor-supplied name
4. the doc-comment description carried by the descriptor

Which directive may appear at which scope is a fixed table; anything outside it,
two differing values of one single-valued directive on the same target, or a
lower validation bound above its upper bound, is an ``AttributeConflict``.
Constraints are keyed by their kind, so a field may carry several of them.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from opencli_spec_builder.derivation_failures import AttributeConflict

from .identifier_casing import apply_casing
from .override_directives import (
    CasingPolicy,
    Constraint,
    ConstraintKind,
    Default,
    Deprecated,
    Description,
    DirectiveScope,
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

DEFAULT_DISCRIMINATOR_PROPERTY = "type"

_ALL_SCOPES = frozenset(DirectiveScope)
_CONTAINER_SCOPES = frozenset({DirectiveScope.STRUCT, DirectiveScope.ENUM})
_MEMBER_SCOPES = frozenset({DirectiveScope.FIELD, DirectiveScope.VARIANT})

_DIRECTIVE_SCOPES: Mapping[type, frozenset[DirectiveScope]] = {
    Rename: _ALL_SCOPES,
    RenameAll: _CONTAINER_SCOPES | {DirectiveScope.VARIANT},
    Description: _ALL_SCOPES,
    Title: _ALL_SCOPES,
    Format: frozenset({DirectiveScope.FIELD}),
    Skip: _MEMBER_SCOPES,
    Deprecated: _ALL_SCOPES,
    Example: _ALL_SCOPES,
    Default: frozenset({DirectiveScope.FIELD}),
    Tag: frozenset({DirectiveScope.ENUM}),
    Constraint: frozenset({DirectiveScope.FIELD}),
    Status: frozenset({DirectiveScope.VARIANT}),
}

# Marker directives may repeat; every other kind must agree on a single value.
_FLAG_DIRECTIVES = (Skip, Deprecated)

_BOUNDS = (
    (ConstraintKind.MINIMUM, ConstraintKind.MAXIMUM),
    (ConstraintKind.MIN_LENGTH, ConstraintKind.MAX_LENGTH),
    (ConstraintKind.MIN_ITEMS, ConstraintKind.MAX_ITEMS),
)
_EXCLUSIVE_BOUNDS = {
    ConstraintKind.EXCLUSIVE_MINIMUM: ConstraintKind.MINIMUM,
    ConstraintKind.EXCLUSIVE_MAXIMUM: ConstraintKind.MAXIMUM,
}


@dataclass(frozen=True)
class EffectiveAttributes:  # pylint: disable=too-many-instance-attributes
    """Resolved view of one container, field, or variant."""

    name: str
    description: str | None = None
    title: str | None = None
    format: str | None = None
    required: bool = True
    skip: bool = False
    deprecated: bool = False
    example: Any = None
    default: Any = None
    has_default: bool = False
    rename_all: CasingPolicy | None = None
    tag: str | None = None
    constraints: tuple[Constraint, ...] = ()
    status: str | None = None


def resolve_container(
    name: str,
    directives: Sequence[OverrideDirective],
    *,
    scope: DirectiveScope,
    description: str | None = None,
) -> EffectiveAttributes:
    """Resolve container-level attributes of a struct or enum."""
    if scope not in _CONTAINER_SCOPES:
        raise ValueError(f"Container scope expected, got {scope.value}")
    collected = _collect_directives(name, directives, scope)
    tag = collected.get(Tag)
    return EffectiveAttributes(
        name=_explicit_or(collected, name, rename_all=None),
        rename_all=_rename_all(collected),
        tag=tag.property_name if tag else None,
        **_metadata(collected, description),
    )


def resolve_field(
    name: str,
    directives: Sequence[OverrideDirective],
    *,
    container_rename_all: CasingPolicy | None,
    is_optional: bool,
    description: str | None = None,
    target: str | None = None,
) -> EffectiveAttributes:
    """Resolve the effective name and requiredness of a struct field.

    Args:
      name: Field name as declared.
      directives: Field-level directives.
      container_rename_all: Casing policy inherited from the enclosing container.
      is_optional: Whether the field type or declaration marks it optional.
      description: Doc-comment description supplied by the descriptor.
      target: Qualified label used in conflict messages.

    Returns:
      The effective attributes; ``skip`` fields must be dropped by the caller.
    """
    label = target or name
    collected = _collect_directives(label, directives, DirectiveScope.FIELD)
    default = collected.get(Default)
    fmt = collected.get(Format)
    return EffectiveAttributes(
        name=_explicit_or(collected, name, rename_all=container_rename_all),
        format=fmt.hint if fmt else None,
        required=not is_optional and default is None,
        skip=Skip in collected,
        default=default.value if default else None,
        has_default=default is not None,
        constraints=_constraints(label, collected),
        **_metadata(collected, description),
    )


def resolve_variant(
    name: str,
    directives: Sequence[OverrideDirective],
    *,
    container_rename_all: CasingPolicy | None,
    description: str | None = None,
    target: str | None = None,
) -> EffectiveAttributes:
    """Resolve the effective name of an enum variant.

    A variant-level ``RenameAll`` is kept on the result and applies to the fields
    of a struct-shaped variant, not to the variant name itself.
    """
    collected = _collect_directives(target or name, directives, DirectiveScope.VARIANT)
    status = collected.get(Status)
    return EffectiveAttributes(
        name=_explicit_or(collected, name, rename_all=container_rename_all),
        skip=Skip in collected,
        rename_all=_rename_all(collected),
        status=status.code if isinstance(status, Status) else None,
        **_metadata(collected, description),
    )


def _collect_directives(
    target: str, directives: Sequence[OverrideDirective], scope: DirectiveScope
) -> dict[object, OverrideDirective]:
    collected: dict[object, OverrideDirective] = {}
    for directive in directives:
        kind = type(directive)
        key: object = (kind, directive.kind) if isinstance(directive, Constraint) else kind
        allowed = _DIRECTIVE_SCOPES.get(kind)
        if allowed is None:
            raise AttributeConflict(target, [directive], "unknown directive")
        if scope not in allowed:
            raise AttributeConflict(
                target,
                [directive],
                f"{_directive_label(directive)} cannot be applied to a {scope.value}",
            )
        previous = collected.get(key)
        if previous is not None and previous != directive and kind not in _FLAG_DIRECTIVES:
            raise AttributeConflict(
                target,
                [previous, directive],
                f"{_directive_label(directive)} is given more than one value",
            )
        collected[key] = directive
    return collected


def _directive_label(directive: OverrideDirective) -> str:
    if isinstance(directive, Constraint):
        return directive.kind.value
    return type(directive).__name__


def _constraints(
    target: str, collected: Mapping[object, OverrideDirective]
) -> tuple[Constraint, ...]:
    by_kind = {
        directive.kind: directive
        for directive in collected.values()
        if isinstance(directive, Constraint)
    }
    for lower_kind, upper_kind in _BOUNDS:
        lower, upper = by_kind.get(lower_kind), by_kind.get(upper_kind)
        if lower is not None and upper is not None and lower.value > upper.value:
            raise AttributeConflict(
                target, [lower, upper], f"{lower_kind.value} exceeds {upper_kind.value}"
            )
    for exclusive_kind, bound_kind in _EXCLUSIVE_BOUNDS.items():
        if exclusive_kind in by_kind and bound_kind not in by_kind:
            raise AttributeConflict(
                target,
                [by_kind[exclusive_kind]],
                f"{exclusive_kind.value} needs a {bound_kind.value}",
            )
    return tuple(by_kind.values())


def _explicit_or(
    collected: Mapping[object, OverrideDirective], name: str, *, rename_all: CasingPolicy | None
) -> str:
    rename = collected.get(Rename)
    if isinstance(rename, Rename):
        return rename.name
    if rename_all is not None:
        return apply_casing(name, rename_all)
    return name


def _rename_all(collected: Mapping[object, OverrideDirective]) -> CasingPolicy | None:
    rename_all = collected.get(RenameAll)
    return rename_all.policy if isinstance(rename_all, RenameAll) else None


def _metadata(
    collected: Mapping[object, OverrideDirective], description: str | None
) -> dict:
    explicit_description = collected.get(Description)
    title = collected.get(Title)
    example = collected.get(Example)
    return {
        "description": (
            explicit_description.text
            if isinstance(explicit_description, Description)
            else description
        ),
        "title": title.text if isinstance(title, Title) else None,
        "deprecated": Deprecated in collected,
        "example": example.value if isinstance(example, Example) else None,
    }
