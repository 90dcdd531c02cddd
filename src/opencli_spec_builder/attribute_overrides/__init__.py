"""Attribute override exports."""

from .identifier_casing import apply_casing, parse_casing_policy, split_words
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
from .override_resolver import (
    DEFAULT_DISCRIMINATOR_PROPERTY,
    EffectiveAttributes,
    resolve_container,
    resolve_field,
    resolve_variant,
)

__all__ = [
    "CasingPolicy",
    "Constraint",
    "ConstraintKind",
    "Default",
    "Deprecated",
    "Description",
    "DirectiveScope",
    "Example",
    "Format",
    "OverrideDirective",
    "Rename",
    "RenameAll",
    "Skip",
    "Status",
    "Tag",
    "Title",
    "DEFAULT_DISCRIMINATOR_PROPERTY",
    "EffectiveAttributes",
    "apply_casing",
    "parse_casing_policy",
    "split_words",
    "resolve_container",
    "resolve_field",
    "resolve_variant",
]
