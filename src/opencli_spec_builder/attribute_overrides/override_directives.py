"""Override directive vocabulary attached to containers, fields, and variants."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class CasingPolicy(str, Enum):
    """Supported rename-all casing policies."""

    CAMEL_CASE = "camelCase"
    SNAKE_CASE = "snake_case"
    KEBAB_CASE = "kebab-case"
    PASCAL_CASE = "PascalCase"
    SCREAMING_SNAKE_CASE = "SCREAMING_SNAKE_CASE"
    SCREAMING_KEBAB_CASE = "SCREAMING-KEBAB-CASE"
    LOWERCASE = "lowercase"
    UPPERCASE = "UPPERCASE"


class DirectiveScope(str, Enum):
    """Granularity a directive is attached at."""

    STRUCT = "struct"
    ENUM = "enum"
    FIELD = "field"
    VARIANT = "variant"


@dataclass(frozen=True)
class Rename:
    """Replace the serialized name of the target."""

    name: str


@dataclass(frozen=True)
class RenameAll:
    """Apply a casing policy to every field or variant name of the target."""

    policy: CasingPolicy


@dataclass(frozen=True)
class Description:
    """Override the doc-comment description."""

    text: str


@dataclass(frozen=True)
class Title:
    """Set a schema title."""

    text: str


@dataclass(frozen=True)
class Format:
    """Attach a format hint to a primitive schema."""

    hint: str


@dataclass(frozen=True)
class Skip:
    """Remove the field or variant from the derived schema."""


@dataclass(frozen=True)
class Deprecated:
    """Mark the target as deprecated."""


@dataclass(frozen=True)
class Example:
    """Attach an example value."""

    value: Any


@dataclass(frozen=True)
class Default:
    """Attach a default value; the field becomes non-required."""

    value: Any


@dataclass(frozen=True)
class Tag:
    """Name of the discriminator property injected into struct-shaped variants."""

    property_name: str


class ConstraintKind(str, Enum):
    """Validation keywords a field may carry."""

    MINIMUM = "minimum"
    MAXIMUM = "maximum"
    EXCLUSIVE_MINIMUM = "exclusive_minimum"
    EXCLUSIVE_MAXIMUM = "exclusive_maximum"
    MULTIPLE_OF = "multiple_of"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    PATTERN = "pattern"
    MIN_ITEMS = "min_items"
    MAX_ITEMS = "max_items"
    NULLABLE = "nullable"


@dataclass(frozen=True)
class Constraint:
    """Narrow the values a field accepts; one value per kind."""

    kind: ConstraintKind
    value: Any


@dataclass(frozen=True)
class Status:
    """Exit code a variant stands for when its enum describes command responses."""

    code: str


OverrideDirective = (
    Rename
    | RenameAll
    | Description
    | Title
    | Format
    | Skip
    | Deprecated
    | Example
    | Default
    | Tag
    | Constraint
    | Status
)
