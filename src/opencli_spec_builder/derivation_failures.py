"""Terminal failures raised while deriving schemas for a document build."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class SpecGenerationError(Exception):
    """Base class for every failure of a schema derivation or document build."""


class UnsupportedType(SpecGenerationError):
    """Raised when a descriptor shape cannot be represented as a schema."""

    def __init__(self, identity: Any, path: Sequence[str], reason: str | None = None) -> None:
        self.identity = identity
        self.path = tuple(path)
        self.reason = reason
        message = f"Unsupported type '{identity}' at {_render_path(self.path)}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class AttributeConflict(SpecGenerationError):
    """Raised when override directives on one target cannot be resolved."""

    def __init__(self, target: str, directives: Sequence[Any], reason: str) -> None:
        self.target = target
        self.directives = tuple(directives)
        self.reason = reason
        rendered = ", ".join(repr(directive) for directive in self.directives)
        super().__init__(f"Conflicting directives on '{target}' ({rendered}): {reason}")


class NameCollision(SpecGenerationError):
    """Raised when two structurally different types share one component name."""

    def __init__(self, name: str, identity_a: Any, identity_b: Any) -> None:
        self.name = name
        self.identity_a = identity_a
        self.identity_b = identity_b
        super().__init__(
            f"Component name '{name}' is claimed by two different types: "
            f"'{identity_a}' and '{identity_b}'"
        )


class MissingDescriptor(SpecGenerationError):
    """Raised when a referenced type has no descriptor available."""

    def __init__(self, identity: Any, path: Sequence[str] = ()) -> None:
        self.identity = identity
        self.path = tuple(path)
        super().__init__(f"No descriptor available for '{identity}' at {_render_path(self.path)}")


def _render_path(path: Sequence[str]) -> str:
    return ".".join(path) if path else "<root>"
