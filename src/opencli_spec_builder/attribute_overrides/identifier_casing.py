"""Word-boundary identifier segmentation and casing conversion."""

from __future__ import annotations

import re

from .override_directives import CasingPolicy

_SEPARATOR_PATTERN = re.compile(r"[_\-\s.]+")
# Digits stay attached to the word they follow: "ipv4Address" -> ("ipv4", "Address").
_WORD_PATTERN = re.compile(r"[A-Z]+\d*(?=[A-Z][a-z])|[A-Z]?[a-z]+\d*|[A-Z]+\d*|\d+")


def split_words(identifier: str) -> tuple[str, ...]:
    """Split an identifier into its words regardless of the convention it uses."""
    words: list[str] = []
    for chunk in _SEPARATOR_PATTERN.split(identifier):
        if chunk:
            words.extend(_WORD_PATTERN.findall(chunk))
    return tuple(words)


def apply_casing(identifier: str, policy: CasingPolicy) -> str:
    """Return identifier rewritten under the given casing policy."""
    words = split_words(identifier)
    if not words:
        return identifier
    lowered = [word.lower() for word in words]

    if policy is CasingPolicy.CAMEL_CASE:
        return lowered[0] + "".join(word.capitalize() for word in lowered[1:])
    if policy is CasingPolicy.PASCAL_CASE:
        return "".join(word.capitalize() for word in lowered)
    if policy is CasingPolicy.SNAKE_CASE:
        return "_".join(lowered)
    if policy is CasingPolicy.SCREAMING_SNAKE_CASE:
        return "_".join(word.upper() for word in lowered)
    if policy is CasingPolicy.KEBAB_CASE:
        return "-".join(lowered)
    if policy is CasingPolicy.SCREAMING_KEBAB_CASE:
        return "-".join(word.upper() for word in lowered)
    if policy is CasingPolicy.LOWERCASE:
        return "".join(lowered)
    if policy is CasingPolicy.UPPERCASE:
        return "".join(word.upper() for word in lowered)
    raise ValueError(f"Unsupported casing policy: {policy}")


def parse_casing_policy(value: str) -> CasingPolicy:
    """Parse a casing policy from its serde-style spelling."""
    try:
        return CasingPolicy(value)
    except ValueError as exc:
        supported = ", ".join(policy.value for policy in CasingPolicy)
        raise ValueError(f"Unknown casing policy '{value}'. Supported: {supported}") from exc
