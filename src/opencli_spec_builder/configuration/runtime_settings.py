"""Configuration domain entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from opencli_spec_builder.attribute_overrides.override_directives import OverrideDirective
from opencli_spec_builder.component_registry.registry_entries import NamingStrategy
from opencli_spec_builder.document_assembly.document_models import (
    Arity,
    EnvironmentVariable,
    ExternalDocs,
    Info,
    ParameterLocation,
    ParameterScope,
    Platform,
    Tag,
)
from opencli_spec_builder.rendering.document_renderer import OutputFormat


@dataclass(frozen=True)
class DescriptorSource:
    """Where the descriptor catalog comes from; exactly one field is set."""

    path: Path | None = None
    inline: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class OutputSettings:
    """Rendering and naming settings."""

    format: OutputFormat = OutputFormat.YAML
    path: Path | None = None
    component_naming: NamingStrategy = NamingStrategy.SHORT


@dataclass(frozen=True)
class ParameterSpec:  # pylint: disable=too-many-instance-attributes
    """One explicitly declared command parameter."""

    name: str
    location: ParameterLocation
    type_expression: str | None = None
    position: int | None = None
    aliases: tuple[str, ...] = ()
    description: str | None = None
    required: bool | None = None
    scope: ParameterScope | None = None
    arity: Arity | None = None
    directives: tuple[OverrideDirective, ...] = ()


@dataclass(frozen=True)
class StructParametersSpec:
    """Parameters flattened from the fields of a catalog struct."""

    type_expression: str
    locations: Mapping[str, ParameterLocation] = field(default_factory=dict)
    scope: ParameterScope | None = None


@dataclass(frozen=True)
class ResponseSpec:
    """Response of one exit code."""

    code: str
    description: str | None = None
    type_expression: str | None = None
    media_type: str = "application/json"
    example: Any = None


@dataclass(frozen=True)
class CommandSpec:  # pylint: disable=too-many-instance-attributes
    """Declared command with nested subcommands."""

    name: str
    summary: str | None = None
    description: str | None = None
    operation_id: str | None = None
    aliases: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    parameters: tuple[ParameterSpec | StructParametersSpec, ...] = ()
    responses: tuple[ResponseSpec, ...] = ()
    responses_from: str | None = None
    subcommands: tuple[CommandSpec, ...] = ()


@dataclass(frozen=True)
class BuildConfiguration:  # pylint: disable=too-many-instance-attributes
    """Top-level build configuration aggregate."""

    path: Path
    info: Info
    descriptors: DescriptorSource
    output: OutputSettings
    commands: tuple[CommandSpec, ...]
    tags: tuple[Tag, ...] = ()
    platforms: tuple[Platform, ...] = ()
    environment: tuple[EnvironmentVariable, ...] = ()
    external_docs: ExternalDocs | None = None
