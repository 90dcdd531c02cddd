"""Document assembly entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from opencli_spec_builder.schema_management.schema_models import SchemaRef

OPENCLI_VERSION = "1.0.0"

KNOWN_PLATFORMS = (
    "windows",
    "macos",
    "darwin",
    "ios",
    "linux",
    "android",
    "freebsd",
    "dragonfly",
    "openbsd",
    "netbsd",
    "aix",
    "solaris",
)


class ParameterLocation(str, Enum):
    """Where a parameter appears on the command line."""

    ARGUMENT = "argument"
    FLAG = "flag"
    OPTION = "option"


class ParameterScope(str, Enum):
    """Visibility of a parameter to subcommands."""

    LOCAL = "local"
    INHERITED = "inherited"


@dataclass(frozen=True)
class Contact:
    """Maintainer contact details."""

    name: str | None = None
    url: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class License:
    """License of the described tool."""

    name: str
    url: str | None = None


@dataclass(frozen=True)
class Info:
    """Document metadata."""

    title: str
    version: str
    description: str | None = None
    contact: Contact | None = None
    license: License | None = None


@dataclass(frozen=True)
class Arity:
    """Number of values a parameter accepts."""

    min: int | None = None
    max: int | None = None


@dataclass(frozen=True)
class Parameter:  # pylint: disable=too-many-instance-attributes
    """One argument, flag, or option of a command."""

    name: str
    location: ParameterLocation = ParameterLocation.OPTION
    position: int | None = None
    aliases: tuple[str, ...] = ()
    description: str | None = None
    required: bool = False
    scope: ParameterScope | None = None
    arity: Arity | None = None
    schema: SchemaRef | None = None


@dataclass(frozen=True)
class MediaType:
    """Schema and example of one output media type."""

    schema: SchemaRef | None = None
    example: Any = None


@dataclass(frozen=True)
class Response:
    """Outcome of a command for one exit code."""

    description: str | None = None
    content: Mapping[str, MediaType] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "content", MappingProxyType(dict(self.content)))


@dataclass(frozen=True)
class Command:  # pylint: disable=too-many-instance-attributes
    """Command node with its parameters, responses, and subcommands."""

    name: str
    summary: str | None = None
    description: str | None = None
    operation_id: str | None = None
    aliases: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    parameters: tuple[Parameter, ...] = ()
    responses: Mapping[str, Response] = field(default_factory=dict)
    subcommands: tuple[Command, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "responses", MappingProxyType(dict(self.responses)))


@dataclass(frozen=True)
class Tag:
    """Grouping label for commands."""

    name: str
    description: str | None = None


@dataclass(frozen=True)
class Platform:
    """Supported operating system and architectures."""

    name: str
    architectures: tuple[str, ...] = ()


@dataclass(frozen=True)
class EnvironmentVariable:
    """Environment variable read by the tool."""

    name: str
    description: str | None = None


@dataclass(frozen=True)
class ExternalDocs:
    """Link to further documentation."""

    url: str
    description: str | None = None


@dataclass(frozen=True)
class Components:
    """Named schemas referenced from the document."""

    schemas: Mapping[str, SchemaRef] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "schemas", MappingProxyType(dict(self.schemas)))


@dataclass(frozen=True)
class Document:  # pylint: disable=too-many-instance-attributes
    """Finished, immutable OpenCLI document."""

    info: Info
    commands: tuple[Command, ...]
    components: Components
    tags: tuple[Tag, ...] = ()
    platforms: tuple[Platform, ...] = ()
    environment: tuple[EnvironmentVariable, ...] = ()
    external_docs: ExternalDocs | None = None
    opencli: str = OPENCLI_VERSION
