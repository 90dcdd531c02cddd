"""Incremental document assembly with per-mutation validation."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from opencli_spec_builder.component_registry.component_registry import ComponentRegistry
from opencli_spec_builder.schema_management.schema_models import SchemaRef, iter_references

from .document_models import (
    Command,
    Components,
    Document,
    EnvironmentVariable,
    ExternalDocs,
    Info,
    Parameter,
    ParameterLocation,
    Platform,
    Response,
    Tag,
)

_LOGGER = logging.getLogger("opencli_spec_builder.assembly")
_LOGGER.addHandler(logging.NullHandler())


class DocumentAssemblyError(Exception):
    """Raised when a command tree or document cannot be assembled."""


class UnresolvedReference(DocumentAssemblyError):
    """Raised when a reference does not resolve inside the built components."""

    def __init__(self, name: str, location: str) -> None:
        self.name = name
        self.location = location
        super().__init__(f"Reference to unknown component '{name}' in {location}")


class CommandBuilder:
    """Collects one command's parameters, responses, and subcommands."""

    def __init__(  # pylint: disable=too-many-arguments
        self,
        name: str,
        *,
        summary: str | None = None,
        description: str | None = None,
        operation_id: str | None = None,
        aliases: Iterable[str] = (),
        tags: Iterable[str] = (),
    ) -> None:
        _require_command_name(name)
        self._name = name
        self._summary = summary
        self._description = description
        self._operation_id = operation_id
        self._aliases = tuple(aliases)
        self._tags = tuple(tags)
        self._parameters: list[Parameter] = []
        self._responses: dict[str, Response] = {}
        self._subcommands: list[CommandBuilder] = []
        self._sealed = False

    @property
    def name(self) -> str:
        """Command name."""
        return self._name

    def add_parameter(self, parameter: Parameter) -> CommandBuilder:
        """Append a parameter; names and argument positions must be unique."""
        self._ensure_open()
        if any(existing.name == parameter.name for existing in self._parameters):
            raise DocumentAssemblyError(
                f"Command '{self._name}' already has a parameter named '{parameter.name}'"
            )
        if parameter.location is ParameterLocation.ARGUMENT:
            if parameter.position is None:
                raise DocumentAssemblyError(
                    f"Argument '{parameter.name}' of command '{self._name}' needs a position"
                )
            if any(
                existing.location is ParameterLocation.ARGUMENT
                and existing.position == parameter.position
                for existing in self._parameters
            ):
                raise DocumentAssemblyError(
                    f"Command '{self._name}' already has an argument at position "
                    f"{parameter.position}"
                )
        self._parameters.append(parameter)
        return self

    def add_response(self, code: int | str, response: Response) -> CommandBuilder:
        """Register the response for one exit code."""
        self._ensure_open()
        key = str(code)
        if key in self._responses:
            raise DocumentAssemblyError(
                f"Command '{self._name}' already has a response for code {key}"
            )
        self._responses[key] = response
        return self

    def add_subcommand(self, subcommand: CommandBuilder | str, **details) -> CommandBuilder:
        """Attach a subcommand and return its builder."""
        self._ensure_open()
        child = _as_builder(subcommand, details)
        _require_unique(child.name, self._subcommands, f"command '{self._name}'")
        self._subcommands.append(child)
        return child

    def build(self) -> Command:
        """Return the immutable command tree rooted at this builder."""
        return Command(
            name=self._name,
            summary=self._summary,
            description=self._description,
            operation_id=self._operation_id,
            aliases=self._aliases,
            tags=self._tags,
            parameters=tuple(self._parameters),
            responses=dict(self._responses),
            subcommands=tuple(child.build() for child in self._subcommands),
        )

    def seal(self) -> None:
        """Reject any further mutation of this command tree."""
        self._sealed = True
        for child in self._subcommands:
            child.seal()

    def _ensure_open(self) -> None:
        if self._sealed:
            raise DocumentAssemblyError(f"Command '{self._name}' belongs to a built document")


class DocumentBuilder:
    """Builds one document against the component registry its schemas live in."""

    def __init__(self, info: Info, registry: ComponentRegistry) -> None:
        self._info = info
        self._registry = registry
        self._commands: list[CommandBuilder] = []
        self._tags: list[Tag] = []
        self._platforms: list[Platform] = []
        self._environment: list[EnvironmentVariable] = []
        self._external_docs: ExternalDocs | None = None
        self._built = False

    @property
    def registry(self) -> ComponentRegistry:
        """Registry whose finalized entries become the components section."""
        return self._registry

    def add_command(self, command: CommandBuilder | str, **details) -> CommandBuilder:
        """Attach a top-level command and return its builder."""
        self._ensure_open()
        builder = _as_builder(command, details)
        _require_unique(builder.name, self._commands, "the document")
        self._commands.append(builder)
        return builder

    def add_tag(self, tag: Tag) -> DocumentBuilder:
        """Declare a tag; names must be unique."""
        self._ensure_open()
        if any(existing.name == tag.name for existing in self._tags):
            raise DocumentAssemblyError(f"Tag '{tag.name}' is declared twice")
        self._tags.append(tag)
        return self

    def add_platform(self, platform: Platform) -> DocumentBuilder:
        """Declare a supported platform; names must be unique."""
        self._ensure_open()
        if any(existing.name == platform.name for existing in self._platforms):
            raise DocumentAssemblyError(f"Platform '{platform.name}' is declared twice")
        self._platforms.append(platform)
        return self

    def add_environment_variable(self, variable: EnvironmentVariable) -> DocumentBuilder:
        """Declare an environment variable; names must be unique."""
        self._ensure_open()
        if any(existing.name == variable.name for existing in self._environment):
            raise DocumentAssemblyError(f"Environment variable '{variable.name}' is declared twice")
        self._environment.append(variable)
        return self

    def set_external_docs(self, external_docs: ExternalDocs) -> DocumentBuilder:
        """Set the external documentation link."""
        self._ensure_open()
        self._external_docs = external_docs
        return self

    def build(self) -> Document:
        """Validate the command tree against the registry and return the document.

        Raises:
          DocumentAssemblyError: when a component is still mid-derivation or the
            document was already built.
          UnresolvedReference: when any reference does not resolve among the
            finalized components.
        """
        self._ensure_open()
        pending = self._registry.open_reservations()
        if pending:
            raise DocumentAssemblyError(
                f"Components are still being derived: {', '.join(pending)}"
            )
        schemas = dict(self._registry.snapshot())
        commands = tuple(builder.build() for builder in self._commands)

        for location, schema in _schema_locations(commands, schemas):
            for reference in iter_references(schema):
                if reference.name not in schemas:
                    raise UnresolvedReference(reference.name, location)

        self._registry.close()
        self._built = True
        for builder in self._commands:
            builder.seal()
        _LOGGER.debug(
            "Built document with %d commands and %d components", len(commands), len(schemas)
        )
        return Document(
            info=self._info,
            commands=commands,
            components=Components(schemas=schemas),
            tags=tuple(self._tags),
            platforms=tuple(self._platforms),
            environment=tuple(self._environment),
            external_docs=self._external_docs,
        )

    def _ensure_open(self) -> None:
        if self._built:
            raise DocumentAssemblyError("Document is already built")


def _schema_locations(
    commands: Iterable[Command], schemas: dict[str, SchemaRef]
) -> Iterator[tuple[str, SchemaRef]]:
    for name, schema in schemas.items():
        yield f"component '{name}'", schema
    for command in commands:
        yield from _command_schema_locations(command, ())


def _command_schema_locations(
    command: Command, parents: tuple[str, ...]
) -> Iterator[tuple[str, SchemaRef]]:
    path = " ".join((*parents, command.name))
    for parameter in command.parameters:
        if parameter.schema is not None:
            yield f"command '{path}' parameter '{parameter.name}'", parameter.schema
    for code, response in command.responses.items():
        for media_type, content in response.content.items():
            if content.schema is not None:
                yield f"command '{path}' response {code} ({media_type})", content.schema
    for child in command.subcommands:
        yield from _command_schema_locations(child, (*parents, command.name))


def _as_builder(command: CommandBuilder | str, details: dict) -> CommandBuilder:
    if isinstance(command, CommandBuilder):
        if details:
            raise TypeError("Command details are only accepted together with a command name")
        return command
    return CommandBuilder(command, **details)


def _require_command_name(name: str) -> None:
    if not isinstance(name, str) or not name.strip():
        raise DocumentAssemblyError("Command names must be non-empty strings")
    if "/" in name or name != name.strip():
        raise DocumentAssemblyError(
            f"Command name '{name}' must not contain '/' or surrounding whitespace"
        )


def _require_unique(name: str, siblings: Iterable[CommandBuilder], owner: str) -> None:
    if any(sibling.name == name for sibling in siblings):
        raise DocumentAssemblyError(f"Command '{name}' is already defined in {owner}")
