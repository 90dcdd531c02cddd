"""Generation run use-case service."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any

from opencli_spec_builder.component_registry import ComponentRegistry, ComponentRegistryError
from opencli_spec_builder.component_registry.registry_entries import NamingStrategy
from opencli_spec_builder.configuration import ConfigurationError, load_configuration
from opencli_spec_builder.configuration.runtime_settings import (
    BuildConfiguration,
    CommandSpec,
    DescriptorSource,
    ParameterSpec,
    ResponseSpec,
    StructParametersSpec,
)
from opencli_spec_builder.derivation_failures import SpecGenerationError
from opencli_spec_builder.document_assembly import (
    CommandBuilder,
    Document,
    DocumentAssemblyError,
    DocumentBuilder,
    Parameter,
    ParameterLocation,
    Response,
)
from opencli_spec_builder.rendering import (
    OutputFormat,
    RenderError,
    format_for_path,
    render_document,
    write_document,
)
from opencli_spec_builder.schema_derivation import (
    SchemaDeriver,
    parameter_for,
    parameters_from_struct,
    response_for,
    responses_from_enum,
)
from opencli_spec_builder.schema_management.schema_models import schema_to_canonical
from opencli_spec_builder.type_descriptors import (
    DescriptorCatalog,
    DescriptorCatalogError,
    load_descriptor_catalog,
)

from .run_contracts import GenerationArtifacts, GenerationOutcome, GenerationRequest

_LOGGER = logging.getLogger("opencli_spec_builder.generation")
_LOGGER.addHandler(logging.NullHandler())

_BUILD_ERRORS = (
    SpecGenerationError,
    DescriptorCatalogError,
    DocumentAssemblyError,
    ComponentRegistryError,
)


class GenerationRunError(Exception):
    """Raised when a generation use case cannot be completed."""


def execute_spec_generation_run(request: GenerationRequest) -> GenerationOutcome:
    """Load the build configuration, assemble the document, and render it.

    The document is written to the requested or configured output path; when
    neither is set the rendered text is only returned.
    """
    artifacts = _load_generation_artifacts(request.config_path)
    configuration = artifacts.configuration
    try:
        document = assemble_document(artifacts)
    except _BUILD_ERRORS as exc:
        raise GenerationRunError(str(exc)) from exc

    output_path = _resolve_output_path(request, configuration)
    output_format = _resolve_output_format(request, configuration, output_path)
    try:
        rendered = render_document(document, output_format)
        written = write_document(document, output_path, output_format) if output_path else None
    except RenderError as exc:
        raise GenerationRunError(str(exc)) from exc
    _LOGGER.debug("Generated document with %d components", len(document.components.schemas))
    return GenerationOutcome(
        document=document,
        rendered=rendered,
        output_format=output_format,
        output_path=written,
    )


def assemble_document(artifacts: GenerationArtifacts) -> Document:
    """Build the document described by the configuration against the catalog."""
    configuration = artifacts.configuration
    registry = ComponentRegistry(configuration.output.component_naming)
    deriver = SchemaDeriver(registry, artifacts.catalog)
    builder = DocumentBuilder(configuration.info, registry)
    for tag in configuration.tags:
        builder.add_tag(tag)
    for platform in configuration.platforms:
        builder.add_platform(platform)
    for variable in configuration.environment:
        builder.add_environment_variable(variable)
    if configuration.external_docs is not None:
        builder.set_external_docs(configuration.external_docs)
    for command in configuration.commands:
        command_builder = builder.add_command(command.name, **_command_details(command))
        _populate_command(command_builder, command, artifacts, deriver)
    return builder.build()


def describe_type(
    descriptors_path: Path | str,
    type_expression: str,
    *,
    naming: NamingStrategy | str = NamingStrategy.SHORT,
) -> dict[str, Any]:
    """Derive one type expression and return its schema and the components it needs."""
    try:
        catalog = load_descriptor_catalog(descriptors_path)
        registry = ComponentRegistry(NamingStrategy(naming))
        schema = SchemaDeriver(registry, catalog).derive(catalog.descriptor_for(type_expression))
    except _BUILD_ERRORS as exc:
        raise GenerationRunError(str(exc)) from exc
    described: dict[str, Any] = {"schema": schema_to_canonical(schema)}
    components = registry.snapshot()
    if components:
        described["components"] = {
            name: schema_to_canonical(component) for name, component in components.items()
        }
    return described


def _load_generation_artifacts(config_path: str) -> GenerationArtifacts:
    try:
        configuration = load_configuration(config_path)
        catalog = _load_catalog(configuration.descriptors)
    except (ConfigurationError, DescriptorCatalogError, OSError) as exc:
        raise GenerationRunError(str(exc)) from exc
    return GenerationArtifacts(configuration=configuration, catalog=catalog)


def _load_catalog(source: DescriptorSource) -> DescriptorCatalog:
    if source.inline is not None:
        return load_descriptor_catalog(source.inline)
    if source.path is None:
        raise ConfigurationError("Descriptor source requires either inline or path.")
    return load_descriptor_catalog(source.path)


def _command_details(command: CommandSpec) -> dict[str, Any]:
    return {
        "summary": command.summary,
        "description": command.description,
        "operation_id": command.operation_id,
        "aliases": command.aliases,
        "tags": command.tags,
    }


def _populate_command(
    builder: CommandBuilder,
    command: CommandSpec,
    artifacts: GenerationArtifacts,
    deriver: SchemaDeriver,
) -> None:
    next_position = 1
    for spec in command.parameters:
        for parameter in _parameters_for(spec, artifacts.catalog, deriver, next_position):
            builder.add_parameter(parameter)
            if parameter.location is ParameterLocation.ARGUMENT and parameter.position is not None:
                next_position = max(next_position, parameter.position + 1)
    for response in command.responses:
        builder.add_response(response.code, _response_for(response, artifacts.catalog, deriver))
    if command.responses_from is not None:
        descriptor = artifacts.catalog.descriptor_for(command.responses_from)
        for code, response in responses_from_enum(descriptor, deriver).items():
            builder.add_response(code, response)
    for subcommand in command.subcommands:
        child = builder.add_subcommand(subcommand.name, **_command_details(subcommand))
        _populate_command(child, subcommand, artifacts, deriver)


def _parameters_for(
    spec: ParameterSpec | StructParametersSpec,
    catalog: DescriptorCatalog,
    deriver: SchemaDeriver,
    next_position: int,
) -> tuple[Parameter, ...]:
    if isinstance(spec, StructParametersSpec):
        return parameters_from_struct(
            catalog.descriptor_for(spec.type_expression),
            deriver,
            locations=spec.locations,
            scope=spec.scope,
            first_position=next_position,
        )
    position = spec.position
    if spec.location is ParameterLocation.ARGUMENT and position is None:
        position = next_position
    if spec.type_expression is None:
        return (
            Parameter(
                name=spec.name,
                location=spec.location,
                position=position,
                aliases=spec.aliases,
                description=spec.description,
                required=bool(spec.required),
                scope=spec.scope,
                arity=spec.arity,
            ),
        )
    parameter = parameter_for(
        spec.name,
        catalog.descriptor_for(spec.type_expression),
        deriver,
        location=spec.location,
        position=position,
        aliases=spec.aliases,
        description=spec.description,
        required=spec.required,
        scope=spec.scope,
        directives=spec.directives,
    )
    if parameter is None:
        return ()
    if spec.arity is not None:
        parameter = dataclasses.replace(parameter, arity=spec.arity)
    return (parameter,)


def _response_for(
    spec: ResponseSpec, catalog: DescriptorCatalog, deriver: SchemaDeriver
) -> Response:
    descriptor = catalog.descriptor_for(spec.type_expression) if spec.type_expression else None
    return response_for(
        descriptor,
        deriver,
        description=spec.description,
        media_type=spec.media_type,
        example=spec.example,
    )


def _resolve_output_path(
    request: GenerationRequest, configuration: BuildConfiguration
) -> Path | None:
    if request.output_path:
        return Path(request.output_path)
    return configuration.output.path


def _resolve_output_format(
    request: GenerationRequest, configuration: BuildConfiguration, output_path: Path | None
) -> OutputFormat:
    if request.output_format:
        try:
            return OutputFormat(request.output_format)
        except ValueError as exc:
            raise GenerationRunError(
                f"Unsupported output format '{request.output_format}'"
            ) from exc
    if request.output_path and output_path is not None:
        return format_for_path(output_path)
    return configuration.output.format
