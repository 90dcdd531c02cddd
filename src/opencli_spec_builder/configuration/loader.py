"""Configuration loader service."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from opencli_spec_builder.component_registry.registry_entries import NamingStrategy
from opencli_spec_builder.document_assembly.document_models import (
    KNOWN_PLATFORMS,
    Arity,
    Contact,
    EnvironmentVariable,
    ExternalDocs,
    Info,
    License,
    ParameterLocation,
    ParameterScope,
    Platform,
    Tag,
)
from opencli_spec_builder.rendering.document_renderer import OutputFormat
from opencli_spec_builder.type_descriptors.descriptor_catalog import (
    DescriptorCatalogError,
    parse_directives,
    plain_value,
)
from opencli_spec_builder.type_descriptors.type_expressions import (
    TypeExpressionError,
    parse_type_expression,
)

from .runtime_settings import (
    BuildConfiguration,
    CommandSpec,
    DescriptorSource,
    OutputSettings,
    ParameterSpec,
    ResponseSpec,
    StructParametersSpec,
)


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_configuration(config_path: Path | str) -> BuildConfiguration:
    """Load and validate the build configuration file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    base_path = path.parent
    info = _parse_info_section(parsed.get("info"))
    descriptors = _parse_descriptors_section(parsed.get("descriptors"), base_path)
    output = _parse_output_section(parsed.get("output"), base_path)
    commands = _parse_commands(parsed.get("commands"), "commands")
    tags = tuple(
        Tag(
            name=_require_non_empty_string(item.get("name"), f"tags[{index}].name"),
            description=_optional_string(item.get("description"), f"tags[{index}].description"),
        )
        for index, item in enumerate(_mapping_list(parsed.get("tags"), "tags"))
    )
    platforms = tuple(
        _parse_platform(item, f"platforms[{index}]")
        for index, item in enumerate(_mapping_list(parsed.get("platforms"), "platforms"))
    )
    environment = tuple(
        EnvironmentVariable(
            name=_require_non_empty_string(item.get("name"), f"environment[{index}].name"),
            description=_optional_string(
                item.get("description"), f"environment[{index}].description"
            ),
        )
        for index, item in enumerate(_mapping_list(parsed.get("environment"), "environment"))
    )
    external_docs = _parse_external_docs(parsed.get("external_docs"))

    return BuildConfiguration(
        path=path,
        info=info,
        descriptors=descriptors,
        output=output,
        commands=commands,
        tags=tags,
        platforms=platforms,
        environment=environment,
        external_docs=external_docs,
    )


def _parse_info_section(value: Any) -> Info:
    section = _require_mapping(value, "info")
    contact = None
    if section.get("contact") is not None:
        contact_section = _require_mapping(section.get("contact"), "info.contact")
        contact = Contact(
            name=_optional_string(contact_section.get("name"), "info.contact.name"),
            url=_optional_string(contact_section.get("url"), "info.contact.url"),
            email=_optional_string(contact_section.get("email"), "info.contact.email"),
        )
    license_ = None
    if section.get("license") is not None:
        license_section = _require_mapping(section.get("license"), "info.license")
        license_ = License(
            name=_require_non_empty_string(license_section.get("name"), "info.license.name"),
            url=_optional_string(license_section.get("url"), "info.license.url"),
        )
    return Info(
        title=_require_non_empty_string(section.get("title"), "info.title"),
        version=_require_non_empty_string(_stringify(section.get("version")), "info.version"),
        description=_optional_string(section.get("description"), "info.description"),
        contact=contact,
        license=license_,
    )


def _parse_descriptors_section(value: Any, base_path: Path) -> DescriptorSource:
    section = _require_mapping(value, "descriptors")
    inline = section.get("inline")
    path_value = section.get("path")
    if inline and path_value:
        raise ConfigurationError("Descriptor source must not set both inline and path.")
    if inline:
        if not isinstance(inline, Mapping):
            raise ConfigurationError("descriptors.inline must be a mapping.")
        return DescriptorSource(inline=dict(inline))
    if path_value:
        if not isinstance(path_value, str):
            raise ConfigurationError("descriptors.path must be a string.")
        catalog_path = _resolve_path(base_path, path_value)
        if not catalog_path.exists():
            raise ConfigurationError(f"Descriptor catalog not found: {catalog_path}")
        return DescriptorSource(path=catalog_path)
    raise ConfigurationError("Descriptor source requires either inline or path.")


def _parse_output_section(value: Any, base_path: Path) -> OutputSettings:
    if value is None:
        return OutputSettings()
    section = _require_mapping(value, "output")
    output_format = _parse_choice(section.get("format", "yaml"), OutputFormat, "output.format")
    naming = _parse_choice(
        section.get("component_naming", "short"), NamingStrategy, "output.component_naming"
    )
    path_value = _optional_string(section.get("path"), "output.path")
    return OutputSettings(
        format=output_format,
        path=_resolve_path(base_path, path_value) if path_value else None,
        component_naming=naming,
    )


def _parse_commands(value: Any, label: str) -> tuple[CommandSpec, ...]:
    if value is None:
        return ()
    if not isinstance(value, Sequence) or isinstance(value, str):
        raise ConfigurationError(f"{label} must be a list of commands.")
    commands: list[CommandSpec] = []
    for index, raw in enumerate(value):
        command = _parse_command(raw, f"{label}[{index}]")
        if any(existing.name == command.name for existing in commands):
            raise ConfigurationError(f"{label} declares command '{command.name}' twice.")
        commands.append(command)
    return tuple(commands)


def _parse_command(value: Any, label: str) -> CommandSpec:
    section = _require_mapping(value, label)
    name = _require_non_empty_string(section.get("name"), f"{label}.name")
    parameters = tuple(
        _parse_parameter(item, f"{label}.parameters[{index}]")
        for index, item in enumerate(
            _mapping_list(section.get("parameters"), f"{label}.parameters")
        )
    )
    responses = _parse_responses(section.get("responses"), f"{label}.responses")
    responses_from = section.get("responses_from")
    return CommandSpec(
        name=name,
        summary=_optional_string(section.get("summary"), f"{label}.summary"),
        description=_optional_string(section.get("description"), f"{label}.description"),
        operation_id=_optional_string(section.get("operation_id"), f"{label}.operation_id"),
        aliases=_normalize_string_sequence(section.get("aliases"), f"{label}.aliases"),
        tags=_normalize_string_sequence(section.get("tags"), f"{label}.tags"),
        parameters=parameters,
        responses=responses,
        responses_from=(
            _require_type_expression(responses_from, f"{label}.responses_from")
            if responses_from is not None
            else None
        ),
        subcommands=_parse_commands(section.get("subcommands"), f"{label}.subcommands"),
    )


def _parse_parameter(
    section: Mapping[str, Any], label: str
) -> ParameterSpec | StructParametersSpec:
    if "from" in section:
        locations_section = section.get("locations") or {}
        if not isinstance(locations_section, Mapping):
            raise ConfigurationError(f"{label}.locations must be a mapping.")
        return StructParametersSpec(
            type_expression=_require_type_expression(section.get("from"), f"{label}.from"),
            locations={
                str(field_name): _parse_choice(
                    location, ParameterLocation, f"{label}.locations.{field_name}"
                )
                for field_name, location in locations_section.items()
            },
            scope=_optional_choice(section.get("scope"), ParameterScope, f"{label}.scope"),
        )

    type_value = section.get("type")
    try:
        directives = parse_directives(section.get("directives"), label)
    except DescriptorCatalogError as exc:
        raise ConfigurationError(str(exc)) from exc
    required = section.get("required")
    if required is not None and not isinstance(required, bool):
        raise ConfigurationError(f"{label}.required must be true or false.")
    position = section.get("position")
    return ParameterSpec(
        name=_require_non_empty_string(section.get("name"), f"{label}.name"),
        location=_parse_choice(section.get("in", "option"), ParameterLocation, f"{label}.in"),
        type_expression=(
            _require_type_expression(type_value, f"{label}.type")
            if type_value is not None
            else None
        ),
        position=(
            _require_positive_int(position, f"{label}.position") if position is not None else None
        ),
        aliases=_normalize_string_sequence(section.get("aliases"), f"{label}.aliases"),
        description=_optional_string(section.get("description"), f"{label}.description"),
        required=required,
        scope=_optional_choice(section.get("scope"), ParameterScope, f"{label}.scope"),
        arity=_parse_arity(section.get("arity"), f"{label}.arity"),
        directives=directives,
    )


def _parse_responses(value: Any, label: str) -> tuple[ResponseSpec, ...]:
    if value is None:
        return ()
    section = _require_mapping(value, label)
    responses: list[ResponseSpec] = []
    for code, raw in section.items():
        code_label = f"{label}.{code}"
        if isinstance(code, bool) or not isinstance(code, (int, str)) or not str(code).strip():
            raise ConfigurationError(f"{label} keys must be exit codes.")
        body = _require_mapping(raw or {}, code_label)
        type_value = body.get("type")
        responses.append(
            ResponseSpec(
                code=str(code).strip(),
                description=_optional_string(body.get("description"), f"{code_label}.description"),
                type_expression=(
                    _require_type_expression(type_value, f"{code_label}.type")
                    if type_value is not None
                    else None
                ),
                media_type=_require_non_empty_string(
                    body.get("media_type", "application/json"), f"{code_label}.media_type"
                ),
                example=_plain_example(body.get("example"), f"{code_label}.example"),
            )
        )
    return tuple(responses)


def _plain_example(value: Any, label: str) -> Any:
    try:
        return plain_value(value, label)
    except DescriptorCatalogError as exc:
        raise ConfigurationError(str(exc)) from exc


def _parse_arity(value: Any, label: str) -> Arity | None:
    if value is None:
        return None
    section = _require_mapping(value, label)
    minimum = section.get("min")
    maximum = section.get("max")
    arity = Arity(
        min=_require_non_negative_int(minimum, f"{label}.min") if minimum is not None else None,
        max=_require_non_negative_int(maximum, f"{label}.max") if maximum is not None else None,
    )
    if arity.min is not None and arity.max is not None and arity.min > arity.max:
        raise ConfigurationError(f"{label}.min must not exceed {label}.max.")
    return arity


def _parse_platform(section: Mapping[str, Any], label: str) -> Platform:
    name = _require_non_empty_string(section.get("name"), f"{label}.name").lower()
    if name not in KNOWN_PLATFORMS:
        raise ConfigurationError(
            f"{label}.name '{name}' is not a known platform ({', '.join(KNOWN_PLATFORMS)})."
        )
    return Platform(
        name=name,
        architectures=_normalize_string_sequence(
            section.get("architectures"), f"{label}.architectures"
        ),
    )


def _parse_external_docs(value: Any) -> ExternalDocs | None:
    if value is None:
        return None
    section = _require_mapping(value, "external_docs")
    return ExternalDocs(
        url=_require_non_empty_string(section.get("url"), "external_docs.url"),
        description=_optional_string(section.get("description"), "external_docs.description"),
    )


def _require_type_expression(value: Any, field_name: str) -> str:
    text = _require_non_empty_string(value, field_name)
    try:
        parse_type_expression(text)
    except TypeExpressionError as exc:
        raise ConfigurationError(f"{field_name}: {exc}") from exc
    return text


def _parse_choice(value: Any, choices: type, field_name: str):
    try:
        return choices(value)
    except ValueError as exc:
        supported = ", ".join(item.value for item in choices)
        raise ConfigurationError(
            f"{field_name} must be one of {supported}, got '{value}'."
        ) from exc


def _optional_choice(value: Any, choices: type, field_name: str):
    return None if value is None else _parse_choice(value, choices, field_name)


def _mapping_list(value: Any, field_name: str) -> tuple[Mapping[str, Any], ...]:
    if value is None:
        return ()
    if not isinstance(value, Sequence) or isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a list.")
    for item in value:
        if not isinstance(item, Mapping):
            raise ConfigurationError(f"{field_name} entries must be mappings.")
    return tuple(value)


def _normalize_string_sequence(value: Any, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        stripped = value.strip()
        return (stripped,) if stripped else ()
    if isinstance(value, Sequence):
        normalized = []
        for item in value:
            if not isinstance(item, str):
                raise ConfigurationError(f"{field_name} entries must be strings.")
            stripped = item.strip()
            if stripped:
                normalized.append(stripped)
        return tuple(normalized)
    raise ConfigurationError(f"{field_name} must be a string or list of strings.")


def _stringify(value: Any) -> Any:
    # YAML reads unquoted versions such as 1.0 as floats.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _resolve_path(base_path: Path, raw_path: str) -> Path:
    candidate = Path(raw_path)
    if not candidate.is_absolute():
        return (base_path / candidate).resolve()
    return candidate


def _require_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' is required.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None


def _require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if value <= 0:
        raise ConfigurationError(f"{field_name} must be greater than zero.")
    return value


def _require_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if value < 0:
        raise ConfigurationError(f"{field_name} must not be negative.")
    return value
