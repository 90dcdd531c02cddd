"""Document rendering service.

Property, parameter and variant order is reproduced exactly as declared;
components come out sorted by name. Absent optional values are omitted rather
than written as null.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from opencli_spec_builder.document_assembly.document_models import (
    Command,
    Document,
    Info,
    Parameter,
    Response,
)
from opencli_spec_builder.schema_management.schema_models import schema_to_canonical


class OutputFormat(str, Enum):
    """Supported serialization formats."""

    YAML = "yaml"
    JSON = "json"


class RenderError(Exception):
    """Raised when a document cannot be rendered or written."""


def document_to_mapping(document: Document) -> dict[str, Any]:
    """Return the document as plain ordered mappings and lists."""
    mapping: dict[str, Any] = {
        "opencli": document.opencli,
        "info": _info_to_mapping(document.info),
        "commands": {
            path: _command_to_mapping(command)
            for path, command in _flatten_commands(document.commands, "")
        },
    }
    if document.components.schemas:
        mapping["components"] = {
            "schemas": {
                name: schema_to_canonical(schema)
                for name, schema in sorted(document.components.schemas.items())
            }
        }
    if document.tags:
        mapping["tags"] = [
            _compact({"name": tag.name, "description": tag.description}) for tag in document.tags
        ]
    if document.platforms:
        mapping["platforms"] = [
            _compact({"name": platform.name, "architectures": list(platform.architectures)})
            for platform in document.platforms
        ]
    if document.environment:
        mapping["environment"] = [
            _compact({"name": variable.name, "description": variable.description})
            for variable in document.environment
        ]
    if document.external_docs is not None:
        mapping["externalDocs"] = _compact(
            {
                "description": document.external_docs.description,
                "url": document.external_docs.url,
            }
        )
    return mapping


def render_document(
    document: Document, output_format: OutputFormat | str = OutputFormat.YAML
) -> str:
    """Serialize document to YAML or JSON text."""
    return render_mapping(document_to_mapping(document), output_format)


def render_mapping(
    mapping: Mapping[str, Any], output_format: OutputFormat | str = OutputFormat.YAML
) -> str:
    """Serialize plain mappings to YAML or JSON text.

    Raises:
      RenderError: when the format is unknown or a value has no form in it.
    """
    resolved = _parse_format(output_format)
    try:
        if resolved is OutputFormat.JSON:
            return json.dumps(mapping, indent=2, ensure_ascii=False) + "\n"
        return yaml.safe_dump(
            dict(mapping), sort_keys=False, allow_unicode=True, default_flow_style=False
        )
    except (TypeError, ValueError, yaml.YAMLError) as exc:
        raise RenderError(f"Failed to render {resolved.value}: {exc}") from exc


def write_document(
    document: Document,
    output_path: Path | str,
    output_format: OutputFormat | str = OutputFormat.YAML,
) -> Path:
    """Render document and write it to output_path, creating parent directories.

    Returns:
      The resolved destination path.
    """
    destination = Path(output_path)
    text = render_document(document, output_format)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise RenderError(f"Failed to write document to {destination}: {exc}") from exc
    return destination.resolve()


def format_for_path(path: Path | str) -> OutputFormat:
    """Pick the output format from a file suffix, defaulting to YAML."""
    return OutputFormat.JSON if Path(path).suffix.lower() == ".json" else OutputFormat.YAML


def _parse_format(output_format: OutputFormat | str) -> OutputFormat:
    try:
        return OutputFormat(output_format)
    except ValueError as exc:
        supported = ", ".join(item.value for item in OutputFormat)
        raise RenderError(
            f"Unsupported output format '{output_format}'. Supported: {supported}"
        ) from exc


def _info_to_mapping(info: Info) -> dict[str, Any]:
    mapping: dict[str, Any] = {"title": info.title}
    if info.description:
        mapping["description"] = info.description
    mapping["version"] = info.version
    if info.contact is not None:
        contact = _compact(
            {"name": info.contact.name, "url": info.contact.url, "email": info.contact.email}
        )
        if contact:
            mapping["contact"] = contact
    if info.license is not None:
        mapping["license"] = _compact({"name": info.license.name, "url": info.license.url})
    return mapping


def _flatten_commands(
    commands: Iterable[Command], parent_path: str
) -> Iterable[tuple[str, Command]]:
    for command in commands:
        path = f"{parent_path}/{command.name}"
        yield path, command
        yield from _flatten_commands(command.subcommands, path)


def _command_to_mapping(command: Command) -> dict[str, Any]:
    mapping = _compact(
        {
            "summary": command.summary,
            "description": command.description,
            "operationId": command.operation_id,
            "aliases": list(command.aliases),
            "tags": list(command.tags),
        }
    )
    if command.parameters:
        mapping["parameters"] = [_parameter_to_mapping(item) for item in command.parameters]
    if command.responses:
        mapping["responses"] = {
            code: _response_to_mapping(response) for code, response in command.responses.items()
        }
    return mapping


def _parameter_to_mapping(parameter: Parameter) -> dict[str, Any]:
    mapping = _compact(
        {
            "name": parameter.name,
            "in": parameter.location.value,
            "position": parameter.position,
            "alias": list(parameter.aliases),
            "description": parameter.description,
        }
    )
    mapping["required"] = parameter.required
    if parameter.scope is not None:
        mapping["scope"] = parameter.scope.value
    if parameter.arity is not None:
        arity = _compact({"min": parameter.arity.min, "max": parameter.arity.max})
        if arity:
            mapping["arity"] = arity
    if parameter.schema is not None:
        mapping["schema"] = schema_to_canonical(parameter.schema)
    return mapping


def _response_to_mapping(response: Response) -> dict[str, Any]:
    mapping = _compact({"description": response.description})
    if response.content:
        content: dict[str, Any] = {}
        for media_type, body in response.content.items():
            entry: dict[str, Any] = {}
            if body.schema is not None:
                entry["schema"] = schema_to_canonical(body.schema)
            if body.example is not None:
                entry["example"] = body.example
            content[media_type] = entry
        mapping["content"] = content
    return mapping


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value not in (None, [], {})}
