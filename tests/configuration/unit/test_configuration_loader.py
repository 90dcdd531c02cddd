"""Configuration loader tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from opencli_spec_builder.attribute_overrides.override_directives import Skip
from opencli_spec_builder.component_registry import NamingStrategy
from opencli_spec_builder.configuration.loader import ConfigurationError, load_configuration
from opencli_spec_builder.configuration.runtime_settings import (
    ParameterSpec,
    StructParametersSpec,
)
from opencli_spec_builder.document_assembly import Arity, ParameterLocation, ParameterScope
from opencli_spec_builder.rendering import OutputFormat


def _write_file(path: Path, contents: str) -> Path:
    path.write_text(contents, encoding="utf-8")
    return path


def _write_catalog(tmp_path: Path) -> Path:
    return _write_file(
        tmp_path / "types.yaml",
        """
types:
  User:
    fields:
      - name: id
        type: u64
""",
    )


def test_loads_yaml_configuration_with_defaults(tmp_path: Path) -> None:
    catalog_path = _write_catalog(tmp_path)
    config_path = _write_file(
        tmp_path / "build.yaml",
        """
info:
  title: users
  version: 1.0
descriptors:
  path: types.yaml
commands:
  - name: show
""",
    )

    configuration = load_configuration(config_path)

    assert configuration.path == config_path
    assert configuration.info.title == "users"
    assert configuration.info.version == "1.0"
    assert configuration.descriptors.path == catalog_path.resolve()
    assert configuration.descriptors.inline is None
    assert configuration.output.format is OutputFormat.YAML
    assert configuration.output.path is None
    assert configuration.output.component_naming is NamingStrategy.SHORT
    assert [command.name for command in configuration.commands] == ["show"]
    assert configuration.tags == ()


def test_loads_full_configuration(tmp_path: Path) -> None:
    _write_catalog(tmp_path)
    config_path = _write_file(
        tmp_path / "build.yaml",
        """
info:
  title: users
  version: "2.0.0"
  description: User administration.
  contact:
    email: ops@example.com
  license:
    name: MIT
descriptors:
  path: types.yaml
output:
  format: json
  path: out/cli.json
  component_naming: qualified
commands:
  - name: users
    aliases: [u]
    tags: admin
    subcommands:
      - name: show
        parameters:
          - name: id
            in: argument
            type: u64
            position: 1
          - name: fields
            type: Vec<String>
            required: false
            scope: inherited
            arity: {min: 0, max: 5}
            directives:
              skip: true
          - from: User
            locations:
              id: argument
        responses:
          0:
            description: The user.
            type: User
          "1":
            description: Not found.
tags:
  - name: admin
platforms:
  - name: Linux
    architectures: [x64]
environment:
  - name: USERS_TOKEN
    description: API token.
external_docs:
  url: https://example.com/docs
""",
    )

    configuration = load_configuration(config_path)

    assert configuration.info.contact is not None
    assert configuration.info.contact.email == "ops@example.com"
    assert configuration.output.format is OutputFormat.JSON
    assert configuration.output.path == (tmp_path / "out" / "cli.json").resolve()
    assert configuration.output.component_naming is NamingStrategy.QUALIFIED

    users = configuration.commands[0]
    assert users.aliases == ("u",)
    assert users.tags == ("admin",)
    show = users.subcommands[0]
    identifier, fields, flattened = show.parameters
    assert isinstance(identifier, ParameterSpec)
    assert identifier.location is ParameterLocation.ARGUMENT
    assert identifier.position == 1
    assert isinstance(fields, ParameterSpec)
    assert fields.required is False
    assert fields.scope is ParameterScope.INHERITED
    assert fields.arity == Arity(min=0, max=5)
    assert fields.directives == (Skip(),)
    assert isinstance(flattened, StructParametersSpec)
    assert flattened.locations == {"id": ParameterLocation.ARGUMENT}
    assert [(item.code, item.type_expression) for item in show.responses] == [
        ("0", "User"),
        ("1", None),
    ]
    assert configuration.platforms[0].name == "linux"
    assert configuration.environment[0].name == "USERS_TOKEN"
    assert configuration.external_docs is not None


def test_loads_inline_descriptor_catalog(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "build.yaml",
        """
info: {title: users, version: "1"}
descriptors:
  inline:
    types:
      User:
        fields: []
""",
    )

    configuration = load_configuration(config_path)

    assert configuration.descriptors.inline == {"types": {"User": {"fields": []}}}
    assert configuration.commands == ()


def test_command_responses_from_enum_and_dated_examples(tmp_path: Path) -> None:
    _write_catalog(tmp_path)
    config_path = _write_file(
        tmp_path / "build.yaml",
        """
info: {title: users, version: "1"}
descriptors: {path: types.yaml}
commands:
  - name: purge
    responses_from: Outcome<User>
    responses:
      "0":
        example: {purged_at: 2024-03-01}
""",
    )

    (command,) = load_configuration(config_path).commands

    assert command.responses_from == "Outcome<User>"
    assert command.responses[0].example == {"purged_at": "2024-03-01"}


def test_missing_configuration_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Configuration file not found"):
        load_configuration(tmp_path / "missing.yaml")


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    config_path = _write_file(tmp_path / "build.yaml", "info: [unclosed")

    with pytest.raises(ConfigurationError, match="Failed to parse configuration file"):
        load_configuration(config_path)


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ("descriptors: {inline: {types: {}}}", "Configuration section 'info' is required"),
        ("info: {title: users}\ndescriptors: {inline: {a: 1}}", "info.version must be a string"),
        ("info: {title: users, version: '1'}", "Configuration section 'descriptors' is required"),
        (
            "info: {title: users, version: '1'}\ndescriptors: {path: nowhere.yaml}",
            "Descriptor catalog not found",
        ),
        (
            "info: {title: users, version: '1'}\ndescriptors: {}",
            "requires either inline or path",
        ),
    ],
)
def test_invalid_top_level_sections_raise(tmp_path: Path, body: str, message: str) -> None:
    config_path = _write_file(tmp_path / "build.yaml", body)

    with pytest.raises(ConfigurationError, match=message):
        load_configuration(config_path)


@pytest.mark.parametrize(
    ("section", "message"),
    [
        ("output: {format: toml}", "output.format must be one of yaml, json, got 'toml'"),
        ("output: {component_naming: long}", "output.component_naming must be one of"),
        ("commands: [{name: a}, {name: a}]", "declares command 'a' twice"),
        ("commands: [{name: a, parameters: [{name: x, in: env}]}]", "parameters\\[0\\].in must be"),
        ("commands: [{name: a, parameters: [{name: x, type: 'Vec<'}]}]", "parameters\\[0\\].type"),
        (
            "commands: [{name: a, parameters: [{name: x, position: 0}]}]",
            "position must be greater than zero",
        ),
        (
            "commands: [{name: a, parameters: [{name: x, arity: {min: 3, max: 1}}]}]",
            "arity.min must not exceed",
        ),
        (
            "commands: [{name: a, parameters: [{name: x, directives: {shout: true}}]}]",
            "Unknown directive 'shout'",
        ),
        ("commands: [{name: a, responses_from: 'Vec<'}]", "commands\\[0\\].responses_from"),
        (
            "commands: [{name: a, responses: {'0': {example: !!binary aGk=}}}]",
            "example holds a bytes value",
        ),
        ("platforms: [{name: amiga}]", "is not a known platform"),
        ("external_docs: {description: docs}", "external_docs.url must be a string"),
    ],
)
def test_invalid_sections_raise(tmp_path: Path, section: str, message: str) -> None:
    _write_catalog(tmp_path)
    config_path = _write_file(
        tmp_path / "build.yaml",
        f"info: {{title: users, version: '1'}}\ndescriptors: {{path: types.yaml}}\n{section}\n",
    )

    with pytest.raises(ConfigurationError, match=message):
        load_configuration(config_path)
