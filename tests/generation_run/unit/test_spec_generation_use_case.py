"""Generation run use-case tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import yaml
from opencli_spec_builder.generation_run import (
    GenerationRequest,
    GenerationRunError,
    describe_type,
    execute_spec_generation_run,
)
from opencli_spec_builder.rendering import OutputFormat

CATALOG = """
types:
  User:
    description: A registered user.
    fields:
      - name: id
        type: u64
      - name: name
        type: String
      - name: email
        type: Option<String>
  Page:
    generics: [T]
    fields:
      - name: items
        type: Vec<T>
      - name: total
        type: u64
  Status:
    kind: enum
    variants: [Active, Inactive, Pending]
  ListArgs:
    directives:
      rename_all: kebab-case
    fields:
      - name: query
        type: String
      - name: page_size
        type: Option<u32>
      - name: status
        type: Option<Status>
"""


def _write_inputs(tmp_path: Path, **overrides: Any) -> Path:
    (tmp_path / "types.yaml").write_text(CATALOG, encoding="utf-8")
    config: dict[str, Any] = {
        "info": {"title": "users", "version": "1.0.0"},
        "descriptors": {"path": "types.yaml"},
        "commands": [
            {
                "name": "users",
                "subcommands": [
                    {
                        "name": "show",
                        "parameters": [{"name": "id", "in": "argument", "type": "u64"}],
                        "responses": {"0": {"type": "User"}},
                    },
                    {
                        "name": "list",
                        "parameters": [{"from": "ListArgs", "locations": {"query": "argument"}}],
                        "responses": {"0": {"type": "Page<User>"}, "1": {"description": "Failed."}},
                    },
                ],
            }
        ],
    }
    config.update(overrides)
    path = tmp_path / "build.json"
    path.write_text(json.dumps(config), encoding="utf-8")
    return path


def test_generation_builds_document_and_returns_yaml(tmp_path: Path) -> None:
    config_path = _write_inputs(tmp_path)

    outcome = execute_spec_generation_run(GenerationRequest(config_path=str(config_path)))

    assert outcome.output_path is None
    assert outcome.output_format is OutputFormat.YAML
    assert outcome.component_count == 2
    rendered = yaml.safe_load(outcome.rendered)
    assert list(rendered["components"]["schemas"]) == ["Page<User>", "User"]
    assert rendered["components"]["schemas"]["User"]["required"] == ["id", "name"]
    assert list(rendered["commands"]) == ["/users", "/users/show", "/users/list"]

    show = rendered["commands"]["/users/show"]
    assert show["parameters"] == [
        {
            "name": "id",
            "in": "argument",
            "position": 1,
            "required": True,
            "schema": {"type": "integer", "format": "int64"},
        }
    ]
    assert show["responses"]["0"]["description"] == "A registered user."


def test_struct_parameters_are_flattened_with_inline_enum(tmp_path: Path) -> None:
    config_path = _write_inputs(tmp_path)

    outcome = execute_spec_generation_run(GenerationRequest(config_path=str(config_path)))

    listing = yaml.safe_load(outcome.rendered)["commands"]["/users/list"]
    assert [item["name"] for item in listing["parameters"]] == ["query", "page-size", "status"]
    assert listing["parameters"][0]["position"] == 1
    assert listing["parameters"][2]["schema"] == {
        "type": "string",
        "enum": ["Active", "Inactive", "Pending"],
    }
    assert listing["responses"]["0"]["content"]["application/json"]["schema"] == {
        "$ref": "#/components/schemas/Page<User>"
    }
    assert listing["responses"]["1"] == {"description": "Failed."}


def test_generation_is_deterministic(tmp_path: Path) -> None:
    config_path = _write_inputs(tmp_path)
    request = GenerationRequest(config_path=str(config_path))

    assert (
        execute_spec_generation_run(request).rendered
        == execute_spec_generation_run(request).rendered
    )


def test_output_path_suffix_selects_json(tmp_path: Path) -> None:
    config_path = _write_inputs(tmp_path)
    output_path = tmp_path / "out" / "cli.json"

    outcome = execute_spec_generation_run(
        GenerationRequest(config_path=str(config_path), output_path=str(output_path))
    )

    assert outcome.output_format is OutputFormat.JSON
    assert outcome.output_path == output_path.resolve()
    assert json.loads(output_path.read_text(encoding="utf-8"))["info"]["title"] == "users"


def test_explicit_format_wins_over_suffix(tmp_path: Path) -> None:
    config_path = _write_inputs(tmp_path)
    output_path = tmp_path / "cli.json"

    outcome = execute_spec_generation_run(
        GenerationRequest(
            config_path=str(config_path), output_path=str(output_path), output_format="yaml"
        )
    )

    assert outcome.output_format is OutputFormat.YAML
    assert yaml.safe_load(output_path.read_text(encoding="utf-8"))["opencli"] == "1.0.0"


def test_configured_output_is_used_without_request_path(tmp_path: Path) -> None:
    config_path = _write_inputs(tmp_path, output={"format": "json", "path": "docs/cli.out"})

    outcome = execute_spec_generation_run(GenerationRequest(config_path=str(config_path)))

    assert outcome.output_format is OutputFormat.JSON
    assert outcome.output_path == (tmp_path / "docs" / "cli.out").resolve()


def test_missing_configuration_raises(tmp_path: Path) -> None:
    with pytest.raises(GenerationRunError, match="Configuration file not found"):
        execute_spec_generation_run(GenerationRequest(config_path=str(tmp_path / "none.yaml")))


def test_unknown_type_raises_missing_descriptor(tmp_path: Path) -> None:
    config_path = _write_inputs(
        tmp_path, commands=[{"name": "show", "responses": {"0": {"type": "Ghost"}}}]
    )

    with pytest.raises(GenerationRunError, match="No descriptor available for 'Ghost'"):
        execute_spec_generation_run(GenerationRequest(config_path=str(config_path)))


def test_short_name_collision_raises(tmp_path: Path) -> None:
    config_path = _write_inputs(tmp_path, **_colliding_accounts())

    with pytest.raises(GenerationRunError, match="Component name 'Account'"):
        execute_spec_generation_run(GenerationRequest(config_path=str(config_path)))


def test_qualified_naming_keeps_same_short_names_apart(tmp_path: Path) -> None:
    config_path = _write_inputs(
        tmp_path, output={"component_naming": "qualified"}, **_colliding_accounts()
    )

    outcome = execute_spec_generation_run(GenerationRequest(config_path=str(config_path)))

    assert list(outcome.document.components.schemas) == ["auth::Account", "billing::Account"]


def _colliding_accounts() -> dict[str, Any]:
    return {
        "descriptors": {
            "inline": {
                "types": {
                    "billing::Account": {"fields": [{"name": "iban", "type": "String"}]},
                    "auth::Account": {"fields": [{"name": "login", "type": "String"}]},
                }
            }
        },
        "commands": [
            {
                "name": "show",
                "responses": {"0": {"type": "billing::Account"}, "1": {"type": "auth::Account"}},
            }
        ],
    }


def test_describe_type_returns_schema_and_components(tmp_path: Path) -> None:
    _write_inputs(tmp_path)

    described = describe_type(tmp_path / "types.yaml", "Page<User>")

    assert described["schema"] == {"$ref": "#/components/schemas/Page<User>"}
    assert list(described["components"]) == ["Page<User>", "User"]
    assert described["components"]["Page<User>"]["properties"]["items"] == {
        "type": "array",
        "items": {"$ref": "#/components/schemas/User"},
    }


def test_describe_type_of_inline_schema_has_no_components(tmp_path: Path) -> None:
    _write_inputs(tmp_path)

    described = describe_type(tmp_path / "types.yaml", "Vec<Status>")

    assert described == {
        "schema": {
            "type": "array",
            "items": {"type": "string", "enum": ["Active", "Inactive", "Pending"]},
        }
    }


def test_describe_type_wraps_catalog_errors(tmp_path: Path) -> None:
    _write_inputs(tmp_path)

    with pytest.raises(GenerationRunError, match="expects 1 generic arguments"):
        describe_type(tmp_path / "types.yaml", "Page")


def _purge_inputs(tmp_path: Path, **responses: Any) -> Path:
    return _write_inputs(
        tmp_path,
        descriptors={
            "inline": {
                "types": {
                    "PurgeOutcome": {
                        "kind": "enum",
                        "variants": [
                            {"name": "Purged", "directives": {"status": 0}},
                            {
                                "name": "Locked",
                                "tuple": ["String"],
                                "directives": {"status": 3, "description": "Store is locked."},
                            },
                        ],
                    }
                }
            }
        },
        commands=[{"name": "purge", "responses_from": "PurgeOutcome", **responses}],
    )


def test_responses_from_enum_fill_command_responses(tmp_path: Path) -> None:
    config_path = _purge_inputs(tmp_path)

    outcome = execute_spec_generation_run(GenerationRequest(config_path=str(config_path)))

    purge = yaml.safe_load(outcome.rendered)["commands"]["/purge"]
    assert purge["responses"] == {
        "0": {},
        "3": {
            "description": "Store is locked.",
            "content": {"application/json": {"schema": {"type": "string"}}},
        },
    }


def test_responses_from_enum_may_not_repeat_an_explicit_code(tmp_path: Path) -> None:
    config_path = _purge_inputs(tmp_path, responses={"3": {"description": "Locked."}})

    with pytest.raises(GenerationRunError, match="already has a response for code 3"):
        execute_spec_generation_run(GenerationRequest(config_path=str(config_path)))
