"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "opencli-build.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Build configuration template for opencli-spec-builder.
# Replace every <REQUIRED> placeholder before running generate.
# Replace <OPTIONAL> placeholders only when your tool needs them, otherwise delete them.

info:
  title: "<REQUIRED>"
  version: "<REQUIRED>"
  description: "<OPTIONAL>"
  # contact:
  #   name: "<OPTIONAL>"
  #   url: "<OPTIONAL>"
  #   email: "<OPTIONAL>"
  # license:
  #   name: "<OPTIONAL>"
  #   url: "<OPTIONAL>"

descriptors:
  # Provide either a descriptor catalog path or an inline catalog mapping.
  path: "<REQUIRED>"
  # inline:
  #   types: {}

output:
  # yaml or json.
  format: "yaml"
  # Relative paths are resolved against this file. Omit to print to stdout.
  # path: "<OPTIONAL>"
  # short (last path segment) or qualified (full type path).
  component_naming: "short"

commands:
  - name: "<REQUIRED>"
    summary: "<OPTIONAL>"
    parameters:
      # Explicit parameter; in is argument, flag or option.
      - name: "<REQUIRED>"
        in: "option"
        type: "<OPTIONAL>"
      # Parameters flattened from a catalog struct.
      # - from: "<OPTIONAL>"
      #   locations:
      #     field_name: "argument"
    responses:
      "0":
        description: "<OPTIONAL>"
        # type: "<OPTIONAL>"
    # One response per variant of a catalog enum whose variants carry a status directive.
    # responses_from: "<OPTIONAL>"
    # subcommands: []

# tags:
#   - name: "<OPTIONAL>"
# platforms:
#   - name: "linux"
#     architectures: ["amd64"]
# environment:
#   - name: "<OPTIONAL>"
# external_docs:
#   url: "<OPTIONAL>"
"""


def build_placeholder_configuration() -> str:
    """Build a YAML build configuration template with placeholders and inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the placeholder build configuration template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Build configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
