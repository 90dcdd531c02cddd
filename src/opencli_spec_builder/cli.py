"""Command line interface entry point."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable

import click

from opencli_spec_builder.component_registry import NamingStrategy
from opencli_spec_builder.configuration import (
    DEFAULT_CONFIG_FILENAME,
    write_placeholder_configuration,
)
from opencli_spec_builder.generation_run import (
    GenerationRequest,
    GenerationRunError,
    describe_type,
    execute_spec_generation_run,
)
from opencli_spec_builder.rendering import OutputFormat, RenderError, render_mapping

_PACKAGE_LOGGER = "opencli_spec_builder"
_FORMAT_CHOICES = [item.value for item in OutputFormat]
_DEBUG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class CliError(Exception):
    """Custom CLI error."""


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="opencli-spec-builder")
@click.option(
    "--verbose",
    is_flag=True,
    default=False,
    help="Log derivation and registry activity to stderr.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Generate OpenCLI documents from structural type descriptors."""
    if verbose:
        ctx.call_on_close(_enable_debug_logging())


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML build configuration template to write",
)
def generate_config(output_path: str) -> None:
    """Generate a placeholder YAML build configuration with guidance comments."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="generate")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON build configuration file",
)
@click.option(
    "--output",
    "output_path",
    required=False,
    type=click.Path(path_type=str),
    help="Path of the document to write; overrides output.path of the configuration",
)
@click.option(
    "--format",
    "output_format",
    required=False,
    type=click.Choice(_FORMAT_CHOICES),
    help="Document format; defaults to the output file suffix or output.format",
)
def generate(config_path: str, output_path: str | None, output_format: str | None) -> None:
    """Build the OpenCLI document described by a build configuration."""
    try:
        outcome = execute_spec_generation_run(
            GenerationRequest(
                config_path=config_path,
                output_path=output_path,
                output_format=output_format,
            )
        )
    except GenerationRunError as exc:
        raise CliError(str(exc)) from exc
    if outcome.output_path is None:
        click.echo(outcome.rendered, nl=False)
    else:
        click.echo(str(outcome.output_path))


@cli.command(name="describe-type")
@click.option(
    "--descriptors",
    "descriptors_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to the YAML/JSON descriptor catalog",
)
@click.option(
    "--type",
    "type_expression",
    required=True,
    help="Type expression to derive, for example 'Page<User>'",
)
@click.option(
    "--format",
    "output_format",
    default=OutputFormat.YAML.value,
    show_default=True,
    type=click.Choice(_FORMAT_CHOICES),
    help="Output format",
)
@click.option(
    "--naming",
    default=NamingStrategy.SHORT.value,
    show_default=True,
    type=click.Choice([item.value for item in NamingStrategy]),
    help="Component naming strategy",
)
def describe(descriptors_path: str, type_expression: str, output_format: str, naming: str) -> None:
    """Print the schema derived for one type together with its components."""
    try:
        described = describe_type(descriptors_path, type_expression, naming=naming)
        rendered = render_mapping(described, output_format)
    except (GenerationRunError, RenderError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(rendered, nl=False)


def _enable_debug_logging() -> Callable[[], None]:
    """Route package debug logs to the current stderr until the returned callback runs."""
    logger = logging.getLogger(_PACKAGE_LOGGER)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_DEBUG_FORMAT))
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    def restore() -> None:
        logger.removeHandler(handler)
        logger.setLevel(previous_level)

    return restore


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
