"""CLI commands for apiscramble."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from apiscramble.cache import CacheManager
from apiscramble.cli.output import CLIOutput
from apiscramble.config import ScrambleConfig, load_config
from apiscramble.errors import ScrambleError
from apiscramble.export import ExportManager
from apiscramble.generator import OpenApiGenerator, RefResolver
from apiscramble.serialization import dumps, load_document, save_document
from apiscramble.sources import MappingSource


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to config file")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: str | None) -> None:
    """apiscramble - OpenAPI documents from application metadata."""
    ctx.ensure_object(dict)
    setup_logging(verbose)

    try:
        config_obj = load_config(config)
    except ScrambleError as e:
        CLIOutput(verbose=verbose).error(e)
        sys.exit(1)
    if verbose:
        config_obj.verbose = True

    ctx.obj["config"] = config_obj
    ctx.obj["verbose"] = verbose
    ctx.obj["output"] = CLIOutput(verbose=verbose)


@cli.command()
@click.argument("input_path", metavar="INPUT", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", "output_path", type=click.Path(dir_okay=False), default=None, help="Output file path")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["json", "yaml"]),
    default=None,
    help="Document format (defaults to the output suffix, else json)",
)
@click.option("--compact", is_flag=True, help="Compact JSON without indentation")
@click.pass_context
def generate(
    ctx: click.Context,
    input_path: str,
    output_path: str | None,
    output_format: str | None,
    compact: bool,
) -> None:
    """Generate an OpenAPI document from analyzer data in INPUT."""
    config: ScrambleConfig = ctx.obj["config"]
    output: CLIOutput = ctx.obj["output"]

    try:
        source = MappingSource.from_file(input_path)
        generator = OpenApiGenerator(config, cache=CacheManager.from_config(config))
        document = generator.generate_from_sources(source)

        if output_path is None:
            click.echo(dumps(document, output_format or "json", pretty=not compact))
            return
        saved = save_document(document, output_path, fmt=output_format, pretty=not compact)
    except ScrambleError as e:
        output.error(e)
        sys.exit(1)

    output.success(f"Document generated: {saved}")
    output.document_summary(ExportManager.summary(document))


@cli.command("export")
@click.argument("document_path", metavar="DOCUMENT", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    "-f",
    "export_format",
    type=click.Choice(ExportManager().supported_formats()),
    required=True,
    help="Export format",
)
@click.option("--output", "-o", "output_path", type=click.Path(dir_okay=False), default=None, help="Output file path")
@click.pass_context
def export_document(ctx: click.Context, document_path: str, export_format: str, output_path: str | None) -> None:
    """Export an OpenAPI DOCUMENT to an API client collection."""
    output: CLIOutput = ctx.obj["output"]
    manager = ExportManager()

    if output_path is None:
        output_path = str(Path(document_path).with_suffix(f".{export_format}.json"))

    try:
        document = load_document(document_path)
        if not isinstance(document, dict):
            output.error(f"{document_path} does not contain a mapping")
            sys.exit(1)
        check = manager.validate_document(document)
        if not check["valid"]:
            for message in check["errors"]:
                output.error(message)
            sys.exit(1)
        output.warnings(check["warnings"])
        saved = manager.save(document, export_format, output_path)
    except ScrambleError as e:
        output.error(e)
        sys.exit(1)

    output.success(f"Exported {export_format} collection: {saved}")


@cli.command()
@click.argument("document_path", metavar="DOCUMENT", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def validate(ctx: click.Context, document_path: str) -> None:
    """Check an OpenAPI DOCUMENT's structure and references."""
    output: CLIOutput = ctx.obj["output"]

    try:
        document = load_document(document_path)
    except ScrambleError as e:
        output.error(e)
        sys.exit(1)

    if not isinstance(document, dict):
        output.error(f"{document_path} does not contain a mapping")
        sys.exit(1)

    check = ExportManager.validate_document(document)
    errors = list(check["errors"])
    errors.extend(f"Unresolved reference: {ref}" for ref in RefResolver(document).unresolved())

    output.warnings(check["warnings"])
    if errors:
        for message in errors:
            output.error(message)
        sys.exit(1)

    output.success(f"{document_path} is valid")
    output.document_summary(ExportManager.summary(document))
