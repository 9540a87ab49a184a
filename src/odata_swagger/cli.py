"""CLI entry point for odata-swagger."""

import logging
from pathlib import Path

import click

from odata_swagger.config import DocsConfig
from odata_swagger.errors import ODataSwaggerError
from odata_swagger.log import configure_root
from odata_swagger.parser.model_file import ModelFile, load_model_file
from odata_swagger.provider import SwaggerProvider
from odata_swagger.writer import write_document


def _load(model_path: Path, config: DocsConfig) -> ModelFile:
    try:
        return load_model_file(model_path, config.reflector)
    except ODataSwaggerError as exc:
        raise click.ClickException(f"[{exc.code.value}] {exc.message}") from exc


@click.group()
def main():
    """odata-swagger: synthesize Swagger 2.0 documents from OData-style route tables."""
    pass


@main.command()
@click.argument("model_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file (.json, .yaml or .yml).")
@click.option("--title", default=None, help="Document title; overrides the model file's info.title.")
@click.option("--api-version", default="v1", show_default=True, help="Version written to info.version.")
@click.option("--host", default=None, envvar="ODATA_SWAGGER_HOST", help="Host name written to the document.")
@click.option("--scheme", "schemes", multiple=True, type=click.Choice(["http", "https", "ws", "wss"]), help="Transfer protocol; repeat for several.")
@click.option("--include-navigation-properties", is_flag=True, help="Keep navigation properties in definitions.")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output.")
def generate(
    model_path: Path,
    output: Path,
    title: str | None,
    api_version: str,
    host: str | None,
    schemes: tuple[str, ...],
    include_navigation_properties: bool,
    verbose: bool,
):
    """Generate a Swagger document from a model file."""
    configure_root(logging.DEBUG if verbose else logging.WARNING)
    config = DocsConfig()
    model = _load(model_path, config)

    config.set_info(title=title or model.info.title, description=model.info.description)
    config.set_host(host)
    if schemes:
        config.set_schemes(*schemes)
    if include_navigation_properties:
        config.include_navigation_properties()

    try:
        document = SwaggerProvider(model.route_table, config).get_document(api_version)
    except ODataSwaggerError as exc:
        raise click.ClickException(f"[{exc.code.value}] {exc.message}") from exc

    write_document(document, output)
    operations = sum(len(verbs) for verbs in document.paths.values())
    click.echo(f"Wrote {operations} operations and {len(document.definitions)} definitions to {output}")


@main.command()
@click.argument("model_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-v", "--verbose", is_flag=True, help="Log debug output.")
def routes(model_path: Path, verbose: bool):
    """List every operation discovered in a model file."""
    configure_root(logging.DEBUG if verbose else logging.WARNING)
    config = DocsConfig()
    model = _load(model_path, config)
    candidates = SwaggerProvider(model.route_table, config).discover()
    for candidate in candidates:
        click.echo(f"{candidate.method.upper():<7} {candidate.path}  ({candidate.strategy})")
    click.echo(f"{len(candidates)} operations")
