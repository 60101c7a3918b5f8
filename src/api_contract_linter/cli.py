"""CLI entry point for api-contract-linter."""

import logging
from pathlib import Path

import click

from api_contract_linter.config import ConfigError, LintConfig, find_config, load_config
from api_contract_linter.linter.project import lint_project
from api_contract_linter.parser.postman import ContractError
from api_contract_linter.parser.requests import extract_endpoints
from api_contract_linter.parser.sources import load_sources
from api_contract_linter.parser.types import build_registry


def _load_config(config_path: Path | None) -> LintConfig:
    try:
        if config_path is not None:
            return load_config(config_path)
        return find_config()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log debug information.")
def main(verbose: bool):
    """API Contract Linter: check TypeScript API calls against a Postman collection."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("-r", "--requests", "requests_path", type=click.Path(exists=True, path_type=Path), help="Directory containing request files.")
@click.option("-t", "--types", "types_path", type=click.Path(exists=True, path_type=Path), help="Directory containing type definition files.")
@click.option("-c", "--collection", "collection_path", type=click.Path(path_type=Path), help="Postman collection JSON file.")
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), default=None, help="YAML config file.")
def check(requests_path: Path | None, types_path: Path | None, collection_path: Path | None, config_path: Path | None):
    """Lint request files and types against a Postman collection."""
    config = _load_config(config_path)
    requests_path = requests_path or config.requests
    types_path = types_path or config.types
    collection_path = collection_path or config.collection
    if not requests_path or not types_path or not collection_path:
        raise click.UsageError("Please provide the required paths using the -r, -t, and -c options.")

    try:
        errors = lint_project(requests_path, types_path, collection_path, config)
    except (ContractError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    if errors:
        for index, error in enumerate(errors, start=1):
            click.echo(f"{index}. {error}", err=True)
        raise SystemExit(1)
    click.echo("No linting errors found.")


@main.command()
@click.argument("path", type=click.Path(exists=True, path_type=Path))
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), default=None, help="YAML config file.")
def endpoints(path: Path, config_path: Path | None):
    """List the HTTP calls found in TypeScript sources."""
    config = _load_config(config_path)
    sources = load_sources(path, config.extensions, config.exclude)
    found = extract_endpoints(sources, config.call_name, config.serializer)
    for endpoint in found:
        click.echo(
            f"{endpoint.method} {endpoint.path}"
            f"  request={endpoint.request_body or '-'}"
            f"  response={endpoint.response_body or '-'}"
        )
    click.echo(f"Found {len(found)} endpoints.")


@main.command()
@click.argument("path", type=click.Path(exists=True, path_type=Path))
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), default=None, help="YAML config file.")
def types(path: Path, config_path: Path | None):
    """List the type declarations found in TypeScript sources."""
    config = _load_config(config_path)
    registry = build_registry(load_sources(path, config.extensions, config.exclude))
    for name in registry.names():
        definition = registry.get(name)
        fields = ", ".join(f"{key}: {value}" for key, value in definition.properties.items())
        click.echo(f"{definition.kind.value} {name} {{ {fields} }}")
    click.echo(f"Found {len(registry)} types.")
