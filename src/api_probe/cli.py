"""CLI entry point for api-probe."""

import json
import logging
import sys
from fnmatch import fnmatch
from pathlib import Path
from typing import Any

import click

from api_probe.endpoint.base import BuildFailure, Endpoint
from api_probe.endpoint.builder import endpoints_from_document
from api_probe.errors import DocumentError, SchemaError
from api_probe.loader import DEFAULT_TIMEOUT, load_document, schema_map
from api_probe.schema.example import generate_schema_example
from api_probe.schema.inline import inline_named_schema

source_argument = click.argument("source")
timeout_option = click.option(
    "--timeout",
    default=DEFAULT_TIMEOUT,
    show_default=True,
    envvar="API_PROBE_TIMEOUT",
    type=float,
    help="Seconds to wait when SOURCE is a URL.",
)
only_option = click.option(
    "--only",
    "patterns",
    multiple=True,
    help='Keep endpoints matching "METHOD /path" or "/path" (glob). Repeatable.',
)


def _load(source: str, timeout: float) -> dict[str, Any]:
    try:
        return load_document(source, timeout=timeout)
    except (DocumentError, OSError) as e:
        raise click.ClickException(str(e)) from e


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _filter_endpoints(endpoints: list[Endpoint], patterns: tuple[str, ...]) -> list[Endpoint]:
    """Keep endpoints matching any of `patterns`.

    A pattern is either "METHOD /path" or a bare "/path"; paths may use globs.
    """
    if not patterns:
        return endpoints

    result = []
    for ep in endpoints:
        for pattern in patterns:
            method, _, path = pattern.strip().rpartition(" ")
            if method and method.upper() != ep.method:
                continue
            if fnmatch(ep.path, path):
                result.append(ep)
                break
    return result


def _build(source: str, timeout: float, patterns: tuple[str, ...]) -> tuple[list[Endpoint], list[BuildFailure]]:
    doc = _load(source, timeout)
    failures: list[BuildFailure] = []
    try:
        table = endpoints_from_document(doc, failures)
    except DocumentError as e:
        raise click.ClickException(str(e)) from e
    return _filter_endpoints(list(table.values()), patterns), failures


def _report_failures(failures: list[BuildFailure]) -> None:
    for failure in failures:
        click.echo(
            f"  {failure.method} {failure.path} ({failure.operation_id}): {failure.kind}: {failure.error}",
            err=True,
        )
    if failures:
        click.echo(f"{len(failures)} operations could not be built.", err=True)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """API Probe: inline OpenAPI schemas and synthesize example calls."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@source_argument
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Write JSON here instead of stdout.")
@only_option
@timeout_option
def endpoints(source: str, output: Path | None, patterns: tuple[str, ...], timeout: float):
    """Build the endpoint table of SOURCE (file or URL) as JSON."""
    selected, failures = _build(source, timeout, patterns)
    payload = _dump({ep.operation_id: ep.model_dump(mode="json") for ep in selected})

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(payload, encoding="utf-8")
        click.echo(f"Wrote {len(selected)} endpoints to {output}", err=True)
    else:
        click.echo(payload)

    _report_failures(failures)
    if failures:
        sys.exit(1)


@main.command()
@source_argument
@only_option
@timeout_option
def calls(source: str, patterns: tuple[str, ...], timeout: float):
    """List the example calls for every endpoint of SOURCE."""
    selected, failures = _build(source, timeout, patterns)
    for ep in selected:
        for args in ep.example_params:
            click.echo(f"{ep.method} {ep.path} {ep.method_name} {json.dumps(args, ensure_ascii=False, default=str)}")

    _report_failures(failures)
    if failures:
        sys.exit(1)


@main.command()
@source_argument
@click.argument("name")
@timeout_option
def inline(source: str, name: str, timeout: float):
    """Print component schema NAME with every $ref inlined."""
    doc = _load(source, timeout)
    try:
        click.echo(_dump(inline_named_schema(name, schema_map(doc))))
    except (SchemaError, DocumentError) as e:
        raise click.ClickException(str(e)) from e


@main.command()
@source_argument
@click.argument("name")
@timeout_option
def example(source: str, name: str, timeout: float):
    """Print a generated example for component schema NAME."""
    doc = _load(source, timeout)
    try:
        click.echo(_dump(generate_schema_example(name, schema_map(doc))))
    except (SchemaError, DocumentError) as e:
        raise click.ClickException(str(e)) from e
