"""Schema CLI commands — check and validate."""

import json
from dataclasses import replace
from pathlib import Path

import click

from schemaforge.config import EngineConfig
from schemaforge.schema.compiler import CompiledSchema
from schemaforge.schema.document import DocumentIssue, read_document
from schemaforge.schema.errors import InvalidSchemaError, SchemaError
from schemaforge.schema.loader import build_schema, load_schema_file
from schemaforge.validation.engine import ValidationEngine


def _expand_paths(paths: tuple[Path, ...]) -> list[Path]:
    """Directories contribute their ``*.yaml`` files; files are kept as given."""
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(sorted(path.glob("*.yaml")))
        else:
            files.append(path)
    return files


def _report_issues(issues: list[DocumentIssue]) -> None:
    for issue in issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))


def _describe(compiled: CompiledSchema) -> None:
    click.echo(f"  ✓ {compiled.name} ({len(compiled.rules)} fields, {len(compiled.groups)} groups)")
    for name, rule in compiled.rules.items():
        flags = ["required" if rule.required else "optional"]
        if rule.rename is not None:
            flags.append(f"-> {rule.rename.target}")
        click.echo(f"      {name}: {rule.type_name} [{', '.join(flags)}]")
    for group in compiled.groups:
        click.echo(f"      {group.mode.value.upper()} {{{', '.join(group.members)}}}")


@click.group()
def schema():
    """Schema commands."""
    pass


@schema.command()
@click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, path_type=Path),
)
def check(paths: tuple[Path, ...]):
    """Check schema documents: shape, types, and compilation."""
    files = _expand_paths(paths)
    if not files:
        click.echo("Error: No schema documents found", err=True)
        raise SystemExit(1)

    failures = 0
    for yaml_file in files:
        doc, issues = read_document(yaml_file)
        if issues:
            _report_issues(issues)
            failures += 1
            continue
        try:
            compiled = build_schema(doc, default_name=yaml_file.stem, checked=True).compile()
        except SchemaError as e:
            click.echo(click.style(f"[ERROR] {yaml_file}: {e}", fg="red"))
            failures += 1
            continue
        _describe(compiled)

    if failures:
        click.echo(
            click.style(f"\n{failures} of {len(files)} schema(s) invalid", fg="red", bold=True)
        )
        raise SystemExit(1)

    click.echo(click.style(f"\nAll {len(files)} schema(s) are valid.", fg="green", bold=True))


@schema.command()
@click.argument("schema_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("input_file", type=click.File("r"))
@click.option("--abort-early", is_flag=True, default=False, help="Stop at the first violation.")
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Reject input keys that are not schema fields.",
)
def validate(schema_path: Path, input_file, abort_early: bool, strict: bool):
    """Validate a JSON input record (file or '-' for stdin) against a schema."""
    try:
        compiled = load_schema_file(schema_path).compile()
    except InvalidSchemaError as e:
        _report_issues(e.issues)
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)
    except SchemaError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    try:
        record = json.load(input_file)
    except json.JSONDecodeError as e:
        click.echo(click.style(f"Error: Input is not valid JSON: {e}", fg="red"), err=True)
        raise SystemExit(1)
    if not isinstance(record, dict):
        click.echo(click.style("Error: Input must be a JSON object", fg="red"), err=True)
        raise SystemExit(1)

    options = EngineConfig.from_env().evaluation_options()
    if abort_early:
        options = replace(options, abort_early=True)
    if strict:
        options = replace(options, allow_unknown=False)
    outcome = ValidationEngine(options).validate(compiled, record)

    click.echo(json.dumps(outcome.to_dict(), indent=2, default=str))
    if not outcome.accepted:
        raise SystemExit(1)
