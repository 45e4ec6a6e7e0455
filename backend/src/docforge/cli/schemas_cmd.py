"""Schema CLI commands: list and validate."""

from pathlib import Path

import click

from docforge.core.config import AppConfig
from docforge.schemas.loader import SchemaLoader
from docforge.schemas.validator import validate_schema_dir, validate_yaml_file


def _resolve_schema_path(path: Path | None) -> Path:
    """Explicit --path, else DOCFORGE_SCHEMA_PATH, else <project root>/schemas."""
    if path is not None:
        return path
    return AppConfig.from_env().schema_path


@click.group()
def schemas():
    """Schema commands."""
    pass


@schemas.command("list")
@click.option(
    "--path",
    "schema_path",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Schema directory (defaults to ./schemas).",
)
def list_cmd(schema_path: Path | None):
    """List the schemas that would be served."""
    schema_path = _resolve_schema_path(schema_path)
    if not schema_path.exists():
        click.echo(f"Error: Schema directory not found at {schema_path}", err=True)
        raise SystemExit(1)

    loader = SchemaLoader(schema_path)
    loader.load_all()

    names = loader.list_schemas()
    if not names:
        click.echo("No schemas found.")
        return

    for name in names:
        schema = loader.get_schema(name)
        fields = ", ".join(f"{f.name}:{f.type}" for f in schema.fields)
        click.echo(f"{name} ({len(schema.fields)} fields) {fields}")


@schemas.command()
@click.option(
    "--path",
    "schema_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="Schema directory, or a single YAML file.",
)
def validate(schema_path: Path | None):
    """Validate schema YAML files."""
    schema_path = _resolve_schema_path(schema_path)

    if schema_path.is_file():
        issues = validate_yaml_file(schema_path)
    else:
        issues = validate_schema_dir(schema_path)

    errors = [i for i in issues if i.severity == "error"]
    warnings = [i for i in issues if i.severity == "warning"]

    for issue in issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} schema error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    if schema_path.is_dir():
        try:
            loader = SchemaLoader(schema_path)
            loader.load_all()
        except ValueError as e:
            click.echo(click.style(f"\nSchema loading failed: {e}", fg="red"), err=True)
            raise SystemExit(1)

        click.echo(f"\nLoaded {len(loader.schemas)} schema(s):")
        for name in loader.list_schemas():
            click.echo(f"  ✓ {name} ({len(loader.get_schema(name).fields)} fields)")

    click.echo(click.style("\nAll schemas are valid.", fg="green", bold=True))
