"""DocForge CLI entry point."""

import asyncio
import logging
import os

import click

from docforge.core.config import AppConfig


@click.group()
@click.option(
    "--log-level",
    default=lambda: os.environ.get("DOCFORGE_LOG_LEVEL", "info"),
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help="Logging level.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str):
    """DocForge: schema-driven REST API generator CLI."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level.lower()


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=lambda: int(os.environ.get("DOCFORGE_PORT", "8000")), type=int)
@click.option("--reload", is_flag=True, default=False, help="Reload on code changes.")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, reload: bool):
    """Serve the API for every schema in the schema directory."""
    import uvicorn

    uvicorn.run(
        "docforge.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=ctx.obj["log_level"],
    )


@cli.command()
@click.argument("name")
@click.option("--user", default="cli", show_default=True, help="Identity to run as.")
@click.option("--yes", is_flag=True, default=False, help="Do not ask for confirmation.")
def clear(name: str, user: str, yes: bool):
    """Remove every document of collection NAME (refused in production)."""
    from docforge.api.service import DocForgeApi
    from docforge.core.errors import DocForgeError
    from docforge.persistence import create_store
    from docforge.schemas.loader import SchemaLoader

    config = AppConfig.from_env()
    if config.is_production:
        click.echo("Error: clear is disabled in production.", err=True)
        raise SystemExit(1)

    loader = SchemaLoader(config.schema_path)
    loader.load_all()
    if loader.get_schema(name) is None:
        click.echo(f"Error: no schema named '{name}' in {config.schema_path}", err=True)
        raise SystemExit(1)

    if not yes:
        click.confirm(f"Remove every document of '{name}'?", abort=True)

    store = create_store(config.database_url)
    store.connect()
    try:
        api = DocForgeApi({name: loader.get_schema(name)}, store)
        result = asyncio.run(api.route(name).clear(user))
    except DocForgeError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1)
    finally:
        store.close()

    click.echo(f"Removed {result['deleted']} document(s) from {name}.")


# Register subcommand groups
from docforge.cli.schemas_cmd import schemas  # noqa: E402

cli.add_command(schemas)
