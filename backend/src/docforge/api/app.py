"""FastAPI application."""

import logging
from collections.abc import Callable, Mapping
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from docforge.api.service import DocForgeApi
from docforge.core.config import AppConfig
from docforge.persistence import create_store
from docforge.schemas.loader import Schema, SchemaLoader
from docforge.schemas.validator import validate_schema_dir

logger = logging.getLogger(__name__)

IdentityResolver = Callable[[Request], Any]


def _load_schemas(config: AppConfig) -> dict[str, Schema]:
    """Validate and load the schema YAML directory (warn on issues, don't block startup)."""
    issues = validate_schema_dir(config.schema_path)
    for issue in issues:
        if issue.severity == "error":
            logger.error("Schema error: %s", issue)
        else:
            logger.warning("Schema warning: %s", issue)

    loader = SchemaLoader(config.schema_path)
    return loader.load_all()


def _fixed_identity(user: Any) -> IdentityResolver:
    def resolve(request: Request) -> Any:
        return user

    return resolve


def create_app(
    config: AppConfig | None = None,
    schemas: Mapping[str, Schema] | None = None,
    identity: IdentityResolver | None = None,
    setup: Callable[[DocForgeApi], None] | None = None,
) -> FastAPI:
    """Create the DocForge FastAPI application.

    Args:
        config: Application config (read from the environment if omitted)
        schemas: Schemas to serve (loaded from ``config.schema_path`` if omitted)
        identity: Resolves the caller identity of a request. Defaults to the
            configured development user, if any.
        setup: Called with the DocForgeApi at startup, before requests are
            served (register listeners and custom collection endpoints here)

    The DocForgeApi is available as ``app.state.docforge`` once the
    application has started.
    """
    config = config or AppConfig.from_env()

    if identity is None and config.dev_user:
        logger.warning("Serving every request as development user '%s'", config.dev_user)
        identity = _fixed_identity(config.dev_user)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize on startup, cleanup on shutdown."""
        resolved = dict(schemas) if schemas is not None else _load_schemas(config)

        store = create_store(config.database_url)
        store.connect()
        try:
            api = DocForgeApi(
                resolved,
                store,
                listener_timeout=config.listener_timeout,
                allow_clear=not config.is_production,
                error_status_codes=config.error_status_codes,
            )
            if setup is not None:
                setup(api)

            app.include_router(api.router, prefix=config.api_prefix)
            app.state.docforge = api
            logger.info(
                "Serving %d collection(s) under %s", len(api.registry), config.api_prefix or "/"
            )

            yield
        finally:
            store.close()

    app = FastAPI(title="DocForge API", lifespan=lifespan)

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def identity_middleware(request: Request, call_next):
        """Attach the caller identity unless an outer layer already did."""
        if identity is not None:
            request.state.user = identity(request)
        return await call_next(request)

    @app.get(f"{config.api_prefix}/_collections")
    async def list_collections(request: Request) -> dict[str, Any]:
        """List the served collections and their fields."""
        api: DocForgeApi = request.app.state.docforge
        return {
            "collections": [
                {
                    "name": entry.name,
                    "fields": [
                        {"name": f.name, "type": f.type, "required": f.required}
                        for f in entry.model.schema.fields
                    ],
                }
                for entry in api.registry
            ]
        }

    return app
