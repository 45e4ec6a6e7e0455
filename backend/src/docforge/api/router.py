"""HTTP bindings for one collection route.

Builds a FastAPI router exposing a Route's operations:

    GET    /<name>            pager (page & length), getAll (no params) or find
    POST   /<name>            create
    POST   /<name>/filter     filter (body = query; page, length, strict from query string)
    GET    /<name>/{id}       get
    PUT    /<name>/{id}       update
    DELETE /<name>/{id}       delete

The caller's identity is read from ``request.state.user``; setting it is
the job of the surrounding HTTP layer. Failures are answered with
``{"success": false, "message": ...}``.
"""

import json
import logging
from collections.abc import Awaitable
from typing import Any

from fastapi import APIRouter, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from docforge.core.errors import DocForgeError, InvalidParameter, MissingParameter
from docforge.hooks.types import FilterOptions
from docforge.routes.route import Route

logger = logging.getLogger(__name__)

_TRUTHY = ("1", "true", "yes")


def get_request_user(request: Request) -> Any:
    """Extract the caller identity from request state."""
    return getattr(request.state, "user", None)


async def _read_body(request: Request) -> Any:
    """Parse the JSON body, or None when the body is empty."""
    raw = await request.body()
    if not raw or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        raise InvalidParameter("request body is not valid JSON") from None


def _parse_int(value: str | None, name: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise InvalidParameter(f"{name} must be an integer, got '{value}'") from None


async def _resolve_id(request: Request, path_id: str | None) -> str | None:
    """Identifier from the path, else the query string, else the body."""
    if path_id:
        return path_id
    if request.query_params.get("id"):
        return request.query_params["id"]
    body = await _read_body(request)
    if isinstance(body, dict) and body.get("id"):
        return str(body["id"])
    return None


def create_collection_router(route: Route, *, error_status_codes: bool = False) -> APIRouter:
    """Create the HTTP router for one collection.

    Args:
        route: The collection's Route
        error_status_codes: Answer failures with the error's HTTP status
            instead of 200

    Returns:
        An APIRouter to include in the application
    """
    router = APIRouter(tags=[route.name])
    name = route.name

    def error(exc: DocForgeError) -> JSONResponse:
        logger.error("%s: %s", name, exc.message)
        status_code = exc.status_code if error_status_codes else 200
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    async def respond(operation: Awaitable[Any]) -> JSONResponse:
        try:
            result = await operation
        except DocForgeError as e:
            return error(e)
        return JSONResponse(content=jsonable_encoder(result))

    @router.get(f"/{name}")
    async def list_documents(request: Request) -> JSONResponse:
        user = get_request_user(request)
        query = dict(request.query_params)

        if query.get("page") and query.get("length"):
            try:
                page = _parse_int(query["page"], "page")
                length = _parse_int(query["length"], "length")
            except DocForgeError as e:
                return error(e)
            return await respond(route.pager(page, length, user))

        if not query:
            return await respond(route.get_all(user))

        return await respond(route.find(query, user))

    @router.post(f"/{name}")
    async def create_document(request: Request) -> JSONResponse:
        try:
            item = await _read_body(request)
        except DocForgeError as e:
            return error(e)
        if item is not None and not isinstance(item, dict):
            return error(InvalidParameter(f"POST:{name} expects a JSON object"))
        return await respond(route.create(item, get_request_user(request)))

    @router.post(f"/{name}/filter")
    async def filter_documents(request: Request) -> JSONResponse:
        try:
            query = await _read_body(request)
            options = FilterOptions(
                query=query,
                strict=request.query_params.get("strict", "").lower() in _TRUTHY,
                page=_parse_int(request.query_params.get("page"), "page"),
                length=_parse_int(request.query_params.get("length"), "length"),
            )
        except DocForgeError as e:
            return error(e)
        return await respond(route.filter(options, get_request_user(request)))

    @router.get(f"/{name}/{{id}}")
    async def get_document(id: str, request: Request) -> JSONResponse:
        try:
            resolved = await _resolve_id(request, id)
        except DocForgeError as e:
            return error(e)
        if not resolved:
            return error(MissingParameter(f"you must pass an id parameter to GET:{name}:id"))
        return await respond(route.get(resolved, get_request_user(request)))

    @router.put(f"/{name}/{{id}}")
    async def update_document(id: str, request: Request) -> JSONResponse:
        try:
            item = await _read_body(request)
        except DocForgeError as e:
            return error(e)
        if not item or not isinstance(item, dict):
            return error(MissingParameter(f"you must pass an item to PUT:{name}"))
        item["_id"] = id
        return await respond(route.update(item, get_request_user(request)))

    @router.delete(f"/{name}/{{id}}")
    async def delete_document(id: str, request: Request) -> JSONResponse:
        try:
            resolved = await _resolve_id(request, id)
        except DocForgeError as e:
            return error(e)
        if not resolved:
            return error(MissingParameter(f"you must pass an id parameter to DELETE:{name}:id"))
        return await respond(route.delete(resolved, get_request_user(request)))

    return router
