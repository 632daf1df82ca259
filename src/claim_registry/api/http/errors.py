"""Conversion of registry errors into JSON responses."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from claim_registry.core.errors import RegistryError, StorageError


async def registry_error_handler(request: Request, exc: RegistryError) -> JSONResponse:
    if isinstance(exc, StorageError):
        logger.bind(error_type=type(exc).__name__).error("request.storage_error: {}", exc.message)
    else:
        logger.bind(error_type=type(exc).__name__).info("request.rejected: {}", exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "request"
        message = f'"{field}" {first.get("msg", "is invalid")}'
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"error": "Not Found"})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RegistryError, registry_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
