"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.responses import JSONResponse

from claim_registry.api.http.app_data import ApplicationDependencies
from claim_registry.api.http.errors import register_exception_handlers
from claim_registry.api.http.routers.claims import router as claims_router
from claim_registry.api.http.routers.users import router as users_router
from claim_registry.api.utils.app_startup import configure_logging
from claim_registry.core.services import (
    DbManageService,
    DbSessionService,
    ReclaimConsentClient,
    build_verifier,
)
from claim_registry.core.storage import InMemoryUserClaimStore
from claim_registry.runtime.context import get_config

configure_logging()


def build_dependencies() -> ApplicationDependencies:
    """Build the application-wide collaborators from configuration."""
    config = get_config()
    consent_client = ReclaimConsentClient.from_config()
    verifier = build_verifier(config.consent.verification, config.consent.provider)

    if config.store.backend == "memory":
        logger.warning("Using in-memory claim store; records are lost on restart")
        return ApplicationDependencies(
            config=config,
            consent_client=consent_client,
            verifier=verifier,
            memory_store=InMemoryUserClaimStore(),
        )

    database_service = DbSessionService(config)
    DbManageService(database_service.engine).create_all()
    return ApplicationDependencies(
        config=config,
        consent_client=consent_client,
        verifier=verifier,
        database_service=database_service,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup(app)
    try:
        yield
    finally:
        await shutdown(app)


async def startup(app: FastAPI) -> None:
    config = get_config()
    logger.info("Starting up application in {} environment", config.app.environment)
    # Tests may inject their own dependencies before startup
    if getattr(app.state, "app_dependencies", None) is None:
        app.state.app_dependencies = build_dependencies()


async def shutdown(app: FastAPI) -> None:
    logger.info("Shutting down application")
    app_dependencies: ApplicationDependencies | None = getattr(
        app.state, "app_dependencies", None
    )
    if app_dependencies is not None and app_dependencies.database_service is not None:
        app_dependencies.database_service.dispose()


def create_app() -> FastAPI:
    config = get_config()
    app = FastAPI(
        title="Claim Registry",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None if config.app.environment == "production" else "/docs",
        redoc_url=None if config.app.environment == "production" else "/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.app.cors.origins,
        allow_credentials=config.app.cors.allow_credentials,
        allow_methods=config.app.cors.allow_methods,
        allow_headers=config.app.cors.allow_headers,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        base_ctx = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
        }

        start = time.perf_counter()
        with logger.contextualize(**base_ctx):
            try:
                logger.info("request.start")
                response = await call_next(request)
            except Exception as exc:
                duration_ms = (time.perf_counter() - start) * 1000
                logger.bind(
                    status_code=500,
                    duration_ms=round(duration_ms, 1),
                    error_type=type(exc).__name__,
                ).exception("request.error")
                return JSONResponse(
                    status_code=500,
                    content={"error": "Internal Server Error"},
                    headers={"X-Request-ID": request_id},
                )

            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
            ).info("request.end")
            response.headers.setdefault("X-Request-ID", request_id)
            return response

    register_exception_handlers(app)

    app.include_router(users_router)
    app.include_router(claims_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {"message": "Hello from root!"}

    @app.get("/health")
    def health(request: Request) -> dict:
        """Health check endpoint."""
        deps: ApplicationDependencies | None = getattr(
            request.app.state, "app_dependencies", None
        )
        if deps is None:
            store_ok = False
        elif deps.memory_store is not None:
            store_ok = deps.memory_store.is_available()
        else:
            store_ok = deps.database_service is not None and deps.database_service.health_check()
        return {"status": "healthy", "store": store_ok}

    return app


app = create_app()

# expose lifecycle hooks for tests
__all__ = ["app", "build_dependencies", "create_app", "shutdown", "startup"]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=get_config().app.host,
        port=get_config().app.port,
        access_log=False,  # Access logging happens in middleware
    )
