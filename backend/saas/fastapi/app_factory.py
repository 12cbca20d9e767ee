"""
Application factory for tenant-aware FastAPI services.

Every service in the fleet is built here so that tenancy works the same way
everywhere:

    startup   build the tenancy components (``app.state.tenancy``) and seed
              the host database
    request   TenancyMiddleware resolves ``request.state.tenant``; handlers
              reach their database through ``tenancy.provider``
    shutdown  flush the connection cache, disposing every tenant pool

Router errors that escape a handler are mapped by ``handle_tenancy_error``
(404 unknown tenant, 409 duplicate, 500 otherwise).

Endpoints:
    - GET /: service information
    - GET /health: liveness plus the number of cached tenant pools
    - GET /docs: Swagger UI

Usage:
    ```python
    from saas.fastapi import create_fastapi_app

    app = create_fastapi_app(
        service_name="tenant-service",
        description="Tenant administration API",
        api_router=api_router,
        host_paths=("/api/v1/admin",),
    )
    ```
"""

from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
import time
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from loguru import logger

from saas.config import BaseServiceSettings, get_settings
from saas.exceptions import TenancyError, handle_tenancy_error
from saas.logging import setup_logging
from saas.tenancy import Tenancy, TenancyMiddleware, build_tenancy


def create_fastapi_app(
    service_name: str,
    description: str,
    api_router: APIRouter | None = None,
    additional_setup: Callable[[FastAPI, BaseServiceSettings], None] | None = None,
    root_path: str = "",
    host_paths: Sequence[str] = (),
    seed_host_on_startup: bool = True,
    tenancy_factory: Callable[[BaseServiceSettings], Tenancy] = build_tenancy,
) -> FastAPI:
    """
    Create a FastAPI application with tenancy and standard middleware.

    Args:
        service_name: Name of the service (e.g., "tenant-service"). Used to load
            service-specific settings and configure logging.
        description: Human-readable description used in OpenAPI metadata.
        api_router: Optional router included under the API_V1_STR prefix.
        additional_setup: Optional callback ``(app, settings) -> None`` run after
            the standard configuration.
        root_path: Root path for reverse proxy scenarios. Ignored in the local
            environment.
        host_paths: Path prefixes always resolved to the host tenant (admin
            endpoints).
        seed_host_on_startup: Apply host schema and seed rows during startup.
        tenancy_factory: Builds the tenancy components from settings.

    Returns:
        Configured FastAPI application.
    """

    setup_logging(service_name)
    settings = get_settings(service_name)

    effective_root_path = root_path if settings.ENVIRONMENT != "local" else ""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        tenancy = tenancy_factory(settings)
        app.state.tenancy = tenancy
        try:
            if seed_host_on_startup:
                await tenancy.seeder.seed()
            logger.info(f"{settings.SERVICE_NAME} started")
            yield
        finally:
            await tenancy.close()
            logger.info(f"{settings.SERVICE_NAME} stopped")

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        description=description,
        openapi_url="/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        root_path=effective_root_path,
        lifespan=lifespan,
    )

    app.add_middleware(TenancyMiddleware, host_paths=host_paths)

    @app.middleware("http")
    async def add_process_time_header(
        request: Request, call_next: Callable[[Request], Any]
    ) -> Response:
        """Add process time header to responses."""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        logger.info(
            f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s"
        )
        return response

    if api_router:
        app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        tenancy = getattr(app.state, "tenancy", None)
        return {
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "status": "healthy",
            "tenantDbMode": settings.TENANT_DB_MODE,
            "cachedClients": len(tenancy.cache) if tenancy else 0,
            "timestamp": time.time(),
        }

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint."""
        return {
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "message": f"{settings.SERVICE_NAME} is running",
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(TenancyError)
    async def tenancy_exception_handler(
        request: Request, exc: TenancyError
    ) -> JSONResponse:
        error = handle_tenancy_error(f"{request.method} {request.url.path}", exc)
        return JSONResponse(status_code=error.status_code, content={"detail": error.detail})

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            f"Unhandled exception in {request.method} {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "An error occurred while processing your request. Please try again later."
            },
        )

    if additional_setup:
        additional_setup(app, settings)

    return app
