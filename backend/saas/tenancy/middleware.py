"""
Tenancy middleware for FastAPI services.

Resolves the tenant for every request and attaches an immutable
``CurrentTenant`` to ``request.state.tenant``; log records written while the
request runs carry the tenant id. Host-level admin paths are
resolved with an explicit host override, so they never depend on the
requesting domain or header.

Responses:
    - 404 when the hint names no registered tenant
    - 500 when the tenant directory cannot be reached
"""

from collections.abc import Callable, Sequence
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from saas.exceptions import (
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
    TenancyError,
    TenantNotFoundError,
)
from saas.logging import tenant_logging_context
from saas.tenancy.context import HOST_TENANT_ID, CurrentTenant


def get_current_tenant(request: Request) -> CurrentTenant:
    """FastAPI dependency returning the tenant attached by TenancyMiddleware."""
    tenant = getattr(request.state, "tenant", None)
    return tenant if tenant is not None else CurrentTenant.host()


class TenancyMiddleware(BaseHTTPMiddleware):
    """
    Args:
        app: The wrapped ASGI app.
        host_paths: Path prefixes always resolved to the host tenant.

    Note:
        The tenancy components are read from ``request.app.state.tenancy``,
        populated by the application lifespan.
    """

    def __init__(self, app: ASGIApp, host_paths: Sequence[str] = ()) -> None:
        super().__init__(app)
        self.host_paths = tuple(host_paths)

    def is_host_path(self, path: str) -> bool:
        return any(path == prefix or path.startswith(prefix.rstrip("/") + "/") for prefix in self.host_paths)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Any]
    ) -> Response:
        tenancy = getattr(request.app.state, "tenancy", None)
        if tenancy is None:
            request.state.tenant = CurrentTenant.host()
            return await call_next(request)

        override = HOST_TENANT_ID if self.is_host_path(request.url.path) else None
        result = tenancy.resolver.resolve(
            request.headers.get("host"), request.headers, override
        )

        if not result.hint:
            tenant = CurrentTenant.host(result.applied_resolvers)
        else:
            try:
                config = await tenancy.directory.lookup(result.hint)
            except TenantNotFoundError:
                logger.warning(f"Unknown tenant '{result.hint}' for {request.method} {request.url.path}")
                return JSONResponse(
                    status_code=HTTP_404_NOT_FOUND,
                    content={"detail": "Tenant not found."},
                )
            except TenancyError as e:
                logger.error(f"Tenant resolution failed for '{result.hint}': {e}")
                return JSONResponse(
                    status_code=HTTP_500_INTERNAL_SERVER_ERROR,
                    content={"detail": "Failed to resolve tenant. Please try again later."},
                )
            tenant = CurrentTenant.from_config(config, result.applied_resolvers)

        request.state.tenant = tenant
        with tenant_logging_context(tenant.tenant_id):
            return await call_next(request)
