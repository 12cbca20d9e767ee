"""
Tenancy error taxonomy and standardized error handling for API responses.

This module defines the exceptions raised by the data-access router and the
helpers FastAPI endpoints use to turn failures into SOC2-compliant responses
that never expose internal server details to clients.

Error Taxonomy:
    TenancyError (base)
    ├── TenantNotFoundError: tenant unknown by name or id (404 on admin paths)
    ├── TenantAlreadyExistsError: registration with a taken name (409)
    ├── MalformedConnectionStringError: DSN missing dbname or not key=value
    └── StorageError: any I/O failure in lookup, provisioning or client open
        ├── CacheCreationError: the get-or-create factory failed for a key
        └── SeedError: a migration, seed row or SQL script failed

Propagation Policy:
    The router never retries network failures internally and never partially
    completes a resolution. Callers map TenantNotFoundError to 404 and every
    other TenancyError to a generic 500 response.

Example:
    ```python
    from saas.exceptions import TenantNotFoundError, create_api_error

    try:
        tenant = await directory.lookup("acme")
    except TenantNotFoundError as e:
        raise create_api_error("fetching tenant", 404, e, "Tenant not found")
    ```
"""

from fastapi import HTTPException
from loguru import logger

# HTTP Status Code Constants
HTTP_400_BAD_REQUEST = 400
HTTP_404_NOT_FOUND = 404
HTTP_409_CONFLICT = 409
HTTP_422_UNPROCESSABLE_ENTITY = 422
HTTP_500_INTERNAL_SERVER_ERROR = 500
HTTP_503_SERVICE_UNAVAILABLE = 503


class TenancyError(Exception):
    """Base class for every error raised by the data-access router."""


class TenantNotFoundError(TenancyError):
    """
    Raised when no tenant row matches the requested name or id.

    Attributes:
        name_or_id (str): The tenant hint that failed to resolve.
    """

    def __init__(self, name_or_id: str) -> None:
        self.name_or_id = name_or_id
        super().__init__(f"Tenant not found: {name_or_id}")


class TenantAlreadyExistsError(TenancyError):
    """Raised when registering a tenant whose name is already taken."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tenant already exists: {name}")


class MalformedConnectionStringError(TenancyError, ValueError):
    """Raised when a DSN is missing the dbname token or holds a non key=value token."""


class StorageError(TenancyError):
    """
    Raised for any I/O failure while looking up tenants, provisioning databases
    or opening clients. The original driver exception is kept as ``__cause__``.
    """


class CacheCreationError(StorageError):
    """
    Raised to every waiter of a connection-cache key whose factory failed.

    Attributes:
        key (str): The cache key (resolved connection string) that failed.
    """

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(message)


class SeedError(StorageError):
    """Raised when a migration, seed row or SQL script fails for a tenant."""


def create_api_error(
    operation: str,
    status_code: int = 500,
    internal_error: Exception | None = None,
    user_message: str | None = None,
) -> HTTPException:
    """
    Create a standardized API error response with SOC2-compliant error messages.

    Args:
        operation: Description of the operation that failed (e.g., "creating tenant").
            Used for logging context.
        status_code: HTTP status code to return. Defaults to 500.
        internal_error: Optional original exception. Logged with its traceback,
            never included in the response.
        user_message: Optional custom user-friendly message. If None, a generic
            message appropriate for the status code is used.

    Returns:
        HTTPException configured with the status code and a safe error message.
    """
    if internal_error:
        logger.exception(f"API error in {operation}: {internal_error}")

    if user_message:
        message = user_message
    elif status_code == HTTP_400_BAD_REQUEST:
        message = "Invalid request. Please check your input and try again."
    elif status_code == HTTP_404_NOT_FOUND:
        message = "Resource not found."
    elif status_code == HTTP_409_CONFLICT:
        message = "Resource already exists."
    elif status_code == HTTP_422_UNPROCESSABLE_ENTITY:
        message = "Validation error. Please check your request parameters."
    elif status_code == HTTP_503_SERVICE_UNAVAILABLE:
        message = "Service temporarily unavailable. Please try again later."
    else:
        message = (
            "An error occurred while processing your request. Please try again later."
        )

    return HTTPException(status_code=status_code, detail=message)


def handle_database_error(operation: str, error: Exception) -> HTTPException:
    """
    Handle database-related errors with generic, safe error messages.

    Args:
        operation: Description of the database operation that failed (e.g.,
            "listing tenants", "seeding tenant database").
        error: The database exception that occurred.

    Returns:
        HTTPException with status code 500 and a generic error message that doesn't
        expose database structure, query details, or connection information.
    """
    return create_api_error(
        operation=operation,
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        internal_error=error,
        user_message="Failed to access tenant data. Please try again later.",
    )


def handle_tenancy_error(operation: str, error: TenancyError) -> HTTPException:
    """
    Map a router error onto an HTTP error.

    TenantNotFoundError becomes a 404 and TenantAlreadyExistsError a 409; every
    other tenancy error is reported as a generic 500.
    """
    if isinstance(error, TenantNotFoundError):
        logger.warning(f"Tenant not found in {operation}: {error.name_or_id}")
        return create_api_error(
            operation=operation,
            status_code=HTTP_404_NOT_FOUND,
            user_message="Tenant not found.",
        )
    if isinstance(error, TenantAlreadyExistsError):
        logger.warning(f"Duplicate tenant in {operation}: {error.name}")
        return create_api_error(
            operation=operation,
            status_code=HTTP_409_CONFLICT,
            user_message="Tenant already exists.",
        )
    return handle_database_error(operation, error)
