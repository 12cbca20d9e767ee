"""
Logging setup for the tenant-aware services.

Every record carries a ``tenant`` field in loguru's ``extra``. It defaults to
``host`` and TenancyMiddleware rebinds it for the duration of each request, so
log lines written anywhere below a handler (provider, cache, seeder) say which
tenant they belong to.

Log Files:
    - {service_name}.log: All logs at LOG_LEVEL
    - {service_name}-error.log: ERROR and above

Example:
    ```python
    from saas.logging import setup_logging, tenant_logging_context

    setup_logging("tenant-service")

    with tenant_logging_context("acme"):
        logger.info("Seeding")  # ... | tenant=acme | Seeding
    ```
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
import sys

from loguru import logger

from saas.config import get_settings

HOST_LOG_LABEL = "host"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>tenant={extra[tenant]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | tenant={extra[tenant]} | "
    "{name}:{function}:{line} | {message}"
)


def tenant_log_label(tenant_id: str) -> str:
    return tenant_id or HOST_LOG_LABEL


@contextmanager
def tenant_logging_context(tenant_id: str) -> Iterator[None]:
    """Bind ``tenant`` on every record logged inside the block (task-local)."""
    with logger.contextualize(tenant=tenant_log_label(tenant_id)):
        yield


def setup_logging(service_name: str | None = None, log_dir: str = "logs") -> None:
    """
    Configure loguru sinks for a service.

    Args:
        service_name: Service name used for the log file names; None uses
            "app.log" and "error.log".
        log_dir: Directory for the rotated log files, created if missing.

    Side Effects:
        - Replaces every existing loguru handler
        - Sets the default ``tenant`` extra to "host"
    """
    settings = get_settings(service_name)

    logger.configure(
        handlers=[
            {
                "sink": sys.stdout,
                "format": CONSOLE_FORMAT,
                "level": settings.LOG_LEVEL,
                "colorize": True,
            }
        ],
        extra={"tenant": HOST_LOG_LABEL},
    )

    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    base_name = service_name or "app"
    error_name = f"{service_name}-error.log" if service_name else "error.log"

    # Errors: 10 MB rotation, 30 days retention
    logger.add(
        str(logs_dir / error_name),
        format=FILE_FORMAT,
        level="ERROR",
        rotation="10 MB",
        retention="30 days",
        compression="zip",
    )

    # Everything else: 50 MB rotation, 7 days retention
    logger.add(
        str(logs_dir / f"{base_name}.log"),
        format=FILE_FORMAT,
        level=settings.LOG_LEVEL,
        rotation="50 MB",
        retention="7 days",
        compression="zip",
    )
