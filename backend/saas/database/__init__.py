"""
Database utilities shared by every tenant-aware service.

This package holds the storage half of the data-access router. It has no
knowledge of requests or tenant resolution; ``saas.tenancy`` builds on it.

Main Components:
    - Base: SQLAlchemy declarative base class for the host directory models
    - dsn: Connection-string codec and the per-tenant ConnStrGenerator
    - provisioning: DatabaseProvisioner creating tenant databases on demand
    - client: ClientFactory opening pooled clients and per-request BoundClient
    - cache: Single-flight ConnectionCache keyed by resolved connection string
    - migrations: Versioned schema migration list

Usage:
    ```python
    from saas.database import ConnStrGenerator, extract_database_name

    generator = ConnStrGenerator("host=db user=u password=p dbname=shared-%s")
    dsn = generator.generate("42")
    extract_database_name(dsn)  # "shared-42"
    ```
"""

from .base import Base
from .cache import ConnectionCache
from .client import BoundClient, ClientFactory, TenantClient
from .dsn import (
    ConnStrGenerator,
    dsn_to_url,
    extract_database_name,
    format_dsn,
    parse_dsn,
    redact_dsn,
    with_database_name,
    with_suffixed_database_name,
    without_database_name,
)
from .provisioning import DatabaseProvisioner

__all__ = [
    "Base",
    "BoundClient",
    "ClientFactory",
    "ConnStrGenerator",
    "ConnectionCache",
    "DatabaseProvisioner",
    "TenantClient",
    "dsn_to_url",
    "extract_database_name",
    "format_dsn",
    "parse_dsn",
    "redact_dsn",
    "with_database_name",
    "with_suffixed_database_name",
    "without_database_name",
]
