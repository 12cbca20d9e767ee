"""
Centralized configuration management for all backend services.

This module defines Pydantic Settings classes for managing configuration across
all microservices. Base settings are shared by every service; the tenant
service adds nothing beyond its identity, while every service inherits the
tenancy settings that drive the data-access router.

Configuration Loading:
    Settings are loaded in the following priority order (highest to lowest):
    1. Environment variables
    2. .env file in the project root
    3. Default values defined in the classes

Service Settings Hierarchy:
    BaseServiceSettings (base class)
    └── TenantServiceSettings

Environment Variables:
    All settings can be overridden via environment variables. For example:
    - SHARED_DSN="host=db user=u password=p dbname=pgsql-saas port=5432 sslmode=disable"
    - ROOT_DOMAIN=e-masjid.my
    - TENANT_DB_MODE=separate
    - SEED_SQL_DIR=/app/sql
"""

from typing import Any

from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings

TENANT_DB_MODES = ("shared", "separate")


class BaseServiceSettings(BaseSettings):
    """
    Base settings class providing common configuration for all services.

    Attributes:
        SERVICE_NAME (str): Name identifier for the service. Default: "base-service"
        SERVICE_VERSION (str): Version string for the service. Default: "0.0.1"
        PORT (int): Port number the service listens on. Default: 8000

        ENVIRONMENT (str): Deployment environment ("local", "dev" or "prod"). Default: "local"
        DEBUG (bool): Enable debug mode. Default: False
        LOG_LEVEL (str): Logging level. Default: "INFO"
        API_V1_STR (str): API version prefix for routes. Default: "/api/v1"

        SHARED_DSN (str): Space-separated key=value DSN of the host database. Every
            tenant connection string is derived from it.
        ADMIN_DATABASE (str): Maintenance database used for CREATE DATABASE.
        TENANT_DB_MODE (str): "separate" gives each tenant without an explicit
            connection entry its own database; "shared" keeps them on SHARED_DSN.
        ROOT_DOMAIN (str): Root domain for subdomain resolution. Empty disables it.
        TENANT_DOMAIN_PATTERN (str): Optional regex overriding the pattern built from
            ROOT_DOMAIN. Its first group must capture the tenant name.
        TENANT_HEADER (str): Request header carrying an explicit tenant hint.

        SEED_SQL_DIR (str): Directory of *.sql scripts executed for every tenant seed.
        SEED_TENANT_IDS (list[str]): Tenants seeded by POST /seed besides the host.
        LOCAL_TENANT_ID (str): Tenant skipped by the tenant_id back-fill.

        DATABASE_POOL_SIZE (int): Connections kept per tenant pool. Default: 10
        DATABASE_MAX_OVERFLOW (int): Overflow connections per tenant pool. Default: 5
    """

    # Service Information (defaults)
    SERVICE_NAME: str = "base-service"
    SERVICE_VERSION: str = "0.0.1"
    PORT: int = 8000

    # Global Configuration
    ENVIRONMENT: str = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # API Configuration
    API_V1_STR: str = "/api/v1"

    # Tenancy Configuration
    SHARED_DSN: str = (
        "host=localhost user=pgsql-saas password=pgsql-saas dbname=pgsql-saas "
        "port=5435 sslmode=disable TimeZone=UTC"
    )
    ADMIN_DATABASE: str = "postgres"
    TENANT_DB_MODE: str = "separate"
    ROOT_DOMAIN: str = ""
    TENANT_DOMAIN_PATTERN: str = ""
    TENANT_HEADER: str = "__tenant"

    # Seeding Configuration
    SEED_SQL_DIR: str = ""
    SEED_TENANT_IDS: Any = ["1"]
    LOCAL_TENANT_ID: str = "1"

    # Database Configuration
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 5
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_POOL_RECYCLE: int = 3600
    DATABASE_CONNECT_TIMEOUT: int = 10
    DATABASE_ECHO: bool = False

    @field_validator("SEED_TENANT_IDS", mode="before")
    @classmethod
    def assemble_seed_tenant_ids(cls, v: Any) -> list[str]:
        """
        Accept either a comma-separated string ("1,2,3") or a list of tenant ids.
        Whitespace is stripped and empty entries are dropped.
        """
        if isinstance(v, str):
            return [tenant_id.strip() for tenant_id in v.split(",") if tenant_id.strip()]
        if isinstance(v, list):
            return [str(tenant_id) for tenant_id in v]
        return []

    @field_validator("TENANT_DB_MODE")
    @classmethod
    def validate_tenant_db_mode(cls, v: str) -> str:
        mode = v.strip().lower()
        if mode not in TENANT_DB_MODES:
            msg = f"TENANT_DB_MODE must be one of {', '.join(TENANT_DB_MODES)}, got: {v}"
            raise ValueError(msg)
        return mode

    @field_validator(
        "DATABASE_POOL_SIZE",
        "DATABASE_MAX_OVERFLOW",
        "DATABASE_POOL_TIMEOUT",
        "DATABASE_POOL_RECYCLE",
        "DATABASE_CONNECT_TIMEOUT",
        mode="before",
    )
    @classmethod
    def validate_positive_int(cls, v: Any, info: ValidationInfo) -> int | None:
        """
        Validate that database pool configuration fields are positive integers.

        Args:
            v: Input value to validate. Can be int, str, or None.
            info: Pydantic ValidationInfo object containing field metadata.

        Returns:
            Validated integer value, or None if input is None.

        Raises:
            ValueError: If the value cannot be converted to an integer or is negative.
        """
        if v is None:
            return None
        try:
            int_val = int(v)
            if int_val < 0:
                msg = f"{info.field_name} must be a positive integer"
                raise ValueError(msg)
            return int_val
        except (ValueError, TypeError) as e:
            msg = f"{info.field_name} must be a valid positive integer, got: {v}"
            raise ValueError(
                msg
            ) from e

    @property
    def separate_databases(self) -> bool:
        return self.TENANT_DB_MODE == "separate"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


class TenantServiceSettings(BaseServiceSettings):
    """
    Settings configuration for the tenant administration service.

    Inherited Attributes:
        All attributes from BaseServiceSettings are available with these overrides:
        - SERVICE_NAME: "tenant-service"
        - PORT: 8090

    Example:
        ```python
        from saas.config.settings import TenantServiceSettings

        settings = TenantServiceSettings()
        print(settings.SERVICE_NAME)  # "tenant-service"
        print(settings.PORT)  # 8090
        ```
    """

    SERVICE_NAME: str = "tenant-service"
    SERVICE_VERSION: str = "0.1.0"
    PORT: int = 8090
