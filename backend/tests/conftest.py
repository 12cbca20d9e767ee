"""
Pytest configuration and fixtures for the data-access router tests.

Database-backed tests run on aiosqlite: the client factory's engine factory
maps every database name to its own SQLite file, so database-per-tenant
routing is observable as separate files. PostgreSQL-only paths (provisioning)
are replaced with mocks.
"""

import os
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

# Set test environment variables before importing modules
os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault(
    "SHARED_DSN",
    "host=db user=u password=secret dbname=shared port=5432 sslmode=disable",
)
os.environ.setdefault("TENANT_DB_MODE", "separate")
os.environ.setdefault("ROOT_DOMAIN", "e-masjid.my")
os.environ.setdefault("SEED_SQL_DIR", "")
os.environ.setdefault("SEED_TENANT_IDS", "1")
os.environ.setdefault("LOCAL_TENANT_ID", "1")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from saas.config import BaseServiceSettings  # noqa: E402
from saas.database import ClientFactory, DatabaseProvisioner  # noqa: E402
from saas.tenancy import build_tenancy  # noqa: E402

SHARED_DSN = "host=db user=u password=secret dbname=shared port=5432 sslmode=disable"


def sqlite_engine_factory(base_dir: Path):
    """Engine factory opening ``<base_dir>/<database>.db`` for any URL."""

    def factory(url: Any, **kwargs: Any):
        return create_async_engine(f"sqlite+aiosqlite:///{base_dir / url.database}.db")

    return factory


@pytest.fixture
def sample_tenant_id() -> str:
    """Return a sample tenant ID for testing."""
    return "123e4567-e89b-12d3-a456-426614174000"


@pytest.fixture
def make_settings():
    """Settings factory; keyword arguments override the test defaults."""

    def _make(**overrides: Any) -> BaseServiceSettings:
        values: dict[str, Any] = {
            "SHARED_DSN": SHARED_DSN,
            "TENANT_DB_MODE": "separate",
            "ROOT_DOMAIN": "e-masjid.my",
            "SEED_SQL_DIR": "",
            "SEED_TENANT_IDS": ["1"],
            "LOCAL_TENANT_ID": "1",
        }
        values.update(overrides)
        return BaseServiceSettings(**values)

    return _make


@pytest.fixture
def mock_provisioner():
    """Return a provisioner mock; ensure_exists succeeds by default."""
    return AsyncMock(spec=DatabaseProvisioner)


@pytest.fixture
def make_tenancy(tmp_path, make_settings, mock_provisioner):
    """Build tenancy components backed by SQLite files under tmp_path."""

    def _make(**overrides: Any):
        settings = make_settings(**overrides)
        client_factory = ClientFactory(
            settings, engine_factory=sqlite_engine_factory(tmp_path)
        )
        return build_tenancy(
            settings, client_factory=client_factory, provisioner=mock_provisioner
        )

    return _make


@pytest.fixture
def sql_dir(tmp_path) -> Path:
    """Return an empty directory for seed SQL scripts."""
    path = tmp_path / "sql"
    path.mkdir()
    return path


@pytest.fixture
def sqlite_factory(tmp_path):
    """Return an engine factory writing SQLite files under tmp_path."""
    return sqlite_engine_factory(tmp_path)
