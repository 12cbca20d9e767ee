"""
Tests for tenant-aware logging.
"""

import pytest
from loguru import logger

from saas.logging import setup_logging, tenant_logging_context


@pytest.fixture
def records():
    captured = []
    handler_id = logger.add(captured.append, format="{extra[tenant]}|{message}")
    yield captured
    logger.remove(handler_id)


class TestTenantLogging:
    def test_context_binds_tenant(self, records):
        logger.configure(extra={"tenant": "host"})

        with tenant_logging_context("acme-id"):
            logger.info("inside")
        logger.info("outside")

        assert records[0].strip() == "acme-id|inside"
        assert records[1].strip() == "host|outside"

    def test_empty_tenant_logs_as_host(self, records):
        logger.configure(extra={"tenant": "host"})

        with tenant_logging_context(""):
            logger.info("host call")

        assert records[0].strip() == "host|host call"


def test_setup_logging_creates_service_files(tmp_path):
    setup_logging("tenant-service", log_dir=str(tmp_path / "logs"))
    logger.error("boom")

    assert (tmp_path / "logs" / "tenant-service.log").exists()
    assert (tmp_path / "logs" / "tenant-service-error.log").exists()
