"""
Tenant Database Initialization Script.

Command-line utility that applies schema and seed data to the host database and
to the given tenants directly, without going through the tenant service API.

**Primary Use Cases:**
    1. First-time setup of the host database
    2. Recovery when seeding a new tenant failed after registration
    3. Re-applying SQL scripts after adding files to SEED_SQL_DIR

**Dependencies:**
    - PostgreSQL server reachable through SHARED_DSN
    - Environment variables (or .env): SHARED_DSN, TENANT_DB_MODE, SEED_SQL_DIR

**Example Usage:**
    ```bash
    # Seed the host and the configured SEED_TENANT_IDS
    python scripts/init_db.py

    # Seed the host and specific tenants
    python scripts/init_db.py 1 550e8400-e29b-41d4-a716-446655440000
    ```

**Error Handling:**
    - Exits with code 0 on success
    - Exits with code 1 on the first tenant that fails
"""

import asyncio
from pathlib import Path
import sys

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

# Add the project's root directory to the Python path
sys.path.append(str(Path(__file__).parent.parent.resolve()))

from saas.config import get_settings
from saas.exceptions import TenancyError
from saas.logging import setup_logging
from saas.tenancy import build_tenancy


async def main(tenant_ids: list[str] | None) -> int:
    """
    Seed the host, then each tenant.

    Args:
        tenant_ids: Tenants to seed after the host; None uses SEED_TENANT_IDS.

    Returns:
        Process exit code.
    """
    tenancy = build_tenancy(get_settings("tenant-service"))
    try:
        seeded = await tenancy.seeder.seed_all(tenant_ids)
        logger.info(f"✓ Seeded: {', '.join(seeded)}")
        return 0
    except TenancyError as e:
        logger.error(f"✗ Error during seeding: {e}")
        return 1
    finally:
        await tenancy.close()


if __name__ == "__main__":
    setup_logging("init-db")
    sys.exit(asyncio.run(main(sys.argv[1:] or None)))
