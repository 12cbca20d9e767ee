"""
ORM models and table definitions for the data-access router.

Two groups of tables exist:

1. Host directory models (host database only), mapped with the ORM:
   - Tenant: tenant identity and identity-provider metadata
   - TenantConn: per-purpose connection strings keyed by (tenant_id, key)

2. Application tables (every tenant database), defined as Core tables on
   ``app_metadata`` and applied through the versioned migration list.

Usage:
    ```python
    from saas.models import Tenant, post_table

    stmt = select(Tenant).where(Tenant.name == "acme")
    ```
"""

from saas.models.application import (
    app_metadata,
    cadangan_table,
    cadangan_type_table,
    dependent_table,
    kariah_dependent_table,
    kariah_member_assigned_type_table,
    kariah_member_table,
    kutipan_table,
    member_table,
    member_tag_table,
    payment_history_table,
    person_table,
    post_table,
    tabung_table,
    tabung_type_table,
    tag_table,
    tetapan_table,
    tetapan_type_table,
)
from saas.models.tenants import Tenant, TenantConn

__all__ = [
    "Tenant",
    "TenantConn",
    "app_metadata",
    "cadangan_table",
    "cadangan_type_table",
    "dependent_table",
    "kariah_dependent_table",
    "kariah_member_assigned_type_table",
    "kariah_member_table",
    "kutipan_table",
    "member_table",
    "member_tag_table",
    "payment_history_table",
    "person_table",
    "post_table",
    "tabung_table",
    "tabung_type_table",
    "tag_table",
    "tetapan_table",
    "tetapan_type_table",
]
