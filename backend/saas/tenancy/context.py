"""
Immutable tenant values passed through the request path.

``CurrentTenant`` is created once per request by the tenancy middleware and
handed explicitly to ``DbProvider.get``. It is never stored in module state or
shared between requests. An empty ``tenant_id`` means the host.
"""

from pydantic import BaseModel, ConfigDict, Field

HOST_TENANT_ID = ""
DEFAULT_CONNECTION_KEY = "default"


def normalize_connection_key(key: str | None) -> str:
    return key or DEFAULT_CONNECTION_KEY


class TenantConfig(BaseModel):
    """
    Tenant identity plus its per-purpose connection strings.

    Attributes:
        id (str): Opaque unique tenant id.
        name (str): Unique tenant name, matched against subdomains.
        namespace (str): Free-form grouping label.
        conn (dict[str, str]): Connection key -> connection string. Empty means
            the tenant uses the derived or shared connection string.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    namespace: str = ""
    conn: dict[str, str] = Field(default_factory=dict)

    def connection_string(self, key: str | None = None) -> str | None:
        return self.conn.get(normalize_connection_key(key))


class CurrentTenant(BaseModel):
    """
    Request-scoped tenant context.

    Attributes:
        tenant_id (str): Resolved tenant id; empty for the host.
        tenant_name (str): Resolved tenant name, when known.
        applied_resolvers (tuple[str, ...]): Resolvers consulted, in order.
        config (TenantConfig | None): Directory snapshot taken at resolution
            time; lets DbProvider skip a second lookup.
    """

    model_config = ConfigDict(frozen=True)

    tenant_id: str = HOST_TENANT_ID
    tenant_name: str = ""
    applied_resolvers: tuple[str, ...] = ()
    config: TenantConfig | None = None

    @property
    def is_host(self) -> bool:
        return self.tenant_id == HOST_TENANT_ID

    @classmethod
    def host(cls, applied_resolvers: tuple[str, ...] = ()) -> "CurrentTenant":
        return cls(applied_resolvers=tuple(applied_resolvers))

    @classmethod
    def from_config(
        cls, config: TenantConfig, applied_resolvers: tuple[str, ...] = ()
    ) -> "CurrentTenant":
        return cls(
            tenant_id=config.id,
            tenant_name=config.name,
            applied_resolvers=tuple(applied_resolvers),
            config=config,
        )


class TenantResolveResult(BaseModel):
    """Outcome of request resolution: a lower-cased hint (empty for host)."""

    model_config = ConfigDict(frozen=True)

    hint: str = ""
    applied_resolvers: tuple[str, ...] = ()
