"""
Request tenant resolution.

Resolution order:
    1. Explicit override: identity pre-set for host-level admin endpoints.
    2. Domain: the Host header matched against ``<tenant>.<root-domain>``; the
       leftmost label is the tenant name.
    3. Header: an explicit tenant header (``__tenant`` by default).
    4. Otherwise the host tenant (empty hint).

The resolver only produces a hint. It performs no I/O and never fails; turning
the hint into a tenant is the directory's job.

Example:
    ```python
    resolver = TenantResolver(root_domain="e-masjid.my")
    result = resolver.resolve("Acme.e-masjid.my", {})
    result.hint  # "acme"
    result.applied_resolvers  # ("domain",)
    ```
"""

from collections.abc import Mapping
import re

from saas.config import BaseServiceSettings
from saas.tenancy.context import TenantResolveResult

OVERRIDE_RESOLVER = "override"
DOMAIN_RESOLVER = "domain"
HEADER_RESOLVER = "header"


def normalize_hint(value: str) -> str:
    return value.strip().lower()


def domain_pattern_for(root_domain: str) -> str:
    return rf"([-a-z0-9]+)\.{re.escape(root_domain.strip().lower())}"


def strip_port(host: str) -> str:
    if host.startswith("["):
        return host
    return host.rsplit(":", 1)[0] if ":" in host else host


class TenantResolver:
    """
    Args:
        root_domain: Root domain for subdomain matching; empty disables it.
        domain_pattern: Regex overriding the pattern derived from
            ``root_domain``; group 1 captures the tenant name.
        header_name: Header carrying an explicit tenant hint; empty disables it.
    """

    def __init__(
        self,
        root_domain: str = "",
        domain_pattern: str = "",
        header_name: str = "__tenant",
    ) -> None:
        pattern = domain_pattern or (domain_pattern_for(root_domain) if root_domain else "")
        self._domain_re = re.compile(pattern, re.IGNORECASE) if pattern else None
        self.header_name = header_name

    @classmethod
    def from_settings(cls, settings: BaseServiceSettings) -> "TenantResolver":
        return cls(
            root_domain=settings.ROOT_DOMAIN,
            domain_pattern=settings.TENANT_DOMAIN_PATTERN,
            header_name=settings.TENANT_HEADER,
        )

    def resolve(
        self,
        host: str | None,
        headers: Mapping[str, str],
        override: str | None = None,
    ) -> TenantResolveResult:
        if override is not None:
            return TenantResolveResult(
                hint=normalize_hint(override), applied_resolvers=(OVERRIDE_RESOLVER,)
            )

        applied: list[str] = []

        if self._domain_re is not None:
            applied.append(DOMAIN_RESOLVER)
            if host:
                match = self._domain_re.fullmatch(strip_port(host.strip()))
                if match and match.group(1):
                    return TenantResolveResult(
                        hint=normalize_hint(match.group(1)),
                        applied_resolvers=tuple(applied),
                    )

        if self.header_name:
            applied.append(HEADER_RESOLVER)
            value = headers.get(self.header_name)
            if value and value.strip():
                return TenantResolveResult(
                    hint=normalize_hint(value), applied_resolvers=tuple(applied)
                )

        return TenantResolveResult(applied_resolvers=tuple(applied))
