"""
Service settings lookup.

Each service in the fleet asks for its settings by name; every settings class
inherits the tenancy configuration from ``BaseServiceSettings``. Values come
from the environment, then ``.env``, then class defaults.

Example:
    ```python
    from saas.config import get_settings

    settings = get_settings("tenant-service")
    settings.SHARED_DSN
    settings.separate_databases
    ```
"""

from saas.config.settings import BaseServiceSettings, TenantServiceSettings

# service-name fragment -> settings class; first match wins
SERVICE_SETTINGS: tuple[tuple[str, type[BaseServiceSettings]], ...] = (
    ("tenant", TenantServiceSettings),
)


def get_settings(service_name: str | None = None) -> BaseServiceSettings:
    """
    Build the settings for ``service_name``.

    Matching is case-insensitive on a name fragment, so "tenant-service" and
    "tenant" both give TenantServiceSettings. Unknown names and None give
    BaseServiceSettings. A new instance is returned on every call.
    """
    if service_name:
        service_lower = service_name.lower()
        for fragment, settings_class in SERVICE_SETTINGS:
            if fragment in service_lower:
                return settings_class()
    return BaseServiceSettings()


__all__ = [
    "SERVICE_SETTINGS",
    "BaseServiceSettings",
    "TenantServiceSettings",
    "get_settings",
]
