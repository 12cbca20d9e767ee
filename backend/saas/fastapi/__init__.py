"""
FastAPI integration for tenant-aware services.

Usage:
    ```python
    from saas.fastapi import create_fastapi_app

    app = create_fastapi_app("tenant-service", "Tenant API", api_router=router)
    ```
"""

from .app_factory import create_fastapi_app

__all__ = ["create_fastapi_app"]
