"""
Tenant Service Package

Package Structure:
    - main.py: FastAPI application entry point
    - api/: API endpoint definitions, routing and dependencies

Usage:
    ```python
    from services.tenant_service import app

    # uvicorn services.tenant_service:app --port 8090
    ```
"""

from services.tenant_service.main import app

__all__ = ["app"]
