"""
Dashboard service wiring for the API.

Provides a get_service() dependency returning the process-wide
DashboardService.  create_app() installs the instance with set_service();
tests install their own (fake client, tmp_path store) the same way.
"""

import threading

from fastapi import HTTPException

from pipeline.service import DashboardService
from utils.config import AppConfig

_service: DashboardService | None = None
_service_lock = threading.Lock()


def set_service(service: DashboardService | None) -> None:
    """Install *service* as the process-wide instance (None to clear)."""
    global _service
    with _service_lock:
        _service = service


def build_service(config: AppConfig) -> DashboardService:
    """Create a service from *config* and install it."""
    service = DashboardService.from_config(config)
    set_service(service)
    return service


def get_service() -> DashboardService:
    """FastAPI dependency: the installed DashboardService.

    Usage in a route::

        from api.service import get_service
        from fastapi import Depends

        @router.get("/example")
        def example(service=Depends(get_service)):
            ...
    """
    if _service is None:
        raise HTTPException(status_code=503, detail="Dashboard service is not initialised")
    return _service
