"""
app/api/routers package marker.
"""

from app.api.routers.electricity import router as electricity_router
from app.api.routers.health import router as health_router

__all__ = [
    "electricity_router",
    "health_router",
]
