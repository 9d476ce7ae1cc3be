"""API routes."""

from hrdesk.api.routes.alerts import router as alerts_router
from hrdesk.api.routes.attendance import router as attendance_router
from hrdesk.api.routes.employees import router as employees_router
from hrdesk.api.routes.health import router as health_router
from hrdesk.api.routes.leaves import router as leaves_router
from hrdesk.api.routes.performance import router as performance_router
from hrdesk.api.routes.salary import router as salary_router
from hrdesk.api.routes.ws import router as ws_router

__all__ = [
    "alerts_router",
    "attendance_router",
    "employees_router",
    "health_router",
    "leaves_router",
    "performance_router",
    "salary_router",
    "ws_router",
]
