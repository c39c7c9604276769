"""API routers."""

from kadig.routers.admin import router as admin_router
from kadig.routers.analytics import router as analytics_router
from kadig.routers.connections import router as connections_router
from kadig.routers.investments import router as investments_router
from kadig.routers.movements import router as movements_router
from kadig.routers.notifications import router as notifications_router
from kadig.routers.portfolios import router as portfolios_router
from kadig.routers.profile import router as profile_router

__all__ = [
    "admin_router",
    "analytics_router",
    "connections_router",
    "investments_router",
    "movements_router",
    "notifications_router",
    "portfolios_router",
    "profile_router",
]
