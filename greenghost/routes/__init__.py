# Import all routes
from .admin_auth import router as admin_router
from .admin_users import router as admin_users_router
from .waitlist import router as waitlist_router
from .email_templates import router as email_templates_router
from .health import router as health_router

# All routers that should be included in main app
routers = [
    admin_router,
    admin_users_router,
    waitlist_router,
    email_templates_router,
    health_router,
]

__all__ = [
    "admin_router",
    "admin_users_router",
    "waitlist_router",
    "email_templates_router",
    "health_router",
    "routers",
]
