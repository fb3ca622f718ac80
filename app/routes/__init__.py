from .auth import router as auth_router
from .posts import router as posts_router
from .users import router as users_router
from .well_known import router as well_known_router
from .health import router as health_router

__all__ = [
    "auth_router",
    "posts_router",
    "users_router",
    "well_known_router",
    "health_router",
]
