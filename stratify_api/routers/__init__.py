# Routers package
from . import auth_router
from . import conversations_router

__all__ = [
    "auth_router",
    "conversations_router",
]
