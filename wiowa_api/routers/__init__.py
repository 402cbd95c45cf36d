"""API routers."""
from wiowa_api.routers import auth, health, memory, motus, users

__all__ = [
    "auth",
    "health",
    "memory",
    "motus",
    "users",
]
