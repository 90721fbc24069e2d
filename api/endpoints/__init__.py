"""
Recipedium API Endpoints
All API endpoint modules
"""

# Import all endpoint modules
from . import health, auth, users, recipes, admin

__all__ = [
    "health",
    "auth",
    "users",
    "recipes",
    "admin",
]
