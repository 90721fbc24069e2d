"""
Recipedium Services Module
Core business logic behind the API endpoints
"""

from .auth_service import AuthService, auth_service
from .permissions import Action, can_mutate, ensure_can_mutate
from .recipe_service import RecipeService, recipe_service
from .user_service import UserService, user_service
from .admin_service import AdminService, admin_service

__all__ = [
    # Authentication
    "AuthService",
    "auth_service",

    # Permissions
    "Action",
    "can_mutate",
    "ensure_can_mutate",

    # Recipes and accounts
    "RecipeService",
    "recipe_service",
    "UserService",
    "user_service",
    "AdminService",
    "admin_service",
]
