"""
Recipedium Database Models
Central import module for all database models
"""

from .users import User, UserRole
from .recipe_models import (
    Recipe,
    RecipeLike,
    RecipeComment,
    RecipeDietTag,
    Difficulty,
    RecipeCategory,
    DEFAULT_IMAGE,
)

__all__ = [
    # User models
    "User",
    "UserRole",

    # Recipe models
    "Recipe",
    "RecipeLike",
    "RecipeComment",
    "RecipeDietTag",

    # Enums
    "Difficulty",
    "RecipeCategory",
    "DEFAULT_IMAGE",
]
