"""
Recipedium Recipe Service
Recipe lifecycle: create, update, delete, likes and comments
"""

from typing import Any, Dict
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from core.exceptions import ConflictError, NotFoundError, ValidationError, pydantic_errors_to_fields
from middleware.logging import log_business_event
from models.recipe_models import Recipe, RecipeComment, RecipeLike
from models.users import User
from schemas.recipe_schemas import CommentCreate, RecipeCreate, RecipeUpdate
from services.permissions import Action, ensure_can_mutate

logger = structlog.get_logger()

DEFAULT_RATING = 5


class RecipeService:
    """Every mutation loads the recipe, checks permissions, commits, then returns a fresh copy"""

    async def get_recipe(self, db: AsyncSession, recipe_id: str, refresh: bool = False) -> Recipe:
        stmt = select(Recipe).where(Recipe.id == recipe_id)
        if refresh:
            # Reload columns and eager collections over the identity map copy
            stmt = stmt.execution_options(populate_existing=True)

        recipe = (await db.execute(stmt)).scalar_one_or_none()
        if recipe is None:
            raise NotFoundError("Recipe not found")
        return recipe

    def _apply(self, recipe: Recipe, data: RecipeCreate) -> None:
        recipe.title = data.title
        recipe.description = data.description
        recipe.ingredients = list(data.ingredients)
        recipe.instructions = list(data.instructions)
        recipe.cooking_time = data.cooking_time
        recipe.servings = data.servings
        recipe.difficulty = data.difficulty
        recipe.category = data.category
        recipe.diet = list(data.diet)
        recipe.image = data.image

    @staticmethod
    def _current_values(recipe: Recipe) -> Dict[str, Any]:
        return {
            "title": recipe.title,
            "description": recipe.description,
            "ingredients": list(recipe.ingredients),
            "instructions": list(recipe.instructions),
            "cooking_time": recipe.cooking_time,
            "servings": recipe.servings,
            "difficulty": recipe.difficulty,
            "category": recipe.category,
            "diet": recipe.diet,
            "image": recipe.image,
        }

    async def create_recipe(self, db: AsyncSession, caller: User, data: RecipeCreate) -> Recipe:
        """Create a recipe owned by caller; owner comes from the token, never the body"""
        recipe = Recipe(user_id=caller.id)
        self._apply(recipe, data)
        db.add(recipe)
        await db.commit()

        log_business_event("recipe_created", {"recipe_id": recipe.id, "category": recipe.category.value})
        return await self.get_recipe(db, recipe.id, refresh=True)

    async def update_recipe(self, db: AsyncSession, caller: User, recipe_id: str, changes: RecipeUpdate) -> Recipe:
        """Merge supplied fields over the stored recipe and re-validate the result"""
        recipe = await self.get_recipe(db, recipe_id)
        ensure_can_mutate(caller, recipe, Action.UPDATE, "Not authorized to update this recipe")

        merged = {**self._current_values(recipe), **changes.model_dump(exclude_unset=True)}
        try:
            data = RecipeCreate.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError(pydantic_errors_to_fields(e.errors()))

        self._apply(recipe, data)
        await db.commit()

        log_business_event("recipe_updated", {"recipe_id": recipe_id})
        return await self.get_recipe(db, recipe_id, refresh=True)

    async def delete_recipe(self, db: AsyncSession, caller: User, recipe_id: str) -> None:
        """Delete a recipe with its likes and comments"""
        recipe = await self.get_recipe(db, recipe_id)
        ensure_can_mutate(caller, recipe, Action.DELETE, "Not authorized to delete this recipe")

        await db.delete(recipe)
        await db.commit()

        log_business_event("recipe_deleted", {"recipe_id": recipe_id})

    async def like_recipe(self, db: AsyncSession, caller: User, recipe_id: str) -> Recipe:
        """Add caller's like; at most one like per user per recipe"""
        recipe = await self.get_recipe(db, recipe_id)
        if recipe.is_liked_by(caller.id):
            raise ConflictError("Recipe already liked")

        db.add(RecipeLike(recipe_id=recipe.id, user_id=caller.id))
        try:
            await db.commit()
        except IntegrityError:
            # A concurrent like from the same user won the race
            await db.rollback()
            raise ConflictError("Recipe already liked")

        log_business_event("recipe_liked", {"recipe_id": recipe_id})
        return await self.get_recipe(db, recipe_id, refresh=True)

    async def unlike_recipe(self, db: AsyncSession, caller: User, recipe_id: str) -> Recipe:
        """Remove caller's like"""
        recipe = await self.get_recipe(db, recipe_id)

        result = await db.execute(
            delete(RecipeLike)
            .where(RecipeLike.recipe_id == recipe.id, RecipeLike.user_id == caller.id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConflictError("Recipe has not yet been liked")
        await db.commit()

        log_business_event("recipe_unliked", {"recipe_id": recipe_id})
        return await self.get_recipe(db, recipe_id, refresh=True)

    async def add_comment(self, db: AsyncSession, caller: User, recipe_id: str, data: CommentCreate) -> Recipe:
        """Append a comment; it is listed first since comments are newest-first"""
        recipe = await self.get_recipe(db, recipe_id)

        db.add(RecipeComment(
            recipe_id=recipe.id,
            user_id=caller.id,
            text=data.text,
            rating=data.rating if data.rating is not None else DEFAULT_RATING,
        ))
        await db.commit()

        log_business_event("comment_added", {"recipe_id": recipe_id})
        return await self.get_recipe(db, recipe_id, refresh=True)

    async def delete_comment(self, db: AsyncSession, caller: User, recipe_id: str, comment_id: str) -> Recipe:
        """Remove a comment; allowed for its author, the recipe owner, or an admin"""
        recipe = await self.get_recipe(db, recipe_id)

        comment = recipe.find_comment(comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")

        ensure_can_mutate(caller, comment, Action.DELETE, "User not authorized", parent=recipe)

        await db.delete(comment)
        await db.commit()

        log_business_event("comment_deleted", {"recipe_id": recipe_id, "comment_id": comment_id})
        return await self.get_recipe(db, recipe_id, refresh=True)


# Create singleton instance
recipe_service = RecipeService()
