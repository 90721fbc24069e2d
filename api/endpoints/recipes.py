"""
Recipedium Recipe Endpoints
Recipe listing, CRUD, likes and comments
"""

from fastapi import APIRouter, Request, status
from typing import Any, Dict

from core.dependencies import CurrentUser, DbSession
from schemas.common import MessageResponse
from schemas.recipe_schemas import CommentCreate, RecipeCreate, RecipeUpdate, serialize_recipe
from services.recipe_query import fetch_recipe_page, liked_by, owned_by, parse_recipe_query
from services.recipe_service import recipe_service
from services.user_service import user_service

router = APIRouter()


@router.get("")
async def list_recipes(request: Request, db: DbSession) -> Dict[str, Any]:
    """
    List recipes

    Supports search, category/diet filters, field filters with
    [gt|gte|lt|lte|in] operators, select, sort, page and limit.
    """
    query = parse_recipe_query(request.query_params.multi_items())
    page = await fetch_recipe_page(db, query)

    return {
        "count": len(page.items),
        "total": page.total,
        "pagination": page.pagination(),
        "recipes": [serialize_recipe(recipe, query.fields) for recipe in page.items],
    }


@router.get("/liked")
async def list_liked_recipes(request: Request, current_user: CurrentUser, db: DbSession) -> Dict[str, Any]:
    """Recipes the caller has liked"""
    query = parse_recipe_query(request.query_params.multi_items())
    page = await fetch_recipe_page(db, query, scope=[liked_by(current_user.id)])

    return {
        "recipes": [serialize_recipe(recipe, query.fields) for recipe in page.items],
        "count": page.total,
        "pagination": {"page": page.page, "pages": page.total_pages},
    }


@router.get("/user/{user_id}")
async def list_user_recipes(user_id: str, request: Request, db: DbSession) -> Dict[str, Any]:
    """Recipes owned by one user, with that user's public summary"""
    user = await user_service.get_user(db, user_id)

    query = parse_recipe_query(request.query_params.multi_items())
    page = await fetch_recipe_page(db, query, scope=[owned_by(user.id)])

    return {
        "success": True,
        "count": len(page.items),
        "total": page.total,
        "pagination": {"page": page.page, "limit": page.limit, "totalPages": page.total_pages},
        "data": [serialize_recipe(recipe, query.fields) for recipe in page.items],
        "userData": {
            "id": user.id,
            "name": user.name,
            "bio": user.bio,
            "profileImage": user.profile_image,
        },
    }


@router.get("/{recipe_id}")
async def get_recipe(recipe_id: str, db: DbSession) -> Dict[str, Any]:
    """Get one recipe with its likes and comments"""
    recipe = await recipe_service.get_recipe(db, recipe_id)
    return serialize_recipe(recipe)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_recipe(recipe_data: RecipeCreate, current_user: CurrentUser, db: DbSession) -> Dict[str, Any]:
    """Create a recipe owned by the caller"""
    recipe = await recipe_service.create_recipe(db, current_user, recipe_data)
    return serialize_recipe(recipe)


@router.put("/{recipe_id}")
async def update_recipe(
    recipe_id: str, recipe_data: RecipeUpdate, current_user: CurrentUser, db: DbSession
) -> Dict[str, Any]:
    """Update a recipe (owner or admin)"""
    recipe = await recipe_service.update_recipe(db, current_user, recipe_id, recipe_data)
    return serialize_recipe(recipe)


@router.delete("/{recipe_id}", response_model=MessageResponse)
async def delete_recipe(recipe_id: str, current_user: CurrentUser, db: DbSession):
    """Delete a recipe (owner or admin)"""
    await recipe_service.delete_recipe(db, current_user, recipe_id)
    return MessageResponse(msg="Recipe removed")


@router.post("/{recipe_id}/like")
async def like_recipe(recipe_id: str, current_user: CurrentUser, db: DbSession) -> Dict[str, Any]:
    recipe = await recipe_service.like_recipe(db, current_user, recipe_id)
    return serialize_recipe(recipe)


@router.delete("/{recipe_id}/like")
async def unlike_recipe(recipe_id: str, current_user: CurrentUser, db: DbSession) -> Dict[str, Any]:
    recipe = await recipe_service.unlike_recipe(db, current_user, recipe_id)
    return serialize_recipe(recipe)


@router.post("/{recipe_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(
    recipe_id: str, comment_data: CommentCreate, current_user: CurrentUser, db: DbSession
) -> Dict[str, Any]:
    recipe = await recipe_service.add_comment(db, current_user, recipe_id, comment_data)
    return serialize_recipe(recipe)


@router.delete("/{recipe_id}/comments/{comment_id}")
async def delete_comment(recipe_id: str, comment_id: str, current_user: CurrentUser, db: DbSession) -> Dict[str, Any]:
    """Delete a comment (author, recipe owner or admin)"""
    recipe = await recipe_service.delete_comment(db, current_user, recipe_id, comment_id)
    return serialize_recipe(recipe)
