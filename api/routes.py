"""
Recipedium API Routes
Mounts every endpoint router under the /api prefix
"""

from fastapi import APIRouter

from api.endpoints import admin, auth, health, recipes, users

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(recipes.router, prefix="/recipes", tags=["recipes"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
