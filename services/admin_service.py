"""
Recipedium Admin Service
User management and platform analytics for administrators
"""

from collections import Counter
from typing import Any, Dict, List, Tuple
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from core.exceptions import ValidationError
from middleware.logging import log_business_event
from models.recipe_models import Recipe, RecipeComment, RecipeLike
from models.users import User, UserRole
from services.recipe_query import likes_count_expression
from services.user_service import user_service
from utils.date_utils import days_ago, ensure_utc, last_n_dates, utcnow

logger = structlog.get_logger()

RECENT_DAYS = 30
SERIES_DAYS = 7
TOP_CATEGORIES = 5
POPULAR_RECIPES = 5


class AdminService:

    async def list_users(
        self,
        db: AsyncSession,
        page: int,
        limit: int,
        search: str = "",
    ) -> Tuple[List[User], int]:
        """Page through accounts, newest first, optionally matching name or email"""
        conditions = []
        term = (search or "").strip().lower()
        if term:
            conditions.append(or_(
                func.lower(User.name).contains(term, autoescape=True),
                func.lower(User.email).contains(term, autoescape=True),
            ))

        total = await db.scalar(select(func.count(User.id)).where(*conditions))
        result = await db.execute(
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc(), User.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def set_role(self, db: AsyncSession, admin: User, user_id: str, role: UserRole) -> User:
        """Promote or demote an account; admins cannot demote themselves"""
        user = await user_service.get_user(db, user_id)
        if user.id == admin.id and role != UserRole.ADMIN:
            raise ValidationError.for_field("userId", "You cannot remove your own admin role")

        user.role = role
        await db.commit()

        log_business_event("role_changed", {"user_id": user_id, "role": role.value, "by": admin.id})
        return user

    async def ban_user(self, db: AsyncSession, admin: User, user_id: str) -> User:
        """Deactivate an account on an admin's behalf"""
        user = await user_service.get_user(db, user_id)
        if user.id == admin.id:
            raise ValidationError.for_field("userId", "You cannot ban yourself")

        user.active = False
        await db.commit()

        log_business_event("user_banned", {"user_id": user_id, "by": admin.id})
        return user

    async def _count(self, db: AsyncSession, column, *conditions) -> int:
        return (await db.scalar(select(func.count(column)).where(*conditions))) or 0

    async def _daily_series(self, db: AsyncSession, created_column, days: int) -> List[Dict[str, Any]]:
        dates = last_n_dates(days)
        result = await db.execute(select(created_column).where(created_column >= days_ago(days)))
        per_day = Counter(ensure_utc(created).date() for created in result.scalars().all())
        return [{"date": day.isoformat(), "count": per_day.get(day, 0)} for day in dates]

    async def get_analytics(self, db: AsyncSession) -> Dict[str, Any]:
        """Platform totals, recent activity and popularity rankings"""
        recent_cutoff = days_ago(RECENT_DAYS)

        totals = {
            "users": await self._count(db, User.id),
            "activeUsers": await self._count(db, User.id, User.active.is_(True)),
            "recipes": await self._count(db, Recipe.id),
            "comments": await self._count(db, RecipeComment.id),
            "likes": await self._count(db, RecipeLike.id),
        }
        recent = {
            "users": await self._count(db, User.id, User.created_at >= recent_cutoff),
            "recipes": await self._count(db, Recipe.id, Recipe.created_at >= recent_cutoff),
        }

        category_rows = await db.execute(
            select(Recipe.category, func.count(Recipe.id).label("count"))
            .group_by(Recipe.category)
            .order_by(func.count(Recipe.id).desc(), Recipe.category)
            .limit(TOP_CATEGORIES)
        )
        top_categories = [{"category": category.value, "count": count} for category, count in category_rows.all()]

        likes_count = likes_count_expression()
        popular = await db.execute(
            select(Recipe).order_by(likes_count.desc(), Recipe.created_at.desc(), Recipe.id).limit(POPULAR_RECIPES)
        )
        popular_recipes = [
            {
                "id": recipe.id,
                "title": recipe.title,
                "user": {"id": recipe.owner.id, "name": recipe.owner.name},
                "likesCount": recipe.likes_count,
                "commentsCount": recipe.comments_count,
            }
            for recipe in popular.scalars().all()
        ]

        return {
            "totals": totals,
            "recent": {"days": RECENT_DAYS, **recent},
            "userSignups": await self._daily_series(db, User.created_at, SERIES_DAYS),
            "recipeUploads": await self._daily_series(db, Recipe.created_at, SERIES_DAYS),
            "topCategories": top_categories,
            "popularRecipes": popular_recipes,
            "generatedAt": utcnow().isoformat(),
        }


# Create singleton instance
admin_service = AdminService()
