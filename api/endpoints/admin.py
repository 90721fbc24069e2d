"""
Recipedium Admin Endpoints
Account management and platform analytics (admin role required)
"""

from fastapi import APIRouter, Query
from typing import Any, Dict
import math

from core.dependencies import AdminUser, DbSession, PaginationParams
from models.users import UserRole
from schemas.auth_schemas import UserOut
from services.admin_service import admin_service

router = APIRouter()


def _user_data(user) -> Dict[str, Any]:
    return UserOut.model_validate(user).model_dump(mode="json", by_alias=True)


@router.get("/users")
async def list_users(
    admin: AdminUser,
    db: DbSession,
    pagination: PaginationParams,
    search: str = Query("", max_length=100),
) -> Dict[str, Any]:
    """Page through accounts, optionally filtered by name or email"""
    users, total = await admin_service.list_users(db, pagination["page"], pagination["limit"], search)

    return {
        "success": True,
        "count": len(users),
        "total": total,
        "pagination": {
            "page": pagination["page"],
            "limit": pagination["limit"],
            "totalPages": math.ceil(total / pagination["limit"]),
        },
        "data": [_user_data(user) for user in users],
    }


@router.put("/users/{user_id}/promote")
async def promote_user(user_id: str, admin: AdminUser, db: DbSession) -> Dict[str, Any]:
    user = await admin_service.set_role(db, admin, user_id, UserRole.ADMIN)
    return {"success": True, "data": _user_data(user), "msg": f"{user.name} is now an admin"}


@router.put("/users/{user_id}/demote")
async def demote_user(user_id: str, admin: AdminUser, db: DbSession) -> Dict[str, Any]:
    user = await admin_service.set_role(db, admin, user_id, UserRole.USER)
    return {"success": True, "data": _user_data(user), "msg": f"{user.name} is no longer an admin"}


@router.put("/users/{user_id}/ban")
async def ban_user(user_id: str, admin: AdminUser, db: DbSession) -> Dict[str, Any]:
    user = await admin_service.ban_user(db, admin, user_id)
    return {"success": True, "data": _user_data(user), "msg": f"{user.name} has been banned"}


@router.get("/analytics")
async def get_analytics(admin: AdminUser, db: DbSession) -> Dict[str, Any]:
    """Totals, 30-day activity, 7-day daily series and popularity rankings"""
    return {"success": True, "data": await admin_service.get_analytics(db)}
