"""
Recipedium User Management Endpoints
User profiles, password changes and account deactivation
"""

from fastapi import APIRouter
from typing import List

from core.dependencies import AdminUser, CurrentUser, DbSession
from schemas.auth_schemas import UserOut
from schemas.common import MessageResponse
from schemas.user_schemas import UserUpdate, PasswordChange
from services.user_service import user_service

router = APIRouter()


@router.get("", response_model=List[UserOut])
async def list_users(admin: AdminUser, db: DbSession):
    """List every account (admin only)"""
    users = await user_service.list_users(db)
    return [UserOut.model_validate(user) for user in users]


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: str, db: DbSession):
    """Get a user's public profile"""
    user = await user_service.get_user(db, user_id)
    return UserOut.model_validate(user)


@router.put("/{user_id}", response_model=UserOut)
async def update_user(user_id: str, user_data: UserUpdate, current_user: CurrentUser, db: DbSession):
    """Update a profile; the account owner or an admin only"""
    user = await user_service.update_profile(db, current_user, user_id, user_data)
    return UserOut.model_validate(user)


@router.put("/{user_id}/password", response_model=MessageResponse)
async def change_password(user_id: str, password_data: PasswordChange, current_user: CurrentUser, db: DbSession):
    """Change the caller's own password"""
    await user_service.change_password(db, current_user, user_id, password_data)
    return MessageResponse(msg="Password updated successfully")


@router.delete("/{user_id}", response_model=MessageResponse)
async def deactivate_user(user_id: str, current_user: CurrentUser, db: DbSession):
    """Deactivate an account; recipes and comments are kept"""
    await user_service.deactivate(db, current_user, user_id)
    return MessageResponse(msg="User account deactivated")
