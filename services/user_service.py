"""
Recipedium User Service
Profile reads and updates, password changes and account deactivation
"""

from typing import List
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from core.exceptions import AuthenticationError, ConflictError, NotFoundError
from middleware.logging import log_business_event
from models.users import User
from schemas.user_schemas import UserUpdate, PasswordChange
from services.auth_service import auth_service
from services.permissions import Action, ensure_can_mutate

logger = structlog.get_logger()


class UserService:

    async def get_user(self, db: AsyncSession, user_id: str) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def list_users(self, db: AsyncSession) -> List[User]:
        result = await db.execute(select(User).order_by(User.created_at.desc(), User.id))
        return list(result.scalars().all())

    async def update_profile(self, db: AsyncSession, caller: User, user_id: str, data: UserUpdate) -> User:
        """Apply the supplied profile fields; only the account owner or an admin may do this"""
        user = await self.get_user(db, user_id)
        ensure_can_mutate(caller, user, Action.UPDATE, "Not authorized to update this profile")

        changes = data.model_dump(exclude_unset=True)

        if changes.get("email") and changes["email"] != user.email:
            existing = await auth_service.get_user_by_email(db, changes["email"])
            if existing is not None and existing.id != user.id:
                raise ConflictError("Email already in use")
            user.email = changes["email"]

        if changes.get("name"):
            user.name = changes["name"]
        if "bio" in changes and changes["bio"] is not None:
            user.bio = changes["bio"] or None
        if changes.get("profile_image"):
            user.profile_image = changes["profile_image"]
        if changes.get("password"):
            user.password_hash = auth_service.get_password_hash(changes["password"])

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("Email already in use")

        log_business_event("profile_updated", {"user_id": user_id, "fields": sorted(changes)})
        return user

    async def change_password(self, db: AsyncSession, caller: User, user_id: str, data: PasswordChange) -> None:
        """Change a password after checking the current one; never allowed on someone else's account"""
        user = await self.get_user(db, user_id)
        ensure_can_mutate(caller, user, Action.CHANGE_PASSWORD, "Not authorized to change this password")

        if not auth_service.verify_password(data.current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        user.password_hash = auth_service.get_password_hash(data.new_password)
        await db.commit()

        log_business_event("password_changed", {"user_id": user_id})

    async def deactivate(self, db: AsyncSession, caller: User, user_id: str) -> User:
        """Soft-delete: the account keeps its recipes but can no longer authenticate"""
        user = await self.get_user(db, user_id)
        ensure_can_mutate(caller, user, Action.DELETE, "Not authorized to delete this account")

        user.active = False
        await db.commit()

        log_business_event("account_deactivated", {"user_id": user_id, "by": caller.id})
        return user


# Create singleton instance
user_service = UserService()
