"""
Recipedium Authentication Service
JWT issuing/verification, password hashing and the password reset flow
"""

import secrets
import hashlib
from datetime import timedelta
from typing import Optional, Dict, Any, Tuple
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from core.config import get_settings
from core.exceptions import AuthenticationError, AuthorizationError, ConflictError
from middleware.logging import log_business_event
from models.users import User, UserRole
from schemas.auth_schemas import UserCreate, UserLogin
from utils.date_utils import utcnow, ensure_utc

settings = get_settings()
logger = structlog.get_logger()


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class AuthService:
    def __init__(self):
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

        # JWT settings
        self.secret_key = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.access_token_expire_minutes = settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
        self.reset_token_expire_minutes = settings.PASSWORD_RESET_EXPIRE_MINUTES

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        return self.pwd_context.verify(plain_password, hashed_password)

    def get_password_hash(self, password: str) -> str:
        """Hash a password"""
        return self.pwd_context.hash(password)

    def create_access_token(
        self,
        user: User,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create JWT access token for a user"""
        now = utcnow()
        expire = now + (expires_delta or timedelta(minutes=self.access_token_expire_minutes))

        to_encode = {
            "sub": str(user.id),
            "role": user.role.value,
            "iat": now,
            "exp": expire,
            "type": "access",
        }

        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str, token_type: str = "access") -> Dict[str, Any]:
        """Verify and decode JWT token"""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.info("Token rejected", reason=str(e))
            raise AuthenticationError("Token is not valid")

        if payload.get("type") != token_type or not payload.get("sub"):
            raise AuthenticationError("Token is not valid")

        return payload

    async def get_user_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_current_user(self, token: str, db: AsyncSession) -> User:
        """Resolve a bearer token to its user"""
        payload = self.verify_token(token)
        user = await db.get(User, payload["sub"])
        if user is None:
            raise AuthenticationError("Token is not valid")
        return user

    async def register_user(self, db: AsyncSession, user_data: UserCreate) -> Tuple[User, str]:
        """Create an account with role user and return it with a fresh token"""
        if await self.get_user_by_email(db, user_data.email):
            raise ConflictError("User already exists")

        user = User(
            name=user_data.name,
            email=user_data.email,
            password_hash=self.get_password_hash(user_data.password),
            role=UserRole.USER,
            active=True,
        )
        db.add(user)

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("User already exists")

        log_business_event("user_registered", {"user_id": user.id})
        return user, self.create_access_token(user)

    async def authenticate_user(self, db: AsyncSession, login_data: UserLogin) -> Tuple[User, str]:
        """Check credentials and return the user with a fresh token"""
        user = await self.get_user_by_email(db, login_data.email)

        if not user or not self.verify_password(login_data.password, user.password_hash):
            logger.warning("Login failed", reason="invalid_credentials")
            raise AuthenticationError("Invalid credentials", status_code=400)

        if not user.active:
            logger.warning("Login failed", reason="account_disabled", user_id=user.id)
            raise AuthorizationError("User account is disabled")

        return user, self.create_access_token(user)

    async def request_password_reset(self, db: AsyncSession, email: str) -> Optional[str]:
        """
        Store a hashed single-use reset token for the account

        Returns the raw token, or None when no account matches. Callers must
        not reveal which case happened.
        """
        user = await self.get_user_by_email(db, email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return None

        token = secrets.token_hex(20)
        user.reset_password_token = hash_reset_token(token)
        user.reset_password_expires = utcnow() + timedelta(minutes=self.reset_token_expire_minutes)
        await db.commit()

        # No mail transport is configured; the link is only written to the log
        if settings.DEBUG or not settings.is_production:
            logger.info("Password reset link", user_id=user.id, reset_url=f"/reset-password/{token}")
        log_business_event("password_reset_requested", {"user_id": user.id})
        return token

    async def reset_password(self, db: AsyncSession, token: str, new_password: str) -> Tuple[User, str]:
        """Consume a reset token and set a new password"""
        result = await db.execute(
            select(User).where(User.reset_password_token == hash_reset_token(token))
        )
        user = result.scalar_one_or_none()

        expires = ensure_utc(user.reset_password_expires) if user else None
        if user is None or expires is None or expires <= utcnow():
            raise AuthenticationError("Invalid or expired token", status_code=400)

        user.password_hash = self.get_password_hash(new_password)
        user.reset_password_token = None
        user.reset_password_expires = None
        await db.commit()

        log_business_event("password_reset_completed", {"user_id": user.id})
        return user, self.create_access_token(user)


# Create singleton instance
auth_service = AuthService()
