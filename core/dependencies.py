"""
Recipedium Core Dependencies
FastAPI dependencies for authentication, authorization, and common functionality
"""

from fastapi import Depends, Header, Query, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, Annotated, Iterable
import structlog

from core.config import settings
from core.database import get_db
from core.exceptions import (
    AuthenticationError, AuthorizationError, RateLimitExceededError, ValidationError
)
from models.users import User, UserRole
from schemas.common import MAX_INT
from services.auth_service import auth_service
from utils.rate_limiter import rate_limiter
from utils.request_utils import get_client_ip, extract_request_context

logger = structlog.get_logger()

# Security scheme
security = HTTPBearer(auto_error=False)


def _extract_token(
    credentials: Optional[HTTPAuthorizationCredentials],
    x_auth_token: Optional[str],
) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    if x_auth_token:
        return x_auth_token.strip() or None
    return None


async def get_current_user(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    x_auth_token: Annotated[Optional[str], Header(alias="x-auth-token")] = None,
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get current authenticated user from the bearer token

    Raises:
        AuthenticationError: If the token is missing, invalid, or its user is gone
        AuthorizationError: If the account has been deactivated
    """
    token = _extract_token(credentials, x_auth_token)
    if not token:
        raise AuthenticationError("No token, authorization denied")

    try:
        user = await auth_service.get_current_user(token, db)
    except AuthenticationError as e:
        logger.warning("Authentication failed", ip=get_client_ip(request), error=e.message)
        raise

    if not user.active:
        raise AuthorizationError("User account is disabled")

    request.state.user = user
    structlog.contextvars.bind_contextvars(user_id=user.id)
    logger.debug("User authenticated", **extract_request_context(request))

    return user


def check_roles(user: Optional[User], roles: Iterable[str]) -> User:
    """
    Role gate shared by authorize(); raises unless user holds one of roles
    """
    if user is None:
        raise AuthenticationError("Not authorized")

    role = user.role.value if isinstance(user.role, UserRole) else str(user.role)
    if role not in set(roles):
        raise AuthorizationError(f"User role {role} is not authorized to access this route")

    return user


def authorize(*roles: str):
    """
    Dependency factory for role-restricted endpoints

    Args:
        roles: Role names allowed through (e.g. "admin")
    """
    def role_dependency(current_user: User = Depends(get_current_user)) -> User:
        return check_roles(current_user, roles)

    return role_dependency


require_admin = authorize(UserRole.ADMIN.value)


def rate_limit(key_prefix: str, max_attempts: int, window_minutes: int):
    """
    Rate limiting dependency factory keyed by client IP

    Args:
        key_prefix: Limit bucket name (e.g. "login")
        max_attempts: Maximum attempts allowed
        window_minutes: Time window in minutes
    """
    async def rate_limit_dependency(request: Request):
        if not settings.RATE_LIMIT_ENABLED:
            return

        ip_address = get_client_ip(request)
        if not await rate_limiter.check_rate_limit(f"{key_prefix}:{ip_address}", max_attempts, window_minutes):
            logger.warning("Rate limit exceeded", bucket=key_prefix, ip=ip_address)
            raise RateLimitExceededError()

    return rate_limit_dependency


login_rate_limit = rate_limit("login", settings.LOGIN_MAX_ATTEMPTS, settings.LOGIN_WINDOW_MINUTES)
register_rate_limit = rate_limit("register", settings.REGISTER_MAX_ATTEMPTS, settings.REGISTER_WINDOW_MINUTES)


async def get_pagination_params(
    page: int = Query(1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE),
) -> dict:
    """
    Get pagination parameters with validation

    Returns:
        Dictionary with offset, limit, page
    """
    if page < 1:
        raise ValidationError.for_field("page", "Page must be greater than 0")

    if page > MAX_INT:
        raise ValidationError.for_field("page", f"Page cannot exceed {MAX_INT}")

    if limit < 1:
        raise ValidationError.for_field("limit", "Limit must be greater than 0")

    if limit > settings.MAX_PAGE_SIZE:
        raise ValidationError.for_field("limit", f"Limit cannot exceed {settings.MAX_PAGE_SIZE}")

    return {
        "offset": (page - 1) * limit,
        "limit": limit,
        "page": page
    }


# Annotated shortcuts used by the endpoint signatures
DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_admin)]
PaginationParams = Annotated[dict, Depends(get_pagination_params)]
