"""
Recipedium Authentication Endpoints
Registration, login, current user and password reset
"""

from fastapi import APIRouter, Depends, status
import structlog

from core.dependencies import CurrentUser, DbSession, login_rate_limit, register_rate_limit
from middleware.logging import log_user_activity
from schemas.auth_schemas import (
    UserCreate, UserLogin, UserOut, AuthResponse, MeResponse,
    PasswordResetRequest, PasswordReset, ForgotPasswordResponse, ResetPasswordResponse
)
from services.auth_service import auth_service

logger = structlog.get_logger()
router = APIRouter()


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(register_rate_limit)],
)
async def register(user_data: UserCreate, db: DbSession):
    """
    Register a new user account

    Emails are unique (case-insensitive); new accounts get the user role.
    """
    user, token = await auth_service.register_user(db, user_data)
    return AuthResponse(token=token, user=UserOut.model_validate(user))


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(login_rate_limit)])
async def login(login_data: UserLogin, db: DbSession):
    """Authenticate with email and password and return an access token"""
    user, token = await auth_service.authenticate_user(db, login_data)
    log_user_activity("login", {"user_id": user.id})
    return AuthResponse(token=token, user=UserOut.model_validate(user))


@router.get("/me", response_model=MeResponse)
async def get_me(current_user: CurrentUser):
    """Get the authenticated user's profile"""
    return MeResponse(user=UserOut.model_validate(current_user))


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
async def forgot_password(request_data: PasswordResetRequest, db: DbSession):
    """
    Start the password reset flow

    Always succeeds so the response does not reveal whether the email exists.
    """
    await auth_service.request_password_reset(db, request_data.email)
    return ForgotPasswordResponse(message="If that email is registered, a reset link has been sent")


@router.post("/reset-password", response_model=ResetPasswordResponse)
async def reset_password(reset_data: PasswordReset, db: DbSession):
    """Set a new password using a reset token; returns a fresh access token"""
    _, token = await auth_service.reset_password(db, reset_data.token, reset_data.new_password)
    return ResetPasswordResponse(message="Password has been reset", token=token)
