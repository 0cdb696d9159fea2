"""
Authentication endpoints for API v1.

Sign-up, login, email verification and password management.  Access
tokens are stateless, so logout only acknowledges the request; the
client discards its token.
"""

from fastapi import APIRouter, Depends, status

from event_hub_api.app.core.security import get_current_user
from event_hub_api.app.schemas.common import ApiResponse
from event_hub_api.app.schemas.user import (
    EmailRequest,
    PasswordChange,
    PasswordReset,
    ProfileUpdate,
    TokenRequest,
    UserLogin,
    UserRegister,
)
from event_hub_api.app.services.auth_service import AuthService


router = APIRouter()


@router.post("/register", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: UserRegister) -> ApiResponse:
    """Create an account.  The user must verify their email before logging in."""
    data = await AuthService.register(payload)
    return ApiResponse(
        message="User registered successfully. Please check your email to verify your account.",
        data=data,
    )


@router.post("/login", response_model=ApiResponse)
async def login(payload: UserLogin) -> ApiResponse:
    data = await AuthService.login(payload.email, payload.password)
    return ApiResponse(message="Login successful", data=data)


@router.get("/me", response_model=ApiResponse)
async def me(current_user: dict = Depends(get_current_user)) -> ApiResponse:
    return ApiResponse(data={"user": await AuthService.me(current_user)})


@router.put("/profile", response_model=ApiResponse)
async def update_profile(payload: ProfileUpdate, current_user: dict = Depends(get_current_user)) -> ApiResponse:
    user = await AuthService.update_profile(current_user, payload)
    return ApiResponse(message="Profile updated successfully", data={"user": user})


@router.post("/change-password", response_model=ApiResponse)
async def change_password(payload: PasswordChange, current_user: dict = Depends(get_current_user)) -> ApiResponse:
    await AuthService.change_password(current_user, payload)
    return ApiResponse(message="Password changed successfully")


@router.post("/logout", response_model=ApiResponse)
async def logout(current_user: dict = Depends(get_current_user)) -> ApiResponse:
    return ApiResponse(message="Logged out successfully")


@router.post("/verify-email", response_model=ApiResponse)
async def verify_email(payload: TokenRequest) -> ApiResponse:
    data = await AuthService.verify_email(payload.token)
    return ApiResponse(message="Email verified successfully!", data=data)


@router.post("/resend-verification", response_model=ApiResponse)
async def resend_verification(payload: EmailRequest) -> ApiResponse:
    await AuthService.resend_verification(payload.email)
    return ApiResponse(message="Verification email sent successfully. Please check your inbox.")


@router.post("/forgot-password", response_model=ApiResponse)
async def forgot_password(payload: EmailRequest) -> ApiResponse:
    return ApiResponse(message=await AuthService.forgot_password(payload.email))


@router.post("/reset-password", response_model=ApiResponse)
async def reset_password(payload: PasswordReset) -> ApiResponse:
    await AuthService.reset_password(payload.token, payload.new_password)
    return ApiResponse(message="Password reset successfully. You can now log in with your new password.")


@router.post("/verify-reset-token", response_model=ApiResponse)
async def verify_reset_token(payload: TokenRequest) -> ApiResponse:
    return ApiResponse(message="Token is valid", data=await AuthService.verify_reset_token(payload.token))
