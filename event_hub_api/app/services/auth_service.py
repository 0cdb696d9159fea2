"""
Account authentication flows.

Covers sign-up with email verification, login, profile and password
changes, and the forgot/reset password cycle.  Verification and reset
tokens are signed tokens that are also stored on the user row; a token
is only accepted while it matches the stored value, so issuing a new
one invalidates the previous one.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from event_hub_api.app.core.config import settings
from event_hub_api.app.core.exceptions import AuthenticationError, BusinessRuleError, NotFoundError
from event_hub_api.app.core.security import (
    create_access_token,
    create_password_reset_token,
    create_verification_token,
    decode_email_token,
    hash_password,
    verify_password,
)
from event_hub_api.app.schemas.user import PasswordChange, ProfileUpdate, UserRegister
from .email_service import EmailService
from .registration import utcnow
from .user_service import UserService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_RESET_TOKEN = "Invalid or expired reset token"
RESET_REQUESTED = "If an account exists with this email, you will receive a password reset link shortly."


class AuthService:
    """Authentication workflows built on ``UserService``."""

    @classmethod
    async def register(cls, data: UserRegister) -> Dict[str, Any]:
        """Create an unverified account and queue its verification email."""
        user = await UserService.create_user(data.name, data.email, data.password, data.role)
        token = create_verification_token(user.id, user.email)
        await UserService.update_user(user.id, {"email_verification_token": token})
        await EmailService.send_verification_email(user.email, user.name, token)
        return {"user": user, "email_sent": True}

    @classmethod
    async def login(cls, email: str, password: str) -> Dict[str, Any]:
        """Check credentials and issue an access token.

        Unknown emails and wrong passwords produce the same message.
        """
        row = await UserService.find_by_email(email)
        if not row:
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not row["is_active"]:
            raise AuthenticationError("Account is deactivated. Please contact support.")
        if not row["is_email_verified"]:
            raise AuthenticationError("Please verify your email address before logging in.")
        if not verify_password(password, row["password"]):
            raise AuthenticationError(INVALID_CREDENTIALS)

        user = await UserService.update_user(row["id"], {"last_login": utcnow().isoformat()})
        logger.info("User %s logged in", row["id"])
        return {"user": user, "token": create_access_token(row["id"])}

    @classmethod
    async def me(cls, current_user: Dict[str, Any]):
        return await UserService.get_user(current_user["user_id"], with_events=True)

    @classmethod
    async def update_profile(cls, current_user: Dict[str, Any], data: ProfileUpdate):
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        return await UserService.update_user(current_user["user_id"], fields)

    @classmethod
    async def change_password(cls, current_user: Dict[str, Any], data: PasswordChange) -> None:
        row = await UserService.get_user_row(current_user["user_id"])
        if not verify_password(data.current_password, row["password"]):
            raise BusinessRuleError("Current password is incorrect")
        await UserService.update_user(row["id"], {"password": hash_password(data.new_password)})
        logger.info("User %s changed password", row["id"])

    @classmethod
    async def verify_email(cls, token: str) -> Dict[str, Any]:
        """Mark the account verified and log the user straight in."""
        claims = decode_email_token(token, "email-verification")
        if not claims:
            raise BusinessRuleError("Invalid or expired verification token")
        row = await UserService.find_by_email(str(claims.get("email", "")))
        if not row or row["id"] != claims.get("user_id") or row["email_verification_token"] != token:
            raise BusinessRuleError("Invalid verification token or user not found")
        if row["is_email_verified"]:
            raise BusinessRuleError("Email is already verified")

        user = await UserService.update_user(
            row["id"], {"is_email_verified": 1, "email_verification_token": None}
        )
        await EmailService.send_welcome_email(user.email, user.name)
        logger.info("User %s verified their email", user.id)
        return {"user": user, "token": create_access_token(user.id)}

    @classmethod
    async def resend_verification(cls, email: str) -> None:
        row = await UserService.find_by_email(email)
        if not row:
            raise NotFoundError("User")
        if row["is_email_verified"]:
            raise BusinessRuleError("Email is already verified")
        token = create_verification_token(row["id"], row["email"])
        await UserService.update_user(row["id"], {"email_verification_token": token})
        await EmailService.send_verification_email(row["email"], row["name"], token)

    @classmethod
    async def forgot_password(cls, email: str) -> str:
        """Start a password reset.

        Returns the same message whether or not the account exists, so
        the endpoint cannot be used to discover registered emails.
        """
        row = await UserService.find_by_email(email)
        if not row or not row["is_active"]:
            return RESET_REQUESTED
        token = create_password_reset_token(row["id"], row["email"])
        expires = utcnow() + timedelta(minutes=settings.password_reset_expire_minutes)
        await UserService.update_user(
            row["id"], {"password_reset_token": token, "password_reset_expires": expires.isoformat()}
        )
        await EmailService.send_password_reset_email(row["email"], row["name"], token)
        logger.info("Password reset requested for user %s", row["id"])
        return RESET_REQUESTED

    @classmethod
    async def _reset_target(cls, token: str):
        claims = decode_email_token(token, "password-reset")
        if not claims:
            raise BusinessRuleError(INVALID_RESET_TOKEN)
        row = await UserService.find_by_email(str(claims.get("email", "")))
        if not row or row["id"] != claims.get("user_id") or row["password_reset_token"] != token:
            raise BusinessRuleError(INVALID_RESET_TOKEN)
        expires: Optional[str] = row["password_reset_expires"]
        if not expires or datetime.fromisoformat(expires) <= utcnow():
            raise BusinessRuleError(INVALID_RESET_TOKEN)
        return row

    @classmethod
    async def reset_password(cls, token: str, new_password: str) -> None:
        row = await cls._reset_target(token)
        await UserService.update_user(
            row["id"],
            {
                "password": hash_password(new_password),
                "password_reset_token": None,
                "password_reset_expires": None,
            },
        )
        await EmailService.send_password_reset_confirmation(row["email"], row["name"])
        logger.info("User %s reset their password", row["id"])

    @classmethod
    async def verify_reset_token(cls, token: str) -> Dict[str, Any]:
        row = await cls._reset_target(token)
        return {"valid": True, "email": row["email"]}
