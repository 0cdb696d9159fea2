"""
Security helpers for password hashing and token authentication.

Tokens are compact JWTs (HS256) built from base64url-encoded JSON with
an HMAC-SHA256 signature.  Three kinds are issued:

* access tokens, signed with ``settings.secret_key`` and carrying the
  user id in ``sub``;
* email verification tokens and password reset tokens, signed with
  ``settings.email_verification_secret`` and carrying ``user_id``,
  ``email`` and ``type``.

Passwords are hashed with PBKDF2-HMAC-SHA256 and a random salt.

The FastAPI dependencies at the bottom of the module resolve the
caller's identity.  Downstream code only ever sees the ``current_user``
dictionary (``user_id``, ``role``, ``name``, ``email``) and trusts it.
"""

import base64
import hashlib
import hmac
import json
import os
import time
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings

ADMIN_ROLE = "admin"

_PBKDF2_ITERATIONS = 100_000


def _b64_url_encode(data: bytes) -> str:
    """Base64-url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64-url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def encode_token(claims: Dict[str, Any], secret: str, expires_in: int) -> str:
    """Sign ``claims`` into a token that expires ``expires_in`` seconds from now.

    The token has the form ``header.payload.signature`` where each part
    is base64url encoded.  An ``exp`` claim (UNIX timestamp) is added to
    a copy of ``claims``.
    """
    to_encode = dict(claims)
    to_encode["exp"] = int(time.time()) + expires_in
    header = {"alg": settings.algorithm, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, secret))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_token(token: str, secret: str) -> Optional[Dict[str, Any]]:
    """Verify a token's signature and expiry and return its claims.

    Returns ``None`` for any malformed, tampered or expired token; the
    caller decides how to report that.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    try:
        actual_sig = _b64_url_decode(signature_b64)
        if not hmac.compare_digest(_sign(signing_input, secret), actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        # binascii.Error and json.JSONDecodeError are both ValueErrors
        return None
    if not isinstance(data, dict):
        return None
    if data.get("exp") is None or int(data["exp"]) < int(time.time()):
        return None
    return data


def create_access_token(user_id: int, expires_in: Optional[int] = None) -> str:
    """Issue a login token for ``user_id``."""
    lifetime = expires_in or settings.access_token_expire_minutes * 60
    return encode_token({"sub": str(user_id)}, settings.secret_key, lifetime)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    return decode_token(token, settings.secret_key)


def create_verification_token(user_id: int, email: str) -> str:
    """Issue an email verification token."""
    return encode_token(
        {"user_id": user_id, "email": email, "type": "email-verification"},
        settings.email_verification_secret,
        settings.verification_token_expire_hours * 3600,
    )


def create_password_reset_token(user_id: int, email: str) -> str:
    """Issue a password reset token."""
    return encode_token(
        {"user_id": user_id, "email": email, "type": "password-reset"},
        settings.email_verification_secret,
        settings.password_reset_expire_minutes * 60,
    )


def decode_email_token(token: str, expected_type: str) -> Optional[Dict[str, Any]]:
    """Decode a verification/reset token, rejecting the wrong ``type``."""
    data = decode_token(token, settings.email_verification_secret)
    if not data or data.get("type") != expected_type:
        return None
    return data


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2-HMAC with SHA-256.

    A 16-byte random salt is generated for each password.  The result
    is ``<salt hex>$<hash hex>``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a stored ``salt$hash`` string."""
    if not hashed_password or "$" not in hashed_password:
        return False
    salt_hex, hash_hex = hashed_password.split("$", 1)
    try:
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, _PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve_user(token: str) -> Dict[str, Any]:
    """Map an access token to the ``current_user`` dictionary.

    Raises HTTP 401 if the token is invalid, the user no longer exists
    or the account has been deactivated.
    """
    payload = decode_access_token(token)
    if not payload or not str(payload.get("sub", "")).isdigit():
        raise _unauthorized("Invalid or expired token")

    from event_hub_api.app.core.db import get_connection
    conn = get_connection()
    try:
        row = conn.execute(
            "SELECT id, name, email, role, is_active FROM users WHERE id = ?",
            (int(payload["sub"]),),
        ).fetchone()
    finally:
        conn.close()
    if not row:
        raise _unauthorized("User no longer exists")
    if not row["is_active"]:
        raise _unauthorized("Account is deactivated. Please contact support.")
    return {
        "user_id": row["id"],
        "name": row["name"],
        "email": row["email"],
        "role": row["role"],
    }


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Dict[str, Any]:
    """Dependency returning the authenticated caller or raising HTTP 401."""
    if credentials is None:
        raise _unauthorized("Not authenticated")
    return _resolve_user(credentials.credentials)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Dict[str, Any]]:
    """Dependency for public routes that personalise output when logged in.

    A missing header yields ``None``; a present but invalid token is
    still rejected so that clients notice stale credentials.
    """
    if credentials is None:
        return None
    return _resolve_user(credentials.credentials)


def is_admin(current_user: Optional[Dict[str, Any]]) -> bool:
    return bool(current_user) and current_user.get("role") == ADMIN_ROLE


def require_roles(*roles: str) -> Callable[[Dict[str, Any]], Dict[str, Any]]:
    """Dependency factory to enforce that the current user has one of ``roles``.

    Use in endpoints via ``Depends(require_roles("admin"))``.  Callers
    without a matching role receive HTTP 403.
    """

    def _role_dependency(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if current_user.get("role") not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. Insufficient permissions.",
            )
        return current_user

    return _role_dependency
