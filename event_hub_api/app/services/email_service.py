"""
Outgoing email queue.

Messages are not rendered or delivered by the API process.  Each call
records one row in ``email_outbox`` with a ``kind`` and the values a
delivery worker needs to build the message (links, names, the contact
form text).  Delivery is outside the scope of this service.
"""

import logging
from typing import Any, Dict, Optional

from event_hub_api.app.core.config import settings
from event_hub_api.app.core.db import dump_json, get_connection

logger = logging.getLogger(__name__)


class EmailService:
    """Queue transactional emails."""

    @classmethod
    async def queue(
        cls,
        kind: str,
        recipient: str,
        subject: str,
        context: Optional[Dict[str, Any]] = None,
        reply_to: Optional[str] = None,
    ) -> int:
        """Store a message in the outbox and return its id."""
        conn = get_connection()
        try:
            cursor = conn.execute(
                "INSERT INTO email_outbox (kind, sender, recipient, reply_to, subject, context) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (kind, settings.email_from, recipient, reply_to, subject, dump_json(context or {})),
            )
            conn.commit()
            message_id = cursor.lastrowid
        finally:
            conn.close()
        logger.info("Queued %s email %s to %s", kind, message_id, recipient)
        return message_id

    @classmethod
    async def send_verification_email(cls, email: str, name: str, token: str) -> int:
        return await cls.queue(
            "email-verification",
            email,
            "Verify your email",
            {"name": name, "link": f"{settings.frontend_url}/verify-email?token={token}"},
        )

    @classmethod
    async def send_welcome_email(cls, email: str, name: str) -> int:
        return await cls.queue("welcome", email, f"Welcome to {settings.project_name}", {"name": name})

    @classmethod
    async def send_password_reset_email(cls, email: str, name: str, token: str) -> int:
        return await cls.queue(
            "password-reset",
            email,
            "Reset your password",
            {
                "name": name,
                "link": f"{settings.frontend_url}/reset-password?token={token}",
                "expires_minutes": settings.password_reset_expire_minutes,
            },
        )

    @classmethod
    async def send_password_reset_confirmation(cls, email: str, name: str) -> int:
        return await cls.queue("password-reset-confirmation", email, "Your password was changed", {"name": name})
