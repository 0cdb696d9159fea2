"""Contact form submissions."""

import logging

from event_hub_api.app.core.config import settings
from event_hub_api.app.schemas.contact import ContactCreate
from .email_service import EmailService

logger = logging.getLogger(__name__)


class ContactService:
    @classmethod
    async def submit(cls, data: ContactCreate) -> None:
        """Queue the message for the support inbox and, if asked, a copy for the sender."""
        context = data.model_dump(exclude={"send_copy"})
        subject = f"Contact Form: {data.related_to} - {data.topic or 'No Topic'}"
        await EmailService.queue("contact", settings.contact_email, subject, context, reply_to=data.email)
        if data.send_copy:
            await EmailService.queue("contact-copy", data.email, "We received your message", context)
        logger.info("Contact form submitted by %s (%s)", data.email, data.related_to)
