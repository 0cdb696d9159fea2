"""
Event registration workflow.

Each operation follows the same sequence: load the event, apply a rule
from ``registration``, save the whole event row, then update the
user's ``registered_events`` mirror.  The two writes are independent.
If the mirror write fails the event change stays committed; the
failure is logged and reported to the caller as a server error.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from event_hub_api.app.core.exceptions import BusinessRuleError, PermissionDeniedError
from event_hub_api.app.schemas.event import Participant, RegistrationForm
from . import registration as rules
from .event_service import EventService
from .user_service import UserService

logger = logging.getLogger(__name__)


async def _mirror(write: Callable[..., Awaitable[Any]], user_id: int, event_id: int, *args: Any) -> None:
    try:
        await write(user_id, event_id, *args)
    except Exception:
        logger.exception(
            "Event %s was saved but updating registered events of user %s failed",
            event_id,
            user_id,
        )
        raise


class RegistrationService:
    """Registration, unregistration and roster management for events."""

    @classmethod
    async def register(
        cls,
        event_id: int,
        current_user: Dict[str, Any],
        form: Optional[RegistrationForm] = None,
    ) -> Dict[str, Any]:
        """Register the caller for an event after the admission check."""
        user_id = current_user["user_id"]
        event = await EventService.load_event(event_id)
        admission = rules.can_register(event, user_id)
        if not admission.allowed:
            raise BusinessRuleError(admission.reason)

        participant = rules.register_user(event, user_id, form)
        await EventService.save_event(event)
        logger.info("User %s registered for event %s", user_id, event_id)
        await _mirror(
            UserService.push_registered_event, user_id, event.id, "registered", participant.registered_at
        )
        return {"event_id": event.id, "event_title": event.title}

    @classmethod
    async def unregister(cls, event_id: int, current_user: Dict[str, Any]) -> None:
        """Remove the caller from an event's roster."""
        user_id = current_user["user_id"]
        event = await EventService.load_event(event_id)
        rules.unregister_user(event, user_id)
        await EventService.save_event(event)
        logger.info("User %s unregistered from event %s", user_id, event_id)
        await _mirror(UserService.pull_registered_event, user_id, event.id)

    @classmethod
    async def admin_register(cls, event_id: int, user_id: Optional[int], current_user: Dict[str, Any]) -> Dict[str, Any]:
        """Register another user on their behalf.

        The registration deadline does not apply here, but a user can
        still only be registered once.  The user's own list records the
        registration as already confirmed.
        """
        if not user_id:
            raise BusinessRuleError("User ID is required")
        event = await EventService.load_event(event_id)
        await UserService.get_user_row(user_id)
        if rules.is_registered(event, user_id):
            raise BusinessRuleError("User is already registered for this event")

        participant = rules.register_user(event, user_id)
        await EventService.save_event(event)
        logger.info("Admin %s registered user %s for event %s", current_user["user_id"], user_id, event_id)
        await _mirror(
            UserService.push_registered_event, user_id, event.id, "confirmed", participant.registered_at
        )
        return {"event_id": event.id, "user_id": user_id}

    @classmethod
    async def update_participant_status(
        cls,
        event_id: int,
        participant_id: str,
        status: Optional[str],
        current_user: Dict[str, Any],
    ) -> Participant:
        """Overwrite a participant's status.  Organizer only."""
        status = rules.validate_status(status)
        event = await EventService.load_event(event_id)
        if not rules.is_organizer(event, current_user):
            raise PermissionDeniedError("Access denied. Only event organizer can update participant status.")

        participant = rules.set_participant_status(event, participant_id, status)
        await EventService.save_event(event)
        logger.info("Participant %s of event %s set to %s", participant_id, event_id, status)
        await _mirror(UserService.set_registered_event_status, participant.user_id, event.id, status)
        return participant

    @classmethod
    async def list_participants(cls, event_id: int, current_user: Dict[str, Any]) -> Dict[str, Any]:
        """Return the expanded roster for the organizer or an administrator."""
        event = await EventService.load_event(event_id)
        if not rules.can_view_roster(event, current_user):
            raise PermissionDeniedError("Access denied. Only event organizer can view participants.")
        presented = await EventService.present(event, current_user)
        return {
            "participants": presented["participants"],
            "total_participants": len(event.participants),
            "max_participants": event.registration.max_participants,
        }
