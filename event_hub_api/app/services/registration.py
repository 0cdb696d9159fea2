"""
Registration rules for events.

Everything in this module operates on an in-memory ``Event`` and never
touches the database.  ``RegistrationService`` loads an event, applies
one of these functions and saves the result, then updates the user's
own registration list as a separate write.

Rules implemented here:

* admission: registration closes at the deadline; the same user may
  not appear twice in the roster; there is no capacity limit even when
  ``max_participants`` is set;
* registering appends a participant and bumps the participant counter
  without re-checking admission (callers check first);
* unregistering removes every entry of the user and decrements the
  counter, never below zero;
* participant status is a flat overwrite between the four allowed
  values;
* the roster is visible only to the organizer and administrators.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from event_hub_api.app.core.exceptions import BusinessRuleError, NotFoundError
from event_hub_api.app.core.security import is_admin
from event_hub_api.app.schemas.event import (
    PARTICIPANT_STATUSES,
    Event,
    Participant,
    RegistrationForm,
)

DEADLINE_PASSED = "Registration deadline has passed"
ALREADY_REGISTERED = "Already registered"
NOT_REGISTERED = "You are not registered for this event"
INVALID_STATUS = "Invalid status. Must be one of: " + ", ".join(PARTICIPANT_STATUSES)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AdmissionResult:
    allowed: bool
    reason: Optional[str] = None


def is_registered(event: Event, user_id: int) -> bool:
    return any(p.user_id == user_id for p in event.participants)


def registration_open(event: Event, now: Optional[datetime] = None) -> bool:
    return (now or utcnow()) < event.registration.deadline


def can_register(event: Event, user_id: int, now: Optional[datetime] = None) -> AdmissionResult:
    """Decide whether ``user_id`` may join ``event`` at ``now``.

    The first failing rule determines the reason.  Pure read.
    """
    now = now or utcnow()
    if not registration_open(event, now):
        return AdmissionResult(False, DEADLINE_PASSED)
    if is_registered(event, user_id):
        return AdmissionResult(False, ALREADY_REGISTERED)
    return AdmissionResult(True)


def register_user(
    event: Event,
    user_id: int,
    form: Optional[RegistrationForm] = None,
    now: Optional[datetime] = None,
) -> Participant:
    """Append a new participant to ``event`` and return it.

    Admission is not re-validated here.
    """
    form = form or RegistrationForm()
    participant = Participant(
        id=uuid.uuid4().hex,
        user_id=user_id,
        registered_at=now or utcnow(),
        status="registered",
        **form.model_dump(),
    )
    event.participants.append(participant)
    event.registration.current_participants += 1
    return participant


def unregister_user(event: Event, user_id: int) -> int:
    """Remove ``user_id`` from the roster and return how many entries went.

    Raises ``BusinessRuleError`` when the user is not registered, in
    which case the event is left untouched.
    """
    if not is_registered(event, user_id):
        raise BusinessRuleError(NOT_REGISTERED)
    before = len(event.participants)
    event.participants = [p for p in event.participants if p.user_id != user_id]
    event.registration.current_participants = max(0, event.registration.current_participants - 1)
    return before - len(event.participants)


def validate_status(status: Optional[str]) -> str:
    if status not in PARTICIPANT_STATUSES:
        raise BusinessRuleError(INVALID_STATUS)
    return status


def find_participant(event: Event, participant_id: str) -> Participant:
    for participant in event.participants:
        if participant.id == participant_id:
            return participant
    raise NotFoundError("Participant")


def set_participant_status(event: Event, participant_id: str, status: Optional[str]) -> Participant:
    """Overwrite a participant's status.

    Any status may move to any other status.  An invalid value is
    rejected before the roster is touched.
    """
    status = validate_status(status)
    participant = find_participant(event, participant_id)
    participant.status = status
    return participant


def is_organizer(event: Event, viewer: Optional[Mapping[str, Any]]) -> bool:
    return bool(viewer) and viewer.get("user_id") == event.organizer.user_id


def can_view_roster(event: Event, viewer: Optional[Mapping[str, Any]]) -> bool:
    return is_organizer(event, viewer) or is_admin(viewer)


def present_participant(participant: Participant, profiles: Mapping[int, Dict[str, Any]]) -> Dict[str, Any]:
    data = participant.model_dump(mode="json")
    data["user"] = profiles.get(participant.user_id, {"id": participant.user_id})
    return data


def present_event(
    event: Event,
    viewer: Optional[Mapping[str, Any]],
    profiles: Optional[Mapping[int, Dict[str, Any]]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Serialize ``event`` for ``viewer``.

    The organizer and administrators get the full roster with each
    participant's user profile (from ``profiles``, keyed by user id)
    expanded under ``user``.  Everyone else gets ``participant_count``
    instead, and the ``participants`` key is absent.

    Every viewer sees ``registration_status``, "open" until the deadline
    and "closed" from then on.
    """
    data = event.model_dump(mode="json", exclude={"participants"})
    data["registration_status"] = "open" if registration_open(event, now) else "closed"
    if can_view_roster(event, viewer):
        profiles = profiles or {}
        data["participants"] = [present_participant(p, profiles) for p in event.participants]
    else:
        data["participant_count"] = len(event.participants)
    return data
