"""
Event endpoints for API v1.

CRUD for events plus the registration routes.  Handlers stay thin:
they parse identifiers, call ``EventService`` or
``RegistrationService`` and wrap the result in ``ApiResponse``.  Errors
raised by services are turned into responses by the handlers in
``main``.

Routes under ``/my/...`` are declared before ``/{event_id}`` so they
are not captured by the identifier route.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from event_hub_api.app.core.db import parse_id
from event_hub_api.app.core.security import ADMIN_ROLE, get_current_user, get_optional_user, require_roles
from event_hub_api.app.schemas.common import ApiResponse
from event_hub_api.app.schemas.event import (
    AdminRegistration,
    EventCreate,
    EventUpdate,
    ParticipantStatusUpdate,
    RegistrationForm,
)
from event_hub_api.app.services.event_service import EventService
from event_hub_api.app.services.registration_service import RegistrationService
from event_hub_api.app.services.user_service import UserService


router = APIRouter()


@router.get("/", response_model=ApiResponse)
async def list_events(viewer: Optional[dict] = Depends(get_optional_user)) -> ApiResponse:
    """List published events, newest first.

    Participant lists are only included for events the caller organizes
    (or for administrators); everyone else sees ``participant_count``.
    """
    events = await EventService.list_events(viewer)
    return ApiResponse(data={"events": events, "total": len(events)})


@router.post("/", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_event(payload: EventCreate, current_user: dict = Depends(get_current_user)) -> ApiResponse:
    """Create an event organized by the caller."""
    event = await EventService.create_event(payload, current_user)
    return ApiResponse(
        message="Event created successfully",
        data={"event": await EventService.present(event, current_user)},
    )


@router.get("/my/hosted", response_model=ApiResponse)
async def hosted_events(current_user: dict = Depends(get_current_user)) -> ApiResponse:
    return ApiResponse(data={"events": await EventService.list_hosted(current_user)})


@router.get("/my/registered", response_model=ApiResponse)
async def registered_events(current_user: dict = Depends(get_current_user)) -> ApiResponse:
    entries = await UserService.list_registered_events(current_user["user_id"])
    return ApiResponse(data={"registered_events": entries})


@router.get("/{event_id}", response_model=ApiResponse)
async def get_event(event_id: str, viewer: Optional[dict] = Depends(get_optional_user)) -> ApiResponse:
    """Return one event and count the view.

    Works without authentication.  ``is_user_registered`` tells an
    authenticated caller whether they are on the roster.
    """
    return ApiResponse(data=await EventService.get_event(parse_id(event_id, "Event"), viewer))


@router.put("/{event_id}", response_model=ApiResponse)
async def update_event(
    event_id: str,
    updates: EventUpdate,
    current_user: dict = Depends(get_current_user),
) -> ApiResponse:
    """Partially update an event.  Only the organizer may do this."""
    event = await EventService.update_event(parse_id(event_id, "Event"), updates, current_user)
    return ApiResponse(
        message="Event updated successfully",
        data={"event": await EventService.present(event, current_user)},
    )


@router.delete("/{event_id}", response_model=ApiResponse)
async def delete_event(event_id: str, current_user: dict = Depends(get_current_user)) -> ApiResponse:
    await EventService.delete_event(parse_id(event_id, "Event"), current_user)
    return ApiResponse(message="Event deleted successfully")


@router.post("/{event_id}/register", response_model=ApiResponse)
async def register_for_event(
    event_id: str,
    form: Optional[RegistrationForm] = None,
    current_user: dict = Depends(get_current_user),
) -> ApiResponse:
    """Register the caller.  The request body with contact/team details is optional."""
    data = await RegistrationService.register(parse_id(event_id, "Event"), current_user, form)
    return ApiResponse(message="Successfully registered for the event", data=data)


@router.delete("/{event_id}/register", response_model=ApiResponse)
async def unregister_from_event(event_id: str, current_user: dict = Depends(get_current_user)) -> ApiResponse:
    await RegistrationService.unregister(parse_id(event_id, "Event"), current_user)
    return ApiResponse(message="Successfully unregistered from the event")


@router.post("/{event_id}/admin-register", response_model=ApiResponse)
async def admin_register(
    event_id: str,
    payload: Optional[AdminRegistration] = None,
    current_user: dict = Depends(require_roles(ADMIN_ROLE)),
) -> ApiResponse:
    """Register any user for an event.  Administrators only; ignores the deadline."""
    user_id = payload.user_id if payload else None
    data = await RegistrationService.admin_register(parse_id(event_id, "Event"), user_id, current_user)
    return ApiResponse(message="User registered for event successfully", data=data)


@router.put("/{event_id}/participants/{participant_id}/status", response_model=ApiResponse)
async def update_participant_status(
    event_id: str,
    participant_id: str,
    payload: Optional[ParticipantStatusUpdate] = None,
    current_user: dict = Depends(get_current_user),
) -> ApiResponse:
    participant = await RegistrationService.update_participant_status(
        parse_id(event_id, "Event"),
        participant_id,
        payload.status if payload else None,
        current_user,
    )
    return ApiResponse(
        message="Participant status updated successfully",
        data={"participant": participant.model_dump(mode="json")},
    )


@router.get("/{event_id}/participants", response_model=ApiResponse)
async def list_participants(event_id: str, current_user: dict = Depends(get_current_user)) -> ApiResponse:
    """Full roster with user profiles.  Organizer or administrator only."""
    data = await RegistrationService.list_participants(parse_id(event_id, "Event"), current_user)
    return ApiResponse(data=data)


@router.get("/{event_id}/analytics", response_model=ApiResponse)
async def event_analytics(event_id: str, current_user: dict = Depends(get_current_user)) -> ApiResponse:
    analytics = await EventService.analytics(parse_id(event_id, "Event"), current_user)
    return ApiResponse(data={"analytics": analytics})
