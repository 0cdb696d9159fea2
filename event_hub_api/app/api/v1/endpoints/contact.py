"""Contact form endpoint for API v1."""

from fastapi import APIRouter

from event_hub_api.app.schemas.common import ApiResponse
from event_hub_api.app.schemas.contact import ContactCreate
from event_hub_api.app.services.contact_service import ContactService


router = APIRouter()


@router.post("/", response_model=ApiResponse)
async def submit_contact_form(payload: ContactCreate) -> ApiResponse:
    await ContactService.submit(payload)
    return ApiResponse(message="Thank you for contacting us! We will get back to you soon.")
