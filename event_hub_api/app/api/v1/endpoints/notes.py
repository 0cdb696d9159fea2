"""
Note endpoints for API v1.

Listing and reading are public; an authenticated caller additionally
gets ``is_saved`` and ``user_rating`` on each note.  Files are not
uploaded through the API: a note references a file URL supplied by the
client.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from event_hub_api.app.core.db import parse_id
from event_hub_api.app.core.security import get_current_user, get_optional_user
from event_hub_api.app.schemas.common import ApiResponse
from event_hub_api.app.schemas.note import NoteCreate, NoteRating, NoteUpdate
from event_hub_api.app.services.note_service import NoteService


router = APIRouter()


@router.get("/", response_model=ApiResponse)
async def list_notes(viewer: Optional[dict] = Depends(get_optional_user)) -> ApiResponse:
    notes = await NoteService.list_notes(viewer)
    return ApiResponse(data={"notes": notes, "total": len(notes)})


@router.post("/", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_note(payload: NoteCreate, current_user: dict = Depends(get_current_user)) -> ApiResponse:
    note = await NoteService.create_note(payload, current_user)
    return ApiResponse(message="Note uploaded successfully", data={"note": note})


@router.get("/my/saved", response_model=ApiResponse)
async def saved_notes(current_user: dict = Depends(get_current_user)) -> ApiResponse:
    return ApiResponse(data={"notes": await NoteService.list_saved(current_user)})


@router.get("/my/uploaded", response_model=ApiResponse)
async def uploaded_notes(current_user: dict = Depends(get_current_user)) -> ApiResponse:
    return ApiResponse(data={"notes": await NoteService.list_uploaded(current_user)})


@router.get("/{note_id}", response_model=ApiResponse)
async def get_note(note_id: str, viewer: Optional[dict] = Depends(get_optional_user)) -> ApiResponse:
    note = await NoteService.get_note(parse_id(note_id, "Note"), viewer)
    return ApiResponse(data={"note": note})


@router.put("/{note_id}", response_model=ApiResponse)
async def update_note(
    note_id: str,
    updates: NoteUpdate,
    current_user: dict = Depends(get_current_user),
) -> ApiResponse:
    note = await NoteService.update_note(parse_id(note_id, "Note"), updates, current_user)
    return ApiResponse(message="Note updated successfully", data={"note": note})


@router.delete("/{note_id}", response_model=ApiResponse)
async def delete_note(note_id: str, current_user: dict = Depends(get_current_user)) -> ApiResponse:
    await NoteService.delete_note(parse_id(note_id, "Note"), current_user)
    return ApiResponse(message="Note deleted successfully")


@router.post("/{note_id}/download", response_model=ApiResponse)
async def download_note(note_id: str) -> ApiResponse:
    """Count a download and return the file location."""
    return ApiResponse(data=await NoteService.download(parse_id(note_id, "Note")))


@router.post("/{note_id}/save", response_model=ApiResponse)
async def save_note(note_id: str, current_user: dict = Depends(get_current_user)) -> ApiResponse:
    await NoteService.save_note(parse_id(note_id, "Note"), current_user)
    return ApiResponse(message="Note saved successfully")


@router.delete("/{note_id}/save", response_model=ApiResponse)
async def unsave_note(note_id: str, current_user: dict = Depends(get_current_user)) -> ApiResponse:
    await NoteService.unsave_note(parse_id(note_id, "Note"), current_user)
    return ApiResponse(message="Note removed from saved")


@router.post("/{note_id}/rate", response_model=ApiResponse)
async def rate_note(
    note_id: str,
    payload: NoteRating,
    current_user: dict = Depends(get_current_user),
) -> ApiResponse:
    """Rate a note from 1 to 5.  Rating again replaces the caller's previous rating."""
    summary = await NoteService.rate_note(parse_id(note_id, "Note"), current_user, payload.rating)
    return ApiResponse(message="Rating submitted successfully", data=summary)
