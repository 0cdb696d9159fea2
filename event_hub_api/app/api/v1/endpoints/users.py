"""
User endpoints for API v1.

Account self-service lives under ``/auth``; these routes cover looking
up users, searching for mentors and the administrator-only account
management.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from event_hub_api.app.core.db import parse_id
from event_hub_api.app.core.security import ADMIN_ROLE, get_current_user, require_roles
from event_hub_api.app.schemas.common import ApiResponse
from event_hub_api.app.schemas.user import UserRole, UserStatusUpdate
from event_hub_api.app.services.user_service import UserService


router = APIRouter()


@router.get("/", response_model=ApiResponse)
async def list_users(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    role: Optional[UserRole] = Query(None),
    search: Optional[str] = Query(None),
    current_user: dict = Depends(require_roles(ADMIN_ROLE)),
) -> ApiResponse:
    """List users, newest first.  Administrators only."""
    users, total = await UserService.list_users(limit=limit, offset=offset, role=role, search=search)
    return ApiResponse(data={"users": users, "total": total})


@router.get("/search/mentors", response_model=ApiResponse)
async def search_mentors(
    skills: Optional[str] = Query(None, description="Comma-separated list; any one must match"),
    city: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=50),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse:
    """Find active professionals and institutions by skill and city."""
    wanted = [s.strip() for s in skills.split(",")] if skills else None
    mentors = await UserService.search_mentors(skills=wanted, city=city, limit=limit)
    return ApiResponse(data={"mentors": mentors})


@router.get("/{user_id}", response_model=ApiResponse)
async def get_user(user_id: str, current_user: dict = Depends(get_current_user)) -> ApiResponse:
    """Public profile of a user together with their registered events."""
    user = await UserService.get_user(parse_id(user_id, "User"), with_events=True)
    return ApiResponse(data={"user": user})


@router.put("/{user_id}/status", response_model=ApiResponse)
async def update_user_status(
    user_id: str,
    payload: UserStatusUpdate,
    current_user: dict = Depends(require_roles(ADMIN_ROLE)),
) -> ApiResponse:
    """Activate or deactivate an account.  Administrators only."""
    user = await UserService.set_active(parse_id(user_id, "User"), payload.is_active)
    state = "activated" if payload.is_active else "deactivated"
    return ApiResponse(message=f"User {state} successfully", data={"user": user})
