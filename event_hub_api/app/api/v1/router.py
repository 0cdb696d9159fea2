"""
Top-level router for version 1 of the API.

This router aggregates the domain routers (auth, events, notes, users,
contact) under a unified prefix.  When a new domain is introduced,
include its router here.
"""

from fastapi import APIRouter

from .endpoints import auth, contact, events, notes, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(events.router, prefix="/events", tags=["events"])
router.include_router(notes.router, prefix="/notes", tags=["notes"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(contact.router, prefix="/contact", tags=["contact"])
