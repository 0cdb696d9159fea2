"""
Business logic for events.

An event is stored as a single row: scalar columns plus JSON columns
for the organizer, location, schedule, registration settings and the
participant list.  ``load_event`` and ``save_event`` move whole
``Event`` documents in and out of that row; the registration flow in
``registration_service`` builds on them.

Serialization for API responses always goes through ``present`` so
that the participant list is only exposed to the organizer and
administrators.
"""

import logging
import sqlite3
from collections import Counter
from datetime import timedelta
from typing import Any, Dict, List, Optional

from event_hub_api.app.core.db import dump_json, get_connection, load_json
from event_hub_api.app.core.exceptions import BusinessRuleError, NotFoundError, PermissionDeniedError
from event_hub_api.app.core.security import is_admin
from event_hub_api.app.schemas.event import (
    PARTICIPANT_STATUSES,
    Event,
    EventCreate,
    EventUpdate,
    Organizer,
    RegistrationSettings,
    offline_location_error,
)
from . import registration as rules
from .user_service import UserService

logger = logging.getLogger(__name__)

JSON_COLUMNS = (
    "organizer", "location", "date_time", "registration", "participants", "tags",
    "prizes", "schedule", "skills", "image", "documents",
)
# JSON columns that hold lists and read back as [] when NULL.
LIST_COLUMNS = ("participants", "tags", "prizes", "schedule", "skills", "documents")


def row_to_event(row: sqlite3.Row) -> Event:
    data: Dict[str, Any] = dict(row)
    for column in JSON_COLUMNS:
        data[column] = load_json(data[column], [] if column in LIST_COLUMNS else None)
    if data["location"] is None:
        data.pop("location")
    data.pop("organizer_id", None)
    data["featured"] = bool(data["featured"])
    return Event.model_validate(data)


def event_columns(event: Event) -> Dict[str, Any]:
    """Flatten an ``Event`` into column values for the ``events`` table."""
    doc = event.model_dump(mode="json")
    return {
        "title": doc["title"],
        "description": doc["description"],
        "category": doc["category"],
        "mode": doc["mode"],
        "organizer_id": doc["organizer"]["user_id"],
        "organizer": dump_json(doc["organizer"]),
        "location": dump_json(doc["location"]),
        "date_time": dump_json(doc["date_time"]),
        "registration": dump_json(doc["registration"]),
        "participants": dump_json(doc["participants"]),
        "status": doc["status"],
        "visibility": doc["visibility"],
        "featured": int(doc["featured"]),
        "views": doc["views"],
        "tags": dump_json(doc["tags"]),
        "prizes": dump_json(doc["prizes"]),
        "schedule": dump_json(doc["schedule"]),
        "skills": dump_json(doc["skills"]),
        "image": dump_json(doc["image"]),
        "documents": dump_json(doc["documents"]),
    }


class EventService:
    """Service for managing events.

    All methods are classmethods operating on the SQLite database
    defined in ``core.db``.  Authorization that depends on the event
    itself (organizer checks) is done here; role checks live in the
    endpoint dependencies.
    """

    @classmethod
    async def load_event(cls, event_id: int) -> Event:
        """Load the full event document or raise ``NotFoundError``."""
        conn = get_connection()
        try:
            row = conn.execute("SELECT * FROM events WHERE id = ?", (event_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError("Event")
        return row_to_event(row)

    @classmethod
    async def save_event(cls, event: Event) -> Event:
        """Write the whole event document back in a single statement.

        There is no version check: the last writer wins.
        """
        columns = event_columns(event)
        event.updated_at = rules.utcnow()
        assignments = ", ".join(f"{name} = ?" for name in columns)
        conn = get_connection()
        try:
            cursor = conn.execute(
                f"UPDATE events SET {assignments}, updated_at = ? WHERE id = ?",
                tuple(columns.values()) + (event.updated_at.isoformat(), event.id),
            )
            conn.commit()
        finally:
            conn.close()
        if cursor.rowcount == 0:
            raise NotFoundError("Event")
        return event

    @classmethod
    async def present(cls, event: Event, viewer: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Serialize an event for ``viewer``, expanding profiles only when allowed."""
        profiles = None
        if rules.can_view_roster(event, viewer):
            profiles = await UserService.get_profiles(p.user_id for p in event.participants)
        return rules.present_event(event, viewer, profiles)

    @classmethod
    async def create_event(cls, data: EventCreate, current_user: Dict[str, Any]) -> Event:
        """Create an event organized by ``current_user``.

        The schedule must lie in the future, end after it starts, and
        registration must close before the start.
        """
        now = rules.utcnow()
        if data.date_time.start <= now:
            raise BusinessRuleError("Event start date must be in the future")
        if data.date_time.end <= data.date_time.start:
            raise BusinessRuleError("Event end date must be after start date")
        if data.registration.deadline >= data.date_time.start:
            raise BusinessRuleError("Registration deadline must be before event start date")

        user_row = await UserService.get_user_row(current_user["user_id"])
        profile = load_json(user_row["profile"], {})
        organizer = Organizer(
            user_id=user_row["id"],
            name=user_row["name"],
            institution=profile.get("institution"),
            contact_email=data.contact_email or user_row["email"],
            contact_phone=data.contact_phone,
            website=data.website,
            social_media=data.social_media,
        )
        registration = RegistrationSettings(**data.registration.model_dump())
        draft = Event(
            id=0,
            title=data.title,
            description=data.description,
            category=data.category,
            mode=data.mode,
            organizer=organizer,
            location=data.location,
            date_time=data.date_time,
            registration=registration,
            status=data.status,
            visibility=data.visibility,
            tags=data.tags,
            prizes=data.prizes,
            schedule=data.schedule,
            skills=data.skills,
            image=data.image,
            documents=data.documents,
            created_at=now,
            updated_at=now,
        )
        columns = event_columns(draft)
        names = ", ".join(columns) + ", created_at, updated_at"
        placeholders = ", ".join("?" for _ in range(len(columns) + 2))
        conn = get_connection()
        try:
            cursor = conn.execute(
                f"INSERT INTO events ({names}) VALUES ({placeholders})",
                tuple(columns.values()) + (now.isoformat(), now.isoformat()),
            )
            conn.commit()
            draft.id = cursor.lastrowid
        finally:
            conn.close()
        logger.info("User %s created event %s '%s'", organizer.user_id, draft.id, draft.title)
        return draft

    @classmethod
    async def list_events(cls, viewer: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Return published events, newest first, as seen by ``viewer``."""
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM events WHERE status = 'published' ORDER BY created_at DESC, id DESC"
            ).fetchall()
        finally:
            conn.close()
        result = []
        for row in rows:
            event = row_to_event(row)
            data = await cls.present(event, viewer)
            if viewer:
                data["is_user_registered"] = rules.is_registered(event, viewer["user_id"])
            result.append(data)
        return result

    @classmethod
    async def get_event(cls, event_id: int, viewer: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Return ``{event, is_user_registered}`` and count the view."""
        event = await cls.load_event(event_id)
        conn = get_connection()
        try:
            conn.execute("UPDATE events SET views = views + 1 WHERE id = ?", (event_id,))
            conn.commit()
        finally:
            conn.close()
        event.views += 1
        return {
            "event": await cls.present(event, viewer),
            "is_user_registered": bool(viewer) and rules.is_registered(event, viewer["user_id"]),
        }

    @classmethod
    async def update_event(cls, event_id: int, updates: EventUpdate, current_user: Dict[str, Any]) -> Event:
        """Apply a partial update.  Only the organizer may edit an event."""
        event = await cls.load_event(event_id)
        if not rules.is_organizer(event, current_user):
            raise PermissionDeniedError("Access denied. Only event organizer can update this event.")

        changes = updates.model_dump(exclude_unset=True, exclude_none=True)
        registration_changes = changes.pop("registration", None)
        doc = event.model_dump()
        doc.update(changes)
        if registration_changes:
            doc["registration"].update(registration_changes)
        updated = Event.model_validate(doc)
        location_error = offline_location_error(updated.mode, updated.location)
        if location_error:
            raise BusinessRuleError(location_error)
        if updated.date_time.end <= updated.date_time.start:
            raise BusinessRuleError("Event end date must be after start date")
        if updated.registration.deadline >= updated.date_time.start:
            raise BusinessRuleError("Registration deadline must be before event start date")
        await cls.save_event(updated)
        logger.info("User %s updated event %s", current_user["user_id"], event_id)
        return updated

    @classmethod
    async def delete_event(cls, event_id: int, current_user: Dict[str, Any]) -> None:
        """Delete an event.  Allowed for its organizer and administrators.

        Users' registration lists are left as they are; entries that
        point at a deleted event are shown without event details.
        """
        event = await cls.load_event(event_id)
        if not (rules.is_organizer(event, current_user) or is_admin(current_user)):
            raise PermissionDeniedError("Access denied. Only event organizer or admin can delete this event.")
        conn = get_connection()
        try:
            conn.execute("DELETE FROM events WHERE id = ?", (event_id,))
            conn.commit()
        finally:
            conn.close()
        logger.info("User %s deleted event %s", current_user["user_id"], event_id)

    @classmethod
    async def list_hosted(cls, current_user: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Return every event organized by the caller, newest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM events WHERE organizer_id = ? ORDER BY created_at DESC, id DESC",
                (current_user["user_id"],),
            ).fetchall()
        finally:
            conn.close()
        return [await cls.present(row_to_event(row), current_user) for row in rows]

    @classmethod
    async def analytics(cls, event_id: int, current_user: Dict[str, Any]) -> Dict[str, Any]:
        """Registration statistics for the organizer of an event."""
        event = await cls.load_event(event_id)
        if not rules.is_organizer(event, current_user):
            raise PermissionDeniedError("Access denied. Only event organizer can view analytics.")

        participants = event.participants
        status_counts = {status: 0 for status in PARTICIPANT_STATUSES}
        status_counts.update(Counter(p.status for p in participants))
        daily = Counter(p.registered_at.date().isoformat() for p in participants)

        today = rules.utcnow().date()
        trend = []
        for days_ago in range(6, -1, -1):
            day = (today - timedelta(days=days_ago)).isoformat()
            trend.append({"date": day, "count": daily.get(day, 0)})

        max_participants = event.registration.max_participants
        return {
            "total_registrations": len(participants),
            "confirmed_participants": status_counts["confirmed"],
            "attended_participants": status_counts["attended"],
            "cancelled_registrations": status_counts["cancelled"],
            "registration_trend": trend,
            "status_distribution": status_counts,
            "daily_registrations": dict(sorted(daily.items())),
            "views": event.views,
            "revenue": event.registration.fee.amount * len(participants),
            "capacity_utilization": (
                len(participants) / max_participants * 100 if max_participants else None
            ),
        }
