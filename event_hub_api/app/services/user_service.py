"""
Business logic for users.

``UserService`` owns the ``users`` table and the per-user
``registered_events`` mirror.  The mirror methods are
small single-statement writes: the registration flow calls them after
the event row has already been saved, and nothing rolls the event back
if they fail.
"""

import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from event_hub_api.app.core.db import dump_json, get_connection, load_json
from event_hub_api.app.core.exceptions import BusinessRuleError, NotFoundError
from event_hub_api.app.core.security import hash_password
from event_hub_api.app.schemas.user import HostedEvent, Mentor, Profile, RegisteredEvent, UserPublic

logger = logging.getLogger(__name__)

USER_COLUMNS = (
    "id, name, email, role, avatar, profile, is_email_verified, is_active, "
    "last_login, created_at"
)


def row_to_user(row: sqlite3.Row) -> UserPublic:
    return UserPublic(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        role=row["role"],
        avatar=row["avatar"],
        profile=Profile(**load_json(row["profile"], {})),
        is_email_verified=bool(row["is_email_verified"]),
        is_active=bool(row["is_active"]),
        last_login=row["last_login"],
        created_at=row["created_at"],
    )


class UserService:
    """Service for user accounts and their registration lists."""

    @classmethod
    async def create_user(cls, name: str, email: str, password: str, role: str = "student") -> UserPublic:
        """Insert a new, unverified user and return it.

        Raises ``BusinessRuleError`` if the email is already taken.
        """
        logger.info("Creating user %s", email)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if cursor.execute("SELECT 1 FROM users WHERE email = ?", (email,)).fetchone():
                raise BusinessRuleError("User already exists with this email")
            try:
                cursor.execute(
                    "INSERT INTO users (name, email, password, role, profile) VALUES (?, ?, ?, ?, ?)",
                    (name, email, hash_password(password), role, dump_json(Profile().model_dump())),
                )
            except sqlite3.IntegrityError as exc:
                raise BusinessRuleError("User already exists with this email") from exc
            user_id = cursor.lastrowid
            conn.commit()
            row = cursor.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
            return row_to_user(row)
        finally:
            conn.close()

    @classmethod
    async def get_user_row(cls, user_id: int) -> sqlite3.Row:
        """Return the raw ``users`` row (including secrets) or raise 404."""
        conn = get_connection()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError("User")
        return row

    @classmethod
    async def find_by_email(cls, email: str) -> Optional[sqlite3.Row]:
        conn = get_connection()
        try:
            return conn.execute("SELECT * FROM users WHERE email = ?", (email.lower(),)).fetchone()
        finally:
            conn.close()

    @classmethod
    async def get_user(cls, user_id: int, with_events: bool = False) -> UserPublic:
        """Return a user's public representation.

        With ``with_events`` the user's registered events are attached,
        each joined with a short summary of the event if it still exists,
        together with the events the user organizes.
        """
        user = row_to_user(await cls.get_user_row(user_id))
        if with_events:
            user.registered_events = await cls.list_registered_events(user_id)
            user.hosted_events = await cls.list_hosted_events(user_id)
        return user

    @classmethod
    async def list_hosted_events(cls, user_id: int) -> List[HostedEvent]:
        """Summaries of the events organized by ``user_id``, newest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT id, title, status, date_time, participants FROM events "
                "WHERE organizer_id = ? ORDER BY created_at DESC, id DESC",
                (user_id,),
            ).fetchall()
        finally:
            conn.close()
        return [
            HostedEvent(
                id=row["id"],
                title=row["title"],
                status=row["status"],
                start=load_json(row["date_time"], {}).get("start"),
                participant_count=len(load_json(row["participants"], [])),
            )
            for row in rows
        ]

    @classmethod
    async def search_mentors(
        cls,
        skills: Optional[List[str]] = None,
        city: Optional[str] = None,
        limit: int = 10,
    ) -> List[Mentor]:
        """Find active professionals and institutions.

        A user matches ``skills`` when any of them appears in their
        profile skills, and ``city`` when it occurs in their profile city
        ignoring case.  Users hosting the most events come first.
        """
        conn = get_connection()
        try:
            rows = conn.execute(
                """
                SELECT u.id, u.name, u.role, u.avatar, u.profile,
                       (SELECT COUNT(*) FROM events e WHERE e.organizer_id = u.id) AS hosted_count
                FROM users u
                WHERE u.role IN ('professional', 'institution') AND u.is_active = 1
                ORDER BY hosted_count DESC, u.id
                """
            ).fetchall()
        finally:
            conn.close()

        wanted = {s for s in (skills or []) if s}
        mentors: List[Mentor] = []
        for row in rows:
            profile = Profile(**load_json(row["profile"], {}))
            if wanted and not wanted.intersection(profile.skills):
                continue
            if city and city.lower() not in (profile.city or "").lower():
                continue
            mentors.append(
                Mentor(
                    id=row["id"],
                    name=row["name"],
                    role=row["role"],
                    avatar=row["avatar"],
                    profile=profile,
                    hosted_events=await cls.list_hosted_events(row["id"]),
                )
            )
            if len(mentors) >= limit:
                break
        return mentors

    @classmethod
    async def get_profiles(cls, user_ids: Iterable[int]) -> Dict[int, Dict[str, Any]]:
        """Return ``{id: {id, name, email, avatar, profile}}`` for the given ids.

        Unknown ids are simply absent from the result.
        """
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        conn = get_connection()
        try:
            rows = conn.execute(
                f"SELECT id, name, email, avatar, profile FROM users WHERE id IN ({placeholders})",
                tuple(ids),
            ).fetchall()
        finally:
            conn.close()
        return {
            row["id"]: {
                "id": row["id"],
                "name": row["name"],
                "email": row["email"],
                "avatar": row["avatar"],
                "profile": load_json(row["profile"], {}),
            }
            for row in rows
        }

    @classmethod
    async def list_users(
        cls,
        limit: int = 20,
        offset: int = 0,
        role: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[UserPublic], int]:
        """Return a page of users (newest first) and the total match count."""
        where: List[str] = []
        params: List[Any] = []
        if role:
            where.append("role = ?")
            params.append(role)
        if search:
            where.append("(name LIKE ? OR email LIKE ?)")
            params.extend([f"%{search}%", f"%{search}%"])
        clause = f" WHERE {' AND '.join(where)}" if where else ""
        conn = get_connection()
        try:
            total = conn.execute(f"SELECT COUNT(*) AS count FROM users{clause}", tuple(params)).fetchone()["count"]
            rows = conn.execute(
                f"SELECT {USER_COLUMNS} FROM users{clause} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                tuple(params + [limit, offset]),
            ).fetchall()
        finally:
            conn.close()
        return [row_to_user(row) for row in rows], total

    @classmethod
    async def update_user(cls, user_id: int, fields: Dict[str, Any]) -> UserPublic:
        """Update columns of a user row.  ``profile`` is stored as JSON."""
        await cls.get_user_row(user_id)
        if fields:
            values = {k: dump_json(v) if k == "profile" else v for k, v in fields.items()}
            assignments = ", ".join(f"{column} = ?" for column in values)
            conn = get_connection()
            try:
                conn.execute(
                    f"UPDATE users SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    tuple(values.values()) + (user_id,),
                )
                conn.commit()
            finally:
                conn.close()
        return await cls.get_user(user_id)

    @classmethod
    async def set_active(cls, user_id: int, is_active: bool) -> UserPublic:
        logger.info("Setting is_active=%s for user %s", is_active, user_id)
        return await cls.update_user(user_id, {"is_active": int(is_active)})

    # ------------------------------------------------------------------
    # registered events mirror
    # ------------------------------------------------------------------

    @classmethod
    async def push_registered_event(
        cls,
        user_id: int,
        event_id: int,
        status: str,
        registered_at: Optional[datetime] = None,
    ) -> None:
        """Append ``{event_id, status}`` to the user's registration list."""
        conn = get_connection()
        try:
            conn.execute(
                "INSERT INTO registered_events (user_id, event_id, status, registered_at) "
                "VALUES (?, ?, ?, COALESCE(?, CURRENT_TIMESTAMP))",
                (user_id, event_id, status, registered_at.isoformat() if registered_at else None),
            )
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def pull_registered_event(cls, user_id: int, event_id: int) -> int:
        """Remove every entry for ``event_id`` from the user's list."""
        conn = get_connection()
        try:
            cursor = conn.execute(
                "DELETE FROM registered_events WHERE user_id = ? AND event_id = ?",
                (user_id, event_id),
            )
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    @classmethod
    async def set_registered_event_status(cls, user_id: int, event_id: int, status: str) -> int:
        """Overwrite the status of the user's entry for ``event_id``.

        Returns the number of rows changed; zero when the user has no
        entry for the event, which is not treated as an error.
        """
        conn = get_connection()
        try:
            cursor = conn.execute(
                "UPDATE registered_events SET status = ? WHERE user_id = ? AND event_id = ?",
                (status, user_id, event_id),
            )
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    @classmethod
    async def list_registered_events(cls, user_id: int) -> List[RegisteredEvent]:
        """Return the user's registration list in registration order.

        Each entry carries a short summary of the event; the summary is
        ``None`` when the event row no longer exists.
        """
        conn = get_connection()
        try:
            rows = conn.execute(
                """
                SELECT r.event_id, r.status, r.registered_at,
                       e.title, e.category, e.mode, e.status AS event_status,
                       e.date_time, e.location, e.organizer
                FROM registered_events r
                LEFT JOIN events e ON e.id = r.event_id
                WHERE r.user_id = ?
                ORDER BY r.id
                """,
                (user_id,),
            ).fetchall()
        finally:
            conn.close()
        result: List[RegisteredEvent] = []
        for row in rows:
            summary = None
            if row["title"] is not None:
                organizer = load_json(row["organizer"], {})
                summary = {
                    "id": row["event_id"],
                    "title": row["title"],
                    "category": row["category"],
                    "mode": row["mode"],
                    "status": row["event_status"],
                    "date_time": load_json(row["date_time"]),
                    "location": load_json(row["location"]),
                    "organizer": {"user_id": organizer.get("user_id"), "name": organizer.get("name")},
                }
            result.append(
                RegisteredEvent(
                    event_id=row["event_id"],
                    status=row["status"],
                    registered_at=row["registered_at"],
                    event=summary,
                )
            )
        return result
