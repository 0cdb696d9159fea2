"""
Business logic for shared notes.

Notes are soft deleted: ``is_active = 0`` hides a note from every read
path except the author's own uploads list.  Bookmarks are kept as a
JSON list of user ids on the note row.  Ratings live in
``note_ratings`` with one row per (note, user); the aggregate columns
on ``notes`` are recomputed from that table after each rating.
"""

import logging
import math
import sqlite3
from typing import Any, Dict, Iterable, List, Optional, Tuple

from event_hub_api.app.core.db import dump_json, get_connection, load_json
from event_hub_api.app.core.exceptions import BusinessRuleError, NotFoundError, PermissionDeniedError
from event_hub_api.app.schemas.note import NoteCreate, NoteRead, NoteUpdate, RatingSummary

logger = logging.getLogger(__name__)


def calculate_rating(values: Iterable[int]) -> Tuple[float, int]:
    """Return ``(average, count)`` with the average rounded half up to 0.1.

    No ratings yields ``(0.0, 0)``.
    """
    values = list(values)
    if not values:
        return 0.0, 0
    mean = sum(values) / len(values)
    return math.floor(mean * 10 + 0.5) / 10, len(values)


def row_to_note(row: sqlite3.Row, viewer: Optional[Dict[str, Any]] = None, user_rating: Optional[int] = None) -> NoteRead:
    data = dict(row)
    saved_by = load_json(data.pop("saved_by"), [])
    data["tags"] = load_json(data["tags"], [])
    data["is_active"] = bool(data["is_active"])
    if viewer:
        data["is_saved"] = viewer["user_id"] in saved_by
        data["user_rating"] = user_rating
    return NoteRead(**data)


class NoteService:
    """Service for notes, bookmarks and ratings."""

    @classmethod
    async def _load_row(cls, note_id: int, active_only: bool = True) -> sqlite3.Row:
        query = "SELECT * FROM notes WHERE id = ?"
        if active_only:
            query += " AND is_active = 1"
        conn = get_connection()
        try:
            row = conn.execute(query, (note_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError("Note")
        return row

    @classmethod
    async def _user_ratings(cls, user_id: int, note_ids: List[int]) -> Dict[int, int]:
        if not note_ids:
            return {}
        placeholders = ", ".join("?" for _ in note_ids)
        conn = get_connection()
        try:
            rows = conn.execute(
                f"SELECT note_id, rating FROM note_ratings WHERE user_id = ? AND note_id IN ({placeholders})",
                (user_id, *note_ids),
            ).fetchall()
        finally:
            conn.close()
        return {row["note_id"]: row["rating"] for row in rows}

    @classmethod
    async def _present(cls, rows: List[sqlite3.Row], viewer: Optional[Dict[str, Any]]) -> List[NoteRead]:
        ratings: Dict[int, int] = {}
        if viewer:
            ratings = await cls._user_ratings(viewer["user_id"], [row["id"] for row in rows])
        return [row_to_note(row, viewer, ratings.get(row["id"])) for row in rows]

    @classmethod
    async def list_notes(cls, viewer: Optional[Dict[str, Any]] = None) -> List[NoteRead]:
        """Return active notes, newest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM notes WHERE is_active = 1 ORDER BY created_at DESC, id DESC"
            ).fetchall()
        finally:
            conn.close()
        return await cls._present(rows, viewer)

    @classmethod
    async def get_note(cls, note_id: int, viewer: Optional[Dict[str, Any]] = None) -> NoteRead:
        row = await cls._load_row(note_id)
        return (await cls._present([row], viewer))[0]

    @classmethod
    async def create_note(cls, data: NoteCreate, current_user: Dict[str, Any]) -> NoteRead:
        """Store note metadata; the caller becomes the author."""
        conn = get_connection()
        try:
            cursor = conn.execute(
                """
                INSERT INTO notes (title, description, subject, type, semester, author_id, author_name,
                                   university, file_url, file_name, file_size, pages, tags)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    data.title,
                    data.description,
                    data.subject,
                    data.type,
                    data.semester,
                    current_user["user_id"],
                    current_user.get("name"),
                    data.university,
                    data.file_url,
                    data.file_name,
                    data.file_size,
                    data.pages,
                    dump_json(data.tags),
                ),
            )
            conn.commit()
            note_id = cursor.lastrowid
        finally:
            conn.close()
        logger.info("User %s uploaded note %s '%s'", current_user["user_id"], note_id, data.title)
        return await cls.get_note(note_id, current_user)

    @classmethod
    async def update_note(cls, note_id: int, updates: NoteUpdate, current_user: Dict[str, Any]) -> NoteRead:
        row = await cls._load_row(note_id)
        if row["author_id"] != current_user["user_id"]:
            raise PermissionDeniedError("Not authorized to update this note")
        fields = updates.model_dump(exclude_unset=True, exclude_none=True)
        if "tags" in fields:
            fields["tags"] = dump_json(fields["tags"])
        if fields:
            assignments = ", ".join(f"{column} = ?" for column in fields)
            conn = get_connection()
            try:
                conn.execute(
                    f"UPDATE notes SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    tuple(fields.values()) + (note_id,),
                )
                conn.commit()
            finally:
                conn.close()
        return await cls.get_note(note_id, current_user)

    @classmethod
    async def delete_note(cls, note_id: int, current_user: Dict[str, Any]) -> None:
        """Soft delete a note.  Only its author may do this."""
        row = await cls._load_row(note_id)
        if row["author_id"] != current_user["user_id"]:
            raise PermissionDeniedError("Not authorized to delete this note")
        conn = get_connection()
        try:
            conn.execute(
                "UPDATE notes SET is_active = 0, updated_at = CURRENT_TIMESTAMP WHERE id = ?", (note_id,)
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("User %s deleted note %s", current_user["user_id"], note_id)

    @classmethod
    async def download(cls, note_id: int) -> Dict[str, Any]:
        """Count a download and return where the file lives."""
        row = await cls._load_row(note_id)
        conn = get_connection()
        try:
            conn.execute("UPDATE notes SET downloads = downloads + 1 WHERE id = ?", (note_id,))
            conn.commit()
        finally:
            conn.close()
        return {"file_url": row["file_url"], "file_name": row["file_name"], "downloads": row["downloads"] + 1}

    @classmethod
    async def _write_saved_by(cls, note_id: int, saved_by: List[int]) -> None:
        conn = get_connection()
        try:
            conn.execute("UPDATE notes SET saved_by = ? WHERE id = ?", (dump_json(saved_by), note_id))
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def save_note(cls, note_id: int, current_user: Dict[str, Any]) -> None:
        row = await cls._load_row(note_id)
        saved_by = load_json(row["saved_by"], [])
        if current_user["user_id"] in saved_by:
            raise BusinessRuleError("Note already saved")
        saved_by.append(current_user["user_id"])
        await cls._write_saved_by(note_id, saved_by)

    @classmethod
    async def unsave_note(cls, note_id: int, current_user: Dict[str, Any]) -> None:
        row = await cls._load_row(note_id)
        saved_by = [uid for uid in load_json(row["saved_by"], []) if uid != current_user["user_id"]]
        await cls._write_saved_by(note_id, saved_by)

    @classmethod
    async def list_saved(cls, current_user: Dict[str, Any]) -> List[NoteRead]:
        """Active notes bookmarked by the caller, newest first."""
        notes = await cls.list_notes(current_user)
        return [note for note in notes if note.is_saved]

    @classmethod
    async def list_uploaded(cls, current_user: Dict[str, Any]) -> List[NoteRead]:
        """Every note authored by the caller, including soft deleted ones."""
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM notes WHERE author_id = ? ORDER BY created_at DESC, id DESC",
                (current_user["user_id"],),
            ).fetchall()
        finally:
            conn.close()
        return await cls._present(rows, current_user)

    @classmethod
    async def rate_note(cls, note_id: int, current_user: Dict[str, Any], rating: int) -> RatingSummary:
        """Record the caller's rating and refresh the note's aggregate.

        A second rating from the same user replaces the first.
        """
        await cls._load_row(note_id)
        conn = get_connection()
        try:
            conn.execute(
                """
                INSERT INTO note_ratings (note_id, user_id, rating) VALUES (?, ?, ?)
                ON CONFLICT(note_id, user_id) DO UPDATE SET rating = excluded.rating
                """,
                (note_id, current_user["user_id"], rating),
            )
            values = [r["rating"] for r in conn.execute(
                "SELECT rating FROM note_ratings WHERE note_id = ?", (note_id,)
            ).fetchall()]
            average, count = calculate_rating(values)
            conn.execute(
                "UPDATE notes SET rating = ?, rating_count = ? WHERE id = ?", (average, count, note_id)
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("User %s rated note %s with %s", current_user["user_id"], note_id, rating)
        return RatingSummary(note_id=note_id, rating=average, rating_count=count)
