"""
Pydantic schemas for shared study notes.

Notes reference a file that the client has already uploaded somewhere;
only its URL, name and size are stored here.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

NoteType = Literal["Notes", "PYQ", "Cheatsheet", "Lab Manual", "Slides"]


class NoteBase(BaseModel):
    title: str = Field(..., min_length=5, max_length=200, examples=["Operating Systems unit 3"])
    description: Optional[str] = Field(None, max_length=1000)
    subject: str = Field(..., min_length=1)
    type: NoteType
    semester: Optional[str] = None
    university: Optional[str] = None
    pages: int = Field(0, ge=0)
    tags: List[str] = Field(default_factory=list)

    @field_validator("title", "subject", "description", "semester", "university", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class NoteCreate(NoteBase):
    file_url: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1)
    file_size: int = Field(..., ge=0)


class NoteUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=5, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    subject: Optional[str] = Field(None, min_length=1)
    type: Optional[NoteType] = None
    semester: Optional[str] = None
    university: Optional[str] = None
    pages: Optional[int] = Field(None, ge=0)
    tags: Optional[List[str]] = None


class NoteRead(NoteBase):
    id: int
    author_id: int
    author_name: Optional[str] = None
    file_url: str
    file_name: str
    file_size: int
    downloads: int = 0
    rating: float = 0
    rating_count: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Per-caller fields, filled only for authenticated requests.
    is_saved: Optional[bool] = None
    user_rating: Optional[int] = None


class NoteRating(BaseModel):
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")


class RatingSummary(BaseModel):
    note_id: int
    rating: float
    rating_count: int
