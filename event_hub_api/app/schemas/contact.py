"""Pydantic schema for the public contact form."""

from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

ContactCategory = Literal["General", "Events", "Notes", "Technical", "Partnership", "Support", "Feedback"]


class ContactCreate(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    topic: Optional[str] = Field(None, max_length=200)
    related_to: ContactCategory
    message: str = Field(..., min_length=10, max_length=2000)
    send_copy: bool = False

    @field_validator("full_name", "topic", "message", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v
