"""
Pydantic models for user accounts and the authentication flows.

``UserPublic`` is the only shape in which a user ever leaves the API:
password hashes and verification/reset tokens are never serialized.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

UserRole = Literal["student", "professional", "institution", "admin"]
# Roles a user may pick when signing up; ``admin`` is granted out of band.
SelfServiceRole = Literal["student", "professional", "institution"]


class SocialLinks(BaseModel):
    linkedin: Optional[str] = None
    github: Optional[str] = None
    twitter: Optional[str] = None


class Profile(BaseModel):
    institution: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=50)
    skills: List[str] = Field(default_factory=list)
    bio: Optional[str] = Field(None, max_length=500)
    social_links: SocialLinks = Field(default_factory=SocialLinks)


class UserRegister(BaseModel):
    name: str = Field(..., min_length=2, max_length=50, examples=["Jane Smith"])
    email: EmailStr = Field(..., examples=["jane@example.com"])
    password: str = Field(..., min_length=6)
    role: SelfServiceRole = "student"

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class EmailRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class TokenRequest(BaseModel):
    token: str = Field(..., min_length=1)


class PasswordReset(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own account."""

    name: Optional[str] = Field(None, min_length=2, max_length=50)
    profile: Optional[Profile] = None
    avatar: Optional[str] = None


class UserStatusUpdate(BaseModel):
    is_active: bool


class RegisteredEvent(BaseModel):
    """One entry of a user's own list of event registrations."""

    event_id: int
    status: str
    registered_at: Optional[datetime] = None
    event: Optional[dict] = None


class HostedEvent(BaseModel):
    """Short summary of an event the user organizes."""

    id: int
    title: str
    status: str
    start: Optional[datetime] = None
    participant_count: int = 0


class Mentor(BaseModel):
    """Public card of a professional or institution offering mentorship."""

    id: int
    name: str
    role: UserRole
    avatar: Optional[str] = None
    profile: Profile = Field(default_factory=Profile)
    hosted_events: List[HostedEvent] = Field(default_factory=list)


class UserPublic(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    avatar: Optional[str] = None
    profile: Profile = Field(default_factory=Profile)
    is_email_verified: bool = False
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    registered_events: Optional[List[RegisteredEvent]] = None
    hosted_events: Optional[List[HostedEvent]] = None

    model_config = {
        "from_attributes": True,
    }
