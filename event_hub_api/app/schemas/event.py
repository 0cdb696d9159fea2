"""
Pydantic models for events and their participants.

``Event`` is the full stored document: scalar columns plus the nested
organizer, location, schedule, registration settings and the ordered
participant list.  ``EventCreate`` and ``EventUpdate`` are request
payloads; ``RegistrationForm`` is what a user submits when signing up.

Datetimes without a timezone are interpreted as UTC so that deadline
comparisons never mix naive and aware values.
"""

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator, model_validator

from event_hub_api.app.core.db import MAX_ROW_ID

PARTICIPANT_STATUSES = ("registered", "confirmed", "attended", "cancelled")

ParticipantStatus = Literal["registered", "confirmed", "attended", "cancelled"]
EventStatus = Literal["draft", "published", "ongoing", "completed", "cancelled"]
EventCategory = Literal["hackathon", "quiz", "workshop", "seminar", "tech-fest", "competition", "conference"]
EventMode = Literal["Online", "Offline", "Hybrid"]
EventVisibility = Literal["public", "private", "institution-only"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class TeamSize(BaseModel):
    min: int = Field(1, ge=1)
    max: int = Field(1, ge=1)

    @model_validator(mode="after")
    def check_bounds(self) -> "TeamSize":
        if self.max < self.min:
            raise ValueError("Maximum team size cannot be smaller than the minimum")
        return self


class Fee(BaseModel):
    amount: float = Field(0, ge=0)
    currency: str = "INR"
    is_free: bool = True


class Location(BaseModel):
    venue: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: str = "India"


class DateTimeRange(BaseModel):
    start: UtcDatetime = Field(..., examples=["2030-01-10T09:00:00Z"])
    end: UtcDatetime = Field(..., examples=["2030-01-12T18:00:00Z"])
    timezone: str = "Asia/Kolkata"


def offline_location_error(mode: Optional[str], location: Optional[Location]) -> Optional[str]:
    """Return the complaint about an offline event's location, if any."""
    if mode != "Offline":
        return None
    if location is None or not location.city:
        return "City is required for offline events"
    if not location.venue:
        return "Venue is required for offline events"
    return None


class SocialMedia(BaseModel):
    linkedin: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None


class Organizer(BaseModel):
    user_id: int
    name: str
    institution: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    website: Optional[str] = None
    social_media: SocialMedia = Field(default_factory=SocialMedia)


class Prize(BaseModel):
    position: str = Field(..., min_length=1)
    amount: Optional[float] = Field(None, ge=0)
    currency: str = "INR"
    description: Optional[str] = None
    benefits: List[str] = Field(default_factory=list)


class ScheduleSlot(BaseModel):
    time: Optional[str] = None
    activity: Optional[str] = None
    description: Optional[str] = None


class ScheduleDay(BaseModel):
    day: Optional[str] = None
    date: Optional[UtcDatetime] = None
    events: List[ScheduleSlot] = Field(default_factory=list)


class EventImage(BaseModel):
    url: Optional[str] = None
    public_id: Optional[str] = None


class EventDocument(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None
    type: Optional[str] = None


class RegistrationSettings(BaseModel):
    deadline: UtcDatetime
    fee: Fee = Field(default_factory=Fee)
    # Informational only: admission does not enforce a capacity limit.
    max_participants: Optional[int] = Field(None, ge=1)
    current_participants: int = 0
    requirements: List[str] = Field(default_factory=list)
    team_size: TeamSize = Field(default_factory=TeamSize)


class TeamMember(BaseModel):
    name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    institution: Optional[str] = None


class RegistrationForm(BaseModel):
    """Optional contact and team details submitted with a registration."""

    phone: Optional[str] = None
    alternate_email: Optional[str] = None
    team_name: Optional[str] = None
    team_size: int = Field(1, ge=1)
    team_members: List[TeamMember] = Field(default_factory=list)
    institution: Optional[str] = None
    experience: Optional[str] = None
    motivation: Optional[str] = None
    special_requirements: Optional[str] = None


class Participant(RegistrationForm):
    id: str
    user_id: int
    registered_at: UtcDatetime
    status: ParticipantStatus = "registered"
    payment_status: PaymentStatus = "pending"
    payment_id: Optional[str] = None
    checked_in: bool = False
    checked_in_at: Optional[UtcDatetime] = None


class Event(BaseModel):
    """A stored event together with its roster."""

    id: int
    title: str
    description: str
    category: EventCategory
    mode: EventMode
    organizer: Organizer
    location: Location = Field(default_factory=Location)
    date_time: DateTimeRange
    registration: RegistrationSettings
    participants: List[Participant] = Field(default_factory=list)
    prizes: List[Prize] = Field(default_factory=list)
    schedule: List[ScheduleDay] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    image: Optional[EventImage] = None
    documents: List[EventDocument] = Field(default_factory=list)
    status: EventStatus = "draft"
    visibility: EventVisibility = "public"
    featured: bool = False
    views: int = 0
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None


class RegistrationCreate(BaseModel):
    deadline: UtcDatetime = Field(..., examples=["2030-01-08T23:59:59Z"])
    fee: Fee = Field(default_factory=Fee)
    max_participants: Optional[int] = Field(None, ge=1)
    requirements: List[str] = Field(default_factory=list)
    team_size: TeamSize = Field(default_factory=TeamSize)


class EventCreate(BaseModel):
    """Payload for creating an event.  The caller becomes the organizer."""

    title: str = Field(..., min_length=5, max_length=100, examples=["National AI Hackathon"])
    description: str = Field(..., min_length=20, max_length=2000)
    category: EventCategory
    mode: EventMode
    location: Location = Field(default_factory=Location)
    date_time: DateTimeRange
    registration: RegistrationCreate
    prizes: List[Prize] = Field(default_factory=list)
    schedule: List[ScheduleDay] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    image: Optional[EventImage] = None
    documents: List[EventDocument] = Field(default_factory=list)
    status: EventStatus = "draft"
    visibility: EventVisibility = "public"
    tags: List[str] = Field(default_factory=list)
    # Organizer contact details; email defaults to the caller's address.
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    website: Optional[str] = None
    social_media: SocialMedia = Field(default_factory=SocialMedia)

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_offline_location(self) -> "EventCreate":
        error = offline_location_error(self.mode, self.location)
        if error:
            raise ValueError(error)
        return self


class RegistrationUpdate(BaseModel):
    deadline: Optional[UtcDatetime] = None
    fee: Optional[Fee] = None
    max_participants: Optional[int] = Field(None, ge=1)
    requirements: Optional[List[str]] = None
    team_size: Optional[TeamSize] = None


class EventUpdate(BaseModel):
    """Partial update of an event; unspecified fields stay unchanged.

    The roster and participant counter cannot be edited through this
    model; they only change through registration operations.
    """

    title: Optional[str] = Field(None, min_length=5, max_length=100)
    description: Optional[str] = Field(None, min_length=20, max_length=2000)
    category: Optional[EventCategory] = None
    mode: Optional[EventMode] = None
    location: Optional[Location] = None
    date_time: Optional[DateTimeRange] = None
    registration: Optional[RegistrationUpdate] = None
    prizes: Optional[List[Prize]] = None
    schedule: Optional[List[ScheduleDay]] = None
    skills: Optional[List[str]] = None
    image: Optional[EventImage] = None
    documents: Optional[List[EventDocument]] = None
    status: Optional[EventStatus] = None
    visibility: Optional[EventVisibility] = None
    tags: Optional[List[str]] = None


class AdminRegistration(BaseModel):
    # Optional so that a missing value is reported with the business
    # message rather than a generic validation error.
    user_id: Optional[int] = Field(None, ge=1, le=MAX_ROW_ID)


class ParticipantStatusUpdate(BaseModel):
    # Free-form here; the allowed values are checked by the service.
    status: Optional[str] = None
