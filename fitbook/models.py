"""
Pydantic models for request/response schemas.

Request models double as form validation for the registration, sign-in
and session forms. Row models mirror the backend tables and tolerate the
extra columns PostgREST returns.
"""

from datetime import date, datetime, time
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from .validators import (
    PasswordValidator,
    parse_specialties,
    sanitize_full_name,
    validate_email_format,
    validate_session_times,
)

RowId = Union[int, str]


class UserRole(str, Enum):
    CLIENT = "client"
    TRAINER = "trainer"


class SessionType(str, Enum):
    PERSONAL = "personal"
    GROUP = "group"
    VIRTUAL = "virtual"


class SessionStatus(str, Enum):
    AVAILABLE = "available"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# Request Models


class ClientSignUp(BaseModel):
    """Registration form for clients."""

    email: EmailStr
    password: str
    full_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        is_valid, error = validate_email_format(value)
        if not is_valid:
            raise ValueError(error)
        return value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        is_valid, error = PasswordValidator.validate(value)
        if not is_valid:
            raise ValueError(error)
        return value

    @field_validator("full_name")
    @classmethod
    def clean_full_name(cls, value: str) -> str:
        cleaned = sanitize_full_name(value)
        if not cleaned:
            raise ValueError("Full name is required")
        return cleaned


class TrainerSignUp(ClientSignUp):
    """
    Registration form for trainers.

    Specialties arrive either as the comma-separated form field or as a list.
    """

    phone: Optional[str] = Field(None, max_length=32)
    specialties: List[str]
    bio: Optional[str] = Field(None, max_length=2000)
    hourly_rate: float = Field(..., ge=0)

    @field_validator("specialties", mode="before")
    @classmethod
    def split_specialties(cls, value: Union[str, List[str]]) -> List[str]:
        if isinstance(value, str):
            return parse_specialties(value)
        if isinstance(value, list):
            return parse_specialties(",".join(str(item) for item in value))
        return value

    @field_validator("specialties")
    @classmethod
    def require_specialty(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("At least one specialty is required")
        return value


class UserSignIn(BaseModel):
    """Sign-in form."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshToken(BaseModel):
    refresh_token: str


class SessionCreate(BaseModel):
    """Form a trainer fills in to publish a bookable session."""

    session_date: date
    start_time: time
    end_time: time
    session_type: SessionType = SessionType.PERSONAL
    price: float = Field(..., ge=0)
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_times(self) -> "SessionCreate":
        is_valid, error = validate_session_times(self.start_time, self.end_time)
        if not is_valid:
            raise ValueError(error)
        return self


class SessionStatusUpdate(BaseModel):
    status: SessionStatus


class BookingCreate(BaseModel):
    session_id: RowId


# Response Models


class SessionTokens(BaseModel):
    """Tokens issued by the auth backend."""

    access_token: str
    refresh_token: str
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None
    token_type: str = "bearer"


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: UserRole = UserRole.CLIENT
    email_confirmed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    """Result of a registration or sign-in."""

    user: AuthUser
    session: Optional[SessionTokens] = None
    message: str


class CurrentUser(BaseModel):
    """The signed-in user as identified by their access token."""

    id: str
    email: Optional[str] = None
    user_metadata: dict = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    access_token: str = Field(..., repr=False)


class TrainerSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)
    hourly_rate: Optional[float] = None


class TrainingSession(BaseModel):
    """A row of ``training_sessions``."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[RowId] = None
    trainer_id: str
    session_date: date
    start_time: time
    end_time: time
    session_type: str
    price: float
    notes: Optional[str] = None
    status: str = SessionStatus.AVAILABLE.value


class SessionCard(TrainingSession):
    """An available session as shown to clients browsing for a booking."""

    trainer: Optional[TrainerSummary] = None
    date_label: str = ""
    time_label: str = ""
    type_label: str = ""
    price_label: str = ""


class BookingClient(BaseModel):
    model_config = ConfigDict(extra="ignore")

    full_name: Optional[str] = None
    email: Optional[str] = None


class Booking(BaseModel):
    """A row of ``bookings``."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[RowId] = None
    session_id: RowId
    client_id: str
    status: str = BookingStatus.PENDING.value
    booking_date: Optional[datetime] = None


class SessionBooking(Booking):
    """A booking as listed on the trainer dashboard."""

    client: Optional[BookingClient] = None
    client_name: str = "Unknown"
    booked_label: str = ""


class TrainerSessionView(TrainingSession):
    """A session on the trainer dashboard with its bookings."""

    bookings: List[SessionBooking] = Field(default_factory=list)
    date_label: str = ""
    time_label: str = ""


class ClientBooking(Booking):
    """A booking as listed for the client who made it."""

    session: Optional[SessionCard] = None


class TrainerProfile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    phone: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)
    bio: Optional[str] = None
    hourly_rate: Optional[float] = None


class ProfileResponse(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    member_since: str = ""
    role: UserRole
    trainer: Optional[TrainerProfile] = None


class WelcomeCard(BaseModel):
    title: str
    description: str


class HomeResponse(BaseModel):
    greeting: str
    role: UserRole
    cards: List[WelcomeCard]


class NavigationItem(BaseModel):
    view: str
    label: str
    active: bool = False


class NavigationResponse(BaseModel):
    current_view: str
    signed_in: bool
    role: Optional[UserRole] = None
    items: List[NavigationItem]


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
    success: bool = True


class ErrorResponse(BaseModel):
    """Error response model."""

    detail: str
    success: bool = False
