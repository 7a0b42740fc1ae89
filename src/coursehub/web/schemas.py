"""Pydantic schemas for the Web API.

Request models validate and sanitize incoming bodies; the dispatcher turns
their validation errors into a 400 naming the first offending field.
Response models select the public columns of each record; password hashes
have no field here and can never be serialized.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, Field, ValidationInfo
from pydantic_core import PydanticCustomError

from coursehub.utils.validators import sanitize, validate_date, validate_email, validate_key

# Error types the dispatcher renders specially
BLANK_ERROR = "blank"
FORMAT_ERROR = "invalid_format"

INVALID_DATE = "Invalid date format (YYYY-MM-DD expected)"


# =============================================================================
# FIELD TYPES
# =============================================================================


def _blank() -> PydanticCustomError:
    return PydanticCustomError(BLANK_ERROR, "Field is blank")


def _clean_text(value: str) -> str:
    cleaned = sanitize(value)
    if not cleaned:
        raise _blank()
    return cleaned


def _not_blank(value: str) -> str:
    if not value.strip():
        raise _blank()
    return value


def _check_email(value: str) -> str:
    email = _clean_text(value)
    if not validate_email(email):
        raise PydanticCustomError(FORMAT_ERROR, "Invalid email format")
    return email


def _check_date(value: str) -> str:
    date = _not_blank(value).strip()
    if not validate_date(date):
        raise PydanticCustomError(FORMAT_ERROR, INVALID_DATE)
    return date


def _check_key(value: str, info: ValidationInfo) -> str:
    _not_blank(value)
    if not validate_key(value):
        raise PydanticCustomError(
            FORMAT_ERROR,
            "{field} may only contain letters, digits, '_', '.' and '-'",
            {"field": info.field_name},
        )
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Trimmed, tag-stripped, escaped; empty after cleaning counts as missing
CleanText = Annotated[str, AfterValidator(_clean_text)]
# Same cleaning, empty allowed
PlainText = Annotated[str, AfterValidator(sanitize)]
# Kept verbatim (passwords)
Secret = Annotated[str, AfterValidator(_not_blank)]
Email = Annotated[str, AfterValidator(_check_email)]
IsoDate = Annotated[str, AfterValidator(_check_date)]
# Caller-chosen key, stored and echoed exactly as sent
ExternalKey = Annotated[str, Field(max_length=64), AfterValidator(_check_key)]
OptionalKey = Annotated[ExternalKey | None, BeforeValidator(_blank_to_none)]
# Rejects bools, floats and numeric strings
PositiveId = Annotated[int, Field(strict=True, gt=0)]
FileList = Annotated[list[str], AfterValidator(lambda items: [sanitize(i) for i in items])]
LinkList = Annotated[
    list[str], AfterValidator(lambda items: [i.strip() for i in items if i.strip()])
]


class RequestModel(BaseModel):
    """Base for request bodies; unknown keys are ignored."""

    def changes(self) -> dict[str, Any]:
        """Fields sent in the body with a non-null value."""
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


# =============================================================================
# ENVELOPES
# =============================================================================


class SuccessEnvelope(BaseModel):
    """Wrapper for every successful response."""

    success: bool = True
    data: Any = None
    message: str | None = None
    count: int | None = None


class ErrorEnvelope(BaseModel):
    """Wrapper for every failed response."""

    success: bool = False
    message: str


# =============================================================================
# STUDENT SCHEMAS
# =============================================================================


class StudentCreate(RequestModel):
    """Request body for creating a student."""

    student_id: ExternalKey
    name: CleanText
    email: Email
    password: Secret


class StudentUpdate(RequestModel):
    """Partial update; the student is named by student_id."""

    name: CleanText | None = None
    email: Email | None = None


class PasswordChange(RequestModel):
    """Request body for action=change_password."""

    student_id: ExternalKey
    current_password: Secret
    new_password: Secret


class StudentResponse(BaseModel):
    """Response for a student."""

    student_id: str
    name: str
    email: str
    created_at: str

    model_config = {"from_attributes": True}


# =============================================================================
# ASSIGNMENT SCHEMAS
# =============================================================================


class AssignmentCreate(RequestModel):
    """Request body for creating an assignment."""

    title: CleanText
    description: CleanText
    due_date: IsoDate
    files: FileList | None = None


class AssignmentUpdate(RequestModel):
    title: CleanText | None = None
    description: CleanText | None = None
    due_date: IsoDate | None = None
    files: FileList | None = None


class CommentCreate(RequestModel):
    """Fields shared by assignment and week comments."""

    author: CleanText
    text: CleanText


class AssignmentCommentCreate(CommentCreate):
    assignment_id: PositiveId


class AssignmentResponse(BaseModel):
    """Response for an assignment."""

    id: int
    title: str
    description: str
    due_date: str
    files: list[str] = Field(default_factory=list)
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class AssignmentCommentResponse(BaseModel):
    """Response for an assignment comment."""

    id: int
    assignment_id: int
    author: str
    text: str
    created_at: str

    model_config = {"from_attributes": True}


# =============================================================================
# DISCUSSION SCHEMAS
# =============================================================================


class TopicCreate(RequestModel):
    """Request body for a topic; topic_id is generated when absent."""

    topic_id: OptionalKey = None
    subject: CleanText
    message: CleanText
    author: CleanText


class TopicUpdate(RequestModel):
    subject: CleanText | None = None
    message: CleanText | None = None


class ReplyCreate(RequestModel):
    """Request body for a reply; reply_id is generated when absent."""

    reply_id: OptionalKey = None
    topic_id: ExternalKey
    text: CleanText
    author: CleanText


class TopicResponse(BaseModel):
    """Response for a discussion topic."""

    topic_id: str
    subject: str
    message: str
    author: str
    created_at: str

    model_config = {"from_attributes": True}


class ReplyResponse(BaseModel):
    """Response for a reply."""

    reply_id: str
    topic_id: str
    text: str
    author: str
    created_at: str

    model_config = {"from_attributes": True}


# =============================================================================
# WEEKLY SCHEMAS
# =============================================================================


class WeekCreate(RequestModel):
    """Request body for a week; description must be sent but may be empty."""

    title: CleanText
    start_date: IsoDate
    description: PlainText
    links: LinkList | None = None


class WeekUpdate(RequestModel):
    title: CleanText | None = None
    start_date: IsoDate | None = None
    description: PlainText | None = None
    links: LinkList | None = None


class WeekCommentCreate(CommentCreate):
    week_id: PositiveId


class WeekResponse(BaseModel):
    """Response for a week."""

    id: int
    title: str
    start_date: str
    description: str
    links: list[str] = Field(default_factory=list)
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class WeekCommentResponse(BaseModel):
    """Response for a week comment."""

    id: int
    week_id: int
    author: str
    text: str
    created_at: str

    model_config = {"from_attributes": True}


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    database: str = "ok"
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
