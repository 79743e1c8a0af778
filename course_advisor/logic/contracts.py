"""
Data Contracts for the Course Advisor

Defines Pydantic models for Criteria (extracted search state), Course
(catalog entry), ScoredCourse (rule engine output) and the conversation and
reply shapes exchanged with the store and the presentation layer.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import (
    CourseType,
    Difficulty,
    IntentType,
    MessageRole,
    MessageType,
    FACULTIES,
    TEACHERS,
    DEFAULT_CONVERSATION_TITLE,
)
from .errors import InvalidCriteria

logger = logging.getLogger(__name__)


def new_conversation_id() -> str:
    return f"conv_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def new_message_id() -> str:
    return f"msg_{uuid.uuid4().hex}"


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, the form the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =============================================================================
# CRITERIA
# =============================================================================

class Criteria(BaseModel):
    """
    Structured, partially-specified course search accumulated over a
    conversation. Every field is optional; an empty Criteria asks for the
    default popularity ranking.
    """
    course_type: Optional[CourseType] = Field(default=None, alias="courseType")
    credits: Optional[float] = Field(default=None, gt=0)
    keywords: List[str] = Field(default_factory=list)
    difficulty: Optional[Difficulty] = None
    faculty: Optional[str] = None
    teacher: Optional[str] = None

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("course_type", mode="before")
    @classmethod
    def _upper_course_type(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("difficulty", mode="before")
    @classmethod
    def _lower_difficulty(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("keywords", mode="before")
    @classmethod
    def _ordered_unique_keywords(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return value
        seen = []
        for keyword in value:
            if not isinstance(keyword, str):
                raise ValueError("keywords must be strings")
            keyword = keyword.strip()
            if keyword and keyword not in seen:
                seen.append(keyword)
        return seen

    @field_validator("faculty")
    @classmethod
    def _known_faculty(cls, value):
        if value is not None and value not in FACULTIES:
            raise ValueError(f"unknown faculty: {value}")
        return value

    @field_validator("teacher")
    @classmethod
    def _known_teacher(cls, value):
        if value is not None and value not in TEACHERS:
            raise ValueError(f"unknown teacher: {value}")
        return value

    def is_empty(self) -> bool:
        return not (
            self.course_type
            or self.credits
            or self.keywords
            or self.difficulty
            or self.faculty
            or self.teacher
        )

    def set_fields(self) -> List[str]:
        """Names of the fields carrying a value, in declaration order."""
        return [
            name for name in type(self).model_fields
            if getattr(self, name) not in (None, [])
        ]

    def to_context(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_untrusted(cls, data: Optional[Dict[str, Any]]) -> "Criteria":
        """
        Build Criteria from loosely-typed input (LLM output, stored JSON,
        request bodies). Each field is validated on its own; a malformed field
        is dropped rather than failing the whole object.
        """
        if not data:
            return cls()

        accepted: Dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            key = field.alias or name
            raw = data.get(key, data.get(name))
            if raw is None or raw == "" or raw == []:
                continue
            try:
                candidate = cls.model_validate({key: raw})
            except ValidationError as exc:
                error = InvalidCriteria(key, raw, exc.errors()[0]["msg"])
                logger.warning(f"⚠️ Dropping criteria field: {error}")
                continue
            accepted[name] = getattr(candidate, name)

        return cls(**accepted)


# =============================================================================
# CATALOG
# =============================================================================

class Course(BaseModel):
    """Read-only catalog entry."""
    id: int
    code: str
    name: str
    credits: float
    type: CourseType
    faculty_name: Optional[str] = Field(default=None, alias="facultyName")
    teacher_name: Optional[str] = Field(default=None, alias="teacherName")
    description: Optional[str] = None
    average_rating: Optional[float] = Field(default=None, ge=0.0, le=5.0, alias="averageRating")
    review_count: Optional[int] = Field(default=None, ge=0, alias="reviewCount")

    class Config:
        populate_by_name = True
        frozen = True

    def search_text(self) -> str:
        """Composite lowercase text used for keyword containment."""
        return " ".join([
            self.name,
            self.code,
            self.description or "",
            self.faculty_name or "",
            self.teacher_name or "",
        ]).lower()


class ScoredCourse(BaseModel):
    """
    A course with its computed score. Transient, produced per request.
    """
    course: Course
    match_score: float = Field(ge=0.0, le=100.0)
    raw_score: float = 0.0
    dimension_scores: Dict[str, float] = Field(default_factory=dict)
    reason: str = ""


# =============================================================================
# STRATEGY RESULTS
# =============================================================================

class ExtractionResult(BaseModel):
    delta: Criteria = Field(default_factory=Criteria)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    need_more_info: bool = False
    clarifying_question: Optional[str] = None
    intent: IntentType = IntentType.NEW_QUERY
    # course names the user referred to (detail and compare requests)
    course_refs: List[str] = Field(default_factory=list)
    source: str = "keyword"


class Narrative(BaseModel):
    greeting: str
    reasons: Dict[int, str] = Field(default_factory=dict)
    suggestion: str = ""
    source: str = "template"


# =============================================================================
# CONVERSATION & REPLY
# =============================================================================

class CourseRecommendation(BaseModel):
    """Course as shown to the user, with the reason it was picked."""
    id: int
    code: str
    name: str
    credits: float
    type: CourseType
    faculty_name: Optional[str] = Field(default=None, alias="facultyName")
    teacher_name: Optional[str] = Field(default=None, alias="teacherName")
    average_rating: Optional[float] = Field(default=None, alias="averageRating")
    review_count: Optional[int] = Field(default=None, alias="reviewCount")
    match_score: float = Field(default=0.0, alias="matchScore")
    reason: str = ""

    class Config:
        populate_by_name = True

    @classmethod
    def from_scored(cls, scored: ScoredCourse, reason: Optional[str] = None) -> "CourseRecommendation":
        course = scored.course
        return cls(
            id=course.id,
            code=course.code,
            name=course.name,
            credits=course.credits,
            type=course.type,
            faculty_name=course.faculty_name,
            teacher_name=course.teacher_name,
            average_rating=course.average_rating,
            review_count=course.review_count,
            match_score=scored.match_score,
            reason=reason if reason is not None else scored.reason,
        )


class Message(BaseModel):
    id: str = Field(default_factory=new_message_id)
    role: MessageRole
    content: str
    type: MessageType = MessageType.TEXT
    courses: Optional[List[CourseRecommendation]] = None
    timestamp: datetime = Field(default_factory=utc_now)

    class Config:
        populate_by_name = True
        frozen = True


class Conversation(BaseModel):
    id: str
    user_id: str = Field(alias="userId")
    title: str = DEFAULT_CONVERSATION_TITLE
    messages: List[Message] = Field(default_factory=list)
    criteria: Criteria = Field(default_factory=Criteria)
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    class Config:
        populate_by_name = True

    def has_user_message(self) -> bool:
        return any(m.role == MessageRole.USER for m in self.messages)

    def last_recommended(self) -> List[CourseRecommendation]:
        """Courses of the most recent recommendation reply, or an empty list."""
        for message in reversed(self.messages):
            if message.type == MessageType.RECOMMENDATION and message.courses:
                return list(message.courses)
        return []


class ConversationSummary(BaseModel):
    id: str
    title: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    class Config:
        populate_by_name = True


class ChatReply(BaseModel):
    """Reply returned to the presentation layer for one turn."""
    type: MessageType
    content: str
    courses: Optional[List[CourseRecommendation]] = None
    updated_context: Criteria = Field(default_factory=Criteria, alias="updatedContext")
    conversation_id: str = Field(alias="conversationId")

    class Config:
        populate_by_name = True
