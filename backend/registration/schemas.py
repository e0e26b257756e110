"""
Schemas for candidate registration and the interview session.

Documents are exchanged with clients and stores in camelCase
(``registrationId``, ``interviewData.currentQuestionIndex``); Python code uses
the snake_case attribute names.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, TypedDict
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Registration document
# =============================================================================

class RegistrationStatus(str, Enum):
    """Lifecycle of a registration, in the only order it may advance."""

    PENDING = "pending"
    PROCESSING = "processing"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    INTERVIEWED = "interviewed"

    @property
    def rank(self) -> int:
        return list(RegistrationStatus).index(self)


class QuestionAnswer(_Document):
    question: str = Field(description="The question as asked to the candidate")
    answer: str = Field(default="")
    is_answered: bool = Field(default=False)
    timestamp: Optional[datetime] = Field(default=None, description="When the answer was recorded")


class ResumeData(_Document):
    extracted_text: str = Field(description="Raw text extracted from the uploaded resume")
    summary: str = Field(description="Profile summary shown to interviewers")


class InterviewData(_Document):
    questions: List[QuestionAnswer] = Field(default_factory=list)
    current_question_index: int = Field(default=-1)
    is_completed: bool = Field(default=False)
    started_at: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)


class Registration(_Document):
    id: str = Field(default_factory=lambda: uuid4().hex, description="Internal record id")
    registration_id: str = Field(description="Externally supplied, unique")
    session_token: Optional[str] = Field(default=None, description="Unique once assigned")
    name: str
    email: str
    resume_data: ResumeData
    interview_data: InterviewData = Field(default_factory=InterviewData)
    status: RegistrationStatus = Field(default=RegistrationStatus.PENDING)
    submitted_at: datetime = Field(default_factory=utcnow)
    version: int = Field(default=0, description="Bumped by the store on every write")

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def sanitized(self) -> dict:
        """Client-facing view; never exposes the raw resume text."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"resume_data": {"extracted_text"}, "version": True},
        )


class RegistrationForm(BaseModel):
    """Raw form input, before validation or normalization."""

    name: str = ""
    email: str = ""
    registration_id: str = ""
    extracted_text: str = ""


# =============================================================================
# LangGraph State
# =============================================================================

class PipelineState(TypedDict):
    """
    State threaded through the registration pipeline.

    Nodes never mutate it; each returns a partial update that the graph
    merges into the next value. It only lives for one request.
    """
    # Input
    name: str
    email: str
    registration_id: str
    extracted_text: str

    # Validator
    validation_ok: bool
    session_token: str

    # Summarizer
    summary_text: str

    # Question catalog
    questions: List[str]

    # Persistence
    registration: Optional[dict]  # Registration.to_document()

    # Failure slot
    error: Optional[str]
    error_code: Optional[str]
