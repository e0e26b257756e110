import logging
from typing import TYPE_CHECKING, Any

from core.errors import ConflictError, PersistenceError
from registration.agents.resume_summarizer import compact_summary
from registration.agents.validator import new_session_token
from registration.schemas import (
    InterviewData,
    PipelineState,
    QuestionAnswer,
    Registration,
    RegistrationStatus,
    ResumeData,
)

if TYPE_CHECKING:
    from storage.base import RegistrationStore

logger = logging.getLogger(__name__)

_CONFLICT_CODES = {
    "registration_id": "duplicate_id",
    "email": "duplicate_email",
}


def build_registration(state: PipelineState, session_token: str) -> Registration:
    extracted_text = state.get("extracted_text") or ""
    return Registration(
        registration_id=state["registration_id"],
        session_token=session_token,
        name=state["name"],
        email=state["email"],
        status=RegistrationStatus.PROCESSING,
        resume_data=ResumeData(
            extracted_text=extracted_text,
            summary=state.get("summary_text") or compact_summary(extracted_text),
        ),
        interview_data=InterviewData(
            questions=[QuestionAnswer(question=q) for q in state.get("questions") or []],
        ),
    )


def persist_stage(state: PipelineState, store: "RegistrationStore") -> dict[str, Any]:
    if not state.get("validation_ok"):
        return {}

    session_token = state.get("session_token") or new_session_token()
    registration = build_registration(state, session_token)

    try:
        stored = store.insert(registration)
    except ConflictError as e:
        # lost the race against a concurrent registration after validation
        logger.warning("Registration %s conflicted on insert: %s", registration.registration_id, e)
        return {
            "session_token": session_token,
            "registration": None,
            "error": e.message,
            "error_code": _CONFLICT_CODES.get(e.field, "conflict"),
        }
    except PersistenceError as e:
        logger.error("Registration %s could not be stored: %s", registration.registration_id, e)
        return {
            "session_token": session_token,
            "registration": None,
            "error": e.message,
            "error_code": "persistence_failed",
        }

    return {"session_token": session_token, "registration": stored.to_document()}
