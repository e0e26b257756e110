"""
Interview State Machine

Status flow: pending -> processing -> in_progress -> completed, plus the
out-of-band ``interviewed`` set by administrators. Start, Answer,
Next-Question and Complete all promote a record through ``begin_interview``
so the processing -> in_progress rule lives in one place.

Every mutation is a read-modify-write against one document guarded by the
store's compare-and-swap on ``version``; a lost race re-reads and reapplies
the change instead of overwriting the other writer.
"""

import logging
import math
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Iterable, TypeVar

from core.errors import ConcurrentUpdateError, InvalidQuestionIndex, NotFoundError, StaleWriteError
from interview.session import SessionKey, resolve_session, session_keys
from registration.questions import interview_questions
from registration.schemas import QuestionAnswer, Registration, RegistrationStatus, utcnow

if TYPE_CHECKING:
    from storage.base import RegistrationStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_UPDATE_ATTEMPTS = 5

# answers may extend the catalog with follow-ups and placeholders, up to this many entries
MAX_QUESTIONS = 50

ACTIVE_STATUSES = frozenset(
    {RegistrationStatus.PROCESSING, RegistrationStatus.IN_PROGRESS, RegistrationStatus.COMPLETED}
)

COMPLETED_MESSAGE = "Interview completed successfully"


# =============================================================================
# Transitions
# =============================================================================

def advance_status(record: Registration, target: RegistrationStatus) -> None:
    """Move ``record`` to ``target`` unless it is already at or past it."""
    if target.rank > record.status.rank:
        record.status = target


def begin_interview(record: Registration, now: datetime) -> None:
    if record.status == RegistrationStatus.PROCESSING:
        record.status = RegistrationStatus.IN_PROGRESS
    if record.interview_data.started_at is None:
        record.interview_data.started_at = now


def mark_completed(record: Registration, now: datetime) -> None:
    begin_interview(record, now)
    record.interview_data.is_completed = True
    record.interview_data.completed_at = now
    advance_status(record, RegistrationStatus.COMPLETED)


def placeholder_label(index: int) -> str:
    return f"Question {index + 1}"


def resolve_question_index(question_index: Any, current_index: int, limit: int = MAX_QUESTIONS) -> int:
    """Explicit numeric index if one was sent, else the current question.

    Indexes past ``limit`` are rejected along with negative and fractional ones.
    """
    if question_index is None or isinstance(question_index, bool):
        index = current_index
    elif isinstance(question_index, int):
        index = question_index
    elif isinstance(question_index, float):
        if math.isnan(question_index):
            index = current_index
        elif not question_index.is_integer():
            raise InvalidQuestionIndex("Invalid question index")
        else:
            index = int(question_index)
    else:
        index = current_index

    if index < 0 or index >= limit:
        raise InvalidQuestionIndex("Invalid question index")
    return index


# =============================================================================
# Conditional updates
# =============================================================================

def update_with_retry(
    store: "RegistrationStore",
    load: Callable[[], Registration],
    mutate: Callable[[Registration, datetime], T],
) -> tuple[Registration, T]:
    """Apply ``mutate`` to a fresh copy and write it back if anything changed."""
    for attempt in range(1, MAX_UPDATE_ATTEMPTS + 1):
        current = load()
        working = current.model_copy(deep=True)
        result = mutate(working, utcnow())

        if working == current:
            return current, result

        try:
            return store.replace(working, expected_version=current.version), result
        except StaleWriteError:
            logger.info(
                "Registration %s changed underneath us, retrying (%d/%d)",
                current.registration_id,
                attempt,
                MAX_UPDATE_ATTEMPTS,
            )

    raise ConcurrentUpdateError("Registration is being updated concurrently, try again")


def apply_update(
    store: "RegistrationStore",
    keys: Iterable[SessionKey],
    mutate: Callable[[Registration, datetime], T],
) -> tuple[Registration, T]:
    keys = list(keys)
    return update_with_retry(store, lambda: resolve_session(store, keys), mutate)


# =============================================================================
# Operations
# =============================================================================

def start_interview(store: "RegistrationStore", keys: Iterable[SessionKey]) -> dict:
    def _start(record: Registration, now: datetime) -> None:
        if record.interview_data.started_at is None:
            begin_interview(record, now)

    record, _ = apply_update(store, keys, _start)
    return {
        "registrationId": record.registration_id,
        "startedAt": record.interview_data.started_at,
        "status": record.status.value,
    }


def submit_answer(
    store: "RegistrationStore",
    keys: Iterable[SessionKey],
    *,
    answer: str | None,
    question_index: Any = None,
    question_text: str | None = None,
) -> dict:
    def _answer(record: Registration, now: datetime) -> int:
        data = record.interview_data
        index = resolve_question_index(question_index, data.current_question_index)

        while len(data.questions) < index:
            data.questions.append(QuestionAnswer(question=placeholder_label(len(data.questions))))
        if len(data.questions) == index:
            data.questions.append(
                QuestionAnswer(question=question_text or placeholder_label(index), timestamp=now)
            )

        if data.current_question_index < index:
            data.current_question_index = index

        begin_interview(record, now)

        entry = data.questions[index]
        entry.answer = answer or ""
        entry.is_answered = True
        entry.timestamp = now
        return index

    _, index = apply_update(store, keys, _answer)
    return {"nextQuestionIndex": index + 1}


def next_question(store: "RegistrationStore", keys: Iterable[SessionKey]) -> dict:
    catalog = interview_questions()

    def _next(record: Registration, now: datetime) -> dict:
        data = record.interview_data
        if data.is_completed:
            return {"interviewCompleted": True, "message": COMPLETED_MESSAGE}

        begin_interview(record, now)

        # next follows currentQuestionIndex, not len(questions): questions are seeded from the catalog
        next_index = data.current_question_index + 1
        if next_index >= len(catalog):
            mark_completed(record, now)
            return {"interviewCompleted": True, "message": COMPLETED_MESSAGE}

        while len(data.questions) <= next_index:
            data.questions.append(QuestionAnswer(question=catalog[len(data.questions)]))
        data.current_question_index = next_index

        return {
            "questionId": next_index,
            "question": data.questions[next_index].question,
            "isLastQuestion": next_index == len(catalog) - 1,
        }

    _, result = apply_update(store, keys, _next)
    return result


def complete_interview(store: "RegistrationStore", keys: Iterable[SessionKey]) -> dict:
    def _complete(record: Registration, now: datetime) -> bool:
        if record.interview_data.is_completed:
            return True
        mark_completed(record, now)
        return False

    record, already_completed = apply_update(store, keys, _complete)
    return {
        "alreadyCompleted": already_completed,
        "registrationId": record.registration_id,
        "completedAt": record.interview_data.completed_at,
        "startedAt": record.interview_data.started_at,
        "status": record.status.value,
    }


def get_session(store: "RegistrationStore", token: str) -> dict:
    """Sanitized record plus the question currently being asked."""
    keys = session_keys(session_token=token, registration_id=token)
    try:
        record = resolve_session(store, keys, statuses=ACTIVE_STATUSES)
    except NotFoundError as e:
        raise NotFoundError("Session not found or expired") from e

    payload = record.sanitized()
    questions = payload["interviewData"]["questions"]
    index = record.interview_data.current_question_index
    payload["currentQuestion"] = questions[index] if 0 <= index < len(questions) else None
    return payload
