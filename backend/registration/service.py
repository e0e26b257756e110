import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.errors import ConflictError, PersistenceError, ValidationError
from registration.pipeline import run_registration_pipeline
from registration.schemas import Registration, RegistrationForm

if TYPE_CHECKING:
    from core.llm import LLMGateway
    from storage.base import RegistrationStore

logger = logging.getLogger(__name__)

_CONFLICT_CODES = {"duplicate_id", "duplicate_email", "conflict"}


@dataclass(frozen=True)
class RegistrationOutcome:
    registration: Registration
    session_token: str
    summary: str


def register_candidate(
    form: RegistrationForm,
    *,
    store: "RegistrationStore",
    gateway: "LLMGateway",
) -> RegistrationOutcome:
    """Run the pipeline and turn its terminal state into a result or an error.

    The pipeline result is authoritative: when it did not persist a record,
    nothing here writes one on its behalf.
    """
    state = run_registration_pipeline(form, store=store, gateway=gateway)

    if state.get("error"):
        message = state["error"]
        code = state.get("error_code")
        if code in _CONFLICT_CODES:
            raise ConflictError(message, code=code)
        if code == "persistence_failed":
            raise PersistenceError(message, code=code)
        raise ValidationError(message, code=code)

    if not state.get("registration"):
        raise PersistenceError("Registration failed to persist", code="persistence_failed")

    registration = Registration.model_validate(state["registration"])
    logger.info("New registration %s created (record %s)", registration.registration_id, registration.id)
    return RegistrationOutcome(
        registration=registration,
        session_token=state["session_token"],
        summary=state["summary_text"],
    )
