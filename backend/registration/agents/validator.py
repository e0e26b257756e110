import logging
import re
import secrets
from typing import TYPE_CHECKING, Any

from registration.schemas import PipelineState

if TYPE_CHECKING:
    from storage.base import RegistrationStore

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]{2,}$")
MISSING_FIELDS_MESSAGE = "All fields are required: name, email, registrationId"


def new_session_token() -> str:
    # 128 bits of entropy
    return f"session_{secrets.token_hex(16)}"


def validate_registration(state: PipelineState, store: "RegistrationStore") -> dict[str, Any]:
    name = (state.get("name") or "").strip()
    email = (state.get("email") or "").strip().lower()
    registration_id = (state.get("registration_id") or "").strip()

    if not name or not email or not registration_id:
        return _reject("missing_fields", MISSING_FIELDS_MESSAGE)

    if not EMAIL_PATTERN.match(email):
        return _reject("invalid_email", "Please enter a valid email")

    if store.find_by_registration_id(registration_id) is not None:
        return _reject("duplicate_id", "Registration ID already exists")

    if store.find_by_email(email) is not None:
        return _reject("duplicate_email", "Email already registered")

    return {
        "name": name,
        "email": email,
        "registration_id": registration_id,
        "session_token": new_session_token(),
        "validation_ok": True,
        "error": None,
        "error_code": None,
    }


def _reject(code: str, message: str) -> dict[str, Any]:
    logger.info("Registration rejected (%s): %s", code, message)
    return {"validation_ok": False, "error": message, "error_code": code}
