from typing import TYPE_CHECKING

from core.errors import InvalidStatusError, NotFoundError
from interview.state_machine import update_with_retry
from registration.schemas import Registration, RegistrationStatus

if TYPE_CHECKING:
    from storage.base import RegistrationStore

_STATUS_VALUES = [s.value for s in RegistrationStatus]
_VALID_STATUSES = ", ".join(_STATUS_VALUES[:-1]) + f", or {_STATUS_VALUES[-1]}"


def list_registrations(store: "RegistrationStore") -> list[dict]:
    return [record.sanitized() for record in store.list_registrations()]


def _load(store: "RegistrationStore", record_id: str) -> Registration:
    record = store.get(record_id)
    if record is None:
        raise NotFoundError("Registration not found")
    return record


def get_registration(store: "RegistrationStore", record_id: str) -> dict:
    return _load(store, record_id).sanitized()


def parse_status(value: str | None) -> RegistrationStatus:
    try:
        return RegistrationStatus(value)
    except ValueError:
        raise InvalidStatusError(f"Valid status is required: {_VALID_STATUSES}")


def update_status(store: "RegistrationStore", record_id: str, status: str | None) -> dict:
    """Administrative override; the only way a record becomes ``interviewed``."""
    target = parse_status(status)

    def _set(record: Registration, now) -> None:
        record.status = target

    record, _ = update_with_retry(store, lambda: _load(store, record_id), _set)
    return record.sanitized()
