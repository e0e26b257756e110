import threading
from typing import Callable

from core.errors import ConflictError, NotFoundError, StaleWriteError
from registration.schemas import Registration
from storage.base import RegistrationStore


class MemoryRegistrationStore(RegistrationStore):
    def __init__(self):
        self._records: dict[str, Registration] = {}
        self._lock = threading.RLock()

    def insert(self, registration: Registration) -> Registration:
        with self._lock:
            self._check_unique(registration, ignore_id=None)
            stored = registration.model_copy(deep=True, update={"version": 1})
            self._write(stored)
            self._records[stored.id] = stored
            return stored.model_copy(deep=True)

    def replace(self, registration: Registration, *, expected_version: int) -> Registration:
        with self._lock:
            current = self._records.get(registration.id)
            if current is None:
                raise NotFoundError(f"Registration {registration.id} not found")
            if current.version != expected_version:
                raise StaleWriteError(
                    f"Registration {registration.registration_id} changed concurrently "
                    f"(expected version {expected_version}, found {current.version})"
                )
            self._check_unique(registration, ignore_id=registration.id)
            stored = registration.model_copy(deep=True, update={"version": expected_version + 1})
            self._write(stored)
            self._records[stored.id] = stored
            return stored.model_copy(deep=True)

    def get(self, record_id: str) -> Registration | None:
        with self._lock:
            record = self._records.get(record_id)
            return record.model_copy(deep=True) if record else None

    def find_by_registration_id(self, registration_id: str) -> Registration | None:
        return self._find(lambda r: r.registration_id == registration_id)

    def find_by_email(self, email: str) -> Registration | None:
        email = email.strip().lower()
        return self._find(lambda r: r.email == email)

    def find_by_session_token(self, session_token: str) -> Registration | None:
        return self._find(lambda r: r.session_token is not None and r.session_token == session_token)

    def list_registrations(self) -> list[Registration]:
        with self._lock:
            records = sorted(self._records.values(), key=lambda r: r.submitted_at, reverse=True)
            return [r.model_copy(deep=True) for r in records]

    def _find(self, predicate: Callable[[Registration], bool]) -> Registration | None:
        with self._lock:
            for record in self._records.values():
                if predicate(record):
                    return record.model_copy(deep=True)
        return None

    def _check_unique(self, candidate: Registration, ignore_id: str | None) -> None:
        for record in self._records.values():
            if record.id == ignore_id:
                continue
            if record.id == candidate.id:
                raise ConflictError("Record id already exists", field="id")
            if record.registration_id == candidate.registration_id:
                raise ConflictError("Registration ID already exists", field="registration_id")
            if record.email == candidate.email:
                raise ConflictError("Email already registered", field="email")
            if candidate.session_token and record.session_token == candidate.session_token:
                raise ConflictError("Session token already in use", field="session_token")

    def _write(self, record: Registration) -> None:
        """Durability hook, called under the lock before the index is updated."""
