from abc import ABC, abstractmethod

from registration.schemas import Registration


class RegistrationStore(ABC):
    """Store contract for registration documents.

    ``insert`` must be an atomic insert-or-fail over every unique key
    (record id, registrationId, email, sessionToken) and ``replace`` an atomic
    compare-and-swap on ``version``. Callers never run a separate existence
    check to guard a write.
    """

    @abstractmethod
    def insert(self, registration: Registration) -> Registration:
        """Store a new document with ``version=1``; ConflictError on any duplicate key."""

    @abstractmethod
    def replace(self, registration: Registration, *, expected_version: int) -> Registration:
        """Overwrite a document; StaleWriteError if its version moved on."""

    @abstractmethod
    def get(self, record_id: str) -> Registration | None: ...

    @abstractmethod
    def find_by_registration_id(self, registration_id: str) -> Registration | None: ...

    @abstractmethod
    def find_by_email(self, email: str) -> Registration | None: ...

    @abstractmethod
    def find_by_session_token(self, session_token: str) -> Registration | None: ...

    @abstractmethod
    def list_registrations(self) -> list[Registration]:
        """All documents, most recently submitted first."""
