"""
Session resolution.

Clients refer to an interview either by the session token issued at
registration or by their registration id, depending on when they obtained
their reference. Both are modelled as explicit key types and tried in the
order given, token first.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Collection, Iterable, Union

from core.errors import ConflictError, NotFoundError
from registration.schemas import Registration, RegistrationStatus

if TYPE_CHECKING:
    from storage.base import RegistrationStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Token:
    value: str


@dataclass(frozen=True)
class RegistrationId:
    value: str


SessionKey = Union[Token, RegistrationId]


def session_keys(*, session_token: str | None = None, registration_id: str | None = None) -> list[SessionKey]:
    keys: list[SessionKey] = []
    if session_token:
        keys.append(Token(session_token))
    if registration_id:
        keys.append(RegistrationId(registration_id))
    return keys


def lookup(store: "RegistrationStore", keys: Iterable[SessionKey]) -> tuple[Registration, SessionKey] | None:
    for key in keys:
        if isinstance(key, Token):
            record = store.find_by_session_token(key.value)
        else:
            record = store.find_by_registration_id(key.value)
        if record is not None:
            return record, key
    return None


def resolve_session(
    store: "RegistrationStore",
    keys: Iterable[SessionKey],
    *,
    statuses: Collection[RegistrationStatus] | None = None,
) -> Registration:
    """Locate the registration for ``keys`` or raise NotFoundError.

    A record found by registration id that has no session token yet gets one
    backfilled with the registration id that matched.
    """
    keys = list(keys)
    found = lookup(store, keys)
    if found is None:
        raise NotFoundError("Registration not found")

    record, matched = found
    if statuses is not None and record.status not in statuses:
        raise NotFoundError("Session not found or expired")

    if isinstance(matched, RegistrationId) and not record.session_token:
        record = _backfill_token(store, record, matched.value)

    return record


def _backfill_token(store: "RegistrationStore", record: Registration, token: str) -> Registration:
    updated = record.model_copy(update={"session_token": token})
    try:
        return store.replace(updated, expected_version=record.version)
    except ConflictError as e:
        # another writer got there first or the token is taken; serve the record as-is
        logger.warning("Session token backfill skipped for %s: %s", record.registration_id, e)
        return record
