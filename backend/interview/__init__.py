"""
Interview Session Module

Resolves a candidate's session from a token or registration id and drives the
interview through start, answers, next question and completion. Every change
is a conditional write against the registration document.
"""

from .session import RegistrationId, SessionKey, Token, resolve_session, session_keys
from .state_machine import (
    complete_interview,
    get_session,
    next_question,
    start_interview,
    submit_answer,
)

__all__ = [
    "RegistrationId",
    "SessionKey",
    "Token",
    "resolve_session",
    "session_keys",
    "complete_interview",
    "get_session",
    "next_question",
    "start_interview",
    "submit_answer",
]
