"""
Registration Pipeline Module

LangGraph-based pipeline turning a submitted form into a stored,
summarized registration with its interview questions seeded.

Pipeline Flow:
1. Validator - Required fields, email format, uniqueness; issues the session token
2. Resume Summarizer - LLM summary with a deterministic fallback
3. Question Catalog - Seeds the fixed interview questions
4. Persistence - Atomic insert of the registration document
"""

from .pipeline import run_registration_pipeline
from .schemas import (
    PipelineState,
    QuestionAnswer,
    Registration,
    RegistrationForm,
    RegistrationStatus,
)
from .service import RegistrationOutcome, register_candidate

__all__ = [
    "run_registration_pipeline",
    "register_candidate",
    "RegistrationOutcome",
    "PipelineState",
    "QuestionAnswer",
    "Registration",
    "RegistrationForm",
    "RegistrationStatus",
]
