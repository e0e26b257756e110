"""
Registration Agents

The four stages of the registration pipeline, in execution order.
"""

from .validator import validate_registration
from .resume_summarizer import summarize_stage
from .question_catalog import question_catalog_stage
from .persistence import persist_stage

__all__ = [
    "validate_registration",
    "summarize_stage",
    "question_catalog_stage",
    "persist_stage",
]
