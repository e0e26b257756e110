import logging
import re
from typing import Any

from core.errors import UpstreamUnavailable
from core.llm import LLMGateway, strip_code_fences
from core.prompt_manager import get_langfuse_prompt
from registration.prompts import get_resume_summary_system, get_resume_summary_user
from registration.schemas import PipelineState

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "Resume submitted. Summary unavailable."
SUMMARY_CHAR_LIMIT = 400

_WHITESPACE = re.compile(r"\s+")


def compact_summary(text: str) -> str:
    """Deterministic summary used whenever the LLM cannot provide one."""
    compact = _WHITESPACE.sub(" ", text or "").strip()
    if not compact:
        return FALLBACK_SUMMARY
    if len(compact) > SUMMARY_CHAR_LIMIT:
        return compact[:SUMMARY_CHAR_LIMIT] + "…"
    return compact


def summarize_resume(resume_text: str, gateway: LLMGateway) -> str:
    messages = [
        {"role": "system", "content": get_resume_summary_system()},
        {"role": "user", "content": get_resume_summary_user(resume_text=resume_text)},
    ]
    reply = gateway.chat(
        messages,
        temperature=0.2,
        name="resume_summarizer",
        prompt=get_langfuse_prompt("registration/resume-summary-system"),
    )
    return strip_code_fences(str(reply))


def summarize_stage(state: PipelineState, gateway: LLMGateway) -> dict[str, Any]:
    if not state.get("validation_ok"):
        return {}

    raw = state.get("extracted_text") or ""
    summary = ""
    if raw.strip():
        try:
            summary = summarize_resume(raw, gateway)
        except UpstreamUnavailable as e:
            logger.warning("LLM summary unavailable, compacting resume text instead: %s", e)
        except Exception:
            # a summary is never worth failing a registration over
            logger.exception("Resume summarizer failed, compacting resume text instead")

    if not summary:
        summary = compact_summary(raw)

    return {"summary_text": summary}
