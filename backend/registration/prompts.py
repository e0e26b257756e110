from core.prompt_manager import get_prompt

_FALLBACK_RESUME_SUMMARY_SYSTEM = (
    "You are an expert resume summarizer. Output a concise paragraph (60-120 words) "
    "summarizing the candidate profile. No markdown."
)

_FALLBACK_RESUME_SUMMARY_USER = """Summarize the following resume text. Focus on years of experience, key skills/technologies, notable roles/achievements, and education if present. Avoid bullet points and keep it objective.

RESUME TEXT START
{{resume_text}}
RESUME TEXT END"""


def get_resume_summary_system() -> str:
    return get_prompt(
        "registration/resume-summary-system",
        fallback=_FALLBACK_RESUME_SUMMARY_SYSTEM,
    )


def get_resume_summary_user(*, resume_text: str) -> str:
    return get_prompt(
        "registration/resume-summary-user",
        fallback=_FALLBACK_RESUME_SUMMARY_USER,
        resume_text=resume_text,
    )


FALLBACK_PROMPTS = {
    "registration/resume-summary-system": _FALLBACK_RESUME_SUMMARY_SYSTEM,
    "registration/resume-summary-user": _FALLBACK_RESUME_SUMMARY_USER,
}
