from core.prompt_manager import get_prompt

_FALLBACK_YES_NO_SYSTEM = (
    "You are a precise intent classifier. Given a short user reply, classify it as yes, no, "
    'or unclear. Output STRICT JSON with fields: label ("yes"|"no"|"unclear"), confidence (0-1).'
)

_FALLBACK_YES_NO_USER = (
    "Classify the intent of the following reply strictly into yes/no/unclear. Return JSON only.\n"
    'Reply: "{{reply}}"'
)


def get_yes_no_system() -> str:
    return get_prompt("interview/yes-no-system", fallback=_FALLBACK_YES_NO_SYSTEM)


def get_yes_no_user(*, reply: str) -> str:
    return get_prompt("interview/yes-no-user", fallback=_FALLBACK_YES_NO_USER, reply=reply)


FALLBACK_PROMPTS = {
    "interview/yes-no-system": _FALLBACK_YES_NO_SYSTEM,
    "interview/yes-no-user": _FALLBACK_YES_NO_USER,
}
