"""
Yes/No intent classification for spoken or typed candidate replies.

The LLM is asked for strict JSON; whenever it is unreachable or answers with
something unparseable, a phrase heuristic decides instead, so callers always
get a label.
"""

import json
import logging
import math
import re
from typing import TYPE_CHECKING, Any

from core.errors import UpstreamUnavailable, ValidationError
from core.llm import strip_code_fences
from core.prompt_manager import get_langfuse_prompt
from interview.prompts import get_yes_no_system, get_yes_no_user

if TYPE_CHECKING:
    from core.llm import LLMGateway

logger = logging.getLogger(__name__)

LABELS = ("yes", "no", "unclear")

AFFIRMATIVE_PHRASES = (
    "yes", "y", "yep", "yeah", "yah", "ya", "yup", "sure", "definitely", "of course",
    "absolutely", "certainly", "correct", "right", "ok", "okay", "k", "mmhmm", "mhm",
    "uh-huh", "affirmative", "interested", "count me in", "sounds good", "proceed",
    "go ahead", "let's do it", "indeed", "aye", "si", "alright", "all right", "roger",
    "10-4", "positive", "keen",
)

NEGATIVE_PHRASES = (
    "no", "n", "nope", "nah", "nay", "not really", "don't", "do not", "no thanks",
    "not interested", "negative", "pass", "skip", "rather not", "not now", "maybe later",
    "i'm fine", "i am fine", "not today", "decline", "hard pass", "no way",
)


def _phrase_pattern(phrases: tuple[str, ...]) -> re.Pattern:
    # longest first so "not interested" wins over "interested"
    ordered = sorted(phrases, key=len, reverse=True)
    return re.compile(r"(?<![\w'-])(?:" + "|".join(re.escape(p) for p in ordered) + r")(?![\w'-])")


_AFFIRMATIVE = _phrase_pattern(AFFIRMATIVE_PHRASES)
_NEGATIVE = _phrase_pattern(NEGATIVE_PHRASES)


def heuristic_yes_no(text: str) -> dict[str, Any]:
    lowered = text.lower()
    negative = bool(_NEGATIVE.search(lowered))
    affirmative = bool(_AFFIRMATIVE.search(_NEGATIVE.sub(" ", lowered)))

    if affirmative and not negative:
        label = "yes"
    elif negative and not affirmative:
        label = "no"
    else:
        label = "unclear"
    return {"label": label, "confidence": 0.5 if label == "unclear" else 0.9}


def parse_classification(reply: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(strip_code_fences(reply))
    except (TypeError, ValueError):
        return None
    if not isinstance(parsed, dict) or not parsed.get("label"):
        return None

    label = str(parsed["label"]).strip().lower()
    if label not in LABELS:
        label = "unclear"
    try:
        confidence = float(parsed.get("confidence") or 0)
    except (TypeError, ValueError):
        confidence = 0.0
    if math.isnan(confidence):
        confidence = 0.0
    return {"label": label, "confidence": max(0.0, min(1.0, confidence))}


def classify_yes_no(text: str | None, gateway: "LLMGateway") -> dict[str, Any]:
    text = (text or "").strip()
    if not text:
        raise ValidationError("text is required")

    messages = [
        {"role": "system", "content": get_yes_no_system()},
        {"role": "user", "content": get_yes_no_user(reply=text)},
    ]
    try:
        reply = gateway.chat(
            messages,
            temperature=0.0,
            max_tokens=200,
            name="yes_no_classifier",
            prompt=get_langfuse_prompt("interview/yes-no-system"),
        )
        classification = parse_classification(reply)
    except UpstreamUnavailable as e:
        logger.info("Yes/no classifier falling back to heuristic: %s", e)
        classification = None

    if classification is None:
        classification = heuristic_yes_no(text)
    return classification
