"""Prompt lookup backed by Langfuse prompt management.

Prompts live in Langfuse under names such as ``registration/resume-summary-system``.
When Langfuse is not configured, or a prompt is missing there, the local
fallback template shipped with the calling module is rendered instead, so the
service never depends on Langfuse being reachable.
"""

import logging
import re
from functools import lru_cache
from typing import Any

from core.clients import get_langfuse_client

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


@lru_cache(maxsize=1)
def _langfuse():
    return get_langfuse_client()


@lru_cache(maxsize=64)
def _fetch(name: str, label: str) -> Any | None:
    client = _langfuse()
    if client is None:
        return None
    try:
        prompt = client.get_prompt(name, label=label, type="text")
        logger.info("Prompt '%s' fetched from Langfuse (version=%s)", name, prompt.version)
        return prompt
    except Exception as e:
        logger.warning("Langfuse prompt '%s' unavailable (%s), using fallback", name, e)
        return None


def get_prompt(name: str, *, fallback: str, label: str = "production", **variables) -> str:
    prompt = _fetch(name, label)
    if prompt is not None:
        try:
            return prompt.compile(**variables)
        except Exception as e:
            logger.warning("Langfuse prompt '%s' failed to compile (%s), using fallback", name, e)
    return render_template(fallback, variables)


def get_langfuse_prompt(name: str, *, label: str = "production") -> Any | None:
    """Prompt object to link generations to in traces, or None."""
    return _fetch(name, label)


def render_template(template: str, variables: dict) -> str:
    def _sub(match: re.Match) -> str:
        key = match.group(1)
        if key not in variables:
            return match.group(0)
        return str(variables[key])

    return _PLACEHOLDER.sub(_sub, template)
