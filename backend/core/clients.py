import logging
import os
from functools import lru_cache

from core.config import LLM_TIMEOUT_SECONDS, get_secret, lm_api_key, lm_studio_base_url

logger = logging.getLogger(__name__)


@lru_cache
def get_gemini_client():
    from google import genai

    api_key = get_secret("gemini-api-key", "GEMINI_API_KEY")
    if api_key:
        return genai.Client(api_key=api_key)
    return genai.Client()


@lru_cache
def get_openai_client():
    """OpenAI SDK pointed at the LM Studio (or other compatible) server."""
    from openai import OpenAI

    return OpenAI(
        base_url=lm_studio_base_url(),
        api_key=lm_api_key(),
        timeout=LLM_TIMEOUT_SECONDS,
        max_retries=0,
    )


def get_langfuse_client():
    """Langfuse client when both keys are configured, else None."""
    public_key = os.getenv("LANGFUSE_PUBLIC_KEY")
    secret_key = get_secret("langfuse-secret-key", "LANGFUSE_SECRET_KEY") if public_key else None
    if not public_key or not secret_key:
        return None

    try:
        from langfuse import Langfuse

        return Langfuse(
            public_key=public_key,
            secret_key=secret_key,
            host=os.getenv("LANGFUSE_HOST", "http://localhost:3333"),
        )
    except Exception as e:
        logger.warning("Langfuse disabled, client failed to start: %s", e)
        return None
