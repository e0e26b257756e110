"""
LLM Gateway

Chat-style completions against either an OpenAI-compatible server (LM Studio
by default) or Gemini. Every failure, whether the server is unreachable,
times out or returns something unusable, is raised as
``UpstreamUnavailable`` so callers can apply their own fallback.
"""

import logging
import re

from core import config
from core.clients import get_gemini_client, get_openai_client
from core.errors import UpstreamUnavailable
from observability.tracing import traced_generation

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```(?:\w+)?\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """Drop the markdown fences models like to wrap replies in."""
    text = _FENCE_OPEN.sub("", text.strip())
    return _FENCE_CLOSE.sub("", text).strip()


class LLMGateway:
    def __init__(
        self,
        provider: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
    ):
        self.provider = (provider or config.MODEL_PROVIDER).lower()
        if self.provider not in ("openai", "gemini"):
            raise ValueError(f"Unknown model provider: {self.provider}")
        default_model = config.GEMINI_MODEL if self.provider == "gemini" else config.LM_MODEL
        self.model = model or default_model
        self.max_tokens = max_tokens or config.LLM_MAX_TOKENS

    def chat(
        self,
        messages: list[dict],
        *,
        temperature: float = 0.2,
        max_tokens: int | None = None,
        stop: list[str] | None = None,
        name: str = "chat",
        prompt=None,
    ) -> str:
        logger.debug("[LLM] %s -> %s (%s), %d messages", name, self.provider, self.model, len(messages))

        with traced_generation(name, model=self.model, prompt=prompt, input_data=messages) as gen:
            try:
                if self.provider == "gemini":
                    text = self._gemini_chat(messages, temperature, max_tokens or self.max_tokens, stop)
                else:
                    text = self._openai_chat(messages, temperature, max_tokens or self.max_tokens, stop)
            except UpstreamUnavailable:
                raise
            except Exception as e:
                logger.warning("[LLM] %s request failed: %s", name, e)
                raise UpstreamUnavailable(f"LLM request failed: {e}") from e

            gen.update(output=text)

        return text

    def list_models(self) -> list[str]:
        try:
            if self.provider == "gemini":
                return [m.name for m in get_gemini_client().models.list()]
            return [m.id for m in get_openai_client().models.list().data]
        except Exception as e:
            raise UpstreamUnavailable(f"LLM server unreachable: {e}") from e

    def _openai_chat(self, messages, temperature, max_tokens, stop) -> str:
        kwargs = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": False,
        }
        if stop:
            kwargs["stop"] = stop

        response = get_openai_client().chat.completions.create(**kwargs)
        if not response.choices:
            raise UpstreamUnavailable("LLM response contained no choices")

        content = response.choices[0].message.content
        if content is None:
            raise UpstreamUnavailable("LLM response format not recognized")
        return content

    def _gemini_chat(self, messages, temperature, max_tokens, stop) -> str:
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        contents = [
            {
                "role": "model" if m["role"] == "assistant" else "user",
                "parts": [{"text": m["content"]}],
            }
            for m in messages
            if m["role"] != "system"
        ]

        generation_config = {"temperature": temperature, "max_output_tokens": max_tokens}
        if system_parts:
            generation_config["system_instruction"] = "\n\n".join(system_parts)
        if stop:
            generation_config["stop_sequences"] = stop

        response = get_gemini_client().models.generate_content(
            model=self.model,
            contents=contents,
            config=generation_config,
        )
        if response.text is None:
            raise UpstreamUnavailable("Gemini response contained no text")
        return response.text
