"""
Langfuse tracing for LLM calls and registration pipeline runs.

Everything here is best effort: without Langfuse keys, or when the Langfuse
SDK misbehaves, calls fall through to no-ops and only the standard logger
sees the run.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable

from core.clients import get_langfuse_client

logger = logging.getLogger(__name__)

_MAX_TEXT = 500


class _NullGeneration:
    def update(self, **kwargs):
        pass


def _quietly(action: str, fn: Callable, *args, **kwargs) -> Any:
    try:
        return fn(*args, **kwargs)
    except Exception as e:
        logger.debug("Langfuse %s failed: %s", action, e)
        return None


@contextmanager
def traced_generation(name: str, *, model: str, prompt=None, input_data=None):
    """Record one LLM call as a Langfuse generation; yields an object with ``update``."""
    langfuse = get_langfuse_client()
    observation = None
    if langfuse:
        observation = _quietly(
            "generation start",
            langfuse.start_as_current_observation,
            as_type="generation",
            name=name,
            model=model,
            prompt=prompt,
            input=_safe_serialize(input_data),
        )

    generation = _quietly("generation enter", observation.__enter__) if observation else None
    try:
        yield generation or _NullGeneration()
    finally:
        if generation is not None:
            _quietly("generation exit", observation.__exit__, None, None, None)


class PipelineTrace:
    """One pipeline run: a Langfuse span with a child span per node.

    The per-node records are kept on ``nodes`` either way and mirrored to the
    standard logger.
    """

    def __init__(
        self,
        pipeline_name: str,
        registration_id: str = "unknown",
        session_id: str | None = None,
        metadata: dict | None = None,
    ):
        self.pipeline_name = pipeline_name
        self.registration_id = registration_id
        self.session_id = session_id or datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        self.metadata = metadata or {}
        self.nodes: list[dict] = []
        self._langfuse = get_langfuse_client()
        self._span = None

    def __enter__(self):
        if not self._langfuse:
            return self

        span = _quietly("span start", self._langfuse.start_as_current_span, name=self.pipeline_name)
        if span is not None and _quietly("span enter", span.__enter__) is not None:
            self._span = span
            _quietly(
                "trace update",
                self._langfuse.update_current_trace,
                user_id=self.registration_id,
                session_id=self.session_id,
                metadata={"started_at": datetime.now(timezone.utc).isoformat(), **self.metadata},
            )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        failed = exc_type is not None or any(not n["success"] for n in self.nodes)
        logger.info(
            "[%s] run for %s finished: %d nodes, %s",
            self.pipeline_name,
            self.registration_id,
            len(self.nodes),
            "failed" if failed else "ok",
        )

        if self._span is not None:
            _quietly(
                "span update",
                self._langfuse.update_current_span,
                output={"status": "ERROR" if failed else "OK", "nodes": self.nodes},
            )
            _quietly("span exit", self._span.__exit__, exc_type, exc_val, exc_tb)
        if self._langfuse:
            _quietly("flush", self._langfuse.flush)

    def log_node(self, node_name: str, output_data: Any, duration_ms: float, error: str | None = None):
        self.nodes.append({"node": node_name, "duration_ms": round(duration_ms, 1), "success": error is None})
        if error:
            logger.info("[%s] %s stopped after %.1fms: %s", self.pipeline_name, node_name, duration_ms, error)
        else:
            logger.info("[%s] %s finished in %.1fms", self.pipeline_name, node_name, duration_ms)

        if self._span is None:
            return

        node_span = _quietly("node span start", self._langfuse.start_as_current_span, name=node_name)
        if node_span is None or _quietly("node span enter", node_span.__enter__) is None:
            return
        _quietly(
            "node span update",
            self._langfuse.update_current_span,
            output=_safe_serialize(output_data),
            metadata={"duration_ms": round(duration_ms, 1), "error": error},
        )
        _quietly("node span exit", node_span.__exit__, None, None, None)


def _safe_serialize(data: Any) -> Any:
    if data is None or isinstance(data, (dict, list, str, int, float, bool)):
        return data
    if hasattr(data, "model_dump"):
        return _quietly("serialize", data.model_dump, mode="json") or str(data)[:_MAX_TEXT]
    return str(data)[:_MAX_TEXT]
