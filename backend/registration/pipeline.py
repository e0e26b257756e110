import logging
import time
from typing import TYPE_CHECKING, Any

from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, StateGraph

from observability.tracing import PipelineTrace
from registration.agents import (
    persist_stage,
    question_catalog_stage,
    summarize_stage,
    validate_registration,
)
from registration.schemas import PipelineState, RegistrationForm

if TYPE_CHECKING:
    from core.llm import LLMGateway
    from storage.base import RegistrationStore

logger = logging.getLogger(__name__)

PIPELINE_NAME = "registration"


def _dependency(config: RunnableConfig, name: str) -> Any:
    try:
        return config["configurable"][name]
    except KeyError:
        raise RuntimeError(f"Registration pipeline invoked without '{name}' in configurable")


def validator_node(state: PipelineState, config: RunnableConfig) -> dict:
    return validate_registration(state, _dependency(config, "store"))


def resume_summarizer_node(state: PipelineState, config: RunnableConfig) -> dict:
    return summarize_stage(state, _dependency(config, "gateway"))


def question_catalog_node(state: PipelineState) -> dict:
    return question_catalog_stage(state)


def persistence_node(state: PipelineState, config: RunnableConfig) -> dict:
    return persist_stage(state, _dependency(config, "store"))


def build_registration_graph() -> StateGraph:
    workflow = StateGraph(PipelineState)

    workflow.add_node("validator", validator_node)
    workflow.add_node("resume_summarizer", resume_summarizer_node)
    workflow.add_node("question_catalog", question_catalog_node)
    workflow.add_node("persistence", persistence_node)

    workflow.set_entry_point("validator")

    # strictly linear; later stages pass through when validation failed
    workflow.add_edge("validator", "resume_summarizer")
    workflow.add_edge("resume_summarizer", "question_catalog")
    workflow.add_edge("question_catalog", "persistence")
    workflow.add_edge("persistence", END)

    return workflow


_compiled_graph = None


def get_compiled_graph():
    global _compiled_graph
    if _compiled_graph is None:
        _compiled_graph = build_registration_graph().compile()
    return _compiled_graph


def initial_state(form: RegistrationForm) -> PipelineState:
    return {
        "name": form.name,
        "email": form.email,
        "registration_id": form.registration_id,
        "extracted_text": form.extracted_text,
        "validation_ok": False,
        "session_token": "",
        "summary_text": "",
        "questions": [],
        "registration": None,
        "error": None,
        "error_code": None,
    }


def run_registration_pipeline(
    form: RegistrationForm,
    *,
    store: "RegistrationStore",
    gateway: "LLMGateway",
    session_id: str | None = None,
) -> PipelineState:
    """Run Validator -> Summarizer -> QuestionCatalog -> Persistence once.

    Stage failures come back in ``error`` / ``error_code``; only faults nobody
    anticipated (such as losing the store) are raised.
    """
    state = initial_state(form)
    config: RunnableConfig = {"configurable": {"store": store, "gateway": gateway}}

    with PipelineTrace(
        pipeline_name=PIPELINE_NAME,
        registration_id=form.registration_id or "unknown",
        session_id=session_id,
        metadata={"resume_chars": len(form.extracted_text)},
    ) as trace:
        step_start = time.perf_counter()
        for chunk in get_compiled_graph().stream(state, config=config, stream_mode="updates"):
            for node_name, update in chunk.items():
                update = update or {}
                state = {**state, **update}

                now = time.perf_counter()
                trace.log_node(
                    node_name,
                    output_data=_summarize_update(update),
                    duration_ms=(now - step_start) * 1000,
                    error=update.get("error"),
                )
                step_start = now

    return state


def _summarize_update(update: dict) -> dict:
    summary = {
        key: value
        for key, value in update.items()
        if key not in ("registration", "session_token", "extracted_text", "summary_text")
    }
    if "summary_text" in update:
        summary["summary_chars"] = len(update["summary_text"] or "")
    if update.get("registration"):
        summary["record_id"] = update["registration"].get("id")
    return summary
