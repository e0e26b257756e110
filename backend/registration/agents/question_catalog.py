from typing import Any

from registration.questions import interview_questions
from registration.schemas import PipelineState


def question_catalog_stage(state: PipelineState) -> dict[str, Any]:
    if not state.get("validation_ok"):
        return {}
    return {"questions": list(interview_questions())}
