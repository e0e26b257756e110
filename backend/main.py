import asyncio
import logging
import secrets
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from core.config import CORS_ORIGINS, LOG_LEVEL, admin_credentials
from core.errors import AppError, AuthenticationError, ExtractionError, ValidationError
from core.llm import LLMGateway
from interview import admin, intent
from interview.session import session_keys
from interview.state_machine import (
    complete_interview,
    get_session,
    next_question,
    start_interview,
    submit_answer,
)
from registration import RegistrationForm, register_candidate
from registration.agents.validator import MISSING_FIELDS_MESSAGE
from resume.parser import extract_text
from storage import get_storage
from storage.base import RegistrationStore

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Candidate Interview API",
    description="Candidate registration, resume summaries and interview sessions",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

_basic_auth = HTTPBasic(auto_error=False)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = {"success": False, "detail": exc.message}
    if exc.code:
        body["code"] = exc.code
    headers = {"WWW-Authenticate": "Basic"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


# =============================================================================
# Dependencies
# =============================================================================

def get_store() -> RegistrationStore:
    return get_storage()


@lru_cache(maxsize=1)
def get_gateway() -> LLMGateway:
    return LLMGateway()


def check_admin_credentials(username: str, password: str) -> None:
    expected_username, expected_password = admin_credentials()
    if not expected_password:
        logger.warning("Admin request rejected: ADMIN_PASSWORD is not configured")
        raise AuthenticationError("Admin access is not configured")

    username_ok = secrets.compare_digest(username.encode(), expected_username.encode())
    password_ok = secrets.compare_digest(password.encode(), expected_password.encode())
    if not (username_ok and password_ok):
        raise AuthenticationError("Invalid admin credentials")


def require_admin(credentials: Optional[HTTPBasicCredentials] = Depends(_basic_auth)) -> str:
    if credentials is None:
        raise AuthenticationError("Admin credentials required")
    check_admin_credentials(credentials.username, credentials.password)
    return credentials.username


# =============================================================================
# Request models
# =============================================================================

class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionRequest(_Body):
    registration_id: Optional[str] = None
    session_token: Optional[str] = None


class AnswerRequest(SessionRequest):
    answer: Optional[str] = None
    question_index: Any = None
    question_text: Optional[str] = None


class StatusUpdateRequest(_Body):
    status: Optional[str] = None


class AdminLoginRequest(_Body):
    username: str = ""
    password: str = ""


class YesNoRequest(_Body):
    text: Optional[str] = None


# =============================================================================
# Registration
# =============================================================================

@app.post("/api/submit-interview-form", status_code=201)
async def submit_interview_form(
    name: str = Form(""),
    email: str = Form(""),
    registration_id: str = Form("", alias="registrationId"),
    resume: Optional[UploadFile] = File(None),
    store: RegistrationStore = Depends(get_store),
    gateway: LLMGateway = Depends(get_gateway),
):
    if not name.strip() or not email.strip() or not registration_id.strip():
        raise ValidationError(MISSING_FIELDS_MESSAGE, code="missing_fields")
    if resume is None:
        raise ExtractionError("Resume file (.docx) is required")

    file_bytes = await resume.read()
    extracted_text = await asyncio.to_thread(extract_text, file_bytes, resume.filename or "")

    form = RegistrationForm(
        name=name,
        email=email,
        registration_id=registration_id,
        extracted_text=extracted_text,
    )
    outcome = await asyncio.to_thread(register_candidate, form, store=store, gateway=gateway)

    document = outcome.registration.to_document()
    return {
        "success": True,
        "message": "Registration submitted successfully",
        "data": {
            "id": document["id"],
            "name": document["name"],
            "email": document["email"],
            "registrationId": document["registrationId"],
            "submittedAt": document["submittedAt"],
            "status": document["status"],
            "sessionToken": outcome.session_token,
            "summary": outcome.summary,
        },
    }


# =============================================================================
# Interview session
# =============================================================================

@app.post("/api/interview/start")
async def interview_start(request: SessionRequest, store: RegistrationStore = Depends(get_store)):
    keys = session_keys(session_token=request.session_token, registration_id=request.registration_id)
    data = await asyncio.to_thread(start_interview, store, keys)
    return {"success": True, "message": "Interview start recorded", "data": data}


@app.get("/api/interview/session/{token}")
async def interview_session(token: str, store: RegistrationStore = Depends(get_store)):
    return await asyncio.to_thread(get_session, store, token)


@app.post("/api/interview/answer")
async def interview_answer(request: AnswerRequest, store: RegistrationStore = Depends(get_store)):
    keys = session_keys(session_token=request.session_token, registration_id=request.registration_id)
    result = await asyncio.to_thread(
        submit_answer,
        store,
        keys,
        answer=request.answer,
        question_index=request.question_index,
        question_text=request.question_text,
    )
    return {"success": True, **result}


@app.get("/api/interview/next-question/{registration_id}")
async def interview_next_question(registration_id: str, store: RegistrationStore = Depends(get_store)):
    keys = session_keys(registration_id=registration_id)
    return await asyncio.to_thread(next_question, store, keys)


@app.post("/api/interview/complete")
async def interview_complete(request: SessionRequest, store: RegistrationStore = Depends(get_store)):
    keys = session_keys(session_token=request.session_token, registration_id=request.registration_id)
    data = await asyncio.to_thread(complete_interview, store, keys)
    already_completed = data.pop("alreadyCompleted")
    message = "Interview already completed" if already_completed else "Interview marked as completed"
    return {"success": True, "message": message, "data": data}


@app.post("/api/nlu/yesno")
async def classify_yes_no(request: YesNoRequest, gateway: LLMGateway = Depends(get_gateway)):
    classification = await asyncio.to_thread(intent.classify_yes_no, request.text, gateway)
    return {"success": True, **classification}


# =============================================================================
# Admin
# =============================================================================

@app.post("/api/admin/login")
async def admin_login(request: AdminLoginRequest):
    check_admin_credentials(request.username, request.password)
    return {"success": True, "message": "Login successful", "username": request.username}


@app.get("/api/registrations")
async def list_registrations(
    store: RegistrationStore = Depends(get_store),
    _admin: str = Depends(require_admin),
):
    data = await asyncio.to_thread(admin.list_registrations, store)
    return {"success": True, "count": len(data), "data": data}


@app.get("/api/registrations/{record_id}")
async def get_registration(
    record_id: str,
    store: RegistrationStore = Depends(get_store),
    _admin: str = Depends(require_admin),
):
    data = await asyncio.to_thread(admin.get_registration, store, record_id)
    return {"success": True, "data": data}


@app.patch("/api/registrations/{record_id}/status")
async def update_registration_status(
    record_id: str,
    request: StatusUpdateRequest,
    store: RegistrationStore = Depends(get_store),
    _admin: str = Depends(require_admin),
):
    data = await asyncio.to_thread(admin.update_status, store, record_id, request.status)
    logger.info("Registration %s status set to %s by admin", record_id, data["status"])
    return {"success": True, "message": "Status updated successfully", "data": data}


# =============================================================================
# LLM connectivity & health
# =============================================================================

@app.get("/api/llm/ping")
async def llm_ping(gateway: LLMGateway = Depends(get_gateway)):
    models = await asyncio.to_thread(gateway.list_models)
    return {"ok": True, "provider": gateway.provider, "models": models}


@app.get("/api/llm/test")
async def llm_test(gateway: LLMGateway = Depends(get_gateway)):
    messages = [
        {"role": "system", "content": "You are a helpful assistant."},
        {"role": "user", "content": "Just say \"Hello, I'm connected!\""},
    ]
    response = await asyncio.to_thread(gateway.chat, messages, temperature=0.1, name="llm_test")
    return {"success": True, "message": "Successfully connected to the LLM server", "response": response}


@app.get("/api/health")
async def health_check():
    return {
        "status": "OK",
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
