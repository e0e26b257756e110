import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def get_secret(secret_id: str, fallback_env: str | None = None) -> str | None:
    env_value = os.getenv(fallback_env or secret_id.upper().replace("-", "_"))
    if env_value:
        return env_value

    project_id = os.getenv("GOOGLE_CLOUD_PROJECT")
    if not project_id:
        return None

    try:
        from google.cloud import secretmanager

        client = secretmanager.SecretManagerServiceClient()
        name = f"projects/{project_id}/secrets/{secret_id}/versions/latest"
        response = client.access_secret_version(request={"name": name})
        return response.payload.data.decode("UTF-8")
    except Exception:
        return None


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


MODEL_PROVIDER = os.getenv("MODEL_PROVIDER", "openai").lower()
LM_STUDIO_URL = os.getenv("LM_STUDIO_URL", "http://127.0.0.1:1234/v1/chat/completions")
LM_MODEL = os.getenv("LM_MODEL", "phi-3-mini-128k-instruct")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
LLM_TIMEOUT_SECONDS = _env_float("LLM_TIMEOUT_SECONDS", 300.0)
LLM_MAX_TOKENS = _env_int("LLM_MAX_TOKENS", 2000)

STORAGE_DRIVER = os.getenv("STORAGE_DRIVER", "local")
DATA_DIR = os.getenv("DATA_DIR", "./data/registrations")
MAX_UPLOAD_BYTES = _env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def lm_studio_base_url() -> str:
    """OpenAI clients want the API root, not the chat completions endpoint."""
    url = LM_STUDIO_URL.rstrip("/")
    for suffix in ("/chat/completions", "/completions"):
        if url.endswith(suffix):
            return url[: -len(suffix)]
    return url


@lru_cache
def lm_api_key() -> str:
    # LM Studio ignores the key but the OpenAI client refuses to start without one
    return get_secret("lm-api-key", "LM_API_KEY") or "lm-studio"


@lru_cache
def admin_credentials() -> tuple[str, str | None]:
    username = os.getenv("ADMIN_USERNAME", "admin")
    password = get_secret("admin-password", "ADMIN_PASSWORD")
    return username, password
