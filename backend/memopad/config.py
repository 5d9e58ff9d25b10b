import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    return float(raw)


DATABASE_URL = os.getenv("DATABASE_URL", "")

LLM_PROVIDER = os.getenv("LLM_PROVIDER", "dashscope").lower()
LLM_API_KEY = os.getenv("LLM_API_KEY") or os.getenv("DASHSCOPE_API_KEY")
LLM_API_BASE_URL = os.getenv("LLM_API_BASE_URL", "").rstrip("/")
LLM_CHAT_MODEL = os.getenv("LLM_CHAT_MODEL", "")
LLM_TEMPERATURE = _env_float("LLM_TEMPERATURE", 0.7)
LLM_TIMEOUT = _env_float("LLM_TIMEOUT", None)
SUMMARY_MAX_TOKENS = int(os.getenv("SUMMARY_MAX_TOKENS", "500"))
TAGS_MAX_TOKENS = int(os.getenv("TAGS_MAX_TOKENS", "200"))

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",")]
MEMO_API_BASE_URL = os.getenv("MEMO_API_BASE_URL", "http://localhost:8000").rstrip("/")
