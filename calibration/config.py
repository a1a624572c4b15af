import os
from pathlib import Path

from calibration import DATA_DIR


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DB_PATH = Path(os.getenv("CALIBRATION_DB_PATH", str(DATA_DIR / "calibration.db")))

# OpenAI-compatible chat completions endpoint (LM Studio by default)
LLM_CHAT_URL = os.getenv("LLM_CHAT_URL", "http://localhost:1234/v1/chat/completions")
LLM_MODEL = os.getenv("LLM_MODEL", "local-model")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "120"))
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.7"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "1000"))
USE_MOCK_LLM = _env_flag("USE_MOCK_LLM")

DEBUG = _env_flag("CALIBRATION_DEBUG")
PORT = int(os.getenv("PORT", "5000"))

DEFAULT_EVALUATION_YEAR = int(os.getenv("DEFAULT_EVALUATION_YEAR", "2024"))
IMPORT_BATCH_SIZE = int(os.getenv("IMPORT_BATCH_SIZE", "100"))
