"""
Configuration constants for the Math Snap Solver.
"""

import os
from typing import Optional

from dotenv import load_dotenv

# Reasoning Service
DEFAULT_MODEL = "gemini-2.5-flash"
MODEL_ENV_VAR = "GEMINI_MODEL"
API_KEY_ENV_VARS = ("GOOGLE_API_KEY", "GEMINI_API_KEY", "API_KEY")

# LLM API Settings
DEFAULT_TIMEOUT_SEC = 120
LOG_INTERVAL_SEC = 10

# Pipeline stage latencies (seconds)
PREPROCESSING_DELAY_SEC = 1.2
OCR_DELAY_SEC = 1.5
SOLVING_DELAY_SEC = 1.0

# Logging
LOG_LEVEL_ENV_VAR = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

MISSING_API_KEY_WARNING = (
    "Missing API Key: set GOOGLE_API_KEY (or GEMINI_API_KEY / API_KEY) "
    "to use the AI capabilities."
)


def load_environment() -> None:
    load_dotenv()


def get_api_key() -> Optional[str]:
    for name in API_KEY_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value
    return None


def get_model_name() -> str:
    return os.getenv(MODEL_ENV_VAR) or DEFAULT_MODEL


def get_log_level() -> str:
    return (os.getenv(LOG_LEVEL_ENV_VAR) or DEFAULT_LOG_LEVEL).upper()
