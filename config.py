"""
config.py - Centralized Configuration for the Wellness Risk Engine

Single source of truth for environment variables, model names, and thresholds.
"""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# ENVIRONMENT VARIABLES
# =============================================================================

def _as_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "y", "on"}


OFFLINE_MODE = _as_bool("WELLNESS_OFFLINE_MODE", "false")

# "structured" (scored_employees JSON) or "free_text" (table/list replies)
AI_RESPONSE_CONTRACT = os.getenv("WELLNESS_AI_RESPONSE_CONTRACT", "structured").strip().lower()
if AI_RESPONSE_CONTRACT not in {"structured", "free_text"}:
    AI_RESPONSE_CONTRACT = "structured"

OUTPUT_DIR = Path(os.getenv("WELLNESS_OUTPUT_DIR", "output"))


# =============================================================================
# MODEL DEFINITIONS
# =============================================================================

MODEL_MAP: dict[str, dict[str, Any]] = {
    "qwen25": {
        "name": "qwen2.5:14b-instruct-q4_K_M",
        "options": {"temperature": 0.0, "top_p": 0.9, "num_predict": 1024, "num_ctx": 8192},
    },
    "mistral": {
        "name": "mistral-nemo:12b-instruct-2407-q4_K_M",
        "options": {"temperature": 0.0, "top_p": 0.9, "num_predict": 1024, "num_ctx": 8192},
    },
    "llama31": {
        "name": "llama3.1:8b-instruct-q4_K_M",
        "options": {"temperature": 0.0, "num_predict": 1024, "num_ctx": 8192, "seed": 42},
    },
}

AI_MODEL_FLAVOR = os.getenv("WELLNESS_AI_MODEL_FLAVOR", "qwen25").strip()
if AI_MODEL_FLAVOR not in MODEL_MAP:
    AI_MODEL_FLAVOR = "qwen25"

AI_MODEL_NAME = os.getenv("WELLNESS_AI_MODEL", MODEL_MAP[AI_MODEL_FLAVOR]["name"]).strip()
AI_MODEL_OPTIONS: dict[str, Any] = MODEL_MAP[AI_MODEL_FLAVOR]["options"]
AI_BASE_URL = os.getenv("WELLNESS_AI_BASE_URL", "").strip() or None


# =============================================================================
# AI RISK FILTER THRESHOLDS
# =============================================================================
RISK_SCORE_THRESHOLD = float(os.getenv("WELLNESS_RISK_SCORE_THRESHOLD", "30"))
AI_MAX_ENTRIES = int(os.getenv("WELLNESS_AI_MAX_ENTRIES", "10"))
TOKEN_OVERLAP_MIN_SCORE = 0.5
FUZZY_MATCH_CUTOFF = 85.0

# Applied identically to structured and free-text replies.
KEEP_UNMATCHED_AI_ENTRIES = _as_bool("WELLNESS_KEEP_UNMATCHED_AI_ENTRIES", "true")


# =============================================================================
# RISK TIERS
# =============================================================================
HIGH_RISK_CUTOFF = 67
MODERATE_RISK_CUTOFF = 40


# =============================================================================
# DASHBOARD BEHAVIOUR
# =============================================================================
SEARCH_DEBOUNCE_MS = int(os.getenv("WELLNESS_SEARCH_DEBOUNCE_MS", "300"))
IMPORT_WARNING_PREVIEW = int(os.getenv("WELLNESS_IMPORT_WARNING_PREVIEW", "5"))


# =============================================================================
# EMPLOYEE PAYLOAD DEFAULTS
# =============================================================================
DEFAULT_AGE = 35
DEFAULT_BMI = 24.0
DEFAULT_WEIGHT_KG = 70
DEFAULT_BLOOD_PRESSURE_SYSTOLIC = 120
DEFAULT_BLOOD_PRESSURE_DIASTOLIC = 80
DEFAULT_FASTING_GLUCOSE = 95.0
DEFAULT_TOTAL_CHOLESTEROL = 180.0
DEFAULT_STRESS_SCORE = 5
MIN_EMPLOYEE_AGE = 18
MAX_EMPLOYEE_AGE = 100

DEFAULT_DEPARTMENT = "Unassigned"
EMAIL_DOMAIN = os.getenv("WELLNESS_EMAIL_DOMAIN", "company.com").strip() or "company.com"

SEED_MEMBER_COUNT = int(os.getenv("WELLNESS_SEED_MEMBER_COUNT", "50"))
SEED_ID_PREFIX = "member"
