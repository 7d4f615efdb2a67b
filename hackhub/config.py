# hackhub/config.py
"""
Central configuration for the participation service.

Design goals:
- Always load .env from the repository root in a deterministic way
- Support switching storage backend (json / mongo) via STORAGE_BACKEND
- Support switching providers (mock / real) for the payment gateway and the
  evaluation LLM
- Missing credentials never crash the process: the operations that need them
  fail fast with ServiceNotConfigured instead
- Keep secrets out of logs (provide "safe" diagnostics)
"""

from __future__ import annotations

import logging
import os
from typing import Dict, List

from hackhub.errors import ServiceNotConfigured
from hackhub.utils import REPO_ROOT, env_flag, env_path

logger = logging.getLogger("hackhub.config")


# ---------------------------------------------------------------------
# 1) Storage
# ---------------------------------------------------------------------
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "json").strip().lower()
if STORAGE_BACKEND not in {"json", "mongo"}:
    raise RuntimeError(
        f"Invalid STORAGE_BACKEND='{STORAGE_BACKEND}'. Expected json|mongo."
    )

DATA_DIR = env_path("DATA_DIR", "data")
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017").strip()
MONGODB_DATABASE = os.getenv("MONGODB_DATABASE", "hackathon-platform").strip()
STORAGE_TIMEOUT_SECONDS = float(os.getenv("STORAGE_TIMEOUT_SECONDS", "10"))
STORAGE_FALLBACK_ENABLED = env_flag("STORAGE_FALLBACK_ENABLED", True)


# ---------------------------------------------------------------------
# 2) Payment gateway
# ---------------------------------------------------------------------
PAYMENT_PROVIDER = os.getenv("PAYMENT_PROVIDER", "mock").strip().lower()
if PAYMENT_PROVIDER not in {"mock", "razorpay"}:
    raise RuntimeError(
        f"Invalid PAYMENT_PROVIDER='{PAYMENT_PROVIDER}'. Expected mock|razorpay."
    )

RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID", "").strip()
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET", "").strip()
RAZORPAY_BASE_URL = os.getenv("RAZORPAY_BASE_URL", "https://api.razorpay.com/v1").strip()
PAYMENT_TIMEOUT_SECONDS = float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "15"))

# Used only by PAYMENT_PROVIDER=mock when no secret is configured.
MOCK_GATEWAY_KEY_ID = "rzp_mock_key"
MOCK_GATEWAY_SECRET = "mock_secret"


# ---------------------------------------------------------------------
# 3) Evaluation LLM
#
# IMPORTANT:
# - OPENAI_BASE_URL must be the BASE (e.g. https://api.openai.com/v1)
# - OPENAI_CHAT_PATH must be the PATH (e.g. /chat/completions)
# ---------------------------------------------------------------------
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "mock").strip().lower()
if LLM_PROVIDER not in {"mock", "openai", "internal"}:
    raise RuntimeError(
        f"Invalid LLM_PROVIDER='{LLM_PROVIDER}'. Expected mock|openai|internal."
    )

LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini").strip()
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").strip()
OPENAI_CHAT_PATH = os.getenv("OPENAI_CHAT_PATH", "/chat/completions").strip()

if OPENAI_CHAT_PATH and not OPENAI_CHAT_PATH.startswith("/"):
    OPENAI_CHAT_PATH = f"/{OPENAI_CHAT_PATH}"

# Internal gateway: if LLM_BASE_URL already is the full endpoint, leave
# LLM_CHAT_PATH empty.
LLM_BASE_URL = os.getenv("LLM_BASE_URL", "").strip()
LLM_CHAT_PATH = os.getenv("LLM_CHAT_PATH", "").strip()
LLM_API_TOKEN = os.getenv("LLM_API_TOKEN", "").strip()

if LLM_CHAT_PATH and not LLM_CHAT_PATH.startswith("/"):
    LLM_CHAT_PATH = f"/{LLM_CHAT_PATH}"


# ---------------------------------------------------------------------
# 4) Validation helpers
# ---------------------------------------------------------------------
def _payment_problems() -> List[str]:
    if PAYMENT_PROVIDER != "razorpay":
        return []
    problems = []
    if not RAZORPAY_KEY_ID:
        problems.append("RAZORPAY_KEY_ID is empty (PAYMENT_PROVIDER=razorpay).")
    if not RAZORPAY_KEY_SECRET:
        problems.append("RAZORPAY_KEY_SECRET is empty (PAYMENT_PROVIDER=razorpay).")
    return problems


def _llm_problems() -> List[str]:
    problems = []
    if LLM_PROVIDER == "openai":
        if not OPENAI_API_KEY:
            problems.append("OPENAI_API_KEY is empty (LLM_PROVIDER=openai).")
        if not OPENAI_BASE_URL:
            problems.append("OPENAI_BASE_URL is empty (LLM_PROVIDER=openai).")
    if LLM_PROVIDER == "internal" and not LLM_BASE_URL:
        problems.append("LLM_BASE_URL is empty (LLM_PROVIDER=internal).")
    return problems


def validate_payment_config() -> None:
    problems = _payment_problems()
    if problems:
        raise ServiceNotConfigured("payment_gateway", " ".join(problems))


def validate_llm_config() -> None:
    """
    Validate required settings for the selected provider.
    - mock: no requirements
    - openai: requires OPENAI_API_KEY
    - internal: requires LLM_BASE_URL (token kept soft)
    """
    problems = _llm_problems()
    if problems:
        raise ServiceNotConfigured("evaluation", " ".join(problems))


def gateway_key_id() -> str:
    if PAYMENT_PROVIDER == "mock":
        return RAZORPAY_KEY_ID or MOCK_GATEWAY_KEY_ID
    return RAZORPAY_KEY_ID


def gateway_secret() -> str:
    if PAYMENT_PROVIDER == "mock":
        return RAZORPAY_KEY_SECRET or MOCK_GATEWAY_SECRET
    return RAZORPAY_KEY_SECRET


def startup_config_report() -> List[str]:
    """Log (never raise) every missing setting. Called once at start-up."""
    problems = _payment_problems() + _llm_problems()
    for p in problems:
        logger.warning("Configuration incomplete: %s", p)
    if PAYMENT_PROVIDER == "mock" and not RAZORPAY_KEY_SECRET:
        logger.warning(
            "PAYMENT_PROVIDER=mock is signing payment callbacks with the built-in public secret; "
            "anyone can forge a verification. Set RAZORPAY_KEY_SECRET outside local development."
        )
    return problems


def config_diag_safe() -> Dict[str, object]:
    """
    Safe diagnostics (no secrets).
    Served by /api/diag/config.
    """
    return {
        "repo_root": str(REPO_ROOT),
        "storage_backend": STORAGE_BACKEND,
        "data_dir": str(DATA_DIR) if STORAGE_BACKEND == "json" else None,
        "mongodb_database": MONGODB_DATABASE if STORAGE_BACKEND == "mongo" else None,
        "storage_timeout_seconds": STORAGE_TIMEOUT_SECONDS,
        "storage_fallback_enabled": STORAGE_FALLBACK_ENABLED,
        "payment_provider": PAYMENT_PROVIDER,
        "has_razorpay_key_id": bool(RAZORPAY_KEY_ID),
        "has_razorpay_key_secret": bool(RAZORPAY_KEY_SECRET),
        "payment_timeout_seconds": PAYMENT_TIMEOUT_SECONDS,
        "llm_provider": LLM_PROVIDER,
        "llm_model": LLM_MODEL,
        "llm_timeout_seconds": LLM_TIMEOUT_SECONDS,
        "openai_base_url": OPENAI_BASE_URL if LLM_PROVIDER == "openai" else None,
        "has_openai_key": bool(OPENAI_API_KEY),
        "internal_base_url": LLM_BASE_URL if LLM_PROVIDER == "internal" else None,
        "has_internal_token": bool(LLM_API_TOKEN),
    }
