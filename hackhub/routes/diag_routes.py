# hackhub/routes/diag_routes.py
import logging

from fastapi import APIRouter, Depends

from hackhub.config import config_diag_safe
from hackhub.deps import get_storage
from hackhub.llm_client.llm_client import LLMClient
from hackhub.store.controller import StorageController

logger = logging.getLogger("hackhub")
router = APIRouter(tags=["diag"])


@router.get("/health")
def health(storage: StorageController = Depends(get_storage)):
    return {"status": "ok", "storage": storage.mode.value}


@router.get("/api/diag/config")
def diag_config():
    return config_diag_safe()


@router.get("/api/diag/storage")
def diag_storage(storage: StorageController = Depends(get_storage)):
    """
    Storage mode inspection: "durable" or "fallback" (volatile, one-way).
    """
    return storage.describe()


@router.get("/api/diag/llm")
async def diag_llm():
    llm = LLMClient()
    content = await llm.chat(
        [
            {"role": "system", "content": "You are a diagnostic bot."},
            {"role": "user", "content": "Reply with: OK"},
        ]
    )
    logger.info("LLM diagnostic reply from %s", llm.provider)
    return {"ok": True, "provider": llm.provider, "reply": content[:200]}
