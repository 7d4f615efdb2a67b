# hackhub/llm_client/llm_client.py
"""
Chat-completion client behind the project evaluator.

Providers (LLM_PROVIDER):
- mock     -> no network; echoes the last user message
- openai   -> OPENAI_BASE_URL + OPENAI_CHAT_PATH, JSON mode requested
- internal -> LLM_BASE_URL + optional LLM_CHAT_PATH (OpenAI-compatible body)

Transport concerns (retry, circuit breaker, metrics) live in
hackhub.transport.
"""

import json
import logging
from typing import Dict, List, Optional

import httpx

from hackhub import config
from hackhub.errors import ExternalServiceError
from hackhub.metrics import LLM_LATENCY, LLM_REQUESTS
from hackhub.transport import UpstreamGuard

logger = logging.getLogger("hackhub.llm_client")

guard = UpstreamGuard("evaluation", "LLM", LLM_REQUESTS, LLM_LATENCY)

Message = Dict[str, str]


class LLMClient:
    """
    Credentials are validated on construction: a client only exists for a
    configured provider, so callers build it lazily.
    """

    def __init__(self, provider: Optional[str] = None, model: Optional[str] = None) -> None:
        self.provider = provider or config.LLM_PROVIDER
        if provider is None:
            config.validate_llm_config()

        self.model = model or config.LLM_MODEL
        self.timeout = httpx.Timeout(float(config.LLM_TIMEOUT_SECONDS))
        self.base_url, self.chat_path, token = self._endpoint()
        self.headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def _endpoint(self):
        if self.provider == "openai":
            return config.OPENAI_BASE_URL.rstrip("/"), config.OPENAI_CHAT_PATH or "/chat/completions", config.OPENAI_API_KEY
        if self.provider == "internal":
            # Empty LLM_CHAT_PATH: LLM_BASE_URL is the full endpoint.
            return config.LLM_BASE_URL.rstrip("/"), config.LLM_CHAT_PATH, config.LLM_API_TOKEN
        return "", "", ""

    def _payload(self, messages: List[Message], json_mode: bool) -> Dict[str, object]:
        payload: Dict[str, object] = {"model": self.model, "messages": messages, "temperature": 0}
        if json_mode and self.provider == "openai":
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def chat(self, messages: List[Message], json_mode: bool = False) -> str:
        """Return the assistant message content."""
        if self.provider == "mock":
            guard.record_mock()
            user = next((m.get("content", "") for m in reversed(messages) if m.get("role") == "user"), "")
            return f"OK (mock) – {user[:200]}"

        payload = self._payload(messages, json_mode)
        logger.debug(
            f"LLM[{self.provider}] → POST {self.base_url}{self.chat_path} | {len(messages)} messages, json_mode={json_mode}"
        )

        async with httpx.AsyncClient(base_url=self.base_url, headers=self.headers, timeout=self.timeout) as client:
            data = await guard.post_json(client, self.chat_path, payload)

        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            logger.error(f"Malformed LLM response: {exc} – raw={json.dumps(data)[:500]}")
            raise ExternalServiceError("evaluation", "LLM returned malformed response.")
