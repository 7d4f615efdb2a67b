# hackhub/transport.py
"""
Guarded HTTP calls to upstream services (evaluation LLM, payment gateway).

Each upstream gets one UpstreamGuard:
- tenacity retry on transport errors (connect/read/write timeouts, broken
  connections); HTTP error statuses are not retried
- aiobreaker circuit breaker (5 failures -> open for 30s)
- Prometheus request counter (by outcome) + latency histogram

Every failure leaves as ExternalServiceError tagged with the service name.
"""

import logging
from datetime import timedelta
from typing import Any, Dict

import httpx
from aiobreaker import CircuitBreaker, CircuitBreakerError
from prometheus_client import Counter, Histogram
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from hackhub.errors import ExternalServiceError

logger = logging.getLogger("hackhub.transport")

TRANSIENT_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.WriteTimeout,
    httpx.RemoteProtocolError,
)


def is_transient(exc: BaseException) -> bool:
    return isinstance(exc, TRANSIENT_ERRORS)


@retry(
    reraise=True,
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    retry=retry_if_exception(is_transient),
)
async def _post_with_retry(
    client: httpx.AsyncClient,
    url: str,
    json_payload: Dict[str, Any],
    requests: Counter,
    latency: Histogram,
) -> httpx.Response:
    with latency.time():
        try:
            resp = await client.post(url, json=json_payload)
            resp.raise_for_status()
            requests.labels(outcome="success").inc()
            return resp
        except Exception:
            requests.labels(outcome="failure").inc()
            raise


class UpstreamGuard:
    def __init__(
        self,
        service: str,
        label: str,
        requests: Counter,
        latency: Histogram,
        fail_max: int = 5,
        reset_seconds: int = 30,
    ) -> None:
        self.service = service
        self.label = label
        self.requests = requests
        self.latency = latency
        self.breaker = CircuitBreaker(
            fail_max=fail_max,
            timeout_duration=timedelta(seconds=reset_seconds),
            exclude=(httpx.HTTPStatusError,),
        )

    async def post_json(self, client: httpx.AsyncClient, url: str, payload: Dict[str, Any]) -> Any:
        """POST `payload`, return the decoded JSON body."""
        try:
            resp = await self.breaker.call(_post_with_retry, client, url, payload, self.requests, self.latency)
        except CircuitBreakerError:
            logger.warning(f"{self.label} circuit breaker OPEN – request blocked")
            self.requests.labels(outcome="circuit_breaker").inc()
            raise ExternalServiceError(self.service, f"{self.label} temporarily unavailable (circuit breaker open).")
        except httpx.HTTPStatusError as exc:
            logger.error(f"{self.label} HTTP error {exc.response.status_code}: {exc.response.text}")
            raise ExternalServiceError(self.service, f"{self.label} HTTP error {exc.response.status_code}")
        except Exception as exc:
            logger.error(f"{self.label} request failed: {exc}")
            raise ExternalServiceError(self.service, f"{self.label} request failed: {exc}")

        logger.debug(f"{self.label} ← {resp.status_code} | response={resp.text[:500]}")
        try:
            return resp.json()
        except ValueError:
            logger.error(f"{self.label} returned a non-JSON body – raw={resp.text[:500]}")
            raise ExternalServiceError(self.service, f"{self.label} returned malformed response.")

    def record_mock(self) -> None:
        self.requests.labels(outcome="mock").inc()
