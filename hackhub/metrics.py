# hackhub/metrics.py
from prometheus_client import Counter, Gauge, Histogram, CollectorRegistry

# Dedicated registry to avoid conflicts (reload, multiple imports)
REGISTRY = CollectorRegistry(auto_describe=True)

LLM_REQUESTS = Counter(
    "llm_requests_total",
    "Number of LLM requests",
    ["outcome"],
    registry=REGISTRY,
)

LLM_LATENCY = Histogram(
    "llm_latency_seconds",
    "Latency of LLM requests in seconds",
    registry=REGISTRY,
)

GATEWAY_REQUESTS = Counter(
    "gateway_requests_total",
    "Number of payment gateway requests",
    ["outcome"],
    registry=REGISTRY,
)

GATEWAY_LATENCY = Histogram(
    "gateway_latency_seconds",
    "Latency of payment gateway requests in seconds",
    registry=REGISTRY,
)

STORAGE_FALLBACK = Gauge(
    "storage_fallback_active",
    "1 once the process switched to the volatile in-memory store",
    registry=REGISTRY,
)

STORAGE_ERRORS = Counter(
    "storage_errors_total",
    "Durable storage failures by kind",
    ["kind"],
    registry=REGISTRY,
)

REGISTRATIONS = Counter(
    "registrations_total",
    "Participant registrations by outcome",
    ["outcome"],
    registry=REGISTRY,
)

PAYMENT_TRANSITIONS = Counter(
    "payment_transitions_total",
    "Payment state transitions by target status",
    ["status"],
    registry=REGISTRY,
)
