"""Prometheus metrics for monitoring sync health, cache fallbacks and transfers"""

from prometheus_client import Counter, Histogram

# Authentication metrics
authentication_counter = Counter(
    "wallet_authentication_total",
    "Provider authentications attempted",
    ["outcome"],  # success | failure
)

# Provider metrics
provider_latency_histogram = Histogram(
    "wallet_provider_latency_seconds",
    "Wallet provider response time",
    ["operation"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

provider_failure_counter = Counter(
    "wallet_provider_failures_total",
    "Failed wallet provider calls",
    ["operation", "kind"],
)

# Cache metrics
cache_fallback_counter = Counter(
    "wallet_cache_fallback_total",
    "Refreshes served from the local cache after a provider failure",
    ["resource"],  # accounts | beneficiaries
)

# Transfer metrics
sms_challenge_counter = Counter(
    "wallet_sms_challenge_total",
    "Transfer 2FA code requests by resolution",
    ["mode"],  # skipped | demo | sent
)

transfer_counter = Counter(
    "wallet_transfer_total",
    "Transfer simulate/execute calls",
    ["stage", "outcome"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transfer(stage: str, succeeded: bool) -> None:
    transfer_counter.labels(stage=stage, outcome="success" if succeeded else "failure").inc()
