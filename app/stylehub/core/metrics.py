from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.stylehub.core.config import settings

LATENCY_BUCKETS_MS = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000)
# sale totals in BRL
SALE_AMOUNT_BUCKETS = (10, 50, 100, 250, 500, 1000, 2500, 5000)


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


class Metrics:
    """Process-wide Prometheus collectors.

    Every recorder is a no-op when ``METRICS_ENABLED`` is off, so callers never
    check the flag themselves.
    """

    def __init__(self, enabled: bool | None = None) -> None:
        self.enabled = bool(settings.METRICS_ENABLED if enabled is None else enabled)
        self._registry: CollectorRegistry | None = None
        if self.enabled:
            self._build()

    def _build(self) -> None:
        registry = CollectorRegistry()
        self._registry = registry
        self._http_requests = Counter(
            "http_requests_total",
            "HTTP requests by route template, method and status.",
            ["route", "method", "status"],
            registry=registry,
        )
        self._http_latency = Histogram(
            "http_request_duration_ms",
            "HTTP request latency in milliseconds.",
            ["route", "method"],
            buckets=LATENCY_BUCKETS_MS,
            registry=registry,
        )
        self._checkouts = Counter(
            "checkout_total",
            "Sale submissions by outcome, payment method and failing step.",
            ["result", "payment_method", "step"],
            registry=registry,
        )
        self._sale_amount = Histogram(
            "checkout_sale_amount",
            "Totals of completed sales.",
            ["payment_method"],
            buckets=SALE_AMOUNT_BUCKETS,
            registry=registry,
        )
        self._installments_paid = Counter(
            "installments_paid_total",
            "Installments marked as paid.",
            registry=registry,
        )
        self._idempotency_replays = Counter(
            "idempotency_replay_total",
            "Checkout responses served from a stored idempotency record.",
            registry=registry,
        )
        self._lock_timeouts = Counter(
            "lock_wait_timeout_total",
            "Requests that failed waiting on a database lock.",
            registry=registry,
        )

    def reset(self) -> None:
        if self.enabled:
            self._build()

    def record_http_request(self, *, route: str, method: str, status_code: int, latency_ms: float) -> None:
        if not self.enabled:
            return
        self._http_requests.labels(route=route, method=method, status=str(status_code)).inc()
        self._http_latency.labels(route=route, method=method).observe(latency_ms)

    def record_checkout(
        self,
        *,
        result: str,
        payment_method: str,
        step: str | None = None,
        total_amount: Decimal | None = None,
    ) -> None:
        if not self.enabled:
            return
        self._checkouts.labels(result=result, payment_method=payment_method, step=step or "none").inc()
        if total_amount is not None:
            self._sale_amount.labels(payment_method=payment_method).observe(float(total_amount))

    def increment_installment_paid(self) -> None:
        if self.enabled:
            self._installments_paid.inc()

    def increment_idempotency_replay(self) -> None:
        if self.enabled:
            self._idempotency_replays.inc()

    def increment_lock_wait_timeout(self) -> None:
        if self.enabled:
            self._lock_timeouts.inc()

    def render(self) -> MetricsSnapshot:
        if not self.enabled:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()
