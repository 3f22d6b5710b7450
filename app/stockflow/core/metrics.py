from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.stockflow.core.config import settings

LATENCY_BUCKETS_MS = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000)
HTTP_LABELS = ("route", "method", "status")


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


@dataclass
class _Instruments:
    registry: CollectorRegistry
    http_requests: Counter
    http_latency_ms: Histogram
    lock_wait_timeouts: Counter
    unresolved_products: Counter
    bills_created: Counter


def _build_instruments() -> _Instruments:
    registry = CollectorRegistry()
    return _Instruments(
        registry=registry,
        http_requests=Counter(
            "http_requests_total",
            "HTTP requests by route/method/status.",
            HTTP_LABELS,
            registry=registry,
        ),
        http_latency_ms=Histogram(
            "http_request_duration_ms",
            "HTTP request latency in milliseconds.",
            HTTP_LABELS,
            buckets=LATENCY_BUCKETS_MS,
            registry=registry,
        ),
        lock_wait_timeouts=Counter(
            "lock_wait_timeout_total",
            "Lock wait timeout occurrences.",
            registry=registry,
        ),
        unresolved_products=Counter(
            "unresolved_product_reference_total",
            "Sale lines whose product is missing from the catalog at report time.",
            registry=registry,
        ),
        bills_created=Counter(
            "bills_created_total",
            "Bills written to the ledger by type.",
            ["type"],
            registry=registry,
        ),
    )


class Metrics:
    """Process-wide Prometheus instruments; every call is a no-op when disabled."""

    def __init__(self, enabled: bool | None = None) -> None:
        self.enabled = bool(settings.METRICS_ENABLED if enabled is None else enabled)
        self._instruments: _Instruments | None = _build_instruments() if self.enabled else None

    def reset(self) -> None:
        if self.enabled:
            self._instruments = _build_instruments()

    def record_http_request(self, *, route: str, method: str, status_code: int, latency_ms: float) -> None:
        if self._instruments is None:
            return
        labels = (route, method, str(status_code))
        self._instruments.http_requests.labels(*labels).inc()
        self._instruments.http_latency_ms.labels(*labels).observe(latency_ms)

    def increment_lock_wait_timeout(self) -> None:
        if self._instruments is not None:
            self._instruments.lock_wait_timeouts.inc()

    def increment_unresolved_product(self, count: int = 1) -> None:
        if self._instruments is not None and count > 0:
            self._instruments.unresolved_products.inc(count)

    def increment_bill_created(self, bill_type: str) -> None:
        if self._instruments is not None:
            self._instruments.bills_created.labels(type=bill_type).inc()

    def render(self) -> MetricsSnapshot:
        if self._instruments is None:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._instruments.registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()
