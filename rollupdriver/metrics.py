"""In-process metrics and a Prometheus text exposition server."""

from __future__ import annotations

import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional, Union

log = logging.getLogger(__name__)


class Gauge:
    """A metric holding a single value that may go up and down."""

    kind = "gauge"

    def __init__(self, name: str) -> None:
        self.name = name
        self._value = 0
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def update(self, value: int) -> None:
        """Set the gauge to ``value``."""
        with self._lock:
            self._value = int(value)


class Counter:
    """A metric that only accumulates."""

    kind = "counter"

    def __init__(self, name: str) -> None:
        self.name = name
        self._count = 0
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._count

    def inc(self, amount: int = 1) -> None:
        """Add ``amount`` to the counter."""
        with self._lock:
            self._count += int(amount)


Metric = Union[Gauge, Counter]


def _exposition_key(name: str) -> str:
    return name.replace("/", "_").replace("-", "_")


class Registry:
    """A named collection of metrics."""

    def __init__(self) -> None:
        self._metrics: dict[str, Metric] = {}
        self._lock = threading.Lock()

    def _get_or_create(self, name: str, cls: type) -> Metric:
        with self._lock:
            existing = self._metrics.get(name)
            if existing is None:
                existing = cls(name)
                self._metrics[name] = existing
            elif not isinstance(existing, cls):
                raise ValueError(f"metric {name!r} is already registered as a {existing.kind}")
            return existing

    def gauge(self, name: str) -> Gauge:
        """Return the gauge registered under ``name``, creating it if needed."""
        return self._get_or_create(name, Gauge)  # type: ignore[return-value]

    def counter(self, name: str) -> Counter:
        """Return the counter registered under ``name``, creating it if needed."""
        return self._get_or_create(name, Counter)  # type: ignore[return-value]

    def render(self) -> str:
        """Render all metrics in the Prometheus text exposition format."""
        with self._lock:
            metrics = sorted(self._metrics.values(), key=lambda metric: metric.name)
        lines = []
        for metric in metrics:
            key = _exposition_key(metric.name)
            lines.append(f"# TYPE {key} {metric.kind}")
            lines.append(f"{key} {metric.value}")
        return "".join(line + "\n" for line in lines)


DEFAULT_REGISTRY = Registry()

# Driver
DRIVER_L1_HEAD_HEIGHT_GAUGE = DEFAULT_REGISTRY.gauge("driver/l1Head/height")
DRIVER_L2_HEAD_HEIGHT_GAUGE = DEFAULT_REGISTRY.gauge("driver/l2Head/height")
DRIVER_L1_CURRENT_HEIGHT_GAUGE = DEFAULT_REGISTRY.gauge("driver/l1Current/height")
DRIVER_L2_HEAD_ID_GAUGE = DEFAULT_REGISTRY.gauge("driver/l2Head/id")
DRIVER_L2_VERIFIED_HEIGHT_GAUGE = DEFAULT_REGISTRY.gauge("driver/l2Verified/id")

# Proposer
PROPOSER_PROPOSE_EPOCH_COUNTER = DEFAULT_REGISTRY.counter("proposer/epoch")
PROPOSER_PROPOSED_TX_LISTS_COUNTER = DEFAULT_REGISTRY.counter("proposer/proposed/txLists")
PROPOSER_PROPOSED_TXS_COUNTER = DEFAULT_REGISTRY.counter("proposer/proposed/txs")
PROPOSER_INVALID_TXS_COUNTER = DEFAULT_REGISTRY.counter("proposer/invalid/txs")

# Prover
PROVER_LATEST_VERIFIED_ID_GAUGE = DEFAULT_REGISTRY.gauge("prover/latestVerified/id")
PROVER_QUEUED_PROOF_COUNTER = DEFAULT_REGISTRY.counter("prover/proof/all/queued")
PROVER_QUEUED_VALID_PROOF_COUNTER = DEFAULT_REGISTRY.counter("prover/proof/valid/queued")
PROVER_QUEUED_INVALID_PROOF_COUNTER = DEFAULT_REGISTRY.counter("prover/proof/invalid/queued")
PROVER_RECEIVED_PROOF_COUNTER = DEFAULT_REGISTRY.counter("prover/proof/all/received")
PROVER_RECEIVED_VALID_PROOF_COUNTER = DEFAULT_REGISTRY.counter("prover/proof/valid/received")
PROVER_RECEIVED_INVALID_PROOF_COUNTER = DEFAULT_REGISTRY.counter("prover/proof/invalid/received")
PROVER_SENT_PROOF_COUNTER = DEFAULT_REGISTRY.counter("prover/proof/all/sent")
PROVER_SENT_VALID_PROOF_COUNTER = DEFAULT_REGISTRY.counter("prover/proof/valid/sent")
PROVER_SENT_INVALID_PROOF_COUNTER = DEFAULT_REGISTRY.counter("prover/proof/invalid/sent")
PROVER_RECEIVED_PROPOSED_BLOCK_GAUGE = DEFAULT_REGISTRY.gauge("prover/proposed/received")


def _handler_for(registry: Registry) -> type[BaseHTTPRequestHandler]:
    class _MetricsHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:  # noqa: N802 - name fixed by http.server
            body = registry.render().encode("utf-8")
            self.send_response(200)
            self.send_header("Content-Type", "text/plain; version=0.0.4; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args: object) -> None:  # noqa: A002
            log.debug("metrics request: " + format, *args)

    return _MetricsHandler


def serve(
    enabled: bool,
    addr: str,
    port: int,
    stop_event: threading.Event,
    registry: Optional[Registry] = None,
) -> None:
    """Serve ``registry`` over HTTP until ``stop_event`` is set.

    Returns at once when metrics are disabled.
    """
    if not enabled:
        return

    server = ThreadingHTTPServer((addr, port), _handler_for(registry or DEFAULT_REGISTRY))

    def _close_on_stop() -> None:
        stop_event.wait()
        server.shutdown()

    closer = threading.Thread(target=_close_on_stop, name="metrics-closer", daemon=True)
    closer.start()

    log.info("Starting metrics server: address=%s:%s", addr, port)
    try:
        server.serve_forever(poll_interval=0.1)
    finally:
        server.server_close()