import socket
import threading
import time
import urllib.request

import pytest

from rollupdriver.metrics import (
    DEFAULT_REGISTRY,
    DRIVER_L1_HEAD_HEIGHT_GAUGE,
    Counter,
    Gauge,
    Registry,
    serve,
)


def test_gauge_update_round_trip():
    gauge = Gauge("a/b")
    gauge.update(42)
    assert gauge.value == 42
    gauge.update(7)
    assert gauge.value == 7


def test_counter_accumulates():
    counter = Counter("c")
    counter.inc()
    counter.inc(4)
    assert counter.value == 5


def test_registry_lookups_share_state():
    registry = Registry()
    registry.gauge("x/y").update(11)
    assert registry.gauge("x/y").value == 11
    registry.counter("z").inc(2)
    registry.counter("z").inc(3)
    assert registry.counter("z").value == 5


def test_registry_rejects_kind_conflict():
    registry = Registry()
    registry.gauge("shared")
    with pytest.raises(ValueError):
        registry.counter("shared")


def test_render_format():
    registry = Registry()
    registry.gauge("driver/l1Head/height").update(5)
    registry.counter("proposer/epoch").inc(3)
    lines = registry.render().splitlines()
    assert "# TYPE driver_l1Head_height gauge" in lines
    assert "driver_l1Head_height 5" in lines
    assert "proposer_epoch 3" in lines


def test_render_empty_registry():
    assert Registry().render() == ""


def test_default_registry_holds_named_metrics():
    rendered = DEFAULT_REGISTRY.render()
    assert "prover_proof_all_queued" in rendered
    assert DEFAULT_REGISTRY.gauge("driver/l1Head/height") is DRIVER_L1_HEAD_HEIGHT_GAUGE


def test_serve_disabled_returns_immediately():
    stop = threading.Event()
    assert serve(False, "127.0.0.1", 0, stop) is None
    assert not stop.is_set()


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_serve_exposes_registry():
    registry = Registry()
    registry.gauge("driver/l2Head/id").update(9)
    port = _free_port()
    stop = threading.Event()
    worker = threading.Thread(target=serve, args=(True, "127.0.0.1", port, stop, registry))
    worker.start()
    try:
        body = None
        for _ in range(100):
            try:
                with urllib.request.urlopen(f"http://127.0.0.1:{port}/metrics", timeout=2) as resp:
                    body = resp.read().decode()
                break
            except OSError:
                time.sleep(0.05)
        assert body == registry.render()
    finally:
        stop.set()
        worker.join(timeout=5)
    assert not worker.is_alive()