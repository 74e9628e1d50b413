import json
import logging

from fastapi.testclient import TestClient

from compassiq.main import app
from compassiq.observability import incr_metric, log_event, metric_key, metrics_snapshot, reset_metrics


def test_counters_are_keyed_by_sorted_labels():
    reset_metrics()
    incr_metric("org_context.denied", reason="not_a_member")
    incr_metric("org_context.denied", reason="not_a_member")
    incr_metric("preview.entered")

    assert metrics_snapshot() == {
        "org_context.denied|reason=not_a_member": 2,
        "preview.entered": 1,
    }
    assert metric_key("x", b=2, a=1) == "x|a=1,b=2"
    reset_metrics()
    assert metrics_snapshot() == {}


def test_log_event_emits_sorted_json(caplog):
    with caplog.at_level(logging.INFO, logger="compassiq"):
        log_event("org_switched", request_id="req-1", org_id="org-A", reasons=("a",))

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload == {"event": "org_switched", "request_id": "req-1", "org_id": "org-A", "reasons": ["a"]}


def test_request_id_is_echoed_or_generated():
    client = TestClient(app)

    echoed = client.get("/health", headers={"X-Request-ID": "req-42"})
    generated = client.get("/health")

    assert echoed.headers["X-Request-ID"] == "req-42"
    assert generated.headers["X-Request-ID"]
    assert generated.json() == {"status": "healthy"}
