"""Tests for structured logging and request_id propagation."""

import json
import logging

import pytest
from fastapi.testclient import TestClient

from backend.core.logging import JsonFormatter, TextFormatter, latency_bucket_ms, log_event
from backend.main import app


def test_request_id_in_response_and_logs(caplog):
    client = TestClient(app)
    with caplog.at_level(logging.INFO, logger="modle"):
        response = client.get("/healthz")
    rid = response.headers.get("x-request-id")
    assert rid
    records = [r for r in caplog.records if getattr(r, "request_id", None) == rid]
    assert records, "Expected logs to contain request_id from response"
    assert len({r.request_id for r in records}) == 1


def test_request_id_in_error_response(client):
    response = client.get("/api/users/modle/status", params={"language": "Klingon"}, headers={"X-User-Id": "nobody"})
    rid = response.headers.get("x-request-id")
    assert response.status_code == 400
    assert rid
    payload = response.json()
    assert payload["error"]["request_id"] == rid


def test_result_logs_carry_user_and_language(client, user_store, caplog):
    user_store.ensure_user("u-log")
    with caplog.at_level(logging.INFO, logger="modle"):
        client.post("/api/users/modle/result", json={"language": "Hindi", "correct": True}, headers={"X-User-Id": "u-log"})

    accepted = [r for r in caplog.records if r.getMessage() == "modle.result.accepted"]
    assert len(accepted) == 1
    assert accepted[0].user_id == "u-log"
    assert accepted[0].language == "Hindi"
    assert accepted[0].request_id


def test_json_formatter_includes_structured_fields(caplog):
    with caplog.at_level(logging.INFO, logger="modle"):
        log_event("info", "modle.reset", request_id="rid-1", user_id="u1", language="Tamil", event_type="modle.reset")

    record = next(r for r in caplog.records if r.getMessage() == "modle.reset")
    line = json.loads(JsonFormatter().format(record))
    assert line["request_id"] == "rid-1"
    assert line["user_id"] == "u1"
    assert line["language"] == "Tamil"
    assert line["event_type"] == "modle.reset"
    assert line["level"] == "INFO"


def test_text_formatter_shows_user_and_language(caplog):
    with caplog.at_level(logging.INFO, logger="modle"):
        log_event("warning", "modle.write.retry", request_id="rid-2", user_id="u2", language="Hindi", extra={"attempt": 1})

    record = next(r for r in caplog.records if r.getMessage() == "modle.write.retry")
    line = TextFormatter().format(record)
    assert "[rid=rid-2] [user=u2] [lang=Hindi] modle.write.retry" in line
    assert record.event_type == "modle.write.retry"
    assert record.attempt == "1"


@pytest.mark.parametrize("ms,bucket", [(3, "<10ms"), (42, "10-100ms"), (250, "100-500ms"), (999, "500-1000ms"), (5000, ">=1000ms")])
def test_latency_buckets(ms, bucket):
    assert latency_bucket_ms(ms) == bucket
