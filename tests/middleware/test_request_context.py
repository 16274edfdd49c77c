"""Tests for the request context middleware.

Verifies that every response gets an X-Request-ID header, generated or
echoed from the request, and that the ID reaches log records.
"""

from __future__ import annotations

import logging
import uuid

from fastapi.testclient import TestClient

from lms_core.middleware.request_context import _RequestContextFilter, request_id_var


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    resp = client.get("/health")
    req_id = resp.headers.get("x-request-id")
    assert req_id is not None
    uuid.UUID(req_id)  # raises ValueError if invalid


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    custom_id = "my-custom-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": custom_id})
    assert resp.headers.get("x-request-id") == custom_id


def test_overlong_request_id_is_truncated(client: TestClient) -> None:
    resp = client.get("/health", headers={"X-Request-ID": "x" * 500})
    assert resp.headers.get("x-request-id") == "x" * 128


def test_request_id_present_on_error_responses(client: TestClient) -> None:
    resp = client.get("/v1/enrollments")  # no token -> 401
    assert resp.status_code == 401
    assert resp.headers.get("x-request-id") is not None


def test_filter_copies_context_request_id() -> None:
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
    token = request_id_var.set("req-42")
    try:
        _RequestContextFilter().filter(record)
    finally:
        request_id_var.reset(token)
    assert record.request_id == "req-42"


def test_filter_keeps_explicit_request_id() -> None:
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
    record.request_id = "explicit"
    _RequestContextFilter().filter(record)
    assert record.request_id == "explicit"
