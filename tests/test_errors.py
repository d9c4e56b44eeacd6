import asyncio
import json
import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from taskflow.core.errors import failure_message, unexpected_exception_handler
from taskflow.core.middleware import init_request_timing


def _request(endpoint=None) -> Request:
    scope = {"type": "http", "method": "GET", "path": "/boom", "headers": [], "query_string": b""}
    if endpoint is not None:
        scope["endpoint"] = endpoint
    return Request(scope)


def test_unexpected_error_uses_endpoint_message():
    @failure_message("Failed to fetch projects")
    def endpoint():
        pass

    response = asyncio.run(unexpected_exception_handler(_request(endpoint), RuntimeError("db down")))
    assert response.status_code == 500
    assert json.loads(response.body) == {"error": "Failed to fetch projects"}


def test_unexpected_error_without_endpoint_message():
    response = asyncio.run(unexpected_exception_handler(_request(), RuntimeError("boom")))
    assert response.status_code == 500
    assert json.loads(response.body) == {"error": "Operation failed"}


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/nowhere")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_health_and_request_headers(client):
    response = client.get("/", headers={"X-Request-ID": "abc123"})
    assert response.status_code == 200
    assert response.json() == {"name": "TaskFlow", "status": "ok"}
    assert response.headers["X-Request-ID"] == "abc123"
    assert "X-Request-Duration-Ms" in response.headers


def test_unhandled_error_is_logged_by_request_timing(caplog):
    app = FastAPI()
    init_request_timing(app)

    @app.get("/boom")
    def boom():
        raise RuntimeError("db down")

    with caplog.at_level(logging.ERROR, logger="taskflow.core.middleware"):
        response = TestClient(app, raise_server_exceptions=False).get("/boom", headers={"X-Request-ID": "req-1"})

    assert response.status_code == 500
    (record,) = [r for r in caplog.records if r.name == "taskflow.core.middleware"]
    assert record.getMessage() == "Server error: GET /boom 500"
    assert record.request_id == "req-1"
    assert record.status == 500
