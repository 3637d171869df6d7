# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Tests for RequestContextMiddleware with a FastAPI application."""

import logging

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from copilot_sentry_target import RequestContextMiddleware, SentryTarget, SilentEventSink
from copilot_sentry_target.http_context import current_request_context


@pytest.fixture
def target(isolated_logger):
    """Target attached to the isolated logger, exporting on demand."""
    sink = SilentEventSink()
    handler = SentryTarget(sink, context=False)
    isolated_logger.addHandler(handler)
    return handler


@pytest.fixture
def client(isolated_logger):
    """Test client for an app that logs from its endpoints."""
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware)

    @app.get("/items")
    async def list_items():
        isolated_logger.error("listing failed")
        return {"ok": True}

    @app.post("/items")
    async def create_item():
        isolated_logger.error({"msg": "create failed", "tags": {"resource": "item"}})
        return {"ok": True}

    @app.get("/me")
    async def me(request: Request):
        request.state.user_id = "user-123"
        request.state.user_email = "user@example.com"
        request.state.user_roles = ["reader"]
        isolated_logger.error("profile failed")
        return {"ok": True}

    @app.get("/context")
    async def context():
        return {"active": current_request_context() is not None}

    return TestClient(app)


class TestRequestContextMiddleware:
    """Tests for RequestContextMiddleware."""

    def test_context_active_during_request(self, client):
        """Test that the context is set while the endpoint runs."""
        response = client.get("/context")

        assert response.status_code == 200
        assert response.json() == {"active": True}
        assert current_request_context() is None

    def test_event_carries_request(self, client, target):
        """Test request data on an event logged by an endpoint."""
        response = client.get("/items?page=2", headers={"X-Request-Id": "abc", "Cookie": "session=xyz"})
        target.flush()

        assert response.status_code == 200
        event = target.sink.get_events()[0]
        assert event.message == "listing failed"
        assert event.request["method"] == "GET"
        assert event.request["url"] == "http://testserver/items?page=2"
        assert event.request["query_string"] == "page=2"
        assert event.request["headers"]["X-Request-Id"] == "abc"
        assert event.request["cookies"] == {"session": "xyz"}

    def test_json_body(self, client, target):
        """Test that a JSON body is attached as request data."""
        client.post("/items", json={"name": "widget"})
        target.flush()

        event = target.sink.get_events()[0]
        assert event.message == "create failed"
        assert event.tags["resource"] == "item"
        assert event.request["data"] == {"name": "widget"}
        assert event.request["headers"]["Content-Type"] == "application/json"

    def test_form_body(self, client, target):
        """Test that form fields are attached as request data."""
        client.post("/items", data={"name": "widget"})
        target.flush()

        assert target.sink.get_events()[0].request["data"] == {"name": "widget"}

    def test_multipart_body(self, client, target):
        """Test that multipart fields are attached, files by filename."""
        client.post(
            "/items",
            data={"name": "widget"},
            files={"upload": ("report.txt", b"hello", "text/plain")},
        )
        target.flush()

        assert target.sink.get_events()[0].request["data"] == {"name": "widget", "upload": "report.txt"}

    def test_malformed_form_does_not_fail_request(self, client, target):
        """Test that an unparseable form leaves the request data unset."""
        response = client.post("/items", content=b"garbage", headers={"Content-Type": "multipart/form-data"})
        target.flush()

        assert response.status_code == 200
        assert "data" not in target.sink.get_events()[0].request

    def test_authenticated_user(self, client, target):
        """Test that the authenticated user is attached."""
        client.get("/me")
        target.flush()

        assert target.sink.get_events()[0].user == {
            "id": "user-123",
            "email": "user@example.com",
            "roles": ["reader"],
        }

    def test_anonymous_user(self, client, target):
        """Test that anonymous requests have no user."""
        client.get("/items")
        target.flush()

        assert target.sink.get_events()[0].user is None
