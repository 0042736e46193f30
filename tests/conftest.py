"""Shared fixtures for the webhook tests."""

import http.client
import json
import threading
from http.server import HTTPServer

import pytest

from api.errors import PersistenceFailure
from api.paypal_webhook import handler


class FakeStore:
    """In-memory stand-in for SubscriptionStore with merge semantics."""

    def __init__(self, fail_with=None):
        self.documents = {}
        self.calls = []
        self.fail_with = fail_with

    def merge_status(self, user_id, fields):
        self.calls.append((user_id, dict(fields)))
        if self.fail_with is not None:
            raise PersistenceFailure(self.fail_with, user_id=user_id)
        document = self.documents.setdefault(user_id, {})
        document.update(fields)
        document["updated_at"] = "SERVER_TIMESTAMP"


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def failing_store():
    return FakeStore(fail_with=RuntimeError("deadline exceeded"))


def _serve(store):
    handler_class = type("TestHandler", (handler,), {"store": store})
    server = HTTPServer(("127.0.0.1", 0), handler_class)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server, thread


class WebhookClient:
    def __init__(self, port):
        self.port = port

    def request(self, method, body=None, raw=None, headers=None):
        conn = http.client.HTTPConnection("127.0.0.1", self.port, timeout=5)
        try:
            payload = raw if raw is not None else (json.dumps(body).encode() if body is not None else None)
            request_headers = {"Content-Type": "application/json"}
            request_headers.update(headers or {})
            conn.request(method, "/api/paypal_webhook", body=payload, headers=request_headers)
            response = conn.getresponse()
            return response.status, dict(response.getheaders()), response.read()
        finally:
            conn.close()

    def post(self, body=None, **kwargs):
        return self.request("POST", body=body, **kwargs)


@pytest.fixture
def webhook_client(fake_store):
    server, thread = _serve(fake_store)
    yield WebhookClient(server.server_address[1])
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)


@pytest.fixture
def failing_webhook_client(failing_store):
    server, thread = _serve(failing_store)
    yield WebhookClient(server.server_address[1])
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)
