"""
Tests for health and metrics endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from messages_api.main import app
from messages_api.metrics import normalize_path
from messages_api.models import Message  # noqa: F401  (registers the table)
from messages_api.service import get_message_service
from messages_api.storage import Base, engine


@pytest.fixture(scope="function")
def client():
    """Create test client with fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    get_message_service().cache.clear()

    with TestClient(app) as test_client:
        yield test_client

    get_message_service().cache.clear()
    Base.metadata.drop_all(bind=engine)


class TestHealth:
    """Test liveness and readiness probes."""

    def test_live(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_ready(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_without_schema(self, client):
        Base.metadata.drop_all(bind=engine)

        response = client.get("/health/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "not_ready"
        assert "schema" in data["reason"]


class TestMetrics:
    """Test the Prometheus endpoint."""

    def test_exposes_http_and_cache_metrics(self, client):
        client.get("/messages")
        client.get("/messages")
        client.post("/messages", json={"content": "Hello"})

        response = client.get("/metrics")

        assert response.status_code == 200
        body = response.text
        assert "http_requests_total" in body
        assert 'cache_requests_total{namespace="messages",result="hit"}' in body
        assert 'cache_requests_total{namespace="messages",result="miss"}' in body
        assert 'cache_evictions_total{namespace="messages"}' in body

    @pytest.mark.parametrize("path, expected", [
        ("/messages", "/messages"),
        ("/messages/42", "/messages/{id}"),
        ("/messages?limit=5", "/messages"),
        ("/health/live", "/health/live"),
    ])
    def test_normalize_path(self, path, expected):
        assert normalize_path(path) == expected
