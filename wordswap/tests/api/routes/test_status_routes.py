from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from wordswap.app.api.main import create_app
from wordswap.app.api.routes.status_routes import limiter


@pytest.fixture
def client():
    limiter.reset()
    return TestClient(create_app())


# Test /status returns service information
def test_status(client):
    response = client.get("/status")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["service"] == "WordSwap"
    assert "timestamp" in body
    assert response.headers["cache-control"].startswith("public")


# Test /health reports process metrics
def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["services"]["document_processing"] == "online"
    assert "memory_rss_mb" in body["process"]
    assert "acquisitions" in body["pdf_engine_lock"]


# Test /health errors are converted into a safe response
def test_health_error(client):
    with patch("wordswap.app.api.routes.status_routes.psutil.Process", side_effect=RuntimeError("no proc")):
        response = client.get("/health")

    assert response.status_code == 500
    assert "Reference ID" in response.json()["error"]
