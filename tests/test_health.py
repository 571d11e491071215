"""
Tests: Health, version and cache endpoints
"""
import pytest
from fastapi.testclient import TestClient

from config.settings import Settings
from trebound.context import DataAccess
from trebound.main import APP_NAME, APP_VERSION, create_app


@pytest.fixture
def client(static_client):
    data = DataAccess(static_client, settings=Settings(anthropic_api_key=None))
    with TestClient(create_app(data)) as test_client:
        yield test_client


def test_health_endpoint_returns_200(client):
    """Test that /health returns HTTP 200"""
    response = client.get("/health")
    assert response.status_code == 200


def test_health_endpoint_returns_ok_status(client):
    """Test that /health returns status: ok"""
    response = client.get("/health")
    data = response.json()
    assert data["status"] == "ok"


def test_version_endpoint(client):
    """Test that /version reports name and version"""
    data = client.get("/version").json()
    assert data["name"] == APP_NAME
    assert data["version"] == APP_VERSION


def test_cache_stats_after_bundle_load(client):
    """Test that /cache/stats lists keys written by a bundle load"""
    client.get("/api/bundles/counts")
    stats = client.get("/cache/stats").json()
    assert stats["size"] == 3
    assert "counts:activities" in stats["keys"]
    assert stats["coalescer"]["active_requests"] == 0


def test_clear_cache_by_key(client):
    """Test that DELETE /cache?keys=... only clears those keys"""
    client.get("/api/bundles/counts")
    response = client.delete("/cache", params={"keys": ["counts:stays", "counts:activities"]})
    assert response.status_code == 200
    assert response.json()["cleared"] == 2
    assert client.get("/cache/stats").json()["keys"] == ["counts:blog_posts"]


def test_clear_whole_cache(client):
    """Test that DELETE /cache clears everything"""
    client.get("/api/bundles/counts")
    response = client.delete("/cache")
    assert response.json() == {"cleared": 3, "keys": None}
