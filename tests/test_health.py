"""Tests for health check and info endpoints."""

import pytest
from datetime import datetime


@pytest.mark.unit
class TestHealthCheck:
    """Test health check endpoint."""

    def test_health_check_returns_200(self, client):
        """Test health check returns 200."""
        response = client.get("/api/health")
        assert response.status_code == 200

    def test_health_check_contains_required_fields(self, client):
        """Test health check response contains required fields."""
        data = client.get("/api/health").get_json()

        assert data["status"] == "healthy"
        assert data["environment"] == "testing"
        # Should not raise exception
        datetime.fromisoformat(data["timestamp"])


@pytest.mark.unit
class TestAppInfo:
    """Test app info endpoint."""

    def test_app_info_contains_required_fields(self, client):
        """Test app info response contains required fields."""
        data = client.get("/api/info").get_json()

        assert data["name"] == "JobFit AI Core"
        assert "version" in data
        assert data["debug"] is True
        assert "timestamp" in data


@pytest.mark.unit
class TestRootEndpoint:
    """Test root API endpoint."""

    def test_root_lists_endpoints(self, client):
        """Test root endpoint advertises the relay."""
        response = client.get("/api/")
        data = response.get_json()

        assert response.status_code == 200
        assert data["endpoints"]["generate"] == "/api/ai/generate"


@pytest.mark.unit
class TestErrorHandlers:
    """Test JSON error bodies."""

    def test_unknown_route_is_json_404(self, client):
        """Test 404s use the standard error body."""
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.get_json()["error"] == "Not Found"

    def test_wrong_method_is_json_405(self, client):
        """Test GET on the relay is rejected."""
        response = client.get("/api/ai/generate")
        assert response.status_code == 405
        assert response.get_json()["status"] == 405
