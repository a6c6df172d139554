import pytest
from fastapi import status
from fastapi.testclient import TestClient


class TestHealthCheckAPI:
    """Test cases for the /health endpoint"""

    def test_get_health_success(self, client: TestClient):
        """Test successful health check endpoint"""
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data == {"status": "oke"}

    def test_get_health_no_authentication_required(self, client: TestClient):
        """Health endpoint is public; the docs are not"""
        assert client.get("/health").status_code == status.HTTP_200_OK
        assert client.get("/docs").status_code == status.HTTP_401_UNAUTHORIZED
