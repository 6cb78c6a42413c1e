"""Tests for X-API-KEY authentication."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from src.api.auth import verify_api_key
from src.config.settings import Settings


@pytest.fixture
def keyed_client(app):
    """Client with real key checking and API_KEYS=key-a,key-b."""
    del app.dependency_overrides[verify_api_key]
    settings = Settings(api_keys="key-a, key-b")
    with patch("src.api.auth.get_settings", return_value=settings):
        with TestClient(app) as c:
            yield c


class TestApiKey:
    def test_missing_key(self, keyed_client):
        assert keyed_client.get("/sources").status_code == 401

    def test_invalid_key(self, keyed_client):
        response = keyed_client.get("/sources", headers={"X-API-KEY": "nope"})

        assert response.status_code == 401

    def test_valid_key(self, keyed_client):
        response = keyed_client.get("/sources", headers={"X-API-KEY": "key-b"})

        assert response.status_code == 200

    def test_health_needs_no_key(self, keyed_client):
        assert keyed_client.get("/health").status_code == 200

    def test_dev_mode_without_keys(self, app):
        del app.dependency_overrides[verify_api_key]
        with patch("src.api.auth.get_settings", return_value=Settings(api_keys="")):
            with TestClient(app) as c:
                assert c.get("/sources").status_code == 200
