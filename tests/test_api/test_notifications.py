"""Tests for the notifier endpoints."""

from unittest.mock import AsyncMock

from src.api.dependencies import get_scheduler
from src.crawler.errors import InvalidInterval
from src.notifications.schemas import DEFAULT_TITLE


class TestConfig:
    def test_get_defaults(self, client):
        data = client.get("/notifications/config").json()

        assert data["enabled"] is False
        assert data["period"] == "daily"
        assert data["title"] == DEFAULT_TITLE

    def test_put_saves_and_reloads_job(
        self, app, client, mock_notification_service, mock_scheduler
    ):
        app.dependency_overrides[get_scheduler] = lambda: mock_scheduler

        response = client.put(
            "/notifications/config",
            json={
                "enabled": True,
                "period": "hourly",
                "webhook_url": " https://hooks.example.com/x ",
                "title": "",
            },
        )

        assert response.status_code == 200
        saved = mock_notification_service.update_config.call_args[0][0]
        assert saved.webhook_url == "https://hooks.example.com/x"
        assert saved.title == DEFAULT_TITLE
        mock_scheduler.reload_notify_job.assert_awaited_once()

    def test_put_without_scheduler(self, client, mock_notification_service):
        response = client.put("/notifications/config", json={"enabled": False})

        assert response.status_code == 200
        mock_notification_service.update_config.assert_awaited_once()

    def test_put_rejects_unknown_period(self, client):
        response = client.put("/notifications/config", json={"period": "weekly"})

        assert response.status_code == 422

    def test_put_rejects_bad_time(self, client):
        response = client.put("/notifications/config", json={"notify_time": "9am"})

        assert response.status_code == 422

    def test_service_validation_error(self, client, mock_notification_service):
        mock_notification_service.update_config = AsyncMock(
            side_effect=InvalidInterval("notify time must be HH:MM")
        )

        response = client.put("/notifications/config", json={"enabled": True})

        assert response.status_code == 422


class TestDelivery:
    def test_send_test(self, client):
        assert client.post("/notifications/test").json() == {"delivered": True, "items": 0}

    def test_digest_sent(self, client, mock_notification_service):
        mock_notification_service.send_digest = AsyncMock(return_value=4)

        assert client.post("/notifications/digest").json() == {"delivered": True, "items": 4}

    def test_digest_skipped(self, client):
        assert client.post("/notifications/digest").json() == {"delivered": False, "items": 0}
