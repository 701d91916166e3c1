"""Tests for the TextBee SMS client."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from backend.models.reminder import SmsCredentials
from backend.services.notification_service import NotificationService

CREDS = SmsCredentials(api_key="secret", device_id="dev-42")


def _response(status_code, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def service(tmp_path):
    return NotificationService(api_base="https://sms.example/api/v1/", logs_dir=str(tmp_path), timeout=5)


class TestSendSms:
    def test_success(self, service):
        with patch("backend.services.notification_service.requests.post",
                   return_value=_response(201, {"data": {"success": True}})) as post:
            result = service.send_sms("+40721234567", "Hi Ana", CREDS)

        assert result["success"] is True
        post.assert_called_once_with(
            "https://sms.example/api/v1/gateway/devices/dev-42/send-sms",
            headers={"x-api-key": "secret", "Content-Type": "application/json"},
            json={"recipients": ["+40721234567"], "message": "Hi Ana"},
            timeout=5,
        )

    def test_gateway_rejection(self, service):
        with patch("backend.services.notification_service.requests.post",
                   return_value=_response(401, {"message": "Invalid API key"})):
            result = service.send_sms("+40721234567", "Hi", CREDS)

        assert result == {"success": False, "status_code": 401, "error": "Invalid API key"}

    def test_non_json_error_body(self, service):
        with patch("backend.services.notification_service.requests.post",
                   return_value=_response(502)):
            result = service.send_sms("+40721234567", "Hi", CREDS)

        assert result["success"] is False
        assert result["error"] == "TextBee Error (502)"

    def test_network_error(self, service):
        with patch("backend.services.notification_service.requests.post",
                   side_effect=requests.ConnectionError("boom")) as post:
            result = service.send_sms("+40721234567", "Hi", CREDS)

        assert result["success"] is False
        assert "boom" in result["error"]
        assert post.call_count == 1

    def test_attempts_written_to_audit_log(self, service):
        with patch("backend.services.notification_service.requests.post",
                   return_value=_response(200, {})):
            service.send_sms("+40721234567", "Hi Ana", CREDS)

        with open(service.notifications_log, encoding="utf-8") as f:
            assert "SMS sent to +40721234567" in f.read()
