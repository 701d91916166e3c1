"""
SMS notification service backed by the TextBee gateway
"""
import os
from typing import Dict, Optional
from datetime import datetime
import logging
import requests

from ..models.reminder import SmsCredentials
from ..utils.config import config

logger = logging.getLogger(__name__)

class NotificationService:
    def __init__(self, api_base: Optional[str] = None, logs_dir: Optional[str] = None,
                 timeout: Optional[int] = None):
        self.api_base = (api_base or config.TEXTBEE_API_BASE).rstrip("/")
        self.logs_dir = logs_dir or config.LOGS_PATH
        self.timeout = timeout or config.SMS_TIMEOUT_SECONDS

        # Paths
        self.notifications_log = os.path.join(self.logs_dir, "notifications.log")

        # Ensure directories exist
        os.makedirs(self.logs_dir, exist_ok=True)

    def _log_notification(self, message: str, level: str = "INFO"):
        """Append to the notifications audit log and the app logger"""
        timestamp = datetime.now().isoformat()
        log_message = f"[{timestamp}] [{level}] {message}"

        try:
            with open(self.notifications_log, "a", encoding="utf-8") as f:
                f.write(log_message + "\n")
        except OSError as e:
            logger.warning(f"Could not write notifications log: {e}")

        if level == "ERROR":
            logger.error(message)
        else:
            logger.info(message)

    def send_sms(self, to_phone: str, message: str, credentials: SmsCredentials) -> Dict:
        """Send one SMS. Single attempt, no retry."""
        url = f"{self.api_base}/gateway/devices/{credentials.device_id}/send-sms"
        try:
            response = requests.post(
                url,
                headers={"x-api-key": credentials.api_key, "Content-Type": "application/json"},
                json={"recipients": [to_phone], "message": message},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            self._log_notification(f"SMS to {to_phone} failed: {e}", "ERROR")
            return {"success": False, "error": str(e)}

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.ok:
            self._log_notification(f"SMS sent to {to_phone}: {message[:50]}...")
            return {"success": True, "status_code": response.status_code, "response": payload}

        error = (payload.get("message") if isinstance(payload, dict) else None) or f"TextBee Error ({response.status_code})"
        self._log_notification(f"SMS to {to_phone} rejected: {error}", "ERROR")
        return {"success": False, "status_code": response.status_code, "error": error}

# Global instance
notification_service = NotificationService()
