"""
Settings gateway: reminder toggles, templates and SMS gateway credentials
read from the app_settings key/value store.
"""
from typing import Optional
import logging
from ..database.settings_db import SettingsDB, settings_db as default_settings_db
from ..models.reminder import REMINDER_THRESHOLDS, ReminderConfig, SmsCredentials
from ..utils.config import config

logger = logging.getLogger(__name__)

API_KEY_SETTING = "textbee_api_key"
DEVICE_ID_SETTING = "textbee_device_id"
LEGACY_TEMPLATE_SETTING = "sms_template"

# Value shipped in example .env files; never a real key
PLACEHOLDER_API_KEY = "your_api_key_here"

def parse_toggle(value: Optional[str]) -> bool:
    return (value or "").strip().lower() == "true"

class SettingsService:
    def __init__(self, settings_db: Optional[SettingsDB] = None,
                 env_api_key: Optional[str] = None, env_device_id: Optional[str] = None):
        self.settings_db = settings_db or default_settings_db
        self.env_api_key = env_api_key if env_api_key is not None else config.TEXTBEE_API_KEY
        self.env_device_id = env_device_id if env_device_id is not None else config.TEXTBEE_DEVICE_ID

    def get_credentials(self) -> Optional[SmsCredentials]:
        """Stored credentials first, then environment; None if either part is missing"""
        stored = self.settings_db.get_settings([API_KEY_SETTING, DEVICE_ID_SETTING])
        api_key = (stored.get(API_KEY_SETTING) or self.env_api_key or "").strip()
        device_id = (stored.get(DEVICE_ID_SETTING) or self.env_device_id or "").strip()

        if not api_key or not device_id or api_key == PLACEHOLDER_API_KEY:
            logger.debug(
                f"SMS credentials missing (api_key={bool(api_key)}, device_id={bool(device_id)}, "
                f"source={'database' if stored else 'environment'})"
            )
            return None

        return SmsCredentials(api_key=api_key, device_id=device_id)

    def load_reminder_config(self) -> ReminderConfig:
        """Take one snapshot of every reminder setting"""
        keys = []
        for threshold in REMINDER_THRESHOLDS:
            keys.extend([threshold.enabled_key, threshold.template_key])
        values = self.settings_db.get_settings(keys)

        return ReminderConfig(
            enabled={t.name: parse_toggle(values.get(t.enabled_key)) for t in REMINDER_THRESHOLDS},
            templates={t.name: values.get(t.template_key) or "" for t in REMINDER_THRESHOLDS},
            credentials=self.get_credentials(),
        )

    def get_immediate_template(self) -> Optional[str]:
        """Template for a manual send: the 24h template, then the legacy single template"""
        for key in (REMINDER_THRESHOLDS[0].template_key, LEGACY_TEMPLATE_SETTING):
            value = self.settings_db.get_setting(key)
            if value and value.strip():
                return value
        return None

# Global instance
settings_service = SettingsService()
