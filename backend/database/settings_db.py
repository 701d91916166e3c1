import sqlite3
import os
from typing import Optional, List, Dict
from datetime import datetime
from ..utils.config import config
import logging

logger = logging.getLogger(__name__)

class SettingsDB:
    """Schema-free key/value app settings (toggles, templates, credentials)"""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or config.DB_PATH
        if os.path.dirname(self.db_path):
            os.makedirs(os.path.dirname(self.db_path), exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize app_settings table"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS app_settings (
                key TEXT PRIMARY KEY,
                value TEXT,
                description TEXT,
                updated_at TEXT
            )
        """)

        conn.commit()
        conn.close()

    def get_setting(self, key: str) -> Optional[str]:
        """Read one value by key, None when absent"""
        try:
            conn = sqlite3.connect(self.db_path)
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM app_settings WHERE key = ?", (key,))
            row = cursor.fetchone()
            conn.close()
            return row[0] if row else None

        except Exception as e:
            logger.error(f"Error reading setting {key}: {e}")
            return None

    def get_settings(self, keys: List[str]) -> Dict[str, str]:
        """Read several keys at once; missing keys are left out"""
        if not keys:
            return {}
        try:
            conn = sqlite3.connect(self.db_path)
            cursor = conn.cursor()
            placeholders = ", ".join("?" for _ in keys)
            cursor.execute(f"SELECT key, value FROM app_settings WHERE key IN ({placeholders})", list(keys))
            rows = cursor.fetchall()
            conn.close()
            return {k: v for k, v in rows if v is not None}

        except Exception as e:
            logger.error(f"Error reading settings: {e}")
            return {}

    def set_setting(self, key: str, value: str, description: Optional[str] = None) -> bool:
        """Insert or replace a setting"""
        try:
            conn = sqlite3.connect(self.db_path)
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO app_settings (key, value, description, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    description = COALESCE(excluded.description, app_settings.description),
                    updated_at = excluded.updated_at
            """, (key, value, description, datetime.now().isoformat()))
            conn.commit()
            conn.close()
            return True

        except Exception as e:
            logger.error(f"Error saving setting {key}: {e}")
            return False

# Global instance
settings_db = SettingsDB()
