import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Configuration management"""

    # Database
    DB_PATH = os.getenv("DB_PATH", "data/clinic.db")

    # Clinic timezone, fixed offset from UTC (e.g. +02:00)
    CLINIC_UTC_OFFSET = os.getenv("CLINIC_UTC_OFFSET", "+02:00")

    # Reminder scheduler
    REMINDER_INTERVAL_MINUTES = int(os.getenv("REMINDER_INTERVAL_MINUTES", "5"))
    SMS_SEND_DELAY_SECONDS = float(os.getenv("SMS_SEND_DELAY_SECONDS", "60"))
    REMINDER_LOCK_PATH = os.getenv("REMINDER_LOCK_PATH") or None

    # SMS formatting (Romanian locale: 01.06.2024)
    SMS_DATE_FORMAT = os.getenv("SMS_DATE_FORMAT", "%d.%m.%Y")

    # TextBee SMS gateway
    TEXTBEE_API_BASE = os.getenv("TEXTBEE_API_BASE", "https://api.textbee.dev/api/v1")
    TEXTBEE_API_KEY = os.getenv("TEXTBEE_API_KEY")
    TEXTBEE_DEVICE_ID = os.getenv("TEXTBEE_DEVICE_ID")
    SMS_TIMEOUT_SECONDS = int(os.getenv("SMS_TIMEOUT_SECONDS", "15"))

    # File Paths
    LOGS_PATH = os.getenv("LOGS_PATH", "logs")
    EXPORTS_PATH = os.getenv("EXPORTS_PATH", "exports")

    @classmethod
    def validate_config(cls) -> bool:
        """Validate scheduler configuration"""
        problems = []

        if cls.REMINDER_INTERVAL_MINUTES <= 0:
            problems.append("REMINDER_INTERVAL_MINUTES must be positive")
        if cls.SMS_SEND_DELAY_SECONDS < 0:
            problems.append("SMS_SEND_DELAY_SECONDS cannot be negative")
        try:
            from .date_utils import parse_utc_offset
            parse_utc_offset(cls.CLINIC_UTC_OFFSET)
        except ValueError as e:
            problems.append(str(e))

        if problems:
            print(f"Invalid configuration: {'; '.join(problems)}")
            return False

        return True

# Global config instance
config = Config()
