from datetime import date
from typing import Optional, Union

from .config import config
from .date_utils import parse_clock, parse_date

PLACEHOLDER_PATIENT_NAME = "{patient_name}"
PLACEHOLDER_APPOINTMENT_DATE = "{appointment_date}"
PLACEHOLDER_APPOINTMENT_TIME = "{appointment_time}"

DEFAULT_TEMPLATE = (
    "Hi {patient_name}! This is a reminder for your dental appointment on "
    "{appointment_date} at {appointment_time}. Please call us if you need to reschedule."
)

def render_message(template: str, patient_name: str, appointment_date: str, appointment_time: str) -> str:
    """Substitute the three reminder placeholders; anything else is left as-is"""
    return (
        (template or "")
        .replace(PLACEHOLDER_PATIENT_NAME, patient_name or "")
        .replace(PLACEHOLDER_APPOINTMENT_DATE, appointment_date or "")
        .replace(PLACEHOLDER_APPOINTMENT_TIME, appointment_time or "")
    )

def format_appointment_date(value: Union[str, date], date_format: Optional[str] = None) -> str:
    return parse_date(value).strftime(date_format or config.SMS_DATE_FORMAT)

def format_appointment_time(value) -> str:
    """Zero-padded HH:MM"""
    return parse_clock(value).strftime("%H:%M")
