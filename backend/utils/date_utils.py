import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union
import pytz
from dateutil import parser

from .config import config

DB_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_OFFSET_RE = re.compile(r'^([+-])(\d{1,2}):?(\d{2})$')

def parse_utc_offset(value: str) -> int:
    """Parse '+02:00' / '-0530' / 'UTC' into minutes east of UTC"""
    value = (value or "").strip().upper()
    if value in ("", "Z", "UTC"):
        return 0
    match = _OFFSET_RE.match(value)
    if not match:
        raise ValueError(f"Invalid UTC offset: {value!r}")
    sign, hours, minutes = match.groups()
    total = int(hours) * 60 + int(minutes)
    if total >= 24 * 60:
        raise ValueError(f"UTC offset out of range: {value!r}")
    return -total if sign == "-" else total

def get_clinic_timezone(offset: Optional[str] = None):
    """Get the clinic's fixed-offset timezone"""
    return pytz.FixedOffset(parse_utc_offset(offset or config.CLINIC_UTC_OFFSET))

def get_current_clinic_time(tz=None) -> datetime:
    """Get current clinic-local datetime"""
    return datetime.now(tz or get_clinic_timezone())

def to_clinic_time(dt: datetime, tz=None) -> datetime:
    """Convert an instant to clinic-local time. Naive values are taken as clinic-local."""
    tz = tz or get_clinic_timezone()
    if dt.tzinfo is None:
        return tz.localize(dt)
    return dt.astimezone(tz)

def parse_date(value: Union[str, date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parser.isoparse(str(value).strip()).date()

def parse_clock(value: Union[str, time, timedelta]) -> time:
    """Parse time-of-day strings like '09:00' or '09:00:00'"""
    if isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        # some drivers return TIME columns as a timedelta since midnight
        seconds = int(value.total_seconds()) % 86400
        return time(seconds // 3600, (seconds % 3600) // 60, seconds % 60)
    tstr = str(value).strip()
    if not tstr:
        raise ValueError("empty time string")
    return datetime.strptime(tstr, "%H:%M").time() if len(tstr.split(":")) == 2 else datetime.strptime(tstr, "%H:%M:%S").time()

def combine_clinic_instant(appointment_date, start_time, tz=None) -> datetime:
    """Combine date and time-of-day fields into a clinic-local aware instant"""
    tz = tz or get_clinic_timezone()
    return tz.localize(datetime.combine(parse_date(appointment_date), parse_clock(start_time)))

def to_db_timestamp(dt: datetime, tz=None) -> str:
    """Clinic-local wall-clock string comparable with SQLite datetime()"""
    return to_clinic_time(dt, tz).strftime(DB_TIMESTAMP_FORMAT)
