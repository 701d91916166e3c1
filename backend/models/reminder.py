from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional, Tuple
from datetime import datetime, timedelta

class ReminderThreshold(BaseModel):
    """One reminder lead time and the window used to match appointments"""
    model_config = ConfigDict(frozen=True)

    name: str               # 24h, 2h, 1h
    lead_time: timedelta    # nominal time before the appointment
    min_offset: timedelta
    max_offset: timedelta
    sent_flag: str
    enabled_key: str
    template_key: str

    def window(self, now: datetime) -> Tuple[datetime, datetime]:
        """Closed [now + min_offset, now + max_offset] range of appointment instants"""
        return now + self.min_offset, now + self.max_offset

    @property
    def width(self) -> timedelta:
        return self.max_offset - self.min_offset

def _threshold(name: str, lead_time: timedelta, tolerance: timedelta) -> ReminderThreshold:
    return ReminderThreshold(
        name=name,
        lead_time=lead_time,
        min_offset=lead_time - tolerance,
        max_offset=lead_time + tolerance,
        sent_flag=f"reminder_sent_{name}",
        enabled_key=f"sms_enabled_{name}",
        template_key=f"sms_template_{name}",
    )

# Processed in this order every cycle
REMINDER_THRESHOLDS: List[ReminderThreshold] = [
    _threshold("24h", timedelta(hours=24), timedelta(hours=1)),
    _threshold("2h", timedelta(hours=2), timedelta(minutes=5)),
    _threshold("1h", timedelta(hours=1), timedelta(minutes=5)),
]

SENT_FLAGS = tuple(t.sent_flag for t in REMINDER_THRESHOLDS)

class SmsCredentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: str
    device_id: str

class ReminderConfig(BaseModel):
    """Snapshot of reminder settings taken once per cycle"""
    model_config = ConfigDict(frozen=True)

    enabled: Dict[str, bool] = Field(default_factory=dict)
    templates: Dict[str, str] = Field(default_factory=dict)
    credentials: Optional[SmsCredentials] = None

    def is_enabled(self, threshold: ReminderThreshold) -> bool:
        return self.enabled.get(threshold.name, False)

    def template_for(self, threshold: ReminderThreshold) -> str:
        return (self.templates.get(threshold.name) or "").strip()

class ReminderResult(BaseModel):
    appointment_id: str
    threshold: str
    status: str  # sent, failed, skipped
    phone: Optional[str] = None
    error: Optional[str] = None

class CycleSummary(BaseModel):
    results: List[ReminderResult] = Field(default_factory=list)
    skipped: bool = False
    skipped_reason: Optional[str] = None
    threshold_errors: Dict[str, str] = Field(default_factory=dict)
    error: Optional[str] = None
    started_at: Optional[str] = None
    finished_at: Optional[str] = None

    @property
    def processed_count(self) -> int:
        return len(self.results)

    @property
    def sent_count(self) -> int:
        return sum(1 for r in self.results if r.status == "sent")

    def to_dict(self):
        return {
            "processed_count": self.processed_count,
            "sent_count": self.sent_count,
            "results": [r.model_dump() for r in self.results],
            "skipped": self.skipped,
            "skipped_reason": self.skipped_reason or "",
            "threshold_errors": dict(self.threshold_errors),
            "error": self.error or "",
            "started_at": self.started_at or "",
            "finished_at": self.finished_at or ""
        }
