from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime

VALID_STATUSES = ["scheduled", "completed", "cancelled", "no-show"]

def canonical_date(v: str) -> str:
    """Zero-padded YYYY-MM-DD; SQLite datetime() returns NULL for '2024-6-1'"""
    try:
        return datetime.strptime(v.strip(), '%Y-%m-%d').strftime('%Y-%m-%d')
    except ValueError:
        raise ValueError('Appointment date must be in YYYY-MM-DD format')

def canonical_clock(v: str) -> str:
    """Zero-padded HH:MM or HH:MM:SS, keeping whether seconds were given"""
    for fmt in ('%H:%M', '%H:%M:%S'):
        try:
            return datetime.strptime(v.strip(), fmt).strftime(fmt)
        except ValueError:
            continue
    raise ValueError('Time must be in HH:MM or HH:MM:SS format')

class Appointment(BaseModel):
    appointment_id: str
    patient_id: str
    appointment_date: str  # YYYY-MM-DD, clinic-local
    start_time: str        # HH:MM[:SS], clinic-local
    end_time: Optional[str] = None
    title: Optional[str] = None
    status: str = "scheduled"
    reminder_sent_24h: bool = False
    reminder_sent_2h: bool = False
    reminder_sent_1h: bool = False
    created_at: str
    updated_at: Optional[str] = None

    @field_validator('appointment_date')
    @classmethod
    def validate_date(cls, v):
        return canonical_date(v)

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_clock(cls, v):
        if v is None:
            return v
        return canonical_clock(v)

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v not in VALID_STATUSES:
            raise ValueError(f'Status must be one of: {VALID_STATUSES}')
        return v

    def to_dict(self):
        return {
            "appointment_id": self.appointment_id,
            "patient_id": self.patient_id,
            "appointment_date": self.appointment_date,
            "start_time": self.start_time,
            "end_time": self.end_time or "",
            "title": self.title or "",
            "status": self.status,
            "reminder_sent_24h": int(self.reminder_sent_24h),
            "reminder_sent_2h": int(self.reminder_sent_2h),
            "reminder_sent_1h": int(self.reminder_sent_1h),
            "created_at": self.created_at,
            "updated_at": self.updated_at or ""
        }

class AppointmentWithPatient(Appointment):
    """Appointment joined with the patient's contact details"""
    first_name: str
    last_name: str = ""
    phone: Optional[str] = None

    @property
    def patient_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
