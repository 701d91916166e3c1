from pydantic import BaseModel, field_validator
from typing import Optional

class Patient(BaseModel):
    patient_id: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    created_at: str

    @field_validator('first_name')
    @classmethod
    def validate_first_name(cls, v):
        if not v or not v.strip():
            raise ValueError('First name is required')
        return v.strip()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_dict(self):
        return {
            "patient_id": self.patient_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone or "",
            "email": self.email or "",
            "created_at": self.created_at
        }
