# scripts/seed_demo_data.py
"""
Seed a demo patient, appointments at each reminder lead time, and reminder settings.
Usage:
  python -m scripts.seed_demo_data --phone 0721234567
"""
import argparse
import uuid
from datetime import datetime, timedelta
from dotenv import load_dotenv

load_dotenv()

from backend.database.appointment_db import appointment_db
from backend.database.patient_db import patient_db
from backend.database.settings_db import settings_db
from backend.models.appointment import Appointment
from backend.models.patient import Patient
from backend.models.reminder import REMINDER_THRESHOLDS
from backend.utils.date_utils import get_current_clinic_time
from backend.utils.messages import DEFAULT_TEMPLATE

def main():
    p = argparse.ArgumentParser()
    p.add_argument("--phone", default="0721234567")
    p.add_argument("--first-name", default="Ana")
    p.add_argument("--last-name", default="Popescu")
    args = p.parse_args()

    now_iso = datetime.now().isoformat()
    patient = Patient(
        patient_id="P" + uuid.uuid4().hex[:8],
        first_name=args.first_name,
        last_name=args.last_name,
        phone=args.phone,
        created_at=now_iso,
    )
    patient_db.create_patient(patient)
    print(f"Patient {patient.patient_id}: {patient.full_name} ({patient.phone})")

    now = get_current_clinic_time().replace(second=0, microsecond=0)
    for threshold in REMINDER_THRESHOLDS:
        start = now + threshold.lead_time
        appointment = Appointment(
            appointment_id="A" + uuid.uuid4().hex[:8],
            patient_id=patient.patient_id,
            appointment_date=start.strftime("%Y-%m-%d"),
            start_time=start.strftime("%H:%M"),
            title=f"Demo consultation ({threshold.name})",
            created_at=now_iso,
        )
        appointment_db.create_appointment(appointment)
        print(f"Appointment {appointment.appointment_id} at {appointment.appointment_date} {appointment.start_time}")

        settings_db.set_setting(threshold.enabled_key, "true", f"SMS reminder {threshold.name} enabled")
        if not settings_db.get_setting(threshold.template_key):
            settings_db.set_setting(threshold.template_key, DEFAULT_TEMPLATE, f"SMS template {threshold.name}")

    print("Reminder settings enabled. Set textbee_api_key / textbee_device_id to send for real.")

if __name__ == "__main__":
    main()
