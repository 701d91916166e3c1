"""Shared fixtures: a throwaway SQLite store and a fake SMS gateway."""

import os
import tempfile
import uuid

# Point module-level stores at a scratch directory before backend is imported
_SCRATCH = tempfile.mkdtemp(prefix="reminders-tests-")
os.environ["DB_PATH"] = os.path.join(_SCRATCH, "clinic.db")
os.environ["LOGS_PATH"] = os.path.join(_SCRATCH, "logs")
os.environ["EXPORTS_PATH"] = os.path.join(_SCRATCH, "exports")
os.environ["CLINIC_UTC_OFFSET"] = "+02:00"

import pytest

from backend.agents.reminder_agent import ReminderAgent
from backend.database.appointment_db import AppointmentDB
from backend.database.patient_db import PatientDB
from backend.database.settings_db import SettingsDB
from backend.models.appointment import Appointment
from backend.models.patient import Patient
from backend.models.reminder import REMINDER_THRESHOLDS
from backend.services.settings_service import SettingsService

from tests.helpers import CLINIC_TZ, FakeNotificationService


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "clinic.db")


@pytest.fixture
def patient_db(db_path):
    return PatientDB(db_path)


@pytest.fixture
def appointment_db(db_path, patient_db):
    return AppointmentDB(db_path)


@pytest.fixture
def settings_db(db_path):
    return SettingsDB(db_path)


@pytest.fixture
def settings_service(settings_db):
    # empty env fallback so a developer .env cannot leak in
    return SettingsService(settings_db, env_api_key="", env_device_id="")


@pytest.fixture
def gateway():
    return FakeNotificationService()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def agent(appointment_db, settings_service, gateway, sleeps):
    return ReminderAgent(
        appointment_db=appointment_db,
        settings_service=settings_service,
        notification_service=gateway,
        send_delay_seconds=0,
        sleep=sleeps.append,
        tz=CLINIC_TZ,
    )


@pytest.fixture
def add_patient(patient_db):
    def _add(first_name="Ana", last_name="Popescu", phone="0721234567"):
        patient = Patient(
            patient_id="P" + uuid.uuid4().hex[:8],
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            created_at="2024-05-01T09:00:00",
        )
        assert patient_db.create_patient(patient)
        return patient
    return _add


@pytest.fixture
def add_appointment(appointment_db, add_patient):
    def _add(appointment_date, start_time, patient=None, status="scheduled", **flags):
        patient = patient or add_patient()
        appointment = Appointment(
            appointment_id="A" + uuid.uuid4().hex[:8],
            patient_id=patient.patient_id,
            appointment_date=appointment_date,
            start_time=start_time,
            status=status,
            created_at="2024-05-01T09:00:00",
            **flags,
        )
        assert appointment_db.create_appointment(appointment)
        return appointment
    return _add


@pytest.fixture
def configure_reminders(settings_db):
    def _configure(credentials=True, enabled=("24h", "2h", "1h"), templates=None):
        for threshold in REMINDER_THRESHOLDS:
            settings_db.set_setting(threshold.enabled_key, "true" if threshold.name in enabled else "false")
            template = (templates or {}).get(
                threshold.name, f"[{threshold.name}] Hi {{patient_name}}, {{appointment_date}} {{appointment_time}}"
            )
            settings_db.set_setting(threshold.template_key, template)
        if credentials:
            settings_db.set_setting("textbee_api_key", "test-key")
            settings_db.set_setting("textbee_device_id", "device-1")
    return _configure
