import sqlite3
import os
from typing import Optional, List, Dict
from datetime import datetime
from ..models.appointment import Appointment, AppointmentWithPatient, canonical_clock, canonical_date
from ..models.reminder import SENT_FLAGS
from ..utils.config import config
from ..utils.date_utils import parse_clock
import logging

logger = logging.getLogger(__name__)

# Both render as 'YYYY-MM-DD HH:MM:SS' so they compare as strings
APPOINTMENT_INSTANT_SQL = "datetime(a.appointment_date || ' ' || a.start_time)"

APPOINTMENT_COLUMNS = [
    'appointment_id', 'patient_id', 'appointment_date', 'start_time', 'end_time',
    'title', 'status', 'reminder_sent_24h', 'reminder_sent_2h', 'reminder_sent_1h',
    'created_at', 'updated_at'
]

def _check_sent_flag(sent_flag: str) -> str:
    # column names cannot be bound parameters
    if sent_flag not in SENT_FLAGS:
        raise ValueError(f"Unknown reminder flag: {sent_flag}")
    return sent_flag

class AppointmentDB:
    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or config.DB_PATH
        if os.path.dirname(self.db_path):
            os.makedirs(os.path.dirname(self.db_path), exist_ok=True)
        self._init_db()

    def _connect(self):
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize appointments table"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS appointments (
                appointment_id TEXT PRIMARY KEY,
                patient_id TEXT NOT NULL,
                appointment_date TEXT NOT NULL,
                start_time TEXT NOT NULL,
                end_time TEXT,
                title TEXT,
                status TEXT DEFAULT 'scheduled',
                reminder_sent_24h INTEGER DEFAULT 0,
                reminder_sent_2h INTEGER DEFAULT 0,
                reminder_sent_1h INTEGER DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT,
                FOREIGN KEY (patient_id) REFERENCES patients (patient_id)
            )
        """)

        conn.commit()
        conn.close()

    @staticmethod
    def _row_to_appointment(row) -> Appointment:
        return Appointment(
            appointment_id=row['appointment_id'],
            patient_id=row['patient_id'],
            appointment_date=row['appointment_date'],
            start_time=row['start_time'],
            end_time=row['end_time'],
            title=row['title'],
            status=row['status'],
            reminder_sent_24h=bool(row['reminder_sent_24h']),
            reminder_sent_2h=bool(row['reminder_sent_2h']),
            reminder_sent_1h=bool(row['reminder_sent_1h']),
            created_at=row['created_at'],
            updated_at=row['updated_at']
        )

    @staticmethod
    def _row_to_appointment_with_patient(row) -> AppointmentWithPatient:
        return AppointmentWithPatient(
            appointment_id=row['appointment_id'],
            patient_id=row['patient_id'],
            appointment_date=row['appointment_date'],
            start_time=row['start_time'],
            end_time=row['end_time'],
            title=row['title'],
            status=row['status'],
            reminder_sent_24h=bool(row['reminder_sent_24h']),
            reminder_sent_2h=bool(row['reminder_sent_2h']),
            reminder_sent_1h=bool(row['reminder_sent_1h']),
            created_at=row['created_at'],
            updated_at=row['updated_at'],
            first_name=row['first_name'] or "",
            last_name=row['last_name'] or "",
            phone=row['phone']
        )

    def create_appointment(self, appointment: Appointment) -> bool:
        """Create a new appointment"""
        try:
            conn = self._connect()
            try:
                data = appointment.to_dict()
                data['end_time'] = appointment.end_time
                data['title'] = appointment.title
                data['updated_at'] = appointment.updated_at
                placeholders = ", ".join("?" for _ in APPOINTMENT_COLUMNS)
                conn.execute(
                    f"INSERT INTO appointments ({', '.join(APPOINTMENT_COLUMNS)}) VALUES ({placeholders})",
                    [data[c] for c in APPOINTMENT_COLUMNS]
                )
                conn.commit()
            finally:
                conn.close()
            return True

        except Exception as e:
            logger.error(f"Error creating appointment: {e}")
            return False

    def get_appointment_by_id(self, appointment_id: str) -> Optional[Appointment]:
        """Get appointment by ID"""
        try:
            conn = self._connect()
            try:
                row = conn.execute(
                    "SELECT * FROM appointments WHERE appointment_id = ?", (appointment_id,)
                ).fetchone()
            finally:
                conn.close()

            return self._row_to_appointment(row) if row else None

        except Exception as e:
            logger.error(f"Error getting appointment: {e}")
            return None

    def get_appointment_with_patient(self, appointment_id: str) -> Optional[AppointmentWithPatient]:
        """Get appointment joined with patient contact info"""
        try:
            conn = self._connect()
            try:
                row = conn.execute("""
                    SELECT a.*, p.first_name, p.last_name, p.phone
                    FROM appointments a
                    JOIN patients p ON a.patient_id = p.patient_id
                    WHERE a.appointment_id = ?
                """, (appointment_id,)).fetchone()
            finally:
                conn.close()

            return self._row_to_appointment_with_patient(row) if row else None

        except Exception as e:
            logger.error(f"Error getting appointment with patient: {e}")
            return None

    @staticmethod
    def _is_rescheduled(current: Appointment, updates: Dict) -> bool:
        new_date = updates.get('appointment_date') or current.appointment_date
        new_start = updates.get('start_time') or current.start_time
        if new_date != current.appointment_date:
            return True
        # '14:00' and '14:00:00' are the same slot
        return parse_clock(new_start) != parse_clock(current.start_time)

    def update_appointment(self, appointment_id: str, updates: Dict) -> bool:
        """Update appointment. Rescheduling clears the reminder flags."""
        try:
            set_clauses = []
            values = []
            updates = dict(updates)

            if updates.get('appointment_date') is not None:
                updates['appointment_date'] = canonical_date(updates['appointment_date'])
            for field in ('start_time', 'end_time'):
                if updates.get(field) is not None:
                    updates[field] = canonical_clock(updates[field])

            for field, value in updates.items():
                if field in ['status', 'title', 'appointment_date', 'start_time', 'end_time', 'updated_at']:
                    set_clauses.append(f"{field} = ?")
                    values.append(value)

            if not set_clauses:
                return False

            if 'appointment_date' in updates or 'start_time' in updates:
                current = self.get_appointment_by_id(appointment_id)
                if current and self._is_rescheduled(current, updates):
                    for flag in SENT_FLAGS:
                        set_clauses.append(f"{flag} = 0")

            # Always update timestamp
            if 'updated_at' not in updates:
                set_clauses.append("updated_at = ?")
                values.append(datetime.now().isoformat())

            values.append(appointment_id)
            conn = self._connect()
            try:
                cursor = conn.execute(
                    f"UPDATE appointments SET {', '.join(set_clauses)} WHERE appointment_id = ?", values
                )
                conn.commit()
                return cursor.rowcount > 0
            finally:
                conn.close()

        except Exception as e:
            logger.error(f"Error updating appointment: {e}")
            return False

    def find_due_for_reminder(self, sent_flag: str, window_start: str, window_end: str) -> List[AppointmentWithPatient]:
        """Scheduled, not-yet-reminded appointments whose instant is in [window_start, window_end].

        Bounds are clinic-local 'YYYY-MM-DD HH:MM:SS' strings. Patients
        without a phone number are left out.
        """
        flag = _check_sent_flag(sent_flag)
        try:
            conn = self._connect()
            try:
                rows = conn.execute(f"""
                    SELECT a.*, p.first_name, p.last_name, p.phone
                    FROM appointments a
                    JOIN patients p ON a.patient_id = p.patient_id
                    WHERE a.status = 'scheduled'
                    AND a.{flag} = 0
                    AND p.phone IS NOT NULL
                    AND TRIM(p.phone) != ''
                    AND {APPOINTMENT_INSTANT_SQL} BETWEEN ? AND ?
                    ORDER BY {APPOINTMENT_INSTANT_SQL}
                """, (window_start, window_end)).fetchall()
            finally:
                conn.close()

            return [self._row_to_appointment_with_patient(row) for row in rows]

        except Exception as e:
            logger.error(f"Error finding appointments due for {flag}: {e}")
            return []

    def get_upcoming(self, window_start: str, window_end: str) -> List[AppointmentWithPatient]:
        """Scheduled appointments with an instant in [window_start, window_end]"""
        try:
            conn = self._connect()
            try:
                rows = conn.execute(f"""
                    SELECT a.*, p.first_name, p.last_name, p.phone
                    FROM appointments a
                    JOIN patients p ON a.patient_id = p.patient_id
                    WHERE a.status = 'scheduled'
                    AND {APPOINTMENT_INSTANT_SQL} BETWEEN ? AND ?
                    ORDER BY {APPOINTMENT_INSTANT_SQL}
                """, (window_start, window_end)).fetchall()
            finally:
                conn.close()

            return [self._row_to_appointment_with_patient(row) for row in rows]

        except Exception as e:
            logger.error(f"Error getting upcoming appointments: {e}")
            return []

    def mark_reminder_sent(self, appointment_id: str, sent_flag: str) -> bool:
        """Set a reminder flag to 1. Setting it twice is harmless."""
        flag = _check_sent_flag(sent_flag)
        try:
            conn = self._connect()
            try:
                cursor = conn.execute(
                    f"UPDATE appointments SET {flag} = 1, updated_at = ? WHERE appointment_id = ?",
                    (datetime.now().isoformat(), appointment_id)
                )
                conn.commit()
                updated = cursor.rowcount > 0
            finally:
                conn.close()

            if updated:
                logger.info(f"Marked {flag} for appointment {appointment_id}")
            else:
                logger.warning(f"No appointment {appointment_id} to mark {flag}")
            return updated

        except Exception as e:
            logger.error(f"Error marking reminder sent: {e}")
            return False

# Global instance
appointment_db = AppointmentDB()
