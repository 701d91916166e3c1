import sqlite3
import os
from typing import Optional
from ..models.patient import Patient
from ..utils.config import config
import logging

logger = logging.getLogger(__name__)

class PatientDB:
    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or config.DB_PATH
        if os.path.dirname(self.db_path):
            os.makedirs(os.path.dirname(self.db_path), exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize patients table"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS patients (
                patient_id TEXT PRIMARY KEY,
                first_name TEXT NOT NULL,
                last_name TEXT NOT NULL,
                phone TEXT,
                email TEXT,
                created_at TEXT NOT NULL
            )
        """)

        conn.commit()
        conn.close()

    def create_patient(self, patient: Patient) -> bool:
        """Create a new patient"""
        try:
            conn = sqlite3.connect(self.db_path)
            cursor = conn.cursor()

            cursor.execute("""
                INSERT INTO patients
                (patient_id, first_name, last_name, phone, email, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                patient.patient_id, patient.first_name, patient.last_name,
                patient.phone, patient.email, patient.created_at
            ))

            conn.commit()
            conn.close()
            return True

        except Exception as e:
            logger.error(f"Error creating patient: {e}")
            return False

    def get_patient_by_id(self, patient_id: str) -> Optional[Patient]:
        """Get patient by ID"""
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()

            cursor.execute("SELECT * FROM patients WHERE patient_id = ?", (patient_id,))
            row = cursor.fetchone()
            conn.close()

            if row:
                return Patient(
                    patient_id=row['patient_id'],
                    first_name=row['first_name'],
                    last_name=row['last_name'],
                    phone=row['phone'],
                    email=row['email'],
                    created_at=row['created_at']
                )
            return None

        except Exception as e:
            logger.error(f"Error getting patient: {e}")
            return None

# Global instance
patient_db = PatientDB()
