import os
import pandas as pd
from typing import Dict, List, Optional
from datetime import datetime
import logging
from ..agents.reminder_agent import ReminderAgent, reminder_agent as default_reminder_agent
from ..utils.config import config

logger = logging.getLogger(__name__)

def upcoming_reminders_frame(upcoming: List[Dict]) -> pd.DataFrame:
    """Flatten upcoming reminders to one row per pending SMS"""
    rows = []
    for item in upcoming:
        for reminder in item['reminders']:
            rows.append({
                'Appointment ID': item['appointment_id'],
                'Patient Name': item['patient_name'],
                'Phone': item['phone'],
                'Appointment At': item['appointment_at'],
                'Reminder': reminder['type'],
                'Send At': reminder['send_at']
            })
    return pd.DataFrame(rows, columns=['Appointment ID', 'Patient Name', 'Phone', 'Appointment At', 'Reminder', 'Send At'])

class ExportService:
    def __init__(self, export_dir: Optional[str] = None, reminder_agent: Optional[ReminderAgent] = None):
        self.export_dir = export_dir or config.EXPORTS_PATH
        self.reminder_agent = reminder_agent or default_reminder_agent
        os.makedirs(self.export_dir, exist_ok=True)

    def export_upcoming_reminders(self, now: Optional[datetime] = None, hours_ahead: int = 48) -> str:
        """Export pending reminders to Excel"""
        try:
            upcoming = self.reminder_agent.get_upcoming_reminders(now=now, hours_ahead=hours_ahead)

            if not upcoming:
                logger.warning("No upcoming reminders to export")
                return ""

            filename = f"upcoming_reminders_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
            filepath = os.path.join(self.export_dir, filename)

            df = upcoming_reminders_frame(upcoming)
            df.to_excel(filepath, index=False, engine='openpyxl')

            logger.info(f"Exported upcoming reminders: {filepath}")
            return filepath

        except Exception as e:
            logger.error(f"Error exporting upcoming reminders: {e}")
            return ""
