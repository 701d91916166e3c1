import time
from datetime import datetime, timedelta
from typing import List, Dict, Any, Optional
import logging
from ..database.appointment_db import AppointmentDB, appointment_db as default_appointment_db
from ..models.appointment import AppointmentWithPatient
from ..models.reminder import (
    REMINDER_THRESHOLDS, CycleSummary, ReminderConfig, ReminderResult, ReminderThreshold,
)
from ..services.notification_service import NotificationService, notification_service as default_notification_service
from ..services.settings_service import SettingsService, settings_service as default_settings_service
from ..utils.config import config
from ..utils.date_utils import combine_clinic_instant, get_clinic_timezone, to_clinic_time, to_db_timestamp
from ..utils.messages import DEFAULT_TEMPLATE, format_appointment_date, format_appointment_time, render_message
from ..utils.validation import is_dialable, normalize_phone

logger = logging.getLogger(__name__)

class ReminderAgent:
    """Scans the reminder windows and sends one SMS per appointment and threshold"""

    def __init__(self, appointment_db: Optional[AppointmentDB] = None,
                 settings_service: Optional[SettingsService] = None,
                 notification_service: Optional[NotificationService] = None,
                 send_delay_seconds: Optional[float] = None,
                 sleep=time.sleep,
                 tz=None,
                 thresholds: Optional[List[ReminderThreshold]] = None):
        self.appointment_db = appointment_db or default_appointment_db
        self.settings_service = settings_service or default_settings_service
        self.notification_service = notification_service or default_notification_service
        self.send_delay_seconds = config.SMS_SEND_DELAY_SECONDS if send_delay_seconds is None else send_delay_seconds
        self.sleep = sleep
        self.tz = tz or get_clinic_timezone()
        self.thresholds = thresholds or REMINDER_THRESHOLDS

    def _now(self, now: Optional[datetime] = None) -> datetime:
        return to_clinic_time(now or datetime.now(self.tz), self.tz)

    def scan(self, threshold: ReminderThreshold, now: Optional[datetime] = None) -> List[AppointmentWithPatient]:
        """Appointments entering this threshold's window and not yet reminded"""
        window_start, window_end = threshold.window(self._now(now))
        return self.appointment_db.find_due_for_reminder(
            threshold.sent_flag,
            to_db_timestamp(window_start, self.tz),
            to_db_timestamp(window_end, self.tz),
        )

    def dispatch(self, threshold: ReminderThreshold, reminder_config: ReminderConfig,
                 now: Optional[datetime] = None) -> List[ReminderResult]:
        """Send this threshold's reminders, one at a time"""
        if not reminder_config.is_enabled(threshold):
            logger.debug(f"{threshold.name} reminders disabled")
            return []

        template = reminder_config.template_for(threshold)
        if not template:
            logger.warning(f"{threshold.name} reminders enabled but template is empty, skipping")
            return []

        appointments = self.scan(threshold, now)
        if appointments:
            logger.info(f"{len(appointments)} appointment(s) due for {threshold.name} reminder")

        results = []
        for i, appointment in enumerate(appointments):
            # Rate limit: pause before every message except the first
            if i > 0 and self.send_delay_seconds > 0:
                logger.info(f"Rate limiting: sleeping {self.send_delay_seconds}s")
                self.sleep(self.send_delay_seconds)

            try:
                result = self._send_reminder(threshold, appointment, template, reminder_config)
            except Exception as e:
                logger.exception(f"Unexpected error sending {threshold.name} reminder for {appointment.appointment_id}")
                result = ReminderResult(
                    appointment_id=appointment.appointment_id,
                    threshold=threshold.name,
                    status="failed",
                    error=str(e),
                )
            results.append(result)

        return results

    def _send_reminder(self, threshold: ReminderThreshold, appointment: AppointmentWithPatient,
                       template: str, reminder_config: ReminderConfig) -> ReminderResult:
        phone = normalize_phone(appointment.phone or "")
        if not appointment.phone or not is_dialable(phone):
            logger.warning(f"Skipping {appointment.appointment_id}: phone {appointment.phone!r} is not dialable")
            return ReminderResult(
                appointment_id=appointment.appointment_id,
                threshold=threshold.name,
                status="skipped",
                phone=phone,
                error="invalid phone number",
            )

        body = render_message(
            template,
            appointment.first_name,
            format_appointment_date(appointment.appointment_date),
            format_appointment_time(appointment.start_time),
        )

        logger.info(f"Sending {threshold.name} reminder to {appointment.patient_name} ({appointment.appointment_id})")
        response = self.notification_service.send_sms(phone, body, reminder_config.credentials)

        if not response.get("success"):
            # flag stays false; the next tick retries while the window is open
            return ReminderResult(
                appointment_id=appointment.appointment_id,
                threshold=threshold.name,
                status="failed",
                phone=phone,
                error=response.get("error") or "send failed",
            )

        if not self.appointment_db.mark_reminder_sent(appointment.appointment_id, threshold.sent_flag):
            logger.error(f"SMS sent but {threshold.sent_flag} not persisted for {appointment.appointment_id}")

        return ReminderResult(
            appointment_id=appointment.appointment_id,
            threshold=threshold.name,
            status="sent",
            phone=phone,
        )

    def process_reminders(self, now: Optional[datetime] = None) -> CycleSummary:
        """One full cycle over every threshold"""
        now = self._now(now)
        summary = CycleSummary(started_at=now.isoformat())

        reminder_config = self.settings_service.load_reminder_config()
        if reminder_config.credentials is None:
            logger.info("SMS credentials not configured, skipping reminder cycle")
            summary.skipped = True
            summary.skipped_reason = "missing_credentials"
            summary.finished_at = self._now().isoformat()
            return summary

        for threshold in self.thresholds:
            try:
                summary.results.extend(self.dispatch(threshold, reminder_config, now))
            except Exception as e:
                logger.exception(f"{threshold.name} reminder pass failed")
                summary.threshold_errors[threshold.name] = str(e)

        summary.finished_at = self._now().isoformat()
        logger.info(f"Reminder cycle done: {summary.processed_count} processed, {summary.sent_count} sent")
        return summary

    def send_immediate(self, appointment_id: str) -> Dict[str, Any]:
        """Send a reminder right now, outside the windows. Sent flags are untouched."""
        try:
            appointment = self.appointment_db.get_appointment_with_patient(appointment_id)
            if not appointment:
                return {"success": False, "error": "Appointment or patient not found"}

            if not appointment.phone or not appointment.phone.strip():
                return {"success": False, "error": "Patient has no phone number"}

            phone = normalize_phone(appointment.phone)
            if not is_dialable(phone):
                logger.warning(f"Not sending to {appointment.appointment_id}: phone {appointment.phone!r} is not dialable")
                return {"success": False, "error": "invalid phone number"}

            credentials = self.settings_service.get_credentials()
            if credentials is None:
                return {"success": False, "error": "SMS gateway credentials not configured"}

            template = self.settings_service.get_immediate_template() or DEFAULT_TEMPLATE
            body = render_message(
                template,
                appointment.first_name,
                format_appointment_date(appointment.appointment_date),
                format_appointment_time(appointment.start_time),
            )

            response = self.notification_service.send_sms(phone, body, credentials)
            if response.get("success"):
                return {"success": True, "message": f"SMS sent to {appointment.first_name} at {phone}"}
            return {"success": False, "error": response.get("error") or "send failed"}

        except Exception as e:
            logger.error(f"Error sending immediate SMS for {appointment_id}: {e}")
            return {"success": False, "error": str(e)}

    def get_upcoming_reminders(self, now: Optional[datetime] = None, hours_ahead: int = 48) -> List[Dict[str, Any]]:
        """Planned send times for reminders not yet sent, over the next hours_ahead hours"""
        now = self._now(now)
        appointments = self.appointment_db.get_upcoming(
            to_db_timestamp(now, self.tz),
            to_db_timestamp(now + timedelta(hours=hours_ahead), self.tz),
        )

        upcoming = []
        for appointment in appointments:
            instant = combine_clinic_instant(appointment.appointment_date, appointment.start_time, self.tz)
            reminders = [
                {"type": t.name, "send_at": (instant - t.lead_time).isoformat()}
                for t in self.thresholds
                if not getattr(appointment, t.sent_flag)
            ]
            if not reminders:
                continue
            upcoming.append({
                "appointment_id": appointment.appointment_id,
                "patient_name": appointment.patient_name,
                "phone": appointment.phone or "",
                "appointment_at": instant.isoformat(),
                "reminders": reminders,
            })

        return upcoming

# Global instance
reminder_agent = ReminderAgent()
