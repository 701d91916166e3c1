"""Tests for the appointment store queries used by the reminders."""

import pytest


WINDOW = ("2024-06-01 13:05:00", "2024-06-01 15:05:00")


class TestFindDueForReminder:
    def test_matches_scheduled_unsent_in_window(self, appointment_db, add_appointment):
        appt = add_appointment("2024-06-01", "14:00")

        due = appointment_db.find_due_for_reminder("reminder_sent_24h", *WINDOW)

        assert [a.appointment_id for a in due] == [appt.appointment_id]
        assert due[0].first_name == "Ana"
        assert due[0].phone == "0721234567"

    def test_seconds_in_start_time(self, appointment_db, add_appointment):
        add_appointment("2024-06-01", "15:05:00")
        assert len(appointment_db.find_due_for_reminder("reminder_sent_24h", *WINDOW)) == 1

    def test_bounds_are_inclusive(self, appointment_db, add_appointment):
        add_appointment("2024-06-01", "13:05")
        add_appointment("2024-06-01", "15:05")
        assert len(appointment_db.find_due_for_reminder("reminder_sent_24h", *WINDOW)) == 2

    def test_outside_window(self, appointment_db, add_appointment):
        add_appointment("2024-06-01", "15:06")
        add_appointment("2024-06-01", "13:04")
        add_appointment("2024-06-02", "14:00")
        assert appointment_db.find_due_for_reminder("reminder_sent_24h", *WINDOW) == []

    @pytest.mark.parametrize("status", ["cancelled", "completed", "no-show"])
    def test_only_scheduled(self, appointment_db, add_appointment, status):
        add_appointment("2024-06-01", "14:00", status=status)
        assert appointment_db.find_due_for_reminder("reminder_sent_24h", *WINDOW) == []

    def test_already_sent_excluded(self, appointment_db, add_appointment):
        add_appointment("2024-06-01", "14:00", reminder_sent_24h=True)
        assert appointment_db.find_due_for_reminder("reminder_sent_24h", *WINDOW) == []
        # other thresholds keep their own flag
        assert len(appointment_db.find_due_for_reminder("reminder_sent_2h", *WINDOW)) == 1

    @pytest.mark.parametrize("phone", [None, "", "   "])
    def test_patients_without_phone_excluded(self, appointment_db, add_appointment, add_patient, phone):
        add_appointment("2024-06-01", "14:00", patient=add_patient(phone=phone))
        assert appointment_db.find_due_for_reminder("reminder_sent_24h", *WINDOW) == []

    def test_unknown_flag_rejected(self, appointment_db):
        with pytest.raises(ValueError):
            appointment_db.find_due_for_reminder("status; DROP TABLE appointments", *WINDOW)


class TestMarkReminderSent:
    def test_sets_only_that_flag(self, appointment_db, add_appointment):
        appt = add_appointment("2024-06-01", "14:00")

        assert appointment_db.mark_reminder_sent(appt.appointment_id, "reminder_sent_2h")

        stored = appointment_db.get_appointment_by_id(appt.appointment_id)
        assert stored.reminder_sent_2h is True
        assert stored.reminder_sent_24h is False
        assert stored.reminder_sent_1h is False

    def test_marking_twice_is_harmless(self, appointment_db, add_appointment):
        appt = add_appointment("2024-06-01", "14:00")
        assert appointment_db.mark_reminder_sent(appt.appointment_id, "reminder_sent_1h")
        assert appointment_db.mark_reminder_sent(appt.appointment_id, "reminder_sent_1h")
        assert appointment_db.get_appointment_by_id(appt.appointment_id).reminder_sent_1h is True

    def test_unknown_appointment(self, appointment_db):
        assert appointment_db.mark_reminder_sent("missing", "reminder_sent_1h") is False


class TestUpdateAppointment:
    def test_reschedule_resets_flags(self, appointment_db, add_appointment):
        appt = add_appointment("2024-06-01", "14:00", reminder_sent_24h=True, reminder_sent_2h=True)

        assert appointment_db.update_appointment(appt.appointment_id, {"start_time": "16:00"})

        stored = appointment_db.get_appointment_by_id(appt.appointment_id)
        assert stored.start_time == "16:00"
        assert not (stored.reminder_sent_24h or stored.reminder_sent_2h or stored.reminder_sent_1h)

    def test_resaving_same_slot_keeps_flags(self, appointment_db, add_appointment):
        appt = add_appointment("2024-06-01", "14:00", reminder_sent_24h=True)

        assert appointment_db.update_appointment(
            appt.appointment_id, {"appointment_date": "2024-06-01", "start_time": "14:00:00", "title": "Cleaning"}
        )

        stored = appointment_db.get_appointment_by_id(appt.appointment_id)
        assert stored.title == "Cleaning"
        assert stored.reminder_sent_24h is True

    def test_date_change_resets_flags(self, appointment_db, add_appointment):
        appt = add_appointment("2024-06-01", "14:00", reminder_sent_24h=True)

        assert appointment_db.update_appointment(appt.appointment_id, {"appointment_date": "2024-6-3"})

        stored = appointment_db.get_appointment_by_id(appt.appointment_id)
        assert stored.appointment_date == "2024-06-03"
        assert stored.reminder_sent_24h is False

    def test_reschedule_stores_padded_time(self, appointment_db, add_appointment):
        appt = add_appointment("2024-06-01", "14:00")

        assert appointment_db.update_appointment(appt.appointment_id, {"start_time": "9:30"})

        assert appointment_db.get_appointment_by_id(appt.appointment_id).start_time == "09:30"
        assert len(appointment_db.find_due_for_reminder(
            "reminder_sent_24h", "2024-06-01 09:00:00", "2024-06-01 10:00:00")) == 1

    def test_invalid_time_rejected(self, appointment_db, add_appointment):
        appt = add_appointment("2024-06-01", "14:00")
        assert appointment_db.update_appointment(appt.appointment_id, {"start_time": "25:00"}) is False
        assert appointment_db.get_appointment_by_id(appt.appointment_id).start_time == "14:00"

    def test_status_change_keeps_flags(self, appointment_db, add_appointment):
        appt = add_appointment("2024-06-01", "14:00", reminder_sent_24h=True)

        assert appointment_db.update_appointment(appt.appointment_id, {"status": "cancelled"})

        stored = appointment_db.get_appointment_by_id(appt.appointment_id)
        assert stored.status == "cancelled"
        assert stored.reminder_sent_24h is True

    def test_ignores_unknown_fields(self, appointment_db, add_appointment):
        appt = add_appointment("2024-06-01", "14:00")
        assert appointment_db.update_appointment(appt.appointment_id, {"reminder_sent_1h": 1}) is False
