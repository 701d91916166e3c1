"""Clock and gateway doubles shared by the test modules."""

from datetime import datetime

from backend.utils.date_utils import get_clinic_timezone

CLINIC_TZ = get_clinic_timezone("+02:00")


def clinic_time(year, month, day, hour=0, minute=0, second=0):
    return CLINIC_TZ.localize(datetime(year, month, day, hour, minute, second))


class FakeNotificationService:
    """Records every send; numbers in fail_numbers get a gateway error,
    numbers in raise_numbers blow up."""

    def __init__(self):
        self.sent = []
        self.fail_numbers = set()
        self.raise_numbers = set()

    def send_sms(self, to_phone, message, credentials):
        self.sent.append({"to": to_phone, "message": message, "credentials": credentials})
        if to_phone in self.raise_numbers:
            raise RuntimeError("connection reset")
        if to_phone in self.fail_numbers:
            return {"success": False, "error": "TextBee Error (500)"}
        return {"success": True}
